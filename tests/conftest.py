"""Shared test configuration and fixtures."""

import os
from pathlib import Path

import pytest

# Keep the app lifespan from starting watcher threads during API tests.
# This must be set before any test enters a TestClient context.
os.environ.setdefault("PRIVSESSION_DISABLE_KEEPER", "1")
os.environ.setdefault("PRIVSESSION_CHECK_RATE_LIMIT", "10000/minute")

from privsession.config import EngineConfig, KeeperSettings  # noqa: E402
from privsession.services.state_store import StateStore  # noqa: E402

from fakes import FakeClock, FakeTimer, RecordingSink  # noqa: E402


@pytest.fixture
def clock() -> FakeClock:
    """Create a fake clock."""
    return FakeClock()


@pytest.fixture
def fake_timer(clock: FakeClock) -> FakeTimer:
    """Create a fake timer bound to the fake clock."""
    return FakeTimer(clock)


@pytest.fixture
def sink() -> RecordingSink:
    """Create a recording sink."""
    return RecordingSink()


@pytest.fixture
def store(tmp_path: Path) -> StateStore:
    """Create a state store in a temp directory."""
    return StateStore(tmp_path / "state.json")


@pytest.fixture
def settings(tmp_path: Path) -> KeeperSettings:
    """Default settings with the state file in a temp directory."""
    return KeeperSettings(engine=EngineConfig(), state_file=tmp_path / "state.json")
