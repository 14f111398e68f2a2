"""Durable session state: record codec and single-file store.

The codec is the only place where wall-clock time re-enters the keeper's
bookkeeping, so it is also where clock anomalies are detected. A record
whose start lies in the future (clock moved backward) or whose session has
run out is reported as absent.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from privsession.config import EngineConfig
from privsession.models.session import STATE_SCHEMA_VERSION, PersistedRecord

LOGGER = logging.getLogger(__name__)

_DEFAULT_DURATION = EngineConfig().session_duration


def serialize(
    start_wall_clock: float | None,
    saved_at: float | None = None,
) -> PersistedRecord | None:
    """Build a durable record for a session started at ``start_wall_clock``.

    Returns None when there is no active session.
    """
    if start_wall_clock is None:
        return None
    return PersistedRecord(
        schema_version=STATE_SCHEMA_VERSION,
        start_wall_clock=start_wall_clock,
        saved_at_wall_clock=time.time() if saved_at is None else saved_at,
    )


def deserialize(
    record: PersistedRecord | Mapping[str, Any] | None,
    now: float,
    duration: float = _DEFAULT_DURATION,
) -> tuple[float, float] | tuple[None, None]:
    """Validate a record against the current wall-clock time.

    Returns:
        ``(start_wall_clock, elapsed)`` for a live session, otherwise
        ``(None, None)``.
    """
    if record is None:
        return None, None

    if not isinstance(record, PersistedRecord):
        try:
            record = PersistedRecord.model_validate(record)
        except ValidationError:
            return None, None

    if record.schema_version != STATE_SCHEMA_VERSION:
        return None, None

    elapsed = now - record.start_wall_clock

    # Clock went backwards
    if elapsed < 0:
        return None, None

    if elapsed >= duration:
        return None, None

    return record.start_wall_clock, elapsed


class StateStore:
    """Reads and writes the durable record as one JSON file.

    Writes are last-writer-wins. I/O errors are logged and reported through
    return values so the in-memory session stays authoritative.
    """

    def __init__(self, path: Path) -> None:
        """Initialize the store.

        Args:
            path: Location of the JSON state file.
        """
        self.path = path

    def load(self) -> PersistedRecord | None:
        """Load the record, treating unreadable or malformed files as absent."""
        if not self.path.exists():
            return None
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except OSError as error:
            LOGGER.warning("Could not read state file %s: %s", self.path, error)
            return None
        except ValueError:
            LOGGER.warning("Ignoring corrupt state file %s", self.path)
            return None

        if not isinstance(data, dict):
            LOGGER.warning("Ignoring malformed state file %s", self.path)
            return None
        try:
            record = PersistedRecord.model_validate(data)
        except ValidationError as error:
            LOGGER.warning(
                "Ignoring state file %s with invalid schema (%d errors)",
                self.path,
                error.error_count(),
            )
            return None

        if record.schema_version != STATE_SCHEMA_VERSION:
            LOGGER.warning(
                "Ignoring state file %s with unknown version %d",
                self.path,
                record.schema_version,
            )
            return None
        return record

    def save(self, record: PersistedRecord) -> bool:
        """Write the record. Returns False if the write failed."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("w", encoding="utf-8") as f:
                json.dump(record.model_dump(by_alias=True), f, indent=2)
        except OSError as error:
            LOGGER.error("Could not save state to %s: %s", self.path, error)
            return False
        return True

    def clear(self) -> bool:
        """Delete the record.

        Returns:
            True if a file was removed, False if none existed or removal failed.
        """
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        except OSError as error:
            LOGGER.error("Could not delete state file %s: %s", self.path, error)
            return False
        return True
