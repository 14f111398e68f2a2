"""Session state and persistence models."""

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

STATE_SCHEMA_VERSION = 1


@dataclass(frozen=True)
class SessionState:
    """An active private session.

    ``start_monotonic`` drives all in-process arithmetic. ``start_wall_clock``
    is only used for persistence. Both are always set together; "no
    session" is represented by ``None`` in place of the whole state.
    """

    start_monotonic: float
    start_wall_clock: float


@dataclass
class DebounceContext:
    """Time of the last trigger that was actually processed."""

    last_check_monotonic: float | None = None


@dataclass(frozen=True)
class SleepInterval:
    """One sleep/wake cycle, consumed once on wake."""

    sleep_start: float | None
    wake: float


class SessionStatus(str, Enum):
    """Presentation-level state of the keeper."""

    INACTIVE = "inactive"
    AWAITING = "awaiting"
    ACTIVE = "active"
    STALE = "stale"
    FAILED = "failed"


class PersistedRecord(BaseModel):
    """Durable record of the current session, written as JSON."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    schema_version: int = Field(
        ..., alias="schemaVersion", description="Record format version"
    )
    start_wall_clock: float = Field(
        ..., alias="startWallClock", description="Session start (epoch seconds)"
    )
    saved_at_wall_clock: float = Field(
        ..., alias="savedAtWallClock", description="Write time (epoch seconds)"
    )


class StatusSnapshot(BaseModel):
    """Current keeper status as shown to the user."""

    status: SessionStatus = SessionStatus.INACTIVE
    remaining: str | None = Field(
        default=None, description="Formatted time until the session expires"
    )
    remaining_seconds: float | None = None
    next_check_in: float | None = Field(
        default=None, description="Seconds until the scheduled check fires"
    )
    detail: str | None = None
