"""Data models for the session keeper."""

from privsession.models.events import (
    AlreadyEnabled,
    AppStarted,
    AppStopped,
    Enabled,
    Failed,
    KeeperEvent,
    ManualCheck,
    NotReady,
    SleepBegan,
    Startup,
    TimerFired,
    TimerReason,
    ToggleResult,
    WokeUp,
)
from privsession.models.session import (
    STATE_SCHEMA_VERSION,
    DebounceContext,
    PersistedRecord,
    SessionState,
    SessionStatus,
    SleepInterval,
    StatusSnapshot,
)

__all__ = [
    "STATE_SCHEMA_VERSION",
    "AlreadyEnabled",
    "AppStarted",
    "AppStopped",
    "DebounceContext",
    "Enabled",
    "Failed",
    "KeeperEvent",
    "ManualCheck",
    "NotReady",
    "PersistedRecord",
    "SessionState",
    "SessionStatus",
    "SleepBegan",
    "SleepInterval",
    "Startup",
    "StatusSnapshot",
    "TimerFired",
    "TimerReason",
    "ToggleResult",
    "WokeUp",
]
