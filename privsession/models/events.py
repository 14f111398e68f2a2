"""Keeper events and toggle action results."""

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class Enabled:
    """The permission was switched on by the action."""


@dataclass(frozen=True)
class AlreadyEnabled:
    """The permission was already on; nothing was clicked."""


@dataclass(frozen=True)
class NotReady:
    """The application is not ready yet (e.g. no menu bar). Retryable."""


@dataclass(frozen=True)
class Failed:
    """The action failed for the given reason."""

    reason: str


ToggleResult = Enabled | AlreadyEnabled | NotReady | Failed


class TimerReason(str, Enum):
    """Why the single keeper timer was scheduled."""

    RENEW = "renew"
    RETRY = "retry"
    RENEW_RETRY = "renew_retry"
    LAUNCH = "launch"
    STARTUP = "startup"
    WAKE_VERIFY = "wake_verify"


@dataclass(frozen=True)
class Startup:
    """The keeper process started."""


@dataclass(frozen=True)
class AppStarted:
    """The target application launched."""


@dataclass(frozen=True)
class AppStopped:
    """The target application terminated."""


@dataclass(frozen=True)
class SleepBegan:
    """The system went to sleep at ``timestamp``."""

    timestamp: float


@dataclass(frozen=True)
class WokeUp:
    """The system woke at ``timestamp`` (same clock as the sleep start)."""

    timestamp: float


@dataclass(frozen=True)
class TimerFired:
    """The scheduled check fired."""

    reason: TimerReason


@dataclass(frozen=True)
class ManualCheck:
    """The user asked for a check."""


KeeperEvent = (
    Startup | AppStarted | AppStopped | SleepBegan | WokeUp | TimerFired | ManualCheck
)
