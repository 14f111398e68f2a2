"""Services for the session keeper."""

from privsession.services.presentation import StatusBoard
from privsession.services.scheduler import RenewalTimer, SystemClock
from privsession.services.session_service import SessionKeeper
from privsession.services.state_store import StateStore
from privsession.services.toggle import AppleScriptToggle
from privsession.services.watchers import AppWatcher, SleepWatcher

__all__ = [
    "AppWatcher",
    "AppleScriptToggle",
    "RenewalTimer",
    "SessionKeeper",
    "SleepWatcher",
    "StateStore",
    "StatusBoard",
    "SystemClock",
]
