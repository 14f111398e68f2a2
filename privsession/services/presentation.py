"""Status presentation: the latest snapshot plus desktop notifications."""

from __future__ import annotations

import logging
import subprocess
import threading
from collections.abc import Callable
from typing import Protocol

from privsession.models.session import SessionStatus, StatusSnapshot

LOGGER = logging.getLogger(__name__)

NOTIFICATION_TITLE = "Private Session"


class StatusSink(Protocol):
    """Receives status updates and user-facing notifications."""

    def show(self, snapshot: StatusSnapshot) -> None: ...

    def notify(self, message: str) -> None: ...


def send_desktop_notification(title: str, message: str) -> bool:
    """Post a macOS notification through ``osascript``."""
    escaped_title = title.replace("\\", "\\\\").replace('"', '\\"')
    escaped_message = message.replace("\\", "\\\\").replace('"', '\\"')
    script = f'display notification "{escaped_message}" with title "{escaped_title}"'
    try:
        result = subprocess.run(
            ["osascript", "-e", script],
            capture_output=True,
            text=True,
            timeout=5,
            check=False,
        )
    except (OSError, subprocess.TimeoutExpired) as error:
        LOGGER.warning("Could not send notification: %s", error)
        return False
    return result.returncode == 0


class StatusBoard:
    """Thread-safe holder of the latest status snapshot."""

    def __init__(
        self,
        notifier: Callable[[str, str], bool] | None = send_desktop_notification,
    ) -> None:
        """Initialize the board.

        Args:
            notifier: Called with (title, message); None disables notifications.
        """
        self._notifier = notifier
        self._lock = threading.Lock()
        self._snapshot = StatusSnapshot()

    @property
    def snapshot(self) -> StatusSnapshot:
        with self._lock:
            return self._snapshot

    def show(self, snapshot: StatusSnapshot) -> None:
        with self._lock:
            changed = snapshot.status != self._snapshot.status
            self._snapshot = snapshot
        if changed:
            if snapshot.status is SessionStatus.ACTIVE and snapshot.remaining:
                LOGGER.info(
                    "Status: %s (expires in %s)", snapshot.status.value, snapshot.remaining
                )
            else:
                LOGGER.info("Status: %s", snapshot.status.value)

    def notify(self, message: str) -> None:
        LOGGER.warning("Notification: %s", message)
        if self._notifier is not None:
            self._notifier(NOTIFICATION_TITLE, message)
