"""Polling watchers for application lifecycle and system sleep.

Both watchers run on their own thread via ``run_monitor`` and report
transitions through a callback. ``poll_once`` performs one observation and
is what the monitor loop calls on every tick.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from privsession.models.events import (
    AppStarted,
    AppStopped,
    KeeperEvent,
    SleepBegan,
    WokeUp,
)
from privsession.services.scheduler import Clock, SystemClock
from privsession.utils import is_app_process, list_running_processes

LOGGER = logging.getLogger(__name__)

ProcessLister = Callable[[], list[tuple[int, str]]]


class AppWatcher:
    """Report launches and terminations of one application."""

    def __init__(
        self,
        app_name: str,
        poll_interval_seconds: float = 2.0,
        process_lister: ProcessLister = list_running_processes,
    ) -> None:
        self.app_name = app_name
        self.poll_interval_seconds = poll_interval_seconds
        self._list_processes = process_lister
        self._running: bool | None = None

    def is_running(self) -> bool:
        """Check the process table for the application."""
        return any(
            is_app_process(command, self.app_name)
            for _, command in self._list_processes()
        )

    def poll_once(self) -> KeeperEvent | None:
        """Return an event if the running state changed since the last poll.

        The first poll only records the baseline.
        """
        running = self.is_running()
        previous = self._running
        self._running = running
        if previous is None or previous == running:
            return None
        if running:
            LOGGER.info("%s launched", self.app_name)
            return AppStarted()
        LOGGER.info("%s terminated", self.app_name)
        return AppStopped()

    def run_monitor(
        self,
        stop_event: threading.Event,
        callback: Callable[[KeeperEvent], None],
    ) -> None:
        """Poll until ``stop_event`` is set, forwarding transitions."""
        self.poll_once()
        while not stop_event.wait(timeout=self.poll_interval_seconds):
            event = self.poll_once()
            if event is not None:
                callback(event)


class SleepWatcher:
    """Detect system suspension from clock discontinuities.

    The monotonic clock pauses while the machine sleeps but the wall clock
    keeps going. A wall-clock jump larger than ``gap_threshold_seconds``
    between two polls is reported as a sleep that began at the previous
    poll and ended now. Both timestamps are wall-clock seconds.
    """

    def __init__(
        self,
        poll_interval_seconds: float = 5.0,
        gap_threshold_seconds: float = 30.0,
        clock: Clock | None = None,
    ) -> None:
        self.poll_interval_seconds = poll_interval_seconds
        self.gap_threshold_seconds = gap_threshold_seconds
        self._clock = clock or SystemClock()
        self._last_monotonic: float | None = None
        self._last_wall: float | None = None

    def poll_once(self) -> list[KeeperEvent]:
        """Return ``[SleepBegan, WokeUp]`` if a suspension was detected."""
        current_mono = self._clock.monotonic()
        current_wall = self._clock.wall()
        last_mono, last_wall = self._last_monotonic, self._last_wall
        self._last_monotonic = current_mono
        self._last_wall = current_wall

        if last_mono is None or last_wall is None:
            return []

        expected_wall = last_wall + (current_mono - last_mono)
        wall_jump = current_wall - expected_wall
        if wall_jump <= self.gap_threshold_seconds:
            # Backward jumps are wall-clock adjustments, not sleep.
            return []

        LOGGER.info("Wake detected, system was suspended for ~%.0fs", wall_jump)
        return [SleepBegan(last_wall), WokeUp(current_wall)]

    def run_monitor(
        self,
        stop_event: threading.Event,
        callback: Callable[[KeeperEvent], None],
    ) -> None:
        """Poll until ``stop_event`` is set, forwarding sleep/wake pairs."""
        self.poll_once()
        while not stop_event.wait(timeout=self.poll_interval_seconds):
            for event in self.poll_once():
                callback(event)
