"""Session keeper service.

Owns the one mutable session context and reacts to application, power,
timer and user events. All events are funnelled through a queue and
handled by a single worker, so the session state has exactly one writer
and at most one check is ever scheduled.
"""

from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Callable
from dataclasses import replace
from enum import Enum
from typing import assert_never

from privsession.config import KeeperSettings
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
    DebounceContext,
    PersistedRecord,
    SessionState,
    SessionStatus,
    SleepInterval,
    StatusSnapshot,
)
from privsession.services.presentation import StatusSink
from privsession.services.scheduler import Clock, RenewalTimer, SystemClock
from privsession.services.state_store import StateStore, deserialize, serialize
from privsession.services.toggle import ToggleAction
from privsession.timing import (
    calculate_refresh_delay,
    is_restored_state_usable,
    is_short_sleep,
    refresh_delay_for_restored_state,
    remaining_time,
    should_debounce,
    sleep_duration,
)
from privsession.utils import format_time

LOGGER = logging.getLogger(__name__)


class RestoreOutcome(str, Enum):
    """Result of trying to rebuild a session from a durable record."""

    RESTORED = "restored"
    UNUSABLE = "unusable"
    ABSENT = "absent"


class SessionKeeper:
    """Keep the private-mode permission enabled and renewed."""

    def __init__(
        self,
        settings: KeeperSettings,
        toggle: ToggleAction,
        store: StateStore,
        sink: StatusSink,
        is_app_running: Callable[[], bool],
        clock: Clock | None = None,
        timer: RenewalTimer | None = None,
    ) -> None:
        """Initialize the keeper.

        Args:
            settings: Engine durations and daemon delays.
            toggle: Action that enables the permission.
            store: Durable record storage.
            sink: Receives status updates and notifications.
            is_app_running: Reports whether the target application runs.
            clock: Time source, defaults to the system clocks.
            timer: Single-slot timer, defaults to a thread-backed one.
        """
        self.settings = settings
        self.config = settings.engine
        self._toggle = toggle
        self._store = store
        self._sink = sink
        self._is_app_running = is_app_running
        self._clock = clock or SystemClock()
        self._timer = timer or RenewalTimer(self._clock)

        self._events: queue.Queue[KeeperEvent] = queue.Queue()
        self._session: SessionState | None = None
        self._debounce = DebounceContext()
        self._sleep_start: float | None = None
        self._last_failure: str | None = None
        self._status = SessionStatus.INACTIVE
        self._detail: str | None = None

    @property
    def session(self) -> SessionState | None:
        return self._session

    @property
    def status(self) -> SessionStatus:
        return self._status

    def post(self, event: KeeperEvent) -> None:
        """Queue an event for the worker. Safe from any thread."""
        self._events.put(event)

    def run(self, stop_event: threading.Event) -> None:
        """Handle queued events until ``stop_event`` is set."""
        while not stop_event.is_set():
            try:
                event = self._events.get(timeout=0.5)
            except queue.Empty:
                continue
            try:
                self.handle(event)
            except Exception:
                LOGGER.exception("Failed to handle %s", type(event).__name__)

    def run_pending(self) -> int:
        """Handle every queued event on the calling thread without waiting.

        Returns:
            Number of events handled.
        """
        handled = 0
        while True:
            try:
                event = self._events.get_nowait()
            except queue.Empty:
                return handled
            self.handle(event)
            handled += 1

    def handle(self, event: KeeperEvent) -> None:
        """Process one event on the calling thread."""
        if isinstance(event, Startup):
            self._on_startup()
        elif isinstance(event, AppStarted):
            self._on_app_started()
        elif isinstance(event, AppStopped):
            LOGGER.info("%s stopped, clearing session", self.settings.app_name)
            self._deactivate()
        elif isinstance(event, SleepBegan):
            self._on_sleep(event.timestamp)
        elif isinstance(event, WokeUp):
            self._on_wake(event.timestamp)
        elif isinstance(event, TimerFired):
            self._on_timer(event.reason)
        elif isinstance(event, ManualCheck):
            LOGGER.info("Manual check triggered")
            self._check()
        else:
            assert_never(event)

    def shutdown(self) -> None:
        """Cancel the pending timer and save state one last time."""
        self._timer.cancel()
        self._persist()
        LOGGER.info("Keeper stopped")

    def snapshot(self) -> StatusSnapshot:
        """Build the current status with a live remaining time."""
        remaining: float | None = None
        session = self._session
        if session is not None:
            remaining = remaining_time(
                session.start_monotonic,
                self._clock.monotonic(),
                self.config.session_duration,
            )
        return StatusSnapshot(
            status=self._status,
            remaining=format_time(remaining) if session is not None else None,
            remaining_seconds=remaining,
            next_check_in=self._timer.time_left(),
            detail=self._detail,
        )

    # Event handlers

    def _on_startup(self) -> None:
        if not self._is_app_running():
            LOGGER.info("%s not running", self.settings.app_name)
            self._deactivate()
            return

        outcome = self._restore(self._store.load())
        if outcome is RestoreOutcome.RESTORED:
            return
        if outcome is RestoreOutcome.UNUSABLE:
            # A stored session may still be on but about to lapse.
            LOGGER.info(
                "%s already running, re-enabling private session",
                self.settings.app_name,
            )
            self._schedule(self.settings.startup_delay, TimerReason.RENEW)
        else:
            LOGGER.info(
                "%s already running, checking private session", self.settings.app_name
            )
            self._schedule(self.settings.startup_delay, TimerReason.STARTUP)
        self._publish(SessionStatus.AWAITING)

    def _on_app_started(self) -> None:
        LOGGER.info(
            "%s launched, checking in %gs",
            self.settings.app_name,
            self.settings.launch_delay,
        )
        self._schedule(self.settings.launch_delay, TimerReason.LAUNCH)
        self._publish(SessionStatus.AWAITING)

    def _on_sleep(self, timestamp: float) -> None:
        self._sleep_start = timestamp
        self._persist()
        self._timer.cancel()

    def _on_wake(self, timestamp: float) -> None:
        interval = SleepInterval(sleep_start=self._sleep_start, wake=timestamp)
        self._sleep_start = None
        # The pending timer was armed before the suspend and is stale now.
        self._timer.cancel()

        slept = sleep_duration(interval.sleep_start, interval.wake)
        session = self._session
        if (
            session is not None
            and slept is not None
            and is_short_sleep(
                interval.sleep_start, interval.wake, self.config.short_sleep_threshold
            )
        ):
            LOGGER.info("Short sleep (%.0fs), keeping session", slept)
            # The monotonic clock stood still while the session kept ageing.
            self._session = replace(
                session, start_monotonic=session.start_monotonic - max(0.0, slept)
            )
            self._schedule_renewal()
            return

        if slept is None:
            LOGGER.info("Woke from sleep of unknown length")
        else:
            LOGGER.info("Woke after %s asleep", format_time(slept))

        if not self._is_app_running():
            self._deactivate()
            return

        self._publish(SessionStatus.STALE)
        record = self._store.load()
        if record is None and self._session is not None:
            record = serialize(
                self._session.start_wall_clock, saved_at=self._clock.wall()
            )

        outcome = self._restore(record)
        if outcome is RestoreOutcome.UNUSABLE:
            self._check(force=True, debounce=False)
        elif outcome is RestoreOutcome.ABSENT:
            LOGGER.info(
                "No stored session, verifying in %s",
                format_time(self.config.wake_verification_delay),
            )
            self._schedule(
                self.config.wake_verification_delay, TimerReason.WAKE_VERIFY
            )

    def _on_timer(self, reason: TimerReason) -> None:
        if reason is TimerReason.RENEW:
            if not self._is_app_running():
                self._deactivate()
                return
            LOGGER.info("Proactive renewal before expiry")
            self._check(force=True, debounce=False)
        elif reason is TimerReason.RENEW_RETRY:
            self._check(force=True, debounce=False)
        elif reason is TimerReason.RETRY:
            self._check(debounce=False)
        else:
            self._check()

    # Core flow

    def _check(self, force: bool = False, debounce: bool = True) -> None:
        now = self._clock.monotonic()
        if debounce and should_debounce(
            self._debounce.last_check_monotonic, now, self.config.debounce_interval
        ):
            LOGGER.debug("Check debounced")
            if self._session is not None and not self._timer.pending:
                self._schedule_renewal()
            return
        self._debounce.last_check_monotonic = now

        if not self._is_app_running():
            self._deactivate()
            return

        self._apply_result(self._toggle.enable(force=force), forced=force)

    def _apply_result(self, result: ToggleResult, forced: bool = False) -> None:
        if isinstance(result, Enabled):
            LOGGER.info("Private session enabled")
            self._start_session()
        elif isinstance(result, AlreadyEnabled):
            LOGGER.info("Private session already active")
            if self._session is None or forced:
                # Unknown start, or the forced toggle just restarted the window.
                self._start_session()
            elif not self._refresh_delay():
                # Known session is due; nothing was re-asserted yet.
                self._check(force=True, debounce=False)
            else:
                self._last_failure = None
                self._schedule_renewal()
                self._publish(SessionStatus.ACTIVE)
        elif isinstance(result, NotReady):
            LOGGER.warning(
                "%s menu bar not ready, retrying in %gs",
                self.settings.app_name,
                self.settings.retry_delay,
            )
            reason = TimerReason.RENEW_RETRY if forced else TimerReason.RETRY
            self._schedule(self.settings.retry_delay, reason)
            self._publish(SessionStatus.AWAITING)
        elif isinstance(result, Failed):
            LOGGER.error("Could not enable private session: %s", result.reason)
            self._fail(result.reason)
        else:
            assert_never(result)

    def _start_session(self) -> None:
        self._session = SessionState(
            start_monotonic=self._clock.monotonic(),
            start_wall_clock=self._clock.wall(),
        )
        self._last_failure = None
        self._persist()
        self._schedule_renewal()
        self._publish(SessionStatus.ACTIVE)

    def _restore(self, record: PersistedRecord | None) -> RestoreOutcome:
        if record is None:
            return RestoreOutcome.ABSENT

        start_wall_clock, elapsed = deserialize(
            record, self._clock.wall(), self.config.session_duration
        )
        if start_wall_clock is None or elapsed is None:
            LOGGER.info("Stored session is expired or invalid, discarding it")
            self._store.clear()
            return RestoreOutcome.UNUSABLE

        if not is_restored_state_usable(elapsed, self.config):
            LOGGER.info("Stored session is too close to expiry")
            return RestoreOutcome.UNUSABLE

        self._session = SessionState(
            start_monotonic=self._clock.monotonic() - elapsed,
            start_wall_clock=start_wall_clock,
        )
        delay = refresh_delay_for_restored_state(elapsed, self.config)
        LOGGER.info(
            "Restored session started %s ago, next renewal in %s",
            format_time(elapsed),
            format_time(delay),
        )
        self._schedule(delay, TimerReason.RENEW)
        self._publish(SessionStatus.ACTIVE)
        return RestoreOutcome.RESTORED

    def _refresh_delay(self) -> float | None:
        if self._session is None:
            return None
        return calculate_refresh_delay(
            self._session.start_monotonic, self._clock.monotonic(), self.config
        )

    def _schedule_renewal(self) -> None:
        delay = self._refresh_delay()
        if delay is None:
            LOGGER.info("Session expired, renewing now")
            delay = 0
        else:
            LOGGER.info("Next renewal in %s", format_time(delay))
        self._schedule(delay, TimerReason.RENEW)

    def _schedule(self, delay: float, reason: TimerReason) -> None:
        self._timer.schedule(delay, lambda: self.post(TimerFired(reason)))

    def _persist(self) -> None:
        if self._session is None:
            return
        record = serialize(self._session.start_wall_clock, saved_at=self._clock.wall())
        if record is not None and not self._store.save(record):
            LOGGER.warning("Keeping in-memory session after failed save")

    def _deactivate(self) -> None:
        self._timer.cancel()
        self._session = None
        self._last_failure = None
        self._store.clear()
        self._publish(SessionStatus.INACTIVE)

    def _fail(self, reason: str) -> None:
        self._publish(SessionStatus.FAILED, detail=reason)
        if reason != self._last_failure:
            self._sink.notify(f"Failed to enable: {reason}")
        self._last_failure = reason

    def _publish(self, status: SessionStatus, detail: str | None = None) -> None:
        self._status = status
        self._detail = detail
        self._sink.show(self.snapshot())
