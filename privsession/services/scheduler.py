"""Clock and single-slot timer used by the keeper."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from typing import Protocol


class Clock(Protocol):
    """Source of monotonic and wall-clock time."""

    def monotonic(self) -> float: ...

    def wall(self) -> float: ...


class SystemClock:
    """Clock backed by :func:`time.monotonic` and :func:`time.time`."""

    def monotonic(self) -> float:
        return time.monotonic()

    def wall(self) -> float:
        return time.time()


class RenewalTimer:
    """Holds at most one pending callback.

    Scheduling always cancels the previous callback first, so two checks can
    never be outstanding at once.
    """

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock = clock or SystemClock()
        self._lock = threading.Lock()
        self._timer: threading.Timer | None = None
        self._deadline: float | None = None

    def schedule(self, delay: float, callback: Callable[[], None]) -> None:
        """Cancel any pending callback and run ``callback`` after ``delay`` seconds."""
        delay = max(0.0, float(delay))
        with self._lock:
            self._cancel_locked()
            timer = threading.Timer(delay, self._fire, args=(callback,))
            timer.daemon = True
            self._timer = timer
            self._deadline = self._clock.monotonic() + delay
            timer.start()

    def cancel(self) -> bool:
        """Cancel the pending callback. Returns True if one was pending."""
        with self._lock:
            return self._cancel_locked()

    @property
    def pending(self) -> bool:
        """True while a callback is scheduled and has not fired."""
        with self._lock:
            return self._timer is not None

    def time_left(self) -> float | None:
        """Seconds until the pending callback fires, or None."""
        with self._lock:
            if self._deadline is None:
                return None
            return max(0.0, self._deadline - self._clock.monotonic())

    def _fire(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if self._timer is not threading.current_thread():
                # Superseded by a later schedule or cancel.
                return
            self._timer = None
            self._deadline = None
        callback()

    def _cancel_locked(self) -> bool:
        if self._timer is None:
            return False
        self._timer.cancel()
        self._timer = None
        self._deadline = None
        return True
