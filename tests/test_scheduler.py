"""Tests for the single-slot renewal timer."""

import threading

from privsession.services.scheduler import RenewalTimer, SystemClock

from fakes import FakeClock


class TestRenewalTimer:
    """Tests for RenewalTimer class."""

    def test_fires_callback(self) -> None:
        """Test that a scheduled callback runs."""
        timer = RenewalTimer()
        fired = threading.Event()
        timer.schedule(0.01, fired.set)
        assert fired.wait(timeout=2.0)
        assert timer.pending is False

    def test_reschedule_cancels_previous(self) -> None:
        """Test that only the latest callback can fire."""
        timer = RenewalTimer()
        first = threading.Event()
        second = threading.Event()
        timer.schedule(0.05, first.set)
        timer.schedule(0.01, second.set)
        assert second.wait(timeout=2.0)
        assert not first.wait(timeout=0.2)

    def test_cancel(self) -> None:
        """Test cancelling a pending callback."""
        timer = RenewalTimer()
        fired = threading.Event()
        timer.schedule(0.05, fired.set)
        assert timer.pending is True
        assert timer.cancel() is True
        assert timer.pending is False
        assert timer.cancel() is False
        assert not fired.wait(timeout=0.2)

    def test_time_left(self, clock: FakeClock) -> None:
        """Test the countdown against the injected clock."""
        timer = RenewalTimer(clock)
        assert timer.time_left() is None
        timer.schedule(600, lambda: None)
        clock.advance(100)
        assert timer.time_left() == 500
        timer.cancel()
        assert timer.time_left() is None

    def test_negative_delay_runs_now(self) -> None:
        """Test that a negative delay is clamped to zero."""
        timer = RenewalTimer()
        fired = threading.Event()
        timer.schedule(-5, fired.set)
        assert fired.wait(timeout=2.0)


class TestSystemClock:
    """Tests for SystemClock class."""

    def test_clocks_move_forward(self) -> None:
        """Test that both clocks report increasing time."""
        clock = SystemClock()
        first_mono, first_wall = clock.monotonic(), clock.wall()
        assert clock.monotonic() >= first_mono
        assert clock.wall() >= first_wall - 1
