"""Tests for the pure timing rules."""

from privsession.config import EngineConfig
from privsession.timing import (
    calculate_refresh_delay,
    is_restored_state_usable,
    is_session_valid,
    is_short_sleep,
    refresh_delay_for_restored_state,
    remaining_time,
    should_debounce,
    sleep_duration,
)

SIX_HOURS = 6 * 60 * 60


class TestRemainingTime:
    """Tests for remaining_time."""

    def test_positive_while_valid(self) -> None:
        """Test remaining time for a session 1000s in."""
        remaining = remaining_time(1000, 2000, SIX_HOURS)
        assert remaining == SIX_HOURS - 1000

    def test_negative_when_expired(self) -> None:
        """Test that remaining time goes negative after expiry."""
        assert remaining_time(1000, 1000 + 7 * 60 * 60, SIX_HOURS) < 0

    def test_zero_at_exact_expiry(self) -> None:
        """Test remaining time at the exact expiry instant."""
        assert remaining_time(1000, 1000 + SIX_HOURS, SIX_HOURS) == 0

    def test_defaults_to_six_hours(self) -> None:
        """Test the default session duration."""
        assert remaining_time(0, 0) == SIX_HOURS


class TestIsSessionValid:
    """Tests for is_session_valid."""

    def test_valid_across_whole_window(self) -> None:
        """Test validity for every sampled point before expiry."""
        start = 1000
        for now in (start, start + 1, start + 3600, start + SIX_HOURS - 1):
            assert remaining_time(start, now, SIX_HOURS) > 0
            assert is_session_valid(start, now, SIX_HOURS) is True

    def test_invalid_at_exact_expiry(self) -> None:
        """Test that zero remaining time is not valid."""
        assert is_session_valid(1000, 1000 + SIX_HOURS, SIX_HOURS) is False

    def test_invalid_after_expiry(self) -> None:
        """Test that an expired session is not valid."""
        assert is_session_valid(1000, 1000 + 7 * 60 * 60, SIX_HOURS) is False


class TestCalculateRefreshDelay:
    """Tests for calculate_refresh_delay."""

    config = EngineConfig(session_duration=21600, renew_before_expiry=1800)

    def test_fresh_session(self) -> None:
        """Test delay right after enabling is 5.5 hours."""
        assert calculate_refresh_delay(1000, 1000, self.config) == 19800

    def test_mid_session(self) -> None:
        """Test delay shrinks as the session ages."""
        assert calculate_refresh_delay(1000, 4600, self.config) == 16200

    def test_zero_inside_refresh_window(self) -> None:
        """Test delay is zero once inside the renewal window."""
        now = 1000 + 19800 + 60
        assert calculate_refresh_delay(1000, now, self.config) == 0

    def test_zero_at_window_boundary(self) -> None:
        """Test delay is zero when remaining equals the lead time."""
        assert calculate_refresh_delay(1000, 1000 + 19800, self.config) == 0

    def test_none_when_expired(self) -> None:
        """Test that an expired session yields None."""
        assert calculate_refresh_delay(1000, 1000 + 25200, self.config) is None

    def test_none_at_exact_expiry(self) -> None:
        """Test that zero remaining time yields None."""
        assert calculate_refresh_delay(1000, 1000 + 21600, self.config) is None

    def test_lead_longer_than_session(self) -> None:
        """Test that a lead time above the duration gives zero delay."""
        config = EngineConfig(session_duration=600, renew_before_expiry=1200)
        assert calculate_refresh_delay(0, 0, config) == 0


class TestShouldDebounce:
    """Tests for should_debounce."""

    def test_no_previous_check(self) -> None:
        """Test that the first trigger is never debounced."""
        assert should_debounce(None, 1000, 5) is False

    def test_within_interval(self) -> None:
        """Test a trigger 3 seconds after the last one."""
        assert should_debounce(1000, 1003, 5) is True

    def test_outside_interval(self) -> None:
        """Test a trigger 10 seconds after the last one."""
        assert should_debounce(1000, 1010, 5) is False

    def test_exact_boundary_not_debounced(self) -> None:
        """Test a trigger exactly one interval later."""
        assert should_debounce(1000, 1005, 5) is False


class TestSleepClassifier:
    """Tests for sleep_duration and is_short_sleep."""

    def test_duration_unknown_start(self) -> None:
        """Test that an unknown start gives no duration."""
        assert sleep_duration(None, 1000) is None

    def test_duration(self) -> None:
        """Test a plain sleep duration."""
        assert sleep_duration(1000, 1600) == 600

    def test_unknown_start_is_not_short(self) -> None:
        """Test that unknown sleeps are treated as long."""
        assert is_short_sleep(None, 1000, 300) is False

    def test_short_sleep(self) -> None:
        """Test a one-minute sleep."""
        assert is_short_sleep(1000, 1060, 300) is True

    def test_long_sleep(self) -> None:
        """Test a ten-minute sleep."""
        assert is_short_sleep(1000, 1600, 300) is False

    def test_exact_threshold_is_not_short(self) -> None:
        """Test a sleep exactly as long as the threshold."""
        assert is_short_sleep(1000, 1300, 300) is False


class TestRestoredState:
    """Tests for is_restored_state_usable and refresh_delay_for_restored_state."""

    config = EngineConfig(session_duration=21600, renew_before_expiry=1800)

    def test_unknown_elapsed_not_usable(self) -> None:
        """Test that a missing elapsed time is never usable."""
        assert is_restored_state_usable(None, self.config) is False

    def test_fresh_state_usable(self) -> None:
        """Test a session restored one hour in."""
        assert is_restored_state_usable(3600, self.config) is True

    def test_state_inside_window_not_usable(self) -> None:
        """Test a session restored 15 minutes before expiry."""
        assert is_restored_state_usable(20700, self.config) is False

    def test_headroom_equal_to_lead_not_usable(self) -> None:
        """Test that headroom must strictly exceed the lead time."""
        assert is_restored_state_usable(19800, self.config) is False
        assert is_restored_state_usable(19799, self.config) is True

    def test_refresh_delay(self) -> None:
        """Test the renewal delay for a session restored one hour in."""
        assert refresh_delay_for_restored_state(3600, self.config) == 16200

    def test_refresh_delay_clamped(self) -> None:
        """Test that the delay never goes negative."""
        assert refresh_delay_for_restored_state(20700, self.config) == 0
