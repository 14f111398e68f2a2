"""Pure timing rules for session expiry, debouncing, sleep and restore.

Every function here is side-effect free. Timestamps on both sides of a
comparison must come from the same clock; absent values are ``None``.
"""

from __future__ import annotations

from privsession.config import EngineConfig

DEFAULT_CONFIG = EngineConfig()


def remaining_time(
    start_time: float,
    now: float,
    duration: float = DEFAULT_CONFIG.session_duration,
) -> float:
    """Return seconds until the session expires (negative once expired)."""
    elapsed = now - start_time
    return duration - elapsed


def is_session_valid(
    start_time: float,
    now: float,
    duration: float = DEFAULT_CONFIG.session_duration,
) -> bool:
    """Return True while time remains. Exact expiry is not valid."""
    return remaining_time(start_time, now, duration) > 0


def calculate_refresh_delay(
    start_time: float,
    now: float,
    config: EngineConfig = DEFAULT_CONFIG,
) -> float | None:
    """Return seconds until the next renewal should run.

    Returns:
        ``None`` if the session already expired, ``0`` if it is inside the
        renewal window, otherwise the time left before the window opens.
    """
    remaining = remaining_time(start_time, now, config.session_duration)

    if remaining <= 0:
        return None

    if remaining <= config.renew_before_expiry:
        return 0

    return remaining - config.renew_before_expiry


def should_debounce(
    last_check: float | None,
    now: float,
    interval: float = DEFAULT_CONFIG.debounce_interval,
) -> bool:
    """Return True if a trigger arrived too soon after the last processed one.

    A gap exactly equal to ``interval`` is let through.
    """
    if last_check is None:
        return False
    return (now - last_check) < interval


def sleep_duration(sleep_start: float | None, wake: float) -> float | None:
    """Return how long the system slept, or None if the start is unknown."""
    if sleep_start is None:
        return None
    return wake - sleep_start


def is_short_sleep(
    sleep_start: float | None,
    wake: float,
    threshold: float = DEFAULT_CONFIG.short_sleep_threshold,
) -> bool:
    """Return True if a sleep was short enough to ignore.

    An unknown start counts as a long sleep so the caller acts on wake.
    """
    duration = sleep_duration(sleep_start, wake)
    if duration is None:
        return False
    return duration < threshold


def is_restored_state_usable(
    elapsed: float | None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> bool:
    """Return True if a restored session leaves more headroom than the lead time."""
    if elapsed is None:
        return False
    remaining = config.session_duration - elapsed
    return remaining > config.renew_before_expiry


def refresh_delay_for_restored_state(
    elapsed: float,
    config: EngineConfig = DEFAULT_CONFIG,
) -> float:
    """Return the renewal delay for a restored session, clamped at zero."""
    remaining = config.session_duration - elapsed
    return max(0, remaining - config.renew_before_expiry)
