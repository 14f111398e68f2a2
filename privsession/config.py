"""Configuration for the renewal engine and the keeper daemon."""

import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

ENV_PREFIX = "PRIVSESSION_"


class EngineConfig(BaseModel):
    """Named durations (seconds) that drive session renewal.

    ``renew_before_expiry`` is expected to be smaller than
    ``session_duration``. This is not enforced: a larger lead time simply
    makes every refresh delay zero.
    """

    model_config = ConfigDict(frozen=True)

    session_duration: float = Field(
        default=6 * 60 * 60, ge=0, description="Lifetime of one private session"
    )
    renew_before_expiry: float = Field(
        default=30 * 60, ge=0, description="Lead time before expiry to renew"
    )
    wake_verification_delay: float = Field(
        default=30 * 60, ge=0, description="Delay before verifying after wake"
    )
    debounce_interval: float = Field(
        default=5, ge=0, description="Minimum gap between processed triggers"
    )
    short_sleep_threshold: float = Field(
        default=5 * 60, ge=0, description="Sleeps shorter than this are ignored"
    )


class KeeperSettings(BaseModel):
    """Settings for the long-running keeper process."""

    model_config = ConfigDict(frozen=True)

    engine: EngineConfig = Field(default_factory=EngineConfig)
    app_name: str = Field(default="Spotify", min_length=1)
    menu_item: str = Field(default="Private Session", min_length=1)
    state_file: Path = Field(default_factory=lambda: get_state_file())
    launch_delay: float = Field(default=2, ge=0)
    startup_delay: float = Field(default=1, ge=0)
    retry_delay: float = Field(default=5, ge=0)
    app_poll_interval: float = Field(default=2, gt=0)
    sleep_poll_interval: float = Field(default=5, gt=0)
    sleep_gap_threshold: float = Field(default=30, gt=0)
    notifications: bool = True

    @classmethod
    def from_env(cls) -> "KeeperSettings":
        """Build settings from ``PRIVSESSION_*`` environment variables."""
        defaults = EngineConfig()
        engine = EngineConfig(
            session_duration=_get_seconds(
                "SESSION_DURATION", defaults.session_duration
            ),
            renew_before_expiry=_get_seconds(
                "RENEW_BEFORE_EXPIRY", defaults.renew_before_expiry
            ),
            wake_verification_delay=_get_seconds(
                "WAKE_VERIFICATION_DELAY", defaults.wake_verification_delay
            ),
            debounce_interval=_get_seconds(
                "DEBOUNCE_INTERVAL", defaults.debounce_interval
            ),
            short_sleep_threshold=_get_seconds(
                "SHORT_SLEEP_THRESHOLD", defaults.short_sleep_threshold
            ),
        )
        base = cls(engine=engine)
        return cls(
            engine=engine,
            app_name=os.getenv(f"{ENV_PREFIX}APP_NAME", "").strip() or base.app_name,
            menu_item=os.getenv(f"{ENV_PREFIX}MENU_ITEM", "").strip()
            or base.menu_item,
            state_file=get_state_file(),
            launch_delay=_get_seconds("LAUNCH_DELAY", base.launch_delay),
            startup_delay=_get_seconds("STARTUP_DELAY", base.startup_delay),
            retry_delay=_get_seconds("RETRY_DELAY", base.retry_delay),
            app_poll_interval=_get_seconds(
                "APP_POLL_INTERVAL", base.app_poll_interval, allow_zero=False
            ),
            sleep_poll_interval=_get_seconds(
                "SLEEP_POLL_INTERVAL", base.sleep_poll_interval, allow_zero=False
            ),
            sleep_gap_threshold=_get_seconds(
                "SLEEP_GAP_THRESHOLD", base.sleep_gap_threshold, allow_zero=False
            ),
            notifications=_get_flag("NOTIFICATIONS", base.notifications),
        )


def _get_seconds(name: str, default: float, allow_zero: bool = True) -> float:
    """Read a duration from environment with safe fallback."""
    raw = os.getenv(f"{ENV_PREFIX}{name}")
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    if value < 0 or (value == 0 and not allow_zero):
        return default
    return value


def _get_flag(name: str, default: bool) -> bool:
    raw = os.getenv(f"{ENV_PREFIX}{name}")
    if raw is None:
        return default
    return raw.strip().lower() not in {"0", "false", "no", "off"}


def get_state_file() -> Path:
    """Get the durable state file from environment or default."""
    env_path = os.environ.get(f"{ENV_PREFIX}STATE_FILE")
    if env_path:
        return Path(env_path)
    return Path.home() / ".privsession" / "state.json"
