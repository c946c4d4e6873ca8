"""Application configuration with environment-specific profiles.

Supports dev, staging, and production environments via APP_ENV.
All values can be overridden by environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Settings:
    """Immutable application settings resolved from environment."""

    app_env: str = "dev"
    log_level: str = "INFO"

    # Strava activity history
    strava_timeout_sec: float = 30.0
    initial_sync_lookback_days: int = 180

    # Plan generation
    default_sessions_per_week: int = 4
    history_lookback_days: int = 56
    random_seed: Optional[int] = None

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"


# -- Environment profiles --

_ENV_PROFILES: dict[str, dict] = {
    "dev": {
        "log_level": "DEBUG",
        "strava_timeout_sec": 60.0,
    },
    "staging": {
        "log_level": "INFO",
        "strava_timeout_sec": 30.0,
    },
    "production": {
        "log_level": "WARNING",
        "strava_timeout_sec": 15.0,
    },
}


def _optional_int(raw: Optional[str]) -> Optional[int]:
    if raw is None or raw.strip() == "":
        return None
    return int(raw)


def get_settings() -> Settings:
    """Build Settings by merging environment profile with env-var overrides."""
    app_env = os.getenv("APP_ENV", "dev")
    profile = _ENV_PROFILES.get(app_env, _ENV_PROFILES["dev"])

    return Settings(
        app_env=app_env,
        log_level=os.getenv("LOG_LEVEL", profile.get("log_level", "INFO")),
        strava_timeout_sec=float(os.getenv("STRAVA_TIMEOUT_SEC", str(profile.get("strava_timeout_sec", 30.0)))),
        initial_sync_lookback_days=int(os.getenv("INITIAL_SYNC_LOOKBACK_DAYS", "180")),
        default_sessions_per_week=int(os.getenv("DEFAULT_SESSIONS_PER_WEEK", "4")),
        history_lookback_days=int(os.getenv("HISTORY_LOOKBACK_DAYS", "56")),
        random_seed=_optional_int(os.getenv("PLAN_RANDOM_SEED")),
    )
