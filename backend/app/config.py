"""
Application settings for the StudyMaster gamification backend
"""

import os
from dataclasses import dataclass, field
from functools import lru_cache


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Runtime configuration, overridable through environment variables"""

    secret_key: str = field(
        default_factory=lambda: os.getenv("SECRET_KEY", "dev-secret-change-me")
    )

    # Progress rules
    default_daily_goal: int = 30  # minutes
    power_up_cost: int = 100
    power_up_duration_minutes: int = 60
    reveal_limit: int = 3
    level_up_bonus: int = 100
    daily_goal_legacy_heuristic: bool = False
    legacy_daily_goal_points: int = 100

    # Client synchronization
    sync_debounce_seconds: float = 2.0
    sync_pull_interval_seconds: float = 600.0
    sync_min_fetch_interval_seconds: float = 5.0

    # AI generation
    llm_provider: str = "gemini"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            default_daily_goal=int(os.getenv("DEFAULT_DAILY_GOAL", 30)),
            power_up_cost=int(os.getenv("POWER_UP_COST", 100)),
            power_up_duration_minutes=int(os.getenv("POWER_UP_DURATION_MINUTES", 60)),
            reveal_limit=int(os.getenv("REVEAL_LIMIT", 3)),
            daily_goal_legacy_heuristic=_env_bool("DAILY_GOAL_LEGACY_HEURISTIC", False),
            sync_debounce_seconds=float(os.getenv("SYNC_DEBOUNCE_SECONDS", 2.0)),
            sync_pull_interval_seconds=float(
                os.getenv("SYNC_PULL_INTERVAL_SECONDS", 600.0)
            ),
            sync_min_fetch_interval_seconds=float(
                os.getenv("SYNC_MIN_FETCH_INTERVAL_SECONDS", 5.0)
            ),
            llm_provider=os.getenv("LLM_PROVIDER", "gemini"),
        )


@lru_cache()
def get_settings() -> Settings:
    return Settings.from_env()
