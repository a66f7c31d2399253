import os
from typing import Optional


def _optional_float(name: str) -> Optional[float]:
    raw = os.getenv(name, "").strip()
    return float(raw) if raw else None


class Settings:
    """Environment-driven configuration, read once at startup."""

    def __init__(self):
        self.app_name: str = os.getenv("APP_NAME", "NagarSeva API")
        self.database_url: Optional[str] = os.getenv("DATABASE_URL") or None
        self.database_name: str = os.getenv("DATABASE_NAME", "nagarseva")
        self.reward_currency: str = os.getenv("REWARD_CURRENCY", "INR")
        # Ceiling for caller-supplied reward amounts; unset means the override is trusted as-is.
        self.reward_override_limit: Optional[float] = _optional_float("REWARD_OVERRIDE_LIMIT")
        self.leaderboard_size: int = int(os.getenv("LEADERBOARD_SIZE", "20"))
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Settings()
