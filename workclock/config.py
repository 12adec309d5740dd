"""Runtime configuration, read from the environment (and .env if present)."""
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()


def _origins() -> list[str]:
    raw = os.getenv("ALLOWED_ORIGINS", "")
    return [o.strip() for o in raw.split(",") if o.strip()] or ["http://localhost:8501", "http://localhost:3000"]


@dataclass(frozen=True)
class Settings:
    db_path: str = field(default_factory=lambda: os.getenv("WORKCLOCK_DB_PATH", "workclock.db"))
    secret_key: str = field(default_factory=lambda: os.getenv("SECRET_KEY", "super-secret-key-please-change-in-prod"))
    algorithm: str = "HS256"
    access_token_minutes: int = field(default_factory=lambda: int(os.getenv("ACCESS_TOKEN_MINUTES", "60")))
    log_level: str = field(default_factory=lambda: os.getenv("WORKCLOCK_LOG_LEVEL", "INFO").upper())
    allowed_origins: list[str] = field(default_factory=_origins)


def get_settings() -> Settings:
    return Settings()
