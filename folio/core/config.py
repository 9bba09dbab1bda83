"""
Configuration helpers for the Folio backend.

Settings are read once from the environment so that repositories, services
and routers never touch os.environ directly.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Optional
import os


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    database_url: str
    log_level: str
    log_format: str
    default_page_size: int
    max_page_size: int
    allow_redundant_soft_delete: bool
    enforce_ownership: bool


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    def _int(value: str, default: int = 0) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def _bool(value: Optional[str], default: bool = False) -> bool:
        if value is None:
            return default
        return value.strip().lower() in {"1", "true", "yes", "on"}

    return Settings(
        app_env=(os.getenv("APP_ENV") or "dev").lower(),
        database_url=os.getenv("DATABASE_URL", "sqlite:///./folio.db"),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
        log_format=(os.getenv("LOG_FORMAT") or "text").lower(),
        default_page_size=max(1, _int(os.getenv("DEFAULT_PAGE_SIZE", "10"), 10)),
        max_page_size=max(1, _int(os.getenv("MAX_PAGE_SIZE", "100"), 100)),
        allow_redundant_soft_delete=_bool(os.getenv("ALLOW_REDUNDANT_SOFT_DELETE"), True),
        enforce_ownership=_bool(os.getenv("ENFORCE_OWNERSHIP"), False),
    )
