"""Application configuration helpers."""

from __future__ import annotations

from functools import lru_cache
import os
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

PROJECT_ROOT = Path(__file__).resolve().parents[3]
DEFAULT_DB_PATH = PROJECT_ROOT / "data" / "dnote.db"

_FALSY = {"0", "false", "no"}


class AppConfig(BaseModel):
    """Runtime configuration loaded from environment variables."""

    model_config = ConfigDict(frozen=True)

    database_path: Path = Field(..., description="SQLite database file")
    jwt_secret_key: Optional[str] = Field(
        default=None,
        description="HMAC secret for signing session keys",
    )
    enable_local_mode: bool = Field(
        default=True,
        description="Allow local-dev token bypass when running locally",
    )
    local_dev_token: Optional[str] = Field(
        default="local-dev-token",
        description="Static token accepted in local mode for development",
    )
    session_ttl_days: int = Field(default=30, ge=1, description="Session key lifetime")
    disable_registration: bool = Field(
        default=False, description="Hide the sign-up pages and reject new accounts"
    )
    cookie_secure: bool = Field(
        default=False, description="Mark the session cookie as HTTPS only"
    )
    cors_origins: List[str] = Field(
        default_factory=lambda: ["http://localhost:3000"],
        description="Origins allowed to call the JSON API",
    )
    snippet_context: int = Field(
        default=60, ge=0, description="Characters of context around search matches"
    )

    @field_validator("database_path", mode="before")
    @classmethod
    def _normalize_db_path(cls, value: str | Path | None) -> Path:
        if value is None or value == "":
            raise ValueError("DATABASE_PATH is required")
        return Path(value).expanduser().resolve()

    @field_validator("jwt_secret_key", mode="before")
    @classmethod
    def _ensure_secret(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        cleaned = value.strip()
        if not cleaned:
            raise ValueError(
                "JWT_SECRET_KEY cannot be empty; unset the variable to disable session signing in local mode"
            )
        if len(cleaned) < 16:
            raise ValueError("JWT_SECRET_KEY must be at least 16 characters")
        return cleaned

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: str | List[str]) -> List[str]:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value


def _read_env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(key, default)


def _read_flag(key: str, default: str) -> bool:
    return _read_env(key, default).lower() not in _FALSY


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Load and cache application configuration."""
    config = AppConfig(
        database_path=_read_env("DATABASE_PATH", str(DEFAULT_DB_PATH)),
        jwt_secret_key=_read_env("JWT_SECRET_KEY"),
        enable_local_mode=_read_flag("ENABLE_LOCAL_MODE", "true"),
        local_dev_token=_read_env("LOCAL_DEV_TOKEN", "local-dev-token"),
        session_ttl_days=_read_env("SESSION_TTL_DAYS", "30"),
        disable_registration=_read_flag("DISABLE_REGISTRATION", "false"),
        cookie_secure=_read_flag("COOKIE_SECURE", "false"),
        cors_origins=_read_env("CORS_ORIGINS", "http://localhost:3000"),
        snippet_context=_read_env("SNIPPET_CONTEXT", "60"),
    )
    # Ensure the database directory exists for downstream services.
    config.database_path.parent.mkdir(parents=True, exist_ok=True)
    return config


def reload_config() -> AppConfig:
    """Clear cached config (useful for tests) and reload."""
    get_config.cache_clear()
    return get_config()


__all__ = ["AppConfig", "get_config", "reload_config", "PROJECT_ROOT", "DEFAULT_DB_PATH"]
