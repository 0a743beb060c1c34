# squadzone/core/config.py
"""
Application settings.

Values are read from the environment (case-insensitive) and from an optional
``.env`` file next to the working directory. Import the module-level
``settings`` singleton rather than instantiating ``Settings`` directly.
"""

import logging
import os
from pathlib import Path
from typing import List, Literal

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


def is_running_tests() -> bool:
    """Detect if code is running under pytest."""
    return os.getenv("PYTEST_CURRENT_TEST") is not None


# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path.cwd() / ".env"
    logger.debug(f"[CONFIG] Looking for .env at: {env_path}")
    load_dotenv(env_path)


class Settings(BaseSettings):
    environment: str = Field(default="development", description="Deployment environment name")
    log_level: str = Field(default="INFO", description="Root logging level")

    # Storage
    database_url: str = Field(
        default="sqlite:///./squadzone.db",
        description="SQLAlchemy URL of the relational store",
    )
    database_echo: bool = False

    # Realtime fanout (broadcaster URL: memory:// or redis://host:port)
    broadcast_url: str = Field(default="memory://", description="Broadcaster backend URL")

    # Sessions
    session_backend: Literal["memory", "redis"] = "memory"
    redis_url: str = "redis://localhost:6379"
    session_ttl_seconds: int = 7 * 24 * 60 * 60  # 7 days
    session_cookie_name: str = Field(default="sid", description="Session cookie name")
    session_cookie_secure: bool = False
    session_cookie_samesite: Literal["lax", "strict", "none"] = "lax"

    # Users
    default_avatar: str = "/assets/default-avatar.png"

    # Conversations
    conversation_page_size: int = 50
    conversation_page_size_max: int = 100

    # Upper bound for a single service call made from a route handler
    operation_timeout_seconds: float = 10.0

    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("session_cookie_secure", "database_echo", mode="before")
    @classmethod
    def _coerce_bool(cls, value: object) -> bool | object:
        if isinstance(value, str):
            return value.strip().lower() in {"1", "true", "yes", "on"}
        return value

    @field_validator("session_cookie_samesite", mode="before")
    @classmethod
    def _normalize_samesite(cls, value: object) -> str:
        if value is None:
            return "lax"
        if isinstance(value, str):
            normalized = value.strip().lower()
            if normalized in {"lax", "strict", "none"}:
                return normalized
        raise ValueError("SESSION_COOKIE_SAMESITE must be one of: lax, strict, none")

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


settings = Settings()
