# backend/staybook/core/config.py
"""
Application settings for the staybook booking backend.

Values come from environment variables (and ``backend/.env`` when present).
Only the knobs the booking/payment core actually reads live here.
"""

import logging
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

_BACKEND_ROOT = Path(__file__).resolve().parents[2]

ISOLATION_LEVELS = ("READ COMMITTED", "REPEATABLE READ", "SERIALIZABLE")


class Settings(BaseSettings):
    """Runtime configuration, read once at import time."""

    model_config = SettingsConfigDict(
        env_file=str(_BACKEND_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    environment: Literal["development", "test", "staging", "production"] = "development"
    log_level: str = Field(default="INFO", description="Root log level")

    database_url: str = Field(
        default="sqlite:///./staybook.db",
        description="SQLAlchemy URL of the primary database",
    )
    db_pool_size: int = Field(default=5, ge=1)
    db_max_overflow: int = Field(default=5, ge=0)
    db_pool_timeout: int = Field(default=5, ge=1, description="Seconds to wait for a pooled connection")
    sqlite_busy_timeout_seconds: float = Field(default=30.0, gt=0)
    statement_timeout_ms: int = Field(default=15000, gt=0)

    compose_isolation_level: str = Field(
        default="REPEATABLE READ",
        description="Isolation level for booking+payment, confirm and cancel-with-refund",
    )

    request_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Deadline applied to each API request's service call",
    )
    slow_operation_threshold_seconds: float = Field(default=1.0, gt=0)
    metrics_enabled: bool = True

    @field_validator("compose_isolation_level", mode="before")
    @classmethod
    def _normalize_isolation_level(cls, value: object) -> str:
        normalized = " ".join(str(value or "").replace("_", " ").upper().split())
        if normalized not in ISOLATION_LEVELS:
            raise ValueError(
                f"compose_isolation_level must be one of {', '.join(ISOLATION_LEVELS)}"
            )
        return normalized

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: object) -> str:
        return str(value or "INFO").strip().upper()

    def get_database_url(self) -> str:
        """Return the configured database URL."""
        return self.database_url


settings = Settings()
