"""Application configuration."""

import logging
import sys
from collections.abc import Callable
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

import structlog
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

StorageStrategyName = Literal["filesystem", "database"]


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", frozen=True)

    # Database
    DATABASE_URL: str = "sqlite:///./libreader.db"
    AUTO_CREATE_TABLES: bool = False

    # File storage
    FILE_STORAGE_STRATEGY: StorageStrategyName = "filesystem"
    FILE_STORAGE_PATH: Path = Path("./uploads")

    # Backup payloads carry every file inline, so the limit is generous
    MAX_REQUEST_BODY_SIZE: int = 500 * 1024 * 1024

    # API (constants, not from env)
    API_PREFIX: str = "/api"
    PROJECT_NAME: str = "libreader API"
    VERSION: str = "0.1.0"

    # Environment
    ENVIRONMENT: Literal["development", "production", "test"] = "development"

    # CORS
    CORS_ORIGINS: list[str] = ["*"]

    @field_validator("FILE_STORAGE_STRATEGY", mode="before")
    @classmethod
    def normalize_strategy(cls, value: Any) -> Any:
        """Accept the strategy name in any case."""
        if isinstance(value, str):
            return value.strip().lower()
        return value


def configure_logging(environment: str = "development") -> None:
    """Configure structured logging with structlog."""
    use_json = environment == "production"

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=logging.DEBUG if environment == "development" else logging.INFO,
    )

    processors: list[Callable[..., Any]] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if use_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
