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

DEFAULT_STORAGE_PATH = Path.home() / ".config" / "anki-agent-mcp" / "storage.json"


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # AnkiConnect
    ANKI_CONNECT_URL: str = "http://127.0.0.1:8765"
    ANKI_CONNECT_TIMEOUT: float = 10.0

    # Local key-value storage for deck presets
    STORAGE_PATH: Path = DEFAULT_STORAGE_PATH

    # Seconds to wait for the user to confirm a card; None waits forever
    CONFIRMATION_TIMEOUT: float | None = None

    # Environment
    ENVIRONMENT: Literal["development", "production", "test"] = "development"

    # Server (constants, not from env)
    SERVER_NAME: str = "anki-agent"

    @field_validator("ANKI_CONNECT_URL", mode="after")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        """Strip trailing slash from the AnkiConnect URL."""
        return value.rstrip("/")

    @field_validator("STORAGE_PATH", mode="after")
    @classmethod
    def expand_storage_path(cls, value: Path) -> Path:
        """Expand ``~`` in the storage path."""
        return value.expanduser()

    @field_validator("CONFIRMATION_TIMEOUT", mode="after")
    @classmethod
    def validate_confirmation_timeout(cls, value: float | None) -> float | None:
        """Reject non-positive confirmation timeouts."""
        if value is not None and value <= 0:
            msg = "CONFIRMATION_TIMEOUT must be positive"
            raise ValueError(msg)
        return value


def configure_logging(environment: str = "development") -> None:
    """Route stdlib and structlog output to stderr.

    stdout carries the MCP stdio transport, so nothing may be printed there.
    Production emits one JSON object per line; other environments get plain
    console lines without ANSI colors.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=logging.DEBUG if environment == "development" else logging.INFO,
    )
    # Per-request HTTP lines stay at WARNING.
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    renderer: Callable[..., Any] = (
        structlog.processors.JSONRenderer()
        if environment == "production"
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
