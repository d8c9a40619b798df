"""Configuration management for switchyard using Pydantic Settings."""

import random
from datetime import datetime
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings configurable via environment variables and .env file.

    Environment variables must be prefixed with SWITCHYARD_.
    Example: SWITCHYARD_DEFAULT_MODEL=claude-sonnet-4
    """

    model_config = SettingsConfigDict(  # pyright: ignore[reportUnannotatedClassAttribute]
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SWITCHYARD_",
        case_sensitive=False,
        extra="ignore",
    )

    DEFAULT_MODEL: str = Field(
        default="gpt-4.1",
        description="Model recorded on switch turns when the session never selected one.",
    )

    # --- Directories ---

    SESSION_DIR: Path = Field(
        default=Path.home() / ".switchyard" / "sessions",
        description="Directory to store session history files.",
    )

    PERMISSION_DIR: Path = Field(
        default=Path.home() / ".switchyard" / "permissions",
        description="Directory to store per-session permission sets.",
    )

    @field_validator("SESSION_DIR", "PERMISSION_DIR")
    @classmethod
    def ensure_dir_exists(cls, v: Path) -> Path:
        v.mkdir(parents=True, exist_ok=True)
        return v

    ROLES_DIR: Path = Field(
        default=Path.cwd() / ".switchyard" / "roles",
        description="Directory for role definition YAML files.",
    )

    # --- Logging ---

    LOG_DIR: Path = Field(
        default=Path.home() / ".switchyard" / "logs",
        description="Directory for mode transition trace logs.",
    )

    @property
    def log_file(self) -> Path:
        """Generate actual log file path with timestamp and random suffix."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        random_suffix = "".join(random.choices("abcdefghijklmnopqrstuvwxyz0123456789", k=6))
        return self.LOG_DIR / f"transitions_{timestamp}_{random_suffix}.jsonl"

    @field_validator("LOG_DIR")
    @classmethod
    def ensure_log_dir(cls, v: Path) -> Path:
        v.mkdir(parents=True, exist_ok=True)
        return v

    LOG_TO_CONSOLE: bool = Field(
        default=True,
        description="Echo mode transitions to stderr.",
    )


# Global settings instance
settings = Settings()
