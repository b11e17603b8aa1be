"""Logging settings, read from ``LOG_*`` environment variables."""

from __future__ import annotations

import logging
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LoggingSettings(BaseSettings):
    """Options passed to ``configure_logging``.

    Example: ``LOG_LEVEL=debug LOG_JSON_LOGS=false LOG_LOG_FILE=logs/app.log``
    """

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
    )

    service_name: str = Field(
        default="keyset-service",
        min_length=1,
        max_length=100,
        description="Static service field added to every JSON record",
    )
    level: LogLevel = Field(default="INFO", description="Root logger level")
    json_logs: bool = Field(default=True, description="JSON Lines instead of plain text")

    # File output is off unless a path is given
    log_file: str | None = Field(default=None, max_length=500, description="Rotating log file path")
    max_bytes: int = Field(default=10_485_760, ge=1024, le=1_073_741_824, description="Rotation size")
    backup_count: int = Field(default=5, ge=0, le=100, description="Rotated files kept")

    console_enabled: bool = Field(default=True, description="Write records to stderr")
    include_context: bool = Field(default=True, description="Copy the log context onto records")
    capture_warnings: bool = Field(default=True, description="Route warnings through logging")

    @field_validator("level", mode="before")
    @classmethod
    def _upper_level(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value

    @property
    def level_int(self) -> int:
        return logging.getLevelNamesMapping()[self.level]

    def to_logging_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for ``configure_logging``."""
        return {
            "log_level": self.level,
            "file_path": self.log_file,
            "json_logs": self.json_logs,
            "console_enabled": self.console_enabled,
            "include_context": self.include_context,
            "service_name": self.service_name,
            "capture_warnings": self.capture_warnings,
            "file_max_bytes": self.max_bytes,
            "file_backup_count": self.backup_count,
        }
