"""Host settings for the security engine."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GuardSettings(BaseSettings):
    """Settings loaded from environment variables.

    The engine never reads a config file itself; the embedding host owns
    persistence and either exports environment variables or passes values in.
    """

    model_config = SettingsConfigDict(
        env_file=None,
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Logging
    log_level: str = Field(default="info", alias="AGENTGUARD_LOG_LEVEL")
    debug: bool = Field(default=False, alias="AGENTGUARD_DEBUG")

    # Policy
    security_preset: Literal["default", "hardened", "relaxed", "permissive"] = Field(
        default="default",
        alias="AGENTGUARD_SECURITY_PRESET",
    )
    max_file_size: Optional[int] = Field(default=None, alias="AGENTGUARD_MAX_FILE_SIZE")

    # Audit log
    max_event_log_size: int = Field(default=1000, alias="AGENTGUARD_MAX_EVENT_LOG_SIZE")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and check the log level name."""
        level = v.lower()
        if level not in {"debug", "info", "warning", "error", "critical"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("max_event_log_size")
    @classmethod
    def validate_max_event_log_size(cls, v: int) -> int:
        """Validate the audit log keeps at least one event."""
        if v < 1:
            raise ValueError(f"max_event_log_size must be at least 1, got {v}")
        return v

    @field_validator("max_file_size")
    @classmethod
    def validate_max_file_size(cls, v: Optional[int]) -> Optional[int]:
        """Validate the file size override is positive."""
        if v is not None and v <= 0:
            raise ValueError(f"max_file_size must be positive, got {v}")
        return v


# Global settings instance
_settings: GuardSettings | None = None


def get_settings() -> GuardSettings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = GuardSettings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
