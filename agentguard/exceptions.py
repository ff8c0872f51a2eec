"""Centralized error handling and custom exceptions for agentguard.

Validation verdicts are never exceptions: a rejected command or path is
reported through ``ValidationResult.valid``. Exceptions are reserved for
configuration the host tries to install and for strict path resolution.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Standardized error codes for host communication."""

    # General errors
    INTERNAL_ERROR = "internal_error"
    CONFIGURATION_ERROR = "configuration_error"

    # Configuration errors
    INVALID_SECURITY_CONFIG = "invalid_security_config"
    INVALID_TASK_SCOPE = "invalid_task_scope"

    # Path errors
    PATH_UNRESOLVABLE = "path_unresolvable"


class GuardError(Exception):
    """Base exception for all agentguard errors."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for JSON serialization."""
        return {
            "error": True,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(GuardError):
    """A configuration value was rejected; the caller keeps its prior state."""

    def __init__(
        self,
        message: str,
        errors: list[str] | None = None,
        code: ErrorCode = ErrorCode.CONFIGURATION_ERROR,
    ):
        self.errors = list(errors or [])
        super().__init__(message=message, code=code, details={"errors": self.errors})


class SecurityConfigError(ConfigurationError):
    """A SecurityConfig failed validation."""

    def __init__(self, errors: list[str]):
        super().__init__(
            message=f"Invalid security config: {'; '.join(errors)}",
            errors=errors,
            code=ErrorCode.INVALID_SECURITY_CONFIG,
        )


class ScopeConfigurationError(ConfigurationError):
    """A TaskFileScope failed validation."""

    def __init__(self, project_root: str, errors: list[str]):
        super().__init__(
            message=f"Invalid task scope for '{project_root}': {'; '.join(errors)}",
            errors=errors,
            code=ErrorCode.INVALID_TASK_SCOPE,
        )
        self.details["project_root"] = project_root


class PathResolutionError(GuardError):
    """A path could not be resolved to its canonical form."""

    def __init__(self, path: str, reason: str | None = None):
        super().__init__(
            message=f"Cannot resolve path: {path[:200]}",
            code=ErrorCode.PATH_UNRESOLVABLE,
            details={"path": path[:200], "reason": reason},
        )
