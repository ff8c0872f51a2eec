"""Validation verdicts and audit records.

All models are frozen: a verdict or an audit event never changes after it
is produced, so results can be handed across threads without copying.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum, IntEnum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ConfirmationLevel(str, Enum):
    """When the host must ask the user before an agent operation runs."""

    NONE = "none"
    DESTRUCTIVE = "destructive"
    ALL = "all"

    def requires_confirmation(self, is_destructive: bool) -> bool:
        """Check if confirmation is required for an operation.

        Args:
            is_destructive: Whether the operation modifies or deletes data

        Returns:
            True if the user should be asked first
        """
        if self is ConfirmationLevel.NONE:
            return False
        if self is ConfirmationLevel.DESTRUCTIVE:
            return is_destructive
        return True


class SecuritySeverity(IntEnum):
    """Severity level for security issues."""

    INFO = 0
    WARNING = 1
    HIGH = 2
    CRITICAL = 3

    @property
    def icon(self) -> str:
        return _SEVERITY_ICONS[self]

    @property
    def should_block(self) -> bool:
        """HIGH and CRITICAL block the operation."""
        return self >= SecuritySeverity.HIGH

    @classmethod
    def max(cls, severities: list[SecuritySeverity]) -> SecuritySeverity:
        """Get the maximum severity from a list, INFO when empty."""
        return max(severities, default=cls.INFO)


_SEVERITY_ICONS = {
    SecuritySeverity.INFO: "ℹ️",
    SecuritySeverity.WARNING: "⚠️",
    SecuritySeverity.HIGH: "🔴",
    SecuritySeverity.CRITICAL: "🚨",
}


class SecurityEventType(str, Enum):
    """Categories of audit events."""

    COMMAND_BLOCKED = "command_blocked"
    FILE_ACCESS_DENIED = "file_access_denied"
    PATH_TRAVERSAL_ATTEMPT = "path_traversal_attempt"
    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"
    INVALID_INPUT = "invalid_input"
    SUSPICIOUS_PATTERN = "suspicious_pattern"
    CONFIG_CHANGED = "config_changed"
    VALIDATION_PASSED = "validation_passed"

    @property
    def display_name(self) -> str:
        return _EVENT_TYPE_INFO[self][0]

    @property
    def log_level(self) -> str:
        return _EVENT_TYPE_INFO[self][1]


_EVENT_TYPE_INFO = {
    SecurityEventType.COMMAND_BLOCKED: ("Command Blocked", "warning"),
    SecurityEventType.FILE_ACCESS_DENIED: ("File Access Denied", "warning"),
    SecurityEventType.PATH_TRAVERSAL_ATTEMPT: ("Path Traversal Attempt", "error"),
    SecurityEventType.RATE_LIMIT_EXCEEDED: ("Rate Limit Exceeded", "warning"),
    SecurityEventType.INVALID_INPUT: ("Invalid Input", "info"),
    SecurityEventType.SUSPICIOUS_PATTERN: ("Suspicious Pattern", "warning"),
    SecurityEventType.CONFIG_CHANGED: ("Configuration Changed", "info"),
    SecurityEventType.VALIDATION_PASSED: ("Validation Passed", "debug"),
}


class SecurityIssue(BaseModel):
    """A single concern found during validation."""

    model_config = ConfigDict(frozen=True)

    type: str
    description: str
    severity: SecuritySeverity

    @property
    def should_block(self) -> bool:
        return self.severity.should_block

    def format(self) -> str:
        return f"{self.severity.icon} [{self.type}] {self.description}"

    @classmethod
    def info(cls, type: str, description: str) -> SecurityIssue:
        return cls(type=type, description=description, severity=SecuritySeverity.INFO)

    @classmethod
    def warning(cls, type: str, description: str) -> SecurityIssue:
        return cls(type=type, description=description, severity=SecuritySeverity.WARNING)

    @classmethod
    def high(cls, type: str, description: str) -> SecurityIssue:
        return cls(type=type, description=description, severity=SecuritySeverity.HIGH)

    @classmethod
    def critical(cls, type: str, description: str) -> SecurityIssue:
        return cls(type=type, description=description, severity=SecuritySeverity.CRITICAL)


class ValidationResult(BaseModel):
    """Verdict for one command, path, or piece of text.

    ``valid`` is true iff no issue is blocking; constructing a result that
    breaks this rule raises a pydantic ``ValidationError``.
    """

    model_config = ConfigDict(frozen=True)

    valid: bool
    sanitized: Optional[str] = None
    issues: list[SecurityIssue] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_validity(self) -> ValidationResult:
        blocking = any(issue.should_block for issue in self.issues)
        if self.valid == blocking:
            raise ValueError(
                "valid must be true exactly when no issue is HIGH or CRITICAL"
            )
        return self

    @property
    def max_severity(self) -> SecuritySeverity:
        return SecuritySeverity.max([issue.severity for issue in self.issues])

    @property
    def blocking_issues(self) -> list[SecurityIssue]:
        return [issue for issue in self.issues if issue.should_block]

    @property
    def warnings(self) -> list[SecurityIssue]:
        return [issue for issue in self.issues if not issue.should_block]

    @property
    def has_issues(self) -> bool:
        return len(self.issues) > 0

    def format_issues(self) -> str:
        return "\n".join(issue.format() for issue in self.issues)

    @classmethod
    def from_issues(
        cls, issues: list[SecurityIssue], sanitized: Optional[str] = None
    ) -> ValidationResult:
        """Build a verdict from collected issues.

        ``sanitized`` is only kept when the result is valid.
        """
        valid = not any(issue.should_block for issue in issues)
        return cls(valid=valid, sanitized=sanitized if valid else None, issues=list(issues))

    @classmethod
    def ok(cls, sanitized: str) -> ValidationResult:
        return cls(valid=True, sanitized=sanitized, issues=[])

    @classmethod
    def valid_with_warnings(
        cls, sanitized: str, issues: list[SecurityIssue]
    ) -> ValidationResult:
        """Valid result; blocking issues in ``issues`` are dropped."""
        return cls(
            valid=True,
            sanitized=sanitized,
            issues=[issue for issue in issues if not issue.should_block],
        )

    @classmethod
    def invalid(cls, issues: list[SecurityIssue]) -> ValidationResult:
        return cls(valid=False, sanitized=None, issues=list(issues))

    @classmethod
    def blocked(
        cls,
        type: str,
        description: str,
        severity: SecuritySeverity = SecuritySeverity.HIGH,
    ) -> ValidationResult:
        return cls.invalid([SecurityIssue(type=type, description=description, severity=severity)])


def _new_event_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SecurityEvent(BaseModel):
    """An append-only audit record."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_event_id)
    type: SecurityEventType
    severity: SecuritySeverity
    description: str
    context: dict[str, str] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=_utcnow)
    blocked: bool = False

    def format(self) -> str:
        status = "BLOCKED" if self.blocked else "ALLOWED"
        return f"[{self.severity.icon} {status}] {self.type.display_name}: {self.description}"

    @property
    def is_user_visible(self) -> bool:
        return self.severity >= SecuritySeverity.WARNING or self.blocked

    @classmethod
    def create(
        cls,
        type: SecurityEventType,
        severity: SecuritySeverity,
        description: str,
        context: Optional[dict[str, str]] = None,
        blocked: bool = False,
    ) -> SecurityEvent:
        """Create an event with a fresh id and timestamp."""
        return cls(
            type=type,
            severity=severity,
            description=description,
            context=dict(context or {}),
            blocked=blocked,
        )

    @classmethod
    def blocked_event(
        cls,
        type: SecurityEventType,
        description: str,
        context: Optional[dict[str, str]] = None,
        severity: SecuritySeverity = SecuritySeverity.HIGH,
    ) -> SecurityEvent:
        """Create an event recording a blocked request."""
        return cls.create(
            type=type,
            severity=severity,
            description=description,
            context=context,
            blocked=True,
        )
