"""Unit tests for the validation data model."""

from __future__ import annotations

from datetime import datetime, timezone

import pydantic
import pytest

from agentguard.security.models import (
    ConfirmationLevel,
    SecurityEvent,
    SecurityEventType,
    SecurityIssue,
    SecuritySeverity,
    ValidationResult,
)


class TestConfirmationLevel:
    """Test ConfirmationLevel."""

    def test_none_never_confirms(self):
        """Test NONE never asks."""
        assert ConfirmationLevel.NONE.requires_confirmation(False) is False
        assert ConfirmationLevel.NONE.requires_confirmation(True) is False

    def test_destructive_confirms_destructive_only(self):
        """Test DESTRUCTIVE asks only for destructive operations."""
        assert ConfirmationLevel.DESTRUCTIVE.requires_confirmation(False) is False
        assert ConfirmationLevel.DESTRUCTIVE.requires_confirmation(True) is True

    def test_all_always_confirms(self):
        """Test ALL always asks."""
        assert ConfirmationLevel.ALL.requires_confirmation(False) is True
        assert ConfirmationLevel.ALL.requires_confirmation(True) is True


class TestSecuritySeverity:
    """Test SecuritySeverity ordering and blocking."""

    def test_ordering(self):
        """Test severities are ordered."""
        assert SecuritySeverity.INFO < SecuritySeverity.WARNING
        assert SecuritySeverity.WARNING < SecuritySeverity.HIGH
        assert SecuritySeverity.HIGH < SecuritySeverity.CRITICAL

    def test_should_block(self):
        """Test only HIGH and CRITICAL block."""
        assert not SecuritySeverity.INFO.should_block
        assert not SecuritySeverity.WARNING.should_block
        assert SecuritySeverity.HIGH.should_block
        assert SecuritySeverity.CRITICAL.should_block

    def test_max(self):
        """Test max picks the highest severity."""
        mixed = [SecuritySeverity.INFO, SecuritySeverity.HIGH, SecuritySeverity.WARNING]
        assert SecuritySeverity.max(mixed) == SecuritySeverity.HIGH

    def test_max_of_empty_is_info(self):
        """Test max of nothing is INFO."""
        assert SecuritySeverity.max([]) == SecuritySeverity.INFO

    def test_every_severity_has_icon(self):
        """Test icons are defined."""
        for severity in SecuritySeverity:
            assert severity.icon.strip()


class TestSecurityEventType:
    """Test SecurityEventType metadata."""

    def test_display_names_and_levels(self):
        """Test every type has a display name and a log level."""
        for event_type in SecurityEventType:
            assert event_type.display_name.strip()
            assert event_type.log_level in {"debug", "info", "warning", "error"}


class TestSecurityIssue:
    """Test SecurityIssue."""

    def test_factories_set_severity(self):
        """Test factory methods."""
        assert SecurityIssue.info("t", "d").severity == SecuritySeverity.INFO
        assert SecurityIssue.warning("t", "d").severity == SecuritySeverity.WARNING
        assert SecurityIssue.high("t", "d").severity == SecuritySeverity.HIGH
        assert SecurityIssue.critical("t", "d").severity == SecuritySeverity.CRITICAL

    def test_should_block_follows_severity(self):
        """Test blocking follows severity."""
        assert not SecurityIssue.warning("t", "d").should_block
        assert SecurityIssue.high("t", "d").should_block

    def test_format(self):
        """Test display formatting."""
        formatted = SecurityIssue.high("test_type", "Test description").format()
        assert "test_type" in formatted
        assert "Test description" in formatted

    def test_is_frozen(self):
        """Test issues cannot be mutated."""
        issue = SecurityIssue.info("t", "d")
        with pytest.raises(pydantic.ValidationError):
            issue.description = "changed"


class TestValidationResult:
    """Test ValidationResult."""

    def test_ok(self):
        """Test a clean result."""
        result = ValidationResult.ok("clean input")
        assert result.valid is True
        assert result.sanitized == "clean input"
        assert result.issues == []
        assert result.has_issues is False

    def test_blocked(self):
        """Test a single blocking issue."""
        result = ValidationResult.blocked("type", "desc")
        assert result.valid is False
        assert result.sanitized is None
        assert len(result.issues) == 1
        assert result.issues[0].type == "type"

    def test_invalid(self):
        """Test invalid keeps every issue and drops sanitized."""
        result = ValidationResult.invalid(
            [SecurityIssue.warning("w", "d"), SecurityIssue.critical("c", "d")]
        )
        assert result.valid is False
        assert result.sanitized is None
        assert len(result.issues) == 2

    def test_invalid_requires_blocking_issue(self):
        """Test that valid=False without a blocking issue is rejected."""
        with pytest.raises(pydantic.ValidationError):
            ValidationResult(valid=False, issues=[SecurityIssue.warning("w", "d")])

    def test_valid_rejects_blocking_issue(self):
        """Test that valid=True with a blocking issue is rejected."""
        with pytest.raises(pydantic.ValidationError):
            ValidationResult(valid=True, sanitized="x", issues=[SecurityIssue.high("h", "d")])

    def test_from_issues(self):
        """Test validity is derived from the issues."""
        warn = ValidationResult.from_issues([SecurityIssue.warning("w", "d")], sanitized="x")
        assert warn.valid is True
        assert warn.sanitized == "x"

        block = ValidationResult.from_issues(
            [SecurityIssue.warning("w", "d"), SecurityIssue.critical("c", "d")], sanitized="x"
        )
        assert block.valid is False
        assert block.sanitized is None
        assert block.max_severity == SecuritySeverity.CRITICAL

    def test_blocking_issues_and_warnings(self):
        """Test issue partitioning."""
        result = ValidationResult.from_issues(
            [SecurityIssue.warning("w", "d"), SecurityIssue.high("h", "d")]
        )
        assert [issue.type for issue in result.blocking_issues] == ["h"]
        assert [issue.type for issue in result.warnings] == ["w"]

    def test_valid_with_warnings_drops_blocking(self):
        """Test valid_with_warnings keeps only non-blocking issues."""
        result = ValidationResult.valid_with_warnings(
            "input",
            [SecurityIssue.warning("w", "d"), SecurityIssue.high("h", "d")],
        )
        assert result.valid is True
        assert len(result.issues) == 1
        assert result.issues[0].type == "w"

    def test_format_issues(self):
        """Test joined formatting."""
        result = ValidationResult.from_issues(
            [SecurityIssue.warning("first", "a"), SecurityIssue.warning("second", "b")]
        )
        assert result.format_issues().count("\n") == 1


class TestSecurityEvent:
    """Test SecurityEvent."""

    def test_ids_are_unique(self):
        """Test each event gets its own id."""
        event1 = SecurityEvent.create(SecurityEventType.INVALID_INPUT, SecuritySeverity.INFO, "a")
        event2 = SecurityEvent.create(SecurityEventType.INVALID_INPUT, SecuritySeverity.INFO, "a")
        assert event1.id != event2.id

    def test_timestamp_is_now(self):
        """Test the timestamp is taken at creation."""
        before = datetime.now(timezone.utc)
        event = SecurityEvent.create(SecurityEventType.CONFIG_CHANGED, SecuritySeverity.INFO, "x")
        after = datetime.now(timezone.utc)
        assert before <= event.timestamp <= after

    def test_blocked_event(self):
        """Test the blocked factory."""
        event = SecurityEvent.blocked_event(SecurityEventType.COMMAND_BLOCKED, "rm -rf /")
        assert event.blocked is True
        assert event.severity == SecuritySeverity.HIGH

    def test_format(self):
        """Test formatting shows status and type."""
        event = SecurityEvent.blocked_event(SecurityEventType.COMMAND_BLOCKED, "test")
        formatted = event.format()
        assert "BLOCKED" in formatted
        assert "Command Blocked" in formatted

    def test_user_visibility(self):
        """Test which events are surfaced to the user."""
        blocked = SecurityEvent.blocked_event(SecurityEventType.COMMAND_BLOCKED, "b")
        warning = SecurityEvent.create(
            SecurityEventType.SUSPICIOUS_PATTERN, SecuritySeverity.WARNING, "w"
        )
        info = SecurityEvent.create(SecurityEventType.CONFIG_CHANGED, SecuritySeverity.INFO, "i")
        assert blocked.is_user_visible
        assert warning.is_user_visible
        assert not info.is_user_visible
