"""Command and input validation with an audit trail."""

from __future__ import annotations

import re
import threading
from typing import Optional

import structlog

from agentguard.exceptions import SecurityConfigError
from agentguard.security.config import SecurityConfig, extract_executable
from agentguard.security.event_log import SecurityEventLog
from agentguard.security.file_access import check_file_size
from agentguard.security.models import (
    SecurityEvent,
    SecurityEventType,
    SecurityIssue,
    SecuritySeverity,
    ValidationResult,
)
from agentguard.security.paths import has_traversal_segment
from agentguard.security.patterns import (
    DANGEROUS_PATTERNS,
    PATTERN_TABLE_VERSION,
    match_dangerous_patterns,
)
from agentguard.security.scope import TaskFileScope

logger = structlog.get_logger()

MAX_INPUT_LENGTH = 10000

# Stripped by sanitize_input
DANGEROUS_CHARS = re.compile(r"[<>`'\"$;|&\\]")

# Flagged by check_for_injection
INJECTION_CHARS = re.compile(r"[;&|`$]")


def _truncate(value: str, limit: int) -> str:
    return value if len(value) <= limit else value[:limit] + "..."


class CommandSandbox:
    """Single validation point for commands, file access, and free text.

    Holds the active SecurityConfig and an append-only SecurityEventLog.
    Each validation call reads one config snapshot, so a concurrent
    ``update_config`` never produces a half-applied verdict.

    Example:
        >>> sandbox = CommandSandbox()
        >>> sandbox.validate_command("git status", "/home/user/project").valid
        True
        >>> sandbox.validate_command("rm -rf /", "/tmp").valid
        False
    """

    def __init__(
        self,
        config: Optional[SecurityConfig] = None,
        event_log: Optional[SecurityEventLog] = None,
    ):
        """Initialize the sandbox.

        Args:
            config: Initial policy. Defaults to the secure default preset.
            event_log: Audit log to append to. A private log is created when
                omitted, so separate sandboxes never share events.

        Raises:
            SecurityConfigError: If ``config`` fails validation
        """
        config = config if config is not None else SecurityConfig.default()
        errors = config.validate()
        if errors:
            raise SecurityConfigError(errors)

        self._config = config
        self._config_lock = threading.Lock()
        self.event_log = event_log if event_log is not None else SecurityEventLog()

    # ------------------------------------------------------------------
    # Command validation
    # ------------------------------------------------------------------

    def validate_command(
        self,
        command: str,
        working_dir: str,
        task_scope: Optional[TaskFileScope] = None,
    ) -> ValidationResult:
        """Validate a shell command line before it is launched.

        Checks, all of which are collected:
        1. Dangerous pattern table (blocking)
        2. Blocked substrings from the config (blocking)
        3. Allow-list (warning only, the command still runs)
        4. Restricted working directory (blocking)
        5. Working directory outside ``task_scope`` when one is given (blocking)

        Args:
            command: The full command line
            working_dir: Directory the command would run in
            task_scope: Optional per-task scope for the working directory

        Returns:
            Verdict whose ``sanitized`` echoes the command when valid
        """
        config = self.get_config()
        issues: list[SecurityIssue] = []

        for rule in match_dangerous_patterns(command):
            issues.append(
                SecurityIssue(
                    type="dangerous_pattern",
                    description=f"Command matches dangerous pattern '{rule.name}': {rule.description}",
                    severity=rule.severity,
                )
            )

        blocked_pattern = config.find_blocked_pattern(command)
        if blocked_pattern is not None:
            issues.append(
                SecurityIssue.high(
                    "blocked_pattern",
                    f"Command contains blocked pattern: {blocked_pattern}",
                )
            )

        if not config.is_command_allowed(command):
            executable = extract_executable(command)
            issues.append(
                SecurityIssue.warning(
                    "unknown_command",
                    f"Command '{executable}' not in allowed list",
                )
            )

        restricted = config.find_restricted_path(working_dir)
        if restricted is not None:
            issues.append(
                SecurityIssue.high(
                    "restricted_path",
                    f"Working directory is in restricted area: {restricted}",
                )
            )

        if task_scope is not None and not task_scope.is_path_allowed(working_dir):
            issues.append(
                SecurityIssue.high(
                    "cwd_out_of_scope",
                    f"Working directory is outside the task scope (project root: {task_scope.project_root})",
                )
            )

        result = ValidationResult.from_issues(issues, sanitized=command)

        if not result.valid:
            self._record(
                SecurityEvent.blocked_event(
                    SecurityEventType.COMMAND_BLOCKED,
                    f"Command blocked: {_truncate(command, 50)}",
                    context={
                        "command": _truncate(command, 100),
                        "working_dir": _truncate(working_dir, 200),
                        "issue_count": str(len(issues)),
                    },
                    severity=result.max_severity,
                )
            )

        return result

    # ------------------------------------------------------------------
    # File access validation
    # ------------------------------------------------------------------

    def validate_file_access(self, path: str, write: bool) -> ValidationResult:
        """Validate a file read or write without a task scope.

        Checks for ``..`` traversal segments, restricted system paths, and
        (for reads) the file size limit.
        """
        config = self.get_config()
        issues: list[SecurityIssue] = []

        if has_traversal_segment(path):
            issues.append(
                SecurityIssue.critical(
                    "path_traversal",
                    "Path contains '..' which may indicate path traversal attack",
                )
            )
            self._record(
                SecurityEvent.blocked_event(
                    SecurityEventType.PATH_TRAVERSAL_ATTEMPT,
                    f"Path traversal detected: {_truncate(path, 50)}",
                    context={"path": _truncate(path, 100)},
                    severity=SecuritySeverity.CRITICAL,
                )
            )

        restricted = config.find_restricted_path(path)
        if restricted is not None:
            issues.append(
                SecurityIssue.high(
                    "restricted_path",
                    f"Path is in restricted area: {restricted}",
                )
            )

        if not write:
            size_issue = check_file_size(path, config.max_file_size)
            if size_issue is not None:
                issues.append(size_issue)

        result = ValidationResult.from_issues(issues, sanitized=path)

        if not result.valid:
            self._record(
                SecurityEvent.blocked_event(
                    SecurityEventType.FILE_ACCESS_DENIED,
                    f"File access denied: {_truncate(path, 50)}",
                    context={
                        "path": _truncate(path, 100),
                        "operation": "write" if write else "read",
                    },
                )
            )

        return result

    # ------------------------------------------------------------------
    # Input sanitization
    # ------------------------------------------------------------------

    def sanitize_input(self, text: str) -> str:
        """Strip shell and markup metacharacters and cap the length.

        Defense in depth only; commands still go through validate_command.
        """
        return DANGEROUS_CHARS.sub("", text)[:MAX_INPUT_LENGTH]

    def check_for_injection(self, text: str) -> ValidationResult:
        """Flag untrusted text before it is interpolated into a command or prompt.

        Never blocks: the result is always valid and carries warnings.
        """
        issues: list[SecurityIssue] = []

        if INJECTION_CHARS.search(text):
            issues.append(
                SecurityIssue.warning(
                    "potential_injection",
                    "Input contains characters that may indicate injection attempt",
                )
            )

        if len(text) > MAX_INPUT_LENGTH:
            issues.append(
                SecurityIssue.warning(
                    "input_too_long",
                    f"Input exceeds maximum length ({MAX_INPUT_LENGTH} characters)",
                )
            )

        return ValidationResult.valid_with_warnings(self.sanitize_input(text), issues)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def get_config(self) -> SecurityConfig:
        with self._config_lock:
            return self._config

    def update_config(self, new_config: SecurityConfig) -> None:
        """Replace the active policy.

        Raises:
            SecurityConfigError: If the config fails validation; the previous
                config stays active
        """
        errors = new_config.validate()
        if errors:
            logger.warning("Rejected security config update", errors=errors)
            raise SecurityConfigError(errors)

        with self._config_lock:
            self._config = new_config

        self._record(
            SecurityEvent.create(
                SecurityEventType.CONFIG_CHANGED,
                SecuritySeverity.INFO,
                "Security configuration updated",
                context={
                    "sandboxing": str(new_config.enabled),
                    "confirmation": new_config.require_confirmation.value,
                    "max_file_size": str(new_config.max_file_size),
                },
            )
        )

    # ------------------------------------------------------------------
    # Event log
    # ------------------------------------------------------------------

    def record_event(self, event: SecurityEvent) -> None:
        """Append an event produced by a collaborating validator."""
        self._record(event)

    def _record(self, event: SecurityEvent) -> None:
        self.event_log.append(event)

    def get_event_log(self) -> list[SecurityEvent]:
        return self.event_log.events()

    def get_recent_events(self, count: int = 10) -> list[SecurityEvent]:
        """Most recent events, newest first."""
        return self.event_log.recent(count)

    def get_events_by_severity(self, min_severity: SecuritySeverity) -> list[SecurityEvent]:
        return self.event_log.by_severity(min_severity)

    def clear_event_log(self) -> None:
        self.event_log.clear()

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def get_security_report(self) -> str:
        """Human-readable config snapshot and event summary."""
        config = self.get_config()
        events = self.event_log.events()

        blocked_count = sum(1 for event in events if event.blocked)
        warning_count = sum(1 for event in events if event.severity == SecuritySeverity.WARNING)
        critical_count = sum(1 for event in events if event.severity >= SecuritySeverity.HIGH)

        lines = [
            "=== Security Report ===",
            "",
            "Configuration:",
            f"  Sandboxing: {'Enabled' if config.enabled else 'Disabled'}",
            f"  Confirmation: {config.require_confirmation.value}",
            f"  Allowed commands: {len(config.allowed_commands)}",
            f"  Blocked patterns: {len(config.blocked_patterns)}",
            f"  Restricted paths: {len(config.restricted_paths)}",
            f"  Max file size: {config.max_file_size // 1024}KB",
            f"  Pattern table: v{PATTERN_TABLE_VERSION} ({len(DANGEROUS_PATTERNS)} rules)",
            "",
            "Event Summary:",
            f"  Total events: {len(events)}",
            f"  Blocked: {blocked_count}",
            f"  Warnings: {warning_count}",
            f"  Critical: {critical_count}",
        ]

        counts = self.event_log.counts_by_type()
        if counts:
            lines.append("  By type:")
            for event_type in SecurityEventType:
                if event_type in counts:
                    lines.append(f"    {event_type.display_name}: {counts[event_type]}")

        if events:
            lines.append("")
            lines.append("Recent Events:")
            for event in self.get_recent_events(5):
                lines.append(f"  {event.format()}")

        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"CommandSandbox(enabled={self.get_config().enabled}, events={len(self.event_log)})"
