"""Per-task file access validation.

Combines a TaskFileScope with the global SecurityConfig so every path the
agent touches is checked against both layers. The only I/O performed here
is a size stat; the caller does the read or write after a valid verdict.
"""

from __future__ import annotations

import os
import stat
from typing import TYPE_CHECKING, Optional

import structlog

from agentguard.exceptions import PathResolutionError
from agentguard.security.config import SecurityConfig
from agentguard.security.models import (
    SecurityEvent,
    SecurityEventType,
    SecurityIssue,
    SecuritySeverity,
    ValidationResult,
)
from agentguard.security.paths import absolutize, canonicalize, traversal_escapes
from agentguard.security.scope import TaskFileScope

if TYPE_CHECKING:
    from agentguard.security.sandbox import CommandSandbox

logger = structlog.get_logger()


def check_file_size(path: str, max_size: int, base: Optional[str] = None) -> Optional[SecurityIssue]:
    """Return a warning when an existing file is larger than ``max_size``.

    Missing files and unresolvable paths produce nothing; a failing stat is
    downgraded to a ``file_stat_failed`` warning instead of raising.
    """
    try:
        target = canonicalize(path, base=base)
        st = os.stat(target)
    except (PathResolutionError, FileNotFoundError, NotADirectoryError):
        return None
    except OSError as e:
        logger.warning("File size check failed", path=path[:200], error=str(e))
        return SecurityIssue.warning(
            "file_stat_failed",
            f"Could not read file size: {e.strerror or e}",
        )

    if not stat.S_ISREG(st.st_mode):
        return None
    size = st.st_size
    if size > max_size:
        return SecurityIssue.warning(
            "file_too_large",
            f"File size ({size // 1024}KB) exceeds maximum ({max_size // 1024}KB)",
        )
    return None


class TaskScopedFileAccess:
    """Validates file access against a task scope and the global config.

    Example:
        >>> scope = TaskFileScope.for_project("/home/user/project")
        >>> access = TaskScopedFileAccess(scope)
        >>> access.validate_access("/home/user/project/src/main.py", write=False).valid
        True
        >>> access.validate_access("/home/user/.ssh/id_rsa", write=False).valid
        False
    """

    def __init__(
        self,
        scope: TaskFileScope,
        global_config: Optional[SecurityConfig] = None,
        sandbox: Optional[CommandSandbox] = None,
    ):
        """Initialize the validator.

        Args:
            scope: The per-task boundary.
            global_config: Config snapshot taken at task start. When omitted
                the sandbox's live config is used, or the default preset.
            sandbox: Optional sandbox whose audit log receives denials.
        """
        self.scope = scope
        self._global_config = global_config
        self.sandbox = sandbox

    @property
    def config(self) -> SecurityConfig:
        if self._global_config is not None:
            return self._global_config
        if self.sandbox is not None:
            return self.sandbox.get_config()
        return SecurityConfig.default()

    def get_scope(self) -> TaskFileScope:
        return self.scope

    def _traversal_roots(self) -> list[str]:
        roots: list[str] = []
        for directory in [self.scope.project_root, *sorted(self.scope.allowed_directories)]:
            try:
                roots.append(absolutize(directory))
            except PathResolutionError:
                continue
        return roots + self.scope.roots()

    def _absolute(self, path: str) -> str:
        try:
            return absolutize(path, base=self.scope.project_root or None)
        except PathResolutionError:
            return path

    def validate_access(self, path: str, write: bool) -> ValidationResult:
        """Validate a read or write of ``path``.

        All checks run and every issue is reported; the verdict is invalid
        if any of them is HIGH or CRITICAL.
        """
        scope = self.scope
        config = self.config
        issues: list[SecurityIssue] = []
        traversal = False

        if scope.validate():
            roots = []
        else:
            roots = self._traversal_roots()

        if traversal_escapes(path, roots, base=scope.project_root or os.sep):
            traversal = True
            issues.append(
                SecurityIssue.high(
                    "path_traversal",
                    "Path uses '..' to step outside the task scope",
                )
            )

        if not scope.is_path_allowed(path):
            scope_errors = scope.validate()
            reason = (
                f"task scope is invalid ({'; '.join(scope_errors)})"
                if scope_errors
                else f"project root: {scope.project_root}"
            )
            issues.append(
                SecurityIssue.high(
                    "out_of_scope",
                    f"Path is outside the task scope ({reason})",
                )
            )

        if write and scope.read_only:
            issues.append(
                SecurityIssue.high(
                    "scope_read_only",
                    "Task scope is read-only; write operations are not permitted",
                )
            )

        restricted = config.find_restricted_path(self._absolute(path))
        if restricted is not None:
            issues.append(
                SecurityIssue.high(
                    "restricted_path",
                    f"Path is in a globally restricted area: {restricted}",
                )
            )

        if not write:
            size_issue = check_file_size(path, config.max_file_size, base=scope.project_root or None)
            if size_issue is not None:
                issues.append(size_issue)

        result = ValidationResult.from_issues(issues, sanitized=path)

        if not result.valid and self.sandbox is not None:
            context = {
                "path": path[:100],
                "operation": "write" if write else "read",
                "project_root": scope.project_root,
            }
            if traversal:
                self.sandbox.record_event(
                    SecurityEvent.blocked_event(
                        SecurityEventType.PATH_TRAVERSAL_ATTEMPT,
                        f"Path traversal detected: {path[:50]}",
                        context=context,
                    )
                )
            self.sandbox.record_event(
                SecurityEvent.blocked_event(
                    SecurityEventType.FILE_ACCESS_DENIED,
                    f"File access denied: {path[:50]}",
                    context=context,
                    severity=result.max_severity,
                )
            )

        return result

    def validate_command_working_dir(self, working_dir: str) -> ValidationResult:
        """Validate the directory a subprocess would start in."""
        scope = self.scope
        issues: list[SecurityIssue] = []

        if not scope.is_path_allowed(working_dir):
            issues.append(
                SecurityIssue.high(
                    "cwd_out_of_scope",
                    f"Command working directory is outside the task scope (project root: {scope.project_root})",
                )
            )

        if self.config.is_path_restricted(self._absolute(working_dir)):
            issues.append(
                SecurityIssue.high(
                    "restricted_path",
                    "Command working directory is in a restricted area",
                )
            )

        result = ValidationResult.from_issues(issues, sanitized=working_dir)

        if not result.valid and self.sandbox is not None:
            self.sandbox.record_event(
                SecurityEvent.blocked_event(
                    SecurityEventType.COMMAND_BLOCKED,
                    f"Working directory rejected: {working_dir[:50]}",
                    context={"working_dir": working_dir[:200], "project_root": scope.project_root},
                    severity=SecuritySeverity.HIGH,
                )
            )

        return result
