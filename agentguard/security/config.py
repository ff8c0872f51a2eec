"""Process-wide security policy."""

from __future__ import annotations

import os
import re
import shlex
from enum import Enum
from typing import TYPE_CHECKING, ClassVar, Optional

from pydantic import BaseModel, ConfigDict, Field

from agentguard.exceptions import PathResolutionError
from agentguard.security.models import ConfirmationLevel
from agentguard.security.paths import absolutize, canonicalize, is_within

if TYPE_CHECKING:
    from agentguard.security.scope import TaskFileScope

MIB = 1024 * 1024

DEFAULT_ALLOWED_COMMANDS = frozenset({
    "git", "dotnet", "npm", "npx", "yarn", "pnpm",
    "gradle", "gradlew", "mvn", "cargo", "rustc",
    "python", "python3", "pip", "pip3",
    "node", "deno", "bun",
    "go", "make", "cmake",
})

DEFAULT_BLOCKED_PATTERNS = frozenset({
    "rm -rf /",
    "rm -rf ~",
    "rm -rf /*",
    "sudo ",
    "chmod 777",
    "> /dev/sd",
    "curl | sh",
    "wget | sh",
    ":(){:|:&};:",
    "mkfs.",
    "dd if=/dev/zero",
})

DEFAULT_RESTRICTED_PATHS = frozenset({
    "/etc",
    "/usr",
    "/bin",
    "/sbin",
    "/var",
    "/System",
    "/Library",
})

HARDENED_EXTRA_RESTRICTED_PATHS = frozenset({"/System", "/Library", "/private"})

_ENV_ASSIGNMENT = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*=")


def extract_executable(command: str) -> str:
    """Return the binary name a command line would launch.

    Leading ``VAR=value`` assignments are skipped and any directory prefix
    is dropped, so ``/usr/bin/git status`` yields ``git``.
    """
    try:
        tokens = shlex.split(command)
    except ValueError:
        # Unbalanced quotes; fall back to whitespace splitting
        tokens = command.split()

    for token in tokens:
        if _ENV_ASSIGNMENT.match(token):
            continue
        return os.path.basename(token.rstrip("/\\")) or token
    return ""


class SecurityConfig(BaseModel):
    """Immutable security policy shared by every validation call.

    Instances compare by value. ``harden()``, ``relax()`` and
    ``with_task_scope()`` return new instances.
    """

    model_config = ConfigDict(frozen=True)

    HARDENED_MAX_FILE_SIZE: ClassVar[int] = 5 * MIB
    RELAXED_MAX_FILE_SIZE: ClassVar[int] = 50 * MIB

    enabled: bool = True
    allowed_commands: frozenset[str] = Field(default=DEFAULT_ALLOWED_COMMANDS)
    restricted_paths: frozenset[str] = Field(default=DEFAULT_RESTRICTED_PATHS)
    blocked_patterns: frozenset[str] = Field(default=DEFAULT_BLOCKED_PATTERNS)
    max_file_size: int = 10 * MIB
    require_confirmation: ConfirmationLevel = ConfirmationLevel.DESTRUCTIVE

    def is_command_allowed(self, command: str) -> bool:
        """Check if a command's binary is allow-listed.

        Args:
            command: A binary name (``git``) or a full command line

        Returns:
            True if allowed or sandboxing is disabled
        """
        if not self.enabled:
            return True
        return extract_executable(command) in self.allowed_commands

    def find_restricted_path(self, path: str) -> Optional[str]:
        """Return the restricted entry covering ``path``, if any.

        Both the lexical absolute path and its canonical form are checked so
        a symlink cannot hide a restricted target. An unresolvable path is
        reported as restricted by its raw value.
        """
        if not self.restricted_paths:
            return None

        try:
            candidates = {absolutize(path), canonicalize(path)}
        except PathResolutionError:
            return path

        for entry in sorted(self.restricted_paths):
            roots = {os.path.normpath(entry)}
            try:
                roots.add(canonicalize(entry))
            except PathResolutionError:
                pass
            if any(is_within(candidate, root) for candidate in candidates for root in roots):
                return entry
        return None

    def is_path_restricted(self, path: str) -> bool:
        """Check if a path is inside a restricted area."""
        return self.find_restricted_path(path) is not None

    def find_blocked_pattern(self, text: str) -> Optional[str]:
        """Return the first blocked pattern contained in ``text``.

        Longer patterns are tried first so the most specific match wins.
        """
        for pattern in sorted(self.blocked_patterns, key=lambda p: (-len(p), p)):
            if pattern in text:
                return pattern
        return None

    def requires_confirmation(self, is_destructive: bool) -> bool:
        return self.require_confirmation.requires_confirmation(is_destructive)

    def harden(self) -> SecurityConfig:
        """Create a stricter copy.

        The result never permits anything the original forbids.
        An unsandboxed config with an empty allow-list admitted every command,
        so it gets the default list when sandboxing is switched on.
        """
        return self.model_copy(
            update={
                "enabled": True,
                "allowed_commands": (
                    self.allowed_commands
                    if self.allowed_commands or self.enabled
                    else DEFAULT_ALLOWED_COMMANDS
                ),
                "require_confirmation": ConfirmationLevel.ALL,
                "max_file_size": min(self.max_file_size, self.HARDENED_MAX_FILE_SIZE),
                "restricted_paths": self.restricted_paths | HARDENED_EXTRA_RESTRICTED_PATHS,
            }
        )

    def relax(self) -> SecurityConfig:
        """Create a looser copy for trusted environments.

        Restricted paths and blocked patterns are kept; only
        ``SecurityPreset.PERMISSIVE`` drops them.
        """
        return self.model_copy(
            update={
                "enabled": False,
                "require_confirmation": ConfirmationLevel.DESTRUCTIVE,
                "max_file_size": max(self.max_file_size, self.RELAXED_MAX_FILE_SIZE),
            }
        )

    def with_task_scope(self, scope: TaskFileScope) -> SecurityConfig:
        """Merge a task scope's sensitive directories into restricted paths."""
        return self.model_copy(
            update={"restricted_paths": self.restricted_paths | scope.effective_restricted_paths()}
        )

    def validate(self) -> list[str]:  # type: ignore[override]
        """Return configuration errors, empty if the config is usable."""
        errors: list[str] = []
        if self.max_file_size <= 0:
            errors.append("max_file_size must be positive")
        if self.enabled and not self.allowed_commands:
            errors.append("allowed_commands cannot be empty when sandboxing is enabled")
        return errors

    @classmethod
    def default(cls) -> SecurityConfig:
        return cls()

    @classmethod
    def permissive(cls) -> SecurityConfig:
        """All protections off. For trusted contexts only."""
        return cls(
            enabled=False,
            blocked_patterns=frozenset(),
            restricted_paths=frozenset(),
            require_confirmation=ConfirmationLevel.NONE,
        )

    @classmethod
    def from_preset(cls, preset: SecurityPreset | str) -> SecurityConfig:
        return SecurityPreset(preset).to_config()


class SecurityPreset(str, Enum):
    """Named policy variants sharing the SecurityConfig contract."""

    DEFAULT = "default"
    HARDENED = "hardened"
    RELAXED = "relaxed"
    PERMISSIVE = "permissive"

    def to_config(self) -> SecurityConfig:
        if self is SecurityPreset.HARDENED:
            return SecurityConfig.default().harden()
        if self is SecurityPreset.RELAXED:
            return SecurityConfig.default().relax()
        if self is SecurityPreset.PERMISSIVE:
            return SecurityConfig.permissive()
        return SecurityConfig.default()
