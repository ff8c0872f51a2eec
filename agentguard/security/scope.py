"""Per-task file access boundary."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, field_validator

from agentguard.exceptions import PathResolutionError, ScopeConfigurationError
from agentguard.security.paths import absolutize, canonicalize, is_within

logger = structlog.get_logger()

# Credential stores that stay denied however wide the scope gets
SENSITIVE_DIRECTORIES = frozenset({
    ".ssh",
    ".gnupg",
    ".gpg",
    ".aws",
    ".azure",
    ".gcloud",
    ".config/gcloud",
    ".docker",
    ".kube",
    ".npmrc",
    ".pypirc",
    ".netrc",
    ".env",
    ".credentials",
})

DEFAULT_DENY_PATTERNS = SENSITIVE_DIRECTORIES


class TaskFileScope(BaseModel):
    """The filesystem locations one agent task may touch.

    Confines the agent to ``project_root`` plus any explicitly approved
    ``allowed_directories`` for one task. Deny patterns are checked before
    the allow rules, so widening the scope never exposes a nested
    credential store. A scope that fails ``validate()`` authorizes nothing.

    Example:
        >>> scope = TaskFileScope.for_project("/home/user/project")
        >>> scope.is_path_allowed("/home/user/project/src/main.py")
        True
        >>> scope.is_path_allowed("/home/user/project/.ssh/id_rsa")
        False
    """

    model_config = ConfigDict(frozen=True)

    project_root: str
    allowed_directories: frozenset[str] = Field(default_factory=frozenset)
    deny_patterns: frozenset[str] = Field(default=DEFAULT_DENY_PATTERNS)
    read_only: bool = False

    @field_validator("project_root", mode="before")
    @classmethod
    def _coerce_project_root(cls, v: Any) -> Any:
        return os.fspath(v) if isinstance(v, os.PathLike) else v

    @field_validator("allowed_directories", mode="before")
    @classmethod
    def _coerce_allowed_directories(cls, v: Any) -> Any:
        if isinstance(v, (set, frozenset, list, tuple)):
            return frozenset(os.fspath(d) if isinstance(d, os.PathLike) else d for d in v)
        return v

    def validate(self) -> list[str]:  # type: ignore[override]
        """Return scope errors, empty if the scope is usable."""
        errors: list[str] = []
        if not self.project_root or not self.project_root.strip():
            errors.append("project_root must not be blank")
        elif not os.path.isabs(self.project_root):
            errors.append("project_root must be an absolute path")
        for directory in sorted(self.allowed_directories):
            if not os.path.isabs(directory):
                errors.append(f"allowed directory must be absolute: {directory}")
        return errors

    def require_valid(self) -> TaskFileScope:
        """Return self, raising if the scope is unusable.

        Raises:
            ScopeConfigurationError: If ``validate()`` reports errors
        """
        errors = self.validate()
        if errors:
            raise ScopeConfigurationError(self.project_root, errors)
        return self

    def roots(self) -> list[str]:
        """Canonical project root followed by canonical allowed directories.

        Entries that cannot be resolved are left out.
        """
        roots: list[str] = []
        for directory in [self.project_root, *sorted(self.allowed_directories)]:
            try:
                roots.append(canonicalize(directory))
            except PathResolutionError:
                logger.debug("Skipping unresolvable scope root", directory=directory)
        return roots

    def matches_deny_pattern(self, path: str) -> bool:
        """Case-insensitive substring match against the deny patterns."""
        lowered = path.lower()
        return any(pattern.lower() in lowered for pattern in self.deny_patterns if pattern)

    def is_path_allowed(self, path: str) -> bool:
        """Check if a path lies inside this scope.

        Relative paths are taken from ``project_root``. The path is resolved
        through symlinks before the containment check; anything that cannot
        be resolved is denied.
        """
        if self.validate():
            return False

        try:
            lexical = absolutize(path, base=self.project_root)
            canonical = canonicalize(path, base=self.project_root)
        except PathResolutionError as e:
            logger.debug("Denying unresolvable path", path=path[:200], reason=e.details.get("reason"))
            return False

        if self.matches_deny_pattern(lexical) or self.matches_deny_pattern(canonical):
            return False

        return any(is_within(canonical, root) for root in self.roots())

    def is_write_allowed(self, path: str) -> bool:
        return not self.read_only and self.is_path_allowed(path)

    def with_additional_directory(self, directory: str) -> TaskFileScope:
        """Return a copy that also admits ``directory``."""
        return self.model_copy(
            update={"allowed_directories": self.allowed_directories | {os.fspath(directory)}}
        )

    def effective_restricted_paths(self) -> frozenset[str]:
        """Sensitive directories under the user's home, for SecurityConfig merging."""
        try:
            home = str(Path.home())
        except (RuntimeError, KeyError):
            return frozenset()
        return frozenset(os.path.join(home, name) for name in SENSITIVE_DIRECTORIES)

    @classmethod
    def for_project(cls, project_root: str, read_only: bool = False) -> TaskFileScope:
        """Create a scope rooted at a project with the default deny patterns."""
        return cls(project_root=project_root, read_only=read_only)

    @classmethod
    def read_only_scope(cls, project_root: str) -> TaskFileScope:
        """Create a scope the agent can read but not write."""
        return cls(project_root=project_root, read_only=True)
