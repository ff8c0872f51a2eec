"""Versioned table of high-risk shell idioms.

The table is data, not control flow: adding or tightening a rule means
editing ``DANGEROUS_PATTERNS`` and bumping ``PATTERN_TABLE_VERSION``.
Every entry is checked against every command regardless of the allow-list.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from agentguard.security.models import SecuritySeverity

PATTERN_TABLE_VERSION = "1.1"

# Shells a download or pipeline can be fed into
_SHELL = r"(?:sudo\s+)?(?:ba|z|da|k)?sh\b"

# Targets that mean "everything": /, /*, ~, ~/, ~/*, $HOME
_WIPE_TARGET = r"(?:/\*?|~/?\*?|\$HOME/?\*?|\$\{HOME\}/?\*?)(?=\s|$|[;&|])"


@dataclass(frozen=True)
class DangerousPattern:
    """One reviewed rule."""

    name: str
    pattern: re.Pattern[str]
    severity: SecuritySeverity
    description: str

    def matches(self, command: str) -> bool:
        return self.pattern.search(command) is not None


def _rule(name: str, regex: str, severity: SecuritySeverity, description: str) -> DangerousPattern:
    return DangerousPattern(name, re.compile(regex), severity, description)


CRITICAL = SecuritySeverity.CRITICAL
HIGH = SecuritySeverity.HIGH

DANGEROUS_PATTERNS: tuple[DangerousPattern, ...] = (
    # Recursive delete of root or home
    _rule(
        "recursive_delete_root",
        r"\brm\s+(?:-\S+\s+)*-[a-zA-Z]*(?:r[a-zA-Z]*f|f[a-zA-Z]*r)[a-zA-Z]*\s+(?:-\S+\s+)*" + _WIPE_TARGET,
        CRITICAL,
        "Recursive force delete of the filesystem root or home directory",
    ),
    _rule(
        "recursive_delete_split_flags",
        r"\brm\s+(?:-\S+\s+)*-[a-zA-Z]*[rR][a-zA-Z]*\s+(?:-\S+\s+)*-[a-zA-Z]*f[a-zA-Z]*\s+(?:-\S+\s+)*" + _WIPE_TARGET,
        CRITICAL,
        "Recursive force delete of the filesystem root or home directory",
    ),
    _rule(
        "no_preserve_root",
        r"--no-preserve-root\b",
        CRITICAL,
        "Disables the safeguard against deleting /",
    ),
    # Writing to device files
    _rule(
        "device_write",
        r">\s*/dev/(?!null\b|stdout\b|stderr\b|tty\b|fd/)",
        CRITICAL,
        "Redirects output onto a device file",
    ),
    # Downloading and executing
    _rule(
        "download_pipe_to_shell",
        r"\b(?:curl|wget)\b[^|]*\|\s*" + _SHELL,
        CRITICAL,
        "Pipes downloaded content straight into a shell",
    ),
    # Piping to shell
    _rule(
        "pipe_to_shell",
        r"\|\s*" + _SHELL,
        HIGH,
        "Pipes output into a shell interpreter",
    ),
    # Dangerous permission changes
    _rule(
        "world_writable_chmod",
        r"\bchmod\s+(?:-\S+\s+)*0?777\b",
        HIGH,
        "Makes files world-writable",
    ),
    # Privilege escalation
    _rule(
        "sudo",
        r"\bsudo\s+",
        CRITICAL,
        "Privilege escalation via sudo",
    ),
    _rule(
        "switch_user",
        r"(?:^|[\s;&|(])su\s+(?:-|root\b)",
        CRITICAL,
        "Privilege escalation via su",
    ),
    _rule(
        "doas",
        r"\bdoas\s+",
        CRITICAL,
        "Privilege escalation via doas",
    ),
    # Fork bomb
    _rule(
        "fork_bomb",
        r":\(\)\s*\{\s*:\s*\|\s*:\s*&\s*\}\s*;?\s*:",
        CRITICAL,
        "Fork bomb",
    ),
    # Disk operations
    _rule(
        "make_filesystem",
        r"\bmkfs\b",
        CRITICAL,
        "Formats a filesystem",
    ),
    _rule(
        "dd_from_device",
        r"\bdd\s+(?:\S+\s+)*if=/dev/(?:zero|random|urandom)\b",
        HIGH,
        "Bulk write of device data with dd",
    ),
    _rule(
        "dd_to_device",
        r"\bdd\s+(?:\S+\s+)*of=/dev/(?!null\b)",
        CRITICAL,
        "Raw write onto a device with dd",
    ),
    # Environment manipulation
    _rule(
        "path_override",
        r"\bexport\s+PATH\s*=",
        HIGH,
        "Replaces the executable search path",
    ),
    _rule(
        "path_unset",
        r"\bunset\s+PATH\b",
        HIGH,
        "Removes the executable search path",
    ),
)


def match_dangerous_patterns(command: str) -> list[DangerousPattern]:
    """Return every table entry that matches ``command``."""
    return [rule for rule in DANGEROUS_PATTERNS if rule.matches(command)]
