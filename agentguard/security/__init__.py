"""Security policy engine for agent file and process requests.

Validates every command, path, and piece of untrusted text before the host
acts on it. Nothing here performs the I/O or launches the process.
"""

from agentguard.security.config import (
    DEFAULT_ALLOWED_COMMANDS,
    DEFAULT_BLOCKED_PATTERNS,
    DEFAULT_RESTRICTED_PATHS,
    SecurityConfig,
    SecurityPreset,
    extract_executable,
)
from agentguard.security.event_log import SecurityEventLog
from agentguard.security.factory import (
    create_command_sandbox,
    create_security_config,
    create_task_file_access,
)
from agentguard.security.file_access import TaskScopedFileAccess, check_file_size
from agentguard.security.models import (
    ConfirmationLevel,
    SecurityEvent,
    SecurityEventType,
    SecurityIssue,
    SecuritySeverity,
    ValidationResult,
)
from agentguard.security.patterns import (
    DANGEROUS_PATTERNS,
    PATTERN_TABLE_VERSION,
    DangerousPattern,
    match_dangerous_patterns,
)
from agentguard.security.sandbox import CommandSandbox
from agentguard.security.scope import DEFAULT_DENY_PATTERNS, SENSITIVE_DIRECTORIES, TaskFileScope

__all__ = [
    "DANGEROUS_PATTERNS",
    "DEFAULT_ALLOWED_COMMANDS",
    "DEFAULT_BLOCKED_PATTERNS",
    "DEFAULT_DENY_PATTERNS",
    "DEFAULT_RESTRICTED_PATHS",
    "PATTERN_TABLE_VERSION",
    "SENSITIVE_DIRECTORIES",
    "CommandSandbox",
    "ConfirmationLevel",
    "DangerousPattern",
    "SecurityConfig",
    "SecurityEvent",
    "SecurityEventLog",
    "SecurityEventType",
    "SecurityIssue",
    "SecurityPreset",
    "SecuritySeverity",
    "TaskFileScope",
    "TaskScopedFileAccess",
    "ValidationResult",
    "check_file_size",
    "create_command_sandbox",
    "create_security_config",
    "create_task_file_access",
    "extract_executable",
    "match_dangerous_patterns",
]
