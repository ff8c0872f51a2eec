"""Factory for wiring a CommandSandbox from host settings."""

from __future__ import annotations

from typing import Optional

import structlog

from agentguard.security.config import SecurityConfig, SecurityPreset
from agentguard.security.event_log import SecurityEventLog
from agentguard.security.file_access import TaskScopedFileAccess
from agentguard.security.sandbox import CommandSandbox
from agentguard.security.scope import TaskFileScope
from agentguard.settings import GuardSettings, get_settings

logger = structlog.get_logger()


def create_security_config(settings: GuardSettings) -> SecurityConfig:
    """Build the starting policy from the configured preset.

    Args:
        settings: Host settings.

    Returns:
        SecurityConfig for the preset, with the file size override applied.
    """
    config = SecurityPreset(settings.security_preset).to_config()
    if settings.max_file_size is not None:
        config = config.model_copy(update={"max_file_size": settings.max_file_size})
    return config


def create_command_sandbox(settings: Optional[GuardSettings] = None) -> CommandSandbox:
    """Create the sandbox a host process owns.

    Each call returns an independent sandbox with its own event log.
    """
    settings = settings or get_settings()
    sandbox = CommandSandbox(
        config=create_security_config(settings),
        event_log=SecurityEventLog(max_events=settings.max_event_log_size),
    )
    logger.info(
        "Command sandbox created",
        preset=settings.security_preset,
        max_event_log_size=settings.max_event_log_size,
    )
    return sandbox


def create_task_file_access(
    sandbox: CommandSandbox,
    project_root: str,
    read_only: bool = False,
    allowed_directories: Optional[list[str]] = None,
) -> TaskScopedFileAccess:
    """Start an agent task: scope it to a project and snapshot the policy.

    The config snapshot also restricts the user's credential directories,
    and later ``update_config`` calls on the sandbox do not affect it.

    Raises:
        ScopeConfigurationError: If the scope is not absolute
    """
    scope = TaskFileScope(
        project_root=project_root,
        allowed_directories=frozenset(allowed_directories or ()),
        read_only=read_only,
    ).require_valid()
    snapshot = sandbox.get_config().with_task_scope(scope)
    return TaskScopedFileAccess(scope, global_config=snapshot, sandbox=sandbox)
