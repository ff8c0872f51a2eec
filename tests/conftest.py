"""Shared test fixtures and configuration."""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Any, Generator

import pytest

from agentguard.security import (
    CommandSandbox,
    SecurityConfig,
    SecurityEventLog,
    TaskFileScope,
)


# ============================================================================
# PYTEST CONFIG & MARKERS
# ============================================================================


def pytest_configure(config: Any) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test (fast, no I/O)")
    config.addinivalue_line(
        "markers", "filesystem: mark test as touching a temporary directory"
    )


# ============================================================================
# SHARED FIXTURES
# ============================================================================


@pytest.fixture
def temp_workspace() -> Generator[Path, None, None]:
    """Create a temporary workspace directory (symlinks resolved)."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def project_dir(temp_workspace: Path) -> Path:
    """A project tree with source files and a nested credential store."""
    project = temp_workspace / "proj"
    (project / "src").mkdir(parents=True)
    (project / "src" / "Main.kt").write_text("fun main() {}\n")
    (project / ".ssh").mkdir()
    (project / ".ssh" / "id_rsa").write_text("PRIVATE KEY\n")
    return project


@pytest.fixture
def workspace_config() -> SecurityConfig:
    """Default policy with restricted paths that never cover temp dirs."""
    return SecurityConfig(restricted_paths=frozenset({"/etc", "/usr", "/bin", "/sbin"}))


@pytest.fixture
def scope(project_dir: Path) -> TaskFileScope:
    """Writable scope over the test project."""
    return TaskFileScope.for_project(str(project_dir))


@pytest.fixture
def sandbox() -> CommandSandbox:
    """Sandbox with the default config and a private event log."""
    return CommandSandbox(event_log=SecurityEventLog())
