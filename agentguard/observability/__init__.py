"""Observability utilities for agentguard.

Provides structured logging with OpenTelemetry trace correlation.
"""

from agentguard.observability.logging import setup_logging

__all__ = ["setup_logging"]
