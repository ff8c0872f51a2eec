"""Structured logging setup with OpenTelemetry correlation."""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

import structlog
from opentelemetry import trace

if TYPE_CHECKING:
    from agentguard.settings import GuardSettings


def _add_trace_context(logger, method_name, event_dict):
    """Add OpenTelemetry trace context to log entries.

    When the host runs validation inside a span, audit log lines carry the
    trace_id and span_id so they can be joined with the host's traces.
    """
    span_context = trace.get_current_span().get_span_context()

    if span_context.is_valid:
        event_dict["trace_id"] = format(span_context.trace_id, "032x")
        event_dict["span_id"] = format(span_context.span_id, "016x")
        event_dict["trace_flags"] = format(span_context.trace_flags, "02x")

    return event_dict


def setup_logging(settings: GuardSettings) -> None:
    """Configure structlog for the engine.

    In production (debug=false) logs are JSON with trace context. In debug
    mode they are rendered for the console with colors.
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        _add_trace_context,
        structlog.processors.dict_tracebacks,
    ]

    final_renderer = (
        structlog.dev.ConsoleRenderer(colors=True)
        if settings.debug
        else structlog.processors.JSONRenderer()
    )

    # Bridge standard library logging so host libraries share the output
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )

    structlog.configure(
        processors=[
            *shared_processors,
            final_renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logger = structlog.get_logger()
    logger.info(
        "Logging configured",
        log_level=settings.log_level,
        debug_mode=settings.debug,
        trace_correlation=True,
    )
