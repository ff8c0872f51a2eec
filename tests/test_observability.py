"""Tests for the observability module (structured logging)."""

from __future__ import annotations

from unittest.mock import Mock, patch

from opentelemetry import trace
from opentelemetry.trace import NonRecordingSpan, SpanContext, TraceFlags

from agentguard.observability.logging import _add_trace_context, setup_logging
from agentguard.settings import GuardSettings


class TestLoggingSetup:
    """Test logging.py module."""

    @patch("structlog.configure")
    def test_setup_logging_debug_mode(self, mock_configure):
        """Test logging setup in debug mode."""
        settings = Mock()
        settings.debug = True
        settings.log_level = "debug"

        setup_logging(settings)

        assert mock_configure.called

    @patch("structlog.configure")
    def test_setup_logging_production_mode(self, mock_configure):
        """Test logging setup in production mode."""
        setup_logging(GuardSettings(log_level="warning", debug=False))

        assert mock_configure.called
        processors = mock_configure.call_args.kwargs["processors"]
        assert _add_trace_context in processors

    def test_add_trace_context_without_span(self):
        """Test trace context processor without active span."""
        result = _add_trace_context(Mock(), "info", {"message": "test"})

        assert "trace_id" not in result
        assert "span_id" not in result

    def test_add_trace_context_with_span(self):
        """Test trace ids are added inside an active span."""
        span_context = SpanContext(
            trace_id=0x1234,
            span_id=0x5678,
            is_remote=False,
            trace_flags=TraceFlags(TraceFlags.SAMPLED),
        )
        with trace.use_span(NonRecordingSpan(span_context)):
            result = _add_trace_context(Mock(), "info", {"message": "test"})

        assert result["trace_id"] == format(0x1234, "032x")
        assert result["span_id"] == format(0x5678, "016x")
        assert result["trace_flags"] == "01"
