"""Unit tests for SecurityEventLog."""

from __future__ import annotations

import threading

import pytest

from agentguard.security.event_log import SecurityEventLog
from agentguard.security.models import SecurityEvent, SecurityEventType, SecuritySeverity


def make_event(description: str = "e", severity=SecuritySeverity.INFO, blocked=False, **context):
    return SecurityEvent.create(
        SecurityEventType.INVALID_INPUT,
        severity,
        description,
        context=context,
        blocked=blocked,
    )


class TestSecurityEventLog:
    """Test the bounded log."""

    def test_rejects_zero_capacity(self):
        """Test capacity must be at least one."""
        with pytest.raises(ValueError):
            SecurityEventLog(max_events=0)

    def test_append_and_snapshot(self):
        """Test events are kept oldest first."""
        log = SecurityEventLog()
        log.append(make_event("a"))
        log.append(make_event("b"))
        assert [event.description for event in log.events()] == ["a", "b"]
        assert len(log) == 2

    def test_snapshot_is_a_copy(self):
        """Test mutating the snapshot does not touch the log."""
        log = SecurityEventLog()
        log.append(make_event())
        log.events().clear()
        assert len(log) == 1

    def test_eviction(self):
        """Test the oldest event is dropped at capacity."""
        log = SecurityEventLog(max_events=2)
        for name in "abc":
            log.append(make_event(name))
        assert [event.description for event in log.events()] == ["b", "c"]

    def test_recent(self):
        """Test recent returns newest first."""
        log = SecurityEventLog()
        for name in "abcd":
            log.append(make_event(name))
        assert [event.description for event in log.recent(2)] == ["d", "c"]
        assert log.recent(0) == []
        assert len(log.recent(100)) == 4

    def test_filters(self):
        """Test severity, type and blocked filters."""
        log = SecurityEventLog()
        log.append(make_event("info"))
        log.append(make_event("high", SecuritySeverity.HIGH, blocked=True))
        log.append(
            SecurityEvent.create(SecurityEventType.CONFIG_CHANGED, SecuritySeverity.INFO, "cfg")
        )
        assert [event.description for event in log.by_severity(SecuritySeverity.HIGH)] == ["high"]
        assert len(log.by_type(SecurityEventType.INVALID_INPUT)) == 2
        assert log.counts_by_type() == {
            SecurityEventType.INVALID_INPUT: 2,
            SecurityEventType.CONFIG_CHANGED: 1,
        }
        assert log.blocked_count() == 1

    def test_find(self):
        """Test lookup by id."""
        log = SecurityEventLog()
        event = make_event(path="/tmp/x")
        log.append(event)
        assert log.find(event.id) == event
        assert log.find("missing") is None

    def test_clear(self):
        """Test clearing empties the log."""
        log = SecurityEventLog()
        log.append(make_event())
        log.clear()
        assert len(log) == 0

    def test_concurrent_appends(self):
        """Test no event is lost under concurrent appends."""
        log = SecurityEventLog(max_events=5000)

        def worker():
            for _ in range(250):
                log.append(make_event())

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(log) == 2000
        assert len({event.id for event in log.events()}) == 2000
