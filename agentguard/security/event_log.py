"""In-memory audit log for security events."""

from __future__ import annotations

import threading
from collections import Counter, deque
from typing import Optional

import structlog

from agentguard.security.models import SecurityEvent, SecurityEventType, SecuritySeverity

logger = structlog.get_logger()

DEFAULT_MAX_EVENTS = 1000


class SecurityEventLog:
    """Bounded, append-only, thread-safe event log.

    One instance is owned by each CommandSandbox and may be shared with the
    TaskScopedFileAccess validators of that host. When full, the oldest
    event is evicted. Persistence and export are up to the host.
    """

    def __init__(self, max_events: int = DEFAULT_MAX_EVENTS):
        """Initialize the log.

        Args:
            max_events: Maximum events retained before the oldest is dropped
        """
        if max_events < 1:
            raise ValueError(f"max_events must be at least 1, got {max_events}")
        self.max_events = max_events
        self._events: deque[SecurityEvent] = deque(maxlen=max_events)
        self._lock = threading.Lock()

    def append(self, event: SecurityEvent) -> None:
        """Record an event and mirror it to the structured log."""
        with self._lock:
            self._events.append(event)

        log = getattr(logger, event.type.log_level, logger.info)
        log(
            "Security event",
            event_id=event.id,
            event_type=event.type.value,
            severity=event.severity.name,
            blocked=event.blocked,
            description=event.description,
            **{f"ctx_{key}": value for key, value in event.context.items()},
        )

    def events(self) -> list[SecurityEvent]:
        """Snapshot of all events, oldest first."""
        with self._lock:
            return list(self._events)

    def recent(self, count: int = 10) -> list[SecurityEvent]:
        """Most recent events, newest first."""
        if count <= 0:
            return []
        with self._lock:
            snapshot = list(self._events)
        return list(reversed(snapshot[-count:]))

    def by_severity(self, min_severity: SecuritySeverity) -> list[SecurityEvent]:
        return [event for event in self.events() if event.severity >= min_severity]

    def by_type(self, event_type: SecurityEventType) -> list[SecurityEvent]:
        return [event for event in self.events() if event.type is event_type]

    def counts_by_type(self) -> dict[SecurityEventType, int]:
        return dict(Counter(event.type for event in self.events()))

    def blocked_count(self) -> int:
        return sum(1 for event in self.events() if event.blocked)

    def find(self, event_id: str) -> Optional[SecurityEvent]:
        for event in self.events():
            if event.id == event_id:
                return event
        return None

    def clear(self) -> None:
        with self._lock:
            self._events.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def __repr__(self) -> str:
        return f"SecurityEventLog(events={len(self)}, max_events={self.max_events})"
