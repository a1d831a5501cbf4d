"""
Royalty Splitter - Audit Trail

Keeps the most recent update record per work and an append-only log of
every committed mutation.
"""

import secrets
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

# Most recent events written by to_dict; older events stay in memory only
PERSISTED_EVENT_LIMIT = 1000


@dataclass(frozen=True)
class UpdateRecord:
    """Last update of a work's split."""

    timestamp: int  # Logical clock value (block height or unix seconds)
    updater: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"timestamp": self.timestamp, "updater": self.updater}


@dataclass
class AuditEvent:
    """Internal event for audit trail."""

    event_id: str
    event_type: str
    timestamp: str
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "event_id": self.event_id,
            "event_type": self.event_type,
            "timestamp": self.timestamp,
            "data": self.data,
        }


class AuditTrail:
    """Recorder for split updates and committed operations."""

    def __init__(self):
        self.update_records: dict[int, UpdateRecord] = {}
        self.events: list[AuditEvent] = []

    def record_update(self, work_id: int, timestamp: int, updater: str) -> UpdateRecord:
        """Overwrite the update record for a work."""
        record = UpdateRecord(timestamp=timestamp, updater=updater)
        self.update_records[work_id] = record
        return record

    def get_update_record(self, work_id: int) -> UpdateRecord | None:
        """Last update of a work, or None if it was never updated."""
        return self.update_records.get(work_id)

    def emit(self, event_type: str, data: dict[str, Any]) -> AuditEvent:
        """Append an event to the log."""
        event = AuditEvent(
            event_id=f"evt_{secrets.token_hex(8)}",
            event_type=event_type,
            timestamp=datetime.now(UTC).isoformat(),
            data=data,
        )
        self.events.append(event)
        return event

    def get_events(
        self,
        work_id: int | None = None,
        event_type: str | None = None,
    ) -> list[AuditEvent]:
        """Get events with optional filters."""
        results = []
        for event in self.events:
            if work_id is not None and event.data.get("work_id") != work_id:
                continue
            if event_type and event.event_type != event_type:
                continue
            results.append(event)
        return results

    def to_dict(self, event_limit: int | None = PERSISTED_EVENT_LIMIT) -> dict[str, Any]:
        """
        Convert to dictionary.

        Update records are always complete; only the newest ``event_limit``
        events are included (all of them when None).
        """
        events = self.events
        if event_limit is not None:
            events = events[max(len(events) - event_limit, 0):]
        return {
            "update_records": {
                str(work_id): record.to_dict()
                for work_id, record in self.update_records.items()
            },
            "events": [e.to_dict() for e in events],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AuditTrail":
        """Rebuild from a dictionary produced by ``to_dict``."""
        trail = cls()
        for work_id, record in data.get("update_records", {}).items():
            trail.update_records[int(work_id)] = UpdateRecord(
                timestamp=int(record["timestamp"]),
                updater=record["updater"],
            )
        for event in data.get("events", []):
            trail.events.append(
                AuditEvent(
                    event_id=event["event_id"],
                    event_type=event["event_type"],
                    timestamp=event["timestamp"],
                    data=event.get("data", {}),
                )
            )
        return trail
