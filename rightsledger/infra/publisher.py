"""Audit outbox: publishes committed audit events to an EventBus.

Instruments and the registry keep their own append-only event logs (the
source of truth). The publisher remembers, per source, how many events it
has already delivered and only ever publishes the remainder, in order.
A bus failure stops the flush at the failing event; the next flush resumes
there, so no event is skipped or published twice by the same publisher.
Only the topics in AUDIT_TOPICS are accepted.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import final

from rightsledger.core.errors import PERSISTENCE_ERROR, PersistenceError
from rightsledger.core.result import Err, Ok
from rightsledger.core.serialization import canonical_bytes
from rightsledger.core.types import UtcDatetime
from rightsledger.infra.config import AUDIT_TOPICS
from rightsledger.infra.protocols import EventBus
from rightsledger.instrument.events import AuditEvent


@final
class AuditPublisher:
    """Cursor-tracking publisher over an EventBus."""

    def __init__(self, bus: EventBus) -> None:
        self._bus = bus
        self._cursors: dict[str, int] = {}

    def cursor(self, source_id: str) -> int:
        """Number of events from source_id already published."""
        return self._cursors.get(source_id, 0)

    def publish_pending(
        self, topic: str, source_id: str, events: Sequence[AuditEvent],
    ) -> Ok[int] | Err[PersistenceError]:
        """Publish events[cursor:] keyed by source_id. Returns how many were sent."""
        if topic not in AUDIT_TOPICS:
            return Err(PersistenceError(
                message=f"Unknown audit topic {topic!r}",
                code=PERSISTENCE_ERROR,
                timestamp=UtcDatetime.now(),
                source="infra.publisher.AuditPublisher.publish_pending",
                operation="publish",
            ))
        start = self.cursor(source_id)
        sent = 0
        for event in events[start:]:
            match canonical_bytes(event):
                case Err(reason):
                    return Err(PersistenceError(
                        message=f"Cannot serialize {type(event).__name__}: {reason}",
                        code=PERSISTENCE_ERROR,
                        timestamp=UtcDatetime.now(),
                        source="infra.publisher.AuditPublisher.publish_pending",
                        operation="serialize",
                    ))
                case Ok(payload):
                    pass
            match self._bus.publish(topic, source_id, payload):
                case Err(e):
                    return Err(e)
                case Ok(_):
                    sent += 1
                    self._cursors[source_id] = start + sent
        return Ok(sent)
