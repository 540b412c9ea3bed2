"""Append-only audit log with fan-out to sinks."""

import logging
from dataclasses import asdict, dataclass
from typing import Any, Protocol

from flowvault.exceptions import SinkError
from flowvault.models.base import AuditRecord

logger = logging.getLogger(__name__)


class AuditSink(Protocol):
    def write_batch(self, topic: str, records: list[Any]) -> None: ...

    def close(self) -> None: ...


@dataclass(frozen=True)
class PendingEvent:
    """An event emitted inside a transaction that has not committed yet."""

    source: str
    subject: str
    emitted_at: int
    event: Any


class AuditLog:
    """Committed audit records, in commit order.

    Records are only ever appended by :meth:`publish`, which the runtime
    calls after a transaction commits, so the log never contains events of
    rolled-back operations.
    """

    def __init__(self, topic: str = "flowvault.audit") -> None:
        self.topic = topic
        self._records: list[AuditRecord] = []
        self._sinks: list[AuditSink] = []

    def __len__(self) -> int:
        return len(self._records)

    def subscribe(self, sink: AuditSink) -> None:
        self._sinks.append(sink)

    def records(self, event_type: str | None = None) -> list[AuditRecord]:
        """Return committed records, optionally filtered by event type."""
        if event_type is None:
            return list(self._records)
        return [record for record in self._records if record.event_type == event_type]

    def last(self) -> AuditRecord | None:
        return self._records[-1] if self._records else None

    def publish(self, pending: list[PendingEvent]) -> list[AuditRecord]:
        """Append committed events and forward them to every sink."""
        if not pending:
            return []

        batch = []
        for item in pending:
            record = AuditRecord(
                sequence=len(self._records) + 1,
                event_type=item.event.event_type,
                emitted_at=item.emitted_at,
                source=item.source,
                subject=item.subject,
                data=asdict(item.event),
            )
            self._records.append(record)
            batch.append(record)

        for sink in self._sinks:
            try:
                sink.write_batch(self.topic, batch)
            except Exception as exc:
                logger.error("Sink %s failed: %s", type(sink).__name__, exc)
                raise SinkError(f"Sink {type(sink).__name__} failed after commit: {exc}") from exc

        return batch

    def close(self) -> None:
        for sink in self._sinks:
            sink.close()
