"""Base models shared across components."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class AuditRecord:
    """Immutable audit log entry emitted alongside a committed state change."""

    sequence: int  # 1-based, gap-free, assigned at commit
    event_type: str  # component.action (e.g., rule.created)
    emitted_at: int  # clock seconds of the emitting operation
    source: str  # Address of the emitting component
    subject: str  # Rule id or account affected
    data: dict = field(default_factory=dict)
