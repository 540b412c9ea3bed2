"""Automation rule record."""

from dataclasses import dataclass
from typing import Any

from flowvault.models.enums import ActionKind, RuleStatus, Schedule, TriggerKind


@dataclass
class AutomationRule:
    """A persisted automation instruction owned by an account.

    ``schedule`` is always present but only drives time-triggered rules.
    ``recipient`` and ``amount`` configure transfer-class actions; for
    COMPOUND rules ``amount`` is carried but unused. ``last_executed`` is 0
    until the first run.
    """

    rule_id: int
    owner: str
    trigger_kind: TriggerKind
    schedule: Schedule
    action_kind: ActionKind
    status: RuleStatus
    template_name: str
    recipient: str | None
    amount: int
    last_executed: int = 0
    next_execution: int = 0
    execution_count: int = 0

    @property
    def is_active(self) -> bool:
        return self.status == RuleStatus.ACTIVE

    @property
    def is_deleted(self) -> bool:
        return self.status == RuleStatus.DELETED

    def is_due(self, now: int) -> bool:
        """Whether a time-triggered rule has reached its next execution time."""
        return now >= self.next_execution

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-compatible dict for storage backends."""
        return {
            "rule_id": self.rule_id,
            "owner": self.owner,
            "trigger_kind": self.trigger_kind.value,
            "schedule": self.schedule.value,
            "action_kind": self.action_kind.value,
            "status": self.status.value,
            "template_name": self.template_name,
            "recipient": self.recipient,
            "amount": self.amount,
            "last_executed": self.last_executed,
            "next_execution": self.next_execution,
            "execution_count": self.execution_count,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AutomationRule":
        """Rebuild a rule from :meth:`to_dict` output."""
        return cls(
            rule_id=int(data["rule_id"]),
            owner=data["owner"],
            trigger_kind=TriggerKind(data["trigger_kind"]),
            schedule=Schedule(data["schedule"]),
            action_kind=ActionKind(data["action_kind"]),
            status=RuleStatus(data["status"]),
            template_name=data["template_name"],
            recipient=data.get("recipient"),
            amount=int(data["amount"]),
            last_executed=int(data.get("last_executed", 0)),
            next_execution=int(data.get("next_execution", 0)),
            execution_count=int(data.get("execution_count", 0)),
        )
