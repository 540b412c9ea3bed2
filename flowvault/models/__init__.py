"""Domain models for automation rules, audit events and tiers."""

from flowvault.models.base import AuditRecord
from flowvault.models.enums import ActionKind, RuleStatus, Schedule, Tier, TriggerKind
from flowvault.models.events import (
    AutomationEngineSet,
    AutomationExecuted,
    Deposited,
    RewardsCompounded,
    RuleCreated,
    RuleDeleted,
    RuleExecuted,
    RuleExecutionFailed,
    RulePaused,
    RuleResumed,
    Staked,
    Unstaked,
    Withdrawn,
)
from flowvault.models.rule import AutomationRule

__all__ = [
    "ActionKind",
    "AuditRecord",
    "AutomationEngineSet",
    "AutomationExecuted",
    "AutomationRule",
    "Deposited",
    "RewardsCompounded",
    "RuleCreated",
    "RuleDeleted",
    "RuleExecuted",
    "RuleExecutionFailed",
    "RulePaused",
    "RuleResumed",
    "RuleStatus",
    "Schedule",
    "Staked",
    "Tier",
    "TriggerKind",
    "Unstaked",
    "Withdrawn",
]
