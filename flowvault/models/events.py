"""Audit event payloads emitted by the vault, the engine and the staking adapter."""

from dataclasses import dataclass
from typing import ClassVar

# Vault events


@dataclass(frozen=True)
class Deposited:
    event_type: ClassVar[str] = "vault.deposited"

    owner: str
    amount: int
    new_balance: int


@dataclass(frozen=True)
class Withdrawn:
    event_type: ClassVar[str] = "vault.withdrawn"

    owner: str
    amount: int
    new_balance: int


@dataclass(frozen=True)
class AutomationExecuted:
    """A transfer out of ``owner``'s balance performed on behalf of a rule."""

    event_type: ClassVar[str] = "vault.automation_executed"

    owner: str
    rule_id: int
    recipient: str
    amount: int


@dataclass(frozen=True)
class AutomationEngineSet:
    event_type: ClassVar[str] = "vault.automation_engine_set"

    previous: str | None
    engine: str


# Automation engine events


@dataclass(frozen=True)
class RuleCreated:
    """A new rule; kinds are carried as their integer codes."""

    event_type: ClassVar[str] = "rule.created"

    rule_id: int
    owner: str
    template_name: str
    trigger_kind: int
    schedule: int
    action_kind: int


@dataclass(frozen=True)
class RulePaused:
    event_type: ClassVar[str] = "rule.paused"

    rule_id: int
    owner: str


@dataclass(frozen=True)
class RuleResumed:
    event_type: ClassVar[str] = "rule.resumed"

    rule_id: int
    owner: str


@dataclass(frozen=True)
class RuleDeleted:
    event_type: ClassVar[str] = "rule.deleted"

    rule_id: int
    owner: str


@dataclass(frozen=True)
class RuleExecuted:
    event_type: ClassVar[str] = "rule.executed"

    rule_id: int
    owner: str
    executed_at: int


@dataclass(frozen=True)
class RuleExecutionFailed:
    """Published by a trigger source after an execution attempt was rolled back."""

    event_type: ClassVar[str] = "rule.execution_failed"

    rule_id: int
    owner: str | None
    error_code: int


# Staking events


@dataclass(frozen=True)
class Staked:
    event_type: ClassVar[str] = "staking.staked"

    owner: str
    validator: str
    amount: int


@dataclass(frozen=True)
class Unstaked:
    event_type: ClassVar[str] = "staking.unstaked"

    owner: str
    amount: int


@dataclass(frozen=True)
class RewardsCompounded:
    event_type: ClassVar[str] = "staking.rewards_compounded"

    owner: str
    amount: int
