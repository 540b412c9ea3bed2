"""Automation engine: rule lifecycle, due-date scheduling and execution."""

import logging

from flowvault.amounts import validate_amount
from flowvault.conditions import AlwaysTrue, ConditionEvaluator
from flowvault.exceptions import (
    ConditionNotMetError,
    InvalidRuleConfigError,
    MaxRulesReachedError,
    NotRuleOwnerError,
    RuleAlreadyPausedError,
    RuleNotActiveError,
    RuleNotFoundError,
    RuleNotPausedError,
    TriggerTimeNotReachedError,
    UnauthorizedAdminError,
)
from flowvault.models.enums import ActionKind, RuleStatus, Schedule, Tier, TriggerKind
from flowvault.models.events import (
    RuleCreated,
    RuleDeleted,
    RuleExecuted,
    RulePaused,
    RuleResumed,
)
from flowvault.models.rule import AutomationRule
from flowvault.runtime import Runtime
from flowvault.store.rules import RuleStore
from flowvault.tier import TierPolicy
from flowvault.vault import AutomationVault

logger = logging.getLogger(__name__)


class AutomationEngine:
    """Manages automation rules for all accounts.

    Accounts create, pause, resume and delete their own rules. Any trigger
    source (a keeper or cron job) may call :meth:`execute_rule`; the engine
    checks due-ness and ownership itself and moves funds only through the
    vault's authorized transfer entry point.
    """

    def __init__(
        self,
        runtime: Runtime,
        admin: str,
        address: str = "engine",
        vault: AutomationVault | None = None,
        tier_policy: TierPolicy | None = None,
        condition_evaluator: ConditionEvaluator | None = None,
    ) -> None:
        self.runtime = runtime
        self.admin = admin
        self.address = address
        self.vault = vault
        self.tier_policy = tier_policy or TierPolicy()
        self.condition_evaluator = condition_evaluator or AlwaysTrue()
        self.rules = RuleStore(runtime.store, prefix=address)

    # Lifecycle

    def create_rule(
        self,
        caller: str,
        template_name: str,
        trigger_kind: TriggerKind,
        schedule: Schedule,
        action_kind: ActionKind,
        recipient: str | None = None,
        amount: int = 0,
    ) -> int:
        """Create an active rule owned by ``caller``.

        Parameters
        ----------
        caller : str
            Account creating the rule; becomes its owner.
        template_name : str
            Display label (e.g., "recurring_payment").
        trigger_kind : TriggerKind
            What makes the rule eligible to run.
        schedule : Schedule
            Frequency for time-triggered rules.
        action_kind : ActionKind
            What the rule does when it runs.
        recipient : str | None
            Target account for transfer-class actions.
        amount : int
            Amount moved per execution.

        Returns
        -------
        int
            The new rule id.

        Raises
        ------
        MaxRulesReachedError
            If the caller already holds as many rules as their tier allows.
        """
        trigger_kind = TriggerKind(trigger_kind)
        schedule = Schedule(schedule)
        action_kind = ActionKind(action_kind)
        validate_amount(amount)

        with self.runtime.transaction():
            current_count = self.rules.active_count(caller)
            if not self.tier_policy.allows(caller, current_count):
                tier = self.tier_policy.tier_of(caller)
                raise MaxRulesReachedError(
                    f"{caller} has {current_count} rules, the {tier.value} tier limit"
                )

            rule_id = self.rules.allocate_id()
            now = self.runtime.now()
            rule = AutomationRule(
                rule_id=rule_id,
                owner=caller,
                trigger_kind=trigger_kind,
                schedule=schedule,
                action_kind=action_kind,
                status=RuleStatus.ACTIVE,
                template_name=template_name,
                recipient=recipient,
                amount=amount,
                next_execution=schedule.next_after(now),
            )
            self.rules.put(rule)
            self.rules.append_rule_id(caller, rule_id)
            self.rules.set_active_count(caller, current_count + 1)
            self.runtime.emit(
                self.address,
                rule_id,
                RuleCreated(
                    rule_id=rule_id,
                    owner=caller,
                    template_name=template_name,
                    trigger_kind=trigger_kind.code,
                    schedule=schedule.code,
                    action_kind=action_kind.code,
                ),
            )

        logger.info(
            "Rule %d created by %s (%s %s %s)",
            rule_id,
            caller,
            trigger_kind.value,
            schedule.value,
            action_kind.value,
            extra={"rule_id": rule_id, "account": caller},
        )
        return rule_id

    def pause_rule(self, caller: str, rule_id: int) -> None:
        with self.runtime.transaction():
            rule = self._get_owned_rule(caller, rule_id)
            if rule.status == RuleStatus.PAUSED:
                raise RuleAlreadyPausedError(f"Rule {rule_id} is already paused")
            rule.status = RuleStatus.PAUSED
            self.rules.put(rule)
            self.runtime.emit(self.address, rule_id, RulePaused(rule_id=rule_id, owner=caller))
        logger.info("Rule %d paused", rule_id)

    def resume_rule(self, caller: str, rule_id: int) -> None:
        """Reactivate a paused rule, rescheduling it from the current time."""
        with self.runtime.transaction():
            rule = self._get_owned_rule(caller, rule_id)
            if rule.status == RuleStatus.ACTIVE:
                raise RuleNotPausedError(f"Rule {rule_id} is not paused")
            rule.status = RuleStatus.ACTIVE
            rule.next_execution = rule.schedule.next_after(self.runtime.now())
            self.rules.put(rule)
            self.runtime.emit(self.address, rule_id, RuleResumed(rule_id=rule_id, owner=caller))
        logger.info("Rule %d resumed, next execution at %d", rule_id, rule.next_execution)

    def delete_rule(self, caller: str, rule_id: int) -> None:
        """Retire an active or paused rule for good.

        The record stays in the store with status DELETED; deleting it again
        raises :class:`RuleNotFoundError`.
        """
        with self.runtime.transaction():
            rule = self._get_owned_rule(caller, rule_id)
            rule.status = RuleStatus.DELETED
            self.rules.put(rule)
            current_count = self.rules.active_count(caller)
            if current_count > 0:
                self.rules.set_active_count(caller, current_count - 1)
            self.runtime.emit(self.address, rule_id, RuleDeleted(rule_id=rule_id, owner=caller))
        logger.info("Rule %d deleted by %s", rule_id, caller)

    # Execution

    def execute_rule(self, caller: str, rule_id: int) -> AutomationRule:
        """Run a rule if it is due, then reschedule it.

        Time rules may be run by anyone once due. Manual rules only by their
        owner, at any time. Condition rules by anyone whenever the condition
        evaluator accepts them.

        Returns
        -------
        AutomationRule
            The rule record after bookkeeping.
        """
        with self.runtime.transaction():
            now = self.runtime.now()
            rule = self._get_rule_or_raise(rule_id)
            if rule.status != RuleStatus.ACTIVE:
                raise RuleNotActiveError(f"Rule {rule_id} is {rule.status.value.lower()}")

            if rule.trigger_kind == TriggerKind.TIME:
                if not rule.is_due(now):
                    raise TriggerTimeNotReachedError(
                        f"Rule {rule_id} is due at {rule.next_execution}, now is {now}"
                    )
            elif rule.trigger_kind == TriggerKind.MANUAL:
                if caller != rule.owner:
                    raise NotRuleOwnerError(f"{caller} does not own manual rule {rule_id}")
            elif rule.trigger_kind == TriggerKind.CONDITION:
                if not self.condition_evaluator.evaluate(rule):
                    raise ConditionNotMetError(f"Condition for rule {rule_id} is not met")

            rule.last_executed = now
            rule.next_execution = rule.schedule.next_after(now)
            rule.execution_count += 1
            self.rules.put(rule)
            # The vault payout is the last side effect of the call
            self._dispatch(rule)
            self.runtime.emit(
                self.address,
                rule_id,
                RuleExecuted(rule_id=rule_id, owner=rule.owner, executed_at=now),
            )

        logger.info(
            "Rule %d executed by %s (count=%d, next=%d)",
            rule_id,
            caller,
            rule.execution_count,
            rule.next_execution,
            extra={"rule_id": rule_id, "account": rule.owner},
        )
        return rule

    def _dispatch(self, rule: AutomationRule) -> None:
        if rule.action_kind == ActionKind.TRANSFER:
            self._transfer(rule)
        elif rule.action_kind == ActionKind.SPLIT:
            # Single recipient until multi-recipient splits exist
            self._transfer(rule)
        elif rule.action_kind == ActionKind.COMPOUND:
            logger.debug("Rule %d: compound action is a no-op", rule.rule_id)

    def _transfer(self, rule: AutomationRule) -> None:
        if self.vault is None:
            raise InvalidRuleConfigError("Engine has no vault configured")
        if rule.recipient is None:
            raise InvalidRuleConfigError(f"Rule {rule.rule_id} has no recipient")
        self.vault.execute_transfer(
            self.address, rule.owner, rule.recipient, rule.amount, rule.rule_id
        )

    # Configuration

    def set_vault(self, caller: str, vault: AutomationVault) -> None:
        if caller != self.admin:
            raise UnauthorizedAdminError(f"{caller} is not the engine admin")
        with self.runtime.snapshot():
            self.vault = vault
        logger.info("Engine %s now uses vault %s", self.address, vault.address)

    # Queries

    def get_rule(self, rule_id: int) -> AutomationRule | None:
        with self.runtime.snapshot():
            return self.rules.get(rule_id)

    def get_user_rule_ids(self, owner: str) -> list[int]:
        """Every rule id ever created by ``owner``, deleted ones included."""
        with self.runtime.snapshot():
            return self.rules.rule_ids_for(owner)

    def get_user_rule_count(self, owner: str) -> int:
        with self.runtime.snapshot():
            return self.rules.active_count(owner)

    def get_user_tier(self, owner: str) -> Tier:
        return self.tier_policy.tier_of(owner)

    def rules_due(self, now: int | None = None) -> list[AutomationRule]:
        """Active time-triggered rules whose next execution has been reached."""
        with self.runtime.snapshot():
            now = self.runtime.now() if now is None else now
            return [
                rule
                for rule in self.rules.all_rules()
                if rule.is_active and rule.trigger_kind == TriggerKind.TIME and rule.is_due(now)
            ]

    # Internal

    def _get_rule_or_raise(self, rule_id: int) -> AutomationRule:
        rule = self.rules.get(rule_id)
        if rule is None:
            raise RuleNotFoundError(f"Rule {rule_id} not found")
        return rule

    def _get_owned_rule(self, caller: str, rule_id: int) -> AutomationRule:
        """Fetch a live (active or paused) rule owned by ``caller``."""
        rule = self._get_rule_or_raise(rule_id)
        if rule.owner != caller:
            raise NotRuleOwnerError(f"{caller} does not own rule {rule_id}")
        if rule.is_deleted:
            raise RuleNotFoundError(f"Rule {rule_id} was deleted")
        return rule
