"""Condition evaluators for condition-triggered rules."""

from flowvault.models.rule import AutomationRule


class ConditionEvaluator:
    """Decides whether a condition-triggered rule may run now."""

    def evaluate(self, rule: AutomationRule) -> bool:
        raise NotImplementedError


class AlwaysTrue(ConditionEvaluator):
    """Accepts every rule.

    Unsafe if left unguarded: with this evaluator any caller can fire any
    condition-triggered rule at any time, and the engine performs no
    ownership check for that trigger kind.
    """

    def evaluate(self, rule: AutomationRule) -> bool:
        return True
