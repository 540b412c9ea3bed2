"""Persisted rule records and per-account indexes."""

from flowvault.models.rule import AutomationRule
from flowvault.store.base import KeyValueStore


class RuleStore:
    """Rule records keyed by id, plus per-account history and active counts.

    The per-account id list is append-only history (deleted rules stay in
    it); the active count is maintained separately for tier limits.
    """

    def __init__(self, store: KeyValueStore, prefix: str = "engine") -> None:
        self._store = store
        self._rules = f"{prefix}:rules"
        self._user_rules = f"{prefix}:user_rules"
        self._user_rule_count = f"{prefix}:user_rule_count"
        self._meta = f"{prefix}:meta"

    def allocate_id(self) -> int:
        """Reserve the next rule id (1, 2, 3, ...)."""
        rule_id = int(self._store.get(self._meta, "next_rule_id", 1))
        self._store.put(self._meta, "next_rule_id", rule_id + 1)
        return rule_id

    def get(self, rule_id: int) -> AutomationRule | None:
        data = self._store.get(self._rules, str(rule_id))
        return AutomationRule.from_dict(data) if data is not None else None

    def put(self, rule: AutomationRule) -> None:
        self._store.put(self._rules, str(rule.rule_id), rule.to_dict())

    def all_rules(self) -> list[AutomationRule]:
        rules = [AutomationRule.from_dict(data) for _, data in self._store.items(self._rules)]
        return sorted(rules, key=lambda rule: rule.rule_id)

    def rule_ids_for(self, owner: str) -> list[int]:
        return [int(rule_id) for rule_id in self._store.get(self._user_rules, owner, [])]

    def append_rule_id(self, owner: str, rule_id: int) -> None:
        rule_ids = self.rule_ids_for(owner)
        rule_ids.append(rule_id)
        self._store.put(self._user_rules, owner, rule_ids)

    def active_count(self, owner: str) -> int:
        return int(self._store.get(self._user_rule_count, owner, 0))

    def set_active_count(self, owner: str, count: int) -> None:
        self._store.put(self._user_rule_count, owner, count)
