"""Tests for rule records, enums and tier policy."""

import pytest

from flowvault.config import TierConfig
from flowvault.models import (
    ActionKind,
    AutomationRule,
    RuleStatus,
    Schedule,
    Tier,
    TriggerKind,
)
from flowvault.tier import (
    MappingHoldingsOracle,
    StaticHoldingsOracle,
    TierPolicy,
    tier_for_holdings,
)

TOKEN = 1_000_000_000


@pytest.fixture
def sample_rule() -> AutomationRule:
    """Create a sample active transfer rule."""
    return AutomationRule(
        rule_id=1,
        owner="acct-alice",
        trigger_kind=TriggerKind.TIME,
        schedule=Schedule.DAILY,
        action_kind=ActionKind.TRANSFER,
        status=RuleStatus.ACTIVE,
        template_name="recurring_payment",
        recipient="acct-bob",
        amount=30,
        next_execution=86_400,
    )


class TestEnums:
    """Tests for enum values and discriminants."""

    def test_string_values(self) -> None:
        assert TriggerKind.TIME.value == "TIME"
        assert ActionKind.COMPOUND == "COMPOUND"
        assert RuleStatus("PAUSED") is RuleStatus.PAUSED

    def test_codes_follow_declaration_order(self) -> None:
        assert [kind.code for kind in TriggerKind] == [0, 1, 2]
        assert [schedule.code for schedule in Schedule] == [0, 1, 2]
        assert [kind.code for kind in ActionKind] == [0, 1, 2]

    def test_schedule_intervals(self) -> None:
        assert Schedule.DAILY.interval_seconds == 86_400
        assert Schedule.WEEKLY.interval_seconds == 604_800
        assert Schedule.MONTHLY.interval_seconds == 2_592_000

    def test_next_after(self) -> None:
        assert Schedule.DAILY.next_after(1_000) == 87_400
        assert Schedule.MONTHLY.next_after(0) == 2_592_000

    def test_tier_limits(self) -> None:
        assert Tier.STARTER.max_rules == 2
        assert Tier.BRONZE.max_rules == 5
        assert Tier.SILVER.max_rules == 10
        assert Tier.GOLD.max_rules is None


class TestAutomationRule:
    """Tests for the rule record."""

    def test_flags(self, sample_rule: AutomationRule) -> None:
        assert sample_rule.is_active
        assert not sample_rule.is_deleted
        assert sample_rule.last_executed == 0
        assert sample_rule.execution_count == 0

    def test_is_due(self, sample_rule: AutomationRule) -> None:
        assert not sample_rule.is_due(86_399)
        assert sample_rule.is_due(86_400)
        assert sample_rule.is_due(90_000)

    def test_to_dict_is_json_compatible(self, sample_rule: AutomationRule) -> None:
        data = sample_rule.to_dict()

        assert data["trigger_kind"] == "TIME"
        assert data["status"] == "ACTIVE"
        assert data["amount"] == 30
        assert data["recipient"] == "acct-bob"

    def test_from_dict_restores_enums(self, sample_rule: AutomationRule) -> None:
        restored = AutomationRule.from_dict(sample_rule.to_dict())

        assert restored == sample_rule
        assert restored.schedule is Schedule.DAILY

    def test_large_amount_preserved(self, sample_rule: AutomationRule) -> None:
        sample_rule.amount = 2**256 - 1
        assert AutomationRule.from_dict(sample_rule.to_dict()).amount == 2**256 - 1


class TestTierPolicy:
    """Tests for tier resolution."""

    @pytest.mark.parametrize(
        "holdings,expected",
        [
            (0, Tier.STARTER),
            (100 * TOKEN - 1, Tier.STARTER),
            (100 * TOKEN, Tier.BRONZE),
            (500 * TOKEN, Tier.SILVER),
            (999 * TOKEN, Tier.SILVER),
            (1000 * TOKEN, Tier.GOLD),
        ],
    )
    def test_tier_for_holdings(self, holdings: int, expected: Tier) -> None:
        assert tier_for_holdings(holdings) == expected

    def test_custom_thresholds(self) -> None:
        thresholds = TierConfig(bronze_threshold=1, silver_threshold=2, gold_threshold=3)
        assert tier_for_holdings(2, thresholds) == Tier.SILVER

    def test_default_policy_is_starter(self) -> None:
        policy = TierPolicy()

        assert policy.tier_of("anyone") == Tier.STARTER
        assert policy.max_rules_for("anyone") == 2

    def test_allows(self) -> None:
        policy = TierPolicy()

        assert policy.allows("anyone", 1)
        assert not policy.allows("anyone", 2)

    def test_gold_is_unbounded(self) -> None:
        policy = TierPolicy(StaticHoldingsOracle(1000 * TOKEN))

        assert policy.tier_of("whale") == Tier.GOLD
        assert policy.allows("whale", 10_000)

    def test_mapping_oracle(self) -> None:
        policy = TierPolicy(MappingHoldingsOracle({"acct-bronze": 150 * TOKEN}))

        assert policy.tier_of("acct-bronze") == Tier.BRONZE
        assert policy.tier_of("acct-other") == Tier.STARTER
