"""Tier policy: external holdings to tier, tier to rule limit."""

from collections.abc import Mapping

from flowvault.config import TierConfig
from flowvault.models.enums import Tier


def tier_for_holdings(holdings: int, thresholds: TierConfig | None = None) -> Tier:
    """Map an account's token holdings (base units) to its tier.

    Parameters
    ----------
    holdings : int
        Holdings in base units.
    thresholds : TierConfig | None
        Tier thresholds (default: 100 / 500 / 1000 tokens).

    Returns
    -------
    Tier
        Highest tier whose threshold the holdings reach.
    """
    thresholds = thresholds or TierConfig()
    if holdings >= thresholds.gold_threshold:
        return Tier.GOLD
    if holdings >= thresholds.silver_threshold:
        return Tier.SILVER
    if holdings >= thresholds.bronze_threshold:
        return Tier.BRONZE
    return Tier.STARTER


class HoldingsOracle:
    """Source of an account's external token holdings."""

    def holdings_of(self, account: str) -> int:
        raise NotImplementedError


class StaticHoldingsOracle(HoldingsOracle):
    """Reports the same holdings for every account (0 puts everyone at STARTER)."""

    def __init__(self, holdings: int = 0) -> None:
        self.holdings = holdings

    def holdings_of(self, account: str) -> int:
        return self.holdings


class MappingHoldingsOracle(HoldingsOracle):
    """Looks holdings up in a mapping, defaulting to zero."""

    def __init__(self, holdings: Mapping[str, int] | None = None) -> None:
        self.holdings = dict(holdings or {})

    def holdings_of(self, account: str) -> int:
        return self.holdings.get(account, 0)


class TierPolicy:
    """Resolve tiers and rule limits for accounts."""

    def __init__(
        self,
        oracle: HoldingsOracle | None = None,
        thresholds: TierConfig | None = None,
    ) -> None:
        self.thresholds = thresholds or TierConfig()
        self.oracle = oracle or StaticHoldingsOracle(self.thresholds.default_holdings)

    def tier_of(self, account: str) -> Tier:
        return tier_for_holdings(self.oracle.holdings_of(account), self.thresholds)

    def max_rules_for(self, account: str) -> int | None:
        return self.tier_of(account).max_rules

    def allows(self, account: str, current_count: int) -> bool:
        """Whether an account holding ``current_count`` rules may create another."""
        limit = self.max_rules_for(account)
        return limit is None or current_count < limit
