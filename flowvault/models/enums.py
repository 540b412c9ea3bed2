"""Enumeration types for automation rules and tiers."""

from enum import Enum

SECONDS_PER_DAY = 86_400
SECONDS_PER_WEEK = 604_800
# Approximate month: 30 days
SECONDS_PER_MONTH = 2_592_000


class TriggerKind(str, Enum):
    TIME = "TIME"
    CONDITION = "CONDITION"
    MANUAL = "MANUAL"

    @property
    def code(self) -> int:
        """Integer discriminant carried in ``rule.created`` records."""
        return list(TriggerKind).index(self)


class Schedule(str, Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"

    @property
    def code(self) -> int:
        return list(Schedule).index(self)

    @property
    def interval_seconds(self) -> int:
        """Seconds between two runs of a rule on this schedule."""
        return _SCHEDULE_INTERVALS[self]

    def next_after(self, from_time: int) -> int:
        """Return the next execution time counted from ``from_time``."""
        return from_time + self.interval_seconds


_SCHEDULE_INTERVALS = {
    Schedule.DAILY: SECONDS_PER_DAY,
    Schedule.WEEKLY: SECONDS_PER_WEEK,
    Schedule.MONTHLY: SECONDS_PER_MONTH,
}


class ActionKind(str, Enum):
    TRANSFER = "TRANSFER"
    SPLIT = "SPLIT"
    COMPOUND = "COMPOUND"

    @property
    def code(self) -> int:
        return list(ActionKind).index(self)


class RuleStatus(str, Enum):
    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    DELETED = "DELETED"


class Tier(str, Enum):
    """Account tier derived from external token holdings."""

    STARTER = "STARTER"
    BRONZE = "BRONZE"
    SILVER = "SILVER"
    GOLD = "GOLD"

    @property
    def max_rules(self) -> int | None:
        """Maximum concurrently counted rules, ``None`` meaning unbounded."""
        return _TIER_LIMITS[self]


_TIER_LIMITS = {
    Tier.STARTER: 2,
    Tier.BRONZE: 5,
    Tier.SILVER: 10,
    Tier.GOLD: None,
}
