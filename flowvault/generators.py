"""Synthetic accounts and rule requests for simulations."""

from __future__ import annotations

import random
from dataclasses import dataclass

from faker import Faker

from flowvault.models.enums import ActionKind, Schedule, TriggerKind


class BaseGenerator:
    """Common Faker setup with seed-based reproducibility.

    Parameters
    ----------
    seed : int | None
        Random seed for reproducibility.
    locale : str
        Faker locale (default ``en_US``).
    """

    def __init__(self, seed: int | None = None, locale: str = "en_US") -> None:
        self.fake = Faker(locale)
        if seed is not None:
            self.fake.seed_instance(seed)
            random.seed(seed)


class AccountGenerator(BaseGenerator):
    """Generate unique account identifiers such as ``acct-jsmith-3f9a1c``."""

    def generate(self) -> str:
        handle = self.fake.user_name().lower()
        return f"acct-{handle}-{self.fake.hexify('^^^^^^')}"

    def generate_many(self, count: int) -> list[str]:
        """Generate ``count`` distinct account identifiers."""
        accounts: list[str] = []
        seen: set[str] = set()
        while len(accounts) < count:
            account = self.generate()
            if account not in seen:
                seen.add(account)
                accounts.append(account)
        return accounts


@dataclass
class RuleRequest:
    """Arguments for ``AutomationEngine.create_rule``."""

    template_name: str
    trigger_kind: TriggerKind
    schedule: Schedule
    action_kind: ActionKind
    recipient: str | None
    amount: int


class RuleGenerator(BaseGenerator):
    """Generate plausible rule requests.

    Mix of templates:
    - recurring_payment: time-triggered transfer (~60%)
    - allowance: time-triggered split to one recipient (~15%)
    - pay_on_demand: manual transfer (~15%)
    - auto_compound: time-triggered compound (~10%)
    """

    TEMPLATES = ["recurring_payment", "allowance", "pay_on_demand", "auto_compound"]
    TEMPLATE_WEIGHTS = [0.60, 0.15, 0.15, 0.10]

    SCHEDULES = list(Schedule)
    SCHEDULE_WEIGHTS = [0.5, 0.35, 0.15]

    def generate(self, recipients: list[str], max_amount: int) -> RuleRequest:
        """Generate one rule request.

        Parameters
        ----------
        recipients : list[str]
            Candidate recipient accounts.
        max_amount : int
            Upper bound of the per-execution amount.
        """
        template = random.choices(self.TEMPLATES, weights=self.TEMPLATE_WEIGHTS, k=1)[0]
        schedule = random.choices(self.SCHEDULES, weights=self.SCHEDULE_WEIGHTS, k=1)[0]
        label = f"{template}: {self.fake.catch_phrase()}"
        amount = random.randint(1, max(1, max_amount))

        if template == "auto_compound":
            return RuleRequest(label, TriggerKind.TIME, schedule, ActionKind.COMPOUND, None, 0)

        recipient = random.choice(recipients) if recipients else None
        if template == "pay_on_demand":
            return RuleRequest(
                label, TriggerKind.MANUAL, schedule, ActionKind.TRANSFER, recipient, amount
            )
        action = ActionKind.SPLIT if template == "allowance" else ActionKind.TRANSFER
        return RuleRequest(label, TriggerKind.TIME, schedule, action, recipient, amount)
