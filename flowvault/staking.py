"""Staking adapter delegating custody funds to validators."""

import logging

from flowvault.amounts import checked_sub, validate_amount
from flowvault.config import StakingConfig
from flowvault.exceptions import (
    InsufficientStakingBalanceError,
    InvalidValidatorError,
    MinimumStakeNotMetError,
    UnauthorizedAdminError,
    UnauthorizedExecutorError,
)
from flowvault.models.events import RewardsCompounded, Staked, Unstaked
from flowvault.runtime import Runtime

logger = logging.getLogger(__name__)


class DelegationBackend:
    """External staking protocol."""

    def delegate(self, validator: str, amount: int) -> None:
        raise NotImplementedError

    def undelegate(self, validator: str, amount: int) -> None:
        raise NotImplementedError

    def delegated_amount(self, validator: str) -> int:
        raise NotImplementedError


class SimulatedDelegationBackend(DelegationBackend):
    """In-memory delegation book; rewards are credited explicitly."""

    def __init__(self) -> None:
        self.delegations: dict[str, int] = {}

    def delegate(self, validator: str, amount: int) -> None:
        self.delegations[validator] = self.delegations.get(validator, 0) + amount

    def undelegate(self, validator: str, amount: int) -> None:
        current = self.delegations.get(validator, 0)
        self.delegations[validator] = checked_sub(current, amount, InsufficientStakingBalanceError)

    def delegated_amount(self, validator: str) -> int:
        return self.delegations.get(validator, 0)

    def credit_rewards(self, validator: str, amount: int) -> None:
        """Simulate validator rewards accruing on the delegation."""
        self.delegations[validator] = self.delegations.get(validator, 0) + amount


class StakingAdapter:
    """Stake, unstake and compound on behalf of accounts.

    Tracked stakes live in the runtime store so they share the all-or-nothing
    boundary of every other operation. The delegation backend is called
    after the stake is written and before the transaction commits, so a
    backend failure leaves the tracked stake untouched.
    """

    def __init__(
        self,
        runtime: Runtime,
        admin: str,
        address: str = "staking",
        backend: DelegationBackend | None = None,
        config: StakingConfig | None = None,
    ) -> None:
        self.runtime = runtime
        self.admin = admin
        self.address = address
        self.backend = backend or SimulatedDelegationBackend()
        self.config = config or StakingConfig()
        self._stakes = f"{address}:stakes"
        self._settings = f"{address}:settings"
        if self.config.default_validator:
            with runtime.transaction():
                runtime.store.put(self._settings, "default_validator", self.config.default_validator)

    def stake(self, caller: str, amount: int) -> int:
        """Stake ``amount`` to the default validator."""
        validator = self.default_validator
        if not validator:
            raise InvalidValidatorError("No default validator configured")
        return self.stake_to_validator(caller, validator, amount)

    def stake_to_validator(self, caller: str, validator: str, amount: int) -> int:
        """Stake ``amount`` to ``validator`` and return the caller's tracked stake."""
        validate_amount(amount, allow_zero=False)
        if not validator:
            raise InvalidValidatorError("Validator key must not be empty")
        if amount < self.config.minimum_stake:
            raise MinimumStakeNotMetError(
                f"Stake of {amount} is below the minimum of {self.config.minimum_stake}"
            )
        with self.runtime.transaction():
            new_stake = self._stake_of(caller, validator) + amount
            self._set_stake(caller, validator, new_stake)
            self.backend.delegate(validator, amount)
            self.runtime.emit(
                self.address, caller, Staked(owner=caller, validator=validator, amount=amount)
            )
        logger.info("Staked %d from %s to %s", amount, caller, validator)
        return new_stake

    def unstake(self, caller: str, amount: int) -> int:
        """Undelegate ``amount`` of the caller's stake from the default validator."""
        validate_amount(amount, allow_zero=False)
        validator = self.default_validator
        if not validator:
            raise InvalidValidatorError("No default validator configured")
        with self.runtime.transaction():
            new_stake = checked_sub(
                self._stake_of(caller, validator), amount, InsufficientStakingBalanceError
            )
            self._set_stake(caller, validator, new_stake)
            self.backend.undelegate(validator, amount)
            self.runtime.emit(self.address, caller, Unstaked(owner=caller, amount=amount))
        logger.info("Unstaked %d for %s from %s", amount, caller, validator)
        return new_stake

    def compound_rewards(self, caller: str, owner: str, validator: str) -> int:
        """Fold rewards accrued on ``validator`` into ``owner``'s tracked stake.

        Rewards are the amount delegated to ``validator`` above the stakes
        tracked for it across all accounts. Only the authorized automation
        engine may call this.

        Returns
        -------
        int
            Rewards compounded (0 when nothing accrued).
        """
        with self.runtime.transaction():
            engine = self.automation_engine
            if engine is None or caller != engine:
                raise UnauthorizedExecutorError(f"{caller} may not compound rewards")
            delegated = self.backend.delegated_amount(validator)
            tracked = self._tracked_for(validator)
            if delegated <= tracked:
                return 0
            rewards = delegated - tracked
            self._set_stake(owner, validator, self._stake_of(owner, validator) + rewards)
            self.runtime.emit(self.address, owner, RewardsCompounded(owner=owner, amount=rewards))
        logger.info("Compounded %d rewards for %s on %s", rewards, owner, validator)
        return rewards

    def set_automation_engine(self, caller: str, engine: str) -> None:
        self._set_setting(caller, "automation_engine", engine)

    def set_default_validator(self, caller: str, validator: str) -> None:
        if not validator:
            raise InvalidValidatorError("Validator key must not be empty")
        self._set_setting(caller, "default_validator", validator)

    def _set_setting(self, caller: str, key: str, value: str) -> None:
        with self.runtime.transaction():
            if caller != self.admin:
                raise UnauthorizedAdminError(f"{caller} is not the staking adapter admin")
            self.runtime.store.put(self._settings, key, value)
        logger.info("Staking adapter %s: %s set to %s", self.address, key, value)

    # Queries

    @property
    def automation_engine(self) -> str | None:
        return self.runtime.store.get(self._settings, "automation_engine")

    @property
    def default_validator(self) -> str | None:
        return self.runtime.store.get(self._settings, "default_validator")

    def get_user_stake(self, owner: str) -> int:
        """Total tracked stake of ``owner`` across validators."""
        with self.runtime.snapshot():
            return sum(self.runtime.store.get(self._stakes, owner, {}).values())

    def get_delegated_amount(self, validator: str) -> int:
        return self.backend.delegated_amount(validator)

    def _stake_of(self, owner: str, validator: str) -> int:
        return int(self.runtime.store.get(self._stakes, owner, {}).get(validator, 0))

    def _set_stake(self, owner: str, validator: str, amount: int) -> None:
        stakes = self.runtime.store.get(self._stakes, owner, {})
        stakes[validator] = amount
        self.runtime.store.put(self._stakes, owner, stakes)

    def _tracked_for(self, validator: str) -> int:
        return sum(
            int(stakes.get(validator, 0)) for _, stakes in self.runtime.store.items(self._stakes)
        )
