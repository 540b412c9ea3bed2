"""Custodial vault holding per-account balances for automated transfers."""

import logging

from flowvault.amounts import checked_sub, validate_amount
from flowvault.exceptions import NotVaultOwnerError, UnauthorizedExecutorError
from flowvault.models.events import AutomationEngineSet, AutomationExecuted, Deposited, Withdrawn
from flowvault.runtime import Runtime
from flowvault.store.ledger import LedgerStore
from flowvault.treasury import InMemoryTreasury, Treasury

logger = logging.getLogger(__name__)


class AutomationVault:
    """Custody of per-account balances.

    Account holders deposit into and withdraw from their own balance. The
    single authorized automation engine may debit any owner's balance to pay
    a recipient; nobody else can move funds out of another account.
    """

    def __init__(
        self,
        runtime: Runtime,
        admin: str,
        address: str = "vault",
        automation_engine: str | None = None,
        treasury: Treasury | None = None,
    ) -> None:
        """Initialize the vault.

        Parameters
        ----------
        runtime : Runtime
            Shared execution context.
        admin : str
            Account allowed to (re)assign the authorized engine.
        address : str
            Identity of this vault, used as audit source and store prefix.
        automation_engine : str | None
            Authorized engine address, if already known at deploy time.
        treasury : Treasury | None
            Funds rail for deposits and payouts.
        """
        self.runtime = runtime
        self.admin = admin
        self.address = address
        self.treasury = treasury or InMemoryTreasury()
        self.ledger = LedgerStore(runtime.store, prefix=address)
        self._settings = f"{address}:settings"
        if automation_engine is not None:
            with runtime.transaction():
                self._store_engine(automation_engine)

    # Mutations

    def deposit(self, caller: str, amount: int) -> int:
        """Credit ``amount`` attached by ``caller`` to the caller's balance.

        Returns
        -------
        int
            The caller's new balance.
        """
        validate_amount(amount, allow_zero=False)
        with self.runtime.transaction():
            new_balance = self.ledger.balance_of(caller) + amount
            self.ledger.set_balance(caller, new_balance)
            self.treasury.receive(caller, amount)
            self.runtime.emit(
                self.address, caller, Deposited(owner=caller, amount=amount, new_balance=new_balance)
            )
        logger.info(
            "Deposit: %s +%d (balance=%d)",
            caller,
            amount,
            new_balance,
            extra={"account": caller, "amount": amount},
        )
        return new_balance

    def withdraw(self, caller: str, amount: int) -> int:
        """Pay ``amount`` from the caller's balance back to the caller."""
        validate_amount(amount, allow_zero=False)
        with self.runtime.transaction():
            new_balance = checked_sub(self.ledger.balance_of(caller), amount)
            # Balance is debited before the payout is issued
            self.ledger.set_balance(caller, new_balance)
            self.treasury.pay(caller, amount)
            self.runtime.emit(
                self.address, caller, Withdrawn(owner=caller, amount=amount, new_balance=new_balance)
            )
        logger.info(
            "Withdraw: %s -%d (balance=%d)",
            caller,
            amount,
            new_balance,
            extra={"account": caller, "amount": amount},
        )
        return new_balance

    def execute_transfer(
        self,
        caller: str,
        owner: str,
        recipient: str,
        amount: int,
        rule_id: int,
    ) -> int:
        """Debit ``owner`` and pay ``recipient`` on behalf of a rule.

        Only the authorized automation engine may call this. ``rule_id`` is
        recorded for audit correlation and is not checked here.

        Returns
        -------
        int
            The owner's new balance.
        """
        validate_amount(amount)
        with self.runtime.transaction():
            engine = self.automation_engine
            if engine is None or caller != engine:
                raise UnauthorizedExecutorError(
                    f"{caller} is not the authorized automation engine"
                )
            new_balance = checked_sub(self.ledger.balance_of(owner), amount)
            self.ledger.set_balance(owner, new_balance)
            self.treasury.pay(recipient, amount)
            self.runtime.emit(
                self.address,
                owner,
                AutomationExecuted(owner=owner, rule_id=rule_id, recipient=recipient, amount=amount),
            )
        logger.info(
            "Automated transfer: rule=%d %s -> %s amount=%d",
            rule_id,
            owner,
            recipient,
            amount,
            extra={"rule_id": rule_id, "account": owner, "amount": amount},
        )
        return new_balance

    def set_automation_engine(self, caller: str, engine: str) -> None:
        """Authorize ``engine`` for third-party debits (admin only)."""
        with self.runtime.transaction():
            if caller != self.admin:
                raise NotVaultOwnerError(f"{caller} is not the vault admin")
            previous = self.automation_engine
            self._store_engine(engine)
            self.runtime.emit(
                self.address, engine, AutomationEngineSet(previous=previous, engine=engine)
            )
        logger.info("Vault %s authorized engine %s (previous=%s)", self.address, engine, previous)

    def _store_engine(self, engine: str) -> None:
        self.runtime.store.put(self._settings, "automation_engine", engine)

    # Queries

    def balance_of(self, account: str) -> int:
        with self.runtime.snapshot():
            return self.ledger.balance_of(account)

    @property
    def automation_engine(self) -> str | None:
        return self.runtime.store.get(self._settings, "automation_engine")

    def total_custody(self) -> int:
        """Sum of all internal balances."""
        with self.runtime.snapshot():
            return self.ledger.total()

    def held_funds(self) -> int:
        """Funds the treasury actually holds; always equals :meth:`total_custody`."""
        with self.runtime.snapshot():
            return self.treasury.held()
