"""Tests for the custodial vault."""

import pytest

from flowvault.bootstrap import Deployment
from flowvault.exceptions import (
    InsufficientBalanceError,
    InvalidAmountError,
    NotVaultOwnerError,
    UnauthorizedExecutorError,
    ZeroAmountError,
)
from flowvault.runtime import Runtime
from flowvault.treasury import InMemoryTreasury
from flowvault.vault import AutomationVault


class TestDepositWithdraw:
    """Tests for account-holder operations."""

    def test_deposit_credits_caller(self, vault: AutomationVault, alice: str) -> None:
        assert vault.deposit(alice, 100) == 100
        assert vault.deposit(alice, 50) == 150
        assert vault.balance_of(alice) == 150

    def test_deposit_moves_funds_into_custody(
        self, vault: AutomationVault, treasury: InMemoryTreasury, alice: str
    ) -> None:
        vault.deposit(alice, 100)

        assert treasury.total_received == 100
        assert vault.held_funds() == vault.total_custody() == 100

    def test_deposit_emits_record(self, vault: AutomationVault, runtime: Runtime, alice: str) -> None:
        vault.deposit(alice, 100)

        record = runtime.audit_log.last()
        assert record.event_type == "vault.deposited"
        assert record.source == "vault"
        assert record.subject == alice
        assert record.data == {"owner": alice, "amount": 100, "new_balance": 100}

    def test_zero_deposit_rejected(self, vault: AutomationVault, runtime: Runtime, alice: str) -> None:
        before = len(runtime.audit_log)

        with pytest.raises(ZeroAmountError):
            vault.deposit(alice, 0)

        assert vault.balance_of(alice) == 0
        assert len(runtime.audit_log) == before

    @pytest.mark.parametrize("amount", [-5, 1.5, "10", True])
    def test_invalid_amount_rejected(self, vault: AutomationVault, alice: str, amount) -> None:
        with pytest.raises(InvalidAmountError):
            vault.deposit(alice, amount)

    def test_withdraw_pays_caller(
        self, vault: AutomationVault, treasury: InMemoryTreasury, alice: str
    ) -> None:
        vault.deposit(alice, 100)

        assert vault.withdraw(alice, 40) == 60
        assert vault.balance_of(alice) == 60
        assert treasury.paid_to(alice) == 40
        assert vault.held_funds() == 60

    def test_withdraw_full_balance(self, vault: AutomationVault, alice: str) -> None:
        vault.deposit(alice, 100)
        assert vault.withdraw(alice, 100) == 0

    def test_overdraw_rejected(
        self, vault: AutomationVault, treasury: InMemoryTreasury, alice: str
    ) -> None:
        vault.deposit(alice, 100)

        with pytest.raises(InsufficientBalanceError):
            vault.withdraw(alice, 101)

        assert vault.balance_of(alice) == 100
        assert treasury.total_paid_out == 0

    def test_zero_withdraw_rejected(self, vault: AutomationVault, alice: str) -> None:
        vault.deposit(alice, 10)
        with pytest.raises(ZeroAmountError):
            vault.withdraw(alice, 0)

    def test_balances_are_per_account(self, vault: AutomationVault, alice: str, bob: str) -> None:
        vault.deposit(alice, 100)
        vault.deposit(bob, 20)

        vault.withdraw(bob, 20)

        assert vault.balance_of(alice) == 100
        assert vault.balance_of(bob) == 0
        assert vault.total_custody() == 100


class TestExecuteTransfer:
    """Tests for the engine-only debit entry point."""

    def test_engine_can_transfer(
        self, vault: AutomationVault, treasury: InMemoryTreasury, alice: str, bob: str
    ) -> None:
        vault.deposit(alice, 100)

        assert vault.execute_transfer("engine", alice, bob, 30, 1) == 70
        assert vault.balance_of(bob) == 0
        assert treasury.paid_to(bob) == 30
        assert vault.held_funds() == vault.total_custody() == 70

    def test_transfer_emits_record(
        self, vault: AutomationVault, runtime: Runtime, alice: str, bob: str
    ) -> None:
        vault.deposit(alice, 100)
        vault.execute_transfer("engine", alice, bob, 30, 7)

        record = runtime.audit_log.last()
        assert record.event_type == "vault.automation_executed"
        assert record.data == {"owner": alice, "rule_id": 7, "recipient": bob, "amount": 30}

    def test_stranger_cannot_transfer(
        self, vault: AutomationVault, treasury: InMemoryTreasury, alice: str, bob: str
    ) -> None:
        vault.deposit(alice, 100)

        with pytest.raises(UnauthorizedExecutorError):
            vault.execute_transfer(bob, alice, bob, 100, 1)

        assert vault.balance_of(alice) == 100
        assert treasury.total_paid_out == 0

    def test_owner_cannot_use_engine_entry_point(
        self, vault: AutomationVault, alice: str, bob: str
    ) -> None:
        vault.deposit(alice, 100)
        with pytest.raises(UnauthorizedExecutorError):
            vault.execute_transfer(alice, alice, bob, 10, 1)

    def test_unset_engine_rejects_everyone(self, runtime: Runtime, alice: str, bob: str) -> None:
        vault = AutomationVault(runtime, admin="deployer")
        vault.deposit(alice, 100)

        assert vault.automation_engine is None
        with pytest.raises(UnauthorizedExecutorError):
            vault.execute_transfer("engine", alice, bob, 10, 1)

    def test_insufficient_balance(
        self, vault: AutomationVault, treasury: InMemoryTreasury, alice: str, bob: str
    ) -> None:
        vault.deposit(alice, 20)

        with pytest.raises(InsufficientBalanceError):
            vault.execute_transfer("engine", alice, bob, 30, 1)

        assert vault.balance_of(alice) == 20
        assert treasury.paid_to(bob) == 0


class TestAutomationEngineAssignment:
    """Tests for admin-only engine reassignment."""

    def test_admin_can_reassign(self, deployment: Deployment, runtime: Runtime) -> None:
        deployment.vault.set_automation_engine("deployer", "engine-v2")

        assert deployment.vault.automation_engine == "engine-v2"
        record = runtime.audit_log.last()
        assert record.event_type == "vault.automation_engine_set"
        assert record.data == {"previous": "engine", "engine": "engine-v2"}

    def test_old_engine_loses_access(self, vault: AutomationVault, alice: str, bob: str) -> None:
        vault.deposit(alice, 100)
        vault.set_automation_engine("deployer", "engine-v2")

        with pytest.raises(UnauthorizedExecutorError):
            vault.execute_transfer("engine", alice, bob, 10, 1)

    def test_non_admin_cannot_reassign(self, vault: AutomationVault, alice: str) -> None:
        with pytest.raises(NotVaultOwnerError):
            vault.set_automation_engine(alice, alice)

        assert vault.automation_engine == "engine"

    def test_engine_known_at_construction(self, runtime: Runtime) -> None:
        vault = AutomationVault(runtime, admin="deployer", automation_engine="engine")
        assert vault.automation_engine == "engine"


class UnreachableTreasury(InMemoryTreasury):
    """Treasury whose rail is down in one direction."""

    def __init__(self, fail_on: str) -> None:
        super().__init__()
        self.fail_on = fail_on

    def receive(self, sender: str, amount: int) -> None:
        if self.fail_on == "receive":
            raise ConnectionError("treasury unreachable")
        super().receive(sender, amount)

    def pay(self, recipient: str, amount: int) -> None:
        if self.fail_on == "pay":
            raise ConnectionError("treasury unreachable")
        super().pay(recipient, amount)


class TestTreasuryFailures:
    """A failed funds movement leaves balances and the audit log untouched."""

    def test_failed_payout_keeps_balance(self, runtime: Runtime, alice: str) -> None:
        treasury = UnreachableTreasury(fail_on="pay")
        vault = AutomationVault(runtime, admin="deployer", treasury=treasury)
        vault.deposit(alice, 100)

        with pytest.raises(ConnectionError):
            vault.withdraw(alice, 40)

        assert vault.balance_of(alice) == 100
        assert [r.event_type for r in runtime.audit_log.records()] == ["vault.deposited"]
        assert treasury.total_paid_out == 0
        assert vault.held_funds() == vault.total_custody() == 100

    def test_failed_receive_credits_nothing(self, runtime: Runtime, alice: str) -> None:
        vault = AutomationVault(runtime, admin="deployer", treasury=UnreachableTreasury("receive"))

        with pytest.raises(ConnectionError):
            vault.deposit(alice, 100)

        assert vault.balance_of(alice) == 0
        assert len(runtime.audit_log) == 0

    def test_failed_automated_payout_keeps_owner_balance(
        self, runtime: Runtime, alice: str, bob: str
    ) -> None:
        treasury = UnreachableTreasury(fail_on="pay")
        vault = AutomationVault(
            runtime, admin="deployer", automation_engine="engine", treasury=treasury
        )
        vault.deposit(alice, 100)

        with pytest.raises(ConnectionError):
            vault.execute_transfer("engine", alice, bob, 30, 1)

        assert vault.balance_of(alice) == 100
        assert runtime.audit_log.records("vault.automation_executed") == []
