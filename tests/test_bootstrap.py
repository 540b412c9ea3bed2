"""Tests for the deployment procedure."""

import pytest

from flowvault.bootstrap import Deployment, deploy
from flowvault.engine import AutomationEngine
from flowvault.exceptions import UnauthorizedExecutorError
from flowvault.runtime import Runtime
from flowvault.vault import AutomationVault


class TestDeploy:
    """Tests for deploy()."""

    def test_links_vault_to_engine(self, deployment: Deployment) -> None:
        """Test the deployed vault trusts the deployed engine."""
        assert deployment.vault.automation_engine == deployment.engine.address
        assert deployment.engine.vault is deployment.vault
        assert deployment.vault.admin == deployment.engine.admin == "deployer"

    def test_summary(self, deployment: Deployment) -> None:
        assert deployment.summary() == {
            "deployer": "deployer",
            "vault": "vault",
            "engine": "engine",
            "authorized_engine": "engine",
        }

    def test_custom_addresses(self, runtime: Runtime) -> None:
        deployment = deploy(runtime, "ops", vault_address="vault-eu", engine_address="engine-eu")

        assert deployment.vault.automation_engine == "engine-eu"
        assert deployment.engine.address == "engine-eu"
        assert deployment.vault.address == "vault-eu"

    def test_link_is_audited(self, deployment: Deployment, runtime: Runtime) -> None:
        records = runtime.audit_log.records("vault.automation_engine_set")

        assert len(records) == 1
        assert records[0].data == {"previous": None, "engine": "engine"}

    def test_transfers_fail_before_linking(self, runtime: Runtime) -> None:
        """Test the window between vault and engine deployment."""
        vault = AutomationVault(runtime, admin="deployer")
        engine = AutomationEngine(runtime, admin="deployer", vault=vault)
        vault.deposit("acct-alice", 100)

        with pytest.raises(UnauthorizedExecutorError):
            vault.execute_transfer(engine.address, "acct-alice", "acct-bob", 10, 1)

        vault.set_automation_engine("deployer", engine.address)
        assert vault.execute_transfer(engine.address, "acct-alice", "acct-bob", 10, 1) == 90
