"""Deployment procedure wiring the vault to the automation engine."""

import logging
from dataclasses import dataclass

from flowvault.conditions import ConditionEvaluator
from flowvault.engine import AutomationEngine
from flowvault.runtime import Runtime
from flowvault.tier import TierPolicy
from flowvault.treasury import Treasury
from flowvault.vault import AutomationVault

logger = logging.getLogger(__name__)


@dataclass
class Deployment:
    """A vault and the engine it trusts."""

    runtime: Runtime
    vault: AutomationVault
    engine: AutomationEngine
    deployer: str

    def summary(self) -> dict[str, str | None]:
        return {
            "deployer": self.deployer,
            "vault": self.vault.address,
            "engine": self.engine.address,
            "authorized_engine": self.vault.automation_engine,
        }


def deploy(
    runtime: Runtime,
    deployer: str,
    vault_address: str = "vault",
    engine_address: str = "engine",
    tier_policy: TierPolicy | None = None,
    condition_evaluator: ConditionEvaluator | None = None,
    treasury: Treasury | None = None,
) -> Deployment:
    """Deploy the vault, then the engine, then authorize the engine.

    Until the last step completes the vault has no authorized caller and
    every ``execute_transfer`` fails with ``UnauthorizedExecutorError``.
    """
    logger.info("Deploying vault %s", vault_address)
    vault = AutomationVault(runtime, admin=deployer, address=vault_address, treasury=treasury)

    logger.info("Deploying engine %s", engine_address)
    engine = AutomationEngine(
        runtime,
        admin=deployer,
        address=engine_address,
        vault=vault,
        tier_policy=tier_policy,
        condition_evaluator=condition_evaluator,
    )

    logger.info("Linking vault %s to engine %s", vault_address, engine_address)
    vault.set_automation_engine(deployer, engine.address)

    return Deployment(runtime=runtime, vault=vault, engine=engine, deployer=deployer)
