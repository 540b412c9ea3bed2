"""Pytest configuration and fixtures."""

import pytest

from flowvault.bootstrap import Deployment, deploy
from flowvault.clock import ManualClock
from flowvault.engine import AutomationEngine
from flowvault.runtime import Runtime
from flowvault.treasury import InMemoryTreasury
from flowvault.vault import AutomationVault

START_TIME = 1_700_000_000


@pytest.fixture
def seed() -> int:
    """Fixed seed for reproducible tests."""
    return 42


@pytest.fixture
def clock() -> ManualClock:
    """Manual clock starting at a fixed timestamp."""
    return ManualClock(START_TIME)


@pytest.fixture
def runtime(clock: ManualClock) -> Runtime:
    """Fresh in-memory runtime on the manual clock."""
    return Runtime(clock=clock)


@pytest.fixture
def treasury() -> InMemoryTreasury:
    return InMemoryTreasury()


@pytest.fixture
def deployment(runtime: Runtime, treasury: InMemoryTreasury) -> Deployment:
    """Vault and engine wired together."""
    return deploy(runtime, deployer="deployer", treasury=treasury)


@pytest.fixture
def vault(deployment: Deployment) -> AutomationVault:
    return deployment.vault


@pytest.fixture
def engine(deployment: Deployment) -> AutomationEngine:
    return deployment.engine


@pytest.fixture
def alice() -> str:
    """Sample rule owner."""
    return "acct-alice-001"


@pytest.fixture
def bob() -> str:
    """Sample recipient."""
    return "acct-bob-002"
