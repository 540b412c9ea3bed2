"""End-to-end keeper simulation on a manual clock."""

import logging
import random
from collections import Counter
from dataclasses import dataclass, field

from flowvault.audit import AuditLog, AuditSink
from flowvault.bootstrap import Deployment, deploy
from flowvault.clock import ManualClock
from flowvault.config import FlowVaultConfig
from flowvault.exceptions import MaxRulesReachedError, RuleError, VaultError
from flowvault.generators import AccountGenerator, RuleGenerator
from flowvault.keeper import Keeper
from flowvault.models.enums import SECONDS_PER_DAY, TriggerKind
from flowvault.runtime import Runtime
from flowvault.sinks import ConsoleSink, JsonFileSink, KafkaSink
from flowvault.store.base import InMemoryKeyValueStore, KeyValueStore
from flowvault.tier import TierPolicy
from flowvault.treasury import InMemoryTreasury

logger = logging.getLogger(__name__)


@dataclass
class SimulationResult:
    """Summary of a simulation run."""

    accounts: list[str]
    rules_created: int = 0
    rules_rejected: int = 0
    executed: int = 0
    failed: int = 0
    manual_runs: int = 0
    total_deposited: int = 0
    total_paid_out: int = 0
    final_custody: int = 0
    held_funds: int = 0
    records_by_type: dict[str, int] = field(default_factory=dict)

    @property
    def custody_conserved(self) -> bool:
        """Deposits equal custody plus payouts, and custody matches held funds."""
        return (
            self.total_deposited == self.final_custody + self.total_paid_out
            and self.final_custody == self.held_funds
        )


def build_store(config: FlowVaultConfig) -> KeyValueStore:
    """Create the configured storage backend."""
    if config.store_backend == "postgres":
        from flowvault.store.postgres import PostgresKeyValueStore

        return PostgresKeyValueStore(config.postgres)
    return InMemoryKeyValueStore()


def build_sink(config: FlowVaultConfig) -> AuditSink | None:
    """Create the configured audit sink, or None for no sink."""
    if config.sink == "console":
        return ConsoleSink(pretty=False)
    if config.sink == "json":
        return JsonFileSink(config.output.json_output_dir, pretty=config.output.pretty_json)
    if config.sink == "kafka":
        return KafkaSink(config.kafka)
    return None


def run_simulation(
    config: FlowVaultConfig,
    sinks: list[AuditSink] | None = None,
    store: KeyValueStore | None = None,
) -> SimulationResult:
    """Deploy, fund accounts, create rules and let a keeper run them.

    Parameters
    ----------
    config : FlowVaultConfig
        Simulation, tier and seed settings.
    sinks : list[AuditSink] | None
        Sinks receiving every committed audit record.
    store : KeyValueStore | None
        Storage backend (default: in-memory).

    Returns
    -------
    SimulationResult
        Counts and the custody conservation check.
    """
    sim = config.simulation
    clock = ManualClock(sim.start_time)
    runtime = Runtime(
        store=store or InMemoryKeyValueStore(),
        clock=clock,
        audit_log=AuditLog(topic=config.kafka.topic_prefix),
    )
    for sink in sinks or []:
        runtime.audit_log.subscribe(sink)

    treasury = InMemoryTreasury()
    deployment = deploy(
        runtime,
        deployer="deployer",
        tier_policy=TierPolicy(thresholds=config.tiers),
        treasury=treasury,
    )

    accounts = AccountGenerator(config.seed, sim.locale).generate_many(sim.num_accounts)
    result = SimulationResult(accounts=accounts)
    logger.info("Simulating %d accounts over %d days", len(accounts), sim.days)

    for account in accounts:
        amount = random.randint(sim.min_deposit, sim.max_deposit)
        deployment.vault.deposit(account, amount)
        result.total_deposited += amount

    manual_rules = _create_rules(deployment, config, accounts, result)

    keeper = Keeper(deployment.engine)
    end = sim.start_time + sim.days * SECONDS_PER_DAY
    next_manual_day = sim.start_time + SECONDS_PER_DAY
    while clock.now() < end:
        clock.advance(sim.tick_seconds)
        report = keeper.run_due()
        result.executed += len(report.executed)
        result.failed += len(report.failed)
        if clock.now() >= next_manual_day:
            next_manual_day += SECONDS_PER_DAY
            result.manual_runs += _run_manual_rules(deployment, manual_rules)

    result.total_paid_out = treasury.total_paid_out
    result.final_custody = deployment.vault.total_custody()
    result.held_funds = deployment.vault.held_funds()
    result.records_by_type = dict(
        Counter(record.event_type for record in runtime.audit_log.records())
    )
    logger.info(
        "Simulation done: %d executed, %d failed, custody conserved=%s",
        result.executed,
        result.failed,
        result.custody_conserved,
    )
    return result


def _create_rules(
    deployment: Deployment,
    config: FlowVaultConfig,
    accounts: list[str],
    result: SimulationResult,
) -> list[tuple[str, int]]:
    sim = config.simulation
    generator = RuleGenerator(config.seed, sim.locale)
    manual_rules = []
    # Per-run amounts small enough that several runs succeed before balances drain
    max_amount = max(1, sim.min_deposit // 10)

    for owner in accounts:
        recipients = [account for account in accounts if account != owner]
        for _ in range(sim.rules_per_account):
            request = generator.generate(recipients, max_amount)
            try:
                rule_id = deployment.engine.create_rule(
                    owner,
                    request.template_name,
                    request.trigger_kind,
                    request.schedule,
                    request.action_kind,
                    request.recipient,
                    request.amount,
                )
            except MaxRulesReachedError:
                result.rules_rejected += 1
                continue
            result.rules_created += 1
            if request.trigger_kind == TriggerKind.MANUAL:
                manual_rules.append((owner, rule_id))
    return manual_rules


def _run_manual_rules(deployment: Deployment, manual_rules: list[tuple[str, int]]) -> int:
    runs = 0
    for owner, rule_id in manual_rules:
        try:
            deployment.engine.execute_rule(owner, rule_id)
        except (RuleError, VaultError) as exc:
            logger.debug("Manual rule %d not run: %s", rule_id, exc)
        else:
            runs += 1
    return runs
