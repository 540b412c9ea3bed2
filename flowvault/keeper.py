"""Trigger source that executes due rules."""

import logging
from dataclasses import dataclass, field

from flowvault.engine import AutomationEngine
from flowvault.exceptions import FlowVaultError, SinkError
from flowvault.models.events import RuleExecutionFailed

logger = logging.getLogger(__name__)


@dataclass
class KeeperReport:
    """Outcome of one keeper pass."""

    checked_at: int
    executed: list[int] = field(default_factory=list)
    failed: dict[int, int] = field(default_factory=dict)  # rule id -> error code

    @property
    def attempted(self) -> int:
        return len(self.executed) + len(self.failed)


class Keeper:
    """Runs every due time-triggered rule of an engine.

    Failures are not retried here: the rule stays due and the next pass
    attempts it again. Each failure is published as a
    ``rule.execution_failed`` audit record once the failed call has rolled
    back.
    """

    def __init__(self, engine: AutomationEngine, identity: str = "keeper") -> None:
        self.engine = engine
        self.identity = identity

    def run_due(self) -> KeeperReport:
        runtime = self.engine.runtime
        report = KeeperReport(checked_at=runtime.now())

        for rule in self.engine.rules_due(report.checked_at):
            try:
                self.engine.execute_rule(self.identity, rule.rule_id)
            except SinkError:
                raise
            except FlowVaultError as exc:
                logger.warning(
                    "Rule %d failed (%s, code=%d): %s",
                    rule.rule_id,
                    type(exc).__name__,
                    exc.code,
                    exc,
                    extra={"rule_id": rule.rule_id, "account": rule.owner},
                )
                report.failed[rule.rule_id] = exc.code
                self._record_failure(rule.rule_id, rule.owner, exc.code)
            else:
                report.executed.append(rule.rule_id)

        if report.attempted:
            logger.info(
                "Keeper pass at %d: %d executed, %d failed",
                report.checked_at,
                len(report.executed),
                len(report.failed),
            )
        return report

    def _record_failure(self, rule_id: int, owner: str, error_code: int) -> None:
        runtime = self.engine.runtime
        with runtime.transaction():
            runtime.emit(
                self.identity,
                rule_id,
                RuleExecutionFailed(rule_id=rule_id, owner=owner, error_code=error_code),
            )
