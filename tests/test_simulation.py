"""Tests for the keeper simulation and the command-line interface."""

import json
import os
from dataclasses import replace
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from flowvault.cli import apply_args, build_parser, main
from flowvault.config import FlowVaultConfig, SimulationConfig
from flowvault.simulation import SimulationResult, build_sink, build_store, run_simulation
from flowvault.sinks import ConsoleSink, JsonFileSink, KafkaSink
from flowvault.store import InMemoryKeyValueStore


@pytest.fixture
def config(seed: int) -> FlowVaultConfig:
    """Small, seeded simulation configuration."""
    return FlowVaultConfig(
        seed=seed,
        simulation=SimulationConfig(num_accounts=4, days=10, rules_per_account=3),
    )


class TestSimulationResult:
    def test_custody_conserved(self) -> None:
        result = SimulationResult(
            accounts=[], total_deposited=100, total_paid_out=30, final_custody=70, held_funds=70
        )
        assert result.custody_conserved

        assert not replace(result, final_custody=60).custody_conserved
        assert not replace(result, held_funds=69).custody_conserved


class TestRunSimulation:
    """Tests for run_simulation."""

    def test_conserves_custody(self, config: FlowVaultConfig) -> None:
        result = run_simulation(config)

        assert len(result.accounts) == 4
        assert result.rules_created + result.rules_rejected == 12
        # Starter tier holds at most two rules per account
        assert result.rules_created == 8
        assert result.rules_rejected == 4
        assert result.executed > 0
        assert result.total_paid_out > 0
        assert result.custody_conserved
        assert result.records_by_type["vault.deposited"] == 4
        assert result.records_by_type["rule.created"] == 8

    def test_reproducible(self, config: FlowVaultConfig) -> None:
        """Test the same seed gives the same outcome."""
        first = run_simulation(config)
        second = run_simulation(config)

        assert first == second

    def test_records_reach_sinks(self, config: FlowVaultConfig, tmp_path: Path) -> None:
        sink = JsonFileSink(tmp_path)

        result = run_simulation(config, sinks=[sink])

        lines = sink.path_for("flowvault.audit").read_text(encoding="utf-8").splitlines()
        assert len(lines) == sum(result.records_by_type.values())
        sequences = [json.loads(line)["sequence"] for line in lines]
        assert sequences == list(range(1, len(lines) + 1))

    def test_uses_given_store(self, config: FlowVaultConfig) -> None:
        store = InMemoryKeyValueStore()
        run_simulation(config, store=store)
        assert dict(store.items("vault:balances"))


class TestBuilders:
    """Tests for store and sink construction from config."""

    def test_build_store_memory(self) -> None:
        assert isinstance(build_store(FlowVaultConfig()), InMemoryKeyValueStore)

    def test_build_store_postgres(self) -> None:
        config = FlowVaultConfig(store_backend="postgres")

        with patch("flowvault.store.postgres.PostgresKeyValueStore") as mock_store:
            store = build_store(config)

        mock_store.assert_called_once_with(config.postgres)
        assert store is mock_store.return_value

    def test_build_sink(self, tmp_path: Path) -> None:
        assert build_sink(FlowVaultConfig()) is None
        assert isinstance(build_sink(FlowVaultConfig(sink="console")), ConsoleSink)

        config = FlowVaultConfig(sink="json")
        config.output.json_output_dir = tmp_path
        assert isinstance(build_sink(config), JsonFileSink)

    @patch("flowvault.sinks.kafka.Producer")
    def test_build_kafka_sink(self, mock_producer_class: MagicMock) -> None:
        sink = build_sink(FlowVaultConfig(sink="kafka"))

        assert isinstance(sink, KafkaSink)
        mock_producer_class.assert_called_once()


class TestCli:
    """Tests for the command-line interface."""

    def test_apply_args(self) -> None:
        """Test command-line arguments override the environment config."""
        args = build_parser().parse_args(
            ["--log-level", "DEBUG", "simulate", "--accounts", "3", "--days", "2", "--seed", "7"]
        )

        config = apply_args(FlowVaultConfig(), args)

        assert config.log_level == "DEBUG"
        assert config.simulation.num_accounts == 3
        assert config.simulation.days == 2
        assert config.simulation.rules_per_account == 2
        assert config.seed == 7

    def test_apply_args_no_overrides(self) -> None:
        config = FlowVaultConfig()
        args = build_parser().parse_args(["deploy"])
        assert apply_args(config, args) is config

    def test_simulate(self, capsys: pytest.CaptureFixture) -> None:
        with patch.dict(os.environ, {}, clear=True):
            code = main(["simulate", "--accounts", "3", "--days", "3", "--seed", "1"])

        assert code == 0
        out = capsys.readouterr().out
        assert "Simulation Summary" in out
        assert "custody conserved: True" in out

    def test_simulate_json_sink(self, tmp_path: Path) -> None:
        argv = ["simulate", "--days", "2", "--seed", "3", "--sink", "json", "--output-dir", str(tmp_path)]
        with patch.dict(os.environ, {}, clear=True):
            assert main(argv) == 0

        assert (tmp_path / "flowvault_audit.jsonl").exists()

    def test_deploy(self, capsys: pytest.CaptureFixture) -> None:
        with patch.dict(os.environ, {}, clear=True):
            assert main(["--log-level", "WARNING", "deploy"]) == 0

        summary = json.loads(capsys.readouterr().out)
        assert summary["authorized_engine"] == summary["engine"] == "engine"

    def test_config_error(self, capsys: pytest.CaptureFixture) -> None:
        with patch.dict(os.environ, {"FLOWVAULT_SINK": "s3"}, clear=True):
            assert main(["deploy"]) == 2

        assert "Configuration error" in capsys.readouterr().err
