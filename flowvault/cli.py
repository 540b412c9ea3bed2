"""Command-line entry point for flowvault."""

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path

from flowvault import __version__
from flowvault.bootstrap import deploy
from flowvault.config import SINK_TYPES, STORE_BACKENDS, FlowVaultConfig
from flowvault.exceptions import FlowVaultError
from flowvault.logging import setup_logging
from flowvault.runtime import Runtime
from flowvault.simulation import build_sink, build_store, run_simulation

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flowvault",
        description="Scheduled fund-movement rules over a custodial vault",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING, ERROR")
    parser.add_argument("--log-format", choices=["standard", "json"], default=None)
    parser.add_argument("--store", choices=STORE_BACKENDS, default=None, help="Storage backend")

    subparsers = parser.add_subparsers(dest="command", required=True)

    simulate = subparsers.add_parser("simulate", help="Run a keeper simulation")
    simulate.add_argument("--accounts", type=int, default=None, help="Number of accounts")
    simulate.add_argument("--days", type=int, default=None, help="Simulated days")
    simulate.add_argument("--rules-per-account", type=int, default=None)
    simulate.add_argument("--seed", type=int, default=None, help="Random seed")
    simulate.add_argument("--sink", choices=SINK_TYPES, default=None, help="Audit record sink")
    simulate.add_argument("--output-dir", type=Path, default=None, help="Directory for json sink")

    subparsers.add_parser("deploy", help="Deploy and print the vault/engine wiring")

    return parser


def apply_args(config: FlowVaultConfig, args: argparse.Namespace) -> FlowVaultConfig:
    """Override environment configuration with command-line arguments."""
    overrides = {}
    if args.log_level:
        overrides["log_level"] = args.log_level
    if args.log_format:
        overrides["log_format"] = args.log_format
    if args.store:
        overrides["store_backend"] = args.store

    if args.command == "simulate":
        sim_overrides = {}
        if args.accounts is not None:
            sim_overrides["num_accounts"] = args.accounts
        if args.days is not None:
            sim_overrides["days"] = args.days
        if args.rules_per_account is not None:
            sim_overrides["rules_per_account"] = args.rules_per_account
        if sim_overrides:
            overrides["simulation"] = replace(config.simulation, **sim_overrides)
        if args.seed is not None:
            overrides["seed"] = args.seed
        if args.sink:
            overrides["sink"] = args.sink
        if args.output_dir is not None:
            overrides["output"] = replace(config.output, json_output_dir=args.output_dir)

    return replace(config, **overrides) if overrides else config


def cmd_simulate(config: FlowVaultConfig) -> int:
    sink = build_sink(config)
    store = build_store(config)
    try:
        result = run_simulation(config, sinks=[sink] if sink else [], store=store)
    finally:
        if sink is not None:
            sink.close()
        store.close()

    print(f"\n{'='*60}")
    print("Simulation Summary")
    print("=" * 60)
    print(f"  accounts:          {len(result.accounts)}")
    print(f"  rules created:     {result.rules_created} ({result.rules_rejected} rejected)")
    print(f"  keeper executions: {result.executed} ({result.failed} failed)")
    print(f"  manual executions: {result.manual_runs}")
    print(f"  deposited:         {result.total_deposited}")
    print(f"  paid out:          {result.total_paid_out}")
    print(f"  custody:           {result.final_custody}")
    print(f"  custody conserved: {result.custody_conserved}")
    for event_type, count in sorted(result.records_by_type.items()):
        print(f"  {event_type}: {count}")
    return 0 if result.custody_conserved else 1


def cmd_deploy(config: FlowVaultConfig) -> int:
    store = build_store(config)
    try:
        deployment = deploy(Runtime(store=store), deployer="deployer")
        print(json.dumps(deployment.summary(), indent=2))
    finally:
        store.close()
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = apply_args(FlowVaultConfig.from_env(), args)
    except FlowVaultError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    setup_logging(config.log_level, config.log_format)

    commands = {"simulate": cmd_simulate, "deploy": cmd_deploy}
    try:
        return commands[args.command](config)
    except FlowVaultError as exc:
        logger.error("%s failed: %s", args.command, exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
