"""Command line entry point: submit a YAML batch as a simulation."""

from __future__ import annotations

import argparse
import asyncio
from typing import List, Optional

from stxer.adapters.simulation_adapter import simulation_url
from stxer.batch_file import load_batch
from stxer.builder import SimulationBuilder
from stxer.errors import SimulationError
from stxer.logger import StructuredLogger

LOGGER = StructuredLogger("cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="stxer-sim", description="stxer simulation runner")
    sub = parser.add_subparsers(dest="command", required=True)
    run = sub.add_parser("run", help="Submit a YAML batch file")
    run.add_argument("batch", help="Path to the batch YAML file")
    run.add_argument("--block-height", type=int, default=None, help="Override block height")
    run.add_argument("--sender", default=None, help="Default sender for steps without one")
    run.add_argument(
        "--network", choices=["mainnet", "testnet"], default=None, help="defaults to $STXER_NETWORK"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        builder = SimulationBuilder.new(network=args.network)
        if args.sender:
            builder.with_sender(args.sender)
        load_batch(args.batch, builder)
        if args.block_height is not None:
            builder.use_block_height(args.block_height)
        sim_id = asyncio.run(builder.run())
    except SimulationError as exc:
        LOGGER.log("cli_failed", error=str(exc), batch=args.batch)
        print(f"error: {exc}")
        return 1
    print(sim_id)
    print(f"Simulation will be available at: {simulation_url(sim_id, builder.network.name)}")
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry
    raise SystemExit(main())
