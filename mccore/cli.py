"""Command line entry point: ``mccore CONFIG [options]``."""

from __future__ import annotations

import argparse
import logging
from collections.abc import Sequence
from dataclasses import replace
from pathlib import Path
from typing import Any

from . import __version__
from .exceptions import MCError
from .io import load_config
from .simulation import Simulation

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mccore",
        description="Metropolis Monte Carlo simulation of rigid molecules.",
    )
    parser.add_argument("config", type=Path, help="YAML configuration file.")

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "-s",
        "--sequential",
        dest="mode",
        action="store_const",
        const="sequential",
        help="Use the sequential energy evaluator.",
    )
    mode.add_argument(
        "-p",
        "--parallel",
        dest="mode",
        action="store_const",
        const="parallel",
        help="Use the parallel energy evaluator.",
    )

    parser.add_argument(
        "--backend",
        choices=["serial", "multiprocessing", "mpi4py", "auto"],
        help="Backend for the parallel evaluator.",
    )
    parser.add_argument("--workers", type=int, help="Process pool size.")
    parser.add_argument("--name", help="Simulation name (output file prefix).")
    parser.add_argument("--steps", type=int, help="Number of steps to run.")
    parser.add_argument(
        "-i",
        "--status-interval",
        type=int,
        help="Steps between status lines (0 disables).",
    )
    parser.add_argument(
        "-I",
        "--state-interval",
        type=int,
        help="Steps between state files (0: final only, negative: none).",
    )
    parser.add_argument("--output-dir", type=Path, help="Directory for output files.")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging."
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _overrides(args: argparse.Namespace) -> dict[str, Any]:
    """Collect options given on the command line."""
    names = (
        "mode",
        "backend",
        "workers",
        "name",
        "steps",
        "status_interval",
        "state_interval",
        "output_dir",
    )
    return {
        name: getattr(args, name) for name in names if getattr(args, name) is not None
    }


def main(argv: Sequence[str] | None = None) -> int:
    """
    Run a simulation from the command line.

    Returns:
        Exit status: 0 on success, 1 when the configuration, state file or
        box cannot be set up.
    """
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = replace(load_config(args.config), **_overrides(args))
        simulation = Simulation(config)
    except MCError as e:
        logger.error("%s", e)
        return 1

    output = simulation.run()
    summary = output.summary
    logger.info("Final energy: %s", summary.final_energy)
    logger.info("Run time: %.3f seconds", summary.run_time)
    logger.info(
        "Accepted moves: %d, rejected moves: %d (%.2f%%)",
        summary.accepted,
        summary.rejected,
        summary.acceptance_rate,
    )
    return 0
