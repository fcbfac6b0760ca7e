"""Summary report written at the end of a run."""

from __future__ import annotations

import configparser
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..engines import RunSummary

RESULTS_BANNER = "######### mccore Results File #############"
RESULTS_SUFFIX = ".results"


def _parser() -> configparser.ConfigParser:
    parser = configparser.ConfigParser(interpolation=None)
    # Keep key case
    parser.optionxform = str  # type: ignore[assignment,method-assign]
    return parser


def write_results(
    summary: RunSummary,
    filename: str | Path,
    name: str | None = None,
    timestamp: datetime | None = None,
) -> Path:
    """
    Write a ``.results`` summary report.

    Layout:
        ######### mccore Results File #############
        [Information]
        Timestamp = 2024-01-01 12:00:00
        Simulation-Name = water
        Simulation-Mode = parallel
        Backend = multiprocessing
        Starting-Step = 0
        Steps = 1000
        Molecule-Count = 5

        [Results]
        Initial-Energy = ...
        Final-Energy = ...
        Run-Time = 1.234 seconds
        Accepted-Moves = 600
        Rejected-Moves = 400
        Acceptance-Rate = 60.00%

    Simulation-Name is omitted for unnamed runs and Backend in sequential
    mode.

    Args:
        summary: Summary returned by the engine.
        filename: Output file path.
        name: Simulation name.
        timestamp: Report time. Defaults to now.

    Returns:
        Path of the written file.
    """
    timestamp = timestamp or datetime.now()

    information = {"Timestamp": timestamp.strftime("%Y-%m-%d %H:%M:%S")}
    if name:
        information["Simulation-Name"] = name
    information["Simulation-Mode"] = summary.mode
    if summary.backend is not None:
        information["Backend"] = summary.backend
    information["Starting-Step"] = str(summary.step_start)
    information["Steps"] = str(summary.n_steps)
    information["Molecule-Count"] = str(summary.n_molecules)

    parser = _parser()
    parser["Information"] = information
    parser["Results"] = {
        "Initial-Energy": repr(summary.initial_energy),
        "Final-Energy": repr(summary.final_energy),
        "Run-Time": f"{summary.run_time:.6f} seconds",
        "Accepted-Moves": str(summary.accepted),
        "Rejected-Moves": str(summary.rejected),
        "Acceptance-Rate": f"{summary.acceptance_rate:.2f}%",
    }

    path = Path(filename)
    with path.open("w") as f:
        f.write(RESULTS_BANNER + "\n")
        parser.write(f)
    return path


def read_results(filename: str | Path) -> dict[str, dict[str, str]]:
    """
    Parse a ``.results`` file.

    Returns:
        Mapping of section name to its key/value pairs, values as written.

    Raises:
        FileNotFoundError: If the file does not exist.
        configparser.Error: If the file is malformed.
    """
    path = Path(filename)
    parser = _parser()
    with path.open() as f:
        parser.read_file(f)
    return {section: dict(parser[section]) for section in parser.sections()}
