"""
High-level simulation orchestration.

Ties a configuration to a box, an energy evaluator, the Metropolis engine
and the output files.

Example:
    >>> from mccore.io import load_config
    >>> from mccore.simulation import Simulation
    >>> output = Simulation(load_config("water.yaml")).run()
    >>> print(output.summary.acceptance_rate)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np

from .energy import (
    EnergyCalculator,
    ParallelEnergyCalculator,
    SequentialEnergyCalculator,
    create_potential,
)
from .engines import MetropolisEngine, RunSummary, StateFileReporter, StatusReporter
from .exceptions import ConfigurationError
from .io import CheckpointManager, SimulationConfig, read_state_file, write_pdb
from .io.results import RESULTS_SUFFIX, write_results
from .parallel import ParallelBackend, create_backend
from .system import Box, build_box

logger = logging.getLogger(__name__)


@dataclass
class SimulationOutput:
    """Results of a simulation run."""

    summary: RunSummary
    results_file: Path | None = None
    pdb_file: Path | None = None
    state_files: list[Path] = field(default_factory=list)


class Simulation:
    """
    One configured Monte Carlo run.

    The box is built on construction: from the molecule template placed at
    random with the environment's seed, or from ``state_input``, in which
    case the step number and random stream continue where the state file
    left off.
    """

    def __init__(self, config: SimulationConfig) -> None:
        """
        Prepare the box and random stream.

        Args:
            config: Run options.

        Raises:
            ConfigurationError: If neither a state file nor a new box is configured.
            StateFileError: If the state file is unreadable or invalid.
            BoxInitializationError: If the box cannot be constructed.
        """
        self.config = config
        self.box, self.rng, self.step_start = self._prepare()

    def _prepare(self) -> tuple[Box, np.random.Generator, int]:
        config = self.config

        if config.state_input is not None:
            logger.info("Loading state file %s", config.state_input)
            checkpoint = read_state_file(config.state_input)
            if checkpoint.metadata:
                logger.info(
                    "State file written by run %s (%s mode, %s potential)",
                    checkpoint.metadata.get("name"),
                    checkpoint.metadata.get("mode"),
                    checkpoint.metadata.get("potential"),
                )
            box = checkpoint.to_box()
            rng = checkpoint.restore_rng()
            if rng is None:
                rng = np.random.default_rng(box.environment.random_seed)
            return box, rng, checkpoint.step

        environment = config.environment
        if environment is None or config.template is None:
            raise ConfigurationError(
                "A new box needs an environment and a molecule template"
            )

        logger.info(
            "Building box of %d molecules (%d atoms each)",
            environment.n_molecules,
            config.template.n_atoms,
        )
        rng = np.random.default_rng(environment.random_seed)
        return build_box(config.template, environment, rng), rng, 0

    def create_backend(self) -> ParallelBackend:
        """Create the parallel backend named in the configuration."""
        kwargs = {}
        if self.config.backend in ("multiprocessing", "auto") and self.config.workers:
            kwargs["n_workers"] = self.config.workers
        return create_backend(self.config.backend, **kwargs)

    def create_calculator(
        self, backend: ParallelBackend | None = None
    ) -> EnergyCalculator:
        """
        Create the energy evaluator for the configured mode.

        Args:
            backend: Backend for parallel mode. Created from the
                configuration if not given.
        """
        potential = create_potential(self.config.potential)
        include = self.config.include_intramolecular

        if self.config.mode == "parallel":
            return ParallelEnergyCalculator(
                potential,
                backend=backend if backend is not None else self.create_backend(),
                include_intramolecular=include,
            )
        return SequentialEnergyCalculator(potential, include_intramolecular=include)

    def run(self) -> SimulationOutput:
        """
        Run the configured number of steps and write the output files.

        State files, the results report and the PDB snapshot go to
        ``output_dir``. With MPI only rank 0 writes files.

        Returns:
            Summary of the run and the paths written.
        """
        config = self.config
        backend = self.create_backend() if config.mode == "parallel" else None
        is_root = backend is None or backend.is_root

        try:
            calculator = self.create_calculator(backend)
            engine = MetropolisEngine(
                self.box, calculator, rng=self.rng, step_start=self.step_start
            )
            logger.info(
                "Using %s evaluator%s",
                calculator.name,
                f" on {backend.name} backend" if backend is not None else "",
            )

            if config.status_interval > 0:
                engine.add_reporter(StatusReporter(frequency=config.status_interval))

            state_reporter = None
            if config.state_interval >= 0 and is_root:
                manager = CheckpointManager(config.output_dir, prefix=config.state_name)
                state_reporter = StateFileReporter(
                    manager,
                    frequency=config.state_interval,
                    metadata={
                        "name": config.name,
                        "mode": config.mode,
                        "potential": config.potential,
                    },
                )
                engine.add_reporter(state_reporter)

            summary = engine.run(config.steps)
        finally:
            if backend is not None:
                backend.close()

        output = SimulationOutput(summary=summary)
        if state_reporter is not None:
            output.state_files = state_reporter.written

        if is_root:
            config.output_dir.mkdir(parents=True, exist_ok=True)
            name = config.output_name
            output.results_file = write_results(
                summary, config.output_dir / f"{name}{RESULTS_SUFFIX}", name=config.name
            )
            output.pdb_file = write_pdb(self.box, config.output_dir / f"{name}.pdb")
            logger.info("Wrote %s and %s", output.results_file, output.pdb_file)

        return output


def run_simulation(config: SimulationConfig) -> SimulationOutput:
    """Build and run a simulation from a configuration."""
    return Simulation(config).run()
