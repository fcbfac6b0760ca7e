"""Metropolis Monte Carlo engine."""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from .reporters import Reporter, ReporterGroup

if TYPE_CHECKING:
    from ..energy import EnergyCalculator
    from ..system import Box

logger = logging.getLogger(__name__)

# Boltzmann constant in kcal/(mol*K)
K_BOLTZMANN = 1.987206504191549e-3


@dataclass(frozen=True)
class StepOutcome:
    """Result of one Metropolis step."""

    step: int
    molecule_index: int
    old_energy: float
    new_energy: float
    accepted: bool

    @property
    def delta(self) -> float:
        """Return the change in the molecule's energy contribution."""
        return self.new_energy - self.old_energy


@dataclass(frozen=True)
class RunSummary:
    """
    Summary of one call to ``MetropolisEngine.run``.

    Attributes:
        mode: Evaluator mode ("sequential" or "parallel").
        backend: Parallel backend name, or None in sequential mode.
        step_start: First step of the run.
        n_steps: Number of steps run.
        n_molecules: Number of molecules in the box.
        initial_energy: Total energy before the first step.
        final_energy: Total energy after the last step.
        run_time: Wall-clock time of the loop in seconds.
        accepted: Accepted moves.
        rejected: Rejected moves.
    """

    mode: str
    backend: str | None
    step_start: int
    n_steps: int
    n_molecules: int
    initial_energy: float
    final_energy: float
    run_time: float
    accepted: int
    rejected: int

    @property
    def acceptance_rate(self) -> float:
        """Return accepted moves as a percentage of all moves."""
        total = self.accepted + self.rejected
        if total == 0:
            return 0.0
        return 100.0 * self.accepted / total


def metropolis_accept(
    old_energy: float,
    new_energy: float,
    kT: float,
    rng: np.random.Generator,
) -> bool:
    """
    Apply the Metropolis criterion.

    Energy-lowering moves are always accepted without consuming a draw.
    Otherwise one uniform draw u in [0, 1) is taken and the move is
    accepted when exp(-(new - old) / kT) >= u.

    Args:
        old_energy: Energy contribution before the move.
        new_energy: Energy contribution after the move.
        kT: Boltzmann constant times temperature.
        rng: Random stream.

    Returns:
        True if the move is accepted.
    """
    if new_energy < old_energy:
        return True
    probability = math.exp(-(new_energy - old_energy) / kT)
    return probability >= rng.random()


class MetropolisEngine:
    """
    Metropolis Monte Carlo driver.

    Each step:
    1. Propose: choose a molecule and evaluate its energy contribution
    2. Mutate: apply a random rigid-body move
    3. Evaluate: evaluate the contribution again
    4. Decide: Metropolis criterion
    5. Commit (update total energy) or roll back the move

    The random stream is consumed in a fixed order per step: molecule
    choice, move magnitudes, then the acceptance draw (only for moves that
    raise the energy). Given the same seed and evaluator, a run is
    reproducible.

    Example usage:
        engine = MetropolisEngine(
            box=box,
            calculator=SequentialEnergyCalculator(LennardJonesCoulombPotential()),
            rng=np.random.default_rng(box.environment.random_seed),
        )
        engine.add_reporter(StatusReporter(frequency=100))
        summary = engine.run(n_steps=1000)
    """

    def __init__(
        self,
        box: Box,
        calculator: EnergyCalculator,
        rng: np.random.Generator | None = None,
        step_start: int = 0,
    ) -> None:
        """
        Initialize the engine and compute the initial total energy.

        Args:
            box: Simulation box, owned and mutated by the engine.
            calculator: Energy evaluator used for the whole run.
            rng: Random stream. Defaults to a generator seeded with the
                environment's random seed.
            step_start: Step number of the first step.
        """
        self._box = box
        self._calculator = calculator
        self._rng = (
            rng if rng is not None else np.random.default_rng(box.environment.random_seed)
        )
        self._kT = K_BOLTZMANN * box.environment.temperature

        self._step = step_start
        self._run_start = step_start
        self._accepted = 0
        self._rejected = 0

        self._reporters = ReporterGroup()

        self._energy = calculator.system_energy(box)

    @property
    def box(self) -> Box:
        """Return the simulation box."""
        return self._box

    @property
    def calculator(self) -> EnergyCalculator:
        """Return the energy evaluator."""
        return self._calculator

    @property
    def rng(self) -> np.random.Generator:
        """Return the random stream."""
        return self._rng

    @property
    def kT(self) -> float:
        """Return Boltzmann constant times temperature (kcal/mol)."""
        return self._kT

    @property
    def step_number(self) -> int:
        """Return the number of the next step to run."""
        return self._step

    @property
    def run_start(self) -> int:
        """Return the first step of the current or last run."""
        return self._run_start

    @property
    def energy(self) -> float:
        """Return the running total energy."""
        return self._energy

    @property
    def accepted(self) -> int:
        """Return accepted moves so far."""
        return self._accepted

    @property
    def rejected(self) -> int:
        """Return rejected moves so far."""
        return self._rejected

    def add_reporter(self, reporter: Reporter) -> None:
        """Add a reporter."""
        self._reporters.add(reporter)

    def remove_reporter(self, reporter: Reporter) -> None:
        """Remove a reporter."""
        self._reporters.remove(reporter)

    def step(self) -> StepOutcome:
        """
        Perform a single Monte Carlo step.

        Returns:
            Outcome of the step.
        """
        box = self._box
        calculator = self._calculator

        index = box.choose_molecule_index(self._rng)
        old_energy = calculator.molecular_energy_contribution(box, index)

        box.apply_move(index, self._rng)
        new_energy = calculator.molecular_energy_contribution(box, index)

        accepted = metropolis_accept(old_energy, new_energy, self._kT, self._rng)
        if accepted:
            box.commit(index)
            self._accepted += 1
            self._energy += new_energy - old_energy
        else:
            box.rollback(index)
            self._rejected += 1

        outcome = StepOutcome(
            step=self._step,
            molecule_index=index,
            old_energy=old_energy,
            new_energy=new_energy,
            accepted=accepted,
        )
        self._step += 1
        return outcome

    def run(self, n_steps: int) -> RunSummary:
        """
        Run the simulation for a number of steps.

        Reporters fire before each step (by steps elapsed in this run) and
        are finalized after the last step. Any evaluation error aborts the
        run and propagates.

        Args:
            n_steps: Number of steps to run.

        Returns:
            Summary of this run.
        """
        if n_steps < 0:
            raise ValueError(f"n_steps must be non-negative, got {n_steps}")

        self._run_start = self._step
        initial_energy = self._energy
        accepted_before = self._accepted
        rejected_before = self._rejected

        logger.info("Running %d steps from step %d", n_steps, self._run_start)
        self._reporters.initialize(self)

        start_time = time.perf_counter()
        try:
            for _ in range(n_steps):
                self._reporters.report(self)
                self.step()
        finally:
            run_time = time.perf_counter() - start_time

        self._reporters.finalize(self)

        backend = getattr(self._calculator, "backend", None)
        summary = RunSummary(
            mode=self._calculator.name,
            backend=backend.name if backend is not None else None,
            step_start=self._run_start,
            n_steps=n_steps,
            n_molecules=self._box.n_molecules,
            initial_energy=initial_energy,
            final_energy=self._energy,
            run_time=run_time,
            accepted=self._accepted - accepted_before,
            rejected=self._rejected - rejected_before,
        )

        logger.info(
            "Finished %d steps: final energy %.6f, accepted %d, rejected %d (%.2f%%)",
            n_steps,
            summary.final_energy,
            summary.accepted,
            summary.rejected,
            summary.acceptance_rate,
        )
        return summary
