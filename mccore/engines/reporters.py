"""Reporter implementations for simulation output."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any

import numpy as np

if TYPE_CHECKING:
    from ..io import CheckpointManager
    from .metropolis import MetropolisEngine

logger = logging.getLogger(__name__)


class Reporter(ABC):
    """
    Abstract base class for simulation reporters.

    Reporters are called before every step of a run with the engine and
    decide from the number of steps elapsed in the run whether to fire.
    """

    @abstractmethod
    def report(self, engine: MetropolisEngine) -> None:
        """
        Generate report for the current engine state.

        Args:
            engine: Running engine.
        """
        ...

    @property
    @abstractmethod
    def frequency(self) -> int:
        """Return reporting frequency (every N steps, 0 disables)."""
        ...

    def should_report(self, elapsed: int) -> bool:
        """Check if reporter should run after ``elapsed`` steps of a run."""
        return self.frequency > 0 and elapsed % self.frequency == 0

    def initialize(self, engine: MetropolisEngine) -> None:
        """Initialize reporter (called before the run)."""
        pass

    def finalize(self, engine: MetropolisEngine) -> None:
        """Finalize reporter (called after the run)."""
        pass


class ReporterGroup:
    """
    Collection of reporters with automatic frequency handling.
    """

    def __init__(self, reporters: list[Reporter] | None = None) -> None:
        self._reporters: list[Reporter] = reporters if reporters else []

    def __len__(self) -> int:
        return len(self._reporters)

    def add(self, reporter: Reporter) -> None:
        """Add a reporter to the group."""
        self._reporters.append(reporter)

    def remove(self, reporter: Reporter) -> None:
        """Remove a reporter from the group."""
        self._reporters.remove(reporter)

    def initialize(self, engine: MetropolisEngine) -> None:
        """Initialize all reporters."""
        for reporter in self._reporters:
            reporter.initialize(engine)

    def report(self, engine: MetropolisEngine) -> None:
        """Run all reporters that should fire at this step."""
        elapsed = engine.step_number - engine.run_start
        for reporter in self._reporters:
            if reporter.should_report(elapsed):
                reporter.report(engine)

    def finalize(self, engine: MetropolisEngine) -> None:
        """Finalize all reporters."""
        for reporter in self._reporters:
            reporter.finalize(engine)


class StatusReporter(Reporter):
    """
    Reporter that logs the current step and total energy.

    Output format:
        Step 100: current energy -1234.5678
    """

    def __init__(self, frequency: int = 100, level: int = logging.INFO) -> None:
        """
        Initialize status reporter.

        Args:
            frequency: Reporting frequency (every N steps).
            level: Logging level of the status lines.
        """
        self._frequency = frequency
        self._level = level

    @property
    def frequency(self) -> int:
        return self._frequency

    def report(self, engine: MetropolisEngine) -> None:
        self._log(engine)

    def finalize(self, engine: MetropolisEngine) -> None:
        """Log the status after the last step."""
        if self._frequency > 0:
            self._log(engine)

    def _log(self, engine: MetropolisEngine) -> None:
        logger.log(
            self._level,
            "Step %d: current energy %.6f",
            engine.step_number,
            engine.energy,
        )


class StateFileReporter(Reporter):
    """
    Reporter that writes state files for restart.

    A state file is written every ``frequency`` steps (never before the
    first step), and once more after the last step unless ``final`` is
    False.
    """

    def __init__(
        self,
        manager: CheckpointManager,
        frequency: int = 0,
        final: bool = True,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize state file reporter.

        Args:
            manager: Checkpoint manager that owns the output directory.
            frequency: Interval in steps; 0 writes only the final state.
            final: Write a state file after the last step.
            metadata: Run description stored in every state file.
        """
        self._manager = manager
        self._frequency = frequency
        self._final = final
        self._metadata = dict(metadata or {})
        self._written: list[Path] = []

    @property
    def frequency(self) -> int:
        return self._frequency

    @property
    def written(self) -> list[Path]:
        """Return paths of the state files written so far."""
        return list(self._written)

    def should_report(self, elapsed: int) -> bool:
        return elapsed > 0 and super().should_report(elapsed)

    def report(self, engine: MetropolisEngine) -> None:
        self._save(engine)

    def finalize(self, engine: MetropolisEngine) -> None:
        if self._final:
            self._save(engine)

    def _save(self, engine: MetropolisEngine) -> None:
        path = self._manager.save(
            engine.box,
            step=engine.step_number,
            energy=engine.energy,
            rng=engine.rng,
            metadata=self._metadata,
        )
        self._written.append(path)


class CallbackReporter(Reporter):
    """
    Reporter that calls a user-defined function.

    Allows arbitrary custom reporting logic.
    """

    def __init__(
        self,
        callback: Callable[[MetropolisEngine], None],
        frequency: int = 1,
    ) -> None:
        """
        Initialize callback reporter.

        Args:
            callback: Function called with the engine.
            frequency: Reporting frequency.
        """
        self._callback = callback
        self._frequency = frequency

    @property
    def frequency(self) -> int:
        return self._frequency

    def report(self, engine: MetropolisEngine) -> None:
        self._callback(engine)


class EnergyReporter(Reporter):
    """
    Reporter that records the total energy and acceptance over time.
    """

    def __init__(self, frequency: int = 100) -> None:
        self._frequency = frequency
        self._steps: list[int] = []
        self._energies: list[float] = []
        self._accepted: list[int] = []

    @property
    def frequency(self) -> int:
        return self._frequency

    def report(self, engine: MetropolisEngine) -> None:
        """Record the current energy."""
        self._steps.append(engine.step_number)
        self._energies.append(engine.energy)
        self._accepted.append(engine.accepted)

    @property
    def steps(self) -> np.ndarray:
        """Return recorded step numbers."""
        return np.array(self._steps, dtype=np.int64)

    @property
    def energies(self) -> np.ndarray:
        """Return total energy time series."""
        return np.array(self._energies)

    @property
    def accepted(self) -> np.ndarray:
        """Return cumulative accepted moves at each record."""
        return np.array(self._accepted, dtype=np.int64)

    def clear(self) -> None:
        """Clear stored data."""
        self._steps.clear()
        self._energies.clear()
        self._accepted.clear()
