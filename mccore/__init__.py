"""
mccore - Metropolis Monte Carlo engine for rigid molecules.

Design Principles:
- Box state store with an explicit move / commit / rollback lifecycle
- Interchangeable sequential and parallel pairwise energy evaluators
- Deterministic + reproducible (explicit random stream, resumable state files)
- Serial, multiprocessing and MPI execution backends

Quick Start:
    >>> import numpy as np
    >>> from mccore import MetropolisEngine, SequentialEnergyCalculator, build_box
    >>> from mccore.energy import LennardJonesCoulombPotential
    >>> rng = np.random.default_rng(env.random_seed)  # env: Environment
    >>> box = build_box(template, env, rng)
    >>> engine = MetropolisEngine(box, SequentialEnergyCalculator(
    ...     LennardJonesCoulombPotential()), rng=rng)
    >>> summary = engine.run(1000)
"""

__version__ = "0.1.0"

from .energy import (
    EnergyCalculator,
    ParallelEnergyCalculator,
    SequentialEnergyCalculator,
)
from .engines import MetropolisEngine, RunSummary
from .exceptions import (
    BoxInitializationError,
    ConfigurationError,
    ConsistencyError,
    MCError,
    StateFileError,
)
from .simulation import Simulation, run_simulation
from .system import Atom, Box, Environment, Molecule, build_box

__all__ = [
    # System
    "Atom",
    "Box",
    "Environment",
    "Molecule",
    "build_box",
    # Energy
    "EnergyCalculator",
    "SequentialEnergyCalculator",
    "ParallelEnergyCalculator",
    # Driver
    "MetropolisEngine",
    "RunSummary",
    "Simulation",
    "run_simulation",
    # Errors
    "MCError",
    "BoxInitializationError",
    "ConfigurationError",
    "StateFileError",
    "ConsistencyError",
]
