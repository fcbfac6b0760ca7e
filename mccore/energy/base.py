"""Base interface for energy evaluators."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from .potentials import PairPotential

if TYPE_CHECKING:
    from ..system import Box, Cell


class EnergyCalculator(ABC):
    """
    Abstract base class for pairwise energy evaluators.

    The Metropolis driver holds exactly one implementation for a whole run:
    - SequentialEnergyCalculator: single thread, fixed summation order
    - ParallelEnergyCalculator: triangular decomposition over compute units

    Both apply the same pair selection rules, so they agree up to
    floating-point summation order:
    - pairs inside one molecule are skipped unless ``include_intramolecular``
    - a molecule pair interacts only when the minimum-image distance between
      their primary atoms is below the environment cutoff

    Evaluators read the box during a call and keep no reference to it.
    """

    def __init__(
        self, potential: PairPotential, include_intramolecular: bool = False
    ) -> None:
        """
        Initialize the evaluator.

        Args:
            potential: Pair energy function.
            include_intramolecular: Also sum pairs within a molecule.
        """
        self.potential = potential
        self.include_intramolecular = include_intramolecular

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the evaluator mode name."""
        ...

    @abstractmethod
    def system_energy(self, box: Box) -> float:
        """
        Compute the total potential energy of the box.

        Args:
            box: Simulation box.

        Returns:
            Sum of pair energies over all selected pairs i < j.
        """
        ...

    @abstractmethod
    def molecular_energy_contribution(self, box: Box, index: int) -> float:
        """
        Compute the energy between one molecule and the rest of the box.

        Args:
            box: Simulation box.
            index: Molecule index.

        Returns:
            Sum of pair energies between the molecule's atoms and all atoms
            of other molecules, plus the molecule's own pairs when
            intramolecular pairs are included.
        """
        ...

    def close(self) -> None:
        """Release evaluator resources."""
        pass

    def __enter__(self) -> EnergyCalculator:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def within_cutoff(
    cell: Cell,
    cutoff: float,
    r1: NDArray[np.floating],
    r2: NDArray[np.floating],
) -> NDArray[np.bool_]:
    """
    Molecule-level cutoff test on primary atom positions.

    Args:
        cell: Periodic cell.
        cutoff: Cutoff distance; infinite disables the test.
        r1: Primary atom position(s) of the first molecules, shape (3,) or (P, 3).
        r2: Primary atom position(s) of the second molecules.

    Returns:
        True where the minimum-image distance is strictly below the cutoff.
    """
    dr = cell.minimum_image(r1, r2)
    if np.isinf(cutoff):
        return np.ones(dr.shape[:-1], dtype=bool)
    return np.sum(dr * dr, axis=-1) < cutoff * cutoff


def pair_distances(
    cell: Cell,
    r1: NDArray[np.floating],
    r2: NDArray[np.floating],
) -> NDArray[np.floating]:
    """Minimum-image distances between paired positions, shape (P,)."""
    dr = cell.minimum_image(r1, r2)
    return np.sqrt(np.sum(dr * dr, axis=-1))
