"""Sequential pairwise energy evaluator."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from .base import EnergyCalculator, pair_distances, within_cutoff

if TYPE_CHECKING:
    from ..system import Box


class SequentialEnergyCalculator(EnergyCalculator):
    """
    Reference evaluator running on a single thread.

    Molecule pairs are visited in a fixed order (i, then j > i) and their
    atom-pair energies are added to one scalar accumulator, so results are
    bit-reproducible for a fixed configuration. Working memory is bounded
    by the atom-pair block of a single molecule pair.
    """

    @property
    def name(self) -> str:
        return "sequential"

    def system_energy(self, box: Box) -> float:
        total = 0.0
        for i in range(box.n_molecules):
            if self.include_intramolecular:
                total += self._intramolecular_energy(box, i)
            for j in range(i + 1, box.n_molecules):
                total += self._molecule_pair_energy(box, i, j)
        return total

    def molecular_energy_contribution(self, box: Box, index: int) -> float:
        total = 0.0
        for j in range(box.n_molecules):
            if j == index:
                if self.include_intramolecular:
                    total += self._intramolecular_energy(box, index)
                continue
            total += self._molecule_pair_energy(box, index, j)
        return total

    def _molecule_pair_energy(self, box: Box, i: int, j: int) -> float:
        """Energy between all atoms of molecule i and all atoms of molecule j."""
        positions = box.positions
        primary = box.primary_atoms
        if not within_cutoff(
            box.cell, box.environment.cutoff, positions[primary[i]], positions[primary[j]]
        ):
            return 0.0

        lo_i, hi_i = box.atom_range(i)
        lo_j, hi_j = box.atom_range(j)
        a, b = np.meshgrid(
            np.arange(lo_i, hi_i), np.arange(lo_j, hi_j), indexing="ij"
        )
        return self._pairs_energy(box, a.ravel(), b.ravel())

    def _intramolecular_energy(self, box: Box, index: int) -> float:
        """Energy of the atom pairs inside one molecule."""
        lo, hi = box.atom_range(index)
        a, b = np.triu_indices(hi - lo, k=1)
        if len(a) == 0:
            return 0.0
        return self._pairs_energy(box, a + lo, b + lo)

    def _pairs_energy(
        self, box: Box, a: NDArray[np.integer], b: NDArray[np.integer]
    ) -> float:
        positions = box.positions
        params = box.atom_parameters
        r = pair_distances(box.cell, positions[a], positions[b])
        return float(np.sum(self.potential(params.take(a), params.take(b), r)))
