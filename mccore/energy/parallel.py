"""Data-parallel pairwise energy evaluator."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from functools import partial
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from ..parallel import ParallelBackend, get_backend
from .base import EnergyCalculator, pair_distances, within_cutoff
from .indexing import n_pairs, rectangle_units, triangle_units
from .potentials import PairPotential

if TYPE_CHECKING:
    from ..system import AtomParameters, Box, Cell

# Compute units handed to a worker at a time
DEFAULT_BLOCK_SIZE = 65536

BlockResult = tuple[NDArray[np.integer], NDArray[np.floating]]


@dataclass(frozen=True)
class BoxSnapshot:
    """
    Copy of the box state staged into the compute domain for one call.

    Attributes:
        positions: Atom positions, shape (N, 3).
        parameters: Atom descriptors.
        molecule_of_atom: Molecule index of every atom, shape (N,).
        primary_positions: Primary atom position of every molecule, shape (M, 3).
        cell: Periodic cell.
        cutoff: Molecule-level cutoff.
        include_intramolecular: Whether same-molecule pairs interact.
    """

    positions: NDArray[np.floating]
    parameters: AtomParameters
    molecule_of_atom: NDArray[np.integer]
    primary_positions: NDArray[np.floating]
    cell: Cell
    cutoff: float
    include_intramolecular: bool

    @classmethod
    def from_box(cls, box: Box, include_intramolecular: bool) -> BoxSnapshot:
        """Copy the state needed by the kernels out of a box."""
        positions = box.positions.copy()
        return cls(
            positions=positions,
            parameters=box.atom_parameters,
            molecule_of_atom=box.molecule_of_atom,
            primary_positions=positions[box.primary_atoms],
            cell=box.cell,
            cutoff=box.environment.cutoff,
            include_intramolecular=include_intramolecular,
        )


def pair_kernel(
    snapshot: BoxSnapshot,
    potential: PairPotential,
    a: NDArray[np.integer],
    b: NDArray[np.integer],
) -> NDArray[np.floating]:
    """
    Evaluate the atom pairs (a[k], b[k]).

    Excluded pairs (same molecule, or molecules beyond the cutoff) get 0.

    Returns:
        Pair energies, shape (len(a),).
    """
    energies = np.zeros(len(a), dtype=np.float64)

    mol_a = snapshot.molecule_of_atom[a]
    mol_b = snapshot.molecule_of_atom[b]
    live = within_cutoff(
        snapshot.cell,
        snapshot.cutoff,
        snapshot.primary_positions[mol_a],
        snapshot.primary_positions[mol_b],
    )
    if not snapshot.include_intramolecular:
        live &= mol_a != mol_b

    if not np.any(live):
        return energies

    a = a[live]
    b = b[live]
    r = pair_distances(snapshot.cell, snapshot.positions[a], snapshot.positions[b])
    params = snapshot.parameters
    energies[live] = potential(params.take(a), params.take(b), r)
    return energies


def triangle_block(
    snapshot: BoxSnapshot,
    potential: PairPotential,
    atoms: NDArray[np.integer],
    bounds: tuple[int, int],
) -> BlockResult:
    """
    Run one block of the triangular decomposition over ``atoms``.

    Unit (a, b) evaluates the pair (atoms[a], atoms[b]) when a < b and
    writes it to slot a*n + b - (a+1)(a+2)/2.

    Returns:
        Tuple of (slots, energies) written by the block.
    """
    start, stop = bounds
    a, b, slots = triangle_units(start, stop, len(atoms))
    return slots, pair_kernel(snapshot, potential, atoms[a], atoms[b])


def rectangle_block(
    snapshot: BoxSnapshot,
    potential: PairPotential,
    outer: NDArray[np.integer],
    inner: NDArray[np.integer],
    bounds: tuple[int, int],
) -> BlockResult:
    """
    Run one block of the outer x inner decomposition.

    Unit (a, b) evaluates the pair (outer[a], inner[b]) and writes it to
    slot a * len(inner) + b.

    Returns:
        Tuple of (slots, energies) written by the block.
    """
    start, stop = bounds
    a, b, slots = rectangle_units(start, stop, len(outer), len(inner))
    return slots, pair_kernel(snapshot, potential, outer[a], inner[b])


class ParallelEnergyCalculator(EnergyCalculator):
    """
    Energy evaluator that spreads pair evaluations over compute units.

    The N(N-1)/2 pair evaluations of the box are laid out on an N x N grid
    of units. Units above the diagonal each own one slot of a dense pair
    buffer (see ``mccore.energy.indexing``), so blocks of units can run on
    any backend in any order without locks; the buffer is summed once all
    blocks have returned.

    A molecule's contribution uses the same scheme with the outer index
    restricted to the molecule's atoms and the inner index to all other
    atoms.

    Results match SequentialEnergyCalculator pair for pair; totals differ
    only by summation order.

    The evaluator owns its backend: ``close`` (or leaving a ``with`` block)
    shuts the backend down.

    Example:
        with ParallelEnergyCalculator(potential, backend="multiprocessing") as calculator:
            energy = calculator.system_energy(box)
    """

    def __init__(
        self,
        potential: PairPotential,
        backend: ParallelBackend | str | None = None,
        include_intramolecular: bool = False,
        block_size: int = DEFAULT_BLOCK_SIZE,
    ) -> None:
        """
        Initialize the evaluator.

        Args:
            potential: Pair energy function (must be picklable for
                process-based backends).
            backend: Backend instance or name. Defaults to serial.
            include_intramolecular: Also sum pairs within a molecule.
            block_size: Number of compute units per block.
        """
        super().__init__(potential, include_intramolecular)
        if block_size < 1:
            raise ValueError(f"block_size must be positive, got {block_size}")
        self.backend = get_backend(backend)
        self.block_size = block_size

    @property
    def name(self) -> str:
        return "parallel"

    def close(self) -> None:
        """Shut down the backend, including any worker pool it holds."""
        self.backend.close()

    def pair_energies(self, box: Box) -> NDArray[np.floating]:
        """
        Compute every pair energy of the box.

        Returns:
            Dense buffer of N(N-1)/2 pair energies in slot order; excluded
            pairs hold 0.
        """
        snapshot = BoxSnapshot.from_box(box, self.include_intramolecular)
        n = box.n_atoms
        kernel = partial(triangle_block, snapshot, self.potential, np.arange(n))
        return self._launch(kernel, n * n, n_pairs(n))

    def system_energy(self, box: Box) -> float:
        return float(np.sum(self.pair_energies(box)))

    def molecular_energy_contribution(self, box: Box, index: int) -> float:
        snapshot = BoxSnapshot.from_box(box, self.include_intramolecular)
        lo, hi = box.atom_range(index)
        outer = np.arange(lo, hi)
        inner = np.concatenate([np.arange(0, lo), np.arange(hi, box.n_atoms)])

        n_units = len(outer) * len(inner)
        kernel = partial(rectangle_block, snapshot, self.potential, outer, inner)
        total = float(np.sum(self._launch(kernel, n_units, n_units)))

        if self.include_intramolecular:
            m = len(outer)
            kernel = partial(triangle_block, snapshot, self.potential, outer)
            total += float(np.sum(self._launch(kernel, m * m, n_pairs(m))))

        return total

    def _launch(
        self,
        kernel: Callable[[tuple[int, int]], BlockResult],
        n_units: int,
        n_slots: int,
    ) -> NDArray[np.floating]:
        """
        Run ``kernel`` over this rank's share of the unit grid.

        Returns:
            The filled slot buffer, combined across ranks.
        """
        buffer = np.zeros(n_slots, dtype=np.float64)

        start, stop = self.backend.partition(n_units)
        blocks = [
            (s, min(s + self.block_size, stop))
            for s in range(start, stop, self.block_size)
        ]

        for slots, energies in self.backend.parallel_map(kernel, blocks):
            buffer[slots] = energies

        # Ranks fill disjoint slots, so the sum is a gather
        return self.backend.allreduce_sum(buffer)
