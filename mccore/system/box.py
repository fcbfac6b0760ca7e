"""Molecular state store: the simulation box."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
from numpy.typing import NDArray

from ..exceptions import BoxInitializationError, ConsistencyError
from ..moves import MoveRecord, MoveStatus, RigidBodyMove
from .cell import Cell
from .environment import Environment
from .molecule import Atom, AtomParameters, Molecule


class Box:
    """
    Single source of truth for the molecular configuration.

    Owns the ordered molecules, the environment and one contiguous
    position array of shape (N, 3). Each molecule's ``positions`` is a view
    into that array, so the flat atom index of a molecule's atoms follows
    molecule order and then atom order.

    The number of molecules and the atom count of every molecule never
    change. Every molecule is kept wrapped rigidly into the box: its
    primary atom always lies in [0, L) on each axis while the remaining
    atoms keep their geometry relative to it.

    Mutations go through ``apply_move`` followed by exactly one of
    ``commit`` or ``rollback``.

    Example:
        box = Box(environment, molecules)
        index = box.choose_molecule_index(rng)
        box.apply_move(index, rng)
        box.rollback(index)
    """

    def __init__(
        self,
        environment: Environment,
        molecules: Sequence[Molecule],
        mover: RigidBodyMove | None = None,
    ) -> None:
        """
        Initialize the box.

        Args:
            environment: Run parameters; ``n_molecules`` must match.
            molecules: Molecules with initial positions. Copied.
            mover: Move generator. Defaults to the environment's bounds.

        Raises:
            BoxInitializationError: If the molecules do not match the
                environment or contain invalid coordinates.
        """
        if len(molecules) != environment.n_molecules:
            raise BoxInitializationError(
                f"Environment declares {environment.n_molecules} molecules, "
                f"got {len(molecules)}"
            )

        primary = environment.primary_atom_index
        for molecule in molecules:
            if primary >= molecule.n_atoms:
                raise BoxInitializationError(
                    f"primary_atom_index {primary} out of range for molecule "
                    f"{molecule.id} with {molecule.n_atoms} atoms"
                )
            if not np.all(np.isfinite(molecule.positions)):
                raise BoxInitializationError(
                    f"Molecule {molecule.id} has non-finite positions"
                )

        self._environment = environment
        self._mover = mover or RigidBodyMove(
            environment.max_translation, environment.max_rotation
        )

        counts = np.array([m.n_atoms for m in molecules], dtype=np.int64)
        self._offsets = np.concatenate([[0], np.cumsum(counts)])
        self._positions = np.concatenate([m.positions for m in molecules]).astype(
            np.float64
        )

        self._molecules: list[Molecule] = []
        for i, molecule in enumerate(molecules):
            lo, hi = self.atom_range(i)
            self._molecules.append(
                Molecule(
                    id=molecule.id,
                    atoms=molecule.atoms,
                    positions=self._positions[lo:hi],
                )
            )
            self._wrap_molecule(i)

        self._atoms: tuple[Atom, ...] = tuple(
            atom for molecule in self._molecules for atom in molecule.atoms
        )
        self._parameters = AtomParameters.from_atoms(self._atoms)
        self._molecule_of_atom = np.repeat(np.arange(len(counts)), counts)
        self._primary_atoms = self._offsets[:-1] + primary

        self._pending: dict[int, MoveRecord] = {}

    @property
    def environment(self) -> Environment:
        """Return the run environment."""
        return self._environment

    @property
    def cell(self) -> Cell:
        """Return the periodic cell."""
        return self._environment.cell

    @property
    def molecules(self) -> list[Molecule]:
        """Return molecules in box order."""
        return self._molecules

    @property
    def atoms(self) -> tuple[Atom, ...]:
        """Return all atoms in flat index order."""
        return self._atoms

    @property
    def positions(self) -> NDArray[np.floating]:
        """Return the flat position array, shape (N, 3)."""
        return self._positions

    @property
    def n_molecules(self) -> int:
        """Return number of molecules."""
        return len(self._molecules)

    @property
    def n_atoms(self) -> int:
        """Return number of atoms."""
        return len(self._positions)

    @property
    def atom_parameters(self) -> AtomParameters:
        """Return per-atom force-field descriptors in flat index order."""
        return self._parameters

    @property
    def molecule_of_atom(self) -> NDArray[np.integer]:
        """Return the molecule index of every atom, shape (N,)."""
        return self._molecule_of_atom

    @property
    def primary_atoms(self) -> NDArray[np.integer]:
        """Return the flat index of every molecule's primary atom."""
        return self._primary_atoms

    def atom_range(self, index: int) -> tuple[int, int]:
        """Return the flat atom index range [start, stop) of a molecule."""
        return int(self._offsets[index]), int(self._offsets[index + 1])

    def choose_molecule_index(self, rng: np.random.Generator) -> int:
        """Pick a molecule uniformly at random using one draw from ``rng``."""
        return int(rng.integers(self.n_molecules))

    def apply_move(self, index: int, rng: np.random.Generator) -> MoveRecord:
        """
        Randomly translate and rotate one molecule.

        The old positions are kept for a later ``rollback``. A move still
        pending on the same molecule is committed first.

        Args:
            index: Molecule index.
            rng: Random stream for the move magnitudes.

        Returns:
            The pending move record.

        Raises:
            ConsistencyError: If ``index`` is out of range. The box is left
                unchanged.
        """
        self._check_index(index)

        if index in self._pending:
            self.commit(index)

        lo, hi = self.atom_range(index)
        record = MoveRecord(
            molecule_index=index, old_positions=self._positions[lo:hi].copy()
        )

        new_positions = self._mover.propose(
            record.old_positions, self._environment.primary_atom_index, rng
        )
        self._positions[lo:hi] = new_positions
        self._wrap_molecule(index)

        self._pending[index] = record
        return record

    def commit(self, index: int) -> MoveRecord:
        """
        Accept the pending move of a molecule and discard its undo record.

        Raises:
            ConsistencyError: If no move is pending for ``index``.
        """
        record = self._pop_pending(index)
        record.status = MoveStatus.COMMITTED
        return record

    def rollback(self, index: int) -> MoveRecord:
        """
        Restore the positions saved by the pending move of a molecule.

        Raises:
            ConsistencyError: If no move is pending for ``index``.
        """
        record = self._pop_pending(index)
        lo, hi = self.atom_range(index)
        self._positions[lo:hi] = record.old_positions
        record.status = MoveStatus.ROLLED_BACK
        return record

    def pending_move(self, index: int) -> MoveRecord | None:
        """Return the pending move record of a molecule, if any."""
        return self._pending.get(index)

    def _pop_pending(self, index: int) -> MoveRecord:
        self._check_index(index)
        try:
            return self._pending.pop(index)
        except KeyError:
            raise ConsistencyError(f"No pending move for molecule {index}") from None

    def _check_index(self, index: int) -> None:
        if not 0 <= index < self.n_molecules:
            raise ConsistencyError(
                f"Molecule index {index} out of range [0, {self.n_molecules})"
            )

    def _wrap_molecule(self, index: int) -> None:
        """Shift a molecule by a lattice vector so its primary atom is inside the box."""
        lo, hi = self.atom_range(index)
        pivot = self._positions[lo + self._environment.primary_atom_index]
        shift = self.cell.wrap_shift(pivot)
        if np.any(shift != 0.0):
            self._positions[lo:hi] += shift
