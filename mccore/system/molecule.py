"""Atom and molecule representations."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import NamedTuple

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ..exceptions import BoxInitializationError


@dataclass(frozen=True)
class Atom:
    """
    Force-field descriptor of a single atom.

    Positions are not stored here; they live in the owning molecule's
    position array so that a box can keep all coordinates contiguous.

    Attributes:
        id: Atom identifier, unique within the box.
        name: Element or atom type tag (e.g. "O", "H").
        sigma: Lennard-Jones size parameter in angstrom.
        epsilon: Lennard-Jones well depth in kcal/mol.
        charge: Partial charge in elementary charge units.
    """

    id: int
    name: str
    sigma: float = 0.0
    epsilon: float = 0.0
    charge: float = 0.0


class AtomParameters(NamedTuple):
    """
    Vectorised atom descriptors handed to pair potentials.

    Each field has one entry per atom. Index with ``take`` to select the
    descriptors of a subset of atoms.
    """

    sigma: NDArray[np.floating]
    epsilon: NDArray[np.floating]
    charge: NDArray[np.floating]

    @classmethod
    def from_atoms(cls, atoms: Sequence[Atom]) -> AtomParameters:
        """Build descriptor arrays from a sequence of atoms."""
        return cls(
            sigma=np.array([a.sigma for a in atoms], dtype=np.float64),
            epsilon=np.array([a.epsilon for a in atoms], dtype=np.float64),
            charge=np.array([a.charge for a in atoms], dtype=np.float64),
        )

    def take(self, indices: ArrayLike) -> AtomParameters:
        """Return the descriptors of the atoms at ``indices``."""
        indices = np.asarray(indices)
        return AtomParameters(
            sigma=self.sigma[indices],
            epsilon=self.epsilon[indices],
            charge=self.charge[indices],
        )

    @property
    def n_atoms(self) -> int:
        """Return number of atoms described."""
        return len(self.sigma)


@dataclass
class Molecule:
    """
    Rigid molecule: an ordered group of atoms moved as one unit.

    Atom order is significant: it defines per-atom indexing inside the box
    and the order of trajectory output.

    Attributes:
        id: Molecule identifier.
        atoms: Ordered atoms of the molecule.
        positions: Atom positions, shape (n_atoms, 3), in angstrom.
    """

    id: int
    atoms: tuple[Atom, ...]
    positions: NDArray[np.floating] = field(repr=False)

    def __post_init__(self) -> None:
        """Validate and convert arrays."""
        self.atoms = tuple(self.atoms)
        self.positions = np.asarray(self.positions, dtype=np.float64)

        if len(self.atoms) == 0:
            raise BoxInitializationError(f"Molecule {self.id} has no atoms")
        if self.positions.shape != (len(self.atoms), 3):
            raise BoxInitializationError(
                f"positions shape {self.positions.shape} incompatible with "
                f"{len(self.atoms)} atoms"
            )

    @property
    def n_atoms(self) -> int:
        """Return number of atoms."""
        return len(self.atoms)

    def copy(self) -> Molecule:
        """Create a copy that owns its positions."""
        return Molecule(id=self.id, atoms=self.atoms, positions=self.positions.copy())
