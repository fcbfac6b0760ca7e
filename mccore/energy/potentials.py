"""Pairwise interaction potentials."""

from __future__ import annotations

from abc import ABC, abstractmethod

import numpy as np
from numpy.typing import NDArray

from ..system.molecule import AtomParameters

# Coulomb constant in kcal*angstrom / (mol*e^2)
COULOMB_CONSTANT = 332.06


class PairPotential(ABC):
    """
    Abstract base class for pairwise energy functions.

    A pair potential maps the descriptors of two atoms and their
    minimum-image separation to a scalar energy. Implementations must be
    deterministic and commutative in the two atom arguments, and must work
    element-wise on arrays of pairs so both energy backends can share them.
    """

    @abstractmethod
    def energy(
        self,
        atoms_i: AtomParameters,
        atoms_j: AtomParameters,
        r: NDArray[np.floating],
    ) -> NDArray[np.floating]:
        """
        Compute pair energies.

        Args:
            atoms_i: Descriptors of the first atom of each pair, length P.
            atoms_j: Descriptors of the second atom of each pair, length P.
            r: Minimum-image separations, shape (P,).

        Returns:
            Pair energies, shape (P,).
        """
        ...

    def __call__(
        self,
        atoms_i: AtomParameters,
        atoms_j: AtomParameters,
        r: NDArray[np.floating],
    ) -> NDArray[np.floating]:
        return self.energy(atoms_i, atoms_j, r)


class ProductPotential(PairPotential):
    """
    Reference potential: the product of one scalar descriptor of each atom.

    Independent of separation. Useful for checking that both backends
    visit exactly the same pairs.
    """

    def __init__(self, attribute: str = "charge") -> None:
        if attribute not in AtomParameters._fields:
            raise ValueError(
                f"Unknown atom attribute {attribute!r}, "
                f"expected one of {AtomParameters._fields}"
            )
        self.attribute = attribute

    def energy(
        self,
        atoms_i: AtomParameters,
        atoms_j: AtomParameters,
        r: NDArray[np.floating],
    ) -> NDArray[np.floating]:
        values_i = getattr(atoms_i, self.attribute)
        values_j = getattr(atoms_j, self.attribute)
        return np.broadcast_to(values_i * values_j, np.shape(r)).astype(np.float64)


class LennardJonesCoulombPotential(PairPotential):
    """
    OPLS-style Lennard-Jones 12-6 plus Coulomb potential.

    V(r) = 4 * eps_ij * [(sig_ij/r)^12 - (sig_ij/r)^6] + k * q_i * q_j / r

    with geometric combining rules eps_ij = sqrt(eps_i * eps_j) and
    sig_ij = sqrt(sig_i * sig_j). Units: angstrom, kcal/mol, e.
    """

    def __init__(self, coulomb_constant: float = COULOMB_CONSTANT) -> None:
        self.coulomb_constant = coulomb_constant

    def energy(
        self,
        atoms_i: AtomParameters,
        atoms_j: AtomParameters,
        r: NDArray[np.floating],
    ) -> NDArray[np.floating]:
        r = np.asarray(r, dtype=np.float64)

        epsilon_ij = np.sqrt(atoms_i.epsilon * atoms_j.epsilon)
        sigma_ij = np.sqrt(atoms_i.sigma * atoms_j.sigma)

        # Avoid division by zero
        r_safe = np.maximum(r, 1e-10)

        sig_over_r_6 = (sigma_ij / r_safe) ** 6
        sig_over_r_12 = sig_over_r_6**2

        lj = 4.0 * epsilon_ij * (sig_over_r_12 - sig_over_r_6)
        coulomb = self.coulomb_constant * atoms_i.charge * atoms_j.charge / r_safe

        return lj + coulomb


def create_potential(name: str) -> PairPotential:
    """
    Create a pair potential by name.

    Args:
        name: "lj-coulomb" or "product".

    Raises:
        ValueError: If the name is unknown.
    """
    if name == "lj-coulomb":
        return LennardJonesCoulombPotential()
    elif name == "product":
        return ProductPotential()
    else:
        raise ValueError(f"Unknown potential: {name}. Available: lj-coulomb, product")
