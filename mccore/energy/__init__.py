"""Pairwise energy evaluation."""

from .base import EnergyCalculator, pair_distances, within_cutoff
from .indexing import n_pairs, pair_slot, slot_pair
from .parallel import ParallelEnergyCalculator
from .potentials import (
    COULOMB_CONSTANT,
    LennardJonesCoulombPotential,
    PairPotential,
    ProductPotential,
    create_potential,
)
from .sequential import SequentialEnergyCalculator

__all__ = [
    # Evaluators
    "EnergyCalculator",
    "SequentialEnergyCalculator",
    "ParallelEnergyCalculator",
    "within_cutoff",
    "pair_distances",
    # Pair index
    "n_pairs",
    "pair_slot",
    "slot_pair",
    # Potentials
    "COULOMB_CONSTANT",
    "PairPotential",
    "ProductPotential",
    "LennardJonesCoulombPotential",
    "create_potential",
]
