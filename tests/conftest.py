"""Shared fixtures: small boxes of point charges and water molecules."""

import math

import numpy as np
import pytest

from mccore.system import Atom, Box, Environment, Molecule, build_box

# TIP3P-like water, oxygen first (primary atom)
WATER_ATOMS = (
    Atom(0, "O", sigma=3.15061, epsilon=0.1521, charge=-0.834),
    Atom(1, "H", charge=0.417),
    Atom(2, "H", charge=0.417),
)
WATER_POSITIONS = np.array(
    [
        [0.0, 0.0, 0.0],
        [0.9572, 0.0, 0.0],
        [-0.239988, 0.926627, 0.0],
    ]
)


def _point_box(
    charges,
    positions=None,
    lengths=(10.0, 10.0, 10.0),
    cutoff=math.inf,
    temperature=298.15,
    seed=0,
):
    n = len(charges)
    if positions is None:
        # Spread along the diagonal, well inside the box
        positions = [[1.0 + i, 1.0 + i, 1.0 + i] for i in range(n)]
    environment = Environment(
        box_lengths=lengths,
        temperature=temperature,
        n_molecules=n,
        cutoff=cutoff,
        random_seed=seed,
    )
    molecules = [
        Molecule(
            id=i,
            atoms=(Atom(i, "X", charge=float(q)),),
            positions=np.array([positions[i]], dtype=float),
        )
        for i, q in enumerate(charges)
    ]
    return Box(environment, molecules)


@pytest.fixture
def make_point_box():
    """Factory for boxes of single-atom molecules with given charges."""
    return _point_box


@pytest.fixture
def water_template():
    """Single water molecule used as a template."""
    return Molecule(id=0, atoms=WATER_ATOMS, positions=WATER_POSITIONS.copy())


@pytest.fixture
def make_water_box(water_template):
    """Factory for randomly built water boxes."""

    def factory(
        n_molecules=5,
        length=20.0,
        cutoff=math.inf,
        seed=12345,
        temperature=298.15,
    ):
        environment = Environment(
            box_lengths=(length, length, length),
            temperature=temperature,
            n_molecules=n_molecules,
            cutoff=cutoff,
            random_seed=seed,
        )
        rng = np.random.default_rng(seed)
        return build_box(water_template, environment, rng), rng

    return factory


@pytest.fixture
def water_box(make_water_box):
    """Five water molecules in a 20 A box, with the stream used to build them."""
    return make_water_box()
