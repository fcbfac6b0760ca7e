"""Box construction from a molecule template."""

from __future__ import annotations

from dataclasses import replace

import numpy as np

from ..exceptions import BoxInitializationError
from ..moves import rotation_matrix
from .box import Box
from .environment import Environment
from .molecule import Molecule


def replicate_molecule(
    template: Molecule,
    environment: Environment,
    rng: np.random.Generator,
) -> list[Molecule]:
    """
    Place ``environment.n_molecules`` copies of a template in the box.

    Each copy gets a uniformly random orientation and a primary atom
    position drawn uniformly inside the box. Molecule ids run from 0 and
    atom ids are renumbered sequentially across the box.

    Args:
        template: Molecule whose geometry is replicated.
        environment: Run parameters (box size, molecule count, primary atom).
        rng: Random stream; six draws per molecule (three angles, then
            three fractional coordinates).

    Returns:
        List of new molecules.
    """
    pivot = environment.primary_atom_index
    if pivot >= template.n_atoms:
        raise BoxInitializationError(
            f"primary_atom_index {pivot} out of range for template with "
            f"{template.n_atoms} atoms"
        )

    lengths = environment.cell.lengths
    local = template.positions - template.positions[pivot]

    molecules = []
    next_atom_id = 0
    for index in range(environment.n_molecules):
        angles = np.radians(rng.uniform(-180.0, 180.0, size=3))
        origin = rng.uniform(0.0, 1.0, size=3) * lengths

        atoms = tuple(
            replace(atom, id=next_atom_id + k) for k, atom in enumerate(template.atoms)
        )
        next_atom_id += len(atoms)

        positions = local @ rotation_matrix(angles).T + origin
        molecules.append(Molecule(id=index, atoms=atoms, positions=positions))

    return molecules


def build_box(
    template: Molecule,
    environment: Environment,
    rng: np.random.Generator,
) -> Box:
    """Build a box of randomly placed copies of ``template``."""
    return Box(environment, replicate_molecule(template, environment, rng))
