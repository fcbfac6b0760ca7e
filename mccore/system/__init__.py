"""System state: cell, environment, molecules and the box."""

from .box import Box
from .builder import build_box, replicate_molecule
from .cell import Cell
from .environment import Environment
from .molecule import Atom, AtomParameters, Molecule

__all__ = [
    "Atom",
    "AtomParameters",
    "Box",
    "Cell",
    "Environment",
    "Molecule",
    "build_box",
    "replicate_molecule",
]
