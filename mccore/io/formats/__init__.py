"""Trajectory format implementations."""

from .pdb import PDBWriter, write_pdb

__all__ = [
    "PDBWriter",
    "write_pdb",
]
