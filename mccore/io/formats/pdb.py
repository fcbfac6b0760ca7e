"""PDB (Protein Data Bank) output."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from ..base import TrajectoryWriter

if TYPE_CHECKING:
    from ...system import Box


class PDBWriter(TrajectoryWriter):
    """
    PDB format writer.

    Writes a minimal fixed-column PDB suitable for visualization. Every
    atom becomes an ATOM record with residue name UNK and the 1-based
    molecule number as residue number; each molecule is closed by TER.

    Record layout (columns are right-aligned unless noted):
        "ATOM" left-aligned in 6, atom serial in 5, atom name in 3,
        "UNK" in 6, molecule number in 6, x in 12, y and z in 8,
        coordinates with 3 decimals.
    """

    def __init__(
        self,
        filename: str | Path,
        remark: str = "Created by mccore",
        multiframe: bool = False,
    ) -> None:
        """
        Initialize PDB writer.

        Args:
            filename: Output file path.
            remark: Text of the REMARK header line.
            multiframe: Wrap each frame in MODEL/ENDMDL records.
        """
        super().__init__(filename)
        self.remark = remark
        self.multiframe = multiframe

    def write_header(self) -> None:
        """Write REMARK record."""
        self._require_open().write(f"REMARK {self.remark}\n")

    def write(self, box: Box) -> None:
        """
        Write the box as one frame.

        Args:
            box: Box to write.
        """
        f = self._require_open()

        if self.multiframe:
            f.write(f"MODEL     {self._n_frames + 1:4d}\n")

        for i, molecule in enumerate(box.molecules):
            for atom, (x, y, z) in zip(molecule.atoms, molecule.positions):
                f.write(format_atom_record(atom.id + 1, atom.name, i + 1, x, y, z))
            f.write("TER\n")

        if self.multiframe:
            f.write("ENDMDL\n")

        self._n_frames += 1

    def write_footer(self) -> None:
        """Write END record."""
        self._require_open().write("END\n")


def format_atom_record(
    serial: int,
    name: str,
    residue_id: int,
    x: float,
    y: float,
    z: float,
) -> str:
    """Format one ATOM record line."""
    return (
        f"{'ATOM':<6}{serial:>5d}{name:>3}{'UNK':>6}{residue_id:>6d}"
        f"{x:12.3f}{y:8.3f}{z:8.3f}\n"
    )


def write_pdb(box: Box, filename: str | Path) -> Path:
    """
    Write a single-frame PDB file of the box.

    Returns:
        Path of the written file.
    """
    with PDBWriter(filename) as writer:
        writer.write(box)
    return writer.filename
