"""Base classes for trajectory output."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, TextIO

if TYPE_CHECKING:
    from ..system import Box


class TrajectoryWriter(ABC):
    """
    Abstract base class for trajectory writers.

    Trajectory writers serialize box snapshots to a text format. Opening
    the writer writes the file header; closing it writes the footer.

    Example:
        with PDBWriter("water.pdb") as writer:
            writer.write(box)
    """

    def __init__(self, filename: str | Path) -> None:
        """
        Initialize trajectory writer.

        Args:
            filename: Output file path.
        """
        self.filename = Path(filename)
        self._file: TextIO | None = None
        self._n_frames = 0

    @abstractmethod
    def write(self, box: Box) -> None:
        """
        Write a single frame.

        Args:
            box: Box to write.
        """
        ...

    def write_header(self) -> None:
        """Write file header (optional, format-dependent)."""
        pass

    def write_footer(self) -> None:
        """Write file footer (optional, format-dependent)."""
        pass

    def open(self) -> None:
        """Open file for writing and write the header."""
        self._file = self.filename.open("w")
        self.write_header()

    def close(self) -> None:
        """Write the footer and close the file."""
        if self._file is not None:
            self.write_footer()
            self._file.close()
            self._file = None

    def __enter__(self) -> TrajectoryWriter:
        """Context manager entry."""
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()

    @property
    def n_frames(self) -> int:
        """Number of frames written."""
        return self._n_frames

    def _require_open(self) -> TextIO:
        if self._file is None:
            raise RuntimeError("File not open.")
        return self._file
