"""Periodic simulation cell geometry."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import ArrayLike, NDArray


@dataclass(frozen=True)
class Cell:
    """
    Orthorhombic periodic cell.

    All periodic boundary handling is a pure function of positions and the
    cell lengths; the cell itself carries no other state.

    Attributes:
        lengths: Edge lengths [Lx, Ly, Lz] in angstrom.
    """

    lengths: NDArray[np.floating]

    def __post_init__(self) -> None:
        """Validate and convert lengths."""
        lengths = np.array(self.lengths, dtype=np.float64)
        if lengths.shape != (3,):
            raise ValueError(f"Cell lengths must have shape (3,), got {lengths.shape}")
        if not np.all(np.isfinite(lengths)) or np.any(lengths <= 0):
            raise ValueError(f"Cell lengths must be positive and finite, got {lengths}")
        lengths.flags.writeable = False
        # Use object.__setattr__ since dataclass is frozen
        object.__setattr__(self, "lengths", lengths)

    @classmethod
    def orthorhombic(cls, lx: float, ly: float, lz: float) -> Cell:
        """Create a cell with the given side lengths."""
        return cls(np.array([lx, ly, lz]))

    @classmethod
    def cubic(cls, length: float) -> Cell:
        """Create a cubic cell with given side length."""
        return cls.orthorhombic(length, length, length)

    @property
    def volume(self) -> float:
        """Return cell volume."""
        return float(np.prod(self.lengths))

    def contains(self, positions: ArrayLike) -> bool:
        """Check that every position lies in [0, L) on each axis."""
        positions = np.asarray(positions)
        return bool(np.all((positions >= 0.0) & (positions < self.lengths)))

    def wrap_positions(self, positions: ArrayLike) -> NDArray[np.floating]:
        """
        Wrap positions into the primary cell.

        Args:
            positions: Positions array of shape (3,) or (N, 3).

        Returns:
            Wrapped positions of the same shape.
        """
        positions = np.asarray(positions, dtype=np.float64)
        wrapped = positions - self.lengths * np.floor(positions / self.lengths)
        # Rounding can land exactly on L for tiny negative inputs
        return np.where(wrapped >= self.lengths, wrapped - self.lengths, wrapped)

    def wrap_shift(self, position: ArrayLike) -> NDArray[np.floating]:
        """Return the lattice translation that wraps a single position into the cell."""
        position = np.asarray(position, dtype=np.float64)
        return self.wrap_positions(position) - position

    def minimum_image(self, r1: ArrayLike, r2: ArrayLike) -> NDArray[np.floating]:
        """
        Compute minimum image displacement vector r2 - r1.

        Args:
            r1: First position(s), shape (3,) or (N, 3).
            r2: Second position(s), shape (3,) or (N, 3).

        Returns:
            Displacement vector(s) under minimum image convention.
        """
        dr = np.asarray(r2, dtype=np.float64) - np.asarray(r1, dtype=np.float64)
        return dr - self.lengths * np.round(dr / self.lengths)

    def minimum_image_distance(
        self, r1: ArrayLike, r2: ArrayLike
    ) -> float | NDArray[np.floating]:
        """
        Compute minimum image distance between positions.

        Args:
            r1: First position(s), shape (3,) or (N, 3).
            r2: Second position(s), shape (3,) or (N, 3).

        Returns:
            Distance(s) under minimum image convention.
        """
        dr = self.minimum_image(r1, r2)
        return np.linalg.norm(dr, axis=-1)
