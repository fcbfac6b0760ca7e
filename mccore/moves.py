"""Rigid-body move generation and move records."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import numpy as np
from numpy.typing import NDArray


class MoveStatus(Enum):
    """Lifecycle of a proposed move."""

    PROPOSED = "proposed"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


@dataclass
class MoveRecord:
    """
    Undo information for one proposed move.

    Holds only the pre-move positions of the moved molecule, never a copy
    of the whole box.

    Attributes:
        molecule_index: Index of the moved molecule in the box.
        old_positions: Positions before the move, shape (n_atoms, 3).
        status: Where the move is in its lifecycle.
    """

    molecule_index: int
    old_positions: NDArray[np.floating]
    status: MoveStatus = MoveStatus.PROPOSED

    @property
    def is_pending(self) -> bool:
        """Check whether the move is still awaiting commit or rollback."""
        return self.status is MoveStatus.PROPOSED


def rotation_matrix(angles: NDArray[np.floating]) -> NDArray[np.floating]:
    """
    Build the rotation matrix Rz @ Ry @ Rx for angles about x, y and z.

    Args:
        angles: Rotation angles (radians) about the x, y and z axes.

    Returns:
        3x3 rotation matrix.
    """
    ax, ay, az = angles
    cx, sx = np.cos(ax), np.sin(ax)
    cy, sy = np.cos(ay), np.sin(ay)
    cz, sz = np.cos(az), np.sin(az)

    rx = np.array([[1.0, 0.0, 0.0], [0.0, cx, -sx], [0.0, sx, cx]])
    ry = np.array([[cy, 0.0, sy], [0.0, 1.0, 0.0], [-sy, 0.0, cy]])
    rz = np.array([[cz, -sz, 0.0], [sz, cz, 0.0], [0.0, 0.0, 1.0]])

    return rz @ ry @ rx


class RigidBodyMove:
    """
    Random rigid-body perturbation of one molecule.

    The molecule is rotated about its pivot atom by a random angle about
    each axis, then translated by a random offset on each axis. Each move
    consumes exactly six uniform draws: three for the translation followed
    by three for the rotation.

    Attributes:
        max_translation: Largest per-axis translation (angstrom).
        max_rotation: Largest per-axis rotation (degrees).
    """

    def __init__(self, max_translation: float, max_rotation: float) -> None:
        if max_translation < 0 or max_rotation < 0:
            raise ValueError("Move bounds must be non-negative")
        self.max_translation = float(max_translation)
        self.max_rotation = float(max_rotation)

    def propose(
        self,
        positions: NDArray[np.floating],
        pivot: int,
        rng: np.random.Generator,
    ) -> NDArray[np.floating]:
        """
        Compute new positions for a molecule.

        Args:
            positions: Current positions, shape (n_atoms, 3). Not modified.
            pivot: Index of the rotation pivot atom within the molecule.
            rng: Random stream to draw move magnitudes from.

        Returns:
            New positions, shape (n_atoms, 3). Not wrapped into the box.
        """
        translation = rng.uniform(-self.max_translation, self.max_translation, size=3)
        angles = rng.uniform(-self.max_rotation, self.max_rotation, size=3)

        origin = positions[pivot]
        rotation = rotation_matrix(np.radians(angles))
        rotated = (positions - origin) @ rotation.T + origin

        return rotated + translation
