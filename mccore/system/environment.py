"""Run-wide simulation environment."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from typing import Any

from ..exceptions import BoxInitializationError
from .cell import Cell


@dataclass(frozen=True)
class Environment:
    """
    Immutable run parameters shared by the box, moves and evaluators.

    Attributes:
        box_lengths: Periodic box edge lengths (x, y, z) in angstrom.
        temperature: Temperature in Kelvin.
        n_molecules: Number of molecules in the box.
        cutoff: Molecule-level interaction cutoff in angstrom, measured
            between primary atoms. ``math.inf`` disables the cutoff.
        max_translation: Largest per-axis translation of one move (angstrom).
        max_rotation: Largest per-axis rotation of one move (degrees).
        random_seed: Seed of the run's random stream.
        primary_atom_index: 0-based index, within each molecule, of the atom
            used as rotation pivot and for the cutoff test.
    """

    box_lengths: tuple[float, float, float]
    temperature: float
    n_molecules: int
    cutoff: float = math.inf
    max_translation: float = 0.15
    max_rotation: float = 15.0
    random_seed: int = 0
    primary_atom_index: int = 0
    _cell: Cell = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        """Validate fields and derive the periodic cell."""
        lengths = tuple(float(x) for x in self.box_lengths)
        object.__setattr__(self, "box_lengths", lengths)

        if len(lengths) != 3:
            raise BoxInitializationError(
                f"box_lengths must have 3 entries, got {len(lengths)}"
            )
        if not all(math.isfinite(x) and x > 0 for x in lengths):
            raise BoxInitializationError(
                f"box_lengths must be positive and finite, got {lengths}"
            )
        if not (math.isfinite(self.temperature) and self.temperature > 0):
            raise BoxInitializationError(
                f"temperature must be positive, got {self.temperature}"
            )
        if self.n_molecules < 1:
            raise BoxInitializationError(
                f"n_molecules must be at least 1, got {self.n_molecules}"
            )
        if not self.cutoff > 0:
            raise BoxInitializationError(f"cutoff must be positive, got {self.cutoff}")
        if self.max_translation < 0 or self.max_rotation < 0:
            raise BoxInitializationError(
                "max_translation and max_rotation must be non-negative"
            )
        if self.primary_atom_index < 0:
            raise BoxInitializationError(
                f"primary_atom_index must be non-negative, got {self.primary_atom_index}"
            )
        if self.random_seed < 0:
            raise BoxInitializationError(
                f"random_seed must be non-negative, got {self.random_seed}"
            )

        object.__setattr__(self, "_cell", Cell(lengths))

    @property
    def cell(self) -> Cell:
        """Return the periodic cell for these box lengths."""
        return self._cell

    def to_dict(self) -> dict[str, Any]:
        """Return plain fields, suitable for JSON."""
        data = asdict(self)
        data.pop("_cell")
        data["box_lengths"] = list(self.box_lengths)
        # JSON has no infinity
        data["cutoff"] = None if math.isinf(self.cutoff) else self.cutoff
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Environment:
        """Rebuild an environment written by ``to_dict``."""
        data = dict(data)
        if data.get("cutoff") is None:
            data["cutoff"] = math.inf
        try:
            return cls(**data)
        except TypeError as e:
            raise BoxInitializationError(f"Invalid environment fields: {e}") from e
