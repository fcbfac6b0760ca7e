"""State files for deterministic restart."""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

import numpy as np

from ..exceptions import StateFileError
from ..system import Atom, Box, Environment, Molecule

if TYPE_CHECKING:
    from numpy.typing import NDArray

logger = logging.getLogger(__name__)

# State file format version for compatibility checking
STATE_VERSION = 1
STATE_MAGIC = "# mccore-state"
STATE_SUFFIX = ".state"


@dataclass
class Checkpoint:
    """
    Checkpoint data container.

    Stores all information needed for deterministic restart:
    - Environment (box lengths, temperature, move bounds, cutoff, seed)
    - Every molecule with its atom descriptors and positions
    - Step number and running total energy
    - RNG state for reproducibility

    Attributes:
        version: State file format version.
        timestamp: When checkpoint was created.
        step: Number of the next step to run.
        energy: Running total energy at that step.
        environment: Run parameters.
        molecules: Molecules in box order.
        rng_state: NumPy bit generator state.
        metadata: User-defined metadata.
    """

    version: int
    timestamp: str
    step: int
    energy: float
    environment: Environment
    molecules: list[Molecule]
    rng_state: dict[str, Any] | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_box(
        cls,
        box: Box,
        step: int = 0,
        energy: float = 0.0,
        rng: np.random.Generator | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Checkpoint:
        """
        Create checkpoint from the current box state.

        Args:
            box: Simulation box.
            step: Number of the next step to run.
            energy: Running total energy.
            rng: NumPy random generator for reproducibility.
            metadata: Additional metadata to store.

        Returns:
            New Checkpoint instance.
        """
        rng_state = None
        if rng is not None:
            bit_gen = rng.bit_generator
            rng_state = {
                "bit_generator": type(bit_gen).__name__,
                "state": bit_gen.state,
            }

        return cls(
            version=STATE_VERSION,
            timestamp=datetime.now().isoformat(),
            step=step,
            energy=float(energy),
            environment=box.environment,
            molecules=[m.copy() for m in box.molecules],
            rng_state=rng_state,
            metadata=metadata or {},
        )

    def to_box(self) -> Box:
        """
        Rebuild the box stored in this checkpoint.

        Returns:
            New Box with copies of the stored molecules.
        """
        return Box(self.environment, [m.copy() for m in self.molecules])

    def restore_rng(self) -> np.random.Generator | None:
        """
        Restore RNG state from checkpoint.

        Returns:
            Restored NumPy Generator or None if no RNG state.

        Raises:
            StateFileError: If the bit generator is unknown.
        """
        if self.rng_state is None:
            return None

        name = self.rng_state["bit_generator"]
        bit_gen_type = getattr(np.random, name, None)
        if not (
            isinstance(bit_gen_type, type)
            and issubclass(bit_gen_type, np.random.BitGenerator)
        ):
            raise StateFileError(f"Unknown bit generator in state file: {name}")

        bit_gen = bit_gen_type()
        bit_gen.state = self.rng_state["state"]
        return np.random.Generator(bit_gen)


def _to_json(value: Any) -> Any:
    """Convert numpy values inside rng states to JSON types."""
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, np.generic):
        return value.item()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _molecule_to_dict(molecule: Molecule) -> dict[str, Any]:
    positions: NDArray[np.floating] = molecule.positions
    return {
        "id": molecule.id,
        "atoms": [
            {
                "id": atom.id,
                "name": atom.name,
                "sigma": atom.sigma,
                "epsilon": atom.epsilon,
                "charge": atom.charge,
                "position": [float(x) for x in positions[i]],
            }
            for i, atom in enumerate(molecule.atoms)
        ],
    }


def _molecule_from_dict(data: dict[str, Any]) -> Molecule:
    atoms = data["atoms"]
    return Molecule(
        id=int(data["id"]),
        atoms=tuple(
            Atom(
                id=int(a["id"]),
                name=str(a["name"]),
                sigma=float(a["sigma"]),
                epsilon=float(a["epsilon"]),
                charge=float(a["charge"]),
            )
            for a in atoms
        ),
        positions=np.array([a["position"] for a in atoms], dtype=np.float64),
    )


def dumps_state(checkpoint: Checkpoint) -> str:
    """
    Serialize a checkpoint to state file text.

    The first line carries the format version and a SHA-256 checksum of
    the JSON body that follows it.

    Args:
        checkpoint: Checkpoint to serialize.

    Returns:
        State file contents.
    """
    data = {
        "version": checkpoint.version,
        "timestamp": checkpoint.timestamp,
        "step": checkpoint.step,
        "energy": checkpoint.energy,
        "environment": checkpoint.environment.to_dict(),
        "molecules": [_molecule_to_dict(m) for m in checkpoint.molecules],
        "rng_state": checkpoint.rng_state,
        "metadata": checkpoint.metadata,
    }
    body = json.dumps(data, indent=1, default=_to_json) + "\n"
    checksum = hashlib.sha256(body.encode("utf-8")).hexdigest()
    return f"{STATE_MAGIC} v{checkpoint.version} sha256={checksum}\n{body}"


def loads_state(text: str) -> Checkpoint:
    """
    Parse state file text.

    Args:
        text: State file contents.

    Returns:
        Loaded Checkpoint.

    Raises:
        StateFileError: If the header, checksum, version or body is invalid.
    """
    header, sep, body = text.partition("\n")
    fields = header.split()
    if not sep or len(fields) != 4 or " ".join(fields[:2]) != STATE_MAGIC:
        raise StateFileError("Invalid state file (bad header)")

    version_field, checksum_field = fields[2], fields[3]
    if not (version_field.startswith("v") and checksum_field.startswith("sha256=")):
        raise StateFileError("Invalid state file (bad header)")

    try:
        version = int(version_field[1:])
    except ValueError as e:
        raise StateFileError(f"Invalid state file version: {version_field}") from e

    stored_checksum = checksum_field[len("sha256=") :]
    computed_checksum = hashlib.sha256(body.encode("utf-8")).hexdigest()
    if computed_checksum != stored_checksum:
        raise StateFileError("State file corrupted (checksum mismatch)")

    if version > STATE_VERSION:
        raise StateFileError(
            f"State file version {version} not supported "
            f"(max supported: {STATE_VERSION})"
        )

    try:
        loaded = json.loads(body)
        return Checkpoint(
            version=int(loaded["version"]),
            timestamp=str(loaded["timestamp"]),
            step=int(loaded["step"]),
            energy=float(loaded["energy"]),
            environment=Environment.from_dict(loaded["environment"]),
            molecules=[_molecule_from_dict(m) for m in loaded["molecules"]],
            rng_state=loaded.get("rng_state"),
            metadata=loaded.get("metadata", {}),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise StateFileError(f"Invalid state file contents: {e}") from e


def read_state_file(path: str | Path) -> Checkpoint:
    """
    Load a checkpoint from a state file.

    Raises:
        StateFileError: If the file is missing or invalid.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise StateFileError(f"Cannot read state file {path}: {e}") from e
    return loads_state(text)


def write_state_file(checkpoint: Checkpoint, path: str | Path) -> Path:
    """Write a checkpoint to a state file and return its path."""
    path = Path(path)
    path.write_text(dumps_state(checkpoint), encoding="utf-8")
    return path


class CheckpointManager:
    """
    Manager for state file I/O in one output directory.

    State files are named ``<prefix>_<step>.state``.

    Example:
        manager = CheckpointManager("output/", prefix="water")

        # Save state after step 1000
        path = manager.save(box, step=1000, energy=energy, rng=rng)

        # Load it back
        checkpoint = manager.load(path.name)
        box = checkpoint.to_box()
        rng = checkpoint.restore_rng()
    """

    def __init__(self, directory: str | Path = ".", prefix: str = "untitled") -> None:
        """
        Initialize checkpoint manager.

        Args:
            directory: Directory for state files. Created if missing.
            prefix: File name prefix (usually the simulation name).
        """
        self.directory = Path(directory)
        self.prefix = prefix

        self.directory.mkdir(parents=True, exist_ok=True)

    def filename(self, step: int) -> str:
        """Return the state file name for a step."""
        return f"{self.prefix}_{step}{STATE_SUFFIX}"

    def save(
        self,
        box: Box,
        step: int,
        energy: float,
        rng: np.random.Generator | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Path:
        """
        Save the box state to ``<prefix>_<step>.state``.

        Args:
            box: Simulation box.
            step: Number of the next step to run.
            energy: Running total energy.
            rng: Random stream to store.
            metadata: Additional metadata.

        Returns:
            Path to the saved state file.
        """
        checkpoint = Checkpoint.from_box(
            box, step=step, energy=energy, rng=rng, metadata=metadata
        )
        path = write_state_file(checkpoint, self.directory / self.filename(step))
        logger.info("Saved state file %s", path)
        return path

    def load(self, filename: str | Path) -> Checkpoint:
        """
        Load a state file from the managed directory.

        Args:
            filename: File name, or an absolute path.

        Returns:
            Loaded Checkpoint.

        Raises:
            StateFileError: If the file is missing or invalid.
        """
        return read_state_file(self.directory / filename)

    def list_checkpoints(self, pattern: str = f"*{STATE_SUFFIX}") -> list[Path]:
        """
        List available state files.

        Args:
            pattern: Glob pattern for state files.

        Returns:
            List of state file paths, newest first.
        """
        checkpoints = list(self.directory.glob(pattern))
        return sorted(checkpoints, key=lambda p: p.stat().st_mtime, reverse=True)
