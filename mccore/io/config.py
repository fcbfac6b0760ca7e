"""
Configuration loader for YAML-based simulation setup.

Example config:
    name: water
    mode: sequential
    steps: 1000
    status_interval: 100
    environment:
      box: [55.0, 55.0, 55.0]
      temperature: 298.15
      cutoff: 25.0
      seed: 12345
      molecules: 5
    molecule:
      atoms:
        - {name: O, sigma: 3.15061, epsilon: 0.1521, charge: -0.834, position: [0, 0, 0]}
        - {name: H, charge: 0.417, position: [0.9572, 0, 0]}
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import numpy as np
import yaml

from ..exceptions import BoxInitializationError, ConfigurationError
from ..system import Atom, Environment, Molecule

MODES = ("sequential", "parallel")
BACKENDS = ("serial", "multiprocessing", "mpi4py", "auto")
POTENTIALS = ("lj-coulomb", "product")


@dataclass
class SimulationConfig:
    """
    Run options loaded from a configuration file.

    Either ``environment`` and ``template`` are set (build a new box) or
    ``state_input`` is (resume from a state file).

    Attributes:
        name: Simulation name, used as output file prefix.
        mode: "sequential" or "parallel".
        backend: Parallel backend name (parallel mode only).
        workers: Process pool size for the multiprocessing backend.
        steps: Number of steps to run.
        status_interval: Steps between status lines; 0 disables.
        state_interval: Steps between state files; 0 writes only the final
            state, negative disables state files.
        output_dir: Directory for state, results and PDB files.
        state_input: State file to resume from.
        potential: Pair potential name.
        include_intramolecular: Also sum pairs within a molecule.
        environment: Run parameters for a new box.
        template: Molecule replicated to build a new box.
    """

    name: str | None = None
    mode: str = "sequential"
    backend: str = "serial"
    workers: int | None = None
    steps: int = 0
    status_interval: int = 100
    state_interval: int = 0
    output_dir: Path = field(default_factory=lambda: Path("."))
    state_input: Path | None = None
    potential: str = "lj-coulomb"
    include_intramolecular: bool = False
    environment: Environment | None = None
    template: Molecule | None = None

    def __post_init__(self) -> None:
        if self.mode not in MODES:
            raise ConfigurationError(
                f"Unknown mode: {self.mode}. Available: {', '.join(MODES)}"
            )
        if self.backend not in BACKENDS:
            raise ConfigurationError(
                f"Unknown backend: {self.backend}. Available: {', '.join(BACKENDS)}"
            )
        if self.potential not in POTENTIALS:
            raise ConfigurationError(
                f"Unknown potential: {self.potential}. "
                f"Available: {', '.join(POTENTIALS)}"
            )
        if self.steps < 0:
            raise ConfigurationError(f"steps must be non-negative, got {self.steps}")
        if self.status_interval < 0:
            raise ConfigurationError(
                f"status_interval must be non-negative, got {self.status_interval}"
            )
        if self.workers is not None and self.workers < 1:
            raise ConfigurationError(f"workers must be positive, got {self.workers}")
        if self.state_input is None and (
            self.environment is None or self.template is None
        ):
            raise ConfigurationError(
                "Configuration needs 'environment' and 'molecule' sections "
                "unless 'state_input' is given"
            )

    @property
    def output_name(self) -> str:
        """Return the results/PDB file prefix."""
        return self.name or "run"

    @property
    def state_name(self) -> str:
        """Return the state file prefix."""
        return self.name or "untitled"


def load_config(path: str | Path) -> SimulationConfig:
    """
    Load a simulation configuration from a YAML file.

    Relative ``state_input`` paths are resolved against the directory of
    the configuration file.

    Args:
        path: Path to YAML file.

    Returns:
        Parsed configuration.

    Raises:
        ConfigurationError: If the file is unreadable or invalid.
    """
    path = Path(path)
    data = _load_yaml(path)
    return parse_config(data, base_dir=path.parent)


def parse_config(data: dict[str, Any], base_dir: Path | None = None) -> SimulationConfig:
    """
    Build a configuration from a parsed YAML mapping.

    Args:
        data: Configuration mapping.
        base_dir: Directory relative state file paths are resolved against.

    Returns:
        Parsed configuration.

    Raises:
        ConfigurationError: If a key is missing or invalid.
    """
    try:
        state_input = data.get("state_input")
        if state_input is not None:
            state_input = Path(state_input)
            if base_dir is not None and not state_input.is_absolute():
                state_input = base_dir / state_input

        env_config = data.get("environment")
        mol_config = data.get("molecule")

        workers = data.get("workers")
        return SimulationConfig(
            name=_optional_str(data.get("name")),
            mode=str(data.get("mode", "sequential")).lower(),
            backend=str(data.get("backend", "serial")).lower(),
            workers=int(workers) if workers is not None else None,
            steps=int(data.get("steps", 0)),
            status_interval=int(data.get("status_interval", 100)),
            state_interval=int(data.get("state_interval", 0)),
            output_dir=Path(data.get("output_dir", ".")),
            state_input=state_input,
            potential=str(data.get("potential", "lj-coulomb")).lower(),
            include_intramolecular=bool(data.get("include_intramolecular", False)),
            environment=_build_environment(env_config) if env_config else None,
            template=_build_template(mol_config) if mol_config else None,
        )
    except ConfigurationError:
        raise
    except (KeyError, TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def _load_yaml(path: Path) -> dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as handle:
            content = yaml.safe_load(handle)
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Malformed YAML in {path}: {e}") from e
    if not isinstance(content, dict):
        raise ConfigurationError(f"YAML file {path} must contain a mapping at the root.")
    return content


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def _build_environment(config: dict[str, Any]) -> Environment:
    if not isinstance(config, dict):
        raise ConfigurationError("'environment' must be a mapping")

    box = config["box"]
    if isinstance(box, (int, float)):
        box = [box, box, box]

    cutoff = config.get("cutoff")
    try:
        return Environment(
            box_lengths=tuple(float(x) for x in box),
            temperature=float(config["temperature"]),
            n_molecules=int(config["molecules"]),
            cutoff=math.inf if cutoff is None else float(cutoff),
            max_translation=float(config.get("max_translation", 0.15)),
            max_rotation=float(config.get("max_rotation", 15.0)),
            random_seed=int(config.get("seed", 0)),
            primary_atom_index=int(config.get("primary_atom_index", 0)),
        )
    except BoxInitializationError as e:
        raise ConfigurationError(f"Invalid environment: {e}") from e


def _build_template(config: dict[str, Any]) -> Molecule:
    if not isinstance(config, dict):
        raise ConfigurationError("'molecule' must be a mapping")

    entries = config["atoms"]
    if not entries:
        raise ConfigurationError("'molecule.atoms' must list at least one atom")

    atoms = []
    positions = []
    for i, entry in enumerate(entries):
        atoms.append(
            Atom(
                id=i,
                name=str(entry["name"]),
                sigma=float(entry.get("sigma", 0.0)),
                epsilon=float(entry.get("epsilon", 0.0)),
                charge=float(entry.get("charge", 0.0)),
            )
        )
        positions.append([float(x) for x in entry["position"]])

    try:
        return Molecule(id=0, atoms=tuple(atoms), positions=np.array(positions))
    except BoxInitializationError as e:
        raise ConfigurationError(f"Invalid molecule: {e}") from e
