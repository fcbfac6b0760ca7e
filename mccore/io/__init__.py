"""I/O layer: configuration, state files, reports and trajectories."""

from .base import TrajectoryWriter
from .checkpoint import (
    Checkpoint,
    CheckpointManager,
    dumps_state,
    loads_state,
    read_state_file,
    write_state_file,
)
from .config import SimulationConfig, load_config, parse_config
from .formats.pdb import PDBWriter, write_pdb
from .results import read_results, write_results

__all__ = [
    # Configuration
    "SimulationConfig",
    "load_config",
    "parse_config",
    # State files
    "Checkpoint",
    "CheckpointManager",
    "dumps_state",
    "loads_state",
    "read_state_file",
    "write_state_file",
    # Reports
    "read_results",
    "write_results",
    # Trajectories
    "TrajectoryWriter",
    "PDBWriter",
    "write_pdb",
]
