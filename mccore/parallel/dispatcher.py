"""Backend dispatcher for selecting parallel backends."""

from __future__ import annotations

import multiprocessing as mp
import os
from typing import Literal

from .backends.base import ParallelBackend
from .backends.serial import SerialBackend

# Available backend types
BackendType = Literal["serial", "multiprocessing", "mpi4py", "auto"]

# Environment variables set by common MPI launchers
_MPI_VARS = (
    "OMPI_COMM_WORLD_SIZE",  # OpenMPI
    "PMI_SIZE",  # MPICH
    "SLURM_NTASKS",  # SLURM
    "PBS_NP",  # PBS
)


def get_backend(
    backend: BackendType | ParallelBackend | None = None,
    **kwargs,
) -> ParallelBackend:
    """
    Get a parallel backend instance.

    Args:
        backend: Backend specification. Can be:
            - None: Serial backend
            - String: Create backend by name
            - ParallelBackend: Use provided instance directly
        **kwargs: Additional arguments for backend initialization.

    Returns:
        ParallelBackend instance.

    Examples:
        >>> backend = get_backend()  # serial
        >>> backend = get_backend("multiprocessing", n_workers=4)
        >>> backend = get_backend("mpi4py")
    """
    if isinstance(backend, ParallelBackend):
        return backend

    if backend is None:
        return SerialBackend()

    return create_backend(backend, **kwargs)


def create_backend(name: BackendType, **kwargs) -> ParallelBackend:
    """
    Create a parallel backend by name.

    Args:
        name: Backend name.
        **kwargs: Backend-specific arguments.

    Returns:
        ParallelBackend instance.

    Raises:
        ValueError: If backend name is unknown.
        ImportError: If required package is not installed.
    """
    if name == "auto":
        name = detect_best_backend()

    if name == "serial":
        return SerialBackend()

    elif name == "multiprocessing":
        from .backends.multiprocessing_backend import MultiprocessingBackend

        return MultiprocessingBackend(**kwargs)

    elif name == "mpi4py":
        from .backends.mpi4py_backend import MPI4PyBackend

        return MPI4PyBackend()

    else:
        raise ValueError(
            f"Unknown backend: {name}. Available: serial, multiprocessing, mpi4py, auto"
        )


def detect_best_backend() -> BackendType:
    """
    Detect the best available backend.

    Checks for MPI environment, then falls back to multiprocessing or serial.

    Returns:
        Name of recommended backend.
    """
    for var in _MPI_VARS:
        if var in os.environ:
            try:
                from mpi4py import MPI  # noqa: F401

                return "mpi4py"
            except ImportError:
                pass
            break

    # Check CPU count for multiprocessing benefit
    if mp.cpu_count() > 1:
        return "multiprocessing"

    return "serial"
