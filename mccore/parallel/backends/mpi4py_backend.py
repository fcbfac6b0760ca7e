"""MPI backend using mpi4py."""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from .base import ParallelBackend


class MPI4PyBackend(ParallelBackend):
    """
    MPI backend using mpi4py for distributed-memory parallelism.

    Every rank runs the same Monte Carlo loop with the same seed. Inside
    an energy evaluation each rank computes its contiguous share of the
    compute units and an all-reduce combines the results.

    This backend requires mpi4py to be installed and the program
    to be launched with mpirun/mpiexec.

    Example:
        mpirun -n 4 mccore water.yaml -p --backend mpi4py
    """

    def __init__(self) -> None:
        """Initialize MPI backend."""
        try:
            from mpi4py import MPI
        except ImportError as e:
            raise ImportError(
                "mpi4py is required for MPI backend. Install with: pip install mpi4py"
            ) from e

        self._MPI = MPI
        self._comm = MPI.COMM_WORLD
        self._rank = self._comm.Get_rank()
        self._size = self._comm.Get_size()

    @property
    def name(self) -> str:
        """Return backend name."""
        return "mpi4py"

    @property
    def n_workers(self) -> int:
        """Return number of MPI processes."""
        return self._size

    @property
    def n_ranks(self) -> int:
        """Return number of MPI processes."""
        return self._size

    @property
    def rank(self) -> int:
        """Return MPI rank of current process."""
        return self._rank

    def allreduce_sum(
        self,
        local_data: NDArray[np.floating],
    ) -> NDArray[np.floating]:
        """
        Sum-reduce data to all ranks.

        Args:
            local_data: Local data to reduce.

        Returns:
            Reduced sum on all ranks.
        """
        local_data = np.ascontiguousarray(local_data, dtype=np.float64)
        result = np.zeros_like(local_data)
        self._comm.Allreduce(local_data, result, op=self._MPI.SUM)
        return result
