"""Serial (single-process) backend."""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from .base import ParallelBackend


class SerialBackend(ParallelBackend):
    """
    Serial backend for single-process execution.

    This is the default backend and provides a reference implementation.
    Blocks run one after another in the calling process and all
    collectives are pass-throughs.
    """

    @property
    def name(self) -> str:
        """Return backend name."""
        return "serial"

    @property
    def n_workers(self) -> int:
        """Return number of parallel workers."""
        return 1

    @property
    def rank(self) -> int:
        """Return rank of current process."""
        return 0

    def allreduce_sum(
        self,
        local_data: NDArray[np.floating],
    ) -> NDArray[np.floating]:
        """Allreduce is a no-op in serial; just return local data."""
        return local_data
