"""Abstract base class for parallel backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

import numpy as np
from numpy.typing import NDArray


class ParallelBackend(ABC):
    """
    Abstract base class for parallelization backends.

    Energy evaluation fans out through this interface, allowing
    transparent switching between serial, multiprocessing and MPI.

    Two levels of parallelism are distinguished:
    - ranks: cooperating processes that each own a share of the work and
      combine results with collectives (MPI)
    - workers: processes that a single rank hands blocks to (process pool)
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return backend name."""
        ...

    @property
    @abstractmethod
    def n_workers(self) -> int:
        """Return number of parallel workers."""
        ...

    @property
    @abstractmethod
    def rank(self) -> int:
        """Return rank of current process (0 for serial)."""
        ...

    @property
    def n_ranks(self) -> int:
        """Return number of cooperating ranks sharing one evaluation."""
        return 1

    @property
    def is_root(self) -> bool:
        """Check if this is the root process."""
        return self.rank == 0

    @abstractmethod
    def allreduce_sum(
        self,
        local_data: NDArray[np.floating],
    ) -> NDArray[np.floating]:
        """
        Sum-reduce data from all ranks to all ranks.

        Args:
            local_data: Local data to reduce.

        Returns:
            Reduced sum on all ranks.
        """
        ...

    def parallel_map(
        self,
        func: Callable[..., Any],
        items: list[Any],
    ) -> list[Any]:
        """
        Apply function to items in parallel.

        Default implementation is serial; backends can override.

        Args:
            func: Function to apply.
            items: Items to process.

        Returns:
            Results for each item, in item order.
        """
        return [func(item) for item in items]

    def partition(self, n_items: int) -> tuple[int, int]:
        """
        Get the contiguous item range owned by this rank.

        Args:
            n_items: Total number of items.

        Returns:
            Tuple of (start_index, end_index) for this rank.
        """
        per_rank = n_items // self.n_ranks
        remainder = n_items % self.n_ranks

        if self.rank < remainder:
            start = self.rank * (per_rank + 1)
            end = start + per_rank + 1
        else:
            start = self.rank * per_rank + remainder
            end = start + per_rank

        return start, end

    def close(self) -> None:
        """Release backend resources."""
        pass

    def __enter__(self) -> ParallelBackend:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
