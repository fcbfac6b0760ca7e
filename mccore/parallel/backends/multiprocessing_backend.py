"""Multiprocessing backend using a process pool."""

from __future__ import annotations

import multiprocessing as mp
from collections.abc import Callable
from concurrent.futures import ProcessPoolExecutor
from typing import Any

import numpy as np
from numpy.typing import NDArray

from .base import ParallelBackend


class MultiprocessingBackend(ParallelBackend):
    """
    Multiprocessing backend for shared-memory nodes.

    A single rank hands blocks of work to a pool of worker processes.
    The pool is created on first use and reused across calls, since a
    Monte Carlo run issues two evaluations per step. Call ``close`` (or use
    the backend as a context manager) to shut it down.

    Collectives are pass-throughs: there is only one rank.
    """

    def __init__(self, n_workers: int | None = None) -> None:
        """
        Initialize multiprocessing backend.

        Args:
            n_workers: Number of worker processes. Defaults to CPU count.
        """
        self._n_workers = n_workers or mp.cpu_count()
        self._executor: ProcessPoolExecutor | None = None

    @property
    def name(self) -> str:
        """Return backend name."""
        return "multiprocessing"

    @property
    def n_workers(self) -> int:
        """Return number of parallel workers."""
        return self._n_workers

    @property
    def rank(self) -> int:
        """Return rank (always 0 for main process)."""
        return 0

    def allreduce_sum(
        self,
        local_data: NDArray[np.floating],
    ) -> NDArray[np.floating]:
        """Single rank; return data."""
        return local_data

    def parallel_map(
        self,
        func: Callable[..., Any],
        items: list[Any],
    ) -> list[Any]:
        """
        Apply function to items in parallel using the process pool.

        Args:
            func: Function to apply (must be picklable).
            items: Items to process.

        Returns:
            Results for each item, in item order.
        """
        if len(items) == 0:
            return []

        if self._executor is None:
            self._executor = ProcessPoolExecutor(max_workers=self._n_workers)

        return list(self._executor.map(func, items))

    def close(self) -> None:
        """Shut down the worker pool."""
        if self._executor is not None:
            self._executor.shutdown()
            self._executor = None
