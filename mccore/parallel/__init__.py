"""Parallel execution backends for energy evaluation."""

from .backends.base import ParallelBackend
from .backends.serial import SerialBackend
from .dispatcher import create_backend, detect_best_backend, get_backend

__all__ = [
    "ParallelBackend",
    "SerialBackend",
    "create_backend",
    "detect_best_backend",
    "get_backend",
]
