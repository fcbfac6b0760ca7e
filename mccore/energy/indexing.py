"""
Triangular pair indexing.

Unordered atom pairs {i, j} with i < j < N are enumerated densely as

    slot(a, b) = a*N + b - (a+1)(a+2)/2

which is a bijection onto [0, N(N-1)/2). A compute unit at grid
coordinate (a, b) can therefore write its pair energy to its own slot
without a shared counter, and no two units ever write the same slot.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike, NDArray


def n_pairs(n: int) -> int:
    """Return the number of unordered pairs among ``n`` items."""
    return n * (n - 1) // 2


def pair_slot(a: ArrayLike, b: ArrayLike, n: int) -> NDArray[np.integer]:
    """
    Map pairs (a, b) with a < b < n to their dense slot.

    Args:
        a: Outer (smaller) index, scalar or array.
        b: Inner (larger) index, scalar or array.
        n: Number of items.

    Returns:
        Slot index in [0, n(n-1)/2).
    """
    a = np.asarray(a, dtype=np.int64)
    b = np.asarray(b, dtype=np.int64)
    return a * n + b - (a + 1) * (a + 2) // 2


def row_starts(n: int) -> NDArray[np.integer]:
    """Return the first slot of each outer index a in [0, n-1)."""
    a = np.arange(max(n - 1, 0), dtype=np.int64)
    return a * n - a * (a + 1) // 2


def slot_pair(
    slot: ArrayLike, n: int
) -> tuple[NDArray[np.integer], NDArray[np.integer]]:
    """
    Invert ``pair_slot``.

    Args:
        slot: Slot index or array of slots in [0, n(n-1)/2).
        n: Number of items.

    Returns:
        Tuple of (a, b) arrays with a < b.
    """
    slot = np.asarray(slot, dtype=np.int64)
    starts = row_starts(n)
    a = np.searchsorted(starts, slot, side="right") - 1
    b = slot - starts[a] + a + 1
    return a, b


def triangle_units(
    start: int, stop: int, n: int, width: int | None = None
) -> tuple[NDArray[np.integer], NDArray[np.integer], NDArray[np.integer]]:
    """
    Decode a block of flat unit ids on an n x width grid into live pairs.

    Unit u sits at (a, b) = (u // width, u % width). Only units with
    a < b < n do work; the rest fall in the skipped lower triangle,
    on the diagonal or in row padding and perform no write.

    Args:
        start: First unit id of the block.
        stop: One past the last unit id of the block.
        n: Number of atoms.
        width: Row width of the grid, at least ``n``. Defaults to ``n``.

    Returns:
        Tuple of (a, b, slot) arrays for the live units of the block.
    """
    width = n if width is None else width
    if width < n:
        raise ValueError(f"Grid width {width} smaller than n={n}")

    units = np.arange(start, stop, dtype=np.int64)
    a, b = np.divmod(units, width)
    live = (b > a) & (b < n)
    a = a[live]
    b = b[live]
    return a, b, pair_slot(a, b, n)


def rectangle_units(
    start: int, stop: int, n_outer: int, n_inner: int
) -> tuple[NDArray[np.integer], NDArray[np.integer], NDArray[np.integer]]:
    """
    Decode a block of flat unit ids on an n_outer x n_inner grid.

    Every unit inside the grid is live; its slot is its unit id, which is
    dense and collision-free over [0, n_outer * n_inner).

    Returns:
        Tuple of (a, b, slot) arrays for the live units of the block.
    """
    units = np.arange(start, min(stop, n_outer * n_inner), dtype=np.int64)
    a, b = np.divmod(units, n_inner)
    return a, b, units
