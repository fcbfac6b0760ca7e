"""Tests for the periodic Cell."""

from dataclasses import FrozenInstanceError

import numpy as np
import pytest

from mccore.system.cell import Cell


class TestCellCreation:
    """Test cell creation methods."""

    def test_cubic_cell(self):
        """Test creating a cubic cell."""
        cell = Cell.cubic(10.0)
        assert np.allclose(cell.lengths, [10.0, 10.0, 10.0])
        assert np.isclose(cell.volume, 1000.0)

    def test_orthorhombic_cell(self):
        """Test creating an orthorhombic cell."""
        cell = Cell.orthorhombic(10.0, 20.0, 30.0)
        assert np.allclose(cell.lengths, [10.0, 20.0, 30.0])
        assert np.isclose(cell.volume, 6000.0)

    def test_invalid_shape(self):
        """Test that invalid shapes raise errors."""
        with pytest.raises(ValueError):
            Cell(np.array([1.0, 2.0]))

    def test_non_positive_length(self):
        """Test that zero or negative lengths raise errors."""
        with pytest.raises(ValueError):
            Cell.orthorhombic(10.0, 0.0, 10.0)
        with pytest.raises(ValueError):
            Cell.orthorhombic(10.0, -1.0, 10.0)

    def test_immutable(self):
        """Test that the cell cannot be modified."""
        cell = Cell.cubic(10.0)
        with pytest.raises(FrozenInstanceError):
            cell.lengths = np.array([1.0, 1.0, 1.0])
        with pytest.raises(ValueError):
            cell.lengths[0] = 5.0

    def test_does_not_freeze_caller_array(self):
        """Test that the caller's array stays writable."""
        lengths = np.array([5.0, 6.0, 7.0])
        Cell(lengths)
        lengths[0] = 1.0
        assert lengths[0] == 1.0


class TestWrapping:
    """Test wrapping positions into the primary cell."""

    def test_wrap_positions(self):
        """Test wrapping outside positions back inside."""
        cell = Cell.cubic(10.0)
        positions = np.array([[11.0, -1.0, 5.0], [25.0, 10.0, -20.0]])
        wrapped = cell.wrap_positions(positions)
        assert np.allclose(wrapped, [[1.0, 9.0, 5.0], [5.0, 0.0, 0.0]])

    def test_wrap_tiny_negative(self):
        """Test that tiny negative coordinates do not wrap onto L."""
        cell = Cell.cubic(10.0)
        wrapped = cell.wrap_positions(np.array([-1e-17, 0.0, 0.0]))
        assert cell.contains(wrapped)

    def test_wrap_inside_unchanged(self):
        """Test that positions inside the cell are unchanged."""
        cell = Cell.orthorhombic(10.0, 20.0, 30.0)
        positions = np.array([[0.0, 19.9, 15.0], [9.99, 0.5, 29.0]])
        np.testing.assert_array_equal(cell.wrap_positions(positions), positions)

    def test_wrap_shift(self):
        """Test the lattice shift that wraps a position."""
        cell = Cell.cubic(10.0)
        shift = cell.wrap_shift(np.array([12.0, -3.0, 5.0]))
        assert np.allclose(shift, [-10.0, 10.0, 0.0])

    def test_contains(self):
        """Test containment uses the half-open interval [0, L)."""
        cell = Cell.cubic(10.0)
        assert cell.contains([[0.0, 0.0, 0.0], [9.9, 9.9, 9.9]])
        assert not cell.contains([10.0, 5.0, 5.0])
        assert not cell.contains([-0.1, 5.0, 5.0])


class TestMinimumImage:
    """Test minimum image convention."""

    def test_minimum_image_across_boundary(self):
        """Test displacement across a periodic boundary."""
        cell = Cell.cubic(10.0)
        dr = cell.minimum_image([1.0, 1.0, 1.0], [9.0, 1.0, 1.0])
        assert np.allclose(dr, [-2.0, 0.0, 0.0])

    def test_minimum_image_distance(self):
        """Test minimum image distance."""
        cell = Cell.cubic(10.0)
        d = cell.minimum_image_distance([0.5, 0.5, 0.5], [9.5, 9.5, 9.5])
        assert np.isclose(d, np.sqrt(3.0))

    def test_minimum_image_symmetric(self):
        """Test that distance does not depend on argument order."""
        cell = Cell.orthorhombic(7.0, 11.0, 13.0)
        rng = np.random.default_rng(3)
        r1 = rng.uniform(0.0, 7.0, size=(20, 3))
        r2 = rng.uniform(0.0, 7.0, size=(20, 3))
        np.testing.assert_allclose(
            cell.minimum_image_distance(r1, r2),
            cell.minimum_image_distance(r2, r1),
        )

    def test_minimum_image_bounded(self):
        """Test that each component is at most half the cell length."""
        cell = Cell.orthorhombic(7.0, 11.0, 13.0)
        rng = np.random.default_rng(4)
        r1 = rng.uniform(-20.0, 20.0, size=(50, 3))
        r2 = rng.uniform(-20.0, 20.0, size=(50, 3))
        dr = cell.minimum_image(r1, r2)
        assert np.all(np.abs(dr) <= cell.lengths / 2 + 1e-12)
