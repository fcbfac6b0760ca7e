"""Tests for the Box state store and its construction."""

import math

import numpy as np
import pytest

from mccore.exceptions import BoxInitializationError, ConsistencyError
from mccore.moves import MoveStatus
from mccore.system import Atom, Box, Environment, Molecule, build_box, replicate_molecule


class TestEnvironment:
    """Test environment validation."""

    def test_defaults(self):
        """Test default field values."""
        env = Environment(box_lengths=(10.0, 10.0, 10.0), temperature=300.0, n_molecules=2)
        assert math.isinf(env.cutoff)
        assert env.max_translation == 0.15
        assert env.max_rotation == 15.0
        assert env.primary_atom_index == 0
        assert np.allclose(env.cell.lengths, [10.0, 10.0, 10.0])

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"box_lengths": (10.0, 10.0)},
            {"box_lengths": (10.0, -1.0, 10.0)},
            {"temperature": 0.0},
            {"n_molecules": 0},
            {"cutoff": 0.0},
            {"max_translation": -0.1},
            {"primary_atom_index": -1},
            {"random_seed": -1},
        ],
    )
    def test_invalid_fields(self, kwargs):
        """Test that invalid fields raise BoxInitializationError."""
        fields = {"box_lengths": (10.0, 10.0, 10.0), "temperature": 300.0, "n_molecules": 2}
        fields.update(kwargs)
        with pytest.raises(BoxInitializationError):
            Environment(**fields)

    def test_dict_round_trip(self):
        """Test to_dict/from_dict, including an infinite cutoff."""
        env = Environment(
            box_lengths=(10.0, 20.0, 30.0),
            temperature=298.15,
            n_molecules=4,
            random_seed=7,
        )
        data = env.to_dict()
        assert data["cutoff"] is None
        assert Environment.from_dict(data) == env


class TestBoxCreation:
    """Test box construction and validation."""

    def test_molecule_count_mismatch(self, water_template):
        """Test that the molecule count must match the environment."""
        env = Environment(box_lengths=(10.0, 10.0, 10.0), temperature=300.0, n_molecules=2)
        with pytest.raises(BoxInitializationError):
            Box(env, [water_template])

    def test_primary_atom_out_of_range(self, water_template):
        """Test that the primary atom must exist in every molecule."""
        env = Environment(
            box_lengths=(10.0, 10.0, 10.0),
            temperature=300.0,
            n_molecules=1,
            primary_atom_index=3,
        )
        with pytest.raises(BoxInitializationError):
            Box(env, [water_template])

    def test_non_finite_positions(self):
        """Test that NaN positions are rejected."""
        env = Environment(box_lengths=(10.0, 10.0, 10.0), temperature=300.0, n_molecules=1)
        molecule = Molecule(0, (Atom(0, "X"),), np.array([[np.nan, 0.0, 0.0]]))
        with pytest.raises(BoxInitializationError):
            Box(env, [molecule])

    def test_empty_molecule(self):
        """Test that a molecule needs at least one atom."""
        with pytest.raises(BoxInitializationError):
            Molecule(0, (), np.zeros((0, 3)))

    def test_wraps_on_construction(self, make_point_box):
        """Test that molecules are wrapped into the box."""
        box = make_point_box([1.0], positions=[[12.0, -3.0, 5.0]])
        assert np.allclose(box.positions, [[2.0, 7.0, 5.0]])

    def test_input_molecules_copied(self, water_template):
        """Test that the box does not alias the input molecules."""
        env = Environment(box_lengths=(10.0, 10.0, 10.0), temperature=300.0, n_molecules=1)
        original = water_template.positions.copy()
        box = Box(env, [water_template])
        box.positions[:] += 1.0
        np.testing.assert_array_equal(water_template.positions, original)


class TestBoxViews:
    """Test flat views used by the evaluators."""

    def test_flat_layout(self, water_box):
        """Test atom counts, offsets and molecule map."""
        box, _ = water_box
        assert box.n_molecules == 5
        assert box.n_atoms == 15
        assert box.atom_range(1) == (3, 6)
        np.testing.assert_array_equal(box.primary_atoms, [0, 3, 6, 9, 12])
        np.testing.assert_array_equal(box.molecule_of_atom, np.repeat(np.arange(5), 3))
        assert len(box.atoms) == 15
        assert box.atom_parameters.n_atoms == 15

    def test_molecule_positions_are_views(self, water_box):
        """Test that molecule positions share the flat array."""
        box, _ = water_box
        for molecule in box.molecules:
            assert np.shares_memory(molecule.positions, box.positions)

    def test_atom_parameters(self, water_box):
        """Test descriptor arrays follow atom order."""
        box, _ = water_box
        params = box.atom_parameters
        np.testing.assert_allclose(params.charge[:3], [-0.834, 0.417, 0.417])
        np.testing.assert_allclose(params.sigma[:3], [3.15061, 0.0, 0.0])
        np.testing.assert_array_equal(params.take([0, 3]).epsilon, [0.1521, 0.1521])


class TestBoxMoves:
    """Test the move / commit / rollback lifecycle."""

    def test_choose_molecule_index_one_draw(self, water_box):
        """Test that choosing a molecule consumes exactly one draw."""
        box, _ = water_box
        rng1 = np.random.default_rng(5)
        rng2 = np.random.default_rng(5)

        index = box.choose_molecule_index(rng1)
        assert index == int(rng2.integers(box.n_molecules))
        assert 0 <= index < box.n_molecules
        assert rng1.random() == rng2.random()

    def test_rollback_restores_bit_identical(self, water_box):
        """Test that apply_move then rollback restores positions exactly."""
        box, rng = water_box
        for index in range(box.n_molecules):
            before = box.positions.copy()
            box.apply_move(index, rng)
            assert not np.array_equal(box.positions, before)
            record = box.rollback(index)
            assert record.status is MoveStatus.ROLLED_BACK
            np.testing.assert_array_equal(box.positions, before)

    def test_move_only_touches_one_molecule(self, water_box):
        """Test that other molecules are untouched by a move."""
        box, rng = water_box
        before = box.positions.copy()
        box.apply_move(2, rng)
        lo, hi = box.atom_range(2)
        np.testing.assert_array_equal(box.positions[:lo], before[:lo])
        np.testing.assert_array_equal(box.positions[hi:], before[hi:])

    def test_commit(self, water_box):
        """Test that commit keeps the new positions and clears the record."""
        box, rng = water_box
        record = box.apply_move(0, rng)
        assert record.is_pending
        assert box.pending_move(0) is record
        moved = box.positions.copy()

        assert box.commit(0).status is MoveStatus.COMMITTED
        assert box.pending_move(0) is None
        np.testing.assert_array_equal(box.positions, moved)

    def test_rollback_without_pending(self, water_box):
        """Test that rollback without a pending move is an error."""
        box, _ = water_box
        with pytest.raises(ConsistencyError):
            box.rollback(0)
        with pytest.raises(ConsistencyError):
            box.commit(0)

    def test_index_out_of_range(self, water_box):
        """Test that bad indices raise and leave the box unchanged."""
        box, rng = water_box
        before = box.positions.copy()
        state = rng.bit_generator.state
        with pytest.raises(ConsistencyError):
            box.apply_move(5, rng)
        with pytest.raises(ConsistencyError):
            box.apply_move(-1, rng)
        np.testing.assert_array_equal(box.positions, before)
        assert rng.bit_generator.state == state

    def test_second_move_commits_first(self, water_box):
        """Test that a second move on the same molecule commits the first."""
        box, rng = water_box
        first = box.apply_move(1, rng)
        after_first = box.positions.copy()
        box.apply_move(1, rng)

        assert first.status is MoveStatus.COMMITTED
        box.rollback(1)
        np.testing.assert_array_equal(box.positions, after_first)

    def test_primary_atoms_stay_inside(self, make_water_box):
        """Test that primary atoms are wrapped into the box after every move."""
        box, rng = make_water_box(n_molecules=4, length=6.0)
        box = Box(
            Environment(
                box_lengths=(6.0, 6.0, 6.0),
                temperature=300.0,
                n_molecules=4,
                max_translation=4.0,
                max_rotation=180.0,
            ),
            box.molecules,
        )
        for _ in range(200):
            index = box.choose_molecule_index(rng)
            box.apply_move(index, rng)
            box.commit(index)
            assert box.cell.contains(box.positions[box.primary_atoms])

    def test_moves_are_rigid(self, water_box):
        """Test that intramolecular distances survive moves and wrapping."""
        box, rng = water_box

        def distances(positions):
            return np.linalg.norm(positions[:, None, :] - positions[None, :, :], axis=-1)

        reference = [distances(m.positions.copy()) for m in box.molecules]
        for _ in range(100):
            index = box.choose_molecule_index(rng)
            box.apply_move(index, rng)
            box.commit(index)
        for molecule, expected in zip(box.molecules, reference):
            np.testing.assert_allclose(distances(molecule.positions), expected, atol=1e-9)


class TestBuilder:
    """Test box construction from a template."""

    def test_replicate(self, water_template):
        """Test molecule and atom numbering of replicated molecules."""
        env = Environment(box_lengths=(20.0, 20.0, 20.0), temperature=300.0, n_molecules=3)
        molecules = replicate_molecule(water_template, env, np.random.default_rng(0))
        assert [m.id for m in molecules] == [0, 1, 2]
        assert [a.id for m in molecules for a in m.atoms] == list(range(9))
        assert [a.name for a in molecules[2].atoms] == ["O", "H", "H"]

    def test_build_box_deterministic(self, water_template):
        """Test that the same seed builds the same box."""
        env = Environment(box_lengths=(20.0, 20.0, 20.0), temperature=300.0, n_molecules=4)
        box1 = build_box(water_template, env, np.random.default_rng(11))
        box2 = build_box(water_template, env, np.random.default_rng(11))
        np.testing.assert_array_equal(box1.positions, box2.positions)
        assert box1.cell.contains(box1.positions[box1.primary_atoms])

    def test_template_geometry_preserved(self, water_template):
        """Test that replicated molecules keep the template bond lengths."""
        env = Environment(box_lengths=(20.0, 20.0, 20.0), temperature=300.0, n_molecules=3)
        box = build_box(water_template, env, np.random.default_rng(2))
        expected = np.linalg.norm(water_template.positions[1] - water_template.positions[0])
        for molecule in box.molecules:
            oh = np.linalg.norm(molecule.positions[1] - molecule.positions[0])
            assert np.isclose(oh, expected)

    def test_template_primary_out_of_range(self, water_template):
        """Test builder validation of the primary atom index."""
        env = Environment(
            box_lengths=(20.0, 20.0, 20.0),
            temperature=300.0,
            n_molecules=2,
            primary_atom_index=5,
        )
        with pytest.raises(BoxInitializationError):
            build_box(water_template, env, np.random.default_rng(0))
