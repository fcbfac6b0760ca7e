"""Tests for pair potentials and the two energy evaluators."""

import numpy as np
import pytest

from mccore.energy import (
    COULOMB_CONSTANT,
    LennardJonesCoulombPotential,
    ParallelEnergyCalculator,
    ProductPotential,
    SequentialEnergyCalculator,
    create_potential,
)
from mccore.system import AtomParameters


def params(sigma, epsilon, charge):
    return AtomParameters(
        sigma=np.atleast_1d(np.asarray(sigma, dtype=float)),
        epsilon=np.atleast_1d(np.asarray(epsilon, dtype=float)),
        charge=np.atleast_1d(np.asarray(charge, dtype=float)),
    )


def calculators(potential, **kwargs):
    """Both evaluators; the parallel one with a small block size."""
    return [
        SequentialEnergyCalculator(potential, **kwargs),
        ParallelEnergyCalculator(potential, block_size=5, **kwargs),
    ]


class TestPotentials:
    """Test pair potential functions."""

    def test_product(self):
        """Test the product potential ignores distance."""
        pot = ProductPotential()
        e = pot(params(0, 0, [1.0, 2.0]), params(0, 0, [3.0, 4.0]), np.array([1.0, 9.0]))
        np.testing.assert_array_equal(e, [3.0, 8.0])

    def test_product_other_attribute(self):
        """Test the product of another descriptor."""
        pot = ProductPotential("sigma")
        e = pot(params(2.0, 0, 0), params(5.0, 0, 0), np.array([1.0]))
        np.testing.assert_array_equal(e, [10.0])

    def test_product_bad_attribute(self):
        """Test unknown descriptors are rejected."""
        with pytest.raises(ValueError):
            ProductPotential("mass")

    def test_lj_minimum(self):
        """Test LJ energy is -epsilon at r = 2^(1/6) sigma."""
        pot = LennardJonesCoulombPotential()
        sigma, eps = 3.0, 0.2
        r = np.array([2 ** (1 / 6) * sigma])
        e = pot(params(sigma, eps, 0), params(sigma, eps, 0), r)
        assert np.isclose(e[0], -eps)

    def test_lj_zero_crossing(self):
        """Test LJ energy vanishes at r = sigma."""
        pot = LennardJonesCoulombPotential()
        e = pot(params(3.0, 0.2, 0), params(3.0, 0.2, 0), np.array([3.0]))
        assert np.isclose(e[0], 0.0, atol=1e-12)

    def test_geometric_combining(self):
        """Test mixed pairs use geometric means."""
        pot = LennardJonesCoulombPotential()
        r = np.array([4.0])
        mixed = pot(params(2.0, 0.1, 0), params(8.0, 0.4, 0), r)
        pure = pot(params(4.0, 0.2, 0), params(4.0, 0.2, 0), r)
        np.testing.assert_allclose(mixed, pure)

    def test_coulomb(self):
        """Test the Coulomb term in kcal/mol."""
        pot = LennardJonesCoulombPotential()
        e = pot(params(0, 0, 1.0), params(0, 0, -1.0), np.array([2.0]))
        assert np.isclose(e[0], -COULOMB_CONSTANT / 2.0)

    def test_hydrogen_without_lj(self):
        """Test atoms with zero sigma only interact electrostatically."""
        pot = LennardJonesCoulombPotential()
        e = pot(params(0.0, 0.0, 0.417), params(3.15, 0.15, -0.834), np.array([2.5]))
        assert np.isclose(e[0], COULOMB_CONSTANT * 0.417 * -0.834 / 2.5)

    def test_commutative(self):
        """Test pair energies do not depend on argument order."""
        pot = LennardJonesCoulombPotential()
        a = params([3.1, 0.0], [0.15, 0.0], [-0.8, 0.4])
        b = params([2.5, 3.5], [0.1, 0.3], [0.4, -0.2])
        r = np.array([3.3, 4.1])
        np.testing.assert_allclose(pot(a, b, r), pot(b, a, r), rtol=1e-15)

    def test_create_potential(self):
        """Test the potential factory."""
        assert isinstance(create_potential("lj-coulomb"), LennardJonesCoulombPotential)
        assert isinstance(create_potential("product"), ProductPotential)
        with pytest.raises(ValueError):
            create_potential("morse")


class TestReferenceConfiguration:
    """Four single-atom molecules with values 1..4 and the product potential."""

    @pytest.fixture
    def box(self, make_point_box):
        return make_point_box([1.0, 2.0, 3.0, 4.0])

    @pytest.mark.parametrize("calc", calculators(ProductPotential()), ids=["seq", "par"])
    def test_system_energy(self, box, calc):
        """Test the total is 2 + 3 + 4 + 6 + 8 + 12."""
        assert calc.system_energy(box) == 35.0

    @pytest.mark.parametrize("calc", calculators(ProductPotential()), ids=["seq", "par"])
    def test_context_manager(self, box, calc):
        """Test evaluators can be used in a with block."""
        with calc as entered:
            assert entered is calc
            assert entered.system_energy(box) == 35.0

    def test_pair_energies_by_slot(self, box):
        """Test each pair energy lands in its triangular slot."""
        calc = ParallelEnergyCalculator(ProductPotential(), block_size=3)
        np.testing.assert_array_equal(calc.pair_energies(box), [2, 3, 4, 6, 8, 12])

    @pytest.mark.parametrize("calc", calculators(ProductPotential()), ids=["seq", "par"])
    def test_molecular_contributions(self, box, calc):
        """Test each molecule's contribution."""
        contributions = [calc.molecular_energy_contribution(box, i) for i in range(4)]
        assert contributions == [9.0, 16.0, 21.0, 24.0]
        assert sum(contributions) == 2 * 35.0

    def test_evaluators_do_not_mutate(self, box):
        """Test that evaluation leaves the box untouched."""
        before = box.positions.copy()
        for calc in calculators(ProductPotential()):
            calc.system_energy(box)
            calc.molecular_energy_contribution(box, 2)
        np.testing.assert_array_equal(box.positions, before)


class TestCutoff:
    """Test the molecule-level cutoff on primary atoms."""

    positions = [[1.0, 1.0, 1.0], [2.0, 1.0, 1.0], [6.0, 1.0, 1.0]]

    @pytest.mark.parametrize("which", [0, 1])
    def test_cutoff_excludes_far_pairs(self, make_point_box, which):
        """Test pairs at or beyond the cutoff are skipped."""
        box = make_point_box([1.0, 2.0, 3.0], positions=self.positions, cutoff=4.5)
        calc = calculators(ProductPotential())[which]
        # Distances: 0-1 = 1, 1-2 = 4, 0-2 = 5
        assert calc.system_energy(box) == 2.0 + 6.0
        assert calc.molecular_energy_contribution(box, 0) == 2.0

    @pytest.mark.parametrize("which", [0, 1])
    def test_cutoff_is_strict(self, make_point_box, which):
        """Test a pair exactly at the cutoff is skipped."""
        box = make_point_box([1.0, 2.0, 3.0], positions=self.positions, cutoff=4.0)
        calc = calculators(ProductPotential())[which]
        assert calc.system_energy(box) == 2.0

    @pytest.mark.parametrize("which", [0, 1])
    def test_cutoff_uses_minimum_image(self, make_point_box, which):
        """Test a pair across the boundary counts as close."""
        box = make_point_box(
            [1.0, 2.0], positions=[[0.5, 5.0, 5.0], [9.5, 5.0, 5.0]], cutoff=2.0
        )
        calc = calculators(ProductPotential())[which]
        assert calc.system_energy(box) == 2.0

    def test_single_molecule(self, make_point_box):
        """Test a lone molecule has no interactions."""
        box = make_point_box([3.0])
        for calc in calculators(ProductPotential()):
            assert calc.system_energy(box) == 0.0
            assert calc.molecular_energy_contribution(box, 0) == 0.0


class TestIntramolecular:
    """Test the intramolecular pair switch."""

    def test_excluded_by_default(self, water_box):
        """Test intramolecular pairs add the expected amount when included."""
        box, _ = water_box
        # O-H, O-H, H-H inside each water
        intra = 2 * (-0.834 * 0.417) + 0.417 * 0.417
        for excluded, included in zip(
            calculators(ProductPotential()),
            calculators(ProductPotential(), include_intramolecular=True),
        ):
            diff = included.system_energy(box) - excluded.system_energy(box)
            assert np.isclose(diff, 5 * intra)

            diff = included.molecular_energy_contribution(
                box, 3
            ) - excluded.molecular_energy_contribution(box, 3)
            assert np.isclose(diff, intra)


class TestBackendEquivalence:
    """Test the parallel evaluator agrees with the sequential one."""

    @pytest.mark.parametrize("cutoff", [np.inf, 8.0])
    @pytest.mark.parametrize("include", [False, True])
    def test_system_energy(self, make_water_box, cutoff, include):
        """Test total energies agree for LJ + Coulomb."""
        box, _ = make_water_box(n_molecules=12, length=15.0, cutoff=cutoff, seed=7)
        seq, par = calculators(LennardJonesCoulombPotential(), include_intramolecular=include)
        assert np.isclose(
            seq.system_energy(box), par.system_energy(box), rtol=1e-9, atol=1e-9
        )

    @pytest.mark.parametrize("cutoff", [np.inf, 8.0])
    def test_molecular_contributions(self, make_water_box, cutoff):
        """Test every molecule's contribution agrees."""
        box, _ = make_water_box(n_molecules=8, length=15.0, cutoff=cutoff, seed=8)
        seq, par = calculators(LennardJonesCoulombPotential())
        for i in range(box.n_molecules):
            assert np.isclose(
                seq.molecular_energy_contribution(box, i),
                par.molecular_energy_contribution(box, i),
                rtol=1e-9,
                atol=1e-12,
            )

    def test_pair_buffer_matches_sequential_pairs(self, make_water_box):
        """Test the dense buffer holds the same pair values the sequential sum uses."""
        box, _ = make_water_box(n_molecules=3, length=12.0, seed=9)
        pot = LennardJonesCoulombPotential()
        buffer = ParallelEnergyCalculator(pot).pair_energies(box)
        seq = SequentialEnergyCalculator(pot)
        assert np.isclose(buffer.sum(), seq.system_energy(box), rtol=1e-12)
        # Atoms 0 and 1 are in the same molecule; slot 0 is excluded
        assert buffer[0] == 0.0

    @pytest.mark.parametrize("block_size", [1, 17, 65536])
    def test_block_size_independent(self, make_water_box, block_size):
        """Test results do not depend on the block size."""
        box, _ = make_water_box(n_molecules=6, length=12.0, seed=10)
        pot = LennardJonesCoulombPotential()
        reference = ParallelEnergyCalculator(pot).pair_energies(box)
        blocked = ParallelEnergyCalculator(pot, block_size=block_size).pair_energies(box)
        np.testing.assert_allclose(blocked, reference, rtol=1e-14)

    def test_invalid_block_size(self):
        """Test block sizes must be positive."""
        with pytest.raises(ValueError):
            ParallelEnergyCalculator(ProductPotential(), block_size=0)

    def test_names(self):
        """Test evaluator mode names."""
        seq, par = calculators(ProductPotential())
        assert seq.name == "sequential"
        assert par.name == "parallel"
        assert par.backend.name == "serial"
