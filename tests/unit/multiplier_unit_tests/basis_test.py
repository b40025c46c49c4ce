# Copyright (C) 2025 Gil Benezer
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""
Unit Tests for Multiplier Bases and KYP Constraints

Tests cover:
- Pole grouping and legality in both time domains
- Default basis, poles-only basis and repeated poles
- Explicit basis functions and realizations, with precedence
- Errors raised before any decision variable is created
- KYP constraint construction
"""

from unittest.mock import patch

import control
import numpy as np
import pytest
from numpy.testing import assert_allclose

from iqctools.delta import DeltaSlti
from iqctools.multiplier import (
    DEFAULT_BASIS_LENGTH,
    DEFAULT_BASIS_POLES,
    MultiplierSlti,
    build_basis,
    group_poles,
    kyp_constraints,
)
from iqctools.multiplier.basis import synthesize_polynomials
from iqctools.utils.errors import ConstructionError, PoleConstraintError


def evaluate_basis(basis, point):
    """Psi(point) from the block realization"""
    a, b, c, d = basis.matrices
    n = a.shape[0]
    if n == 0:
        return d
    return c @ np.linalg.solve(point * np.eye(n) - a, b) + d


# ============================================================================
# Poles
# ============================================================================


class TestGroupPoles:
    def test_conjugate_pairs(self):
        groups = group_poles([0.5 + 0.5j, -0.2, 0.5 - 0.5j], discrete=True)
        assert len(groups) == 2
        assert groups[0] == (0.5 + 0.5j, 0.5 - 0.5j)
        assert groups[1] == (-0.2 + 0j,)

    @pytest.mark.parametrize(
        "poles, discrete",
        [([1.0], True), ([-1.2], True), ([0.0], False), ([0.1], False), ([np.nan], True)],
    )
    def test_illegal(self, poles, discrete):
        with pytest.raises(PoleConstraintError):
            group_poles(poles, discrete)

    def test_unpaired_complex_pole(self):
        with pytest.raises(PoleConstraintError, match="conjugate"):
            group_poles([0.3 + 0.1j], discrete=True)

    def test_continuous_time_accepts_left_half_plane(self):
        assert group_poles([-10.0], discrete=False) == [(-10.0 + 0j,)]


# ============================================================================
# Synthesized bases
# ============================================================================


class TestBuildBasis:
    def test_defaults(self):
        basis = build_basis(1, True)
        assert basis.basis_length == DEFAULT_BASIS_LENGTH == 2
        assert basis.basis_poles == DEFAULT_BASIS_POLES == (-0.5,)
        assert basis.length == 2
        assert_allclose(evaluate_basis(basis, 1.0), [[1.0], [1.0 / 1.5]])

    def test_poles_only(self):
        basis = build_basis(1, True, basis_poles=[0.2, -0.2])
        assert basis.basis_length == 3
        assert_allclose(evaluate_basis(basis, 1.0).ravel(), [1.0, 1.0 / 0.8, 1.0 / 1.2])

    def test_repeated_pole(self):
        basis = build_basis(1, True, basis_length=3)
        assert_allclose(evaluate_basis(basis, 1.0).ravel(), [1.0, 1.0 / 1.5, 1.0 / 2.25])
        numerators, denominator = synthesize_polynomials(3, [(-0.5 + 0j,)])
        assert_allclose(denominator, [1.0, 1.0, 0.25])
        assert len(numerators) == 3

    def test_extra_elements_repeat_first_group(self):
        basis = build_basis(1, True, basis_length=5, basis_poles=np.linspace(0.1, 0.3, 3))
        expected = [1.0, 1.0 / 0.9, 1.0 / 0.8, 1.0 / 0.7, 1.0 / (0.7 * 0.9)]
        assert_allclose(evaluate_basis(basis, 1.0).ravel(), expected)

    def test_complex_pair(self):
        basis = build_basis(1, True, basis_poles=[0.5 + 0.5j, 0.5 - 0.5j])
        assert basis.basis_length == 2
        assert basis.block_realization.nstates == 2
        expected = 1.0 / ((1.0 - (0.5 + 0.5j)) * (1.0 - (0.5 - 0.5j)))
        assert_allclose(evaluate_basis(basis, 1.0).ravel(), [1.0, expected.real])

    def test_constant_basis(self):
        basis = build_basis(2, True, basis_length=1)
        assert basis.basis_poles == ()
        assert basis.block_realization.nstates == 0
        assert_allclose(basis.matrices[3], np.eye(2))

    def test_block_realization_repeats_channels(self):
        basis = build_basis(3, False, basis_length=2, basis_poles=[-1.0])
        assert basis.block_realization.ninputs == 3
        assert basis.block_realization.noutputs == 6
        assert basis.length == 2
        assert control.isctime(basis.block_realization, strict=True)

    def test_too_many_groups(self):
        with pytest.raises(PoleConstraintError, match="basis_length >= 3"):
            build_basis(1, True, basis_length=2, basis_poles=[0.1, 0.2])

    def test_continuous_repetition_of_several_groups(self):
        with pytest.raises(PoleConstraintError, match="Continuous-time basis_length 5"):
            build_basis(1, False, basis_length=5, basis_poles=np.linspace(-0.3, -0.1, 3))
        basis = build_basis(1, False, basis_length=3, basis_poles=[-1.0])
        assert basis.length == 3

    def test_length_without_poles(self):
        with pytest.raises(PoleConstraintError, match="at least one basis pole"):
            build_basis(1, True, basis_length=2, basis_poles=[])

    def test_invalid_length(self):
        with pytest.raises(ConstructionError, match="basis_length"):
            build_basis(1, True, basis_length=0)


# ============================================================================
# Explicit bases
# ============================================================================


class TestExplicitBasis:
    def test_basis_function(self):
        function = control.tf([[[1.0]], [[1.0]]], [[[1.0]], [[1.0, -0.25]]], True)
        basis = build_basis(2, True, basis_function=function)
        assert basis.basis_length is None
        assert basis.basis_poles is None
        assert basis.basis_function is function
        assert basis.length == 2
        assert_allclose(evaluate_basis(basis, 1.0)[:, 0], [1.0, 0.0, 1.0 / 0.75, 0.0])

    def test_basis_realization(self):
        realization = control.ss([[0.5]], [[1.0]], [[0.0], [1.0]], [[1.0], [0.0]], True)
        basis = build_basis(1, True, basis_realization=realization)
        assert basis.basis_function is None
        assert basis.basis_realization is realization
        assert basis.length == 2

    def test_block_realization_wins(self):
        realization = control.ss([[0.5]], [[1.0]], [[0.0], [1.0]], [[1.0], [0.0]], True)
        basis = build_basis(1, True, basis_length=5, basis_realization=realization, block_realization=realization)
        assert basis.basis_realization is None
        assert basis.block_realization is realization
        assert basis.basis_length is None

    def test_unstable_realization(self):
        realization = control.ss([[2.0]], [[1.0]], [[1.0]], [[0.0]], True)
        with pytest.raises(PoleConstraintError, match="unstable pole"):
            build_basis(1, True, basis_realization=realization)

    def test_wrong_time_domain(self):
        function = control.tf([1.0], [1.0, 1.0])
        with pytest.raises(PoleConstraintError, match="discrete-time"):
            build_basis(1, True, basis_function=function)

    def test_wrong_input_count(self):
        realization = control.ss([[0.5]], [[1.0, 1.0]], [[1.0]], [[0.0, 0.0]], True)
        with pytest.raises(ConstructionError, match="inputs"):
            build_basis(1, True, block_realization=realization)

    def test_wrong_object(self):
        with pytest.raises(ConstructionError, match="TransferFunction"):
            build_basis(1, True, basis_function=np.ones(2))


class TestNoVariablesOnFailure:
    def test_bad_poles_create_no_variables(self):
        with patch("cvxpy.Variable") as variable:
            with pytest.raises(PoleConstraintError):
                MultiplierSlti(DeltaSlti("p"), basis_poles=[1.5])
            variable.assert_not_called()

    def test_bad_realization_creates_no_variables(self):
        realization = control.ss([[-2.0]], [[1.0]], [[1.0]], [[0.0]], True)
        with patch("cvxpy.Variable") as variable:
            with pytest.raises(PoleConstraintError):
                MultiplierSlti(DeltaSlti("p"), basis_realization=realization)
            variable.assert_not_called()


# ============================================================================
# KYP
# ============================================================================


class TestKyp:
    def test_static_system(self):
        constraints, variables = kyp_constraints(
            np.zeros((0, 0)), np.zeros((0, 1)), np.zeros((1, 0)), np.ones((1, 1)), np.eye(1), True
        )
        assert len(constraints) == 1
        assert variables == {}

    def test_dynamic_system(self):
        basis = build_basis(1, False)
        a, b, c, d = basis.matrices
        constraints, variables = kyp_constraints(a, b, c, d, np.eye(2), False, name="storage")
        assert len(constraints) == 1
        assert list(variables) == ["storage"]
        assert variables["storage"].shape == (1, 1)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
