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
Unit Tests for IQC Analysis

Tests cover:
- Multiplier selection and override validation
- Nominal stability and augmented plant assembly
- Worst-case gains of memoryless and dynamic uncertain systems
- Fixed-gain feasibility tests and robust stability
- Band-limited white noise bounds
- Independence of the bound from the horizon_period
- Solver failures and verification of inaccurate solutions
"""

import importlib
import warnings
from unittest.mock import MagicMock, patch

import control
import cvxpy as cp
import numpy as np
import pytest

from iqctools.analysis import (
    AnalysisOptions,
    augmented_step,
    build_multipliers,
    certificate_holds,
    iqc_analysis,
    nominally_stable,
)
from iqctools.delta import DeltaSlti, DeltaSltv
from iqctools.disturbance import DisturbanceBandedWhite, DisturbanceL2
from iqctools.lft import DEFAULT_NAME, Ulft, to_lft
from iqctools.multiplier import (
    MultiplierL2,
    MultiplierL2Induced,
    MultiplierSlti,
    MultiplierSltv,
)
from iqctools.performance import PerformanceL2Induced, PerformanceStable
from iqctools.utils.errors import ConstructionError, IncompatibleSpecificationError, SolverFailure

analysis_module = importlib.import_module("iqctools.analysis.iqc_analysis")


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def options():
    return AnalysisOptions(verbose=False)


@pytest.fixture
def memoryless():
    """e = d + p / (1 - 0.5 p) d, worst case 3 at p = 1"""
    return to_lft(np.array([[0.5, 1.0], [1.0, 1.0]])).add_deltas([DeltaSlti("p")])


@pytest.fixture
def first_order():
    """G(z) = 1 / (z - 0.5), peak gain 2 at z = 1"""
    return to_lft(control.tf([1.0], [1.0, -0.5], True))


# ============================================================================
# Multiplier selection
# ============================================================================


class TestBuildMultipliers:
    def test_default_order_and_types(self, memoryless):
        built = build_multipliers(memoryless)
        assert [type(m) for m in built] == [MultiplierSlti, MultiplierL2, MultiplierL2Induced]
        assert [m.name for m in built] == ["p", DEFAULT_NAME, DEFAULT_NAME]
        assert [m.family for m in built] == ["delta", "disturbance", "performance"]

    def test_override_replaces_default(self, memoryless):
        custom = MultiplierSlti(DeltaSlti("p"), basis_length=3)
        built = build_multipliers(memoryless, custom)
        assert built[0] is custom

    def test_mapping_override(self, memoryless):
        custom = MultiplierSlti(DeltaSlti("p"), basis_length=1)
        built = build_multipliers(memoryless, {"p": custom})
        assert built[0] is custom

    def test_mapping_key_must_match_name(self, memoryless):
        with pytest.raises(IncompatibleSpecificationError, match="registered"):
            build_multipliers(memoryless, {"other": MultiplierSlti(DeltaSlti("p"))})

    def test_duplicate_override(self, memoryless):
        pair = [MultiplierSlti(DeltaSlti("p")), MultiplierSlti(DeltaSlti("p"), basis_length=1)]
        with pytest.raises(IncompatibleSpecificationError, match="More than one"):
            build_multipliers(memoryless, pair)

    def test_unknown_name(self, memoryless):
        with pytest.raises(IncompatibleSpecificationError, match="unknown"):
            build_multipliers(memoryless, MultiplierSlti(DeltaSlti("q")))

    def test_wrong_horizon_period(self, memoryless):
        custom = MultiplierSlti(DeltaSlti("p", horizon_period=[0, 2]))
        with pytest.raises(IncompatibleSpecificationError, match="horizon_period"):
            build_multipliers(memoryless, custom)

    def test_wrong_dimensions(self, memoryless):
        with pytest.raises(IncompatibleSpecificationError, match="channels"):
            build_multipliers(memoryless, MultiplierSlti(DeltaSlti("p", 2)))

    def test_time_domain_mismatch(self, memoryless):
        with pytest.raises(IncompatibleSpecificationError, match="discrete-time"):
            build_multipliers(memoryless, MultiplierSlti(DeltaSlti("p"), discrete=False))

    def test_non_multiplier_rejected(self, memoryless):
        with pytest.raises(ConstructionError):
            build_multipliers(memoryless, [DeltaSlti("p")])


# ============================================================================
# Assembly
# ============================================================================


class TestAssembly:
    def test_nominal_stability_discrete(self, first_order):
        assert nominally_stable(first_order)
        assert not nominally_stable(to_lft(control.tf([1.0], [1.0, -2.0], True)))

    def test_nominal_stability_periodic(self):
        # each step alone is unstable, the product over one period is 0.5
        a = [np.array([[2.0]]), np.array([[0.25]])]
        lft = Ulft(a, np.ones((1, 1)), np.ones((1, 1)), np.zeros((1, 1)))
        assert nominally_stable(lft)

    def test_nominal_stability_continuous(self):
        assert nominally_stable(to_lft(control.tf([1.0], [1.0, 1.0])))
        assert not nominally_stable(to_lft(control.tf([1.0], [1.0, -1.0])))

    def test_memoryless_is_stable(self, memoryless):
        assert nominally_stable(memoryless)

    def test_augmented_step_shapes(self, memoryless):
        built = build_multipliers(memoryless)
        a, b, outputs = augmented_step(memoryless, built, 0)
        filter_states = sum(m.filter.dim_state[0] for m in built)
        assert a.shape == (filter_states, filter_states)
        assert b.shape == (filter_states, 2)
        assert len(outputs) == len(built)
        for multiplier, (c_psi, d_psi) in zip(built, outputs):
            assert c_psi.shape == (multiplier.filter.dim_out[0], filter_states)
            assert d_psi.shape == (multiplier.filter.dim_out[0], 2)

    def test_performance_signal_map(self, first_order):
        built = build_multipliers(first_order)
        a, b, outputs = augmented_step(first_order, built, 0)
        c_psi, d_psi = outputs[-1]
        # psi = [d; e] with e = c x
        np.testing.assert_allclose(d_psi, [[1.0], [0.0]])
        np.testing.assert_allclose(c_psi[0], [0.0])
        np.testing.assert_allclose(a, [[0.5]])
        assert c_psi[1, 0] * b[0, 0] == pytest.approx(1.0)

    def test_stable_performance_disconnects_inputs(self, first_order):
        lft = first_order.add_performances([PerformanceStable("s")])
        built = build_multipliers(lft)
        _, b, _ = augmented_step(lft, built, 0)
        assert b.shape == (1, 0)


# ============================================================================
# Argument validation
# ============================================================================


class TestArguments:
    def test_options_type(self, first_order):
        with pytest.raises(ConstructionError):
            iqc_analysis(first_order, {"verbose": False})

    def test_ulft_type(self, options):
        with pytest.raises(ConstructionError):
            iqc_analysis(np.eye(2), options)

    def test_two_performances(self, first_order, options):
        lft = first_order.add_performances([PerformanceL2Induced("a"), PerformanceL2Induced("b")])
        with pytest.raises(IncompatibleSpecificationError, match="exactly one"):
            iqc_analysis(lft, options)

    def test_unstable_nominal_system(self, options):
        lft = to_lft(control.tf([1.0], [1.0, -2.0], True))
        result = iqc_analysis(lft, options)
        assert result["valid"] is False
        assert result["solver_status"] == "nominally_unstable"
        assert result["performance"] == np.inf
        assert result["certificate"] == []

    def test_solver_failure_reported(self, first_order, options):
        with patch.object(analysis_module, "solve_lmi_problem", side_effect=SolverFailure("solver crashed")):
            with pytest.warns(RuntimeWarning, match="solver crashed"):
                result = iqc_analysis(first_order, options)
        assert result["valid"] is False
        assert result["solver_status"] == "solver_error"
        assert result["performance"] == np.inf
        assert result["multipliers"] == {}

    def test_rejected_inaccurate_status(self, first_order):
        options = AnalysisOptions(verbose=False, accept_inaccurate=False)
        with patch.object(analysis_module, "solve_lmi_problem", return_value="optimal_inaccurate"):
            result = iqc_analysis(first_order, options)
        assert result["valid"] is False
        assert result["solver_status"] == "optimal_inaccurate"

    def test_inaccurate_solution_checked_when_accepted(self, first_order):
        options = AnalysisOptions(verbose=False, accept_inaccurate=True)
        with patch.object(analysis_module, "solve_lmi_problem", return_value="optimal_inaccurate"):
            with pytest.warns(RuntimeWarning, match="does not satisfy the analysis inequalities"):
                result = iqc_analysis(first_order, options)
        assert result["valid"] is False
        assert result["performance"] == np.inf
        assert result["solver_status"] == "optimal_inaccurate"

    def test_verbose_prints(self, first_order, capsys):
        with patch.object(analysis_module, "solve_lmi_problem", return_value="infeasible"):
            iqc_analysis(first_order, AnalysisOptions(verbose=True))
        out = capsys.readouterr().out
        assert "horizon_period" in out
        assert "infeasible" in out


# ============================================================================
# Certificate verification
# ============================================================================


class TestCertificateCheck:
    @pytest.fixture
    def lmi(self):
        x = cp.Variable((2, 2), symmetric=True)
        return x, x << -1e-6 * np.eye(2)

    def test_negative_definite_accepted(self, lmi):
        x, constraint = lmi
        x.value = np.array([[-1.0, 0.2], [0.2, -0.5]])
        assert certificate_holds([constraint], [], 1e-6)

    def test_indefinite_rejected(self, lmi):
        x, constraint = lmi
        x.value = np.array([[-1.0, 0.0], [0.0, 1e-3]])
        assert not certificate_holds([constraint], [], 1e-6)

    def test_missing_value_rejected(self, lmi):
        _, constraint = lmi
        assert not certificate_holds([constraint], [], 1e-6)

    def test_violated_multiplier_constraint_rejected(self, lmi):
        x, constraint = lmi
        x.value = -np.eye(2)
        y = cp.Variable()
        y.value = -1.0
        multiplier = MagicMock(constraints=[y >= 0])
        assert not certificate_holds([constraint], [multiplier], 1e-6)

    @pytest.mark.solver
    def test_truncated_solve_never_understates(self, memoryless):
        # SCS stops long before convergence; any bound it reports must be sound
        for accept in (False, True):
            options = AnalysisOptions(
                verbose=False, solver="SCS", solver_options={"max_iters": 5}, accept_inaccurate=accept
            )
            with warnings.catch_warnings():
                warnings.simplefilter("ignore")
                result = iqc_analysis(memoryless, options)
            assert not result["valid"] or result["performance"] >= 3.0 * (1 - 1e-3)


# ============================================================================
# Worst-case bounds
# ============================================================================


@pytest.mark.solver
class TestWorstCase:
    def test_memoryless_slti(self, memoryless, options):
        result = iqc_analysis(memoryless, options)
        assert result["valid"]
        assert result["performance"] == pytest.approx(3.0, rel=1e-2)
        assert result["performance"] >= 3.0 * (1 - 1e-4)

    def test_memoryless_sltv(self, options):
        lft = to_lft(np.array([[0.5, 1.0], [1.0, 1.0]])).add_deltas([DeltaSltv("p")])
        result = iqc_analysis(lft, options)
        assert result["valid"]
        assert result["performance"] == pytest.approx(3.0, rel=1e-2)

    def test_nominal_discrete(self, first_order, options):
        result = iqc_analysis(first_order, options)
        assert result["valid"]
        assert result["performance"] == pytest.approx(2.0, rel=1e-3)
        assert result["horizon_period"] == (0, 1)
        assert len(result["certificate"]) == 1
        assert result["certificate"][0].shape == (1, 1)

    def test_nominal_continuous(self, options):
        lft = to_lft(control.tf([1.0], [1.0, 1.0]))
        result = iqc_analysis(lft, options)
        assert result["valid"]
        assert result["performance"] == pytest.approx(1.0, rel=1e-3)

    def test_result_multipliers(self, memoryless, options):
        result = iqc_analysis(memoryless, options)
        multipliers = result["multipliers"]
        assert set(multipliers) == {"delta", "disturbance", "performance"}
        assert set(multipliers["delta"]) == {"p"}
        realized = multipliers["delta"]["p"]
        assert realized["family"] == "delta"
        assert isinstance(realized["quad"][0], np.ndarray)
        gain_squared = multipliers["performance"][DEFAULT_NAME]["decision_variables"]["gain_squared"]
        assert np.sqrt(gain_squared) == pytest.approx(result["performance"])

    def test_override_with_longer_basis(self, memoryless, options):
        custom = MultiplierSlti(DeltaSlti("p"), basis_length=3)
        result = iqc_analysis(memoryless, options, multipliers=[custom])
        assert result["valid"]
        assert result["performance"] == pytest.approx(3.0, rel=1e-2)

    def test_sltv_override_on_slti(self, options):
        lft = to_lft(np.array([[0.5, 1.0], [1.0, 1.0]])).add_deltas([DeltaSltv("p")])
        custom = MultiplierSltv(DeltaSltv("p"), quad_time_varying=False)
        result = iqc_analysis(lft, options, multipliers={"p": custom})
        assert result["valid"]

    def test_independent_of_horizon_period(self, memoryless, options):
        base = iqc_analysis(memoryless, options)
        refined = iqc_analysis(memoryless.match_horizon_period([1, 2]), options)
        assert refined["valid"]
        assert refined["horizon_period"] == (1, 2)
        assert len(refined["certificate"]) == 3
        assert refined["performance"] == pytest.approx(base["performance"], rel=1e-3)


# ============================================================================
# Fixed gains and stability
# ============================================================================


@pytest.mark.solver
class TestFixedGain:
    def test_feasible_gain(self, first_order, options):
        lft = first_order.add_performances([PerformanceL2Induced("check", gain=3.0)])
        result = iqc_analysis(lft, options)
        assert result["valid"]
        assert result["performance"] == 3.0

    def test_infeasible_gain(self, first_order, options):
        lft = first_order.add_performances([PerformanceL2Induced("check", gain=1.0)])
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            result = iqc_analysis(lft, options)
        assert result["valid"] is False
        assert result["performance"] == np.inf

    def test_robust_stability(self, memoryless, options):
        lft = memoryless.add_performances([PerformanceStable("stability")])
        result = iqc_analysis(lft, options)
        assert result["valid"]
        assert result["performance"] == 0.0


# ============================================================================
# Disturbance characterizations
# ============================================================================


@pytest.mark.solver
class TestBandedWhite:
    def test_white_noise_approaches_h2_norm(self, first_order):
        # ||G||_2^2 = sum_k 0.25^k = 4/3
        h2 = np.sqrt(4.0 / 3.0)
        lft = first_order.add_disturbances([DisturbanceBandedWhite("n")])
        result = iqc_analysis(lft, AnalysisOptions(verbose=False))
        assert result["valid"]
        assert result["performance"] >= h2 * (1 - 1e-3)
        assert result["performance"] < 1.2 * h2

    def test_narrow_band_reduces_bound(self, options):
        # G(z) = 1 / (z + 0.5) peaks at w = pi with gain 2
        lft = to_lft(control.tf([1.0], [1.0, 0.5], True))
        nominal = iqc_analysis(lft, options)
        assert nominal["performance"] == pytest.approx(2.0, rel=1e-3)
        narrow = iqc_analysis(lft.add_disturbances([DisturbanceBandedWhite("n", omega=0.5)]), options)
        assert narrow["valid"]
        assert narrow["performance"] < 0.75 * nominal["performance"]

    def test_l2_disturbance_matches_default(self, first_order, options):
        lft = first_order.add_disturbances([DisturbanceL2("energy")])
        result = iqc_analysis(lft, options)
        assert result["valid"]
        assert result["performance"] == pytest.approx(2.0, rel=1e-3)

    def test_noise_on_one_block_keeps_energy_on_the_other(self, options):
        # Band-limited noise drives only the static block; G keeps its L2 input
        noisy = to_lft(np.array([[0.1]])).add_disturbances([DisturbanceBandedWhite("n", omega=0.5)])
        plant = to_lft(control.tf([1.0], [1.0, 0.5], True))
        result = iqc_analysis(noisy.blkdiag(plant), options)
        assert result["valid"]
        assert result["performance"] >= 2.0 * (1 - 1e-3)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
