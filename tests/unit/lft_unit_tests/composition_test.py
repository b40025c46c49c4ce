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
Unit Tests for LFT Interconnection

Tests cover:
- Parallel sum, difference and negation
- Series connection (static and dynamic)
- blkdiag, horzcat and vertcat
- Scalar and matrix operands
- Merging of same-named uncertainty blocks
- Channel renumbering of disturbances and performances
- Pinning of all-channel selectors under concatenation
- Timestep and horizon_period reconciliation
"""

import control
import numpy as np
import pytest
from numpy.testing import assert_allclose

from iqctools.delta import DeltaDlti, DeltaSlti
from iqctools.disturbance import DisturbanceBandedWhite, DisturbanceL2
from iqctools.lft import DEFAULT_NAME, static_lft, to_lft
from iqctools.lft.composition import common_timestep
from iqctools.performance import PerformanceL2Induced
from iqctools.utils.errors import IncompatibleSpecificationError
from iqctools.utils.horizon_period import PeriodicSequence


def dc_gain(lft):
    """Steady-state gain of a time-invariant discrete Ulft without deltas"""
    a, b, c, d = lft.a[0], lft.b[0], lft.c[0], lft.d[0]
    n = a.shape[0]
    if n == 0:
        return d
    return c @ np.linalg.solve(np.eye(n) - a, b) + d


@pytest.fixture
def two():
    return static_lft(2.0)


@pytest.fixture
def three():
    return static_lft(3.0)


# ============================================================================
# Parallel operations
# ============================================================================


class TestParallel:
    def test_add_sub_neg(self, two, three):
        assert_allclose((two + three).d[0], [[5.0]])
        assert_allclose((two - three).d[0], [[-1.0]])
        assert_allclose((-two).d[0], [[-2.0]])

    def test_scalar_operands(self):
        lft = static_lft(np.ones((2, 2)))
        assert_allclose((lft + 2.0).d[0], np.ones((2, 2)) + 2.0 * np.eye(2))
        assert_allclose((1.0 - lft).d[0], np.eye(2) - np.ones((2, 2)))
        assert_allclose((np.eye(2) + lft).d[0], np.ones((2, 2)) + np.eye(2))

    def test_dimension_mismatch(self):
        with pytest.raises(IncompatibleSpecificationError, match="performance inputs"):
            static_lft(np.ones((1, 2))) + static_lft(np.ones((1, 3)))
        with pytest.raises(IncompatibleSpecificationError, match="performance outputs"):
            static_lft(np.ones((2, 1))) - static_lft(np.ones((1, 1)))

    def test_dynamic_sum(self):
        g = to_lft(control.tf([1], [1, -0.5], True))
        assert_allclose(dc_gain(g + g), [[4.0]])
        assert (g + g).dim_state[0] == 2

    def test_negation_keeps_uncertainty_channels(self):
        lft = -to_lft(DeltaSlti("p"))
        assert_allclose(lft.d[0], [[0.0, 1.0], [-1.0, 0.0]])


# ============================================================================
# Series connection
# ============================================================================


class TestSeries:
    def test_static(self, two, three):
        assert_allclose((two * three).d[0], [[6.0]])
        assert_allclose((2.0 * static_lft(np.ones((2, 2)))).d[0], 2.0 * np.ones((2, 2)))
        assert_allclose((static_lft(np.ones((2, 3))) * 2.0).d[0], 2.0 * np.ones((2, 3)))

    def test_matrix_order(self):
        left = static_lft(np.array([[1.0, 2.0]]))
        right = static_lft(np.array([[3.0], [4.0]]))
        assert_allclose((left * right).d[0], [[11.0]])
        assert_allclose((right * left).d[0], [[3.0, 6.0], [4.0, 8.0]])

    def test_dynamic(self):
        g = to_lft(control.tf([1], [1, -0.5], True))
        assert_allclose(dc_gain(g * g), [[4.0]])
        assert_allclose(dc_gain(3.0 * g), [[6.0]])

    def test_delta_fed_by_plant(self, three):
        lft = to_lft(DeltaSlti("p")) * three
        assert lft.delta.names == ("p",)
        assert_allclose(lft.d[0], [[0.0, 3.0], [1.0, 0.0]])

    def test_channels_from_each_side(self):
        left = static_lft(np.ones((1, 2))).add_performances([PerformanceL2Induced("pl", chan_out=[0])])
        right = static_lft(np.ones((2, 1))).add_disturbances([DisturbanceL2("dr", [0])])
        lft = left * right
        assert lft.disturbance.names == ("dr",)
        assert lft.performance.names == ("pl",)

    def test_mismatch(self):
        with pytest.raises(IncompatibleSpecificationError, match="Cannot connect"):
            static_lft(np.ones((1, 2))) * static_lft(np.ones((1, 1)))


# ============================================================================
# Concatenation
# ============================================================================


class TestConcatenation:
    def test_blkdiag(self, two, three):
        assert_allclose(two.blkdiag(three).d[0], [[2.0, 0.0], [0.0, 3.0]])

    def test_horzcat(self, two, three):
        assert_allclose(two.horzcat(three, 4.0).d[0], [[2.0, 3.0, 4.0]])

    def test_vertcat(self, two, three):
        assert_allclose(two.vertcat(three).d[0], [[2.0], [3.0]])

    def test_selectors_shift(self):
        left = static_lft(1.0).add_disturbances([DisturbanceL2("a", [0])])
        left = left.add_performances([PerformanceL2Induced("pa", chan_out=[0])])
        right = static_lft(1.0).add_disturbances([DisturbanceL2("b", [0])])
        right = right.add_performances([PerformanceL2Induced("pb", chan_out=[0])])

        stacked = left.blkdiag(right)
        assert stacked.disturbance["b"].chan_in[0] == (1,)
        assert stacked.performance["pb"].chan_out[0] == (1,)

        vertical = left.vertcat(right)
        assert vertical.disturbance["b"].chan_in[0] == (0,)
        assert vertical.performance["pb"].chan_out[0] == (1,)

        horizontal = left.horzcat(right)
        assert horizontal.disturbance["b"].chan_in[0] == (1,)
        assert horizontal.performance["pb"].chan_out[0] == (0,)

    def test_defaults_stay_default(self, two, three):
        stacked = two.blkdiag(three)
        assert stacked.disturbance.is_default
        assert stacked.disturbance.names == ("default_l2",)

    def test_all_channel_selector_stays_on_its_operand(self):
        noisy = static_lft(0.1).add_disturbances([DisturbanceBandedWhite("n", omega=0.5)])
        plant = to_lft(control.tf([1.0], [1.0, -0.5], True))

        stacked = noisy.blkdiag(plant)
        assert stacked.disturbance.names == ("n", DEFAULT_NAME)
        assert not stacked.disturbance.is_default
        assert stacked.disturbance["n"].chan_in[0] == (0,)
        assert stacked.disturbance[DEFAULT_NAME].chan_in[0] == (1,)

        swapped = plant.blkdiag(noisy)
        assert swapped.disturbance[DEFAULT_NAME].chan_in[0] == (0,)
        assert swapped.disturbance["n"].chan_in[0] == (1,)

    def test_all_channel_selector_pinned_by_horzcat(self):
        left = static_lft(np.ones((1, 2))).add_disturbances([DisturbanceL2("a")])
        right = static_lft(np.ones((1, 3))).add_disturbances([DisturbanceL2("b")])
        joined = left.horzcat(right)
        assert joined.disturbance["a"].chan_in[0] == (0, 1)
        assert joined.disturbance["b"].chan_in[0] == (2, 3, 4)

    def test_all_channel_performance_pinned(self):
        left = static_lft(1.0).add_performances([PerformanceL2Induced("p")])
        stacked = left.blkdiag(static_lft(np.ones((2, 2))))
        assert stacked.performance.names == ("p",)
        assert stacked.performance["p"].chan_in[0] == (0,)
        assert stacked.performance["p"].chan_out[0] == (0,)

        vertical = left.vertcat(static_lft(np.ones((2, 1))))
        assert vertical.performance["p"].chan_in[0] == ()
        assert vertical.performance["p"].chan_out[0] == (0,)

    def test_same_name_joined_across_operands(self):
        left = static_lft(1.0).add_disturbances([DisturbanceL2("w")])
        right = static_lft(np.eye(2)).add_disturbances([DisturbanceL2("w", [1])])
        stacked = left.blkdiag(right)
        assert stacked.disturbance.names == ("w",)
        assert stacked.disturbance["w"].chan_in[0] == (0, 2)

    def test_same_name_different_kind_rejected(self):
        left = static_lft(1.0).add_disturbances([DisturbanceL2("w")])
        right = static_lft(1.0).add_disturbances([DisturbanceBandedWhite("w")])
        with pytest.raises(IncompatibleSpecificationError, match="different definition"):
            left.blkdiag(right)

    def test_operand_without_inputs_drops_its_selectors(self):
        left = static_lft(np.ones((1, 0))).add_disturbances([DisturbanceL2("a")])
        right = static_lft(1.0).add_disturbances([DisturbanceL2("b")])
        stacked = left.blkdiag(right)
        assert stacked.disturbance.names == ("b",)
        assert stacked.disturbance["b"].chan_in[0] == (0,)


# ============================================================================
# Uncertainty blocks
# ============================================================================


class TestDeltaMerging:
    def test_repeated_parameter(self):
        p = to_lft(DeltaSlti("p"))
        lft = p + p
        assert lft.delta.names == ("p",)
        assert lft.delta["p"].dim_outin[0] == 2
        assert_allclose(lft.d[0], [[0, 0, 1], [0, 0, 1], [1, 1, 0]])

    def test_distinct_blocks_are_ordered(self):
        lft = to_lft(DeltaSlti("p")) + to_lft(DeltaDlti("q"))
        assert lft.delta.names == ("p", "q")
        assert lft.performance_dim_in[0] == 1

    def test_contiguous_channels(self):
        p, q = to_lft(DeltaSlti("p")), to_lft(DeltaSlti("q"))
        lft = (p + q) + p
        assert lft.delta.names == ("p", "q")
        assert lft.delta["p"].dim_outin[0] == 2
        # w = [p, p, q]; e = w_p1 + w_q + w_p2
        assert_allclose(lft.d[0][3], [1, 1, 1, 0])
        # the second copy of p reads d
        assert_allclose(lft.d[0][1], [0, 0, 0, 1])

    def test_unrepeatable_block(self):
        q = to_lft(DeltaDlti("q"))
        with pytest.raises(IncompatibleSpecificationError, match="cannot be combined"):
            q + q


# ============================================================================
# Time domain
# ============================================================================


class TestTimeDomain:
    def test_common_timestep(self):
        assert common_timestep(-1, 0.1) == 0.1
        assert common_timestep(0.2, -1) == 0.2
        assert common_timestep(0, 0) == 0
        with pytest.raises(IncompatibleSpecificationError):
            common_timestep(0, -1)
        with pytest.raises(IncompatibleSpecificationError):
            common_timestep(0.1, 0.2)

    def test_sample_time_adopted(self):
        lft = static_lft(1.0, timestep=0.1) + static_lft(1.0)
        assert lft.timestep == 0.1

    def test_horizon_periods_reconciled(self):
        first = static_lft(PeriodicSequence([np.eye(1), 2 * np.eye(1)], (0, 2)))
        second = static_lft(PeriodicSequence([10 * np.eye(1), 20 * np.eye(1), 30 * np.eye(1)], (0, 3)))
        lft = first + second
        assert lft.horizon_period == (0, 6)
        expected = [11, 22, 31, 12, 21, 32]
        for k, value in enumerate(expected):
            assert_allclose(lft.d[k], [[value]])


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
