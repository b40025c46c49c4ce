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
Unit Tests for Ulft

Tests cover:
- Construction, dimension checks and horizon_period inference
- Default disturbance and performance
- add_deltas / add_disturbances / add_performances (idempotence, collisions,
  channel renumbering, absorption errors)
- match_horizon_period round trips
- Random generation
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from iqctools.delta import DeltaDlti, DeltaSlti, DeltaSltv
from iqctools.disturbance import DisturbanceConstantWindow, DisturbanceL2
from iqctools.lft import DEFAULT_NAME, Ulft, to_lft
from iqctools.performance import PerformanceL2Induced, PerformanceStable
from iqctools.utils.errors import (
    ConsistencyError,
    ConstructionError,
    IncompatibleSpecificationError,
)
from iqctools.utils.horizon_period import PeriodicSequence


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def rng():
    return np.random.default_rng(7)


@pytest.fixture
def plant():
    """x+ = 0.5 x + [1 1 1] u, y = [1; 1; 1] x, three performance channels"""
    return Ulft(0.5, np.ones((1, 3)), np.ones((3, 1)), np.zeros((3, 3)))


# ============================================================================
# Construction
# ============================================================================


class TestConstruction:
    def test_scalar_data(self):
        lft = Ulft(0.5, 1.0, 1.0, 0.0)
        assert lft.horizon_period == (0, 1)
        assert lft.timestep == -1
        assert lft.is_discrete
        assert lft.dim_state[0] == 1
        assert lft.performance_dim_in[0] == lft.performance_dim_out[0] == 1

    def test_defaults(self, plant):
        assert plant.disturbance.names == (DEFAULT_NAME,)
        assert plant.disturbance.is_default
        assert isinstance(plant.performance[DEFAULT_NAME], PerformanceL2Induced)
        assert len(plant.delta) == 0

    def test_per_step_matrices_infer_horizon_period(self):
        a = [np.zeros((1, 1)), np.ones((1, 1))]
        lft = Ulft(a, np.ones((1, 1)), np.ones((1, 1)), np.zeros((1, 1)))
        assert lft.horizon_period == (0, 2)
        assert_allclose(lft.a[3], [[1.0]])

    def test_horizon_period_from_contents(self):
        lft = Ulft(0.5, 1.0, 1.0, 0.0, disturbance=DisturbanceL2("d", horizon_period=[1, 3]))
        assert lft.horizon_period == (1, 3)
        assert len(lft.a) == 4
        assert_allclose(lft.a[3], [[0.5]])

    def test_time_varying_state_dimension(self):
        a = [np.ones((2, 1)), np.ones((1, 2))]
        b = [np.ones((2, 1)), np.ones((1, 1))]
        c = [np.ones((1, 1)), np.ones((1, 2))]
        d = [np.zeros((1, 1)), np.zeros((1, 1))]
        lft = Ulft(a, b, c, d)
        assert lft.dim_state.values == (1, 2)

    @pytest.mark.parametrize(
        "args",
        [
            (np.eye(2), np.ones((1, 1)), np.ones((1, 2)), np.zeros((1, 1))),
            (np.eye(2), np.ones((2, 1)), np.ones((1, 3)), np.zeros((1, 1))),
            (np.eye(2), np.ones((2, 1)), np.ones((1, 2)), np.zeros((2, 1))),
        ],
    )
    def test_dimension_errors(self, args):
        with pytest.raises(ConstructionError):
            Ulft(*args)

    def test_state_chain_mismatch(self):
        a = [np.ones((2, 1)), np.ones((2, 2))]
        with pytest.raises(ConstructionError, match="states"):
            Ulft(a, np.ones((2, 1)), np.ones((1, 1)), np.zeros((1, 1)), horizon_period=[0, 2])

    def test_list_length_mismatch(self):
        with pytest.raises(ConsistencyError):
            Ulft([np.zeros((1, 1))] * 3, 1.0, 1.0, 0.0, horizon_period=[0, 2])

    @pytest.mark.parametrize("timestep", [-2, "fast", True, np.inf])
    def test_bad_timestep(self, timestep):
        with pytest.raises(ConstructionError, match="timestep"):
            Ulft(0.5, 1.0, 1.0, 0.0, timestep=timestep)

    def test_continuous_time_is_time_invariant(self):
        with pytest.raises(ConsistencyError, match="continuous-time"):
            Ulft(-1.0, 1.0, 1.0, 0.0, horizon_period=[0, 2], timestep=0)

    def test_too_few_channels_for_deltas(self):
        with pytest.raises(IncompatibleSpecificationError, match="Deltas need"):
            Ulft(0.5, 1.0, 1.0, 0.0, delta=[DeltaSlti("p", 2)])

    def test_selector_out_of_range(self, plant):
        with pytest.raises(IncompatibleSpecificationError, match="input channel 3"):
            plant.add_disturbances([DisturbanceL2("d", [3])])
        with pytest.raises(IncompatibleSpecificationError, match="output channel 5"):
            plant.add_performances([PerformanceL2Induced("p", chan_out=[5])])


# ============================================================================
# Adding contained objects
# ============================================================================


class TestAddDeltas:
    def test_absorbs_leading_channels(self, plant):
        lft = plant.add_deltas([DeltaSlti("p")])
        assert lft.delta.names == ("p",)
        assert lft.performance_dim_in[0] == 2
        assert lft.performance_dim_out[0] == 2
        assert lft.dim_in[0] == 3

    def test_renumbers_selectors(self, plant):
        lft = plant.add_disturbances([DisturbanceL2("d", [2])])
        lft = lft.add_performances([PerformanceL2Induced("perf", chan_out=[1, 2], chan_in=[2])])
        lft = lft.add_deltas([DeltaSlti("p")])
        assert lft.disturbance["d"].chan_in[0] == (1,)
        assert lft.performance["perf"].chan_out[0] == (0, 1)
        assert lft.performance["perf"].chan_in[0] == (1,)

    def test_all_channel_selector_survives(self, plant):
        lft = plant.add_deltas([DeltaSlti("p")])
        assert lft.disturbance[DEFAULT_NAME].chan_in[0] == ()

    def test_idempotent(self, plant):
        once = plant.add_deltas([DeltaSlti("p")])
        assert once.add_deltas([DeltaSlti("p")]) is once

    def test_name_collision(self, plant):
        lft = plant.add_deltas([DeltaSlti("p")])
        with pytest.raises(IncompatibleSpecificationError, match="different definition"):
            lft.add_deltas([DeltaSlti("p", upper_bound=0.5)])

    def test_refers_to_absorbed_channel(self, plant):
        lft = plant.add_disturbances([DisturbanceL2("d", [0])])
        with pytest.raises(IncompatibleSpecificationError, match="absorb"):
            lft.add_deltas([DeltaSlti("p")])

    def test_not_enough_channels(self, plant):
        with pytest.raises(IncompatibleSpecificationError, match="performance channels"):
            plant.add_deltas([DeltaDlti("big", 4)])

    def test_reconciles_horizon_period(self, plant):
        lft = plant.add_deltas([DeltaSltv("g", horizon_period=[1, 2])])
        assert lft.horizon_period == (1, 2)
        assert lft.delta["g"].horizon_period == (1, 2)
        assert lft.disturbance[DEFAULT_NAME].horizon_period == (1, 2)


class TestAddDisturbancesAndPerformances:
    def test_default_replaced(self, plant):
        lft = plant.add_disturbances([DisturbanceL2("d", [1])])
        assert lft.disturbance.names == ("d",)
        assert not lft.disturbance.is_default
        lft = lft.add_disturbances([DisturbanceConstantWindow("c", [2], window=[1])])
        assert lft.disturbance.names == ("d", "c")

    def test_default_performance_replaced(self, plant):
        lft = plant.add_performances([PerformanceStable("s")])
        assert lft.performance.names == ("s",)

    def test_refined_duplicate_is_noop(self, plant):
        lft = plant.add_disturbances([DisturbanceL2("x", horizon_period=[1, 4])])
        assert lft.horizon_period == (1, 4)
        assert lft.add_disturbances([DisturbanceL2("x", horizon_period=[1, 2])]) is lft

    def test_unrefinable_duplicate(self, plant):
        lft = plant.add_disturbances([DisturbanceL2("x", horizon_period=[1, 4])])
        with pytest.raises(IncompatibleSpecificationError, match="conflicts"):
            lft.add_disturbances([DisturbanceL2("x", horizon_period=[1, 5])])

    def test_explicit_default_name_replaces_default(self, plant):
        lft = plant.add_performances([PerformanceL2Induced(DEFAULT_NAME, chan_in=[0])])
        assert lft.performance[DEFAULT_NAME].chan_in[0] == (0,)
        assert not lft.performance.is_default

    def test_type_checked(self, plant):
        with pytest.raises(TypeError):
            plant.add_disturbances([PerformanceStable("s")])


# ============================================================================
# Horizon-period changes
# ============================================================================


class TestMatchHorizonPeriod:
    def test_round_trip(self, rng):
        lft = Ulft.random(deltas=[DeltaSltv("g", horizon_period=[0, 2])], horizon_period=[1, 2], rng=rng)
        refined = lft.match_horizon_period([3, 4])
        assert refined.horizon_period == (3, 4)
        for k in range(12):
            assert_allclose(refined.d[k], lft.d[k])
        assert refined.match_horizon_period([1, 2]) == lft

    def test_inconsistent_coarsening(self, rng):
        lft = Ulft.random(horizon_period=[0, 2], rng=rng)
        with pytest.raises(ConsistencyError):
            lft.match_horizon_period([0, 1])


class TestRandom:
    def test_dimensions(self, rng):
        lft = Ulft.random(3, 2, 1, [DeltaSlti("p", 2)], horizon_period=[1, 2], rng=rng)
        assert lft.dim_state.values == (3, 3, 3)
        assert lft.dim_in[0] == 4
        assert lft.dim_out[0] == 3
        assert lft.performance_dim_in[2] == 2

    def test_reproducible(self):
        first = Ulft.random(rng=np.random.default_rng(1))
        second = Ulft.random(rng=np.random.default_rng(1))
        assert first == second

    def test_stable(self, rng):
        discrete = Ulft.random(4, rng=rng)
        assert np.max(np.abs(np.linalg.eigvals(discrete.a[0]))) < 1.0
        continuous = Ulft.random(4, timestep=0, rng=rng)
        assert np.max(np.linalg.eigvals(continuous.a[0]).real) < 0.0

    def test_equality(self, plant):
        copy = Ulft(0.5, np.ones((1, 3)), np.ones((3, 1)), np.zeros((3, 3)))
        assert plant == copy
        assert plant != to_lft((0.5, np.ones((1, 3)), np.ones((3, 1)), np.zeros((3, 3))), timestep=0.1)
        assert plant != PeriodicSequence([1], (0, 1))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
