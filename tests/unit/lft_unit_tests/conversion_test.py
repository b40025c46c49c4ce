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
Unit Tests for Conversion to Ulft

Tests cover:
- python-control transfer functions and state-space systems
- (a, b, c, d) tuples, matrices and scalars
- Uncertainty blocks
- Target horizon_period and timestep handling
"""

import control
import numpy as np
import pytest
from numpy.testing import assert_allclose

from iqctools.delta import DeltaBounded, DeltaSlti
from iqctools.lft import Ulft, static_lft, to_lft
from iqctools.utils.errors import ConstructionError


class TestControlSystems:
    def test_discrete_transfer_function(self):
        lft = to_lft(control.tf([1], [1, -0.5], True))
        assert lft.timestep == -1
        assert lft.dim_state[0] == 1
        assert_allclose(lft.a[0], [[0.5]])
        gain = lft.c[0] @ np.linalg.solve(np.eye(1) - lft.a[0], lft.b[0]) + lft.d[0]
        assert_allclose(gain, [[2.0]])

    def test_sample_time_kept(self):
        lft = to_lft(control.ss(0.5, 1.0, 1.0, 0.0, 0.1))
        assert lft.timestep == 0.1

    def test_continuous_state_space(self):
        lft = to_lft(control.ss(-1.0, 1.0, 1.0, 0.0))
        assert lft.timestep == 0
        assert not lft.is_discrete

    def test_continuous_cannot_be_periodic(self):
        with pytest.raises(ConstructionError, match="periodic"):
            to_lft(control.ss(-1.0, 1.0, 1.0, 0.0), horizon_period=[0, 2])

    def test_discrete_target_horizon_period(self):
        lft = to_lft(control.ss(0.5, 1.0, 1.0, 0.0, True), horizon_period=[1, 2])
        assert lft.horizon_period == (1, 2)
        assert_allclose(lft.a[2], [[0.5]])


class TestDataConversion:
    def test_tuple(self):
        lft = to_lft((0.5, 1.0, 1.0, 0.0))
        assert lft.timestep == -1
        assert lft.dim_in[0] == lft.dim_out[0] == 1

    def test_scalar_and_matrix(self):
        assert_allclose(to_lft(3.0).d[0], [[3.0]])
        lft = to_lft(np.ones((2, 3)), timestep=0)
        assert lft.dim_state[0] == 0
        assert lft.d[0].shape == (2, 3)
        assert lft.timestep == 0

    def test_static_lft_horizon_period(self):
        lft = static_lft([[1.0, 2.0]], horizon_period=[2, 1])
        assert lft.horizon_period == (2, 1)
        assert lft.dim_in[2] == 2

    def test_ulft_passthrough(self):
        lft = to_lft(3.0)
        assert to_lft(lft) is lft
        assert to_lft(lft, horizon_period=[0, 2]).horizon_period == (0, 2)

    def test_unconvertible(self):
        with pytest.raises(ConstructionError):
            to_lft("not a system")


class TestDeltaConversion:
    def test_slti(self):
        lft = to_lft(DeltaSlti("p", 2))
        assert lft.delta.names == ("p",)
        assert lft.dim_in[0] == 4
        assert lft.performance_dim_in[0] == lft.performance_dim_out[0] == 2
        expected = np.block([[np.zeros((2, 2)), np.eye(2)], [np.eye(2), np.zeros((2, 2))]])
        assert_allclose(lft.d[0], expected)

    def test_rectangular_periodic_block(self):
        delta = DeltaBounded("nl", [1, 2], [2, 1], horizon_period=[0, 2])
        lft = to_lft(delta)
        assert lft.horizon_period == (0, 2)
        assert lft.performance_dim_in.values == (2, 1)
        assert lft.performance_dim_out.values == (1, 2)

    def test_method_on_delta(self):
        lft = DeltaSlti("p").to_lft()
        assert isinstance(lft, Ulft)
        assert lft.delta["p"] == DeltaSlti("p")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
