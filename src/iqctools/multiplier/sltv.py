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
Multiplier for Static LTV Uncertainty

For w_k = delta_k z_k with l_k <= delta_k <= u_k the static quad

    Q_k = [ -l_k u_k X_k    c_k X_k + Y_k ]      X_k >= 0,  Y_k' = -Y_k
          [ c_k X_k - Y_k      -X_k       ]

satisfies psi_k' Q_k psi_k = (delta_k - l_k)(u_k - delta_k) z_k' X_k z_k >= 0
at every step, so the filter is the identity on [z; w].
"""

from typing import Any

import cvxpy as cp
import numpy as np

from iqctools.delta.sltv import DeltaSltv
from iqctools.multiplier.base import Multiplier, filter_lft, step_variables
from iqctools.utils.errors import ConstructionError
from iqctools.utils.horizon_period import PeriodicSequence


class MultiplierSltv(Multiplier):
    """
    Static multiplier for DeltaSltv.

    Parameters
    ----------
    delta : DeltaSltv
    discrete : bool
    quad_time_varying : bool
        Independent X_k, Y_k at every step (default) or one pair shared by
        all steps, which requires a constant dimension.
    """

    def __init__(self, delta: DeltaSltv, discrete: bool = True, quad_time_varying: bool = True):
        if not isinstance(delta, DeltaSltv):
            raise ConstructionError(f"MultiplierSltv requires a DeltaSltv, got {type(delta).__name__}")
        hp = delta.horizon_period
        total = hp[0] + hp[1]
        dims = delta.dim_outin
        self.quad_time_varying = bool(quad_time_varying)
        if not self.quad_time_varying and not dims.is_constant():
            raise ConstructionError(
                f"A time-invariant quad for Delta '{delta.name}' needs a constant dimension, got {dims.to_list()}"
            )

        def make_x(k, n):
            return cp.Variable((n, n), symmetric=True, name=f"{delta.name}_x_{k}")

        def make_y(k, n):
            return cp.Variable((n, n), name=f"{delta.name}_y_{k}")

        xs = step_variables(make_x, hp, self.quad_time_varying, dims.to_list())
        ys = step_variables(make_y, hp, self.quad_time_varying, dims.to_list())

        constraints = []
        pairs = list(zip(xs, ys)) if self.quad_time_varying else [(xs[0], ys[0])]
        for x, y in pairs:
            constraints.extend([x >> 0, y + y.T == 0])

        quads = []
        for k in range(total):
            low, up = delta.lower_bound[k], delta.upper_bound[k]
            center = 0.5 * (low + up)
            x, y = xs[k], ys[k]
            quads.append(cp.bmat([[-low * up * x, center * x + y], [center * x + y.T, -x]]))

        eyes = [np.eye(2 * n) for n in dims]
        filter = filter_lft(
            [np.zeros((0, 0))] * total,
            [np.zeros((0, 2 * n)) for n in dims],
            [np.zeros((2 * n, 0)) for n in dims],
            eyes,
            hp,
            discrete,
        )
        variables = {"x": xs if self.quad_time_varying else xs[0], "y": ys if self.quad_time_varying else ys[0]}
        super().__init__(
            delta,
            filter,
            PeriodicSequence(quads, hp),
            discrete,
            constraints=constraints,
            decision_variables=variables,
        )
