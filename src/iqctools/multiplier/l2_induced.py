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
Multiplier for Induced L2 Performance

The filter selects the measured channels psi = [S_in d; S_out e] and the
quad is diag(-g I, I) with g = gamma^2, so the dissipation inequality
certifies

    sum_k |S_out e_k|^2 <= g sum_k |S_in d_k|^2.

g is a decision variable minimized by the analysis, or the square of the
fixed gain of the performance.
"""

from typing import Optional

import cvxpy as cp
import numpy as np

from iqctools.multiplier.base import Multiplier, block_diagonal, filter_lft, periodic_dims
from iqctools.performance.l2_induced import PerformanceL2Induced
from iqctools.utils.errors import ConstructionError
from iqctools.utils.horizon_period import PeriodicSequence
from iqctools.utils.matrices import blkdiag
from iqctools.utils.validation import selection_matrix


class MultiplierL2Induced(Multiplier):
    """
    Performance multiplier for PerformanceL2Induced.

    Parameters
    ----------
    performance : PerformanceL2Induced
    dim_in, dim_out : int or PeriodicSequence of int
        Performance input and output counts of the LFT.
    discrete : bool

    Attributes
    ----------
    gain_squared : cvxpy Variable or float
        g in diag(-g I, I)

    Examples
    --------
    >>> m = MultiplierL2Induced(PerformanceL2Induced("p"), 2, 1)
    >>> m.objective is m.gain_squared
    True
    """

    def __init__(self, performance: PerformanceL2Induced, dim_in, dim_out, discrete: bool = True):
        if not isinstance(performance, PerformanceL2Induced):
            raise ConstructionError(
                f"MultiplierL2Induced requires a PerformanceL2Induced, got {type(performance).__name__}"
            )
        hp = performance.horizon_period
        total = hp[0] + hp[1]
        dims_in = periodic_dims(dim_in, hp, "dim_in")
        dims_out = periodic_dims(dim_out, hp, "dim_out")

        if performance.gain is None:
            gain_squared = cp.Variable(nonneg=True, name=f"{performance.name}_gain_squared")
            objective = gain_squared
            variables = {"gain_squared": gain_squared}
        else:
            gain_squared = performance.gain ** 2
            objective = None
            variables = {}
        self.gain_squared = gain_squared

        quads, b_seq, c_seq, d_seq = [], [], [], []
        for k in range(total):
            s_in = selection_matrix(performance.chan_in[k], dims_in[k])
            s_out = selection_matrix(performance.chan_out[k], dims_out[k])
            n_in, n_out = s_in.shape[0], s_out.shape[0]
            quads.append(block_diagonal(-gain_squared * np.eye(n_in), np.eye(n_out)))
            b_seq.append(np.zeros((0, dims_in[k] + dims_out[k])))
            c_seq.append(np.zeros((n_in + n_out, 0)))
            d_seq.append(blkdiag(s_in, s_out))

        filter = filter_lft([np.zeros((0, 0))] * total, b_seq, c_seq, d_seq, hp, discrete)
        super().__init__(
            performance,
            filter,
            PeriodicSequence(quads, hp),
            discrete,
            decision_variables=variables,
            objective=objective,
        )

    def performance_bound(self) -> Optional[float]:
        """gamma = sqrt(g) at the solver's optimum"""
        if isinstance(self.gain_squared, cp.Expression):
            value = self.gain_squared.value
            return None if value is None else float(np.sqrt(max(float(value), 0.0)))
        return float(self.source.gain)
