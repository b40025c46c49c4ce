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
Multiplier for Norm-Bounded Uncertainty

Both DeltaDlti (||Delta||_inf <= u) and DeltaBounded
(sum |w_k|^2 <= sum u_k^2 |z_k|^2) satisfy

    sum_k  alpha (u_k^2 |z_k|^2 - |w_k|^2)  >=  0

for any constant alpha >= 0, which is the static multiplier
Q_k = diag(alpha u_k^2 I, -alpha I) on [z; w].
"""

import cvxpy as cp
import numpy as np

from iqctools.delta.bounded import DeltaBounded
from iqctools.delta.dlti import DeltaDlti
from iqctools.multiplier.base import Multiplier, block_diagonal, filter_lft
from iqctools.utils.errors import ConstructionError
from iqctools.utils.horizon_period import PeriodicSequence


class MultiplierBounded(Multiplier):
    """
    Static multiplier for DeltaDlti and DeltaBounded.

    Parameters
    ----------
    delta : DeltaDlti or DeltaBounded
    discrete : bool

    Examples
    --------
    >>> m = MultiplierBounded(DeltaDlti("unmodeled", 2, upper_bound=0.1))
    >>> m.quad[0].shape
    (4, 4)
    """

    def __init__(self, delta, discrete: bool = True):
        if not isinstance(delta, (DeltaDlti, DeltaBounded)):
            raise ConstructionError(
                f"MultiplierBounded requires a DeltaDlti or DeltaBounded, got {type(delta).__name__}"
            )
        hp = delta.horizon_period
        total = hp[0] + hp[1]
        bounds = PeriodicSequence.broadcast(delta.upper_bound, hp)
        alpha = cp.Variable(nonneg=True, name=f"{delta.name}_alpha")

        quads, b_seq, c_seq, d_seq = [], [], [], []
        for k in range(total):
            n_in, n_out = delta.dim_in[k], delta.dim_out[k]
            quads.append(
                block_diagonal(
                    alpha * (bounds[k] ** 2) * np.eye(n_in),
                    -alpha * np.eye(n_out),
                )
            )
            b_seq.append(np.zeros((0, n_in + n_out)))
            c_seq.append(np.zeros((n_in + n_out, 0)))
            d_seq.append(np.eye(n_in + n_out))

        self.upper_bound = delta.upper_bound
        filter = filter_lft([np.zeros((0, 0))] * total, b_seq, c_seq, d_seq, hp, discrete)
        super().__init__(
            delta,
            filter,
            PeriodicSequence(quads, hp),
            discrete,
            decision_variables={"alpha": alpha},
        )
