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
Multiplier for Piecewise-Constant Disturbances

Mathematical Background
-----------------------
The filter stores the previous value of the selected channels,

    x_{k+1} = S d_k,    psi_k = x_k - S d_k = S (d_{k-1} - d_k),

with x_0 = 0. On window steps psi_k vanishes for every admissible
disturbance, so any symmetric Q_k gives psi_k' Q_k psi_k = 0 there. Off the
window Q_k = 0. The analysis is free to pick Q_k of either sign.
"""

import cvxpy as cp
import numpy as np

from iqctools.disturbance.constant_window import DisturbanceConstantWindow
from iqctools.multiplier.base import Multiplier, filter_lft, periodic_dims
from iqctools.utils.errors import ConstructionError
from iqctools.utils.horizon_period import PeriodicSequence
from iqctools.utils.validation import selection_matrix


class MultiplierConstantWindow(Multiplier):
    """
    Multiplier for DisturbanceConstantWindow (discrete time only).

    Parameters
    ----------
    disturbance : DisturbanceConstantWindow
    dim_in : int or PeriodicSequence of int
        Number of performance inputs of the LFT.
    discrete : bool
        Must be True.
    quad_time_varying : bool
        Independent Q_k at every window step (default) or one shared Q.

    Raises
    ------
    ConstructionError
        In continuous time, or if the number of selected channels changes
        over time.
    """

    def __init__(
        self,
        disturbance: DisturbanceConstantWindow,
        dim_in,
        discrete: bool = True,
        quad_time_varying: bool = True,
    ):
        if not isinstance(disturbance, DisturbanceConstantWindow):
            raise ConstructionError(
                f"MultiplierConstantWindow requires a DisturbanceConstantWindow, got {type(disturbance).__name__}"
            )
        if not discrete:
            raise ConstructionError(f"Disturbance '{disturbance.name}' is only defined in discrete time")
        hp = disturbance.horizon_period
        total = hp[0] + hp[1]
        dims = periodic_dims(dim_in, hp, "dim_in")
        selections = [selection_matrix(disturbance.chan_in[k], dims[k]) for k in range(total)]
        widths = {s.shape[0] for s in selections}
        if len(widths) != 1:
            raise ConstructionError(
                f"Disturbance '{disturbance.name}' must select the same number of channels at every step"
            )
        width = widths.pop()
        self.quad_time_varying = bool(quad_time_varying)

        active = disturbance.active
        quads, used = [], []
        for k in range(total):
            if not active[k] or width == 0:
                quads.append(np.zeros((width, width)))
                continue
            if self.quad_time_varying or not used:
                used.append(cp.Variable((width, width), symmetric=True, name=f"{disturbance.name}_q_{k}"))
            quads.append(used[-1])

        filter = filter_lft(
            [np.zeros((width, width))] * total,
            selections,
            [np.eye(width)] * total,
            [-s for s in selections],
            hp,
            discrete,
        )
        super().__init__(
            disturbance,
            filter,
            PeriodicSequence(quads, hp),
            discrete,
            decision_variables={"q": used},
        )
