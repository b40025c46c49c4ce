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

"""Multiplier for unconstrained L2 disturbances"""

import numpy as np

from iqctools.disturbance.l2 import DisturbanceL2
from iqctools.multiplier.base import Multiplier, filter_lft, periodic_dims
from iqctools.utils.errors import ConstructionError
from iqctools.utils.horizon_period import PeriodicSequence


class MultiplierL2(Multiplier):
    """
    Empty multiplier: an L2 disturbance adds no information.

    Parameters
    ----------
    disturbance : DisturbanceL2
    dim_in : int or PeriodicSequence of int
        Number of performance inputs of the LFT.
    discrete : bool
    """

    def __init__(self, disturbance: DisturbanceL2, dim_in, discrete: bool = True):
        if not isinstance(disturbance, DisturbanceL2):
            raise ConstructionError(f"MultiplierL2 requires a DisturbanceL2, got {type(disturbance).__name__}")
        hp = disturbance.horizon_period
        dims = periodic_dims(dim_in, hp, "dim_in")
        total = hp[0] + hp[1]
        filter = filter_lft(
            [np.zeros((0, 0))] * total,
            [np.zeros((0, n)) for n in dims],
            [np.zeros((0, 0))] * total,
            [np.zeros((0, n)) for n in dims],
            hp,
            discrete,
        )
        quad = PeriodicSequence.broadcast(np.zeros((0, 0)), hp)
        super().__init__(disturbance, filter, quad, discrete)
