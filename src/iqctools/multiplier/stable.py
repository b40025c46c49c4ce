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

"""Multiplier for a robust stability objective"""

from typing import Optional

import numpy as np

from iqctools.multiplier.base import Multiplier, filter_lft, periodic_dims
from iqctools.performance.stable import PerformanceStable
from iqctools.utils.errors import ConstructionError
from iqctools.utils.horizon_period import PeriodicSequence


class MultiplierStable(Multiplier):
    """
    Empty performance multiplier.

    The dissipation inequality then certifies robust stability only and the
    reported performance is 0.0.

    Parameters
    ----------
    performance : PerformanceStable
    dim_in, dim_out : int or PeriodicSequence of int
        Performance input and output counts of the LFT.
    discrete : bool
    """

    def __init__(self, performance: PerformanceStable, dim_in, dim_out, discrete: bool = True):
        if not isinstance(performance, PerformanceStable):
            raise ConstructionError(
                f"MultiplierStable requires a PerformanceStable, got {type(performance).__name__}"
            )
        hp = performance.horizon_period
        total = hp[0] + hp[1]
        dims_in = periodic_dims(dim_in, hp, "dim_in")
        dims_out = periodic_dims(dim_out, hp, "dim_out")
        widths = [n_in + n_out for n_in, n_out in zip(dims_in, dims_out)]
        filter = filter_lft(
            [np.zeros((0, 0))] * total,
            [np.zeros((0, n)) for n in widths],
            [np.zeros((0, 0))] * total,
            [np.zeros((0, n)) for n in widths],
            hp,
            discrete,
        )
        quad = PeriodicSequence.broadcast(np.zeros((0, 0)), hp)
        super().__init__(performance, filter, quad, discrete)

    def performance_bound(self) -> Optional[float]:
        return 0.0
