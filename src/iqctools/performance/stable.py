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
Robust Stability

PerformanceStable asks only for robust stability of the uncertain system.
All performance inputs are disconnected during analysis and the reported
performance of a certified system is 0.0.
"""

from dataclasses import dataclass
from typing import Any, Tuple

from iqctools.performance.base import Performance
from iqctools.utils.horizon_period import PeriodicSequence, validate_horizon_period
from iqctools.utils.validation import validate_name


@dataclass(frozen=True)
class PerformanceStable(Performance):
    """
    Robust stability objective.

    Parameters
    ----------
    name : str
    horizon_period : [h, p], optional

    Examples
    --------
    >>> lft = lft.add_performances([PerformanceStable("stability")])
    """

    name: str
    horizon_period: Any = None

    def __post_init__(self):
        validate_name(self.name)
        object.__setattr__(self, "horizon_period", validate_horizon_period(self.horizon_period))

    @property
    def chan_in(self) -> PeriodicSequence:
        return PeriodicSequence.broadcast([()], self.horizon_period)

    @property
    def chan_out(self) -> PeriodicSequence:
        return PeriodicSequence.broadcast([()], self.horizon_period)

    def shift_channels(self, offset_in=0, offset_out=0, span_in=None, span_out=None) -> "PerformanceStable":
        return self

    def kept_inputs(self, k: int, dim_in: int) -> Tuple[int, ...]:
        return ()

    def to_multiplier(self, dim_in, dim_out, discrete: bool = True, **options: Any):
        from iqctools.multiplier.stable import MultiplierStable

        return MultiplierStable(self, dim_in, dim_out, discrete=discrete, **options)
