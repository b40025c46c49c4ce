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
Induced L2 Gain Performance

PerformanceL2Induced bounds the worst-case energy gain from the selected
performance inputs to the selected performance outputs:

    sum_k |e_k|^2 <= gain^2 sum_k |d_k|^2

With ``gain=None`` the analysis minimizes the gain; a numeric gain turns the
analysis into a feasibility test of that value.

Usage
-----
>>> p = PerformanceL2Induced("tracking", chan_in=[0], chan_out=[1])
>>> p = PerformanceL2Induced("test", gain=2.5)
"""

from dataclasses import dataclass
from typing import Any

from iqctools.performance.base import Performance
from iqctools.utils.horizon_period import validate_horizon_period
from iqctools.utils.validation import channel_sequence, validate_finite, validate_name


@dataclass(frozen=True)
class PerformanceL2Induced(Performance):
    """
    Induced L2-norm performance.

    Parameters
    ----------
    name : str
    chan_out : selector or list of selectors, optional
        Performance outputs e measured; defaults to every channel
    chan_in : selector or list of selectors, optional
        Performance inputs d measured; defaults to every channel
    gain : float, optional
        Fixed gain to certify instead of minimizing; non-negative
    horizon_period : [h, p], optional

    Examples
    --------
    >>> PerformanceL2Induced("a").chan_in[0]
    ()
    """

    name: str
    chan_out: Any = None
    chan_in: Any = None
    gain: Any = None
    horizon_period: Any = None

    _periodic_fields = ("chan_out", "chan_in")

    def __post_init__(self):
        validate_name(self.name)
        hp = validate_horizon_period(self.horizon_period)
        gain = None if self.gain is None else validate_finite(self.gain, "gain", lower=0.0)
        object.__setattr__(self, "horizon_period", hp)
        object.__setattr__(self, "chan_out", channel_sequence(self.chan_out, hp, "chan_out"))
        object.__setattr__(self, "chan_in", channel_sequence(self.chan_in, hp, "chan_in"))
        object.__setattr__(self, "gain", gain)

    def to_multiplier(self, dim_in, dim_out, discrete: bool = True, **options: Any):
        """Multiplier diag(-gain^2 I, I) on the selected [d; e]"""
        from iqctools.multiplier.l2_induced import MultiplierL2Induced

        return MultiplierL2Induced(self, dim_in, dim_out, discrete=discrete, **options)
