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
Square-Summable Disturbance

DisturbanceL2 places no constraint on d beyond finite energy. It is the
default disturbance of every LFT.
"""

from dataclasses import dataclass
from typing import Any

from iqctools.disturbance.base import Disturbance
from iqctools.utils.horizon_period import validate_horizon_period
from iqctools.utils.validation import channel_sequence, validate_name


@dataclass(frozen=True)
class DisturbanceL2(Disturbance):
    """
    Unconstrained finite-energy disturbance.

    Parameters
    ----------
    name : str
    chan_in : selector or list of selectors, optional
        Defaults to every channel
    horizon_period : [h, p], optional

    Examples
    --------
    >>> d = DisturbanceL2("noise", [0, 2])
    >>> d.chan_in[0]
    (0, 2)
    """

    name: str
    chan_in: Any = None
    horizon_period: Any = None

    _periodic_fields = ("chan_in",)

    def __post_init__(self):
        validate_name(self.name)
        hp = validate_horizon_period(self.horizon_period)
        object.__setattr__(self, "horizon_period", hp)
        object.__setattr__(self, "chan_in", channel_sequence(self.chan_in, hp, "chan_in"))

    def to_multiplier(self, dim_in, discrete: bool = True, **options: Any):
        """Trivial multiplier MultiplierL2"""
        from iqctools.multiplier.l2 import MultiplierL2

        return MultiplierL2(self, dim_in, discrete=discrete, **options)
