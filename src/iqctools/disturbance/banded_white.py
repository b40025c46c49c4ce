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
Band-Limited White Disturbance

DisturbanceBandedWhite describes a disturbance whose selected channels have
a flat power spectrum on the band |w| <= omega and no power outside it. For
discrete-time systems the band edge lies in (0, pi]; the default pi is
white noise.
"""

from dataclasses import dataclass
from typing import Any

import numpy as np

from iqctools.disturbance.base import Disturbance
from iqctools.utils.errors import ConstructionError
from iqctools.utils.horizon_period import validate_horizon_period
from iqctools.utils.validation import channel_sequence, validate_finite, validate_name


@dataclass(frozen=True)
class DisturbanceBandedWhite(Disturbance):
    """
    Disturbance with a flat spectrum on a frequency band.

    Parameters
    ----------
    name : str
    chan_in : selector, optional
        Same selector at every step; defaults to every channel
    omega : float
        Band edge in rad/sample (discrete) or rad/s (continuous). Defaults
        to pi.
    horizon_period : [h, p], optional

    Examples
    --------
    >>> d = DisturbanceBandedWhite("wind", [1], omega=0.5)
    >>> d.omega
    0.5
    """

    name: str
    chan_in: Any = None
    omega: Any = np.pi
    horizon_period: Any = None

    _periodic_fields = ("chan_in",)

    def __post_init__(self):
        validate_name(self.name)
        hp = validate_horizon_period(self.horizon_period)
        omega = validate_finite(self.omega, "omega")
        if omega <= 0:
            raise ConstructionError(f"omega of '{self.name}' must be positive, got {omega}")
        chan_seq = channel_sequence(self.chan_in, hp, "chan_in")
        if not chan_seq.is_constant():
            raise ConstructionError(
                f"chan_in of DisturbanceBandedWhite '{self.name}' must be the same at every time step"
            )
        object.__setattr__(self, "horizon_period", hp)
        object.__setattr__(self, "chan_in", chan_seq)
        object.__setattr__(self, "omega", omega)

    def to_multiplier(self, dim_in, discrete: bool = True, **options: Any):
        """Default multiplier: MultiplierBandedWhite (option ``poles``)"""
        from iqctools.multiplier.banded_white import MultiplierBandedWhite

        return MultiplierBandedWhite(self, dim_in, discrete=discrete, **options)
