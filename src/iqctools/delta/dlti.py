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
Dynamic Linear Time-Invariant Uncertainty

DeltaDlti models an unknown stable LTI operator with bounded induced gain:

    w = Delta z,    ||Delta||_inf <= upper_bound

Usage
-----
>>> DeltaDlti("unmodeled").dim_in[0]
1
>>> d = DeltaDlti("unmodeled", 7)           # 7 x 7
>>> d = DeltaDlti("unmodeled", 7, 10)       # 7 outputs, 10 inputs
"""

from dataclasses import dataclass
from typing import Any

from iqctools.delta.base import Delta
from iqctools.utils.horizon_period import PeriodicSequence, validate_horizon_period
from iqctools.utils.validation import (
    constant_value,
    validate_finite,
    validate_name,
    validate_positive_int,
)


@dataclass(frozen=True)
class DeltaDlti(Delta):
    """
    Dynamic, linear, time-invariant, norm-bounded uncertainty.

    Parameters
    ----------
    name : str
    dim_out : int
        Size of w (defaults to 1)
    dim_in : int, optional
        Size of z (defaults to dim_out)
    upper_bound : float
        Bound on the induced L2 gain, finite and non-negative
    horizon_period : [h, p], optional
        Defaults to [0, 1]

    Raises
    ------
    ConstructionError
        For an invalid name, dimension or bound, or for attributes that
        vary in time.
    """

    name: str
    dim_out: Any = 1
    dim_in: Any = None
    upper_bound: Any = 1.0
    horizon_period: Any = None

    _periodic_fields = ("dim_out", "dim_in")

    def __post_init__(self):
        validate_name(self.name)
        hp = validate_horizon_period(self.horizon_period)
        dim_out = validate_positive_int(constant_value(self.dim_out, "dim_out"), "dim_out")
        dim_in = dim_out if self.dim_in is None else self.dim_in
        dim_in = validate_positive_int(constant_value(dim_in, "dim_in"), "dim_in")
        upper = validate_finite(constant_value(self.upper_bound, "upper_bound"), "upper_bound", lower=0.0)
        object.__setattr__(self, "horizon_period", hp)
        object.__setattr__(self, "dim_out", PeriodicSequence.broadcast(dim_out, hp))
        object.__setattr__(self, "dim_in", PeriodicSequence.broadcast(dim_in, hp))
        object.__setattr__(self, "upper_bound", upper)

    def to_multiplier(self, discrete: bool = True, **options: Any):
        """Default multiplier: MultiplierBounded with a time-invariant weight"""
        from iqctools.multiplier.bounded import MultiplierBounded

        return MultiplierBounded(self, discrete=discrete, **options)
