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
Norm-Bounded Uncertainty

DeltaBounded models any causal operator, possibly nonlinear and
time-varying, whose output energy is bounded by a periodic weighting of its
input energy:

    sum_k |w_k|^2 <= sum_k upper_bound[k]^2 |z_k|^2
"""

from dataclasses import dataclass
from typing import Any

from iqctools.delta.base import Delta
from iqctools.utils.horizon_period import validate_horizon_period
from iqctools.utils.validation import (
    as_periodic,
    validate_finite,
    validate_name,
    validate_positive_int,
)


def _non_negative(value: Any, name: str) -> float:
    return validate_finite(value, name, lower=0.0)


@dataclass(frozen=True)
class DeltaBounded(Delta):
    """
    Norm-bounded operator with periodic dimensions and bounds.

    Parameters
    ----------
    name : str
    dim_out : int or list of int
    dim_in : int or list of int, optional
        Defaults to dim_out
    upper_bound : float or list of float
        Non-negative, finite
    horizon_period : [h, p], optional
    """

    name: str
    dim_out: Any = 1
    dim_in: Any = None
    upper_bound: Any = 1.0
    horizon_period: Any = None

    _periodic_fields = ("dim_out", "dim_in", "upper_bound")

    def __post_init__(self):
        validate_name(self.name)
        hp = validate_horizon_period(self.horizon_period)
        dim_out = as_periodic(self.dim_out, hp, "dim_out", validate_positive_int)
        dim_in = dim_out if self.dim_in is None else as_periodic(self.dim_in, hp, "dim_in", validate_positive_int)
        upper = as_periodic(self.upper_bound, hp, "upper_bound", _non_negative)
        object.__setattr__(self, "horizon_period", hp)
        object.__setattr__(self, "dim_out", dim_out)
        object.__setattr__(self, "dim_in", dim_in)
        object.__setattr__(self, "upper_bound", upper)

    def to_multiplier(self, discrete: bool = True, **options: Any):
        """Default multiplier: MultiplierBounded"""
        from iqctools.multiplier.bounded import MultiplierBounded

        return MultiplierBounded(self, discrete=discrete, **options)
