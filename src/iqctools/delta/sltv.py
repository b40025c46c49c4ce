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
Static Linear Time-Varying Uncertainty

DeltaSltv models a real parameter that may change arbitrarily at every time
step, within bounds that are themselves periodic:

    w_k = delta_k * z_k,    lower_bound[k] <= delta_k <= upper_bound[k]
"""

from dataclasses import dataclass
from typing import Any

from iqctools.delta.base import Delta
from iqctools.utils.errors import ConstructionError, IncompatibleSpecificationError
from iqctools.utils.horizon_period import PeriodicSequence, validate_horizon_period
from iqctools.utils.validation import (
    as_periodic,
    validate_finite,
    validate_name,
    validate_positive_int,
)


@dataclass(frozen=True)
class DeltaSltv(Delta):
    """
    Static, linear, time-varying real parametric uncertainty.

    Parameters
    ----------
    name : str
    dim_outin : int or list of int
        Repetitions of the parameter at every time step
    lower_bound : float or list of float
    upper_bound : float or list of float
    horizon_period : [h, p], optional
        Defaults to [0, 1]

    Examples
    --------
    >>> d = DeltaSltv("gain", 1, [-1.0, -0.5], [1.0, 0.5], horizon_period=[0, 2])
    >>> d.upper_bound[3]
    0.5
    """

    name: str
    dim_outin: Any = 1
    lower_bound: Any = -1.0
    upper_bound: Any = 1.0
    horizon_period: Any = None

    _periodic_fields = ("dim_outin", "lower_bound", "upper_bound")

    def __post_init__(self):
        validate_name(self.name)
        hp = validate_horizon_period(self.horizon_period)
        dim = as_periodic(self.dim_outin, hp, "dim_outin", validate_positive_int)
        lower = as_periodic(self.lower_bound, hp, "lower_bound", validate_finite)
        upper = as_periodic(self.upper_bound, hp, "upper_bound", validate_finite)
        for k, (lo, up) in enumerate(zip(lower, upper)):
            if lo > up:
                raise ConstructionError(
                    f"lower_bound ({lo}) exceeds upper_bound ({up}) at time step {k} "
                    f"for Delta '{self.name}'"
                )
        object.__setattr__(self, "horizon_period", hp)
        object.__setattr__(self, "dim_outin", dim)
        object.__setattr__(self, "lower_bound", lower)
        object.__setattr__(self, "upper_bound", upper)

    @property
    def dim_out(self) -> PeriodicSequence:
        return self.dim_outin

    @property
    def dim_in(self) -> PeriodicSequence:
        return self.dim_outin

    def combine(self, other: Delta) -> "DeltaSltv":
        if (
            type(other) is not type(self)
            or other.name != self.name
            or other.lower_bound != self.lower_bound
            or other.upper_bound != self.upper_bound
        ):
            raise IncompatibleSpecificationError(
                f"Delta '{self.name}' cannot be combined with {other!r}: bounds or type differ"
            )
        dims = [a + b for a, b in zip(self.dim_outin, other.dim_outin)]
        return DeltaSltv(self.name, dims, self.lower_bound, self.upper_bound, self.horizon_period)

    def to_multiplier(self, discrete: bool = True, **options: Any):
        """Default multiplier: MultiplierSltv (option ``quad_time_varying``)"""
        from iqctools.multiplier.sltv import MultiplierSltv

        return MultiplierSltv(self, discrete=discrete, **options)
