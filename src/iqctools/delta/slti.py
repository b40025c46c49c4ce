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
Static Linear Time-Invariant Uncertainty

DeltaSlti models a real parameter that is unknown but constant for all
time, repeated on dim_outin channels:

    w_k = delta * z_k,    lower_bound <= delta <= upper_bound

Usage
-----
>>> d = DeltaSlti("mass")
>>> d.upper_bound, d.horizon_period
(1.0, (0, 1))
>>> d2 = DeltaSlti("stiffness", 2, lower_bound=0.0, upper_bound=3.0)
"""

from dataclasses import dataclass
from typing import Any

from iqctools.delta.base import Delta
from iqctools.utils.errors import ConstructionError, IncompatibleSpecificationError
from iqctools.utils.horizon_period import PeriodicSequence, validate_horizon_period
from iqctools.utils.validation import (
    constant_value,
    validate_finite,
    validate_name,
    validate_positive_int,
)


@dataclass(frozen=True)
class DeltaSlti(Delta):
    """
    Static, linear, time-invariant real parametric uncertainty.

    Parameters
    ----------
    name : str
        Unique identifier of the uncertainty
    dim_outin : int
        Number of repetitions of the parameter (dim_in == dim_out)
    lower_bound : float
        Smallest value of the parameter
    upper_bound : float
        Largest value of the parameter
    horizon_period : [h, p], optional
        Defaults to [0, 1]

    Raises
    ------
    ConstructionError
        For an empty name, non-positive dimension, non-finite bounds,
        lower_bound > upper_bound, or time-varying attributes.

    Examples
    --------
    >>> DeltaSlti("p", 3).dim_in[0]
    3
    """

    name: str
    dim_outin: Any = 1
    lower_bound: Any = -1.0
    upper_bound: Any = 1.0
    horizon_period: Any = None

    _periodic_fields = ("dim_outin",)

    def __post_init__(self):
        validate_name(self.name)
        hp = validate_horizon_period(self.horizon_period)
        dim = validate_positive_int(constant_value(self.dim_outin, "dim_outin"), "dim_outin")
        lower = validate_finite(constant_value(self.lower_bound, "lower_bound"), "lower_bound")
        upper = validate_finite(constant_value(self.upper_bound, "upper_bound"), "upper_bound")
        if lower > upper:
            raise ConstructionError(
                f"lower_bound ({lower}) must not exceed upper_bound ({upper}) for Delta '{self.name}'"
            )
        object.__setattr__(self, "horizon_period", hp)
        object.__setattr__(self, "dim_outin", PeriodicSequence.broadcast(dim, hp))
        object.__setattr__(self, "lower_bound", lower)
        object.__setattr__(self, "upper_bound", upper)

    @property
    def dim_out(self) -> PeriodicSequence:
        return self.dim_outin

    @property
    def dim_in(self) -> PeriodicSequence:
        return self.dim_outin

    def combine(self, other: Delta) -> "DeltaSlti":
        """Repeat the parameter on the channels of ``other``"""
        if (
            type(other) is not type(self)
            or other.name != self.name
            or other.lower_bound != self.lower_bound
            or other.upper_bound != self.upper_bound
            or other.horizon_period != self.horizon_period
        ):
            raise IncompatibleSpecificationError(
                f"Delta '{self.name}' cannot be combined with {other!r}: bounds or type differ"
            )
        return DeltaSlti(
            self.name,
            self.dim_outin[0] + other.dim_outin[0],
            self.lower_bound,
            self.upper_bound,
            self.horizon_period,
        )

    def to_multiplier(self, discrete: bool = True, **options: Any):
        """
        Default multiplier: MultiplierSlti.

        Options are forwarded to MultiplierSlti (basis_length, basis_poles,
        basis_function, basis_realization, block_realization,
        constraint_q11_kyp, constraint_q12_kyp).
        """
        from iqctools.multiplier.slti import MultiplierSlti

        return MultiplierSlti(self, discrete=discrete, **options)
