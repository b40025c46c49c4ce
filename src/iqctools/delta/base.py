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
Delta Base Class

Abstract interface shared by every uncertainty block.

Mathematical Background
-----------------------
A Delta closes the feedback loop of an uncertain LFT: the LFT produces the
signal z that enters the uncertainty and receives w = Delta(z). dim_in is
the size of z and dim_out the size of w at every time step. Both are
periodic over the Delta's horizon_period.

Capabilities
------------
Every variant provides:
- dim_out / dim_in as PeriodicSequence of positive ints
- match_horizon_period(new_hp)
- structural equality (dataclass equality over all fields)
- to_multiplier(discrete=True, **options), the entry point used by IQC
  analysis
- combine(other), merging two same-named blocks when the variant allows a
  repeated block

Usage
-----
>>> delta = DeltaSlti("p", dim_outin=2, lower_bound=-0.5, upper_bound=0.5)
>>> delta.dim_out[0]
2
>>> mult = delta.to_multiplier(discrete=True, basis_length=3)
"""

from abc import ABC, abstractmethod
from typing import Any

from iqctools.utils.errors import IncompatibleSpecificationError, UnsupportedUncertaintyError
from iqctools.utils.horizon_period import PeriodicSequence
from iqctools.utils.periodic_object import PeriodicObject


class Delta(PeriodicObject, ABC):
    """
    Abstract base class for uncertainty blocks.

    Concrete variants are frozen dataclasses with at least the fields
    ``name`` and ``horizon_period``.
    """

    family = "delta"

    @property
    @abstractmethod
    def dim_out(self) -> PeriodicSequence:
        """Size of w = Delta(z) at every time step"""
        pass

    @property
    @abstractmethod
    def dim_in(self) -> PeriodicSequence:
        """Size of z at every time step"""
        pass

    def combine(self, other: "Delta") -> "Delta":
        """
        Merge a same-named block from another LFT into a repeated block.

        Raises
        ------
        IncompatibleSpecificationError
            Unless the variant supports repetition and both blocks share
            every attribute except their dimensions.
        """
        raise IncompatibleSpecificationError(
            f"Delta '{self.name}' of type {type(self).__name__} cannot be combined "
            f"with another block of the same name"
        )

    def to_multiplier(self, discrete: bool = True, **options: Any):
        """
        Build the default multiplier for this uncertainty.

        Parameters
        ----------
        discrete : bool
            Time domain of the multiplier.
        **options
            Variant-specific multiplier options.

        Raises
        ------
        UnsupportedUncertaintyError
            If the variant has no default multiplier.
        """
        raise UnsupportedUncertaintyError(
            f"No multiplier is defined for Delta '{self.name}' of type {type(self).__name__}"
        )

    def to_lft(self, timestep: int = -1):
        """LFT whose only content is this uncertainty block"""
        from iqctools.lft.conversion import to_lft

        return to_lft(self, timestep=timestep)
