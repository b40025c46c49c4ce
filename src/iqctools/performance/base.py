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
Performance Base Class

A Performance names the metric IQC analysis bounds. It selects the
performance inputs d (``chan_in``) and performance outputs e
(``chan_out``) it measures; empty selectors mean every channel.
"""

from abc import ABC
from typing import Any, Tuple

from iqctools.utils.errors import UnsupportedUncertaintyError
from iqctools.utils.periodic_object import PeriodicObject
from iqctools.utils.validation import shift_channel_sequence


class Performance(PeriodicObject, ABC):
    """
    Abstract base class for performance objectives.

    Concrete variants are frozen dataclasses with the fields ``name``,
    ``chan_in``, ``chan_out`` (PeriodicSequence of channel tuples) and
    ``horizon_period``.
    """

    family = "performance"

    def shift_channels(self, offset_in=0, offset_out=0, span_in=None, span_out=None) -> "Performance":
        """
        Shift the selected input and output channels by per-step offsets.

        With ``span_in`` (``span_out``) an all-channel selector becomes the
        explicit range of that many channels starting at the offset.
        """
        return self._evolve(
            chan_in=shift_channel_sequence(self.chan_in, offset_in, span_in),
            chan_out=shift_channel_sequence(self.chan_out, offset_out, span_out),
        )

    def kept_inputs(self, k: int, dim_in: int) -> Tuple[int, ...]:
        """
        Performance inputs that stay connected during analysis at step k.

        Inputs that are not measured by the performance are set to zero.
        """
        selector = self.chan_in[k]
        return tuple(selector) if selector else tuple(range(dim_in))

    def to_multiplier(self, dim_in, dim_out, discrete: bool = True, **options: Any):
        """
        Build the multiplier encoding this performance.

        Parameters
        ----------
        dim_in : int or PeriodicSequence of int
            Number of performance inputs of the LFT.
        dim_out : int or PeriodicSequence of int
            Number of performance outputs of the LFT.
        discrete : bool

        Raises
        ------
        UnsupportedUncertaintyError
            If the variant has no multiplier.
        """
        raise UnsupportedUncertaintyError(
            f"No multiplier is defined for Performance '{self.name}' of type {type(self).__name__}"
        )
