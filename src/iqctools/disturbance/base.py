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
Disturbance Base Class

A Disturbance characterizes the exogenous signal d entering the performance
inputs of an uncertain LFT. Its channel selector ``chan_in`` picks the
entries of d it constrains (0-based, empty meaning every channel) at every
time step of its horizon_period.
"""

from abc import ABC
from typing import Any

from iqctools.utils.errors import UnsupportedUncertaintyError
from iqctools.utils.periodic_object import PeriodicObject
from iqctools.utils.validation import shift_channel_sequence


class Disturbance(PeriodicObject, ABC):
    """
    Abstract base class for disturbance characterizations.

    Concrete variants are frozen dataclasses with the fields ``name``,
    ``chan_in`` (PeriodicSequence of channel tuples) and ``horizon_period``.
    """

    family = "disturbance"

    def shift_channels(self, offset_in, span_in=None) -> "Disturbance":
        """
        Shift the selected input channels.

        Parameters
        ----------
        offset_in : int or PeriodicSequence of int
            Per-step offset added to every selected channel. All-channel
            selectors are left unchanged unless ``span_in`` is given.
        span_in : int or PeriodicSequence of int, optional
            Channel count an all-channel selector stands for; it then becomes
            the explicit range starting at ``offset_in``.
        """
        return self._evolve(chan_in=shift_channel_sequence(self.chan_in, offset_in, span_in))

    def to_multiplier(self, dim_in, discrete: bool = True, **options: Any):
        """
        Build the default multiplier for this disturbance.

        Parameters
        ----------
        dim_in : int or PeriodicSequence of int
            Number of performance inputs of the LFT at every time step.
        discrete : bool
        **options
            Variant-specific multiplier options.

        Raises
        ------
        UnsupportedUncertaintyError
            If the variant has no default multiplier.
        """
        raise UnsupportedUncertaintyError(
            f"No multiplier is defined for Disturbance '{self.name}' of type {type(self).__name__}"
        )
