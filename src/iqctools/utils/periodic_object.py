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
Periodic Value Objects

Shared behaviour of frozen dataclasses whose attributes are periodic over a
horizon_period (Deltas, Disturbances and Performances).
"""

import copy
from typing import Any, Tuple

from iqctools.types.core import HorizonPeriodLike
from iqctools.utils.horizon_period import validate_horizon_period


class PeriodicObject:
    """
    Mixin for frozen dataclasses carrying PeriodicSequence attributes.

    Subclasses list the names of their PeriodicSequence fields in
    ``_periodic_fields``; ``match_horizon_period`` resamples exactly those.
    """

    _periodic_fields: Tuple[str, ...] = ()

    def _evolve(self, **changes: Any):
        """Copy with already-validated attribute values replaced"""
        new = copy.copy(self)
        for key, value in changes.items():
            object.__setattr__(new, key, value)
        return new

    def match_horizon_period(self, horizon_period: HorizonPeriodLike):
        """
        Rewrite every periodic attribute over ``horizon_period``.

        Parameters
        ----------
        horizon_period : [h, p]
            A refinement of the current horizon_period, or a coarser one
            that is consistent with the current attribute values.

        Returns
        -------
        Same type as self
            New object representing the same infinite sequences.

        Raises
        ------
        ConsistencyError
            If the attributes cannot be written over ``horizon_period``.
        """
        hp = validate_horizon_period(horizon_period)
        if hp == self.horizon_period:
            return self
        changes = {name: getattr(self, name).resample(hp) for name in self._periodic_fields}
        return self._evolve(horizon_period=hp, **changes)
