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
LFT Collections

Named collections of Deltas, Disturbances and Performances held by a Ulft.
The order of a SequenceDelta is the order of the uncertainty channels:
the first delta occupies the first dim_out[k] uncertainty inputs and the
first dim_in[k] uncertainty outputs at step k, and so on.
"""

from typing import List, Tuple

from iqctools.delta.base import Delta
from iqctools.disturbance.base import Disturbance
from iqctools.disturbance.l2 import DisturbanceL2
from iqctools.performance.base import Performance
from iqctools.performance.l2_induced import PerformanceL2Induced
from iqctools.types.core import HorizonPeriodLike
from iqctools.utils.named_sequence import NamedSequence

DEFAULT_NAME = "default_l2"


class SequenceDelta(NamedSequence):
    """Ordered uncertainty blocks of an LFT"""

    item_kind = "Delta"

    def __init__(self, items=(), is_default: bool = False):
        items = list(items)
        for item in items:
            if not isinstance(item, Delta):
                raise TypeError(f"SequenceDelta accepts Delta objects, got {type(item).__name__}")
        super().__init__(items, is_default=False)

    def dim_out(self, k: int) -> int:
        """Total uncertainty inputs (w) of the LFT at step k"""
        return sum(delta.dim_out[k] for delta in self)

    def dim_in(self, k: int) -> int:
        """Total uncertainty outputs (z) of the LFT at step k"""
        return sum(delta.dim_in[k] for delta in self)

    def offsets(self, k: int) -> List[Tuple[int, int]]:
        """(w offset, z offset) of every delta at step k"""
        offsets = []
        w_offset = z_offset = 0
        for delta in self:
            offsets.append((w_offset, z_offset))
            w_offset += delta.dim_out[k]
            z_offset += delta.dim_in[k]
        return offsets


class SequenceDisturbance(NamedSequence):
    """Disturbance characterizations of an LFT"""

    item_kind = "Disturbance"

    def __init__(self, items=(), is_default: bool = False):
        items = list(items)
        for item in items:
            if not isinstance(item, Disturbance):
                raise TypeError(f"SequenceDisturbance accepts Disturbance objects, got {type(item).__name__}")
        super().__init__(items, is_default=is_default)

    @classmethod
    def default(cls, horizon_period: HorizonPeriodLike) -> "SequenceDisturbance":
        return cls([DisturbanceL2(DEFAULT_NAME, horizon_period=horizon_period)], is_default=True)


class SequencePerformance(NamedSequence):
    """Performance objectives of an LFT"""

    item_kind = "Performance"

    def __init__(self, items=(), is_default: bool = False):
        items = list(items)
        for item in items:
            if not isinstance(item, Performance):
                raise TypeError(f"SequencePerformance accepts Performance objects, got {type(item).__name__}")
        super().__init__(items, is_default=is_default)

    @classmethod
    def default(cls, horizon_period: HorizonPeriodLike) -> "SequencePerformance":
        return cls([PerformanceL2Induced(DEFAULT_NAME, horizon_period=horizon_period)], is_default=True)
