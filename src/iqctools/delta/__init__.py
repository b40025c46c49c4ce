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
Uncertainty Blocks
==================

>>> from iqctools.delta import DeltaSlti, DeltaSltv, DeltaDlti, DeltaBounded
>>>
>>> DeltaSlti("p")                        # real parameter in [-1, 1]
>>> DeltaSltv("q", lower_bound=0.0)       # time-varying parameter in [0, 1]
>>> DeltaDlti("unmodeled", 2)             # 2 x 2 LTI block, gain <= 1
>>> DeltaBounded("nl", upper_bound=0.3)   # bounded operator, gain <= 0.3
"""

from .base import Delta
from .bounded import DeltaBounded
from .dlti import DeltaDlti
from .slti import DeltaSlti
from .sltv import DeltaSltv

__all__ = [
    "Delta",
    "DeltaBounded",
    "DeltaDlti",
    "DeltaSlti",
    "DeltaSltv",
]
