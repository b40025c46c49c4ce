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
Uncertain LFTs
==============

>>> from iqctools.lft import Ulft, to_lft
>>>
>>> g = to_lft((0.5, 1.0, 1.0, 0.0))           # x+ = 0.5 x + d, e = x
>>> lft = g.add_deltas([DeltaSlti("p")])        # absorbs d and e
"""

from .sequences import DEFAULT_NAME, SequenceDelta, SequenceDisturbance, SequencePerformance
from .ulft import Ulft, validate_timestep
from .conversion import static_lft, to_lft

__all__ = [
    "DEFAULT_NAME",
    "SequenceDelta",
    "SequenceDisturbance",
    "SequencePerformance",
    "Ulft",
    "static_lft",
    "to_lft",
    "validate_timestep",
]
