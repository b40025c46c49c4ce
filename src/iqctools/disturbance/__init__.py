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
Disturbance Characterizations
=============================

>>> from iqctools.disturbance import DisturbanceL2, DisturbanceConstantWindow
>>>
>>> DisturbanceL2("d")                                   # finite energy
>>> DisturbanceConstantWindow("step", [0], [2, 3], [1, 3])  # held at k = 2, 3
>>> DisturbanceBandedWhite("noise")                      # white noise
"""

from .banded_white import DisturbanceBandedWhite
from .base import Disturbance
from .constant_window import DisturbanceConstantWindow
from .l2 import DisturbanceL2

__all__ = [
    "Disturbance",
    "DisturbanceBandedWhite",
    "DisturbanceConstantWindow",
    "DisturbanceL2",
]
