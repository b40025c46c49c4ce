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
Performance Objectives
======================

>>> from iqctools.performance import PerformanceL2Induced, PerformanceStable
>>>
>>> PerformanceL2Induced("gain")                 # minimize the L2 gain
>>> PerformanceL2Induced("check", gain=3.0)      # certify gain <= 3
>>> PerformanceStable("stability")               # robust stability only
"""

from .base import Performance
from .l2_induced import PerformanceL2Induced
from .stable import PerformanceStable

__all__ = [
    "Performance",
    "PerformanceL2Induced",
    "PerformanceStable",
]
