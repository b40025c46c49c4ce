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
Core Types

Fundamental type aliases shared across iqctools.

Naming Conventions
------------------
- Matrices of the periodic state-space quadruple: StateMatrix (a_k),
  InputMatrix (b_k), OutputMatrix (c_k), FeedthroughMatrix (d_k)
- Quadratic-form entries may be numeric or affine cvxpy expressions:
  QuadEntry
- Time-domain encoding: HorizonPeriod, Timestep

Usage
-----
>>> from iqctools.types.core import HorizonPeriod, ChannelSelector
>>> hp: HorizonPeriod = (2, 5)
>>> chan: ChannelSelector = (0, 3)
"""

from typing import Any, Sequence, Tuple, Union

import numpy as np
from numpy.typing import ArrayLike

# ============================================================================
# Time encoding
# ============================================================================

HorizonPeriod = Tuple[int, int]
"""(horizon, period): h non-periodic steps followed by a block of p steps"""

HorizonPeriodLike = Union[HorizonPeriod, Sequence[int], np.ndarray]
"""Anything that normalizes to a HorizonPeriod"""

Timestep = Union[int, float]
"""0 for continuous time, -1 for unspecified discrete sample time, > 0 otherwise"""

# ============================================================================
# Matrices
# ============================================================================

StateMatrix = np.ndarray
"""a_k with shape (n_{k+1}, n_k)"""

InputMatrix = np.ndarray
"""b_k with shape (n_{k+1}, m_k)"""

OutputMatrix = np.ndarray
"""c_k with shape (p_k, n_k)"""

FeedthroughMatrix = np.ndarray
"""d_k with shape (p_k, m_k)"""

MatrixLike = Union[np.ndarray, ArrayLike]

QuadEntry = Any
"""Symmetric quadratic-form block, either np.ndarray or a cvxpy Expression"""

# ============================================================================
# Channels
# ============================================================================

ChannelSelector = Tuple[int, ...]
"""0-based channel indices; the empty tuple selects every channel"""

ALL_CHANNELS: ChannelSelector = ()

__all__ = [
    "HorizonPeriod",
    "HorizonPeriodLike",
    "Timestep",
    "StateMatrix",
    "InputMatrix",
    "OutputMatrix",
    "FeedthroughMatrix",
    "MatrixLike",
    "QuadEntry",
    "ChannelSelector",
    "ALL_CHANNELS",
]
