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
IQC Multipliers
===============

>>> from iqctools.multiplier import MultiplierSlti, build_basis
>>>
>>> m = MultiplierSlti(DeltaSlti("p"), basis_length=3, basis_poles=[0.5])
>>> basis = build_basis(dim=1, discrete=True, basis_poles=[0.2, -0.2])
"""

from .base import Multiplier
from .basis import DEFAULT_BASIS_LENGTH, DEFAULT_BASIS_POLES, Basis, build_basis, group_poles
from .kyp import kyp_constraints

# Delta multipliers
from .bounded import MultiplierBounded
from .slti import MultiplierSlti
from .sltv import MultiplierSltv

# Disturbance multipliers
from .banded_white import MultiplierBandedWhite
from .constant_window import MultiplierConstantWindow
from .l2 import MultiplierL2

# Performance multipliers
from .l2_induced import MultiplierL2Induced
from .stable import MultiplierStable

__all__ = [
    "Multiplier",
    "DEFAULT_BASIS_LENGTH",
    "DEFAULT_BASIS_POLES",
    "Basis",
    "build_basis",
    "group_poles",
    "kyp_constraints",
    "MultiplierBounded",
    "MultiplierSlti",
    "MultiplierSltv",
    "MultiplierBandedWhite",
    "MultiplierConstantWindow",
    "MultiplierL2",
    "MultiplierL2Induced",
    "MultiplierStable",
]
