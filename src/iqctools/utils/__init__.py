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
Utilities
=========

Horizon-period arithmetic, periodic sequences, named collections,
argument validation and the error taxonomy.
"""

# Errors
from .errors import (
    ConsistencyError,
    ConstructionError,
    IncompatibleSpecificationError,
    IqcError,
    PoleConstraintError,
    SolverFailure,
    UnsupportedUncertaintyError,
)

# Horizon-period arithmetic
from .horizon_period import (
    DEFAULT_HORIZON_PERIOD,
    PeriodicSequence,
    common_horizon_period,
    is_refinement,
    periodic_index,
    validate_horizon_period,
)

# Collections
from .named_sequence import NamedSequence

__all__ = [
    "ConsistencyError",
    "ConstructionError",
    "IncompatibleSpecificationError",
    "IqcError",
    "PoleConstraintError",
    "SolverFailure",
    "UnsupportedUncertaintyError",
    "DEFAULT_HORIZON_PERIOD",
    "PeriodicSequence",
    "common_horizon_period",
    "is_refinement",
    "periodic_index",
    "validate_horizon_period",
    "NamedSequence",
]
