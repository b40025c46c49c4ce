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
Error Taxonomy

Exceptions raised by iqctools. Every error derives from IqcError so callers
can catch the whole family at once, and from the builtin exception that best
describes it (ValueError, TypeError, RuntimeError) so generic handlers keep
working.

Hierarchy
---------
IqcError
├── ConstructionError (ValueError)
│   └── PoleConstraintError
├── ConsistencyError (ValueError)
├── IncompatibleSpecificationError (ValueError)
├── UnsupportedUncertaintyError (TypeError)
└── SolverFailure (RuntimeError)

Construction and reconciliation errors are raised at the call that caused
them. SolverFailure is raised by the solver boundary and converted into an
invalid analysis result by the orchestrator.

Usage
-----
>>> from iqctools.utils.errors import ConstructionError
>>> try:
...     DeltaSlti("")
... except ConstructionError as err:
...     print(err)
"""


class IqcError(Exception):
    """Base class for all iqctools errors"""

    pass


class ConstructionError(IqcError, ValueError):
    """Raised when an object is created with an invalid name, dimension, bound or option"""

    pass


class ConsistencyError(IqcError, ValueError):
    """Raised when a horizon_period disagrees with attribute lengths or cannot be resampled"""

    pass


class IncompatibleSpecificationError(IqcError, ValueError):
    """Raised for name collisions, out-of-range channels and mismatched overrides"""

    pass


class PoleConstraintError(ConstructionError):
    """Raised for illegal basis poles or basis realizations"""

    pass


class UnsupportedUncertaintyError(IqcError, TypeError):
    """Raised when no multiplier can be constructed for an object"""

    pass


class SolverFailure(IqcError, RuntimeError):
    """Raised when the external solver reports an error"""

    pass
