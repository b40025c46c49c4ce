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
Analysis Options

Configuration of a single IQC analysis run.

Usage
-----
>>> options = AnalysisOptions(verbose=False, lmi_shift=1e-7, solver="CLARABEL")
>>> result = iqc_analysis(ulft, options)
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from iqctools.utils.errors import ConstructionError
from iqctools.utils.validation import validate_finite


@dataclass(frozen=True)
class AnalysisOptions:
    """
    Options of ``iqc_analysis``.

    Attributes
    ----------
    verbose : bool
        Print progress and the solver log (default True).
    lmi_shift : float
        Margin applied to every strict inequality, F_k <= -lmi_shift I.
        Finite and non-negative (default 1e-6).
    solver : str, optional
        cvxpy solver name; None lets cvxpy choose.
    solver_options : dict
        Keyword arguments passed unchanged to ``cvxpy.Problem.solve``,
        e.g. tolerances or time limits.
    accept_inaccurate : bool
        Consider solutions with status ``optimal_inaccurate`` (default
        False). Such a solution is reported as valid only if every LMI and
        multiplier constraint holds when evaluated at the returned values.
        A warning is emitted either way.

    Raises
    ------
    ConstructionError
        For a negative or non-finite lmi_shift, a non-string solver or
        non-dict solver_options.

    Examples
    --------
    >>> AnalysisOptions().lmi_shift
    1e-06
    >>> AnalysisOptions(lmi_shift=-1.0)
    Traceback (most recent call last):
        ...
    iqctools.utils.errors.ConstructionError: lmi_shift must be >= 0.0, got -1.0
    """

    verbose: bool = True
    lmi_shift: float = 1e-6
    solver: Optional[str] = None
    solver_options: Dict[str, Any] = field(default_factory=dict)
    accept_inaccurate: bool = False

    def __post_init__(self):
        if not isinstance(self.verbose, bool):
            raise ConstructionError(f"verbose must be a bool, got {self.verbose!r}")
        if not isinstance(self.accept_inaccurate, bool):
            raise ConstructionError(f"accept_inaccurate must be a bool, got {self.accept_inaccurate!r}")
        object.__setattr__(self, "lmi_shift", validate_finite(self.lmi_shift, "lmi_shift", lower=0.0))
        if self.solver is not None and not isinstance(self.solver, str):
            raise ConstructionError(f"solver must be a cvxpy solver name, got {self.solver!r}")
        if not isinstance(self.solver_options, dict):
            raise ConstructionError(f"solver_options must be a dict, got {type(self.solver_options).__name__}")
