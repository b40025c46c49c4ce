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
Solver Boundary

The only place iqctools talks to a numerical solver. The assembled LMI
family is handed to cvxpy, which dispatches to a conic solver (Clarabel or
SCS by default, or the one named in the options).

Usage
-----
>>> status = solve_lmi_problem(gamma_squared, constraints, AnalysisOptions(verbose=False))
>>> status in ACCEPTED_STATUSES
True
"""

import warnings
from typing import Any, Iterable

import cvxpy as cp

from iqctools.analysis.options import AnalysisOptions
from iqctools.utils.errors import SolverFailure

ACCEPTED_STATUSES = (cp.OPTIMAL, cp.OPTIMAL_INACCURATE)


def solve_lmi_problem(objective: Any, constraints: Iterable[Any], options: AnalysisOptions) -> str:
    """
    Minimize ``objective`` subject to ``constraints``.

    Parameters
    ----------
    objective : cvxpy expression or None
        Scalar to minimize; None solves the feasibility problem.
    constraints : iterable of cvxpy constraints
    options : AnalysisOptions
        Supplies the solver name, the pass-through solver options and the
        verbosity.

    Returns
    -------
    str
        cvxpy status string, e.g. ``'optimal'`` or ``'infeasible'``.

    Raises
    ------
    SolverFailure
        If the solver reports an error instead of a status.
    """
    target = cp.Minimize(objective) if objective is not None else cp.Minimize(0)
    problem = cp.Problem(target, list(constraints))
    try:
        problem.solve(solver=options.solver, verbose=options.verbose, **options.solver_options)
    except cp.SolverError as err:
        raise SolverFailure(f"Solver {options.solver or 'default'} failed: {err}") from err

    status = problem.status
    if status == cp.OPTIMAL_INACCURATE:
        warnings.warn(
            "Solver returned an inaccurate solution"
            + ("; it is checked against the constraints" if options.accept_inaccurate else "; it is rejected"),
            RuntimeWarning,
        )
    return status
