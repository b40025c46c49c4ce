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
Analysis Result Types

Result containers returned by IQC analysis.

Mathematical Background
-----------------------
IQC analysis searches for a periodic sequence of symmetric matrices
P_0, ..., P_{h+p-1} (with P_{h+p} identified with P_h) and multiplier
quadratic forms Q such that, at every time step k,

    [A B]' P_{k+1} [A B] - diag(P_k, 0) + sum_i [C_i D_i]' Q_i,k [C_i D_i] < 0

where (A, B) is the plant augmented with all multiplier filters and
psi_i = C_i xi + D_i u are the filtered signals. A feasible point certifies
that the induced gain from the performance inputs to the performance outputs
is at most gamma, the square root of the performance multiplier's weight.

Usage
-----
>>> result: IqcAnalysisResult = iqc_analysis(ulft)
>>> if result['valid']:
...     print(f"Worst-case gain <= {result['performance']:.4f}")
...     q = result['multipliers']['delta']['d1']['quad']
"""

from typing import Any, Dict, List

import numpy as np
from typing_extensions import TypedDict

from iqctools.types.core import HorizonPeriod


class RealizedMultiplier(TypedDict):
    """
    Multiplier evaluated at the solver's optimum.

    Fields
    ------
    name : str
        Name of the Delta, Disturbance or Performance the multiplier
        belongs to
    family : str
        'delta', 'disturbance' or 'performance'
    horizon_period : HorizonPeriod
        Horizon_period at which the multiplier entered the analysis
    filter : Ulft
        Filter mapping the multiplier's input signal to psi
    quad : List[np.ndarray]
        Numeric quadratic form at every time step of one horizon_period
    decision_variables : Dict[str, Any]
        Optimal values of the multiplier's decision variables

    Examples
    --------
    >>> realized = result['multipliers']['delta']['d1']
    >>> realized['quad'][0].shape
    (4, 4)
    """

    name: str
    family: str
    horizon_period: HorizonPeriod
    filter: Any
    quad: List[np.ndarray]
    decision_variables: Dict[str, Any]


class IqcAnalysisResult(TypedDict):
    """
    IQC analysis result dictionary.

    Fields
    ------
    valid : bool
        True if the solver certified the LMI family
    performance : float
        Upper bound on the performance metric. inf when not valid, 0.0 for
        a stability-only analysis
    certificate : List[np.ndarray]
        Lyapunov matrices P_0, ..., P_{h+p-1}; empty when not valid
    multipliers : Dict[str, Dict[str, RealizedMultiplier]]
        Realized multipliers keyed by family then by name; empty when not
        valid
    solver_status : str
        Status string reported by cvxpy, or 'solver_error'
    horizon_period : HorizonPeriod
        Common horizon_period used for the LMI family

    Examples
    --------
    >>> result = iqc_analysis(ulft, AnalysisOptions(verbose=False))
    >>> result['valid']
    True
    >>> len(result['certificate']) == sum(result['horizon_period'])
    True
    """

    valid: bool
    performance: float
    certificate: List[np.ndarray]
    multipliers: Dict[str, Dict[str, RealizedMultiplier]]
    solver_status: str
    horizon_period: HorizonPeriod
