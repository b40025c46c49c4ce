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
KYP Frequency-Domain Inequalities

Mathematical Background
-----------------------
For a stable system Psi = (A, B, C, D) and a symmetric weight W, the
frequency-domain inequality

    Psi(jw)* W Psi(jw) >= 0    for all w

holds if there exists a symmetric P with (discrete time)

    [C D]' W [C D] - [A'PA - P   A'PB]  >=  0
                     [B'PA       B'PB]

or (continuous time)

    [C D]' W [C D] - [A'P + PA   PB]  >=  0
                     [B'P         0]

A system without states reduces to D' W D >= 0.
"""

from typing import List, Tuple

import cvxpy as cp
import numpy as np


def symmetrize(expr):
    """0.5 (M + M') of a numpy array or cvxpy expression"""
    return 0.5 * (expr + expr.T)


def kyp_constraints(
    a: np.ndarray,
    b: np.ndarray,
    c: np.ndarray,
    d: np.ndarray,
    weight,
    discrete: bool,
    name: str = "kyp",
) -> Tuple[List[cp.Constraint], dict]:
    """
    LMI certifying Psi* W Psi >= 0 on the stability boundary.

    Parameters
    ----------
    a, b, c, d : np.ndarray
        Realization of Psi.
    weight : cvxpy expression or np.ndarray
        Symmetric weight W of size c.shape[0].
    discrete : bool
    name : str
        Name of the storage variable.

    Returns
    -------
    constraints : list of cvxpy constraints
    variables : dict
        ``{name: P}`` when Psi has states, otherwise empty.

    Examples
    --------
    >>> x = cp.Variable((2, 2), symmetric=True)
    >>> constraints, _ = kyp_constraints(a, b, c, d, x, discrete=True)
    """
    n = a.shape[0]
    if isinstance(weight, np.ndarray):
        weight = cp.Constant(weight)
    cd = np.hstack([c, d])
    weighted = cd.T @ weight @ cd
    if n == 0:
        return [symmetrize(weighted) >> 0], {}

    p = cp.Variable((n, n), symmetric=True, name=name)
    m = b.shape[1]
    if discrete:
        ab = np.hstack([a, b])
        storage = ab.T @ p @ ab - cp.bmat([[p, np.zeros((n, m))], [np.zeros((m, n)), np.zeros((m, m))]])
    else:
        storage = cp.bmat([[a.T @ p + p @ a, p @ b], [b.T @ p, np.zeros((m, m))]])
    return [symmetrize(weighted - storage) >> 0], {name: p}
