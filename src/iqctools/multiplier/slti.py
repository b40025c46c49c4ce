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
Multiplier for Static LTI Uncertainty

Mathematical Background
-----------------------
For w = delta z with l <= delta <= u and c = (l + u) / 2 the dynamic
multiplier

             [Psi  0 ]* [ -l u X    c X + Y ] [Psi  0 ]
    Pi   =   [ 0  Psi]  [ c X + Y'    -X    ] [ 0  Psi]

satisfies Pi >= 0 on the graph of delta whenever Psi* X Psi >= 0 and
Psi* (Y + Y') Psi = 0, because

    (delta - l)(u - delta) Psi* X Psi + delta Psi* (Y + Y') Psi >= 0.

Psi = psi (x) I_n is the block realization of a stable SIMO basis psi (see
``iqctools.multiplier.basis``). Psi* X Psi >= 0 is imposed through the KYP
lemma (``constraint_q11_kyp``) or by the stronger X >= 0. Y is either skew
symmetric or a free matrix with the frequency-domain equality imposed by
two KYP inequalities (``constraint_q12_kyp``).

References
----------
Megretski and Rantzer, "System Analysis via Integral Quadratic
Constraints", IEEE TAC, 1997, Section VI.B.
"""

from typing import Any

import cvxpy as cp
import numpy as np

from iqctools.delta.slti import DeltaSlti
from iqctools.multiplier.base import Multiplier, filter_lft
from iqctools.multiplier.basis import build_basis
from iqctools.multiplier.kyp import kyp_constraints
from iqctools.utils.errors import ConstructionError
from iqctools.utils.horizon_period import PeriodicSequence
from iqctools.utils.matrices import blkdiag


class MultiplierSlti(Multiplier):
    """
    Dynamic multiplier for DeltaSlti.

    Parameters
    ----------
    delta : DeltaSlti
    discrete : bool
        Time domain of the basis, default True.
    constraint_q11_kyp : bool
        Impose Psi* X Psi >= 0 with the KYP lemma (default) instead of X >= 0.
    constraint_q12_kyp : bool
        Let Y be free with Psi* (Y + Y') Psi = 0 imposed by the KYP lemma,
        instead of the default skew-symmetric Y.
    basis_length, basis_poles, basis_function, basis_realization,
    block_realization
        Basis definition, see ``build_basis``.

    Raises
    ------
    ConstructionError
        If the delta is not a DeltaSlti or the basis is malformed.
    PoleConstraintError
        For illegal basis poles or explicit bases.

    Notes
    -----
    The bounds of the delta need not be symmetric. For l != -u the quad
    keeps the form [-l u X, c X + Y; c X + Y', -X] with c = (l + u) / 2,
    which is valid for any interval l <= u.

    Examples
    --------
    >>> m = MultiplierSlti(DeltaSlti("p", 2))
    >>> m.basis_length, m.basis_poles
    (2, (-0.5,))
    >>> m.filter.dim_out[0]
    8
    """

    def __init__(
        self,
        delta: DeltaSlti,
        discrete: bool = True,
        constraint_q11_kyp: bool = True,
        constraint_q12_kyp: bool = False,
        basis_length: Any = None,
        basis_poles: Any = None,
        basis_function: Any = None,
        basis_realization: Any = None,
        block_realization: Any = None,
    ):
        if not isinstance(delta, DeltaSlti):
            raise ConstructionError(f"MultiplierSlti requires a DeltaSlti, got {type(delta).__name__}")
        dim = delta.dim_outin[0]
        basis = build_basis(
            dim,
            discrete,
            basis_length=basis_length,
            basis_poles=basis_poles,
            basis_function=basis_function,
            basis_realization=basis_realization,
            block_realization=block_realization,
        )
        self.dim_outin = dim
        self.lower_bound = delta.lower_bound
        self.upper_bound = delta.upper_bound
        self.constraint_q11_kyp = bool(constraint_q11_kyp)
        self.constraint_q12_kyp = bool(constraint_q12_kyp)
        self.basis_length = basis.basis_length
        self.basis_poles = basis.basis_poles
        self.basis_function = basis.basis_function
        self.basis_realization = basis.basis_realization
        self.block_realization = basis.block_realization

        a, b, c, d = basis.matrices
        size = c.shape[0]
        filter = filter_lft(
            blkdiag(a, a), blkdiag(b, b), blkdiag(c, c), blkdiag(d, d), delta.horizon_period, discrete
        )

        x = cp.Variable((size, size), symmetric=True, name=f"{delta.name}_x")
        y = cp.Variable((size, size), name=f"{delta.name}_y")
        variables = {"x": x, "y": y}
        constraints = []
        if self.constraint_q11_kyp:
            kyp, storage = kyp_constraints(a, b, c, d, x, discrete, name=f"{delta.name}_p11")
            constraints.extend(kyp)
            variables.update(storage)
        else:
            constraints.append(x >> 0)
        if self.constraint_q12_kyp:
            y_sym = y + y.T
            upper, storage_upper = kyp_constraints(a, b, c, d, y_sym, discrete, name=f"{delta.name}_p12_upper")
            lower, storage_lower = kyp_constraints(a, b, c, d, -y_sym, discrete, name=f"{delta.name}_p12_lower")
            constraints.extend(upper + lower)
            variables.update(storage_upper)
            variables.update(storage_lower)
        else:
            constraints.append(y + y.T == 0)

        low, up = self.lower_bound, self.upper_bound
        center = 0.5 * (low + up)
        quad = cp.bmat([[-low * up * x, center * x + y], [center * x + y.T, -x]])

        super().__init__(
            delta,
            filter,
            PeriodicSequence.broadcast(quad, delta.horizon_period),
            discrete,
            constraints=constraints,
            decision_variables=variables,
        )
