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
Multiplier for Banded White Disturbances

Mathematical Background
-----------------------
A banded white signal d has spectrum sigma^2 I on |w| <= omega and zero
outside. With psi = (Psi (x) I) S d and a free symmetric Q,

    E[psi' Q psi] = sigma^2 / (2 pi) * integral_{-omega}^{omega} Psi(w)* Q Psi(w) dw,

so the constraint

    sum_{a,b} K_ab Q_ab = 0,   K_ab = Re integral_0^omega conj(psi_a(w)) psi_b(w) dw

makes the quadratic form vanish on average for every such signal. Q_ab is
the (a, b) block of Q of size n_c, psi_a the a-th basis element evaluated at
z = exp(jw) (discrete) or s = jw (continuous). The basis is 1 followed by
one first- or second-order factor per pole group.

Usage
-----
>>> m = MultiplierBandedWhite(DisturbanceBandedWhite("d"), 1, poles=np.linspace(-0.9, 0.9, 15))
>>> m.basis_length
16
"""

from typing import Any

import cvxpy as cp
import numpy as np
from scipy import integrate

from iqctools.disturbance.banded_white import DisturbanceBandedWhite
from iqctools.multiplier.base import Multiplier, filter_lft, periodic_dims
from iqctools.multiplier.basis import build_basis
from iqctools.utils.errors import ConstructionError
from iqctools.utils.horizon_period import PeriodicSequence
from iqctools.utils.validation import selection_matrix

DEFAULT_NUM_POLES = 15


def default_poles(discrete: bool, omega: float) -> np.ndarray:
    """Real poles spread over the stable region"""
    if discrete:
        return np.linspace(-0.9, 0.9, DEFAULT_NUM_POLES)
    return -omega * np.geomspace(0.1, 10.0, DEFAULT_NUM_POLES)


def basis_gram(a: np.ndarray, b: np.ndarray, c: np.ndarray, d: np.ndarray, omega: float, discrete: bool) -> np.ndarray:
    """
    K = Re integral_0^omega Psi(w)* Psi(w) dw for a SIMO realization.

    Returns
    -------
    np.ndarray
        Symmetric L x L matrix.
    """
    n = a.shape[0]

    def integrand(w):
        point = np.exp(1j * w) if discrete else 1j * w
        if n:
            psi = c @ np.linalg.solve(point * np.eye(n) - a, b) + d
        else:
            psi = d.astype(complex)
        psi = psi[:, 0]
        return np.real(np.outer(np.conj(psi), psi))

    gram, _ = integrate.quad_vec(integrand, 0.0, omega)
    return 0.5 * (gram + gram.T)


class MultiplierBandedWhite(Multiplier):
    """
    Multiplier for DisturbanceBandedWhite.

    Parameters
    ----------
    disturbance : DisturbanceBandedWhite
    dim_in : int or PeriodicSequence of int
        Number of performance inputs of the LFT.
    discrete : bool
    poles : array_like, optional
        Basis poles, one basis element per pole group. Defaults to 15 real
        poles spread over the stable region.

    Raises
    ------
    ConstructionError
        If omega exceeds pi in discrete time or the number of selected
        channels changes over time.
    PoleConstraintError
        For illegal poles.
    """

    def __init__(self, disturbance: DisturbanceBandedWhite, dim_in, discrete: bool = True, poles: Any = None):
        if not isinstance(disturbance, DisturbanceBandedWhite):
            raise ConstructionError(
                f"MultiplierBandedWhite requires a DisturbanceBandedWhite, got {type(disturbance).__name__}"
            )
        omega = disturbance.omega
        if discrete and omega > np.pi:
            raise ConstructionError(f"omega of '{disturbance.name}' must not exceed pi in discrete time, got {omega}")
        hp = disturbance.horizon_period
        total = hp[0] + hp[1]
        dims = periodic_dims(dim_in, hp, "dim_in")
        selections = [selection_matrix(disturbance.chan_in[k], dims[k]) for k in range(total)]
        widths = {s.shape[0] for s in selections}
        if len(widths) != 1:
            raise ConstructionError(
                f"Disturbance '{disturbance.name}' must select the same number of channels at every step"
            )
        width = widths.pop()
        if width == 0:
            raise ConstructionError(f"Disturbance '{disturbance.name}' selects no channels")

        poles = default_poles(discrete, omega) if poles is None else poles
        basis = build_basis(width, discrete, basis_poles=poles)
        self.omega = omega
        self.basis_length = basis.basis_length
        self.basis_poles = basis.basis_poles
        self.basis_function = basis.basis_function
        self.basis_realization = basis.basis_realization
        self.block_realization = basis.block_realization

        single = basis.basis_realization
        n = single.nstates
        gram = basis_gram(
            np.asarray(single.A, dtype=float).reshape(n, n),
            np.asarray(single.B, dtype=float).reshape(n, 1),
            np.asarray(single.C, dtype=float).reshape(-1, n),
            np.asarray(single.D, dtype=float).reshape(-1, 1),
            omega,
            discrete,
        )
        self.gram = gram

        size = basis.length * width
        q = cp.Variable((size, size), symmetric=True, name=f"{disturbance.name}_q")
        average = 0
        for i in range(basis.length):
            for j in range(basis.length):
                if gram[i, j] != 0.0:
                    block = q[i * width : (i + 1) * width, j * width : (j + 1) * width]
                    average = average + gram[i, j] * block
        constraints = [average == 0]

        a, b, c, d = basis.matrices
        filter = filter_lft(
            [a] * total,
            [b @ s for s in selections],
            [c] * total,
            [d @ s for s in selections],
            hp,
            discrete,
        )
        super().__init__(
            disturbance,
            filter,
            PeriodicSequence.broadcast(q, hp),
            discrete,
            constraints=constraints,
            decision_variables={"q": q},
        )
