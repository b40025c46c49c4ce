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
Basis Functions for Dynamic Multipliers

Synthesis and validation of the stable SIMO basis Psi used by dynamic
multipliers.

Mathematical Background
-----------------------
Poles are organized in groups: a real pole p forms the factor (s - p),
a complex pole with its conjugate forms (s - p)(s - conj p). With G
groups and basis length L >= G + 1 the elements are

    psi_1 = 1
    psi_k = 1 / factor_{k-2}        for k = 2 .. G + 1
    psi_k = psi_{k-1} / factor_0    for k > G + 1

so later elements repeat the first group with increasing multiplicity.
In continuous time such repetition is only allowed for a single group.
The common denominator carries every group at its largest multiplicity,
which gives a realization with a single state chain shared by all
elements. The block realization Psi (x) I_n filters n channels at once.

Legal poles: |p| < 1 in discrete time, Re p < 0 in continuous time.

Usage
-----
>>> from iqctools.multiplier.basis import build_basis
>>>
>>> basis = build_basis(dim=2, discrete=True, basis_length=3, basis_poles=[0.5])
>>> basis.basis_function.noutputs, basis.block_realization.ninputs
(3, 2)
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

import control
import numpy as np
from scipy import signal

from iqctools.utils.errors import ConstructionError, PoleConstraintError
from iqctools.utils.validation import validate_positive_int

DEFAULT_BASIS_LENGTH = 2
DEFAULT_BASIS_POLES: Tuple[float, ...] = (-0.5,)

_CONJUGATE_TOL = 1e-8


# ============================================================================
# Pole handling
# ============================================================================


def _pole_is_legal(pole: complex, discrete: bool) -> bool:
    if discrete:
        return abs(pole) < 1.0
    return pole.real < 0.0


def group_poles(poles: Any, discrete: bool) -> List[Tuple[complex, ...]]:
    """
    Group poles into real singletons and conjugate pairs.

    Parameters
    ----------
    poles : array_like
        Flat sequence of (possibly complex) poles.
    discrete : bool

    Returns
    -------
    list of tuple
        One tuple per group, in order of first appearance.

    Raises
    ------
    PoleConstraintError
        If a pole is not legal in the time domain or a complex pole has no
        conjugate partner.

    Examples
    --------
    >>> group_poles([0.5 + 0.5j, -0.2, 0.5 - 0.5j], discrete=True)
    [((0.5+0.5j), (0.5-0.5j)), ((-0.2+0j),)]
    """
    remaining = [complex(p) for p in np.atleast_1d(np.asarray(poles, dtype=complex)).ravel()]
    for pole in remaining:
        if not np.isfinite(pole) or not _pole_is_legal(pole, discrete):
            domain = "inside the unit circle" if discrete else "in the open left half-plane"
            raise PoleConstraintError(f"Basis pole {pole} must lie {domain}")

    groups: List[Tuple[complex, ...]] = []
    while remaining:
        pole = remaining.pop(0)
        if abs(pole.imag) <= _CONJUGATE_TOL:
            groups.append((complex(pole.real, 0.0),))
            continue
        for index, other in enumerate(remaining):
            if abs(other - pole.conjugate()) <= _CONJUGATE_TOL * max(1.0, abs(pole)):
                remaining.pop(index)
                upper = pole if pole.imag > 0 else pole.conjugate()
                groups.append((upper, upper.conjugate()))
                break
        else:
            raise PoleConstraintError(f"Complex basis pole {pole} has no conjugate partner")
    return groups


def _group_polynomial(group: Tuple[complex, ...]) -> np.ndarray:
    return np.real(np.poly(group))


# ============================================================================
# Basis container
# ============================================================================


@dataclass(frozen=True)
class Basis:
    """
    Resolved basis of a dynamic multiplier.

    Attributes
    ----------
    dim : int
        Number of channels filtered by the block realization.
    discrete : bool
    basis_length : int or None
        None when the basis was given as an explicit system.
    basis_poles : tuple or None
        Flat tuple of poles; None when the basis was given explicitly.
    basis_function : control.TransferFunction or None
        L x 1 transfer function; None when a realization was given.
    basis_realization : control.StateSpace or None
        L x 1 realization; None when a block realization was given.
    block_realization : control.StateSpace
        (L dim) x dim realization of Psi (x) I_dim.
    """

    dim: int
    discrete: bool
    basis_length: Optional[int]
    basis_poles: Optional[Tuple[complex, ...]]
    basis_function: Any
    basis_realization: Any
    block_realization: Any

    @property
    def length(self) -> int:
        """Number of basis elements"""
        return self.block_realization.noutputs // self.dim

    @property
    def matrices(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        sys = self.block_realization
        return (
            np.asarray(sys.A, dtype=float).reshape(sys.nstates, sys.nstates),
            np.asarray(sys.B, dtype=float).reshape(sys.nstates, sys.ninputs),
            np.asarray(sys.C, dtype=float).reshape(sys.noutputs, sys.nstates),
            np.asarray(sys.D, dtype=float).reshape(sys.noutputs, sys.ninputs),
        )


# ============================================================================
# Synthesis
# ============================================================================


def _dt(discrete: bool):
    return True if discrete else 0


def synthesize_polynomials(
    basis_length: int, groups: Sequence[Tuple[complex, ...]]
) -> Tuple[List[np.ndarray], np.ndarray]:
    """
    Numerators over a common denominator of the basis elements.

    Returns
    -------
    numerators : list of np.ndarray
        One coefficient array per element, highest power first, padded to
        the length of the denominator.
    denominator : np.ndarray
    """
    n_groups = len(groups)
    multiplicity = [np.zeros(n_groups, dtype=int)]
    for k in range(2, basis_length + 1):
        if k <= n_groups + 1:
            counts = np.zeros(n_groups, dtype=int)
            counts[k - 2] = 1
        else:
            counts = multiplicity[-1].copy()
            counts[0] += 1
        multiplicity.append(counts)

    peak = np.max(np.array(multiplicity), axis=0) if n_groups else np.zeros(0, dtype=int)
    factors = [_group_polynomial(group) for group in groups]
    denominator = np.array([1.0])
    for factor, power in zip(factors, peak):
        for _ in range(power):
            denominator = np.polymul(denominator, factor)

    numerators = []
    for counts in multiplicity:
        numerator = np.array([1.0])
        for factor, power, used in zip(factors, peak, counts):
            for _ in range(power - used):
                numerator = np.polymul(numerator, factor)
        padded = np.zeros(len(denominator))
        padded[len(denominator) - len(numerator) :] = numerator
        numerators.append(padded)
    return numerators, denominator


def _realize(numerators: Sequence[np.ndarray], denominator: np.ndarray, discrete: bool) -> control.StateSpace:
    """SIMO realization sharing one denominator"""
    if len(denominator) == 1:
        d = np.array([[num[-1] / denominator[0]] for num in numerators])
        return control.ss(np.zeros((0, 0)), np.zeros((0, 1)), np.zeros((len(numerators), 0)), d, _dt(discrete))
    a, b, c, d = signal.tf2ss(np.vstack(numerators), denominator)
    return control.ss(a, b, c, d, _dt(discrete))


def _block(realization: control.StateSpace, dim: int, discrete: bool) -> control.StateSpace:
    a, b, c, d = (np.asarray(m, dtype=float) for m in (realization.A, realization.B, realization.C, realization.D))
    n, m, p = realization.nstates, realization.ninputs, realization.noutputs
    eye = np.eye(dim)
    return control.ss(
        np.kron(a.reshape(n, n), eye),
        np.kron(b.reshape(n, m), eye),
        np.kron(c.reshape(p, n), eye),
        np.kron(d.reshape(p, m), eye),
        _dt(discrete),
    )


# ============================================================================
# Validation of explicit systems
# ============================================================================


def _check_time_domain(system: Any, discrete: bool, label: str) -> None:
    ok = control.isdtime(system, strict=True) if discrete else control.isctime(system, strict=True)
    if not ok:
        domain = "discrete" if discrete else "continuous"
        raise PoleConstraintError(f"{label} must be a {domain}-time system")


def _check_poles(poles: np.ndarray, discrete: bool, label: str) -> None:
    for pole in np.atleast_1d(poles):
        if not _pole_is_legal(complex(pole), discrete):
            raise PoleConstraintError(f"{label} has an unstable pole at {complex(pole)}")


def _state_space_poles(system: control.StateSpace) -> np.ndarray:
    n = system.nstates
    if n == 0:
        return np.zeros(0)
    return np.linalg.eigvals(np.asarray(system.A, dtype=float).reshape(n, n))


def _transfer_function_poles(system: control.TransferFunction) -> np.ndarray:
    roots = [np.roots(np.atleast_1d(den)) for row in system.den for den in row]
    return np.concatenate(roots) if roots else np.zeros(0)


def _common_denominator_realization(system: control.TransferFunction, discrete: bool) -> control.StateSpace:
    """Realize an L x 1 transfer function over the product of its distinct denominators"""
    nums, dens = [], []
    for num_row, den_row in zip(system.num, system.den):
        num = np.atleast_1d(np.asarray(num_row[0], dtype=float))
        den = np.atleast_1d(np.asarray(den_row[0], dtype=float))
        nums.append(num / den[0])
        dens.append(den / den[0])

    unique: List[np.ndarray] = []
    for den in dens:
        if not any(len(den) == len(u) and np.allclose(den, u) for u in unique):
            unique.append(den)
    common = np.array([1.0])
    for den in unique:
        common = np.polymul(common, den)

    numerators = []
    for num, den in zip(nums, dens):
        scale = np.array([1.0])
        for other in unique:
            if not (len(den) == len(other) and np.allclose(den, other)):
                scale = np.polymul(scale, other)
        numerator = np.polymul(num, scale)
        if len(numerator) > len(common):
            raise ConstructionError("basis_function must be proper")
        padded = np.zeros(len(common))
        padded[len(common) - len(numerator) :] = numerator
        numerators.append(padded)
    return _realize(numerators, common, discrete)


# ============================================================================
# Entry point
# ============================================================================


def build_basis(
    dim: int,
    discrete: bool,
    basis_length: Optional[int] = None,
    basis_poles: Any = None,
    basis_function: Optional[control.TransferFunction] = None,
    basis_realization: Optional[control.StateSpace] = None,
    block_realization: Optional[control.StateSpace] = None,
) -> Basis:
    """
    Resolve the basis of a dynamic multiplier.

    The most specific argument wins: ``block_realization`` over
    ``basis_realization`` over ``basis_function`` over
    ``basis_length``/``basis_poles``. Less specific levels are reported as
    None in the result.

    Parameters
    ----------
    dim : int
        Number of channels the block realization filters.
    discrete : bool
    basis_length : int, optional
        Defaults to 2, or to ``len(groups) + 1`` when only poles are given.
    basis_poles : array_like, optional
        Defaults to (-0.5,); an empty sequence gives the constant basis.
    basis_function : control.TransferFunction, optional
        Stable L x 1 transfer function.
    basis_realization : control.StateSpace, optional
        Stable L x 1 state-space system.
    block_realization : control.StateSpace, optional
        Stable (L dim) x dim state-space system.

    Returns
    -------
    Basis

    Raises
    ------
    PoleConstraintError
        For illegal poles, unpaired complex poles, more pole groups than
        ``basis_length - 1``, a continuous-time basis that would repeat one
        of several pole groups, or explicit systems that are unstable or in
        the wrong time domain.
    ConstructionError
        For explicit systems with the wrong number of inputs.
    """
    dim = validate_positive_int(dim, "dim")

    if block_realization is not None:
        if not isinstance(block_realization, control.StateSpace):
            raise ConstructionError("block_realization must be a control.StateSpace")
        _check_time_domain(block_realization, discrete, "block_realization")
        if block_realization.ninputs != dim:
            raise ConstructionError(
                f"block_realization must have {dim} inputs, got {block_realization.ninputs}"
            )
        if block_realization.noutputs % dim:
            raise ConstructionError(
                f"block_realization must have a multiple of {dim} outputs, got {block_realization.noutputs}"
            )
        _check_poles(_state_space_poles(block_realization), discrete, "block_realization")
        return Basis(dim, discrete, None, None, None, None, block_realization)

    if basis_realization is not None:
        if not isinstance(basis_realization, control.StateSpace):
            raise ConstructionError("basis_realization must be a control.StateSpace")
        _check_time_domain(basis_realization, discrete, "basis_realization")
        if basis_realization.ninputs != 1:
            raise ConstructionError(f"basis_realization must have one input, got {basis_realization.ninputs}")
        _check_poles(_state_space_poles(basis_realization), discrete, "basis_realization")
        return Basis(dim, discrete, None, None, None, basis_realization, _block(basis_realization, dim, discrete))

    if basis_function is not None:
        if not isinstance(basis_function, control.TransferFunction):
            raise ConstructionError("basis_function must be a control.TransferFunction")
        _check_time_domain(basis_function, discrete, "basis_function")
        if basis_function.ninputs != 1:
            raise ConstructionError(f"basis_function must have one input, got {basis_function.ninputs}")
        _check_poles(_transfer_function_poles(basis_function), discrete, "basis_function")
        realization = _common_denominator_realization(basis_function, discrete)
        return Basis(dim, discrete, None, None, basis_function, realization, _block(realization, dim, discrete))

    if basis_length is not None:
        basis_length = validate_positive_int(basis_length, "basis_length")
    if basis_poles is None:
        poles: Tuple[complex, ...] = () if basis_length == 1 else DEFAULT_BASIS_POLES
    else:
        poles = tuple(np.atleast_1d(np.asarray(basis_poles, dtype=complex)).ravel().tolist())
    groups = group_poles(poles, discrete)
    if basis_length is None:
        basis_length = len(groups) + 1 if basis_poles is not None else DEFAULT_BASIS_LENGTH
    if len(groups) > basis_length - 1:
        raise PoleConstraintError(
            f"{len(groups)} pole groups need basis_length >= {len(groups) + 1}, got {basis_length}"
        )
    if not groups and basis_length > 1:
        raise PoleConstraintError(f"basis_length {basis_length} requires at least one basis pole")
    if not discrete and len(groups) > 1 and basis_length > len(groups) + 1:
        raise PoleConstraintError(
            f"Continuous-time basis_length {basis_length} needs exactly {len(groups) + 1} for "
            f"{len(groups)} pole groups; give a single group to repeat it"
        )

    numerators, denominator = synthesize_polynomials(basis_length, groups)
    function = control.tf(
        [[list(np.trim_zeros(num, "f")) or [0.0]] for num in numerators],
        [[list(denominator)] for _ in numerators],
        _dt(discrete),
    )
    realization = _realize(numerators, denominator, discrete)
    flat = tuple(p.real if p.imag == 0 else p for group in groups for p in group)
    return Basis(dim, discrete, basis_length, flat, function, realization, _block(realization, dim, discrete))
