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
IQC Analysis

Worst-case performance analysis of an uncertain LFT.

Mathematical Background
-----------------------
Every Delta, Disturbance and Performance of the LFT is described by a
multiplier Pi = Psi* Q Psi. The plant

    x_{k+1} = A_k x_k + B_k [w; d],    [z; e] = C_k x_k + D_k [w; d]

is augmented with the states of every filter Psi_i, whose input is the
signal of its source ([z; w] for a delta, d for a disturbance and [d; e]
for the performance). With xi the augmented state and u = [w; d], the
analysis looks for symmetric P_0, ..., P_{h+p-1} (P_{h+p} := P_h) and
multiplier variables such that at every step k

    [A B]' P_{k+1} [A B] - diag(P_k, 0)
        + sum_i [C_i D_i]' Q_i,k [C_i D_i]  <=  -lmi_shift I

(continuous time: [A'P + PA, PB; B'P, 0] + sum_i ... <= -lmi_shift I).
Summing the dissipation inequality over time gives
sum |e|^2 <= gamma^2 sum |d|^2 for every admissible uncertainty and
disturbance, provided the LFT is stable when every Delta is zero.

Performance inputs the performance does not measure are set to zero.

Workflow
--------
1. Validate the options and the multiplier overrides.
2. Build a multiplier for every object without an override.
3. Rewrite the LFT and all multipliers over a common horizon_period.
4. Assemble one LMI per time step and solve.
5. Report the certificate and the realized multipliers.

Usage
-----
>>> from iqctools import DeltaSlti, AnalysisOptions, iqc_analysis, to_lft
>>>
>>> g = to_lft(np.array([[0.5, 1.0], [1.0, 1.0]])).add_deltas([DeltaSlti("p")])
>>> result = iqc_analysis(g, AnalysisOptions(verbose=False))
>>> result['valid'], round(result['performance'], 2)
(True, 3.0)
"""

import warnings
from collections.abc import Mapping
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import cvxpy as cp
import numpy as np

from iqctools.analysis.options import AnalysisOptions
from iqctools.analysis.solver import solve_lmi_problem
from iqctools.lft.ulft import Ulft
from iqctools.multiplier.base import Multiplier, evaluate
from iqctools.multiplier.kyp import symmetrize
from iqctools.types.analysis import IqcAnalysisResult
from iqctools.types.core import HorizonPeriod
from iqctools.utils.errors import ConstructionError, IncompatibleSpecificationError, SolverFailure
from iqctools.utils.horizon_period import PeriodicSequence, common_horizon_period
from iqctools.utils.matrices import blkdiag

FAMILIES = ("delta", "disturbance", "performance")

# Largest violation of a multiplier constraint accepted in an inaccurate solution
CONSTRAINT_TOLERANCE = 1e-7

MultipliersLike = Union[Mapping, Iterable[Multiplier], Multiplier, None]


# ============================================================================
# Multiplier selection
# ============================================================================


def _collect_overrides(multipliers: MultipliersLike) -> Dict[Tuple[str, str], Multiplier]:
    """Index user-supplied multipliers by (family, name)"""
    if multipliers is None:
        return {}
    if isinstance(multipliers, Multiplier):
        multipliers = [multipliers]
    elif isinstance(multipliers, Mapping):
        for key, multiplier in multipliers.items():
            if isinstance(multiplier, Multiplier) and key != multiplier.name:
                raise IncompatibleSpecificationError(
                    f"Multiplier registered under '{key}' belongs to '{multiplier.name}'"
                )
        multipliers = list(multipliers.values())

    overrides: Dict[Tuple[str, str], Multiplier] = {}
    for multiplier in multipliers:
        if not isinstance(multiplier, Multiplier):
            raise ConstructionError(f"multipliers must hold Multiplier objects, got {type(multiplier).__name__}")
        key = (multiplier.family, multiplier.name)
        if key in overrides:
            raise IncompatibleSpecificationError(
                f"More than one multiplier given for {multiplier.family} '{multiplier.name}'"
            )
        overrides[key] = multiplier
    return overrides


def _sources(ulft: Ulft) -> List[Any]:
    return list(ulft.delta) + list(ulft.disturbance) + list(ulft.performance)


def _signal_dims(ulft: Ulft, source: Any) -> PeriodicSequence:
    """Width of the signal a multiplier of ``source`` filters, per step"""
    hp = ulft.horizon_period
    total = hp[0] + hp[1]
    if source.family == "delta":
        return PeriodicSequence([source.dim_in[k] + source.dim_out[k] for k in range(total)], hp)
    if source.family == "disturbance":
        return ulft.performance_dim_in
    return PeriodicSequence(
        [ulft.performance_dim_in[k] + ulft.performance_dim_out[k] for k in range(total)], hp
    )


def _default_multiplier(ulft: Ulft, source: Any) -> Multiplier:
    discrete = ulft.is_discrete
    if source.family == "delta":
        return source.to_multiplier(discrete=discrete)
    if source.family == "disturbance":
        return source.to_multiplier(ulft.performance_dim_in, discrete=discrete)
    return source.to_multiplier(ulft.performance_dim_in, ulft.performance_dim_out, discrete=discrete)


def _check_override(ulft: Ulft, source: Any, multiplier: Multiplier) -> None:
    label = f"{source.family} '{source.name}'"
    if multiplier.horizon_period != source.horizon_period:
        raise IncompatibleSpecificationError(
            f"Multiplier for {label} has horizon_period {list(multiplier.horizon_period)}, "
            f"expected {list(source.horizon_period)}"
        )
    expected = _signal_dims(ulft, source)
    if multiplier.dim_in != expected:
        raise IncompatibleSpecificationError(
            f"Multiplier for {label} filters {multiplier.dim_in.to_list()} channels, "
            f"expected {expected.to_list()}"
        )


def build_multipliers(ulft: Ulft, multipliers: MultipliersLike = None) -> List[Multiplier]:
    """
    One multiplier per Delta, Disturbance and Performance of ``ulft``.

    User-supplied multipliers replace the default of the object with the
    same family and name.

    Returns
    -------
    list of Multiplier
        Deltas first (in channel order), then disturbances, then the
        performance.

    Raises
    ------
    IncompatibleSpecificationError
        If an override has no namesake, a different horizon_period or
        dimensions, or a multiplier's time domain differs from the LFT's.
    UnsupportedUncertaintyError
        If an object without an override has no default multiplier.
    """
    overrides = _collect_overrides(multipliers)
    sources = _sources(ulft)
    known = {(source.family, source.name) for source in sources}
    for family, name in overrides:
        if (family, name) not in known:
            raise IncompatibleSpecificationError(f"Multiplier given for unknown {family} '{name}'")

    built = []
    for source in sources:
        multiplier = overrides.get((source.family, source.name))
        if multiplier is None:
            multiplier = _default_multiplier(ulft, source)
        else:
            _check_override(ulft, source, multiplier)
        if multiplier.discrete != ulft.is_discrete:
            domain = "discrete" if ulft.is_discrete else "continuous"
            raise IncompatibleSpecificationError(
                f"Multiplier for {source.family} '{source.name}' must be {domain}-time like the LFT"
            )
        built.append(multiplier)
    return built


# ============================================================================
# Assembly
# ============================================================================


def nominally_stable(ulft: Ulft) -> bool:
    """
    Stability of the LFT with every Delta set to zero.

    Discrete time checks the spectral radius of the monodromy matrix over
    one period, continuous time the eigenvalues of a.
    """
    if not ulft.is_discrete:
        a = ulft.a[0]
        return a.shape[0] == 0 or bool(np.all(np.linalg.eigvals(a).real < 0))
    horizon, period = ulft.horizon_period
    n = ulft.a[horizon].shape[1]
    if n == 0:
        return True
    monodromy = np.eye(n)
    for k in range(horizon, horizon + period):
        monodromy = ulft.a[k] @ monodromy
    return bool(np.max(np.abs(np.linalg.eigvals(monodromy))) < 1.0)


def _plant_step(ulft: Ulft, k: int):
    """Plant matrices at step k with the unmeasured performance inputs removed"""
    nw = ulft.delta.dim_out(k)
    nd = ulft.performance_dim_in[k]
    kept = ulft.performance[0].kept_inputs(k, nd)
    keep_d = np.eye(nd)[:, list(kept)]
    transform = blkdiag(np.eye(nw), keep_d)
    return ulft.a[k], ulft.b[k] @ transform, ulft.c[k], ulft.d[k] @ transform, keep_d


def _signal_map(ulft: Ulft, source: Any, k: int, c, d, keep_d) -> Tuple[np.ndarray, np.ndarray]:
    """(M_x, M_u) with signal = M_x x + M_u [w; kept d]"""
    n, m = c.shape[1], d.shape[1]
    nw, nz = ulft.delta.dim_out(k), ulft.delta.dim_in(k)
    nd = keep_d.shape[0]
    d_input = np.hstack([np.zeros((nd, nw)), keep_d])
    if source.family == "delta":
        index = ulft.delta.names.index(source.name)
        w_offset, z_offset = ulft.delta.offsets(k)[index]
        rows = slice(z_offset, z_offset + source.dim_in[k])
        n_w = source.dim_out[k]
        mx = np.vstack([c[rows], np.zeros((n_w, n))])
        mu = np.vstack([d[rows], np.eye(m)[w_offset : w_offset + n_w, :]])
    elif source.family == "disturbance":
        mx = np.zeros((nd, n))
        mu = d_input
    else:
        rows = slice(nz, c.shape[0])
        mx = np.vstack([np.zeros((nd, n)), c[rows]])
        mu = np.vstack([d_input, d[rows]])
    return mx, mu


def augmented_step(ulft: Ulft, multipliers: List[Multiplier], k: int):
    """
    Plant augmented with every multiplier filter at step k.

    Returns
    -------
    a, b : np.ndarray
        Augmented state-space matrices; the state is [x; filter states].
    outputs : list of (np.ndarray, np.ndarray)
        (C_i, D_i) with psi_i = C_i xi + D_i u for every multiplier.
    """
    a, b, c, d, keep_d = _plant_step(ulft, k)
    filters = [(m.filter.a[k], m.filter.b[k], m.filter.c[k], m.filter.d[k]) for m in multipliers]
    cur = [a.shape[1]] + [f[0].shape[1] for f in filters]
    nxt = [a.shape[0]] + [f[0].shape[0] for f in filters]
    col_offsets = np.cumsum([0] + cur)
    row_offsets = np.cumsum([0] + nxt)

    a_aug = np.zeros((row_offsets[-1], col_offsets[-1]))
    a_aug[: a.shape[0], : a.shape[1]] = a
    b_rows = [b]
    outputs = []
    for i, (multiplier, (fa, fb, fc, fd)) in enumerate(zip(multipliers, filters), start=1):
        mx, mu = _signal_map(ulft, multiplier.source, k, c, d, keep_d)
        rows = slice(row_offsets[i], row_offsets[i + 1])
        a_aug[rows, : a.shape[1]] = fb @ mx
        a_aug[rows, col_offsets[i] : col_offsets[i + 1]] = fa
        b_rows.append(fb @ mu)

        c_psi = np.zeros((fc.shape[0], col_offsets[-1]))
        c_psi[:, : a.shape[1]] = fd @ mx
        c_psi[:, col_offsets[i] : col_offsets[i + 1]] = fc
        outputs.append((c_psi, fd @ mu))
    return a_aug, np.vstack(b_rows), outputs


def _pad(block, n: int, m: int):
    """diag(block, 0_m) for an n x n block"""
    if m == 0:
        return block
    return cp.bmat([[block, np.zeros((n, m))], [np.zeros((m, n)), np.zeros((m, m))]])


def _storage(a, b, p_now, p_next, discrete: bool):
    """Increment of the storage function, or None without states"""
    n, m = a.shape[1], b.shape[1]
    if discrete:
        terms = []
        if p_next is not None:
            ab = np.hstack([a, b])
            terms.append(ab.T @ p_next @ ab)
        if p_now is not None:
            terms.append(-_pad(p_now, n, m))
        return sum(terms[1:], terms[0]) if terms else None
    if p_now is None:
        return None
    if m == 0:
        return a.T @ p_now + p_now @ a
    return cp.bmat([[a.T @ p_now + p_now @ a, p_now @ b], [b.T @ p_now, np.zeros((m, m))]])


def assemble_lmis(ulft: Ulft, multipliers: List[Multiplier], lmi_shift: float):
    """
    Periodic dissipation inequalities of the augmented plant.

    Returns
    -------
    constraints : list of cvxpy constraints
    certificate : list
        P_0, ..., P_{h+p-1}; None where the augmented plant has no states.
    """
    horizon, period = ulft.horizon_period
    total = horizon + period
    steps = [augmented_step(ulft, multipliers, k) for k in range(total)]
    certificate = []
    for k, (a, _, _) in enumerate(steps):
        n = a.shape[1]
        certificate.append(cp.Variable((n, n), symmetric=True, name=f"p_{k}") if n else None)

    constraints = []
    for k, (a, b, outputs) in enumerate(steps):
        size = a.shape[1] + b.shape[1]
        if size == 0:
            continue
        p_next = certificate[k + 1] if k + 1 < total else certificate[horizon]
        lhs = cp.Constant(np.zeros((size, size)))
        storage = _storage(a, b, certificate[k], p_next, ulft.is_discrete)
        if storage is not None:
            lhs = lhs + storage
        for multiplier, (c_psi, d_psi) in zip(multipliers, outputs):
            if c_psi.shape[0] == 0:
                continue
            cd = np.hstack([c_psi, d_psi])
            lhs = lhs + cd.T @ multiplier.quad[k] @ cd
        constraints.append(symmetrize(lhs) << -lmi_shift * np.eye(size))
    return constraints, certificate


def certificate_holds(lmis: List[Any], multipliers: List[Multiplier], lmi_shift: float) -> bool:
    """
    Check a solution against the inequalities it is meant to satisfy.

    Every dissipation inequality F_k must be negative definite at the
    returned values, and every multiplier constraint must hold to within
    CONSTRAINT_TOLERANCE.

    Parameters
    ----------
    lmis : list of cvxpy constraints
        As returned by ``assemble_lmis``.
    multipliers : list of Multiplier
    lmi_shift : float

    Returns
    -------
    bool
        False if a value is missing or an inequality is violated.
    """
    for lmi in lmis:
        # the constraint argument is -lmi_shift I - F_k
        value = lmi.args[0].value
        if value is None or not np.all(np.isfinite(value)):
            return False
        largest = -lmi_shift - float(np.min(np.linalg.eigvalsh(symmetrize(np.asarray(value)))))
        if largest >= 0.0:
            return False
    for multiplier in multipliers:
        for constraint in multiplier.constraints:
            try:
                violation = constraint.violation()
            except ValueError:
                return False
            if not np.all(np.asarray(violation) <= CONSTRAINT_TOLERANCE):
                return False
    return True


# ============================================================================
# Entry point
# ============================================================================


def _invalid_result(status: str, horizon_period: HorizonPeriod) -> IqcAnalysisResult:
    return IqcAnalysisResult(
        valid=False,
        performance=float("inf"),
        certificate=[],
        multipliers={},
        solver_status=status,
        horizon_period=horizon_period,
    )


def iqc_analysis(
    ulft: Ulft,
    options: Optional[AnalysisOptions] = None,
    multipliers: MultipliersLike = None,
) -> IqcAnalysisResult:
    """
    Certify an upper bound on the worst-case performance of ``ulft``.

    Parameters
    ----------
    ulft : Ulft
        LFT with its Deltas, Disturbances and exactly one Performance.
    options : AnalysisOptions, optional
        Defaults to ``AnalysisOptions()``.
    multipliers : Multiplier, iterable of Multiplier or dict, optional
        Multipliers used instead of the defaults, matched to their source
        by family and name. A dict maps names to multipliers.

    Returns
    -------
    IqcAnalysisResult
        ``valid`` is False, and ``performance`` is inf, when the LMIs are
        infeasible, the solver fails, the nominal LFT is unstable, or an
        inaccurate solution does not satisfy the LMIs when evaluated.

    Raises
    ------
    ConstructionError
        If ``options`` is not an AnalysisOptions.
    IncompatibleSpecificationError
        If the LFT does not hold exactly one performance or a multiplier
        does not match its source.
    UnsupportedUncertaintyError
        If an object has neither an override nor a default multiplier.

    Examples
    --------
    >>> g = to_lft(control.tf([1], [1, -0.5], True))
    >>> result = iqc_analysis(g, AnalysisOptions(verbose=False))
    >>> round(result['performance'], 3)
    2.0
    """
    options = AnalysisOptions() if options is None else options
    if not isinstance(options, AnalysisOptions):
        raise ConstructionError(f"options must be an AnalysisOptions, got {type(options).__name__}")
    if not isinstance(ulft, Ulft):
        raise ConstructionError(f"iqc_analysis requires a Ulft, got {type(ulft).__name__}")
    if len(ulft.performance) != 1:
        raise IncompatibleSpecificationError(
            f"iqc_analysis requires exactly one performance, got {len(ulft.performance)}"
        )

    built = build_multipliers(ulft, multipliers)
    hp = common_horizon_period([ulft.horizon_period] + [m.horizon_period for m in built])
    ulft = ulft.match_horizon_period(hp)
    built = [m.match_horizon_period(hp) for m in built]

    if options.verbose:
        print(f"IQC analysis over horizon_period {list(hp)} with {len(built)} multipliers")

    if not nominally_stable(ulft):
        if options.verbose:
            print("LFT is unstable with every Delta set to zero; no certificate exists")
        return _invalid_result("nominally_unstable", hp)

    lmis, certificate = assemble_lmis(ulft, built, options.lmi_shift)
    constraints = [constraint for m in built for constraint in m.constraints] + lmis
    objectives = [m.objective for m in built if m.objective is not None]
    objective = sum(objectives[1:], objectives[0]) if objectives else None

    try:
        status = solve_lmi_problem(objective, constraints, options)
    except SolverFailure as err:
        warnings.warn(str(err), RuntimeWarning)
        return _invalid_result("solver_error", hp)

    valid = status == cp.OPTIMAL or (status == cp.OPTIMAL_INACCURATE and options.accept_inaccurate)
    if not valid:
        if options.verbose:
            print(f"No certificate found (solver status: {status})")
        return _invalid_result(status, hp)
    if status != cp.OPTIMAL and not certificate_holds(lmis, built, options.lmi_shift):
        warnings.warn(
            f"Solution with status {status} does not satisfy the analysis inequalities; it is rejected",
            RuntimeWarning,
        )
        return _invalid_result(status, hp)

    performance_multiplier = built[-1]
    bound = performance_multiplier.performance_bound()
    performance = float("inf") if bound is None else float(bound)

    realized: Dict[str, Dict[str, Any]] = {family: {} for family in FAMILIES}
    for multiplier in built:
        realized[multiplier.family][multiplier.name] = multiplier.realize()

    if options.verbose:
        print(f"Certified performance: {performance:.6g} (solver status: {status})")

    return IqcAnalysisResult(
        valid=True,
        performance=performance,
        certificate=[np.zeros((0, 0)) if p is None else evaluate(p) for p in certificate],
        multipliers=realized,
        solver_status=status,
        horizon_period=hp,
    )
