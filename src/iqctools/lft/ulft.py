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
Uncertain Linear Fractional Transformation

A Ulft is a (possibly periodic time-varying) state-space system in feedback
with a block-diagonal collection of uncertainties.

Mathematical Background
-----------------------
At time step k the nominal system is

    x_{k+1} = a_k x_k + b_k [w_k; d_k]
    [z_k; e_k] = c_k x_k + d_k [w_k; d_k]

(x' instead of x_{k+1} in continuous time) and the loop is closed with
w = Delta(z), where Delta = blkdiag(Delta_1, ..., Delta_n) is given by the
delta sequence in order. The first inputs and outputs are therefore the
uncertainty channels; the remaining ones are the performance channels d, e
that disturbances and performances refer to with 0-based selectors.

The matrices are PeriodicSequences over the Ulft's horizon_period, so
dimensions may change from step to step: a_k is n_{k+1} x n_k with the
state dimension n_{h+p} identified with n_h.

Usage
-----
>>> import numpy as np
>>> from iqctools import Ulft, DeltaSlti
>>>
>>> lft = Ulft(0.5, [[1.0, 1.0]], [[1.0], [1.0]], np.zeros((2, 2)),
...            delta=[DeltaSlti("p")])
>>> lft.performance_dim_in[0], lft.performance_dim_out[0]
(1, 1)
>>> closed = 2.0 * lft + np.eye(1)
"""

from typing import Any, Iterable, Optional, Union

import numpy as np

from iqctools.delta.base import Delta
from iqctools.disturbance.base import Disturbance
from iqctools.lft import composition
from iqctools.lft.sequences import SequenceDelta, SequenceDisturbance, SequencePerformance
from iqctools.performance.base import Performance
from iqctools.types.core import HorizonPeriodLike, Timestep
from iqctools.utils.errors import ConsistencyError, ConstructionError, IncompatibleSpecificationError
from iqctools.utils.horizon_period import (
    DEFAULT_HORIZON_PERIOD,
    PeriodicSequence,
    common_horizon_period,
    is_refinement,
    periodic_index,
    validate_horizon_period,
)
from iqctools.utils.matrices import as_matrix
from iqctools.utils.validation import shift_channel_sequence


# ============================================================================
# Argument normalization
# ============================================================================


def _is_step_list(value: Any) -> bool:
    return isinstance(value, (list, tuple)) and len(value) > 0 and all(
        isinstance(entry, np.ndarray) for entry in value
    )


def _matrix_horizon_period(value: Any) -> Optional[HorizonPeriodLike]:
    if isinstance(value, PeriodicSequence):
        return value.horizon_period
    if _is_step_list(value) and len(value) > 1:
        return (0, len(value))
    return None


def _matrix_sequence(value: Any, horizon_period, name: str) -> PeriodicSequence:
    """
    Per-step matrices from a matrix, a list of numpy arrays or a sequence.

    Nested python lists of numbers are read as a single matrix; per-step
    matrices must be given as numpy arrays.
    """
    if isinstance(value, PeriodicSequence):
        seq = value.resample(horizon_period)
    elif _is_step_list(value):
        seq = PeriodicSequence.broadcast(list(value), horizon_period, name=name)
    else:
        seq = PeriodicSequence.broadcast(as_matrix(value, name), horizon_period, name=name)
    return seq.map(lambda entry: as_matrix(entry, name))


def _as_collection(cls, base, value):
    if isinstance(value, cls):
        return value
    if isinstance(value, base):
        return cls([value])
    return cls(list(value))


def validate_timestep(timestep: Any) -> Timestep:
    """
    Normalize a timestep.

    0 is continuous time, -1 discrete time with unspecified sample time and a
    positive value a discrete sample time.
    """
    if isinstance(timestep, bool):
        raise ConstructionError(f"timestep must be a number, got {timestep!r}")
    try:
        value = float(timestep)
    except (TypeError, ValueError) as err:
        raise ConstructionError(f"timestep must be a number, got {timestep!r}") from err
    if not (value == 0 or value == -1 or (value > 0 and np.isfinite(value))):
        raise ConstructionError(f"timestep must be 0, -1 or positive, got {timestep!r}")
    return int(value) if value in (0, -1) else value


# ============================================================================
# Ulft
# ============================================================================


class Ulft:
    """
    Uncertain LFT with periodic time-varying state-space data.

    Parameters
    ----------
    a, b, c, d : matrix, list of np.ndarray, or PeriodicSequence
        State-space data. A single matrix is used at every step; a list of
        numpy arrays gives one matrix per step (length h + p).
    delta : Delta or iterable of Delta, optional
        Uncertainty blocks in channel order.
    horizon_period : [h, p], optional
        Inferred from the data and the contained objects when omitted.
    disturbance : Disturbance or iterable, optional
        Defaults to an all-channel DisturbanceL2 named 'default_l2'.
    performance : Performance or iterable, optional
        Defaults to an all-channel PerformanceL2Induced named 'default_l2'.
    timestep : float
        0 continuous, -1 discrete (unspecified sample time), > 0 sample time.

    Raises
    ------
    ConstructionError
        If dimensions disagree or the timestep is invalid.
    ConsistencyError
        If per-step lists do not match the horizon_period, or a
        continuous-time LFT is not time-invariant.
    IncompatibleSpecificationError
        If the deltas need more channels than the system has, or a
        disturbance or performance selects a channel that does not exist.
    """

    __array_ufunc__ = None

    def __init__(
        self,
        a,
        b,
        c,
        d,
        delta: Union[Delta, Iterable[Delta]] = (),
        horizon_period: Optional[HorizonPeriodLike] = None,
        disturbance=None,
        performance=None,
        timestep: Timestep = -1,
    ):
        self._timestep = validate_timestep(timestep)
        deltas = _as_collection(SequenceDelta, Delta, delta)
        disturbances = None if disturbance is None else _as_collection(SequenceDisturbance, Disturbance, disturbance)
        performances = None if performance is None else _as_collection(SequencePerformance, Performance, performance)

        if horizon_period is None:
            candidates = [_matrix_horizon_period(m) for m in (a, b, c, d)]
            for collection in (deltas, disturbances, performances):
                if collection is not None and not collection.is_default:
                    candidates.extend(item.horizon_period for item in collection)
            candidates = [hp for hp in candidates if hp is not None]
            hp = common_horizon_period(candidates) if candidates else DEFAULT_HORIZON_PERIOD
        else:
            hp = validate_horizon_period(horizon_period)
        if self._timestep == 0 and hp != DEFAULT_HORIZON_PERIOD:
            raise ConsistencyError(
                f"A continuous-time LFT must have horizon_period [0, 1], got {list(hp)}"
            )
        self._horizon_period = hp

        self._a = _matrix_sequence(a, hp, "a")
        self._b = _matrix_sequence(b, hp, "b")
        self._c = _matrix_sequence(c, hp, "c")
        self._d = _matrix_sequence(d, hp, "d")
        self._check_dimensions()

        self._delta = deltas.match_horizon_period(hp)
        steps = range(hp[0] + hp[1])
        self._performance_dim_in = PeriodicSequence(
            [self._b[k].shape[1] - self._delta.dim_out(k) for k in steps], hp
        )
        self._performance_dim_out = PeriodicSequence(
            [self._c[k].shape[0] - self._delta.dim_in(k) for k in steps], hp
        )
        if disturbances is None or len(disturbances) == 0:
            self._disturbance = SequenceDisturbance.default(hp)
        else:
            self._disturbance = disturbances.match_horizon_period(hp)
        if performances is None or len(performances) == 0:
            self._performance = SequencePerformance.default(hp)
        else:
            self._performance = performances.match_horizon_period(hp)
        self._check_channels()

    # ------------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------------

    def _check_dimensions(self) -> None:
        hp = self._horizon_period
        for k in range(hp[0] + hp[1]):
            a, b, c, d = self._a[k], self._b[k], self._c[k], self._d[k]
            n, n_next = a.shape[1], a.shape[0]
            expected_next = self._a[periodic_index(k + 1, hp)].shape[1]
            if n_next != expected_next:
                raise ConstructionError(
                    f"a at step {k} maps {n} states to {n_next}, but step {k + 1} has {expected_next} states"
                )
            if b.shape[0] != n_next:
                raise ConstructionError(f"b at step {k} has {b.shape[0]} rows, expected {n_next}")
            if c.shape[1] != n:
                raise ConstructionError(f"c at step {k} has {c.shape[1]} columns, expected {n}")
            if d.shape != (c.shape[0], b.shape[1]):
                raise ConstructionError(
                    f"d at step {k} has shape {d.shape}, expected {(c.shape[0], b.shape[1])}"
                )

    def _check_channels(self) -> None:
        hp = self._horizon_period
        for k in range(hp[0] + hp[1]):
            nd, ne = self.performance_dim_in[k], self.performance_dim_out[k]
            if nd < 0 or ne < 0:
                raise IncompatibleSpecificationError(
                    f"Deltas need {self._delta.dim_out(k)} inputs and {self._delta.dim_in(k)} outputs "
                    f"at step {k}, but the system has {self.dim_in[k]} and {self.dim_out[k]}"
                )
            for disturbance in self._disturbance:
                _check_selector(disturbance.chan_in[k], nd, "Disturbance", disturbance.name, "input", k)
            for performance in self._performance:
                _check_selector(performance.chan_in[k], nd, "Performance", performance.name, "input", k)
                _check_selector(performance.chan_out[k], ne, "Performance", performance.name, "output", k)

    # ------------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------------

    @property
    def a(self) -> PeriodicSequence:
        return self._a

    @property
    def b(self) -> PeriodicSequence:
        return self._b

    @property
    def c(self) -> PeriodicSequence:
        return self._c

    @property
    def d(self) -> PeriodicSequence:
        return self._d

    @property
    def delta(self) -> SequenceDelta:
        return self._delta

    @property
    def disturbance(self) -> SequenceDisturbance:
        return self._disturbance

    @property
    def performance(self) -> SequencePerformance:
        return self._performance

    @property
    def horizon_period(self):
        return self._horizon_period

    @property
    def timestep(self) -> Timestep:
        return self._timestep

    @property
    def is_discrete(self) -> bool:
        return self._timestep != 0

    @property
    def dim_state(self) -> PeriodicSequence:
        """State dimension n_k at every step"""
        return self._a.map(lambda a: a.shape[1])

    @property
    def dim_in(self) -> PeriodicSequence:
        """Total number of inputs [w; d] at every step"""
        return self._b.map(lambda b: b.shape[1])

    @property
    def dim_out(self) -> PeriodicSequence:
        """Total number of outputs [z; e] at every step"""
        return self._c.map(lambda c: c.shape[0])

    @property
    def performance_dim_in(self) -> PeriodicSequence:
        """Number of performance inputs d at every step"""
        return self._performance_dim_in

    @property
    def performance_dim_out(self) -> PeriodicSequence:
        """Number of performance outputs e at every step"""
        return self._performance_dim_out

    # ------------------------------------------------------------------------
    # Functional updates
    # ------------------------------------------------------------------------

    def _replace(self, **changes: Any) -> "Ulft":
        kwargs = dict(
            a=self._a,
            b=self._b,
            c=self._c,
            d=self._d,
            delta=self._delta,
            horizon_period=self._horizon_period,
            disturbance=self._disturbance,
            performance=self._performance,
            timestep=self._timestep,
        )
        kwargs.update(changes)
        return type(self)(**kwargs)

    def match_horizon_period(self, horizon_period: HorizonPeriodLike) -> "Ulft":
        """
        Rewrite the LFT and every contained object over ``horizon_period``.

        Raises
        ------
        ConsistencyError
            If the new horizon_period is not a refinement and the data is
            not consistent with it.
        """
        hp = validate_horizon_period(horizon_period)
        if hp == self._horizon_period:
            return self
        return self._replace(
            a=self._a.resample(hp),
            b=self._b.resample(hp),
            c=self._c.resample(hp),
            d=self._d.resample(hp),
            delta=self._delta.match_horizon_period(hp),
            disturbance=self._disturbance.match_horizon_period(hp),
            performance=self._performance.match_horizon_period(hp),
            horizon_period=hp,
        )

    def _existing_duplicate(self, collection, item) -> bool:
        """
        True if ``item`` is already in ``collection``.

        Raises IncompatibleSpecificationError when the name is taken by a
        different object. The candidate is compared after resampling to the
        LFT's horizon_period, which must refine the candidate's.
        """
        existing = collection.get(item.name)
        if existing is None:
            return False
        if is_refinement(item.horizon_period, self._horizon_period):
            if item.match_horizon_period(self._horizon_period) == existing:
                return True
        # a default entry is replaced rather than compared
        if collection.is_default:
            return False
        if not is_refinement(item.horizon_period, self._horizon_period):
            raise IncompatibleSpecificationError(
                f"{collection.item_kind} '{item.name}' with horizon_period {list(item.horizon_period)} "
                f"conflicts with the existing one over {list(self._horizon_period)}"
            )
        raise IncompatibleSpecificationError(
            f"{collection.item_kind} named '{item.name}' already exists with a different definition"
        )

    def _reconciled(self, item):
        hp = common_horizon_period([self._horizon_period, item.horizon_period])
        return self.match_horizon_period(hp), item.match_horizon_period(hp)

    def add_deltas(self, deltas: Iterable[Delta]) -> "Ulft":
        """
        Attach uncertainty blocks to the leading performance channels.

        Each new delta absorbs the first ``dim_out`` performance inputs and
        the first ``dim_in`` performance outputs; existing disturbances and
        performances are renumbered accordingly.

        Raises
        ------
        IncompatibleSpecificationError
            If a same-named delta differs, there are not enough performance
            channels, or an existing disturbance or performance refers to an
            absorbed channel.
        """
        items = [deltas] if isinstance(deltas, Delta) else list(deltas)
        lft = self
        for delta in items:
            if not isinstance(delta, Delta):
                raise TypeError(f"add_deltas expects Delta objects, got {type(delta).__name__}")
            if lft._existing_duplicate(lft._delta, delta):
                continue
            lft, delta = lft._reconciled(delta)
            lft = lft._absorb(delta)
        return lft

    def _absorb(self, delta: Delta) -> "Ulft":
        hp = self._horizon_period
        nd, ne = self.performance_dim_in, self.performance_dim_out
        for k in range(hp[0] + hp[1]):
            if delta.dim_out[k] > nd[k] or delta.dim_in[k] > ne[k]:
                raise IncompatibleSpecificationError(
                    f"Delta '{delta.name}' needs {delta.dim_out[k]} inputs and {delta.dim_in[k]} outputs "
                    f"at step {k}, only {nd[k]} and {ne[k]} performance channels are left"
                )
            for disturbance in self._disturbance:
                _check_not_absorbed(disturbance.chan_in[k], delta.dim_out[k], disturbance.name, delta.name, k)
            for performance in self._performance:
                _check_not_absorbed(performance.chan_in[k], delta.dim_out[k], performance.name, delta.name, k)
                _check_not_absorbed(performance.chan_out[k], delta.dim_in[k], performance.name, delta.name, k)

        shift_in = delta.dim_out.map(lambda n: -n)
        shift_out = delta.dim_in.map(lambda n: -n)
        return self._replace(
            delta=self._delta.merge([delta]),
            disturbance=self._disturbance.map(lambda item: item.shift_channels(shift_in)),
            performance=self._performance.map(lambda item: item.shift_channels(shift_in, shift_out)),
        )

    def add_disturbances(self, disturbances: Iterable[Disturbance]) -> "Ulft":
        """
        Attach disturbance characterizations.

        The first explicit disturbance replaces the default one.

        Raises
        ------
        IncompatibleSpecificationError
            If a same-named disturbance differs or a channel does not exist.
        """
        items = [disturbances] if isinstance(disturbances, Disturbance) else list(disturbances)
        lft = self
        for item in items:
            if not isinstance(item, Disturbance):
                raise TypeError(f"add_disturbances expects Disturbance objects, got {type(item).__name__}")
            if lft._existing_duplicate(lft._disturbance, item):
                continue
            lft, item = lft._reconciled(item)
            lft = lft._replace(disturbance=lft._disturbance.merge([item]))
        return lft

    def add_performances(self, performances: Iterable[Performance]) -> "Ulft":
        """
        Attach performance objectives.

        The first explicit performance replaces the default one.

        Raises
        ------
        IncompatibleSpecificationError
            If a same-named performance differs or a channel does not exist.
        """
        items = [performances] if isinstance(performances, Performance) else list(performances)
        lft = self
        for item in items:
            if not isinstance(item, Performance):
                raise TypeError(f"add_performances expects Performance objects, got {type(item).__name__}")
            if lft._existing_duplicate(lft._performance, item):
                continue
            lft, item = lft._reconciled(item)
            lft = lft._replace(performance=lft._performance.merge([item]))
        return lft

    # ------------------------------------------------------------------------
    # Algebra
    # ------------------------------------------------------------------------

    def _coerce(self, other: Any, rows: Optional[PeriodicSequence], cols: Optional[PeriodicSequence]) -> "Ulft":
        """
        Convert an operand to a Ulft compatible with this one.

        Scalars become ``value * I`` with per-step sizes ``rows x cols``;
        when no size is implied, a 1 x 1 matrix.
        """
        from iqctools.lft.conversion import static_lft, to_lft

        if isinstance(other, Ulft):
            return other
        if np.isscalar(other) and not isinstance(other, (str, bool)):
            if rows is None or cols is None:
                return static_lft(float(other), timestep=self._timestep)
            hp = self._horizon_period
            matrices = [float(other) * np.eye(rows[k], cols[k]) for k in range(hp[0] + hp[1])]
            return static_lft(PeriodicSequence(matrices, hp), timestep=self._timestep)
        return to_lft(other, timestep=self._timestep)

    def __add__(self, other: Any) -> "Ulft":
        other = self._coerce(other, self.performance_dim_out, self.performance_dim_in)
        return composition.interconnect(self, other, "add")

    def __radd__(self, other: Any) -> "Ulft":
        other = self._coerce(other, self.performance_dim_out, self.performance_dim_in)
        return composition.interconnect(other, self, "add")

    def __sub__(self, other: Any) -> "Ulft":
        other = self._coerce(other, self.performance_dim_out, self.performance_dim_in)
        return composition.interconnect(self, other, "sub")

    def __rsub__(self, other: Any) -> "Ulft":
        other = self._coerce(other, self.performance_dim_out, self.performance_dim_in)
        return composition.interconnect(other, self, "sub")

    def __neg__(self) -> "Ulft":
        hp = self._horizon_period
        c_seq, d_seq = [], []
        for k in range(hp[0] + hp[1]):
            z = self._delta.dim_in(k)
            c, d = self._c[k].copy(), self._d[k].copy()
            c[z:, :] *= -1.0
            d[z:, :] *= -1.0
            c_seq.append(c)
            d_seq.append(d)
        return self._replace(c=PeriodicSequence(c_seq, hp), d=PeriodicSequence(d_seq, hp))

    def __mul__(self, other: Any) -> "Ulft":
        """Series connection ``self * other``: ``other`` feeds ``self``"""
        other = self._coerce(other, self.performance_dim_in, self.performance_dim_in)
        return composition.interconnect(self, other, "series")

    def __rmul__(self, other: Any) -> "Ulft":
        other = self._coerce(other, self.performance_dim_out, self.performance_dim_out)
        return composition.interconnect(other, self, "series")

    def blkdiag(self, *others: Any) -> "Ulft":
        """Block-diagonal append: inputs and outputs concatenated"""
        result = self
        for other in others:
            result = composition.interconnect(result, self._coerce(other, None, None), "blkdiag")
        return result

    def horzcat(self, *others: Any) -> "Ulft":
        """[self, other]: inputs concatenated, outputs summed"""
        result = self
        for other in others:
            result = composition.interconnect(result, self._coerce(other, None, None), "horzcat")
        return result

    def vertcat(self, *others: Any) -> "Ulft":
        """[self; other]: shared inputs, outputs stacked"""
        result = self
        for other in others:
            result = composition.interconnect(result, self._coerce(other, None, None), "vertcat")
        return result

    # ------------------------------------------------------------------------
    # Comparison and display
    # ------------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Ulft):
            return NotImplemented
        return (
            self._horizon_period == other._horizon_period
            and self._timestep == other._timestep
            and self._a == other._a
            and self._b == other._b
            and self._c == other._c
            and self._d == other._d
            and self._delta == other._delta
            and self._disturbance == other._disturbance
            and self._performance == other._performance
        )

    __hash__ = None

    def __repr__(self) -> str:
        return (
            f"Ulft(horizon_period={list(self._horizon_period)}, timestep={self._timestep}, "
            f"dim_state={self.dim_state.to_list()}, dim_out={self.dim_out.to_list()}, "
            f"dim_in={self.dim_in.to_list()}, delta={list(self._delta.names)}, "
            f"disturbance={list(self._disturbance.names)}, performance={list(self._performance.names)})"
        )

    # ------------------------------------------------------------------------
    # Random generation
    # ------------------------------------------------------------------------

    @classmethod
    def random(
        cls,
        dim_state: int = 2,
        dim_in: int = 1,
        dim_out: int = 1,
        deltas: Iterable[Delta] = (),
        horizon_period: HorizonPeriodLike = DEFAULT_HORIZON_PERIOD,
        timestep: Timestep = -1,
        rng: Optional[np.random.Generator] = None,
    ) -> "Ulft":
        """
        Random stable Ulft for testing.

        Parameters
        ----------
        dim_state, dim_in, dim_out : int
            State and performance dimensions, constant over time.
        deltas : iterable of Delta
            Uncertainty blocks; their dimensions are added to the inputs and
            outputs.
        horizon_period : [h, p]
        timestep : float
        rng : np.random.Generator, optional
            Source of randomness, ``np.random.default_rng()`` when omitted.

        Examples
        --------
        >>> lft = Ulft.random(rng=np.random.default_rng(0))
        >>> lft.dim_state[0]
        2
        """
        rng = np.random.default_rng() if rng is None else rng
        hp = validate_horizon_period(horizon_period)
        deltas = SequenceDelta(deltas).match_horizon_period(hp)
        a_seq, b_seq, c_seq, d_seq = [], [], [], []
        for k in range(hp[0] + hp[1]):
            m = deltas.dim_out(k) + dim_in
            p = deltas.dim_in(k) + dim_out
            a = rng.standard_normal((dim_state, dim_state))
            if timestep == 0:
                shift = np.max(np.linalg.eigvals(a).real) + 1.0 if dim_state else 0.0
                a = a - shift * np.eye(dim_state)
            elif dim_state:
                a = 0.5 * a / max(np.linalg.norm(a, 2), 1e-12)
            a_seq.append(a)
            b_seq.append(rng.standard_normal((dim_state, m)))
            c_seq.append(rng.standard_normal((p, dim_state)))
            d_seq.append(0.5 * rng.standard_normal((p, m)))
        return cls(
            PeriodicSequence(a_seq, hp),
            PeriodicSequence(b_seq, hp),
            PeriodicSequence(c_seq, hp),
            PeriodicSequence(d_seq, hp),
            delta=deltas,
            horizon_period=hp,
            timestep=timestep,
        )


def _check_selector(selector, dim: int, kind: str, name: str, side: str, k: int) -> None:
    for index in selector:
        if index >= dim:
            raise IncompatibleSpecificationError(
                f"{kind} '{name}' selects {side} channel {index} at step {k}, "
                f"but only {dim} performance {side}s exist"
            )


def _check_not_absorbed(selector, absorbed: int, owner: str, delta: str, k: int) -> None:
    for index in selector:
        if index < absorbed:
            raise IncompatibleSpecificationError(
                f"'{owner}' refers to channel {index} at step {k}, which Delta '{delta}' would absorb"
            )
