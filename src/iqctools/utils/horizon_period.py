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
Horizon-Period Arithmetic

Periodic sequences and the reconciliation of (horizon, period) pairs.

Mathematical Background
-----------------------
A horizon_period [h, p] encodes an infinite sequence v_0, v_1, ... by its
first h + p entries: the first h entries form a non-periodic prefix and the
remaining p entries repeat forever,

    v_k = v_{h + (k - h) mod p}    for k >= h + p

Two objects with horizon_periods [h1, p1] and [h2, p2] can both be written
over [H, P] with H = max(h1, h2) and P = lcm(p1, p2). Rewriting a sequence
over a refinement of its horizon_period never changes the infinite sequence
it represents. Rewriting over a coarser horizon_period is allowed only when
the values happen to be consistent with it.

Usage
-----
>>> from iqctools.utils.horizon_period import PeriodicSequence, common_horizon_period
>>> seq = PeriodicSequence([1, 2, 3], (1, 2))
>>> seq[5]
3
>>> hp = common_horizon_period([(1, 2), (0, 3)])
>>> hp
(1, 6)
>>> seq.resample(hp).values
(1, 2, 3, 2, 3, 2, 3)
"""

import math
from functools import reduce
from typing import Any, Callable, Iterable, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from iqctools.types.core import HorizonPeriod
from iqctools.utils.errors import ConsistencyError

DEFAULT_HORIZON_PERIOD: HorizonPeriod = (0, 1)


# ============================================================================
# Horizon-period pairs
# ============================================================================


def validate_horizon_period(horizon_period: Optional[Sequence[int]]) -> HorizonPeriod:
    """
    Normalize a horizon_period to a tuple of two python ints.

    Parameters
    ----------
    horizon_period : sequence of int or None
        Candidate [horizon, period]. None gives the default (0, 1).

    Returns
    -------
    HorizonPeriod
        (horizon, period)

    Raises
    ------
    ConsistencyError
        If the pair is malformed, the horizon is negative or the period is
        not positive.
    """
    if horizon_period is None:
        return DEFAULT_HORIZON_PERIOD
    try:
        values = [v for v in np.asarray(horizon_period).ravel()]
    except (TypeError, ValueError) as err:
        raise ConsistencyError(f"horizon_period must be a pair of integers, got {horizon_period!r}") from err
    if len(values) != 2:
        raise ConsistencyError(f"horizon_period must have two entries, got {horizon_period!r}")
    normalized = []
    for value in values:
        try:
            integral = float(value).is_integer()
        except (TypeError, ValueError):
            integral = False
        if isinstance(value, (bool, np.bool_)) or not integral:
            raise ConsistencyError(f"horizon_period entries must be integers, got {horizon_period!r}")
        normalized.append(int(value))
    horizon, period = normalized
    if horizon < 0:
        raise ConsistencyError(f"horizon must be non-negative, got {horizon}")
    if period < 1:
        raise ConsistencyError(f"period must be positive, got {period}")
    return (horizon, period)


def common_horizon_period(horizon_periods: Iterable[Sequence[int]]) -> HorizonPeriod:
    """
    Smallest horizon_period that refines every given horizon_period.

    Parameters
    ----------
    horizon_periods : iterable of [h, p]

    Returns
    -------
    HorizonPeriod
        (max h, lcm p). An empty input gives (0, 1).

    Examples
    --------
    >>> common_horizon_period([(2, 4), (3, 6), (0, 1)])
    (3, 12)
    """
    pairs = [validate_horizon_period(hp) for hp in horizon_periods]
    if not pairs:
        return DEFAULT_HORIZON_PERIOD
    horizon = max(h for h, _ in pairs)
    period = reduce(lambda a, b: a * b // math.gcd(a, b), (p for _, p in pairs), 1)
    return (horizon, period)


def is_refinement(old: HorizonPeriod, new: HorizonPeriod) -> bool:
    """True if every sequence over ``old`` can be written over ``new``"""
    return new[0] >= old[0] and new[1] % old[1] == 0


def periodic_index(k: int, horizon_period: HorizonPeriod) -> int:
    """Position in a length h + p sequence that holds the value at time ``k``"""
    horizon, period = horizon_period
    if k < 0:
        raise IndexError(f"time index must be non-negative, got {k}")
    if k < horizon + period:
        return k
    return horizon + (k - horizon) % period


def values_equal(first: Any, second: Any) -> bool:
    """Structural equality that treats numpy arrays by shape and value"""
    if isinstance(first, np.ndarray) or isinstance(second, np.ndarray):
        first_arr = np.asarray(first)
        second_arr = np.asarray(second)
        return first_arr.shape == second_arr.shape and bool(np.array_equal(first_arr, second_arr))
    return bool(first == second)


# ============================================================================
# Periodic sequence
# ============================================================================


class PeriodicSequence:
    """
    Immutable sequence indexed by time over a horizon_period.

    Stores h + p values. Indexing with any non-negative time step returns
    the value of the underlying infinite sequence, so ``seq[k]`` is valid
    for every k >= 0.

    Parameters
    ----------
    values : iterable
        Exactly h + p entries.
    horizon_period : [h, p]

    Raises
    ------
    ConsistencyError
        If the number of values differs from h + p.

    Examples
    --------
    >>> seq = PeriodicSequence(["a", "b", "c"], (1, 2))
    >>> seq.prefix, seq.period
    (('a',), ('b', 'c'))
    >>> [seq[k] for k in range(6)]
    ['a', 'b', 'c', 'b', 'c', 'b']
    """

    __slots__ = ("_values", "_horizon_period")

    def __init__(self, values: Iterable[Any], horizon_period: Sequence[int]):
        hp = validate_horizon_period(horizon_period)
        values = tuple(values)
        if len(values) != hp[0] + hp[1]:
            raise ConsistencyError(
                f"Sequence has {len(values)} entries but horizon_period {list(hp)} "
                f"requires {hp[0] + hp[1]}"
            )
        self._values = values
        self._horizon_period = hp

    @classmethod
    def broadcast(
        cls, value: Any, horizon_period: Sequence[int], name: str = "value"
    ) -> "PeriodicSequence":
        """
        Build a sequence from a constant, a per-step list or another sequence.

        A list or tuple is read as per-step values: length 1 is repeated,
        length h + p is used as is. Any other object is repeated at every
        step. A PeriodicSequence is resampled to ``horizon_period``.

        Raises
        ------
        ConsistencyError
            If a list has neither 1 nor h + p entries.
        """
        hp = validate_horizon_period(horizon_period)
        total = hp[0] + hp[1]
        if isinstance(value, PeriodicSequence):
            return value.resample(hp)
        if isinstance(value, (list, tuple)):
            if len(value) == 1:
                return cls(list(value) * total, hp)
            if len(value) == total:
                return cls(value, hp)
            raise ConsistencyError(
                f"{name} has {len(value)} entries, expected 1 or {total} "
                f"for horizon_period {list(hp)}"
            )
        return cls([value] * total, hp)

    # ------------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------------

    @property
    def values(self) -> Tuple[Any, ...]:
        return self._values

    @property
    def horizon_period(self) -> HorizonPeriod:
        return self._horizon_period

    @property
    def horizon(self) -> int:
        return self._horizon_period[0]

    @property
    def period(self) -> Tuple[Any, ...]:
        """Values of the repeating block"""
        return self._values[self.horizon :]

    @property
    def prefix(self) -> Tuple[Any, ...]:
        """Values of the non-periodic prefix"""
        return self._values[: self.horizon]

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._values)

    def __getitem__(self, k):
        if isinstance(k, slice):
            return self._values[k]
        return self._values[periodic_index(int(k), self._horizon_period)]

    def is_constant(self) -> bool:
        """True if every stored value equals the first one"""
        return all(values_equal(v, self._values[0]) for v in self._values[1:])

    # ------------------------------------------------------------------------
    # Transformations
    # ------------------------------------------------------------------------

    def resample(self, horizon_period: Sequence[int]) -> "PeriodicSequence":
        """
        Rewrite the sequence over another horizon_period.

        Parameters
        ----------
        horizon_period : [H, P]

        Returns
        -------
        PeriodicSequence
            Same infinite sequence, stored over [H, P].

        Raises
        ------
        ConsistencyError
            If [H, P] is not a refinement and the values are not consistent
            with it.

        Examples
        --------
        >>> seq = PeriodicSequence([0, 1], (0, 2))
        >>> seq.resample((1, 4)).values
        (0, 1, 0, 1, 0)
        >>> seq.resample((1, 4)).resample((0, 2)) == seq
        True
        """
        hp = validate_horizon_period(horizon_period)
        if hp == self._horizon_period:
            return self
        resampled = PeriodicSequence([self[k] for k in range(hp[0] + hp[1])], hp)
        if not is_refinement(self._horizon_period, hp):
            check = common_horizon_period([self._horizon_period, hp])
            for k in range(check[0] + check[1]):
                if not values_equal(self[k], resampled[k]):
                    raise ConsistencyError(
                        f"Cannot change horizon_period from {list(self._horizon_period)} "
                        f"to {list(hp)}: values differ at time step {k}"
                    )
        return resampled

    def map(self, func: Callable[[Any], Any]) -> "PeriodicSequence":
        """Apply ``func`` to every stored value"""
        return PeriodicSequence([func(v) for v in self._values], self._horizon_period)

    def to_list(self) -> List[Any]:
        return list(self._values)

    # ------------------------------------------------------------------------
    # Comparison
    # ------------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PeriodicSequence):
            return NotImplemented
        if self._horizon_period != other._horizon_period:
            return False
        return all(values_equal(a, b) for a, b in zip(self._values, other._values))

    def __hash__(self):
        return hash((self._horizon_period, self._values))

    def __repr__(self) -> str:
        return f"PeriodicSequence({list(self._values)!r}, horizon_period={list(self._horizon_period)})"
