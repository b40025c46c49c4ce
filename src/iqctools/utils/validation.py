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
Argument Validation

Validators shared by the Delta, Disturbance and Performance constructors.
Every validator either returns a normalized value or raises
ConstructionError naming the offending argument.
"""

import numbers
from typing import Any, Optional, Sequence

import numpy as np

from iqctools.types.core import ChannelSelector, HorizonPeriod
from iqctools.utils.errors import ConstructionError, IncompatibleSpecificationError
from iqctools.utils.horizon_period import PeriodicSequence


def validate_name(name: Any) -> str:
    """Names must be non-empty strings"""
    if not isinstance(name, str) or not name:
        raise ConstructionError(f"name must be a non-empty string, got {name!r}")
    return name


def is_integral(value: Any) -> bool:
    if isinstance(value, (bool, np.bool_)):
        return False
    if isinstance(value, numbers.Integral):
        return True
    return isinstance(value, numbers.Real) and float(value).is_integer()


def validate_positive_int(value: Any, name: str) -> int:
    if not is_integral(value) or int(value) < 1:
        raise ConstructionError(f"{name} must be a positive integer, got {value!r}")
    return int(value)


def validate_finite(value: Any, name: str, lower: Optional[float] = None) -> float:
    """Finite real number, optionally bounded below"""
    if isinstance(value, (bool, np.bool_)) or not isinstance(value, numbers.Real):
        raise ConstructionError(f"{name} must be a finite real number, got {value!r}")
    value = float(value)
    if not np.isfinite(value):
        raise ConstructionError(f"{name} must be finite, got {value}")
    if lower is not None and value < lower:
        raise ConstructionError(f"{name} must be >= {lower}, got {value}")
    return value


def as_periodic(
    value: Any, horizon_period: HorizonPeriod, name: str, validator=None
) -> PeriodicSequence:
    """
    Broadcast an attribute over a horizon_period and validate each entry.

    Parameters
    ----------
    value : scalar, list, tuple or PeriodicSequence
        A scalar or length-1 list is repeated; a list of length h + p is
        taken as per-step values; a PeriodicSequence is resampled.
    horizon_period : HorizonPeriod
    name : str
        Attribute name used in error messages.
    validator : callable, optional
        ``validator(entry, name)`` returning the normalized entry.

    Raises
    ------
    ConsistencyError
        If the length does not match the horizon_period.
    ConstructionError
        If an entry fails validation.
    """
    if isinstance(value, np.ndarray):
        value = value.ravel().tolist()
    seq = PeriodicSequence.broadcast(value, horizon_period, name=name)
    if validator is not None:
        seq = seq.map(lambda entry: validator(entry, name))
    return seq


def constant_value(value: Any, name: str) -> Any:
    """
    Reduce a time-invariant attribute to a single value.

    Lists and PeriodicSequences are accepted as long as every entry is equal.
    """
    if isinstance(value, np.ndarray):
        value = value.ravel().tolist()
    if isinstance(value, PeriodicSequence):
        value = value.to_list()
    if isinstance(value, (list, tuple)):
        if len(value) == 0:
            raise ConstructionError(f"{name} must not be empty")
        if any(v != value[0] for v in value[1:]):
            raise ConstructionError(f"{name} must be constant for a time-invariant object, got {value!r}")
        return value[0]
    return value


# ============================================================================
# Channel selectors
# ============================================================================


def _is_flat_selector(chan: Any) -> bool:
    if isinstance(chan, np.ndarray):
        return True
    return isinstance(chan, (list, tuple)) and all(is_integral(c) for c in chan)


def normalize_selector(chan: Any, name: str = "chan") -> ChannelSelector:
    """
    Normalize one channel selector to a tuple of distinct non-negative ints.

    An int selects a single channel; an empty sequence selects every channel.
    """
    if is_integral(chan):
        chan = [chan]
    if isinstance(chan, np.ndarray):
        chan = chan.ravel().tolist()
    if not isinstance(chan, (list, tuple)):
        raise ConstructionError(f"{name} must be a sequence of channel indices, got {chan!r}")
    indices = []
    for index in chan:
        if not is_integral(index) or int(index) < 0:
            raise ConstructionError(f"{name} entries must be non-negative integers, got {index!r}")
        indices.append(int(index))
    if len(set(indices)) != len(indices):
        raise ConstructionError(f"{name} contains duplicate channels: {indices}")
    return tuple(indices)


def channel_sequence(chan: Any, horizon_period: HorizonPeriod, name: str = "chan") -> PeriodicSequence:
    """
    Broadcast a channel selector over a horizon_period.

    ``None``, ``()`` and ``[]`` select every channel at every step. A flat
    sequence of ints is one selector used at every step. A list of
    selectors gives one selector per step (length 1 or h + p).

    Examples
    --------
    >>> channel_sequence([0, 2], (0, 2)).values
    ((0, 2), (0, 2))
    >>> channel_sequence([[0], [1]], (0, 2)).values
    ((0,), (1,))
    """
    if chan is None:
        chan = ()
    if isinstance(chan, PeriodicSequence):
        seq = chan.resample(horizon_period)
        return seq.map(lambda c: normalize_selector(c, name))
    if is_integral(chan) or _is_flat_selector(chan):
        return PeriodicSequence.broadcast([normalize_selector(chan, name)], horizon_period, name=name)
    if not isinstance(chan, (list, tuple)):
        raise ConstructionError(f"{name} must be a channel selector or a list of selectors, got {chan!r}")
    selectors = [normalize_selector(c, name) for c in chan]
    return PeriodicSequence.broadcast(selectors, horizon_period, name=name)


def selection_matrix(selector: Sequence[int], dim: int) -> np.ndarray:
    """
    Rows of the identity picking the selected channels.

    An empty selector picks every channel.

    Examples
    --------
    >>> selection_matrix((2, 0), 3)
    array([[0., 0., 1.],
           [1., 0., 0.]])
    """
    eye = np.eye(dim)
    if len(selector) == 0:
        return eye
    return eye[list(selector), :]


def shift_selector(selector: ChannelSelector, offset: int) -> ChannelSelector:
    """Shift selected channels by ``offset``; the all-channel selector is unchanged"""
    if len(selector) == 0:
        return selector
    return tuple(index + offset for index in selector)


def _periodic_ints(value: Any, horizon_period: HorizonPeriod) -> PeriodicSequence:
    if isinstance(value, PeriodicSequence):
        return value.resample(horizon_period)
    return PeriodicSequence.broadcast(int(value), horizon_period)


def shift_channel_sequence(chan: PeriodicSequence, offset: Any, span: Any = None) -> PeriodicSequence:
    """
    Shift a periodic channel selector by a constant or periodic offset.

    Parameters
    ----------
    chan : PeriodicSequence of ChannelSelector
    offset : int or PeriodicSequence of int
    span : int or PeriodicSequence of int, optional
        Number of channels an all-channel selector stands for. When given,
        all-channel selectors become the explicit range
        ``offset, ..., offset + span - 1``; otherwise they are unchanged.

    Raises
    ------
    IncompatibleSpecificationError
        If an all-channel selector would become an empty range.

    Examples
    --------
    >>> shift_channel_sequence(channel_sequence(None, (0, 1)), 2, span=3).values
    ((2, 3, 4),)
    """
    hp = chan.horizon_period
    offsets = _periodic_ints(offset, hp)
    if span is None:
        return PeriodicSequence([shift_selector(c, o) for c, o in zip(chan, offsets)], hp)
    spans = _periodic_ints(span, hp)
    placed = []
    for k, (selector, start, width) in enumerate(zip(chan, offsets, spans)):
        if len(selector):
            placed.append(shift_selector(selector, start))
        elif width == 0:
            raise IncompatibleSpecificationError(
                f"An all-channel selector covers no channels at step {k} and cannot be made explicit"
            )
        else:
            placed.append(tuple(range(start, start + width)))
    return PeriodicSequence(placed, hp)
