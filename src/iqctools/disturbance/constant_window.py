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
Piecewise-Constant Disturbance

DisturbanceConstantWindow declares time steps at which the selected
channels of a discrete-time disturbance hold their previous value:

    d_k = d_{k-1}    for every k in window (and its periodic repetitions)

Window Convention
-----------------
Window entries are time indices in [0, h + p]. Index h + p denotes the
transition from the last step of one period to the first step of the next
and is stored as h, the position it occupies in the horizon_period. With
h == 0, index 0 denotes that same transition.

- Duplicate indices (after folding) are rejected.
- Index h with h > 0 relates the last non-periodic step to the first
  periodic step. It is rejected unless ``override`` is True.
- The wrap-around transition is accepted only when the window covers every
  periodic position, which describes a disturbance that is constant over the
  whole period.

Usage
-----
>>> d = DisturbanceConstantWindow("bias", [0], window=[1, 2, 3, 4], horizon_period=[0, 4])
>>> d.window
(0, 1, 2, 3)
>>> DisturbanceConstantWindow("zero").override
True
"""

from dataclasses import dataclass
from typing import Any, Tuple

import numpy as np

from iqctools.disturbance.base import Disturbance
from iqctools.types.core import HorizonPeriod, HorizonPeriodLike
from iqctools.utils.errors import ConstructionError
from iqctools.utils.horizon_period import PeriodicSequence, validate_horizon_period
from iqctools.utils.validation import channel_sequence, is_integral, validate_name


def _fold_window(window: Any, horizon_period: HorizonPeriod, override: bool, name: str) -> Tuple[int, ...]:
    horizon, period = horizon_period
    total = horizon + period
    if isinstance(window, np.ndarray):
        window = window.ravel().tolist()
    if not isinstance(window, (list, tuple, range)):
        window = [window]
    raw = []
    for index in window:
        if not is_integral(index):
            raise ConstructionError(f"window of '{name}' must contain integer time indices, got {index!r}")
        index = int(index)
        if index < 0 or index > total:
            raise ConstructionError(
                f"window index {index} of '{name}' is outside [0, {total}] for "
                f"horizon_period {list(horizon_period)}"
            )
        raw.append(index)
    if not raw:
        raise ConstructionError(f"window of '{name}' must not be empty")
    folded = [horizon if index == total else index for index in raw]
    if len(set(folded)) != len(folded):
        raise ConstructionError(f"window of '{name}' contains duplicate time indices: {raw}")
    if horizon > 0 and horizon in raw and not override:
        raise ConstructionError(
            f"window of '{name}' bridges the non-periodic and periodic portions at "
            f"time step {horizon}; pass override=True to allow it"
        )
    wraps = total in raw or (horizon == 0 and 0 in raw)
    if wraps and not set(range(horizon, total)) <= set(folded):
        raise ConstructionError(
            f"window of '{name}' bridges consecutive periods without covering the "
            f"whole period {list(range(horizon + 1, total + 1))}"
        )
    return tuple(sorted(folded))


@dataclass(frozen=True)
class DisturbanceConstantWindow(Disturbance):
    """
    Disturbance that is constant across a window of time steps.

    Parameters
    ----------
    name : str
    chan_in : selector, optional
        Channels held constant; the same selector must apply at every time
        step. Defaults to every channel.
    window : int or sequence of int
        Time indices k at which d_k = d_{k-1}; see the module docstring.
        Required whenever chan_in or horizon_period is given.
    horizon_period : [h, p], optional
        Defaults to [0, 1]
    override : bool
        Allow a window that bridges the non-periodic and periodic portions.
        Defaults to False, or True when only a name is given.

    Notes
    -----
    Called with a name only, the disturbance selects every channel, uses
    window (1,) over horizon_period [0, 1] and describes the zero signal.
    """

    name: str
    chan_in: Any = None
    window: Any = None
    horizon_period: Any = None
    override: Any = None

    _periodic_fields = ("chan_in",)

    def __post_init__(self):
        validate_name(self.name)
        if self.window is None:
            if self.chan_in is not None or self.horizon_period is not None:
                raise ConstructionError(
                    f"DisturbanceConstantWindow '{self.name}' requires a window when "
                    f"chan_in or horizon_period is given"
                )
            chan_in, window, hp = (), (1,), (0, 1)
            override = True if self.override is None else bool(self.override)
        else:
            chan_in, window = self.chan_in, self.window
            hp = validate_horizon_period(self.horizon_period)
            override = False if self.override is None else bool(self.override)
        chan_seq = channel_sequence(chan_in, hp, "chan_in")
        if not chan_seq.is_constant():
            raise ConstructionError(
                f"chan_in of DisturbanceConstantWindow '{self.name}' must be the same at every time step"
            )
        object.__setattr__(self, "horizon_period", hp)
        object.__setattr__(self, "chan_in", chan_seq)
        object.__setattr__(self, "window", _fold_window(window, hp, override, self.name))
        object.__setattr__(self, "override", override)

    @property
    def active(self) -> PeriodicSequence:
        """True at the time steps where the selected channels are held"""
        total = sum(self.horizon_period)
        return PeriodicSequence([k in self.window for k in range(total)], self.horizon_period)

    def match_horizon_period(self, horizon_period: HorizonPeriodLike) -> "DisturbanceConstantWindow":
        """
        Rewrite chan_in and the window over ``horizon_period``.

        Examples
        --------
        >>> d = DisturbanceConstantWindow("d", (), [1, 2, 4], [2, 5], override=True)
        >>> d.match_horizon_period([6, 10]).window
        (1, 2, 4, 7, 9, 12, 14)
        """
        hp = validate_horizon_period(horizon_period)
        if hp == self.horizon_period:
            return self
        active = self.active.resample(hp)
        window = tuple(k for k, held in enumerate(active) if held)
        return self._evolve(chan_in=self.chan_in.resample(hp), window=window, horizon_period=hp)

    def to_multiplier(self, dim_in, discrete: bool = True, **options: Any):
        """Default multiplier: MultiplierConstantWindow (option ``quad_time_varying``)"""
        from iqctools.multiplier.constant_window import MultiplierConstantWindow

        return MultiplierConstantWindow(self, dim_in, discrete=discrete, **options)
