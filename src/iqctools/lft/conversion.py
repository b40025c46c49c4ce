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
Conversion to Ulft

Builds Ulfts from matrices, state-space tuples, python-control systems and
uncertainty blocks so they can take part in LFT algebra.

Usage
-----
>>> import control
>>> from iqctools import DeltaSlti, to_lft
>>>
>>> g = to_lft(control.tf([1], [1, -0.5], True))     # 1 / (z - 0.5)
>>> delta = to_lft(DeltaSlti("p", 2))                # e = p d
>>> gain = to_lft(3.0)                               # static 1 x 1 gain
"""

from typing import Any, Optional

import control
import numpy as np

from iqctools.delta.base import Delta
from iqctools.lft.ulft import Ulft, validate_timestep
from iqctools.types.core import HorizonPeriodLike, Timestep
from iqctools.utils.errors import ConstructionError
from iqctools.utils.horizon_period import PeriodicSequence
from iqctools.utils.matrices import as_matrix


def static_lft(
    value: Any,
    horizon_period: Optional[HorizonPeriodLike] = None,
    timestep: Timestep = -1,
) -> Ulft:
    """
    Memoryless Ulft e = value d.

    Parameters
    ----------
    value : scalar, matrix or PeriodicSequence of matrices
    horizon_period : [h, p], optional
    timestep : float

    Examples
    --------
    >>> static_lft([[1.0, 2.0]]).dim_in[0]
    2
    """
    if isinstance(value, PeriodicSequence):
        hp = value.horizon_period if horizon_period is None else horizon_period
        d = value.resample(hp).map(lambda entry: as_matrix(entry, "d"))
    else:
        hp = horizon_period
        d = PeriodicSequence.broadcast(as_matrix(value, "d"), hp if hp is not None else (0, 1))
        hp = d.horizon_period
    return Ulft(
        d.map(lambda m: np.zeros((0, 0))),
        d.map(lambda m: np.zeros((0, m.shape[1]))),
        d.map(lambda m: np.zeros((m.shape[0], 0))),
        d,
        horizon_period=hp,
        timestep=timestep,
    )


def _delta_lft(delta: Delta, timestep: Timestep) -> Ulft:
    """Ulft with inputs [w; d], outputs [z; e], z = d and e = w"""
    hp = delta.horizon_period
    d_seq = []
    for k in range(hp[0] + hp[1]):
        n_w, n_z = delta.dim_out[k], delta.dim_in[k]
        d_seq.append(
            np.block(
                [
                    [np.zeros((n_z, n_w)), np.eye(n_z)],
                    [np.eye(n_w), np.zeros((n_w, n_z))],
                ]
            )
        )
    d = PeriodicSequence(d_seq, hp)
    return Ulft(
        d.map(lambda m: np.zeros((0, 0))),
        d.map(lambda m: np.zeros((0, m.shape[1]))),
        d.map(lambda m: np.zeros((m.shape[0], 0))),
        d,
        delta=[delta],
        horizon_period=hp,
        timestep=timestep,
    )


def _control_timestep(system: control.LTI, fallback: Optional[Timestep]) -> Timestep:
    dt = system.dt
    if dt is None:
        return 0 if fallback is None else fallback
    if dt is True:
        return -1
    return validate_timestep(dt)


def _control_lft(system: control.LTI, horizon_period, timestep: Optional[Timestep]) -> Ulft:
    if isinstance(system, control.TransferFunction):
        try:
            system = control.tf2ss(system)
        except control.ControlMIMONotImplemented as err:
            raise ConstructionError(
                "Converting a MIMO transfer function requires a state-space realization; "
                "pass a control.StateSpace instead"
            ) from err
    if not isinstance(system, control.StateSpace):
        raise ConstructionError(f"Cannot convert {type(system).__name__} to an LFT")
    dt = _control_timestep(system, timestep)
    if dt == 0 and horizon_period is not None and tuple(horizon_period) != (0, 1):
        raise ConstructionError("A continuous-time system cannot be periodic")
    return Ulft(
        np.asarray(system.A, dtype=float),
        np.asarray(system.B, dtype=float),
        np.asarray(system.C, dtype=float),
        np.asarray(system.D, dtype=float),
        horizon_period=horizon_period,
        timestep=dt,
    )


def to_lft(
    value: Any,
    horizon_period: Optional[HorizonPeriodLike] = None,
    timestep: Optional[Timestep] = None,
) -> Ulft:
    """
    Convert an object to a Ulft.

    Parameters
    ----------
    value : Ulft, Delta, control.StateSpace, control.TransferFunction,
            (a, b, c, d) tuple, matrix or scalar
    horizon_period : [h, p], optional
        Target horizon_period; the object's own one when omitted.
    timestep : float, optional
        Time domain for objects that do not carry one (-1 when omitted).
        python-control systems keep their own ``dt``.

    Returns
    -------
    Ulft

    Raises
    ------
    ConstructionError
        If the object cannot be converted.
    """
    if isinstance(value, Ulft):
        return value if horizon_period is None else value.match_horizon_period(horizon_period)
    if isinstance(value, Delta):
        lft = _delta_lft(value, -1 if timestep is None else timestep)
        return lft if horizon_period is None else lft.match_horizon_period(horizon_period)
    if isinstance(value, control.LTI):
        return _control_lft(value, horizon_period, timestep)
    if isinstance(value, tuple) and len(value) == 4:
        a, b, c, d = value
        return Ulft(a, b, c, d, horizon_period=horizon_period, timestep=-1 if timestep is None else timestep)
    return static_lft(value, horizon_period=horizon_period, timestep=-1 if timestep is None else timestep)
