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
Multiplier Base Class

A multiplier Pi = Psi* Q Psi describes the Delta, Disturbance or Performance
it was built from with a quadratic constraint on filtered signals.

Mathematical Background
-----------------------
The filter Psi is a state-space system without uncertainty. It maps the
signal associated with the source object, [z; w] for a delta, d for a
disturbance and [d; e] for a performance, to psi. The quad Q_k is a
symmetric matrix whose entries may be cvxpy decision variables, and the
constraints restrict Q so that

    sum_k psi_k' Q_k psi_k >= 0

for every signal of the source's class (delta and disturbance multipliers).
Performance multipliers encode sum_k |e_k|^2 - gamma^2 |d_k|^2. Every
multiplier enters the dissipation inequality with a plus sign.

Lifecycle
---------
Created by ``to_multiplier`` or directly by the user, resampled to the
analysis horizon_period, populated with numeric values by the solver, and
read back with ``realize``.
"""

import copy
from abc import ABC
from typing import Any, Dict, Iterable, List, Optional, Sequence

import cvxpy as cp
import numpy as np

from iqctools.types.analysis import RealizedMultiplier
from iqctools.types.core import HorizonPeriodLike
from iqctools.utils.errors import ConsistencyError
from iqctools.utils.horizon_period import PeriodicSequence, is_refinement, validate_horizon_period
from iqctools.utils.matrices import blkdiag


# ============================================================================
# Helpers shared by the variants
# ============================================================================


def periodic_dims(value: Any, horizon_period, name: str) -> PeriodicSequence:
    """Per-step dimensions from an int or a PeriodicSequence of ints"""
    if isinstance(value, PeriodicSequence):
        return value.resample(horizon_period).map(int)
    return PeriodicSequence.broadcast(int(value), horizon_period, name=name)


def block_diagonal(*blocks: Any) -> Any:
    """
    Block-diagonal matrix of square numpy or cvxpy blocks.

    Empty blocks are skipped. The result is a numpy array when every block
    is numeric.
    """
    blocks = [block for block in blocks if block.shape[0] > 0]
    if all(isinstance(block, np.ndarray) for block in blocks):
        return blkdiag(*blocks) if blocks else np.zeros((0, 0))
    sizes = [block.shape[0] for block in blocks]
    rows = []
    for i, block in enumerate(blocks):
        row = [block if i == j else np.zeros((sizes[i], sizes[j])) for j in range(len(blocks))]
        rows.append(row)
    return cp.bmat(rows)


def filter_lft(a, b, c, d, horizon_period, discrete: bool):
    """
    Ulft without uncertainty realizing a multiplier filter.

    Each matrix argument is a single array or a per-step list.
    """
    from iqctools.lft.ulft import Ulft

    def sequence(value):
        if isinstance(value, list):
            return PeriodicSequence(value, horizon_period)
        return PeriodicSequence.broadcast(np.asarray(value, dtype=float), horizon_period)

    return Ulft(
        sequence(a),
        sequence(b),
        sequence(c),
        sequence(d),
        horizon_period=horizon_period,
        timestep=-1 if discrete else 0,
    )


def evaluate(entry: Any) -> np.ndarray:
    """Numeric value of a quad entry after solving"""
    if isinstance(entry, cp.Expression):
        value = entry.value
        if value is None:
            return np.full(entry.shape, np.nan)
        return np.asarray(value, dtype=float).reshape(entry.shape)
    return np.asarray(entry, dtype=float)


def _numeric(variable: Any) -> Any:
    if isinstance(variable, (list, tuple)):
        return [_numeric(entry) for entry in variable]
    if isinstance(variable, cp.Expression):
        return evaluate(variable)
    return variable


def step_variables(
    make: Any, horizon_period, time_varying: bool, shapes: Sequence[Any]
) -> List[Any]:
    """
    One decision variable per step, or one shared by every step.

    ``make(k, shape)`` creates the variable for step k.
    """
    total = horizon_period[0] + horizon_period[1]
    if time_varying:
        return [make(k, shapes[k]) for k in range(total)]
    shared = make(0, shapes[0])
    return [shared] * total


# ============================================================================
# Multiplier
# ============================================================================


class Multiplier(ABC):
    """
    Abstract base class for IQC multipliers.

    Parameters
    ----------
    source : Delta, Disturbance or Performance
        Object the multiplier describes; supplies ``name`` and
        ``horizon_period``.
    filter : Ulft
        Filter Psi from the source's signal to psi.
    quad : PeriodicSequence
        Quadratic form at every step.
    discrete : bool
    constraints : iterable of cvxpy constraints
    decision_variables : dict, optional
    objective : cvxpy expression, optional
        Quantity to minimize (performance multipliers only).

    Attributes
    ----------
    name, family, horizon_period, discrete, filter, quad, constraints,
    decision_variables, objective
    """

    def __init__(
        self,
        source: Any,
        filter: Any,
        quad: PeriodicSequence,
        discrete: bool,
        constraints: Iterable[Any] = (),
        decision_variables: Optional[Dict[str, Any]] = None,
        objective: Any = None,
    ):
        self.source = source
        self.name = source.name
        self.family = source.family
        self.horizon_period = source.horizon_period
        self.discrete = bool(discrete)
        self.filter = filter
        self.quad = quad
        self.constraints: List[Any] = list(constraints)
        self.decision_variables: Dict[str, Any] = dict(decision_variables or {})
        self.objective = objective

    @property
    def dim_in(self) -> PeriodicSequence:
        """Size of the filter input at every step"""
        return self.filter.dim_in

    @property
    def dim_out(self) -> PeriodicSequence:
        """Size of psi at every step"""
        return self.filter.dim_out

    def performance_bound(self) -> Optional[float]:
        """Certified performance after solving; None for non-performance multipliers"""
        return None

    def match_horizon_period(self, horizon_period: HorizonPeriodLike) -> "Multiplier":
        """
        Rewrite the multiplier over a refinement of its horizon_period.

        Decision variables are shared between steps that map to the same
        step of the previous horizon_period.

        Raises
        ------
        ConsistencyError
            If ``horizon_period`` does not refine the current one.
        """
        hp = validate_horizon_period(horizon_period)
        if hp == self.horizon_period:
            return self
        if not is_refinement(self.horizon_period, hp):
            raise ConsistencyError(
                f"Multiplier '{self.name}' over {list(self.horizon_period)} cannot be rewritten "
                f"over {list(hp)}"
            )
        new = copy.copy(self)
        new.source = self.source.match_horizon_period(hp)
        new.horizon_period = hp
        new.filter = self.filter.match_horizon_period(hp)
        new.quad = PeriodicSequence([self.quad[k] for k in range(hp[0] + hp[1])], hp)
        return new

    def realize(self) -> RealizedMultiplier:
        """
        Evaluate the multiplier at the current values of its variables.

        Returns
        -------
        RealizedMultiplier
        """
        variables = {key: _numeric(variable) for key, variable in self.decision_variables.items()}
        return RealizedMultiplier(
            name=self.name,
            family=self.family,
            horizon_period=self.horizon_period,
            filter=self.filter,
            quad=[evaluate(entry) for entry in self.quad],
            decision_variables=variables,
        )

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(name={self.name!r}, horizon_period={list(self.horizon_period)}, "
            f"discrete={self.discrete}, dim_in={self.dim_in.to_list()}, dim_out={self.dim_out.to_list()})"
        )
