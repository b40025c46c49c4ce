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
LFT Interconnection

Algebra of two uncertain LFTs over a common horizon_period.

Mathematical Background
-----------------------
Every interconnection starts from the block-diagonal stack of the two
operands with inputs ordered [w1; w2; d1; d2] and outputs ordered
[z1; z2; e1; e2]. A static input map T and output map R then describe how
the new performance channels d', e' are wired:

    parallel sum     d1 = d2 = d',   e' = e1 + e2
    blkdiag          d' = [d1; d2],  e' = [e1; e2]
    horzcat          d' = [d1; d2],  e' = e1 + e2
    vertcat          d1 = d2 = d',   e' = [e1; e2]

so that B = B_s T, C = R C_s and D = R D_s T. The series connection
L1 * L2 closes the loop d1 = e2, which is algebraic because e2 never depends
on d1:

    A = A_s + B_s E F,   B = (B_s + B_s E G) T
    C = C_s + D_s E F,   D = (D_s + D_s E G) T

where E injects d1 into the stacked input and [F G] is the e2 row block.

Uncertainty channels of the second operand follow those of the first. A
block appearing in both operands under the same name becomes a single
repeated block whose channels are made contiguous by a permutation.

When performance channels are concatenated, selectors of the second operand
are shifted past those of the first, and selectors covering all channels of
one operand are pinned to that operand's channels so they never spread to
the other. A default L2 disturbance facing explicit ones is kept as an
explicit disturbance over its own operand's inputs.
"""

from typing import Any, Callable, List, Tuple

import numpy as np

from iqctools.lft.sequences import SequenceDelta
from iqctools.utils.errors import IncompatibleSpecificationError
from iqctools.utils.horizon_period import PeriodicSequence, common_horizon_period
from iqctools.utils.matrices import blkdiag, permutation_matrix

# Operations that feed the same performance input to both operands
_SHARED_INPUT = ("add", "sub", "vertcat")
# Operations that sum the performance outputs of both operands
_SUMMED_OUTPUT = ("add", "sub", "horzcat")


# ============================================================================
# Helpers
# ============================================================================


def common_timestep(first: float, second: float) -> float:
    """
    Timestep of an interconnection.

    A discrete LFT with unspecified sample time (-1) adopts the sample time of
    the other operand.

    Raises
    ------
    IncompatibleSpecificationError
        If the operands live in different time domains or have different
        sample times.
    """
    if first == second:
        return first
    if first == -1 and second > 0:
        return second
    if second == -1 and first > 0:
        return first
    raise IncompatibleSpecificationError(
        f"Cannot interconnect LFTs with timesteps {first} and {second}"
    )


def merge_deltas(first: SequenceDelta, second: SequenceDelta) -> SequenceDelta:
    """Deltas of the first operand followed by new deltas of the second"""
    merged = list(first)
    for delta in second:
        for index, existing in enumerate(merged):
            if existing.name == delta.name:
                merged[index] = existing.combine(delta)
                break
        else:
            merged.append(delta)
    return SequenceDelta(merged)


def _channel_order(
    merged: SequenceDelta, first: SequenceDelta, second: SequenceDelta, k: int, dim: Callable
) -> List[int]:
    """
    Positions in [first channels; second channels] of the merged channels.

    ``dim(delta, k)`` selects the w or z dimension of a block.
    """
    def positions(sequence: SequenceDelta, base: int):
        out, offset = {}, base
        for delta in sequence:
            size = dim(delta, k)
            out[delta.name] = list(range(offset, offset + size))
            offset += size
        return out, offset

    first_pos, first_total = positions(first, 0)
    second_pos, _ = positions(second, first_total)
    order: List[int] = []
    for delta in merged:
        order.extend(first_pos.get(delta.name, []))
        order.extend(second_pos.get(delta.name, []))
    return order


def _stack(left, right, k: int) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """Block-diagonal stack reordered to inputs [w1; w2; d1; d2], outputs [z1; z2; e1; e2]"""
    w1, z1 = left.delta.dim_out(k), left.delta.dim_in(k)
    w2, z2 = right.delta.dim_out(k), right.delta.dim_in(k)
    m1, p1 = left.dim_in[k], left.dim_out[k]
    m2, p2 = right.dim_in[k], right.dim_out[k]

    a = blkdiag(left.a[k], right.a[k])
    b = blkdiag(left.b[k], right.b[k])
    c = blkdiag(left.c[k], right.c[k])
    d = blkdiag(left.d[k], right.d[k])

    in_order = (
        list(range(0, w1))
        + list(range(m1, m1 + w2))
        + list(range(w1, m1))
        + list(range(m1 + w2, m1 + m2))
    )
    out_order = (
        list(range(0, z1))
        + list(range(p1, p1 + z2))
        + list(range(z1, p1))
        + list(range(p1 + z2, p1 + p2))
    )
    return a, b[:, in_order], c[out_order, :], d[np.ix_(out_order, in_order)]


# ============================================================================
# Interconnection
# ============================================================================


def interconnect(left, right, operation: str):
    """
    Interconnect two Ulfts.

    Parameters
    ----------
    left, right : Ulft
    operation : {'add', 'sub', 'blkdiag', 'horzcat', 'vertcat', 'series'}
        For 'series', ``right`` feeds ``left``.

    Returns
    -------
    Ulft

    Raises
    ------
    IncompatibleSpecificationError
        On mismatched performance dimensions, time domains, or same-named
        deltas that cannot be combined.
    ConsistencyError
        If the operands' horizon_periods cannot be reconciled.
    """
    timestep = common_timestep(left.timestep, right.timestep)
    hp = common_horizon_period([left.horizon_period, right.horizon_period])
    left = left.match_horizon_period(hp)
    right = right.match_horizon_period(hp)
    deltas = merge_deltas(left.delta, right.delta)

    nd1, ne1 = left.performance_dim_in, left.performance_dim_out
    nd2, ne2 = right.performance_dim_in, right.performance_dim_out

    a_seq, b_seq, c_seq, d_seq = [], [], [], []
    for k in range(hp[0] + hp[1]):
        if operation in _SHARED_INPUT and nd1[k] != nd2[k]:
            raise IncompatibleSpecificationError(
                f"Cannot {operation} LFTs with {nd1[k]} and {nd2[k]} performance inputs at step {k}"
            )
        if operation in _SUMMED_OUTPUT and ne1[k] != ne2[k]:
            raise IncompatibleSpecificationError(
                f"Cannot {operation} LFTs with {ne1[k]} and {ne2[k]} performance outputs at step {k}"
            )
        if operation == "series" and nd1[k] != ne2[k]:
            raise IncompatibleSpecificationError(
                f"Cannot connect {ne2[k]} outputs to {nd1[k]} inputs at step {k}"
            )

        a, b, c, d = _stack(left, right, k)
        w = left.delta.dim_out(k) + right.delta.dim_out(k)
        z = left.delta.dim_in(k) + right.delta.dim_in(k)

        if operation == "series":
            a, b, c, d = _close_series(a, b, c, d, w, z, nd1[k], ne1[k], ne2[k])
        else:
            if operation in _SHARED_INPUT:
                shared = np.vstack([np.eye(nd1[k]), np.eye(nd1[k])])
                t_in = blkdiag(np.eye(w), shared)
            else:
                t_in = np.eye(w + nd1[k] + nd2[k])
            if operation in _SUMMED_OUTPUT:
                sign = -1.0 if operation == "sub" else 1.0
                summed = np.hstack([np.eye(ne1[k]), sign * np.eye(ne1[k])])
                r_out = blkdiag(np.eye(z), summed)
            else:
                r_out = np.eye(z + ne1[k] + ne2[k])
            b = b @ t_in
            c = r_out @ c
            d = r_out @ d @ t_in

        w_order = _channel_order(deltas, left.delta, right.delta, k, lambda delta, j: delta.dim_out[j])
        z_order = _channel_order(deltas, left.delta, right.delta, k, lambda delta, j: delta.dim_in[j])
        in_perm = permutation_matrix(w_order + list(range(w, d.shape[1])), d.shape[1])
        out_perm = permutation_matrix(z_order + list(range(z, d.shape[0])), d.shape[0])
        a_seq.append(a)
        b_seq.append(b @ in_perm.T)
        c_seq.append(out_perm @ c)
        d_seq.append(out_perm @ d @ in_perm.T)

    disturbance, performance = _merge_channels(left, right, operation)
    return type(left)(
        PeriodicSequence(a_seq, hp),
        PeriodicSequence(b_seq, hp),
        PeriodicSequence(c_seq, hp),
        PeriodicSequence(d_seq, hp),
        delta=deltas,
        horizon_period=hp,
        disturbance=disturbance,
        performance=performance,
        timestep=timestep,
    )


def _close_series(a, b, c, d, w, z, nd1, ne1, ne2):
    """Close d1 = e2 in the stacked system and drop e2"""
    m, p = b.shape[1], c.shape[0]
    d1_cols = list(range(w, w + nd1))
    kept_cols = [j for j in range(m) if j not in d1_cols]
    e2_rows = list(range(z + ne1, z + ne1 + ne2))
    kept_rows = list(range(0, z + ne1))

    inject = np.eye(m)[:, d1_cols]
    keep = np.eye(m)[:, kept_cols]
    f, g = c[e2_rows, :], d[e2_rows, :]

    a_new = a + b @ inject @ f
    b_new = (b + b @ inject @ g) @ keep
    c_new = c + d @ inject @ f
    d_new = (d + d @ inject @ g) @ keep
    return a_new, b_new, c_new[kept_rows, :], d_new[kept_rows, :]


def _union_selectors(first: PeriodicSequence, second: PeriodicSequence) -> PeriodicSequence:
    """Per-step union of two selectors; an all-channel selector absorbs the other"""
    joined = []
    for a, b in zip(first, second):
        joined.append(() if not a or not b else tuple(sorted(set(a) | set(b))))
    return PeriodicSequence(joined, first.horizon_period)


def _join(collection_type, items: List[Any], fields: Tuple[str, ...]):
    """
    Collect items from both operands.

    Same-named items that differ only in their channel selectors describe one
    object spanning channels of both operands and are joined.
    """
    joined: List[Any] = []
    for item in items:
        for index, existing in enumerate(joined):
            if existing.name != item.name:
                continue
            if existing == item:
                break
            if type(existing) is type(item) and existing._evolve(**{f: getattr(item, f) for f in fields}) == item:
                joined[index] = existing._evolve(
                    **{f: _union_selectors(getattr(existing, f), getattr(item, f)) for f in fields}
                )
                break
            raise IncompatibleSpecificationError(
                f"{collection_type.item_kind} named '{item.name}' already exists with a different definition"
            )
        else:
            joined.append(item)
    return collection_type(joined)


def _is_empty_side(item, field: str, span: PeriodicSequence) -> bool:
    """True if ``item`` selects every channel of an operand that has none at every step"""
    selectors = getattr(item, field)
    return all(len(selectors[k]) == 0 and span[k] == 0 for k in range(len(span.values)))


def _placed_disturbances(collection, offset, span) -> List[Any]:
    """Disturbances of one operand written over the concatenated inputs"""
    placed = []
    for item in collection:
        if _is_empty_side(item, "chan_in", span):
            continue
        placed.append(item.shift_channels(offset, span))
    return placed


def _merge_channels(left, right, operation: str) -> Tuple[Any, Any]:
    """
    Disturbance and performance collections of an interconnection.

    When inputs (outputs) are concatenated, selectors of the second operand
    are shifted past the first operand's channels, and all-channel selectors
    of either operand become the explicit range of that operand's channels.
    A default disturbance facing explicit ones is kept as an explicit L2
    disturbance over its own operand's inputs. A default performance gives
    way to explicit ones.
    """
    if operation == "series":
        return right.disturbance, left.performance

    stacked_in = operation not in _SHARED_INPUT
    stacked_out = operation not in _SUMMED_OUTPUT
    nd1, ne1 = left.performance_dim_in, left.performance_dim_out
    nd2, ne2 = right.performance_dim_in, right.performance_dim_out

    if not stacked_in or (left.disturbance.is_default and right.disturbance.is_default):
        disturbance = left.disturbance.union(right.disturbance)
    else:
        items = _placed_disturbances(left.disturbance, 0, nd1) + _placed_disturbances(right.disturbance, nd1, nd2)
        disturbance = _join(type(left.disturbance), items, ("chan_in",))
        if not len(disturbance):
            disturbance = type(left.disturbance).default(left.horizon_period)

    if not (stacked_in or stacked_out) or (left.performance.is_default and right.performance.is_default):
        performance = left.performance.union(right.performance)
    else:
        items = []
        for collection, offset_in, span_in, offset_out, span_out in (
            (left.performance, 0, nd1, 0, ne1),
            (right.performance, nd1, nd2, ne1, ne2),
        ):
            if collection.is_default:
                continue
            for item in collection:
                items.append(
                    item.shift_channels(
                        offset_in if stacked_in else 0,
                        offset_out if stacked_out else 0,
                        span_in if stacked_in else None,
                        span_out if stacked_out else None,
                    )
                )
        fields = ("chan_in", "chan_out")
        performance = _join(type(left.performance), items, fields)
    return disturbance, performance
