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
Matrix Helpers

Small numpy helpers that behave well with zero-sized blocks, which appear
whenever an LFT or a filter has no states or no channels at a time step.
"""

from typing import Any, Sequence

import numpy as np

from iqctools.utils.errors import ConstructionError


def as_matrix(value: Any, name: str = "matrix") -> np.ndarray:
    """
    Convert to a 2-D float array.

    Scalars become 1 x 1 matrices; arrays with more than two dimensions or
    exactly one dimension are rejected.
    """
    try:
        arr = np.asarray(value, dtype=float)
    except (TypeError, ValueError) as err:
        raise ConstructionError(f"{name} must be a real matrix, got {value!r}") from err
    if arr.ndim == 0:
        return arr.reshape(1, 1)
    if arr.ndim != 2:
        raise ConstructionError(f"{name} must be 2-D, got shape {arr.shape}")
    return arr


def blkdiag(*blocks: np.ndarray) -> np.ndarray:
    """
    Block-diagonal matrix of possibly rectangular or empty blocks.

    Examples
    --------
    >>> blkdiag(np.ones((1, 2)), np.zeros((0, 3))).shape
    (1, 5)
    """
    rows = sum(block.shape[0] for block in blocks)
    cols = sum(block.shape[1] for block in blocks)
    out = np.zeros((rows, cols))
    r = c = 0
    for block in blocks:
        out[r : r + block.shape[0], c : c + block.shape[1]] = block
        r += block.shape[0]
        c += block.shape[1]
    return out


def hstack(blocks: Sequence[np.ndarray], rows: int) -> np.ndarray:
    """Horizontal stack that tolerates an empty block list"""
    if not blocks:
        return np.zeros((rows, 0))
    return np.hstack(blocks)


def vstack(blocks: Sequence[np.ndarray], cols: int) -> np.ndarray:
    """Vertical stack that tolerates an empty block list"""
    if not blocks:
        return np.zeros((0, cols))
    return np.vstack(blocks)


def permutation_matrix(order: Sequence[int], size: int) -> np.ndarray:
    """
    Matrix P with (P x)[i] = x[order[i]].

    Examples
    --------
    >>> permutation_matrix([1, 0], 2) @ np.array([3.0, 4.0])
    array([4., 3.])
    """
    return np.eye(size)[list(order), :]
