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
Named Mergeable Collections

Ordered collections keyed by name with structural-equality merge semantics.

Merge Rule
----------
- A new name is appended at the end.
- A name that is already present must refer to a structurally equal object,
  in which case the addition is a no-op (idempotent merge).
- A name that is already present with a different definition raises
  IncompatibleSpecificationError.

A collection may be flagged as holding only its default entry. Merging any
explicit entry into such a collection replaces the default.

Usage
-----
>>> seq = NamedSequence([PerformanceL2Induced("a")])
>>> seq = seq.merge([PerformanceL2Induced("b"), PerformanceL2Induced("a")])
>>> seq.names
('a', 'b')
"""

from typing import Any, Callable, Iterable, Iterator, List, Optional, Tuple

from iqctools.utils.errors import IncompatibleSpecificationError


class NamedSequence:
    """
    Ordered collection of named, immutable objects.

    Parameters
    ----------
    items : iterable
        Objects exposing a ``name`` attribute.
    is_default : bool
        True if the collection holds only a default entry that should give
        way to explicitly added entries.

    Raises
    ------
    IncompatibleSpecificationError
        If two items share a name but are not equal.
    """

    item_kind = "object"

    def __init__(self, items: Iterable[Any] = (), is_default: bool = False):
        merged: List[Any] = []
        for item in items:
            self._merge_one(merged, item)
        self._items: Tuple[Any, ...] = tuple(merged)
        self.is_default = bool(is_default) and len(self._items) > 0

    def _merge_one(self, merged: List[Any], item: Any) -> None:
        for existing in merged:
            if existing.name == item.name:
                if existing != item:
                    raise IncompatibleSpecificationError(
                        f"{self.item_kind} named '{item.name}' already exists with a "
                        f"different definition"
                    )
                return
        merged.append(item)

    def _new(self, items: Iterable[Any], is_default: bool = False) -> "NamedSequence":
        return type(self)(items, is_default=is_default)

    # ------------------------------------------------------------------------
    # Collection protocol
    # ------------------------------------------------------------------------

    @property
    def items(self) -> Tuple[Any, ...]:
        return self._items

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(item.name for item in self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._items)

    def __getitem__(self, key):
        if isinstance(key, str):
            for item in self._items:
                if item.name == key:
                    return item
            raise KeyError(key)
        return self._items[key]

    def __contains__(self, name: object) -> bool:
        return name in self.names

    def get(self, name: str, default: Optional[Any] = None) -> Optional[Any]:
        for item in self._items:
            if item.name == name:
                return item
        return default

    # ------------------------------------------------------------------------
    # Merge and transform
    # ------------------------------------------------------------------------

    def merge(self, items: Iterable[Any]) -> "NamedSequence":
        """
        Append items by name, unifying exact duplicates.

        Returns
        -------
        NamedSequence
            New collection; ``self`` is unchanged.

        Raises
        ------
        IncompatibleSpecificationError
            If an item shares a name with a different existing item.
        """
        items = list(items)
        if not items:
            return self
        base: List[Any] = [] if self.is_default else list(self._items)
        for item in items:
            self._merge_one(base, item)
        return self._new(base)

    def union(self, other: "NamedSequence") -> "NamedSequence":
        """
        Merge two collections.

        Default entries are kept only when both collections hold nothing but
        defaults.
        """
        if self.is_default and other.is_default:
            return self._new(list(self._items) + list(other._items), is_default=True)
        if other.is_default:
            return self
        return self.merge(other._items)

    def map(self, func: Callable[[Any], Any]) -> "NamedSequence":
        """Apply ``func`` to every item, keeping the default flag"""
        return self._new([func(item) for item in self._items], is_default=self.is_default)

    def filter(self, predicate: Callable[[Any], bool]) -> "NamedSequence":
        return self._new([item for item in self._items if predicate(item)], is_default=self.is_default)

    def match_horizon_period(self, horizon_period) -> "NamedSequence":
        """Resample every item to ``horizon_period``"""
        return self.map(lambda item: item.match_horizon_period(horizon_period))

    # ------------------------------------------------------------------------
    # Comparison
    # ------------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NamedSequence) or type(self) is not type(other):
            return NotImplemented
        return self._items == other._items

    def __hash__(self):
        return hash(self._items)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self._items)!r})"
