from __future__ import annotations

from functools import total_ordering
from typing import Any, FrozenSet, Hashable, Iterable, Iterator, Optional, Tuple


@total_ordering
class ComparableSet:
    """Immutable set of comparable elements with a total order.

    Elements are kept sorted. Two sets compare lexicographically on their sorted
    element sequences, so a strict prefix is smaller: {1,2} < {1,2,3} < {1,3} < {2}.
    This is NOT the inclusion order; use issubset/issuperset for that.
    """

    __slots__ = ("_items", "_set")

    def __init__(self, elements: Iterable[Hashable] = ()):
        s = frozenset(elements)
        self._set: FrozenSet[Hashable] = s
        self._items: Tuple[Any, ...] = tuple(sorted(s))

    # ----------------------------
    # container protocol
    # ----------------------------

    def __iter__(self) -> Iterator[Any]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, x: object) -> bool:
        return x in self._set

    def __bool__(self) -> bool:
        return bool(self._items)

    def __hash__(self) -> int:
        return hash(self._set)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ComparableSet):
            return NotImplemented
        return self._items == other._items

    def __lt__(self, other: "ComparableSet") -> bool:
        if not isinstance(other, ComparableSet):
            return NotImplemented
        return self._items < other._items

    def __repr__(self) -> str:
        return "{" + ", ".join(repr(x) for x in self._items) + "}"

    # ----------------------------
    # set algebra (always returns new sets)
    # ----------------------------

    def first(self) -> Optional[Any]:
        return self._items[0] if self._items else None

    def items(self) -> Tuple[Any, ...]:
        return self._items

    def frozen(self) -> FrozenSet[Hashable]:
        return self._set

    def union(self, other: Iterable[Hashable]) -> "ComparableSet":
        return ComparableSet(self._set.union(other))

    def difference(self, other: Iterable[Hashable]) -> "ComparableSet":
        return ComparableSet(self._set.difference(other))

    def intersection(self, other: Iterable[Hashable]) -> "ComparableSet":
        return ComparableSet(self._set.intersection(other))

    def add(self, x: Hashable) -> "ComparableSet":
        return ComparableSet(self._set | {x})

    def remove(self, x: Hashable) -> "ComparableSet":
        return ComparableSet(self._set - {x})

    def issubset(self, other: Iterable[Hashable]) -> bool:
        return self._set.issubset(other)

    def issuperset(self, other: Iterable[Hashable]) -> bool:
        return self._set.issuperset(other)

    def __or__(self, other: Iterable[Hashable]) -> "ComparableSet":
        return self.union(other)

    def __sub__(self, other: Iterable[Hashable]) -> "ComparableSet":
        return self.difference(other)

    def __and__(self, other: Iterable[Hashable]) -> "ComparableSet":
        return self.intersection(other)
