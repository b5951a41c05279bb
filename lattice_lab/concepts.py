from __future__ import annotations

from typing import Hashable, Iterable, Optional

from .graphs import Node
from .sets import ComparableSet


def _as_set(X: Optional[Iterable[Hashable]]) -> Optional[ComparableSet]:
    if X is None:
        return None
    return X if isinstance(X, ComparableSet) else ComparableSet(X)


class Concept(Node):
    """Lattice node holding a pair (set A, set B), e.g. (extent, intent).

    Either set may be None, meaning "not computed". Closed-set lattices only fill
    set A. Concept lattices look concepts up by set A.
    """

    def __init__(
        self,
        set_a: Optional[Iterable[Hashable]] = None,
        set_b: Optional[Iterable[Hashable]] = None,
    ):
        super().__init__()
        self.set_a: Optional[ComparableSet] = _as_set(set_a)
        self.set_b: Optional[ComparableSet] = _as_set(set_b)

    @property
    def extent(self) -> Optional[ComparableSet]:
        return self.set_a

    @property
    def intent(self) -> Optional[ComparableSet]:
        return self.set_b

    def has_set_a(self) -> bool:
        return self.set_a is not None

    def has_set_b(self) -> bool:
        return self.set_b is not None

    def put_set_a(self, X: Optional[Iterable[Hashable]]) -> None:
        self.set_a = _as_set(X)

    def put_set_b(self, X: Optional[Iterable[Hashable]]) -> None:
        self.set_b = _as_set(X)

    def contains_all_in_a(self, X: Iterable[Hashable]) -> bool:
        return self.set_a is not None and self.set_a.issuperset(X)

    def contains_all_in_b(self, X: Iterable[Hashable]) -> bool:
        return self.set_b is not None and self.set_b.issuperset(X)

    def copy(self) -> "Concept":
        """Fresh concept (new ident) with the same sets."""
        return Concept(self.set_a, self.set_b)

    def label(self) -> str:
        parts = []
        if self.set_a is not None:
            parts.append(" ".join(str(x) for x in self.set_a))
        if self.set_b is not None:
            parts.append(" ".join(str(x) for x in self.set_b))
        return " | ".join(parts)

    def __repr__(self) -> str:
        return f"Concept(A={self.set_a!r}, B={self.set_b!r})"
