"""
Ordered, duplicate-free collection of targeted package names.
"""

from __future__ import annotations

from typing import Iterable, Iterator, List, Set


class TargetSet:
    """Package names to resolve and output.

    Names keep the position of their first insertion; adding a name twice
    is a no-op. The sequence doubles as the work queue of the dependency
    resolver, which only ever appends to it.

    Example::

        >>> targets = TargetSet(["cygwin", "bash"])
        >>> targets.add("cygwin")
        False
        >>> targets.sorted_names()
        ['bash', 'cygwin']
    """

    __slots__ = ("_order", "_members")

    def __init__(self, names: Iterable[str] = ()) -> None:
        self._order: List[str] = []
        self._members: Set[str] = set()
        self.extend(names)

    def add(self, name: str) -> bool:
        """Append ``name`` unless present. Returns True if it was added."""
        if name in self._members:
            return False
        self._members.add(name)
        self._order.append(name)
        return True

    def extend(self, names: Iterable[str]) -> int:
        """Append each new name; returns how many were added."""
        return sum(1 for name in names if self.add(name))

    def sorted_names(self) -> List[str]:
        """Names in lexicographic order, as emitted to the user."""
        return sorted(self._order)

    def __getitem__(self, index: int) -> str:
        return self._order[index]

    def __contains__(self, name: object) -> bool:
        return name in self._members

    def __iter__(self) -> Iterator[str]:
        return iter(self._order)

    def __len__(self) -> int:
        return len(self._order)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, TargetSet):
            return self._order == other._order
        return NotImplemented

    def __repr__(self) -> str:
        return f"TargetSet({self._order!r})"
