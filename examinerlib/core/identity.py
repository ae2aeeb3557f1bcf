"""Identity-keyed visited sets.

Cycle detection must never merge two distinct objects that merely compare
equal, so membership is keyed on ``id()``. The objects themselves are held
for the lifetime of the set so an id cannot be recycled mid-traversal (an
element produced by a generator could otherwise be freed and its id reused).
"""

from typing import Any, Dict, Tuple


class IdentitySet:
    """Set of objects compared by identity."""

    def __init__(self):
        self._members: Dict[int, Any] = {}

    def add(self, obj: Any) -> None:
        self._members[id(obj)] = obj

    def __contains__(self, obj: Any) -> bool:
        return id(obj) in self._members

    def __len__(self) -> int:
        return len(self._members)

    def clear(self) -> None:
        self._members.clear()


class IdentityPairSet:
    """Set of unordered object pairs compared by identity.

    ``(a, b)`` and ``(b, a)`` are the same member.
    """

    def __init__(self):
        self._pairs: Dict[Tuple[int, int], Tuple[Any, Any]] = {}

    @staticmethod
    def _key(a: Any, b: Any) -> Tuple[int, int]:
        left, right = id(a), id(b)
        return (left, right) if left <= right else (right, left)

    def add(self, a: Any, b: Any) -> None:
        self._pairs[self._key(a, b)] = (a, b)

    def contains(self, a: Any, b: Any) -> bool:
        return self._key(a, b) in self._pairs

    def __len__(self) -> int:
        return len(self._pairs)

    def clear(self) -> None:
        self._pairs.clear()
