"""
Comparator-ordered binary heap used for HNSW candidate management.

The same structure serves as the search frontier (nearest candidate at the
root) and as the bounded best-k result set (furthest retained result at the
root, so it can be evicted in O(log n)). Only the comparator differs.
"""

from __future__ import annotations

import heapq
from functools import cmp_to_key
from typing import Callable, Generic, Iterator, List, NamedTuple, TypeVar


T = TypeVar("T")

# compare(a, b) < 0 means `a` sits closer to the root than `b`
Comparator = Callable[[T, T], int]


class Neighbor(NamedTuple):
    """A node ID with its distance to some reference vector."""
    distance: float
    id: int


def nearest_first(a: Neighbor, b: Neighbor) -> int:
    """Min-heap ordering: smallest distance at the root."""
    if a.distance < b.distance:
        return -1
    if a.distance > b.distance:
        return 1
    return 0


def furthest_first(a: Neighbor, b: Neighbor) -> int:
    """Max-heap ordering: largest distance at the root."""
    return nearest_first(b, a)


class BoundedPriorityQueue(Generic[T]):
    """
    Binary heap ordered by a caller-supplied comparator.

    The queue itself never drops items; callers that need a capacity
    (ef or k) pop the root when ``len(queue)`` exceeds it.

    Example:
        >>> results = BoundedPriorityQueue(furthest_first)
        >>> for n in candidates:
        ...     results.push(n)
        ...     if len(results) > ef:
        ...         results.pop()  # drop the current worst

    Complexity:
        - push / pop: O(log n)
        - peek / size: O(1)
    """

    __slots__ = ["_heap", "_key", "compare"]

    def __init__(self, compare: Comparator) -> None:
        self.compare = compare
        self._key = cmp_to_key(compare)
        self._heap: List = []

    def push(self, item: T) -> None:
        """Insert an item."""
        heapq.heappush(self._heap, self._key(item))

    def pop(self) -> T:
        """
        Remove and return the root item.

        Raises:
            IndexError: If the queue is empty
        """
        if not self._heap:
            raise IndexError("pop from empty priority queue")
        return heapq.heappop(self._heap).obj

    def peek(self) -> T:
        """
        Return the root item without removing it.

        Raises:
            IndexError: If the queue is empty
        """
        if not self._heap:
            raise IndexError("peek at empty priority queue")
        return self._heap[0].obj

    def size(self) -> int:
        """Number of queued items."""
        return len(self._heap)

    def items(self) -> List[T]:
        """Snapshot of the queued items in heap (not sorted) order."""
        return [wrapped.obj for wrapped in self._heap]

    def sorted(self) -> List[T]:
        """Queued items ordered from root to leaf under the comparator."""
        return sorted(self.items(), key=self._key)

    def __len__(self) -> int:
        return len(self._heap)

    def __bool__(self) -> bool:
        return bool(self._heap)

    def __iter__(self) -> Iterator[T]:
        return iter(self.items())

    def __repr__(self) -> str:
        return f"BoundedPriorityQueue(size={len(self._heap)})"
