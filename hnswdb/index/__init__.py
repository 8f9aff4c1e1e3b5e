"""
HNSW index for hnswdb.

Example:
    >>> from hnswdb.index import HNSWIndex
    >>> 
    >>> index = HNSWIndex(dimension=128, M=16, ef=200, seed=42)
    >>> index.add(1, vector)
    >>> results = index.search(query, k=10)
"""

from .base import (
    IndexConfig,
    IndexStats,
    SearchResult,
)

from .heap import (
    BoundedPriorityQueue,
    Neighbor,
    nearest_first,
    furthest_first,
)
from .hnsw import HNSWIndex, HNSWConfig

__all__ = [
    # Base
    "IndexConfig",
    "IndexStats",
    "SearchResult",
    # Heap
    "BoundedPriorityQueue",
    "Neighbor",
    "nearest_first",
    "furthest_first",
    # HNSW
    "HNSWIndex",
    "HNSWConfig",
]
