"""
hnswdb - An in-process HNSW index for approximate nearest neighbor search.

Example:
    >>> from hnswdb import HNSWIndex
    >>> import numpy as np
    >>> 
    >>> # Create index
    >>> index = HNSWIndex(dimension=128, metric="cosine", seed=42)
    >>> 
    >>> # Add vectors
    >>> index.add(1, np.random.randn(128))
    >>> 
    >>> # Search
    >>> results = index.search(np.random.randn(128), k=5)
    >>> 
    >>> # Persist
    >>> blob = index.serialize()
    >>> restored = HNSWIndex.deserialize(blob)
"""

from .core import (
    # Graph
    HNSWNode,
    GraphStore,
    # Exceptions
    HNSWDBError,
    ConfigurationError,
    DimensionMismatchError,
    ConflictError,
    NotFoundError,
    StorageError,
    SerializationError,
)

from .distance import (
    # Metrics
    euclidean,
    cosine_distance,
    cosine_similarity,
    # Registry
    get_metric,
    get_metric_fn,
    list_metrics,
    DistanceMetric,
)

from .index import (
    HNSWIndex,
    HNSWConfig,
    SearchResult,
    IndexStats,
    BoundedPriorityQueue,
    Neighbor,
)

from .config import Settings, HNSWSettings, load_config

__version__ = "0.1.0"
__author__ = "hnswdb Team"

__all__ = [
    # Index
    "HNSWIndex",
    "HNSWConfig",
    "SearchResult",
    "IndexStats",
    "BoundedPriorityQueue",
    "Neighbor",
    # Graph
    "HNSWNode",
    "GraphStore",
    # Config
    "Settings",
    "HNSWSettings",
    "load_config",
    # Distance
    "euclidean",
    "cosine_distance",
    "cosine_similarity",
    "get_metric",
    "get_metric_fn",
    "list_metrics",
    "DistanceMetric",
    # Exceptions
    "HNSWDBError",
    "ConfigurationError",
    "DimensionMismatchError",
    "ConflictError",
    "NotFoundError",
    "StorageError",
    "SerializationError",
]
