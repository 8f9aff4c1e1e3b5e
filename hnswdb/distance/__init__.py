"""
Distance metrics for vector similarity search.

Supported Metrics:
    - euclidean: L2 distance (smaller = more similar)
    - cosine: Cosine distance (smaller = more similar)

Example:
    >>> from hnswdb.distance import euclidean, get_metric_fn
    >>> import numpy as np
    >>> 
    >>> a = np.array([1.0, 2.0, 3.0])
    >>> b = np.array([4.0, 5.0, 6.0])
    >>> 
    >>> # Direct function call
    >>> dist = euclidean(a, b)
    >>> 
    >>> # Using registry
    >>> metric_fn = get_metric_fn("cosine")
    >>> dist = metric_fn(a, b)
"""

from .metrics import (
    euclidean,
    cosine_distance,
    cosine_similarity,
    query_euclidean,
    query_cosine,
)

from .registry import (
    DistanceMetric,
    MetricInfo,
    get_metric,
    get_metric_fn,
    list_metrics,
    metric_exists,
)

__all__ = [
    "euclidean",
    "cosine_distance",
    "cosine_similarity",
    "query_euclidean",
    "query_cosine",
    "DistanceMetric",
    "MetricInfo",
    "get_metric",
    "get_metric_fn",
    "list_metrics",
    "metric_exists",
]
