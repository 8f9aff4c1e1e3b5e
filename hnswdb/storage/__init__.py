"""
Persistence of HNSW indexes as flat binary snapshots.

Example:
    >>> from hnswdb.storage import serialize_graph, deserialize_graph
    >>> data = index.serialize()
    >>> header, graph = deserialize_graph(data)
"""

from .format import IndexHeader, NodeRecord, NO_NODE, METRIC_TAGS
from .serialization import serialize_graph, deserialize_graph

__all__ = [
    "IndexHeader",
    "NodeRecord",
    "NO_NODE",
    "METRIC_TAGS",
    "serialize_graph",
    "deserialize_graph",
]
