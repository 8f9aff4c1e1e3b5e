"""
Core components for hnswdb.
"""

from .graph import HNSWNode, GraphStore
from .exceptions import (
    HNSWDBError,
    ConfigurationError,
    DimensionMismatchError,
    ConflictError,
    NotFoundError,
    StorageError,
    SerializationError,
)

__all__ = [
    # Graph
    "HNSWNode",
    "GraphStore",
    # Exceptions
    "HNSWDBError",
    "ConfigurationError",
    "DimensionMismatchError",
    "ConflictError",
    "NotFoundError",
    "StorageError",
    "SerializationError",
]
