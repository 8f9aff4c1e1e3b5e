"""
Utility functions for hnswdb.
"""

from .validation import (
    validate_node_id,
    validate_positive_int,
    validate_vector,
    validate_vectors,
    MAX_NODE_ID,
    MAX_UINT32,
)
from .logging import setup_logger, get_logger, LogContext

__all__ = [
    "validate_node_id",
    "validate_positive_int",
    "validate_vector",
    "validate_vectors",
    "MAX_NODE_ID",
    "MAX_UINT32",
    "setup_logger",
    "get_logger",
    "LogContext",
]
