"""
Custom exceptions for hnswdb.
"""


class HNSWDBError(Exception):
    """Base exception for hnswdb."""
    pass


class ConfigurationError(HNSWDBError):
    """Invalid index parameter, metric, node id or vector."""
    pass


class DimensionMismatchError(ConfigurationError):
    """Vector dimension doesn't match index dimension."""
    pass


class ConflictError(HNSWDBError):
    """Node with given ID already exists."""
    pass


class NotFoundError(HNSWDBError):
    """Node with given ID not found."""
    pass


class StorageError(HNSWDBError):
    """Error related to persisting an index."""
    pass


class SerializationError(StorageError):
    """Truncated, malformed or inconsistent serialized index."""
    pass
