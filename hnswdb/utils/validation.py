"""
Input validation utilities.
"""

from typing import Any

import numpy as np
from numpy.typing import NDArray

from ..core.exceptions import ConfigurationError, DimensionMismatchError


# Largest value representable in an unsigned 32-bit slot of the binary format
MAX_UINT32 = 0xFFFFFFFF

# 0xFFFFFFFF marks an empty slot on disk, so it can never be a node ID
MAX_NODE_ID = MAX_UINT32 - 1


def validate_node_id(id: Any) -> int:
    """
    Validate a node ID.

    Args:
        id: The ID to validate

    Returns:
        The validated ID as a plain int

    Raises:
        ConfigurationError: If ID is not an integer in [0, MAX_NODE_ID]
    """
    # bool is an int subclass
    if isinstance(id, bool) or not isinstance(id, (int, np.integer)):
        raise ConfigurationError(
            f"Node ID must be an integer, got {type(id).__name__}"
        )

    id = int(id)
    if id < 0 or id > MAX_NODE_ID:
        raise ConfigurationError(
            f"Node ID out of range: {id} (must be 0..{MAX_NODE_ID})"
        )

    return id


def validate_positive_int(value: Any, name: str, max_value: int = MAX_UINT32) -> int:
    """
    Validate a strictly positive integer parameter (dimension, M, ef, k).

    Raises:
        ConfigurationError: If value is not an int in [1, max_value]
    """
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise ConfigurationError(
            f"{name} must be an integer, got {type(value).__name__}"
        )

    value = int(value)
    if value < 1:
        raise ConfigurationError(f"{name} must be at least 1, got {value}")

    if value > max_value:
        raise ConfigurationError(f"{name} too large: {value} (max {max_value})")

    return value


def validate_vector(
    vector: Any,
    dimension: int,
    require_nonzero: bool = False,
) -> NDArray[np.float32]:
    """
    Validate a single vector and convert it to a float32 array.

    Args:
        vector: Array-like vector
        dimension: Expected dimension
        require_nonzero: Reject zero-magnitude vectors (cosine metric)

    Returns:
        A new 1D float32 array

    Raises:
        DimensionMismatchError: If the vector is not 1D of length `dimension`
        ConfigurationError: If the vector has non-finite or all-zero components
    """
    try:
        array = np.array(vector, dtype=np.float32)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Vector is not numeric: {e}") from e

    if array.ndim != 1:
        raise DimensionMismatchError(f"Vector must be 1D, got {array.ndim}D")

    if len(array) != dimension:
        raise DimensionMismatchError(
            f"Vector dimension {len(array)} != index dimension {dimension}"
        )

    if not np.all(np.isfinite(array)):
        raise ConfigurationError("Vector contains NaN or infinite values")

    if require_nonzero and not np.any(array):
        raise ConfigurationError(
            "Zero-magnitude vector is undefined under cosine distance"
        )

    return array


def validate_vectors(
    vectors: Any,
    dimension: int,
    require_nonzero: bool = False,
) -> NDArray[np.float32]:
    """Validate a batch of vectors (n, dimension) row by row."""
    try:
        array = np.array(vectors, dtype=np.float32)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Vectors are not numeric: {e}") from e

    if array.ndim != 2:
        raise DimensionMismatchError(f"Vectors must be 2D, got {array.ndim}D")

    for row in array:
        validate_vector(row, dimension, require_nonzero)

    return array
