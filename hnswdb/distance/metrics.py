"""
Core distance and similarity metric implementations.

All functions are optimized using NumPy vectorized operations.
Distance functions return smaller values for more similar vectors.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray


# Type aliases
Vector = NDArray[np.floating]
VectorBatch = NDArray[np.floating]


# =============================================================================
# SINGLE VECTOR DISTANCE FUNCTIONS
# =============================================================================

def euclidean(a: Vector, b: Vector) -> float:
    """
    Compute Euclidean (L2) distance between two vectors.
    
    Formula: sqrt(sum((a_i - b_i)^2))
    
    Args:
        a: First vector
        b: Second vector
        
    Returns:
        Euclidean distance (>= 0, smaller = more similar)
        
    Example:
        >>> a = np.array([0.0, 0.0])
        >>> b = np.array([3.0, 4.0])
        >>> euclidean(a, b)
        5.0
    """
    return float(np.sqrt(np.sum((a - b) ** 2)))


def cosine_similarity(a: Vector, b: Vector) -> float:
    """
    Compute cosine similarity between two vectors.
    
    Formula: (a · b) / (||a|| * ||b||)
    
    Args:
        a: First vector
        b: Second vector
        
    Returns:
        Cosine similarity in range [-1, 1] (larger = more similar)
        
    Raises:
        ZeroDivisionError: If either vector has zero magnitude
    """
    denominator = np.linalg.norm(a) * np.linalg.norm(b)
    if denominator == 0.0:
        raise ZeroDivisionError(
            "cosine similarity is undefined for zero-magnitude vectors"
        )
    
    similarity = float(np.dot(a, b) / denominator)
    # Clamp rounding noise so distances stay within [0, 2]
    return min(1.0, max(-1.0, similarity))


def cosine_distance(a: Vector, b: Vector) -> float:
    """
    Compute cosine distance between two vectors.
    
    Formula: 1 - cosine_similarity(a, b)
    
    Args:
        a: First vector
        b: Second vector
        
    Returns:
        Cosine distance in range [0, 2] (smaller = more similar)
        
    Example:
        >>> a = np.array([1.0, 0.0])
        >>> b = np.array([0.0, 1.0])
        >>> cosine_distance(a, b)
        1.0
    """
    return 1.0 - cosine_similarity(a, b)


# =============================================================================
# QUERY TO COLLECTION
# =============================================================================

def query_euclidean(query: Vector, collection: VectorBatch) -> NDArray:
    """
    Euclidean distances from one query to every row of a collection.
    
    Computed element-wise rather than through the dot-product identity so
    the values agree with euclidean() for the same pair.
    """
    return np.sqrt(np.sum((collection - query) ** 2, axis=1))


def query_cosine(query: Vector, collection: VectorBatch) -> NDArray:
    """Cosine distances from one query to every row of a collection."""
    q_norm = np.linalg.norm(query)
    c_norms = np.linalg.norm(collection, axis=1)
    
    denominators = q_norm * c_norms
    if np.any(denominators == 0.0):
        raise ZeroDivisionError(
            "cosine similarity is undefined for zero-magnitude vectors"
        )
    
    similarities = (collection @ query) / denominators
    similarities = np.clip(similarities, -1.0, 1.0)
    return 1.0 - similarities
