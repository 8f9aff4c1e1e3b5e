"""
Pytest fixtures for hnswdb tests.
"""

import random

import pytest
import numpy as np

from hnswdb import HNSWIndex


@pytest.fixture
def dimension() -> int:
    """Default dimension for test vectors."""
    return 32


@pytest.fixture
def random_vector(dimension: int) -> np.ndarray:
    """Generate a random vector."""
    return np.random.randn(dimension).astype(np.float32)


@pytest.fixture
def random_vectors(dimension: int) -> np.ndarray:
    """Generate random vectors (200 vectors)."""
    rng = np.random.default_rng(7)
    return rng.standard_normal((200, dimension)).astype(np.float32)


@pytest.fixture
def seeded_rng() -> random.Random:
    """Deterministic random source for level assignment."""
    return random.Random(1234)


@pytest.fixture
def populated_index(dimension: int, random_vectors: np.ndarray) -> HNSWIndex:
    """Euclidean index holding random_vectors under IDs 0..199."""
    index = HNSWIndex(dimension=dimension, metric="euclidean", M=8, ef=64, seed=42)
    index.add_batch(range(len(random_vectors)), random_vectors)
    return index


@pytest.fixture
def square_index() -> HNSWIndex:
    """Four 2D points: three near the origin and one far away."""
    index = HNSWIndex(dimension=2, metric="euclidean", M=16, seed=0)
    index.add(1, [0.0, 0.0])
    index.add(2, [1.0, 0.0])
    index.add(3, [0.0, 1.0])
    index.add(4, [10.0, 10.0])
    return index


@pytest.fixture
def brute_force():
    """Exact k nearest row indices under euclidean distance."""
    def _search(vectors: np.ndarray, query: np.ndarray, k: int) -> set:
        distances = np.sqrt(np.sum((vectors - query) ** 2, axis=1))
        return set(np.argsort(distances)[:k].tolist())
    return _search
