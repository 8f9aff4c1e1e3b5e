"""
Configuration and result types shared by the index.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict

from ..distance import get_metric
from ..utils.validation import validate_positive_int


@dataclass
class IndexConfig:
    """Base configuration for indices."""

    dimension: int
    metric: str = "euclidean"

    def validate(self) -> None:
        """
        Validate configuration.

        Normalizes ``metric`` to its canonical name, so aliases such as
        ``"l2"`` are accepted.

        Raises:
            ConfigurationError: If dimension or metric is invalid
        """
        self.dimension = validate_positive_int(self.dimension, "dimension")
        self.metric = get_metric(self.metric).name


@dataclass
class IndexStats:
    """Statistics about an index."""

    index_type: str
    dimension: int
    metric: str
    vector_count: int
    memory_bytes: int

    # Optional type-specific stats
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "index_type": self.index_type,
            "dimension": self.dimension,
            "metric": self.metric,
            "vector_count": self.vector_count,
            "memory_bytes": self.memory_bytes,
            "memory_mb": round(self.memory_bytes / (1024 * 1024), 2),
            **self.extra,
        }


@dataclass
class SearchResult:
    """
    Result from an index search.

    Attributes:
        id: Node ID
        distance: Distance from query
        score: Similarity score (higher = more similar)
    """

    id: int
    distance: float
    score: float = 0.0

    def __post_init__(self):
        # Compute score from distance if not set
        if self.score == 0.0 and self.distance >= 0:
            self.score = 1.0 / (1.0 + self.distance)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "distance": self.distance,
            "score": self.score,
        }

    def __repr__(self) -> str:
        return f"SearchResult(id={self.id}, distance={self.distance:.4f})"
