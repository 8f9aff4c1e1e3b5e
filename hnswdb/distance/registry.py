"""
Distance metric registry and factory.

Provides a unified interface for accessing distance functions
by name.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Dict, List, Optional, Union
from dataclasses import dataclass
import numpy as np
from numpy.typing import NDArray

from ..core.exceptions import ConfigurationError
from .metrics import (
    euclidean,
    cosine_distance,
    query_euclidean,
    query_cosine,
)


# Type aliases
Vector = NDArray[np.floating]
DistanceFunction = Callable[[Vector, Vector], float]
QueryDistanceFunction = Callable[[Vector, NDArray], NDArray]


class DistanceMetric(str, Enum):
    """Enumeration of supported distance metrics."""
    
    COSINE = "cosine"
    EUCLIDEAN = "euclidean"
    
    def __str__(self) -> str:
        return self.value


@dataclass
class MetricInfo:
    """Information about a distance metric."""
    
    name: str
    function: DistanceFunction
    query_function: QueryDistanceFunction
    min_value: float
    max_value: Optional[float]  # None if unbounded
    description: str
    requires_nonzero: bool = False
    
    def __repr__(self) -> str:
        return f"MetricInfo(name='{self.name}')"


# =============================================================================
# METRIC REGISTRY
# =============================================================================

class MetricRegistry:
    """
    Registry for distance metrics.
    
    Allows looking up metrics by name or alias.
    """
    
    def __init__(self):
        self._metrics: Dict[str, MetricInfo] = {}
        self._aliases: Dict[str, str] = {}
        self._register_builtins()
    
    def _register_builtins(self) -> None:
        """Register built-in distance metrics."""
        
        self.register(
            MetricInfo(
                name=DistanceMetric.EUCLIDEAN.value,
                function=euclidean,
                query_function=query_euclidean,
                min_value=0.0,
                max_value=None,
                description="Euclidean (L2) distance",
            ),
            aliases=["l2", "euclidean_distance"]
        )
        
        self.register(
            MetricInfo(
                name=DistanceMetric.COSINE.value,
                function=cosine_distance,
                query_function=query_cosine,
                min_value=0.0,
                max_value=2.0,
                description="Cosine distance (1 - cosine similarity)",
                requires_nonzero=True,
            ),
            aliases=["cosine_distance"]
        )
    
    def register(
        self,
        info: MetricInfo,
        aliases: Optional[List[str]] = None
    ) -> None:
        """
        Register a distance metric.
        
        Args:
            info: MetricInfo object
            aliases: Optional list of alternative names
        """
        self._metrics[info.name] = info
        
        if aliases:
            for alias in aliases:
                self._aliases[alias] = info.name
    
    def get(self, name: Union[str, DistanceMetric]) -> MetricInfo:
        """
        Get metric info by name.
        
        Args:
            name: Metric name, alias or DistanceMetric member
            
        Returns:
            MetricInfo object
            
        Raises:
            ConfigurationError: If metric not found
        """
        if isinstance(name, DistanceMetric):
            name = name.value
        
        if not isinstance(name, str):
            raise ConfigurationError(
                f"Metric must be a string, got {type(name).__name__}"
            )
        
        canonical = self._aliases.get(name.lower(), name.lower())
        
        if canonical not in self._metrics:
            available = list(self._metrics.keys())
            raise ConfigurationError(
                f"Unknown metric: '{name}'. Available: {available}"
            )
        
        return self._metrics[canonical]
    
    def list_metrics(self) -> List[str]:
        """List all registered metric names."""
        return list(self._metrics.keys())
    
    def __contains__(self, name: str) -> bool:
        """Check if a metric is registered."""
        if isinstance(name, DistanceMetric):
            name = name.value
        if not isinstance(name, str):
            return False
        canonical = self._aliases.get(name.lower(), name.lower())
        return canonical in self._metrics


# =============================================================================
# GLOBAL REGISTRY AND CONVENIENCE FUNCTIONS
# =============================================================================

# Global registry instance
_registry = MetricRegistry()


def get_metric(name: Union[str, DistanceMetric]) -> MetricInfo:
    """
    Get metric info by name.
    
    Example:
        >>> info = get_metric("euclidean")
        >>> print(info.description)
        'Euclidean (L2) distance'
    """
    return _registry.get(name)


def get_metric_fn(name: Union[str, DistanceMetric]) -> DistanceFunction:
    """
    Get distance function by metric name.
    
    Example:
        >>> dist_fn = get_metric_fn("cosine")
        >>> distance = dist_fn(vec_a, vec_b)
    """
    return _registry.get(name).function


def list_metrics() -> List[str]:
    """List all available metric names."""
    return _registry.list_metrics()


def metric_exists(name: str) -> bool:
    """Check if a metric name or alias is registered."""
    return name in _registry
