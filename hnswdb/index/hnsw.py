"""
HNSW (Hierarchical Navigable Small World) Index Implementation.

HNSW is a graph-based approximate nearest neighbor algorithm that
provides logarithmic search complexity with high recall.

Key Features:
    - O(log n) search complexity
    - Incremental insertions and deletions
    - Single-blob binary serialization

Every layer keeps at most M neighbors per node, layer 0 included, and
neighbor lists overflow by evicting their single furthest member.

Reference:
    Malkov, Y. A., & Yashunin, D. A. (2018).
    "Efficient and robust approximate nearest neighbor search using
    Hierarchical Navigable Small World graphs."
    https://arxiv.org/abs/1603.09320
"""

from __future__ import annotations

import math
import random
from collections import defaultdict
from dataclasses import dataclass
from typing import (
    TYPE_CHECKING,
    Any,
    Dict,
    Iterable,
    Iterator,
    List,
    Optional,
    Set,
    Tuple,
)

import numpy as np
from numpy.typing import NDArray

from ..core.exceptions import ConfigurationError, ConflictError, NotFoundError
from ..core.graph import GraphStore, HNSWNode
from ..distance import DistanceMetric, get_metric
from ..storage import IndexHeader, deserialize_graph, serialize_graph
from ..utils.logging import get_logger, setup_logger
from ..utils.validation import (
    validate_node_id,
    validate_positive_int,
    validate_vector,
    validate_vectors,
)
from .base import IndexConfig, IndexStats, SearchResult
from .heap import BoundedPriorityQueue, Neighbor, furthest_first, nearest_first

if TYPE_CHECKING:
    from ..config.settings import Settings


logger = get_logger(__name__)

# Probability that a node is promoted one more layer
LEVEL_PROBABILITY = 1.0 / math.e


@dataclass
class HNSWConfig(IndexConfig):
    """Configuration for HNSW index."""

    # Maximum number of connections per node per layer
    M: int = 16

    # Beam width during construction, and the default beam width for search
    ef: int = 200

    # Random seed for reproducibility
    seed: Optional[int] = None

    def __post_init__(self):
        super().validate()
        self.M = validate_positive_int(self.M, "M")
        self.ef = validate_positive_int(self.ef, "ef")


class HNSWIndex:
    """
    HNSW (Hierarchical Navigable Small World) Index.

    A graph-based index providing fast approximate nearest neighbor search
    over integer-identified vectors.

    Example:
        >>> index = HNSWIndex(dimension=128, metric="cosine", seed=42)
        >>>
        >>> # Add vectors
        >>> for i in range(10000):
        ...     index.add(i, vectors[i])
        >>>
        >>> # Search
        >>> results = index.search(query, k=10)
        >>>
        >>> # Persist and restore
        >>> blob = index.serialize()
        >>> restored = HNSWIndex.deserialize(blob)

    Parameters:
        M: Max connections per node per layer (default: 16)
            - Higher M = better recall, more memory, slower construction

        ef: Beam width (default: 200)
            - Used as-is during construction
            - Default search width; can be overridden per query

    Complexity:
        - Construction: O(n * log(n) * M * ef)
        - Search: O(log(n) * ef)
        - Memory: O(n * M)
    """

    def __init__(
        self,
        dimension: int,
        metric: str = "euclidean",
        M: int = 16,
        ef: int = 200,
        seed: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize HNSW index.

        Args:
            dimension: Vector dimension
            metric: Distance metric name or alias
            M: Max connections per node per layer
            ef: Beam width for construction and default search
            seed: Random seed for level assignment
            rng: Random source for level assignment (overrides seed)

        Raises:
            ConfigurationError: If any parameter is invalid
        """
        self.config = HNSWConfig(
            dimension=dimension,
            metric=metric,
            M=M,
            ef=ef,
            seed=seed,
        )

        # Distance functions
        info = get_metric(self.config.metric)
        self._metric = DistanceMetric(info.name)
        self._distance_fn = info.function
        self._query_distance_fn = info.query_function
        self._require_nonzero = info.requires_nonzero

        # Graph structure
        self._graph = GraphStore(self.config.dimension)

        # Random number generator
        self._rng = rng if rng is not None else random.Random(seed)

        # Statistics
        self._n_distance_computations = 0

    @classmethod
    def from_settings(
        cls,
        settings: "Settings",
        rng: Optional[random.Random] = None,
    ) -> "HNSWIndex":
        """
        Create an index from loaded settings.

        Example:
            >>> from hnswdb.config import load_config
            >>> index = HNSWIndex.from_settings(load_config())

        Also configures the package logger at ``settings.log_level``.
        """
        setup_logger("hnswdb", level=settings.log_level)
        return cls(
            dimension=settings.dimension,
            metric=settings.metric,
            M=settings.hnsw_config.M,
            ef=settings.hnsw_config.ef,
            seed=settings.hnsw_config.seed,
            rng=rng,
        )

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def dimension(self) -> int:
        return self.config.dimension

    @property
    def metric(self) -> str:
        return self._metric.value

    @property
    def size(self) -> int:
        return self._graph.size

    @property
    def entry_point(self) -> Optional[int]:
        """Current entry point ID."""
        return self._graph.entry_point

    @property
    def max_level(self) -> int:
        """Current maximum level in the graph."""
        return self._graph.max_level

    @property
    def graph(self) -> GraphStore:
        """Underlying graph store (read-only use)."""
        return self._graph

    def set_ef(self, ef: int) -> None:
        """
        Set the beam width.

        Affects later insertions and searches that do not pass ``ef``.

        Args:
            ef: New ef value
        """
        self.config.ef = validate_positive_int(ef, "ef")

    # =========================================================================
    # CORE ALGORITHMS
    # =========================================================================

    def _random_level(self) -> int:
        """
        Generate a random level for a new node.

        Geometric distribution: P(level >= l) = e^-l. The draw is not
        capped by the current max level; that is how the graph grows.
        """
        level = 0
        while self._rng.random() < LEVEL_PROBABILITY:
            level += 1
        return level

    def _distance(self, id1: int, id2: int) -> float:
        """Compute distance between two nodes."""
        self._n_distance_computations += 1
        return self._distance_fn(
            self._graph.nodes[id1].vector,
            self._graph.nodes[id2].vector,
        )

    def _distance_to_query(self, query: NDArray, id: int) -> float:
        """Compute distance from query to a node."""
        self._n_distance_computations += 1
        return self._distance_fn(query, self._graph.nodes[id].vector)

    def _greedy_closest(self, query: NDArray, start: Neighbor, level: int) -> Neighbor:
        """
        Greedy walk on a single layer.

        Moves to a strictly closer neighbor until no neighbor of the
        current node improves on it.
        """
        best = start
        changed = True
        while changed:
            changed = False
            for neighbor_id in self._graph.nodes[best.id].get_neighbors(level):
                dist = self._distance_to_query(query, neighbor_id)
                if dist < best.distance:
                    best = Neighbor(dist, neighbor_id)
                    changed = True
        return best

    def _search_layer(
        self,
        query: NDArray,
        entry: Neighbor,
        ef: int,
        level: int,
        visited: Optional[Set[int]] = None,
    ) -> List[Neighbor]:
        """
        Beam search on a single layer.

        Args:
            query: Query vector
            entry: Starting node with its distance to the query
            ef: Number of results to keep
            level: Layer to search
            visited: Set to record visited IDs in (optional)

        Returns:
            Up to ef neighbors sorted by ascending distance
        """
        if visited is None:
            visited = set()
        visited.add(entry.id)

        # Frontier: nearest first. Results: worst retained at the root.
        candidates: BoundedPriorityQueue[Neighbor] = BoundedPriorityQueue(nearest_first)
        results: BoundedPriorityQueue[Neighbor] = BoundedPriorityQueue(furthest_first)
        candidates.push(entry)

        while candidates:
            current = candidates.pop()

            if len(results) >= ef and current.distance > results.peek().distance:
                break

            if len(results) < ef or current.distance < results.peek().distance:
                results.push(current)
                if len(results) > ef:
                    results.pop()

            for neighbor_id in self._graph.nodes[current.id].get_neighbors(level):
                if neighbor_id in visited:
                    continue
                visited.add(neighbor_id)
                candidates.push(
                    Neighbor(self._distance_to_query(query, neighbor_id), neighbor_id)
                )

        return sorted(results)

    def _evict_furthest(self, owner_id: int, level: int) -> None:
        """Drop the neighbor furthest from the owner at a layer."""
        neighbors = self._graph.nodes[owner_id].neighbors[level]
        furthest = max(neighbors, key=lambda nid: self._distance(owner_id, nid))
        self._graph.unlink(owner_id, furthest, level)

    def _scan_unvisited(
        self,
        query: NDArray,
        found: List[Neighbor],
        visited: Set[int],
        wanted: int,
    ) -> List[Neighbor]:
        """
        Top up a short result list by scanning every unvisited node.

        Deletions can split layer 0 into pieces the beam cannot reach.
        """
        shortfall = wanted - len(found)
        remaining = [node for node in self._graph if node.id not in visited]

        logger.debug(
            f"Beam search reached {len(found)} of {wanted} wanted nodes; "
            f"scanning {len(remaining)} unvisited nodes"
        )

        ids = [node.id for node in remaining]
        matrix = np.stack([node.vector for node in remaining])
        distances = self._query_distance_fn(query, matrix)
        self._n_distance_computations += len(ids)

        order = np.argsort(distances, kind="stable")[:shortfall]
        extra = [Neighbor(float(distances[i]), ids[i]) for i in order]

        return sorted(found + extra)

    # =========================================================================
    # ADD OPERATIONS
    # =========================================================================

    def add(self, id: int, vector: NDArray) -> None:
        """
        Add a vector to the index.

        Args:
            id: Unique node ID
            vector: Vector to add

        Raises:
            ConfigurationError: If the ID or vector is invalid
            DimensionMismatchError: If the vector has the wrong dimension
            ConflictError: If the ID already exists
        """
        id = validate_node_id(id)
        if id in self._graph:
            raise ConflictError(f"Node {id} already exists in index")

        vector = validate_vector(
            vector, self.config.dimension, require_nonzero=self._require_nonzero
        )

        self._insert(id, vector)

    def _insert(self, id: int, vector: NDArray[np.float32]) -> None:
        """Insert a validated node and wire it into every layer it reaches."""
        graph = self._graph
        M = self.config.M

        # First node
        if graph.entry_point is None:
            graph.add_node(HNSWNode(id, vector, 0))
            graph.set_entry_point(id)
            return

        level = self._random_level()

        # Traverse from top to node's level + 1
        current = Neighbor(
            self._distance_to_query(vector, graph.entry_point), graph.entry_point
        )
        for lc in range(graph.max_level, level, -1):
            current = self._greedy_closest(vector, current, lc)

        graph.add_node(HNSWNode(id, vector, level))

        # Insert at each level from level down to 0
        for lc in range(min(level, graph.max_level), -1, -1):
            candidates = self._search_layer(vector, current, self.config.ef, lc)

            for neighbor in candidates[:M]:
                graph.link(id, neighbor.id, lc)
                graph.link(neighbor.id, id, lc)
                if len(graph.nodes[neighbor.id].neighbors[lc]) > M:
                    self._evict_furthest(neighbor.id, lc)

            current = candidates[0]

        # Update entry point if new node has higher level
        if level > graph.max_level:
            logger.debug(
                f"Node {id} becomes entry point, max_level {graph.max_level} -> {level}"
            )
            graph.set_entry_point(id)

    def add_batch(self, ids: Iterable[int], vectors: NDArray) -> int:
        """
        Add multiple vectors to the index.

        Every row is validated before anything is inserted, so a bad
        row leaves the index unchanged.

        Args:
            ids: Unique node IDs
            vectors: Array of vectors (n, dimension)

        Returns:
            Number of vectors added
        """
        ids = [validate_node_id(id) for id in ids]
        if not ids and len(vectors) == 0:
            return 0

        vectors = validate_vectors(
            vectors, self.config.dimension, require_nonzero=self._require_nonzero
        )
        n = len(ids)

        if len(vectors) != n:
            raise ConfigurationError(f"Number of ids ({n}) != vectors ({len(vectors)})")

        seen: Set[int] = set()
        for id in ids:
            if id in self._graph or id in seen:
                raise ConflictError(f"Node {id} already exists in index")
            seen.add(id)

        for i in range(n):
            self._insert(ids[i], vectors[i].copy())

        return n

    # =========================================================================
    # SEARCH OPERATIONS
    # =========================================================================

    def search(
        self,
        query: NDArray,
        k: int = 10,
        ef: Optional[int] = None,
    ) -> List[SearchResult]:
        """
        Search for k nearest neighbors.

        Args:
            query: Query vector
            k: Number of results
            ef: Override the configured beam width (optional)

        Returns:
            Up to k SearchResult, sorted by distance. Fewer than k only
            when the index holds fewer than k nodes.

        Raises:
            ConfigurationError: If k, ef or the query is invalid
            DimensionMismatchError: If the query has the wrong dimension
        """
        k = validate_positive_int(k, "k")
        if ef is not None:
            ef = validate_positive_int(ef, "ef")

        query = validate_vector(
            query, self.config.dimension, require_nonzero=self._require_nonzero
        )

        if self.size == 0:
            return []

        ef = max(k, ef or self.config.ef)
        graph = self._graph

        # Start from entry point
        current = Neighbor(
            self._distance_to_query(query, graph.entry_point), graph.entry_point
        )

        # Traverse from top level to level 1
        for level in range(graph.max_level, 0, -1):
            current = self._greedy_closest(query, current, level)

        # Search at level 0 with ef
        visited: Set[int] = set()
        candidates = self._search_layer(query, current, ef, 0, visited)

        wanted = min(k, self.size)
        if len(candidates) < wanted:
            candidates = self._scan_unvisited(query, candidates, visited, wanted)

        return [
            SearchResult(
                id=neighbor.id,
                distance=neighbor.distance,
                score=1.0 / (1.0 + neighbor.distance),
            )
            for neighbor in candidates[:k]
        ]

    def search_batch(
        self,
        queries: NDArray,
        k: int = 10,
        ef: Optional[int] = None,
    ) -> List[List[SearchResult]]:
        """
        Search with multiple queries.

        Args:
            queries: Array of query vectors (n, dimension)
            k: Number of results per query
            ef: Override the configured beam width

        Returns:
            List of result lists
        """
        queries = validate_vectors(
            queries, self.config.dimension, require_nonzero=self._require_nonzero
        )
        return [self.search(q, k=k, ef=ef) for q in queries]

    # =========================================================================
    # REMOVE OPERATIONS
    # =========================================================================

    def remove(self, id: int) -> None:
        """
        Remove a vector from the index.

        Every edge into and out of the node is dropped; no replacement
        edges are added. If the node was the entry point, the remaining
        node with the highest level (lowest ID on ties) takes over.

        Args:
            id: Node ID to remove

        Raises:
            ConfigurationError: If the ID is not a valid node ID
            NotFoundError: If the ID is not in the index
        """
        id = validate_node_id(id)
        graph = self._graph
        if id not in graph:
            raise NotFoundError(f"Node {id} not found")

        graph.detach(id)

        if id == graph.entry_point:
            new_entry = graph.elect_entry_point(exclude=id)
            logger.debug(
                f"Entry point {id} removed; new entry point {new_entry}, "
                f"max_level {graph.max_level}"
            )

        graph.remove_node(id)

    def remove_batch(self, ids: Iterable[int]) -> int:
        """
        Remove multiple vectors.

        All IDs are checked before anything is removed.

        Args:
            ids: Node IDs

        Returns:
            Number removed

        Raises:
            NotFoundError: If any ID is not in the index
            ConfigurationError: If an ID is invalid or appears more than once
        """
        ids = [validate_node_id(id) for id in ids]

        seen: Set[int] = set()
        for id in ids:
            if id not in self._graph:
                raise NotFoundError(f"Node {id} not found")
            if id in seen:
                raise ConfigurationError(f"Node {id} listed more than once")
            seen.add(id)

        for id in ids:
            self.remove(id)

        return len(ids)

    # =========================================================================
    # GET OPERATIONS
    # =========================================================================

    def _require_node(self, id: int) -> HNSWNode:
        node = self._graph.get(id)
        if node is None:
            raise NotFoundError(f"Node {id} not found")
        return node

    def get_node(self, id: int) -> Optional[HNSWNode]:
        """Get a node by ID, or None."""
        return self._graph.get(id)

    def get_vector(self, id: int) -> NDArray[np.float32]:
        """Get a copy of a stored vector."""
        return self._require_node(id).vector.copy()

    def contains(self, id: int) -> bool:
        """Check if ID exists."""
        return id in self._graph

    def clear(self) -> int:
        """
        Remove every node.

        Returns:
            Number of nodes removed
        """
        count = self.size
        self._graph.clear()
        logger.info(f"Cleared {count} nodes from index")
        return count

    # =========================================================================
    # STATISTICS
    # =========================================================================

    def stats(self) -> IndexStats:
        """Get index statistics."""
        # Count nodes at each level
        level_counts: Dict[int, int] = defaultdict(int)
        total_connections = 0

        for node in self._graph:
            level_counts[node.level] += 1
            for level in range(node.level + 1):
                total_connections += len(node.get_neighbors(level))

        # Memory estimation
        vector_memory = sum(n.vector.nbytes for n in self._graph)
        # Rough estimate for graph structure (edge plus reverse edge)
        graph_memory = total_connections * 2 * 50

        return IndexStats(
            index_type="hnsw",
            dimension=self.config.dimension,
            metric=self.metric,
            vector_count=self.size,
            memory_bytes=vector_memory + graph_memory,
            extra={
                "M": self.config.M,
                "ef": self.config.ef,
                "max_level": self.max_level,
                "entry_point": self.entry_point,
                "level_distribution": dict(level_counts),
                "total_connections": total_connections,
                "avg_connections": total_connections / max(1, self.size),
                "distance_computations": self._n_distance_computations,
            },
        )

    def get_graph_info(self) -> Dict[str, Any]:
        """
        Get detailed graph information.

        Returns:
            Dictionary with graph structure info
        """
        level_stats = []

        for level in range(self.max_level + 1):
            nodes_at_level = [n for n in self._graph if n.level >= level]

            if not nodes_at_level:
                continue

            connection_counts = [
                len(n.get_neighbors(level)) for n in nodes_at_level
            ]

            level_stats.append({
                "level": level,
                "node_count": len(nodes_at_level),
                "connection_count": sum(connection_counts),
                "avg_connections": float(np.mean(connection_counts)),
                "min_connections": min(connection_counts),
                "max_connections": max(connection_counts),
            })

        return {
            "max_level": self.max_level,
            "entry_point": self.entry_point,
            "total_nodes": self.size,
            "levels": level_stats,
        }

    def check_integrity(self) -> List[str]:
        """
        Check the graph's structural invariants.

        Returns:
            List of violation messages (empty if consistent)
        """
        return self._graph.check_invariants(self.config.M)

    # =========================================================================
    # SERIALIZATION
    # =========================================================================

    def serialize(self) -> bytes:
        """
        Serialize the index to a single binary blob.

        Returns:
            Serialized bytes
        """
        header = IndexHeader(
            metric=self._metric,
            dimension=self.config.dimension,
            M=self.config.M,
            ef=self.config.ef,
        )
        return serialize_graph(header, self._graph)

    @classmethod
    def deserialize(
        cls,
        data: bytes,
        seed: Optional[int] = None,
        rng: Optional[random.Random] = None,
        dimension: Optional[int] = None,
    ) -> "HNSWIndex":
        """
        Restore an index from bytes produced by ``serialize``.

        Args:
            data: Serialized bytes
            seed: Random seed for levels of later insertions
            rng: Random source for later insertions (overrides seed)
            dimension: Expected dimension (optional check)

        Returns:
            Restored HNSWIndex

        Raises:
            SerializationError: If the data is truncated or inconsistent
            DimensionMismatchError: If ``dimension`` differs from the blob
        """
        header, graph = deserialize_graph(data, dimension=dimension)

        index = cls(
            dimension=header.dimension,
            metric=header.metric.value,
            M=header.M,
            ef=header.ef,
            seed=seed,
            rng=rng,
        )
        index._graph = graph

        return index

    # =========================================================================
    # ITERATION
    # =========================================================================

    def iter_ids(self) -> Iterator[int]:
        """Iterate over all node IDs."""
        return iter(list(self._graph.nodes.keys()))

    def iter_vectors(self) -> Iterator[Tuple[int, NDArray[np.float32]]]:
        """Iterate over all (id, vector) pairs."""
        for node in list(self._graph):
            yield node.id, node.vector.copy()

    # =========================================================================
    # UTILITIES
    # =========================================================================

    def get_neighbors(self, id: int, level: int = 0) -> List[int]:
        """
        Get neighbors of a node at a specific level.

        Args:
            id: Node ID
            level: Graph level

        Returns:
            List of neighbor IDs (empty above the node's level)

        Raises:
            NotFoundError: If the ID is not in the index
        """
        return list(self._require_node(id).get_neighbors(level))

    def get_node_level(self, id: int) -> int:
        """
        Get the maximum level of a node.

        Raises:
            NotFoundError: If the ID is not in the index
        """
        return self._require_node(id).level

    def __len__(self) -> int:
        return self.size

    def __contains__(self, id: int) -> bool:
        return self.contains(id)

    def __repr__(self) -> str:
        return (
            f"HNSWIndex(dimension={self.config.dimension}, metric='{self.metric}', "
            f"M={self.config.M}, ef={self.config.ef}, size={self.size})"
        )
