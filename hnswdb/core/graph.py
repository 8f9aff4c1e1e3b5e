"""
HNSW graph data structures.

This module defines the in-memory storage for an HNSW graph:
- HNSWNode: a single vector with its per-layer neighbor lists
- GraphStore: the ID-indexed table of nodes plus entry point and max level

Nodes reference each other by ID only; the store resolves IDs on demand.
Each node also keeps a reverse index (``referrers``) of the nodes that list
it as a neighbor, so deletion can find every inbound edge without scanning
the whole graph. Edges are directed: pruning may drop X -> Y while Y -> X
survives, which is why the reverse index is needed at all.
"""

from __future__ import annotations

from typing import Dict, Iterator, List, Optional, Set

import numpy as np
from numpy.typing import NDArray

from .exceptions import ConflictError, NotFoundError


class HNSWNode:
    """
    A node in the HNSW graph.

    The node appears in layers 0 through ``level``. ``neighbors[layer]``
    is the ordered list of outgoing edges at that layer and
    ``referrers[layer]`` the set of nodes with an edge to this one.
    """

    __slots__ = ['id', 'vector', 'level', 'neighbors', 'referrers']

    def __init__(self, id: int, vector: NDArray[np.float32], level: int):
        self.id = id
        self.vector = vector
        self.level = level  # Maximum layer this node exists in
        self.neighbors: Dict[int, List[int]] = {l: [] for l in range(level + 1)}
        self.referrers: Dict[int, Set[int]] = {l: set() for l in range(level + 1)}

    def get_neighbors(self, level: int) -> List[int]:
        """Get neighbors at a specific level (empty above the node's level)."""
        return self.neighbors.get(level, [])

    def __repr__(self) -> str:
        return f"HNSWNode(id={self.id}, level={self.level}, dim={len(self.vector)})"


class GraphStore:
    """
    Container for the nodes of an HNSW graph.

    Tracks the entry point (a node on the highest occupied layer) and
    ``max_level``. Holds no search logic; the index drives it.
    """

    def __init__(self, dimension: int):
        self.dimension = dimension
        self.nodes: Dict[int, HNSWNode] = {}
        self.entry_point: Optional[int] = None
        self.max_level: int = 0

    # =========================================================================
    # NODE TABLE
    # =========================================================================

    @property
    def size(self) -> int:
        return len(self.nodes)

    def get(self, id: int) -> Optional[HNSWNode]:
        """Retrieve a node by ID, or None."""
        return self.nodes.get(id)

    def add_node(self, node: HNSWNode) -> None:
        """
        Register an unconnected node.

        Raises:
            ConflictError: If the ID is already present
        """
        if node.id in self.nodes:
            raise ConflictError(f"Node {node.id} already exists in index")
        self.nodes[node.id] = node

    def remove_node(self, id: int) -> HNSWNode:
        """
        Drop a node from the table.

        The caller is responsible for detaching its edges first.

        Raises:
            NotFoundError: If the ID is absent
        """
        try:
            return self.nodes.pop(id)
        except KeyError:
            raise NotFoundError(f"Node {id} not found") from None

    def clear(self) -> None:
        """Reset to the empty state."""
        self.nodes = {}
        self.entry_point = None
        self.max_level = 0

    # =========================================================================
    # EDGES
    # =========================================================================

    def link(self, source_id: int, target_id: int, level: int) -> bool:
        """
        Add the directed edge source -> target at a layer.

        Returns:
            True if the edge was added, False if it already existed
        """
        source = self.nodes[source_id]
        neighbors = source.neighbors[level]
        if target_id in neighbors:
            return False
        neighbors.append(target_id)
        self.nodes[target_id].referrers[level].add(source_id)
        return True

    def unlink(self, source_id: int, target_id: int, level: int) -> None:
        """Remove the directed edge source -> target at a layer, if present."""
        source = self.nodes[source_id]
        neighbors = source.neighbors[level]
        if target_id in neighbors:
            neighbors.remove(target_id)
        target = self.nodes.get(target_id)
        if target is not None and level in target.referrers:
            target.referrers[level].discard(source_id)

    def detach(self, id: int) -> None:
        """Remove every edge into and out of a node, on all its layers."""
        node = self.nodes[id]
        for level in range(node.level + 1):
            for neighbor_id in list(node.neighbors[level]):
                self.unlink(id, neighbor_id, level)
            for referrer_id in list(node.referrers[level]):
                self.unlink(referrer_id, id, level)

    # =========================================================================
    # ENTRY POINT
    # =========================================================================

    def set_entry_point(self, id: int) -> None:
        """Make a node the entry point; max_level follows its level."""
        self.entry_point = id
        self.max_level = self.nodes[id].level

    def elect_entry_point(self, exclude: Optional[int] = None) -> Optional[int]:
        """
        Pick the highest-level node as entry point (ties: lowest ID).

        Resets to the empty state when no eligible node remains.

        Args:
            exclude: ID to ignore (a node about to be removed)

        Returns:
            The new entry point ID, or None
        """
        best: Optional[HNSWNode] = None
        for node in self.nodes.values():
            if node.id == exclude:
                continue
            if (
                best is None
                or node.level > best.level
                or (node.level == best.level and node.id < best.id)
            ):
                best = node

        if best is None:
            self.entry_point = None
            self.max_level = 0
            return None

        self.set_entry_point(best.id)
        return best.id

    # =========================================================================
    # INTEGRITY
    # =========================================================================

    def check_invariants(self, M: int) -> List[str]:
        """
        Check the structural invariants of the graph.

        Args:
            M: Maximum neighbors per node per layer

        Returns:
            List of violation messages (empty if the graph is consistent)
        """
        problems: List[str] = []

        if not self.nodes:
            if self.entry_point is not None:
                problems.append(f"empty graph has entry point {self.entry_point}")
            if self.max_level != 0:
                problems.append(f"empty graph has max_level {self.max_level}")
            return problems

        if self.entry_point is None:
            problems.append("non-empty graph has no entry point")
        elif self.entry_point not in self.nodes:
            problems.append(f"entry point {self.entry_point} is not in the graph")
        elif self.nodes[self.entry_point].level != self.max_level:
            problems.append(
                f"entry point level {self.nodes[self.entry_point].level} "
                f"!= max_level {self.max_level}"
            )

        for node in self.nodes.values():
            if node.level > self.max_level:
                problems.append(
                    f"node {node.id} level {node.level} exceeds max_level {self.max_level}"
                )
            if len(node.vector) != self.dimension:
                problems.append(
                    f"node {node.id} has dimension {len(node.vector)}, "
                    f"expected {self.dimension}"
                )

            for level in range(node.level + 1):
                neighbors = node.neighbors[level]
                if len(neighbors) > M:
                    problems.append(
                        f"node {node.id} has {len(neighbors)} neighbors at "
                        f"level {level} (M={M})"
                    )
                if len(set(neighbors)) != len(neighbors):
                    problems.append(f"node {node.id} has duplicate neighbors at level {level}")

                for neighbor_id in neighbors:
                    neighbor = self.nodes.get(neighbor_id)
                    if neighbor is None:
                        problems.append(
                            f"node {node.id} references missing node {neighbor_id} "
                            f"at level {level}"
                        )
                    elif neighbor.level < level:
                        problems.append(
                            f"node {node.id} links node {neighbor_id} above its "
                            f"level at level {level}"
                        )
                    elif node.id not in neighbor.referrers[level]:
                        problems.append(
                            f"edge {node.id} -> {neighbor_id} at level {level} "
                            "missing from reverse index"
                        )

                for referrer_id in node.referrers[level]:
                    referrer = self.nodes.get(referrer_id)
                    if referrer is None or node.id not in referrer.get_neighbors(level):
                        problems.append(
                            f"stale reverse edge {referrer_id} -> {node.id} at level {level}"
                        )

        return problems

    # =========================================================================
    # ITERATION
    # =========================================================================

    def __iter__(self) -> Iterator[HNSWNode]:
        return iter(self.nodes.values())

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, id: int) -> bool:
        return id in self.nodes

    def __repr__(self) -> str:
        return (
            f"GraphStore(nodes={self.size}, max_level={self.max_level}, "
            f"entry_point={self.entry_point}, dim={self.dimension})"
        )
