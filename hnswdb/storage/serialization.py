"""
Serialization of an HNSW graph to and from the binary format.

Works on the graph store alone; it knows nothing about how the graph
was built or is searched.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Dict, List, Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from ..core.exceptions import DimensionMismatchError, SerializationError
from ..core.graph import GraphStore, HNSWNode
from ..distance import DistanceMetric
from ..utils.logging import get_logger
from .format import IndexHeader, NodeRecord, NO_NODE


logger = get_logger(__name__)


def serialize_graph(header: IndexHeader, graph: GraphStore) -> bytes:
    """
    Serialize a graph and its parameters.

    Args:
        header: Index parameters; ``entry_point`` is taken from the graph
        graph: Graph to serialize

    Returns:
        Serialized bytes
    """
    header = replace(header, entry_point=graph.entry_point)
    chunks = [header.to_bytes()]

    if graph.entry_point is None:
        return chunks[0]

    # Entry point first: its level tells the reader the record size
    ordered = [graph.nodes[graph.entry_point]]
    ordered.extend(n for n in graph if n.id != graph.entry_point)

    for node in ordered:
        neighbor_lists = [node.neighbors[l] for l in range(node.level + 1)]
        record = NodeRecord(
            id=node.id,
            vector=node.vector,
            level=node.level,
            neighbor_slots=NodeRecord.pack_slots(
                neighbor_lists, header.M, graph.max_level
            ),
        )
        chunks.append(record.to_bytes())

    return b''.join(chunks)


def deserialize_graph(
    data: bytes,
    dimension: Optional[int] = None,
) -> Tuple[IndexHeader, GraphStore]:
    """
    Rebuild a graph from serialized bytes.

    Pass 1 creates every node from its record without touching neighbor
    slots. Pass 2 resolves the slots against the complete node table.
    Slots that do not resolve are dropped: IDs of deleted nodes,
    self-references, nodes that do not reach that layer, and slots above
    the owning node's level.

    Args:
        data: Serialized bytes
        dimension: Expected dimension (optional check)

    Returns:
        Tuple of (header, graph)

    Raises:
        SerializationError: If the data is truncated or inconsistent
        DimensionMismatchError: If ``dimension`` is given and differs
    """
    data = bytes(data)
    header = IndexHeader.from_bytes(data)

    if dimension is not None and dimension != header.dimension:
        raise DimensionMismatchError(
            f"Serialized index dimension {header.dimension} != expected {dimension}"
        )

    graph = GraphStore(header.dimension)
    offset = IndexHeader.SIZE
    body_size = len(data) - offset

    if header.entry_point is None:
        if body_size:
            raise SerializationError(
                f"Header declares an empty index but {body_size} bytes follow"
            )
        return header, graph

    first_id, max_level = NodeRecord.peek(data, offset, header.dimension)
    if first_id != header.entry_point:
        raise SerializationError(
            f"First record is node {first_id}, expected entry point {header.entry_point}"
        )

    record_size = NodeRecord.record_size(header.dimension, header.M, max_level)
    if body_size % record_size:
        raise SerializationError(
            f"Body of {body_size} bytes is not a whole number of "
            f"{record_size}-byte records"
        )

    # Pass 1: nodes only
    slots_by_id: Dict[int, NDArray[np.uint32]] = {}
    while offset < len(data):
        record, offset = NodeRecord.from_buffer(
            data, offset, header.dimension, header.M, max_level
        )
        if record.id == NO_NODE:
            raise SerializationError("Node record uses the reserved ID 0xFFFFFFFF")
        if record.id in graph:
            raise SerializationError(f"Duplicate node ID {record.id}")
        if record.level > max_level:
            raise SerializationError(
                f"Node {record.id} level {record.level} exceeds "
                f"entry point level {max_level}"
            )
        if not np.all(np.isfinite(record.vector)):
            raise SerializationError(
                f"Node {record.id} vector contains NaN or infinite values"
            )
        if header.metric is DistanceMetric.COSINE and not np.any(record.vector):
            raise SerializationError(
                f"Node {record.id} has a zero-magnitude vector under cosine distance"
            )

        graph.nodes[record.id] = HNSWNode(record.id, record.vector, record.level)
        slots_by_id[record.id] = record.neighbor_slots

    graph.set_entry_point(header.entry_point)

    # Pass 2: resolve neighbor slots
    dropped = 0
    for node_id, slots in slots_by_id.items():
        node = graph.nodes[node_id]
        for level, row in enumerate(slots):
            ids: List[int] = [int(s) for s in row if s != NO_NODE]
            if level > node.level:
                dropped += len(ids)
                continue
            for neighbor_id in ids:
                neighbor = graph.nodes.get(neighbor_id)
                if neighbor is None or neighbor_id == node_id or neighbor.level < level:
                    dropped += 1
                    continue
                graph.link(node_id, neighbor_id, level)

    if dropped:
        logger.debug(f"Dropped {dropped} unresolvable neighbor references while loading")

    logger.info(
        f"Deserialized index: {graph.size} nodes, max_level={graph.max_level}, "
        f"metric={header.metric.value}"
    )

    return header, graph
