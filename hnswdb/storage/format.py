"""
Binary format definitions for serialized HNSW indexes.

All integers are little-endian. A blob is a fixed header followed by one
fixed-size record per node:

    Header (17 bytes):
        0:     Metric tag (1 byte, uint8: 0 = cosine, 1 = euclidean)
        1-4:   Dimension (uint32)
        5-8:   M (uint32)
        9-12:  ef (uint32)
        13-16: Entry point ID (uint32, NO_NODE if empty)

    Node record:
        id (uint32)
        vector (dimension x float32)
        level (uint32)
        neighbor slots ((max_level + 1) x M x uint32, level-major,
                        unused slots hold NO_NODE)

The header has no max_level field. The entry point's record is always
written first; its level is max_level and fixes the record size.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from ..core.exceptions import SerializationError
from ..distance import DistanceMetric


# Empty neighbor slot / absent entry point
NO_NODE = 0xFFFFFFFF

METRIC_TAGS = {
    DistanceMetric.COSINE: 0,
    DistanceMetric.EUCLIDEAN: 1,
}
TAG_METRICS = {tag: metric for metric, tag in METRIC_TAGS.items()}

FLOAT_DTYPE = np.dtype('<f4')
SLOT_DTYPE = np.dtype('<u4')


@dataclass
class IndexHeader:
    """Index-wide parameters stored at the start of a blob."""

    metric: DistanceMetric
    dimension: int
    M: int
    ef: int
    entry_point: Optional[int] = None

    FORMAT = '<BIIII'
    SIZE = 17

    def validate(self) -> bool:
        """Validate header."""
        if self.dimension <= 0:
            raise SerializationError(f"Invalid dimension: {self.dimension}")
        if self.M <= 0:
            raise SerializationError(f"Invalid M: {self.M}")
        if self.ef <= 0:
            raise SerializationError(f"Invalid ef: {self.ef}")
        return True

    def to_bytes(self) -> bytes:
        """Serialize header to bytes."""
        return struct.pack(
            self.FORMAT,
            METRIC_TAGS[self.metric],
            self.dimension,
            self.M,
            self.ef,
            NO_NODE if self.entry_point is None else self.entry_point,
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> 'IndexHeader':
        """Deserialize header from the start of a buffer."""
        if len(data) < cls.SIZE:
            raise SerializationError(
                f"Buffer too short for header: {len(data)} < {cls.SIZE} bytes"
            )

        tag, dimension, M, ef, entry_point = struct.unpack_from(cls.FORMAT, data, 0)

        if tag not in TAG_METRICS:
            raise SerializationError(f"Unknown metric tag: {tag}")

        header = cls(
            metric=TAG_METRICS[tag],
            dimension=dimension,
            M=M,
            ef=ef,
            entry_point=None if entry_point == NO_NODE else entry_point,
        )

        header.validate()
        return header

    def __repr__(self) -> str:
        return (
            f"IndexHeader(metric={self.metric.value}, dimension={self.dimension}, "
            f"M={self.M}, ef={self.ef}, entry_point={self.entry_point})"
        )


@dataclass
class NodeRecord:
    """
    One node as laid out on disk, neighbor IDs still unresolved.

    ``neighbor_slots`` has shape (max_level + 1, M).
    """

    id: int
    vector: NDArray[np.float32]
    level: int
    neighbor_slots: NDArray[np.uint32]

    @staticmethod
    def prefix_size(dimension: int) -> int:
        """Bytes before the neighbor slots: id, vector, level."""
        return 4 + dimension * FLOAT_DTYPE.itemsize + 4

    @staticmethod
    def record_size(dimension: int, M: int, max_level: int) -> int:
        """Total size of one record in bytes."""
        return (
            NodeRecord.prefix_size(dimension)
            + (max_level + 1) * M * SLOT_DTYPE.itemsize
        )

    @staticmethod
    def pack_slots(
        neighbors: List[List[int]],
        M: int,
        max_level: int,
    ) -> NDArray[np.uint32]:
        """
        Lay per-level neighbor lists out as a (max_level + 1, M) slot array.

        ``neighbors[level]`` holds the IDs for that level; missing levels
        and unused slots are filled with NO_NODE.
        """
        slots = np.full((max_level + 1, M), NO_NODE, dtype=SLOT_DTYPE)
        for level, ids in enumerate(neighbors):
            if len(ids) > M:
                raise SerializationError(
                    f"{len(ids)} neighbors at level {level} exceed M={M}"
                )
            slots[level, :len(ids)] = ids
        return slots

    def to_bytes(self) -> bytes:
        """Serialize record to bytes."""
        return b''.join((
            struct.pack('<I', self.id),
            np.asarray(self.vector, dtype=FLOAT_DTYPE).tobytes(),
            struct.pack('<I', self.level),
            np.asarray(self.neighbor_slots, dtype=SLOT_DTYPE).tobytes(),
        ))

    @staticmethod
    def peek(buffer: bytes, offset: int, dimension: int) -> Tuple[int, int]:
        """
        Read only (id, level) of the record at offset.

        Used on the first record to learn max_level before the record
        size is known.
        """
        if len(buffer) - offset < NodeRecord.prefix_size(dimension):
            raise SerializationError(
                f"Buffer too short for node record at offset {offset}"
            )
        id = struct.unpack_from('<I', buffer, offset)[0]
        level = struct.unpack_from('<I', buffer, offset + 4 + dimension * 4)[0]
        return id, level

    @classmethod
    def from_buffer(
        cls,
        buffer: bytes,
        offset: int,
        dimension: int,
        M: int,
        max_level: int,
    ) -> Tuple['NodeRecord', int]:
        """
        Deserialize record from buffer at offset.

        Returns:
            Tuple of (record, new_offset)
        """
        size = cls.record_size(dimension, M, max_level)
        if len(buffer) - offset < size:
            raise SerializationError(
                f"Truncated node record at offset {offset}: "
                f"need {size} bytes, have {len(buffer) - offset}"
            )

        id = struct.unpack_from('<I', buffer, offset)[0]
        offset += 4

        vector = np.frombuffer(
            buffer, dtype=FLOAT_DTYPE, count=dimension, offset=offset
        ).astype(np.float32)
        offset += dimension * 4

        level = struct.unpack_from('<I', buffer, offset)[0]
        offset += 4

        slots = np.frombuffer(
            buffer, dtype=SLOT_DTYPE, count=(max_level + 1) * M, offset=offset
        ).reshape(max_level + 1, M)
        offset += slots.nbytes

        return cls(id=id, vector=vector, level=level, neighbor_slots=slots), offset
