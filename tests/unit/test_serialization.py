"""
Unit tests for the binary index format.
"""

import struct

import pytest
import numpy as np
from numpy.testing import assert_array_equal

from hnswdb.core.exceptions import (
    DimensionMismatchError,
    SerializationError,
    StorageError,
)
from hnswdb.distance import DistanceMetric
from hnswdb.index import HNSWIndex
from hnswdb.storage import (
    IndexHeader,
    NodeRecord,
    NO_NODE,
    deserialize_graph,
    serialize_graph,
)


def header_bytes(tag=1, dimension=2, M=2, ef=10, entry_point=NO_NODE):
    return struct.pack('<BIIII', tag, dimension, M, ef, entry_point)


def record_bytes(id, vector, level, slots):
    """One record with explicit slot values (level-major, M per level)."""
    return (
        struct.pack('<I', id)
        + np.asarray(vector, dtype='<f4').tobytes()
        + struct.pack('<I', level)
        + np.asarray(slots, dtype='<u4').tobytes()
    )


class TestIndexHeader:
    """Tests for the fixed header."""
    
    def test_size(self):
        header = IndexHeader(DistanceMetric.COSINE, dimension=8, M=4, ef=50)
        
        assert len(header.to_bytes()) == IndexHeader.SIZE == 17
    
    def test_layout(self):
        header = IndexHeader(DistanceMetric.EUCLIDEAN, dimension=3, M=16, ef=200, entry_point=9)
        
        assert header.to_bytes() == header_bytes(1, 3, 16, 200, 9)
    
    def test_empty_entry_point_sentinel(self):
        data = IndexHeader(DistanceMetric.COSINE, dimension=3, M=16, ef=200).to_bytes()
        
        assert data[0] == 0
        assert data[13:17] == b'\xff\xff\xff\xff'
        assert IndexHeader.from_bytes(data).entry_point is None
    
    def test_from_bytes(self):
        header = IndexHeader.from_bytes(header_bytes(0, 5, 6, 7, 8))
        
        assert header.metric == DistanceMetric.COSINE
        assert (header.dimension, header.M, header.ef, header.entry_point) == (5, 6, 7, 8)
    
    def test_short_buffer(self):
        with pytest.raises(SerializationError, match="too short"):
            IndexHeader.from_bytes(b'\x01\x02\x03')
    
    def test_unknown_metric_tag(self):
        with pytest.raises(SerializationError, match="metric tag"):
            IndexHeader.from_bytes(header_bytes(tag=7))
    
    @pytest.mark.parametrize("field", ["dimension", "M", "ef"])
    def test_zero_fields_rejected(self, field):
        values = {"dimension": 2, "M": 2, "ef": 10}
        values[field] = 0
        
        with pytest.raises(SerializationError):
            IndexHeader.from_bytes(header_bytes(**values))


class TestNodeRecord:
    """Tests for per-node records."""
    
    def test_record_size(self):
        # id + 3 floats + level + (2 levels x 4 slots)
        assert NodeRecord.record_size(3, 4, 1) == 4 + 12 + 4 + 32
    
    def test_pack_slots(self):
        slots = NodeRecord.pack_slots([[5, 6], [7]], M=3, max_level=2)
        
        assert slots.shape == (3, 3)
        assert_array_equal(slots[0], [5, 6, NO_NODE])
        assert_array_equal(slots[1], [7, NO_NODE, NO_NODE])
        assert_array_equal(slots[2], [NO_NODE] * 3)
    
    def test_pack_slots_overflow(self):
        with pytest.raises(SerializationError):
            NodeRecord.pack_slots([[1, 2, 3]], M=2, max_level=0)
    
    def test_record_layout(self):
        record = NodeRecord(
            id=4,
            vector=np.array([1.5, -2.0], dtype=np.float32),
            level=0,
            neighbor_slots=NodeRecord.pack_slots([[9]], M=2, max_level=0),
        )
        
        assert record.to_bytes() == record_bytes(4, [1.5, -2.0], 0, [9, NO_NODE])
    
    def test_from_buffer(self):
        data = b'xx' + record_bytes(4, [1.5, -2.0], 1, [9, NO_NODE, 3, NO_NODE])
        
        record, offset = NodeRecord.from_buffer(data, 2, dimension=2, M=2, max_level=1)
        
        assert offset == len(data)
        assert record.id == 4
        assert record.level == 1
        assert_array_equal(record.vector, [1.5, -2.0])
        assert_array_equal(record.neighbor_slots, [[9, NO_NODE], [3, NO_NODE]])
    
    def test_peek(self):
        data = record_bytes(11, [0.0, 0.0], 3, [NO_NODE] * 8)
        assert NodeRecord.peek(data, 0, dimension=2) == (11, 3)


class TestIndexSerialization:
    """Round trips through HNSWIndex.serialize / deserialize."""
    
    def test_empty_index(self):
        index = HNSWIndex(dimension=4, metric="cosine", M=5, ef=20)
        data = index.serialize()
        
        assert data == header_bytes(0, 4, 5, 20, NO_NODE)
        
        restored = HNSWIndex.deserialize(data)
        assert restored.size == 0
        assert restored.entry_point is None
        assert restored.metric == "cosine"
        assert restored.config.M == 5
        assert restored.config.ef == 20
    
    def test_entry_point_written_first(self, populated_index):
        data = populated_index.serialize()
        
        first_id, first_level = NodeRecord.peek(data, IndexHeader.SIZE, 32)
        assert first_id == populated_index.entry_point
        assert first_level == populated_index.max_level
    
    def test_blob_size(self, populated_index):
        data = populated_index.serialize()
        record = NodeRecord.record_size(32, 8, populated_index.max_level)
        
        assert len(data) == IndexHeader.SIZE + 200 * record
    
    def test_round_trip(self, populated_index, random_vectors):
        restored = HNSWIndex.deserialize(populated_index.serialize())
        
        assert restored.size == populated_index.size
        assert restored.entry_point == populated_index.entry_point
        assert restored.max_level == populated_index.max_level
        assert restored.check_integrity() == []
        
        for id in populated_index.iter_ids():
            assert_array_equal(restored.get_vector(id), populated_index.get_vector(id))
            assert restored.get_node_level(id) == populated_index.get_node_level(id)
            assert restored.get_neighbors(id) == populated_index.get_neighbors(id)
        
        for query in random_vectors[:10] + 0.01:
            before = populated_index.search(query, k=5)
            after = restored.search(query, k=5)
            
            assert [r.id for r in before] == [r.id for r in after]
            for a, b in zip(before, after):
                assert abs(a.distance - b.distance) <= 1e-4
    
    def test_round_trip_after_removals(self, populated_index):
        populated_index.remove_batch(range(0, 200, 2))
        
        restored = HNSWIndex.deserialize(populated_index.serialize())
        
        assert restored.size == 100
        assert restored.entry_point == populated_index.entry_point
        assert restored.check_integrity() == []
    
    def test_restored_index_accepts_inserts(self, square_index):
        restored = HNSWIndex.deserialize(square_index.serialize(), seed=5)
        restored.add(5, [2.0, 2.0])
        
        assert restored.search([2.0, 2.0], k=1)[0].id == 5
        assert restored.check_integrity() == []
    
    def test_dimension_check(self, square_index):
        data = square_index.serialize()
        
        assert HNSWIndex.deserialize(data, dimension=2).size == 4
        with pytest.raises(DimensionMismatchError):
            HNSWIndex.deserialize(data, dimension=3)
    
    def test_accepts_bytearray(self, square_index):
        data = bytearray(square_index.serialize())
        assert HNSWIndex.deserialize(data).size == 4


class TestMalformedBlobs:
    """Decoding errors and tolerated inconsistencies."""
    
    def test_truncated_header(self):
        with pytest.raises(SerializationError):
            HNSWIndex.deserialize(b'\x01\x02')
    
    def test_truncated_body(self, square_index):
        data = square_index.serialize()
        
        with pytest.raises(SerializationError):
            HNSWIndex.deserialize(data[:-3])
    
    def test_entry_point_without_records(self):
        with pytest.raises(SerializationError, match="too short"):
            HNSWIndex.deserialize(header_bytes(entry_point=0))
    
    def test_records_without_entry_point(self):
        data = header_bytes() + record_bytes(0, [0.0, 0.0], 0, [NO_NODE] * 2)
        
        with pytest.raises(SerializationError, match="empty index"):
            HNSWIndex.deserialize(data)
    
    def test_first_record_not_entry_point(self):
        data = (
            header_bytes(entry_point=1)
            + record_bytes(0, [0.0, 0.0], 0, [1, NO_NODE])
            + record_bytes(1, [1.0, 0.0], 0, [0, NO_NODE])
        )
        
        with pytest.raises(SerializationError, match="expected entry point"):
            HNSWIndex.deserialize(data)
    
    def test_duplicate_ids(self):
        data = (
            header_bytes(entry_point=0)
            + record_bytes(0, [0.0, 0.0], 0, [NO_NODE] * 2)
            + record_bytes(0, [1.0, 0.0], 0, [NO_NODE] * 2)
        )
        
        with pytest.raises(SerializationError, match="Duplicate"):
            HNSWIndex.deserialize(data)
    
    def test_level_above_entry_point(self):
        # Stride is fixed by the entry point's level 0: 2 slots per record
        data = (
            header_bytes(entry_point=0)
            + record_bytes(0, [0.0, 0.0], 0, [NO_NODE] * 2)
            + record_bytes(1, [1.0, 0.0], 1, [NO_NODE] * 2)
        )
        
        with pytest.raises(SerializationError, match="exceeds"):
            HNSWIndex.deserialize(data)
    
    def test_errors_are_storage_errors(self):
        with pytest.raises(StorageError):
            HNSWIndex.deserialize(b'')
    
    def test_unresolvable_neighbors_dropped(self):
        data = (
            header_bytes(M=3, entry_point=0)
            + record_bytes(0, [0.0, 0.0], 0, [1, 42, 0])   # 42 missing, 0 is self
            + record_bytes(1, [1.0, 0.0], 0, [0, NO_NODE, NO_NODE])
        )
        
        index = HNSWIndex.deserialize(data)
        
        assert index.size == 2
        assert index.get_neighbors(0) == [1]
        assert index.get_neighbors(1) == [0]
        assert index.check_integrity() == []
    
    def test_slots_above_node_level_dropped(self):
        data = (
            header_bytes(entry_point=0)
            + record_bytes(0, [0.0, 0.0], 1, [1, NO_NODE, 2, NO_NODE])
            + record_bytes(1, [1.0, 0.0], 0, [0, NO_NODE, 0, NO_NODE])
            + record_bytes(2, [0.0, 1.0], 0, [0, NO_NODE, NO_NODE, NO_NODE])
        )
        
        _, graph = deserialize_graph(data)
        
        # Node 2 is only on layer 0, so 0 -> 2 at layer 1 is dropped
        assert graph.nodes[0].neighbors == {0: [1], 1: []}
        # Node 1 is only on layer 0, so its layer-1 slot is ignored
        assert graph.nodes[1].neighbors == {0: [0]}
        assert graph.max_level == 1
        assert graph.check_invariants(M=2) == []
    
    def test_zero_vector_under_cosine_rejected(self):
        data = (
            header_bytes(tag=0, entry_point=0)
            + record_bytes(0, [1.0, 1.0], 0, [1, NO_NODE])
            + record_bytes(1, [0.0, 0.0], 0, [0, NO_NODE])
        )
        
        with pytest.raises(SerializationError, match="Node 1"):
            HNSWIndex.deserialize(data)
    
    def test_zero_vector_under_euclidean_allowed(self):
        data = (
            header_bytes(tag=1, entry_point=0)
            + record_bytes(0, [1.0, 1.0], 0, [1, NO_NODE])
            + record_bytes(1, [0.0, 0.0], 0, [0, NO_NODE])
        )
        
        assert HNSWIndex.deserialize(data).search([0.0, 0.0], k=1)[0].id == 1
    
    @pytest.mark.parametrize("bad", [np.nan, np.inf])
    def test_non_finite_vector_rejected(self, bad):
        data = (
            header_bytes(entry_point=0)
            + record_bytes(0, [0.0, 0.0], 0, [1, NO_NODE])
            + record_bytes(1, [bad, 1.0], 0, [0, NO_NODE])
        )
        
        with pytest.raises(SerializationError, match="Node 1"):
            HNSWIndex.deserialize(data)
    
    def test_patched_cosine_blob_rejected(self):
        index = HNSWIndex(dimension=2, metric="cosine", seed=0)
        index.add(0, [1.0, 0.0])
        index.add(1, [0.0, 1.0])
        data = bytearray(index.serialize())
        
        # Zero the vector of the second record
        vector_start = IndexHeader.SIZE + NodeRecord.record_size(2, 16, index.max_level) + 4
        data[vector_start:vector_start + 8] = bytes(8)
        
        with pytest.raises(SerializationError):
            HNSWIndex.deserialize(bytes(data))


class TestSerializeGraph:
    
    def test_caller_header_untouched(self, square_index):
        header = IndexHeader(DistanceMetric.EUCLIDEAN, dimension=2, M=16, ef=200)
        
        data = serialize_graph(header, square_index.graph)
        
        assert header.entry_point is None
        assert IndexHeader.from_bytes(data).entry_point == square_index.entry_point
