"""
Unit tests for the comparator-ordered priority queue.
"""

import pytest

from hnswdb.index.heap import (
    BoundedPriorityQueue,
    Neighbor,
    nearest_first,
    furthest_first,
)


@pytest.fixture
def neighbors():
    return [
        Neighbor(0.5, 1),
        Neighbor(2.0, 2),
        Neighbor(0.1, 3),
        Neighbor(1.5, 4),
        Neighbor(0.9, 5),
    ]


class TestComparators:
    """Tests for the ordering functions."""
    
    def test_nearest_first(self):
        assert nearest_first(Neighbor(0.1, 1), Neighbor(0.2, 2)) < 0
        assert nearest_first(Neighbor(0.3, 1), Neighbor(0.2, 2)) > 0
    
    def test_furthest_first(self):
        assert furthest_first(Neighbor(0.3, 1), Neighbor(0.2, 2)) < 0
        assert furthest_first(Neighbor(0.1, 1), Neighbor(0.2, 2)) > 0
    
    def test_ties_compare_equal(self):
        assert nearest_first(Neighbor(1.0, 1), Neighbor(1.0, 2)) == 0
        assert furthest_first(Neighbor(1.0, 1), Neighbor(1.0, 2)) == 0


class TestBoundedPriorityQueue:
    """Tests for BoundedPriorityQueue."""
    
    def test_min_heap_order(self, neighbors):
        queue = BoundedPriorityQueue(nearest_first)
        for n in neighbors:
            queue.push(n)
        
        popped = [queue.pop().distance for _ in range(len(neighbors))]
        assert popped == [0.1, 0.5, 0.9, 1.5, 2.0]
    
    def test_max_heap_order(self, neighbors):
        queue = BoundedPriorityQueue(furthest_first)
        for n in neighbors:
            queue.push(n)
        
        popped = [queue.pop().distance for _ in range(len(neighbors))]
        assert popped == [2.0, 1.5, 0.9, 0.5, 0.1]
    
    def test_peek_does_not_remove(self, neighbors):
        queue = BoundedPriorityQueue(nearest_first)
        for n in neighbors:
            queue.push(n)
        
        assert queue.peek() == Neighbor(0.1, 3)
        assert queue.peek() == Neighbor(0.1, 3)
        assert queue.size() == 5
    
    def test_size_and_bool(self):
        queue = BoundedPriorityQueue(nearest_first)
        
        assert queue.size() == 0
        assert len(queue) == 0
        assert not queue
        
        queue.push(Neighbor(1.0, 1))
        
        assert queue.size() == 1
        assert queue
    
    def test_pop_empty_raises(self):
        queue = BoundedPriorityQueue(nearest_first)
        
        with pytest.raises(IndexError):
            queue.pop()
    
    def test_peek_empty_raises(self):
        queue = BoundedPriorityQueue(furthest_first)
        
        with pytest.raises(IndexError):
            queue.peek()
    
    def test_keep_best_k(self, neighbors):
        """Evicting the root of a max-ordered queue keeps the k nearest."""
        results = BoundedPriorityQueue(furthest_first)
        for n in neighbors:
            results.push(n)
            if len(results) > 3:
                results.pop()
        
        assert sorted(n.id for n in results) == [1, 3, 5]
        assert results.peek().distance == 0.9
    
    def test_sorted(self, neighbors):
        queue = BoundedPriorityQueue(furthest_first)
        for n in neighbors:
            queue.push(n)
        
        assert [n.id for n in queue.sorted()] == [2, 4, 5, 1, 3]
        assert len(queue) == 5
    
    def test_items_snapshot(self, neighbors):
        queue = BoundedPriorityQueue(nearest_first)
        for n in neighbors:
            queue.push(n)
        
        items = queue.items()
        items.clear()
        
        assert len(queue) == 5
        assert set(queue) == set(neighbors)
    
    def test_ties_keep_both(self):
        queue = BoundedPriorityQueue(nearest_first)
        queue.push(Neighbor(1.0, 1))
        queue.push(Neighbor(1.0, 2))
        
        assert {queue.pop().id, queue.pop().id} == {1, 2}
    
    def test_custom_comparator(self):
        """Any comparator works, not just the distance ones."""
        queue = BoundedPriorityQueue(lambda a, b: (a > b) - (a < b))
        for value in [5, 1, 4, 2, 3]:
            queue.push(value)
        
        assert [queue.pop() for _ in range(5)] == [1, 2, 3, 4, 5]
