"""
Example usage of the HNSWIndex.
"""

import time
from pathlib import Path
import tempfile

import numpy as np

from hnswdb import HNSWIndex, NotFoundError


def main():
    print("=" * 60)
    print("HNSW Index Usage Example")
    print("=" * 60)
    
    # Configuration
    dimension = 64
    n_vectors = 5000
    n_queries = 100
    k = 10
    
    print(f"\nConfiguration:")
    print(f"  Dimension: {dimension}")
    print(f"  Vectors: {n_vectors:,}")
    print(f"  Queries: {n_queries}")
    print(f"  K: {k}")
    
    # Generate data
    print("\n1. Generating random vectors...")
    rng = np.random.default_rng(42)
    vectors = rng.standard_normal((n_vectors, dimension)).astype(np.float32)
    queries = rng.standard_normal((n_queries, dimension)).astype(np.float32)
    
    # Create HNSW index
    print("\n2. Building HNSW index...")
    hnsw = HNSWIndex(dimension=dimension, metric="euclidean", M=16, ef=100, seed=42)
    
    start = time.time()
    for i in range(n_vectors):
        hnsw.add(i, vectors[i])
        if (i + 1) % 1000 == 0:
            elapsed = time.time() - start
            print(f"   Added {i+1:,} vectors ({(i+1)/elapsed:.0f} vec/s)")
    
    build_time = time.time() - start
    print(f"   Total build time: {build_time:.2f}s")
    
    # Get stats
    print("\n3. Index statistics:")
    stats = hnsw.stats()
    print(f"   Vectors: {stats.vector_count:,}")
    print(f"   Memory: {stats.memory_bytes / 1024 / 1024:.2f} MB")
    print(f"   Max level: {stats.extra['max_level']}")
    print(f"   Avg connections: {stats.extra['avg_connections']:.1f}")
    
    # Recall against brute force
    print("\n4. Recall and latency by ef...")
    
    print(f"\n   {'ef':>6} | {'Recall@10':>10} | {'Latency':>10}")
    print("   " + "-" * 34)
    
    for ef in [10, 25, 50, 100, 200]:
        recalls = []
        start = time.time()
        
        for q in queries:
            hnsw_ids = {r.id for r in hnsw.search(q, k=k, ef=ef)}
            distances = np.sqrt(np.sum((vectors - q) ** 2, axis=1))
            true_ids = set(np.argsort(distances)[:k].tolist())
            recalls.append(len(hnsw_ids & true_ids) / k)
        
        latency_ms = (time.time() - start) / n_queries * 1000
        print(f"   {ef:>6} | {np.mean(recalls):>10.1%} | {latency_ms:>8.2f}ms")
    
    # Removal
    print("\n5. Removing vectors...")
    
    old_entry = hnsw.entry_point
    hnsw.remove(old_entry)
    hnsw.remove_batch(range(1000, 2000))
    print(f"   Removed entry point {old_entry}; new entry point {hnsw.entry_point}")
    print(f"   Size after removal: {hnsw.size:,}")
    
    try:
        hnsw.remove(1500)
    except NotFoundError as e:
        print(f"   Second removal rejected: {e}")
    
    # Serialization
    print("\n6. Serialization...")
    
    path = Path(tempfile.mkdtemp()) / "index.hnsw"
    path.write_bytes(hnsw.serialize())
    restored = HNSWIndex.deserialize(path.read_bytes())
    
    print(f"   Blob size: {path.stat().st_size / 1024 / 1024:.2f} MB")
    print(f"   Original: {hnsw.size} vectors")
    print(f"   Restored: {restored.size} vectors")
    
    # Verify search works
    query = queries[0]
    orig_ids = [r.id for r in hnsw.search(query, k=3)]
    rest_ids = [r.id for r in restored.search(query, k=3)]
    
    print(f"   Original top-3: {orig_ids}")
    print(f"   Restored top-3: {rest_ids}")
    
    print("\n" + "=" * 60)
    print("Example completed!")
    print("=" * 60)


if __name__ == "__main__":
    main()
