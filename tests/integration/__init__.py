"""
Integration tests for hnswdb.

These tests drive the index through longer workloads: mixed inserts,
removals and queries, and persistence of the serialized blob.
"""
