"""Snapshot storage, caching and retrieval."""
