"""Chunking and embedding helpers shared by the sync pipelines."""
