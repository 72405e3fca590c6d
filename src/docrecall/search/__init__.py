"""Similarity search over stored chunk embeddings."""

from docrecall.search.engine import SearchEngine

__all__ = ["SearchEngine"]
