"""Data models for DocRecall."""

from docrecall.models.document import Chunk, Document, SearchResult, TextChunk

__all__ = ["Document", "TextChunk", "Chunk", "SearchResult"]
