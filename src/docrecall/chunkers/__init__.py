"""Text chunking strategies."""

from docrecall.chunkers.sentence_chunker import SentenceChunker, chunk_text

__all__ = ["SentenceChunker", "chunk_text"]
