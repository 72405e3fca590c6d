"""Protocol definitions for extensible components."""

from docrecall.protocols.chunker import ChunkingStrategy
from docrecall.protocols.embedder import EmbeddingProvider

__all__ = ["EmbeddingProvider", "ChunkingStrategy"]
