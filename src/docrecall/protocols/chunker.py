"""Protocol for text chunking strategies."""

from typing import Protocol, runtime_checkable

from docrecall.models import TextChunk


@runtime_checkable
class ChunkingStrategy(Protocol):
    """Protocol for text chunking strategies.

    A strategy must be deterministic: the same text always yields the
    same chunk sequence, in source order.
    """

    def chunk(self, text: str) -> list[str]:
        """Split text into chunk strings."""
        ...

    def split(self, text: str) -> list[TextChunk]:
        """Split text into chunks carrying their ordinal and word count.

        Ordinals start at 0 and follow source order.
        """
        ...
