"""Sentence-based chunking strategy."""

import re

from docrecall.errors import ValidationError
from docrecall.models import TextChunk

DEFAULT_MAX_CHUNK_SIZE = 1000

# Whitespace that follows a run of sentence terminators. Captured so the
# separators survive the split and can be re-attached to their sentence.
_SENTENCE_BOUNDARY = re.compile(r"((?<=[.!?])\s+)")


def split_sentences(text: str) -> list[str]:
    """Split text into sentences, each keeping its terminator and trailing whitespace.

    Concatenating the result reproduces the input exactly.
    """
    parts = _SENTENCE_BOUNDARY.split(text)
    # re.split with a capture group alternates: sentence, separator, sentence, ...
    sentences = []
    for i in range(0, len(parts), 2):
        sentence = parts[i]
        if i + 1 < len(parts):
            sentence += parts[i + 1]
        if sentence:
            sentences.append(sentence)
    return sentences


def chunk_text(text: str, max_chunk_size: int = DEFAULT_MAX_CHUNK_SIZE) -> list[str]:
    """Split text into sentence-respecting chunks of at most max_chunk_size chars.

    Text that already fits is returned unchanged as a single chunk. Longer
    text is split on sentence boundaries and sentences are packed greedily;
    a single sentence longer than the limit becomes its own oversized chunk
    rather than being cut mid-sentence.

    Args:
        text: The text content to chunk
        max_chunk_size: Soft upper bound on chunk length in characters

    Returns:
        Chunk strings in source order, stripped, with empty chunks removed
    """
    if max_chunk_size < 1:
        raise ValidationError(f"max_chunk_size must be positive, got {max_chunk_size}")

    if len(text) <= max_chunk_size:
        return [text]

    chunks: list[str] = []
    buffer = ""

    for sentence in split_sentences(text):
        candidate = buffer + sentence
        if len(candidate.rstrip()) > max_chunk_size and buffer:
            chunks.append(buffer.strip())
            buffer = sentence
        else:
            buffer = candidate

    if buffer.strip():
        chunks.append(buffer.strip())

    return [chunk for chunk in chunks if chunk]


class SentenceChunker:
    """Default chunking: greedy packing of whole sentences up to max_chunk_size.

    - Splits on ".", "!" or "?" followed by whitespace
    - Never truncates a sentence; oversized sentences stand alone
    - Assigns ordinals at split time so they follow source order
    """

    def __init__(self, max_chunk_size: int = DEFAULT_MAX_CHUNK_SIZE):
        if max_chunk_size < 1:
            raise ValidationError(
                f"max_chunk_size must be positive, got {max_chunk_size}"
            )
        self.max_chunk_size = max_chunk_size

    def chunk(self, text: str) -> list[str]:
        """Split text into chunk strings."""
        return chunk_text(text, self.max_chunk_size)

    def split(self, text: str) -> list[TextChunk]:
        """Split text into chunks carrying their ordinal and word count."""
        return [
            TextChunk(content=content, ordinal=idx, word_count=len(content.split()))
            for idx, content in enumerate(self.chunk(text))
        ]
