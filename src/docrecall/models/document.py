"""Core data models for documents, chunks and search results."""

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional

import numpy as np

from docrecall.errors import ValidationError


@dataclass
class Document:
    """A library document owned by a single user."""

    id: str
    owner_id: str
    title: str
    content: str
    tags: list[str] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class TextChunk:
    """A chunk as produced at split time, before it has an embedding."""

    content: str
    ordinal: int
    word_count: int


@dataclass
class Chunk:
    """A persisted chunk with its embedding."""

    id: str
    document_id: str
    content: str
    embedding: np.ndarray
    ordinal: int
    word_count: Optional[int] = None
    created_at: Optional[datetime] = None


_SEARCH_RESULT_FIELDS = (
    "chunk_id",
    "content",
    "document_id",
    "document_title",
    "similarity_score",
)


@dataclass(frozen=True)
class SearchResult:
    """A ranked chunk returned from a similarity search."""

    chunk_id: str
    content: str
    document_id: str
    document_title: str
    similarity_score: float

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "SearchResult":
        """Build a result from a storage row, rejecting incomplete rows.

        Raises:
            ValidationError: If a field is missing or the score is not a finite number
        """
        missing = [name for name in _SEARCH_RESULT_FIELDS if row.get(name) is None]
        if missing:
            raise ValidationError(f"Search row missing fields: {', '.join(missing)}")

        try:
            score = float(row["similarity_score"])
        except (TypeError, ValueError) as e:
            raise ValidationError(
                f"Invalid similarity score: {row['similarity_score']!r}"
            ) from e
        if not math.isfinite(score):
            raise ValidationError(f"Invalid similarity score: {score!r}")

        return cls(
            chunk_id=str(row["chunk_id"]),
            content=str(row["content"]),
            document_id=str(row["document_id"]),
            document_title=str(row["document_title"]),
            similarity_score=score,
        )
