"""Owner-scoped cosine similarity search.

Nearest neighbours are cut to `limit` first and only then filtered by the
similarity threshold, so a search can return fewer than `limit` results
even when more chunks in the corpus clear the threshold. Filtering keeps
the nearest-neighbour order.
"""

import logging

import numpy as np

from docrecall.embedders import EmbeddingClient
from docrecall.errors import ValidationError
from docrecall.models import SearchResult
from docrecall.storage import LibraryStore

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10
DEFAULT_SIMILARITY_THRESHOLD = 0.5

# Defaults of the free-text entry point: wide and permissive
QUERY_LIMIT = 15
QUERY_SIMILARITY_THRESHOLD = 0.1


class SearchEngine:
    """Ranks an owner's chunks against a query embedding."""

    def __init__(self, store: LibraryStore, embedding_client: EmbeddingClient):
        self.store = store
        self.embedding_client = embedding_client

    def search(
        self,
        query_embedding: np.ndarray,
        owner_id: str,
        limit: int = DEFAULT_LIMIT,
        similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
    ) -> list[SearchResult]:
        """Find the owner's chunks most similar to query_embedding.

        Args:
            query_embedding: Query vector, same dimension as the stored chunks
            owner_id: Only chunks of this owner's documents are eligible
            limit: Number of nearest neighbours retrieved before thresholding
            similarity_threshold: Results must score strictly above this

        Returns:
            Results by descending similarity (ties by chunk id), at most `limit`

        Raises:
            ValidationError: Non-positive limit, or a query that is not a
                finite 1-D vector of the provider's (and the store's) dimension
        """
        if limit < 1:
            raise ValidationError(f"limit must be positive, got {limit}")
        query = self._check_query(query_embedding)

        rows = self.store.nearest_chunks(query, owner_id, limit)
        results = [SearchResult.from_row(row) for row in rows]
        filtered = [r for r in results if r.similarity_score > similarity_threshold]

        logger.debug(
            f"Found {len(results)} nearest chunks, {len(filtered)} above "
            f"threshold {similarity_threshold}"
        )
        if results:
            logger.debug(f"Similarity scores: {[round(r.similarity_score, 4) for r in results]}")

        return filtered

    def _check_query(self, query_embedding) -> np.ndarray:
        try:
            query = np.asarray(query_embedding, dtype=np.float32)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Query embedding is not numeric: {e}") from e

        if query.ndim != 1:
            raise ValidationError(
                f"Query embedding must be a 1-D vector, got shape {query.shape}"
            )
        if not np.all(np.isfinite(query)):
            raise ValidationError("Query embedding contains NaN or infinite values")

        expected = self.embedding_client.dimension
        if query.shape[0] != expected:
            raise ValidationError(
                f"Query embedding has dimension {query.shape[0]}, expected {expected}"
            )
        recorded = self.store.embedding_dimension()
        if recorded is not None and recorded != expected:
            raise ValidationError(
                f"Store holds {recorded}-d embeddings but the provider "
                f"produces {expected}-d; re-index before searching"
            )
        return query

    def semantic_search(
        self,
        query: str,
        owner_id: str,
        limit: int = QUERY_LIMIT,
        similarity_threshold: float = QUERY_SIMILARITY_THRESHOLD,
    ) -> list[SearchResult]:
        """Search an owner's library with free text.

        A blank query returns no results without touching the embedding
        provider or the store.
        """
        query = query.strip()
        if not query:
            return []

        query_embedding = self.embedding_client.embed(query)
        results = self.search(query_embedding, owner_id, limit, similarity_threshold)
        logger.info(f"Search for {query!r} returned {len(results)} results")
        return results
