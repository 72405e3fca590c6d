"""Embedding client adapter.

Wraps an EmbeddingProvider behind a one-text-in, one-vector-out call and
turns provider failures into EmbeddingProviderError so callers only deal
with DocRecall errors. There are no retries and no cache: the same text
submitted twice reaches the provider twice.
"""

import logging
from concurrent.futures import ThreadPoolExecutor

import numpy as np

from docrecall.errors import EmbeddingProviderError, ValidationError
from docrecall.protocols import EmbeddingProvider

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 4


class EmbeddingClient:
    """Single-text embedding calls with validation and a bounded worker pool."""

    def __init__(self, provider: EmbeddingProvider, max_workers: int = DEFAULT_MAX_WORKERS):
        if max_workers < 1:
            raise ValidationError(f"max_workers must be positive, got {max_workers}")
        self.provider = provider
        self.max_workers = max_workers

    @property
    def dimension(self) -> int:
        return self.provider.dimension

    @property
    def model_name(self) -> str:
        return self.provider.model_name

    def embed(self, text: str) -> np.ndarray:
        """Embed one text.

        Returns:
            1-D float32 array of length provider.dimension

        Raises:
            EmbeddingProviderError: The provider call failed or returned no vectors
            ValidationError: The returned vector has the wrong shape or non-finite values
        """
        try:
            result = self.provider.embed([text])
        except Exception as e:
            raise EmbeddingProviderError(
                f"Embedding provider {self.provider.model_name} failed: {e}"
            ) from e

        if result is None or len(result) == 0:
            raise EmbeddingProviderError(
                f"Embedding provider {self.provider.model_name} returned no vectors"
            )

        try:
            vectors = np.asarray(result, dtype=np.float32)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Malformed embedding response: {e}") from e

        vector = vectors[0] if vectors.ndim > 1 else vectors
        return self._validate(vector)

    def embed_many(self, texts: list[str]) -> list[np.ndarray]:
        """Embed many texts, at most max_workers at a time.

        Results come back in input order whatever order the calls finish in.
        The first failure propagates and no partial list is returned.
        """
        if not texts:
            return []

        if self.max_workers == 1 or len(texts) == 1:
            return [self.embed(text) for text in texts]

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(texts))) as pool:
            vectors = list(pool.map(self.embed, texts))

        logger.debug(f"Embedded {len(vectors)} texts with {self.max_workers} workers")
        return vectors

    def _validate(self, vector: np.ndarray) -> np.ndarray:
        expected = self.provider.dimension
        if vector.ndim != 1 or vector.shape[0] != expected:
            raise ValidationError(
                f"Embedding has shape {vector.shape}, expected ({expected},)"
            )
        if not np.all(np.isfinite(vector)):
            raise ValidationError("Embedding contains non-finite values")
        return vector
