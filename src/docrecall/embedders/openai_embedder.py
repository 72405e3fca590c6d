"""OpenAI API embedding provider."""

import logging

import numpy as np
from openai import OpenAI

logger = logging.getLogger(__name__)


class OpenAIEmbedder:
    """Embedding provider backed by the OpenAI embeddings endpoint.

    text-embedding-3-small produces 1536-dimensional vectors, which is
    what the reference deployment stores.
    """

    DEFAULT_MODEL = "text-embedding-3-small"
    DIMENSIONS = {
        "text-embedding-3-small": 1536,
        "text-embedding-3-large": 3072,
        "text-embedding-ada-002": 1536,
    }

    def __init__(
        self,
        model_name: str | None = None,
        api_key: str | None = None,
        client: OpenAI | None = None,
    ):
        self._model_name = model_name or self.DEFAULT_MODEL
        self._client = client
        self._api_key = api_key

    @property
    def client(self) -> OpenAI:
        """Create the API client on first use."""
        if self._client is None:
            self._client = OpenAI(api_key=self._api_key)
        return self._client

    @property
    def dimension(self) -> int:
        return self.DIMENSIONS.get(self._model_name, 1536)

    @property
    def model_name(self) -> str:
        return self._model_name

    def embed(self, texts: list[str]) -> np.ndarray:
        """Generate embeddings for a batch of texts.

        Each request carries {model, input}; vectors come back in input order.
        """
        if not texts:
            return np.empty((0, self.dimension), dtype=np.float32)

        response = self.client.embeddings.create(
            model=self._model_name,
            input=texts,
        )
        logger.debug(
            f"Embedded {len(texts)} texts with {self._model_name}, "
            f"usage: {response.usage.total_tokens} tokens"
        )
        return np.array([item.embedding for item in response.data], dtype=np.float32)
