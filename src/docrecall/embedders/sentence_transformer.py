"""SentenceTransformer-based embedding provider."""

import numpy as np
from sentence_transformers import SentenceTransformer


class SentenceTransformerEmbedder:
    """Embedding provider using sentence-transformers library.

    Uses all-MiniLM-L6-v2 by default - a fast, lightweight local model,
    handy for development without an API key. Vectors come back
    L2-normalized, so cosine similarity in the store is a plain dot product.
    """

    DEFAULT_MODEL = "all-MiniLM-L6-v2"

    def __init__(self, model_name: str | None = None):
        """Initialize the embedder.

        The model is not downloaded or loaded until first used.

        Args:
            model_name: sentence-transformers model id, e.g. "all-mpnet-base-v2".
                       Defaults to all-MiniLM-L6-v2 (384 dimensions).
        """
        self._model_name = model_name or self.DEFAULT_MODEL
        self._model: SentenceTransformer | None = None

    @property
    def model(self) -> SentenceTransformer:
        """Lazy-load the model on first access."""
        if self._model is None:
            self._model = SentenceTransformer(self._model_name)
        return self._model

    @property
    def dimension(self) -> int:
        """Length of every vector this model produces (loads the model)."""
        return self.model.get_sentence_embedding_dimension()

    @property
    def model_name(self) -> str:
        """Model id, recorded in the store's metadata at first indexing."""
        return self._model_name

    def embed(self, texts: list[str]) -> np.ndarray:
        """Generate embeddings for a batch of texts.

        Args:
            texts: Text strings to embed, in order

        Returns:
            float32 array of shape (len(texts), dimension); an empty batch
            gives shape (0, dimension)
        """
        if not texts:
            return np.empty((0, self.dimension), dtype=np.float32)

        embeddings = self.model.encode(
            texts,
            convert_to_numpy=True,
            normalize_embeddings=True,
        )
        return embeddings.astype(np.float32, copy=False)
