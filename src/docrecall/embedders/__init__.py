"""Embedding providers and the client adapter used by the pipeline.

Providers live in their own modules so that importing the package does not
load torch or the OpenAI SDK; see docrecall.config.build_embedder.
"""

from docrecall.embedders.client import EmbeddingClient

__all__ = ["EmbeddingClient"]
