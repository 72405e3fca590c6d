"""Runtime configuration loaded from the environment (and a .env file)."""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from docrecall.errors import ValidationError
from docrecall.protocols import EmbeddingProvider

EMBEDDERS = ("sentence-transformer", "openai")


@dataclass(frozen=True)
class Settings:
    db_path: str = "docrecall.db"
    embedder: str = "sentence-transformer"
    embedding_model: Optional[str] = None
    openai_api_key: Optional[str] = None
    max_chunk_size: int = 1000
    embed_workers: int = 4
    search_limit: int = 15
    similarity_threshold: float = 0.1


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValidationError(f"{name} must be an integer, got {raw!r}") from e


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValidationError(f"{name} must be a number, got {raw!r}") from e


def load_settings(dotenv: bool = True) -> Settings:
    """Build Settings from DOCRECALL_* environment variables.

    Args:
        dotenv: Read a .env file from the working directory first
    """
    if dotenv:
        load_dotenv()

    embedder = os.getenv("DOCRECALL_EMBEDDER", Settings.embedder)
    if embedder not in EMBEDDERS:
        raise ValidationError(
            f"DOCRECALL_EMBEDDER must be one of {', '.join(EMBEDDERS)}, got {embedder!r}"
        )

    return Settings(
        db_path=os.getenv("DOCRECALL_DB_PATH", Settings.db_path),
        embedder=embedder,
        embedding_model=os.getenv("DOCRECALL_EMBEDDING_MODEL") or None,
        openai_api_key=os.getenv("OPENAI_API_KEY") or None,
        max_chunk_size=_env_int("DOCRECALL_MAX_CHUNK_SIZE", Settings.max_chunk_size),
        embed_workers=_env_int("DOCRECALL_EMBED_WORKERS", Settings.embed_workers),
        search_limit=_env_int("DOCRECALL_SEARCH_LIMIT", Settings.search_limit),
        similarity_threshold=_env_float(
            "DOCRECALL_SIMILARITY_THRESHOLD", Settings.similarity_threshold
        ),
    )


def build_embedder(settings: Settings) -> EmbeddingProvider:
    """Create the embedding provider named in settings.

    Imports are deferred so only the selected backend gets loaded.
    """
    if settings.embedder == "openai":
        from docrecall.embedders.openai_embedder import OpenAIEmbedder

        return OpenAIEmbedder(settings.embedding_model, api_key=settings.openai_api_key)

    from docrecall.embedders.sentence_transformer import SentenceTransformerEmbedder

    return SentenceTransformerEmbedder(settings.embedding_model)
