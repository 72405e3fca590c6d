"""SQLite storage for documents and chunk embeddings."""

from docrecall.storage.store import LibraryStore

__all__ = ["LibraryStore"]
