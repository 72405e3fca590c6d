"""Document lifecycle: keeps each document's chunk set in step with its content.

Chunk regeneration always embeds every chunk before writing anything, then
swaps the whole chunk set in one transaction. A provider failure therefore
leaves the previous chunk set (or, for a new document, no document at all)
in place.
"""

import logging
import uuid
from typing import Optional

import numpy as np

from docrecall.chunkers import SentenceChunker
from docrecall.embedders import EmbeddingClient
from docrecall.errors import NotFoundError, ValidationError
from docrecall.models import Document, TextChunk
from docrecall.protocols import ChunkingStrategy
from docrecall.storage import LibraryStore

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 200


class DocumentLifecycle:
    """Creates, updates and deletes documents together with their chunks."""

    def __init__(
        self,
        store: LibraryStore,
        embedding_client: EmbeddingClient,
        chunker: Optional[ChunkingStrategy] = None,
    ):
        self.store = store
        self.embedding_client = embedding_client
        self.chunker = chunker or SentenceChunker()

    # Hooks

    def on_document_created(self, document_id: str, content: str) -> list[str]:
        """Chunk and embed a freshly stored document."""
        return self._reindex(document_id, content)

    def on_document_updated(self, document_id: str, new_content: str) -> list[str]:
        """Replace a document's chunks with chunks of its new content."""
        return self._reindex(document_id, new_content)

    def on_document_deleted(self, document_id: str) -> int:
        """Purge a document's chunks."""
        removed = self.store.delete_chunks_for_document(document_id)
        logger.info(f"Removed {removed} chunks of document {document_id}")
        return removed

    # Owner-scoped actions

    def create_document(
        self,
        owner_id: str,
        title: str,
        content: str,
        tags: Optional[list[str]] = None,
    ) -> Document:
        """Store a new document and its chunks, or nothing if any step fails."""
        self._validate(title, content)
        chunks, embeddings = self._prepare(content)

        doc = Document(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            title=title,
            content=content,
            tags=list(tags or []),
        )
        self.store.insert_document(doc, chunks, embeddings)
        logger.info(f"Created document {doc.id} with {len(chunks)} chunks")
        return self.store.get_document(doc.id)

    def update_document(
        self,
        document_id: str,
        owner_id: str,
        title: str,
        content: str,
        tags: Optional[list[str]] = None,
    ) -> Document:
        """Update an owner's document and regenerate its chunks.

        Raises:
            NotFoundError: The document does not exist or belongs to someone else
        """
        self._validate(title, content)
        if self.store.get_document(document_id, owner_id) is None:
            raise NotFoundError(f"Document {document_id} not found")

        chunks, embeddings = self._prepare(content)
        doc = Document(
            id=document_id,
            owner_id=owner_id,
            title=title,
            content=content,
            tags=list(tags or []),
        )
        if not self.store.update_document(doc, chunks, embeddings):
            raise NotFoundError(f"Document {document_id} not found")

        logger.info(f"Updated document {document_id} with {len(chunks)} chunks")
        return self.store.get_document(document_id, owner_id)

    def delete_document(self, document_id: str, owner_id: str) -> None:
        """Delete an owner's document and all of its chunks."""
        if not self.store.delete_document(document_id, owner_id):
            raise NotFoundError(f"Document {document_id} not found")
        logger.info(f"Deleted document {document_id}")

    def get_document(self, document_id: str, owner_id: str) -> Document:
        doc = self.store.get_document(document_id, owner_id)
        if doc is None:
            raise NotFoundError(f"Document {document_id} not found")
        return doc

    def list_documents(self, owner_id: str) -> list[Document]:
        return self.store.list_documents(owner_id)

    def list_tags(self, owner_id: str) -> list[str]:
        return self.store.list_tags(owner_id)

    # Internals

    def _reindex(self, document_id: str, content: str) -> list[str]:
        chunks, embeddings = self._prepare(content)
        chunk_ids = self.store.replace_chunks(document_id, chunks, embeddings)
        logger.info(f"Indexed document {document_id}: {len(chunk_ids)} chunks")
        return chunk_ids

    def _prepare(self, content: str) -> tuple[list[TextChunk], list[np.ndarray]]:
        """Split content and embed every chunk; ordinals come from the split."""
        chunks = [chunk for chunk in self.chunker.split(content) if chunk.content.strip()]
        embeddings = self.embedding_client.embed_many([chunk.content for chunk in chunks])
        return chunks, embeddings

    @staticmethod
    def _validate(title: str, content: str) -> None:
        if not title or not title.strip():
            raise ValidationError("Title is required")
        if len(title) > MAX_TITLE_LENGTH:
            raise ValidationError("Title too long")
        if not content or not content.strip():
            raise ValidationError("Content is required")
