"""SQLite-backed storage for documents and chunk embeddings."""

import json
import logging
import secrets
import sqlite3
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Optional, Sequence

import numpy as np

from docrecall.errors import StorageError
from docrecall.models import Chunk, Document, TextChunk
from docrecall.storage.schema import SCHEMA

logger = logging.getLogger(__name__)


def generate_chunk_id() -> str:
    """Return a chunk id made of a millisecond timestamp and a random suffix."""
    return f"chunk_{int(time.time() * 1000)}_{secrets.token_hex(5)}"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class LibraryStore:
    """SQLite-backed storage for documents and their chunks.

    Every public operation runs in its own connection and transaction. The
    chunk set of a document is only ever replaced as a whole, so readers see
    either the old set or the new one.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database connections.

        Commits on success, rolls back on any error, and reports sqlite
        failures as StorageError.
        """
        try:
            conn = sqlite3.connect(self.path)
        except sqlite3.Error as e:
            raise StorageError(f"Cannot open store {self.path}: {e}") from e
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StorageError(str(e)) from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def initialize(self) -> None:
        """Create schema if not exists."""
        with self.connection() as conn:
            conn.executescript(SCHEMA)

    # Metadata

    def set_metadata(self, key: str, value: str) -> None:
        """Store a metadata key-value pair."""
        with self.connection() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO metadata (key, value) VALUES (?, ?)",
                (key, value),
            )

    def get_metadata(self, key: str) -> Optional[str]:
        """Retrieve a metadata value by key."""
        with self.connection() as conn:
            row = conn.execute(
                "SELECT value FROM metadata WHERE key = ?", (key,)
            ).fetchone()
            return row["value"] if row else None

    def embedding_dimension(self) -> Optional[int]:
        """Dimension recorded for this store, or None before anything is recorded."""
        with self.connection() as conn:
            return self._recorded_dimension(conn)

    # Documents

    def insert_document(
        self,
        doc: Document,
        chunks: Sequence[TextChunk] = (),
        embeddings: Sequence[np.ndarray] = (),
    ) -> list[str]:
        """Insert a document and, in the same transaction, its chunks.

        Returns:
            IDs of the inserted chunks in ordinal order
        """
        with self.connection() as conn:
            now = _now()
            conn.execute(
                """INSERT INTO documents
                   (id, owner_id, title, content, tags, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?)""",
                (
                    doc.id,
                    doc.owner_id,
                    doc.title,
                    doc.content,
                    json.dumps(doc.tags),
                    doc.created_at.isoformat() if doc.created_at else now,
                    doc.updated_at.isoformat() if doc.updated_at else now,
                ),
            )
            return self._insert_chunks(conn, doc.id, chunks, embeddings)

    def update_document(
        self,
        doc: Document,
        chunks: Sequence[TextChunk] = (),
        embeddings: Sequence[np.ndarray] = (),
    ) -> bool:
        """Update an owner's document and replace its chunk set atomically.

        Returns:
            False if no document with this id belongs to doc.owner_id
        """
        with self.connection() as conn:
            cursor = conn.execute(
                """UPDATE documents
                   SET title = ?, content = ?, tags = ?, updated_at = ?
                   WHERE id = ? AND owner_id = ?""",
                (
                    doc.title,
                    doc.content,
                    json.dumps(doc.tags),
                    _now(),
                    doc.id,
                    doc.owner_id,
                ),
            )
            if cursor.rowcount == 0:
                return False
            conn.execute("DELETE FROM document_chunks WHERE document_id = ?", (doc.id,))
            self._insert_chunks(conn, doc.id, chunks, embeddings)
            return True

    def delete_document(self, document_id: str, owner_id: str) -> bool:
        """Delete an owner's document together with all of its chunks."""
        with self.connection() as conn:
            conn.execute(
                """DELETE FROM document_chunks WHERE document_id IN
                   (SELECT id FROM documents WHERE id = ? AND owner_id = ?)""",
                (document_id, owner_id),
            )
            cursor = conn.execute(
                "DELETE FROM documents WHERE id = ? AND owner_id = ?",
                (document_id, owner_id),
            )
            return cursor.rowcount > 0

    def get_document(self, document_id: str, owner_id: Optional[str] = None) -> Optional[Document]:
        """Fetch a document, optionally restricted to one owner."""
        query = "SELECT * FROM documents WHERE id = ?"
        params: tuple = (document_id,)
        if owner_id is not None:
            query += " AND owner_id = ?"
            params += (owner_id,)
        with self.connection() as conn:
            row = conn.execute(query, params).fetchone()
            return self._row_to_document(row) if row else None

    def list_documents(self, owner_id: str) -> list[Document]:
        """List an owner's documents, newest first."""
        with self.connection() as conn:
            cursor = conn.execute(
                """SELECT * FROM documents WHERE owner_id = ?
                   ORDER BY created_at DESC, id""",
                (owner_id,),
            )
            return [self._row_to_document(row) for row in cursor]

    def list_tags(self, owner_id: str) -> list[str]:
        """Return the sorted set of tags used across an owner's documents."""
        tags: set[str] = set()
        for doc in self.list_documents(owner_id):
            tags.update(doc.tags)
        return sorted(tags)

    def count_documents(self) -> int:
        with self.connection() as conn:
            return conn.execute("SELECT COUNT(*) FROM documents").fetchone()[0]

    # Chunks

    def create_chunk(
        self,
        document_id: str,
        content: str,
        embedding: np.ndarray,
        ordinal: int,
        word_count: Optional[int] = None,
    ) -> str:
        """Insert a single chunk row and return its generated id.

        Raises:
            StorageError: Unknown document_id, duplicate ordinal, malformed
                embedding, or I/O failure
        """
        with self.connection() as conn:
            return self._insert_chunk(
                conn,
                document_id,
                content,
                embedding,
                ordinal,
                word_count,
                self._recorded_dimension(conn),
            )

    def delete_chunks_for_document(self, document_id: str) -> int:
        """Delete every chunk of a document. Deleting nothing is not an error."""
        with self.connection() as conn:
            cursor = conn.execute(
                "DELETE FROM document_chunks WHERE document_id = ?", (document_id,)
            )
            return cursor.rowcount

    def replace_chunks(
        self,
        document_id: str,
        chunks: Sequence[TextChunk],
        embeddings: Sequence[np.ndarray],
    ) -> list[str]:
        """Delete a document's chunks and insert the new set in one transaction."""
        with self.connection() as conn:
            conn.execute("DELETE FROM document_chunks WHERE document_id = ?", (document_id,))
            return self._insert_chunks(conn, document_id, chunks, embeddings)

    def get_chunks(self, document_id: str) -> list[Chunk]:
        """Return a document's chunks in ordinal order."""
        with self.connection() as conn:
            cursor = conn.execute(
                """SELECT * FROM document_chunks WHERE document_id = ?
                   ORDER BY chunk_index""",
                (document_id,),
            )
            return [
                Chunk(
                    id=row["id"],
                    document_id=row["document_id"],
                    content=row["content"],
                    embedding=np.frombuffer(row["embedding"], dtype=np.float32),
                    ordinal=row["chunk_index"],
                    word_count=row["word_count"],
                    created_at=datetime.fromisoformat(row["created_at"]),
                )
                for row in cursor
            ]

    def count_chunks(self, document_id: Optional[str] = None) -> int:
        with self.connection() as conn:
            if document_id is None:
                row = conn.execute("SELECT COUNT(*) FROM document_chunks").fetchone()
            else:
                row = conn.execute(
                    "SELECT COUNT(*) FROM document_chunks WHERE document_id = ?",
                    (document_id,),
                ).fetchone()
            return row[0]

    # Query methods for the search engine

    def nearest_chunks(
        self, query_embedding: np.ndarray, owner_id: str, limit: int
    ) -> list[dict]:
        """Return an owner's `limit` chunks closest to the query by cosine distance.

        Rows are ordered by ascending distance, ties by chunk id. Chunks
        stored with a different dimension than the query are skipped.
        """
        query = np.asarray(query_embedding, dtype=np.float32)
        with self.connection() as conn:
            rows = conn.execute(
                """SELECT c.id, c.content, c.document_id, c.embedding, c.dimension,
                          d.title AS document_title
                   FROM document_chunks c
                   JOIN documents d ON c.document_id = d.id
                   WHERE d.owner_id = ?""",
                (owner_id,),
            ).fetchall()

        candidates = [row for row in rows if row["dimension"] == query.shape[0]]
        if len(candidates) < len(rows):
            logger.warning(
                f"Skipped {len(rows) - len(candidates)} chunks with a dimension "
                f"other than {query.shape[0]}"
            )
        if not candidates:
            return []

        matrix = np.vstack(
            [np.frombuffer(row["embedding"], dtype=np.float32) for row in candidates]
        )
        similarities = self._cosine_similarities(query, matrix)

        results = [
            {
                "chunk_id": row["id"],
                "content": row["content"],
                "document_id": row["document_id"],
                "document_title": row["document_title"],
                "similarity_score": float(similarity),
                "distance": 1.0 - float(similarity),
            }
            for row, similarity in zip(candidates, similarities)
        ]
        results.sort(key=lambda r: (r["distance"], r["chunk_id"]))
        return results[:limit]

    # Internals

    def _insert_chunks(
        self,
        conn: sqlite3.Connection,
        document_id: str,
        chunks: Sequence[TextChunk],
        embeddings: Sequence[np.ndarray],
    ) -> list[str]:
        if len(chunks) != len(embeddings):
            raise StorageError(
                f"Got {len(chunks)} chunks but {len(embeddings)} embeddings"
            )
        dimension = self._recorded_dimension(conn)
        return [
            self._insert_chunk(
                conn,
                document_id,
                chunk.content,
                embedding,
                chunk.ordinal,
                chunk.word_count,
                dimension,
            )
            for chunk, embedding in zip(chunks, embeddings)
        ]

    @staticmethod
    def _recorded_dimension(conn: sqlite3.Connection) -> Optional[int]:
        row = conn.execute(
            "SELECT value FROM metadata WHERE key = 'embedding_dimension'"
        ).fetchone()
        return int(row["value"]) if row else None

    @staticmethod
    def _as_vector(embedding, dimension: Optional[int]) -> np.ndarray:
        """Coerce an embedding to a storable float32 vector.

        Raises:
            StorageError: Not a non-empty 1-D vector of finite numbers, or
                its length differs from the store's recorded dimension
        """
        try:
            vector = np.asarray(embedding, dtype=np.float32)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Embedding is not numeric: {e}") from e

        if vector.ndim != 1 or vector.size == 0:
            raise StorageError(
                f"Embedding must be a non-empty 1-D vector, got shape {vector.shape}"
            )
        if not np.all(np.isfinite(vector)):
            raise StorageError("Embedding contains NaN or infinite values")
        if dimension is not None and vector.shape[0] != dimension:
            raise StorageError(
                f"Embedding has dimension {vector.shape[0]}, store expects {dimension}"
            )
        return vector

    def _insert_chunk(
        self,
        conn: sqlite3.Connection,
        document_id: str,
        content: str,
        embedding: np.ndarray,
        ordinal: int,
        word_count: Optional[int],
        dimension: Optional[int],
    ) -> str:
        vector = self._as_vector(embedding, dimension)
        chunk_id = generate_chunk_id()
        conn.execute(
            """INSERT INTO document_chunks
               (id, document_id, content, embedding, dimension, chunk_index, word_count, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                chunk_id,
                document_id,
                content,
                vector.tobytes(),
                vector.shape[0],
                ordinal,
                word_count,
                _now(),
            ),
        )
        return chunk_id

    @staticmethod
    def _row_to_document(row: sqlite3.Row) -> Document:
        return Document(
            id=row["id"],
            owner_id=row["owner_id"],
            title=row["title"],
            content=row["content"],
            tags=json.loads(row["tags"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    @staticmethod
    def _cosine_similarities(query: np.ndarray, matrix: np.ndarray) -> np.ndarray:
        """Cosine similarity of query against every row; zero vectors score 0."""
        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
        dots = matrix @ query
        with np.errstate(divide="ignore", invalid="ignore"):
            similarities = np.where(norms == 0, 0.0, dots / norms)
        return np.clip(similarities, -1.0, 1.0)
