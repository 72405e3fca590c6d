"""FastMCP server implementation for DocRecall."""

import logging
from pathlib import Path
from typing import Optional

from mcp.server.fastmcp import FastMCP

from docrecall.config import Settings, build_embedder, load_settings
from docrecall.embedders import EmbeddingClient
from docrecall.errors import DocRecallError
from docrecall.protocols import EmbeddingProvider
from docrecall.search import SearchEngine
from docrecall.storage import LibraryStore
from docrecall.utils import describe, filter_documents

logger = logging.getLogger(__name__)


def create_mcp_server(
    db_path: Path | str,
    owner_id: str,
    settings: Optional[Settings] = None,
    provider: Optional[EmbeddingProvider] = None,
) -> FastMCP:
    """Create an MCP server for one owner's library.

    Design: 1 process = 1 owner scope. Every tool only ever sees the
    documents of `owner_id`.

    Args:
        db_path: Path to the library database
        owner_id: Owner whose documents are served
        settings: Search defaults and embedder choice (loaded from env if omitted)
        provider: Embedding provider override

    Returns:
        Configured FastMCP server instance
    """
    settings = settings or load_settings()
    mcp = FastMCP(name="docrecall")

    store = LibraryStore(db_path)
    embedding_client = EmbeddingClient(
        provider or build_embedder(settings), max_workers=settings.embed_workers
    )
    engine = SearchEngine(store, embedding_client)

    @mcp.tool()
    def ls(query: str = "") -> str:
        """List documents in the library.

        Args:
            query: Optional filter; plain words match title, content or tags,
                   "@tag" mentions must match a tag

        Returns:
            One line per document with its id, title and tags
        """
        documents = filter_documents(store.list_documents(owner_id), query)
        if not documents:
            return f"No documents found matching '{query}'"

        lines = []
        for doc in documents:
            tags = " ".join(f"@{tag}" for tag in doc.tags)
            lines.append(f"{doc.id}  {doc.title}  {tags}".rstrip())
            lines.append(f"   {describe(doc.content)}")
        return "\n".join(lines)

    @mcp.tool()
    def read(document_id: str) -> str:
        """Read a document's full content.

        Args:
            document_id: Document id (as shown in ls output)
        """
        doc = store.get_document(document_id, owner_id)
        if doc is None:
            return f"Error: Document not found: {document_id}"
        return f"# {doc.title}\n\n{doc.content}"

    @mcp.tool()
    def search(query: str, limit: int = settings.search_limit) -> str:
        """Semantic search across the library.

        Finds passages by meaning, not just keywords.

        Args:
            query: Natural language description of what you're looking for
            limit: Maximum number of results to return

        Returns:
            Ranked list of matching passages with similarity scores
        """
        try:
            results = engine.semantic_search(
                query, owner_id, limit=limit, similarity_threshold=settings.similarity_threshold
            )
        except DocRecallError:
            logger.exception("Semantic search failed")
            return "Search failed. Please try again."

        if not results:
            return f"No results found for: {query}"

        lines = []
        for i, r in enumerate(results, 1):
            text = r.content[:200].replace("\n", " ")
            if len(r.content) > 200:
                text += "..."

            lines.append(f"{i}. [{r.similarity_score:.3f}] {r.document_title}")
            lines.append(f"   {text}")
            lines.append("")

        return "\n".join(lines)

    return mcp
