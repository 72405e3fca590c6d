"""CLI entry point for DocRecall."""

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional

from docrecall.chunkers import SentenceChunker
from docrecall.config import Settings, build_embedder, load_settings
from docrecall.embedders import EmbeddingClient
from docrecall.errors import DocRecallError, NotFoundError
from docrecall.lifecycle import DocumentLifecycle
from docrecall.search import SearchEngine
from docrecall.storage import LibraryStore
from docrecall.utils import describe, filter_documents, parse_tags

logger = logging.getLogger(__name__)


def open_store(db_path: str) -> LibraryStore:
    """Open the library database, creating its schema on first use."""
    store = LibraryStore(db_path)
    store.initialize()
    return store


def build_lifecycle(settings: Settings, store: LibraryStore) -> DocumentLifecycle:
    """Wire the lifecycle orchestrator and record the embedding model used."""
    provider = build_embedder(settings)
    client = EmbeddingClient(provider, max_workers=settings.embed_workers)

    recorded = store.get_metadata("embedding_model")
    if recorded is None:
        store.set_metadata("embedding_model", provider.model_name)
        store.set_metadata("embedding_dimension", str(provider.dimension))
    elif recorded != provider.model_name:
        logger.warning(
            f"Store was indexed with {recorded}, now embedding with {provider.model_name}"
        )

    return DocumentLifecycle(store, client, SentenceChunker(settings.max_chunk_size))


def _read_content(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def add(settings: Settings, owner: str, title: str, source: str, tags: str | None) -> None:
    """Add a text document to an owner's library.

    Args:
        owner: Owner id
        title: Document title
        source: Path to a text file, or "-" for stdin
        tags: Comma-separated tags
    """
    store = open_store(settings.db_path)
    lifecycle = build_lifecycle(settings, store)
    doc = lifecycle.create_document(owner, title, _read_content(source), parse_tags(tags))
    logger.info(f"Added {doc.id} ({store.count_chunks(doc.id)} chunks)")


def update(
    settings: Settings,
    owner: str,
    document_id: str,
    title: str,
    source: str,
    tags: str | None,
) -> None:
    """Replace a document's title, content and tags, then re-index it."""
    store = open_store(settings.db_path)
    lifecycle = build_lifecycle(settings, store)
    lifecycle.update_document(
        document_id, owner, title, _read_content(source), parse_tags(tags)
    )
    logger.info(f"Updated {document_id} ({store.count_chunks(document_id)} chunks)")


def delete(settings: Settings, owner: str, document_id: str) -> None:
    """Delete a document and its chunks."""
    store = open_store(settings.db_path)
    if not store.delete_document(document_id, owner):
        raise NotFoundError(f"Document {document_id} not found")
    logger.info(f"Deleted {document_id}")


def list_documents(settings: Settings, owner: str, query: str) -> None:
    """Print an owner's documents, optionally filtered by text and @tags."""
    store = open_store(settings.db_path)
    documents = filter_documents(store.list_documents(owner), query)

    if not documents:
        print("No documents found.")
        return

    for doc in documents:
        tags = " ".join(f"@{tag}" for tag in doc.tags)
        print(f"{doc.id}  {doc.title}  {tags}".rstrip())
        print(f"   {describe(doc.content)}")


def tags(settings: Settings, owner: str) -> None:
    """Print every tag an owner uses."""
    store = open_store(settings.db_path)
    for tag in store.list_tags(owner):
        print(tag)


def search(
    settings: Settings,
    owner: str,
    query: str,
    limit: Optional[int],
    threshold: Optional[float],
) -> int:
    """Semantic search over an owner's library.

    Returns:
        Process exit code
    """
    store = open_store(settings.db_path)
    provider = build_embedder(settings)
    engine = SearchEngine(store, EmbeddingClient(provider, max_workers=settings.embed_workers))

    try:
        results = engine.semantic_search(
            query,
            owner,
            limit=limit if limit is not None else settings.search_limit,
            similarity_threshold=(
                threshold if threshold is not None else settings.similarity_threshold
            ),
        )
    except DocRecallError:
        logger.exception("Semantic search failed")
        print("Search failed. Please try again.")
        return 1

    if not results:
        print(f"No results found for: {query}")
        return 0

    for i, r in enumerate(results, 1):
        text = r.content[:200].replace("\n", " ")
        if len(r.content) > 200:
            text += "..."
        print(f"{i}. [{r.similarity_score:.3f}] {r.document_title}")
        print(f"   {text}")
        print()
    return 0


def serve(settings: Settings, owner: str, transport: str = "stdio") -> None:
    """Start MCP server for one owner's library."""
    db_path = Path(settings.db_path)
    if not db_path.exists():
        logger.error(f"Library not found: {db_path}")
        sys.exit(1)

    # Import here to avoid loading MCP unless needed
    from docrecall.server import create_mcp_server

    from typing import cast, Literal

    logger.info(f"Serving {db_path} for {owner} via {transport}")
    mcp = create_mcp_server(db_path, owner, settings)
    mcp.run(transport=cast(Literal["stdio", "sse", "streamable-http"], transport))


def info(settings: Settings) -> None:
    """Show information about a library database."""
    db_path = Path(settings.db_path)
    if not db_path.exists():
        logger.error(f"Library not found: {db_path}")
        sys.exit(1)

    store = LibraryStore(db_path)

    print(f"Library: {db_path.name}")
    print(f"  Size: {db_path.stat().st_size / 1024:.1f} KB")
    print(f"")
    print(f"Metadata:")
    for key in ["embedding_model", "embedding_dimension"]:
        value = store.get_metadata(key)
        if value:
            print(f"  {key}: {value}")
    print(f"")
    print(f"Contents:")
    print(f"  Documents: {store.count_documents()}")
    print(f"  Chunks: {store.count_chunks()}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docrecall",
        description="DocRecall - semantic search for your document library",
    )
    parser.add_argument("--db", help="Library database path (default: $DOCRECALL_DB_PATH)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    def owner_argument(sub: argparse.ArgumentParser) -> None:
        sub.add_argument("--owner", required=True, help="Owner id of the library")

    # add command
    add_parser = subparsers.add_parser("add", help="Add a text document")
    owner_argument(add_parser)
    add_parser.add_argument("source", help="Text file path, or - for stdin")
    add_parser.add_argument("--title", required=True, help="Document title")
    add_parser.add_argument("--tags", help="Comma-separated tags")

    # update command
    update_parser = subparsers.add_parser("update", help="Replace a document and re-index it")
    owner_argument(update_parser)
    update_parser.add_argument("document_id", help="Document id")
    update_parser.add_argument("source", help="Text file path, or - for stdin")
    update_parser.add_argument("--title", required=True, help="Document title")
    update_parser.add_argument("--tags", help="Comma-separated tags")

    # delete command
    delete_parser = subparsers.add_parser("delete", help="Delete a document")
    owner_argument(delete_parser)
    delete_parser.add_argument("document_id", help="Document id")

    # list command
    list_parser = subparsers.add_parser("list", help="List documents")
    owner_argument(list_parser)
    list_parser.add_argument(
        "query", nargs="?", default="", help='Filter text; "@tag" matches tags'
    )

    # tags command
    tags_parser = subparsers.add_parser("tags", help="List tags in use")
    owner_argument(tags_parser)

    # search command
    search_parser = subparsers.add_parser("search", help="Semantic search")
    owner_argument(search_parser)
    search_parser.add_argument("query", help="Natural language query")
    search_parser.add_argument("--limit", type=int, help="Maximum number of results")
    search_parser.add_argument("--threshold", type=float, help="Minimum similarity score")

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Start MCP server for a library")
    owner_argument(serve_parser)
    serve_parser.add_argument(
        "--transport",
        choices=["stdio", "sse"],
        default="stdio",
        help="Transport protocol (default: stdio)",
    )

    # info command
    subparsers.add_parser("info", help="Show information about a library")

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
    )

    settings = load_settings()
    if args.db:
        settings = replace(settings, db_path=args.db)

    try:
        if args.command == "add":
            add(settings, args.owner, args.title, args.source, args.tags)
        elif args.command == "update":
            update(settings, args.owner, args.document_id, args.title, args.source, args.tags)
        elif args.command == "delete":
            delete(settings, args.owner, args.document_id)
        elif args.command == "list":
            list_documents(settings, args.owner, args.query)
        elif args.command == "tags":
            tags(settings, args.owner)
        elif args.command == "search":
            sys.exit(search(settings, args.owner, args.query, args.limit, args.threshold))
        elif args.command == "serve":
            serve(settings, args.owner, args.transport)
        elif args.command == "info":
            info(settings)
    except DocRecallError as e:
        logger.error(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
