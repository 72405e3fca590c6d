"""In-memory filtering of a document list for library browsing."""

import re

from docrecall.models import Document

_TAG_MENTION = re.compile(r"@\w+")


def filter_documents(documents: list[Document], query: str) -> list[Document]:
    """Filter documents by free text and @tag mentions.

    Every @tag in the query must match (as a substring) one of the document's
    tags. Any remaining text must appear in the title, content, or a tag.
    Matching is case-insensitive; a blank query returns all documents.
    """
    if not query.strip():
        return documents

    search_term = query.lower().strip()
    tag_queries = [mention[1:] for mention in _TAG_MENTION.findall(search_term)]
    text_query = _TAG_MENTION.sub("", search_term).strip()

    def matches(doc: Document) -> bool:
        tags = [tag.lower() for tag in doc.tags]

        if tag_queries and not all(
            any(tag_query in tag for tag in tags) for tag_query in tag_queries
        ):
            return False

        if text_query:
            return (
                text_query in doc.title.lower()
                or text_query in (doc.content or "").lower()
                or any(text_query in tag for tag in tags)
            )

        return True

    return [doc for doc in documents if matches(doc)]
