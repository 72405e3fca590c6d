"""Small text helpers for document fields."""

DESCRIPTION_LENGTH = 100


def parse_tags(tags_input: str | None) -> list[str]:
    """Parse a comma-separated tag string, dropping blanks.

    >>> parse_tags("python, search ,, notes")
    ['python', 'search', 'notes']
    """
    if not tags_input:
        return []
    return [tag.strip() for tag in tags_input.split(",") if tag.strip()]


def describe(content: str, length: int = DESCRIPTION_LENGTH) -> str:
    """Short description: the first `length` characters, with an ellipsis if cut."""
    if len(content) > length:
        return content[:length].strip() + "..."
    return content.strip()
