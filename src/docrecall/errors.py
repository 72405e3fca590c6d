"""Exception hierarchy for DocRecall."""


class DocRecallError(Exception):
    """Base class for all DocRecall errors."""


class ValidationError(DocRecallError):
    """Malformed input, or malformed output from an external provider."""


class EmbeddingProviderError(DocRecallError):
    """The embedding provider call failed or returned no vectors."""


class StorageError(DocRecallError):
    """The persistence layer rejected a read or write."""


class NotFoundError(DocRecallError):
    """An owner-scoped document lookup found nothing."""
