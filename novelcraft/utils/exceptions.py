"""Custom exception hierarchy for the application."""


class NovelcraftError(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, is_retryable: bool = False) -> None:
        """Initialize exception.

        Args:
            message: Error message
            is_retryable: Whether the operation can be retried
        """
        super().__init__(message)
        self.message = message
        self.is_retryable = is_retryable


class ConfigurationError(NovelcraftError):
    """Configuration or environment setup error."""

    pass


class DatabaseError(NovelcraftError):
    """Database operation error."""

    pass


class ValidationError(NovelcraftError):
    """Input validation error."""

    pass


class DocumentNotFoundError(NovelcraftError):
    """No chapter or wiki page exists with the requested id."""

    def __init__(self, document_id: str) -> None:
        super().__init__(f"Document not found: {document_id}")
        self.document_id = document_id


class SlugTakenError(NovelcraftError):
    """A wiki page with the same slug already exists in the project."""

    pass


class PersistenceFailure(NovelcraftError):
    """Saving document content failed. Always safe to retry."""

    def __init__(self, message: str) -> None:
        super().__init__(message, is_retryable=True)


class IndexUpdateFailure(NovelcraftError):
    """Recomputing outgoing links failed after a successful save."""

    pass


class RestoreFailure(NovelcraftError):
    """Revision not found or unreadable."""

    pass


class EditSessionClosedError(NovelcraftError):
    """Operation attempted on an edit session that was already closed."""

    pass
