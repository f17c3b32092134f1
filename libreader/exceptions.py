"""Custom exception hierarchy for the libreader application."""


class LibreaderError(Exception):
    """Base exception for all libreader errors."""

    def __init__(self, message: str, status_code: int = 500) -> None:
        """Initialize exception with message and optional status code."""
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class NotFoundError(LibreaderError):
    """Resource not found error."""

    def __init__(self, message: str) -> None:
        """Initialize with message and 404 status code."""
        super().__init__(message, status_code=404)


class DocumentNotFoundError(NotFoundError):
    """Document not found error."""

    def __init__(self, document_id: str | None = None) -> None:
        self.document_id = document_id
        super().__init__("Document not found")


class ShelfNotFoundError(NotFoundError):
    """Shelf not found error."""

    def __init__(self, shelf_id: str | None = None) -> None:
        self.shelf_id = shelf_id
        super().__init__("Shelf not found")


class BookmarkNotFoundError(NotFoundError):
    """Bookmark not found error."""

    def __init__(self, bookmark_id: str | None = None) -> None:
        self.bookmark_id = bookmark_id
        super().__init__("Bookmark not found")


class ReadingGoalNotFoundError(NotFoundError):
    """Reading goal not found error."""

    def __init__(self, document_id: str | None = None) -> None:
        self.document_id = document_id
        super().__init__("Reading goal not found")


class DocumentFileNotFoundError(NotFoundError):
    """Binary content for a document is missing."""

    def __init__(self, document_id: str | None = None, *, message: str | None = None) -> None:
        self.document_id = document_id
        super().__init__(message or "File not found")


class ValidationError(LibreaderError):
    """Validation error."""

    def __init__(self, message: str) -> None:
        """Initialize with message and 400 status code."""
        super().__init__(message, status_code=400)


class InvalidSnapshotError(ValidationError):
    """Backup payload is missing required fields."""

    def __init__(self, reason: str = "Invalid backup payload") -> None:
        self.reason = reason
        super().__init__(reason)


class UnsupportedDocumentTypeError(ValidationError):
    """Uploaded file is neither EPUB nor PDF."""

    def __init__(self, filename: str | None = None) -> None:
        self.filename = filename
        super().__init__("Only .epub and .pdf files are allowed")


class PayloadTooLargeError(LibreaderError):
    """Request body exceeds the configured maximum size."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(f"Request body exceeds the {limit} byte limit", status_code=413)


class StorageError(LibreaderError):
    """Reading or writing binary document content failed."""


class LibraryApiError(LibreaderError):
    """A remote libreader API answered with an error."""

    def __init__(self, message: str, status_code: int = 502) -> None:
        super().__init__(message, status_code=status_code)
