"""Service layer for documents and their owned reading state."""

from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import PurePath
from typing import BinaryIO

import structlog
from sqlalchemy.orm import Session

from libreader import models
from libreader.archive import default_mime_type
from libreader.constants import DOCUMENT_TYPES
from libreader.exceptions import (
    BookmarkNotFoundError,
    DocumentFileNotFoundError,
    DocumentNotFoundError,
    ShelfNotFoundError,
    UnsupportedDocumentTypeError,
    ValidationError,
)
from libreader.mappers import DocumentMapper
from libreader.repositories import (
    BookmarkRepository,
    DocumentFileRepository,
    DocumentRepository,
    ReadingSessionRepository,
    ShelfRepository,
    SubjectRepository,
)
from libreader.schemas import (
    BookmarkCreateRequest,
    BookmarkProjection,
    BookmarkUpdateRequest,
    BookMetadataUpdate,
    DocumentProjection,
    DocumentUpdateRequest,
    ProgressUpdateRequest,
    ReadingSessionCreateRequest,
    ReadingStatsProjection,
)
from libreader.storage import FileStorage

logger = structlog.get_logger(__name__)


@dataclass
class DocumentContent:
    """Open binary content of a document, ready to be sent."""

    stream: BinaryIO
    mime_type: str
    filename: str


class DocumentService:
    """Service for document-related operations."""

    def __init__(
        self,
        db: Session,
        storage: FileStorage,
        document_repository: DocumentRepository,
        shelf_repository: ShelfRepository,
        subject_repository: SubjectRepository,
        bookmark_repository: BookmarkRepository,
        session_repository: ReadingSessionRepository,
        file_repository: DocumentFileRepository,
    ) -> None:
        self.db = db
        self.storage = storage
        self.document_repository = document_repository
        self.shelf_repository = shelf_repository
        self.subject_repository = subject_repository
        self.bookmark_repository = bookmark_repository
        self.session_repository = session_repository
        self.file_repository = file_repository
        self.mapper = DocumentMapper()

    def _get(self, document_id: str, *, hydrated: bool = False) -> models.Document:
        document = self.document_repository.find_by_id(document_id, hydrated=hydrated)
        if document is None:
            raise DocumentNotFoundError(document_id)
        return document

    def _project(self, document_id: str) -> DocumentProjection:
        # Reload so relationships reflect what was just written
        self.db.expire_all()
        document = self._get(document_id, hydrated=True)
        sessions = self.session_repository.latest_for_document(document_id)
        return self.mapper.to_projection(document, sessions)

    def list_documents(self) -> list[DocumentProjection]:
        """Get every document, newest upload first."""
        return [
            self.mapper.to_projection(d, self.session_repository.latest_for_document(d.id))
            for d in self.document_repository.list_all()
        ]

    def get_document(self, document_id: str) -> DocumentProjection:
        """Get one fully hydrated document."""
        return self._project(document_id)

    def upload_document(
        self,
        filename: str,
        content: bytes,
        title: str | None = None,
        total_pages: int | None = None,
    ) -> DocumentProjection:
        """
        Create a document from an uploaded EPUB or PDF.

        The content is written through the active storage strategy and an
        empty stats record is created alongside the document.

        Args:
            filename: Original file name; its extension selects the kind
            content: File content
            title: Display title, defaults to the file name without extension
            total_pages: Page count reported by the client, if known

        Returns:
            The created document

        Raises:
            UnsupportedDocumentTypeError: If the file is neither .epub nor .pdf
        """
        path = PurePath(filename)
        kind = path.suffix.lower().lstrip(".")
        if kind not in DOCUMENT_TYPES:
            raise UnsupportedDocumentTypeError(filename)

        document = self.document_repository.add(
            models.Document(
                title=title or path.stem,
                type=kind,
                file_size=len(content),
                total_pages=total_pages,
            )
        )
        self.session_repository.get_or_create_stats(document.id)

        record = models.DocumentFile(document_id=document.id, mime_type=default_mime_type(kind))
        self.storage.write(record, content, document_id=document.id, extension=kind)
        try:
            self.file_repository.add(record)
            self.db.commit()
        except Exception:
            self.db.rollback()
            self.storage.remove(record)
            raise

        logger.info(
            "document_uploaded",
            document_id=document.id,
            type=kind,
            file_size=len(content),
            storage=self.storage.name,
        )
        return self._project(document.id)

    def update_document(
        self, document_id: str, request: DocumentUpdateRequest
    ) -> DocumentProjection:
        """
        Apply a partial update; only fields present in the request change.

        Raises:
            DocumentNotFoundError: If the document does not exist
            ShelfNotFoundError: If the request points at a missing shelf
        """
        document = self._get(document_id, hydrated=True)
        changes = request.model_dump(exclude_unset=True, exclude={"metadata"})

        shelf_id = changes.get("shelf_id")
        if shelf_id is not None and not self.shelf_repository.exists(shelf_id):
            raise ShelfNotFoundError(shelf_id)

        if "title" in changes and changes["title"] is None:
            raise ValidationError("Title cannot be empty")

        for field, value in changes.items():
            setattr(document, field, value)

        if request.metadata is not None:
            self._apply_metadata(document, request.metadata)

        self.db.commit()
        logger.info("document_updated", document_id=document_id, fields=sorted(changes))
        return self._project(document_id)

    def _apply_metadata(self, document: models.Document, update: BookMetadataUpdate) -> None:
        metadata = document.book_metadata
        if metadata is None:
            metadata = models.BookMetadata(document_id=document.id)
            self.db.add(metadata)
            document.book_metadata = metadata

        fields = update.model_dump(exclude_unset=True, exclude={"subjects"})
        for field, value in fields.items():
            setattr(metadata, field, value)

        if update.subjects is not None:
            subjects, created = self.subject_repository.get_or_create_many(update.subjects)
            metadata.subjects = subjects
            if created:
                logger.info("subjects_created", document_id=document.id, count=created)
        self.db.flush()

    def delete_document(self, document_id: str) -> None:
        """
        Delete a document, every record it owns and its on-disk file.

        Raises:
            DocumentNotFoundError: If the document does not exist
        """
        document = self._get(document_id)
        record = self.file_repository.find_by_document(document_id, with_content=False)
        file_path = record.file_path if record else None

        self.document_repository.delete(document)
        self.db.commit()

        if file_path:
            self.storage.remove(models.DocumentFile(document_id=document_id, file_path=file_path))
        logger.info("document_deleted", document_id=document_id)

    def open_content(self, document_id: str) -> DocumentContent:
        """
        Open a document's binary content through the active storage.

        Raises:
            DocumentFileNotFoundError: If there is no file record or its content is gone
        """
        record = self.file_repository.find_by_document(document_id)
        if record is None:
            raise DocumentFileNotFoundError(document_id)

        stream = self.storage.open(record)
        if stream is None:
            raise DocumentFileNotFoundError(document_id, message="File data not found on disk")

        document = self.document_repository.find_by_id(document_id)
        filename = f"{document.title}.{document.type}" if document else "document"
        return DocumentContent(stream=stream, mime_type=record.mime_type, filename=filename)

    def update_progress(
        self, document_id: str, request: ProgressUpdateRequest
    ) -> DocumentProjection:
        """Store the reading position and stamp the document as just opened."""
        document = self._get(document_id)
        if request.page is not None:
            document.current_page = request.page
        if request.cfi is not None:
            document.current_cfi = request.cfi
        if request.progress_percent is not None:
            document.reading_progress_percent = request.progress_percent
        document.last_opened = datetime.now(UTC)
        self.db.commit()
        return self._project(document_id)

    def add_bookmark(
        self, document_id: str, request: BookmarkCreateRequest
    ) -> BookmarkProjection:
        """Create a bookmark on a document."""
        self._get(document_id)
        bookmark = self.bookmark_repository.add(
            models.Bookmark(
                document_id=document_id,
                location=request.location,
                label=request.label,
                note=request.note,
            )
        )
        self.db.commit()
        self.db.refresh(bookmark)
        return self.mapper.bookmark_to_projection(bookmark)

    def update_bookmark(
        self, document_id: str, bookmark_id: str, request: BookmarkUpdateRequest
    ) -> BookmarkProjection:
        """Apply a partial update to a bookmark."""
        bookmark = self.bookmark_repository.find_by_id_and_document(bookmark_id, document_id)
        if bookmark is None:
            raise BookmarkNotFoundError(bookmark_id)

        for field, value in request.model_dump(exclude_unset=True).items():
            if value is None and field != "note":
                continue
            setattr(bookmark, field, value)
        self.db.commit()
        self.db.refresh(bookmark)
        return self.mapper.bookmark_to_projection(bookmark)

    def delete_bookmark(self, document_id: str, bookmark_id: str) -> None:
        """Delete a bookmark from a document."""
        bookmark = self.bookmark_repository.find_by_id_and_document(bookmark_id, document_id)
        if bookmark is None:
            raise BookmarkNotFoundError(bookmark_id)
        self.bookmark_repository.delete(bookmark)
        self.db.commit()

    def record_session(
        self, document_id: str, request: ReadingSessionCreateRequest
    ) -> ReadingStatsProjection:
        """
        Record a reading session and fold it into the document's stats.

        Total reading time grows by the session's duration; the first-opened
        timestamp is set once, from the first session recorded.
        """
        self._get(document_id)
        if request.ended_at < request.started_at:
            raise ValidationError("Session cannot end before it starts")

        self.session_repository.add(
            models.ReadingSession(
                document_id=document_id,
                started_at=request.started_at,
                ended_at=request.ended_at,
                duration=request.duration,
                pages_read=request.pages_read,
            )
        )
        stats = self.session_repository.get_or_create_stats(document_id)
        stats.total_reading_time += request.duration
        if stats.first_opened_at is None:
            stats.first_opened_at = request.started_at
        self.db.commit()

        logger.debug("session_recorded", document_id=document_id, duration=request.duration)
        return self.get_stats(document_id)

    def get_stats(self, document_id: str) -> ReadingStatsProjection:
        """Get a document's stats with its most recent sessions."""
        self._get(document_id)
        stats = self.session_repository.find_stats(document_id)
        sessions = self.session_repository.latest_for_document(document_id)
        return self.mapper.stats_to_projection(stats, sessions)
