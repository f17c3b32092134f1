"""SQL-backed library: the store behind the API, as a backup source and target."""

import logging
from collections.abc import Iterator, Sequence
from datetime import date
from pathlib import Path
from typing import Any, BinaryIO

from sqlalchemy.orm import Session

from libreader import models
from libreader.mappers import DocumentMapper, ShelfMapper
from libreader.repositories import (
    BookmarkRepository,
    DocumentFileRepository,
    DocumentRepository,
    ReadingGoalRepository,
    ReadingSessionRepository,
    ShelfRepository,
    SubjectRepository,
)
from libreader.schemas import (
    BookmarkProjection,
    BookMetadataProjection,
    DocumentProjection,
    ReadingGoalProjection,
    ReadingSessionProjection,
    ReadingStatsProjection,
    ShelfProjection,
)
from libreader.storage import FileStorage

logger = logging.getLogger(__name__)


class SqlLibraryStore:
    """
    Reads and writes a library through the repositories.

    Inserts are flushed but not committed until ``commit``. Files written by
    the filesystem strategy are tracked so ``rollback`` can delete them along
    with the rolled-back rows.
    """

    def __init__(self, db: Session, storage: FileStorage) -> None:
        self.db = db
        self.storage = storage
        self.document_repo = DocumentRepository(db)
        self.shelf_repo = ShelfRepository(db)
        self.subject_repo = SubjectRepository(db)
        self.bookmark_repo = BookmarkRepository(db)
        self.session_repo = ReadingSessionRepository(db)
        self.goal_repo = ReadingGoalRepository(db)
        self.file_repo = DocumentFileRepository(db)
        self.document_mapper = DocumentMapper()
        self.shelf_mapper = ShelfMapper()
        self._written_paths: list[Path] = []

    # Source

    def iter_documents(self) -> Iterator[DocumentProjection]:
        for document in self.document_repo.iter_all():
            sessions = self.session_repo.latest_for_document(document.id)
            yield self.document_mapper.to_projection(document, sessions)

    def list_shelves(self) -> list[ShelfProjection]:
        return [self.shelf_mapper.to_projection(s) for s in self.shelf_repo.list_all()]

    def open_file(self, document_id: str) -> tuple[str, BinaryIO] | None:
        record = self.file_repo.find_by_document(document_id, with_content=False)
        if record is None:
            return None
        mime_type = record.mime_type
        stream = self.storage.open(record)
        # Release the loaded blob; the stream keeps its own reference
        self.db.expire(record, ["file_data"])
        if stream is None:
            return None
        return mime_type, stream

    # Target

    def shelf_exists(self, shelf_id: str) -> bool:
        return self.shelf_repo.exists(shelf_id)

    def add_shelf(self, shelf: ShelfProjection) -> None:
        self.shelf_repo.add(self.shelf_mapper.to_orm(shelf))

    def document_exists(self, document_id: str) -> bool:
        return self.document_repo.exists(document_id)

    def add_document(self, document: DocumentProjection) -> None:
        self.document_repo.add(self.document_mapper.to_orm(document))

    def add_reading_stats(self, document_id: str, stats: ReadingStatsProjection) -> None:
        self.db.add(
            models.ReadingStats(
                document_id=document_id,
                total_reading_time=stats.total_reading_time,
                first_opened_at=stats.first_opened_at,
            )
        )
        self.db.flush()

    def add_reading_session(self, document_id: str, session: ReadingSessionProjection) -> None:
        self.session_repo.add(
            models.ReadingSession(
                document_id=document_id,
                started_at=session.started_at,
                ended_at=session.ended_at,
                duration=session.duration,
                pages_read=session.pages_read,
            )
        )

    def add_bookmark(self, document_id: str, bookmark: BookmarkProjection) -> None:
        orm_bookmark = models.Bookmark(
            document_id=document_id,
            location=bookmark.location,
            label=bookmark.label,
            note=bookmark.note,
        )
        if bookmark.id is not None:
            orm_bookmark.id = bookmark.id
        if bookmark.created_at is not None:
            orm_bookmark.created_at = bookmark.created_at
        self.bookmark_repo.add(orm_bookmark)

    def add_reading_goal(self, document_id: str, goal: ReadingGoalProjection) -> str:
        orm_goal = self.goal_repo.add(
            models.ReadingGoal(
                document_id=document_id,
                daily_minutes=goal.daily_minutes,
                current_streak=goal.current_streak,
            )
        )
        return orm_goal.id

    def add_completed_day(self, goal_id: str, completed_date: date) -> None:
        self.db.add(
            models.ReadingGoalCompletedDay(reading_goal_id=goal_id, completed_date=completed_date)
        )
        self.db.flush()

    def get_or_create_subject(self, name: str) -> tuple[models.Subject, bool]:
        return self.subject_repo.get_or_create(name)

    def add_book_metadata(
        self,
        document_id: str,
        metadata: BookMetadataProjection,
        subjects: Sequence[Any],
    ) -> None:
        self.db.add(
            models.BookMetadata(
                document_id=document_id,
                author=metadata.author,
                publisher=metadata.publisher,
                publish_year=metadata.publish_year,
                isbn=metadata.isbn,
                cover_url=metadata.cover_url,
                description=metadata.description,
                page_count=metadata.page_count,
                open_library_key=metadata.open_library_key,
                subjects=list(subjects),
            )
        )
        self.db.flush()

    def store_file(self, document_id: str, kind: str, content: bytes, mime_type: str) -> None:
        record = models.DocumentFile(document_id=document_id, mime_type=mime_type)
        self.storage.write(record, content, document_id=document_id, extension=kind)
        if record.file_path:
            self._written_paths.append(Path(record.file_path))
        self.file_repo.add(record)

    def commit(self) -> None:
        self.db.commit()
        self._written_paths.clear()

    def rollback(self) -> None:
        self.db.rollback()
        for path in self._written_paths:
            path.unlink(missing_ok=True)
            logger.info(f"Removed file written by rolled-back restore: {path}")
        self._written_paths.clear()
