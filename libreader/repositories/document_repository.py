"""Document repository for database operations."""

import logging
from collections.abc import Iterator

from sqlalchemy import delete, select
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.sql.selectable import Select

from libreader import models

logger = logging.getLogger(__name__)


def _hydrated(stmt: Select[tuple[models.Document]]) -> Select[tuple[models.Document]]:
    """Eager-load every owned child a document projection needs."""
    return stmt.options(
        selectinload(models.Document.book_metadata).selectinload(models.BookMetadata.subjects),
        selectinload(models.Document.bookmarks),
        selectinload(models.Document.reading_stats),
        selectinload(models.Document.reading_goal).selectinload(
            models.ReadingGoal.completed_days
        ),
    )


class DocumentRepository:
    """Repository for Document database operations."""

    def __init__(self, db: Session) -> None:
        """Initialize repository with database session."""
        self.db = db

    def exists(self, document_id: str) -> bool:
        """Check whether a document with this ID is stored."""
        stmt = select(models.Document.id).where(models.Document.id == document_id)
        return self.db.execute(stmt).first() is not None

    def find_by_id(self, document_id: str, *, hydrated: bool = False) -> models.Document | None:
        """Find a document by ID, optionally with all owned children loaded."""
        stmt = select(models.Document).where(models.Document.id == document_id)
        if hydrated:
            stmt = _hydrated(stmt)
        return self.db.execute(stmt).scalar_one_or_none()

    def find_by_ids(self, document_ids: list[str]) -> list[models.Document]:
        """Find all documents whose IDs are in the list."""
        if not document_ids:
            return []
        stmt = select(models.Document).where(models.Document.id.in_(document_ids))
        return list(self.db.execute(stmt).scalars().all())

    def list_all(self) -> list[models.Document]:
        """Get all hydrated documents, newest upload first."""
        stmt = _hydrated(select(models.Document)).order_by(
            models.Document.upload_date.desc(), models.Document.id
        )
        return list(self.db.execute(stmt).scalars().all())

    def iter_all(self, batch_size: int = 100) -> Iterator[models.Document]:
        """
        Iterate hydrated documents in upload order, one batch at a time.

        Args:
            batch_size: Number of documents loaded per query

        Yields:
            Document ORM objects with metadata, bookmarks, stats and goal loaded
        """
        offset = 0
        while True:
            stmt = (
                _hydrated(select(models.Document))
                .order_by(models.Document.upload_date, models.Document.id)
                .offset(offset)
                .limit(batch_size)
            )
            batch = list(self.db.execute(stmt).scalars().all())
            if not batch:
                return
            yield from batch
            offset += len(batch)

    def add(self, document: models.Document) -> models.Document:
        """Add a new document and flush so it gets its ID."""
        self.db.add(document)
        self.db.flush()
        return document

    def delete(self, document: models.Document) -> None:
        """
        Delete a document and every child it owns.

        Children are removed explicitly, not through database cascades.
        """
        document_id = document.id

        goal_ids = select(models.ReadingGoal.id).where(
            models.ReadingGoal.document_id == document_id
        )
        self.db.execute(
            delete(models.ReadingGoalCompletedDay).where(
                models.ReadingGoalCompletedDay.reading_goal_id.in_(goal_ids)
            )
        )
        metadata_ids = select(models.BookMetadata.id).where(
            models.BookMetadata.document_id == document_id
        )
        self.db.execute(
            delete(models.book_subjects).where(
                models.book_subjects.c.book_metadata_id.in_(metadata_ids)
            )
        )
        for child in (
            models.ReadingGoal,
            models.BookMetadata,
            models.Bookmark,
            models.ReadingSession,
            models.ReadingStats,
            models.DocumentFile,
        ):
            self.db.execute(delete(child).where(child.document_id == document_id))

        self.db.execute(delete(models.Document).where(models.Document.id == document_id))
        self.db.expunge(document)
        self.db.flush()
        logger.info(f"Deleted document {document_id} and its owned records")

    def assign_shelf(self, document: models.Document, shelf_id: str | None) -> None:
        """Point a document at a shelf (or none)."""
        document.shelf_id = shelf_id
        self.db.flush()
