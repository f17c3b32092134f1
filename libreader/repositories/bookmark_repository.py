"""Bookmark repository for database operations."""

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from libreader import models

logger = logging.getLogger(__name__)


class BookmarkRepository:
    """Repository for Bookmark database operations."""

    def __init__(self, db: Session) -> None:
        """Initialize repository with database session."""
        self.db = db

    def find_by_id_and_document(
        self, bookmark_id: str, document_id: str
    ) -> models.Bookmark | None:
        """Find a bookmark by ID, scoped to its owning document."""
        stmt = select(models.Bookmark).where(
            models.Bookmark.id == bookmark_id,
            models.Bookmark.document_id == document_id,
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def list_for_document(self, document_id: str) -> list[models.Bookmark]:
        """Get a document's bookmarks, oldest first."""
        stmt = (
            select(models.Bookmark)
            .where(models.Bookmark.document_id == document_id)
            .order_by(models.Bookmark.created_at)
        )
        return list(self.db.execute(stmt).scalars().all())

    def add(self, bookmark: models.Bookmark) -> models.Bookmark:
        """Add a bookmark and flush it."""
        self.db.add(bookmark)
        self.db.flush()
        return bookmark

    def delete(self, bookmark: models.Bookmark) -> None:
        """Delete a bookmark."""
        self.db.delete(bookmark)
        self.db.flush()
        logger.info(f"Deleted bookmark {bookmark.id} from document {bookmark.document_id}")
