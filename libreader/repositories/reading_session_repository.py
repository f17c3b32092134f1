"""ReadingSession and ReadingStats repository for database operations."""

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from libreader import models
from libreader.constants import SESSION_DISPLAY_LIMIT

logger = logging.getLogger(__name__)


class ReadingSessionRepository:
    """Repository for reading sessions and the per-document stats aggregate."""

    def __init__(self, db: Session) -> None:
        """Initialize repository with database session."""
        self.db = db

    def add(self, session: models.ReadingSession) -> models.ReadingSession:
        """Add a reading session and flush it."""
        self.db.add(session)
        self.db.flush()
        return session

    def latest_for_document(
        self, document_id: str, limit: int = SESSION_DISPLAY_LIMIT
    ) -> list[models.ReadingSession]:
        """
        Get the most recent sessions for a document.

        Args:
            document_id: ID of the document
            limit: Maximum number of sessions returned

        Returns:
            Sessions ordered newest first
        """
        stmt = (
            select(models.ReadingSession)
            .where(models.ReadingSession.document_id == document_id)
            .order_by(models.ReadingSession.started_at.desc(), models.ReadingSession.id)
            .limit(limit)
        )
        return list(self.db.execute(stmt).scalars().all())

    def find_stats(self, document_id: str) -> models.ReadingStats | None:
        """Find the stats aggregate of a document."""
        stmt = select(models.ReadingStats).where(models.ReadingStats.document_id == document_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_or_create_stats(self, document_id: str) -> models.ReadingStats:
        """Get the stats aggregate of a document, creating an empty one if missing."""
        stats = self.find_stats(document_id)
        if stats is None:
            stats = models.ReadingStats(document_id=document_id, total_reading_time=0)
            self.db.add(stats)
            self.db.flush()
            logger.debug(f"Created reading stats for document {document_id}")
        return stats
