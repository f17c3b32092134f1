"""DocumentFile repository for database operations."""

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session, defer, undefer

from libreader import models

logger = logging.getLogger(__name__)


class DocumentFileRepository:
    """Repository for the binary file record of a document."""

    def __init__(self, db: Session) -> None:
        """Initialize repository with database session."""
        self.db = db

    def find_by_document(
        self, document_id: str, *, with_content: bool = True
    ) -> models.DocumentFile | None:
        """
        Find the file record of a document.

        Args:
            document_id: ID of the owning document
            with_content: Load the inline blob too; when False the blob column
                is deferred until first accessed

        Returns:
            The file record, or None if the document has no file
        """
        loader = undefer if with_content else defer
        stmt = (
            select(models.DocumentFile)
            .where(models.DocumentFile.document_id == document_id)
            .options(loader(models.DocumentFile.file_data))
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def add(self, record: models.DocumentFile) -> models.DocumentFile:
        """Add a file record and flush it."""
        self.db.add(record)
        self.db.flush()
        return record
