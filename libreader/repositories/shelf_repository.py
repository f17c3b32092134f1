"""Shelf repository for database operations."""

import logging

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session, selectinload

from libreader import models

logger = logging.getLogger(__name__)


class ShelfRepository:
    """Repository for Shelf database operations."""

    def __init__(self, db: Session) -> None:
        """Initialize repository with database session."""
        self.db = db

    def exists(self, shelf_id: str) -> bool:
        """Check whether a shelf with this ID is stored."""
        stmt = select(models.Shelf.id).where(models.Shelf.id == shelf_id)
        return self.db.execute(stmt).first() is not None

    def find_by_id(self, shelf_id: str) -> models.Shelf | None:
        """Find a shelf by ID with its member documents loaded."""
        stmt = (
            select(models.Shelf)
            .where(models.Shelf.id == shelf_id)
            .options(selectinload(models.Shelf.documents))
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def list_all(self) -> list[models.Shelf]:
        """Get all shelves in display order with member documents loaded."""
        stmt = (
            select(models.Shelf)
            .options(selectinload(models.Shelf.documents))
            .order_by(models.Shelf.display_order, models.Shelf.created_at)
        )
        return list(self.db.execute(stmt).scalars().all())

    def count(self) -> int:
        """Count stored shelves."""
        return self.db.execute(select(func.count(models.Shelf.id))).scalar() or 0

    def add(self, shelf: models.Shelf) -> models.Shelf:
        """Add a new shelf and flush so it gets its ID."""
        self.db.add(shelf)
        self.db.flush()
        return shelf

    def delete(self, shelf: models.Shelf) -> int:
        """
        Delete a shelf; its documents become unshelved.

        Returns:
            Number of documents that were unshelved
        """
        result = self.db.execute(
            update(models.Document)
            .where(models.Document.shelf_id == shelf.id)
            .values(shelf_id=None)
            .execution_options(synchronize_session="fetch")
        )
        self.db.delete(shelf)
        self.db.flush()
        logger.info(f"Deleted shelf {shelf.id}, unshelved {result.rowcount} documents")
        return result.rowcount
