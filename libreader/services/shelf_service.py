"""Service layer for shelves."""

import structlog
from sqlalchemy.orm import Session

from libreader import models
from libreader.exceptions import ShelfNotFoundError
from libreader.mappers import ShelfMapper
from libreader.repositories import DocumentRepository, ShelfRepository
from libreader.schemas import (
    ShelfCreateRequest,
    ShelfDocumentsRequest,
    ShelfProjection,
    ShelfUpdateRequest,
)

logger = structlog.get_logger(__name__)


class ShelfService:
    """Service for shelf operations; membership lives on the documents."""

    def __init__(
        self,
        db: Session,
        shelf_repository: ShelfRepository,
        document_repository: DocumentRepository,
    ) -> None:
        self.db = db
        self.shelf_repository = shelf_repository
        self.document_repository = document_repository
        self.mapper = ShelfMapper()

    def _get(self, shelf_id: str) -> models.Shelf:
        shelf = self.shelf_repository.find_by_id(shelf_id)
        if shelf is None:
            raise ShelfNotFoundError(shelf_id)
        return shelf

    def _project(self, shelf_id: str) -> ShelfProjection:
        self.db.expire_all()
        return self.mapper.to_projection(self._get(shelf_id))

    def list_shelves(self) -> list[ShelfProjection]:
        """Get all shelves in display order."""
        return [self.mapper.to_projection(s) for s in self.shelf_repository.list_all()]

    def get_shelf(self, shelf_id: str) -> ShelfProjection:
        """Get one shelf with its member document IDs."""
        return self.mapper.to_projection(self._get(shelf_id))

    def create_shelf(self, request: ShelfCreateRequest) -> ShelfProjection:
        """Create a shelf; without an explicit order it goes last."""
        order = request.order if request.order is not None else self.shelf_repository.count()
        shelf = self.shelf_repository.add(
            models.Shelf(name=request.name, color=request.color, display_order=order)
        )
        self.db.commit()
        logger.info("shelf_created", shelf_id=shelf.id, order=order)
        return self._project(shelf.id)

    def update_shelf(self, shelf_id: str, request: ShelfUpdateRequest) -> ShelfProjection:
        """Apply a partial update to a shelf."""
        shelf = self._get(shelf_id)
        if request.name is not None:
            shelf.name = request.name
        if request.color is not None:
            shelf.color = request.color
        if request.order is not None:
            shelf.display_order = request.order
        self.db.commit()
        return self._project(shelf_id)

    def delete_shelf(self, shelf_id: str) -> None:
        """Delete a shelf; its documents become unshelved."""
        shelf = self._get(shelf_id)
        self.shelf_repository.delete(shelf)
        self.db.commit()
        logger.info("shelf_deleted", shelf_id=shelf_id)

    def update_documents(self, shelf_id: str, request: ShelfDocumentsRequest) -> ShelfProjection:
        """
        Move documents onto or off a shelf.

        Removals run first and only detach documents that are on this shelf.
        Unknown document IDs are ignored.
        """
        shelf = self._get(shelf_id)

        for document in self.document_repository.find_by_ids(request.remove_document_ids):
            if document.shelf_id == shelf.id:
                document.shelf_id = None

        for document in self.document_repository.find_by_ids(request.add_document_ids):
            document.shelf_id = shelf.id

        self.db.commit()
        logger.info(
            "shelf_documents_updated",
            shelf_id=shelf_id,
            added=len(request.add_document_ids),
            removed=len(request.remove_document_ids),
        )
        return self._project(shelf_id)
