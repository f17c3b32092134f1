"""Mapper for Shelf ORM ↔ projection conversion."""

from libreader.models import Shelf as ShelfORM
from libreader.schemas import ShelfProjection


class ShelfMapper:
    """Mapper for Shelf ORM ↔ projection conversion."""

    def to_projection(self, orm_model: ShelfORM) -> ShelfProjection:
        """Convert a Shelf with its documents loaded; member IDs are derived."""
        return ShelfProjection(
            id=orm_model.id,
            name=orm_model.name,
            color=orm_model.color,
            created_at=orm_model.created_at,
            order=orm_model.display_order,
            document_ids=[d.id for d in orm_model.documents],
        )

    def to_orm(self, projection: ShelfProjection) -> ShelfORM:
        """Build a new Shelf row from a projection, keeping its ID."""
        shelf = ShelfORM(
            id=projection.id,
            name=projection.name,
            color=projection.color,
            display_order=projection.order,
        )
        if projection.created_at is not None:
            shelf.created_at = projection.created_at
        return shelf
