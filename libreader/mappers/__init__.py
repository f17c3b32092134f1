"""Mappers between ORM models and wire projections."""

from libreader.mappers.document_mapper import DocumentMapper
from libreader.mappers.shelf_mapper import ShelfMapper

__all__ = ["DocumentMapper", "ShelfMapper"]
