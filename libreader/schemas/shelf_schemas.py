"""Pydantic schemas for shelves."""

from pydantic import Field

from libreader.schemas.base import CamelModel, UtcDatetime


class ShelfProjection(CamelModel):
    """Shelf with the IDs of its member documents."""

    id: str
    name: str
    color: str
    created_at: UtcDatetime | None = None
    document_ids: list[str] = Field(default_factory=list)
    order: int = 0


class ShelfCreateRequest(CamelModel):
    """Schema for creating a shelf."""

    name: str = Field(..., min_length=1, max_length=200)
    color: str = Field(..., max_length=7)
    order: int | None = None


class ShelfUpdateRequest(CamelModel):
    """Schema for updating a shelf."""

    name: str | None = Field(None, min_length=1, max_length=200)
    color: str | None = Field(None, max_length=7)
    order: int | None = None


class ShelfDocumentsRequest(CamelModel):
    """Documents to move onto or off a shelf."""

    add_document_ids: list[str] = Field(default_factory=list)
    remove_document_ids: list[str] = Field(default_factory=list)
