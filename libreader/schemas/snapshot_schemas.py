"""Pydantic schemas for library snapshots (export, backup and restore)."""

from pydantic import Field

from libreader.schemas.base import CamelModel, UtcDatetime
from libreader.schemas.document_schemas import DocumentProjection
from libreader.schemas.shelf_schemas import ShelfProjection


class FileEntry(CamelModel):
    """Binary content of one document, inline as a data URI."""

    id: str = Field(..., description="ID of the owning document")
    name: str | None = Field(None, description="Display name, the document title")
    type: str | None = Field(None, description="MIME type")
    data: str = Field(..., description="data:<mime>;base64,<payload> or bare base64")


class Snapshot(CamelModel):
    """
    Self-contained transport representation of the library.

    ``metadata`` stays optional here so a payload without it can be
    rejected with a 400 instead of a schema error.
    """

    exported_at: UtcDatetime | None = None
    metadata: list[DocumentProjection] | None = None
    files: list[FileEntry] = Field(default_factory=list)
    shelves: list[ShelfProjection] = Field(default_factory=list)


class RestoreReport(CamelModel):
    """What a restore inserted and what it left alone."""

    shelves_inserted: int = 0
    shelves_existing: int = 0
    documents_inserted: int = 0
    documents_skipped: int = 0
    subjects_created: int = 0
    files_written: int = 0
    shelf_references_repaired: int = 0


class RestoreResponse(CamelModel):
    """Schema for restore response."""

    message: str
    report: RestoreReport
