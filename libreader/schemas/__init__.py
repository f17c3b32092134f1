"""Pydantic schemas for API request/response validation."""

from libreader.schemas.document_schemas import (
    BookmarkCreateRequest,
    BookmarkProjection,
    BookmarkUpdateRequest,
    BookMetadataProjection,
    BookMetadataUpdate,
    DocumentProjection,
    DocumentType,
    DocumentUpdateRequest,
    ProgressUpdateRequest,
    ReadingGoalProjection,
    ReadingGoalRequest,
    ReadingSessionCreateRequest,
    ReadingSessionProjection,
    ReadingStatsProjection,
)
from libreader.schemas.shelf_schemas import (
    ShelfCreateRequest,
    ShelfDocumentsRequest,
    ShelfProjection,
    ShelfUpdateRequest,
)
from libreader.schemas.snapshot_schemas import (
    FileEntry,
    RestoreReport,
    RestoreResponse,
    Snapshot,
)

__all__ = [
    "BookMetadataProjection",
    "BookMetadataUpdate",
    "BookmarkCreateRequest",
    "BookmarkProjection",
    "BookmarkUpdateRequest",
    "DocumentProjection",
    "DocumentType",
    "DocumentUpdateRequest",
    "FileEntry",
    "ProgressUpdateRequest",
    "ReadingGoalProjection",
    "ReadingGoalRequest",
    "ReadingSessionCreateRequest",
    "ReadingSessionProjection",
    "ReadingStatsProjection",
    "RestoreReport",
    "RestoreResponse",
    "ShelfCreateRequest",
    "ShelfDocumentsRequest",
    "ShelfProjection",
    "ShelfUpdateRequest",
    "Snapshot",
]
