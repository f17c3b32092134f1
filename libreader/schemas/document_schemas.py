"""Pydantic schemas for documents and their owned reading state."""

from datetime import date
from typing import Literal

from pydantic import Field

from libreader.schemas.base import CamelModel, UtcDatetime

DocumentType = Literal["epub", "pdf"]


class BookmarkProjection(CamelModel):
    """Bookmark as exported and returned by the API."""

    id: str | None = None
    location: str
    label: str
    note: str | None = None
    created_at: UtcDatetime | None = None


class ReadingSessionProjection(CamelModel):
    """One recorded reading interval."""

    started_at: UtcDatetime
    ended_at: UtcDatetime
    duration: int = Field(..., description="Session length in milliseconds")
    pages_read: int = 0


class ReadingStatsProjection(CamelModel):
    """Aggregate reading time plus the most recent sessions."""

    total_reading_time: int = Field(0, description="Total reading time in milliseconds")
    sessions: list[ReadingSessionProjection] = Field(default_factory=list)
    first_opened_at: UtcDatetime | None = None


class ReadingGoalProjection(CamelModel):
    """Daily-minutes goal with its completed days and streak."""

    daily_minutes: int
    completed_days: list[date] = Field(default_factory=list)
    current_streak: int = 0


class BookMetadataProjection(CamelModel):
    """Catalog metadata; subjects are carried by name."""

    author: str | None = None
    publisher: str | None = None
    publish_year: str | None = None
    isbn: str | None = None
    cover_url: str | None = None
    description: str | None = None
    page_count: int | None = None
    subjects: list[str] = Field(default_factory=list)
    open_library_key: str | None = None


class DocumentProjection(CamelModel):
    """Fully hydrated document, the unit of export and restore."""

    id: str
    title: str
    type: DocumentType
    file_size: int = 0
    upload_date: UtcDatetime | None = None
    last_opened: UtcDatetime | None = None
    current_page: int | None = None
    total_pages: int | None = None
    current_cfi: str | None = None
    reading_progress_percent: float | None = None
    shelf_id: str | None = None
    bookmarks: list[BookmarkProjection] = Field(default_factory=list)
    reading_stats: ReadingStatsProjection = Field(default_factory=ReadingStatsProjection)
    reading_goal: ReadingGoalProjection | None = None
    metadata: BookMetadataProjection | None = None


class BookMetadataUpdate(CamelModel):
    """Partial metadata update; only provided fields are applied."""

    author: str | None = None
    publisher: str | None = None
    publish_year: str | None = None
    isbn: str | None = None
    cover_url: str | None = None
    description: str | None = None
    page_count: int | None = None
    subjects: list[str] | None = None
    open_library_key: str | None = None


class DocumentUpdateRequest(CamelModel):
    """Partial document update."""

    title: str | None = Field(None, min_length=1, max_length=500)
    last_opened: UtcDatetime | None = None
    current_page: int | None = None
    total_pages: int | None = None
    current_cfi: str | None = None
    reading_progress_percent: float | None = None
    shelf_id: str | None = None
    metadata: BookMetadataUpdate | None = None


class ProgressUpdateRequest(CamelModel):
    """Reading position update sent while reading."""

    page: int | None = None
    cfi: str | None = None
    progress_percent: float | None = Field(None, ge=0, le=100)


class BookmarkCreateRequest(CamelModel):
    """Schema for creating a bookmark."""

    location: str = Field(..., max_length=500)
    label: str = Field(..., max_length=500)
    note: str | None = None


class BookmarkUpdateRequest(CamelModel):
    """Schema for updating a bookmark."""

    location: str | None = Field(None, max_length=500)
    label: str | None = Field(None, max_length=500)
    note: str | None = None


class ReadingSessionCreateRequest(CamelModel):
    """Schema for recording a reading session."""

    started_at: UtcDatetime
    ended_at: UtcDatetime
    duration: int = Field(..., ge=0)
    pages_read: int = Field(0, ge=0)


class ReadingGoalRequest(CamelModel):
    """Schema for creating or updating a reading goal."""

    daily_minutes: int = Field(..., ge=1)
    current_streak: int | None = Field(None, ge=0)
    completed_days: list[date] | None = None
