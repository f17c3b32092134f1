"""
Ports between the backup engine and the places a library can live.

A library lives either in the SQL store behind the API or in a local mirror
directory. The snapshot builder reads through ``LibrarySource`` and the
restore engine writes through ``LibraryTarget``, so both work unchanged for
either location.
"""

from collections.abc import Iterator, Sequence
from datetime import date
from typing import Any, BinaryIO, Protocol

from libreader.schemas import (
    BookmarkProjection,
    BookMetadataProjection,
    DocumentProjection,
    ReadingGoalProjection,
    ReadingSessionProjection,
    ReadingStatsProjection,
    ShelfProjection,
)


class LibrarySource(Protocol):
    """Read side of a library, as consumed by the snapshot builder."""

    def iter_documents(self) -> Iterator[DocumentProjection]:
        """Yield every document fully hydrated, sessions newest first."""
        ...

    def list_shelves(self) -> list[ShelfProjection]:
        """Return every shelf with its member document IDs."""
        ...

    def open_file(self, document_id: str) -> tuple[str, BinaryIO] | None:
        """Return ``(mime_type, stream)`` for a document's content, or None if missing."""
        ...


class LibraryTarget(Protocol):
    """
    Write side of a library, as consumed by the restore engine.

    Writes are staged until ``commit``; ``rollback`` discards everything
    written since the last commit, files included.
    """

    def shelf_exists(self, shelf_id: str) -> bool: ...

    def add_shelf(self, shelf: ShelfProjection) -> None: ...

    def document_exists(self, document_id: str) -> bool: ...

    def add_document(self, document: DocumentProjection) -> None:
        """Insert the document's own fields; owned children are added separately."""
        ...

    def add_reading_stats(self, document_id: str, stats: ReadingStatsProjection) -> None: ...

    def add_reading_session(self, document_id: str, session: ReadingSessionProjection) -> None: ...

    def add_bookmark(self, document_id: str, bookmark: BookmarkProjection) -> None: ...

    def add_reading_goal(self, document_id: str, goal: ReadingGoalProjection) -> str:
        """Insert a goal without its days and return the newly assigned goal ID."""
        ...

    def add_completed_day(self, goal_id: str, completed_date: date) -> None: ...

    def get_or_create_subject(self, name: str) -> tuple[Any, bool]:
        """Return ``(subject handle, created)`` for a subject name."""
        ...

    def add_book_metadata(
        self,
        document_id: str,
        metadata: BookMetadataProjection,
        subjects: Sequence[Any],
    ) -> None:
        """Insert metadata linked to subject handles from ``get_or_create_subject``."""
        ...

    def store_file(self, document_id: str, kind: str, content: bytes, mime_type: str) -> None:
        """Write content through the target's storage and create its file record."""
        ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...
