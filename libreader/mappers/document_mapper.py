"""Mapper for Document ORM ↔ projection conversion."""

from collections.abc import Sequence

from libreader.models import BookMetadata as BookMetadataORM
from libreader.models import Bookmark as BookmarkORM
from libreader.models import Document as DocumentORM
from libreader.models import ReadingGoal as ReadingGoalORM
from libreader.models import ReadingSession as ReadingSessionORM
from libreader.models import ReadingStats as ReadingStatsORM
from libreader.schemas import (
    BookmarkProjection,
    BookMetadataProjection,
    DocumentProjection,
    ReadingGoalProjection,
    ReadingSessionProjection,
    ReadingStatsProjection,
)


class DocumentMapper:
    """Mapper for Document ORM ↔ projection conversion."""

    def to_projection(
        self,
        orm_model: DocumentORM,
        sessions: Sequence[ReadingSessionORM] = (),
    ) -> DocumentProjection:
        """
        Convert a hydrated Document to its wire projection.

        Args:
            orm_model: Document with metadata, bookmarks, stats and goal loaded
            sessions: Sessions to embed in the stats, newest first

        Returns:
            DocumentProjection
        """
        return DocumentProjection(
            id=orm_model.id,
            title=orm_model.title,
            type=orm_model.type,  # type: ignore[arg-type]
            file_size=orm_model.file_size,
            upload_date=orm_model.upload_date,
            last_opened=orm_model.last_opened,
            current_page=orm_model.current_page,
            total_pages=orm_model.total_pages,
            current_cfi=orm_model.current_cfi,
            reading_progress_percent=orm_model.reading_progress_percent,
            shelf_id=orm_model.shelf_id,
            bookmarks=[self.bookmark_to_projection(b) for b in orm_model.bookmarks],
            reading_stats=self.stats_to_projection(orm_model.reading_stats, sessions),
            reading_goal=self.goal_to_projection(orm_model.reading_goal),
            metadata=self.metadata_to_projection(orm_model.book_metadata),
        )

    def bookmark_to_projection(self, orm_model: BookmarkORM) -> BookmarkProjection:
        """Convert a Bookmark to its projection."""
        return BookmarkProjection(
            id=orm_model.id,
            location=orm_model.location,
            label=orm_model.label,
            note=orm_model.note,
            created_at=orm_model.created_at,
        )

    def stats_to_projection(
        self,
        orm_model: ReadingStatsORM | None,
        sessions: Sequence[ReadingSessionORM] = (),
    ) -> ReadingStatsProjection:
        """Convert ReadingStats (or its absence) plus sessions to a projection."""
        return ReadingStatsProjection(
            total_reading_time=orm_model.total_reading_time if orm_model else 0,
            first_opened_at=orm_model.first_opened_at if orm_model else None,
            sessions=[
                ReadingSessionProjection(
                    started_at=s.started_at,
                    ended_at=s.ended_at,
                    duration=s.duration,
                    pages_read=s.pages_read,
                )
                for s in sessions
            ],
        )

    def goal_to_projection(self, orm_model: ReadingGoalORM | None) -> ReadingGoalProjection | None:
        """Convert a ReadingGoal with its completed days to a projection."""
        if orm_model is None:
            return None
        return ReadingGoalProjection(
            daily_minutes=orm_model.daily_minutes,
            current_streak=orm_model.current_streak,
            completed_days=[d.completed_date for d in orm_model.completed_days],
        )

    def metadata_to_projection(
        self, orm_model: BookMetadataORM | None
    ) -> BookMetadataProjection | None:
        """Convert BookMetadata to a projection carrying subject names."""
        if orm_model is None:
            return None
        return BookMetadataProjection(
            author=orm_model.author,
            publisher=orm_model.publisher,
            publish_year=orm_model.publish_year,
            isbn=orm_model.isbn,
            cover_url=orm_model.cover_url,
            description=orm_model.description,
            page_count=orm_model.page_count,
            open_library_key=orm_model.open_library_key,
            subjects=[s.name for s in orm_model.subjects],
        )

    def to_orm(self, projection: DocumentProjection) -> DocumentORM:
        """
        Build a new Document row from a projection, keeping its ID.

        Only the document's own columns are set; owned children are inserted
        separately.
        """
        document = DocumentORM(
            id=projection.id,
            title=projection.title,
            type=projection.type,
            file_size=projection.file_size,
            last_opened=projection.last_opened,
            current_page=projection.current_page,
            total_pages=projection.total_pages,
            current_cfi=projection.current_cfi,
            reading_progress_percent=projection.reading_progress_percent,
            shelf_id=projection.shelf_id,
        )
        if projection.upload_date is not None:
            document.upload_date = projection.upload_date
        return document
