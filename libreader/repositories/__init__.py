"""Repository classes for database operations."""

from libreader.repositories.bookmark_repository import BookmarkRepository
from libreader.repositories.document_file_repository import DocumentFileRepository
from libreader.repositories.document_repository import DocumentRepository
from libreader.repositories.reading_goal_repository import ReadingGoalRepository
from libreader.repositories.reading_session_repository import ReadingSessionRepository
from libreader.repositories.shelf_repository import ShelfRepository
from libreader.repositories.subject_repository import SubjectRepository

__all__ = [
    "BookmarkRepository",
    "DocumentFileRepository",
    "DocumentRepository",
    "ReadingGoalRepository",
    "ReadingSessionRepository",
    "ShelfRepository",
    "SubjectRepository",
]
