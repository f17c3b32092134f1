from dependency_injector import containers, providers
from sqlalchemy.orm import Session

from libreader.config import get_settings
from libreader.repositories import (
    BookmarkRepository,
    DocumentFileRepository,
    DocumentRepository,
    ReadingGoalRepository,
    ReadingSessionRepository,
    ShelfRepository,
    SubjectRepository,
)
from libreader.services.backup_service import BackupService
from libreader.services.document_service import DocumentService
from libreader.services.reading_goal_service import ReadingGoalService, utc_today
from libreader.services.shelf_service import ShelfService
from libreader.storage import create_file_storage


class Container(containers.DeclarativeContainer):
    """Dependency injection container."""

    # Declare db as a dependency that will be provided at runtime
    db = providers.Dependency(instance_of=Session)

    settings = providers.Singleton(get_settings)

    # Active storage strategy, built once from configuration
    storage = providers.Singleton(create_file_storage, settings=settings)

    # Clock for streak tracking
    today = providers.Object(utc_today)

    # Repositories
    document_repository = providers.Factory(DocumentRepository, db=db)
    shelf_repository = providers.Factory(ShelfRepository, db=db)
    subject_repository = providers.Factory(SubjectRepository, db=db)
    bookmark_repository = providers.Factory(BookmarkRepository, db=db)
    reading_session_repository = providers.Factory(ReadingSessionRepository, db=db)
    reading_goal_repository = providers.Factory(ReadingGoalRepository, db=db)
    document_file_repository = providers.Factory(DocumentFileRepository, db=db)

    # Services
    document_service = providers.Factory(
        DocumentService,
        db=db,
        storage=storage,
        document_repository=document_repository,
        shelf_repository=shelf_repository,
        subject_repository=subject_repository,
        bookmark_repository=bookmark_repository,
        session_repository=reading_session_repository,
        file_repository=document_file_repository,
    )

    shelf_service = providers.Factory(
        ShelfService,
        db=db,
        shelf_repository=shelf_repository,
        document_repository=document_repository,
    )

    reading_goal_service = providers.Factory(
        ReadingGoalService,
        db=db,
        document_repository=document_repository,
        goal_repository=reading_goal_repository,
        today=today,
    )

    backup_service = providers.Factory(BackupService, db=db, storage=storage)


# Initialize container
container = Container()
