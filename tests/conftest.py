"""Pytest configuration and fixtures."""

import os

# Settings are read once and cached, so the environment is set before any import
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "test")

from collections.abc import Generator  # noqa: E402
from pathlib import Path  # noqa: E402
from typing import Any  # noqa: E402

import pytest  # noqa: E402
from dependency_injector import providers  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine, event  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from libreader import models  # noqa: E402
from libreader.core import container  # noqa: E402
from libreader.database import Base, get_db, get_session_factory  # noqa: E402
from libreader.main import app  # noqa: E402
from libreader.storage import BlobStorage, FileStorage, FilesystemStorage  # noqa: E402

# Test database URL (in-memory SQLite)
TEST_DATABASE_URL = "sqlite://"

# One shared connection, so every session sees the same in-memory database
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@event.listens_for(test_engine, "connect")
def _enable_foreign_keys(dbapi_connection: Any, _connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# Create test session factory
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    """Create a fresh database session for each test."""
    # Create all tables
    Base.metadata.create_all(bind=test_engine)

    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()
        # Drop all tables after test
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def filesystem_storage(tmp_path: Path) -> FilesystemStorage:
    """Filesystem strategy rooted in a per-test directory."""
    return FilesystemStorage(tmp_path / "uploads")


@pytest.fixture
def blob_storage() -> BlobStorage:
    """Database (inline blob) strategy."""
    return BlobStorage()


@pytest.fixture
def storage(filesystem_storage: FilesystemStorage) -> Generator[FileStorage, None, None]:
    """Active storage strategy for API tests; filesystem unless overridden."""
    container.storage.override(providers.Object(filesystem_storage))
    try:
        yield filesystem_storage
    finally:
        container.storage.reset_override()


@pytest.fixture
def client(db_session: Session, storage: FileStorage) -> Generator[TestClient, Any, None]:
    """Create a test client with database session."""

    def override_get_db() -> Generator[Session, None, None]:
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: TestSessionLocal

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def create_test_document(
    db_session: Session,
    title: str = "Test Document",
    kind: str = "epub",
    shelf_id: str | None = None,
    document_id: str | None = None,
    content: bytes | None = None,
    storage: FileStorage | None = None,
    **kwargs: Any,
) -> models.Document:
    """
    Create a document with an empty stats record and, optionally, a file.

    Args:
        db_session: Database session
        title: Document title
        kind: "epub" or "pdf"
        shelf_id: Shelf the document sits on
        document_id: Explicit ID, generated when omitted
        content: File content; requires ``storage``
        storage: Strategy used to store ``content``
        **kwargs: Extra Document columns

    Returns:
        The committed document
    """
    document = models.Document(
        title=title,
        type=kind,
        shelf_id=shelf_id,
        file_size=len(content) if content else 0,
        **kwargs,
    )
    if document_id is not None:
        document.id = document_id
    db_session.add(document)
    db_session.flush()
    db_session.add(models.ReadingStats(document_id=document.id))

    if content is not None and storage is not None:
        mime_type = "application/epub+zip" if kind == "epub" else "application/pdf"
        record = models.DocumentFile(document_id=document.id, mime_type=mime_type)
        storage.write(record, content, document_id=document.id, extension=kind)
        db_session.add(record)

    db_session.commit()
    db_session.refresh(document)
    return document


def create_test_shelf(
    db_session: Session,
    name: str = "Test Shelf",
    color: str = "#336699",
    display_order: int = 0,
    shelf_id: str | None = None,
) -> models.Shelf:
    """Create a shelf."""
    shelf = models.Shelf(name=name, color=color, display_order=display_order)
    if shelf_id is not None:
        shelf.id = shelf_id
    db_session.add(shelf)
    db_session.commit()
    db_session.refresh(shelf)
    return shelf


def snapshot_document(document_id: str, title: str = "Imported", **fields: Any) -> dict[str, Any]:
    """Build one DocumentProjection as it appears in a snapshot payload."""
    document: dict[str, Any] = {
        "id": document_id,
        "title": title,
        "type": "epub",
        "fileSize": 0,
        "uploadDate": "2024-01-01T10:00:00+00:00",
        "bookmarks": [],
        "readingStats": {"totalReadingTime": 0, "sessions": []},
    }
    document.update(fields)
    return document
