"""Database models."""

import uuid
from datetime import date, datetime

from sqlalchemy import (
    BigInteger,
    Column,
    Date,
    ForeignKey,
    Integer,
    LargeBinary,
    Numeric,
    String,
    Table,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from libreader.database import Base, UTCDateTime


def generate_uuid() -> str:
    """Return a new random UUID string for primary keys."""
    return str(uuid.uuid4())


# Association table for the many-to-many BookMetadata <-> Subject relationship
book_subjects = Table(
    "book_subjects",
    Base.metadata,
    Column(
        "book_metadata_id",
        String(36),
        ForeignKey("book_metadata.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "subject_id",
        Integer,
        ForeignKey("subjects.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class Shelf(Base):
    """A named, colored container of documents."""

    __tablename__ = "shelves"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    color: Mapped[str] = mapped_column(String(7), nullable=False)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    # Derived side: membership is owned by Document.shelf_id
    documents: Mapped[list["Document"]] = relationship(back_populates="shelf")

    def __repr__(self) -> str:
        """String representation of Shelf."""
        return f"<Shelf(id={self.id}, name='{self.name}')>"


class Document(Base):
    """An uploaded EPUB or PDF and its reading position."""

    __tablename__ = "documents"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    type: Mapped[str] = mapped_column(String(10), nullable=False)
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    upload_date: Mapped[datetime] = mapped_column(
        UTCDateTime(), server_default=func.now(), nullable=False
    )
    last_opened: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    current_page: Mapped[int | None] = mapped_column(Integer, nullable=True)
    total_pages: Mapped[int | None] = mapped_column(Integer, nullable=True)
    current_cfi: Mapped[str | None] = mapped_column(Text, nullable=True)
    reading_progress_percent: Mapped[float | None] = mapped_column(
        Numeric(5, 2, asdecimal=False), nullable=True
    )
    shelf_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("shelves.id", ondelete="SET NULL"), nullable=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    shelf: Mapped[Shelf | None] = relationship(back_populates="documents")
    book_metadata: Mapped["BookMetadata | None"] = relationship(back_populates="document")
    bookmarks: Mapped[list["Bookmark"]] = relationship(
        back_populates="document", order_by="Bookmark.created_at"
    )
    sessions: Mapped[list["ReadingSession"]] = relationship(back_populates="document")
    reading_stats: Mapped["ReadingStats | None"] = relationship(back_populates="document")
    reading_goal: Mapped["ReadingGoal | None"] = relationship(back_populates="document")
    file: Mapped["DocumentFile | None"] = relationship(back_populates="document")

    def __repr__(self) -> str:
        """String representation of Document."""
        return f"<Document(id={self.id}, title='{self.title[:50]}')>"


class Subject(Base):
    """A globally shared subject tag, unique by name."""

    __tablename__ = "subjects"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), unique=True, nullable=False)

    book_metadata: Mapped[list["BookMetadata"]] = relationship(
        secondary=book_subjects, back_populates="subjects"
    )

    def __repr__(self) -> str:
        """String representation of Subject."""
        return f"<Subject(id={self.id}, name='{self.name}')>"


class BookMetadata(Base):
    """Catalog metadata for a document."""

    __tablename__ = "book_metadata"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    document_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("documents.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    author: Mapped[str | None] = mapped_column(String(500), nullable=True)
    publisher: Mapped[str | None] = mapped_column(String(500), nullable=True)
    publish_year: Mapped[str | None] = mapped_column(String(10), nullable=True)
    isbn: Mapped[str | None] = mapped_column(String(20), nullable=True)
    cover_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    page_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    open_library_key: Mapped[str | None] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    document: Mapped[Document] = relationship(back_populates="book_metadata")
    subjects: Mapped[list[Subject]] = relationship(
        secondary=book_subjects, back_populates="book_metadata", order_by=Subject.name
    )


class Bookmark(Base):
    """A labelled location inside a document."""

    __tablename__ = "bookmarks"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    document_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True
    )
    location: Mapped[str] = mapped_column(String(500), nullable=False)
    label: Mapped[str] = mapped_column(String(500), nullable=False)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), server_default=func.now(), nullable=False
    )

    document: Mapped[Document] = relationship(back_populates="bookmarks")


class ReadingSession(Base):
    """One immutable reading interval."""

    __tablename__ = "reading_sessions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    document_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True
    )
    started_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    ended_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)
    pages_read: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), server_default=func.now(), nullable=False
    )

    document: Mapped[Document] = relationship(back_populates="sessions")


class ReadingStats(Base):
    """Running reading-time aggregate for a document."""

    __tablename__ = "reading_stats"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    document_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("documents.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    total_reading_time: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    first_opened_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime(), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    document: Mapped[Document] = relationship(back_populates="reading_stats")


class ReadingGoal(Base):
    """Daily reading target and streak for a document."""

    __tablename__ = "reading_goals"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    document_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("documents.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    daily_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    current_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    document: Mapped[Document] = relationship(back_populates="reading_goal")
    completed_days: Mapped[list["ReadingGoalCompletedDay"]] = relationship(
        back_populates="reading_goal", order_by="ReadingGoalCompletedDay.id"
    )


class ReadingGoalCompletedDay(Base):
    """A calendar date on which a reading goal was met."""

    __tablename__ = "reading_goal_completed_days"
    __table_args__ = (
        UniqueConstraint("reading_goal_id", "completed_date", name="uq_goal_completed_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    reading_goal_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("reading_goals.id", ondelete="CASCADE"), nullable=False
    )
    completed_date: Mapped[date] = mapped_column(Date, nullable=False)

    reading_goal: Mapped[ReadingGoal] = relationship(back_populates="completed_days")


class DocumentFile(Base):
    """Binary content of a document, on disk or inline."""

    __tablename__ = "document_files"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    document_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("documents.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    # Filesystem strategy
    file_path: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Database strategy
    file_data: Mapped[bytes | None] = mapped_column(LargeBinary, nullable=True)
    mime_type: Mapped[str] = mapped_column(String(100), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), server_default=func.now(), nullable=False
    )

    document: Mapped[Document] = relationship(back_populates="file")
