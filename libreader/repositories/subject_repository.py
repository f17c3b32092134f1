"""Subject repository for database operations."""

import logging

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from libreader import models
from libreader.exceptions import LibreaderError

logger = logging.getLogger(__name__)


class SubjectRepository:
    """Repository for the globally shared Subject tags."""

    def __init__(self, db: Session) -> None:
        """Initialize repository with database session."""
        self.db = db

    def find_by_name(self, name: str) -> models.Subject | None:
        """Find a subject by its exact name."""
        stmt = select(models.Subject).where(models.Subject.name == name)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_or_create(self, name: str) -> tuple[models.Subject, bool]:
        """
        Get the subject with this name, creating it if it does not exist.

        The insert ignores a conflict on the unique name, so two writers
        racing on the same new name still end up sharing one row.

        Args:
            name: Exact subject name

        Returns:
            Tuple of (subject, created) where created is True if the row is new
        """
        existing = self.find_by_name(name)
        if existing is not None:
            return existing, False

        if self.db.bind is None:
            raise LibreaderError("Database not bound!")

        dialect = self.db.bind.dialect.name
        if dialect == "postgresql":
            stmt = pg_insert(models.Subject).values(name=name).on_conflict_do_nothing(
                index_elements=["name"]
            )
        elif dialect == "sqlite":
            stmt = sqlite_insert(models.Subject).values(name=name).on_conflict_do_nothing(
                index_elements=["name"]
            )
        else:
            subject = models.Subject(name=name)
            self.db.add(subject)
            self.db.flush()
            return subject, True

        result = self.db.execute(stmt)
        created = result.rowcount == 1

        subject = self.find_by_name(name)
        if subject is None:
            raise LibreaderError(f"Subject '{name}' vanished after insert")
        if created:
            logger.debug(f"Created subject '{name}'")
        return subject, created

    def get_or_create_many(self, names: list[str]) -> tuple[list[models.Subject], int]:
        """
        Resolve a list of names to subjects, deduplicating repeated names.

        Returns:
            Tuple of (subjects in first-seen order, number of subjects created)
        """
        subjects: list[models.Subject] = []
        seen: set[str] = set()
        created_count = 0
        for name in names:
            if name in seen:
                continue
            seen.add(name)
            subject, created = self.get_or_create(name)
            subjects.append(subject)
            created_count += int(created)
        return subjects, created_count
