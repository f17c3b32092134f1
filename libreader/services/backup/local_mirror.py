"""
Local mirror: a library kept in a plain directory.

Layout under the root directory::

    metadata/<documentId>.json   DocumentProjection
    shelves/<shelfId>.json       ShelfProjection (member IDs are derived)
    files/<documentId>.bin       raw file content
    files/<documentId>.json      {"name": ..., "type": <mime>}

The mirror is both a ``LibrarySource`` and a ``LibraryTarget``. Writes are
staged in memory (file content in a staging directory) and only reach the
layout above on ``commit``.
"""

import json
import shutil
import uuid
from collections.abc import Iterator, Sequence
from datetime import date
from pathlib import Path
from typing import Any, BinaryIO

import structlog

from libreader.constants import LIVE_STREAK_RETENTION
from libreader.domain import StreakState, mark_day_complete
from libreader.exceptions import DocumentNotFoundError, ReadingGoalNotFoundError
from libreader.schemas import (
    BookmarkProjection,
    BookMetadataProjection,
    DocumentProjection,
    ReadingGoalProjection,
    ReadingSessionProjection,
    ReadingStatsProjection,
    ShelfProjection,
)

logger = structlog.get_logger(__name__)

_STAGING_DIR = ".staging"


class LocalMirrorStore:
    """Directory-backed library with staged, commit-or-rollback writes."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)
        self.metadata_dir = self.root / "metadata"
        self.shelves_dir = self.root / "shelves"
        self.files_dir = self.root / "files"
        self._staged_shelves: dict[str, ShelfProjection] = {}
        self._staged_documents: dict[str, DocumentProjection] = {}
        self._staged_files: dict[str, tuple[Path, str]] = {}
        self._subject_names: set[str] | None = None

    # Source

    def iter_documents(self) -> Iterator[DocumentProjection]:
        documents = [self._read_document(path) for path in self._json_files(self.metadata_dir)]
        documents.sort(key=lambda d: (d.upload_date is None, d.upload_date or 0, d.id))
        yield from documents

    def list_shelves(self) -> list[ShelfProjection]:
        members: dict[str, list[str]] = {}
        for document in self.iter_documents():
            if document.shelf_id is not None:
                members.setdefault(document.shelf_id, []).append(document.id)

        shelves = [
            ShelfProjection.model_validate_json(path.read_bytes())
            for path in self._json_files(self.shelves_dir)
        ]
        shelves.sort(key=lambda s: (s.order, s.id))
        return [s.model_copy(update={"document_ids": members.get(s.id, [])}) for s in shelves]

    def open_file(self, document_id: str) -> tuple[str, BinaryIO] | None:
        content_path = self.files_dir / f"{document_id}.bin"
        if not content_path.is_file():
            return None
        info = self._read_file_info(document_id)
        return info.get("type") or "", content_path.open("rb")

    # Target

    def shelf_exists(self, shelf_id: str) -> bool:
        return shelf_id in self._staged_shelves or self._shelf_path(shelf_id).is_file()

    def add_shelf(self, shelf: ShelfProjection) -> None:
        self._staged_shelves[shelf.id] = shelf.model_copy(update={"document_ids": []})

    def document_exists(self, document_id: str) -> bool:
        return (
            document_id in self._staged_documents or self._document_path(document_id).is_file()
        )

    def add_document(self, document: DocumentProjection) -> None:
        self._staged_documents[document.id] = document.model_copy(
            update={
                "bookmarks": [],
                "reading_stats": ReadingStatsProjection(),
                "reading_goal": None,
                "metadata": None,
            }
        )

    def add_reading_stats(self, document_id: str, stats: ReadingStatsProjection) -> None:
        document = self._staged(document_id)
        document.reading_stats = stats.model_copy(update={"sessions": []})

    def add_reading_session(self, document_id: str, session: ReadingSessionProjection) -> None:
        self._staged(document_id).reading_stats.sessions.append(session)

    def add_bookmark(self, document_id: str, bookmark: BookmarkProjection) -> None:
        self._staged(document_id).bookmarks.append(bookmark)

    def add_reading_goal(self, document_id: str, goal: ReadingGoalProjection) -> str:
        # A document owns at most one goal, so the goal is keyed by its document
        self._staged(document_id).reading_goal = goal.model_copy(update={"completed_days": []})
        return document_id

    def add_completed_day(self, goal_id: str, completed_date: date) -> None:
        goal = self._staged(goal_id).reading_goal
        if goal is None:
            raise ReadingGoalNotFoundError(goal_id)
        goal.completed_days.append(completed_date)

    def get_or_create_subject(self, name: str) -> tuple[str, bool]:
        known = self._known_subjects()
        if name in known:
            return name, False
        known.add(name)
        return name, True

    def add_book_metadata(
        self,
        document_id: str,
        metadata: BookMetadataProjection,
        subjects: Sequence[Any],
    ) -> None:
        self._staged(document_id).metadata = metadata.model_copy(
            update={"subjects": [str(s) for s in subjects]}
        )

    def store_file(self, document_id: str, kind: str, content: bytes, mime_type: str) -> None:
        staging = self.root / _STAGING_DIR
        staging.mkdir(parents=True, exist_ok=True)
        path = staging / f"{uuid.uuid4().hex}-{document_id}.{kind}"
        path.write_bytes(content)
        self._staged_files[document_id] = (path, mime_type)

    def commit(self) -> None:
        for directory in (self.metadata_dir, self.shelves_dir, self.files_dir):
            directory.mkdir(parents=True, exist_ok=True)

        for shelf in self._staged_shelves.values():
            self._shelf_path(shelf.id).write_text(shelf.model_dump_json(by_alias=True))

        for document in self._staged_documents.values():
            self._write_document(document)

        for document_id, (path, mime_type) in self._staged_files.items():
            document = self._staged_documents.get(document_id)
            shutil.move(str(path), self.files_dir / f"{document_id}.bin")
            info = {"name": document.title if document else None, "type": mime_type}
            (self.files_dir / f"{document_id}.json").write_text(json.dumps(info))

        logger.info(
            "local_mirror_committed",
            shelves=len(self._staged_shelves),
            documents=len(self._staged_documents),
            files=len(self._staged_files),
        )
        self._reset_staging()

    def rollback(self) -> None:
        for path, _mime_type in self._staged_files.values():
            path.unlink(missing_ok=True)
        logger.info("local_mirror_rolled_back", documents=len(self._staged_documents))
        self._reset_staging()

    # Local-only operations

    def has_data(self) -> bool:
        """Check whether the mirror holds any document worth migrating."""
        return any(self._json_files(self.metadata_dir))

    def clear(self) -> None:
        """Delete every document, shelf and file from the mirror."""
        for directory in (self.metadata_dir, self.shelves_dir, self.files_dir):
            if directory.exists():
                shutil.rmtree(directory)
        logger.info("local_mirror_cleared", root=str(self.root))

    def get_document(self, document_id: str) -> DocumentProjection:
        """Read one document from the mirror."""
        path = self._document_path(document_id)
        if not path.is_file():
            raise DocumentNotFoundError(document_id)
        return self._read_document(path)

    def mark_goal_day(self, document_id: str, today: date) -> ReadingGoalProjection:
        """
        Mark a day complete on a document's goal, keeping the most recent days only.

        Raises:
            DocumentNotFoundError: If the document is not in the mirror
            ReadingGoalNotFoundError: If the document has no goal
        """
        document = self.get_document(document_id)
        goal = document.reading_goal
        if goal is None:
            raise ReadingGoalNotFoundError(document_id)

        state = StreakState(tuple(goal.completed_days), goal.current_streak)
        new_state = mark_day_complete(state, today, retain=LIVE_STREAK_RETENTION)
        if new_state is state:
            return goal

        goal = goal.model_copy(
            update={
                "completed_days": list(new_state.completed_days),
                "current_streak": new_state.current_streak,
            }
        )
        self._write_document(document.model_copy(update={"reading_goal": goal}))
        return goal

    # Helpers

    def _staged(self, document_id: str) -> DocumentProjection:
        try:
            return self._staged_documents[document_id]
        except KeyError:
            raise DocumentNotFoundError(document_id) from None

    def _known_subjects(self) -> set[str]:
        if self._subject_names is None:
            self._subject_names = {
                name
                for document in self.iter_documents()
                if document.metadata is not None
                for name in document.metadata.subjects
            }
        return self._subject_names

    def _reset_staging(self) -> None:
        self._staged_shelves.clear()
        self._staged_documents.clear()
        self._staged_files.clear()
        self._subject_names = None

    def _read_file_info(self, document_id: str) -> dict[str, Any]:
        info_path = self.files_dir / f"{document_id}.json"
        if not info_path.is_file():
            return {}
        return json.loads(info_path.read_text())

    def _write_document(self, document: DocumentProjection) -> None:
        self.metadata_dir.mkdir(parents=True, exist_ok=True)
        self._document_path(document.id).write_text(document.model_dump_json(by_alias=True))

    @staticmethod
    def _read_document(path: Path) -> DocumentProjection:
        return DocumentProjection.model_validate_json(path.read_bytes())

    @staticmethod
    def _json_files(directory: Path) -> Iterator[Path]:
        if not directory.is_dir():
            return iter(())
        return iter(sorted(directory.glob("*.json")))

    def _document_path(self, document_id: str) -> Path:
        return self.metadata_dir / f"{document_id}.json"

    def _shelf_path(self, shelf_id: str) -> Path:
        return self.shelves_dir / f"{shelf_id}.json"
