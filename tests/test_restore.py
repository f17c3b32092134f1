"""Tests for restoring snapshots into the SQL library."""

from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from libreader import models
from libreader.archive import encode_data_uri
from libreader.database import Base
from libreader.exceptions import InvalidSnapshotError, ValidationError
from libreader.schemas import Snapshot
from libreader.services.backup import RestoreEngine, SnapshotBuilder, SqlLibraryStore
from libreader.storage import BlobStorage, FileStorage, FilesystemStorage
from tests.conftest import create_test_document, create_test_shelf, snapshot_document


def _snapshot(
    metadata: list[dict[str, Any]] | None,
    shelves: list[dict[str, Any]] | None = None,
    files: list[dict[str, Any]] | None = None,
) -> Snapshot:
    return Snapshot.model_validate(
        {"metadata": metadata, "shelves": shelves or [], "files": files or []}
    )


def _shelf(shelf_id: str, *document_ids: str, order: int = 0) -> dict[str, Any]:
    return {
        "id": shelf_id,
        "name": f"Shelf {shelf_id}",
        "color": "#aa0000",
        "createdAt": "2024-01-01T00:00:00+00:00",
        "documentIds": list(document_ids),
        "order": order,
    }


def _count(db: Session, model: type[Base]) -> int:
    return db.execute(select(func.count()).select_from(model)).scalar_one()


@pytest.fixture
def store(db_session: Session, filesystem_storage: FilesystemStorage) -> SqlLibraryStore:
    return SqlLibraryStore(db_session, filesystem_storage)


def _full_snapshot() -> Snapshot:
    return _snapshot(
        metadata=[
            snapshot_document(
                "doc-1",
                "Dune",
                shelfId="shelf-1",
                currentPage=42,
                readingProgressPercent=12.5,
                bookmarks=[{"location": "epubcfi(/6/4)", "label": "Start", "note": "first"}],
                readingStats={
                    "totalReadingTime": 3600,
                    "firstOpenedAt": "2024-01-02T08:00:00+00:00",
                    "sessions": [
                        {
                            "startedAt": "2024-01-02T08:00:00+00:00",
                            "endedAt": "2024-01-02T09:00:00+00:00",
                            "duration": 3600,
                            "pagesRead": 20,
                        }
                    ],
                },
                readingGoal={
                    "dailyMinutes": 30,
                    "completedDays": ["2024-01-01", "2024-01-02"],
                    "currentStreak": 2,
                },
                metadata={"author": "Frank Herbert", "subjects": ["Fiction", "Classics"]},
            ),
            snapshot_document(
                "doc-2",
                "Foundation",
                type="pdf",
                metadata={"author": "Isaac Asimov", "subjects": ["Fiction"]},
            ),
        ],
        shelves=[_shelf("shelf-1", "doc-1")],
        files=[
            {
                "id": "doc-1",
                "name": "Dune",
                "data": encode_data_uri(b"EPUB!", "application/epub+zip"),
            },
            {"id": "doc-2", "name": "Foundation", "data": "JVBERg=="},
        ],
    )


class TestRestore:
    def test_restores_documents_and_children(
        self, db_session: Session, store: SqlLibraryStore
    ) -> None:
        report = RestoreEngine(store).restore(_full_snapshot())

        assert report.documents_inserted == 2
        assert report.shelves_inserted == 1
        assert report.files_written == 2
        assert report.subjects_created == 2

        document = db_session.get(models.Document, "doc-1")
        assert document.title == "Dune"
        assert document.shelf_id == "shelf-1"
        assert document.current_page == 42
        assert [b.label for b in document.bookmarks] == ["Start"]
        assert document.reading_stats.total_reading_time == 3600
        assert document.reading_goal.current_streak == 2
        assert len(document.reading_goal.completed_days) == 2
        assert sorted(s.name for s in document.book_metadata.subjects) == ["Classics", "Fiction"]
        assert _count(db_session, models.ReadingSession) == 1

    def test_file_mime_type_falls_back_to_document_kind(
        self, db_session: Session, store: SqlLibraryStore, filesystem_storage: FilesystemStorage
    ) -> None:
        RestoreEngine(store).restore(_full_snapshot())

        pdf = db_session.execute(
            select(models.DocumentFile).where(models.DocumentFile.document_id == "doc-2")
        ).scalar_one()
        assert pdf.mime_type == "application/pdf"
        assert filesystem_storage.read(pdf) == b"%PDF"

        epub = db_session.execute(
            select(models.DocumentFile).where(models.DocumentFile.document_id == "doc-1")
        ).scalar_one()
        assert epub.mime_type == "application/epub+zip"
        assert filesystem_storage.read(epub) == b"EPUB!"

    def test_missing_stats_default_to_zero(
        self, db_session: Session, store: SqlLibraryStore
    ) -> None:
        snapshot = Snapshot.model_validate(
            {"metadata": [{"id": "bare", "title": "Bare", "type": "pdf"}]}
        )
        RestoreEngine(store).restore(snapshot)

        stats = db_session.execute(
            select(models.ReadingStats).where(models.ReadingStats.document_id == "bare")
        ).scalar_one()
        assert stats.total_reading_time == 0
        assert stats.first_opened_at is None

    def test_missing_metadata_is_rejected_without_side_effects(
        self, db_session: Session, store: SqlLibraryStore
    ) -> None:
        with pytest.raises(InvalidSnapshotError):
            RestoreEngine(store).restore(_snapshot(None, shelves=[_shelf("s")]))

        assert _count(db_session, models.Shelf) == 0


class TestIdempotence:
    def test_second_restore_changes_nothing(
        self, db_session: Session, store: SqlLibraryStore
    ) -> None:
        snapshot = _full_snapshot()
        RestoreEngine(store).restore(snapshot)
        counts = {
            model: _count(db_session, model)
            for model in (models.Document, models.Shelf, models.Subject, models.DocumentFile)
        }

        report = RestoreEngine(store).restore(snapshot)

        assert report.documents_inserted == 0
        assert report.documents_skipped == 2
        assert report.shelves_existing == 1
        assert report.subjects_created == 0
        assert report.files_written == 0
        for model, count in counts.items():
            assert _count(db_session, model) == count

    def test_duplicate_document_ids_in_one_snapshot(
        self, db_session: Session, store: SqlLibraryStore
    ) -> None:
        snapshot = _snapshot(
            [snapshot_document("dup", "First"), snapshot_document("dup", "Second")]
        )

        report = RestoreEngine(store).restore(snapshot)

        assert report.documents_inserted == 1
        assert report.documents_skipped == 1
        assert db_session.get(models.Document, "dup").title == "First"


class TestSubjectDedup:
    def test_shared_subject_is_created_once(
        self, db_session: Session, store: SqlLibraryStore
    ) -> None:
        snapshot = _snapshot(
            [
                snapshot_document("a", metadata={"subjects": ["Fiction", "Fiction"]}),
                snapshot_document("b", metadata={"subjects": ["Fiction"]}),
            ]
        )

        report = RestoreEngine(store).restore(snapshot)

        assert report.subjects_created == 1
        subjects = db_session.execute(select(models.Subject)).scalars().all()
        assert [s.name for s in subjects] == ["Fiction"]
        fiction = subjects[0]
        holders = {m.document_id for m in db_session.execute(select(models.BookMetadata)).scalars()}
        assert holders == {"a", "b"}
        for metadata in db_session.execute(select(models.BookMetadata)).scalars():
            assert [s.id for s in metadata.subjects] == [fiction.id]

    def test_existing_subject_is_reused(
        self, db_session: Session, store: SqlLibraryStore
    ) -> None:
        db_session.add(models.Subject(name="History"))
        db_session.commit()

        report = RestoreEngine(store).restore(
            _snapshot([snapshot_document("a", metadata={"subjects": ["History"]})])
        )

        assert report.subjects_created == 0
        assert _count(db_session, models.Subject) == 1


class TestShelfReconciliation:
    def test_orphan_shelf_reference_is_cleared(
        self, db_session: Session, store: SqlLibraryStore
    ) -> None:
        report = RestoreEngine(store).restore(_snapshot([snapshot_document("d", shelfId="X")]))

        assert report.shelf_references_repaired == 1
        assert db_session.get(models.Document, "d").shelf_id is None

    def test_shelf_membership_takes_precedence(
        self, db_session: Session, store: SqlLibraryStore
    ) -> None:
        snapshot = _snapshot(
            [snapshot_document("d", shelfId="a")],
            shelves=[_shelf("a"), _shelf("b", "d")],
        )

        RestoreEngine(store).restore(snapshot)

        assert db_session.get(models.Document, "d").shelf_id == "b"

    def test_reference_to_existing_shelf_is_kept(
        self, db_session: Session, store: SqlLibraryStore
    ) -> None:
        create_test_shelf(db_session, shelf_id="local")

        report = RestoreEngine(store).restore(_snapshot([snapshot_document("d", shelfId="local")]))

        assert report.shelf_references_repaired == 0
        assert db_session.get(models.Document, "d").shelf_id == "local"


class TestSkipSemantics:
    def test_existing_document_is_left_untouched(
        self, db_session: Session, store: SqlLibraryStore, filesystem_storage: FilesystemStorage
    ) -> None:
        existing = create_test_document(
            db_session,
            title="Local title",
            document_id="doc-1",
            content=b"local bytes",
            storage=filesystem_storage,
            current_page=7,
        )
        db_session.add(models.Bookmark(document_id=existing.id, location="loc", label="Mine"))
        db_session.commit()
        before = SnapshotBuilder(store).build(include_files=True)

        report = RestoreEngine(store).restore(_full_snapshot())

        assert report.documents_skipped == 1
        assert report.documents_inserted == 1
        db_session.expire_all()
        after = SnapshotBuilder(store).build(include_files=True)
        kept = next(d for d in after.metadata if d.id == "doc-1")
        assert kept == before.metadata[0]
        kept_file = next(f for f in after.files if f.id == "doc-1")
        assert kept_file.data == before.files[0].data


class TestTimestamps:
    def test_offset_survives_round_trip_as_utc(
        self, db_session: Session, store: SqlLibraryStore
    ) -> None:
        session = {
            "startedAt": "2024-01-02T09:00:00+02:00",
            "endedAt": "2024-01-02T10:00:00+02:00",
            "duration": 3_600_000,
        }
        RestoreEngine(store).restore(
            _snapshot(
                [
                    snapshot_document(
                        "doc-1",
                        uploadDate="2024-01-01T10:00:00+02:00",
                        readingStats={"totalReadingTime": 3_600_000, "sessions": [session]},
                    )
                ]
            )
        )
        db_session.expire_all()

        stored = db_session.get(models.Document, "doc-1")
        assert stored.upload_date == datetime(2024, 1, 1, 8, 0, tzinfo=UTC)
        assert stored.upload_date.utcoffset() == timedelta(0)

        exported = SnapshotBuilder(store).build()
        [document] = exported.metadata
        assert document.upload_date == datetime(2024, 1, 1, 8, 0, tzinfo=UTC)
        assert document.reading_stats.sessions[0].started_at == datetime(
            2024, 1, 2, 7, 0, tzinfo=UTC
        )
        payload = exported.model_dump(mode="json", by_alias=True)
        assert payload["metadata"][0]["uploadDate"] == "2024-01-01T08:00:00Z"

    def test_naive_timestamps_are_read_as_utc(self, store: SqlLibraryStore) -> None:
        RestoreEngine(store).restore(
            _snapshot(
                [
                    snapshot_document("naive", uploadDate="2024-01-02T10:00:00"),
                    snapshot_document("zulu", uploadDate="2024-01-01T10:00:00Z"),
                ]
            )
        )

        exported = SnapshotBuilder(store).build()

        dates = {d.id: d.upload_date for d in exported.metadata}
        assert dates == {
            "naive": datetime(2024, 1, 2, 10, 0, tzinfo=UTC),
            "zulu": datetime(2024, 1, 1, 10, 0, tzinfo=UTC),
        }


class TestRollback:
    def test_failed_restore_leaves_nothing_behind(
        self, db_session: Session, store: SqlLibraryStore, filesystem_storage: FilesystemStorage
    ) -> None:
        snapshot = _snapshot(
            [snapshot_document("ok"), snapshot_document("broken")],
            shelves=[_shelf("s", "ok")],
            files=[
                {"id": "ok", "data": encode_data_uri(b"fine", "application/epub+zip")},
                {"id": "broken", "data": "data:application/epub+zip;base64,A"},
            ],
        )

        with pytest.raises(ValidationError):
            RestoreEngine(store).restore(snapshot)

        assert _count(db_session, models.Document) == 0
        assert _count(db_session, models.Shelf) == 0
        assert _count(db_session, models.DocumentFile) == 0
        root: Path = filesystem_storage.root
        assert not root.exists() or list(root.iterdir()) == []


@pytest.mark.parametrize("storage_name", ["filesystem", "database"])
def test_round_trip_between_storage_strategies(
    db_session: Session,
    filesystem_storage: FilesystemStorage,
    blob_storage: BlobStorage,
    storage_name: str,
) -> None:
    """A full snapshot restores byte-identical files under either strategy."""
    on_disk = storage_name == "filesystem"
    source_storage: FileStorage = filesystem_storage if on_disk else blob_storage
    target_storage: FileStorage = blob_storage if on_disk else filesystem_storage

    shelf = create_test_shelf(db_session, shelf_id="shelf-1")
    create_test_document(
        db_session,
        title="Book",
        document_id="doc-1",
        shelf_id=shelf.id,
        content=b"\x00\x01binary\xff",
        storage=source_storage,
    )
    snapshot = SnapshotBuilder(SqlLibraryStore(db_session, source_storage)).build(
        include_files=True
    )

    db_session.query(models.DocumentFile).delete()
    db_session.query(models.ReadingStats).delete()
    db_session.query(models.Document).delete()
    db_session.query(models.Shelf).delete()
    db_session.commit()

    report = RestoreEngine(SqlLibraryStore(db_session, target_storage)).restore(snapshot)

    assert report.documents_inserted == 1
    assert report.files_written == 1
    record = db_session.execute(select(models.DocumentFile)).scalar_one()
    assert target_storage.read(record) == b"\x00\x01binary\xff"
    assert db_session.get(models.Document, "doc-1").shelf_id == "shelf-1"
