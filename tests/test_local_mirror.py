"""Tests for the directory-backed local mirror."""

import json
from datetime import UTC, date, datetime
from pathlib import Path

import pytest

from libreader.archive import encode_data_uri
from libreader.exceptions import DocumentNotFoundError, ReadingGoalNotFoundError, ValidationError
from libreader.schemas import Snapshot
from libreader.services.backup import LocalMirrorStore, RestoreEngine, SnapshotBuilder
from tests.conftest import snapshot_document


@pytest.fixture
def mirror(tmp_path: Path) -> LocalMirrorStore:
    return LocalMirrorStore(tmp_path / "mirror")


def _snapshot() -> Snapshot:
    return Snapshot.model_validate(
        {
            "metadata": [
                snapshot_document(
                    "doc-1",
                    "Dune",
                    shelfId="shelf-1",
                    readingGoal={
                        "dailyMinutes": 15,
                        "completedDays": ["2024-01-01", "2024-01-02"],
                        "currentStreak": 2,
                    },
                    metadata={"subjects": ["Fiction", "Fiction", "Classics"]},
                ),
                snapshot_document("doc-2", "Orphan", shelfId="missing"),
            ],
            "shelves": [{"id": "shelf-1", "name": "Sci-fi", "color": "#123456"}],
            "files": [
                {"id": "doc-1", "data": encode_data_uri(b"epub bytes", "application/epub+zip")}
            ],
        }
    )


class TestMirrorImport:
    def test_import_writes_layout(self, mirror: LocalMirrorStore) -> None:
        report = RestoreEngine(mirror).restore(_snapshot())

        assert report.documents_inserted == 2
        assert report.subjects_created == 2
        assert report.shelf_references_repaired == 1
        assert (mirror.root / "metadata" / "doc-1.json").is_file()
        assert (mirror.root / "shelves" / "shelf-1.json").is_file()
        assert (mirror.root / "files" / "doc-1.bin").read_bytes() == b"epub bytes"
        info = json.loads((mirror.root / "files" / "doc-1.json").read_text())
        assert info == {"name": "Dune", "type": "application/epub+zip"}

    def test_imported_documents_are_reconciled(self, mirror: LocalMirrorStore) -> None:
        RestoreEngine(mirror).restore(_snapshot())

        assert mirror.get_document("doc-1").shelf_id == "shelf-1"
        assert mirror.get_document("doc-2").shelf_id is None
        assert mirror.get_document("doc-1").metadata.subjects == ["Fiction", "Classics"]
        [shelf] = mirror.list_shelves()
        assert shelf.document_ids == ["doc-1"]

    def test_import_is_idempotent(self, mirror: LocalMirrorStore) -> None:
        RestoreEngine(mirror).restore(_snapshot())
        report = RestoreEngine(mirror).restore(_snapshot())

        assert report.documents_inserted == 0
        assert report.documents_skipped == 2
        assert report.shelves_existing == 1
        assert report.subjects_created == 0

    def test_failed_import_writes_nothing(self, mirror: LocalMirrorStore) -> None:
        snapshot = _snapshot().model_copy(deep=True)
        snapshot.files.append(snapshot.files[0].model_copy(update={"id": "doc-2", "data": "A"}))

        with pytest.raises(ValidationError):
            RestoreEngine(mirror).restore(snapshot)

        assert not mirror.has_data()
        staging = mirror.root / ".staging"
        assert not staging.exists() or list(staging.iterdir()) == []


class TestMirrorAsSource:
    def test_export_round_trip(self, mirror: LocalMirrorStore) -> None:
        RestoreEngine(mirror).restore(_snapshot())

        snapshot = SnapshotBuilder(mirror).build(include_files=True)

        assert [d.id for d in snapshot.metadata] == ["doc-1", "doc-2"]
        [entry] = snapshot.files
        assert entry.id == "doc-1"
        assert entry.type == "application/epub+zip"
        assert entry.data == encode_data_uri(b"epub bytes", "application/epub+zip")

    def test_streamed_json_parses_to_same_snapshot(self, mirror: LocalMirrorStore) -> None:
        RestoreEngine(mirror).restore(_snapshot())
        builder = SnapshotBuilder(mirror, chunk_size=3)

        streamed = Snapshot.model_validate_json("".join(builder.iter_json(include_files=True)))
        built = builder.build(include_files=True)

        assert streamed.metadata == built.metadata
        assert streamed.shelves == built.shelves
        assert streamed.files == built.files

    def test_clear(self, mirror: LocalMirrorStore) -> None:
        RestoreEngine(mirror).restore(_snapshot())
        assert mirror.has_data()

        mirror.clear()

        assert not mirror.has_data()
        assert mirror.list_shelves() == []


class TestMirrorTimestamps:
    def test_mixed_offsets_import_and_export(self, mirror: LocalMirrorStore) -> None:
        sessions = [
            {"startedAt": "2024-01-03T10:00:00Z", "endedAt": "2024-01-03T10:30:00Z", "duration": 1},
            {"startedAt": "2024-01-04T10:00:00", "endedAt": "2024-01-04T10:30:00", "duration": 2},
            {
                "startedAt": "2024-01-05T10:00:00+02:00",
                "endedAt": "2024-01-05T10:30:00+02:00",
                "duration": 3,
            },
        ]
        snapshot = Snapshot.model_validate(
            {
                "metadata": [
                    snapshot_document(
                        "aware",
                        uploadDate="2024-01-01T10:00:00Z",
                        readingStats={"totalReadingTime": 6, "sessions": sessions},
                    ),
                    snapshot_document("naive", uploadDate="2024-01-02T10:00:00"),
                    snapshot_document("offset", uploadDate="2024-01-02T11:00:00+02:00"),
                ]
            }
        )

        RestoreEngine(mirror).restore(snapshot)

        assert [d.id for d in mirror.iter_documents()] == ["aware", "offset", "naive"]
        exported = SnapshotBuilder(mirror).build()
        aware = exported.metadata[0]
        assert [s.duration for s in aware.reading_stats.sessions] == [3, 2, 1]
        assert all(s.started_at.tzinfo is UTC for s in aware.reading_stats.sessions)
        assert exported.metadata[1].upload_date == datetime(2024, 1, 2, 9, 0, tzinfo=UTC)
        assert exported.metadata[2].upload_date == datetime(2024, 1, 2, 10, 0, tzinfo=UTC)


class TestMirrorStreak:
    def test_mark_goal_day(self, mirror: LocalMirrorStore) -> None:
        RestoreEngine(mirror).restore(_snapshot())

        goal = mirror.mark_goal_day("doc-1", date(2024, 1, 3))

        assert goal.current_streak == 3
        assert mirror.get_document("doc-1").reading_goal.completed_days[-1] == date(2024, 1, 3)

    def test_mark_goal_day_keeps_recent_days_only(self, mirror: LocalMirrorStore) -> None:
        RestoreEngine(mirror).restore(_snapshot())
        day = date(2024, 1, 3)
        for _ in range(100):
            mirror.mark_goal_day("doc-1", day)
            day = date.fromordinal(day.toordinal() + 1)

        goal = mirror.get_document("doc-1").reading_goal
        assert len(goal.completed_days) == 90
        assert goal.current_streak == 102

    def test_mark_goal_day_without_goal(self, mirror: LocalMirrorStore) -> None:
        RestoreEngine(mirror).restore(_snapshot())

        with pytest.raises(ReadingGoalNotFoundError):
            mirror.mark_goal_day("doc-2", date(2024, 1, 3))

    def test_mark_goal_day_unknown_document(self, mirror: LocalMirrorStore) -> None:
        with pytest.raises(DocumentNotFoundError):
            mirror.mark_goal_day("nope", date(2024, 1, 3))
