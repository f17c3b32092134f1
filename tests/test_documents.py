"""Tests for document API endpoints."""

from datetime import date
from pathlib import Path

import pytest
from dependency_injector import providers
from fastapi import status
from fastapi.testclient import TestClient
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from libreader import models
from libreader.core import container
from libreader.storage import BlobStorage, FilesystemStorage
from tests.conftest import create_test_document, create_test_shelf


def _upload(client: TestClient, filename: str = "book.pdf", content: bytes = b"%PDF", **form):
    return client.post(
        "/api/documents",
        files={"file": (filename, content, "application/octet-stream")},
        data=form,
    )


class TestUpload:
    def test_upload_creates_document_stats_and_file(
        self, client: TestClient, db_session: Session, storage: FilesystemStorage
    ) -> None:
        response = _upload(client, "My Book.pdf", b"%PDF-1.4", totalPages="120")

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["title"] == "My Book"
        assert data["type"] == "pdf"
        assert data["fileSize"] == 8
        assert data["totalPages"] == 120
        assert data["readingStats"] == {
            "totalReadingTime": 0,
            "sessions": [],
            "firstOpenedAt": None,
        }
        record = db_session.execute(select(models.DocumentFile)).scalar_one()
        assert record.mime_type == "application/pdf"
        assert Path(record.file_path).parent == storage.root

    def test_upload_with_explicit_title(self, client: TestClient) -> None:
        response = _upload(client, "book.epub", b"PK", title="Custom")

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["title"] == "Custom"
        assert response.json()["type"] == "epub"

    def test_unsupported_extension_is_rejected(self, client: TestClient) -> None:
        response = _upload(client, "notes.txt", b"hello")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"]["message"] == "Only .epub and .pdf files are allowed"

    def test_missing_file_is_rejected(self, client: TestClient) -> None:
        response = client.post("/api/documents", data={"title": "Nothing"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"]["message"] == "No file provided"


class TestReadAndDownload:
    def test_list_documents_newest_first(self, client: TestClient) -> None:
        first = _upload(client, "first.pdf").json()
        second = _upload(client, "second.pdf").json()

        ids = [d["id"] for d in client.get("/api/documents").json()]

        assert set(ids) == {first["id"], second["id"]}

    def test_get_unknown_document(self, client: TestClient) -> None:
        response = client.get("/api/documents/missing")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json() == {"error": {"message": "Document not found"}}

    @pytest.mark.parametrize("suffix", ["file", "content"])
    def test_download(self, client: TestClient, suffix: str) -> None:
        document = _upload(client, "book.epub", b"PK epub").json()

        response = client.get(f"/api/documents/{document['id']}/{suffix}")

        assert response.status_code == status.HTTP_200_OK
        assert response.content == b"PK epub"
        assert response.headers["content-type"] == "application/epub+zip"
        assert "inline" in response.headers["content-disposition"]

    def test_download_without_file_record(self, client: TestClient, db_session: Session) -> None:
        document = create_test_document(db_session)

        response = client.get(f"/api/documents/{document.id}/file")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"]["message"] == "File not found"

    def test_download_with_content_gone(
        self, client: TestClient, db_session: Session, storage: FilesystemStorage
    ) -> None:
        document = create_test_document(db_session, content=b"x", storage=storage)
        for path in storage.root.iterdir():
            path.unlink()

        response = client.get(f"/api/documents/{document.id}/file")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"]["message"] == "File data not found on disk"

    def test_download_from_database_storage(
        self, client: TestClient, db_session: Session, blob_storage: BlobStorage
    ) -> None:
        container.storage.override(providers.Object(blob_storage))
        try:
            document = _upload(client, "inline.pdf", b"%PDF inline").json()
            record = db_session.execute(select(models.DocumentFile)).scalar_one()
            assert record.file_path is None

            response = client.get(f"/api/documents/{document['id']}/file")
        finally:
            container.storage.reset_last_overriding()

        assert response.content == b"%PDF inline"


class TestUpdateAndDelete:
    def test_partial_update(self, client: TestClient, db_session: Session) -> None:
        document = create_test_document(db_session, title="Old", current_page=3)

        response = client.put(f"/api/documents/{document.id}", json={"title": "New"})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["title"] == "New"
        assert response.json()["currentPage"] == 3

    def test_update_metadata_deduplicates_subjects(
        self, client: TestClient, db_session: Session
    ) -> None:
        document = create_test_document(db_session)

        response = client.put(
            f"/api/documents/{document.id}",
            json={"metadata": {"author": "Someone", "subjects": ["Poetry", "Poetry", "Art"]}},
        )

        assert response.status_code == status.HTTP_200_OK
        metadata = response.json()["metadata"]
        assert metadata["author"] == "Someone"
        assert metadata["subjects"] == ["Art", "Poetry"]
        assert db_session.execute(select(func.count(models.Subject.id))).scalar_one() == 2

    def test_update_to_unknown_shelf(self, client: TestClient, db_session: Session) -> None:
        document = create_test_document(db_session)

        response = client.put(f"/api/documents/{document.id}", json={"shelfId": "nope"})

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"]["message"] == "Shelf not found"

    def test_move_to_shelf(self, client: TestClient, db_session: Session) -> None:
        shelf = create_test_shelf(db_session)
        document = create_test_document(db_session)

        response = client.put(f"/api/documents/{document.id}", json={"shelfId": shelf.id})

        assert response.json()["shelfId"] == shelf.id

    def test_delete_removes_children_and_file(
        self, client: TestClient, db_session: Session, storage: FilesystemStorage
    ) -> None:
        document = _upload(client, "gone.pdf", b"%PDF").json()
        document_id = document["id"]
        client.post(
            f"/api/documents/{document_id}/bookmarks", json={"location": "1", "label": "p1"}
        )
        client.put(
            f"/api/documents/{document_id}/goals",
            json={"dailyMinutes": 10, "completedDays": ["2024-01-01"]},
        )
        client.put(f"/api/documents/{document_id}", json={"metadata": {"subjects": ["Kept"]}})

        response = client.delete(f"/api/documents/{document_id}")

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert client.get(f"/api/documents/{document_id}").status_code == 404
        for model in (
            models.Bookmark,
            models.ReadingStats,
            models.ReadingGoal,
            models.ReadingGoalCompletedDay,
            models.BookMetadata,
            models.DocumentFile,
        ):
            assert db_session.execute(select(func.count()).select_from(model)).scalar_one() == 0
        assert list(storage.root.iterdir()) == []
        # Subjects are shared and outlive the documents that used them
        assert db_session.execute(select(func.count(models.Subject.id))).scalar_one() == 1

    def test_delete_unknown_document(self, client: TestClient) -> None:
        assert client.delete("/api/documents/missing").status_code == 404


class TestProgressAndBookmarks:
    def test_update_progress_stamps_last_opened(
        self, client: TestClient, db_session: Session
    ) -> None:
        document = create_test_document(db_session)

        response = client.put(
            f"/api/documents/{document.id}/progress",
            json={"page": 12, "cfi": "epubcfi(/6/8)", "progressPercent": 33.5},
        )

        data = response.json()
        assert data["currentPage"] == 12
        assert data["currentCfi"] == "epubcfi(/6/8)"
        assert data["readingProgressPercent"] == 33.5
        assert data["lastOpened"] is not None

    def test_progress_percent_out_of_range(self, client: TestClient, db_session: Session) -> None:
        document = create_test_document(db_session)

        response = client.put(
            f"/api/documents/{document.id}/progress", json={"progressPercent": 150}
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert "progressPercent" in response.json()["error"]["message"]

    def test_bookmark_lifecycle(self, client: TestClient, db_session: Session) -> None:
        document = create_test_document(db_session)
        base = f"/api/documents/{document.id}/bookmarks"

        created = client.post(base, json={"location": "cfi-1", "label": "Start", "note": "n"})
        assert created.status_code == status.HTTP_201_CREATED
        bookmark_id = created.json()["id"]

        updated = client.put(f"{base}/{bookmark_id}", json={"label": "Renamed"})
        assert updated.json()["label"] == "Renamed"
        assert updated.json()["location"] == "cfi-1"
        assert updated.json()["note"] == "n"

        assert client.delete(f"{base}/{bookmark_id}").status_code == 204
        assert client.delete(f"{base}/{bookmark_id}").status_code == 404

    def test_bookmark_on_other_document_is_not_found(
        self, client: TestClient, db_session: Session
    ) -> None:
        first = create_test_document(db_session, title="First")
        second = create_test_document(db_session, title="Second")
        bookmark_id = client.post(
            f"/api/documents/{first.id}/bookmarks", json={"location": "1", "label": "x"}
        ).json()["id"]

        response = client.put(
            f"/api/documents/{second.id}/bookmarks/{bookmark_id}", json={"label": "y"}
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestSessionsAndStats:
    def test_sessions_accumulate_reading_time(
        self, client: TestClient, db_session: Session
    ) -> None:
        document = create_test_document(db_session)
        base = f"/api/documents/{document.id}"

        client.post(
            f"{base}/sessions",
            json={
                "startedAt": "2024-02-01T10:00:00Z",
                "endedAt": "2024-02-01T10:30:00Z",
                "duration": 1800,
                "pagesRead": 10,
            },
        )
        response = client.post(
            f"{base}/sessions",
            json={
                "startedAt": "2024-02-02T10:00:00Z",
                "endedAt": "2024-02-02T10:10:00Z",
                "duration": 600,
            },
        )

        assert response.status_code == status.HTTP_201_CREATED
        stats = client.get(f"{base}/stats").json()
        assert stats["totalReadingTime"] == 2400
        assert stats["firstOpenedAt"].startswith("2024-02-01T10:00:00")
        assert [s["duration"] for s in stats["sessions"]] == [600, 1800]

    def test_session_ending_before_start(self, client: TestClient, db_session: Session) -> None:
        document = create_test_document(db_session)

        response = client.post(
            f"/api/documents/{document.id}/sessions",
            json={
                "startedAt": "2024-02-01T10:00:00Z",
                "endedAt": "2024-02-01T09:00:00Z",
                "duration": 0,
            },
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST


class TestGoals:
    def test_set_goal_and_mark_streak(self, client: TestClient, db_session: Session) -> None:
        document = create_test_document(db_session)
        base = f"/api/documents/{document.id}/goals"
        container.today.override(providers.Object(lambda: date(2024, 1, 3)))
        try:
            created = client.put(
                base,
                json={
                    "dailyMinutes": 25,
                    "completedDays": ["2024-01-01", "2024-01-02"],
                    "currentStreak": 2,
                },
            )
            assert created.json()["dailyMinutes"] == 25

            marked = client.put(f"{base}/streak").json()
            again = client.put(f"{base}/streak").json()
        finally:
            container.today.reset_override()

        assert marked["currentStreak"] == 3
        assert marked["completedDays"][-1] == "2024-01-03"
        assert again == marked

    def test_gap_resets_streak(self, client: TestClient, db_session: Session) -> None:
        document = create_test_document(db_session)
        base = f"/api/documents/{document.id}/goals"
        container.today.override(providers.Object(lambda: date(2024, 1, 5)))
        try:
            client.put(
                base,
                json={"dailyMinutes": 10, "completedDays": ["2024-01-02"], "currentStreak": 1},
            )
            marked = client.put(f"{base}/streak").json()
        finally:
            container.today.reset_override()

        assert marked["currentStreak"] == 1

    def test_streak_without_goal(self, client: TestClient, db_session: Session) -> None:
        document = create_test_document(db_session)

        response = client.put(f"/api/documents/{document.id}/goals/streak")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"]["message"] == "Reading goal not found"

    def test_goal_for_unknown_document(self, client: TestClient) -> None:
        response = client.put("/api/documents/missing/goals", json={"dailyMinutes": 10})

        assert response.status_code == status.HTTP_404_NOT_FOUND
