"""Tests for the document storage strategies."""

from pathlib import Path

import pytest

from libreader.config import Settings
from libreader.models import DocumentFile
from libreader.storage import BlobStorage, FilesystemStorage, create_file_storage


def _record(document_id: str = "doc-1") -> DocumentFile:
    return DocumentFile(document_id=document_id, mime_type="application/pdf")


class TestFilesystemStorage:
    @pytest.fixture
    def storage(self, tmp_path: Path) -> FilesystemStorage:
        return FilesystemStorage(tmp_path / "files")

    def test_write_then_read(self, storage: FilesystemStorage) -> None:
        record = _record()
        storage.write(record, b"%PDF-1.4", document_id="doc-1", extension="pdf")

        assert record.file_data is None
        assert record.file_path is not None
        assert Path(record.file_path).read_bytes() == b"%PDF-1.4"
        assert storage.read(record) == b"%PDF-1.4"

    def test_paths_are_unique_per_write(self, storage: FilesystemStorage) -> None:
        first, second = _record(), _record()
        storage.write(first, b"a", document_id="doc-1", extension="pdf")
        storage.write(second, b"b", document_id="doc-1", extension="pdf")

        assert first.file_path != second.file_path
        assert first.file_path.endswith("-doc-1.pdf")

    def test_missing_file_opens_as_none(self, storage: FilesystemStorage) -> None:
        record = _record()
        record.file_path = str(storage.root / "gone.pdf")

        assert storage.open(record) is None
        assert storage.read(record) is None

    def test_remove_deletes_file(self, storage: FilesystemStorage) -> None:
        record = _record()
        storage.write(record, b"data", document_id="doc-1", extension="pdf")

        assert storage.remove(record) is True
        assert not Path(record.file_path).exists()
        assert storage.remove(record) is False


class TestBlobStorage:
    def test_write_keeps_content_inline(self) -> None:
        storage = BlobStorage()
        record = _record()
        storage.write(record, b"inline", document_id="doc-1", extension="epub")

        assert record.file_data == b"inline"
        assert record.file_path is None
        assert storage.read(record) == b"inline"

    def test_falls_back_to_path_written_by_filesystem_strategy(self, tmp_path: Path) -> None:
        record = _record()
        FilesystemStorage(tmp_path).write(record, b"on disk", document_id="doc-1", extension="pdf")

        assert BlobStorage().read(record) == b"on disk"

    def test_record_without_content_opens_as_none(self) -> None:
        assert BlobStorage().open(_record()) is None

    def test_remove_has_nothing_to_delete(self) -> None:
        storage = BlobStorage()
        record = _record()
        storage.write(record, b"inline", document_id="doc-1", extension="epub")

        assert storage.remove(record) is False


class TestCreateFileStorage:
    def test_filesystem_strategy(self, tmp_path: Path) -> None:
        settings = Settings(FILE_STORAGE_STRATEGY="filesystem", FILE_STORAGE_PATH=tmp_path)
        storage = create_file_storage(settings)

        assert isinstance(storage, FilesystemStorage)
        assert storage.root == tmp_path

    def test_database_strategy_name_is_case_insensitive(self) -> None:
        storage = create_file_storage(Settings(FILE_STORAGE_STRATEGY="Database"))

        assert isinstance(storage, BlobStorage)
        assert storage.name == "database"
