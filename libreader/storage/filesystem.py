"""Filesystem storage strategy: content on disk, path on the record."""

import logging
import uuid
from pathlib import Path
from typing import BinaryIO

from libreader.models import DocumentFile
from libreader.storage.base import FileStorage

logger = logging.getLogger(__name__)


class FilesystemStorage(FileStorage):
    """Stores document files under a root directory."""

    name = "filesystem"

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def build_path(self, document_id: str, extension: str) -> Path:
        """Return a fresh, unique path for a document's file."""
        return self.root / f"{uuid.uuid4().hex}-{document_id}.{extension}"

    def write(
        self, record: DocumentFile, content: bytes, *, document_id: str, extension: str
    ) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        file_path = self.build_path(document_id, extension)
        file_path.write_bytes(content)
        record.file_path = str(file_path)
        record.file_data = None
        logger.info(f"Saved document file: {file_path}")

    def open(self, record: DocumentFile) -> BinaryIO | None:
        return self._open_path(record.file_path)
