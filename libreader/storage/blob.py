"""Database storage strategy: content inline on the file record."""

import logging
from typing import BinaryIO

from libreader.models import DocumentFile
from libreader.storage.base import FileStorage

logger = logging.getLogger(__name__)


class BlobStorage(FileStorage):
    """Stores document files as byte blobs in the record store."""

    name = "database"

    def write(
        self, record: DocumentFile, content: bytes, *, document_id: str, extension: str
    ) -> None:
        record.file_data = content
        record.file_path = None
        logger.info(f"Stored {len(content)} bytes inline for document {document_id}")

    def open(self, record: DocumentFile) -> BinaryIO | None:
        stream = self._open_blob(record.file_data)
        if stream is not None:
            return stream
        # Records written before switching strategies still point at disk
        return self._open_path(record.file_path)
