"""Common interface for document binary storage strategies."""

import io
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import BinaryIO, ClassVar

from libreader.models import DocumentFile

logger = logging.getLogger(__name__)


class FileStorage(ABC):
    """
    Where a document's binary content lives.

    Exactly one strategy is active per deployment. Both strategies read and
    write through the same ``DocumentFile`` record so callers never branch on
    the strategy themselves.
    """

    name: ClassVar[str]

    @abstractmethod
    def write(
        self, record: DocumentFile, content: bytes, *, document_id: str, extension: str
    ) -> None:
        """
        Store content and point the record at it.

        Args:
            record: File record to fill in (not yet flushed is fine)
            content: File content as bytes
            document_id: ID of the owning document
            extension: File extension without the dot (epub or pdf)
        """

    @abstractmethod
    def open(self, record: DocumentFile) -> BinaryIO | None:
        """
        Open the stored content for reading.

        Returns:
            A readable binary stream, or None if the content is missing
        """

    def read(self, record: DocumentFile) -> bytes | None:
        """Read the whole stored content, or None if it is missing."""
        stream = self.open(record)
        if stream is None:
            return None
        with stream:
            return stream.read()

    def remove(self, record: DocumentFile) -> bool:
        """
        Delete on-disk content referenced by the record.

        Inline content disappears with the record itself.

        Returns:
            True if a file was deleted, False if there was nothing on disk
        """
        if not record.file_path:
            return False

        path = Path(record.file_path)
        if not path.exists():
            logger.info(f"No file on disk for document {record.document_id}: {path}")
            return False

        path.unlink()
        logger.info(f"Deleted document file: {path}")
        return True

    @staticmethod
    def _open_path(file_path: str | None) -> BinaryIO | None:
        if not file_path:
            return None
        path = Path(file_path)
        if not path.is_file():
            return None
        return path.open("rb")

    @staticmethod
    def _open_blob(file_data: bytes | None) -> BinaryIO | None:
        if file_data is None:
            return None
        return io.BytesIO(file_data)
