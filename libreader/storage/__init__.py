"""Storage strategies for document binary content."""

from libreader.config import Settings
from libreader.storage.base import FileStorage
from libreader.storage.blob import BlobStorage
from libreader.storage.filesystem import FilesystemStorage


def create_file_storage(settings: Settings) -> FileStorage:
    """Build the storage adapter selected by configuration."""
    if settings.FILE_STORAGE_STRATEGY == "database":
        return BlobStorage()
    return FilesystemStorage(settings.FILE_STORAGE_PATH)


__all__ = ["BlobStorage", "FileStorage", "FilesystemStorage", "create_file_storage"]
