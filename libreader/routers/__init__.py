"""API routers."""

from libreader.routers import backup, documents, shelves

__all__ = ["backup", "documents", "shelves"]
