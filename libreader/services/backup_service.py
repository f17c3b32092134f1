"""Service layer for export, backup and restore of the SQL library."""

from collections.abc import Iterator

import structlog
from sqlalchemy.orm import Session, sessionmaker

from libreader.schemas import RestoreReport, Snapshot
from libreader.services.backup import RestoreEngine, SnapshotBuilder, SqlLibraryStore
from libreader.storage import FileStorage

logger = structlog.get_logger(__name__)


class BackupService:
    """Exports and restores the library behind the API."""

    def __init__(self, db: Session, storage: FileStorage) -> None:
        self.store = SqlLibraryStore(db, storage)

    def export_metadata(self) -> Snapshot:
        """Build a metadata-only snapshot (no file content)."""
        return SnapshotBuilder(self.store).build(include_files=False)

    def export_full(self) -> Snapshot:
        """Build a full snapshot in memory, file content included."""
        return SnapshotBuilder(self.store).build(include_files=True)

    def restore(self, snapshot: Snapshot) -> RestoreReport:
        """Restore a snapshot into the library, all or nothing."""
        return RestoreEngine(self.store).restore(snapshot)


def stream_full_backup(
    session_factory: sessionmaker[Session], storage: FileStorage
) -> Iterator[str]:
    """
    Stream a full backup as JSON text chunks.

    The generator owns its session, so it stays usable after the request
    handler has returned and the response body is still being sent.
    """
    db = session_factory()
    try:
        yield from SnapshotBuilder(SqlLibraryStore(db, storage)).iter_json(include_files=True)
    finally:
        db.close()
        logger.debug("backup_stream_closed")
