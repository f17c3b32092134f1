"""
One-time migration of a local mirror into the networked library.

The bridge reuses the snapshot builder and the restore engine: the mirror is
exported as a full snapshot and restored either over HTTP into a running API
or directly into another ``LibraryTarget``.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal

import structlog

from libreader.schemas import RestoreReport
from libreader.services.backup.api_client import LibraryApiClient
from libreader.services.backup.local_mirror import LocalMirrorStore
from libreader.services.backup.ports import LibraryTarget
from libreader.services.backup.restore_engine import RestoreEngine
from libreader.services.backup.snapshot_builder import SnapshotBuilder

logger = structlog.get_logger(__name__)

MigrationPhase = Literal["reading", "uploading", "done", "error"]


@dataclass(frozen=True)
class MigrationProgress:
    """Progress update emitted while migrating."""

    phase: MigrationPhase
    current: int
    total: int
    message: str


ProgressCallback = Callable[[MigrationProgress], None]


class MigrationBridge:
    """Moves every document, shelf and file of a local mirror to another library."""

    def __init__(
        self,
        source: LocalMirrorStore,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        self.source = source
        self.on_progress = on_progress
        self.report: RestoreReport | None = None

    def _emit(self, phase: MigrationPhase, current: int, total: int, message: str) -> None:
        progress = MigrationProgress(phase=phase, current=current, total=total, message=message)
        logger.info(
            "migration_progress", phase=phase, current=current, total=total, message=message
        )
        if self.on_progress is not None:
            self.on_progress(progress)

    def _read_inventory(self) -> tuple[int, int, int]:
        """Walk the mirror once, reporting progress; return document, shelf and file counts."""
        self._emit("reading", 0, 0, "Reading metadata...")
        document_ids = [d.id for d in self.source.iter_documents()]
        total = len(document_ids)

        file_count = 0
        for index, document_id in enumerate(document_ids, start=1):
            opened = self.source.open_file(document_id)
            if opened is not None:
                opened[1].close()
                file_count += 1
            self._emit("reading", index, total, f"Read document {index}/{total}")

        shelf_count = len(self.source.list_shelves())
        self._emit("reading", shelf_count, shelf_count, f"Read {shelf_count} shelves")
        return total, shelf_count, file_count

    async def migrate_to_server(self, client: LibraryApiClient, clear_after: bool = False) -> bool:
        """
        Upload the mirror to a running API through its restore endpoint.

        The snapshot is streamed, so files are never held in memory whole.

        Args:
            client: Client for the target API
            clear_after: Clear the mirror once the upload succeeded

        Returns:
            True on success, False on failure (reported as the error phase)
        """
        try:
            documents, shelves, files = self._read_inventory()
            self._emit(
                "uploading",
                0,
                1,
                f"Uploading {documents} documents, {shelves} shelves, {files} files...",
            )
            response = await client.restore_snapshot(
                SnapshotBuilder(self.source).iter_json(include_files=True)
            )
            self.report = response.report
            self._finish(documents, shelves, clear_after)
            return True
        except Exception as e:
            logger.error("migration_failed", error=str(e), exc_info=True)
            self._emit("error", 0, 0, f"Migration failed: {e!s}")
            return False

    def migrate_to_store(self, target: LibraryTarget, clear_after: bool = False) -> bool:
        """
        Restore the mirror directly into a library target.

        Args:
            target: Target library, e.g. the SQL store
            clear_after: Clear the mirror once the restore succeeded

        Returns:
            True on success, False on failure (reported as the error phase)
        """
        try:
            documents, shelves, files = self._read_inventory()
            self._emit(
                "uploading",
                0,
                1,
                f"Restoring {documents} documents, {shelves} shelves, {files} files...",
            )
            snapshot = SnapshotBuilder(self.source).build(include_files=True)
            self.report = RestoreEngine(target).restore(snapshot)
            self._finish(documents, shelves, clear_after)
            return True
        except Exception as e:
            logger.error("migration_failed", error=str(e), exc_info=True)
            self._emit("error", 0, 0, f"Migration failed: {e!s}")
            return False

    def _finish(self, documents: int, shelves: int, clear_after: bool) -> None:
        if clear_after:
            self.source.clear()
        self._emit(
            "done",
            1,
            1,
            f"Migration complete! {documents} documents, {shelves} shelves migrated.",
        )
