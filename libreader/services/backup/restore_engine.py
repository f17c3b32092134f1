"""
Restores a snapshot into a library under a skip-if-exists policy.

Every call site (HTTP restore, CLI restore, local-mirror import and the
migration bridge) goes through ``RestoreEngine``; only the target differs.
"""

import threading

import structlog

from libreader.archive import decode_payload, default_mime_type, parse_mime_type
from libreader.exceptions import InvalidSnapshotError
from libreader.schemas import DocumentProjection, FileEntry, RestoreReport, Snapshot
from libreader.services.backup.ports import LibraryTarget
from libreader.services.backup.reconciler import reconcile_shelf_membership

logger = structlog.get_logger(__name__)

# Existence checks followed by inserts are not safe to interleave
_restore_lock = threading.Lock()


class RestoreEngine:
    """Merges snapshots into a ``LibraryTarget``."""

    def __init__(self, target: LibraryTarget) -> None:
        self.target = target

    def restore(self, snapshot: Snapshot) -> RestoreReport:
        """
        Restore a snapshot, all or nothing.

        Shelves are inserted first, then each document not already present,
        with all its owned children and its file. Documents that already
        exist are skipped entirely, so restoring the same snapshot twice
        changes nothing the second time.

        Args:
            snapshot: Snapshot to restore; ``metadata`` is required

        Returns:
            RestoreReport with what was inserted and what was skipped

        Raises:
            InvalidSnapshotError: If the snapshot has no ``metadata``
            Exception: Any failure while writing; the target is rolled back
                and the original exception is re-raised
        """
        if snapshot.metadata is None:
            raise InvalidSnapshotError()

        with _restore_lock:
            logger.info(
                "restore_started",
                documents=len(snapshot.metadata),
                shelves=len(snapshot.shelves),
                files=len(snapshot.files),
            )
            try:
                report = self._apply(snapshot)
                self.target.commit()
            except Exception as e:
                logger.error("restore_failed", error=str(e), exc_info=True)
                self.target.rollback()
                raise

        logger.info("restore_complete", **report.model_dump())
        return report

    def _apply(self, snapshot: Snapshot) -> RestoreReport:
        report = RestoreReport()

        for shelf in snapshot.shelves:
            if self.target.shelf_exists(shelf.id):
                report.shelves_existing += 1
                continue
            self.target.add_shelf(shelf)
            report.shelves_inserted += 1

        new_documents: list[DocumentProjection] = []
        seen: set[str] = set()
        for document in snapshot.metadata or []:
            if document.id in seen or self.target.document_exists(document.id):
                logger.debug("document_skipped", document_id=document.id)
                report.documents_skipped += 1
                continue
            seen.add(document.id)
            new_documents.append(document)

        reconciled = reconcile_shelf_membership(
            new_documents, snapshot.shelves, self.target.shelf_exists
        )
        report.shelf_references_repaired = reconciled.repaired_count

        files: dict[str, FileEntry] = {}
        for entry in snapshot.files:
            files.setdefault(entry.id, entry)

        for document in reconciled.documents:
            report.subjects_created += self._insert_document(document)
            report.documents_inserted += 1

            entry = files.get(document.id)
            if entry is not None:
                self._write_file(document, entry)
                report.files_written += 1

        return report

    def _insert_document(self, document: DocumentProjection) -> int:
        """Insert one document and its owned children; return subjects created."""
        target = self.target
        target.add_document(document)

        stats = document.reading_stats
        target.add_reading_stats(document.id, stats)
        for session in stats.sessions:
            target.add_reading_session(document.id, session)

        for bookmark in document.bookmarks:
            target.add_bookmark(document.id, bookmark)

        if document.reading_goal is not None:
            goal_id = target.add_reading_goal(document.id, document.reading_goal)
            for completed_date in document.reading_goal.completed_days:
                target.add_completed_day(goal_id, completed_date)

        created_count = 0
        if document.metadata is not None:
            subjects = []
            for name in dict.fromkeys(document.metadata.subjects):
                subject, created = target.get_or_create_subject(name)
                subjects.append(subject)
                created_count += int(created)
            target.add_book_metadata(document.id, document.metadata, subjects)

        logger.debug("document_inserted", document_id=document.id)
        return created_count

    def _write_file(self, document: DocumentProjection, entry: FileEntry) -> None:
        content = decode_payload(entry.data)
        mime_type = entry.type or parse_mime_type(entry.data, default_mime_type(document.type))
        self.target.store_file(document.id, document.type, content, mime_type)
