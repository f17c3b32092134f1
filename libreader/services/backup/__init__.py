"""Backup, export, restore and migration of a library."""

from libreader.services.backup.api_client import LibraryApiClient
from libreader.services.backup.local_mirror import LocalMirrorStore
from libreader.services.backup.migration import MigrationBridge, MigrationProgress
from libreader.services.backup.ports import LibrarySource, LibraryTarget
from libreader.services.backup.reconciler import ReconcileResult, reconcile_shelf_membership
from libreader.services.backup.restore_engine import RestoreEngine
from libreader.services.backup.snapshot_builder import SnapshotBuilder
from libreader.services.backup.sql_store import SqlLibraryStore

__all__ = [
    "LibraryApiClient",
    "LibrarySource",
    "LibraryTarget",
    "LocalMirrorStore",
    "MigrationBridge",
    "MigrationProgress",
    "ReconcileResult",
    "RestoreEngine",
    "SnapshotBuilder",
    "SqlLibraryStore",
    "reconcile_shelf_membership",
]
