"""Command-line interface: export, restore, local mirror import and migration."""

import argparse
import asyncio
import sys
from collections.abc import Sequence
from pathlib import Path

import pydantic
import structlog

from libreader.config import Settings, configure_logging, get_settings
from libreader.database import dispose_engine, get_session_factory, initialize_database
from libreader.exceptions import InvalidSnapshotError, LibreaderError
from libreader.schemas import RestoreReport, Snapshot
from libreader.services.backup import (
    LibraryApiClient,
    LocalMirrorStore,
    MigrationBridge,
    MigrationProgress,
    RestoreEngine,
    SnapshotBuilder,
    SqlLibraryStore,
)
from libreader.storage import create_file_storage

logger = structlog.get_logger(__name__)


def _load_snapshot(path: Path) -> Snapshot:
    try:
        return Snapshot.model_validate_json(path.read_bytes())
    except pydantic.ValidationError as e:
        raise InvalidSnapshotError(f"Invalid backup payload: {e.errors()[0]['msg']}") from e


def _print_report(report: RestoreReport) -> None:
    for field, value in report.model_dump().items():
        print(f"  {field.replace('_', ' ')}: {value}")


def _print_progress(progress: MigrationProgress) -> None:
    print(f"[{progress.phase}] {progress.message} ({progress.current}/{progress.total})")


def _sql_store(settings: Settings) -> SqlLibraryStore:
    initialize_database(settings)
    db = get_session_factory(settings)()
    return SqlLibraryStore(db, create_file_storage(settings))


def cmd_export(args: argparse.Namespace, settings: Settings) -> int:
    """Write a snapshot of the configured database to a file."""
    store = _sql_store(settings)
    output: Path = args.output
    try:
        builder = SnapshotBuilder(store)
        if args.metadata_only:
            snapshot = builder.build(include_files=False)
            output.write_text(snapshot.model_dump_json(by_alias=True, indent=2, exclude={"files"}))
        else:
            with output.open("w", encoding="utf-8") as f:
                for chunk in builder.iter_json(include_files=True):
                    f.write(chunk)
    finally:
        store.db.close()
    print(f"Snapshot written to {output}")
    return 0


def cmd_restore(args: argparse.Namespace, settings: Settings) -> int:
    """Restore a snapshot file into the configured database."""
    snapshot = _load_snapshot(args.input)
    store = _sql_store(settings)
    try:
        report = RestoreEngine(store).restore(snapshot)
    finally:
        store.db.close()
    print("Library restored successfully")
    _print_report(report)
    return 0


def cmd_mirror_import(args: argparse.Namespace, _settings: Settings) -> int:
    """Restore a snapshot file into a local mirror directory."""
    snapshot = _load_snapshot(args.input)
    report = RestoreEngine(LocalMirrorStore(args.mirror)).restore(snapshot)
    print(f"Snapshot imported into {args.mirror}")
    _print_report(report)
    return 0


def cmd_migrate(args: argparse.Namespace, settings: Settings) -> int:
    """Move a local mirror into a running API or straight into the database."""
    mirror = LocalMirrorStore(args.mirror)
    if not mirror.has_data():
        print(f"Nothing to migrate in {args.mirror}")
        return 0

    bridge = MigrationBridge(mirror, on_progress=_print_progress)
    if args.server:

        async def run() -> bool:
            async with LibraryApiClient(args.server) as client:
                return await bridge.migrate_to_server(client, clear_after=args.clear)

        ok = asyncio.run(run())
    else:
        store = _sql_store(settings)
        try:
            ok = bridge.migrate_to_store(store, clear_after=args.clear)
        finally:
            store.db.close()

    if ok and bridge.report is not None:
        _print_report(bridge.report)
    return 0 if ok else 1


def cmd_serve(args: argparse.Namespace, _settings: Settings) -> int:
    """Run the API with uvicorn."""
    import uvicorn  # noqa: PLC0415

    uvicorn.run("libreader.main:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with one subcommand per operation."""
    parser = argparse.ArgumentParser(prog="libreader", description=__doc__)
    subparsers = parser.add_subparsers(dest="command", required=True)

    export = subparsers.add_parser("export", help="write a snapshot of the database")
    export.add_argument("output", type=Path, help="snapshot file to write")
    export.add_argument(
        "--metadata-only", action="store_true", help="leave file content out of the snapshot"
    )
    export.set_defaults(handler=cmd_export)

    restore = subparsers.add_parser("restore", help="restore a snapshot into the database")
    restore.add_argument("input", type=Path, help="snapshot file to read")
    restore.set_defaults(handler=cmd_restore)

    mirror_import = subparsers.add_parser(
        "mirror-import", help="restore a snapshot into a local mirror"
    )
    mirror_import.add_argument("input", type=Path, help="snapshot file to read")
    mirror_import.add_argument("--mirror", type=Path, required=True, help="mirror directory")
    mirror_import.set_defaults(handler=cmd_mirror_import)

    migrate = subparsers.add_parser("migrate", help="move a local mirror into the library")
    migrate.add_argument("--mirror", type=Path, required=True, help="mirror directory")
    destination = migrate.add_mutually_exclusive_group(required=True)
    destination.add_argument("--server", help="base URL of a running libreader API")
    destination.add_argument(
        "--database", action="store_true", help="restore into the configured database"
    )
    migrate.add_argument(
        "--clear", action="store_true", help="clear the mirror after a successful migration"
    )
    migrate.set_defaults(handler=cmd_migrate)

    serve = subparsers.add_parser("serve", help="run the API server")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--reload", action="store_true")
    serve.set_defaults(handler=cmd_serve)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point of the ``libreader`` console script."""
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(settings.ENVIRONMENT)

    try:
        return args.handler(args, settings)
    except LibreaderError as e:
        logger.error("command_failed", command=args.command, error=e.message)
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    finally:
        dispose_engine()


if __name__ == "__main__":
    sys.exit(main())
