"""API routes for export, backup and restore."""

import logging
from datetime import UTC, datetime
from typing import Annotated, Any

import pydantic
from fastapi import APIRouter, Body, Depends, HTTPException, Response, status
from fastapi.responses import StreamingResponse

from libreader import schemas
from libreader.core import container
from libreader.database import SessionFactory
from libreader.dependencies import ActiveStorage, inject_service
from libreader.exceptions import InvalidSnapshotError, LibreaderError
from libreader.services.backup_service import BackupService, stream_full_backup

logger = logging.getLogger(__name__)

router = APIRouter(tags=["backup"])

BackupServiceDep = Annotated[BackupService, Depends(inject_service(container.backup_service))]

RESTORE_SUCCESS_MESSAGE = "Library restored successfully"


def _attachment(prefix: str) -> dict[str, str]:
    today = datetime.now(UTC).date().isoformat()
    return {"Content-Disposition": f'attachment; filename="{prefix}-{today}.json"'}


@router.get("/export/metadata")
def export_metadata(service: BackupServiceDep) -> Response:
    """
    Download every document and shelf as JSON, without file content.

    Returns:
        Pretty-printed snapshot as an attachment
    """
    try:
        snapshot = service.export_metadata()
        body = snapshot.model_dump_json(by_alias=True, indent=2, exclude={"files"})
        return Response(
            content=body,
            media_type="application/json",
            headers=_attachment("library-metadata"),
        )
    except LibreaderError:
        raise
    except Exception as e:
        logger.error(f"Failed to export metadata: {e!s}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e),
        ) from e


@router.post("/backup")
def create_backup(session_factory: SessionFactory, storage: ActiveStorage) -> StreamingResponse:
    """
    Download a full backup: documents, shelves and every file inline.

    The snapshot is streamed as it is built, one file chunk at a time.
    """
    return StreamingResponse(
        stream_full_backup(session_factory, storage),
        media_type="application/json",
        headers=_attachment("library-backup"),
    )


@router.post("/backup/restore", response_model=schemas.RestoreResponse)
@router.post("/restore", response_model=schemas.RestoreResponse, include_in_schema=False)
def restore_backup(
    service: BackupServiceDep,
    payload: Annotated[dict[str, Any] | None, Body()] = None,
) -> schemas.RestoreResponse:
    """
    Restore a snapshot into the library.

    Documents that already exist are left untouched, so restoring the same
    snapshot again is harmless. The restore is all or nothing.

    Args:
        payload: Snapshot with ``metadata`` and optional ``files`` and ``shelves``

    Returns:
        RestoreResponse with a success message and what was inserted or skipped

    Raises:
        InvalidSnapshotError: If the payload has no ``metadata``
    """
    if not payload or payload.get("metadata") is None:
        raise InvalidSnapshotError()

    try:
        snapshot = schemas.Snapshot.model_validate(payload)
    except pydantic.ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        raise InvalidSnapshotError(f"Invalid backup payload: {location}: {first['msg']}") from e

    try:
        report = service.restore(snapshot)
        return schemas.RestoreResponse(message=RESTORE_SUCCESS_MESSAGE, report=report)
    except LibreaderError:
        raise
    except Exception as e:
        logger.error(f"Failed to restore backup: {e!s}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e),
        ) from e
