"""API routes for documents, reading progress, bookmarks, sessions and goals."""

import logging
from collections.abc import Iterator
from typing import Annotated
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, HTTPException, Response, UploadFile, status
from fastapi.responses import StreamingResponse

from libreader import schemas
from libreader.core import container
from libreader.dependencies import inject_service
from libreader.exceptions import LibreaderError, ValidationError
from libreader.services.document_service import DocumentService
from libreader.services.reading_goal_service import ReadingGoalService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents", tags=["documents"])

DocumentServiceDep = Annotated[
    DocumentService, Depends(inject_service(container.document_service))
]
ReadingGoalServiceDep = Annotated[
    ReadingGoalService, Depends(inject_service(container.reading_goal_service))
]


def _unexpected(action: str, e: Exception) -> HTTPException:
    logger.error(f"Failed to {action}: {e!s}", exc_info=True)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="An unexpected error occurred. Please try again later.",
    )


@router.get("", response_model=list[schemas.DocumentProjection])
def list_documents(service: DocumentServiceDep) -> list[schemas.DocumentProjection]:
    """Get every document, newest upload first."""
    try:
        return service.list_documents()
    except LibreaderError:
        raise
    except Exception as e:
        raise _unexpected("list documents", e) from e


@router.get("/{document_id}", response_model=schemas.DocumentProjection)
def get_document(document_id: str, service: DocumentServiceDep) -> schemas.DocumentProjection:
    """Get one fully hydrated document."""
    try:
        return service.get_document(document_id)
    except LibreaderError:
        raise
    except Exception as e:
        raise _unexpected(f"get document {document_id}", e) from e


@router.post(
    "",
    response_model=schemas.DocumentProjection,
    status_code=status.HTTP_201_CREATED,
)
async def upload_document(
    service: DocumentServiceDep,
    file: Annotated[UploadFile | None, File()] = None,
    title: Annotated[str | None, Form()] = None,
    total_pages: Annotated[int | None, Form(alias="totalPages")] = None,
) -> schemas.DocumentProjection:
    """
    Upload an EPUB or PDF.

    Args:
        file: The document file (.epub or .pdf)
        title: Display title, defaults to the file name
        total_pages: Page count, if the client already knows it

    Returns:
        The created document
    """
    if file is None or not file.filename:
        raise ValidationError("No file provided")
    try:
        content = await file.read()
        return service.upload_document(file.filename, content, title, total_pages)
    except LibreaderError:
        raise
    except Exception as e:
        raise _unexpected("upload document", e) from e


@router.put("/{document_id}", response_model=schemas.DocumentProjection)
def update_document(
    document_id: str,
    request: schemas.DocumentUpdateRequest,
    service: DocumentServiceDep,
) -> schemas.DocumentProjection:
    """Update document fields and metadata; only provided fields change."""
    try:
        return service.update_document(document_id, request)
    except LibreaderError:
        raise
    except Exception as e:
        raise _unexpected(f"update document {document_id}", e) from e


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_document(document_id: str, service: DocumentServiceDep) -> Response:
    """Delete a document with everything it owns, including its file."""
    try:
        service.delete_document(document_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except LibreaderError:
        raise
    except Exception as e:
        raise _unexpected(f"delete document {document_id}", e) from e


@router.get("/{document_id}/file")
@router.get("/{document_id}/content", include_in_schema=False)
def get_document_file(document_id: str, service: DocumentServiceDep) -> StreamingResponse:
    """Stream a document's binary content."""
    try:
        content = service.open_content(document_id)
    except LibreaderError:
        raise
    except Exception as e:
        raise _unexpected(f"read file of document {document_id}", e) from e

    def iter_content() -> Iterator[bytes]:
        with content.stream as stream:
            while chunk := stream.read(64 * 1024):
                yield chunk

    return StreamingResponse(
        iter_content(),
        media_type=content.mime_type,
        headers={"Content-Disposition": f'inline; filename="{quote(content.filename)}"'},
    )


@router.put("/{document_id}/progress", response_model=schemas.DocumentProjection)
def update_progress(
    document_id: str,
    request: schemas.ProgressUpdateRequest,
    service: DocumentServiceDep,
) -> schemas.DocumentProjection:
    """Store the current reading position."""
    try:
        return service.update_progress(document_id, request)
    except LibreaderError:
        raise
    except Exception as e:
        raise _unexpected(f"update progress of document {document_id}", e) from e


@router.post(
    "/{document_id}/bookmarks",
    response_model=schemas.BookmarkProjection,
    status_code=status.HTTP_201_CREATED,
)
def create_bookmark(
    document_id: str,
    request: schemas.BookmarkCreateRequest,
    service: DocumentServiceDep,
) -> schemas.BookmarkProjection:
    """Create a bookmark on a document."""
    try:
        return service.add_bookmark(document_id, request)
    except LibreaderError:
        raise
    except Exception as e:
        raise _unexpected(f"create bookmark for document {document_id}", e) from e


@router.put("/{document_id}/bookmarks/{bookmark_id}", response_model=schemas.BookmarkProjection)
def update_bookmark(
    document_id: str,
    bookmark_id: str,
    request: schemas.BookmarkUpdateRequest,
    service: DocumentServiceDep,
) -> schemas.BookmarkProjection:
    """Update a bookmark's location, label or note."""
    try:
        return service.update_bookmark(document_id, bookmark_id, request)
    except LibreaderError:
        raise
    except Exception as e:
        raise _unexpected(f"update bookmark {bookmark_id}", e) from e


@router.delete(
    "/{document_id}/bookmarks/{bookmark_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_bookmark(document_id: str, bookmark_id: str, service: DocumentServiceDep) -> Response:
    """Delete a bookmark."""
    try:
        service.delete_bookmark(document_id, bookmark_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except LibreaderError:
        raise
    except Exception as e:
        raise _unexpected(f"delete bookmark {bookmark_id}", e) from e


@router.post(
    "/{document_id}/sessions",
    response_model=schemas.ReadingStatsProjection,
    status_code=status.HTTP_201_CREATED,
)
def record_session(
    document_id: str,
    request: schemas.ReadingSessionCreateRequest,
    service: DocumentServiceDep,
) -> schemas.ReadingStatsProjection:
    """Record a reading session and return the updated stats."""
    try:
        return service.record_session(document_id, request)
    except LibreaderError:
        raise
    except Exception as e:
        raise _unexpected(f"record session for document {document_id}", e) from e


@router.get("/{document_id}/stats", response_model=schemas.ReadingStatsProjection)
def get_stats(document_id: str, service: DocumentServiceDep) -> schemas.ReadingStatsProjection:
    """Get total reading time and the most recent sessions."""
    try:
        return service.get_stats(document_id)
    except LibreaderError:
        raise
    except Exception as e:
        raise _unexpected(f"get stats for document {document_id}", e) from e


@router.put("/{document_id}/goals", response_model=schemas.ReadingGoalProjection)
def set_goal(
    document_id: str,
    request: schemas.ReadingGoalRequest,
    service: ReadingGoalServiceDep,
) -> schemas.ReadingGoalProjection:
    """Create or update a document's reading goal."""
    try:
        return service.set_goal(document_id, request)
    except LibreaderError:
        raise
    except Exception as e:
        raise _unexpected(f"save goal for document {document_id}", e) from e


@router.put("/{document_id}/goals/streak", response_model=schemas.ReadingGoalProjection)
def mark_goal_day(
    document_id: str, service: ReadingGoalServiceDep
) -> schemas.ReadingGoalProjection:
    """Mark today complete and update the streak."""
    try:
        return service.mark_today_complete(document_id)
    except LibreaderError:
        raise
    except Exception as e:
        raise _unexpected(f"update streak for document {document_id}", e) from e
