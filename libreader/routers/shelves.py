"""API routes for shelves."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status

from libreader import schemas
from libreader.core import container
from libreader.dependencies import inject_service
from libreader.exceptions import LibreaderError
from libreader.services.shelf_service import ShelfService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/shelves", tags=["shelves"])

ShelfServiceDep = Annotated[ShelfService, Depends(inject_service(container.shelf_service))]


def _unexpected(action: str, e: Exception) -> HTTPException:
    logger.error(f"Failed to {action}: {e!s}", exc_info=True)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="An unexpected error occurred. Please try again later.",
    )


@router.get("", response_model=list[schemas.ShelfProjection])
def list_shelves(service: ShelfServiceDep) -> list[schemas.ShelfProjection]:
    """Get all shelves in display order."""
    try:
        return service.list_shelves()
    except LibreaderError:
        raise
    except Exception as e:
        raise _unexpected("list shelves", e) from e


@router.get("/{shelf_id}", response_model=schemas.ShelfProjection)
def get_shelf(shelf_id: str, service: ShelfServiceDep) -> schemas.ShelfProjection:
    """Get one shelf with its member document IDs."""
    try:
        return service.get_shelf(shelf_id)
    except LibreaderError:
        raise
    except Exception as e:
        raise _unexpected(f"get shelf {shelf_id}", e) from e


@router.post("", response_model=schemas.ShelfProjection, status_code=status.HTTP_201_CREATED)
def create_shelf(
    request: schemas.ShelfCreateRequest, service: ShelfServiceDep
) -> schemas.ShelfProjection:
    """
    Create a shelf.

    Without an explicit ``order`` the shelf is placed after the existing ones.
    """
    try:
        return service.create_shelf(request)
    except LibreaderError:
        raise
    except Exception as e:
        raise _unexpected("create shelf", e) from e


@router.put("/{shelf_id}", response_model=schemas.ShelfProjection)
def update_shelf(
    shelf_id: str, request: schemas.ShelfUpdateRequest, service: ShelfServiceDep
) -> schemas.ShelfProjection:
    """Rename, recolor or reorder a shelf."""
    try:
        return service.update_shelf(shelf_id, request)
    except LibreaderError:
        raise
    except Exception as e:
        raise _unexpected(f"update shelf {shelf_id}", e) from e


@router.delete("/{shelf_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_shelf(shelf_id: str, service: ShelfServiceDep) -> Response:
    """Delete a shelf; its documents become unshelved."""
    try:
        service.delete_shelf(shelf_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except LibreaderError:
        raise
    except Exception as e:
        raise _unexpected(f"delete shelf {shelf_id}", e) from e


@router.put("/{shelf_id}/documents", response_model=schemas.ShelfProjection)
def update_shelf_documents(
    shelf_id: str, request: schemas.ShelfDocumentsRequest, service: ShelfServiceDep
) -> schemas.ShelfProjection:
    """Move documents onto or off a shelf."""
    try:
        return service.update_documents(shelf_id, request)
    except LibreaderError:
        raise
    except Exception as e:
        raise _unexpected(f"update documents of shelf {shelf_id}", e) from e
