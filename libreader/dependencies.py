from collections.abc import Callable
from typing import Annotated, TypeVar

from dependency_injector.providers import Provider
from fastapi import Depends

from libreader.core import container
from libreader.database import DatabaseSession
from libreader.storage import FileStorage

T = TypeVar("T")


def inject_service(provider: Provider[T]) -> Callable[[DatabaseSession], T]:
    """
    Create a FastAPI dependency for a container provider.

    Automatically handles container.db override with request-scoped database session.
    """

    def dependency(db: DatabaseSession) -> T:
        try:
            container.db.override(db)
            return provider()
        finally:
            # Reset override after request completes
            container.db.reset_override()

    return dependency


def get_file_storage() -> FileStorage:
    """Get the active storage strategy from the container."""
    return container.storage()


ActiveStorage = Annotated[FileStorage, Depends(get_file_storage)]
