"""HTTP client for a remote libreader API."""

import logging
from collections.abc import AsyncIterator, Iterable
from typing import Any

import httpx
from starlette.concurrency import iterate_in_threadpool

from libreader.exceptions import LibraryApiError
from libreader.schemas import RestoreResponse

logger = logging.getLogger(__name__)


async def _encode_chunks(chunks: Iterable[str]) -> AsyncIterator[bytes]:
    # Snapshot chunks come from disk and database reads, kept off the event loop
    async for chunk in iterate_in_threadpool(iter(chunks)):
        yield chunk.encode("utf-8")


class LibraryApiClient:
    """HTTP client for the libreader REST API."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 300.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url, timeout=timeout, transport=transport
        )

    async def __aenter__(self) -> "LibraryApiClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Make an API request, turning error responses into LibraryApiError."""
        response = await self._client.request(method, path, **kwargs)
        if response.is_error:
            raise LibraryApiError(self._error_message(response), status_code=response.status_code)
        return response

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return f"HTTP {response.status_code}: {response.text[:200]}"
        if isinstance(body, dict):
            error = body.get("error")
            if isinstance(error, dict) and error.get("message"):
                return str(error["message"])
            if body.get("detail"):
                return str(body["detail"])
        return f"HTTP {response.status_code}"

    async def health(self) -> dict[str, Any]:
        """Check that the API is reachable."""
        response = await self._request("GET", "/api/health")
        return response.json()

    async def restore_snapshot(self, chunks: Iterable[str]) -> RestoreResponse:
        """
        Upload a snapshot to the restore endpoint.

        Args:
            chunks: JSON text fragments of one snapshot, sent as they are produced

        Returns:
            RestoreResponse with the server's message and report
        """
        response = await self._request(
            "POST",
            "/api/backup/restore",
            content=_encode_chunks(chunks),
            headers={"Content-Type": "application/json"},
        )
        logger.info(f"Snapshot uploaded to {self.base_url}")
        return RestoreResponse.model_validate(response.json())
