"""HTTP client for the dataset server's paging, search and reload endpoints."""

from __future__ import annotations

from typing import Protocol

import httpx
from loguru import logger
from pydantic import ValidationError

from .exceptions import FetchError
from .models import PageResponse, SearchResponse


class RelationsSource(Protocol):
    """What the data source coordinator needs from a remote dataset."""

    async def fetch_page(self, page: int, page_size: int) -> PageResponse: ...

    async def search(self, query: str, page: int, page_size: int) -> SearchResponse: ...

    async def reload(self) -> None: ...

    def download_url(self) -> str: ...


class RelationsClient:
    """httpx-based client for a running dataset server.

    Args:
        base_url: Server origin, e.g. ``http://localhost:8080``
        timeout: Request timeout in seconds
        transport: Optional httpx transport (tests pass ``httpx.MockTransport``)
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url, timeout=self.timeout, transport=self._transport
        )

    async def _request(
        self, method: str, path: str, params: dict | None = None
    ) -> dict:
        try:
            async with self._client() as client:
                response = await client.request(method, path, params=params)
                response.raise_for_status()
                return response.json() if response.content else {}
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.warning(f"{method} {path} failed with HTTP {status}")
            raise FetchError(f"HTTP {status}", status_code=status) from e
        except httpx.TimeoutException as e:
            logger.warning(f"{method} {path} timed out after {self.timeout}s")
            raise FetchError(f"Request timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            logger.warning(f"{method} {path} failed: {e}")
            raise FetchError(f"Request failed: {e}") from e
        except ValueError as e:
            raise FetchError(f"Invalid JSON from {path}") from e

    async def fetch_page(self, page: int, page_size: int) -> PageResponse:
        payload = await self._request(
            "GET", "/api/relations", params={"page": page, "pageSize": page_size}
        )
        try:
            return PageResponse.model_validate(payload)
        except ValidationError as e:
            raise FetchError(f"Unexpected page response: {e}") from e

    async def search(self, query: str, page: int, page_size: int) -> SearchResponse:
        payload = await self._request(
            "GET",
            "/api/search",
            params={"q": query, "page": page, "pageSize": page_size},
        )
        try:
            return SearchResponse.model_validate(payload)
        except ValidationError as e:
            raise FetchError(f"Unexpected search response: {e}") from e

    async def reload(self) -> None:
        await self._request("POST", "/api/reload")

    def download_url(self) -> str:
        return f"{self.base_url}/api/download"
