"""
Read-only Audiobookshelf API client.

Covers the three endpoints the library adapter needs:

    GET /api/series/{id}
    GET /api/libraries/{id}
    GET /api/libraries/{id}/items?filter=series.<base64 id>

Usage:
    async with AsyncABSClient(host, api_key) as client:
        series = await client.get_series(series_id)
        page = await client.get_library_items(series.library_id, filter_str=...)
"""

import asyncio
import logging

import httpx

from .models import Library, LibraryItemsResponse, SeriesResponse

logger = logging.getLogger(__name__)


class ABSError(Exception):
    """Audiobookshelf request failed."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        return self.message


class ABSConnectionError(ABSError):
    """Server unreachable or timed out."""


class ABSAuthError(ABSError):
    """Token rejected."""


class ABSNotFoundError(ABSError):
    """Series, library or item does not exist."""


# status -> (exception, message)
_STATUS_ERRORS: dict[int, tuple[type[ABSError], str]] = {
    401: (ABSAuthError, "Authentication failed, check the ABS API key"),
    403: (ABSAuthError, "The ABS API key lacks permission for {path}"),
    404: (ABSNotFoundError, "Not found: {path}"),
}


class AsyncABSClient:
    """
    Audiobookshelf client over httpx.AsyncClient.

    Requests are spaced by at least rate_limit_delay seconds and at most
    max_concurrent_requests run at once.
    """

    def __init__(
        self,
        host: str,
        api_key: str,
        timeout: float = 30.0,
        rate_limit_delay: float = 0.1,
        max_concurrent_requests: int = 5,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Args:
            host: Server URL, e.g. https://abs.example.com
            api_key: API token sent as a bearer token
            timeout: Request timeout in seconds
            rate_limit_delay: Minimum pause between two requests
            max_concurrent_requests: Cap on in-flight requests
            transport: httpx transport override (tests)
        """
        self.host = host.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.rate_limit_delay = rate_limit_delay
        self._transport = transport
        self._semaphore = asyncio.Semaphore(max_concurrent_requests)
        self._next_request_at = 0.0
        self._client: httpx.AsyncClient | None = None

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=f"{self.host}/api",
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "AsyncABSClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _wait_turn(self) -> None:
        loop = asyncio.get_running_loop()
        wait = self._next_request_at - loop.time()
        if wait > 0:
            await asyncio.sleep(wait)
        self._next_request_at = loop.time() + self.rate_limit_delay

    async def _get(self, path: str, params: dict | None = None) -> dict:
        """
        GET a JSON document below /api.

        Raises:
            ABSConnectionError: Transport failure or timeout
            ABSAuthError: 401 or 403
            ABSNotFoundError: 404
            ABSError: Any other error status
        """
        async with self._semaphore:
            await self._wait_turn()
            logger.debug("ABS GET %s %s", path, params or "")
            try:
                response = await self._http().get(path, params=params)
            except httpx.TimeoutException as e:
                raise ABSConnectionError(f"ABS request {path} timed out") from e
            except httpx.TransportError as e:
                raise ABSConnectionError(f"Cannot reach {self.host}: {e}") from e

        if response.status_code in _STATUS_ERRORS:
            error, message = _STATUS_ERRORS[response.status_code]
            raise error(message.format(path=path), status_code=response.status_code)
        if response.is_error:
            raise ABSError(f"ABS returned {response.status_code} for {path}", status_code=response.status_code)
        return response.json() if response.content else {}

    async def get_series(self, series_id: str) -> SeriesResponse:
        return SeriesResponse.model_validate(await self._get(f"/series/{series_id}"))

    async def get_library(self, library_id: str) -> Library:
        return Library.model_validate(await self._get(f"/libraries/{library_id}"))

    async def get_library_items(
        self,
        library_id: str,
        filter_str: str | None = None,
        limit: int = 0,
        page: int = 0,
    ) -> LibraryItemsResponse:
        """
        One page of minified library items.

        Args:
            library_id: Library ID
            filter_str: Filter expression, e.g. "series.<base64 id>"
            limit: Items per page (0 for all)
            page: Zero-based page number
        """
        params: dict[str, str | int] = {"limit": limit, "page": page, "minified": 1}
        if filter_str:
            params["filter"] = filter_str
        data = await self._get(f"/libraries/{library_id}/items", params=params)
        return LibraryItemsResponse.model_validate(data)
