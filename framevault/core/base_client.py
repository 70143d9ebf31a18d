import asyncio
from typing import Any

import httpx
from loguru import logger

# Status codes worth another attempt; everything else is final
RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


class BaseClient:
    """
    Base asynchronous HTTP client with bounded retries and logging.
    """

    def __init__(
        self,
        base_url: str = "",
        timeout: float = 10.0,
        max_retries: int = 3,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self.max_retries = max_retries
        self.headers = headers or {}
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def get_client(self) -> httpx.AsyncClient:
        """Get or create the httpx.AsyncClient instance."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=self.headers,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def close(self):
        """Close the underlying HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, url: str, max_tries: int | None = None, **kwargs) -> httpx.Response:
        """Send a request, retrying transport errors and retryable statuses with exponential backoff."""
        client = await self.get_client()
        tries = max_tries or self.max_retries
        last_exception: Exception | None = None

        for attempt in range(1, tries + 1):
            try:
                response = await client.request(method, url, **kwargs)
                response.raise_for_status()
                return response
            except httpx.HTTPStatusError as e:
                last_exception = e
                if e.response.status_code not in RETRYABLE_STATUS_CODES:
                    raise
            except httpx.RequestError as e:
                last_exception = e

            if attempt < tries:
                wait_time = 0.25 * (2 ** (attempt - 1))
                logger.warning(
                    f"Request failed ({method} {url}): {last_exception}. "
                    f"Retrying in {wait_time}s... (Attempt {attempt}/{tries})"
                )
                await asyncio.sleep(wait_time)
            else:
                logger.error(f"Request failed after {tries} attempts ({method} {url}): {last_exception}")

        if last_exception:
            raise last_exception
        raise httpx.RequestError("Request failed for unknown reasons")

    async def get(self, url: str, params: dict[str, Any] | None = None, **kwargs) -> dict[str, Any]:
        """Perform a GET request and return the JSON response."""
        response = await self._request("GET", url, params=params, **kwargs)
        return response.json()
