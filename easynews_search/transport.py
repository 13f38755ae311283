"""
HTTP transport for the remote search API.

This module wraps a shared httpx.AsyncClient behind a single fetch call.
Timeouts surface as httpx.TimeoutException and other network faults as
httpx.RequestError; translating them into search errors is left to the
caller.
"""

from typing import Any, Dict, Optional

import httpx

from easynews_search.logger import get_logger

logger = get_logger("easynews_search.transport")


class HttpTransport:
    """
    Fetch-with-timeout transport backed by httpx.

    Attributes:
        client: The underlying httpx.AsyncClient (created on first use)
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None) -> None:
        """
        Initialize transport.

        Args:
            client: Optional pre-built client. A client passed in is not
                closed by close(); one created here is.
        """
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient()
        return self._client

    async def fetch(
        self,
        url: str,
        params: Dict[str, Any],
        headers: Dict[str, str],
        timeout: float,
    ) -> httpx.Response:
        """
        Issue a GET request.

        Args:
            url: Target URL
            params: Query string parameters
            headers: Request headers, including Authorization
            timeout: Timeout in seconds for the whole request

        Returns:
            The httpx.Response, whatever its status code

        Raises:
            httpx.TimeoutException: If the request times out
            httpx.RequestError: On other network failures
        """
        logger.debug(f"GET {url} (timeout {timeout}s)")
        return await self.client.get(url, params=params, headers=headers, timeout=timeout)

    async def close(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
