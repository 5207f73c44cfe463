"""Shared upstream HTTP client.

One instance is opened per process (by the app lifespan or the CLI) and
handed to every marketplace adapter, the OAuth token exchange and the
analytics webhook, so they share a connection pool.
"""

from typing import Any, Dict, Optional

import httpx

USER_AGENT = "cheapfinder/3.0"


class AsyncHTTPClient:
    """
    Thin wrapper over httpx.AsyncClient with the service's timeouts.

    The client must be entered with ``async with`` before any request.
    """

    def __init__(
        self,
        connect_timeout: float = 3.0,
        read_timeout: float = 8.0,
        write_timeout: float = 5.0,
        pool_timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            connect_timeout: Seconds to establish a connection
            read_timeout: Seconds to wait for response data
            write_timeout: Seconds to send the request body
            pool_timeout: Seconds to wait for a free pooled connection
            transport: Replacement transport; tests pass httpx.MockTransport
        """
        self.connect_timeout = connect_timeout
        self.read_timeout = read_timeout
        self.write_timeout = write_timeout
        self.pool_timeout = pool_timeout
        self.transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def is_open(self) -> bool:
        return self._client is not None

    async def __aenter__(self) -> "AsyncHTTPClient":
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(
                connect=self.connect_timeout,
                read=self.read_timeout,
                write=self.write_timeout,
                pool=self.pool_timeout,
            ),
            headers={"User-Agent": USER_AGENT},
            transport=self.transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _session(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("HTTP client is closed; open it with 'async with' first")
        return self._client

    async def get(self, url: str, params: Optional[Dict[str, Any]] = None, **kwargs) -> httpx.Response:
        """GET ``url`` with optional query parameters."""
        return await self._session().get(url, params=params, **kwargs)

    async def post_form(self, url: str, data: Dict[str, str], **kwargs) -> httpx.Response:
        """POST an application/x-www-form-urlencoded body."""
        return await self._session().post(url, data=data, **kwargs)

    async def post_json(self, url: str, payload: Dict[str, Any], **kwargs) -> httpx.Response:
        return await self._session().post(url, json=payload, **kwargs)
