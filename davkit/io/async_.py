"""
Asynchronous I/O implementation using aiohttp library.
"""

import asyncio
import logging
from typing import Optional

import aiohttp

from davkit.lib import error
from davkit.lib.python_utilities import to_wire
from davkit.protocol.types import DAVRequest, DAVResponse

log = logging.getLogger(__name__)


class AsyncIO:
    """
    Asynchronous I/O shell using aiohttp library.

    This is a thin wrapper that executes DAVRequest objects via HTTP
    and returns DAVResponse objects.  If a username is given, digest
    authentication is done by aiohttp's DigestAuthMiddleware.

    Example:
        async with AsyncIO(username="user", password="secret") as io:
            request = protocol.propfind_request("/addressbooks/", {"d:displayname": {}})
            response = await io.execute(request)
            results = protocol.parse_response(response)
    """

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: Optional[float] = None,
        verify_ssl: bool = True,
    ):
        """
        Initialize the async I/O handler.

        Args:
            session: Existing aiohttp ClientSession to use (creates new if None)
            username: Username for digest authentication
            password: Password for digest authentication
            timeout: Request timeout in seconds, None means no timeout
            verify_ssl: Verify SSL certificates
        """
        self._session = session
        self._owns_session = session is None
        self.username = username
        self.password = password
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.verify_ssl = verify_ssl

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the aiohttp session."""
        if self._session is None:
            middlewares = ()
            if self.username is not None:
                middlewares = (
                    aiohttp.DigestAuthMiddleware(
                        login=self.username, password=self.password or ""
                    ),
                )
            connector = aiohttp.TCPConnector(ssl=self.verify_ssl)
            self._session = aiohttp.ClientSession(
                timeout=self.timeout,
                connector=connector,
                middlewares=middlewares,
            )
        return self._session

    async def execute(self, request: DAVRequest) -> DAVResponse:
        """
        Execute a DAVRequest and return DAVResponse.

        Args:
            request: The request to execute

        Returns:
            DAVResponse with status, reason, final url, headers, and body

        Raises:
            TransportFailure: if no response was received at all
        """
        session = await self._get_session()
        log.debug("sending request - method=%s, url=%s", request.method_name, request.url)

        try:
            async with session.request(
                method=request.method_name,
                url=request.url,
                headers=request.headers,
                data=to_wire(request.body),
            ) as response:
                body = await response.read()
                log.debug("server responded with %i %s", response.status, response.reason)
                return DAVResponse(
                    status=response.status,
                    reason=response.reason or "",
                    url=str(response.url),
                    headers=dict(response.headers),
                    body=body,
                )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise error.exception_by_method[request.method_name.lower()](
                url=request.url, reason=str(e)
            ) from e

    async def close(self) -> None:
        """Close the session if we created it."""
        if self._session and self._owns_session:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "AsyncIO":
        """Async context manager entry."""
        return self

    async def __aexit__(self, *args) -> None:
        """Async context manager exit."""
        await self.close()
