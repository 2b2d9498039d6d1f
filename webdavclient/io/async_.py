"""
Asynchronous I/O implementation using aiohttp library.
"""

import asyncio
import logging
import ssl
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional, Union

import aiohttp
from multidict import CIMultiDictProxy

from webdavclient.lib import error
from webdavclient.protocol.types import DAVRequest, DAVResponse

log = logging.getLogger(__name__)


class AiohttpStreamResponse:
    """A streamed aiohttp response, see StreamResponse."""

    def __init__(self, response: aiohttp.ClientResponse):
        self._response = response
        self.status: int = response.status
        self.reason: str = response.reason or ""
        self.headers: CIMultiDictProxy = response.headers

    async def iter_chunks(self, chunk_size: int) -> AsyncIterator[bytes]:
        try:
            async for chunk in self._response.content.iter_chunked(chunk_size):
                yield chunk
        except (aiohttp.ClientError, asyncio.TimeoutError) as err:
            raise error.TransportError(
                url=str(self._response.url), reason=str(err) or type(err).__name__
            ) from err

    def close(self) -> None:
        self._response.close()


class AsyncIO:
    """
    Asynchronous I/O shell using aiohttp library.

    This is a thin wrapper that executes DAVRequest objects via HTTP
    and returns DAVResponse objects.

    Example:
        async with AsyncIO() as io:
            request = protocol.propfind_request("folder/")
            response = await io.execute(request)
            multistatus = protocol.parse_multistatus(request, response)
    """

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: Optional[float] = None,
        ssl_verify_cert: Union[bool, str] = True,
    ):
        """
        Initialize the async I/O handler.

        Args:
            session: Existing aiohttp ClientSession to use (creates new if None)
            timeout: Request timeout in seconds, None for no timeout
            ssl_verify_cert: Verify SSL certificates (bool, or path to a CA bundle)
        """
        self._session = session
        self._owns_session = session is None
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.ssl_verify_cert = ssl_verify_cert

    def _ssl(self) -> Union[bool, ssl.SSLContext]:
        if isinstance(self.ssl_verify_cert, str):
            return ssl.create_default_context(cafile=self.ssl_verify_cert)
        return self.ssl_verify_cert

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the aiohttp session."""
        if self._session is None:
            connector = aiohttp.TCPConnector(ssl=self._ssl())
            self._session = aiohttp.ClientSession(
                timeout=self.timeout,
                connector=connector,
            )
        return self._session

    async def execute(self, request: DAVRequest) -> DAVResponse:
        """
        Execute a DAVRequest and return DAVResponse.

        Args:
            request: The request to execute

        Returns:
            DAVResponse with status, headers, and body
        """
        async with self.stream(request) as response:
            chunks = [chunk async for chunk in response.iter_chunks(64 * 1024)]
            return DAVResponse(
                status=response.status,
                headers=response.headers,
                body=b"".join(chunks),
                reason=response.reason,
            )

    @asynccontextmanager
    async def stream(self, request: DAVRequest) -> AsyncIterator[AiohttpStreamResponse]:
        """
        Execute a DAVRequest, yield the response with the body still
        unread.
        """
        session = await self._get_session()
        try:
            ctx = session.request(
                method=request.method.value,
                url=request.url,
                headers=request.headers,
                data=request.body,
            )
            response = await ctx.__aenter__()
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as err:
            raise error.TransportError(
                url=request.url,
                reason=str(err) or type(err).__name__,
                method=request.method.value,
            ) from err
        try:
            yield AiohttpStreamResponse(response)
        finally:
            await ctx.__aexit__(None, None, None)

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
