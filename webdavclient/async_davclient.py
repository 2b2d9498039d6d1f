#!/usr/bin/env python
"""
Async-first DAVClient implementation for the webdavclient library.

This module provides the core async WebDAV client functionality.
For sync usage, see the davclient.py wrapper.
"""

import logging
import os
import sys
from collections.abc import Mapping
from tempfile import NamedTemporaryFile
from types import TracebackType
from typing import Any, Optional, Union

from webdavclient import __version__
from webdavclient.io.async_ import AsyncIO
from webdavclient.io.base import AsyncIOProtocol
from webdavclient.lib import error
from webdavclient.lib import url as urlhelper
from webdavclient.lib.debug import format_communication
from webdavclient.locks import LockManager
from webdavclient.protocol.operations import LockTokens, Timeouts, WebDAVProtocol
from webdavclient.protocol.types import (
    DAVRequest,
    DAVResponse,
    Depth,
    LockInfo,
    PropertyUpdate,
    PropFind,
    RequestBody,
)
from webdavclient.response import WebDAVResponse
from webdavclient.transfer import (
    DEFAULT_CHUNK_SIZE,
    CancellationToken,
    ProgressCallback,
    TransferEngine,
    TransferResult,
    UploadSource,
)

if sys.version_info < (3, 11):
    from typing_extensions import Self
else:
    from typing import Self

log = logging.getLogger("webdavclient")

__all__ = ["AsyncDAVClient", "WebDAVResponse", "get_davclient"]


class AsyncDAVClient:
    """
    Async WebDAV client.

    One method per verb.  Every method resolves the target against the
    base URL, builds the headers and the body, sends the request and
    classifies the answer: a 2xx (207 included) is a WebDAVResponse, any
    other outcome is a RequestError.  The client holds no state between
    calls except the transport, so any number of calls may be in flight
    at the same time.

    The recommended way to create a client is via get_davclient():
        async with await get_davclient(url="...", username="...", password="...") as client:
            response = await client.propfind("", depth=Depth.ONE)
    """

    url: str = ""
    huge_tree: bool = False

    def __init__(
        self,
        url: Optional[str] = "",
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: Optional[float] = None,
        ssl_verify_cert: Union[bool, str] = True,
        headers: Optional[Mapping[str, str]] = None,
        huge_tree: bool = False,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        io: Optional[AsyncIOProtocol] = None,
    ) -> None:
        """
        Initialize an async DAV client.

        Args:
            url: Base URL of the WebDAV tree.  Relative paths given to the
                 verb methods are resolved against it.
            username: Username for Basic authentication.
            password: Password for Basic authentication.
            timeout: Request timeout in seconds.
            ssl_verify_cert: SSL certificate verification (bool or CA bundle path).
            headers: Additional headers for all requests.
            huge_tree: Enable XMLParser huge_tree for very large multistatus
                       bodies (security consideration).
            chunk_size: Chunk size of streamed transfers.
            io: Transport to use instead of the default aiohttp one.

        Raises:
            UriError: the url is given but has no scheme or host
        """
        if url:
            ## raises UriError on a malformed base
            urlhelper.combine(url, "")
        self.url = url or ""
        self.username = username
        self.password = password
        self.timeout = timeout
        self.ssl_verify_cert = ssl_verify_cert
        self.huge_tree = huge_tree
        self.chunk_size = chunk_size

        self.headers: dict[str, str] = {
            "User-Agent": f"python-webdavclient/{__version__}",
        }
        self.headers.update(headers or {})

        self.protocol = WebDAVProtocol(
            base_url=self.url,
            username=username,
            password=password,
            headers=self.headers,
            huge_tree=huge_tree,
        )
        self.io = io if io is not None else AsyncIO(timeout=timeout, ssl_verify_cert=ssl_verify_cert)
        self.locks = LockManager(self.protocol, self._send)
        self.transfers = TransferEngine(self.protocol, self.io, self._send, chunk_size)

    async def __aenter__(self) -> Self:
        """Async context manager entry."""
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        """Async context manager exit."""
        await self.close()

    async def close(self) -> None:
        """Close the transport."""
        await self.io.close()

    async def _send(self, request: DAVRequest) -> DAVResponse:
        """
        Execute a request and classify the response.

        Returns:
            the DAVResponse, if the status is 2xx

        Raises:
            TransportError: no response was received
            ProtocolError: the response status was not 2xx
        """
        log.debug(
            "sending request - method=%s, url=%s, headers=%s\nbody:\n%s",
            request.method.value,
            request.url,
            request.headers,
            request.body if isinstance(request.body, bytes) else "(streamed)",
        )
        try:
            response = await self.io.execute(request)
        except error.DAVError:
            raise
        except Exception as err:
            raise error.TransportError(
                url=request.url,
                reason=str(err) or type(err).__name__,
                method=request.method.value,
            ) from err
        log.debug("server responded with %s %s", response.status, response.reason)
        if error.debug_dump_communication:
            self._dump_communication(request, response)
        return self.protocol.check_response(request, response)

    def _dump_communication(self, request: DAVRequest, response: DAVResponse) -> None:
        with NamedTemporaryFile(prefix="webdavcomm", delete=False) as commlog:
            commlog.write(format_communication(request, response))
            log.debug(f"communication dumped to {commlog.name}")

    async def _simple(self, request: DAVRequest) -> WebDAVResponse:
        return WebDAVResponse(request, await self._send(request))

    async def _multistatus(self, request: DAVRequest) -> WebDAVResponse:
        response = await self._send(request)
        multistatus = self.protocol.parse_multistatus(request, response)
        return WebDAVResponse(request, response, multistatus=multistatus)

    async def _member_status(self, request: DAVRequest) -> WebDAVResponse:
        response = await self._send(request)
        multistatus = None
        if response.is_multistatus:
            multistatus = self.protocol.parse_multistatus(request, response)
        return WebDAVResponse(request, response, multistatus=multistatus)

    # ==================== HTTP Method Wrappers ====================

    async def options(self, url: str = "") -> WebDAVResponse:
        """
        Send an OPTIONS request.  The DAV header of the response tells
        the compliance classes of the server.
        """
        return await self._simple(self.protocol.options_request(url))

    async def get(self, url: str) -> WebDAVResponse:
        """
        Send a GET request, the body is buffered in the content of the
        response.  See download() for large resources.
        """
        return await self._simple(self.protocol.get_request(url))

    async def head(self, url: str) -> WebDAVResponse:
        return await self._simple(self.protocol.head_request(url))

    async def put(
        self,
        url: str,
        body: RequestBody = b"",
        content_type: Optional[str] = None,
        lock_tokens: LockTokens = None,
    ) -> WebDAVResponse:
        """
        Send a PUT request.

        Args:
            url: Target path or URL.
            body: Resource content, bytes or str (sent UTF-8 encoded).
            content_type: Media type of the content.
            lock_tokens: Lock token(s) to send in an If header.

        Returns:
            WebDAVResponse
        """
        if isinstance(body, str):
            body = body.encode("utf-8")
        return await self._simple(
            self.protocol.put_request(url, body, content_type, lock_tokens=lock_tokens)
        )

    async def delete(self, url: str, lock_tokens: LockTokens = None) -> WebDAVResponse:
        """
        Delete a resource.  If deleting some members of a collection
        failed, the 207 is parsed into the multistatus attribute.
        """
        return await self._member_status(
            self.protocol.delete_request(url, lock_tokens=lock_tokens)
        )

    async def mkcol(self, url: str, lock_tokens: LockTokens = None) -> WebDAVResponse:
        """Create a collection.  The URL always gets a trailing slash."""
        return await self._simple(self.protocol.mkcol_request(url, lock_tokens=lock_tokens))

    async def propfind(
        self,
        url: str = "",
        propfind: Union[PropFind, str, bytes, None] = None,
        depth: Optional[Depth] = None,
    ) -> WebDAVResponse:
        """
        Send a PROPFIND request.

        Args:
            url: Target path or URL.
            propfind: What to ask for, defaults to all properties.  A
                      ready made XML body (str or bytes) is sent as is.
            depth: Depth header.  None leaves the header out, which the
                   server treats as infinity.

        Returns:
            WebDAVResponse, the parsed body in the multistatus attribute
        """
        return await self._multistatus(self.protocol.propfind_request(url, propfind, depth))

    async def proppatch(
        self,
        url: str,
        update: Union[PropertyUpdate, str, bytes],
        lock_tokens: LockTokens = None,
    ) -> WebDAVResponse:
        """
        Send a PROPPATCH request.  A 207 with failing properties inside
        is still a success; see Multistatus.raise_for_failures().
        """
        return await self._multistatus(
            self.protocol.proppatch_request(url, update, lock_tokens=lock_tokens)
        )

    async def copy(
        self,
        url: str,
        destination: str,
        depth: Optional[Depth] = Depth.INFINITY,
        overwrite: Optional[bool] = None,
        lock_tokens: LockTokens = None,
    ) -> WebDAVResponse:
        """
        Copy a resource.  The destination is resolved against the base
        URL as well.  A 207 (errors on members of a collection) is parsed
        into the multistatus attribute.
        """
        request = self.protocol.copy_request(
            url, destination, depth=depth, overwrite=overwrite, lock_tokens=lock_tokens
        )
        return await self._member_status(request)

    async def move(
        self,
        url: str,
        destination: str,
        overwrite: Optional[bool] = None,
        lock_tokens: LockTokens = None,
    ) -> WebDAVResponse:
        request = self.protocol.move_request(
            url, destination, overwrite=overwrite, lock_tokens=lock_tokens
        )
        return await self._member_status(request)

    # ==================== Locking ====================

    async def lock(
        self,
        url: str,
        lockinfo: Optional[LockInfo] = None,
        timeout: Timeouts = None,
        depth: Depth = Depth.INFINITY,
    ) -> WebDAVResponse:
        """
        Lock a resource, exclusive write lock by default.  The lock token
        is in the lock_token attribute of the response, and the caller is
        responsible for releasing it with unlock().

        Raises:
            HeaderFormatError: depth is Depth.ONE, or a timeout is out of
                               range.  Nothing is sent in that case.
        """
        return await self.locks.acquire(url, timeout=timeout, depth=depth, lockinfo=lockinfo)

    async def refresh_lock(
        self, url: str, lock_token: Optional[str], timeout: Timeouts = None
    ) -> WebDAVResponse:
        return await self.locks.refresh(url, timeout=timeout, lock_token=lock_token)

    async def unlock(self, url: str, lock_token: Optional[str]) -> WebDAVResponse:
        return await self.locks.release(url, lock_token)

    # ==================== Streaming ====================

    async def download(
        self,
        url: str,
        sink: Any,
        cancellation: Optional[CancellationToken] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> TransferResult:
        """Stream a resource into sink (anything with a write method)."""
        return await self.transfers.download(
            url, sink, cancellation=cancellation, progress=progress
        )

    async def upload(
        self,
        url: str,
        source: UploadSource,
        content_type: Optional[str] = None,
        cancellation: Optional[CancellationToken] = None,
        progress: Optional[ProgressCallback] = None,
        lock_tokens: LockTokens = None,
    ) -> TransferResult:
        """Stream bytes, a file or an async iterable into a resource."""
        return await self.transfers.upload(
            url,
            source,
            content_type,
            cancellation=cancellation,
            progress=progress,
            lock_tokens=lock_tokens,
        )


# ==================== Factory Function ====================


def connection_params(
    url: Optional[str] = None,
    username: Optional[str] = None,
    password: Optional[str] = None,
    config_file: Optional[str] = None,
    config_section: str = "default",
    **kwargs: Any,
) -> dict:
    """
    Find the client parameters.  They are looked up in this order:

    - The parameters given
    - Environment variables (WEBDAV_URL, WEBDAV_USERNAME, WEBDAV_PASSWORD)
    - The config file (see webdavclient.config), section config_section

    Raises:
        ValueError: no URL found anywhere
    """
    # Fall back to environment variables
    url = url or os.environ.get("WEBDAV_URL")
    username = username or os.environ.get("WEBDAV_USERNAME")
    password = password or os.environ.get("WEBDAV_PASSWORD")

    if not url:
        ## late import, the config file is only needed as a last resort
        from webdavclient import config

        cfg = config.read_config(config_file)
        sections = config.expand_config_section(cfg, config_section) if cfg else []
        if sections:
            ## a meta section or a glob pattern: the first match is used
            section = config.connection_params(config.config_section(cfg, sections[0]))
            url = section.pop("url", None)
            username = username or section.get("username")
            password = password or section.get("password")
            section.pop("username", None)
            section.pop("password", None)
            kwargs = {**section, **kwargs}

    if not url:
        raise ValueError(
            "URL is required. Provide via url parameter, WEBDAV_URL environment variable or a config file."
        )
    return dict(url=url, username=username, password=password, **kwargs)


def check_probe_response(url: str, response: WebDAVResponse) -> None:
    """Log what an OPTIONS probe tells about the server."""
    log.info(f"Connected to WebDAV server: {url}")

    # Check for DAV support
    dav_header = response.headers.get("DAV", "")
    if not dav_header:
        log.warning("Server did not return DAV header - may not be a DAV server")
    else:
        log.debug(f"Server DAV capabilities: {dav_header}")


async def get_davclient(
    url: Optional[str] = None,
    username: Optional[str] = None,
    password: Optional[str] = None,
    probe: bool = True,
    config_file: Optional[str] = None,
    config_section: str = "default",
    **kwargs: Any,
) -> AsyncDAVClient:
    """
    Get an async DAV client instance.

    This is the recommended way to create a DAV client.  See
    connection_params() for where the parameters are looked up.

    Args:
        url: Base URL of the WebDAV tree.
        username: Username for authentication.
        password: Password for authentication.
        probe: Verify connectivity with OPTIONS request (default: True).
        config_file: Path of the config file, the default locations are
                     searched if None.
        config_section: Section of the config file to use.
        **kwargs: Additional arguments passed to AsyncDAVClient.__init__().

    Returns:
        AsyncDAVClient instance.

    Example:
        async with await get_davclient(url="...", username="...", password="...") as client:
            response = await client.propfind("", depth=Depth.ONE)
    """
    client = AsyncDAVClient(
        **connection_params(url, username, password, config_file, config_section, **kwargs)
    )

    # Probe connection if requested
    if probe:
        try:
            check_probe_response(client.url, await client.options())
        except error.DAVError:
            await client.close()
            raise

    return client
