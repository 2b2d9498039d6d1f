#!/usr/bin/env python
"""
Sync DAVClient - thin wrapper around AsyncDAVClient using anyio.

Every method runs the coroutine of the same name on an event loop
living in a blocking portal thread.  The portal lives as long as the
client, so the HTTP session and its connections are reused between
calls.
"""
import sys
from typing import Any, Mapping, Optional, Union

from anyio.from_thread import start_blocking_portal

from webdavclient.async_davclient import AsyncDAVClient
from webdavclient.async_davclient import check_probe_response
from webdavclient.async_davclient import connection_params
from webdavclient.lib import error
from webdavclient.io.base import AsyncIOProtocol
from webdavclient.protocol.operations import LockTokens, Timeouts
from webdavclient.protocol.types import Depth, LockInfo, PropertyUpdate, PropFind
from webdavclient.response import WebDAVResponse
from webdavclient.transfer import (
    DEFAULT_CHUNK_SIZE,
    CancellationToken,
    ProgressCallback,
    TransferResult,
    UploadSource,
)

if sys.version_info < (3, 11):
    from typing_extensions import Self
else:
    from typing import Self

__all__ = ["DAVClient", "WebDAVResponse", "get_davclient"]


class DAVClient:
    """
    Synchronous WebDAV client - thin wrapper around AsyncDAVClient.

    Takes the same arguments and has the same methods as
    AsyncDAVClient, only blocking.  Close it (or use it as a context
    manager) to stop the portal thread.
    """

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
        self._async = AsyncDAVClient(
            url=url,
            username=username,
            password=password,
            timeout=timeout,
            ssl_verify_cert=ssl_verify_cert,
            headers=headers,
            huge_tree=huge_tree,
            chunk_size=chunk_size,
            io=io,
        )
        self._portal_cm = start_blocking_portal()
        self._portal = self._portal_cm.__enter__()

    @property
    def url(self) -> str:
        return self._async.url

    @property
    def protocol(self):
        return self._async.protocol

    def _run_sync(self, async_fn, *args, **kwargs):
        """Execute an async function on the portal's event loop."""
        if self._portal is None:
            raise RuntimeError("the client is closed")

        async def _wrapper():
            return await async_fn(*args, **kwargs)

        return self._portal.call(_wrapper)

    def __enter__(self) -> Self:
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        """Context manager exit."""
        self.close()

    def close(self) -> None:
        """Close the transport and stop the portal thread."""
        if self._portal is None:
            return
        try:
            self._run_sync(self._async.close)
        finally:
            self._portal = None
            self._portal_cm.__exit__(None, None, None)

    def options(self, url: str = "") -> WebDAVResponse:
        return self._run_sync(self._async.options, url)

    def get(self, url: str) -> WebDAVResponse:
        return self._run_sync(self._async.get, url)

    def head(self, url: str) -> WebDAVResponse:
        return self._run_sync(self._async.head, url)

    def put(
        self,
        url: str,
        body: Union[bytes, str] = b"",
        content_type: Optional[str] = None,
        lock_tokens: LockTokens = None,
    ) -> WebDAVResponse:
        return self._run_sync(self._async.put, url, body, content_type, lock_tokens=lock_tokens)

    def delete(self, url: str, lock_tokens: LockTokens = None) -> WebDAVResponse:
        return self._run_sync(self._async.delete, url, lock_tokens=lock_tokens)

    def mkcol(self, url: str, lock_tokens: LockTokens = None) -> WebDAVResponse:
        return self._run_sync(self._async.mkcol, url, lock_tokens=lock_tokens)

    def propfind(
        self,
        url: str = "",
        propfind: Union[PropFind, str, bytes, None] = None,
        depth: Optional[Depth] = None,
    ) -> WebDAVResponse:
        return self._run_sync(self._async.propfind, url, propfind, depth)

    def proppatch(
        self,
        url: str,
        update: Union[PropertyUpdate, str, bytes],
        lock_tokens: LockTokens = None,
    ) -> WebDAVResponse:
        return self._run_sync(self._async.proppatch, url, update, lock_tokens=lock_tokens)

    def copy(
        self,
        url: str,
        destination: str,
        depth: Optional[Depth] = Depth.INFINITY,
        overwrite: Optional[bool] = None,
        lock_tokens: LockTokens = None,
    ) -> WebDAVResponse:
        return self._run_sync(
            self._async.copy,
            url,
            destination,
            depth=depth,
            overwrite=overwrite,
            lock_tokens=lock_tokens,
        )

    def move(
        self,
        url: str,
        destination: str,
        overwrite: Optional[bool] = None,
        lock_tokens: LockTokens = None,
    ) -> WebDAVResponse:
        return self._run_sync(
            self._async.move, url, destination, overwrite=overwrite, lock_tokens=lock_tokens
        )

    def lock(
        self,
        url: str,
        lockinfo: Optional[LockInfo] = None,
        timeout: Timeouts = None,
        depth: Depth = Depth.INFINITY,
    ) -> WebDAVResponse:
        return self._run_sync(self._async.lock, url, lockinfo, timeout=timeout, depth=depth)

    def refresh_lock(
        self, url: str, lock_token: Optional[str], timeout: Timeouts = None
    ) -> WebDAVResponse:
        return self._run_sync(self._async.refresh_lock, url, lock_token, timeout=timeout)

    def unlock(self, url: str, lock_token: Optional[str]) -> WebDAVResponse:
        return self._run_sync(self._async.unlock, url, lock_token)

    def download(
        self,
        url: str,
        sink: Any,
        cancellation: Optional[CancellationToken] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> TransferResult:
        """
        Stream a resource into sink.  sink.write and progress are
        called from the portal thread.
        """
        return self._run_sync(
            self._async.download, url, sink, cancellation=cancellation, progress=progress
        )

    def upload(
        self,
        url: str,
        source: UploadSource,
        content_type: Optional[str] = None,
        cancellation: Optional[CancellationToken] = None,
        progress: Optional[ProgressCallback] = None,
        lock_tokens: LockTokens = None,
    ) -> TransferResult:
        return self._run_sync(
            self._async.upload,
            url,
            source,
            content_type,
            cancellation=cancellation,
            progress=progress,
            lock_tokens=lock_tokens,
        )


def get_davclient(
    url: Optional[str] = None,
    username: Optional[str] = None,
    password: Optional[str] = None,
    probe: bool = True,
    config_file: Optional[str] = None,
    config_section: str = "default",
    **kwargs: Any,
) -> DAVClient:
    """
    Get a sync DAV client instance.  Parameters as for
    webdavclient.async_davclient.get_davclient().
    """
    client = DAVClient(
        **connection_params(url, username, password, config_file, config_section, **kwargs)
    )

    # Probe connection if requested
    if probe:
        try:
            check_probe_response(client.url, client.options())
        except error.DAVError:
            client.close()
            raise

    return client
