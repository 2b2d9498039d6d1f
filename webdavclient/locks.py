"""
LOCK, lock refresh and UNLOCK.

The LockManager keeps no state: a lock token is returned to the caller,
and the caller hands it back for refresh and release.  Forgetting to
release a lock leaves it on the server until it times out.
"""

import logging
from typing import Awaitable, Callable, Optional

from webdavclient.protocol.operations import Timeouts, WebDAVProtocol
from webdavclient.protocol.types import DAVRequest, DAVResponse, Depth, LockInfo
from webdavclient.response import WebDAVResponse

log = logging.getLogger(__name__)

Sender = Callable[[DAVRequest], Awaitable[DAVResponse]]


class LockManager:
    """
    Issues the locking requests through send, a coroutine function
    executing a request and raising RequestError on failure.
    """

    def __init__(self, protocol: WebDAVProtocol, send: Sender) -> None:
        self.protocol = protocol
        self.send = send

    async def _lock(self, request: DAVRequest) -> WebDAVResponse:
        response = await self.send(request)
        token, active_lock = self.protocol.parse_lock(request, response)
        log.debug("lock on %s: token %s", request.url, token)
        return WebDAVResponse(request, response, lock_token=token, active_lock=active_lock)

    async def acquire(
        self,
        url: str,
        timeout: Timeouts = None,
        depth: Depth = Depth.INFINITY,
        lockinfo: Optional[LockInfo] = None,
    ) -> WebDAVResponse:
        """
        Lock a resource.  The lock token is in the lock_token attribute
        of the result, the lock as described by the server in
        active_lock.

        Raises HeaderFormatError without sending anything if depth is
        Depth.ONE or a timeout is out of range.
        """
        request = self.protocol.lock_request(url, lockinfo, timeout=timeout, depth=depth)
        return await self._lock(request)

    async def refresh(
        self, url: str, timeout: Timeouts = None, lock_token: Optional[str] = None
    ) -> WebDAVResponse:
        """
        Refresh a lock.  A missing lock token is not checked for, the
        request goes out without an If header and the server decides.
        """
        request = self.protocol.refresh_lock_request(url, lock_token, timeout=timeout)
        return await self._lock(request)

    async def release(self, url: str, lock_token: Optional[str] = None) -> WebDAVResponse:
        request = self.protocol.unlock_request(url, lock_token)
        return WebDAVResponse(request, await self.send(request))
