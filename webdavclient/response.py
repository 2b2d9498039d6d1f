"""
Result of a WebDAV verb call.

This module holds the response wrapper shared by the verb methods of
the client, the LockManager and the TransferEngine.
"""

import logging
from typing import Mapping, Optional

from webdavclient.protocol.types import ActiveLock, DAVRequest, DAVResponse, Multistatus

log = logging.getLogger(__name__)


class WebDAVResponse:
    """
    Response from a successful WebDAV request.

    The status and headers are the server's, content is the body as
    received (empty for streamed downloads).  The structured results
    are filled in by the verbs that have them: multistatus for PROPFIND
    and PROPPATCH, lock_token and active_lock for LOCK.
    """

    reason: str = ""
    status: int = 0
    headers: Mapping[str, str] = None
    content: bytes = b""
    multistatus: Optional[Multistatus] = None
    lock_token: Optional[str] = None
    active_lock: Optional[ActiveLock] = None

    def __init__(
        self,
        request: DAVRequest,
        response: DAVResponse,
        multistatus: Optional[Multistatus] = None,
        lock_token: Optional[str] = None,
        active_lock: Optional[ActiveLock] = None,
    ) -> None:
        self.url = request.url
        self.method = request.method.value
        self.status = response.status
        self.reason = response.reason
        self.headers = response.headers
        self.content = response.body
        self.multistatus = multistatus
        self.lock_token = lock_token
        self.active_lock = active_lock

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def text(self) -> str:
        charset = "utf-8"
        content_type = self.headers.get("Content-Type", "")
        for param in content_type.split(";")[1:]:
            key, _, value = param.strip().partition("=")
            if key.lower() == "charset" and value:
                charset = value.strip('"')
        return self.content.decode(charset, errors="replace")

    def __repr__(self) -> str:
        return "<WebDAVResponse %s %s: %i %s>" % (self.method, self.url, self.status, self.reason)
