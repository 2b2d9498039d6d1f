"""
I/O layer for the WebDAV protocol.

This module provides the transport that executes DAVRequest objects and
returns DAVResponse objects, either buffered (execute) or streamed
(stream).

The I/O layer is intentionally thin - it only handles HTTP transport.
All protocol logic (headers, XML building/parsing) is in
webdavclient.protocol.

Example:
    from webdavclient.protocol import WebDAVProtocol
    from webdavclient.io import AsyncIO

    protocol = WebDAVProtocol(base_url="https://dav.example.com/webdav/")
    async with AsyncIO() as io:
        request = protocol.propfind_request("folder/")
        response = await io.execute(request)
        multistatus = protocol.parse_multistatus(request, response)
"""

from .base import AsyncIOProtocol, StreamResponse
from .async_ import AsyncIO

__all__ = [
    # Protocols
    "AsyncIOProtocol",
    "StreamResponse",
    # Implementations
    "AsyncIO",
]
