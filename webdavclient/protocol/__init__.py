"""
Sans-I/O WebDAV protocol implementation.

This module provides protocol-level operations without any I/O.
It builds requests and parses responses as pure data transformations.

The protocol layer is organized into:
- types: Core data structures (DAVRequest, DAVResponse, the WebDAV data model)
- headers: Encoding and decoding of Depth, Timeout, Destination, Overwrite,
  If and Lock-Token
- xml_builders: Pure functions to build XML request bodies
- xml_parsers: Pure functions to parse XML response bodies
- operations: High-level WebDAVProtocol class combining builders and parsers

Example usage:

    from webdavclient.protocol import WebDAVProtocol, Depth, PropFind

    protocol = WebDAVProtocol(base_url="https://dav.example.com/webdav/")

    # Build a request (no I/O)
    request = protocol.propfind_request(
        "documents/", PropFind.named("displayname", "getetag"), Depth.ONE
    )

    # Execute via your preferred I/O (sync, async, or mock)
    response = your_http_client.execute(request)

    # Parse response (no I/O)
    result = protocol.parse_multistatus(request, response)
"""

from .types import (
    # Enums
    DAVMethod,
    Depth,
    LockScope,
    LockType,
    PropFindMode,
    # Request/Response
    DAVRequest,
    DAVResponse,
    # Data model
    ActiveLock,
    LockEntry,
    LockInfo,
    Multistatus,
    Progress,
    Prop,
    PropertyUpdate,
    PropFind,
    PropStat,
    RawProp,
    Response,
    Status,
    Timeout,
)
from .xml_builders import (
    build_lockinfo_body,
    build_propfind_body,
    build_proppatch_body,
)
from .xml_parsers import (
    parse_lock_response,
    parse_multistatus,
    parse_status,
)
from .operations import WebDAVProtocol

__all__ = [
    # Enums
    "DAVMethod",
    "Depth",
    "LockScope",
    "LockType",
    "PropFindMode",
    # Request/Response
    "DAVRequest",
    "DAVResponse",
    # Data model
    "ActiveLock",
    "LockEntry",
    "LockInfo",
    "Multistatus",
    "Progress",
    "Prop",
    "PropertyUpdate",
    "PropFind",
    "PropStat",
    "RawProp",
    "Response",
    "Status",
    "Timeout",
    # XML Builders
    "build_lockinfo_body",
    "build_propfind_body",
    "build_proppatch_body",
    # XML Parsers
    "parse_lock_response",
    "parse_multistatus",
    "parse_status",
    # Protocol
    "WebDAVProtocol",
]
