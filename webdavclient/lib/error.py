#!/usr/bin/env python
import logging
import os
from collections import defaultdict
from typing import Any
from typing import Dict
from typing import Optional
from typing import Type

from webdavclient import __version__

## Environmental variables prepended with "PYTHON_WEBDAV" are used for debug purposes,
## environmental variables prepended with "WEBDAV_" are for connection parameters
debug_dump_communication = os.environ.get("PYTHON_WEBDAV_COMMDUMP", False)
## one of DEBUG_PDB, DEBUG, DEVELOPMENT, PRODUCTION
debugmode = os.environ.get("PYTHON_WEBDAV_DEBUGMODE")
if not debugmode:
    if "dev" in __version__ or __version__ == "(unknown)":
        debugmode = "DEVELOPMENT"
    else:
        debugmode = "PRODUCTION"

log = logging.getLogger("webdavclient")
if debugmode.startswith("DEBUG"):
    log.setLevel(logging.DEBUG)
else:
    log.setLevel(logging.WARNING)


def weirdness(*reasons):
    from webdavclient.lib.debug import xmlstring

    reason = " : ".join([xmlstring(x) for x in reasons])
    log.warning(f"Deviation from expectations found: {reason}")
    if debugmode == "DEBUG_PDB":
        log.error(f"Dropping into debugger due to {reason}")
        import pdb

        pdb.set_trace()


class DAVError(Exception):
    url: Optional[str] = None
    reason: str = "no reason"

    def __init__(self, url: Optional[str] = None, reason: Optional[str] = None) -> None:
        super().__init__(reason or self.reason)
        if url:
            self.url = url
        if reason:
            self.reason = reason

    def __str__(self) -> str:
        return "%s at '%s', reason %s" % (
            self.__class__.__name__,
            self.url,
            self.reason,
        )


class UriError(DAVError, ValueError):
    """
    A base URI could not be parsed into scheme, host and path.
    """

    pass


class HeaderFormatError(DAVError, ValueError):
    """
    A header value could not be encoded or decoded.  Encoding errors
    are raised before any request hits the network.
    """

    pass


class ParseError(DAVError):
    """
    A response body that should have been structured XML was not
    well-formed, or lacked an element the protocol requires.
    """

    pass


class RequestError(DAVError):
    """
    A WebDAV request failed.  This is the one exception kind a verb
    call raises for both transport failures and negative server
    answers.

    The status property holds the HTTP status code (None if the server
    never answered), multistatus the parsed 207-style body if the
    server delivered one, and the original exception (if any) is
    chained as __cause__.
    """

    method: Optional[str] = None
    status: Optional[int] = None
    multistatus: Any = None

    def __init__(
        self,
        url: Optional[str] = None,
        reason: Optional[str] = None,
        method: Optional[str] = None,
        status: Optional[int] = None,
        multistatus: Any = None,
    ) -> None:
        super().__init__(url=url, reason=reason)
        self.method = method
        self.status = status
        self.multistatus = multistatus

    def __str__(self) -> str:
        return "%s at '%s' (%s, status %s), reason %s" % (
            self.__class__.__name__,
            self.url,
            self.method,
            self.status,
            self.reason,
        )


class TransportError(RequestError):
    """
    The request could not be delivered, or no status line came back
    (connection refused, TLS failure, timeout ...).
    """

    pass


class ProtocolError(RequestError):
    """
    The server answered with a status outside 2xx.
    """

    pass


class AuthorizationError(ProtocolError):
    """
    The client encountered an HTTP 401 or 403 error and is passing it on
    to the user. The url property will contain the url in question,
    the reason property will contain the excuse the server sent.
    """

    pass


class NotFoundError(ProtocolError):
    pass


class PreconditionFailedError(ProtocolError):
    pass


class LockedError(ProtocolError):
    pass


exception_by_status: Dict[int, Type[ProtocolError]] = defaultdict(lambda: ProtocolError)
exception_by_status.update(
    {
        401: AuthorizationError,
        403: AuthorizationError,
        404: NotFoundError,
        412: PreconditionFailedError,
        423: LockedError,
    }
)
