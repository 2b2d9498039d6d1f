"""
WebDAV protocol operations combining request building and response parsing.

This class provides a high-level interface to WebDAV operations while
remaining completely I/O-free.
"""

import base64
import logging
from typing import Dict, Iterable, Mapping, Optional, Tuple, Union

from webdavclient.lib import error
from webdavclient.lib import url as urlhelper

from . import headers as h
from .types import (
    ActiveLock,
    DAVMethod,
    DAVRequest,
    DAVResponse,
    Depth,
    LockInfo,
    Multistatus,
    PropertyUpdate,
    PropFind,
    RequestBody,
    Timeout,
)
from .xml_builders import build_lockinfo_body, build_propfind_body, build_proppatch_body
from .xml_parsers import parse_lock_response, parse_multistatus

log = logging.getLogger(__name__)

XML_CONTENT_TYPE = "application/xml; charset=utf-8"

LockTokens = Union[str, Iterable[str], None]
Timeouts = Union[Timeout, Iterable[Timeout], None]


class WebDAVProtocol:
    """
    Sans-I/O WebDAV protocol handler.

    Builds requests and parses responses without doing any I/O.
    All HTTP communication is delegated to an external I/O implementation.

    Example:
        protocol = WebDAVProtocol(base_url="https://dav.example.com/webdav/")

        # Build request
        request = protocol.propfind_request("folder/", PropFind.named("displayname"), Depth.ONE)

        # Execute with your I/O (not shown)
        response = await io.execute(request)

        # Parse response
        multistatus = protocol.parse_multistatus(request, response)
    """

    def __init__(
        self,
        base_url: str = "",
        username: Optional[str] = None,
        password: Optional[str] = None,
        headers: Optional[Mapping[str, str]] = None,
        huge_tree: bool = False,
    ):
        """
        Initialize the protocol handler.

        Args:
            base_url: Base URL of the WebDAV tree, relative paths are resolved against it
            username: Username for Basic authentication
            password: Password for Basic authentication
            headers: Extra headers to send with every request
            huge_tree: Allow parsing very large XML documents
        """
        self.base_url = base_url or ""
        self.username = username
        self.password = password
        self.headers = dict(headers or {})
        self.huge_tree = huge_tree
        self._auth_header = self._build_auth_header(username, password)

    def _build_auth_header(
        self,
        username: Optional[str],
        password: Optional[str],
    ) -> Optional[str]:
        """Build Basic auth header if credentials provided."""
        if username and password:
            credentials = f"{username}:{password}"
            encoded = base64.b64encode(credentials.encode()).decode()
            return f"Basic {encoded}"
        return None

    def _base_headers(self) -> Dict[str, str]:
        """Return base headers for all requests."""
        headers = dict(self.headers)
        if self._auth_header:
            headers["Authorization"] = self._auth_header
        return headers

    def _xml_headers(self) -> Dict[str, str]:
        return {**self._base_headers(), "Content-Type": XML_CONTENT_TYPE}

    def resolve(self, path: str, is_folder: Optional[bool] = None) -> str:
        """
        Resolve a path to a full URL.

        Args:
            path: Relative path or absolute URL
            is_folder: force (True) or strip (False) the trailing slash

        Returns:
            Full URL
        """
        return urlhelper.resolve(self.base_url, path, is_folder=is_folder)

    def _with_if(self, headers: Dict[str, str], lock_tokens: LockTokens) -> Dict[str, str]:
        if lock_tokens:
            headers[h.IF] = h.encode_if(lock_tokens)
        return headers

    # =========================================================================
    # Request builders
    # =========================================================================

    def options_request(self, path: str = "") -> DAVRequest:
        return DAVRequest(DAVMethod.OPTIONS, self.resolve(path), self._base_headers())

    def get_request(self, path: str) -> DAVRequest:
        return DAVRequest(DAVMethod.GET, self.resolve(path), self._base_headers())

    def head_request(self, path: str) -> DAVRequest:
        return DAVRequest(DAVMethod.HEAD, self.resolve(path), self._base_headers())

    def put_request(
        self,
        path: str,
        body: RequestBody,
        content_type: Optional[str] = None,
        lock_tokens: LockTokens = None,
    ) -> DAVRequest:
        """
        Build a PUT request.  The body is sent as given, content_type
        defaults to application/octet-stream.
        """
        headers = self._base_headers()
        headers["Content-Type"] = content_type or "application/octet-stream"
        return DAVRequest(
            DAVMethod.PUT,
            self.resolve(path, is_folder=False),
            self._with_if(headers, lock_tokens),
            body,
        )

    def delete_request(self, path: str, lock_tokens: LockTokens = None) -> DAVRequest:
        return DAVRequest(
            DAVMethod.DELETE,
            self.resolve(path),
            self._with_if(self._base_headers(), lock_tokens),
        )

    def mkcol_request(self, path: str, lock_tokens: LockTokens = None) -> DAVRequest:
        return DAVRequest(
            DAVMethod.MKCOL,
            self.resolve(path, is_folder=True),
            self._with_if(self._base_headers(), lock_tokens),
        )

    def propfind_request(
        self,
        path: str,
        propfind: Union[PropFind, str, bytes, None] = None,
        depth: Optional[Depth] = None,
    ) -> DAVRequest:
        """
        Build a PROPFIND request.

        Args:
            path: Resource path or URL
            propfind: PropFind, or a ready made XML body.  Defaults to allprop.
            depth: Depth header value.  If None the header is left out,
                   which the server treats as infinity.

        Returns:
            DAVRequest ready for execution
        """
        if isinstance(propfind, str):
            body = propfind.encode("utf-8")
        elif isinstance(propfind, bytes):
            body = propfind
        else:
            body = build_propfind_body(propfind)
        headers = self._xml_headers()
        if depth is not None:
            headers[h.DEPTH] = h.encode_depth(depth)
        return DAVRequest(DAVMethod.PROPFIND, self.resolve(path), headers, body)

    def proppatch_request(
        self,
        path: str,
        update: Union[PropertyUpdate, str, bytes],
        lock_tokens: LockTokens = None,
    ) -> DAVRequest:
        """Build a PROPPATCH request from a PropertyUpdate (or a ready made XML body)"""
        if isinstance(update, str):
            body = update.encode("utf-8")
        elif isinstance(update, bytes):
            body = update
        else:
            body = build_proppatch_body(update)
        return DAVRequest(
            DAVMethod.PROPPATCH,
            self.resolve(path),
            self._with_if(self._xml_headers(), lock_tokens),
            body,
        )

    def _copy_or_move(
        self,
        destination: str,
        overwrite: Optional[bool],
        lock_tokens: LockTokens,
    ) -> Dict[str, str]:
        headers = self._base_headers()
        headers[h.DESTINATION] = h.encode_destination(self.resolve(destination))
        if overwrite is not None:
            headers[h.OVERWRITE] = h.encode_overwrite(overwrite)
        return self._with_if(headers, lock_tokens)

    def copy_request(
        self,
        path: str,
        destination: str,
        depth: Optional[Depth] = Depth.INFINITY,
        overwrite: Optional[bool] = None,
        lock_tokens: LockTokens = None,
    ) -> DAVRequest:
        headers = self._copy_or_move(destination, overwrite, lock_tokens)
        if depth is not None:
            headers[h.DEPTH] = h.encode_depth(depth)
        return DAVRequest(DAVMethod.COPY, self.resolve(path), headers)

    def move_request(
        self,
        path: str,
        destination: str,
        overwrite: Optional[bool] = None,
        lock_tokens: LockTokens = None,
    ) -> DAVRequest:
        headers = self._copy_or_move(destination, overwrite, lock_tokens)
        return DAVRequest(DAVMethod.MOVE, self.resolve(path), headers)

    def lock_request(
        self,
        path: str,
        lockinfo: Optional[LockInfo] = None,
        timeout: Timeouts = None,
        depth: Depth = Depth.INFINITY,
    ) -> DAVRequest:
        """
        Build a LOCK request creating a new lock.  Depth.ONE is refused
        with HeaderFormatError.
        """
        headers = self._xml_headers()
        headers[h.DEPTH] = h.encode_lock_depth(depth)
        if timeout is not None:
            headers[h.TIMEOUT] = h.encode_timeout(_timeout_list(timeout))
        body = build_lockinfo_body(lockinfo or LockInfo())
        return DAVRequest(DAVMethod.LOCK, self.resolve(path), headers, body)

    def refresh_lock_request(
        self,
        path: str,
        lock_token: Optional[str],
        timeout: Timeouts = None,
    ) -> DAVRequest:
        """
        Build a LOCK request refreshing an existing lock: no body, the
        lock token in the If header.  Without a lock token the If header
        is left out, and it's up to the server to refuse the request.
        """
        headers = self._base_headers()
        if timeout is not None:
            headers[h.TIMEOUT] = h.encode_timeout(_timeout_list(timeout))
        if lock_token:
            headers[h.IF] = h.encode_if(lock_token)
        return DAVRequest(DAVMethod.LOCK, self.resolve(path), headers)

    def unlock_request(self, path: str, lock_token: Optional[str]) -> DAVRequest:
        """
        Build an UNLOCK request.  Without a lock token the Lock-Token
        header is left out, and it's up to the server to refuse the
        request.
        """
        headers = self._base_headers()
        if lock_token:
            headers[h.LOCK_TOKEN] = h.encode_lock_token(lock_token)
        return DAVRequest(DAVMethod.UNLOCK, self.resolve(path), headers)

    # =========================================================================
    # Response handling
    # =========================================================================

    def check_response(self, request: DAVRequest, response: DAVResponse) -> DAVResponse:
        """
        Raise the ProtocolError subclass matching the status if the
        response is not a success.  If the server sent a multistatus
        along with the error (i.e. a 423 or 424), it is parsed and
        attached to the exception.
        """
        if response.ok:
            return response
        multistatus = None
        if response.body and _is_xml(response):
            try:
                multistatus = parse_multistatus(response.body, huge_tree=self.huge_tree)
            except error.ParseError:
                log.debug("error response with unparseable body", exc_info=True)
        raise error.exception_by_status[response.status](
            url=request.url,
            reason=response.reason,
            method=request.method.value,
            status=response.status,
            multistatus=multistatus,
        )

    def parse_multistatus(
        self, request: DAVRequest, response: DAVResponse
    ) -> Optional[Multistatus]:
        """
        Parse the body of a successful PROPFIND or PROPPATCH, or the 207
        of a COPY, MOVE or DELETE.  Returns None if the server sent no
        body at all (i.e. 204 No Content).
        """
        if not response.body or not response.body.strip():
            if response.is_multistatus:
                raise error.ParseError(url=request.url, reason="207 response without body")
            return None
        try:
            return parse_multistatus(response.body, huge_tree=self.huge_tree)
        except error.ParseError as err:
            err.url = request.url
            raise

    def parse_lock(
        self, request: DAVRequest, response: DAVResponse
    ) -> Tuple[Optional[str], Optional[ActiveLock]]:
        """
        Find the lock token and the active lock description of a
        successful LOCK response.  A new lock has the token in the
        Lock-Token header, a refreshed lock only in the body.  The lock
        exists on the server by now, so a malformed Lock-Token header is
        logged and the token taken from the body instead.
        """
        token = None
        raw_token = response.headers.get(h.LOCK_TOKEN)
        if raw_token:
            try:
                token = h.decode_lock_token(raw_token)
            except error.HeaderFormatError:
                error.weirdness("malformed Lock-Token header", raw_token)
        active_lock = None
        if response.body and response.body.strip():
            try:
                active_lock = parse_lock_response(
                    response.body, lock_token=token, huge_tree=self.huge_tree
                )
            except error.ParseError as err:
                err.url = request.url
                raise
            if token is None:
                token = active_lock.token
        if token is None and raw_token and raw_token.strip():
            token = raw_token.strip().strip("<>").strip()
        return (token, active_lock)


def _timeout_list(timeout: Timeouts):
    if isinstance(timeout, Timeout):
        return [timeout]
    return list(timeout)


def _is_xml(response: DAVResponse) -> bool:
    content_type = response.headers.get("Content-Type", "")
    return not content_type or "xml" in content_type
