"""
Encoding and decoding of the WebDAV specific request/response headers
(RFC 4918, section 10).

Pure text functions: no I/O, no XML.  Every encode_* function raises
HeaderFormatError on a value it can't put on the wire, every decode_*
function raises HeaderFormatError on a header it can't understand.
"""
import re
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional, Sequence, Union
from urllib.parse import urlsplit

from webdavclient.lib.error import HeaderFormatError

from .types import MAX_TIMEOUT_SECONDS, Depth, Timeout

DEPTH = "Depth"
DESTINATION = "Destination"
IF = "If"
LOCK_TOKEN = "Lock-Token"
OVERWRITE = "Overwrite"
TIMEOUT = "Timeout"

OPAQUE_LOCK_TOKEN_SCHEME = "opaquelocktoken:"

_DEPTH_BY_TOKEN: Mapping[str, Depth] = MappingProxyType({d.value: d for d in Depth})
_OVERWRITE_BY_TOKEN: Mapping[str, bool] = MappingProxyType({"T": True, "F": False})

_TIMEOUT_RE = re.compile(r"^second-(\d+)$", re.IGNORECASE)
_INFINITE = "Infinite"
_IF_LIST_RE = re.compile(r"\(\s*<([^>]*)>\s*\)")
_URI_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*:")


## Depth


def encode_depth(depth: Depth) -> str:
    if not isinstance(depth, Depth):
        raise HeaderFormatError(reason="not a Depth value: %r" % (depth,))
    return depth.value


def decode_depth(value: str) -> Depth:
    try:
        return _DEPTH_BY_TOKEN[value.strip()]
    except (KeyError, AttributeError):
        raise HeaderFormatError(reason="invalid Depth header: %r" % (value,)) from None


def encode_lock_depth(depth: Depth) -> str:
    """
    Depth of a LOCK request.  RFC 4918 section 9.10.3 only allows 0 and
    infinity, Depth.ONE is refused before anything is sent.
    """
    if depth == Depth.ONE:
        raise HeaderFormatError(reason="LOCK accepts only depth 0 or infinity")
    return encode_depth(depth)


## Timeout


def _encode_one_timeout(timeout: Timeout) -> str:
    if not isinstance(timeout, Timeout):
        raise HeaderFormatError(reason="not a Timeout value: %r" % (timeout,))
    if timeout.is_infinite:
        return _INFINITE
    seconds = timeout.seconds
    if (
        isinstance(seconds, bool)
        or not isinstance(seconds, int)
        or not 0 < seconds <= MAX_TIMEOUT_SECONDS
    ):
        raise HeaderFormatError(
            reason="timeout must be between 1 and %i seconds, got %r"
            % (MAX_TIMEOUT_SECONDS, seconds)
        )
    return "Second-%i" % seconds


def encode_timeout(timeouts: Union[Timeout, Sequence[Timeout]]) -> str:
    """
    Encode one timeout or a list of acceptable timeouts, the preferred
    one first, i.e. "Infinite, Second-4100000000".
    """
    if isinstance(timeouts, Timeout):
        timeouts = [timeouts]
    if not timeouts:
        raise HeaderFormatError(reason="empty Timeout list")
    return ", ".join(_encode_one_timeout(t) for t in timeouts)


def decode_timeout_value(value: str) -> Timeout:
    token = value.strip()
    if token.lower() == _INFINITE.lower():
        return Timeout.infinite()
    match = _TIMEOUT_RE.match(token)
    if not match:
        raise HeaderFormatError(reason="invalid Timeout value: %r" % (value,))
    seconds = int(match.group(1))
    if not 0 < seconds <= MAX_TIMEOUT_SECONDS:
        raise HeaderFormatError(reason="Timeout out of range: %r" % (value,))
    return Timeout.of(seconds)


def decode_timeout(value: str) -> List[Timeout]:
    if not value or not value.strip():
        raise HeaderFormatError(reason="empty Timeout header")
    return [decode_timeout_value(token) for token in value.split(",")]


## Destination / Overwrite


def encode_destination(url: str) -> str:
    """The Destination header of COPY and MOVE carries an absolute URI."""
    try:
        parsed = urlsplit(str(url))
    except ValueError as err:
        raise HeaderFormatError(url=str(url), reason=str(err)) from err
    if not parsed.scheme or not parsed.netloc:
        raise HeaderFormatError(url=str(url), reason="Destination must be an absolute URI")
    return str(url)


def decode_destination(value: str) -> str:
    return encode_destination(value.strip())


def encode_overwrite(overwrite: bool) -> str:
    if not isinstance(overwrite, bool):
        raise HeaderFormatError(reason="Overwrite must be a bool, got %r" % (overwrite,))
    return "T" if overwrite else "F"


def decode_overwrite(value: str) -> bool:
    try:
        return _OVERWRITE_BY_TOKEN[value.strip()]
    except (KeyError, AttributeError):
        raise HeaderFormatError(reason="invalid Overwrite header: %r" % (value,)) from None


## Lock tokens


def lock_token_uri(token: str) -> str:
    """
    Normalize a lock token into URI form.  Angle brackets are stripped,
    and a bare token without URI scheme gets the opaquelocktoken scheme.
    """
    if not isinstance(token, str):
        raise HeaderFormatError(reason="lock token must be a string, got %r" % (token,))
    token = token.strip()
    if token.startswith("<") and token.endswith(">"):
        token = token[1:-1].strip()
    if not token:
        raise HeaderFormatError(reason="empty lock token")
    if not _URI_SCHEME_RE.match(token):
        token = OPAQUE_LOCK_TOKEN_SCHEME + token
    return token


def encode_lock_token(token: str) -> str:
    """Lock-Token header of an UNLOCK request: a Coded-URL, <token>"""
    return "<%s>" % lock_token_uri(token)


def decode_lock_token(value: Optional[str]) -> str:
    """Lock-Token header of a LOCK response"""
    if value is None or not value.strip():
        raise HeaderFormatError(reason="empty Lock-Token header")
    value = value.strip()
    if not (value.startswith("<") and value.endswith(">")) or len(value) < 3:
        raise HeaderFormatError(reason="Lock-Token must be a Coded-URL: %r" % (value,))
    return value[1:-1].strip()


def encode_if(tokens: Union[str, Iterable[str]]) -> str:
    """
    An untagged If header with one list per lock token:
    (<opaquelocktoken:a>) (<opaquelocktoken:b>)
    """
    if isinstance(tokens, str):
        tokens = [tokens]
    lists = ["(<%s>)" % lock_token_uri(t) for t in tokens]
    if not lists:
        raise HeaderFormatError(reason="an If header needs at least one lock token")
    return " ".join(lists)


def decode_if(value: str) -> List[str]:
    """Return the lock tokens of an untagged If header, in order"""
    tokens = _IF_LIST_RE.findall(value or "")
    if not tokens or any(not t.strip() for t in tokens):
        raise HeaderFormatError(reason="invalid If header: %r" % (value,))
    return [t.strip() for t in tokens]
