#!/usr/bin/env python
"""
URL helpers.  All methods of the client accept either a fully
qualified URL ("http://example.com/webdav/folder/") or a path that
is resolved against the base URL the client was created with.
"""
from typing import Optional
from urllib.parse import quote
from urllib.parse import SplitResult
from urllib.parse import unquote
from urllib.parse import urlsplit
from urllib.parse import urlunsplit

from webdavclient.lib.error import UriError

## RFC 3986 pchar minus the percent sign, plus "/" as segment separator.
## Anything else in a relative path is percent-encoded.
_SAFE = "/:@!$&'()*+,;=-._~"


def _split_base(base: str) -> SplitResult:
    try:
        parsed = urlsplit(str(base))
    except ValueError as err:
        raise UriError(url=str(base), reason=str(err)) from err
    if not parsed.scheme or not parsed.netloc:
        raise UriError(url=str(base), reason="base URI must be absolute")
    return parsed


def quote_path(path: str) -> str:
    """
    Percent-encode a path.  Already encoded input is decoded first,
    so quote_path(quote_path(x)) == quote_path(x).
    """
    return quote(unquote(path), safe=_SAFE)


def is_absolute(url: str) -> bool:
    parsed = urlsplit(str(url))
    return bool(parsed.scheme and parsed.netloc)


def combine(base: str, relative: str, is_folder: bool = False) -> str:
    """
    Join a base URI with a relative segment.

    There is always exactly one slash between base and relative, no
    matter how many slashes any of them carries.  If is_folder is set,
    the result ends with exactly one slash, otherwise it has none.
    Reserved characters in relative are percent-encoded, already
    encoded sequences are left alone.

    combine("http://host/webdav", "TestFolder", True) and
    combine("http://host/webdav/", "/TestFolder", True) both give
    "http://host/webdav/TestFolder/".
    """
    parsed = _split_base(base)
    path = parsed.path.rstrip("/")
    segment = quote_path(str(relative or "").strip("/"))
    if segment:
        path = "%s/%s" % (path, segment)
    if is_folder:
        path += "/"
    elif not path:
        ## the root of a host is always a folder
        path = "/"
    return urlunsplit(
        (parsed.scheme, parsed.netloc, path, parsed.query, parsed.fragment)
    )


def ensure_trailing_slash(url: str) -> str:
    return url if url.endswith("/") else url + "/"


def strip_trailing_slash(url: str) -> str:
    parsed = _split_base(url)
    if parsed.path in ("", "/"):
        return url
    return url.rstrip("/")


def resolve(base: Optional[str], target: str, is_folder: Optional[bool] = None) -> str:
    """
    Resolve target against base.

    A fully qualified target is returned as is.  A path starting with
    a slash replaces the path of base, other paths are appended to it.
    If is_folder is None, the trailing slash of target is kept as
    given.
    """
    target = str(target or "")
    if is_absolute(target):
        result = target
    elif not base:
        raise UriError(url=target, reason="relative URL given and no base URL configured")
    else:
        parsed = _split_base(base)
        if target.startswith("/"):
            root = urlunsplit((parsed.scheme, parsed.netloc, "", "", ""))
            result = combine(root, target, is_folder=bool(is_folder))
        else:
            result = combine(base, target, is_folder=bool(is_folder))
        if is_folder is None:
            result = strip_trailing_slash(result)
            if target.endswith("/") or (not target.strip("/") and base.endswith("/")):
                result = ensure_trailing_slash(result)
        return result
    if is_folder is True:
        return ensure_trailing_slash(result)
    if is_folder is False:
        return strip_trailing_slash(result)
    return result
