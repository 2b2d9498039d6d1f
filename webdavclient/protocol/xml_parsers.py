"""
Pure functions for parsing WebDAV XML responses.

All functions in this module are pure - they take XML bytes in and return
structured data out, with no side effects or I/O.  Anything that does not
have the shape required by RFC 4918 raises ParseError; a partially parsed
structure is never returned.  A property value in an unexpected format
is not a shape error, it is kept as it was sent.
"""

import copy
import logging
import re
from typing import Any, Callable, Dict, List, Optional

from dateutil import parser as dateparser
from lxml import etree
from lxml.etree import _Element

from webdavclient.elements import dav
from webdavclient.lib import error
from webdavclient.lib.namespace import split_tag

from .headers import decode_timeout_value
from .types import (
    PROPERTY_NAMES,
    ActiveLock,
    Depth,
    LockEntry,
    LockScope,
    LockType,
    Multistatus,
    Prop,
    PropStat,
    Response,
    Status,
)

log = logging.getLogger(__name__)

_STATUS_RE = re.compile(r"^\s*\S+\s+(\d{3})(?:\s+(.*?))?\s*$")


def parse_xml(body: bytes, huge_tree: bool = False) -> _Element:
    """
    Parse a response body into an lxml tree.  Entities are not
    resolved and nothing is fetched from the network.
    """
    if not body or not body.strip():
        raise error.ParseError(reason="empty body where XML was expected")
    parser = etree.XMLParser(
        huge_tree=huge_tree, resolve_entities=False, no_network=True
    )
    try:
        tree = etree.fromstring(body, parser)
    except (etree.XMLSyntaxError, ValueError) as err:
        raise error.ParseError(reason="invalid XML: %s" % err) from err
    if tree is None:
        raise error.ParseError(reason="no XML document found")
    return tree


def parse_multistatus(body: bytes, huge_tree: bool = False) -> Multistatus:
    """
    Parse a 207 Multi-Status response body.

    Args:
        body: Raw XML response bytes
        huge_tree: Allow parsing very large XML documents

    Returns:
        Multistatus with one Response per DAV:response, in document order

    Raises:
        ParseError: on malformed XML or a missing required element
    """
    tree = parse_xml(body, huge_tree=huge_tree)
    if tree.tag != dav.MultiStatus.tag:
        raise error.ParseError(reason="expected DAV:multistatus, got %s" % tree.tag)

    multistatus = Multistatus()
    for elem in _elements(tree):
        if elem.tag == dav.Response.tag:
            multistatus.responses.append(_parse_response(elem))
        elif elem.tag == dav.ResponseDescription.tag:
            multistatus.description = elem.text
        else:
            error.weirdness("unexpected element found in multistatus", elem)
    if not multistatus.responses:
        raise error.ParseError(reason="DAV:multistatus without any DAV:response")
    return multistatus


def parse_status(text: Optional[str]) -> Status:
    """
    Parse a status line like "HTTP/1.1 404 Not Found".  Only the
    three digit code counts, whatever reason phrase the server sends.
    """
    match = _STATUS_RE.match(text or "")
    if not match:
        raise error.ParseError(reason="invalid status line: %r" % (text,))
    return Status(
        code=int(match.group(1)), reason=match.group(2) or "", raw=text.strip()
    )


def parse_prop(prop: _Element) -> Prop:
    """
    Read a DAV:prop element into a Prop bag.  Properties unknown to the
    library, and well known properties with a value that can't be
    converted, are kept verbatim in the extensions.
    """
    ret = Prop()
    for child in _elements(prop):
        attr = PROPERTY_NAMES.get(child.tag)
        empty = len(child) == 0 and not (child.text and child.text.strip())
        if attr is None:
            _keep_raw(ret, child)
            continue
        if empty:
            ret.mark_empty(child.tag)
            continue
        try:
            setattr(ret, attr, _CONVERTERS[attr](child))
        except (ValueError, OverflowError):
            ## kept as it is, callers can still read the text
            error.weirdness("unexpected value for %s" % child.tag, child)
            _keep_raw(ret, child)
    return ret


def parse_lock_response(
    body: bytes, lock_token: Optional[str] = None, huge_tree: bool = False
) -> ActiveLock:
    """
    Parse the body of a successful LOCK response, a DAV:prop with
    DAV:lockdiscovery inside.  If several active locks are reported,
    the one carrying lock_token is returned.
    """
    tree = parse_xml(body, huge_tree=huge_tree)
    if tree.tag != dav.Prop.tag:
        raise error.ParseError(reason="expected DAV:prop, got %s" % tree.tag)
    locks = parse_prop(tree).lockdiscovery
    if not locks:
        raise error.ParseError(reason="LOCK response without DAV:activelock")
    if lock_token:
        for lock in locks:
            if lock.token == lock_token:
                return lock
    return locks[0]


## Helpers


def _elements(parent: _Element) -> List[_Element]:
    ## comments and processing instructions are skipped
    return [child for child in parent if isinstance(child.tag, str)]


def _parse_response(response: _Element) -> Response:
    """
    One response contains one or more hrefs, and either one status or
    one or more propstats.
    """
    ret = Response()
    for elem in _elements(response):
        if elem.tag == dav.Href.tag:
            ret.hrefs.append((elem.text or "").strip())
        elif elem.tag == dav.Status.tag:
            ret.status = parse_status(elem.text)
        elif elem.tag == dav.PropStat.tag:
            ret.propstats.append(_parse_propstat(elem))
        elif elem.tag == dav.ResponseDescription.tag:
            ret.description = elem.text
        elif elem.tag == dav.Location.tag:
            href = elem.find(dav.Href.tag)
            ret.location = href.text.strip() if href is not None and href.text else None
        elif elem.tag == dav.Error.tag:
            log.debug("error element in response: %s", etree.tostring(elem))
        else:
            error.weirdness("unexpected element found in response", elem)
    if not ret.hrefs or not all(ret.hrefs):
        raise error.ParseError(reason="DAV:response without DAV:href")
    if ret.status is None and not ret.propstats:
        raise error.ParseError(
            url=ret.hrefs[0], reason="DAV:response with neither DAV:status nor DAV:propstat"
        )
    return ret


def _parse_propstat(propstat: _Element) -> PropStat:
    status = propstat.find(dav.Status.tag)
    if status is None:
        raise error.ParseError(reason="DAV:propstat without DAV:status")
    prop = propstat.find(dav.Prop.tag)
    description = propstat.find(dav.ResponseDescription.tag)
    return PropStat(
        status=parse_status(status.text),
        prop=parse_prop(prop) if prop is not None else Prop(),
        description=description.text if description is not None else None,
    )


def _keep_raw(prop: Prop, elem: _Element) -> None:
    namespace, local = split_tag(elem.tag)
    detached = copy.deepcopy(elem)
    detached.tail = None
    prop.set_extension(namespace, local, detached)


def _text(elem: _Element) -> str:
    return (elem.text or "").strip()


def _int(elem: _Element) -> int:
    return int(_text(elem))


def _bool(elem: _Element) -> bool:
    value = _text(elem).lower()
    if value in ("1", "t", "true"):
        return True
    if value in ("0", "f", "false"):
        return False
    raise ValueError(value)


def _rfc3339(elem: _Element):
    return dateparser.isoparse(_text(elem))


def _rfc1123(elem: _Element):
    return dateparser.parse(_text(elem))


def _resourcetype(elem: _Element) -> List[str]:
    return [child.tag for child in _elements(elem)]


def _href_or_text(elem: _Element) -> Optional[str]:
    href = elem.find(dav.Href.tag)
    if href is not None:
        return _text(href)
    if len(_elements(elem)):
        ## free-form XML owner, keep it as it is
        return "".join(
            etree.tostring(child, encoding="unicode", with_tail=False)
            for child in _elements(elem)
        )
    return elem.text


def _scope(elem: Optional[_Element]) -> Optional[LockScope]:
    if elem is None:
        return None
    for child in _elements(elem):
        namespace, local = split_tag(child.tag)
        try:
            return LockScope(local)
        except ValueError:
            error.weirdness("unknown lock scope", child)
    return None


def _locktype(elem: Optional[_Element]) -> Optional[LockType]:
    if elem is None:
        return None
    for child in _elements(elem):
        namespace, local = split_tag(child.tag)
        try:
            return LockType(local)
        except ValueError:
            error.weirdness("unknown lock type", child)
    return None


def _activelock(elem: _Element) -> ActiveLock:
    lock = ActiveLock(
        scope=_scope(elem.find(dav.LockScope.tag)),
        type=_locktype(elem.find(dav.LockType.tag)),
    )
    depth = elem.find(dav.Depth.tag)
    if depth is not None and depth.text:
        ## servers differ in the capitalization of "infinity"
        try:
            lock.depth = Depth(_text(depth).lower())
        except ValueError:
            error.weirdness("invalid depth in activelock", depth)
    owner = elem.find(dav.Owner.tag)
    if owner is not None:
        lock.owner = _href_or_text(owner)
    timeout = elem.find(dav.Timeout.tag)
    if timeout is not None and timeout.text:
        try:
            lock.timeout = decode_timeout_value(timeout.text)
        except error.HeaderFormatError:
            error.weirdness("invalid timeout in activelock", timeout)
    token = elem.find(dav.LockToken.tag)
    if token is not None:
        lock.token = _href_or_text(token)
    root = elem.find(dav.LockRoot.tag)
    if root is not None:
        lock.root = _href_or_text(root)
    return lock


def _lockdiscovery(elem: _Element) -> List[ActiveLock]:
    return [_activelock(a) for a in elem.iterfind(dav.ActiveLock.tag)]


def _supportedlock(elem: _Element) -> List[LockEntry]:
    ret = []
    for entry in elem.iterfind(dav.LockEntry.tag):
        scope = _scope(entry.find(dav.LockScope.tag))
        if scope is None:
            error.weirdness("lockentry without lockscope", entry)
            continue
        ret.append(LockEntry(scope, _locktype(entry.find(dav.LockType.tag)) or LockType.WRITE))
    return ret


_CONVERTERS: Dict[str, Callable[[_Element], Any]] = {
    "creationdate": _rfc3339,
    "displayname": lambda elem: elem.text or "",
    "getcontentlanguage": _text,
    "getcontentlength": _int,
    "getcontenttype": _text,
    "getetag": _text,
    "getlastmodified": _rfc1123,
    "resourcetype": _resourcetype,
    "lockdiscovery": _lockdiscovery,
    "supportedlock": _supportedlock,
    "iscollection": _bool,
    "ishidden": _bool,
    "quota_available_bytes": _int,
    "quota_used_bytes": _int,
}
