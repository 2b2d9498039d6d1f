"""
Core protocol types for the Sans-I/O WebDAV implementation.

These dataclasses represent HTTP requests and responses at the protocol
level, independent of any I/O implementation, plus the WebDAV data model
(depth, timeouts, lock descriptions, property bags and multistatus
results).  All of them are plain values, built per call and thrown away
afterwards.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, AsyncIterable, Dict, Iterator, List, Mapping, Optional, Set, Tuple, Union
from urllib.parse import unquote, urlsplit

from lxml import etree
from lxml.etree import _Element
from multidict import CIMultiDict, CIMultiDictProxy

from webdavclient.elements import dav
from webdavclient.lib import error
from webdavclient.lib.namespace import clark, nsmap, split_tag

## RFC 4918, section 10.7: the number of seconds may not exceed 2^32-1
MAX_TIMEOUT_SECONDS = 2**32 - 1


class DAVMethod(Enum):
    """HTTP and WebDAV methods."""

    GET = "GET"
    HEAD = "HEAD"
    PUT = "PUT"
    DELETE = "DELETE"
    OPTIONS = "OPTIONS"
    PROPFIND = "PROPFIND"
    PROPPATCH = "PROPPATCH"
    MKCOL = "MKCOL"
    COPY = "COPY"
    MOVE = "MOVE"
    LOCK = "LOCK"
    UNLOCK = "UNLOCK"


RequestBody = Union[bytes, AsyncIterable[bytes], None]


@dataclass(frozen=True)
class DAVRequest:
    """
    Represents an HTTP request to be made.

    This is a pure data structure with no I/O. It describes what request
    should be made, but does not make it.

    Attributes:
        method: HTTP method (GET, PUT, PROPFIND, etc.)
        url: Full URL for the request
        headers: HTTP headers as dict
        body: Request body as bytes, an async iterable of byte chunks
              (streamed uploads) or None
    """

    method: DAVMethod
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: RequestBody = None

    def with_header(self, name: str, value: str) -> "DAVRequest":
        """Return new request with additional header."""
        new_headers = {**self.headers, name: value}
        return DAVRequest(
            method=self.method,
            url=self.url,
            headers=new_headers,
            body=self.body,
        )

    def with_body(self, body: RequestBody) -> "DAVRequest":
        """Return new request with body."""
        return DAVRequest(
            method=self.method,
            url=self.url,
            headers=self.headers,
            body=body,
        )


@dataclass(frozen=True)
class DAVResponse:
    """
    Represents an HTTP response received.

    Attributes:
        status: HTTP status code
        headers: HTTP headers, looked up case-insensitively
        body: Response body as bytes
        reason: Reason phrase delivered by the server
    """

    status: int
    headers: Mapping[str, str]
    body: bytes = b""
    reason: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.headers, (CIMultiDict, CIMultiDictProxy)):
            object.__setattr__(self, "headers", CIMultiDict(self.headers or {}))
        if not self.reason:
            object.__setattr__(self, "reason", REASONS.get(self.status, "Unknown"))

    @property
    def ok(self) -> bool:
        """True if status indicates success (2xx)."""
        return 200 <= self.status < 300

    @property
    def is_multistatus(self) -> bool:
        """True if this is a 207 Multi-Status response."""
        return self.status == 207


REASONS: Mapping[int, str] = MappingProxyType(
    {
        200: "OK",
        201: "Created",
        204: "No Content",
        207: "Multi-Status",
        301: "Moved Permanently",
        302: "Found",
        304: "Not Modified",
        400: "Bad Request",
        401: "Unauthorized",
        403: "Forbidden",
        404: "Not Found",
        405: "Method Not Allowed",
        409: "Conflict",
        412: "Precondition Failed",
        415: "Unsupported Media Type",
        423: "Locked",
        424: "Failed Dependency",
        500: "Internal Server Error",
        501: "Not Implemented",
        502: "Bad Gateway",
        503: "Service Unavailable",
        507: "Insufficient Storage",
    }
)


class Depth(Enum):
    """Value of the Depth header"""

    ZERO = "0"
    ONE = "1"
    INFINITY = "infinity"


@dataclass(frozen=True)
class Timeout:
    """
    A lock timeout, either infinite (seconds is None) or a number of
    seconds.  The range is checked when the value is encoded into a
    header, not here.
    """

    seconds: Optional[int] = None

    @classmethod
    def infinite(cls) -> "Timeout":
        return cls(None)

    @classmethod
    def of(cls, seconds: int) -> "Timeout":
        return cls(seconds)

    @property
    def is_infinite(self) -> bool:
        return self.seconds is None


class LockScope(Enum):
    EXCLUSIVE = "exclusive"
    SHARED = "shared"


class LockType(Enum):
    WRITE = "write"


@dataclass(frozen=True)
class LockInfo:
    """
    Body of a LOCK request.  owner is an opaque string; if owner_is_href
    is set, it is sent wrapped in a DAV:href element.
    """

    scope: LockScope = LockScope.EXCLUSIVE
    type: LockType = LockType.WRITE
    owner: Optional[str] = None
    owner_is_href: bool = False


@dataclass(frozen=True)
class LockEntry:
    """One entry of the DAV:supportedlock property"""

    scope: LockScope
    type: LockType = LockType.WRITE


@dataclass
class ActiveLock:
    """
    A lock as reported by the server, either in the body of a LOCK
    response or in the DAV:lockdiscovery property.
    """

    scope: Optional[LockScope] = None
    type: Optional[LockType] = None
    depth: Optional[Depth] = None
    owner: Optional[str] = None
    timeout: Optional[Timeout] = None
    token: Optional[str] = None
    root: Optional[str] = None


@dataclass
class RawProp:
    """
    A property outside the vocabulary known to this library.  The
    element is kept verbatim (a detached copy), text is its text
    content for the common case of a simple valued property.
    """

    namespace: Optional[str]
    name: str
    text: Optional[str] = None
    element: Optional[_Element] = field(default=None, repr=False, compare=False)

    @property
    def tag(self) -> str:
        return clark(self.namespace, self.name)

    @property
    def is_empty(self) -> bool:
        if self.element is not None:
            return len(self.element) == 0 and not self.element.text
        return not self.text

    @property
    def xml(self) -> bytes:
        if self.element is not None:
            return etree.tostring(self.element, encoding="utf-8", with_tail=False)
        node = etree.Element(self.tag, nsmap=nsmap)
        node.text = self.text
        return etree.tostring(node, encoding="utf-8")


## Well known properties: attribute name on Prop -> Clark tag.  Read only
## after import.
PROPERTY_TAGS: Mapping[str, str] = MappingProxyType(
    {
        "creationdate": dav.CreationDate.tag,
        "displayname": dav.DisplayName.tag,
        "getcontentlanguage": dav.GetContentLanguage.tag,
        "getcontentlength": dav.GetContentLength.tag,
        "getcontenttype": dav.GetContentType.tag,
        "getetag": dav.GetEtag.tag,
        "getlastmodified": dav.GetLastModified.tag,
        "resourcetype": dav.ResourceType.tag,
        "lockdiscovery": dav.LockDiscovery.tag,
        "supportedlock": dav.SupportedLock.tag,
        "iscollection": dav.IsCollection.tag,
        "ishidden": dav.IsHidden.tag,
        "quota_available_bytes": dav.QuotaAvailableBytes.tag,
        "quota_used_bytes": dav.QuotaUsedBytes.tag,
    }
)
PROPERTY_NAMES: Mapping[str, str] = MappingProxyType(
    {tag: name for name, tag in PROPERTY_TAGS.items()}
)

PropertyName = Union[str, Tuple[Optional[str], str]]


def qualify(name: PropertyName) -> str:
    """
    Turn a property name into a Clark tag.  Accepted are (namespace,
    local name) tuples, Clark tags, attribute names of Prop
    ("quota_used_bytes") and local names in the DAV: namespace
    ("quota-used-bytes").
    """
    if isinstance(name, tuple):
        return clark(*name)
    if name.startswith("{"):
        return name
    if name in PROPERTY_TAGS:
        return PROPERTY_TAGS[name]
    return clark(nsmap["D"], name)


@dataclass
class Prop:
    """
    A bag of properties of one resource.

    The well known properties are parsed into typed attributes.  All
    other properties end up in extensions, keyed by (namespace, local
    name).  A property that is present but has no content (as in
    propname responses, or in the echo of a removed property) is listed
    in empty.  A string property that is present but empty reads as "",
    an absent one as None.
    """

    creationdate: Optional[datetime] = None
    displayname: Optional[str] = None
    getcontentlanguage: Optional[str] = None
    getcontentlength: Optional[int] = None
    getcontenttype: Optional[str] = None
    getetag: Optional[str] = None
    getlastmodified: Optional[datetime] = None
    resourcetype: Optional[List[str]] = None
    lockdiscovery: Optional[List[ActiveLock]] = None
    supportedlock: Optional[List[LockEntry]] = None
    iscollection: Optional[bool] = None
    ishidden: Optional[bool] = None
    quota_available_bytes: Optional[int] = None
    quota_used_bytes: Optional[int] = None
    extensions: Dict[Tuple[Optional[str], str], RawProp] = field(default_factory=dict)
    empty: Set[str] = field(default_factory=set)

    @classmethod
    def name_only(cls, *names: PropertyName) -> "Prop":
        """
        A Prop carrying the given names without values, as used in
        PROPPATCH remove instructions.
        """
        prop = cls()
        for name in names:
            prop.mark_empty(name)
        return prop

    def mark_empty(self, name: PropertyName) -> None:
        tag = qualify(name)
        attr = PROPERTY_NAMES.get(tag)
        if attr is not None:
            if PROPERTY_KINDS[attr] is str:
                setattr(self, attr, "")
            elif PROPERTY_KINDS[attr] is list:
                setattr(self, attr, [])
        else:
            namespace, local = split_tag(tag)
            self.extensions[(namespace, local)] = RawProp(namespace, local)
        self.empty.add(tag)

    def set_extension(
        self,
        namespace: Optional[str],
        name: str,
        value: Union[str, _Element, None] = None,
    ) -> RawProp:
        """Add a property from a namespace/vocabulary unknown to the library"""
        if isinstance(value, etree._Element):
            raw = RawProp(namespace, name, value.text, value)
        else:
            raw = RawProp(namespace, name, value)
        self.extensions[(namespace, name)] = raw
        if raw.is_empty:
            self.empty.add(raw.tag)
        else:
            self.empty.discard(raw.tag)
        return raw

    def extension(self, namespace: Optional[str], name: str) -> Optional[RawProp]:
        return self.extensions.get((namespace, name))

    def get(self, name: PropertyName, default: Any = None) -> Any:
        """
        Look up a property value by name.  Well known properties give
        their typed value, other properties their RawProp.  A well known
        property whose value could not be converted is a RawProp too.
        """
        tag = qualify(name)
        attr = PROPERTY_NAMES.get(tag)
        if attr is not None and getattr(self, attr) is not None:
            return getattr(self, attr)
        return self.extensions.get(split_tag(tag), default)

    def is_name_only(self, name: PropertyName) -> bool:
        return qualify(name) in self.empty

    def __contains__(self, name: PropertyName) -> bool:
        tag = qualify(name)
        if tag in self.empty:
            return True
        attr = PROPERTY_NAMES.get(tag)
        if attr is not None and getattr(self, attr) is not None:
            return True
        return split_tag(tag) in self.extensions

    def tags(self) -> List[str]:
        """
        Clark tags of all properties present, well known properties
        first (in a fixed order), then the extensions in insertion order.
        """
        ret = [
            tag
            for attr, tag in PROPERTY_TAGS.items()
            if getattr(self, attr) is not None or tag in self.empty
        ]
        ret.extend(raw.tag for raw in self.extensions.values())
        return ret

    def __iter__(self) -> Iterator[str]:
        return iter(self.tags())

    def __len__(self) -> int:
        return len(self.tags())

    def __bool__(self) -> bool:
        return True

    @property
    def is_collection(self) -> bool:
        if self.resourcetype:
            return dav.Collection.tag in self.resourcetype
        return bool(self.iscollection)


## Python type of each well known property.
PROPERTY_KINDS: Mapping[str, type] = MappingProxyType(
    {
        "creationdate": datetime,
        "displayname": str,
        "getcontentlanguage": str,
        "getcontentlength": int,
        "getcontenttype": str,
        "getetag": str,
        "getlastmodified": datetime,
        "resourcetype": list,
        "lockdiscovery": list,
        "supportedlock": list,
        "iscollection": bool,
        "ishidden": bool,
        "quota_available_bytes": int,
        "quota_used_bytes": int,
    }
)


class PropFindMode(Enum):
    ALLPROP = "allprop"
    PROPNAME = "propname"
    PROP = "prop"


@dataclass(frozen=True)
class PropFind:
    """
    Body of a PROPFIND request: all properties, all property names, or
    the named properties (at least one).
    """

    mode: PropFindMode = PropFindMode.ALLPROP
    names: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.mode == PropFindMode.PROP and not self.names:
            raise ValueError("a PROPFIND for named properties needs at least one name")
        if self.mode != PropFindMode.PROP and self.names:
            raise ValueError("property names only go with named PROPFIND requests")

    @classmethod
    def allprop(cls) -> "PropFind":
        return cls(PropFindMode.ALLPROP)

    @classmethod
    def propname(cls) -> "PropFind":
        return cls(PropFindMode.PROPNAME)

    @classmethod
    def named(cls, *names: PropertyName) -> "PropFind":
        return cls(PropFindMode.PROP, tuple(qualify(n) for n in names))


@dataclass(frozen=True)
class PropSet:
    """A DAV:set instruction of a PROPPATCH"""

    prop: Prop


@dataclass(frozen=True)
class PropRemove:
    """A DAV:remove instruction of a PROPPATCH.  Values in prop are ignored."""

    prop: Prop


PropertyUpdateOperation = Union[PropSet, PropRemove]


@dataclass
class PropertyUpdate:
    """
    Body of a PROPPATCH request: set and remove instructions, executed
    by the server in the given order.
    """

    operations: List[PropertyUpdateOperation] = field(default_factory=list)

    def set(self, prop: Optional[Prop] = None, **values: Any) -> "PropertyUpdate":
        if prop is None:
            prop = Prop(**values)
        self.operations.append(PropSet(prop))
        return self

    def remove(self, *names: Union[Prop, PropertyName]) -> "PropertyUpdate":
        if len(names) == 1 and isinstance(names[0], Prop):
            prop = names[0]
        else:
            prop = Prop.name_only(*names)
        self.operations.append(PropRemove(prop))
        return self

    def __iter__(self) -> Iterator[PropertyUpdateOperation]:
        return iter(self.operations)

    def __len__(self) -> int:
        return len(self.operations)


@dataclass
class Status:
    """
    A status line from a multistatus body, i.e. "HTTP/1.1 200 OK".
    Only the code is significant, the reason phrase is informational.
    """

    code: int
    reason: str = ""
    raw: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.code < 300


@dataclass
class PropStat:
    status: Status
    prop: Prop = field(default_factory=Prop)
    description: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status.ok


@dataclass
class Response:
    """
    Result for one resource of a multistatus.  Either status is set
    (the result concerns the whole resource) or there is one propstat
    per group of properties sharing the same outcome.
    """

    hrefs: List[str] = field(default_factory=list)
    status: Optional[Status] = None
    propstats: List[PropStat] = field(default_factory=list)
    description: Optional[str] = None
    location: Optional[str] = None

    @property
    def href(self) -> str:
        return self.hrefs[0]

    @property
    def ok(self) -> bool:
        if self.status is not None:
            return self.status.ok
        return all(propstat.ok for propstat in self.propstats)

    @property
    def prop(self) -> Prop:
        """
        The properties that were delivered successfully.  If several
        successful propstats exist, they are merged.
        """
        good = [ps.prop for ps in self.propstats if ps.ok]
        if len(good) == 1:
            return good[0]
        merged = Prop()
        for prop in good:
            for attr in PROPERTY_TAGS:
                value = getattr(prop, attr)
                if value is not None:
                    setattr(merged, attr, value)
            merged.extensions.update(prop.extensions)
            merged.empty.update(prop.empty)
        return merged

    def propstat_for(self, name: PropertyName) -> Optional[PropStat]:
        for propstat in self.propstats:
            if name in propstat.prop:
                return propstat
        return None


def _href_key(href: str) -> str:
    return unquote(urlsplit(href).path).rstrip("/")


@dataclass
class Multistatus:
    """
    A parsed 207 Multi-Status body.  The responses are kept in document
    order.
    """

    responses: List[Response] = field(default_factory=list)
    description: Optional[str] = None

    def __iter__(self) -> Iterator[Response]:
        return iter(self.responses)

    def __len__(self) -> int:
        return len(self.responses)

    def __getitem__(self, idx: int) -> Response:
        return self.responses[idx]

    def find(self, href: str) -> Optional[Response]:
        """
        Find the response for a URL or path.  Scheme and host, quoting
        and trailing slashes are disregarded.
        """
        key = _href_key(href)
        for response in self.responses:
            if any(_href_key(h) == key for h in response.hrefs):
                return response
        return None

    def failures(self) -> List[Tuple[str, Status]]:
        ret = []
        for response in self.responses:
            if response.status is not None:
                if not response.status.ok:
                    ret.append((response.href, response.status))
                continue
            for propstat in response.propstats:
                if not propstat.ok:
                    ret.append((response.href, propstat.status))
        return ret

    def raise_for_failures(self, url: Optional[str] = None) -> None:
        failures = self.failures()
        if failures:
            reason = "; ".join("%s: %s" % (href, status.raw or status.code) for href, status in failures)
            raise error.ProtocolError(
                url=url or failures[0][0],
                reason=reason,
                status=207,
                multistatus=self,
            )


@dataclass(frozen=True)
class Progress:
    """
    Progress of a streaming transfer.  total_bytes is None if the size
    is unknown (no Content-Length).
    """

    bytes_transferred: int
    total_bytes: Optional[int] = None

    @property
    def percentage(self) -> Optional[float]:
        if not self.total_bytes:
            return None
        return 100.0 * self.bytes_transferred / self.total_bytes
