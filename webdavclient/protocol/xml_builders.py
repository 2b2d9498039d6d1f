"""
Pure functions for building WebDAV XML request bodies.

All functions in this module are pure - they take data in and return XML out,
with no side effects or I/O.  The element order is fixed, so the same input
always gives byte-identical output.
"""
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Any, Dict, List, Optional, Type

from webdavclient.elements import dav
from webdavclient.elements.base import AnyElement, BaseElement

from .headers import encode_depth, encode_timeout, lock_token_uri
from .types import (
    PROPERTY_TAGS,
    ActiveLock,
    LockEntry,
    LockInfo,
    LockScope,
    Prop,
    PropertyUpdate,
    PropFind,
    PropFindMode,
    PropRemove,
    PropSet,
)

_SCOPES: Dict[LockScope, Type[BaseElement]] = {
    LockScope.EXCLUSIVE: dav.Exclusive,
    LockScope.SHARED: dav.Shared,
}


def build_propfind_body(propfind: Optional[PropFind] = None) -> bytes:
    """
    Build PROPFIND request body XML.

    Args:
        propfind: what to ask for.  Defaults to all properties.

    Returns:
        UTF-8 encoded XML bytes
    """
    propfind = propfind or PropFind.allprop()
    if propfind.mode == PropFindMode.ALLPROP:
        root = dav.Propfind() + dav.Allprop()
    elif propfind.mode == PropFindMode.PROPNAME:
        root = dav.Propfind() + dav.PropName()
    else:
        root = dav.Propfind() + (dav.Prop() + [AnyElement(tag) for tag in propfind.names])
    return root.tostring()


def build_proppatch_body(update: PropertyUpdate) -> bytes:
    """
    Build PROPPATCH request body.  One DAV:set or DAV:remove per
    operation, in the order given.

    Returns:
        UTF-8 encoded XML bytes
    """
    root = dav.PropertyUpdate()
    for operation in update:
        if isinstance(operation, PropSet):
            root += dav.Set() + prop_element(operation.prop)
        elif isinstance(operation, PropRemove):
            root += dav.Remove() + prop_element(operation.prop, names_only=True)
        else:
            raise TypeError("unknown PROPPATCH operation %r" % (operation,))
    return root.tostring()


def build_lockinfo_body(lockinfo: LockInfo) -> bytes:
    """
    Build LOCK request body: lockscope, locktype, and owner if given,
    in that order.
    """
    root = dav.LockInfo() + [
        dav.LockScope() + _SCOPES[lockinfo.scope](),
        dav.LockType() + dav.Write(),
    ]
    if lockinfo.owner is not None:
        if lockinfo.owner_is_href:
            root += dav.Owner() + dav.Href(lockinfo.owner)
        else:
            root += dav.Owner(lockinfo.owner)
    return root.tostring()


def prop_element(prop: Prop, names_only: bool = False) -> dav.Prop:
    """
    Render a property bag as a DAV:prop element.  Well known properties
    come first, then the extensions in insertion order.  If names_only
    is set, only empty elements are rendered.
    """
    element = dav.Prop()
    for attr, tag in PROPERTY_TAGS.items():
        value = getattr(prop, attr)
        if value is None and tag not in prop.empty:
            continue
        if names_only or value is None:
            element += AnyElement(tag)
        else:
            element += _value_element(attr, tag, value)
    for raw in prop.extensions.values():
        if names_only:
            element += AnyElement(raw.tag)
        else:
            element += AnyElement(raw.tag, raw.text, element=raw.element)
    return element


def _value_element(attr: str, tag: str, value: Any) -> BaseElement:
    if attr == "resourcetype":
        return AnyElement(tag) + [AnyElement(t) for t in value]
    if attr == "supportedlock":
        return AnyElement(tag) + [_lockentry_element(e) for e in value]
    if attr == "lockdiscovery":
        return AnyElement(tag) + [_activelock_element(a) for a in value]
    return AnyElement(tag, format_value(attr, value))


def format_value(attr: str, value: Any) -> str:
    """Wire form of a simple well known property value"""
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        value = value.astimezone(timezone.utc)
        if attr == "getlastmodified":
            ## RFC 1123
            return format_datetime(value, usegmt=True)
        ## RFC 3339
        return value.strftime("%Y-%m-%dT%H:%M:%SZ")
    return str(value)


def _lockentry_element(entry: LockEntry) -> BaseElement:
    return dav.LockEntry() + [
        dav.LockScope() + _SCOPES[entry.scope](),
        dav.LockType() + dav.Write(),
    ]


def _activelock_element(lock: ActiveLock) -> BaseElement:
    children: List[BaseElement] = []
    if lock.type is not None:
        children.append(dav.LockType() + dav.Write())
    if lock.scope is not None:
        children.append(dav.LockScope() + _SCOPES[lock.scope]())
    if lock.depth is not None:
        children.append(dav.Depth(encode_depth(lock.depth)))
    if lock.owner is not None:
        children.append(dav.Owner(lock.owner))
    if lock.timeout is not None:
        children.append(dav.Timeout(encode_timeout(lock.timeout)))
    if lock.token is not None:
        children.append(dav.LockToken() + dav.Href(lock_token_uri(lock.token)))
    if lock.root is not None:
        children.append(dav.LockRoot() + dav.Href(lock.root))
    return dav.ActiveLock() + children
