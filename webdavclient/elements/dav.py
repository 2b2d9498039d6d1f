#!/usr/bin/env python
from typing import ClassVar

from .base import BaseElement
from .base import ValuedBaseElement
from webdavclient.lib.namespace import ns


# Operations
class Propfind(BaseElement):
    tag: ClassVar[str] = ns("D", "propfind")


class PropertyUpdate(BaseElement):
    tag: ClassVar[str] = ns("D", "propertyupdate")


class LockInfo(BaseElement):
    tag: ClassVar[str] = ns("D", "lockinfo")


# Propfind shapes
class Allprop(BaseElement):
    tag: ClassVar[str] = ns("D", "allprop")


class PropName(BaseElement):
    tag: ClassVar[str] = ns("D", "propname")


class Prop(BaseElement):
    tag: ClassVar[str] = ns("D", "prop")


# Propertyupdate instructions
class Set(BaseElement):
    tag: ClassVar[str] = ns("D", "set")


class Remove(BaseElement):
    tag: ClassVar[str] = ns("D", "remove")


# Locking
class LockScope(BaseElement):
    tag: ClassVar[str] = ns("D", "lockscope")


class LockType(BaseElement):
    tag: ClassVar[str] = ns("D", "locktype")


class Exclusive(BaseElement):
    tag: ClassVar[str] = ns("D", "exclusive")


class Shared(BaseElement):
    tag: ClassVar[str] = ns("D", "shared")


class Write(BaseElement):
    tag: ClassVar[str] = ns("D", "write")


class Owner(ValuedBaseElement):
    tag: ClassVar[str] = ns("D", "owner")


class ActiveLock(BaseElement):
    tag: ClassVar[str] = ns("D", "activelock")


class LockEntry(BaseElement):
    tag: ClassVar[str] = ns("D", "lockentry")


class Depth(ValuedBaseElement):
    tag: ClassVar[str] = ns("D", "depth")


class Timeout(ValuedBaseElement):
    tag: ClassVar[str] = ns("D", "timeout")


class LockToken(BaseElement):
    tag: ClassVar[str] = ns("D", "locktoken")


class LockRoot(BaseElement):
    tag: ClassVar[str] = ns("D", "lockroot")


# Properties
class CreationDate(ValuedBaseElement):
    tag: ClassVar[str] = ns("D", "creationdate")


class DisplayName(ValuedBaseElement):
    tag: ClassVar[str] = ns("D", "displayname")


class GetContentLanguage(ValuedBaseElement):
    tag: ClassVar[str] = ns("D", "getcontentlanguage")


class GetContentLength(ValuedBaseElement):
    tag: ClassVar[str] = ns("D", "getcontentlength")


class GetContentType(ValuedBaseElement):
    tag: ClassVar[str] = ns("D", "getcontenttype")


class GetEtag(ValuedBaseElement):
    tag: ClassVar[str] = ns("D", "getetag")


class GetLastModified(ValuedBaseElement):
    tag: ClassVar[str] = ns("D", "getlastmodified")


class ResourceType(BaseElement):
    tag: ClassVar[str] = ns("D", "resourcetype")


class Collection(BaseElement):
    tag: ClassVar[str] = ns("D", "collection")


class LockDiscovery(BaseElement):
    tag: ClassVar[str] = ns("D", "lockdiscovery")


class SupportedLock(BaseElement):
    tag: ClassVar[str] = ns("D", "supportedlock")


## Not in RFC4918, but delivered by IIS and quite some other servers
class IsCollection(ValuedBaseElement):
    tag: ClassVar[str] = ns("D", "iscollection")


class IsHidden(ValuedBaseElement):
    tag: ClassVar[str] = ns("D", "ishidden")


## RFC4331
class QuotaAvailableBytes(ValuedBaseElement):
    tag: ClassVar[str] = ns("D", "quota-available-bytes")


class QuotaUsedBytes(ValuedBaseElement):
    tag: ClassVar[str] = ns("D", "quota-used-bytes")


# Multistatus
class MultiStatus(BaseElement):
    tag: ClassVar[str] = ns("D", "multistatus")


class Response(BaseElement):
    tag: ClassVar[str] = ns("D", "response")


class Href(ValuedBaseElement):
    tag: ClassVar[str] = ns("D", "href")


class Status(ValuedBaseElement):
    tag: ClassVar[str] = ns("D", "status")


class PropStat(BaseElement):
    tag: ClassVar[str] = ns("D", "propstat")


class ResponseDescription(ValuedBaseElement):
    tag: ClassVar[str] = ns("D", "responsedescription")


class Location(BaseElement):
    tag: ClassVar[str] = ns("D", "location")


class Error(BaseElement):
    tag: ClassVar[str] = ns("D", "error")
