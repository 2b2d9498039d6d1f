#!/usr/bin/env python
from typing import Dict
from typing import Optional
from typing import Tuple

nsmap: Dict[str, str] = {
    "D": "DAV:",
}


def ns(prefix: str, tag: Optional[str] = None) -> str:
    name = "{%s}" % nsmap[prefix]
    if tag is not None:
        name = "%s%s" % (name, tag)
    return name


def split_tag(tag: str) -> Tuple[Optional[str], str]:
    """
    Split a Clark-notation tag ("{DAV:}displayname") into
    (namespace, local name).  Tags without a namespace give
    (None, local name).
    """
    if tag.startswith("{"):
        namespace, _, local = tag[1:].partition("}")
        return (namespace, local)
    return (None, tag)


def clark(namespace: Optional[str], local: str) -> str:
    if namespace is None:
        return local
    return "{%s}%s" % (namespace, local)
