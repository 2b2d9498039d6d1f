#!/usr/bin/env python
import copy
import sys
from collections.abc import Iterable
from typing import ClassVar
from typing import List
from typing import Optional
from typing import Union

from lxml import etree
from lxml.etree import _Element

from webdavclient.lib.namespace import nsmap

if sys.version_info < (3, 11):
    from typing_extensions import Self
else:
    from typing import Self


class BaseElement:
    children: Optional[List["BaseElement"]] = None
    tag: ClassVar[Optional[str]] = None
    value: Optional[str] = None
    attributes: Optional[dict] = None

    def __init__(self, value: Union[str, bytes, None] = None) -> None:
        self.children = []
        self.attributes = {}
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        self.value = value

    def __add__(
        self, other: Union["BaseElement", Iterable["BaseElement"]]
    ) -> "BaseElement":
        return self.append(other)

    def __str__(self) -> str:
        utf8 = etree.tostring(
            self.xmlelement(), encoding="utf-8", xml_declaration=True, pretty_print=True
        )
        return str(utf8, "utf-8")

    def xmlelement(self, parent: Optional[_Element] = None) -> _Element:
        """
        Render this element (and its children) as an lxml element.  If
        parent is given the element is created as a child of it, so the
        namespace declarations only appear once, on the root.
        """
        if self.tag is None:
            raise ValueError("Unexpected value None for self.tag")

        if parent is None:
            root = etree.Element(self.tag, nsmap=nsmap)
        else:
            root = etree.SubElement(parent, self.tag)
        if self.value is not None:
            root.text = self.value

        for k in self.attributes:
            root.set(k, self.attributes[k])

        self.xmlchildren(root)
        return root

    def xmlchildren(self, root: _Element) -> None:
        for c in self.children:
            c.xmlelement(root)

    def append(self, element: Union["BaseElement", Iterable["BaseElement"]]) -> Self:
        if isinstance(element, Iterable):
            self.children.extend(element)
        else:
            self.children.append(element)

        return self

    def tostring(self) -> bytes:
        """Serialize as a UTF-8 request body with XML declaration"""
        return etree.tostring(
            self.xmlelement(), encoding="utf-8", xml_declaration=True
        )


class ValuedBaseElement(BaseElement):
    def __init__(self, value: Union[str, bytes, None] = None) -> None:
        super(ValuedBaseElement, self).__init__(value=value)


class AnyElement(BaseElement):
    """
    An element with a tag decided at runtime, used for properties
    outside the vocabulary known to this library.  If an lxml element
    is given, it is copied verbatim (children, attributes and text).
    """

    def __init__(
        self,
        tag: str,
        value: Union[str, bytes, None] = None,
        element: Optional[_Element] = None,
    ) -> None:
        super(AnyElement, self).__init__(value=value)
        self.dynamic_tag = tag
        self.element = element

    def xmlelement(self, parent: Optional[_Element] = None) -> _Element:
        if self.element is not None:
            node = copy.deepcopy(self.element)
            node.tail = None
            if parent is not None:
                parent.append(node)
            return node
        if parent is None:
            root = etree.Element(self.dynamic_tag, nsmap=nsmap)
        else:
            root = etree.SubElement(parent, self.dynamic_tag)
        if self.value is not None:
            root.text = self.value
        self.xmlchildren(root)
        return root
