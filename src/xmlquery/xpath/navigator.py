"""Cursor contract the expression engine evaluates against.

The engine never sees a concrete tree. It walks documents through an
:class:`XPathNavigator`, a movable position that can sit on an ordinary node,
on an attribute of an element, or on a namespace binding in scope at an
element. Every ``move_*`` method returns True on success and leaves the
position unchanged on failure.
"""

from abc import ABC, abstractmethod
from enum import Enum, auto
from typing import Any, Optional, Tuple

XML_NAMESPACE = "http://www.w3.org/XML/1998/namespace"


class XPathNodeType(Enum):
    """The seven node types of the XPath 1.0 data model."""

    ROOT = auto()
    ELEMENT = auto()
    ATTRIBUTE = auto()
    NAMESPACE = auto()
    TEXT = auto()
    COMMENT = auto()
    PROCESSING_INSTRUCTION = auto()


class XPathNavigator(ABC):
    """Abstract cursor over a document tree."""

    @property
    @abstractmethod
    def node_type(self) -> XPathNodeType:
        """XPath node type of the current position."""

    @property
    @abstractmethod
    def local_name(self) -> str:
        """Local name; the prefix for namespace positions, ``""`` if unnamed."""

    @property
    @abstractmethod
    def prefix(self) -> str:
        """Namespace prefix of an element or attribute, else ``""``."""

    @property
    @abstractmethod
    def namespace_uri(self) -> str:
        """Namespace URI of an element or attribute, else ``""``."""

    @property
    @abstractmethod
    def value(self) -> str:
        """String value of the current position."""

    @abstractmethod
    def clone(self) -> "XPathNavigator":
        """Return an independent navigator at the same position."""

    @abstractmethod
    def move_to_root(self) -> bool:
        """Move to the document node. Always succeeds."""

    @abstractmethod
    def move_to_parent(self) -> bool:
        """Move to the parent; from an attribute or namespace, its element."""

    @abstractmethod
    def move_to_first_child(self) -> bool:
        """Move to the first ordinary child."""

    @abstractmethod
    def move_to_next(self) -> bool:
        """Move to the next sibling."""

    @abstractmethod
    def move_to_previous(self) -> bool:
        """Move to the previous sibling."""

    @abstractmethod
    def move_to_first_attribute(self) -> bool:
        """Move from an element to its first attribute."""

    @abstractmethod
    def move_to_next_attribute(self) -> bool:
        """Move from an attribute to the next attribute of the same element."""

    @abstractmethod
    def move_to_first_namespace(self) -> bool:
        """Move from an element to the first namespace binding in scope."""

    @abstractmethod
    def move_to_next_namespace(self) -> bool:
        """Move to the next namespace binding of the same element."""

    @abstractmethod
    def move_to(self, other: "XPathNavigator") -> bool:
        """Adopt the position of ``other``; fails for a different tree."""

    @abstractmethod
    def is_same_position(self, other: "XPathNavigator") -> bool:
        """Check whether both navigators point at the same position."""

    @abstractmethod
    def order_key(self) -> Tuple[Any, ...]:
        """Sort key consistent with document order, unique per position."""

    @property
    def name(self) -> str:
        """Qualified name, ``prefix:local`` or ``local``."""
        if self.prefix and self.node_type in (
            XPathNodeType.ELEMENT,
            XPathNodeType.ATTRIBUTE,
        ):
            return f"{self.prefix}:{self.local_name}"
        return self.local_name

    def compare_document_order(self, other: "XPathNavigator") -> int:
        """Return -1, 0 or 1 as this position is before, at or after ``other``."""
        mine, theirs = self.order_key(), other.order_key()
        if mine < theirs:
            return -1
        if mine > theirs:
            return 1
        return 0

    def lookup_namespace(self, prefix: str) -> Optional[str]:
        """Return the URI bound to ``prefix`` at this position, if any.

        Non-element positions use the bindings of their nearest element.
        """
        nav = self.clone()
        while nav.node_type != XPathNodeType.ELEMENT:
            if not nav.move_to_parent():
                return None
        if nav.move_to_first_namespace():
            while True:
                if nav.local_name == prefix:
                    return nav.value
                if not nav.move_to_next_namespace():
                    break
        return None

    def xml_lang(self) -> Optional[str]:
        """Return the nearest ``xml:lang`` value on this node or an ancestor."""
        nav = self.clone()
        while True:
            if nav.node_type == XPathNodeType.ELEMENT:
                attr = nav.clone()
                if attr.move_to_first_attribute():
                    while True:
                        if (
                            attr.local_name == "lang"
                            and attr.namespace_uri == XML_NAMESPACE
                        ):
                            return attr.value
                        if not attr.move_to_next_attribute():
                            break
            if not nav.move_to_parent():
                return None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.node_type.name} {self.name!r}>"
