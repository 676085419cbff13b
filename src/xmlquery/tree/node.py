"""Node model for ingested XML documents.

A document is a tree of :class:`Node` objects rooted at an :class:`XMLDocument`.
Elements own their attributes as ATTRIBUTE nodes that never appear in the
child/sibling chain. Trees are built once by ingestion and then only read.
"""

from enum import Enum, auto
from typing import TYPE_CHECKING, Dict, Iterator, List, Optional

from xmlquery.shared import IngestionStatistics

if TYPE_CHECKING:
    from xmlquery.tokenization import TokenPosition


class NodeKind(Enum):
    """Kinds of node in a document tree."""

    DOCUMENT = auto()
    ELEMENT = auto()
    TEXT = auto()
    COMMENT = auto()
    DECLARATION = auto()  # XML declaration and processing instructions
    ATTRIBUTE = auto()
    NAMESPACE = auto()  # Only produced when a namespace-axis result is materialized


class Node:
    """One item of an XML document.

    ``local_name``, ``prefix`` and ``namespace_uri`` are set for elements and
    attributes; declarations keep their target in ``local_name``. ``value``
    holds the character data of text, comment, declaration and attribute
    nodes.

    A bare ``Node()`` is an empty document node with no children.
    """

    __slots__ = (
        "kind",
        "local_name",
        "prefix",
        "namespace_uri",
        "value",
        "document_order",
        "parent",
        "first_child",
        "last_child",
        "prev_sibling",
        "next_sibling",
        "attributes",
        "namespace_declarations",
        "position",
    )

    def __init__(
        self,
        kind: NodeKind = NodeKind.DOCUMENT,
        local_name: str = "",
        prefix: str = "",
        namespace_uri: str = "",
        value: str = "",
        document_order: int = 0,
        position: Optional["TokenPosition"] = None,
    ) -> None:
        self.kind = kind
        self.local_name = local_name
        self.prefix = prefix
        self.namespace_uri = namespace_uri
        self.value = value
        self.document_order = document_order
        self.position = position
        self.parent: Optional[Node] = None
        self.first_child: Optional[Node] = None
        self.last_child: Optional[Node] = None
        self.prev_sibling: Optional[Node] = None
        self.next_sibling: Optional[Node] = None
        self.attributes: List[Node] = []
        self.namespace_declarations: Dict[str, str] = {}

    def __repr__(self) -> str:
        if self.kind in (NodeKind.ELEMENT, NodeKind.ATTRIBUTE):
            return f"<Node {self.kind.name} {self.qualified_name!r}>"
        if self.kind == NodeKind.DOCUMENT:
            return "<Node DOCUMENT>"
        text = self.value if len(self.value) <= 20 else self.value[:17] + "..."
        return f"<Node {self.kind.name} {text!r}>"

    def is_kind(self, *kinds: NodeKind) -> bool:
        """Check whether this node is of any of ``kinds``."""
        return self.kind in kinds

    @property
    def qualified_name(self) -> str:
        """Name as written in the source, ``prefix:local`` or ``local``."""
        if self.prefix:
            return f"{self.prefix}:{self.local_name}"
        return self.local_name

    @property
    def string_value(self) -> str:
        """XPath string value.

        For elements and documents this is the concatenation of all
        descendant text in document order; other kinds return their value.
        """
        if self.kind in (NodeKind.ELEMENT, NodeKind.DOCUMENT):
            return "".join(
                node.value
                for node in self.iter_descendants()
                if node.kind == NodeKind.TEXT
            )
        return self.value

    @property
    def inner_text(self) -> str:
        """Alias of :attr:`string_value`."""
        return self.string_value

    @property
    def depth(self) -> int:
        """Number of ancestors; the document node has depth 0."""
        return sum(1 for _ in self.iter_ancestors())

    def get_attribute(self, local_name: str, default: Optional[str] = None) -> Optional[str]:
        """Return the value of the first attribute named ``local_name``.

        The lookup ignores namespaces. Use :meth:`get_attribute_ns` to tell
        same-named attributes in different namespaces apart.
        """
        for attribute in self.attributes:
            if attribute.local_name == local_name:
                return attribute.value
        return default

    def get_attribute_ns(
        self,
        namespace_uri: str,
        local_name: str,
        default: Optional[str] = None,
    ) -> Optional[str]:
        """Return the value of the attribute with the given expanded name."""
        for attribute in self.attributes:
            if (
                attribute.local_name == local_name
                and attribute.namespace_uri == namespace_uri
            ):
                return attribute.value
        return default

    def children(self) -> Iterator["Node"]:
        """Iterate over direct children (attributes are not children)."""
        child = self.first_child
        while child is not None:
            yield child
            child = child.next_sibling

    def iter_descendants(self) -> Iterator["Node"]:
        """Iterate over all descendants in document order, excluding self."""
        node = self.first_child
        while node is not None:
            yield node
            if node.first_child is not None:
                node = node.first_child
                continue
            while node is not None and node.next_sibling is None:
                node = node.parent
                if node is self:
                    return
            if node is None:
                return
            node = node.next_sibling

    def iter_ancestors(self) -> Iterator["Node"]:
        """Iterate from the parent up to the document node."""
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    def select_element(self, expr: str) -> Optional["Node"]:
        """Return the first node matching ``expr`` relative to this node."""
        from xmlquery.api.query import find_one

        return find_one(self, expr)

    def select_elements(self, expr: str) -> List["Node"]:
        """Return every node matching ``expr`` relative to this node."""
        from xmlquery.api.query import find

        return find(self, expr)

    def _append_child(self, child: "Node") -> None:
        child.parent = self
        child.prev_sibling = self.last_child
        child.next_sibling = None
        if self.last_child is None:
            self.first_child = child
        else:
            self.last_child.next_sibling = child
        self.last_child = child


class XMLDocument(Node):
    """Document node of an ingested tree, carrying document metadata."""

    __slots__ = ("version", "encoding", "standalone", "statistics", "correlation_id")

    def __init__(
        self,
        version: Optional[str] = None,
        encoding: Optional[str] = None,
        standalone: Optional[bool] = None,
        statistics: Optional[IngestionStatistics] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        super().__init__(NodeKind.DOCUMENT)
        self.version = version
        self.encoding = encoding
        self.standalone = standalone
        self.statistics = statistics or IngestionStatistics()
        self.correlation_id = correlation_id

    @property
    def root(self) -> Optional[Node]:
        """The document element."""
        for child in self.children():
            if child.kind == NodeKind.ELEMENT:
                return child
        return None
