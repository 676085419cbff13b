"""Navigator over ingested document trees.

A :class:`NodeNavigator` position is one of three variants:

* a structural node (document, element, text, comment, declaration),
* an attribute: the owning element plus an index into its attributes,
* a namespace: an element plus an index into the bindings in scope there.

Attributes and namespace bindings are never part of the child/sibling chain;
they are reached only through the attribute and namespace moves, and
``move_to_parent`` from them returns to the owning element.
"""

from typing import List, Optional, Tuple

from xmlquery.tree import NamespaceScopeResolver, Node, NodeKind
from xmlquery.xpath import XPathNavigator, XPathNodeType

_NODE_TYPES = {
    NodeKind.DOCUMENT: XPathNodeType.ROOT,
    NodeKind.ELEMENT: XPathNodeType.ELEMENT,
    NodeKind.TEXT: XPathNodeType.TEXT,
    NodeKind.COMMENT: XPathNodeType.COMMENT,
    NodeKind.DECLARATION: XPathNodeType.PROCESSING_INSTRUCTION,
    NodeKind.ATTRIBUTE: XPathNodeType.ATTRIBUTE,
    NodeKind.NAMESPACE: XPathNodeType.NAMESPACE,
}

_resolver = NamespaceScopeResolver()


class NodeNavigator(XPathNavigator):
    """Cursor over a :class:`Node` tree.

    Each navigator owns its position; :meth:`clone` copies it, so the
    expression engine can branch without disturbing the original.

    Example:
        >>> nav = NodeNavigator(document)
        >>> nav.move_to_first_child()
        True
        >>> nav.local_name
        'catalog'
    """

    __slots__ = ("root", "node", "attr_index", "ns_index", "_namespaces")

    def __init__(self, node: Node, root: Optional[Node] = None) -> None:
        """Position a navigator on ``node``.

        Attribute nodes and materialized namespace nodes are accepted and
        mapped back to their attribute or namespace position.
        """
        self.attr_index = -1
        self.ns_index = -1
        self._namespaces: List[Tuple[str, str]] = []

        if node.kind == NodeKind.ATTRIBUTE and node.parent is not None:
            owner = node.parent
            self.node = owner
            self.attr_index = next(
                i for i, attr in enumerate(owner.attributes) if attr is node
            )
        elif node.kind == NodeKind.NAMESPACE and node.parent is not None:
            self.node = node.parent
            self._namespaces = self._bindings(node.parent)
            self.ns_index = [prefix for prefix, _ in self._namespaces].index(
                node.local_name
            )
        else:
            self.node = node

        if root is None:
            root = self.node
            while root.parent is not None:
                root = root.parent
        self.root = root

    @staticmethod
    def _bindings(element: Node) -> List[Tuple[str, str]]:
        return list(_resolver.in_scope_namespaces(element).items())

    # Position properties

    @property
    def kind(self) -> NodeKind:
        """Node kind of the current position."""
        if self.ns_index >= 0:
            return NodeKind.NAMESPACE
        if self.attr_index >= 0:
            return NodeKind.ATTRIBUTE
        return self.node.kind

    @property
    def node_type(self) -> XPathNodeType:
        return _NODE_TYPES[self.kind]

    @property
    def local_name(self) -> str:
        if self.ns_index >= 0:
            return self._namespaces[self.ns_index][0]
        if self.attr_index >= 0:
            return self.node.attributes[self.attr_index].local_name
        if self.node.kind in (NodeKind.ELEMENT, NodeKind.DECLARATION):
            return self.node.local_name
        return ""

    @property
    def prefix(self) -> str:
        if self.ns_index >= 0:
            return ""
        if self.attr_index >= 0:
            return self.node.attributes[self.attr_index].prefix
        if self.node.kind == NodeKind.ELEMENT:
            return self.node.prefix
        return ""

    @property
    def namespace_uri(self) -> str:
        if self.ns_index >= 0:
            return ""
        if self.attr_index >= 0:
            return self.node.attributes[self.attr_index].namespace_uri
        if self.node.kind == NodeKind.ELEMENT:
            return self.node.namespace_uri
        return ""

    @property
    def value(self) -> str:
        if self.ns_index >= 0:
            return self._namespaces[self.ns_index][1]
        if self.attr_index >= 0:
            return self.node.attributes[self.attr_index].value
        return self.node.string_value

    string_value = value

    @property
    def current(self) -> Node:
        """The current position as a :class:`Node`.

        Namespace positions have no stored node; a detached NAMESPACE node is
        created whose parent is the element the binding is in scope at.
        """
        if self.ns_index >= 0:
            prefix, uri = self._namespaces[self.ns_index]
            namespace = Node(
                NodeKind.NAMESPACE,
                local_name=prefix,
                value=uri,
                document_order=self.node.document_order,
            )
            namespace.parent = self.node
            return namespace
        if self.attr_index >= 0:
            return self.node.attributes[self.attr_index]
        return self.node

    # Movement

    def clone(self) -> "NodeNavigator":
        other = object.__new__(NodeNavigator)
        other.root = self.root
        other.node = self.node
        other.attr_index = self.attr_index
        other.ns_index = self.ns_index
        other._namespaces = self._namespaces
        return other

    def _is_structural(self) -> bool:
        return self.attr_index < 0 and self.ns_index < 0

    def move_to_root(self) -> bool:
        self.node = self.root
        self.attr_index = -1
        self.ns_index = -1
        return True

    def move_to_parent(self) -> bool:
        if not self._is_structural():
            self.attr_index = -1
            self.ns_index = -1
            return True
        if self.node.parent is None:
            return False
        self.node = self.node.parent
        return True

    def move_to_first_child(self) -> bool:
        if not self._is_structural() or self.node.first_child is None:
            return False
        self.node = self.node.first_child
        return True

    def move_to_next(self) -> bool:
        if not self._is_structural() or self.node.next_sibling is None:
            return False
        self.node = self.node.next_sibling
        return True

    def move_to_previous(self) -> bool:
        if not self._is_structural() or self.node.prev_sibling is None:
            return False
        self.node = self.node.prev_sibling
        return True

    def move_to_first_attribute(self) -> bool:
        if (
            not self._is_structural()
            or self.node.kind != NodeKind.ELEMENT
            or not self.node.attributes
        ):
            return False
        self.attr_index = 0
        return True

    def move_to_next_attribute(self) -> bool:
        if self.attr_index < 0 or self.attr_index + 1 >= len(self.node.attributes):
            return False
        self.attr_index += 1
        return True

    def move_to_first_namespace(self) -> bool:
        if not self._is_structural() or self.node.kind != NodeKind.ELEMENT:
            return False
        bindings = self._bindings(self.node)
        if not bindings:
            return False
        self._namespaces = bindings
        self.ns_index = 0
        return True

    def move_to_next_namespace(self) -> bool:
        if self.ns_index < 0 or self.ns_index + 1 >= len(self._namespaces):
            return False
        self.ns_index += 1
        return True

    def move_to(self, other: XPathNavigator) -> bool:
        if not isinstance(other, NodeNavigator) or other.root is not self.root:
            return False
        self.node = other.node
        self.attr_index = other.attr_index
        self.ns_index = other.ns_index
        self._namespaces = other._namespaces
        return True

    def is_same_position(self, other: XPathNavigator) -> bool:
        return (
            isinstance(other, NodeNavigator)
            and other.node is self.node
            and other.attr_index == self.attr_index
            and other.ns_index == self.ns_index
        )

    def order_key(self) -> Tuple[int, int, int, int]:
        """``(tree, document_order, variant, index)`` of the position.

        Namespace positions sort right after their element, then attributes
        in declaration order, then the element's children. Positions in
        different trees never share a key; trees are ordered by identity.
        """
        order = self.node.document_order
        tree = id(self.root)
        if self.ns_index >= 0:
            return (tree, order, 1, self.ns_index)
        if self.attr_index >= 0:
            return (tree, order, 2, self.attr_index)
        return (tree, order, 0, 0)
