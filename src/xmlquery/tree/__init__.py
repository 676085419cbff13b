"""Document tree: node model, namespace scope resolution and tree building.

Key Components:
    Node: One item of a document (element, attribute, text, comment, declaration)
    XMLDocument: Document node with metadata and ingestion statistics
    NodeKind: Enumeration of node kinds
    NamespaceScopeResolver: Resolves qualified names against in-scope bindings
    XMLTreeBuilder: Builds a tree from lexical events
"""

from .builder import XMLTreeBuilder
from .namespaces import (
    XML_NAMESPACE,
    XMLNS_NAMESPACE,
    NamespaceScopeResolver,
    split_qname,
)
from .node import Node, NodeKind, XMLDocument

__all__ = [
    "Node",
    "NodeKind",
    "XMLDocument",
    "NamespaceScopeResolver",
    "XML_NAMESPACE",
    "XMLNS_NAMESPACE",
    "split_qname",
    "XMLTreeBuilder",
]
