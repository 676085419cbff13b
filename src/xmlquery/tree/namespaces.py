"""Namespace scope resolution.

Bindings are declared on elements (``Node.namespace_declarations``) and are
visible to the declaring element, its attributes and all its descendants until
shadowed. The default namespace applies to element names only.
"""

import re
from typing import TYPE_CHECKING, Dict, Optional, Tuple

from xmlquery.shared import IngestionError, UndeclaredPrefixError
from xmlquery.tokenization import NAME_PATTERN

from .node import Node

if TYPE_CHECKING:
    from xmlquery.tokenization import TokenPosition

XML_NAMESPACE = "http://www.w3.org/XML/1998/namespace"
XMLNS_NAMESPACE = "http://www.w3.org/2000/xmlns/"

_QNAME = re.compile(f"(?:({NAME_PATTERN}):)?({NAME_PATTERN})")

ResolvedName = Tuple[str, str, str]


def split_qname(
    qname: str,
    position: Optional["TokenPosition"] = None,
) -> Tuple[str, str]:
    """Split ``prefix:local`` into its parts; the prefix is ``""`` if absent.

    Raises:
        IngestionError: If the name is not a valid qualified name
    """
    match = _QNAME.fullmatch(qname)
    if not match or ":" in match.group(2) or ":" in (match.group(1) or ""):
        raise IngestionError(f"Malformed qualified name '{qname}'", position)
    return match.group(1) or "", match.group(2)


class NamespaceScopeResolver:
    """Resolves qualified names against the bindings in scope at an element."""

    def lookup(self, element: Node, prefix: str) -> Optional[str]:
        """Return the URI bound to ``prefix`` at ``element``.

        Returns None when the prefix is unbound. An undeclared default
        namespace (including ``xmlns=""``) yields ``""``.
        """
        if prefix == "xml":
            return XML_NAMESPACE
        node: Optional[Node] = element
        while node is not None:
            if prefix in node.namespace_declarations:
                return node.namespace_declarations[prefix]
            node = node.parent
        return "" if prefix == "" else None

    def resolve_element_name(
        self,
        element: Node,
        qname: str,
        position: Optional["TokenPosition"] = None,
    ) -> ResolvedName:
        """Resolve an element name to ``(prefix, local_name, namespace_uri)``."""
        prefix, local_name = split_qname(qname, position)
        uri = self.lookup(element, prefix)
        if uri is None:
            raise UndeclaredPrefixError(prefix, qname, position)
        return prefix, local_name, uri

    def resolve_attribute_name(
        self,
        element: Node,
        qname: str,
        position: Optional["TokenPosition"] = None,
    ) -> ResolvedName:
        """Resolve an attribute name; unprefixed attributes have no namespace."""
        prefix, local_name = split_qname(qname, position)
        if not prefix:
            return "", local_name, ""
        uri = self.lookup(element, prefix)
        if uri is None:
            raise UndeclaredPrefixError(prefix, qname, position)
        return prefix, local_name, uri

    def in_scope_namespaces(self, element: Node) -> Dict[str, str]:
        """Return the bindings visible at ``element``, ``xml`` first.

        Declarations are applied from the outermost ancestor inward, so a
        redeclared prefix keeps its place with the innermost URI.
        """
        scopes = [element]
        scopes.extend(element.iter_ancestors())

        bindings: Dict[str, str] = {"xml": XML_NAMESPACE}
        for node in reversed(scopes):
            for prefix, uri in node.namespace_declarations.items():
                if prefix == "" and uri == "":
                    bindings.pop("", None)
                else:
                    bindings[prefix] = uri
        return bindings

    def check_declaration(
        self,
        prefix: str,
        uri: str,
        position: Optional["TokenPosition"] = None,
    ) -> None:
        """Validate one ``xmlns``/``xmlns:prefix`` declaration.

        Raises:
            IngestionError: If the declaration breaks the namespace rules
        """
        if prefix == "xmlns":
            raise IngestionError("The 'xmlns' prefix must not be declared", position)
        if prefix == "xml":
            if uri != XML_NAMESPACE:
                raise IngestionError(
                    f"The 'xml' prefix may only be bound to {XML_NAMESPACE}", position
                )
            return
        if prefix:
            split_qname(prefix, position)
            if not uri:
                raise IngestionError(
                    f"Namespace prefix '{prefix}' cannot be bound to an empty URI",
                    position,
                )
        if uri in (XML_NAMESPACE, XMLNS_NAMESPACE):
            raise IngestionError(
                f"Namespace {uri} cannot be bound to prefix '{prefix}'", position
            )
