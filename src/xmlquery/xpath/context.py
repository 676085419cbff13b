"""Evaluation context for XPath expressions."""

from typing import Any, Dict, List, Optional, Union

from .navigator import XPathNavigator

NodeSet = List[XPathNavigator]
XPathValue = Union[bool, float, str, NodeSet]


class EvaluationContext:
    """Context node, proximity position and size, variables and namespaces.

    Contexts are never mutated during evaluation; :meth:`derive` returns a
    new context for a different node.
    """

    __slots__ = ("node", "position", "size", "variables", "namespaces")

    def __init__(
        self,
        node: XPathNavigator,
        position: int = 1,
        size: int = 1,
        variables: Optional[Dict[str, Any]] = None,
        namespaces: Optional[Dict[str, str]] = None,
    ) -> None:
        self.node = node
        self.position = position
        self.size = size
        self.variables = variables or {}
        self.namespaces = namespaces or {}

    def derive(self, node: XPathNavigator, position: int = 1, size: int = 1) -> "EvaluationContext":
        """Return a context for ``node`` sharing variables and namespaces."""
        return EvaluationContext(node, position, size, self.variables, self.namespaces)

    def resolve_prefix(self, prefix: str, node: Optional[XPathNavigator] = None) -> Optional[str]:
        """Resolve ``prefix`` through the static mapping, then ``node``'s scope."""
        if prefix in self.namespaces:
            return self.namespaces[prefix]
        return (node or self.node).lookup_namespace(prefix)

    def __repr__(self) -> str:
        return f"<EvaluationContext {self.node!r} {self.position}/{self.size}>"
