"""XPath 1.0 expression engine.

The engine evaluates against the :class:`XPathNavigator` contract only and
knows nothing about the concrete document model.

Most callers use the query functions of :mod:`xmlquery.api.query`; this
package is for code that brings its own navigator.
"""

from typing import Any, Dict, Iterator, Optional

from .context import EvaluationContext, NodeSet, XPathValue
from .expressions import Expression, document_order
from .functions import (
    FUNCTIONS,
    XPathFunction,
    number_to_string,
    to_boolean,
    to_number,
    to_string,
    xpath_function,
)
from .lexer import XPathToken, XPathTokenType, tokenize
from .navigator import XPathNavigator, XPathNodeType
from .parser import XPathParser, parse_expression


class XPath:
    """Parsed XPath expression, reusable across documents and threads."""

    def __init__(self, expression: str, namespaces: Optional[Dict[str, str]] = None) -> None:
        """Parse ``expression``.

        Args:
            expression: XPath 1.0 expression
            namespaces: Prefix to URI mapping for prefixed name tests

        Raises:
            XPathSyntaxError: If the expression is malformed
        """
        self.expression = expression
        self.namespaces = dict(namespaces or {})
        self.parsed_expression = parse_expression(expression)

    def evaluate(
        self,
        navigator: XPathNavigator,
        variables: Optional[Dict[str, Any]] = None,
    ) -> XPathValue:
        """Evaluate with ``navigator`` as the context node."""
        context = EvaluationContext(
            navigator, variables=variables, namespaces=self.namespaces
        )
        return self.parsed_expression.evaluate(context)

    def select(
        self,
        navigator: XPathNavigator,
        variables: Optional[Dict[str, Any]] = None,
    ) -> Iterator[XPathNavigator]:
        """Lazily yield the selected nodes in document order.

        Location paths are walked only as far as the caller consumes them.

        Raises:
            XPathTypeError: If the expression does not yield a node-set
        """
        context = EvaluationContext(
            navigator, variables=variables, namespaces=self.namespaces
        )
        yield from self.parsed_expression.iter_node_set(context)

    def __repr__(self) -> str:
        return f"XPath({self.expression!r})"


__all__ = [
    "XPath",
    "EvaluationContext",
    "NodeSet",
    "XPathValue",
    "Expression",
    "document_order",
    "FUNCTIONS",
    "XPathFunction",
    "xpath_function",
    "number_to_string",
    "to_boolean",
    "to_number",
    "to_string",
    "XPathToken",
    "XPathTokenType",
    "tokenize",
    "XPathNavigator",
    "XPathNodeType",
    "XPathParser",
    "parse_expression",
]
