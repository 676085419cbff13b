"""Query API over ingested documents.

Two families of entry points share one compiled-expression cache:

* ``query``, ``query_all``, ``evaluate`` and ``compile_expression`` raise
  :class:`XPathSyntaxError` for a malformed expression so the caller can
  handle it.
* ``find``, ``find_one``, ``find_each`` and ``find_each_with_break`` are meant
  for constant expressions: a malformed one is logged at CRITICAL level and
  raised as :class:`InvalidExpressionError`.

An expression that matches nothing is never an error; it yields ``[]`` or
``None``.

Examples:
    >>> doc = parse_string('<a><b id="1"/><b id="2"/></a>')
    >>> [b.get_attribute("id") for b in find(doc, "//b")]
    ['1', '2']
    >>> evaluate(doc, "count(//b)")
    2.0
"""

import threading
from collections import OrderedDict
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple, Union

from xmlquery.navigation import NodeNavigator
from xmlquery.shared import (
    InvalidExpressionError,
    QueryConfig,
    XPathSyntaxError,
    get_logger,
)
from xmlquery.tree import Node
from xmlquery.xpath import XPath

QueryValue = Union[bool, float, str, List[Node]]
CacheKey = Tuple[str, Tuple[Tuple[str, str], ...]]

logger = get_logger(__name__, component="query")

_cache: "OrderedDict[CacheKey, CompiledExpression]" = OrderedDict()
_cache_lock = threading.RLock()
_query_config = QueryConfig()


class CompiledExpression:
    """A compiled XPath expression bound to the document model.

    Immutable and safe to share between threads and documents.
    """

    def __init__(self, expression: str, namespaces: Optional[Dict[str, str]] = None) -> None:
        """Compile ``expression``.

        Raises:
            XPathSyntaxError: If the expression is malformed
        """
        self._xpath = XPath(expression, namespaces)

    @property
    def expression(self) -> str:
        return self._xpath.expression

    @property
    def namespaces(self) -> Dict[str, str]:
        return dict(self._xpath.namespaces)

    def evaluate(self, node: Node, variables: Optional[Dict[str, Any]] = None) -> QueryValue:
        """Evaluate against ``node`` and return the raw XPath value.

        Node-sets are returned as lists of :class:`Node` in document order.
        """
        result = self._xpath.evaluate(NodeNavigator(node), _coerce_variables(variables))
        if isinstance(result, list):
            return [nav.current for nav in result]
        return result

    def select(self, node: Node, variables: Optional[Dict[str, Any]] = None) -> Iterator[Node]:
        """Lazily yield the selected nodes in document order.

        Raises:
            XPathTypeError: If the expression does not yield a node-set
        """
        for nav in self._xpath.select(NodeNavigator(node), _coerce_variables(variables)):
            yield nav.current

    def __repr__(self) -> str:
        return f"CompiledExpression({self.expression!r})"


def _coerce_variables(variables: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Wrap Node values of variables in navigators."""
    if not variables:
        return variables
    coerced = {}
    for name, value in variables.items():
        if isinstance(value, Node):
            value = [NodeNavigator(value)]
        elif isinstance(value, (list, tuple)):
            value = [NodeNavigator(item) if isinstance(item, Node) else item for item in value]
        coerced[name] = value
    return coerced


# Compile cache

def configure(config: QueryConfig) -> None:
    """Apply ``config`` to the compile cache shared by the whole process.

    Disabling the cache drops every cached expression; a smaller limit
    evicts the least recently used ones.
    """
    global _query_config
    with _cache_lock:
        _query_config = config
        if not config.enable_expression_cache:
            _cache.clear()
        else:
            _evict()


def clear_cache() -> None:
    """Drop every cached compiled expression."""
    with _cache_lock:
        _cache.clear()


def cache_info() -> Dict[str, Any]:
    """Return the size and settings of the compile cache."""
    with _cache_lock:
        return {
            "size": len(_cache),
            "limit": _query_config.cache_size_limit,
            "enabled": _query_config.enable_expression_cache,
        }


def _evict() -> None:
    while len(_cache) > _query_config.cache_size_limit:
        _cache.popitem(last=False)


def compile_expression(
    expr: str,
    namespaces: Optional[Dict[str, str]] = None,
) -> CompiledExpression:
    """Compile ``expr``, reusing a cached compilation when available.

    Args:
        expr: XPath 1.0 expression
        namespaces: Prefix to URI mapping for prefixed name tests

    Raises:
        XPathSyntaxError: If the expression is malformed, calls an unknown
            function or passes the wrong number of arguments
    """
    if not isinstance(expr, str):
        raise XPathSyntaxError(f"Expression must be a string, not {type(expr).__name__}")

    key: CacheKey = (expr, tuple(sorted(namespaces.items())) if namespaces else ())
    with _cache_lock:
        cached = _cache.get(key)
        if cached is not None:
            _cache.move_to_end(key)
            return cached

    compiled = CompiledExpression(expr, namespaces)

    with _cache_lock:
        if _query_config.enable_expression_cache:
            _cache[key] = compiled
            _evict()
    return compiled


# Error-returning entry points

def query_all(
    node: Node,
    expr: str,
    namespaces: Optional[Dict[str, str]] = None,
    variables: Optional[Dict[str, Any]] = None,
) -> List[Node]:
    """Return every node ``expr`` selects from ``node``, in document order.

    Raises:
        XPathSyntaxError: If the expression is malformed
    """
    return list(compile_expression(expr, namespaces).select(node, variables))


def query(
    node: Node,
    expr: str,
    namespaces: Optional[Dict[str, str]] = None,
    variables: Optional[Dict[str, Any]] = None,
) -> Optional[Node]:
    """Return the first node ``expr`` selects, or None.

    Raises:
        XPathSyntaxError: If the expression is malformed
    """
    for result in compile_expression(expr, namespaces).select(node, variables):
        return result
    return None


def evaluate(
    node: Node,
    expr: str,
    namespaces: Optional[Dict[str, str]] = None,
    variables: Optional[Dict[str, Any]] = None,
) -> QueryValue:
    """Evaluate ``expr`` against ``node`` and return the XPath value.

    Raises:
        XPathSyntaxError: If the expression is malformed
    """
    return compile_expression(expr, namespaces).evaluate(node, variables)


# Constant-expression entry points

def _compile_constant(expr: str) -> CompiledExpression:
    try:
        return compile_expression(expr)
    except XPathSyntaxError as e:
        logger.critical(
            "Invalid XPath expression",
            extra={"expression": expr, "offset": e.offset, "reason": e.message},
        )
        raise InvalidExpressionError(e.message, e.expression, e.offset) from e


def find(node: Node, expr: str) -> List[Node]:
    """Return every node ``expr`` selects from ``node``, in document order.

    Raises:
        InvalidExpressionError: If the expression is malformed
    """
    return list(_compile_constant(expr).select(node))


def find_one(node: Node, expr: str) -> Optional[Node]:
    """Return the first node ``expr`` selects, or None.

    Raises:
        InvalidExpressionError: If the expression is malformed
    """
    for result in _compile_constant(expr).select(node):
        return result
    return None


def find_each(node: Node, expr: str, callback: Callable[[int, Node], Any]) -> None:
    """Call ``callback(index, node)`` for each selected node in document order."""
    for index, result in enumerate(_compile_constant(expr).select(node)):
        callback(index, result)


def find_each_with_break(
    node: Node,
    expr: str,
    callback: Callable[[int, Node], bool],
) -> None:
    """Like :func:`find_each`, stopping as soon as ``callback`` returns False."""
    for index, result in enumerate(_compile_constant(expr).select(node)):
        if not callback(index, result):
            break
