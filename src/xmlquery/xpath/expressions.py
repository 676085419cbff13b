"""Expression tree of compiled XPath expressions.

Every node of the tree has an ``evaluate(context)`` method returning one of
the four XPath value types: ``bool``, ``float``, ``str`` or a node-set (a list
of navigators in document order without duplicates). ``repr()`` renders the
tree back as an expression.
"""

import heapq
import itertools
import math
import operator
from typing import Callable, Dict, Iterator, List, Optional, Sequence

from xmlquery.shared import UnboundVariableError, XPathTypeError

from .context import EvaluationContext, NodeSet, XPathValue
from .functions import XPathFunction, to_boolean, to_number, to_string
from .navigator import XPathNavigator, XPathNodeType


def document_order(nodes: Sequence[XPathNavigator]) -> NodeSet:
    """Sort ``nodes`` into document order and drop duplicate positions."""
    unique = {}
    for node in nodes:
        unique.setdefault(node.order_key(), node)
    return [unique[key] for key in sorted(unique)]


# Axes. Each generator yields independent navigators in axis order, so the
# reverse axes yield nearest node first.

def _self_axis(nav: XPathNavigator) -> Iterator[XPathNavigator]:
    yield nav.clone()


def _child_axis(nav: XPathNavigator) -> Iterator[XPathNavigator]:
    cursor = nav.clone()
    if not cursor.move_to_first_child():
        return
    yield cursor.clone()
    while cursor.move_to_next():
        yield cursor.clone()


def _descendant_axis(nav: XPathNavigator) -> Iterator[XPathNavigator]:
    cursor = nav.clone()
    if not cursor.move_to_first_child():
        return
    depth = 1
    while True:
        yield cursor.clone()
        if cursor.move_to_first_child():
            depth += 1
            continue
        while not cursor.move_to_next():
            cursor.move_to_parent()
            depth -= 1
            if depth == 0:
                return


def _descendant_or_self_axis(nav: XPathNavigator) -> Iterator[XPathNavigator]:
    yield nav.clone()
    yield from _descendant_axis(nav)


def _parent_axis(nav: XPathNavigator) -> Iterator[XPathNavigator]:
    cursor = nav.clone()
    if cursor.move_to_parent():
        yield cursor


def _ancestor_axis(nav: XPathNavigator) -> Iterator[XPathNavigator]:
    cursor = nav.clone()
    while cursor.move_to_parent():
        yield cursor.clone()


def _ancestor_or_self_axis(nav: XPathNavigator) -> Iterator[XPathNavigator]:
    yield nav.clone()
    yield from _ancestor_axis(nav)


def _following_sibling_axis(nav: XPathNavigator) -> Iterator[XPathNavigator]:
    cursor = nav.clone()
    while cursor.move_to_next():
        yield cursor.clone()


def _preceding_sibling_axis(nav: XPathNavigator) -> Iterator[XPathNavigator]:
    cursor = nav.clone()
    while cursor.move_to_previous():
        yield cursor.clone()


def _is_owned(nav: XPathNavigator) -> bool:
    return nav.node_type in (XPathNodeType.ATTRIBUTE, XPathNodeType.NAMESPACE)


def _following_axis(nav: XPathNavigator) -> Iterator[XPathNavigator]:
    cursor = nav.clone()
    if _is_owned(cursor):
        # Children of the owning element follow its attributes.
        cursor.move_to_parent()
        yield from _descendant_axis(cursor)
    while True:
        sibling = cursor.clone()
        while sibling.move_to_next():
            yield sibling.clone()
            yield from _descendant_axis(sibling)
        if not cursor.move_to_parent():
            return


def _preceding_axis(nav: XPathNavigator) -> Iterator[XPathNavigator]:
    cursor = nav.clone()
    if _is_owned(cursor):
        cursor.move_to_parent()
    while True:
        sibling = cursor.clone()
        while sibling.move_to_previous():
            yield from reversed(list(_descendant_axis(sibling)))
            yield sibling.clone()
        if not cursor.move_to_parent():
            return


def _attribute_axis(nav: XPathNavigator) -> Iterator[XPathNavigator]:
    cursor = nav.clone()
    if not cursor.move_to_first_attribute():
        return
    yield cursor.clone()
    while cursor.move_to_next_attribute():
        yield cursor.clone()


def _namespace_axis(nav: XPathNavigator) -> Iterator[XPathNavigator]:
    cursor = nav.clone()
    if not cursor.move_to_first_namespace():
        return
    yield cursor.clone()
    while cursor.move_to_next_namespace():
        yield cursor.clone()


AXES: Dict[str, Callable[[XPathNavigator], Iterator[XPathNavigator]]] = {
    "ancestor": _ancestor_axis,
    "ancestor-or-self": _ancestor_or_self_axis,
    "attribute": _attribute_axis,
    "child": _child_axis,
    "descendant": _descendant_axis,
    "descendant-or-self": _descendant_or_self_axis,
    "following": _following_axis,
    "following-sibling": _following_sibling_axis,
    "namespace": _namespace_axis,
    "parent": _parent_axis,
    "preceding": _preceding_axis,
    "preceding-sibling": _preceding_sibling_axis,
    "self": _self_axis,
}


def principal_node_type(axis: str) -> XPathNodeType:
    if axis == "attribute":
        return XPathNodeType.ATTRIBUTE
    if axis == "namespace":
        return XPathNodeType.NAMESPACE
    return XPathNodeType.ELEMENT


# Node tests

class NameTest:
    """``*``, ``prefix:*``, ``name`` or ``prefix:name``.

    An unprefixed name matches the local name in any namespace. A prefix is
    resolved through the expression's namespace mapping, falling back to the
    bindings in scope at the candidate node.
    """

    __slots__ = ["principal_type", "prefix", "local_name"]

    def __init__(self, principal_type: XPathNodeType, prefix: str, local_name: str) -> None:
        self.principal_type = principal_type
        self.prefix = prefix
        self.local_name = local_name

    def __call__(self, nav: XPathNavigator, context: EvaluationContext) -> bool:
        if nav.node_type != self.principal_type:
            return False
        if self.local_name != "*" and nav.local_name != self.local_name:
            return False
        if not self.prefix:
            return True
        uri = context.resolve_prefix(self.prefix, nav)
        return uri is not None and nav.namespace_uri == uri

    def __repr__(self) -> str:
        if self.prefix:
            return f"{self.prefix}:{self.local_name}"
        return self.local_name


class NodeTypeTest:
    """``node()``, ``text()``, ``comment()`` or ``processing-instruction()``."""

    __slots__ = ["node_type", "target"]

    _TYPES = {
        "text": XPathNodeType.TEXT,
        "comment": XPathNodeType.COMMENT,
        "processing-instruction": XPathNodeType.PROCESSING_INSTRUCTION,
    }

    def __init__(self, node_type: str, target: Optional[str] = None) -> None:
        self.node_type = node_type
        self.target = target

    def __call__(self, nav: XPathNavigator, context: EvaluationContext) -> bool:
        if self.node_type == "node":
            return True
        if nav.node_type != self._TYPES[self.node_type]:
            return False
        return self.target is None or nav.local_name == self.target

    def __repr__(self) -> str:
        if self.target is not None:
            return f"{self.node_type}({self.target!r})"
        return f"{self.node_type}()"


# Expressions

class Expression:
    """Base class of expression tree nodes."""

    __slots__ = []

    def evaluate(self, context: EvaluationContext) -> XPathValue:
        raise NotImplementedError

    def evaluate_node_set(self, context: EvaluationContext) -> NodeSet:
        value = self.evaluate(context)
        if not isinstance(value, list):
            raise XPathTypeError(f"Expression {self!r} does not evaluate to a node-set")
        return value

    def iter_node_set(self, context: EvaluationContext) -> Iterator[XPathNavigator]:
        """Yield the node-set in document order.

        Location paths produce their nodes lazily; other expressions
        evaluate fully first.
        """
        yield from self.evaluate_node_set(context)


def _filter(
    nodes: List[XPathNavigator],
    predicates: Sequence[Expression],
    context: EvaluationContext,
) -> List[XPathNavigator]:
    """Apply predicates; positions follow the order of ``nodes``."""
    for predicate in predicates:
        size = len(nodes)
        kept = []
        for position, node in enumerate(nodes, 1):
            result = predicate.evaluate(context.derive(node, position, size))
            if isinstance(result, float):
                if result == position:
                    kept.append(node)
            elif to_boolean(result):
                kept.append(node)
        nodes = kept
    return nodes


class Step:
    """One location step: axis, node test and predicates."""

    __slots__ = ["axis", "node_test", "predicates"]

    def __init__(self, axis: str, node_test, predicates: Optional[List[Expression]] = None) -> None:
        self.axis = axis
        self.node_test = node_test
        self.predicates = predicates or []

    def select(self, nav: XPathNavigator, context: EvaluationContext) -> List[XPathNavigator]:
        """Nodes of this step for one context node, in axis order."""
        candidates = [
            node for node in AXES[self.axis](nav) if self.node_test(node, context)
        ]
        return _filter(candidates, self.predicates, context)

    def iter_select(self, nav: XPathNavigator, context: EvaluationContext) -> Iterator[XPathNavigator]:
        """Like :meth:`select`, but lazy when there are no predicates.

        Predicates see proximity positions and ``last()``, so with
        predicates the nodes of one context node are gathered first.
        """
        if self.predicates:
            yield from self.select(nav, context)
            return
        for node in AXES[self.axis](nav):
            if self.node_test(node, context):
                yield node

    def __repr__(self) -> str:
        predicates = "".join(f"[{p!r}]" for p in self.predicates)
        return f"{self.axis}::{self.node_test!r}{predicates}"


# Axes whose nodes precede the context node in document order.
_REVERSE_AXES = frozenset(
    ["ancestor", "ancestor-or-self", "parent", "preceding", "preceding-sibling"]
)


def _stream_step(
    nodes: Iterator[XPathNavigator],
    step: Step,
    context: EvaluationContext,
) -> Iterator[XPathNavigator]:
    """Apply ``step`` to context ``nodes`` given in document order.

    On a forward axis every selected node is at or after its context node,
    so the per-context streams are merged lazily: a context node is only
    opened once the smallest pending result is not before it.
    """
    if step.axis in _REVERSE_AXES:
        selected: List[XPathNavigator] = []
        for node in nodes:
            selected.extend(step.select(node, context))
        yield from document_order(selected)
        return

    heap: List[tuple] = []
    tiebreak = itertools.count()

    def push(results: Iterator[XPathNavigator]) -> None:
        node = next(results, None)
        if node is not None:
            heapq.heappush(heap, (node.order_key(), next(tiebreak), node, results))

    pending = next(nodes, None)
    last_key = None
    while True:
        while pending is not None and (not heap or pending.order_key() <= heap[0][0]):
            push(step.iter_select(pending, context))
            pending = next(nodes, None)
        if not heap:
            return
        key, _, node, results = heapq.heappop(heap)
        push(results)
        if key != last_key:
            last_key = key
            yield node


def _stream_steps(
    nodes: Iterator[XPathNavigator],
    steps: Sequence[Step],
    context: EvaluationContext,
) -> Iterator[XPathNavigator]:
    for step in steps:
        nodes = _stream_step(nodes, step, context)
    return nodes


class LocationPath(Expression):
    """Relative or absolute location path."""

    __slots__ = ["absolute", "steps"]

    def __init__(self, absolute: bool, steps: List[Step]) -> None:
        self.absolute = absolute
        self.steps = steps

    def evaluate(self, context: EvaluationContext) -> NodeSet:
        return list(self.iter_node_set(context))

    def iter_node_set(self, context: EvaluationContext) -> Iterator[XPathNavigator]:
        start = context.node.clone()
        if self.absolute:
            start.move_to_root()
        return _stream_steps(iter([start]), self.steps, context)

    def __repr__(self) -> str:
        path = "/".join(repr(step) for step in self.steps)
        return f"/{path}" if self.absolute else path


class FilterExpr(Expression):
    """Primary expression followed by predicates, e.g. ``(//a)[1]``."""

    __slots__ = ["primary", "predicates"]

    def __init__(self, primary: Expression, predicates: List[Expression]) -> None:
        self.primary = primary
        self.predicates = predicates

    def evaluate(self, context: EvaluationContext) -> NodeSet:
        nodes = self.primary.evaluate_node_set(context)
        return _filter(list(nodes), self.predicates, context)

    def __repr__(self) -> str:
        predicates = "".join(f"[{p!r}]" for p in self.predicates)
        return f"({self.primary!r}){predicates}"


class PathExpr(Expression):
    """Filter expression continued by a relative location path."""

    __slots__ = ["source", "steps"]

    def __init__(self, source: Expression, steps: List[Step]) -> None:
        self.source = source
        self.steps = steps

    def evaluate(self, context: EvaluationContext) -> NodeSet:
        return list(self.iter_node_set(context))

    def iter_node_set(self, context: EvaluationContext) -> Iterator[XPathNavigator]:
        nodes = document_order(self.source.evaluate_node_set(context))
        return _stream_steps(iter(nodes), self.steps, context)

    def __repr__(self) -> str:
        return f"{self.source!r}/" + "/".join(repr(step) for step in self.steps)


class UnionExpr(Expression):
    """The union operator ``|``."""

    __slots__ = ["lval", "rval"]

    def __init__(self, lval: Expression, rval: Expression) -> None:
        self.lval = lval
        self.rval = rval

    def evaluate(self, context: EvaluationContext) -> NodeSet:
        return document_order(
            self.lval.evaluate_node_set(context) + self.rval.evaluate_node_set(context)
        )

    def __repr__(self) -> str:
        return f"{self.lval!r} | {self.rval!r}"


class OrExpr(Expression):
    """The boolean operator ``or``."""

    __slots__ = ["lval", "rval"]

    def __init__(self, lval: Expression, rval: Expression) -> None:
        self.lval = lval
        self.rval = rval

    def evaluate(self, context: EvaluationContext) -> bool:
        if to_boolean(self.lval.evaluate(context)):
            return True
        return to_boolean(self.rval.evaluate(context))

    def __repr__(self) -> str:
        return f"{self.lval!r} or {self.rval!r}"


class AndExpr(Expression):
    """The boolean operator ``and``."""

    __slots__ = ["lval", "rval"]

    def __init__(self, lval: Expression, rval: Expression) -> None:
        self.lval = lval
        self.rval = rval

    def evaluate(self, context: EvaluationContext) -> bool:
        if not to_boolean(self.lval.evaluate(context)):
            return False
        return to_boolean(self.rval.evaluate(context))

    def __repr__(self) -> str:
        return f"{self.lval!r} and {self.rval!r}"


_COMPARISONS = {
    "=": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


def _compare_atomic(op: str, lval: XPathValue, rval: XPathValue) -> bool:
    if op in ("=", "!="):
        if isinstance(lval, bool) or isinstance(rval, bool):
            lval, rval = to_boolean(lval), to_boolean(rval)
        elif isinstance(lval, float) or isinstance(rval, float):
            lval, rval = to_number(lval), to_number(rval)
        else:
            lval, rval = to_string(lval), to_string(rval)
    else:
        lval, rval = to_number(lval), to_number(rval)
    return _COMPARISONS[op](lval, rval)


def compare(op: str, lval: XPathValue, rval: XPathValue) -> bool:
    """Compare two values with the XPath 1.0 rules for ``op``.

    A comparison involving a node-set is true if it holds for at least one
    node (or pair of nodes), using the nodes' string values.
    """
    left_is_set = isinstance(lval, list)
    right_is_set = isinstance(rval, list)
    if left_is_set and isinstance(rval, bool):
        return _compare_atomic(op, to_boolean(lval), rval)
    if right_is_set and isinstance(lval, bool):
        return _compare_atomic(op, lval, to_boolean(rval))
    if left_is_set and right_is_set:
        right_values = [node.value for node in rval]
        return any(
            _compare_atomic(op, node.value, value)
            for node in lval
            for value in right_values
        )
    if left_is_set:
        return any(_compare_atomic(op, node.value, rval) for node in lval)
    if right_is_set:
        return any(_compare_atomic(op, lval, node.value) for node in rval)
    return _compare_atomic(op, lval, rval)


class ComparisonExpr(Expression):
    """Equality and relational operators."""

    __slots__ = ["op", "lval", "rval"]

    def __init__(self, op: str, lval: Expression, rval: Expression) -> None:
        self.op = op
        self.lval = lval
        self.rval = rval

    def evaluate(self, context: EvaluationContext) -> bool:
        return compare(self.op, self.lval.evaluate(context), self.rval.evaluate(context))

    def __repr__(self) -> str:
        return f"{self.lval!r} {self.op} {self.rval!r}"


def _divide(lval: float, rval: float) -> float:
    if rval == 0:
        if lval == 0 or math.isnan(lval):
            return math.nan
        sign = math.copysign(1.0, lval) * math.copysign(1.0, rval)
        return math.copysign(math.inf, sign)
    return lval / rval


def _modulo(lval: float, rval: float) -> float:
    if rval == 0 or math.isinf(lval) or math.isnan(rval):
        return math.nan
    return math.fmod(lval, rval)


_ARITHMETIC: Dict[str, Callable[[float, float], float]] = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "div": _divide,
    "mod": _modulo,
}


class ArithmeticExpr(Expression):
    """``+``, ``-``, ``*``, ``div`` and ``mod``."""

    __slots__ = ["op", "lval", "rval"]

    def __init__(self, op: str, lval: Expression, rval: Expression) -> None:
        self.op = op
        self.lval = lval
        self.rval = rval

    def evaluate(self, context: EvaluationContext) -> float:
        lval = to_number(self.lval.evaluate(context))
        rval = to_number(self.rval.evaluate(context))
        return _ARITHMETIC[self.op](lval, rval)

    def __repr__(self) -> str:
        return f"{self.lval!r} {self.op} {self.rval!r}"


class NegateExpr(Expression):
    """Unary minus."""

    __slots__ = ["expr"]

    def __init__(self, expr: Expression) -> None:
        self.expr = expr

    def evaluate(self, context: EvaluationContext) -> float:
        return -to_number(self.expr.evaluate(context))

    def __repr__(self) -> str:
        return f"-{self.expr!r}"


class StringLiteral(Expression):
    """A string literal."""

    __slots__ = ["text"]

    def __init__(self, text: str) -> None:
        self.text = text

    def evaluate(self, context: EvaluationContext) -> str:
        return self.text

    def __repr__(self) -> str:
        quote = "'" if '"' in self.text else '"'
        return f"{quote}{self.text}{quote}"


class NumberLiteral(Expression):
    """A number literal."""

    __slots__ = ["number"]

    def __init__(self, number: float) -> None:
        self.number = number

    def evaluate(self, context: EvaluationContext) -> float:
        return self.number

    def __repr__(self) -> str:
        return to_string(self.number)


class VariableReference(Expression):
    """A ``$name`` reference bound at evaluation time."""

    __slots__ = ["name"]

    def __init__(self, name: str) -> None:
        self.name = name

    def evaluate(self, context: EvaluationContext) -> XPathValue:
        if self.name not in context.variables:
            raise UnboundVariableError(self.name)
        value = context.variables[self.name]
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            return float(value)
        if isinstance(value, str):
            return value
        if isinstance(value, (list, tuple)):
            return document_order(value)
        raise XPathTypeError(
            f"Variable ${self.name} has unsupported type {type(value).__name__}"
        )

    def __repr__(self) -> str:
        return f"${self.name}"


class FunctionCall(Expression):
    """Call of a library function; arguments are evaluated eagerly."""

    __slots__ = ["function", "args"]

    def __init__(self, function: XPathFunction, args: List[Expression]) -> None:
        self.function = function
        self.args = args

    def evaluate(self, context: EvaluationContext) -> XPathValue:
        values = [arg.evaluate(context) for arg in self.args]
        return self.function(context, *values)

    def __repr__(self) -> str:
        args = ", ".join(repr(arg) for arg in self.args)
        return f"{self.function.name}({args})"
