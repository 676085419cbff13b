"""XPath 1.0 core function library and type conversions.

Functions are registered with :func:`xpath_function` and receive the
evaluation context followed by their already evaluated arguments. Arity is
checked when an expression is parsed, so an implementation is only ever called
with an argument count it declared.
"""

import math
import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Dict, Optional

from xmlquery.shared import XPathTypeError

from .context import EvaluationContext, NodeSet, XPathValue

_NUMBER_STRING = re.compile(r"[ \t\n\r]*(-?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+))[ \t\n\r]*")
_XML_SPACE = re.compile(r"[ \t\n\r]+")


# Type conversions

def is_node_set(value: XPathValue) -> bool:
    return isinstance(value, list)


def number_to_string(value: float) -> str:
    """Format a number the way XPath ``string()`` does."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == int(value):
        return str(int(value))
    text = repr(value)
    if "e" in text:
        # No exponent notation in XPath 1.0 string values.
        text = format(Decimal(text), "f")
    return text


def to_string(value: XPathValue) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return number_to_string(value)
    if isinstance(value, list):
        return value[0].value if value else ""
    raise XPathTypeError(f"Cannot convert {type(value).__name__} to a string")


def string_to_number(text: str) -> float:
    match = _NUMBER_STRING.fullmatch(text)
    return float(match.group(1)) if match else math.nan


def to_number(value: XPathValue) -> float:
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, float):
        return value
    if isinstance(value, str):
        return string_to_number(value)
    if isinstance(value, list):
        return string_to_number(to_string(value))
    raise XPathTypeError(f"Cannot convert {type(value).__name__} to a number")


def to_boolean(value: XPathValue) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        return not (value == 0 or math.isnan(value))
    if isinstance(value, (str, list)):
        return len(value) > 0
    raise XPathTypeError(f"Cannot convert {type(value).__name__} to a boolean")


def xpath_round(value: float) -> float:
    if math.isnan(value) or math.isinf(value):
        return value
    return float(math.floor(value + 0.5))


# Registry

@dataclass(frozen=True)
class XPathFunction:
    """A library function with its accepted argument counts."""

    name: str
    implementation: Callable[..., XPathValue]
    min_args: int = 0
    max_args: Optional[int] = 0

    def accepts(self, count: int) -> bool:
        if count < self.min_args:
            return False
        return self.max_args is None or count <= self.max_args

    def __call__(self, context: EvaluationContext, *args: XPathValue) -> XPathValue:
        return self.implementation(context, *args)


FUNCTIONS: Dict[str, XPathFunction] = {}


def xpath_function(name: str, min_args: int = 0, max_args: Optional[int] = 0):
    """Register the decorated callable as the XPath function ``name``."""

    def register(func: Callable[..., XPathValue]) -> Callable[..., XPathValue]:
        FUNCTIONS[name] = XPathFunction(name, func, min_args, max_args)
        return func

    return register


def _node_set_argument(name: str, value: XPathValue) -> NodeSet:
    if not isinstance(value, list):
        raise XPathTypeError(f"{name}() expects a node-set argument")
    return value


def _optional_node(context: EvaluationContext, name: str, args: tuple):
    if not args:
        return context.node
    nodes = _node_set_argument(name, args[0])
    return nodes[0] if nodes else None


# Node-set functions

@xpath_function("last")
def _last(context: EvaluationContext) -> float:
    return float(context.size)


@xpath_function("position")
def _position(context: EvaluationContext) -> float:
    return float(context.position)


@xpath_function("count", 1, 1)
def _count(context: EvaluationContext, nodes: XPathValue) -> float:
    return float(len(_node_set_argument("count", nodes)))


@xpath_function("local-name", 0, 1)
def _local_name(context: EvaluationContext, *args: XPathValue) -> str:
    node = _optional_node(context, "local-name", args)
    return node.local_name if node is not None else ""


@xpath_function("namespace-uri", 0, 1)
def _namespace_uri(context: EvaluationContext, *args: XPathValue) -> str:
    node = _optional_node(context, "namespace-uri", args)
    return node.namespace_uri if node is not None else ""


@xpath_function("name", 0, 1)
def _name(context: EvaluationContext, *args: XPathValue) -> str:
    node = _optional_node(context, "name", args)
    return node.name if node is not None else ""


# String functions

@xpath_function("string", 0, 1)
def _string(context: EvaluationContext, *args: XPathValue) -> str:
    if not args:
        return context.node.value
    return to_string(args[0])


@xpath_function("concat", 2, None)
def _concat(context: EvaluationContext, *args: XPathValue) -> str:
    return "".join(to_string(arg) for arg in args)


@xpath_function("starts-with", 2, 2)
def _starts_with(context: EvaluationContext, text: XPathValue, prefix: XPathValue) -> bool:
    return to_string(text).startswith(to_string(prefix))


@xpath_function("ends-with", 2, 2)
def _ends_with(context: EvaluationContext, text: XPathValue, suffix: XPathValue) -> bool:
    return to_string(text).endswith(to_string(suffix))


@xpath_function("contains", 2, 2)
def _contains(context: EvaluationContext, text: XPathValue, part: XPathValue) -> bool:
    return to_string(part) in to_string(text)


@xpath_function("substring-before", 2, 2)
def _substring_before(context: EvaluationContext, text: XPathValue, part: XPathValue) -> str:
    text, part = to_string(text), to_string(part)
    index = text.find(part)
    return text[:index] if index != -1 else ""


@xpath_function("substring-after", 2, 2)
def _substring_after(context: EvaluationContext, text: XPathValue, part: XPathValue) -> str:
    text, part = to_string(text), to_string(part)
    index = text.find(part)
    return text[index + len(part):] if index != -1 else ""


@xpath_function("substring", 2, 3)
def _substring(
    context: EvaluationContext,
    text: XPathValue,
    start: XPathValue,
    length: Optional[XPathValue] = None,
) -> str:
    text = to_string(text)
    first = xpath_round(to_number(start))
    if length is None:
        end = math.inf
    else:
        end = first + xpath_round(to_number(length))
    # NaN bounds compare false and select nothing.
    return "".join(
        char for position, char in enumerate(text, 1) if first <= position < end
    )


@xpath_function("string-length", 0, 1)
def _string_length(context: EvaluationContext, *args: XPathValue) -> float:
    text = to_string(args[0]) if args else context.node.value
    return float(len(text))


@xpath_function("normalize-space", 0, 1)
def _normalize_space(context: EvaluationContext, *args: XPathValue) -> str:
    text = to_string(args[0]) if args else context.node.value
    return _XML_SPACE.sub(" ", text).strip(" ")


@xpath_function("translate", 3, 3)
def _translate(
    context: EvaluationContext,
    text: XPathValue,
    source: XPathValue,
    target: XPathValue,
) -> str:
    source, target = to_string(source), to_string(target)
    table: Dict[int, Optional[str]] = {}
    for index, char in enumerate(source):
        if ord(char) not in table:
            table[ord(char)] = target[index] if index < len(target) else None
    return to_string(text).translate(table)


@xpath_function("lower-case", 1, 1)
def _lower_case(context: EvaluationContext, text: XPathValue) -> str:
    return to_string(text).lower()


@xpath_function("upper-case", 1, 1)
def _upper_case(context: EvaluationContext, text: XPathValue) -> str:
    return to_string(text).upper()


# Boolean functions

@xpath_function("boolean", 1, 1)
def _boolean(context: EvaluationContext, value: XPathValue) -> bool:
    return to_boolean(value)


@xpath_function("not", 1, 1)
def _not(context: EvaluationContext, value: XPathValue) -> bool:
    return not to_boolean(value)


@xpath_function("true")
def _true(context: EvaluationContext) -> bool:
    return True


@xpath_function("false")
def _false(context: EvaluationContext) -> bool:
    return False


@xpath_function("lang", 1, 1)
def _lang(context: EvaluationContext, language: XPathValue) -> bool:
    actual = context.node.xml_lang()
    if actual is None:
        return False
    actual, wanted = actual.lower(), to_string(language).lower()
    return actual == wanted or actual.startswith(wanted + "-")


# Number functions

@xpath_function("number", 0, 1)
def _number(context: EvaluationContext, *args: XPathValue) -> float:
    if not args:
        return string_to_number(context.node.value)
    return to_number(args[0])


@xpath_function("sum", 1, 1)
def _sum(context: EvaluationContext, nodes: XPathValue) -> float:
    return sum(
        (string_to_number(node.value) for node in _node_set_argument("sum", nodes)),
        0.0,
    )


@xpath_function("floor", 1, 1)
def _floor(context: EvaluationContext, value: XPathValue) -> float:
    number = to_number(value)
    if math.isnan(number) or math.isinf(number):
        return number
    return float(math.floor(number))


@xpath_function("ceiling", 1, 1)
def _ceiling(context: EvaluationContext, value: XPathValue) -> float:
    number = to_number(value)
    if math.isnan(number) or math.isinf(number):
        return number
    return float(math.ceil(number))


@xpath_function("round", 1, 1)
def _round(context: EvaluationContext, value: XPathValue) -> float:
    return xpath_round(to_number(value))
