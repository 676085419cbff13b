"""XPath 1.0 expression lexer.

Applies the disambiguation rules of XPath 1.0 section 3.7: after a token that
can end an operand, ``*`` is the multiply operator and ``and``/``or``/``mod``/
``div`` are operators; a name followed by ``(`` is a function name or node
type; a name followed by ``::`` is an axis name.
"""

import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import List, Optional

from xmlquery.shared import XPathSyntaxError

_NCNAME_START = (
    r"A-Z_a-z\u00C0-\u00D6\u00D8-\u00F6\u00F8-\u02FF\u0370-\u037D"
    r"\u037F-\u1FFF\u200C-\u200D\u2070-\u218F\u2C00-\u2FEF\u3001-\uD7FF"
    r"\uF900-\uFDCF\uFDF0-\uFFFD\U00010000-\U000EFFFF"
)
_NCNAME_CHARS = _NCNAME_START + r"\-.0-9\u00B7\u0300-\u036F\u203F-\u2040"
NCNAME_PATTERN = f"[{_NCNAME_START}][{_NCNAME_CHARS}]*"

_NCNAME = re.compile(NCNAME_PATTERN)
_NUMBER = re.compile(r"[0-9]+(?:\.[0-9]*)?|\.[0-9]+")
_WHITESPACE = re.compile(r"[ \t\n\r]*")

NODE_TYPES = frozenset(["comment", "text", "processing-instruction", "node"])
OPERATOR_NAMES = frozenset(["and", "or", "mod", "div"])
AXIS_NAMES = frozenset(
    [
        "ancestor",
        "ancestor-or-self",
        "attribute",
        "child",
        "descendant",
        "descendant-or-self",
        "following",
        "following-sibling",
        "namespace",
        "parent",
        "preceding",
        "preceding-sibling",
        "self",
    ]
)

# Two-character symbols must be tried before their one-character prefixes.
_SYMBOLS = ("//", "::", "..", "!=", "<=", ">=", "/", "(", ")", "[", "]", ".",
            "@", ",", "|", "+", "-", "=", "<", ">")
_OPERATOR_SYMBOLS = frozenset(
    ["/", "//", "|", "+", "-", "=", "!=", "<", "<=", ">", ">="]
)


class XPathTokenType(Enum):
    """Token kinds of the XPath 1.0 expression lexical structure."""

    SYMBOL = auto()  # ( ) [ ] . .. @ , ::
    OPERATOR = auto()  # / // | + - = != < <= > >= * and or mod div
    NAME_TEST = auto()  # * prefix:* QName
    NODE_TYPE = auto()  # comment text processing-instruction node
    FUNCTION_NAME = auto()
    AXIS_NAME = auto()
    LITERAL = auto()
    NUMBER = auto()
    VARIABLE = auto()
    END = auto()


@dataclass(frozen=True)
class XPathToken:
    """A lexical token of an expression; ``offset`` is its start index."""

    type: XPathTokenType
    value: str
    offset: int

    def is_symbol(self, *values: str) -> bool:
        return self.type == XPathTokenType.SYMBOL and self.value in values

    def is_operator(self, *values: str) -> bool:
        return self.type == XPathTokenType.OPERATOR and self.value in values


class XPathLexer:
    """Splits an expression string into :class:`XPathToken` objects."""

    def __init__(self, expression: str) -> None:
        self.expression = expression
        self.tokens: List[XPathToken] = []
        self._pos = 0

    def tokenize(self) -> List[XPathToken]:
        """Tokenize the whole expression; the list ends with an END token.

        Raises:
            XPathSyntaxError: On characters that cannot start a token
        """
        text = self.expression
        while True:
            self._pos = _WHITESPACE.match(text, self._pos).end()
            if self._pos >= len(text):
                break
            self.tokens.append(self._read_token())
        self.tokens.append(XPathToken(XPathTokenType.END, "", len(text)))
        return self.tokens

    def _error(self, message: str, offset: Optional[int] = None) -> XPathSyntaxError:
        return XPathSyntaxError(
            message, self.expression, self._pos if offset is None else offset
        )

    def _operator_expected(self) -> bool:
        """True when the previous token can end an operand."""
        if not self.tokens:
            return False
        prev = self.tokens[-1]
        if prev.is_symbol("@", "::", "(", "[", ","):
            return False
        return prev.type != XPathTokenType.OPERATOR

    def _next_significant(self, pos: int) -> str:
        pos = _WHITESPACE.match(self.expression, pos).end()
        return self.expression[pos:pos + 2]

    def _read_token(self) -> XPathToken:
        text = self.expression
        start = self._pos
        char = text[start]

        if char in "\"'":
            close = text.find(char, start + 1)
            if close == -1:
                raise self._error("Unterminated string literal")
            self._pos = close + 1
            return XPathToken(XPathTokenType.LITERAL, text[start + 1:close], start)

        number = _NUMBER.match(text, start)
        if number:
            self._pos = number.end()
            return XPathToken(XPathTokenType.NUMBER, number.group(), start)

        if char == "$":
            name = self._read_qname(start + 1)
            if name is None:
                raise self._error("Expected a variable name after '$'")
            return XPathToken(XPathTokenType.VARIABLE, name, start)

        if char == "*":
            self._pos = start + 1
            if self._operator_expected():
                return XPathToken(XPathTokenType.OPERATOR, "*", start)
            return XPathToken(XPathTokenType.NAME_TEST, "*", start)

        for symbol in _SYMBOLS:
            if text.startswith(symbol, start):
                self._pos = start + len(symbol)
                kind = (
                    XPathTokenType.OPERATOR
                    if symbol in _OPERATOR_SYMBOLS
                    else XPathTokenType.SYMBOL
                )
                return XPathToken(kind, symbol, start)

        if _NCNAME.match(text, start):
            return self._read_name(start)

        raise self._error(f"Unexpected character {char!r}")

    def _read_qname(self, start: int) -> Optional[str]:
        text = self.expression
        match = _NCNAME.match(text, start)
        if not match:
            return None
        end = match.end()
        if text.startswith(":", end) and not text.startswith("::", end):
            local = _NCNAME.match(text, end + 1)
            if local:
                end = local.end()
        self._pos = end
        return text[start:end]

    def _read_name(self, start: int) -> XPathToken:
        text = self.expression
        match = _NCNAME.match(text, start)
        name = match.group()
        end = match.end()

        if self._operator_expected():
            if name not in OPERATOR_NAMES:
                raise self._error(f"Expected an operator, found {name!r}", start)
            self._pos = end
            return XPathToken(XPathTokenType.OPERATOR, name, start)

        # prefix:* and prefix:local
        if text.startswith(":", end) and not text.startswith("::", end):
            if text.startswith("*", end + 1):
                self._pos = end + 2
                return XPathToken(XPathTokenType.NAME_TEST, f"{name}:*", start)
            local = _NCNAME.match(text, end + 1)
            if not local:
                raise self._error(f"Malformed qualified name after {name!r}:", start)
            end = local.end()
            name = text[start:end]

        self._pos = end
        following = self._next_significant(end)
        if following.startswith("::") and ":" not in name:
            if name not in AXIS_NAMES:
                raise self._error(f"Unknown axis {name!r}", start)
            return XPathToken(XPathTokenType.AXIS_NAME, name, start)
        if following.startswith("("):
            if name in NODE_TYPES:
                return XPathToken(XPathTokenType.NODE_TYPE, name, start)
            return XPathToken(XPathTokenType.FUNCTION_NAME, name, start)
        return XPathToken(XPathTokenType.NAME_TEST, name, start)


def tokenize(expression: str) -> List[XPathToken]:
    """Tokenize ``expression`` into a list ending with an END token."""
    return XPathLexer(expression).tokenize()
