"""Exception hierarchy for xmlquery.

Ingestion failures and expression compile failures are always raised to the
immediate caller. An expression that matches nothing is never an error.
"""

from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from xmlquery.tokenization.tokenizer import TokenPosition


class XMLQueryError(Exception):
    """Base class for every error raised by xmlquery."""


class IngestionError(XMLQueryError):
    """Raised when XML input is not well-formed.

    Ingestion is all-or-nothing: when this is raised no partial tree is
    returned to the caller.
    """

    def __init__(
        self,
        message: str,
        position: Optional["TokenPosition"] = None,
    ) -> None:
        self.message = message
        self.position = position
        if position is not None:
            message = f"{message} (line {position.line}, column {position.column})"
        super().__init__(message)

    @property
    def line(self) -> Optional[int]:
        """Line of the offending construct, if known."""
        return self.position.line if self.position else None

    @property
    def column(self) -> Optional[int]:
        """Column of the offending construct, if known."""
        return self.position.column if self.position else None


class UndeclaredPrefixError(IngestionError):
    """Raised when a qualified name uses a prefix with no binding in scope."""

    def __init__(
        self,
        prefix: str,
        qname: str,
        position: Optional["TokenPosition"] = None,
    ) -> None:
        self.prefix = prefix
        self.qname = qname
        super().__init__(
            f"Undeclared namespace prefix '{prefix}' in name '{qname}'", position
        )


class EncodingError(IngestionError):
    """Raised when byte input cannot be decoded with the detected encoding."""


class XPathError(XMLQueryError):
    """Base class for expression errors."""


class XPathSyntaxError(XPathError):
    """Raised when an expression cannot be compiled.

    Covers malformed syntax as well as unknown functions and calls with the
    wrong number of arguments.
    """

    def __init__(
        self,
        message: str,
        expression: Optional[str] = None,
        offset: Optional[int] = None,
    ) -> None:
        self.message = message
        self.expression = expression
        self.offset = offset
        if expression is not None:
            if offset is not None:
                message = f"{message} at offset {offset} in {expression!r}"
            else:
                message = f"{message} in {expression!r}"
        super().__init__(message)


class InvalidExpressionError(XPathSyntaxError):
    """Raised by the find* helpers, which expect constant, valid expressions."""


class XPathEvaluationError(XPathError):
    """Raised when a compiled expression fails while being evaluated."""


class XPathTypeError(XPathEvaluationError):
    """Raised when a value of the wrong type is used, e.g. a number as a path."""


class UnboundVariableError(XPathEvaluationError):
    """Raised when an expression references a variable that was not supplied."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Variable ${name} is not bound")


class ConfigError(XMLQueryError):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(
        self,
        message: str,
        field_name: Optional[str] = None,
        suggestions: Optional[List[str]] = None,
    ) -> None:
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []
