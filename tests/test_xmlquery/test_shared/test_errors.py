"""Tests for the exception hierarchy."""

import pytest

from xmlquery.shared.errors import (
    EncodingError,
    IngestionError,
    InvalidExpressionError,
    UnboundVariableError,
    UndeclaredPrefixError,
    XMLQueryError,
    XPathError,
    XPathEvaluationError,
    XPathSyntaxError,
    XPathTypeError,
)
from xmlquery.tokenization import TokenPosition


class TestErrorHierarchy:
    """Test that errors can be caught at every level of the hierarchy."""

    @pytest.mark.parametrize("error_type,base", [
        (IngestionError, XMLQueryError),
        (UndeclaredPrefixError, IngestionError),
        (EncodingError, IngestionError),
        (XPathError, XMLQueryError),
        (XPathSyntaxError, XPathError),
        (InvalidExpressionError, XPathSyntaxError),
        (XPathEvaluationError, XPathError),
        (XPathTypeError, XPathEvaluationError),
        (UnboundVariableError, XPathEvaluationError),
    ])
    def test_subclassing(self, error_type, base):
        """Test each error derives from its documented base."""
        assert issubclass(error_type, base)


class TestErrorDetails:
    """Test the context carried by errors."""

    def test_ingestion_error_position(self):
        """Test that the position is exposed and rendered in the message."""
        error = IngestionError("Bad thing", TokenPosition(3, 7, 40))

        assert error.message == "Bad thing"
        assert error.line == 3
        assert error.column == 7
        assert "line 3, column 7" in str(error)

    def test_ingestion_error_without_position(self):
        """Test that line and column are None without a position."""
        error = IngestionError("Bad thing")

        assert error.line is None
        assert error.column is None
        assert str(error) == "Bad thing"

    def test_undeclared_prefix_error(self):
        """Test that the prefix and name are kept."""
        error = UndeclaredPrefixError("p", "p:name")

        assert error.prefix == "p"
        assert error.qname == "p:name"
        assert "'p'" in str(error)

    def test_syntax_error_offset(self):
        """Test that the expression and offset appear in the message."""
        error = XPathSyntaxError("Unexpected token", "//a[", 4)

        assert error.message == "Unexpected token"
        assert error.expression == "//a["
        assert error.offset == 4
        assert "offset 4" in str(error)

    def test_unbound_variable_name(self):
        """Test that the variable name is kept."""
        error = UnboundVariableError("x")

        assert error.name == "x"
        assert "$x" in str(error)
