"""Tests for the XPath core function library and conversions."""

import math

import pytest

from xmlquery import parse_string
from xmlquery.navigation import NodeNavigator
from xmlquery.shared import XPathTypeError
from xmlquery.xpath import XPath, number_to_string, to_boolean, to_number, to_string

DOC = (
    '<r xmlns:p="urn:p" xml:lang="en-GB">'
    '<n v="1">10</n><n v="2">20.5</n><n v="x">  a   b  </n>'
    "<p:q/>"
    "</r>"
)


@pytest.fixture(scope="module")
def nav():
    return NodeNavigator(parse_string(DOC))


def ev(nav, expression):
    return XPath(expression).evaluate(nav)


class TestConversions:
    """Test the XPath 1.0 type conversions."""

    @pytest.mark.parametrize("value,expected", [
        (1.0, "1"),
        (-0.0, "0"),
        (0.5, "0.5"),
        (1e21, "1000000000000000000000"),
        (1e-7, "0.0000001"),
        (math.nan, "NaN"),
        (math.inf, "Infinity"),
        (-math.inf, "-Infinity"),
    ])
    def test_number_to_string(self, value, expected):
        """Test number formatting without exponents."""
        assert number_to_string(value) == expected

    @pytest.mark.parametrize("value,expected", [
        (" 12 ", 12.0),
        ("-3.5", -3.5),
        (".5", 0.5),
        (True, 1.0),
        (False, 0.0),
    ])
    def test_to_number(self, value, expected):
        """Test conversion of strings and booleans to numbers."""
        assert to_number(value) == expected

    @pytest.mark.parametrize("value", ["", "abc", "1e3", "+1", "1 2"])
    def test_to_number_nan(self, value):
        """Test that non-numeric strings convert to NaN."""
        assert math.isnan(to_number(value))

    @pytest.mark.parametrize("value,expected", [
        (0.0, False),
        (math.nan, False),
        (2.0, True),
        ("", False),
        ("false", True),
        ([], False),
    ])
    def test_to_boolean(self, value, expected):
        """Test boolean conversion."""
        assert to_boolean(value) is expected

    def test_to_string_of_booleans(self):
        """Test booleans convert to true and false."""
        assert to_string(True) == "true"
        assert to_string(False) == "false"

    def test_unsupported_type(self):
        """Test that foreign values are type errors."""
        with pytest.raises(XPathTypeError):
            to_string(object())  # type: ignore[arg-type]


class TestNodeSetFunctions:
    """Test node-set functions."""

    def test_count_and_last(self, nav):
        """Test count() and last()."""
        assert ev(nav, "count(//n)") == 3.0
        assert ev(nav, "string(//n[last()]/@v)") == "x"

    def test_position(self, nav):
        """Test position() inside a predicate."""
        assert ev(nav, "string(//n[position() = 2])") == "20.5"

    def test_names(self, nav):
        """Test local-name(), name() and namespace-uri()."""
        assert ev(nav, "local-name(//*[4])") == "q"
        assert ev(nav, "name(/r/*[4])") == "p:q"
        assert ev(nav, "namespace-uri(/r/*[4])") == "urn:p"
        assert ev(nav, "local-name(/nothing)") == ""

    def test_count_requires_node_set(self, nav):
        """Test that count() of a non node-set is a type error."""
        with pytest.raises(XPathTypeError):
            ev(nav, "count(1)")


class TestStringFunctions:
    """Test string functions."""

    @pytest.mark.parametrize("expression,expected", [
        ("concat('a', 1, true())", "a1true"),
        ("substring('12345', 2, 3)", "234"),
        ("substring('12345', 1.5, 2.6)", "234"),
        ("substring('12345', 0, 3)", "12"),
        ("substring('12345', 0 div 0, 3)", ""),
        ("substring('12345', -42, 1 div 0)", "12345"),
        ("substring('12345', -1 div 0, 1 div 0)", ""),
        ("substring-before('1999/04/01', '/')", "1999"),
        ("substring-after('1999/04/01', '/')", "04/01"),
        ("substring-after('abc', 'z')", ""),
        ("normalize-space(//n[3])", "a b"),
        ("translate('bar', 'abc', 'ABC')", "BAr"),
        ("translate('--aaa--', 'abc-', 'ABC')", "AAA"),
        ("lower-case('AbC')", "abc"),
        ("upper-case('AbC')", "ABC"),
        ("string(1 div 0)", "Infinity"),
    ])
    def test_string_results(self, nav, expression, expected):
        """Test each string function result."""
        assert ev(nav, expression) == expected

    @pytest.mark.parametrize("expression,expected", [
        ("starts-with('xmlquery', 'xml')", True),
        ("ends-with('xmlquery', 'query')", True),
        ("contains('xmlquery', 'lq')", True),
        ("contains('xmlquery', 'z')", False),
    ])
    def test_string_predicates(self, nav, expression, expected):
        """Test boolean string functions."""
        assert ev(nav, expression) is expected

    def test_string_length(self, nav):
        """Test string-length()."""
        assert ev(nav, "string-length('abc')") == 3.0
        assert ev(nav, "string-length(//n[1])") == 2.0


class TestBooleanFunctions:
    """Test boolean functions."""

    def test_not_true_false(self, nav):
        """Test not(), true() and false()."""
        assert ev(nav, "not(false())") is True
        assert ev(nav, "boolean(//missing)") is False

    def test_lang(self, nav):
        """Test lang() matches language and sublanguage."""
        assert ev(nav, "boolean(//n[lang('en')])") is True
        assert ev(nav, "boolean(//n[lang('en-gb')])") is True
        assert ev(nav, "boolean(//n[lang('fr')])") is False


class TestNumberFunctions:
    """Test number functions."""

    @pytest.mark.parametrize("expression,expected", [
        ("sum(//n[position() < 3])", 30.5),
        ("floor(2.7)", 2.0),
        ("ceiling(2.1)", 3.0),
        ("round(2.5)", 3.0),
        ("round(-2.5)", -2.0),
        ("number('12')", 12.0),
        ("number(//n[1])", 10.0),
    ])
    def test_number_results(self, nav, expression, expected):
        """Test each number function result."""
        assert ev(nav, expression) == expected

    def test_sum_with_non_numeric_is_nan(self, nav):
        """Test that sum over a non-numeric node is NaN."""
        assert math.isnan(ev(nav, "sum(//n)"))
