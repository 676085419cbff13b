"""Tests for evaluating expressions against the navigator contract."""

import math

import pytest

from xmlquery import parse_string
from xmlquery.navigation import NodeNavigator
from xmlquery.shared import UnboundVariableError, XPathTypeError
from xmlquery.xpath import XPath

LIBRARY = (
    '<lib xmlns:x="urn:x"><!--c-->'
    '<shelf id="s1">'
    '<book id="b1"><t>A</t></book>'
    '<book id="b2" x:rare="yes"><t>B</t></book>'
    "</shelf>"
    '<shelf id="s2"><book id="b3"><t>C</t></book></shelf>'
    "<?pi data?>"
    "</lib>"
)


@pytest.fixture(scope="module")
def nav():
    return NodeNavigator(parse_string(LIBRARY))


def ev(nav, expression, variables=None, namespaces=None):
    return XPath(expression, namespaces).evaluate(nav, variables)


def values(nav, expression, **kwargs):
    return [node.value for node in ev(nav, expression, **kwargs)]


def names(nav, expression):
    return [node.local_name for node in ev(nav, expression)]


class TestAxes:
    """Test every axis of the expression engine."""

    def test_child_and_descendant(self, nav):
        """Test child and descendant axes."""
        assert ev(nav, "count(/lib/shelf)") == 2.0
        assert ev(nav, "count(/lib/descendant::book)") == 3.0
        assert ev(nav, "count(/lib/descendant-or-self::*)") == 9.0

    def test_parent_and_self(self, nav):
        """Test parent and self axes."""
        assert ev(nav, "count(//t/parent::book)") == 3.0
        assert ev(nav, "count(//book/self::book)") == 3.0
        assert ev(nav, "count(//book/self::shelf)") == 0.0
        assert values(nav, "//t/../../@id") == ["s1", "s2"]

    def test_ancestor(self, nav):
        """Test ancestor axes return document order."""
        assert names(nav, "//t[. = 'C']/ancestor::*") == ["lib", "shelf", "book"]
        assert names(nav, "//t[. = 'C']/ancestor-or-self::*") == [
            "lib", "shelf", "book", "t",
        ]

    def test_reverse_axis_proximity(self, nav):
        """Test that positions on reverse axes count from the context node."""
        assert values(nav, "//t[. = 'C']/ancestor::*[1]/@id") == ["b3"]
        assert values(nav, "//book[@id = 'b3']/preceding::book[1]/@id") == ["b2"]
        assert values(nav, "(//book[@id = 'b3']/preceding::book)[1]/@id") == ["b1"]

    def test_sibling_axes(self, nav):
        """Test following-sibling and preceding-sibling."""
        assert values(nav, "//book[@id = 'b1']/following-sibling::book/@id") == ["b2"]
        assert values(nav, "//book[@id = 'b2']/preceding-sibling::*/@id") == ["b1"]
        assert ev(nav, "count(//book[@id = 'b3']/following-sibling::*)") == 0.0

    def test_following_and_preceding(self, nav):
        """Test following and preceding exclude ancestors and descendants."""
        assert values(nav, "//book[@id = 'b2']/following::book/@id") == ["b3"]
        assert values(nav, "//book[@id = 'b3']/preceding::book/@id") == ["b1", "b2"]
        assert names(nav, "//shelf[@id = 's1']/following::node()") == [
            "shelf", "book", "t", "", "pi",
        ]

    def test_following_from_attribute(self, nav):
        """Test that the children of an attribute's element follow it."""
        assert names(nav, "//book[@id = 'b1']/@id/following::*") == [
            "t", "book", "t", "shelf", "book", "t",
        ]

    def test_attribute_axis(self, nav):
        """Test the attribute axis in declaration order."""
        assert ev(nav, "count(//book/@*)") == 4.0
        assert values(nav, "//book[@id = 'b2']/@*") == ["b2", "yes"]

    def test_namespace_axis(self, nav):
        """Test the namespace axis lists in-scope bindings."""
        assert names(nav, "/lib/namespace::*") == ["xml", "x"]
        assert values(nav, "/lib/shelf[2]/book/t/namespace::x") == ["urn:x"]


class TestNodeTests:
    """Test node tests and name tests."""

    def test_node_types(self, nav):
        """Test node(), text(), comment() and processing-instruction()."""
        assert ev(nav, "count(/lib/node())") == 4.0
        assert ev(nav, "count(//text())") == 3.0
        assert ev(nav, "count(//comment())") == 1.0
        assert ev(nav, "count(//processing-instruction())") == 1.0
        assert ev(nav, "count(//processing-instruction('pi'))") == 1.0
        assert ev(nav, "count(//processing-instruction('other'))") == 0.0

    def test_wildcards(self, nav):
        """Test * and the principal node type of each axis."""
        assert ev(nav, "count(/lib/*)") == 2.0
        assert ev(nav, "count(//book[@id = 'b2']/attribute::*)") == 2.0

    def test_prefixed_names(self, nav):
        """Test prefixed name tests through the mapping and in-scope bindings."""
        assert values(nav, "//*[@x:rare]/@id") == ["b2"]
        assert values(nav, "//*[@y:rare]/@id", namespaces={"y": "urn:x"}) == ["b2"]
        assert ev(nav, "count(//@x:*)") == 1.0
        assert ev(nav, "count(//@q:rare)") == 0.0

    def test_mapping_wins_over_document_bindings(self, nav):
        """Test that the expression mapping shadows in-scope prefixes."""
        assert ev(nav, "count(//@x:rare)", namespaces={"x": "urn:other"}) == 0.0

    def test_unprefixed_name_ignores_namespace(self, nav):
        """Test that an unprefixed name matches the local name only."""
        assert ev(nav, "count(//@rare)") == 1.0


class TestExpressions:
    """Test operators, predicates and filter expressions."""

    def test_union_is_document_ordered(self, nav):
        """Test that unions are sorted and duplicate-free."""
        assert values(nav, "//book[@id = 'b3']/@id | //shelf/@id | //shelf/@id") == [
            "s1", "s2", "b3",
        ]

    def test_filter_expressions(self, nav):
        """Test predicates applied to a parenthesized node-set."""
        assert values(nav, "(//t)[2]") == ["B"]
        assert values(nav, "(//t)[last()]") == ["C"]

    def test_positional_predicates_per_context(self, nav):
        """Test that // predicates count per parent."""
        assert values(nav, "//book[2]/@id") == ["b2"]
        assert values(nav, "//book[1]/@id") == ["b1", "b3"]

    def test_chained_predicates(self, nav):
        """Test that a second predicate sees the filtered positions."""
        assert values(nav, "//book[@id != 'b1'][1]/@id") == ["b2", "b3"]

    @pytest.mark.parametrize("expression,expected", [
        ("//book/@id = 'b2'", True),
        ("//book/@id != 'b2'", True),
        ("//book/@id = 'b9'", False),
        ("//missing = false()", True),
        ("//missing != //missing", False),
        ("//t = (//t)[2]", True),
        ("1 = true()", True),
        ("'1' = 1", True),
        ("'a' != 'a'", False),
        ("'abc' > 1", False),
        ("2 >= 2", True),
    ])
    def test_comparisons(self, nav, expression, expected):
        """Test comparisons with node-set, boolean, number and string operands."""
        assert ev(nav, expression) is expected

    @pytest.mark.parametrize("expression,expected", [
        ("2 + 3 * 4", 14.0),
        ("(2 + 3) * 4", 20.0),
        ("10 - 4 - 3", 3.0),
        ("7 mod 3", 1.0),
        ("-7 mod 3", -1.0),
        ("7 div 2", 3.5),
        ("1 div 0", math.inf),
        ("-1 div 0", -math.inf),
        ("-(3)", -3.0),
    ])
    def test_arithmetic(self, nav, expression, expected):
        """Test arithmetic operators."""
        assert ev(nav, expression) == expected

    @pytest.mark.parametrize("expression", ["0 div 0", "5 mod 0", "'x' + 1"])
    def test_arithmetic_nan(self, nav, expression):
        """Test arithmetic that yields NaN."""
        assert math.isnan(ev(nav, expression))

    def test_short_circuit(self, nav):
        """Test that and/or do not evaluate their right operand needlessly."""
        assert ev(nav, "true() or $unbound") is True
        assert ev(nav, "false() and $unbound") is False

    def test_relative_context(self, nav):
        """Test relative and absolute paths from a non-root context."""
        shelf = nav.clone()
        shelf.move_to_first_child()
        shelf.move_to_first_child()
        shelf.move_to_next()
        shelf.move_to_next()
        assert shelf.local_name == "shelf"
        assert ev(shelf, "count(book)") == 1.0
        assert ev(shelf, "count(/lib/shelf)") == 2.0
        assert ev(shelf, "string(.)") == "C"

    def test_string_value_of_document(self, nav):
        """Test the string value skips comments and instructions."""
        assert ev(nav, "string(/)") == "ABC"


class TestVariables:
    """Test variable references."""

    def test_atomic_variables(self, nav):
        """Test numbers, strings and booleans as variables."""
        assert ev(nav, "$n * 2", {"n": 3}) == 6.0
        assert ev(nav, "//book[@id = $id]/t = 'B'", {"id": "b2"}) is True
        assert ev(nav, "not($flag)", {"flag": False}) is True

    def test_node_set_variable(self, nav):
        """Test a list of navigators as a node-set variable."""
        books = ev(nav, "//book")
        assert ev(nav, "count($books)", {"books": [books[2], books[0]]}) == 2.0
        assert values(nav, "$books/@id", variables={"books": books}) == ["b1", "b2", "b3"]

    def test_node_sets_from_two_documents(self, nav):
        """Test that nodes of different documents stay distinct."""
        other = NodeNavigator(parse_string("<lib/>"))
        other.move_to_first_child()
        mine = nav.clone()
        mine.move_to_first_child()
        variables = {"x": [mine], "y": [other]}

        assert ev(nav, "count($x | $y)", variables) == 2.0
        assert ev(nav, "count($both)", {"both": [mine, other]}) == 2.0
        assert ev(nav, "count($both/self::lib)", {"both": [other, mine]}) == 2.0
        assert ev(nav, "count($x | $x)", variables) == 1.0

    def test_unbound_variable(self, nav):
        """Test that a missing variable is an evaluation error."""
        with pytest.raises(UnboundVariableError) as exc_info:
            ev(nav, "$missing + 1")
        assert exc_info.value.name == "missing"

    def test_unsupported_variable_type(self, nav):
        """Test that a variable of a foreign type is a type error."""
        with pytest.raises(XPathTypeError):
            ev(nav, "$v", {"v": {"a": 1}})


class TestSelect:
    """Test node-set selection."""

    def test_select_yields_navigators(self, nav):
        """Test that select yields navigators in document order."""
        selected = list(XPath("//book/@id").select(nav))
        assert [node.value for node in selected] == ["b1", "b2", "b3"]

    def test_select_requires_node_set(self, nav):
        """Test that selecting with a non node-set expression fails."""
        with pytest.raises(XPathTypeError):
            list(XPath("1 + 1").select(nav))

    def test_path_from_non_node_set(self, nav):
        """Test that a location step after a number is a type error."""
        with pytest.raises(XPathTypeError):
            ev(nav, "$n/a", {"n": 1})

    def test_nested_contexts_stay_in_document_order(self):
        """Test steps from nested context nodes merge into document order."""
        doc = NodeNavigator(parse_string(
            '<a id="1"><a id="2"><b id="3"/></a><b id="4"/><c><b id="5"/></c></a>'
        ))
        assert values(doc, "//a/b/@id") == ["3", "4"]
        assert values(doc, "//a//b/@id") == ["3", "4", "5"]
        assert values(doc, "//a/descendant-or-self::*/@id") == ["1", "2", "3", "4", "5"]
        assert values(doc, "//b/following::b/@id") == ["4", "5"]
        assert values(doc, "//b/../@id") == ["1", "2"]

    def test_select_stops_early(self, monkeypatch):
        """Test that select walks no further than the nodes consumed."""
        doc = parse_string("<r>" + "<book/>" * 500 + "</r>")
        moves = []
        original = NodeNavigator.move_to_next

        def counting(self):
            moves.append(self.node)
            return original(self)

        monkeypatch.setattr(NodeNavigator, "move_to_next", counting)
        first = next(XPath("//book").select(NodeNavigator(doc)))
        assert first.local_name == "book"
        assert len(moves) < 10

    def test_expression_is_reusable(self, nav):
        """Test evaluating one parsed expression against two documents."""
        xpath = XPath("count(//*)")
        other = NodeNavigator(parse_string("<a><b/></a>"))
        assert xpath.evaluate(nav) == 9.0
        assert xpath.evaluate(other) == 2.0
