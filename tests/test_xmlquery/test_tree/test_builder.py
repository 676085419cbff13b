"""Tests for tree building."""

import pytest

from xmlquery.shared import IngestionConfig, IngestionError, UndeclaredPrefixError
from xmlquery.tokenization import XMLTokenizer
from xmlquery.tree import NodeKind, XMLDocument, XMLTreeBuilder


def build(text: str, **config) -> XMLDocument:
    ingestion = IngestionConfig(**config)
    tokens = XMLTokenizer(ingestion).tokenize(text)
    return XMLTreeBuilder(ingestion).build(tokens)


class TestTreeConstruction:
    """Test the shape of built trees."""

    def test_single_root(self):
        """Test a minimal document."""
        doc = build("<a/>")

        assert doc.root.local_name == "a"
        assert doc.root.parent is doc
        assert doc.statistics.element_count == 1

    def test_text_runs_are_coalesced(self):
        """Test adjacent character data and CDATA form one text node."""
        doc = build("<a>one<![CDATA[ two ]]>&amp;three</a>")

        texts = list(doc.root.children())
        assert len(texts) == 1
        assert texts[0].value == "one two &three"

    def test_interrupted_text_is_split(self):
        """Test that an element between runs yields separate text nodes."""
        doc = build("<p>Lorem <a>ipsum</a> dolor</p>")

        values = [n.value for n in doc.iter_descendants() if n.kind == NodeKind.TEXT]
        assert values == ["Lorem ", "ipsum", " dolor"]

    def test_whitespace_outside_root_is_dropped(self):
        """Test that top-level whitespace is not materialized."""
        doc = build("\n<a/>\n\n")

        assert [c.kind for c in doc.children()] == [NodeKind.ELEMENT]

    def test_whitespace_inside_elements_is_kept(self):
        """Test that whitespace-only text inside elements is preserved."""
        doc = build("<a>\n  <b/>\n</a>")

        assert [c.kind for c in doc.root.children()] == [
            NodeKind.TEXT, NodeKind.ELEMENT, NodeKind.TEXT
        ]

    def test_comments_and_pis_outside_root(self):
        """Test that top-level comments and instructions are document children."""
        doc = build("<!--c--><?pi data?><a/><!--after-->")

        assert [c.kind for c in doc.children()] == [
            NodeKind.COMMENT, NodeKind.DECLARATION, NodeKind.ELEMENT, NodeKind.COMMENT
        ]

    def test_declaration_node_can_be_dropped(self):
        """Test that keep_xml_declaration=False only records metadata."""
        doc = build('<?xml version="1.0" standalone="no"?><a/>', keep_xml_declaration=False)

        assert doc.first_child is doc.root
        assert doc.standalone is False

    def test_comments_can_be_dropped(self):
        """Test keep_comments=False."""
        doc = build("<a><!--x-->y</a>", keep_comments=False)

        assert [c.kind for c in doc.root.children()] == [NodeKind.TEXT]

    def test_processing_instructions_can_be_dropped(self):
        """Test keep_processing_instructions=False."""
        doc = build("<a><?pi x?></a>", keep_processing_instructions=False)

        assert doc.root.first_child is None

    def test_doctype_is_skipped(self):
        """Test that a DOCTYPE leaves no node."""
        doc = build("<!DOCTYPE a><a/>")

        assert list(doc.children()) == [doc.root]

    def test_statistics(self):
        """Test the counters collected while building."""
        doc = build('<a x="1"><b y="2" z="3">t</b><!--c--></a>')

        stats = doc.statistics
        assert stats.element_count == 2
        assert stats.attribute_count == 3
        assert stats.text_count == 1
        assert stats.comment_count == 1
        assert stats.max_depth == 2
        assert stats.node_count == 7
        assert stats.tokens_processed == 6


class TestNamespaceResolution:
    """Test names are resolved while building."""

    def test_namespace_declarations_are_not_attributes(self):
        """Test that xmlns attributes are recorded as declarations."""
        doc = build('<a xmlns="urn:d" xmlns:p="urn:p" p:x="1" y="2"/>')

        root = doc.root
        assert root.namespace_declarations == {"": "urn:d", "p": "urn:p"}
        assert [(a.prefix, a.local_name, a.namespace_uri) for a in root.attributes] == [
            ("p", "x", "urn:p"),
            ("", "y", ""),
        ]
        assert root.namespace_uri == "urn:d"

    def test_declaration_applies_to_its_own_element(self):
        """Test that a prefix declared on an element applies to its name."""
        doc = build('<p:a xmlns:p="urn:p"/>')

        assert doc.root.namespace_uri == "urn:p"
        assert doc.root.qualified_name == "p:a"

    def test_undeclared_prefix(self):
        """Test that an unbound element prefix raises."""
        with pytest.raises(UndeclaredPrefixError):
            build("<p:a/>")

    def test_duplicate_expanded_attribute_names(self):
        """Test that two prefixes for one URI cannot repeat a local name."""
        with pytest.raises(IngestionError, match="duplicates the expanded name"):
            build('<a xmlns:p="urn:x" xmlns:q="urn:x" p:k="1" q:k="2"/>')


class TestStructuralErrors:
    """Test structural well-formedness errors."""

    @pytest.mark.parametrize("text,message", [
        ("<a></b>", "Mismatched end tag"),
        ("<a>", "Unclosed element"),
        ("</a>", "Unexpected end tag"),
        ("<a/><b/>", "after the document element"),
        ("text<a/>", "outside the document element"),
        ("<a/><![CDATA[ ]]>", "outside the document element"),
        ("", "no root element"),
        ("<!--only-->", "no root element"),
        ('<a x="1" x="2"/>', "Duplicate attribute"),
        ("<a/><!DOCTYPE a>", "DOCTYPE"),
    ])
    def test_malformed_structure(self, text, message):
        """Test each structural error aborts the build."""
        with pytest.raises(IngestionError, match=message):
            build(text)

    def test_max_depth(self):
        """Test the nesting limit."""
        with pytest.raises(IngestionError, match="Maximum nesting depth"):
            build("<a><b><c/></b></a>", max_depth=2)

    def test_max_attributes(self):
        """Test the attribute count limit."""
        with pytest.raises(IngestionError, match="more than 1 attributes"):
            build('<a x="1" y="2"/>', max_attributes_per_element=1)


class TestEventAPI:
    """Test driving the builder with events directly."""

    def test_events_build_document(self):
        """Test the event methods without a tokenizer."""
        builder = XMLTreeBuilder()

        builder.start_element("root", [("xmlns:p", "urn:p")])
        builder.start_element("p:child", [("p:attr", "v")])
        builder.characters("text")
        builder.end_element("p:child")
        builder.end_element("root")
        doc = builder.close()

        child = doc.root.first_child
        assert child.namespace_uri == "urn:p"
        assert child.attributes[0].namespace_uri == "urn:p"
        assert child.string_value == "text"

    def test_declaration_must_come_first(self):
        """Test that a late XML declaration event is rejected."""
        builder = XMLTreeBuilder()
        builder.start_element("root", [])

        with pytest.raises(IngestionError, match="only allowed at the start"):
            builder.xml_declaration("1.0")
