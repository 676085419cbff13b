#!/usr/bin/env python3
"""
Quick Start Guide for xmlquery.

Walks through the progressive API levels: parsing and simple queries,
compiled expressions, the configured parser, and namespace-aware queries.
"""

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from xmlquery import (
    InvalidExpressionError,
    XMLQueryConfig,
    XMLQueryParser,
    compile_expression,
    evaluate,
    find,
    find_each_with_break,
    find_one,
    parse_string,
)

CATALOG = """<?xml version="1.0"?>
<catalog>
   <!-- book list-->
   <book id="bk101">
      <title>XML Developer's Guide</title>
      <genre>Computer</genre>
      <price>44.95</price>
   </book>
   <book id="bk102">
      <title>Midnight Rain</title>
      <genre>Fantasy</genre>
      <price>5.95</price>
   </book>
   <book id="bk103">
      <title>Maeve Ascendant</title>
      <genre>Fantasy</genre>
      <price>5.95</price>
   </book>
</catalog>"""


def simple_queries():
    """Level 1: parse once, query many times."""
    print("\n📄 Step 1: Simple Queries")
    print("-" * 30)

    document = parse_string(CATALOG)
    print(f"✅ Parsed {document.statistics.element_count} elements")

    for book in find(document, "//book[genre='Fantasy']"):
        print(f"  - {book.get_attribute('id')}: {find_one(book, 'title').inner_text}")

    print(f"📊 count(//book) = {evaluate(document, 'count(//book)')}")
    print(f"💰 total price = {evaluate(document, 'sum(//price)'):.2f}")

    visited = []
    find_each_with_break(
        document, "//book", lambda i, node: visited.append(i) or i < 1
    )
    print(f"⏹️  Stopped after {len(visited)} callbacks")

    try:
        find(document, "//book[@id==1]")
    except InvalidExpressionError as e:
        print(f"⚠️  Invalid expression at offset {e.offset}: {e.message}")

    return document


def compiled_expressions(document):
    """Level 2: compile once, evaluate against many contexts."""
    print("\n⚡ Step 2: Compiled Expressions")
    print("-" * 30)

    cheap = compile_expression("number(price) < $limit")
    for book in find(document, "//book"):
        flag = cheap.evaluate(book, variables={"limit": 10})
        print(f"  - {book.get_attribute('id')} under 10: {flag}")


def configured_parser():
    """Level 3: reusable parser that reports failures instead of raising."""
    print("\n🔧 Step 3: Configured Parser")
    print("-" * 30)

    parser = XMLQueryParser(XMLQueryConfig.lenient(), correlation_id="quick-start")
    for source in (CATALOG, "<catalog><book></catalog>"):
        result = parser.parse(source)
        if result.success:
            print(f"✅ Parsed, comments kept: {result.statistics.comment_count}")
        else:
            diagnostic = result.diagnostics[0]
            print(f"❌ {diagnostic.severity.name}: {diagnostic.message}")

    stats = parser.statistics
    print(f"📊 Success rate: {stats['success_rate']:.0%} of {stats['total_parses']} parses")


def namespace_queries():
    """Prefixed name tests and namespace-uri() predicates."""
    print("\n🌐 Step 4: Namespaces")
    print("-" * 30)

    document = parse_string(
        '<feed xmlns="urn:feed" xmlns:m="urn:media">'
        '<entry m:length="120"/><entry/><entry m:length="45"/>'
        "</feed>"
    )
    lengths = find(document, "//entry/@*[namespace-uri()='urn:media']")
    print(f"  - media lengths: {[attr.value for attr in lengths]}")

    compiled = compile_expression("count(//f:entry[@m:length])", {"f": "urn:feed"})
    print(f"  - entries with media: {compiled.evaluate(document)}")


def main():
    print("🚀 QUICK START - xmlquery")
    print("=" * 45)

    document = simple_queries()
    compiled_expressions(document)
    configured_parser()
    namespace_queries()


if __name__ == "__main__":
    main()
