"""xmlquery.

Load an XML document once into an immutable, namespace-aware tree, then select
elements, attributes, text, comments and declarations from it with XPath 1.0.

Progressive API Disclosure:
- Level 1: Simple functions - parse(), parse_string(), parse_file(), find(), query()
- Level 2: Compiled expressions - compile_expression(), CompiledExpression
- Level 3: Configured parser - XMLQueryParser class with XMLQueryConfig
- Level 4: Custom navigators - the xmlquery.xpath engine over XPathNavigator
"""

__version__ = "0.1.0"
__author__ = "xmlquery Team"

# Level 1: Simple functions
from .api import (
    CompiledExpression,
    LxmlAdapter,
    ParseResult,
    XMLQueryParser,
    compile_expression,
    evaluate,
    find,
    find_each,
    find_each_with_break,
    find_one,
    parse,
    parse_file,
    parse_string,
    query,
    query_all,
)

# Navigation for custom traversal
from .navigation import NodeNavigator

# Configuration and errors
from .shared import (
    CharacterConfig,
    IngestionConfig,
    IngestionError,
    InvalidExpressionError,
    QueryConfig,
    UndeclaredPrefixError,
    XMLQueryConfig,
    XMLQueryError,
    XPathError,
    XPathEvaluationError,
    XPathSyntaxError,
    XPathTypeError,
)

# Core tree objects
from .tree import Node, NodeKind, XMLDocument

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple parsing and query functions
    "parse",
    "parse_string",
    "parse_file",
    "find",
    "find_one",
    "find_each",
    "find_each_with_break",
    "query",
    "query_all",
    "evaluate",

    # Level 2: Compiled expressions
    "compile_expression",
    "CompiledExpression",

    # Level 3: Configured parser
    "XMLQueryParser",
    "ParseResult",
    "LxmlAdapter",

    # Tree and navigation
    "Node",
    "NodeKind",
    "XMLDocument",
    "NodeNavigator",

    # Configuration classes
    "XMLQueryConfig",
    "CharacterConfig",
    "IngestionConfig",
    "QueryConfig",

    # Errors
    "XMLQueryError",
    "IngestionError",
    "UndeclaredPrefixError",
    "XPathError",
    "XPathSyntaxError",
    "InvalidExpressionError",
    "XPathEvaluationError",
    "XPathTypeError",
]
