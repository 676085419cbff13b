"""Public API: parsing entry points, the query facade and adapters."""

from .adapters import IntegrationAdapter, LxmlAdapter, get_adapter, list_available_adapters
from .parser import ParseResult, XMLQueryParser, parse, parse_file, parse_string
from .query import (
    CompiledExpression,
    cache_info,
    clear_cache,
    compile_expression,
    configure,
    evaluate,
    find,
    find_each,
    find_each_with_break,
    find_one,
    query,
    query_all,
)

__all__ = [
    "IntegrationAdapter",
    "LxmlAdapter",
    "get_adapter",
    "list_available_adapters",
    "ParseResult",
    "XMLQueryParser",
    "parse",
    "parse_file",
    "parse_string",
    "CompiledExpression",
    "cache_info",
    "clear_cache",
    "compile_expression",
    "configure",
    "evaluate",
    "find",
    "find_each",
    "find_each_with_break",
    "find_one",
    "query",
    "query_all",
]
