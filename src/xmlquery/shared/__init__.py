"""Shared utilities for xmlquery.

Errors, configuration objects, diagnostics and logging used by every layer.
"""

from .config import (
    CharacterConfig,
    IngestionConfig,
    QueryConfig,
    XMLQueryConfig,
)
from .errors import (
    ConfigError,
    ConfigValidationError,
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
from .logging import ComponentLogger, get_logger
from .result import DiagnosticEntry, DiagnosticSeverity, IngestionStatistics

__all__ = [
    "CharacterConfig",
    "IngestionConfig",
    "QueryConfig",
    "XMLQueryConfig",
    "ConfigError",
    "ConfigValidationError",
    "EncodingError",
    "IngestionError",
    "InvalidExpressionError",
    "UnboundVariableError",
    "UndeclaredPrefixError",
    "XMLQueryError",
    "XPathError",
    "XPathEvaluationError",
    "XPathSyntaxError",
    "XPathTypeError",
    "ComponentLogger",
    "get_logger",
    "DiagnosticEntry",
    "DiagnosticSeverity",
    "IngestionStatistics",
]
