"""Tokenization layer for xmlquery.

Key Components:
    XMLTokenizer: Strict lexer converting decoded text into tokens
    Token: A lexical event with its position
    TokenType: Enumeration of token kinds
    TokenPosition: Line, column and offset of a token
    RawAttribute: Attribute as written, before namespace resolution
"""

from .tokenizer import (
    NAME_PATTERN,
    PREDEFINED_ENTITIES,
    RawAttribute,
    Token,
    TokenPosition,
    TokenType,
    XMLTokenizer,
)

__all__ = [
    "NAME_PATTERN",
    "PREDEFINED_ENTITIES",
    "RawAttribute",
    "Token",
    "TokenPosition",
    "TokenType",
    "XMLTokenizer",
]
