"""Well-formed XML tokenizer.

Converts decoded text into a stream of lexical events (tags, text, comments,
processing instructions) with line/column positions. The tokenizer is strict:
anything that is not well-formed XML 1.0 at the lexical level raises
:class:`IngestionError`. Structural checks (tag balance, namespaces, a single
document element) belong to the tree builder.
"""

import re
from bisect import bisect_right
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Dict, Iterator, List, Optional, Tuple

from xmlquery.shared import IngestionConfig, IngestionError, get_logger

NAME_START_CHARS = (
    r":A-Z_a-z\u00C0-\u00D6\u00D8-\u00F6\u00F8-\u02FF\u0370-\u037D"
    r"\u037F-\u1FFF\u200C-\u200D\u2070-\u218F\u2C00-\u2FEF\u3001-\uD7FF"
    r"\uF900-\uFDCF\uFDF0-\uFFFD\U00010000-\U000EFFFF"
)
NAME_CHARS = NAME_START_CHARS + r"\-.0-9\u00B7\u0300-\u036F\u203F-\u2040"
NAME_PATTERN = f"[{NAME_START_CHARS}][{NAME_CHARS}]*"

_NAME = re.compile(NAME_PATTERN)
_WHITESPACE = re.compile(r"[ \t\n\r]*")
_LEADING_WHITESPACE_BEFORE_DECL = re.compile(r"[ \t\n\r]+(?=<\?xml[ \t\n\r?])")
_INVALID_CHAR = re.compile(r"[^\t\n\r\x20-\uD7FF\uE000-\uFFFD\U00010000-\U0010FFFF]")
_REFERENCE = re.compile(
    r"&(?:#([0-9]+)|#x([0-9a-fA-F]+)|(" + NAME_PATTERN + r"));"
)
_ATTRIBUTE_WHITESPACE = re.compile(r"[\t\n\r]")
_XML_DECLARATION = re.compile(
    r"<\?xml"
    r"[ \t\n\r]+version[ \t\n\r]*=[ \t\n\r]*(?P<vq>['\"])(?P<version>1\.[0-9]+)(?P=vq)"
    r"(?:[ \t\n\r]+encoding[ \t\n\r]*=[ \t\n\r]*(?P<eq>['\"])"
    r"(?P<encoding>[A-Za-z][A-Za-z0-9._-]*)(?P=eq))?"
    r"(?:[ \t\n\r]+standalone[ \t\n\r]*=[ \t\n\r]*(?P<sq>['\"])"
    r"(?P<standalone>yes|no)(?P=sq))?"
    r"[ \t\n\r]*\?>"
)

PREDEFINED_ENTITIES: Dict[str, str] = {
    "lt": "<",
    "gt": ">",
    "amp": "&",
    "apos": "'",
    "quot": '"',
}


class TokenType(Enum):
    """Lexical event types produced by the tokenizer."""

    XML_DECLARATION = auto()         # <?xml version="1.0"?>
    PROCESSING_INSTRUCTION = auto()  # <?target data?>
    START_TAG = auto()               # <name attr="v"> or <name/>
    END_TAG = auto()                 # </name>
    TEXT = auto()                    # Character data, references decoded
    CDATA = auto()                   # <![CDATA[ ... ]]>
    COMMENT = auto()                 # <!-- ... -->
    DOCTYPE = auto()                 # <!DOCTYPE ...>, kept uninterpreted


@dataclass(frozen=True)
class TokenPosition:
    """Position information for XML tokens."""

    line: int
    column: int
    offset: int

    def __post_init__(self) -> None:
        """Validate position values."""
        if self.line < 1:
            raise ValueError("Line number must be >= 1")
        if self.column < 1:
            raise ValueError("Column number must be >= 1")
        if self.offset < 0:
            raise ValueError("Offset must be >= 0")

    def to_dict(self) -> Dict[str, int]:
        """Convert position to a dictionary."""
        return {"line": self.line, "column": self.column, "offset": self.offset}


@dataclass
class RawAttribute:
    """An attribute as written in a start tag, before namespace resolution."""

    name: str
    value: str
    position: Optional[TokenPosition] = None


@dataclass
class Token:
    """A single lexical event.

    ``name`` holds the tag name for tags and the target for processing
    instructions; ``value`` holds character data, comment text, processing
    instruction data or the raw DOCTYPE body.
    """

    type: TokenType
    position: TokenPosition
    name: str = ""
    value: str = ""
    attributes: List[RawAttribute] = field(default_factory=list)
    self_closing: bool = False


class XMLTokenizer:
    """Strict XML tokenizer.

    Example:
        >>> tokens = list(XMLTokenizer().tokenize('<a x="1">hi</a>'))
        >>> [t.type.name for t in tokens]
        ['START_TAG', 'TEXT', 'END_TAG']
    """

    def __init__(
        self,
        config: Optional[IngestionConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.config = config or IngestionConfig()
        self.logger = get_logger(__name__, correlation_id, "xml_tokenizer")
        self._text = ""
        self._line_starts: List[int] = [0]

    def tokenize(self, text: str) -> Iterator[Token]:
        """Yield the tokens of ``text`` in document order.

        Raises:
            IngestionError: On the first lexical error
        """
        self._text = text
        self._line_starts = [0] + [m.end() for m in re.finditer("\n", text)]

        invalid = _INVALID_CHAR.search(text)
        if invalid:
            raise IngestionError(
                f"Invalid character U+{ord(invalid.group()):04X} in document",
                self.position(invalid.start()),
            )

        pos = 0
        if self.config.allow_leading_whitespace:
            leading = _LEADING_WHITESPACE_BEFORE_DECL.match(text)
            if leading:
                pos = leading.end()
        if text.startswith("<?xml", pos) and text[pos + 5:pos + 6] in (
            " ", "\t", "\n", "\r", "?"
        ):
            token, pos = self._read_xml_declaration(pos)
            yield token

        count = 0
        end = len(text)
        while pos < end:
            if text[pos] != "<":
                lt = text.find("<", pos)
                if lt == -1:
                    lt = end
                yield self._read_text(pos, lt)
                pos = lt
            elif text.startswith("<!--", pos):
                token, pos = self._read_comment(pos)
                yield token
            elif text.startswith("<![CDATA[", pos):
                token, pos = self._read_cdata(pos)
                yield token
            elif text.startswith("<!DOCTYPE", pos):
                token, pos = self._read_doctype(pos)
                yield token
            elif text.startswith("<?", pos):
                token, pos = self._read_processing_instruction(pos)
                yield token
            elif text.startswith("</", pos):
                token, pos = self._read_end_tag(pos)
                yield token
            elif text.startswith("<!", pos):
                raise IngestionError(
                    "Unsupported markup declaration", self.position(pos)
                )
            else:
                token, pos = self._read_start_tag(pos)
                yield token
            count += 1

        self.logger.debug(
            "Tokenization completed",
            extra={"token_count": count, "char_count": end},
        )

    def position(self, offset: int) -> TokenPosition:
        """Translate a character offset into a line/column position."""
        line = bisect_right(self._line_starts, offset)
        return TokenPosition(line, offset - self._line_starts[line - 1] + 1, offset)

    # Markup readers. Each takes the offset of the opening '<' and returns the
    # token together with the offset just past the construct.

    def _read_xml_declaration(self, pos: int) -> Tuple[Token, int]:
        match = _XML_DECLARATION.match(self._text, pos)
        if not match:
            raise IngestionError("Malformed XML declaration", self.position(pos))
        attributes = [RawAttribute("version", match.group("version"))]
        if match.group("encoding"):
            attributes.append(RawAttribute("encoding", match.group("encoding")))
        if match.group("standalone"):
            attributes.append(RawAttribute("standalone", match.group("standalone")))
        token = Token(
            type=TokenType.XML_DECLARATION,
            position=self.position(pos),
            name="xml",
            value=self._text[pos + 5:match.end() - 2].strip(),
            attributes=attributes,
        )
        return token, match.end()

    def _read_text(self, start: int, end: int) -> Token:
        raw = self._text[start:end]
        cdata_end = raw.find("]]>")
        if cdata_end != -1:
            raise IngestionError(
                "']]>' is not allowed in character data",
                self.position(start + cdata_end),
            )
        return Token(
            type=TokenType.TEXT,
            position=self.position(start),
            value=self._decode_references(raw, start),
        )

    def _read_comment(self, pos: int) -> Tuple[Token, int]:
        close = self._text.find("-->", pos + 4)
        if close == -1:
            raise IngestionError("Unterminated comment", self.position(pos))
        content = self._text[pos + 4:close]
        if "--" in content or content.endswith("-"):
            raise IngestionError(
                "'--' is not allowed inside a comment", self.position(pos)
            )
        return Token(TokenType.COMMENT, self.position(pos), value=content), close + 3

    def _read_cdata(self, pos: int) -> Tuple[Token, int]:
        close = self._text.find("]]>", pos + 9)
        if close == -1:
            raise IngestionError("Unterminated CDATA section", self.position(pos))
        content = self._text[pos + 9:close]
        return Token(TokenType.CDATA, self.position(pos), value=content), close + 3

    def _read_doctype(self, pos: int) -> Tuple[Token, int]:
        # The internal subset is skipped, not interpreted.
        text = self._text
        i = pos + 9
        if i >= len(text) or text[i] not in " \t\n\r":
            raise IngestionError("Malformed DOCTYPE declaration", self.position(pos))
        quote: Optional[str] = None
        depth = 0
        while i < len(text):
            char = text[i]
            if quote:
                if char == quote:
                    quote = None
            elif depth and text.startswith("<!--", i):
                close = text.find("-->", i + 4)
                if close == -1:
                    break
                i = close + 3
                continue
            elif char in "\"'":
                quote = char
            elif char == "[":
                depth += 1
            elif char == "]":
                depth -= 1
            elif char == ">" and depth == 0:
                body = text[pos + 9:i].strip()
                match = _NAME.match(body)
                if not match:
                    raise IngestionError(
                        "DOCTYPE declaration has no root element name",
                        self.position(pos),
                    )
                token = Token(
                    TokenType.DOCTYPE, self.position(pos), name=match.group(), value=body
                )
                return token, i + 1
            i += 1
        raise IngestionError("Unterminated DOCTYPE declaration", self.position(pos))

    def _read_processing_instruction(self, pos: int) -> Tuple[Token, int]:
        text = self._text
        match = _NAME.match(text, pos + 2)
        if not match:
            raise IngestionError(
                "Invalid processing instruction target", self.position(pos)
            )
        target = match.group()
        if target.lower() == "xml":
            raise IngestionError(
                "XML declaration is only allowed at the start of the document",
                self.position(pos),
            )
        close = text.find("?>", match.end())
        if close == -1:
            raise IngestionError(
                "Unterminated processing instruction", self.position(pos)
            )
        data = text[match.end():close]
        if data and data[0] not in " \t\n\r":
            raise IngestionError(
                f"Processing instruction target '{target}' must be followed by "
                "whitespace",
                self.position(pos),
            )
        token = Token(
            TokenType.PROCESSING_INSTRUCTION,
            self.position(pos),
            name=target,
            value=data.lstrip(" \t\n\r"),
        )
        return token, close + 2

    def _read_end_tag(self, pos: int) -> Tuple[Token, int]:
        text = self._text
        match = _NAME.match(text, pos + 2)
        if not match:
            raise IngestionError("Invalid end tag name", self.position(pos))
        i = _WHITESPACE.match(text, match.end()).end()
        if i >= len(text) or text[i] != ">":
            raise IngestionError(
                f"Expected '>' to close end tag '{match.group()}'", self.position(i)
            )
        return Token(TokenType.END_TAG, self.position(pos), name=match.group()), i + 1

    def _read_start_tag(self, pos: int) -> Tuple[Token, int]:
        text = self._text
        match = _NAME.match(text, pos + 1)
        if not match:
            raise IngestionError("Invalid element name", self.position(pos))
        token = Token(TokenType.START_TAG, self.position(pos), name=match.group())

        i = match.end()
        while True:
            after_ws = _WHITESPACE.match(text, i).end()
            if after_ws >= len(text):
                raise IngestionError(
                    f"Unexpected end of input in start tag '{token.name}'",
                    self.position(pos),
                )
            if text[after_ws] == ">":
                return token, after_ws + 1
            if text.startswith("/>", after_ws):
                token.self_closing = True
                return token, after_ws + 2
            if after_ws == i:
                raise IngestionError(
                    f"Expected whitespace, '>' or '/>' in start tag '{token.name}'",
                    self.position(i),
                )
            attribute, i = self._read_attribute(after_ws)
            token.attributes.append(attribute)

    def _read_attribute(self, pos: int) -> Tuple[RawAttribute, int]:
        text = self._text
        match = _NAME.match(text, pos)
        if not match:
            raise IngestionError("Invalid attribute name", self.position(pos))
        name = match.group()
        i = _WHITESPACE.match(text, match.end()).end()
        if i >= len(text) or text[i] != "=":
            raise IngestionError(
                f"Attribute '{name}' has no value", self.position(pos)
            )
        i = _WHITESPACE.match(text, i + 1).end()
        quote = text[i:i + 1]
        if quote not in ('"', "'"):
            raise IngestionError(
                f"Value of attribute '{name}' must be quoted", self.position(i)
            )
        close = text.find(quote, i + 1)
        if close == -1:
            raise IngestionError(
                f"Unterminated value for attribute '{name}'", self.position(i)
            )
        raw = text[i + 1:close]
        lt = raw.find("<")
        if lt != -1:
            raise IngestionError(
                f"'<' is not allowed in value of attribute '{name}'",
                self.position(i + 1 + lt),
            )
        value = self._decode_references(
            _ATTRIBUTE_WHITESPACE.sub(" ", raw), i + 1
        )
        return RawAttribute(name, value, self.position(pos)), close + 1

    def _decode_references(self, raw: str, offset: int) -> str:
        amp = raw.find("&")
        if amp == -1:
            return raw

        parts: List[str] = []
        last = 0
        while amp != -1:
            match = _REFERENCE.match(raw, amp)
            if not match:
                raise IngestionError(
                    "Malformed entity or character reference",
                    self.position(offset + amp),
                )
            parts.append(raw[last:amp])
            decimal, hexadecimal, entity = match.groups()
            if entity is not None:
                if entity not in PREDEFINED_ENTITIES:
                    raise IngestionError(
                        f"Undefined entity '&{entity};'", self.position(offset + amp)
                    )
                parts.append(PREDEFINED_ENTITIES[entity])
            else:
                codepoint = int(decimal) if decimal is not None else int(hexadecimal, 16)
                if codepoint > 0x10FFFF or _INVALID_CHAR.match(chr(codepoint)):
                    raise IngestionError(
                        f"Character reference to invalid character {codepoint:#x}",
                        self.position(offset + amp),
                    )
                parts.append(chr(codepoint))
            last = match.end()
            amp = raw.find("&", last)
        parts.append(raw[last:])
        return "".join(parts)
