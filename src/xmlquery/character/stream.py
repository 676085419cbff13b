"""Input normalization for ingestion.

Turns any supported input (``str``, ``bytes``, a text or binary file object,
or a :class:`pathlib.Path`) into a single decoded string with XML line-ending
normalization applied.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, BinaryIO, Dict, List, Optional, TextIO, Union

from xmlquery.shared import CharacterConfig, EncodingError, get_logger

from .encoding import DetectionMethod, EncodingDetector, EncodingResult

InputType = Union[str, bytes, bytearray, BinaryIO, TextIO, Path]

_LINE_ENDINGS = re.compile(r"\r\n?")
_BOM = "\ufeff"


@dataclass
class CharacterStreamResult:
    """Decoded input ready for tokenization.

    Attributes:
        text: Decoded, line-ending-normalized text
        encoding: How the text was decoded
        diagnostics: Notes gathered while decoding
        metadata: Input type and sizes
    """

    text: str
    encoding: EncodingResult
    diagnostics: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)


class CharacterStreamProcessor:
    """Decodes input data for the tokenizer.

    Unlike text extraction tools this processor never replaces undecodable
    bytes: a document that cannot be decoded is not well-formed and raises
    :class:`EncodingError`.
    """

    def __init__(
        self,
        config: Optional[CharacterConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.config = config or CharacterConfig()
        self.logger = get_logger(__name__, correlation_id, "character_stream")
        self._encoding_detector = EncodingDetector(
            fallback_encoding=self.config.fallback_encoding,
            detect_bom=self.config.detect_bom,
            honor_xml_declaration=self.config.honor_xml_declaration,
            declaration_scan_bytes=self.config.declaration_scan_bytes,
        )

    def process(self, input_data: InputType) -> CharacterStreamResult:
        """Decode ``input_data``.

        Raises:
            EncodingError: If bytes cannot be decoded
            TypeError: If the input type is not supported
            OSError: If a path or file cannot be read
        """
        if isinstance(input_data, str):
            return self._process_string(input_data, "str")
        if isinstance(input_data, (bytes, bytearray)):
            return self._process_bytes(bytes(input_data), "bytes")
        if isinstance(input_data, Path):
            return self._process_bytes(input_data.read_bytes(), "path")
        if hasattr(input_data, "read"):
            return self._process_file(input_data)
        raise TypeError(
            f"Unsupported input type {type(input_data).__name__}; "
            "expected str, bytes, a file object or pathlib.Path"
        )

    def _process_file(self, file_obj: Union[BinaryIO, TextIO]) -> CharacterStreamResult:
        data = file_obj.read()
        if isinstance(data, (bytes, bytearray)):
            return self._process_bytes(bytes(data), "binary_file")
        if isinstance(data, str):
            return self._process_string(data, "text_file")
        raise TypeError(
            f"File object returned {type(data).__name__}, expected bytes or str"
        )

    def _process_bytes(self, data: bytes, input_type: str) -> CharacterStreamResult:
        encoding = self._encoding_detector.detect(data)
        if encoding.confidence == 0.0:
            raise EncodingError("; ".join(encoding.issues))

        try:
            text = data[encoding.bom_length:].decode(encoding.encoding)
        except UnicodeDecodeError as e:
            raise EncodingError(
                f"Input is not valid {encoding.encoding} "
                f"(byte offset {e.start}: {e.reason})"
            ) from e

        self.logger.debug(
            "Decoded byte input",
            extra={
                "encoding": encoding.encoding,
                "method": encoding.method.value,
                "input_size": len(data),
            },
        )
        return self._finish(text, encoding, input_type, len(data))

    def _process_string(self, text: str, input_type: str) -> CharacterStreamResult:
        encoding = EncodingResult(
            encoding="unicode",
            confidence=1.0,
            method=DetectionMethod.NOT_APPLICABLE,
        )
        return self._finish(text, encoding, input_type, len(text))

    def _finish(
        self,
        text: str,
        encoding: EncodingResult,
        input_type: str,
        input_size: int,
    ) -> CharacterStreamResult:
        diagnostics: List[str] = []
        if text.startswith(_BOM):
            text = text[1:]
            diagnostics.append("Removed leading byte order mark")
        if self.config.normalize_line_endings and "\r" in text:
            text = _LINE_ENDINGS.sub("\n", text)
            diagnostics.append("Normalized line endings")

        return CharacterStreamResult(
            text=text,
            encoding=encoding,
            diagnostics=diagnostics,
            metadata={
                "input_type": input_type,
                "input_size": input_size,
                "output_size": len(text),
            },
        )
