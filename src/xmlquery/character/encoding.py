"""Encoding detection for byte input.

Detection runs in stages and stops at the first one that answers:

1. Byte Order Mark
2. ``encoding`` pseudo-attribute of the XML declaration
3. Configured fallback (UTF-8 unless overridden)
"""

import codecs
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Dict, List, Optional, Tuple

CONFIDENCE_BOM = 1.0
CONFIDENCE_DECLARATION = 0.9
CONFIDENCE_FALLBACK = 0.5


class DetectionMethod(Enum):
    """Enumeration of encoding detection methods."""

    BOM = "bom"
    XML_DECLARATION = "xml_declaration"
    FALLBACK = "fallback"
    NOT_APPLICABLE = "not_applicable"


@dataclass
class EncodingResult:
    """Result of encoding detection.

    Attributes:
        encoding: Canonical codec name
        confidence: Confidence score from 0.0 to 1.0
        method: Detection method that produced the answer
        bom_length: Number of leading bytes that form the BOM
        issues: Problems noticed during detection
    """

    encoding: str
    confidence: float
    method: DetectionMethod
    bom_length: int = 0
    issues: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Validate confidence score range."""
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(
                f"Confidence must be between 0.0 and 1.0, got {self.confidence}"
            )


class BOMDetector:
    """Byte Order Mark detection."""

    # Longest patterns first so UTF-32 LE is not mistaken for UTF-16 LE.
    BOM_PATTERNS: ClassVar[Tuple[Tuple[bytes, str], ...]] = (
        (b"\xff\xfe\x00\x00", "utf-32-le"),
        (b"\x00\x00\xfe\xff", "utf-32-be"),
        (b"\xef\xbb\xbf", "utf-8"),
        (b"\xff\xfe", "utf-16-le"),
        (b"\xfe\xff", "utf-16-be"),
    )

    def detect(self, data: bytes) -> Optional[EncodingResult]:
        """Detect encoding based on BOM.

        Args:
            data: Byte data to analyze

        Returns:
            EncodingResult if a BOM is present, None otherwise
        """
        for bom, encoding in self.BOM_PATTERNS:
            if data.startswith(bom):
                return EncodingResult(
                    encoding=encoding,
                    confidence=CONFIDENCE_BOM,
                    method=DetectionMethod.BOM,
                    bom_length=len(bom),
                )
        return None


class XMLDeclarationParser:
    """Reads the ``encoding`` pseudo-attribute of an XML declaration."""

    XML_DECLARATION_PATTERN = re.compile(
        rb'^\s*<\?xml\s[^>]*?encoding\s*=\s*["\']([A-Za-z][A-Za-z0-9._-]*)["\']'
    )

    ALIASES: ClassVar[Dict[str, str]] = {
        "utf8": "utf-8",
        "utf16": "utf-16",
        "iso-8859-1": "latin-1",
        "windows-1252": "cp1252",
    }

    def __init__(self, scan_bytes: int = 1024) -> None:
        self.scan_bytes = scan_bytes

    def parse_declaration(self, data: bytes) -> Optional[EncodingResult]:
        """Parse the declared encoding.

        Args:
            data: Byte data to analyze

        Returns:
            EncodingResult if a declaration names an encoding, None otherwise
        """
        match = self.XML_DECLARATION_PATTERN.match(data[: self.scan_bytes])
        if not match:
            return None

        declared = match.group(1).decode("ascii").lower()
        encoding = self.ALIASES.get(declared, declared)
        try:
            codecs.lookup(encoding)
        except LookupError:
            return EncodingResult(
                encoding=encoding,
                confidence=0.0,
                method=DetectionMethod.XML_DECLARATION,
                issues=[f"Unsupported declared encoding: {declared}"],
            )
        return EncodingResult(
            encoding=encoding,
            confidence=CONFIDENCE_DECLARATION,
            method=DetectionMethod.XML_DECLARATION,
        )


class EncodingDetector:
    """Cascading encoding detector."""

    def __init__(
        self,
        fallback_encoding: str = "utf-8",
        detect_bom: bool = True,
        honor_xml_declaration: bool = True,
        declaration_scan_bytes: int = 1024,
    ) -> None:
        self.fallback_encoding = fallback_encoding
        self.detect_bom = detect_bom
        self.honor_xml_declaration = honor_xml_declaration
        self.bom_detector = BOMDetector()
        self.declaration_parser = XMLDeclarationParser(declaration_scan_bytes)

    def detect(self, data: bytes) -> EncodingResult:
        """Detect the encoding of ``data``.

        A BOM wins over a declaration. A UTF-16 or UTF-32 BOM is trusted even
        if the declaration disagrees, since the declaration could not have been
        read without knowing the byte layout.
        """
        if self.detect_bom:
            bom_result = self.bom_detector.detect(data)
            if bom_result is not None:
                return bom_result

        if self.honor_xml_declaration:
            declared = self.declaration_parser.parse_declaration(data)
            if declared is not None:
                return declared

        return EncodingResult(
            encoding=self.fallback_encoding,
            confidence=CONFIDENCE_FALLBACK,
            method=DetectionMethod.FALLBACK,
        )
