"""Parsing entry points with progressive disclosure.

Module-level functions cover the common case and raise
:class:`IngestionError` for input that is not well-formed. The
:class:`XMLQueryParser` class adds reusable configuration, usage statistics and
a non-raising :class:`ParseResult` for batch processing.
"""

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from xmlquery.character import CharacterStreamProcessor, DetectionMethod, InputType
from xmlquery.shared import (
    DiagnosticEntry,
    DiagnosticSeverity,
    IngestionError,
    IngestionStatistics,
    XMLQueryConfig,
    get_logger,
)
from xmlquery.tokenization import XMLTokenizer
from xmlquery.tree import XMLDocument, XMLTreeBuilder

from . import query as query_api

# Constants for API operations
PREVIEW_LENGTH = 100  # Max length for content preview in logs
MS_PER_SECOND = 1000  # Milliseconds per second conversion


def parse(
    source: InputType,
    config: Optional[XMLQueryConfig] = None,
    correlation_id: Optional[str] = None,
) -> XMLDocument:
    """Parse XML from a string, bytes, file object or path into a document tree.

    Args:
        source: XML content as str, bytes, file-like object, or Path
        config: Parser configuration, defaults to ``XMLQueryConfig()``
        correlation_id: Optional correlation ID for request tracking

    Returns:
        The ingested, read-only document

    Raises:
        IngestionError: If the input is not a well-formed namespace-aware
            XML document (EncodingError and UndeclaredPrefixError included)

    Examples:
        >>> doc = parse('<root><item>value</item></root>')
        >>> doc.root.local_name
        'root'
        >>> doc = parse(Path('catalog.xml'))
        >>> doc.statistics.element_count
        13
    """
    config = config or XMLQueryConfig()
    start_time = time.time()
    logger = get_logger(__name__, correlation_id, "parse")

    logger.info(
        "Starting parse operation",
        extra={
            "input_type": type(source).__name__,
            "has_correlation_id": correlation_id is not None,
        },
    )

    try:
        char_result = CharacterStreamProcessor(
            config.character, correlation_id
        ).process(source)

        tokenizer = XMLTokenizer(config.ingestion, correlation_id)
        builder = XMLTreeBuilder(config.ingestion, correlation_id)
        document = builder.build(tokenizer.tokenize(char_result.text))
    except IngestionError as e:
        logger.warning(
            "Parse operation failed",
            extra={
                "error": e.message,
                "line": e.line,
                "column": e.column,
                "processing_time_ms": (time.time() - start_time) * MS_PER_SECOND,
            },
        )
        raise

    if (
        document.encoding is None
        and char_result.encoding.method != DetectionMethod.NOT_APPLICABLE
    ):
        document.encoding = char_result.encoding.encoding

    statistics = document.statistics
    statistics.characters_processed = len(char_result.text)
    statistics.processing_time_ms = (time.time() - start_time) * MS_PER_SECOND

    logger.info(
        "Parse operation completed",
        extra={
            "element_count": statistics.element_count,
            "node_count": statistics.node_count,
            "processing_time_ms": statistics.processing_time_ms,
        },
    )
    return document


def parse_string(
    xml_string: str,
    config: Optional[XMLQueryConfig] = None,
    correlation_id: Optional[str] = None,
) -> XMLDocument:
    """Parse XML from a string.

    Examples:
        >>> doc = parse_string('<root><item id="1">Hello</item></root>')
        >>> doc.root.first_child.get_attribute('id')
        '1'
    """
    if not isinstance(xml_string, str):
        raise TypeError(f"Expected str, got {type(xml_string).__name__}")

    logger = get_logger(__name__, correlation_id, "parse_string")
    logger.debug(
        "Parsing string input",
        extra={
            "content_length": len(xml_string),
            "preview": (
                xml_string[:PREVIEW_LENGTH] + "..."
                if len(xml_string) > PREVIEW_LENGTH else xml_string
            ),
        },
    )
    return parse(xml_string, config, correlation_id)


def parse_file(
    file_path: Union[str, Path],
    config: Optional[XMLQueryConfig] = None,
    correlation_id: Optional[str] = None,
) -> XMLDocument:
    """Parse XML from a file, detecting its encoding from the bytes.

    Raises:
        FileNotFoundError: If the file does not exist
        IngestionError: If the file is not well-formed XML
    """
    path = Path(file_path)
    logger = get_logger(__name__, correlation_id, "parse_file")

    if not path.is_file():
        logger.warning("File not found", extra={"file_path": str(path)})
        raise FileNotFoundError(f"XML file not found: {path}")

    logger.debug(
        "Parsing file input",
        extra={"file_path": str(path), "file_size": path.stat().st_size},
    )
    return parse(path, config, correlation_id)


@dataclass
class ParseResult:
    """Outcome of :meth:`XMLQueryParser.parse`.

    Attributes:
        success: Whether a document was produced
        document: The document, or None when ingestion failed
        error: The ingestion error, when ingestion failed
        diagnostics: Diagnostics gathered while parsing
        statistics: Ingestion statistics (empty on failure)
        correlation_id: Correlation ID of the parse
    """

    success: bool = True
    document: Optional[XMLDocument] = None
    error: Optional[IngestionError] = None
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)
    statistics: IngestionStatistics = field(default_factory=IngestionStatistics)
    correlation_id: Optional[str] = None

    def add_diagnostic(
        self,
        severity: DiagnosticSeverity,
        message: str,
        component: str,
        position: Optional[Dict[str, int]] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Add diagnostic entry to result."""
        self.diagnostics.append(
            DiagnosticEntry(
                severity=severity,
                message=message,
                component=component,
                position=position,
                details=details,
                correlation_id=self.correlation_id,
            )
        )

    def raise_on_error(self) -> XMLDocument:
        """Return the document, re-raising the ingestion error on failure."""
        if self.error is not None:
            raise self.error
        assert self.document is not None
        return self.document

    @property
    def root(self):
        """Document element, or None on failure."""
        return self.document.root if self.document is not None else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "error": str(self.error) if self.error else None,
            "diagnostics": [
                {
                    "severity": d.severity.name,
                    "message": d.message,
                    "component": d.component,
                    "position": d.position,
                }
                for d in self.diagnostics
            ],
            "statistics": self.statistics.to_dict(),
            "correlation_id": self.correlation_id,
        }


def _create_error_result(
    error: IngestionError,
    correlation_id: Optional[str],
    processing_time: float,
) -> ParseResult:
    """Create an unsuccessful result carrying one CRITICAL diagnostic."""
    result = ParseResult(success=False, error=error, correlation_id=correlation_id)
    result.statistics.processing_time_ms = processing_time
    result.add_diagnostic(
        DiagnosticSeverity.CRITICAL,
        error.message,
        "api_parser",
        position=error.position.to_dict() if error.position else None,
        details={"error_type": type(error).__name__},
    )
    return result


class XMLQueryParser:
    """Reusable parser with configuration and usage statistics.

    :meth:`parse` never raises for malformed input: failures come back as an
    unsuccessful :class:`ParseResult` with a CRITICAL diagnostic.

    The compile cache is shared by the whole process. Constructing or
    reconfiguring a parser applies its ``query`` settings to that cache, so a
    parser with ``enable_expression_cache=False`` disables caching for every
    caller, not only for itself.

    Examples:
        >>> parser = XMLQueryParser(XMLQueryConfig.strict())
        >>> result = parser.parse('<root><item>value</item></root>')
        >>> result.success
        True
        >>> parser.parse('<root>').success
        False
        >>> parser.statistics["total_parses"]
        2
    """

    def __init__(
        self,
        config: Optional[XMLQueryConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        """Initialize parser.

        Args:
            config: Parser configuration, defaults to ``XMLQueryConfig()``
            correlation_id: Optional correlation ID for request tracking
        """
        self.config = config or XMLQueryConfig()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, self.correlation_id, "xmlquery_parser")
        query_api.configure(self.config.query)

        self._parse_count = 0
        self._total_processing_time = 0.0
        self._successful_parses = 0

        self.logger.info(
            "XMLQueryParser initialized",
            extra={"config_name": self.config.name},
        )

    def parse(
        self,
        source: InputType,
        correlation_id_override: Optional[str] = None,
    ) -> ParseResult:
        """Parse ``source`` into a :class:`ParseResult`.

        Args:
            source: XML content as str, bytes, file-like object, or Path
            correlation_id_override: Optional correlation ID for this parse
        """
        start_time = time.time()
        effective_correlation_id = correlation_id_override or self.correlation_id
        self._parse_count += 1

        try:
            document = parse(source, self.config, effective_correlation_id)
        except IngestionError as e:
            processing_time = (time.time() - start_time) * MS_PER_SECOND
            self._total_processing_time += processing_time
            return _create_error_result(e, effective_correlation_id, processing_time)

        self._successful_parses += 1
        self._total_processing_time += document.statistics.processing_time_ms

        result = ParseResult(
            document=document,
            statistics=document.statistics,
            correlation_id=effective_correlation_id,
        )
        self.logger.debug(
            "Configured parse completed",
            extra={
                "total_parses": self._parse_count,
                "success_rate": self._successful_parses / self._parse_count,
            },
        )
        return result

    def reconfigure(self, config: XMLQueryConfig) -> None:
        """Replace the configuration used by later parses."""
        self.config = config
        query_api.configure(config.query)
        self.logger.info(
            "Parser reconfigured",
            extra={"config_name": config.name},
        )

    @property
    def statistics(self) -> Dict[str, Any]:
        """Get parser usage statistics."""
        return {
            "total_parses": self._parse_count,
            "successful_parses": self._successful_parses,
            "success_rate": (
                self._successful_parses / self._parse_count
                if self._parse_count > 0 else 0.0
            ),
            "total_processing_time_ms": self._total_processing_time,
            "average_processing_time_ms": (
                self._total_processing_time / self._parse_count
                if self._parse_count > 0 else 0.0
            ),
            "correlation_id": self.correlation_id,
        }

    def reset_statistics(self) -> None:
        """Reset parser usage statistics."""
        self._parse_count = 0
        self._total_processing_time = 0.0
        self._successful_parses = 0

        self.logger.info("Parser statistics reset")
