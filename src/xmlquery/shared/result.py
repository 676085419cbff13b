"""Diagnostic and statistics types shared by ingestion and querying."""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Optional


class DiagnosticSeverity(Enum):
    """Severity levels for diagnostic entries."""

    DEBUG = auto()
    INFO = auto()
    WARNING = auto()
    ERROR = auto()
    CRITICAL = auto()


@dataclass
class DiagnosticEntry:
    """Single diagnostic entry with context information."""

    severity: DiagnosticSeverity
    message: str
    component: str
    position: Optional[Dict[str, int]] = None
    details: Optional[Dict[str, Any]] = None
    timestamp: float = field(default_factory=time.time)
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate diagnostic entry."""
        if not self.message:
            raise ValueError("Diagnostic message cannot be empty")
        if not self.component:
            raise ValueError("Diagnostic component cannot be empty")


@dataclass
class IngestionStatistics:
    """Counts and timings gathered while a document is ingested."""

    element_count: int = 0
    attribute_count: int = 0
    text_count: int = 0
    comment_count: int = 0
    declaration_count: int = 0
    max_depth: int = 0
    characters_processed: int = 0
    tokens_processed: int = 0
    processing_time_ms: float = 0.0

    @property
    def node_count(self) -> int:
        """Total number of nodes in the tree, excluding the document node."""
        return (
            self.element_count
            + self.attribute_count
            + self.text_count
            + self.comment_count
            + self.declaration_count
        )

    @property
    def characters_per_second(self) -> float:
        """Calculate characters processed per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.characters_processed * 1000.0) / self.processing_time_ms

    def to_dict(self) -> Dict[str, Any]:
        """Convert statistics to a dictionary."""
        return {
            "element_count": self.element_count,
            "attribute_count": self.attribute_count,
            "text_count": self.text_count,
            "comment_count": self.comment_count,
            "declaration_count": self.declaration_count,
            "node_count": self.node_count,
            "max_depth": self.max_depth,
            "characters_processed": self.characters_processed,
            "tokens_processed": self.tokens_processed,
            "processing_time_ms": self.processing_time_ms,
        }
