"""Integration adapters for ingesting trees built by other XML libraries.

An adapter replays a foreign tree as lexical events into
:class:`XMLTreeBuilder`, so the result obeys exactly the same invariants as a
document ingested from text: document order, namespace scope resolution and
well-formedness checks are all performed by the builder.
"""

import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Type

from xmlquery.shared import IngestionError, IngestionConfig, get_logger
from xmlquery.tree import XML_NAMESPACE, XMLDocument, XMLTreeBuilder

MS_PER_SECOND = 1000


@dataclass
class AdapterMetadata:
    """Metadata about an integration adapter."""

    name: str
    version: str
    target_library: str
    supported_versions: List[str]
    description: str
    compatibility_notes: Optional[str] = None


@dataclass
class AdapterStatistics:
    """Conversion counters of one adapter instance."""

    conversions: int = 0
    failures: int = 0
    conversion_times_ms: List[float] = field(default_factory=list)

    @property
    def average_time_ms(self) -> float:
        if not self.conversion_times_ms:
            return 0.0
        return sum(self.conversion_times_ms) / len(self.conversion_times_ms)


class IntegrationAdapter(ABC):
    """Abstract base class for adapters that ingest foreign trees.

    Subclasses implement :meth:`to_document` by driving the event methods of
    an :class:`XMLTreeBuilder`.
    """

    def __init__(self, correlation_id: Optional[str] = None) -> None:
        """Initialize the integration adapter.

        Args:
            correlation_id: Optional correlation ID for request tracking
        """
        self.correlation_id = correlation_id
        self._logger = get_logger(__name__, correlation_id, self.__class__.__name__)
        self._statistics = AdapterStatistics()
        self._lock = threading.RLock()

    @property
    @abstractmethod
    def metadata(self) -> AdapterMetadata:
        """Get adapter metadata."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the target library can be imported."""

    @abstractmethod
    def to_document(
        self,
        target_data: Any,
        config: Optional[IngestionConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> XMLDocument:
        """Ingest ``target_data`` into a new document.

        Raises:
            IngestionError: If the foreign tree is not a well-formed,
                namespace-valid document
            TypeError: If ``target_data`` is not a tree of the target library
        """

    @property
    def statistics(self) -> AdapterStatistics:
        return self._statistics

    def _record(self, processing_time_ms: float, success: bool) -> None:
        with self._lock:
            self._statistics.conversions += 1
            if not success:
                self._statistics.failures += 1
            self._statistics.conversion_times_ms.append(processing_time_ms)
            # Keep only recent timings
            if len(self._statistics.conversion_times_ms) > 1000:
                del self._statistics.conversion_times_ms[:-1000]


class LxmlAdapter(IntegrationAdapter):
    """Ingests ``lxml.etree`` elements and element trees.

    Element names are rebuilt from each element's prefix, and namespace
    declarations from the difference between an element's ``nsmap`` and its
    parent's. Comments and processing instructions are replayed; entity
    reference nodes are rejected because DTD entities are never expanded.

    Example:
        >>> from lxml import etree
        >>> tree = etree.fromstring('<a xmlns="urn:x"><b/></a>')
        >>> doc = LxmlAdapter().to_document(tree)
        >>> doc.root.namespace_uri
        'urn:x'
    """

    @property
    def metadata(self) -> AdapterMetadata:
        """Get adapter metadata."""
        return AdapterMetadata(
            name="lxml",
            version="1.0.0",
            target_library="lxml",
            supported_versions=["4.0+"],
            description="Ingestion of lxml.etree trees as xmlquery documents",
        )

    def is_available(self) -> bool:
        """Check if lxml is available."""
        try:
            import lxml.etree  # noqa: F401
            return True
        except ImportError:
            return False

    def to_document(
        self,
        target_data: Any,
        config: Optional[IngestionConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> XMLDocument:
        from lxml import etree

        start_time = time.time()
        correlation_id = correlation_id or self.correlation_id
        builder = XMLTreeBuilder(config, correlation_id)

        if isinstance(target_data, etree._ElementTree):
            root = target_data.getroot()
            docinfo = target_data.docinfo
        elif isinstance(target_data, etree._Element):
            root = target_data
            docinfo = None
        else:
            raise TypeError(
                f"Expected an lxml element or element tree, "
                f"got {type(target_data).__name__}"
            )

        try:
            if docinfo is not None and docinfo.xml_version:
                builder.xml_declaration(
                    docinfo.xml_version, docinfo.encoding, docinfo.standalone
                )
            if docinfo is not None and docinfo.doctype and root is not None:
                builder.doctype(root.tag if isinstance(root.tag, str) else "")

            if root is not None and root.getparent() is not None:
                # A subtree is ingested as a document of its own
                self._replay(root, builder, etree)
            elif root is not None:
                preceding = list(root.itersiblings(preceding=True))
                for sibling in reversed(preceding):
                    self._replay(sibling, builder, etree)
                self._replay(root, builder, etree)
                for sibling in root.itersiblings():
                    self._replay(sibling, builder, etree)

            document = builder.close()
        except IngestionError as e:
            self._record((time.time() - start_time) * MS_PER_SECOND, False)
            self._logger.warning(
                "lxml tree ingestion failed", extra={"error": e.message}
            )
            raise

        processing_time = (time.time() - start_time) * MS_PER_SECOND
        document.statistics.processing_time_ms = processing_time
        self._record(processing_time, True)
        self._logger.debug(
            "lxml tree ingested",
            extra={
                "element_count": document.statistics.element_count,
                "processing_time_ms": processing_time,
            },
        )
        return document

    def _replay(self, top: Any, builder: XMLTreeBuilder, etree: Any) -> None:
        """Replay ``top`` and its subtree as builder events.

        Walks iteratively so deep trees are bounded by the builder's depth
        limit rather than the interpreter's recursion limit.
        """
        # (node, qname); qname is None for an opening visit
        stack: List[Tuple[Any, Optional[str]]] = [(top, None)]
        while stack:
            node, closing_name = stack.pop()
            if closing_name is not None:
                builder.end_element(closing_name)
                self._tail(node, top, builder)
                continue

            if node.tag is etree.Comment:
                builder.comment(node.text or "")
            elif node.tag is etree.ProcessingInstruction:
                builder.processing_instruction(node.target, node.text or "")
            elif node.tag is etree.Entity:
                raise IngestionError(
                    f"Entity reference {node.text} cannot be expanded"
                )
            else:
                qname = self._qualified_name(node, etree)
                builder.start_element(
                    qname, self._attributes(node, etree, node is top)
                )
                if node.text:
                    builder.characters(node.text)
                stack.append((node, qname))
                for child in reversed(list(node)):
                    stack.append((child, None))
                continue
            self._tail(node, top, builder)

    @staticmethod
    def _tail(node: Any, top: Any, builder: XMLTreeBuilder) -> None:
        # Tails of top-level nodes lie outside the document element
        if node is not top and node.tail:
            builder.characters(node.tail)

    @staticmethod
    def _qualified_name(element: Any, etree: Any) -> str:
        local_name = etree.QName(element).localname
        return f"{element.prefix}:{local_name}" if element.prefix else local_name

    @staticmethod
    def _attributes(element: Any, etree: Any, is_top: bool) -> List[Tuple[str, str]]:
        """Namespace declarations followed by the element's attributes."""
        parent = None if is_top else element.getparent()
        inherited: Dict[Optional[str], str] = dict(parent.nsmap) if parent is not None else {}
        nsmap: Dict[Optional[str], str] = dict(element.nsmap)

        attributes: List[Tuple[str, str]] = []
        for prefix, uri in nsmap.items():
            if inherited.get(prefix) != uri:
                attributes.append((f"xmlns:{prefix}" if prefix else "xmlns", uri))
        if None in inherited and None not in nsmap:
            attributes.append(("xmlns", ""))

        prefixes = {uri: prefix for prefix, uri in nsmap.items() if prefix}
        for key, value in element.attrib.items():
            name = etree.QName(key)
            if name.namespace is None:
                attributes.append((name.localname, value))
                continue
            if name.namespace == XML_NAMESPACE:
                prefix = "xml"
            else:
                prefix = prefixes.get(name.namespace)
                if prefix is None:
                    raise IngestionError(
                        f"No prefix is bound to namespace {name.namespace} "
                        f"of attribute {name.localname!r}"
                    )
            attributes.append((f"{prefix}:{name.localname}", value))
        return attributes


_ADAPTERS: Dict[str, Type[IntegrationAdapter]] = {"lxml": LxmlAdapter}


def get_adapter(name: str, correlation_id: Optional[str] = None) -> Optional[IntegrationAdapter]:
    """Return an instance of the adapter registered as ``name``, if available."""
    adapter_class = _ADAPTERS.get(name)
    if adapter_class is None:
        return None
    adapter = adapter_class(correlation_id)
    return adapter if adapter.is_available() else None


def list_available_adapters() -> List[AdapterMetadata]:
    """Metadata of every registered adapter whose library can be imported."""
    available = []
    for adapter_class in _ADAPTERS.values():
        adapter = adapter_class()
        if adapter.is_available():
            available.append(adapter.metadata)
    return available
