"""Tree building from lexical events.

:class:`XMLTreeBuilder` receives tag, text, comment and declaration events in
document order and links them into a :class:`XMLDocument`, resolving names
against the namespace scope and numbering nodes in document order as it goes.
Any structural error aborts the build; a partially built tree is never
returned.
"""

from typing import Iterable, List, Optional, Sequence, Tuple

from xmlquery.shared import IngestionConfig, IngestionError, get_logger
from xmlquery.tokenization import Token, TokenPosition, TokenType

from .namespaces import NamespaceScopeResolver
from .node import Node, NodeKind, XMLDocument

_XML_WHITESPACE = " \t\n\r"


class XMLTreeBuilder:
    """Builds a document tree from tokenizer events.

    The event methods can be driven directly (as the lxml adapter does) or
    through :meth:`build`, which replays a token stream and closes the
    document.
    """

    def __init__(
        self,
        config: Optional[IngestionConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        """Initialize tree builder.

        Args:
            config: Ingestion settings, defaults to ``IngestionConfig()``
            correlation_id: Optional correlation ID for request tracking
        """
        self.config = config or IngestionConfig()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "xml_tree_builder")
        self.resolver = NamespaceScopeResolver()
        self._reset_state()

    def _reset_state(self) -> None:
        """Reset internal state for a new document."""
        self.document = XMLDocument(correlation_id=self.correlation_id)
        self._element_stack: List[Node] = [self.document]
        self._text_buffer: List[str] = []
        self._text_position: Optional[TokenPosition] = None
        self._next_order = 1
        self._seen_root = False
        self._seen_doctype = False
        self._tokens_processed = 0

    @property
    def current(self) -> Node:
        """The node new content is appended to."""
        return self._element_stack[-1]

    def build(self, tokens: Iterable[Token]) -> XMLDocument:
        """Replay ``tokens`` and return the finished document.

        Raises:
            IngestionError: If the token stream is not a well-formed document
        """
        self._reset_state()
        for token in tokens:
            self._tokens_processed += 1
            self._process_token(token)
        return self.close()

    def _process_token(self, token: Token) -> None:
        if token.type == TokenType.START_TAG:
            attributes = [(a.name, a.value) for a in token.attributes]
            self.start_element(token.name, attributes, token.position)
            if token.self_closing:
                self.end_element(token.name, token.position)
        elif token.type == TokenType.END_TAG:
            self.end_element(token.name, token.position)
        elif token.type == TokenType.TEXT:
            self.characters(token.value, token.position)
        elif token.type == TokenType.CDATA:
            self.characters(token.value, token.position, cdata=True)
        elif token.type == TokenType.COMMENT:
            self.comment(token.value, token.position)
        elif token.type == TokenType.PROCESSING_INSTRUCTION:
            self.processing_instruction(token.name, token.value, token.position)
        elif token.type == TokenType.XML_DECLARATION:
            fields = {a.name: a.value for a in token.attributes}
            standalone = fields.get("standalone")
            self.xml_declaration(
                fields.get("version", "1.0"),
                fields.get("encoding"),
                None if standalone is None else standalone == "yes",
                token.position,
            )
        elif token.type == TokenType.DOCTYPE:
            self.doctype(token.name, token.position)

    # Event API

    def start_element(
        self,
        qname: str,
        attributes: Sequence[Tuple[str, str]],
        position: Optional[TokenPosition] = None,
    ) -> Node:
        """Open an element.

        Namespace declarations among ``attributes`` are recorded first so the
        element's own name and its attributes resolve against them.
        """
        self._flush_text()
        parent = self.current
        if parent is self.document and self._seen_root:
            raise IngestionError(
                f"Element <{qname}> found after the document element", position
            )
        depth = len(self._element_stack)
        if depth > self.config.max_depth:
            raise IngestionError(
                f"Maximum nesting depth of {self.config.max_depth} exceeded", position
            )
        limit = self.config.max_attributes_per_element
        if limit is not None and len(attributes) > limit:
            raise IngestionError(
                f"Element <{qname}> has more than {limit} attributes", position
            )

        element = Node(NodeKind.ELEMENT, position=position)
        element.parent = parent

        seen_names = set()
        regular: List[Tuple[str, str]] = []
        for name, value in attributes:
            if name in seen_names:
                raise IngestionError(
                    f"Duplicate attribute '{name}' on element <{qname}>", position
                )
            seen_names.add(name)
            if name == "xmlns":
                self.resolver.check_declaration("", value, position)
                element.namespace_declarations[""] = value
            elif name.startswith("xmlns:"):
                prefix = name[6:]
                self.resolver.check_declaration(prefix, value, position)
                element.namespace_declarations[prefix] = value
            else:
                regular.append((name, value))

        (
            element.prefix,
            element.local_name,
            element.namespace_uri,
        ) = self.resolver.resolve_element_name(element, qname, position)
        element.document_order = self._take_order()

        expanded_names = set()
        for name, value in regular:
            prefix, local_name, uri = self.resolver.resolve_attribute_name(
                element, name, position
            )
            if (uri, local_name) in expanded_names:
                raise IngestionError(
                    f"Attribute '{name}' on element <{qname}> duplicates the "
                    f"expanded name {{{uri}}}{local_name}",
                    position,
                )
            expanded_names.add((uri, local_name))
            attribute = Node(
                NodeKind.ATTRIBUTE,
                local_name=local_name,
                prefix=prefix,
                namespace_uri=uri,
                value=value,
                document_order=self._take_order(),
                position=position,
            )
            attribute.parent = element
            element.attributes.append(attribute)

        parent._append_child(element)
        self._element_stack.append(element)
        if parent is self.document:
            self._seen_root = True

        statistics = self.document.statistics
        statistics.element_count += 1
        statistics.attribute_count += len(element.attributes)
        statistics.max_depth = max(statistics.max_depth, depth)
        return element

    def end_element(self, qname: str, position: Optional[TokenPosition] = None) -> None:
        """Close the innermost open element, which must be named ``qname``."""
        self._flush_text()
        if len(self._element_stack) == 1:
            raise IngestionError(f"Unexpected end tag </{qname}>", position)
        element = self.current
        if element.qualified_name != qname:
            raise IngestionError(
                f"Mismatched end tag: expected </{element.qualified_name}>, "
                f"found </{qname}>",
                position,
            )
        self._element_stack.pop()

    def characters(
        self,
        text: str,
        position: Optional[TokenPosition] = None,
        cdata: bool = False,
    ) -> None:
        """Add character data; adjacent runs are joined into one text node."""
        if len(self._element_stack) == 1:
            if cdata or text.strip(_XML_WHITESPACE):
                raise IngestionError(
                    "Character data is not allowed outside the document element",
                    position,
                )
            return
        if not self._text_buffer:
            self._text_position = position
        self._text_buffer.append(text)

    def comment(self, text: str, position: Optional[TokenPosition] = None) -> None:
        """Add a comment node."""
        self._flush_text()
        if not self.config.keep_comments:
            return
        self._append(Node(NodeKind.COMMENT, value=text, position=position))
        self.document.statistics.comment_count += 1

    def processing_instruction(
        self,
        target: str,
        data: str,
        position: Optional[TokenPosition] = None,
    ) -> None:
        """Add a processing instruction as a DECLARATION node."""
        self._flush_text()
        if not self.config.keep_processing_instructions:
            return
        node = Node(NodeKind.DECLARATION, local_name=target, value=data, position=position)
        self._append(node)
        self.document.statistics.declaration_count += 1

    def xml_declaration(
        self,
        version: str,
        encoding: Optional[str] = None,
        standalone: Optional[bool] = None,
        position: Optional[TokenPosition] = None,
    ) -> None:
        """Record the XML declaration on the document."""
        if self._next_order != 1 or self._text_buffer:
            raise IngestionError(
                "XML declaration is only allowed at the start of the document",
                position,
            )
        self.document.version = version
        self.document.encoding = encoding
        self.document.standalone = standalone
        if not self.config.keep_xml_declaration:
            return

        value = f'version="{version}"'
        if encoding is not None:
            value += f' encoding="{encoding}"'
        if standalone is not None:
            value += f' standalone="{"yes" if standalone else "no"}"'
        self._append(
            Node(NodeKind.DECLARATION, local_name="xml", value=value, position=position)
        )
        self.document.statistics.declaration_count += 1

    def doctype(self, name: str, position: Optional[TokenPosition] = None) -> None:
        """Accept a DOCTYPE declaration; it is checked for placement only."""
        self._flush_text()
        if self._seen_root or self._seen_doctype:
            raise IngestionError(
                f"DOCTYPE '{name}' must appear once, before the document element",
                position,
            )
        self._seen_doctype = True

    def close(self) -> XMLDocument:
        """Finish the document and return it.

        Raises:
            IngestionError: If elements are left open or there is no root
        """
        self._flush_text()
        if len(self._element_stack) > 1:
            element = self.current
            raise IngestionError(
                f"Unclosed element <{element.qualified_name}>", element.position
            )
        if not self._seen_root:
            raise IngestionError("Document has no root element")

        document = self.document
        document.statistics.tokens_processed = self._tokens_processed
        self.logger.debug(
            "Tree building completed",
            extra={
                "element_count": document.statistics.element_count,
                "node_count": document.statistics.node_count,
                "max_depth": document.statistics.max_depth,
            },
        )
        return document

    # Helpers

    def _take_order(self) -> int:
        order = self._next_order
        self._next_order += 1
        return order

    def _append(self, node: Node) -> None:
        node.document_order = self._take_order()
        self.current._append_child(node)

    def _flush_text(self) -> None:
        if not self._text_buffer:
            return
        text = "".join(self._text_buffer)
        self._text_buffer.clear()
        if not text:
            return
        self._append(Node(NodeKind.TEXT, value=text, position=self._text_position))
        self.document.statistics.text_count += 1
