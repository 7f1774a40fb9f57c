"""Parse SVG template markup into an addressable element tree."""
from __future__ import annotations

from typing import Dict, List, Optional, Tuple
from xml.etree import ElementTree as ET

from svg_reflow.errors import ParseError
from svg_reflow.model.elements import ElementNode
from svg_reflow.parser.id_generator import IdGenerator
from svg_reflow.utils.logger import get_logger
from svg_reflow.utils.xml_utils import local_tag, qualified_name, serialize_element, escape_xml

LOGGER = get_logger(__name__)

TEXT_TAG = "text"
IMAGE_TAG = "image"
INLINE_RUN_TAGS = frozenset({"tspan", "textPath"})

Declarations = List[Tuple[str, str]]


class DocumentParser:
    """Transforms SVG markup into :class:`ElementNode` trees.

    Tokenizing is delegated to ElementTree's pull parser so that namespace
    declarations can be recorded and written back out unchanged.
    """

    def __init__(self, markup: str, id_generator: Optional[IdGenerator] = None) -> None:
        self._markup = markup
        self._ids = id_generator or IdGenerator.from_markup(markup)
        self._declarations: Dict[ET.Element, Declarations] = {}
        self._prefixes: Dict[str, str] = {}

    def parse(self) -> ElementNode:
        """Parse the markup and return the root ``svg`` node."""
        document_root = self._tokenize()
        svg_element = self._find_svg(document_root)
        if svg_element is None:
            raise ParseError("SVG parsing failed: no SVG element found")
        if svg_element is not document_root:
            self._inherit_declarations(svg_element)

        tree = self._parse_element(svg_element)
        LOGGER.debug("Parsed template with %d elements", sum(1 for _ in tree.iter()))
        return tree

    def _tokenize(self) -> ET.Element:
        parser = ET.XMLPullParser(events=("start-ns", "start"))
        pending: Declarations = []
        root: Optional[ET.Element] = None
        try:
            parser.feed(self._markup)
            parser.close()
        except ET.ParseError as exc:
            raise ParseError(f"SVG parsing failed: {exc}") from exc

        for event, payload in parser.read_events():
            if event == "start-ns":
                prefix, uri = payload
                pending.append((prefix, uri))
                self._prefixes.setdefault(uri, prefix)
            elif event == "start":
                if root is None:
                    root = payload
                if pending:
                    self._declarations[payload] = pending
                    pending = []

        if root is None:
            raise ParseError("SVG parsing failed: no SVG element found")
        return root

    @staticmethod
    def _find_svg(document_root: ET.Element) -> Optional[ET.Element]:
        for element in document_root.iter():
            if isinstance(element.tag, str) and local_tag(element) == "svg":
                return element
        return None

    def _inherit_declarations(self, svg_element: ET.Element) -> None:
        """Carry every document-level namespace declaration onto a nested ``svg`` root."""
        own = self._declarations.setdefault(svg_element, [])
        declared = {prefix for prefix, _ in own}
        for declarations in list(self._declarations.values()):
            for prefix, uri in declarations:
                if prefix not in declared:
                    own.append((prefix, uri))
                    declared.add(prefix)

    def _parse_element(self, element: ET.Element) -> ElementNode:
        tag = qualified_name(element.tag, self._prefixes)

        attributes: Dict[str, str] = {}
        for prefix, uri in self._declarations.get(element, []):
            attributes[f"xmlns:{prefix}" if prefix else "xmlns"] = uri

        original_id: Optional[str] = None
        for name, value in element.attrib.items():
            attr_name = qualified_name(name, self._prefixes)
            if attr_name == "id":
                original_id = value
                continue
            attributes[attr_name] = value

        node_id = self._ids.claim(original_id) if original_id else self._ids.next(tag)
        node = ElementNode(
            tag=tag,
            id=node_id,
            attributes=attributes,
            original_id=original_id,
            is_text=tag == TEXT_TAG,
            is_image=tag == IMAGE_TAG,
        )

        self._ids.enter_level()
        if node.is_text:
            self._parse_text_content(element, node)
        else:
            if element.text and element.text.strip():
                node.text_content = element.text
            for child in element:
                if not isinstance(child.tag, str):
                    continue
                node.children.append(self._parse_element(child))
        self._ids.exit_level()
        return node

    def _parse_text_content(self, element: ET.Element, node: ElementNode) -> None:
        """Keep inline runs as markup; other children become regular nodes."""
        parts: List[str] = [escape_xml(element.text)] if element.text else []
        for child in element:
            if not isinstance(child.tag, str):
                continue
            if local_tag(child) in INLINE_RUN_TAGS:
                parts.append(serialize_element(child, self._prefixes))
            else:
                node.children.append(self._parse_element(child))
            if child.tail:
                parts.append(escape_xml(child.tail))

        node.inner_markup = "".join(parts) or None
        node.text_content = "".join(element.itertext())


def parse_svg(markup: str) -> ElementNode:
    """Parse ``markup`` into an element tree with stable ids."""
    return DocumentParser(markup).parse()
