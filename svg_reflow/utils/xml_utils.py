"""Helper functions to work with SVG namespaces, escaping and inline fragments."""
from __future__ import annotations

import re
from typing import Dict, Mapping, Optional
from xml.etree import ElementTree as ET

SVG_NS = "http://www.w3.org/2000/svg"
XLINK_NS = "http://www.w3.org/1999/xlink"
XML_NS = "http://www.w3.org/XML/1998/namespace"

# Prefixes every document may use without declaring them itself.
WELL_KNOWN_PREFIXES: Dict[str, str] = {
    XLINK_NS: "xlink",
    XML_NS: "xml",
}

_ESCAPED_CHARS = frozenset("&<>\"'`")
_PREFIXED_ATTR = re.compile(r"[\s<]([A-Za-z_][\w.-]*):[A-Za-z_][\w.-]*\s*=")
_FRAGMENT_TAG = "fragment"


def escape_xml(value: str) -> str:
    """Escape markup-significant and non-ASCII characters as decimal references."""
    parts = []
    for char in value:
        code = ord(char)
        if char in _ESCAPED_CHARS or code > 126:
            parts.append(f"&#{code};")
        else:
            parts.append(char)
    return "".join(parts)


def qualified_name(name: str, prefixes: Optional[Mapping[str, str]] = None) -> str:
    """Turn an ElementTree ``{uri}local`` name back into ``prefix:local``.

    Names in the SVG namespace (or in an undeclared default namespace) lose
    their namespace entirely.
    """
    if not name.startswith("{"):
        return name
    uri, local = name[1:].split("}", 1)
    if uri == SVG_NS:
        return local
    prefix = None
    if prefixes:
        prefix = prefixes.get(uri)
    if prefix is None:
        prefix = WELL_KNOWN_PREFIXES.get(uri)
    if not prefix:
        return local
    return f"{prefix}:{local}"


def fragment_namespace(prefix: str) -> str:
    """Namespace URI used for a prefix seen inside a parsed fragment."""
    if prefix == "xlink":
        return XLINK_NS
    return f"urn:svg-reflow:{prefix}"


def parse_fragment(markup: str) -> ET.Element:
    """Parse inline markup (character data plus elements) under a synthetic root.

    Prefixed attribute names are declared on the wrapper so fragments cut out
    of a larger document stay well-formed on their own.
    """
    prefixes = {match.group(1) for match in _PREFIXED_ATTR.finditer(markup)}
    prefixes.discard("xml")
    prefixes.discard("xmlns")
    declarations = "".join(f' xmlns:{prefix}="{fragment_namespace(prefix)}"' for prefix in sorted(prefixes))
    return ET.fromstring(f'<{_FRAGMENT_TAG} xmlns="{SVG_NS}"{declarations}>{markup}</{_FRAGMENT_TAG}>')


def fragment_prefixes(container: ET.Element) -> Dict[str, str]:
    """Reverse map (uri -> prefix) for names produced by :func:`parse_fragment`."""
    mapping: Dict[str, str] = {}
    for element in container.iter():
        for name in element.attrib:
            if name.startswith("{urn:svg-reflow:"):
                uri = name[1:].split("}", 1)[0]
                mapping[uri] = uri.rsplit(":", 1)[-1]
    return mapping


def serialize_element(element: ET.Element, prefixes: Optional[Mapping[str, str]] = None) -> str:
    """Serialize an ElementTree element (without its tail) using numeric escaping."""
    tag = qualified_name(element.tag, prefixes)
    attributes = "".join(
        f' {qualified_name(name, prefixes)}="{escape_xml(value)}"' for name, value in element.attrib.items()
    )
    inner = serialize_children(element, prefixes)
    if not inner:
        return f"<{tag}{attributes}/>"
    return f"<{tag}{attributes}>{inner}</{tag}>"


def serialize_children(element: ET.Element, prefixes: Optional[Mapping[str, str]] = None) -> str:
    """Serialize the text and children (with tails) of an element."""
    parts = [escape_xml(element.text)] if element.text else []
    for child in element:
        parts.append(serialize_element(child, prefixes))
        if child.tail:
            parts.append(escape_xml(child.tail))
    return "".join(parts)


def serialize_fragment(container: ET.Element) -> str:
    """Serialize a container returned by :func:`parse_fragment` back to inline markup."""
    return serialize_children(container, fragment_prefixes(container))


def local_tag(element: ET.Element) -> str:
    """Return the tag of an element without any namespace."""
    return element.tag.split("}", 1)[-1]
