"""Serialize element trees back into SVG markup."""
from __future__ import annotations

from typing import List

from svg_reflow.model.elements import ElementNode
from svg_reflow.utils.xml_utils import escape_xml


class SvgSerializer:
    """Produce markup for an :class:`ElementNode` tree."""

    def serialize(self, node: ElementNode) -> str:
        parts: List[str] = []
        self._write(node, parts)
        return "".join(parts)

    def _write(self, node: ElementNode, parts: List[str]) -> None:
        parts.append(f'<{node.tag} id="{escape_xml(node.id)}"')
        for name, value in node.attributes.items():
            parts.append(f' {name}="{escape_xml(value)}"')

        has_markup = node.is_text and bool(node.inner_markup)
        if not node.children and not has_markup and not node.text_content:
            parts.append(" />")
            return

        parts.append(">")
        if has_markup:
            parts.append(node.inner_markup or "")
        elif node.text_content:
            parts.append(escape_xml(node.text_content))

        for child in node.children:
            self._write(child, parts)
        parts.append(f"</{node.tag}>")


def serialize_svg(node: ElementNode) -> str:
    """Serialize ``node`` and its subtree to a markup string."""
    return SvgSerializer().serialize(node)
