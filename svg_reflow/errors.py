"""Exception types raised by the rendering pipeline."""
from __future__ import annotations

from svg_reflow.utils.xml_utils import escape_xml


class ReflowError(Exception):
    """Base class for errors raised by svg_reflow."""


class ParseError(ReflowError, ValueError):
    """The template markup has no SVG root or is not well-formed."""


class LayoutError(ReflowError, ValueError):
    """A layout description (bindings and components) is malformed."""


def error_graphic(message: str, width: int = 400, height: int = 60) -> str:
    """Small SVG that displays a rendering error in place of the artwork."""
    return (
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}" '
        f'viewBox="0 0 {width} {height}">'
        f'<rect width="{width}" height="{height}" fill="#fdecea" stroke="#d93025"/>'
        f'<text x="10" y="{height // 2}" font-family="Arial" font-size="12" fill="#d93025">'
        f"Rendering error: {escape_xml(message)}</text></svg>"
    )
