"""Bounding boxes for every element of a serialized SVG snapshot."""
from __future__ import annotations

import re
from typing import Dict, List, Optional, Protocol, Tuple

from svg_reflow.model.elements import ElementBounds, ElementNode, find_path
from svg_reflow.parser.document_parser import parse_svg
from svg_reflow.renderer.text_layout import text_bounds
from svg_reflow.utils.glyph_metrics import ApproximateGlyphMetrics, GlyphMetrics
from svg_reflow.utils.logger import get_logger
from svg_reflow.utils.svg_values import ViewBox, parse_number, parse_translate, path_points

LOGGER = get_logger(__name__)

Point = Tuple[float, float]

GROUPING_TAGS = frozenset({"g", "a", "switch"})
# Children are measured (clip rectangles need bounds) but never contribute
# to the bounds of their ancestors.
DEFINITION_TAGS = frozenset(
    {
        "defs",
        "clipPath",
        "mask",
        "pattern",
        "marker",
        "symbol",
        "filter",
        "linearGradient",
        "radialGradient",
        "style",
        "metadata",
        "title",
        "desc",
    }
)
BOX_TAGS = frozenset({"rect", "image", "use", "foreignObject"})


def child_origin(node: ElementNode, origin: Point, is_root: bool = False) -> Point:
    """Origin the children of ``node`` are positioned against.

    Adds the node's own ``translate`` and, for a nested ``svg``, its ``x``
    and ``y``. The root element contributes nothing.
    """
    if is_root:
        return origin
    translate = parse_translate(node.attributes.get("transform")) or (0.0, 0.0)
    x = origin[0] + translate[0]
    y = origin[1] + translate[1]
    if node.tag == "svg":
        x += parse_number(node.attributes.get("x")) or 0.0
        y += parse_number(node.attributes.get("y")) or 0.0
    return x, y


def content_origin(root: ElementNode, node: ElementNode) -> Point:
    """Document-space origin of the content of ``node`` (text runs, children)."""
    origin = (0.0, 0.0)
    for ancestor in find_path(root, node):
        origin = child_origin(ancestor, origin, ancestor is root)
    return origin


class GeometryProvider(Protocol):
    """Computes bounds, keyed by element id, for a serialized document."""

    def compute_bounds(self, markup: str) -> Dict[str, ElementBounds]:
        ...


class SnapshotGeometryProvider:
    """Measures geometry from element attributes.

    Only ``translate`` transforms are honoured; other transforms are ignored.
    Text is measured through the configured glyph metrics. The root ``svg``
    always reports ``0, 0, width, height`` from its attributes.
    """

    def __init__(self, metrics: Optional[GlyphMetrics] = None) -> None:
        self._metrics = metrics or ApproximateGlyphMetrics()
        self.calls = 0

    def compute_bounds(self, markup: str) -> Dict[str, ElementBounds]:
        self.calls += 1
        root = parse_svg(markup)
        result: Dict[str, ElementBounds] = {root.id: self._root_bounds(root)}
        for child in root.children:
            self._measure(child, (0.0, 0.0), result)
        LOGGER.debug("Computed bounds for %d element(s)", len(result))
        return result

    @staticmethod
    def _root_bounds(root: ElementNode) -> ElementBounds:
        width = parse_number(root.attributes.get("width"))
        height = parse_number(root.attributes.get("height"))
        view_box = ViewBox.parse(root.attributes.get("viewBox"))
        if width is None:
            width = view_box.width if view_box else 0.0
        if height is None:
            height = view_box.height if view_box else 0.0
        return ElementBounds(0.0, 0.0, width, height)

    def _measure(self, node: ElementNode, origin: Point, result: Dict[str, ElementBounds]) -> Optional[ElementBounds]:
        translate = parse_translate(node.attributes.get("transform")) or (0.0, 0.0)
        local = (origin[0] + translate[0], origin[1] + translate[1])

        if node.tag in DEFINITION_TAGS:
            for child in node.children:
                self._measure(child, local, result)
            return None

        if node.tag in GROUPING_TAGS:
            bounds = self._union_of_children(node, local, result)
        elif node.tag == "svg":
            bounds = self._nested_svg_bounds(node, origin, result)
        else:
            bounds = self._shape_bounds(node, local)

        if bounds is not None:
            result[node.id] = bounds
        return bounds

    def _union_of_children(self, node: ElementNode, origin: Point, result: Dict[str, ElementBounds]) -> Optional[ElementBounds]:
        collected: List[ElementBounds] = []
        for child in node.children:
            bounds = self._measure(child, origin, result)
            if bounds is not None:
                collected.append(bounds)
        return ElementBounds.union(collected)

    def _nested_svg_bounds(self, node: ElementNode, origin: Point, result: Dict[str, ElementBounds]) -> Optional[ElementBounds]:
        inner = child_origin(node, origin)
        children = self._union_of_children(node, inner, result)
        width = parse_number(node.attributes.get("width"))
        height = parse_number(node.attributes.get("height"))
        if width is not None and height is not None:
            return ElementBounds(inner[0], inner[1], width, height)
        return children

    def _shape_bounds(self, node: ElementNode, origin: Point) -> Optional[ElementBounds]:
        ox, oy = origin
        attrs = node.attributes
        tag = node.tag

        if tag in BOX_TAGS:
            width = parse_number(attrs.get("width"))
            height = parse_number(attrs.get("height"))
            if width is None or height is None:
                if tag != "rect":
                    return None
                width, height = width or 0.0, height or 0.0
            return ElementBounds(ox + self._number(node, "x"), oy + self._number(node, "y"), width, height)

        if tag == "circle":
            r = self._number(node, "r")
            return ElementBounds(ox + self._number(node, "cx") - r, oy + self._number(node, "cy") - r, 2 * r, 2 * r)

        if tag == "ellipse":
            rx = self._number(node, "rx")
            ry = self._number(node, "ry")
            return ElementBounds(ox + self._number(node, "cx") - rx, oy + self._number(node, "cy") - ry, 2 * rx, 2 * ry)

        if tag == "line":
            x1, y1 = self._number(node, "x1"), self._number(node, "y1")
            x2, y2 = self._number(node, "x2"), self._number(node, "y2")
            return ElementBounds(ox + min(x1, x2), oy + min(y1, y2), abs(x2 - x1), abs(y2 - y1))

        if tag in {"polyline", "polygon"}:
            return self._points_bounds(self._parse_points(attrs.get("points", "")), origin)

        if tag == "path":
            return self._points_bounds(path_points(attrs.get("d", "")), origin)

        if node.is_text:
            return text_bounds(node, self._metrics, origin)

        return None

    @staticmethod
    def _points_bounds(points: List[Point], origin: Point) -> Optional[ElementBounds]:
        if not points:
            return None
        xs = [x for x, _ in points]
        ys = [y for _, y in points]
        return ElementBounds(
            origin[0] + min(xs),
            origin[1] + min(ys),
            max(xs) - min(xs),
            max(ys) - min(ys),
        )

    @staticmethod
    def _parse_points(value: str) -> List[Point]:
        numbers = [float(token) for token in re.findall(r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?", value)]
        return list(zip(numbers[0::2], numbers[1::2]))

    @staticmethod
    def _number(node: ElementNode, name: str) -> float:
        return parse_number(node.attributes.get(name)) or 0.0
