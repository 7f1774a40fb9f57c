"""Line breaking and inline-run generation for width-constrained text."""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple
from xml.etree import ElementTree as ET

from svg_reflow.model.elements import ElementBounds, ElementNode
from svg_reflow.utils.glyph_metrics import FontSpec, GlyphMetrics
from svg_reflow.utils.logger import get_logger
from svg_reflow.utils.svg_values import format_number, parse_number
from svg_reflow.utils.xml_utils import SVG_NS, escape_xml, local_tag, parse_fragment, serialize_fragment

LOGGER = get_logger(__name__)

DEFAULT_FONT_FAMILY = "Arial"
DEFAULT_FONT_SIZE = 12.0
DEFAULT_FONT_WEIGHT = "normal"
LINE_HEIGHT_FACTOR = 1.2
ASCENT_FACTOR = 0.8

RUN_TAG = "tspan"
POSITION_ATTRIBUTES = frozenset({"x", "y"})
POSITION_ONLY_ATTRIBUTES = frozenset({"x", "y", "dx", "dy"})

_LINE_BREAK = re.compile(r"\r?\n")


@dataclass(slots=True)
class RunPlacement:
    """Position and content of one generated line."""

    x: float
    y: float
    text: str


@dataclass(slots=True)
class ReflowResult:
    """Outcome of re-wrapping a text element."""

    lines: List[str]
    old_height: float
    new_height: float
    line_height: float

    @property
    def height_delta(self) -> float:
        return self.new_height - self.old_height


@dataclass(slots=True)
class TextBlock:
    """Vertical extent of the lines of a text element."""

    baselines: List[float] = field(default_factory=list)
    line_height: float = 0.0

    @property
    def height(self) -> float:
        if not self.baselines:
            return 0.0
        return max(self.baselines) - min(self.baselines) + self.line_height


def break_text_into_lines(text: str, max_width: float, font: FontSpec, metrics: GlyphMetrics) -> List[str]:
    """Greedily wrap ``text`` so that each line fits in ``max_width``.

    Explicit line breaks always start a new line and blank sub-lines are kept
    as empty strings. A word wider than ``max_width`` is placed on its own
    line rather than broken.
    """
    lines: List[str] = []
    for sub_line in _LINE_BREAK.split(text):
        if not sub_line.strip():
            lines.append("")
            continue

        current = ""
        for word in sub_line.split(" "):
            candidate = f"{current} {word}" if current else word
            if metrics.measure(candidate, font) <= max_width:
                current = candidate
            elif current:
                lines.append(current)
                current = word
            else:
                lines.append(word)
        if current:
            lines.append(current)
    return lines


def generate_runs(
    lines: Sequence[str],
    start_x: float,
    start_y: float,
    line_height: float,
    line_spacing: float = 0.0,
) -> List[RunPlacement]:
    """Place one run per line, each ``line_height + line_spacing`` below the previous."""
    step = line_height + line_spacing
    return [RunPlacement(x=start_x, y=start_y + index * step, text=line) for index, line in enumerate(lines)]


# ----------------------------------------------------------------------
# Inline run inspection


def inline_runs(container: ET.Element) -> List[ET.Element]:
    """Direct ``tspan`` children of a parsed inner-markup fragment."""
    return [child for child in container if local_tag(child) == RUN_TAG]


def _attribute(run: Optional[ET.Element], node: ElementNode, name: str) -> Optional[str]:
    if run is not None and run.get(name) is not None:
        return run.get(name)
    return node.attributes.get(name)


def _first_coordinate(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    first = value.replace(",", " ").split()
    return parse_number(first[0]) if first else None


def font_for(node: ElementNode, run: Optional[ET.Element]) -> FontSpec:
    """Font settings of a text element, preferring its first run."""
    size = parse_number(_attribute(run, node, "font-size")) or DEFAULT_FONT_SIZE
    letter_spacing = parse_number(_attribute(run, node, "letter-spacing")) or 0.0
    return FontSpec(
        family=_attribute(run, node, "font-family") or DEFAULT_FONT_FAMILY,
        size=size,
        weight=_attribute(run, node, "font-weight") or DEFAULT_FONT_WEIGHT,
        letter_spacing=letter_spacing,
    )


def _baselines(node: ElementNode, runs: Sequence[ET.Element]) -> List[float]:
    baselines = [y for y in (_first_coordinate(run.get("y")) for run in runs) if y is not None]
    if not baselines:
        text_y = _first_coordinate(node.attributes.get("y"))
        if text_y is not None:
            baselines.append(text_y)
    return baselines


def _line_height(node: ElementNode, runs: Sequence[ET.Element], font: FontSpec) -> float:
    if len(runs) >= 2:
        first_y = _first_coordinate(runs[0].get("y"))
        second_y = _first_coordinate(runs[1].get("y"))
        if first_y is not None and second_y is not None and first_y != second_y:
            return abs(second_y - first_y)
    first = runs[0] if runs else None
    explicit = parse_number(_attribute(first, node, "dy"))
    if explicit:
        return explicit
    return font.size * LINE_HEIGHT_FACTOR


def _line_spacing(node: ElementNode, run: Optional[ET.Element], font: FontSpec) -> float:
    value = parse_number(_attribute(run, node, "line-spacing") or _attribute(run, node, "line-height"))
    if value is None:
        return 0.0
    return value - font.size


def _parse_runs(node: ElementNode) -> Tuple[ET.Element, List[ET.Element]]:
    container = parse_fragment(node.inner_markup or "")
    return container, inline_runs(container)


def measure_text_block(node: ElementNode, line_height: Optional[float] = None) -> TextBlock:
    """Baselines and line height of a text element as currently laid out."""
    _, runs = _parse_runs(node)
    font = font_for(node, runs[0] if runs else None)
    resolved = line_height if line_height else _line_height(node, runs, font)
    return TextBlock(baselines=_baselines(node, runs), line_height=resolved)


def text_bounds(
    node: ElementNode,
    metrics: GlyphMetrics,
    origin: Tuple[float, float] = (0.0, 0.0),
) -> Optional[ElementBounds]:
    """Estimate the bounds of a text element from its runs and glyph metrics.

    ``origin`` is the document-space origin of the runs, see
    :func:`svg_reflow.renderer.geometry.content_origin`.
    """
    block = measure_text_block(node)
    if not block.baselines:
        return None
    _, runs = _parse_runs(node)
    first = runs[0] if runs else None
    font = font_for(node, first)

    anchor = _attribute(first, node, "text-anchor") or "start"
    lefts: List[float] = []
    rights: List[float] = []
    if runs:
        entries = [(run, "".join(run.itertext())) for run in runs]
    else:
        entries = [(None, node.text_content or "")]
    for run, content in entries:
        x = _first_coordinate(run.get("x") if run is not None else None)
        if x is None:
            x = _first_coordinate(node.attributes.get("x")) or 0.0
        width = metrics.measure(content, font_for(node, run))
        if anchor == "middle":
            left = x - width / 2
        elif anchor == "end":
            left = x - width
        else:
            left = x
        lefts.append(left)
        rights.append(left + width)

    top = min(block.baselines) - font.size * ASCENT_FACTOR
    return ElementBounds(
        x=min(lefts) + origin[0],
        y=top + origin[1],
        width=max(rights) - min(lefts),
        height=block.height,
    )


# ----------------------------------------------------------------------
# Mutation


class TextLayoutEngine:
    """Rewrites the inline runs of text elements."""

    def __init__(self, metrics: GlyphMetrics) -> None:
        self._metrics = metrics

    def replace_natural(
        self,
        node: ElementNode,
        value: str,
        text_anchor: Optional[str] = None,
        offset: Optional[float] = None,
    ) -> None:
        """Put ``value`` into the first run and empty the remaining runs."""
        container, runs = _parse_runs(node)
        node.text_content = value
        if not runs:
            node.inner_markup = escape_xml(value)
            return

        for index, run in enumerate(runs):
            for nested in list(run):
                run.remove(nested)
            run.text = value if index == 0 else ""
        if offset is not None:
            runs[0].set("x", format_number(offset))
        if text_anchor:
            runs[0].set("text-anchor", text_anchor)
        node.inner_markup = serialize_fragment(container)

    def reflow(
        self,
        node: ElementNode,
        value: str,
        max_width: float,
        text_anchor: Optional[str] = None,
        offset: Optional[float] = None,
    ) -> ReflowResult:
        """Wrap ``value`` into ``max_width`` and replace all runs with one run per line."""
        container, runs = _parse_runs(node)
        first = runs[0] if runs else None
        font = font_for(node, first)
        line_height = _line_height(node, runs, font)
        line_spacing = _line_spacing(node, first, font)
        old_block = TextBlock(baselines=_baselines(node, runs), line_height=line_height)

        start_x = offset
        if start_x is None:
            start_x = _first_coordinate(_attribute(first, node, "x")) or 0.0
        start_y = old_block.baselines[0] if old_block.baselines else 0.0

        lines = break_text_into_lines(value, max_width, font, self._metrics)
        placements = generate_runs(lines, start_x, start_y, line_height, line_spacing)

        insert_at = list(container).index(first) if first is not None else len(container)
        for run in runs:
            container.remove(run)
        template: Dict[str, str] = dict(first.attrib) if first is not None else {}
        for index, placement in enumerate(placements):
            excluded = POSITION_ATTRIBUTES if index == 0 else POSITION_ONLY_ATTRIBUTES
            attributes = {"x": format_number(placement.x), "y": format_number(placement.y)}
            attributes.update((name, inherited) for name, inherited in template.items() if name not in excluded)
            if text_anchor:
                attributes["text-anchor"] = text_anchor
            run = ET.Element(f"{{{SVG_NS}}}{RUN_TAG}", attributes)
            run.text = placement.text
            container.insert(insert_at + index, run)

        if first is None and container.text:
            container.text = None
        node.inner_markup = serialize_fragment(container)
        node.text_content = value

        new_block = TextBlock(baselines=[placement.y for placement in placements], line_height=line_height)
        LOGGER.debug(
            "Reflowed %s into %d line(s); height %s -> %s",
            node.id,
            len(lines),
            format_number(old_block.height),
            format_number(new_block.height),
        )
        return ReflowResult(
            lines=lines,
            old_height=old_block.height,
            new_height=new_block.height,
            line_height=line_height,
        )
