"""Propagate a text height change through the rest of the document.

When a text element grows or shrinks, everything below it moves by the same
amount, every shape that visually contains it is resized, clip rectangles and
filter regions follow, and finally the canvas itself changes height.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set

from svg_reflow.model.elements import ElementBounds, ElementNode, find_parent, find_path
from svg_reflow.renderer.geometry import GeometryProvider, Point, child_origin
from svg_reflow.renderer.svg_serializer import serialize_svg
from svg_reflow.utils.logger import get_logger
from svg_reflow.utils.svg_values import (
    ViewBox,
    add_vertical_translate,
    format_number,
    parse_number,
    parse_translate,
    path_y_candidates,
    replace_translate,
    shift_length,
    url_reference,
)
from svg_reflow.utils.xml_utils import local_tag, parse_fragment, serialize_fragment

LOGGER = get_logger(__name__)

SMALL_HEIGHT_THRESHOLD = 5.0
CONTAINMENT_RATIO = 0.9

NON_RENDERABLE_TAGS = frozenset(
    {"style", "metadata", "title", "desc", "defs", "clipPath", "mask", "pattern", "marker", "symbol"}
)
CONTAINER_TAGS = frozenset({"g", "svg", "symbol", "marker", "switch", "a", "foreignObject"})
RESIZABLE_TAGS = frozenset({"rect", "ellipse", "circle"})


@dataclass(slots=True)
class CascadeResult:
    """Ids of the elements touched by one cascade."""

    shifted: List[str] = field(default_factory=list)
    resized: List[str] = field(default_factory=list)
    clip_rects: List[str] = field(default_factory=list)
    filters: List[str] = field(default_factory=list)


def contains_changed_element(candidate: Optional[ElementBounds], changed: ElementBounds) -> bool:
    """Whether ``candidate`` vertically encloses the changed element.

    Short elements (under 5 units) only need to overlap; taller ones must
    have at least 90% of their height inside the candidate.
    """
    if candidate is None:
        return False
    overlap = candidate.vertical_overlap(changed)
    if overlap <= 0:
        return False
    if changed.height < SMALL_HEIGHT_THRESHOLD:
        return True
    return overlap >= changed.height * CONTAINMENT_RATIO - 1e-9


# ----------------------------------------------------------------------
# Step 1: move everything below the changed element


def _shift_coordinate(attrs: Dict[str, str], name: str, delta: float) -> None:
    shifted = shift_length(attrs[name], delta)
    if shifted is not None:
        attrs[name] = shifted


def _below(value: Optional[float], origin_y: float, threshold: float) -> bool:
    return value is not None and origin_y + value > threshold


def _shift_runs(node: ElementNode, origin_y: float, threshold: float, delta: float) -> bool:
    if not node.inner_markup:
        return False
    container = parse_fragment(node.inner_markup)
    changed = False
    for run in container.iter():
        if run is container or local_tag(run) != "tspan" or run.get("y") is None:
            continue
        values = run.get("y", "").replace(",", " ").split()
        numbers = [parse_number(value) for value in values]
        if not numbers or numbers[0] is None or not _below(numbers[0], origin_y, threshold):
            continue
        run.set("y", " ".join(format_number(number + delta) if number is not None else raw for number, raw in zip(numbers, values)))
        changed = True
    if changed:
        node.inner_markup = serialize_fragment(container)
    return changed


def _shift_node(node: ElementNode, origin_y: float, threshold: float, delta: float) -> tuple[bool, bool]:
    """Shift one element; returns (element changed, descendants moved along)."""
    attrs = node.attributes
    transform = attrs.get("transform")
    translate = parse_translate(transform)
    if translate is not None and transform is not None and _below(translate[1], origin_y, threshold):
        attrs["transform"] = replace_translate(transform, translate[0], translate[1] + delta)
        return True, True

    local_y = origin_y + (translate[1] if translate else 0.0)
    changed = False
    moves_subtree = False

    if _below(parse_number(attrs.get("y")), local_y, threshold):
        _shift_coordinate(attrs, "y", delta)
        changed = True
        moves_subtree = node.tag == "svg"

    if _below(parse_number(attrs.get("cy")), local_y, threshold):
        _shift_coordinate(attrs, "cy", delta)
        changed = True

    endpoints = [name for name in ("y1", "y2") if name in attrs]
    below = [name for name in endpoints if _below(parse_number(attrs[name]), local_y, threshold)]
    if below:
        # Lines move as a whole; gradient vectors stretch with what they paint.
        for name in endpoints if node.tag == "line" else below:
            _shift_coordinate(attrs, name, delta)
        changed = True

    if node.tag == "path" and "d" in attrs:
        if any(_below(y, local_y, threshold) for y in path_y_candidates(attrs["d"])):
            attrs["transform"] = add_vertical_translate(transform, delta)
            changed = True

    if node.is_text and _shift_runs(node, local_y, threshold, delta):
        changed = True

    return changed, moves_subtree


def shift_elements_below(
    root: ElementNode,
    threshold: float,
    delta: float,
    exclude: Iterable[str] = (),
    pinned: Iterable[str] = (),
) -> List[str]:
    """Move every element positioned below ``threshold`` down by ``delta``.

    Positions are compared in document coordinates (ancestor translations and
    nested ``svg`` offsets included). Elements moved through their
    ``transform`` carry their descendants along, so those are not shifted a
    second time. ``exclude`` skips whole subtrees; ``pinned`` elements keep
    their own position while their descendants are still visited. Path data
    is only scanned approximately and may react to curve control points.
    """
    excluded: Set[str] = set(exclude)
    held: Set[str] = set(pinned)
    shifted: List[str] = []

    def visit(node: ElementNode, origin: Point, carried: bool) -> None:
        if node.id in excluded:
            return
        inner = child_origin(node, origin, node is root)
        moves_subtree = carried
        if node is not root and not carried and node.id not in held:
            changed, moves_subtree = _shift_node(node, origin[1], threshold, delta)
            if changed:
                shifted.append(node.id)
        for child in node.children:
            visit(child, inner, moves_subtree)

    visit(root, (0.0, 0.0), False)
    return shifted


# ----------------------------------------------------------------------
# Steps 2-4


def _grow(node: ElementNode, delta: float) -> bool:
    attrs = node.attributes
    if node.tag == "rect":
        name, amount = "height", delta
    elif node.tag == "ellipse":
        name, amount = "ry", delta / 2
    elif node.tag == "circle":
        name, amount = "r", delta / 2
    else:
        return False
    if name not in attrs:
        return False
    grown = shift_length(attrs[name], amount, floor=0.0)
    if grown is None:
        return False
    attrs[name] = grown
    return True


def wrapping_filter(root: ElementNode, text_node: ElementNode) -> Optional[ElementNode]:
    """Filter applied by a group whose only renderable child is ``text_node``."""
    parent = find_parent(root, text_node)
    if parent is None or parent.tag != "g":
        return None
    filter_id = url_reference(parent.attributes.get("filter"))
    if not filter_id:
        return None
    meaningful = [child for child in parent.children if child.tag not in NON_RENDERABLE_TAGS]
    if len(meaningful) != 1 or meaningful[0] is not text_node:
        return None
    target = root.find(filter_id)
    if target is None or target.tag != "filter":
        return None
    return target


def sync_filter_width(root: ElementNode, text_node: ElementNode, width: float) -> Optional[str]:
    """Keep the wrapper filter of a constrained text as wide as the text box."""
    target = wrapping_filter(root, text_node)
    if target is None:
        return None
    target.attributes["width"] = format_number(width)
    return target.id


class CascadeEngine:
    """Restores layout consistency after a text element changed height."""

    def __init__(self, geometry: GeometryProvider) -> None:
        self._geometry = geometry

    def run(
        self,
        root: ElementNode,
        changed: ElementNode,
        original_bounds: ElementBounds,
        delta: float,
    ) -> CascadeResult:
        """Apply the height change ``delta`` of ``changed`` to the whole document."""
        result = CascadeResult()
        if delta == 0:
            return result

        bounds = self._geometry.compute_bounds(serialize_svg(root))
        ancestors = [node.id for node in find_path(root, changed)[:-1]]
        result.shifted = shift_elements_below(
            root, original_bounds.top, delta, exclude={changed.id}, pinned=ancestors
        )

        processed: Set[str] = {changed.id}
        synced_clips: Set[str] = set()
        current = changed
        while True:
            parent = find_parent(root, current)
            if parent is None:
                break
            for sibling in parent.children:
                if sibling.id not in processed:
                    self._resize_containing(sibling, original_bounds, delta, bounds, processed, result)
            for holder in (current, parent):
                self._sync_clip_path(root, holder, original_bounds, delta, bounds, synced_clips, result)
            processed.add(parent.id)
            current = parent

        filter_node = wrapping_filter(root, changed)
        if filter_node is not None and "height" in filter_node.attributes:
            grown = shift_length(filter_node.attributes["height"], delta, floor=0.0)
            if grown is not None:
                filter_node.attributes["height"] = grown
                result.filters.append(filter_node.id)

        self._update_root(root, delta)
        LOGGER.debug(
            "Cascade for %s (delta %s): %d shifted, %d resized, %d clip rect(s), %d filter(s)",
            changed.id,
            format_number(delta),
            len(result.shifted),
            len(result.resized),
            len(result.clip_rects),
            len(result.filters),
        )
        return result

    def _resize_containing(
        self,
        node: ElementNode,
        original_bounds: ElementBounds,
        delta: float,
        bounds: Dict[str, ElementBounds],
        processed: Set[str],
        result: CascadeResult,
    ) -> None:
        if node.tag in NON_RENDERABLE_TAGS:
            return
        if node.tag in CONTAINER_TAGS:
            for child in node.children:
                if child.id not in processed:
                    self._resize_containing(child, original_bounds, delta, bounds, processed, result)
            return
        if node.tag not in RESIZABLE_TAGS:
            return

        candidate = bounds.get(node.id)
        if candidate is None:
            LOGGER.debug("No geometry for %s; treating it as not containing", node.id)
            return
        if contains_changed_element(candidate, original_bounds) and _grow(node, delta):
            processed.add(node.id)
            result.resized.append(node.id)

    def _sync_clip_path(
        self,
        root: ElementNode,
        holder: ElementNode,
        original_bounds: ElementBounds,
        delta: float,
        bounds: Dict[str, ElementBounds],
        synced: Set[str],
        result: CascadeResult,
    ) -> None:
        clip_id = url_reference(holder.attributes.get("clip-path"))
        if not clip_id or clip_id in synced:
            return
        synced.add(clip_id)
        clip = root.find(clip_id)
        if clip is None or clip.tag != "clipPath":
            return
        for shape in clip.iter():
            if shape.tag == "rect" and contains_changed_element(bounds.get(shape.id), original_bounds):
                if _grow(shape, delta):
                    result.clip_rects.append(shape.id)

    @staticmethod
    def _update_root(root: ElementNode, delta: float) -> None:
        height = root.attributes.get("height")
        if height is not None:
            grown = shift_length(height, delta, floor=0.0)
            if grown is not None:
                root.attributes["height"] = grown

        view_box = ViewBox.parse(root.attributes.get("viewBox"))
        if view_box is not None:
            root.attributes["viewBox"] = str(view_box.with_height(max(0.0, view_box.height + delta)))
