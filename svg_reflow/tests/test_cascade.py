"""Tests for height propagation after a text element changes size."""
import unittest
from typing import Dict, List, Tuple

from svg_reflow.model.elements import ElementBounds, ElementNode
from svg_reflow.parser.document_parser import parse_svg
from svg_reflow.renderer.cascade import (
    CascadeEngine,
    CascadeResult,
    contains_changed_element,
    shift_elements_below,
    sync_filter_width,
)
from svg_reflow.renderer.geometry import SnapshotGeometryProvider, content_origin
from svg_reflow.renderer.text_layout import text_bounds
from svg_reflow.utils.glyph_metrics import ApproximateGlyphMetrics

SVG_NS = 'xmlns="http://www.w3.org/2000/svg"'

CARD = (
    f'<svg {SVG_NS} width="400" height="700" viewBox="0 0 400 700">'
    "<defs>"
    '<clipPath id="clip"><rect id="clip-rect" width="400" height="700"/></clipPath>'
    '<filter id="shadow" x="0" y="0" width="200" height="50"/>'
    "</defs>"
    '<g id="card" clip-path="url(#clip)">'
    '<rect id="background" width="400" height="626"/>'
    '<ellipse id="halo" cx="100" cy="80" rx="80" ry="40"/>'
    '<rect id="badge" y="0" width="40" height="20"/>'
    '<g id="shadow-wrap" filter="url(#shadow)">'
    '<text id="title" font-family="Arial" font-size="20"><tspan x="24" y="100">Short</tspan></text>'
    "</g>"
    '<rect id="footer" y="640" width="400" height="40"/>'
    "</g>"
    "</svg>"
)

# Bounds of "Short" at baseline 100, Arial 20: top 84, one 24-unit line.
TITLE_BOUNDS = ElementBounds(24, 84, 52, 24)


class RecordingGeometry:
    """Geometry provider returning fixed bounds and recording snapshots."""

    def __init__(self, bounds: Dict[str, ElementBounds]) -> None:
        self.bounds = bounds
        self.snapshots: List[str] = []

    def compute_bounds(self, markup: str) -> Dict[str, ElementBounds]:
        self.snapshots.append(markup)
        return dict(self.bounds)


class ContainmentTest(unittest.TestCase):
    """Overlap thresholds for treating a shape as enclosing the text."""

    def setUp(self) -> None:
        self.changed = ElementBounds(0, 100, 50, 20)

    def test_ninety_percent_overlap_matches(self) -> None:
        self.assertTrue(contains_changed_element(ElementBounds(0, 0, 100, 118), self.changed))

    def test_eighty_five_percent_overlap_does_not_match(self) -> None:
        self.assertFalse(contains_changed_element(ElementBounds(0, 0, 100, 117), self.changed))

    def test_disjoint_and_missing(self) -> None:
        self.assertFalse(contains_changed_element(ElementBounds(0, 200, 10, 10), self.changed))
        self.assertFalse(contains_changed_element(None, self.changed))

    def test_short_elements_only_need_overlap(self) -> None:
        thin = ElementBounds(0, 100, 50, 4)
        self.assertTrue(contains_changed_element(ElementBounds(0, 103, 10, 10), thin))
        self.assertFalse(contains_changed_element(ElementBounds(0, 104, 10, 10), thin))


class ShiftElementsBelowTest(unittest.TestCase):
    """Everything below the threshold moves down once."""

    def setUp(self) -> None:
        markup = (
            f'<svg {SVG_NS} width="200" height="300">'
            '<linearGradient id="grad" x1="0" y1="50" x2="0" y2="250"/>'
            '<rect id="above" y="10" height="20"/>'
            '<text id="changed" y="90"><tspan y="110">x</tspan></text>'
            '<rect id="below" y="150" height="10"/>'
            '<circle id="dot" cy="200" r="5"/>'
            '<line id="rule" x1="0" y1="40" x2="10" y2="160"/>'
            '<g id="moved" transform="translate(0 120)"><rect id="inner" y="5" height="5"/></g>'
            '<g id="stay" transform="translate(0, 50)"><rect id="deep" y="60" height="5"/></g>'
            '<path id="arrow" d="M 0 150 L 10 160"/>'
            '<path id="high" d="M 0 10 L 10 20" transform="scale(2)"/>'
            '<text id="caption"><tspan x="0" y="180">c</tspan></text>'
            '<svg id="inset" y="220" height="20"><rect id="inset-bg" y="0" height="20"/></svg>'
            "</svg>"
        )
        self.tree = parse_svg(markup)
        self.shifted = shift_elements_below(self.tree, 100, 20, exclude={"changed"})

    def attr(self, element_id: str, name: str) -> str:
        node = self.tree.find(element_id)
        assert node is not None
        return node.attributes[name]

    def test_plain_coordinates(self) -> None:
        self.assertEqual(self.attr("above", "y"), "10")
        self.assertEqual(self.attr("below", "y"), "170")
        self.assertEqual(self.attr("dot", "cy"), "220")

    def test_line_moves_as_a_whole(self) -> None:
        self.assertEqual(self.attr("rule", "y1"), "60")
        self.assertEqual(self.attr("rule", "y2"), "180")

    def test_gradient_endpoints_move_independently(self) -> None:
        self.assertEqual(self.attr("grad", "y1"), "50")
        self.assertEqual(self.attr("grad", "y2"), "270")

    def test_translated_group_carries_descendants(self) -> None:
        self.assertEqual(self.attr("moved", "transform"), "translate(0, 140)")
        self.assertEqual(self.attr("inner", "y"), "5")
        self.assertNotIn("inner", self.shifted)

    def test_descendants_use_absolute_position(self) -> None:
        self.assertEqual(self.attr("stay", "transform"), "translate(0, 50)")
        self.assertEqual(self.attr("deep", "y"), "80")

    def test_paths_get_a_translate(self) -> None:
        self.assertEqual(self.attr("arrow", "transform"), "translate(0, 20)")
        self.assertEqual(self.attr("high", "transform"), "scale(2)")

    def test_inline_runs_and_nested_svg(self) -> None:
        caption = self.tree.find("caption")
        assert caption is not None
        self.assertEqual(caption.inner_markup, '<tspan x="0" y="200">c</tspan>')
        self.assertEqual(self.attr("inset", "y"), "240")
        self.assertEqual(self.attr("inset-bg", "y"), "0")

    def test_changed_element_and_root_are_untouched(self) -> None:
        changed = self.tree.find("changed")
        assert changed is not None
        self.assertEqual(changed.attributes["y"], "90")
        self.assertEqual(changed.inner_markup, '<tspan y="110">x</tspan>')
        self.assertEqual(self.tree.attributes["height"], "300")
        self.assertNotIn("changed", self.shifted)


class CascadeEngineTest(unittest.TestCase):
    """Containing shapes, clips, filters and the canvas follow the text."""

    def setUp(self) -> None:
        self.tree = parse_svg(CARD)
        self.title = self.tree.find("title")
        assert self.title is not None

    def attr(self, element_id: str, name: str) -> str:
        node = self.tree.find(element_id)
        assert node is not None
        return node.attributes[name]

    def test_growth_propagates(self) -> None:
        provider = SnapshotGeometryProvider()
        result = CascadeEngine(provider).run(self.tree, self.title, TITLE_BOUNDS, 72)

        self.assertEqual(provider.calls, 1)
        self.assertEqual(self.attr("background", "height"), "698")
        self.assertEqual(self.attr("halo", "ry"), "76")
        self.assertEqual(self.attr("badge", "height"), "20")
        self.assertEqual(self.attr("footer", "y"), "712")
        self.assertEqual(self.attr("clip-rect", "height"), "772")
        self.assertEqual(self.attr("shadow", "height"), "122")
        self.assertEqual(self.attr("shadow", "y"), "0")
        self.assertEqual(self.tree.attributes["height"], "772")
        self.assertEqual(self.tree.attributes["viewBox"], "0 0 400 772")
        self.assertEqual(sorted(result.resized), ["background", "halo"])
        self.assertEqual(result.clip_rects, ["clip-rect"])
        self.assertEqual(result.filters, ["shadow"])

    def test_shrinking(self) -> None:
        CascadeEngine(SnapshotGeometryProvider()).run(self.tree, self.title, TITLE_BOUNDS, -10)
        self.assertEqual(self.attr("background", "height"), "616")
        self.assertEqual(self.attr("footer", "y"), "630")
        self.assertEqual(self.tree.attributes["height"], "690")

    def test_zero_delta_is_a_no_op(self) -> None:
        provider = RecordingGeometry({})
        CascadeEngine(provider).run(self.tree, self.title, TITLE_BOUNDS, 0)
        self.assertEqual(provider.snapshots, [])
        self.assertEqual(self.tree.attributes["height"], "700")

    def test_missing_geometry_is_not_a_match(self) -> None:
        provider = RecordingGeometry({})
        result = CascadeEngine(provider).run(self.tree, self.title, TITLE_BOUNDS, 30)
        self.assertEqual(len(provider.snapshots), 1)
        self.assertEqual(result.resized, [])
        self.assertEqual(self.attr("background", "height"), "626")
        self.assertEqual(self.attr("footer", "y"), "670")
        self.assertEqual(self.tree.attributes["height"], "730")

    def test_height_with_unit_keeps_suffix(self) -> None:
        self.tree.attributes["height"] = "700px"
        CascadeEngine(SnapshotGeometryProvider()).run(self.tree, self.title, TITLE_BOUNDS, 5)
        self.assertEqual(self.tree.attributes["height"], "705px")

    def test_filter_width_follows_constrained_width(self) -> None:
        self.assertEqual(sync_filter_width(self.tree, self.title, 150), "shadow")
        self.assertEqual(self.attr("shadow", "width"), "150")

    def test_filter_ignored_when_wrapper_has_other_content(self) -> None:
        wrapper = self.tree.find("shadow-wrap")
        footer = self.tree.find("footer")
        assert wrapper is not None and footer is not None
        wrapper.children.append(footer)
        self.assertIsNone(sync_filter_width(self.tree, self.title, 150))


class CascadeAncestorTest(unittest.TestCase):
    """The ancestors of the changed text keep their own position."""

    def attr(self, tree: ElementNode, element_id: str, name: str) -> str:
        node = tree.find(element_id)
        assert node is not None
        return node.attributes[name]

    def run_cascade(self, markup: str, delta: float) -> Tuple[ElementNode, ElementBounds, CascadeResult]:
        tree = parse_svg(markup)
        text = tree.find("tt")
        assert text is not None
        before = text_bounds(text, ApproximateGlyphMetrics(), content_origin(tree, text))
        assert before is not None
        result = CascadeEngine(SnapshotGeometryProvider()).run(tree, text, before, delta)
        return tree, before, result

    def test_translated_group_stays_in_place(self) -> None:
        tree, before, result = self.run_cascade(
            f'<svg {SVG_NS} width="200" height="400">'
            '<g id="grp" transform="translate(0, 300)">'
            '<rect id="panel" y="-20" width="200" height="40"/>'
            '<text id="tt" font-size="20"><tspan x="10" y="0">Hi</tspan></text>'
            '<rect id="note" y="30" height="10"/>'
            "</g>"
            "</svg>",
            24,
        )
        self.assertEqual(before.top, 284)
        self.assertEqual(self.attr(tree, "grp", "transform"), "translate(0, 300)")
        self.assertNotIn("grp", result.shifted)
        self.assertEqual(self.attr(tree, "note", "y"), "54")
        self.assertEqual(self.attr(tree, "panel", "y"), "-20")
        self.assertEqual(self.attr(tree, "panel", "height"), "64")
        text = tree.find("tt")
        assert text is not None
        self.assertEqual(text.inner_markup, '<tspan x="10" y="0">Hi</tspan>')
        self.assertEqual(tree.attributes["height"], "424")

    def test_nested_svg_offset_sets_the_threshold(self) -> None:
        tree, before, _ = self.run_cascade(
            f'<svg {SVG_NS} width="200" height="400">'
            '<rect id="header" y="150" width="200" height="20"/>'
            '<svg id="inner" y="200" width="200" height="100">'
            '<rect id="panel" y="0" width="200" height="100"/>'
            '<text id="tt" font-size="20"><tspan x="10" y="40">Hi</tspan></text>'
            "</svg>"
            '<rect id="footer" y="320" width="200" height="20"/>'
            "</svg>",
            24,
        )
        self.assertEqual(before.top, 224)
        self.assertEqual(self.attr(tree, "header", "y"), "150")
        self.assertEqual(self.attr(tree, "inner", "y"), "200")
        self.assertEqual(self.attr(tree, "panel", "height"), "124")
        self.assertEqual(self.attr(tree, "footer", "y"), "344")

    def test_pinned_elements_still_shift_their_children(self) -> None:
        tree = parse_svg(
            f'<svg {SVG_NS}><g id="grp" transform="translate(0, 300)"><rect id="low" y="10" height="5"/></g></svg>'
        )
        shifted = shift_elements_below(tree, 100, 20, pinned={"grp"})
        self.assertEqual(shifted, ["low"])
        self.assertEqual(self.attr(tree, "grp", "transform"), "translate(0, 300)")
        self.assertEqual(self.attr(tree, "low", "y"), "30")



if __name__ == "__main__":
    unittest.main()
