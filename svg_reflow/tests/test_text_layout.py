"""Tests for line breaking and inline-run generation."""
import unittest

from svg_reflow.parser.document_parser import parse_svg
from svg_reflow.renderer.text_layout import (
    TextLayoutEngine,
    break_text_into_lines,
    generate_runs,
    measure_text_block,
    text_bounds,
)
from svg_reflow.utils.glyph_metrics import ApproximateGlyphMetrics, FontSpec


def text_node(inner: str, attributes: str = 'font-family="Arial" font-size="10"'):
    tree = parse_svg(f'<svg xmlns="http://www.w3.org/2000/svg"><text id="t" {attributes}>{inner}</text></svg>')
    return tree.children[0]


class LineBreakingTest(unittest.TestCase):
    """Greedy wrapping with explicit line breaks."""

    def setUp(self) -> None:
        self.metrics = ApproximateGlyphMetrics()
        # Arial at 10 units measures 5.2 per character.
        self.font = FontSpec(family="Arial", size=10)

    def test_explicit_line_breaks(self) -> None:
        lines = break_text_into_lines("First line\nSecond line", 1000, self.font, self.metrics)
        self.assertEqual(lines, ["First line", "Second line"])

    def test_carriage_return_line_breaks(self) -> None:
        lines = break_text_into_lines("One\r\nTwo", 1000, self.font, self.metrics)
        self.assertEqual(lines, ["One", "Two"])

    def test_only_line_breaks_gives_empty_lines(self) -> None:
        self.assertEqual(break_text_into_lines("\n\n\n", 100, self.font, self.metrics), ["", "", "", ""])

    def test_greedy_wrap(self) -> None:
        lines = break_text_into_lines("aaa bbb ccc", 40, self.font, self.metrics)
        self.assertEqual(lines, ["aaa bbb", "ccc"])

    def test_overflowing_word_stands_alone(self) -> None:
        lines = break_text_into_lines("supercalifragilistic x", 20, self.font, self.metrics)
        self.assertEqual(lines, ["supercalifragilistic", "x"])

    def test_lines_fit_unless_single_overflowing_word(self) -> None:
        text = "The quick brown fox jumps over the extraordinarily lazy dog near the riverbank"
        for max_width in (30, 60, 90, 150):
            for line in break_text_into_lines(text, max_width, self.font, self.metrics):
                if " " in line:
                    self.assertLessEqual(self.metrics.measure(line, self.font), max_width)

    def test_generate_runs_spacing(self) -> None:
        runs = generate_runs(["a", "b", "c"], 10, 20, 12, 2)
        self.assertEqual([(run.x, run.y, run.text) for run in runs], [(10, 20, "a"), (10, 34, "b"), (10, 48, "c")])


class MeasurementTest(unittest.TestCase):
    """Block heights and bounds estimated from runs."""

    def test_block_height_from_run_positions(self) -> None:
        node = text_node('<tspan x="0" y="10">a</tspan><tspan x="0" y="25">b</tspan><tspan x="0" y="40">c</tspan>')
        block = measure_text_block(node)
        self.assertEqual(block.line_height, 15)
        self.assertEqual(block.height, 45)

    def test_single_line_height_defaults_to_font_size_factor(self) -> None:
        node = text_node('<tspan x="0" y="10">a</tspan>')
        self.assertAlmostEqual(measure_text_block(node).height, 12)

    def test_bounds_without_runs(self) -> None:
        node = text_node("Hello", 'x="10" y="30" font-family="Arial" font-size="10"')
        bounds = text_bounds(node, ApproximateGlyphMetrics(), origin=(5, 100))
        self.assertIsNotNone(bounds)
        assert bounds is not None
        self.assertAlmostEqual(bounds.x, 15)
        self.assertAlmostEqual(bounds.y, 122)
        self.assertAlmostEqual(bounds.width, 26)
        self.assertAlmostEqual(bounds.height, 12)

    def test_bounds_respect_text_anchor(self) -> None:
        node = text_node("Hello", 'x="10" y="30" font-size="10" text-anchor="middle"')
        bounds = text_bounds(node, ApproximateGlyphMetrics())
        assert bounds is not None
        self.assertAlmostEqual(bounds.x, -3)


class TextLayoutEngineTest(unittest.TestCase):
    """Runs are rewritten for natural and constrained strategies."""

    def setUp(self) -> None:
        self.engine = TextLayoutEngine(ApproximateGlyphMetrics())

    def test_reflow_generates_one_run_per_line(self) -> None:
        node = text_node('<tspan x="5" y="20" dx="1" fill="red">Old</tspan>')
        result = self.engine.reflow(node, "aaa bbb ccc", 40)

        self.assertEqual(result.lines, ["aaa bbb", "ccc"])
        self.assertEqual(
            node.inner_markup,
            '<tspan x="5" y="20" dx="1" fill="red">aaa bbb</tspan><tspan x="5" y="32" fill="red">ccc</tspan>',
        )
        self.assertEqual(node.text_content, "aaa bbb ccc")
        self.assertAlmostEqual(result.old_height, 12)
        self.assertAlmostEqual(result.new_height, 24)
        self.assertAlmostEqual(result.height_delta, 12)

    def test_reflow_uses_existing_line_height_and_spacing(self) -> None:
        node = text_node(
            '<tspan x="0" y="20">a</tspan><tspan x="0" y="35">b</tspan>',
            'font-family="Arial" font-size="10" line-height="16"',
        )
        result = self.engine.reflow(node, "aaa bbb ccc", 40)
        self.assertEqual(result.line_height, 15)
        self.assertIn('<tspan x="0" y="41">ccc</tspan>', node.inner_markup or "")

    def test_reflow_with_alignment(self) -> None:
        node = text_node('<tspan x="5" y="20">Old</tspan>')
        self.engine.reflow(node, "aaa bbb ccc", 40, text_anchor="middle", offset=50)
        self.assertEqual(
            node.inner_markup,
            '<tspan x="50" y="20" text-anchor="middle">aaa bbb</tspan>'
            '<tspan x="50" y="32" text-anchor="middle">ccc</tspan>',
        )

    def test_reflow_without_runs(self) -> None:
        node = text_node("Old", 'x="3" y="10" font-size="10"')
        result = self.engine.reflow(node, "A & B", 1000)
        self.assertEqual(node.inner_markup, '<tspan x="3" y="10">A &#38; B</tspan>')
        self.assertEqual(result.height_delta, 0)

    def test_natural_replaces_first_run_and_empties_others(self) -> None:
        node = text_node('<tspan x="10" y="20">Old</tspan><tspan x="10" y="40">Two</tspan>')
        self.engine.replace_natural(node, "New")
        self.assertEqual(node.inner_markup, '<tspan x="10" y="20">New</tspan><tspan x="10" y="40"/>')
        self.assertEqual(node.text_content, "New")

    def test_natural_alignment_and_offset(self) -> None:
        node = text_node('<tspan x="10" y="20">Old</tspan>')
        self.engine.replace_natural(node, "New", text_anchor="end", offset=150)
        self.assertEqual(node.inner_markup, '<tspan x="150" y="20" text-anchor="end">New</tspan>')

    def test_natural_without_runs_escapes_value(self) -> None:
        node = text_node("Old")
        self.engine.replace_natural(node, "<b>")
        self.assertEqual(node.inner_markup, "&#60;b&#62;")


if __name__ == "__main__":
    unittest.main()
