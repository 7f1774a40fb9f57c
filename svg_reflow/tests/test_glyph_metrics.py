"""Tests for text width measurement backends."""
import tempfile
import unittest
from pathlib import Path

from svg_reflow.utils.glyph_metrics import ApproximateGlyphMetrics, FontSpec, PillowGlyphMetrics

DEJAVU_DIR = Path("/usr/share/fonts/truetype/dejavu")


class ApproximateGlyphMetricsTest(unittest.TestCase):
    """Widths follow per-family average character ratios."""

    def setUp(self) -> None:
        self.metrics = ApproximateGlyphMetrics()

    def test_regular_and_bold(self) -> None:
        self.assertAlmostEqual(self.metrics.measure("abc", FontSpec("Arial", 10)), 15.6)
        self.assertAlmostEqual(self.metrics.measure("abc", FontSpec("Arial", 10, "700")), 16.8)
        self.assertAlmostEqual(self.metrics.measure("abc", FontSpec("Arial", 10, "bold")), 16.8)

    def test_family_list_and_unknown_family(self) -> None:
        self.assertAlmostEqual(self.metrics.measure("ab", FontSpec("'Montserrat', sans-serif", 10)), 11.6)
        self.assertAlmostEqual(self.metrics.measure("ab", FontSpec("Comic Neue", 10)), 11.0)

    def test_letter_spacing_and_empty_text(self) -> None:
        self.assertAlmostEqual(self.metrics.measure("abc", FontSpec("Arial", 10, letter_spacing=1)), 17.6)
        self.assertEqual(self.metrics.measure("", FontSpec()), 0.0)


class PillowGlyphMetricsTest(unittest.TestCase):
    """TrueType measurement with a fallback when fonts are missing."""

    def test_falls_back_without_font_files(self) -> None:
        with tempfile.TemporaryDirectory() as directory:
            metrics = PillowGlyphMetrics([Path(directory)])
            font = FontSpec("Arial", 10)
            with self.assertLogs("svg_reflow.utils.glyph_metrics", level="WARNING") as captured:
                width = metrics.measure("abc", font)
                metrics.measure("abcd", font)
            self.assertAlmostEqual(width, 15.6)
            self.assertEqual(len(captured.records), 1)

    @unittest.skipUnless((DEJAVU_DIR / "DejaVuSans.ttf").exists(), "DejaVu fonts not installed")
    def test_measures_truetype_fonts(self) -> None:
        metrics = PillowGlyphMetrics([DEJAVU_DIR])
        font = FontSpec("DejaVu Sans", 12)
        short = metrics.measure("Hello", font)
        longer = metrics.measure("Hello world", font)
        self.assertGreater(short, 0)
        self.assertGreater(longer, short)


if __name__ == "__main__":
    unittest.main()
