"""Entry-point for the SVG template rendering pipeline."""
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from svg_reflow.errors import ParseError, error_graphic
from svg_reflow.model.elements import ElementNode
from svg_reflow.model.layout_model import DataSources, Layout
from svg_reflow.parser.document_parser import parse_svg
from svg_reflow.parser.layout_parser import load_layout
from svg_reflow.renderer.binding_applicator import BindingApplicator
from svg_reflow.renderer.geometry import GeometryProvider, SnapshotGeometryProvider
from svg_reflow.renderer.svg_serializer import serialize_svg
from svg_reflow.utils.debug import DebugDumper
from svg_reflow.utils.glyph_metrics import ApproximateGlyphMetrics, GlyphMetrics, PillowGlyphMetrics
from svg_reflow.utils.logger import get_logger, set_verbosity

LOGGER = get_logger(__name__)


@dataclass(slots=True)
class RenderOptions:
    """Collaborators and switches for a single render call."""

    glyph_metrics: Optional[GlyphMetrics] = None
    geometry_provider: Optional[GeometryProvider] = None
    inline_errors: bool = False
    debug_dir: Optional[Path] = None


def build_element_tree(markup: str) -> ElementNode:
    """Parse a template into an element tree with stable ids."""
    if not markup:
        raise ParseError("No SVG template provided")
    return parse_svg(markup)


def render_template(layout: Layout, data_sources: DataSources, options: Optional[RenderOptions] = None) -> str:
    """Render ``layout`` against ``data_sources`` and return the resulting SVG markup.

    Template errors raise :class:`ParseError` unless ``options.inline_errors``
    is set, in which case a small SVG describing the error is returned.
    """
    options = options or RenderOptions()
    metrics = options.glyph_metrics or ApproximateGlyphMetrics()
    geometry = options.geometry_provider or SnapshotGeometryProvider(metrics)
    dumper = DebugDumper(options.debug_dir) if options.debug_dir is not None else None

    try:
        tree = build_element_tree(layout.svg)
    except ParseError as exc:
        if not options.inline_errors:
            raise
        LOGGER.warning("Rendering failed: %s", exc)
        return error_graphic(str(exc))

    if dumper is not None:
        dumper.dump(tree, "parsed_tree")
    BindingApplicator(metrics, geometry).apply(tree, layout, data_sources)
    markup = serialize_svg(tree)
    if dumper is not None:
        dumper.dump(tree, "rendered_tree")
        dumper.dump_markup(markup, "rendered")
    return markup


def main(
    template_file: str,
    layout_file: Optional[str] = None,
    data_file: Optional[str] = None,
    output_file: Optional[str] = None,
    font_dirs: Sequence[str] = (),
    debug_dir: Optional[str] = None,
) -> Path:
    """Render a template file with a layout and data file, writing the SVG next to it."""
    template_path = Path(template_file).resolve()
    if not template_path.exists():
        raise FileNotFoundError(f"Template not found: {template_path}")
    markup = template_path.read_text(encoding="utf-8")

    if layout_file is not None:
        payload = json.loads(Path(layout_file).read_text(encoding="utf-8"))
        layout = load_layout({**payload, "svg": markup})
    else:
        layout = Layout(svg=markup)
    data_sources = json.loads(Path(data_file).read_text(encoding="utf-8")) if data_file else {}

    metrics: GlyphMetrics = ApproximateGlyphMetrics()
    if font_dirs:
        metrics = PillowGlyphMetrics([Path(directory) for directory in font_dirs])

    LOGGER.info("Rendering %s with %d binding(s)", template_path.name, len(layout.bindings))
    options = RenderOptions(glyph_metrics=metrics, debug_dir=Path(debug_dir) if debug_dir else None)
    rendered = render_template(layout, data_sources, options)

    output_path = Path(output_file).resolve() if output_file else template_path.with_name(f"{template_path.stem}.rendered.svg")
    output_path.write_text(rendered, encoding="utf-8")
    LOGGER.info("Wrote %s", output_path)
    return output_path


if __name__ == "__main__":  # pragma: no cover
    import argparse

    parser = argparse.ArgumentParser(description="Render an SVG template against JSON data")
    parser.add_argument("template", help="Path to the SVG template")
    parser.add_argument("--layout", help="Layout JSON with bindings and components")
    parser.add_argument("--data", help="JSON object mapping data source ids to their data")
    parser.add_argument("--output", help="Path of the rendered SVG")
    parser.add_argument("--font-dir", action="append", default=[], help="Directory with TrueType fonts (repeatable)")
    parser.add_argument("--debug-dir", help="Directory to write parsed and rendered trees")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args()
    set_verbosity(args.verbose)
    main(args.template, args.layout, args.data, args.output, args.font_dir, args.debug_dir)
