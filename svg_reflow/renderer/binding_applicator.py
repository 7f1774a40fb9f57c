"""Apply data bindings to a parsed template."""
from __future__ import annotations

from typing import Any, List, Optional, Tuple

from svg_reflow.model.elements import ElementNode, find_path
from svg_reflow.model.layout_model import (
    Binding,
    ColorComponent,
    ConstrainedWidth,
    DataSources,
    ImageComponent,
    Layout,
    RenderingStrategy,
    TextComponent,
)
from svg_reflow.renderer.cascade import CascadeEngine, sync_filter_width
from svg_reflow.renderer.geometry import GeometryProvider, content_origin
from svg_reflow.renderer.text_layout import TextLayoutEngine, text_bounds
from svg_reflow.utils.data_path import MISSING, resolve_binding_value, stringify
from svg_reflow.utils.glyph_metrics import GlyphMetrics
from svg_reflow.utils.logger import get_logger
from svg_reflow.utils.xml_utils import XLINK_NS

LOGGER = get_logger(__name__)

IMAGE_REFERENCE_ATTRIBUTES = ("href", "xlink:href")
STOP_TAG = "stop"


class BindingApplicator:
    """Writes bound data values into text, image and color targets.

    Text bindings run first so that every height cascade has finished before
    image references and colors are touched. Bindings without a matching
    component, element or value are skipped.
    """

    def __init__(self, glyph_metrics: GlyphMetrics, geometry_provider: GeometryProvider) -> None:
        self._metrics = glyph_metrics
        self._layout_engine = TextLayoutEngine(glyph_metrics)
        self._cascade = CascadeEngine(geometry_provider)

    def apply(self, tree: ElementNode, layout: Layout, data_sources: DataSources) -> None:
        """Mutate ``tree`` in place according to ``layout`` and ``data_sources``."""
        text_bindings: List[Tuple[Binding, TextComponent]] = []
        image_bindings: List[Tuple[Binding, ImageComponent]] = []
        color_bindings: List[Tuple[Binding, ColorComponent]] = []

        for binding in layout.bindings:
            component = layout.component(binding.target_component_id)
            if isinstance(component, TextComponent):
                text_bindings.append((binding, component))
            elif isinstance(component, ImageComponent):
                image_bindings.append((binding, component))
            elif isinstance(component, ColorComponent):
                color_bindings.append((binding, component))
            else:
                LOGGER.debug("Binding targets unknown component %s", binding.target_component_id)

        for binding, text_component in text_bindings:
            self._apply_text(tree, binding, text_component, data_sources)
        for binding, image_component in image_bindings:
            self._apply_image(tree, binding, image_component, data_sources)
        for binding, color_component in color_bindings:
            self._apply_color(tree, binding, color_component, data_sources)

    # ------------------------------------------------------------------
    # Text

    def _apply_text(self, tree: ElementNode, binding: Binding, component: TextComponent, data_sources: DataSources) -> None:
        value = self._resolve(binding, data_sources)
        if value is MISSING:
            return
        node = tree.find(component.element_id)
        if node is None or not node.is_text:
            LOGGER.debug("Text component %s has no text element %s", component.id, component.element_id)
            return

        text = stringify(value)
        strategy = component.rendering_strategy or RenderingStrategy()
        if not isinstance(strategy.width, ConstrainedWidth):
            self._layout_engine.replace_natural(node, text, strategy.text_anchor, strategy.offset)
            return

        before = text_bounds(node, self._metrics, content_origin(tree, node))
        result = self._layout_engine.reflow(
            node,
            text,
            strategy.width.max_width,
            strategy.text_anchor,
            strategy.offset,
        )
        sync_filter_width(tree, node, strategy.width.max_width)
        if result.height_delta and before is not None:
            self._cascade.run(tree, node, before, result.height_delta)

    # ------------------------------------------------------------------
    # Images and colors

    def _apply_image(self, tree: ElementNode, binding: Binding, component: ImageComponent, data_sources: DataSources) -> None:
        value = self._resolve(binding, data_sources)
        if value is MISSING:
            return
        node = tree.find(component.element_id)
        if node is None or not node.is_image:
            LOGGER.debug("Image component %s has no image element %s", component.id, component.element_id)
            return
        reference = stringify(value)
        for name in IMAGE_REFERENCE_ATTRIBUTES:
            node.attributes[name] = reference
        # xlink:href needs its prefix bound for the output to stay well-formed.
        if not any("xmlns:xlink" in candidate.attributes for candidate in find_path(tree, node)):
            tree.attributes["xmlns:xlink"] = XLINK_NS

    def _apply_color(self, tree: ElementNode, binding: Binding, component: ColorComponent, data_sources: DataSources) -> None:
        value = self._resolve(binding, data_sources)
        if not isinstance(value, str) or not value or not component.color:
            return

        target = component.color.lower()
        roles = component.enabled_roles
        allowed = set(component.element_ids) if component.element_ids else None
        replaced = 0
        for node in tree.iter():
            if allowed is not None and node.id not in allowed and node.original_id not in allowed:
                continue
            attrs = node.attributes
            names: List[str] = []
            if roles.fill:
                names.append("fill")
            if roles.stroke:
                names.append("stroke")
            if roles.stop_color and node.tag == STOP_TAG:
                names.append("stop-color")
            for name in names:
                current: Optional[str] = attrs.get(name)
                if current is not None and current.lower() == target:
                    attrs[name] = value
                    replaced += 1
        LOGGER.debug("Color component %s replaced %d attribute(s)", component.id, replaced)

    @staticmethod
    def _resolve(binding: Binding, data_sources: DataSources) -> Any:
        value = resolve_binding_value(data_sources, binding.source_node_id, binding.source_field)
        if value is MISSING:
            LOGGER.debug("Binding %s.%s is undefined", binding.source_node_id, binding.source_field)
        return value
