"""Build :class:`Layout` objects from their JSON description."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from svg_reflow.errors import LayoutError
from svg_reflow.model.layout_model import (
    TEXT_ANCHORS,
    Binding,
    ColorComponent,
    ColorRoles,
    Component,
    ConstrainedWidth,
    ImageComponent,
    Layout,
    NaturalWidth,
    RenderingStrategy,
    TextComponent,
    WidthMode,
)
from svg_reflow.utils.logger import get_logger

LOGGER = get_logger(__name__)


class LayoutParser:
    """Reads the camelCase layout format exported by the template editor.

    Expected shape::

        {
          "svg": "<svg ...>",
          "connections": [{"sourceNodeId", "sourceField", "targetNodeId"}],
          "components": [{"id", "type": "text" | "image" | "color", ...}]
        }

    ``bindings`` and ``nodes`` are accepted as aliases of ``connections`` and
    ``components``.
    """

    def __init__(self, payload: Mapping[str, Any]) -> None:
        if not isinstance(payload, Mapping):
            raise LayoutError("Layout must be a JSON object")
        self._payload = payload

    def parse(self) -> Layout:
        svg = self._payload.get("svg")
        if not isinstance(svg, str):
            raise LayoutError("Layout is missing its 'svg' template")

        raw_bindings = self._list("connections", "bindings")
        raw_components = self._list("components", "nodes")
        layout = Layout(
            svg=svg,
            bindings=[self._parse_binding(entry) for entry in raw_bindings],
            components=[self._parse_component(entry) for entry in raw_components],
        )
        LOGGER.debug("Loaded layout with %d binding(s) and %d component(s)", len(layout.bindings), len(layout.components))
        return layout

    def _list(self, key: str, alias: str) -> List[Mapping[str, Any]]:
        entries = self._payload.get(key, self._payload.get(alias, []))
        if entries is None:
            return []
        if not isinstance(entries, list) or not all(isinstance(entry, Mapping) for entry in entries):
            raise LayoutError(f"'{key}' must be a list of objects")
        return entries

    @staticmethod
    def _require(entry: Mapping[str, Any], key: str) -> str:
        value = entry.get(key)
        if not isinstance(value, str):
            raise LayoutError(f"Missing required string '{key}' in {dict(entry)!r}")
        return value

    def _parse_binding(self, entry: Mapping[str, Any]) -> Binding:
        return Binding(
            source_node_id=self._require(entry, "sourceNodeId"),
            source_field=entry.get("sourceField") or "",
            target_component_id=self._require(entry, "targetNodeId"),
        )

    def _parse_component(self, entry: Mapping[str, Any]) -> Component:
        component_id = self._require(entry, "id")
        kind = entry.get("type")
        if kind == "text":
            return TextComponent(
                id=component_id,
                element_id=self._require(entry, "elementId"),
                rendering_strategy=self._parse_strategy(entry.get("renderingStrategy")),
            )
        if kind == "image":
            return ImageComponent(id=component_id, element_id=self._require(entry, "elementId"))
        if kind == "color":
            roles = entry.get("enabledRoles") or {}
            element_ids = entry.get("elementIds")
            return ColorComponent(
                id=component_id,
                color=entry.get("color") or "",
                enabled_roles=ColorRoles(
                    fill=bool(roles.get("fill", False)),
                    stroke=bool(roles.get("stroke", False)),
                    stop_color=bool(roles.get("stop-color", False)),
                ),
                element_ids=list(element_ids) if element_ids else None,
            )
        raise LayoutError(f"Unknown component type {kind!r} for component {component_id}")

    def _parse_strategy(self, raw: Optional[Mapping[str, Any]]) -> Optional[RenderingStrategy]:
        if not raw:
            return None
        alignment = raw.get("horizontalAlignment")
        if alignment is not None and alignment not in TEXT_ANCHORS:
            raise LayoutError(f"Unknown horizontal alignment {alignment!r}")
        offset = raw.get("offset")
        return RenderingStrategy(
            width=self._parse_width(raw.get("width") or {}),
            horizontal_alignment=alignment,
            offset=float(offset) if offset is not None else None,
        )

    @staticmethod
    def _parse_width(raw: Mapping[str, Any]) -> WidthMode:
        kind = raw.get("type", "natural")
        if kind == "natural":
            return NaturalWidth()
        if kind == "constrained":
            value = raw.get("value")
            if not isinstance(value, (int, float)) or isinstance(value, bool):
                raise LayoutError("Constrained width needs a numeric 'value'")
            return ConstrainedWidth(max_width=float(value))
        raise LayoutError(f"Unknown width type {kind!r}")


def load_layout(source: Union[str, Path, Mapping[str, Any]]) -> Layout:
    """Load a layout from a mapping, a JSON string, or a path to a JSON file."""
    if isinstance(source, Mapping):
        return LayoutParser(source).parse()
    if isinstance(source, Path):
        text = source.read_text(encoding="utf-8")
    else:
        text = source
    try:
        payload: Dict[str, Any] = json.loads(text)
    except json.JSONDecodeError as exc:
        raise LayoutError(f"Layout is not valid JSON: {exc}") from exc
    return LayoutParser(payload).parse()
