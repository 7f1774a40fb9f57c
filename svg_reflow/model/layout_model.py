"""Bindings, components and layouts that drive a render."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Literal, Mapping, Optional, Sequence

DataSources = Mapping[str, Any]

HorizontalAlignment = Literal["left", "center", "right"]

TEXT_ANCHORS = {
    "left": "start",
    "center": "middle",
    "right": "end",
}


@dataclass(frozen=True, slots=True)
class NaturalWidth:
    """Text keeps its natural width on a single run."""

    type: Literal["natural"] = "natural"


@dataclass(frozen=True, slots=True)
class ConstrainedWidth:
    """Text is wrapped so that no line exceeds ``max_width``."""

    max_width: float
    type: Literal["constrained"] = "constrained"


WidthMode = NaturalWidth | ConstrainedWidth


@dataclass(frozen=True, slots=True)
class RenderingStrategy:
    """How a text component lays out its bound value."""

    width: WidthMode = field(default_factory=NaturalWidth)
    horizontal_alignment: Optional[HorizontalAlignment] = None
    offset: Optional[float] = None

    @property
    def text_anchor(self) -> Optional[str]:
        if self.horizontal_alignment is None:
            return None
        return TEXT_ANCHORS.get(self.horizontal_alignment)


@dataclass(frozen=True, slots=True)
class Binding:
    """Link from a field of a data source to a component."""

    source_node_id: str
    source_field: str
    target_component_id: str


@dataclass(frozen=True, slots=True)
class TextComponent:
    """Replaces the text of one ``text`` element."""

    id: str
    element_id: str
    rendering_strategy: Optional[RenderingStrategy] = None
    kind: Literal["text"] = "text"


@dataclass(frozen=True, slots=True)
class ImageComponent:
    """Points one ``image`` element at a new reference."""

    id: str
    element_id: str
    kind: Literal["image"] = "image"


@dataclass(frozen=True, slots=True)
class ColorRoles:
    """Which paint attributes a color component may rewrite."""

    fill: bool = False
    stroke: bool = False
    stop_color: bool = False


@dataclass(frozen=True, slots=True)
class ColorComponent:
    """Repaints every attribute that currently uses ``color``."""

    id: str
    color: str
    enabled_roles: ColorRoles = field(default_factory=ColorRoles)
    element_ids: Optional[Sequence[str]] = None
    kind: Literal["color"] = "color"


Component = TextComponent | ImageComponent | ColorComponent


@dataclass(slots=True)
class Layout:
    """A template plus the bindings and components applied to it."""

    svg: str
    bindings: List[Binding] = field(default_factory=list)
    components: List[Component] = field(default_factory=list)

    def component(self, component_id: str) -> Optional[Component]:
        """Return the component with the given id, if any."""
        for component in self.components:
            if component.id == component_id:
                return component
        return None
