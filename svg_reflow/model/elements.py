"""In-memory representation of a parsed SVG template."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional


@dataclass(slots=True)
class ElementNode:
    """A single SVG element with a stable identifier.

    ``attributes`` keeps source order and never holds ``id``; the identifier
    lives in ``id`` and is always serialized first. Text elements keep the
    markup of their inline runs in ``inner_markup`` instead of child nodes.
    """

    tag: str
    id: str
    attributes: Dict[str, str] = field(default_factory=dict)
    children: List["ElementNode"] = field(default_factory=list)
    original_id: Optional[str] = None
    is_text: bool = False
    is_image: bool = False
    inner_markup: Optional[str] = None
    text_content: Optional[str] = None

    def iter(self) -> Iterator["ElementNode"]:
        """Depth-first pre-order traversal including this node."""
        yield self
        for child in self.children:
            yield from child.iter()

    def find(self, element_id: str) -> Optional["ElementNode"]:
        """Return the node with the given id in this subtree."""
        for node in self.iter():
            if node.id == element_id:
                return node
        return None


def find_parent(root: ElementNode, target: ElementNode) -> Optional[ElementNode]:
    """Locate the parent of ``target`` by searching from ``root``.

    Nodes keep no back-references, so this is O(size of tree); cascades walk
    only a handful of levels.
    """
    for node in root.iter():
        for child in node.children:
            if child is target:
                return node
    return None


def find_path(root: ElementNode, target: ElementNode) -> List[ElementNode]:
    """Return the chain of nodes from ``root`` down to ``target`` (inclusive)."""
    if root is target:
        return [root]
    for child in root.children:
        path = find_path(child, target)
        if path:
            return [root, *path]
    return []


@dataclass(slots=True)
class ElementBounds:
    """Axis-aligned bounding box in document units."""

    x: float
    y: float
    width: float
    height: float

    def __post_init__(self) -> None:
        self.width = max(0.0, self.width)
        self.height = max(0.0, self.height)

    @property
    def top(self) -> float:
        return self.y

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def right(self) -> float:
        return self.x + self.width

    def vertical_overlap(self, other: "ElementBounds") -> float:
        """Length of the shared vertical span (negative when disjoint)."""
        return min(self.bottom, other.bottom) - max(self.top, other.top)

    @staticmethod
    def union(bounds: List["ElementBounds"]) -> Optional["ElementBounds"]:
        if not bounds:
            return None
        left = min(b.x for b in bounds)
        top = min(b.y for b in bounds)
        right = max(b.right for b in bounds)
        bottom = max(b.bottom for b in bounds)
        return ElementBounds(left, top, right - left, bottom - top)
