"""Parsing and formatting helpers for SVG attribute values."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

_NUMBER = r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?"
_LENGTH_PATTERN = re.compile(rf"^\s*({_NUMBER})\s*(px)?\s*$")
_NUMBER_PATTERN = re.compile(_NUMBER)
_TRANSLATE_PATTERN = re.compile(rf"translate\(\s*({_NUMBER})\s*(?:(?:,\s*|\s+)({_NUMBER}))?\s*\)")
_PATH_COMMAND_PATTERN = re.compile(r"([MmLlHhVvCcSsQqTtAaZz])([^MmLlHhVvCcSsQqTtAaZz]*)")


def parse_number(value: Optional[str]) -> Optional[float]:
    """Parse a plain user-unit number (``"12"``, ``"4.5px"``); other units yield None."""
    if value is None:
        return None
    match = _LENGTH_PATTERN.match(value)
    if not match:
        return None
    return float(match.group(1))


def format_number(value: float) -> str:
    """Format a coordinate compactly: ``250.0`` -> ``"250"``, ``14.40000001`` -> ``"14.4"``."""
    text = f"{round(value, 4):.4f}".rstrip("0").rstrip(".")
    if text in {"-0", ""}:
        return "0"
    return text


def shift_length(value: str, delta: float, *, floor: Optional[float] = None) -> Optional[str]:
    """Add ``delta`` to a length attribute keeping a ``px`` suffix; None when not numeric."""
    match = _LENGTH_PATTERN.match(value)
    if not match:
        return None
    result = float(match.group(1)) + delta
    if floor is not None:
        result = max(floor, result)
    return format_number(result) + (match.group(2) or "")


# ----------------------------------------------------------------------
# Transforms


def parse_translate(transform: Optional[str]) -> Optional[Tuple[float, float]]:
    """Return the (x, y) of the first ``translate(...)`` in a transform list."""
    if not transform:
        return None
    match = _TRANSLATE_PATTERN.search(transform)
    if not match:
        return None
    x = float(match.group(1))
    y = float(match.group(2)) if match.group(2) is not None else 0.0
    return x, y


def replace_translate(transform: str, x: float, y: float) -> str:
    """Rewrite the first translate of a transform list in comma-separated form."""
    return _TRANSLATE_PATTERN.sub(f"translate({format_number(x)}, {format_number(y)})", transform, count=1)


def add_vertical_translate(transform: Optional[str], delta: float) -> str:
    """Move an element down by ``delta`` through its transform attribute."""
    if not transform:
        return f"translate(0, {format_number(delta)})"
    existing = parse_translate(transform)
    if existing is not None:
        return replace_translate(transform, existing[0], existing[1] + delta)
    return f"translate(0, {format_number(delta)}) {transform}"


# ----------------------------------------------------------------------
# Path data


def path_y_candidates(path_data: str) -> List[float]:
    """Approximate the y coordinates appearing in path data.

    Every second number of each command's argument list is treated as a y
    value, ``V`` arguments are all y values and ``H`` arguments are skipped.
    Curve control points are included, so this can over-report.
    """
    candidates: List[float] = []
    for command, arguments in _PATH_COMMAND_PATTERN.findall(path_data):
        numbers = [float(token) for token in _NUMBER_PATTERN.findall(arguments)]
        upper = command.upper()
        if upper == "Z" or upper == "H":
            continue
        if upper == "V":
            candidates.extend(numbers)
            continue
        if upper == "A":
            candidates.extend(numbers[index] for index in range(6, len(numbers), 7))
            continue
        candidates.extend(numbers[1::2])
    return candidates


def path_points(path_data: str) -> List[Tuple[float, float]]:
    """Approximate the absolute points of path data (for bounds estimation)."""
    points: List[Tuple[float, float]] = []
    cursor_x = cursor_y = 0.0
    start_x = start_y = 0.0
    for command, arguments in _PATH_COMMAND_PATTERN.findall(path_data):
        numbers = [float(token) for token in _NUMBER_PATTERN.findall(arguments)]
        relative = command.islower()
        upper = command.upper()
        if upper == "Z":
            cursor_x, cursor_y = start_x, start_y
            continue
        if upper == "H":
            for value in numbers:
                cursor_x = cursor_x + value if relative else value
                points.append((cursor_x, cursor_y))
            continue
        if upper == "V":
            for value in numbers:
                cursor_y = cursor_y + value if relative else value
                points.append((cursor_x, cursor_y))
            continue
        stride = {"M": 2, "L": 2, "T": 2, "S": 4, "Q": 4, "C": 6, "A": 7}[upper]
        for offset in range(0, len(numbers) - stride + 1, stride):
            group = numbers[offset:offset + stride]
            if upper == "A":
                pairs = [(group[5], group[6])]
            else:
                pairs = list(zip(group[0::2], group[1::2]))
            base_x, base_y = cursor_x, cursor_y
            for px, py in pairs:
                if relative:
                    px, py = base_x + px, base_y + py
                points.append((px, py))
            cursor_x, cursor_y = points[-1]
            if upper == "M" and offset == 0:
                start_x, start_y = cursor_x, cursor_y
    return points


# ----------------------------------------------------------------------
# viewBox


@dataclass(frozen=True)
class ViewBox:
    """Parsed ``viewBox`` attribute."""

    min_x: float
    min_y: float
    width: float
    height: float

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["ViewBox"]:
        if not value:
            return None
        parts = [part for part in re.split(r"[\s,]+", value.strip()) if part]
        if len(parts) != 4:
            return None
        try:
            min_x, min_y, width, height = (float(part) for part in parts)
        except ValueError:
            return None
        return cls(min_x, min_y, width, height)

    def with_height(self, height: float) -> "ViewBox":
        return ViewBox(self.min_x, self.min_y, self.width, height)

    def __str__(self) -> str:
        return " ".join(format_number(part) for part in (self.min_x, self.min_y, self.width, self.height))


def url_reference(value: Optional[str]) -> Optional[str]:
    """Extract the fragment id from ``url(#id)`` references."""
    if not value:
        return None
    match = re.search(r"url\(\s*['\"]?#([^)'\"]+)['\"]?\s*\)", value)
    if not match:
        return None
    return match.group(1).strip()
