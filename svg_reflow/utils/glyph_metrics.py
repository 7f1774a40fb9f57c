"""Text width measurement backends used by the line breaker."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, Tuple

from PIL import ImageFont

from svg_reflow.utils.logger import get_logger

LOGGER = get_logger(__name__)

DEFAULT_WIDTH_RATIO = 0.55

# Average advance width as a fraction of the font size, (regular, bold).
FAMILY_WIDTH_RATIOS: Dict[str, Tuple[float, float]] = {
    "arial": (0.52, 0.56),
    "helvetica": (0.52, 0.56),
    "inter": (0.54, 0.58),
    "montserrat": (0.58, 0.62),
    "roboto": (0.51, 0.55),
    "work sans": (0.55, 0.6),
    "times": (0.46, 0.5),
    "times new roman": (0.46, 0.5),
    "georgia": (0.5, 0.54),
    "courier": (0.6, 0.6),
    "courier new": (0.6, 0.6),
    "monospace": (0.6, 0.6),
}


@dataclass(frozen=True, slots=True)
class FontSpec:
    """Font parameters needed to measure a line of text."""

    family: str = "Arial"
    size: float = 12.0
    weight: str = "normal"
    letter_spacing: float = 0.0

    @property
    def is_bold(self) -> bool:
        weight = self.weight.strip().lower()
        if weight in {"bold", "bolder"}:
            return True
        try:
            return int(weight) >= 600
        except ValueError:
            return False

    @property
    def primary_family(self) -> str:
        """First family of a CSS font-family list, unquoted."""
        first = self.family.split(",")[0].strip()
        return first.strip("'\"") or "Arial"


class GlyphMetrics(Protocol):
    """Measures rendered text width in document units."""

    def measure(self, text: str, font: FontSpec) -> float:
        ...


def _letter_spacing_extra(text: str, font: FontSpec) -> float:
    if not font.letter_spacing or len(text) < 2:
        return 0.0
    return font.letter_spacing * (len(text) - 1)


class ApproximateGlyphMetrics:
    """Deterministic width estimate from per-family average character widths."""

    def __init__(self, ratios: Optional[Dict[str, Tuple[float, float]]] = None, default_ratio: float = DEFAULT_WIDTH_RATIO) -> None:
        self._ratios = {key.lower(): value for key, value in (ratios or FAMILY_WIDTH_RATIOS).items()}
        self._default_ratio = default_ratio

    def ratio_for(self, font: FontSpec) -> float:
        regular_bold = self._ratios.get(font.primary_family.lower())
        if regular_bold is None:
            return self._default_ratio
        return regular_bold[1] if font.is_bold else regular_bold[0]

    def measure(self, text: str, font: FontSpec) -> float:
        if not text:
            return 0.0
        return len(text) * font.size * self.ratio_for(font) + _letter_spacing_extra(text, font)


class PillowGlyphMetrics:
    """Measure text with TrueType fonts through Pillow, falling back to estimates.

    Font files are looked up by family name in ``font_dirs`` (e.g.
    ``Montserrat-Bold.ttf`` or ``montserrat.ttf``) and cached per family,
    weight and pixel size.
    """

    def __init__(self, font_dirs: Sequence[Path] = (), fallback: Optional[GlyphMetrics] = None) -> None:
        self._font_dirs = [Path(directory) for directory in font_dirs]
        self._fallback = fallback or ApproximateGlyphMetrics()
        self._font_cache: Dict[Tuple[str, bool, int], Optional[ImageFont.FreeTypeFont]] = {}
        self._warned: set[str] = set()

    def measure(self, text: str, font: FontSpec) -> float:
        if not text:
            return 0.0
        loaded = self._load(font)
        if loaded is None:
            return self._fallback.measure(text, font)
        pixel_size = max(1, int(round(font.size)))
        width = float(loaded.getlength(text)) * (font.size / pixel_size)
        return width + _letter_spacing_extra(text, font)

    def _load(self, font: FontSpec) -> Optional[ImageFont.FreeTypeFont]:
        pixel_size = max(1, int(round(font.size)))
        cache_key = (font.primary_family.lower(), font.is_bold, pixel_size)
        if cache_key in self._font_cache:
            return self._font_cache[cache_key]

        loaded: Optional[ImageFont.FreeTypeFont] = None
        for candidate in self._candidates(font):
            try:
                loaded = ImageFont.truetype(str(candidate), pixel_size)
                break
            except OSError:
                continue

        if loaded is None and font.primary_family not in self._warned:
            self._warned.add(font.primary_family)
            LOGGER.warning("No font file found for %r; using approximate metrics", font.primary_family)
        self._font_cache[cache_key] = loaded
        return loaded

    def _candidates(self, font: FontSpec) -> Iterable[Path]:
        names = self._file_names(font.primary_family, font.is_bold)
        found: List[Path] = []
        for directory in self._font_dirs:
            for name in names:
                for suffix in (".ttf", ".otf"):
                    path = directory / f"{name}{suffix}"
                    if path.exists():
                        found.append(path)
        return found

    @staticmethod
    def _file_names(family: str, bold: bool) -> List[str]:
        compact = family.replace(" ", "")
        dashed = family.replace(" ", "-")
        bases = [family, compact, dashed, family.lower(), compact.lower(), dashed.lower()]
        names: List[str] = []
        for base in dict.fromkeys(bases):
            if bold:
                names.extend([f"{base}-Bold", f"{base}Bold", f"{base}-bold", f"{base}bd"])
            else:
                names.extend([f"{base}-Regular", base, f"{base}-regular"])
        return names
