"""Helpers to persist intermediate representations for debugging."""
from __future__ import annotations

import json
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Any

from svg_reflow.model.elements import ElementNode


class DebugDumper:
    """Writes intermediate artifacts onto disk for inspection."""

    def __init__(self, directory: Path) -> None:
        self.directory = directory

    def dump(self, tree: ElementNode, name: str = "element_tree") -> Path:
        """Persist an element tree as ``<name>.json`` and return the file path."""
        self.directory.mkdir(parents=True, exist_ok=True)
        target = self.directory / f"{name}.json"
        target.write_text(json.dumps(self._serialize(tree), indent=2, ensure_ascii=False), encoding="utf-8")
        return target

    def dump_markup(self, markup: str, name: str) -> Path:
        """Persist a markup snapshot as ``<name>.svg``."""
        self.directory.mkdir(parents=True, exist_ok=True)
        target = self.directory / f"{name}.svg"
        target.write_text(markup, encoding="utf-8")
        return target

    def _serialize(self, value: Any) -> Any:
        if is_dataclass(value) and not isinstance(value, type):
            return {k: self._serialize(v) for k, v in asdict(value).items()}
        if isinstance(value, dict):
            return {k: self._serialize(v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return [self._serialize(v) for v in value]
        return value
