"""Deterministic identifiers for elements that have none in the source."""
from __future__ import annotations

import re
from typing import Dict, Iterable, List, Optional, Set

ID_PREFIX = "fmo"
SUFFIX_SEPARATOR = ":"

_ID_ATTRIBUTE = re.compile(r"\sid\s*=\s*(?:\"([^\"]+)\"|'([^']+)')")


class IdGenerator:
    """Hands out ``fmo-{tag}-{n}`` ids, counting per nesting depth and tag.

    The generator is seeded with every id found in the source text so that
    synthesized ids never shadow existing ones. Every id it returns is
    recorded, and any collision is resolved with a ``:k`` suffix.
    """

    def __init__(self, existing_ids: Optional[Iterable[str]] = None) -> None:
        self._known: Set[str] = set(existing_ids or ())
        self._claimed: Set[str] = set()
        # One tag -> count map per depth, kept across exit_level.
        self._counters: List[Dict[str, int]] = [{}]
        self._depth = 0

    @classmethod
    def from_markup(cls, markup: str) -> "IdGenerator":
        """Seed a generator with every ``id`` attribute literally present in ``markup``."""
        found = {double or single for double, single in _ID_ATTRIBUTE.findall(markup)}
        return cls(found)

    @property
    def depth(self) -> int:
        return self._depth

    def enter_level(self) -> None:
        """Descend one nesting level."""
        self._depth += 1
        while len(self._counters) <= self._depth:
            self._counters.append({})

    def exit_level(self) -> None:
        """Return to the parent nesting level."""
        if self._depth > 0:
            self._depth -= 1

    def reset(self) -> None:
        """Forget per-depth counters; recorded ids still block collisions."""
        self._counters = [{}]
        self._depth = 0

    def next(self, tag_name: str) -> str:
        """Synthesize the next id for ``tag_name`` at the current depth."""
        level = self._counters[self._depth]
        count = level.get(tag_name, 0) + 1
        level[tag_name] = count
        return self._record(f"{ID_PREFIX}-{tag_name}-{count}", self._known)

    def claim(self, original_id: str) -> str:
        """Keep a source id as the working id, suffixing repeated source ids."""
        return self._record(original_id, self._claimed)

    def _record(self, candidate: str, taken: Set[str]) -> str:
        final_id = candidate
        suffix = 1
        while final_id in taken:
            final_id = f"{candidate}{SUFFIX_SEPARATOR}{suffix}"
            suffix += 1
        self._known.add(final_id)
        self._claimed.add(final_id)
        return final_id
