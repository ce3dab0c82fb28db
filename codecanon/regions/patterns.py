"""Named regular-expression sets evaluated against a single region."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterator

from codecanon.regions.extractors import Region
from codecanon.regions.text import line_number, snippet

__all__ = ["PatternMatch", "PatternSet"]


@dataclass(frozen=True)
class PatternMatch:
    name: str
    pattern: str
    text: str
    offset: int
    line: int
    snippet: str
    groups: tuple[str | None, ...] = ()
    named: dict[str, str | None] = field(default_factory=dict)

    def group(self, index: int) -> str | None:
        """Captured group by 1-based index, ``None`` when it did not take part."""
        if index < 1 or index > len(self.groups):
            return None
        return self.groups[index - 1]


class PatternSet:
    """An ordered collection of named patterns.

    Matches are reported pattern by pattern in registration order, and within a
    pattern in order of appearance.
    """

    def __init__(self, patterns: dict[str, str] | None = None, flags: int = 0) -> None:
        self._patterns: dict[str, re.Pattern[str]] = {}
        for name, pattern in (patterns or {}).items():
            self.add(name, pattern, flags)

    def add(self, name: str, pattern: str | re.Pattern[str], flags: int = 0) -> PatternSet:
        self._patterns[name] = pattern if isinstance(pattern, re.Pattern) else re.compile(pattern, flags)
        return self

    @property
    def names(self) -> list[str]:
        return list(self._patterns)

    def __len__(self) -> int:
        return len(self._patterns)

    def __iter__(self) -> Iterator[tuple[str, re.Pattern[str]]]:
        return iter(self._patterns.items())

    def run(self, region: Region, original: str) -> list[PatternMatch]:
        matches: list[PatternMatch] = []
        for name, compiled in self._patterns.items():
            for found in compiled.finditer(region.content):
                offset = found.start()
                matches.append(PatternMatch(
                    name=name,
                    pattern=compiled.pattern,
                    text=found.group(0),
                    offset=offset,
                    line=line_number(original, region.absolute(offset)),
                    snippet=snippet(region.content, offset),
                    groups=found.groups(),
                    named=found.groupdict(),
                ))
        return matches
