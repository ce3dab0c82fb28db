"""Region extraction for multi-section component files.

A component file is split into up to three regions:

* the *logic* region (``<script>``), which never nests;
* the *presentation* region (``<template>``), which may contain nested
  ``<template>`` elements and therefore needs depth counting;
* the *style* region (``<style>``), which never nests.

All offsets on a :class:`Region` point into the original file content, so a
match found inside the region can be mapped back to a line of the file.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from codecanon.regions.text import line_number

__all__ = [
    "Region",
    "LOGIC",
    "PRESENTATION",
    "STYLE",
    "WHOLE",
    "extract_logic",
    "extract_presentation",
    "extract_style",
    "extract_region",
]

LOGIC = "logic"
PRESENTATION = "presentation"
STYLE = "style"
WHOLE = "whole"

_LOGIC_RE = re.compile(r"<script(\s+[^>]*)?>(.*?)</script>", re.DOTALL)
_STYLE_RE = re.compile(r"<style(\s+[^>]*)?>(.*?)</style>", re.DOTALL)
_TEMPLATE_OPEN_RE = re.compile(r"<template(\s+[^>]*)?>")
_TEMPLATE_CLOSE_RE = re.compile(r"</template\s*>")
_LANG_RE = re.compile(r"""lang=["'](\w+)["']""")


@dataclass(frozen=True)
class Region:
    name: str
    content: str
    start: int
    end: int
    lang: str | None = None
    flags: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def whole(cls, content: str) -> Region:
        return cls(name=WHOLE, content=content, start=0, end=len(content))

    @property
    def setup(self) -> bool:
        return "setup" in self.flags

    @property
    def scoped(self) -> bool:
        return "scoped" in self.flags

    def absolute(self, offset: int) -> int:
        """Translate a region-relative offset into a file offset."""
        return self.start + offset

    def line_of(self, offset: int, original: str) -> int:
        return line_number(original, self.absolute(offset))


def _parse_lang(attributes: str) -> str | None:
    match = _LANG_RE.search(attributes)
    return match.group(1) if match else None


def _has_flag(attributes: str, flag: str) -> bool:
    return re.search(rf"(?<![\w-]){flag}(?![\w-])", attributes) is not None


def extract_logic(content: str) -> Region | None:
    match = _LOGIC_RE.search(content)
    if match is None:
        return None
    attributes = match.group(1) or ""
    flags = frozenset({"setup"}) if _has_flag(attributes, "setup") else frozenset()
    return Region(
        name=LOGIC,
        content=match.group(2),
        start=match.start(2),
        end=match.end(2),
        lang=_parse_lang(attributes),
        flags=flags,
    )


def extract_style(content: str) -> Region | None:
    match = _STYLE_RE.search(content)
    if match is None:
        return None
    attributes = match.group(1) or ""
    flags = frozenset({"scoped"}) if _has_flag(attributes, "scoped") else frozenset()
    return Region(
        name=STYLE,
        content=match.group(2),
        start=match.start(2),
        end=match.end(2),
        lang=_parse_lang(attributes),
        flags=flags,
    )


def extract_presentation(content: str) -> Region | None:
    """Extract the root ``<template>`` body, honouring nested templates."""
    opening = _TEMPLATE_OPEN_RE.search(content)
    if opening is None:
        return None

    body_start = opening.end()
    depth = 1
    pos = body_start
    while depth > 0 and pos < len(content):
        next_close = _TEMPLATE_CLOSE_RE.search(content, pos)
        if next_close is None:
            return None
        next_open = _TEMPLATE_OPEN_RE.search(content, pos)
        if next_open is not None and next_open.start() < next_close.start():
            depth += 1
            pos = next_open.end()
            continue
        depth -= 1
        if depth == 0:
            return Region(
                name=PRESENTATION,
                content=content[body_start:next_close.start()],
                start=body_start,
                end=next_close.start(),
                lang=_parse_lang(opening.group(1) or ""),
            )
        pos = next_close.end()
    return None


_EXTRACTORS = {
    LOGIC: extract_logic,
    PRESENTATION: extract_presentation,
    STYLE: extract_style,
}


def extract_region(name: str, content: str) -> Region | None:
    if name == WHOLE:
        return Region.whole(content)
    try:
        extractor = _EXTRACTORS[name]
    except KeyError:
        raise ValueError(f"Unknown region '{name}'") from None
    return extractor(content)
