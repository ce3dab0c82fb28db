"""Offset-to-line mapping and diagnostic snippets."""

from __future__ import annotations

import re

__all__ = ["line_number", "snippet", "count_lines"]

_WHITESPACE_RE = re.compile(r"\s+")

SNIPPET_LENGTH = 60
SNIPPET_LEAD = 20


def line_number(content: str, offset: int) -> int:
    """Return the 1-based line holding *offset* in *content*."""
    return content.count("\n", 0, max(0, offset)) + 1


def count_lines(content: str) -> int:
    return content.count("\n") + 1


def snippet(content: str, offset: int, length: int = SNIPPET_LENGTH) -> str:
    """Build a one-line excerpt of *content* starting a little before *offset*."""
    start = max(0, offset - SNIPPET_LEAD)
    excerpt = _WHITESPACE_RE.sub(" ", content[start:start + length]).strip()
    if start > 0:
        excerpt = "..." + excerpt
    if start + length < len(content):
        excerpt += "..."
    return excerpt
