"""Exception taxonomy for codecanon."""

from __future__ import annotations

__all__ = ["CanonError", "ConfigurationError", "ParseFailure"]


class CanonError(Exception):
    pass


class ConfigurationError(CanonError):
    """Missing or malformed configuration, or an unknown group, rule or file."""


class ParseFailure(CanonError):
    """A rule could not build its structural view of a file."""

    def __init__(self, file_path: str, reason: str, line: int | None = None) -> None:
        self.file_path = file_path
        self.reason = reason
        self.line = line
        location = f":{line}" if line is not None else ""
        super().__init__(f"Could not parse {file_path}{location}: {reason}")
