"""Base rule interface for the codecanon engine."""

from __future__ import annotations

import ast
from abc import ABC, abstractmethod
from pathlib import PurePath
from typing import Any, Mapping

from codecanon.core.environment import Capabilities
from codecanon.core.errors import ParseFailure
from codecanon.results.verdict import RemediationResult, Verdict

__all__ = ["BaseRule", "RemediableRule", "extension_of", "is_remediable"]


def extension_of(file_path: str) -> str:
    return PurePath(file_path).suffix.lstrip(".")


class BaseRule(ABC):
    rule_id: str = "base"
    description: str = ""
    detailed_description: str = ""
    file_types: tuple[str, ...] = ()
    requires_review: bool = False

    def __init__(self, capabilities: Capabilities | None = None) -> None:
        self.capabilities = capabilities or Capabilities()
        self._config: dict[str, Any] = {}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(rule_id={self.rule_id!r})"

    @abstractmethod
    def judge(self, file_path: str, content: str) -> Verdict:
        """Judge one file. Must not raise for ordinary findings or parse problems."""

    def applicable_file_types(self) -> frozenset[str]:
        return frozenset(ext.lstrip(".") for ext in self.file_types)

    def supported(self) -> bool:
        """Whether the rule can run against the current project at all."""
        return True

    @property
    def excluded_paths(self) -> list[str]:
        excluded = self.config("exclude", [])
        if isinstance(excluded, str):
            return [excluded]
        return list(excluded)

    def configure(self, config: Mapping[str, Any]) -> BaseRule:
        self._config = {**self._config, **dict(config)}
        return self

    def config(self, key: str, default: Any = None) -> Any:
        value = self._config.get(key)
        return default if value is None else value

    def applies_to_extension(self, file_path: str) -> bool:
        types = self.applicable_file_types()
        return not types or extension_of(file_path) in types

    @staticmethod
    def parse_python(file_path: str, content: str) -> ast.Module:
        try:
            return ast.parse(content, filename=file_path)
        except SyntaxError as exc:
            raise ParseFailure(file_path, exc.msg or "invalid syntax", exc.lineno) from exc
        except ValueError as exc:
            raise ParseFailure(file_path, str(exc)) from exc


class RemediableRule(ABC):
    """Mixin for rules that can rewrite a file to remove their own violations."""

    @abstractmethod
    def can_remediate(self, file_path: str) -> bool:
        """Cheap, content-independent pre-check."""

    @abstractmethod
    def remediate(self, file_path: str, content: str) -> RemediationResult:
        """Return the fixed content; callers only invoke this on non-clean files."""


def is_remediable(rule: object) -> bool:
    return isinstance(rule, RemediableRule)
