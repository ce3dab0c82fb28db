"""Orchestration engine – ties the registry, the scanner and the rules together."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator

from codecanon.core.errors import ConfigurationError, ParseFailure
from codecanon.core.registry import RuleRegistry
from codecanon.core.scanner import FileScanner, GenericFileScanner, is_excluded
from codecanon.results.verdict import Verdict
from codecanon.rules.base_rule import BaseRule, extension_of

__all__ = ["CanonEngine", "JudgmentSummary", "FileResults", "GroupResults"]

logger = logging.getLogger(__name__)

FileResults = dict[str, Verdict]
GroupResults = dict[str, FileResults]


@dataclass(frozen=True)
class JudgmentSummary:
    files_examined: int = 0
    clean: int = 0
    flagged: int = 0
    violations: int = 0
    advisories: int = 0
    skipped: int = 0

    @property
    def exit_code(self) -> int:
        return 1 if self.flagged else 0

    def __add__(self, other: JudgmentSummary) -> JudgmentSummary:
        return JudgmentSummary(
            files_examined=self.files_examined + other.files_examined,
            clean=self.clean + other.clean,
            flagged=self.flagged + other.flagged,
            violations=self.violations + other.violations,
            advisories=self.advisories + other.advisories,
            skipped=self.skipped + other.skipped,
        )


class CanonEngine:
    """Central orchestrator for judging files against a group's rules."""

    def __init__(
        self,
        registry: RuleRegistry,
        root_dir: Path | None = None,
        scanner: FileScanner | None = None,
    ) -> None:
        self.registry = registry
        self.root_dir = (root_dir or Path.cwd()).resolve()
        self.scanner: FileScanner = scanner or GenericFileScanner()

    def _require_group(self, group: str) -> None:
        if not self.registry.has_group(group):
            raise ConfigurationError(f"Unknown rule group '{group}'")

    def _resolve(self, path: str | Path) -> Path:
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = self.root_dir / candidate
        return candidate.resolve()

    def group_paths(self, group: str) -> list[Path]:
        configured = self.registry.group_config(group).get("path")
        if not configured:
            return [self.root_dir]
        if isinstance(configured, (str, Path)):
            configured = [configured]
        return [self._resolve(p) for p in configured]

    def files_for_group(self, group: str) -> Iterator[Path]:
        self._require_group(group)
        config = self.registry.group_config(group)
        return self.scanner.scan(
            self.group_paths(group),
            config.get("extensions") or [],
            config.get("exclude") or [],
        )

    @staticmethod
    def is_applicable(rule: BaseRule, file_path: str | Path) -> bool:
        path = str(file_path)
        if not rule.applies_to_extension(path):
            return False
        return not any(excluded and excluded in path for excluded in rule.excluded_paths)

    @staticmethod
    def read(file_path: Path) -> str | None:
        try:
            return file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            logger.warning("Could not read %s – skipped", file_path, exc_info=True)
            return None

    def _judge_with(self, rules: list[BaseRule], file_path: Path, content: str) -> FileResults:
        results: FileResults = {}
        for rule in rules:
            if not self.is_applicable(rule, file_path):
                continue
            try:
                results[rule.rule_id] = rule.judge(str(file_path), content)
            except ParseFailure as exc:
                logger.warning("Rule %s could not parse %s: %s", rule.rule_id, file_path, exc.reason)
                results[rule.rule_id] = Verdict.skip(str(exc))
        return results

    def judge_group(self, group: str) -> GroupResults:
        self._require_group(group)
        rules = self.registry.get_rules(group)
        results: GroupResults = {}
        if not rules:
            return results
        for file_path in self.files_for_group(group):
            content = self.read(file_path)
            if content is None:
                continue
            file_results = self._judge_with(rules, file_path, content)
            if file_results:
                results[str(file_path)] = file_results
        return results

    def judge_files(self, group: str, file_paths: Iterable[str | Path]) -> GroupResults:
        self._require_group(group)
        config = self.registry.group_config(group)
        extensions = {ext.lstrip(".") for ext in config.get("extensions") or []}
        excludes = config.get("exclude") or []
        rules = self.registry.get_rules(group)
        results: GroupResults = {}
        if not rules:
            return results
        for raw in file_paths:
            file_path = self._resolve(raw)
            if not file_path.is_file():
                logger.debug("File %s does not exist – skipped", file_path)
                continue
            if is_excluded(file_path, excludes, relative_to=self.root_dir):
                continue
            if extensions and extension_of(str(file_path)) not in extensions:
                continue
            content = self.read(file_path)
            if content is None:
                continue
            file_results = self._judge_with(rules, file_path, content)
            if file_results:
                results[str(file_path)] = file_results
        return results

    def judge_file(self, group: str, file_path: str | Path) -> FileResults:
        self._require_group(group)
        path = self._resolve(file_path)
        if not path.is_file():
            raise ConfigurationError(f"File not found: {file_path}")
        content = self.read(path)
        if content is None:
            return {}
        return self._judge_with(self.registry.get_rules(group), path, content)

    def judge_all(self) -> dict[str, GroupResults]:
        return {group: self.judge_group(group) for group in self.registry.groups()}

    @staticmethod
    def summarize(results: GroupResults) -> JudgmentSummary:
        clean = flagged = violations = advisories = skipped = 0
        for file_results in results.values():
            file_violations = sum(v.violation_count for v in file_results.values())
            violations += file_violations
            advisories += sum(v.advisory_count for v in file_results.values())
            skipped += sum(1 for v in file_results.values() if v.skipped)
            if file_violations:
                flagged += 1
            else:
                clean += 1
        return JudgmentSummary(
            files_examined=len(results), clean=clean, flagged=flagged,
            violations=violations, advisories=advisories, skipped=skipped,
        )
