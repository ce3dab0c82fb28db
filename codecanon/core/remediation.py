"""Automated remediation: apply fixes from remediable rules to non-clean files."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

from codecanon.core.engine import CanonEngine
from codecanon.core.errors import ParseFailure
from codecanon.results.verdict import RemediationResult
from codecanon.rules.base_rule import BaseRule, RemediableRule

__all__ = ["RemediationRunner", "RemediationReport", "write_with_backup", "backup_path_for"]

logger = logging.getLogger(__name__)


def backup_path_for(file_path: Path) -> Path:
    return file_path.with_name(f"{file_path.name}.bak")


def write_with_backup(file_path: Path, original: str, new_content: str) -> RemediationResult:
    """Write *new_content* over *file_path*, keeping a ``.bak`` copy until it succeeded.

    The backup is removed after a successful write. When the overwrite fails the
    backup stays on disk and the failed result points at it.
    """
    backup = backup_path_for(file_path)
    try:
        backup.write_text(original, encoding="utf-8")
    except OSError as exc:
        return RemediationResult.failed(f"Could not write backup {backup.name}: {exc}")

    try:
        file_path.write_text(new_content, encoding="utf-8")
    except OSError as exc:
        logger.warning("Overwriting %s failed, backup kept at %s", file_path, backup)
        return RemediationResult.failed(f"Could not write {file_path.name}: {exc}", backup_path=str(backup))

    try:
        backup.unlink()
    except OSError:
        logger.warning("Could not remove backup %s", backup)
        return RemediationResult.fixed(new_content, backup_path=str(backup))
    return RemediationResult.fixed(new_content)


@dataclass
class RemediationReport:
    fixed: dict[str, list[str]] = field(default_factory=dict)
    failed: dict[str, list[str]] = field(default_factory=dict)
    dry_run: bool = False

    @property
    def total_fixed(self) -> int:
        return sum(len(files) for files in self.fixed.values())

    @property
    def total_failed(self) -> int:
        return sum(len(files) for files in self.failed.values())

    @property
    def is_empty(self) -> bool:
        return not self.fixed and not self.failed


def _matches_filter(rule: BaseRule, rule_filter: str | None) -> bool:
    if not rule_filter:
        return True
    needle = rule_filter.lower()
    return needle in rule.rule_id.lower() or needle in type(rule).__name__.lower()


class RemediationRunner:
    """Runs the remediable rules of one or more groups over their files."""

    def __init__(self, engine: CanonEngine) -> None:
        self.engine = engine

    def _relative(self, file_path: Path) -> str:
        try:
            return file_path.relative_to(self.engine.root_dir).as_posix()
        except ValueError:
            return file_path.as_posix()

    def _candidates(self, group: str, paths: Iterable[str | Path] | None) -> list[Path]:
        if paths is None:
            return list(self.engine.files_for_group(group))
        resolved = []
        for raw in paths:
            candidate = Path(raw)
            if not candidate.is_absolute():
                candidate = self.engine.root_dir / candidate
            resolved.append(candidate.resolve())
        return resolved

    def repent(
        self,
        group: str | None = None,
        rule_filter: str | None = None,
        paths: Iterable[str | Path] | None = None,
        dry_run: bool = False,
    ) -> RemediationReport:
        registry = self.engine.registry
        groups = [group] if group else registry.groups()
        explicit = list(paths) if paths is not None else None
        report = RemediationReport(dry_run=dry_run)

        for name in groups:
            if not registry.has_group(name):
                continue
            rules = [
                rule for rule in registry.get_rules(name)
                if isinstance(rule, RemediableRule) and _matches_filter(rule, rule_filter)
            ]
            if not rules:
                continue
            files = self._candidates(name, explicit)
            for rule in rules:
                for file_path in files:
                    self._repent_file(rule, file_path, report)
        return report

    def _repent_file(self, rule: Any, file_path: Path, report: RemediationReport) -> None:
        path = str(file_path)
        if not file_path.is_file() or not self.engine.is_applicable(rule, path):
            return
        if not rule.can_remediate(path):
            return
        content = self.engine.read(file_path)
        if content is None:
            return
        try:
            if rule.judge(path, content).is_clean:
                return
            result = rule.remediate(path, content)
        except ParseFailure as exc:
            logger.warning("Rule %s could not parse %s: %s – skipped", rule.rule_id, file_path, exc.reason)
            return

        relative = self._relative(file_path)
        if not result.succeeded:
            report.failed.setdefault(rule.rule_id, []).append(f"{relative} ({result.failure_reason})")
            return
        if not result.changes(content):
            return
        if not report.dry_run:
            written = write_with_backup(file_path, content, result.new_content or "")
            if not written.succeeded:
                report.failed.setdefault(rule.rule_id, []).append(f"{relative} ({written.failure_reason})")
                return
        logger.debug("%s fixed %s", rule.rule_id, relative)
        report.fixed.setdefault(rule.rule_id, []).append(relative)
