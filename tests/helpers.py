"""Small rules used across the test suite."""

from __future__ import annotations

from codecanon.regions.pipeline import (
    RulePipeline, advisories_from_matches, match_patterns, violations_from_matches,
)
from codecanon.core.errors import ParseFailure
from codecanon.results.verdict import RemediationResult, Verdict
from codecanon.rules.base_rule import BaseRule, RemediableRule

__all__ = [
    "TodoRule",
    "ReviewRule",
    "FixTodoRule",
    "UnsupportedRule",
    "ConfigEchoRule",
    "StrictParseRule",
    "BrittleFixRule",
]

_TODO_PIPELINE = RulePipeline((match_patterns({"todo": r"TODO"}),))
_REVIEW_PIPELINE = RulePipeline((match_patterns({"review": r"REVIEW"}),))


class TodoRule(BaseRule):
    rule_id = "todo-marker"
    description = "No TODO markers"
    file_types = ("txt", "py")

    def judge(self, file_path: str, content: str) -> Verdict:
        return _TODO_PIPELINE.judge(file_path, content, violations_from_matches("TODO marker found"))


class ReviewRule(BaseRule):
    rule_id = "review-marker"
    description = "REVIEW markers need a human"
    file_types = ("txt",)
    requires_review = True

    def judge(self, file_path: str, content: str) -> Verdict:
        return _REVIEW_PIPELINE.judge(file_path, content, advisories_from_matches("Marked for review"))


class FixTodoRule(BaseRule, RemediableRule):
    rule_id = "fix-todo"
    description = "TODO markers are rewritten to DONE"
    file_types = ("txt",)
    remediated: list[str] = []

    def judge(self, file_path: str, content: str) -> Verdict:
        return _TODO_PIPELINE.judge(file_path, content, violations_from_matches("TODO marker found"))

    def can_remediate(self, file_path: str) -> bool:
        return file_path.endswith(".txt")

    def remediate(self, file_path: str, content: str) -> RemediationResult:
        FixTodoRule.remediated.append(file_path)
        if "TODO" not in content:
            return RemediationResult.already_clean(content)
        if "NOFIX" in content:
            return RemediationResult.failed("marker cannot be rewritten")
        return RemediationResult.fixed(content.replace("TODO", "DONE"), ["TODO -> DONE"])


class UnsupportedRule(BaseRule):
    rule_id = "unsupported"
    file_types = ("txt",)

    def supported(self) -> bool:
        return False

    def judge(self, file_path: str, content: str) -> Verdict:
        return Verdict.violating([])


class ConfigEchoRule(BaseRule):
    rule_id = "config-echo"
    file_types = ("txt",)

    def judge(self, file_path: str, content: str) -> Verdict:
        return Verdict.clean()


class StrictParseRule(BaseRule):
    """Parses without catching, to exercise the engine's safety net."""

    rule_id = "strict-parse"
    file_types = ("py",)

    def judge(self, file_path: str, content: str) -> Verdict:
        self.parse_python(file_path, content)
        return Verdict.clean()


class BrittleFixRule(FixTodoRule):
    """Remediable rule that lets a parse failure escape on ``BROKEN`` files."""

    rule_id = "brittle-fix"

    def judge(self, file_path: str, content: str) -> Verdict:
        if "BROKEN" in content:
            raise ParseFailure(file_path, "unreadable marker")
        return super().judge(file_path, content)
