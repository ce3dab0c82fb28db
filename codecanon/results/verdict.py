"""Finding, verdict and remediation value types for the codecanon engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

__all__ = ["VerdictStatus", "Violation", "Advisory", "Verdict", "RemediationResult"]


class VerdictStatus(str, Enum):
    CLEAN = "CLEAN"
    VIOLATING = "VIOLATING"
    ADVISORY = "ADVISORY"
    SKIPPED = "SKIPPED"


@dataclass(frozen=True)
class Violation:
    """A failing finding."""

    message: str
    line: int | None = None
    column: int | None = None
    snippet: str | None = None
    suggested_fix: str | None = None

    @classmethod
    def at(cls, line: int, message: str, snippet: str | None = None, suggested_fix: str | None = None) -> Violation:
        return cls(message=message, line=line, snippet=snippet, suggested_fix=suggested_fix)

    @classmethod
    def general(cls, message: str, suggested_fix: str | None = None) -> Violation:
        return cls(message=message, suggested_fix=suggested_fix)

    def format(self, file_path: str) -> str:
        location = f":{self.line}" if self.line is not None else ""
        result = f"{file_path}{location}: {self.message}"
        if self.snippet is not None:
            result += f"\n    > {self.snippet}"
        if self.suggested_fix is not None:
            result += f"\n    Suggestion: {self.suggested_fix}"
        return result


@dataclass(frozen=True)
class Advisory:
    """A non-failing finding that deserves a manual review."""

    message: str
    line: int | None = None
    snippet: str | None = None

    @classmethod
    def at(cls, line: int, message: str, snippet: str | None = None) -> Advisory:
        return cls(message=message, line=line, snippet=snippet)

    @classmethod
    def general(cls, message: str) -> Advisory:
        return cls(message=message)


@dataclass(frozen=True)
class Verdict:
    """Outcome of judging one file against one rule."""

    violations: list[Violation] = field(default_factory=list)
    advisories: list[Advisory] = field(default_factory=list)
    skipped: bool = False
    skip_reason: str | None = None

    @classmethod
    def clean(cls) -> Verdict:
        return cls()

    @classmethod
    def violating(cls, violations: list[Violation]) -> Verdict:
        return cls(violations=list(violations))

    @classmethod
    def with_advisories(cls, advisories: list[Advisory]) -> Verdict:
        return cls(advisories=list(advisories))

    @classmethod
    def skip(cls, reason: str) -> Verdict:
        return cls(skipped=True, skip_reason=reason)

    @property
    def is_clean(self) -> bool:
        return not self.violations and not self.skipped

    @property
    def is_violating(self) -> bool:
        return bool(self.violations)

    @property
    def has_advisories(self) -> bool:
        return bool(self.advisories)

    @property
    def violation_count(self) -> int:
        return len(self.violations)

    @property
    def advisory_count(self) -> int:
        return len(self.advisories)

    @property
    def status(self) -> VerdictStatus:
        if self.skipped:
            return VerdictStatus.SKIPPED
        if self.violations:
            return VerdictStatus.VIOLATING
        if self.advisories:
            return VerdictStatus.ADVISORY
        return VerdictStatus.CLEAN

    def merge(self, other: Verdict) -> Verdict:
        return Verdict(
            violations=[*self.violations, *other.violations],
            advisories=[*self.advisories, *other.advisories],
            skipped=self.skipped and other.skipped,
            skip_reason=self.skip_reason or other.skip_reason,
        )


@dataclass(frozen=True)
class RemediationResult:
    """Outcome of an auto-fix attempt."""

    succeeded: bool
    new_content: str | None = None
    actions_taken: list[str] = field(default_factory=list)
    backup_path: str | None = None
    failure_reason: str | None = None

    def __post_init__(self) -> None:
        if self.succeeded and self.new_content is None:
            raise ValueError("A successful remediation must carry the new content.")
        if not self.succeeded and not self.failure_reason:
            raise ValueError("A failed remediation must carry a failure reason.")

    @classmethod
    def fixed(cls, new_content: str, actions: list[str] | None = None, backup_path: str | None = None) -> RemediationResult:
        return cls(succeeded=True, new_content=new_content, actions_taken=list(actions or []), backup_path=backup_path)

    @classmethod
    def failed(cls, reason: str, backup_path: str | None = None) -> RemediationResult:
        return cls(succeeded=False, failure_reason=reason, backup_path=backup_path)

    @classmethod
    def already_clean(cls, content: str) -> RemediationResult:
        return cls(succeeded=True, new_content=content, actions_taken=["No violations found to fix"])

    def changes(self, original: str) -> bool:
        return self.succeeded and self.new_content is not None and self.new_content != original
