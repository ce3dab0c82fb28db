"""Rule: Detect bare ``except:`` clauses in Python code."""
from __future__ import annotations
import ast
import re
from codecanon.core.errors import ParseFailure
from codecanon.results.verdict import RemediationResult, Verdict, Violation
from codecanon.rules.base_rule import BaseRule, RemediableRule, extension_of

__all__ = ["NoBareExceptRule"]

_BARE_EXCEPT_RE = re.compile(r"^(\s*)except\s*:")


def _bare_handlers(tree: ast.Module) -> list[ast.ExceptHandler]:
    handlers = [node for node in ast.walk(tree) if isinstance(node, ast.ExceptHandler) and node.type is None]
    return sorted(handlers, key=lambda node: node.lineno)


class NoBareExceptRule(BaseRule, RemediableRule):
    rule_id = "no-bare-except"
    description = "Catch a specific exception instead of using a bare except"
    detailed_description = (
        "A bare `except:` also catches KeyboardInterrupt and SystemExit and hides\n"
        "programming errors. Name the exception you expect, or at least catch\n"
        "`Exception`.\n\n"
        "Bad:\n"
        "    try:\n"
        "        value = int(raw)\n"
        "    except:\n"
        "        value = 0\n\n"
        "Good:\n"
        "    try:\n"
        "        value = int(raw)\n"
        "    except ValueError:\n"
        "        value = 0"
    )
    file_types = ("py",)

    def judge(self, file_path: str, content: str) -> Verdict:
        try:
            tree = self.parse_python(file_path, content)
        except ParseFailure as exc:
            return Verdict.skip(str(exc))

        lines = content.splitlines()
        violations = [
            Violation.at(
                handler.lineno, "Bare except clause catches every exception",
                lines[handler.lineno - 1].strip(), "Catch a specific exception, e.g. `except Exception:`",
            )
            for handler in _bare_handlers(tree)
        ]
        return Verdict.violating(violations) if violations else Verdict.clean()

    def can_remediate(self, file_path: str) -> bool:
        return extension_of(file_path) == "py"

    def remediate(self, file_path: str, content: str) -> RemediationResult:
        try:
            tree = self.parse_python(file_path, content)
        except ParseFailure as exc:
            return RemediationResult.failed(str(exc))

        handlers = _bare_handlers(tree)
        if not handlers:
            return RemediationResult.already_clean(content)

        lines = content.splitlines(keepends=True)
        rewritten = 0
        for handler in handlers:
            index = handler.lineno - 1
            fixed = _BARE_EXCEPT_RE.sub(r"\1except Exception:", lines[index], count=1)
            if fixed != lines[index]:
                lines[index] = fixed
                rewritten += 1
        if rewritten != len(handlers):
            return RemediationResult.failed(f"{len(handlers) - rewritten} bare except clause(s) could not be rewritten")
        return RemediationResult.fixed("".join(lines), [f"{rewritten} bare except clause(s) narrowed to Exception"])
