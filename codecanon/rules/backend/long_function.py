"""Rule: Detect Python functions that exceed a line limit."""
from __future__ import annotations
import ast
from codecanon.core.errors import ParseFailure
from codecanon.results.verdict import Verdict, Violation
from codecanon.rules.base_rule import BaseRule

__all__ = ["LongFunctionRule"]

MAX_FUNCTION_LINES = 40


class LongFunctionRule(BaseRule):
    rule_id = "long-function"
    description = "Keep functions short by extracting helpers"
    detailed_description = (
        "Functions longer than `max_function_lines` lines (signature and body,\n"
        "decorators excluded) are hard to read and to test. Extract the distinct\n"
        "steps into well-named helpers."
    )
    file_types = ("py",)

    def judge(self, file_path: str, content: str) -> Verdict:
        try:
            tree = self.parse_python(file_path, content)
        except ParseFailure as exc:
            return Verdict.skip(str(exc))

        max_lines = int(self.config("max_function_lines", MAX_FUNCTION_LINES))
        violations: list[Violation] = []
        for node in ast.walk(tree):
            if not isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
                continue
            length = (node.end_lineno or node.lineno) - node.lineno + 1
            if length > max_lines:
                violations.append(Violation.at(
                    node.lineno, f"Function '{node.name}' is {length} lines long (max {max_lines})",
                    f"def {node.name}(...)", "Extract parts of the function into helpers",
                ))
        violations.sort(key=lambda v: v.line or 0)
        return Verdict.violating(violations) if violations else Verdict.clean()
