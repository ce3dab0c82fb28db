"""Rule: Flag Vue components that have grown past a line limit."""
from __future__ import annotations
from codecanon.regions.text import count_lines
from codecanon.results.verdict import Advisory, Verdict
from codecanon.rules.base_rule import BaseRule

__all__ = ["LongVueFilesRule"]

MAX_VUE_LINES = 200


class LongVueFilesRule(BaseRule):
    rule_id = "long-vue-files"
    description = "Keep Vue files short by extracting components"
    detailed_description = (
        "Vue components should stay below a configurable number of lines\n"
        "(`max_vue_lines`).\n\n"
        "Large components usually mix several concerns. Split them into child\n"
        "components for distinct UI sections, composables for reusable logic and\n"
        "separate modules for types."
    )
    file_types = ("vue",)
    requires_review = True

    def judge(self, file_path: str, content: str) -> Verdict:
        max_lines = int(self.config("max_vue_lines", MAX_VUE_LINES))
        lines = count_lines(content)
        if lines <= max_lines:
            return Verdict.clean()
        return Verdict.with_advisories([
            Advisory.at(1, f"{lines} lines - review for potential component extraction",
                        f"Keep Vue files under {max_lines} lines"),
        ])
