"""Rule: Detect print() calls in library code."""
from __future__ import annotations
import re
from codecanon.regions.pipeline import (
    RulePipeline, clean_if_path_contains, match_patterns, violations_from_matches,
)
from codecanon.results.verdict import Verdict
from codecanon.rules.base_rule import BaseRule

__all__ = ["NoPrintCallsRule"]

_PIPELINE = RulePipeline((
    clean_if_path_contains("/scripts/"),
    match_patterns({"print": r"^[ \t]*print\("}, re.MULTILINE),
))


class NoPrintCallsRule(BaseRule):
    rule_id = "no-print-calls"
    description = "Use logging instead of print()"
    detailed_description = (
        "Library code should report through `logging.getLogger(__name__)` so\n"
        "that the application decides where output goes. Files under a\n"
        "`scripts/` directory are exempt.\n\n"
        "Bad:\n"
        "    print(f\"processed {count} rows\")\n\n"
        "Good:\n"
        "    logger.info(\"processed %d rows\", count)"
    )
    file_types = ("py",)

    def judge(self, file_path: str, content: str) -> Verdict:
        return _PIPELINE.judge(file_path, content, violations_from_matches(
            "print() call in library code", "Use a module-level logger instead",
        ))
