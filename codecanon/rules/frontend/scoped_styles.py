"""Rule: Suggest scoping component styles."""
from __future__ import annotations
from codecanon.regions.extractors import STYLE
from codecanon.regions.pipeline import PipelineContext, RulePipeline, clean_when, in_style
from codecanon.results.verdict import Advisory, Verdict
from codecanon.rules.base_rule import BaseRule

__all__ = ["ScopedStylesRule"]

_PIPELINE = RulePipeline((
    in_style(),
    clean_when(lambda ctx: ctx.region(STYLE).scoped or not ctx.region(STYLE).content.strip()),
))


def _unscoped_advisory(ctx: PipelineContext) -> Verdict:
    region = ctx.region(STYLE)
    return Verdict.with_advisories([
        Advisory.at(ctx.line_of(0, STYLE), "<style> block is not scoped and leaks into other components",
                    region.content.strip().splitlines()[0]),
    ])


class ScopedStylesRule(BaseRule):
    rule_id = "scoped-styles"
    description = "Scope component styles with <style scoped>"
    detailed_description = (
        "Styles declared in a component apply to the whole page unless the\n"
        "<style> block is scoped. Global styles belong in a stylesheet of their own.\n\n"
        "Bad:\n"
        "    <style>.title { color: red; }</style>\n\n"
        "Good:\n"
        "    <style scoped>.title { color: red; }</style>"
    )
    file_types = ("vue",)
    requires_review = True

    def judge(self, file_path: str, content: str) -> Verdict:
        return _PIPELINE.judge(file_path, content, _unscoped_advisory)
