"""Rule: Require a <template v-for> wrapper instead of v-for on DOM elements."""
from __future__ import annotations
import re
from codecanon.regions.extractors import PRESENTATION, extract_presentation
from codecanon.regions.patterns import PatternSet
from codecanon.regions.pipeline import (
    RulePipeline, extract_presentation_region, match_patterns, skip_unless_region,
    violations_from_matches,
)
from codecanon.results.verdict import RemediationResult, Verdict
from codecanon.rules.base_rule import BaseRule, RemediableRule, extension_of

__all__ = ["TemplateVForRule"]

_DOM_ELEMENTS = "div|span|li|tr|td|button|a|p|h1|h2|h3|h4|h5|h6"

_V_FOR_ON_ELEMENT = PatternSet().add(
    "v-for-on-element", rf"<({_DOM_ELEMENTS})(\s[^>]*)?\s+v-for\s*=", re.IGNORECASE,
)
_SELF_CLOSING_RE = re.compile(rf'<({_DOM_ELEMENTS})((?:\s[^>]*?)?\s+v-for\s*=\s*"[^"]*"[^>/]*?)\s*/>', re.IGNORECASE | re.DOTALL)
_WITH_BODY_RE = re.compile(rf'<({_DOM_ELEMENTS})((?:\s[^>]*?)?\s+v-for\s*=\s*"[^"]*"[^>]*)>(.*?)</\1>', re.IGNORECASE | re.DOTALL)
_V_FOR_ATTR_RE = re.compile(r'\s+v-for\s*=\s*"([^"]*)"')
_KEY_ATTR_RE = re.compile(r'\s+:key\s*=\s*"([^"]*)"')

_PIPELINE = RulePipeline((
    extract_presentation_region(),
    skip_unless_region(PRESENTATION, "No template section found"),
    match_patterns(_V_FOR_ON_ELEMENT),
))


def _split_loop_attributes(attributes: str) -> tuple[str, str, str]:
    """Return (v-for value, :key attribute, remaining attributes)."""
    loop = _V_FOR_ATTR_RE.search(attributes)
    value = loop.group(1) if loop else ""
    attributes = _V_FOR_ATTR_RE.sub("", attributes, count=1)
    key = _KEY_ATTR_RE.search(attributes)
    key_attr = f' :key="{key.group(1)}"' if key else ""
    attributes = _KEY_ATTR_RE.sub("", attributes, count=1)
    return value, key_attr, attributes


class TemplateVForRule(BaseRule, RemediableRule):
    rule_id = "template-v-for"
    description = "Use <template v-for> wrapper instead of v-for on elements"
    detailed_description = (
        "Always wrap v-for loops in a <template> element.\n\n"
        "This keeps the DOM structure clean and makes it clear where the loop\n"
        "starts and ends. Place :key on the template element.\n\n"
        "Bad:\n"
        '    <div v-for="item in items" :key="item.id">{{ item.name }}</div>\n\n'
        "Good:\n"
        '    <template v-for="item in items" :key="item.id">\n'
        "        <div>{{ item.name }}</div>\n"
        "    </template>"
    )
    file_types = ("vue",)

    def judge(self, file_path: str, content: str) -> Verdict:
        return _PIPELINE.judge(file_path, content, violations_from_matches(
            lambda m: f"v-for on <{m.group(1)}> element should be wrapped in <template>",
            lambda m: f'Wrap the <{m.group(1)}> in a <template v-for="..."> element',
        ))

    def can_remediate(self, file_path: str) -> bool:
        return extension_of(file_path) == "vue"

    def remediate(self, file_path: str, content: str) -> RemediationResult:
        region = extract_presentation(content)
        if region is None:
            return RemediationResult.failed("No template section found")

        wrapped = 0
        nested: list[str] = []

        def wrap_self_closing(match: re.Match[str]) -> str:
            nonlocal wrapped
            value, key_attr, attributes = _split_loop_attributes(match.group(2))
            wrapped += 1
            return f'<template v-for="{value}"{key_attr}><{match.group(1)}{attributes} /></template>'

        def wrap_with_body(match: re.Match[str]) -> str:
            nonlocal wrapped
            tag = match.group(1)
            if re.search(rf"<{tag}[\s>/]", match.group(3), re.IGNORECASE):
                nested.append(tag)
                return match.group(0)
            value, key_attr, attributes = _split_loop_attributes(match.group(2))
            wrapped += 1
            return f'<template v-for="{value}"{key_attr}><{tag}{attributes}>{match.group(3)}</{tag}></template>'

        body = _SELF_CLOSING_RE.sub(wrap_self_closing, region.content)
        body = _WITH_BODY_RE.sub(wrap_with_body, body)
        if nested:
            return RemediationResult.failed(f"v-for on <{nested[0]}> wraps a nested <{nested[0]}>; wrap it by hand")
        if not wrapped:
            if self.judge(file_path, content).is_clean:
                return RemediationResult.already_clean(content)
            return RemediationResult.failed("v-for attributes could not be rewritten automatically")

        new_content = content[:region.start] + body + content[region.end:]
        return RemediationResult.fixed(new_content, [f"{wrapped} v-for directive(s) wrapped in <template>"])
