"""Composable, short-circuiting rule pipeline.

A rule is written as a flat chain of pure steps over a :class:`PipelineContext`::

    pipeline = RulePipeline((
        in_presentation(),
        clean_unless_path_contains("/pages/"),
        match_patterns({"v-for": r"<div[^>]*\\sv-for="}),
    ))
    verdict = pipeline.judge(path, content, violations_from_matches("v-for on <div>"))

Once a step sets ``early_verdict`` or ``skip_reason`` the context is *halted*
and every later step hands it through untouched. The terminal
:func:`resolve` turns the final context into a :class:`Verdict`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from functools import wraps
from typing import Callable, Iterable, Mapping

from codecanon.regions.extractors import (
    LOGIC,
    PRESENTATION,
    STYLE,
    Region,
    extract_region,
)
from codecanon.regions.patterns import PatternMatch, PatternSet
from codecanon.regions.text import line_number
from codecanon.results.verdict import Advisory, Verdict, Violation

__all__ = [
    "PipelineContext",
    "Step",
    "Formatter",
    "RulePipeline",
    "extract_logic_region",
    "extract_presentation_region",
    "extract_style_region",
    "in_logic",
    "in_presentation",
    "in_style",
    "clean_when",
    "clean_unless_region",
    "clean_unless_path_contains",
    "clean_if_path_contains",
    "clean_if_content_matches",
    "skip_when",
    "skip_unless_region",
    "match_patterns",
    "filter_matches",
    "reject_matches",
    "resolve",
    "violations_from_matches",
    "advisories_from_matches",
]


@dataclass(frozen=True)
class PipelineContext:
    file_path: str
    content: str
    regions: Mapping[str, Region | None] = field(default_factory=dict)
    active: str | None = None
    matches: tuple[PatternMatch, ...] = ()
    early_verdict: Verdict | None = None
    skip_reason: str | None = None

    @property
    def halted(self) -> bool:
        return self.early_verdict is not None or self.skip_reason is not None

    def region(self, name: str | None = None) -> Region | None:
        """The named region, or the active one; the whole file when nothing was extracted."""
        key = name or self.active
        if key is None:
            return Region.whole(self.content)
        return self.regions.get(key)

    def has_region(self, name: str | None = None) -> bool:
        return self.region(name) is not None

    def with_region(self, name: str, region: Region | None) -> PipelineContext:
        return replace(self, regions={**self.regions, name: region}, active=name)

    def line_of(self, relative_offset: int, name: str | None = None) -> int:
        region = self.region(name)
        start = region.start if region is not None else 0
        return line_number(self.content, start + relative_offset)


Step = Callable[[PipelineContext], PipelineContext]
Formatter = Callable[[PipelineContext], Verdict]


def _guarded(transform: Step) -> Step:
    @wraps(transform)
    def step(ctx: PipelineContext) -> PipelineContext:
        if ctx.halted:
            return ctx
        return transform(ctx)
    return step


def _chain(*steps: Step) -> Step:
    def step(ctx: PipelineContext) -> PipelineContext:
        for each in steps:
            ctx = each(ctx)
        return ctx
    return step


def _extract(name: str) -> Step:
    return _guarded(lambda ctx: ctx.with_region(name, extract_region(name, ctx.content)))


def extract_logic_region() -> Step:
    return _extract(LOGIC)


def extract_presentation_region() -> Step:
    return _extract(PRESENTATION)


def extract_style_region() -> Step:
    return _extract(STYLE)


def clean_when(predicate: Callable[[PipelineContext], bool]) -> Step:
    def transform(ctx: PipelineContext) -> PipelineContext:
        if predicate(ctx):
            return replace(ctx, early_verdict=Verdict.clean())
        return ctx
    return _guarded(transform)


def skip_when(predicate: Callable[[PipelineContext], bool], reason: str) -> Step:
    def transform(ctx: PipelineContext) -> PipelineContext:
        if predicate(ctx):
            return replace(ctx, skip_reason=reason)
        return ctx
    return _guarded(transform)


def clean_unless_region(name: str | None = None) -> Step:
    return clean_when(lambda ctx: not ctx.has_region(name))


def skip_unless_region(name: str | None = None, reason: str | None = None) -> Step:
    def transform(ctx: PipelineContext) -> PipelineContext:
        if ctx.has_region(name):
            return ctx
        label = name or ctx.active or "requested"
        return replace(ctx, skip_reason=reason or f"No {label} section found")
    return _guarded(transform)


def clean_unless_path_contains(*needles: str) -> Step:
    return clean_when(lambda ctx: not any(needle in ctx.file_path for needle in needles))


def clean_if_path_contains(*needles: str) -> Step:
    return clean_when(lambda ctx: any(needle in ctx.file_path for needle in needles))


def clean_if_content_matches(pattern: str, region: str | None = None, flags: int = 0) -> Step:
    compiled = re.compile(pattern, flags)

    def matches(ctx: PipelineContext) -> bool:
        target = ctx.region(region) if region is not None else Region.whole(ctx.content)
        return target is not None and compiled.search(target.content) is not None
    return clean_when(matches)


def in_logic() -> Step:
    return _chain(extract_logic_region(), clean_unless_region(LOGIC))


def in_presentation() -> Step:
    return _chain(extract_presentation_region(), clean_unless_region(PRESENTATION))


def in_style() -> Step:
    return _chain(extract_style_region(), clean_unless_region(STYLE))


def match_patterns(patterns: PatternSet | Mapping[str, str], flags: int = 0) -> Step:
    pattern_set = patterns if isinstance(patterns, PatternSet) else PatternSet(dict(patterns), flags)

    def transform(ctx: PipelineContext) -> PipelineContext:
        region = ctx.region()
        if region is None:
            return ctx
        return replace(ctx, matches=(*ctx.matches, *pattern_set.run(region, ctx.content)))
    return _guarded(transform)


def filter_matches(predicate: Callable[[PatternMatch], bool]) -> Step:
    return _guarded(lambda ctx: replace(ctx, matches=tuple(m for m in ctx.matches if predicate(m))))


def reject_matches(predicate: Callable[[PatternMatch], bool]) -> Step:
    return filter_matches(lambda match: not predicate(match))


def resolve(ctx: PipelineContext, formatter: Formatter) -> Verdict:
    if ctx.skip_reason is not None:
        return Verdict.skip(ctx.skip_reason)
    if ctx.early_verdict is not None:
        return ctx.early_verdict
    return formatter(ctx)


MatchText = str | Callable[[PatternMatch], str]


def _text(value: MatchText | None, match: PatternMatch) -> str | None:
    if value is None or isinstance(value, str):
        return value
    return value(match)


def violations_from_matches(message: MatchText, suggestion: MatchText | None = None) -> Formatter:
    def formatter(ctx: PipelineContext) -> Verdict:
        if not ctx.matches:
            return Verdict.clean()
        return Verdict.violating([
            Violation.at(match.line, _text(message, match) or "", match.snippet, _text(suggestion, match))
            for match in ctx.matches
        ])
    return formatter


def advisories_from_matches(message: MatchText) -> Formatter:
    def formatter(ctx: PipelineContext) -> Verdict:
        if not ctx.matches:
            return Verdict.clean()
        return Verdict.with_advisories([
            Advisory.at(match.line, _text(message, match) or "", match.snippet)
            for match in ctx.matches
        ])
    return formatter


@dataclass(frozen=True)
class RulePipeline:
    steps: tuple[Step, ...] = ()

    def then(self, *steps: Step) -> RulePipeline:
        return RulePipeline((*self.steps, *steps))

    def run(self, file_path: str, content: str) -> PipelineContext:
        ctx = PipelineContext(file_path=file_path, content=content)
        for step in self.steps:
            ctx = step(ctx)
        return ctx

    def judge(self, file_path: str, content: str, formatter: Formatter) -> Verdict:
        return resolve(self.run(file_path, content), formatter)

    @classmethod
    def of(cls, steps: Iterable[Step]) -> RulePipeline:
        return cls(tuple(steps))
