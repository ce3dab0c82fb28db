"""Rule: Detect direct fetch()/axios calls in frontend code."""
from __future__ import annotations
import re
from codecanon.regions.extractors import LOGIC
from codecanon.regions.pipeline import (
    RulePipeline, clean_if_content_matches, extract_logic_region, match_patterns,
    skip_unless_region, violations_from_matches,
)
from codecanon.results.verdict import Verdict
from codecanon.rules.base_rule import BaseRule, extension_of

__all__ = ["NoFetchAxiosRule"]

_HTTP_CALL_PATTERNS = {"http-call": r"\b(?:window\.)?fetch\(|\baxios[.(]"}
_API_MARKER_RE = r"//.*(?:API endpoint|returns JSON)"

_COMPONENT_PIPELINE = RulePipeline((
    extract_logic_region(),
    skip_unless_region(LOGIC, "No script section found"),
    clean_if_content_matches(_API_MARKER_RE, flags=re.IGNORECASE),
    match_patterns(_HTTP_CALL_PATTERNS),
))
_MODULE_PIPELINE = RulePipeline((
    clean_if_content_matches(_API_MARKER_RE, flags=re.IGNORECASE),
    match_patterns(_HTTP_CALL_PATTERNS),
))


class NoFetchAxiosRule(BaseRule):
    rule_id = "no-fetch-axios"
    description = "Use the shared HTTP client instead of fetch/axios"
    detailed_description = (
        "Never call fetch() or axios directly from components or modules.\n\n"
        "Route server communication through the application's router or HTTP\n"
        "client so that loading state, errors and typing are handled in one place.\n\n"
        "Bad:\n"
        "    const data = await fetch('/api/products').then(r => r.json());\n"
        "    const response = await axios.get('/products');\n\n"
        "Good:\n"
        "    router.get(products.index.url());\n"
        "    form.post(products.store.url());\n\n"
        "A `// API endpoint` or `// returns JSON` comment marks a file as an\n"
        "intentional API client and silences the rule."
    )
    file_types = ("vue", "ts", "js", "tsx", "jsx")

    def judge(self, file_path: str, content: str) -> Verdict:
        pipeline = _COMPONENT_PIPELINE if extension_of(file_path) == "vue" else _MODULE_PIPELINE
        return pipeline.judge(file_path, content, violations_from_matches(
            "fetch() or axios usage detected",
            "Use the shared router or HTTP client for server communication",
        ))
