"""Adds newly shipped rules to an existing ``codecanon.yaml``.

The synchronizer discovers every built-in rule of a group's family, compares
them with the rules the group already references and inserts the missing ids
into the group's ``rules: [...]`` flow sequence. The document is patched as
text so that comments and formatting elsewhere are preserved.
"""

from __future__ import annotations

import ast
import inspect
import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator

from codecanon.config.settings import CanonSettings, GroupSettings, load_settings
from codecanon.rules.base_rule import BaseRule
from codecanon.rules.catalog import discover_rules, family_for_extensions, resolve_rule_reference

__all__ = ["ConfigSynchronizer", "SyncResult", "find_matching_bracket", "config_options", "insert_rules"]

logger = logging.getLogger(__name__)

_INDENT_STEP = 2


@dataclass
class SyncResult:
    added: list[tuple[str, str]] = field(default_factory=list)
    source: str = ""

    @property
    def changed(self) -> bool:
        return bool(self.added)


def _significant(source: str, start: int) -> Iterator[tuple[int, str]]:
    """Yield (position, char) for characters outside quoted strings and ``#`` comments."""
    pos = start
    length = len(source)
    quote: str | None = None
    previous = " "
    while pos < length:
        char = source[pos]
        if quote is not None:
            if char == "\\":
                pos += 2
                continue
            if char == quote:
                quote = None
        elif char in "'\"" and (previous.isspace() or previous in "[{,:"):
            quote = char
        elif char == "#" and (previous.isspace() or previous in "[{,"):
            newline = source.find("\n", pos)
            if newline == -1:
                return
            pos = newline
            char = "\n"
            continue
        else:
            yield pos, char
        previous = char
        pos += 1


def find_matching_bracket(source: str, open_pos: int) -> int | None:
    """Position of the ``]`` closing the ``[`` at *open_pos*, or ``None``."""
    depth = 0
    for pos, char in _significant(source, open_pos):
        if char == "[":
            depth += 1
        elif char == "]":
            depth -= 1
            if depth == 0:
                return pos
    return None


def _resolve_default(node: ast.expr, module: ast.Module) -> ast.expr:
    name = node.id if isinstance(node, ast.Name) else node.attr if isinstance(node, ast.Attribute) else None
    if name is None:
        return node
    for candidate in ast.walk(module):
        if isinstance(candidate, ast.Assign) and any(
            isinstance(target, ast.Name) and target.id == name for target in candidate.targets
        ):
            return candidate.value
        if isinstance(candidate, ast.AnnAssign) and isinstance(candidate.target, ast.Name) \
                and candidate.target.id == name and candidate.value is not None:
            return candidate.value
    return node


def _render_default(node: ast.expr) -> str:
    try:
        return json.dumps(ast.literal_eval(node))
    except (ValueError, TypeError, SyntaxError):
        return ast.unparse(node)


def config_options(rule: type[BaseRule]) -> dict[str, str]:
    """Config keys read by *rule* via ``self.config("key", default)``, with rendered defaults."""
    try:
        source = inspect.getsource(inspect.getmodule(rule))
    except (OSError, TypeError):
        return {}
    module = ast.parse(source)
    options: dict[str, str] = {}
    for node in ast.walk(module):
        if not (
            isinstance(node, ast.Call)
            and isinstance(node.func, ast.Attribute)
            and node.func.attr == "config"
            and isinstance(node.func.value, ast.Name)
            and node.func.value.id == "self"
            and node.args
            and isinstance(node.args[0], ast.Constant)
            and isinstance(node.args[0].value, str)
        ):
            continue
        key = node.args[0].value
        if key == "exclude" or key in options:
            continue
        default = node.args[1] if len(node.args) > 1 else ast.Constant(value=None)
        options[key] = _render_default(_resolve_default(default, module))
    return options


def _render_entries(rules: list[type[BaseRule]], indent: str) -> str:
    lines = []
    for rule in rules:
        options = config_options(rule)
        line = f"{indent}{rule.rule_id},"
        if options:
            line += "  # " + ", ".join(f"{key}: {value}" for key, value in options.items())
        lines.append(line + "\n")
    return "".join(lines)


def _line_start(source: str, pos: int) -> int:
    return source.rfind("\n", 0, pos) + 1


def _find_key(source: str, key: str, start: int, end: int | None = None) -> re.Match[str] | None:
    pattern = re.compile(rf"^([ \t]*)(['\"]?){re.escape(key)}\2[ \t]*:", re.MULTILINE)
    return pattern.search(source, start, len(source) if end is None else end)


def _block_end(source: str, key_match: re.Match[str]) -> int:
    """End of the mapping block introduced by *key_match* (next line at the same or lower indent)."""
    indent = len(key_match.group(1))
    next_line = source.find("\n", key_match.end())
    if next_line == -1:
        return len(source)
    sibling = re.compile(rf"^[ \t]{{0,{indent}}}[^\s#]", re.MULTILINE)
    following = sibling.search(source, next_line + 1)
    return following.start() if following else len(source)


def insert_rules(source: str, group: str, rules: list[type[BaseRule]]) -> str:
    """Insert *rules* into ``groups.<group>.rules`` of the YAML *source*."""
    groups_key = _find_key(source, "groups", 0)
    if groups_key is None:
        return source
    group_key = _find_key(source, group, groups_key.end(), _block_end(source, groups_key))
    if group_key is None:
        return source
    rules_key = _find_key(source, "rules", group_key.end(), _block_end(source, group_key))
    if rules_key is None:
        logger.warning("Group '%s' has no rules sequence to extend", group)
        return source

    line_end = source.find("\n", rules_key.end())
    open_pos = source.find("[", rules_key.end(), len(source) if line_end == -1 else line_end)
    if open_pos == -1:
        logger.warning("Rules of group '%s' are not a [...] sequence – not patched", group)
        return source
    close_pos = find_matching_bracket(source, open_pos)
    if close_pos is None:
        return source

    key_indent = len(rules_key.group(1))
    entry_indent = " " * (key_indent + _INDENT_STEP)
    closing_indent = " " * key_indent
    entries = _render_entries(rules, entry_indent)
    between = source[open_pos + 1:close_pos]

    significant = [(pos, char) for pos, char in _significant(source, open_pos + 1) if pos < close_pos and not char.isspace()]
    if not significant:
        return f"{source[:open_pos]}[\n{entries}{closing_indent}]{source[close_pos + 1:]}"

    if "\n" not in between:
        existing = between.strip()
        if not existing.endswith(","):
            existing += ","
        return f"{source[:open_pos]}[\n{entry_indent}{existing}\n{entries}{closing_indent}]{source[close_pos + 1:]}"

    close_line = _line_start(source, close_pos)
    if source[close_line:close_pos].strip():
        patched = f"{source[:close_pos]}\n{entries}{closing_indent}{source[close_pos:]}"
    else:
        patched = f"{source[:close_line]}{entries}{source[close_line:]}"

    last_pos, last_char = significant[-1]
    if last_char != ",":
        patched = f"{patched[:last_pos + 1]},{patched[last_pos + 1:]}"
    return patched


class ConfigSynchronizer:
    """Keeps a configuration document in step with the shipped rule catalog."""

    def _missing_rules(self, group: GroupSettings) -> list[type[BaseRule]]:
        family = family_for_extensions(group.extensions)
        if family is None:
            return []
        existing = set()
        for reference, _ in group.rule_references():
            rule = resolve_rule_reference(reference)
            if rule is None:
                logger.warning("Unknown rule reference '%s' left untouched", reference)
                continue
            existing.add(rule)
        return [rule for rule in discover_rules(family) if rule not in existing]

    def sync(self, config_path: Path, settings: CanonSettings | None = None) -> SyncResult:
        settings = settings or load_settings(config_path)
        source = Path(config_path).read_text(encoding="utf-8")
        result = SyncResult(source=source)

        for name, group in settings.groups.items():
            missing = self._missing_rules(group)
            if not missing:
                continue
            patched = insert_rules(result.source, name, missing)
            if patched == result.source:
                continue
            result.source = patched
            result.added.extend((name, rule.rule_id) for rule in missing)
        return result

    def write(self, config_path: Path) -> SyncResult:
        result = self.sync(config_path)
        if result.changed:
            Path(config_path).write_text(result.source, encoding="utf-8")
            logger.info("Added %d rule(s) to %s", len(result.added), config_path)
        return result
