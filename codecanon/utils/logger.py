"""Rich console output and logging setup for codecanon."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

if TYPE_CHECKING:
    from codecanon.core.engine import JudgmentSummary
    from codecanon.rules.base_rule import BaseRule

__all__ = [
    "console",
    "configure_logging",
    "announce",
    "findings_table",
    "rules_table",
    "summary_panel",
    "rule_panel",
]

_THEME = Theme(
    {
        "clean": "bold green",
        "violation": "bold red",
        "advisory": "bold yellow",
        "note": "bold cyan",
        "muted": "dim",
        "accent": "bold magenta",
    }
)

_MARKS = {"clean": "✔", "violation": "✖", "advisory": "⚠", "note": "ℹ"}
_RULE_COLUMN_STYLES = {"violation": "red", "advisory": "yellow"}

console = Console(theme=_THEME)


def configure_logging(verbose: bool = False) -> None:
    """Route library logging through rich; debug output only when *verbose*."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=verbose, rich_tracebacks=True)],
        force=True,
    )


def announce(level: str, message: str) -> None:
    """Print one status line; *level* is ``clean``, ``violation``, ``advisory`` or ``note``."""
    console.print(f"[{level}]{_MARKS[level]}[/{level}] {message}")


def findings_table(title: str, level: str, rows: list[list[str]]) -> Table:
    """Location / rule / message table for violations or advisories."""
    table = Table(title=f"{_MARKS[level]} {title}", show_lines=False, expand=True)
    table.add_column("Location", style="bold")
    table.add_column("Rule", style=_RULE_COLUMN_STYLES.get(level, ""))
    table.add_column("Message")
    for row in rows:
        table.add_row(*row)
    return table


def rules_table(rows: list[list[str]]) -> Table:
    table = Table(title="📜 Rules", show_lines=False, expand=True)
    columns = (
        ("#", "dim"), ("Rule", "bold"), ("Group", "cyan"), ("Description", ""),
        ("Auto-fix", "green"), ("Review", "yellow"),
    )
    for header, style in columns:
        table.add_column(header, style=style)
    for row in rows:
        table.add_row(*row)
    return table


def summary_panel(summary: JudgmentSummary) -> Panel:
    body = (
        f"Files: {summary.files_examined}  Clean: {summary.clean}  Flagged: {summary.flagged}\n"
        f"Violations: {summary.violations}  Advisories: {summary.advisories}  Skipped: {summary.skipped}"
    )
    style = "red" if summary.violations else "yellow" if summary.advisories else "green"
    return Panel(Text(body), title="📋 Judgment Summary", border_style=style, expand=True, padding=(1, 2))


def rule_panel(rule: BaseRule, fixable: bool) -> Panel:
    marks = [label for label, on in (("auto-fixable", fixable), ("needs review", rule.requires_review)) if on]
    return Panel(
        Text(rule.detailed_description or rule.description),
        title=Text(f"{rule.rule_id} – {rule.description}"),
        subtitle=" · ".join(marks) or None,
        border_style="cyan",
        expand=True,
        padding=(1, 2),
    )
