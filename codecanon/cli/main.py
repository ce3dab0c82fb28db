"""codecanon CLI – Typer multi-command application."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

import typer
from rich.panel import Panel
from rich.text import Text

from codecanon.config.settings import CanonSettings, build_registry, find_config_file, load_settings
from codecanon.config.sync import ConfigSynchronizer
from codecanon.core.engine import CanonEngine, GroupResults, JudgmentSummary
from codecanon.core.environment import Capabilities
from codecanon.core.errors import ConfigurationError
from codecanon.core.registry import RuleRegistry
from codecanon.core.remediation import RemediationRunner
from codecanon.git.git_utils import GitClient, GitError
from codecanon.rules.base_rule import BaseRule, RemediableRule, is_remediable
from codecanon.rules.catalog import builtin_rules
from codecanon.tracking.acknowledgments import AcknowledgmentTracker
from codecanon.utils.logger import (
    announce, configure_logging, console, findings_table, rule_panel, rules_table, summary_panel,
)

__all__ = ["app"]

app = typer.Typer(
    name="codecanon",
    help="Convention checks for codebases: judge files, auto-fix, acknowledge reviewed findings.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

_ACKNOWLEDGE_REASON = "Reviewed via codecanon judge --acknowledge"


@dataclass
class _Project:
    settings: CanonSettings
    config_path: Path
    root: Path
    registry: RuleRegistry
    engine: CanonEngine
    tracker: AcknowledgmentTracker


def _load_project(config: Path | None, project_dir: Path | None) -> _Project:
    search = (project_dir or Path.cwd()).resolve()
    config_path = config.resolve() if config else find_config_file(search)
    if config_path is None:
        raise ConfigurationError("No codecanon.yaml found in this directory or any parent")
    settings = load_settings(config_path=config_path)
    root = project_dir.resolve() if project_dir else config_path.parent
    registry = build_registry(settings, Capabilities.from_project(root))
    return _Project(
        settings=settings,
        config_path=config_path,
        root=root,
        registry=registry,
        engine=CanonEngine(registry, root),
        tracker=AcknowledgmentTracker(Path(settings.acknowledgments.store_path), root),
    )


@contextmanager
def _fatal_errors() -> Iterator[None]:
    try:
        yield
    except (ConfigurationError, GitError) as exc:
        announce("violation", str(exc))
        raise typer.Exit(code=2)


def _banner() -> None:
    console.print(Panel(
        Text("codecanon", style="bold magenta", justify="center"),
        subtitle="Conventions, judged",
        border_style="magenta", expand=False, padding=(0, 4),
    ))
    console.print()


def _relative(project: _Project, file_path: str | Path) -> str:
    try:
        return Path(file_path).relative_to(project.root).as_posix()
    except ValueError:
        return Path(file_path).as_posix()


def _selected_groups(project: _Project, group: str | None) -> list[str]:
    if group is None:
        return project.registry.groups()
    if not project.registry.has_group(group):
        raise ConfigurationError(f"Unknown rule group '{group}'")
    return [group]


def _target_files(project: _Project, file: Path | None, files: str | None, git: bool) -> list[Path] | None:
    """Explicit file selection, or ``None`` to scan every group's paths."""
    if file is not None:
        resolved = file if file.is_absolute() else project.root / file
        if not resolved.is_file():
            raise ConfigurationError(f"File not found: {file}")
        return [resolved]
    if files:
        return [project.root / name.strip() for name in files.split(",") if name.strip()]
    if git:
        return GitClient(project.root).changed_files()
    return None


def _rule_filter(project: _Project, group: str, rule: str | None) -> set[str] | None:
    """Rule ids selected by *rule* (an id, a class name fragment or an ordinal)."""
    if rule is None:
        return None
    if rule.isdigit():
        found = project.registry.get_rule_by_ordinal(group, int(rule))
        if found is None:
            raise ConfigurationError(f"No rule #{rule} in group '{group}'")
        return {found.rule_id}
    needle = rule.lower()
    return {
        instance.rule_id for instance in project.registry.get_rules(group)
        if needle in instance.rule_id.lower() or needle in type(instance).__name__.lower()
    }


def _judge_group(project: _Project, group: str, targets: list[Path] | None, rule: str | None) -> GroupResults:
    results = project.engine.judge_group(group) if targets is None else project.engine.judge_files(group, targets)
    selected = _rule_filter(project, group, rule)
    filtered: GroupResults = {}
    for path, verdicts in results.items():
        if selected is not None:
            verdicts = {rule_id: v for rule_id, v in verdicts.items() if rule_id in selected}
        if not verdicts:
            continue
        content = project.engine.read(Path(path))
        if content is not None:
            verdicts = project.tracker.without_reviewed(path, content, verdicts)
        filtered[path] = verdicts
    return filtered


def _print_group(project: _Project, group: str, results: GroupResults) -> None:
    remediable = {r.rule_id for r in project.registry.get_rules(group) if is_remediable(r)}
    violations: list[list[str]] = []
    advisories: list[list[str]] = []
    for path, verdicts in results.items():
        relative = _relative(project, path)
        for rule_id, verdict in verdicts.items():
            fixable = " [green](auto-fixable)[/green]" if rule_id in remediable else ""
            for v in verdict.violations:
                violations.append([f"{relative}:{v.line}" if v.line else relative, f"{rule_id}{fixable}", v.message])
            for a in verdict.advisories:
                advisories.append([f"{relative}:{a.line}" if a.line else relative, rule_id, a.message])
    if violations:
        console.print(findings_table(f"Violations in '{group}'", "violation", violations))
    if advisories:
        console.print(findings_table(f"Needs review in '{group}'", "advisory", advisories))


def _acknowledge(project: _Project, results: GroupResults) -> int:
    acknowledged = 0
    for path, verdicts in results.items():
        content = project.engine.read(Path(path))
        if content is None:
            continue
        for rule_id, verdict in verdicts.items():
            if verdict.has_advisories:
                project.tracker.acknowledge(path, rule_id, _ACKNOWLEDGE_REASON, content=content)
                acknowledged += 1
    return acknowledged


_CONFIG_OPTION = typer.Option(None, "--config", "-c", help="Path to codecanon.yaml")
_DIR_OPTION = typer.Option(None, "--dir", "-d", help="Project root directory")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging")) -> None:
    configure_logging(verbose)


@app.command()
def judge(
    group: Optional[str] = typer.Option(None, "--group", "-g", help="Only judge this rule group"),
    rule: Optional[str] = typer.Option(None, "--rule", "-r", help="Only apply this rule (id, class name or ordinal)"),
    file: Optional[Path] = typer.Option(None, "--file", help="Judge a single file"),
    files: Optional[str] = typer.Option(None, "--files", help="Judge a comma-separated list of files"),
    git: bool = typer.Option(False, "--git", help="Only judge files that are new or changed in git"),
    acknowledge: bool = typer.Option(False, "--acknowledge", help="Acknowledge reported advisories after review"),
    config: Optional[Path] = _CONFIG_OPTION,
    project_dir: Optional[Path] = _DIR_OPTION,
) -> None:
    """Judge files against the configured rules."""
    _banner()
    with _fatal_errors():
        project = _load_project(config, project_dir)
        targets = _target_files(project, file, files, git)
        if targets == []:
            announce("note", "No changed files in git. Nothing to judge.")
            raise typer.Exit(code=0)

        summary = JudgmentSummary()
        acknowledged = 0
        with console.status("[bold cyan]Judging files…"):
            judged = {name: _judge_group(project, name, targets, rule) for name in _selected_groups(project, group)}
        for name, results in judged.items():
            _print_group(project, name, results)
            summary += project.engine.summarize(results)
            if acknowledge:
                acknowledged += _acknowledge(project, results)

    console.print(summary_panel(summary))
    if acknowledged:
        announce("clean", f"Acknowledged {acknowledged} reviewed finding(s).")
    if summary.violations:
        announce("violation", "Violations found – run `codecanon repent` to fix what can be fixed automatically.")
        raise typer.Exit(code=1)
    if summary.advisories:
        announce("advisory", "Advisories need a manual review – acknowledge them with --acknowledge.")
    else:
        announce("clean", "No violations found.")
    raise typer.Exit(code=0)


@app.command()
def repent(
    group: Optional[str] = typer.Option(None, "--group", "-g", help="Only fix this rule group"),
    rule: Optional[str] = typer.Option(None, "--rule", "-r", help="Only use rules whose id or class name contains this"),
    file: Optional[Path] = typer.Option(None, "--file", help="Fix a single file"),
    files: Optional[str] = typer.Option(None, "--files", help="Fix a comma-separated list of files"),
    git: bool = typer.Option(False, "--git", help="Only fix files that are new or changed in git"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show what would be fixed without writing"),
    config: Optional[Path] = _CONFIG_OPTION,
    project_dir: Optional[Path] = _DIR_OPTION,
) -> None:
    """Automatically fix violations that remediable rules know how to fix."""
    _banner()
    with _fatal_errors():
        project = _load_project(config, project_dir)
        targets = _target_files(project, file, files, git)
        if targets == []:
            announce("note", "No changed files in git. Nothing to fix.")
            raise typer.Exit(code=0)
        _selected_groups(project, group)
        with console.status("[bold cyan]Fixing files…"):
            report = RemediationRunner(project.engine).repent(group, rule, targets, dry_run=dry_run)

    if report.is_empty:
        announce("clean", "Nothing to fix.")
        raise typer.Exit(code=0)

    action = "Would fix" if dry_run else "Fixed"
    for rule_id, fixed in report.fixed.items():
        console.print(f"[clean]{action}[/clean] [bold]{rule_id}[/bold]")
        for path in fixed:
            console.print(f"  {path}")
    for rule_id, failed in report.failed.items():
        console.print(f"[violation]Manual fix required[/violation] [bold]{rule_id}[/bold]")
        for path in failed:
            console.print(f"  {path}")
    console.print()
    announce("note", f"{action}: {report.total_fixed}  Failed: {report.total_failed}")
    if dry_run:
        announce("note", "Run without --dry-run to apply the fixes.")
    raise typer.Exit(code=0)


def _scripture_rows(registry: RuleRegistry | None, group: str | None) -> list[list[str]]:
    def flags(rule_cls: type[BaseRule]) -> list[str]:
        return ["yes" if issubclass(rule_cls, RemediableRule) else "", "yes" if rule_cls.requires_review else ""]

    if registry is None:
        return [["-", rule_id, "-", rule.description, *flags(rule)] for rule_id, rule in sorted(builtin_rules().items())]
    groups = [group] if group else registry.groups()
    return [
        [str(ordinal), rule_cls.rule_id, name, rule_cls.description, *flags(rule_cls)]
        for name in groups
        for ordinal, rule_cls in enumerate(registry.rule_classes(name), start=1)
    ]


@app.command()
def scripture(
    name: Optional[str] = typer.Argument(None, help="Rule id or class name to describe"),
    group: Optional[str] = typer.Option(None, "--group", "-g", help="Only list the rules of this group"),
    config: Optional[Path] = _CONFIG_OPTION,
    project_dir: Optional[Path] = _DIR_OPTION,
) -> None:
    """List the configured rules, or describe one rule in detail."""
    with _fatal_errors():
        try:
            registry: RuleRegistry | None = _load_project(config, project_dir).registry
        except ConfigurationError:
            if config is not None:
                raise
            registry = None
        if group is not None and (registry is None or not registry.has_group(group)):
            raise ConfigurationError(f"Unknown rule group '{group}'")

    if name is None:
        console.print(rules_table(_scripture_rows(registry, group)))
        raise typer.Exit(code=0)

    rule: BaseRule | None = None
    if registry is not None:
        lookup = registry.find_rule(name)
        rule = lookup.rule if lookup else None
    if rule is None and name in builtin_rules():
        rule = builtin_rules()[name]()
    if rule is None:
        announce("violation", f"Unknown rule '{name}'")
        raise typer.Exit(code=2)
    console.print(rule_panel(rule, is_remediable(rule)))
    raise typer.Exit(code=0)


@app.command()
def sync(
    dry_run: bool = typer.Option(False, "--dry-run", help="Show the rules that would be added"),
    config: Optional[Path] = _CONFIG_OPTION,
    project_dir: Optional[Path] = _DIR_OPTION,
) -> None:
    """Add newly shipped rules to codecanon.yaml."""
    with _fatal_errors():
        project = _load_project(config, project_dir)
        synchronizer = ConfigSynchronizer()
        if dry_run:
            result = synchronizer.sync(project.config_path, project.settings)
        else:
            result = synchronizer.write(project.config_path)

    if not result.changed:
        announce("clean", "Configuration is up to date.")
        raise typer.Exit(code=0)
    verb = "Would add" if dry_run else "Added"
    for group, rule_id in result.added:
        console.print(f"  [clean]+[/clean] {rule_id} [muted]→ {group}[/muted]")
    announce("note", f"{verb} {len(result.added)} rule(s) to {_relative(project, project.config_path)}")
    raise typer.Exit(code=0)


@app.command()
def cleanup(
    config: Optional[Path] = _CONFIG_OPTION,
    project_dir: Optional[Path] = _DIR_OPTION,
) -> None:
    """Remove acknowledgments of files that no longer exist."""
    with _fatal_errors():
        removed = _load_project(config, project_dir).tracker.cleanup()
    announce("clean", f"Removed {removed} stale acknowledgment entr{'y' if removed == 1 else 'ies'}.")
    raise typer.Exit(code=0)


if __name__ == "__main__":
    app()
