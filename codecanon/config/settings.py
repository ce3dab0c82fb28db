"""Pydantic-based configuration model and YAML loader for codecanon."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from codecanon.core.environment import Capabilities
from codecanon.core.errors import ConfigurationError
from codecanon.core.registry import RuleRegistry
from codecanon.rules.catalog import resolve_rule_reference
from codecanon.tracking.acknowledgments import DEFAULT_STORE_PATH

__all__ = [
    "GroupSettings",
    "AcknowledgmentSettings",
    "CanonSettings",
    "RuleEntry",
    "find_config_file",
    "load_settings",
    "build_registry",
]

_CONFIG_FILE_NAMES: list[str] = [
    "codecanon.yaml",
    "codecanon.yml",
    ".codecanon.yaml",
    ".codecanon.yml",
]

RuleEntry = Union[str, dict[str, Union[dict[str, Any], None]]]


class GroupSettings(BaseModel):
    """One named rule group: where to look, what to look at, which rules to apply."""

    path: list[str] = Field(
        default_factory=list,
        description="Directory or directories to scan, relative to the project root.",
    )
    extensions: list[str] = Field(
        default_factory=list,
        description="File extensions to include (without the leading dot).",
    )
    exclude: list[str] = Field(
        default_factory=list,
        description="Path fragments excluded from scanning.",
    )
    thresholds: dict[str, Any] = Field(
        default_factory=dict,
        description="Settings applied to every rule in the group; per-rule config wins.",
    )
    rules: list[RuleEntry] = Field(
        default_factory=list,
        description="Ordered rule references: ids, class names or import paths.",
    )

    @field_validator("path", "extensions", "exclude", mode="before")
    @classmethod
    def _one_or_many(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return value

    @field_validator("rules", mode="before")
    @classmethod
    def _no_rules(cls, value: Any) -> Any:
        return [] if value is None else value

    def rule_references(self) -> list[tuple[str, dict[str, Any] | None]]:
        references: list[tuple[str, dict[str, Any] | None]] = []
        for entry in self.rules:
            if isinstance(entry, str):
                references.append((entry, None))
                continue
            for reference, config in entry.items():
                references.append((reference, config))
        return references


class AcknowledgmentSettings(BaseModel):
    """Where manual sign-offs are stored."""

    store_path: str = Field(
        default=DEFAULT_STORE_PATH,
        description="JSON store for acknowledgments, relative to the project root.",
    )


class CanonSettings(BaseModel):
    """Top-level codecanon configuration."""

    groups: dict[str, GroupSettings] = Field(
        default_factory=dict,
        description="Rule groups keyed by name.",
    )
    acknowledgments: AcknowledgmentSettings = Field(
        default_factory=AcknowledgmentSettings,
        description="Acknowledgment store settings.",
    )


def find_config_file(search_dir: Path) -> Path | None:
    """Walk up from *search_dir* looking for a config file."""
    current = search_dir.resolve()
    while True:
        for name in _CONFIG_FILE_NAMES:
            candidate = current / name
            if candidate.is_file():
                return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent
    return None


def _read_document(path: Path) -> dict[str, Any]:
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Could not read configuration {path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Configuration {path} must be a mapping at the top level")
    return raw


def load_settings(
    config_path: Path | None = None,
    search_dir: Path | None = None,
) -> CanonSettings:
    """Load settings from a YAML file; a missing or malformed file is fatal."""
    if config_path is not None:
        resolved = Path(config_path).resolve()
        if not resolved.is_file():
            raise ConfigurationError(f"Configuration file not found: {config_path}")
    else:
        found = find_config_file(search_dir or Path.cwd())
        if found is None:
            raise ConfigurationError(
                f"No configuration file found (looked for {', '.join(_CONFIG_FILE_NAMES)})"
            )
        resolved = found

    try:
        return CanonSettings(**_read_document(resolved))
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration {resolved}:\n{exc}") from exc


def build_registry(settings: CanonSettings, capabilities: Capabilities | None = None) -> RuleRegistry:
    """Turn validated settings into a populated :class:`RuleRegistry`."""
    registry = RuleRegistry(capabilities)
    for group, group_settings in settings.groups.items():
        registry.set_group_config(group, group_settings)
        for reference, config in group_settings.rule_references():
            rule = resolve_rule_reference(reference)
            if rule is None:
                raise ConfigurationError(f"Unknown rule '{reference}' in group '{group}'")
            registry.register(group, rule, config)
    return registry
