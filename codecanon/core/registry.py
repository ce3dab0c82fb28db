"""Ordered, configured registry of rule classes per named group."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from codecanon.core.environment import Capabilities
from codecanon.rules.base_rule import BaseRule

__all__ = ["RuleRegistry", "RuleLookup", "RuleRef"]

logger = logging.getLogger(__name__)

RuleRef = type[BaseRule]


@dataclass(frozen=True)
class RuleLookup:
    group: str
    ordinal: int
    rule: BaseRule


def _as_dict(config: Any) -> dict[str, Any]:
    if config is None:
        return {}
    if hasattr(config, "model_dump"):
        return config.model_dump()
    return dict(config)


class RuleRegistry:
    """Holds rule classes per group in registration order.

    Ordinals are 1-based and follow registration order. Instances are built on
    every :meth:`get_rules` call so that group thresholds and per-rule overrides
    are always applied to a fresh rule.
    """

    def __init__(self, capabilities: Capabilities | None = None) -> None:
        self.capabilities = capabilities or Capabilities()
        self._rules: dict[str, list[RuleRef]] = {}
        self._group_configs: dict[str, dict[str, Any]] = {}
        self._rule_configs: dict[str, dict[RuleRef, dict[str, Any]]] = {}

    def register(self, group: str, rule: RuleRef, config: Mapping[str, Any] | None = None) -> None:
        bindings = self._rules.setdefault(group, [])
        if rule not in bindings:
            bindings.append(rule)
        if config is not None:
            self.set_rule_config(group, rule, config)

    def register_many(self, group: str, rules: Iterable[Any] | Mapping[RuleRef, Any]) -> None:
        """Register a list of classes / ``{cls: config}`` entries, or a ``{cls: config}`` mapping."""
        if isinstance(rules, Mapping):
            for rule, config in rules.items():
                self.register(group, rule, config)
            return
        for entry in rules:
            if isinstance(entry, Mapping):
                for rule, config in entry.items():
                    self.register(group, rule, config)
            else:
                self.register(group, entry)

    def set_group_config(self, group: str, config: Any) -> None:
        self._group_configs[group] = _as_dict(config)

    def group_config(self, group: str) -> dict[str, Any]:
        return dict(self._group_configs.get(group, {}))

    def set_rule_config(self, group: str, rule: RuleRef, config: Mapping[str, Any]) -> None:
        self._rule_configs.setdefault(group, {})[rule] = dict(config)

    def rule_config(self, group: str, rule: RuleRef) -> dict[str, Any]:
        return dict(self._rule_configs.get(group, {}).get(rule, {}))

    def _instantiate(self, group: str, rule: RuleRef) -> BaseRule:
        thresholds = self._group_configs.get(group, {}).get("thresholds") or {}
        instance = rule(self.capabilities)
        instance.configure({**thresholds, **self.rule_config(group, rule)})
        return instance

    def get_rules(self, group: str) -> list[BaseRule]:
        rules: list[BaseRule] = []
        for rule in self._rules.get(group, []):
            instance = self._instantiate(group, rule)
            if not instance.supported():
                logger.debug("Rule %s is not supported in this project – omitted", instance.rule_id)
                continue
            rules.append(instance)
        return rules

    def get_rule_by_ordinal(self, group: str, ordinal: int) -> BaseRule | None:
        bindings = self._rules.get(group, [])
        if ordinal < 1 or ordinal > len(bindings):
            return None
        instance = self._instantiate(group, bindings[ordinal - 1])
        return instance if instance.supported() else None

    def ordinal_of(self, group: str, rule: RuleRef) -> int | None:
        bindings = self._rules.get(group, [])
        return bindings.index(rule) + 1 if rule in bindings else None

    def find_rule(self, name: str) -> RuleLookup | None:
        """Find a rule by id, class name (with or without ``Rule``) or import path."""
        for group, bindings in self._rules.items():
            for index, rule in enumerate(bindings):
                if _matches(rule, name):
                    return RuleLookup(group=group, ordinal=index + 1, rule=self._instantiate(group, rule))
        return None

    def rule_classes(self, group: str) -> list[RuleRef]:
        return list(self._rules.get(group, []))

    def groups(self) -> list[str]:
        return list(dict.fromkeys([*self._group_configs, *self._rules]))

    def has_group(self, group: str) -> bool:
        return group in self._rules or group in self._group_configs

    def count(self, group: str) -> int:
        return len(self._rules.get(group, []))

    def total_count(self) -> int:
        return sum(len(bindings) for bindings in self._rules.values())

    def all_rules(self) -> dict[str, list[BaseRule]]:
        return {group: self.get_rules(group) for group in self.groups()}


def _matches(rule: RuleRef, name: str) -> bool:
    class_name = rule.__name__
    return name in (
        rule.rule_id,
        class_name,
        class_name.removesuffix("Rule"),
        f"{rule.__module__}.{class_name}",
        f"{rule.__module__}:{class_name}",
    )
