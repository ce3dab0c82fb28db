"""Auto-discovery of the built-in rules and rule-reference resolution.

Adding a rule only requires creating its module::

    # codecanon/rules/backend/my_rule.py
    class MyRule(BaseRule):
        rule_id = "my-rule"
        ...

The rule is then available in configuration as ``my-rule``, ``MyRule``,
``My`` or ``codecanon.rules.backend.my_rule:MyRule``.
"""

from __future__ import annotations

import importlib
import logging
import pkgutil
from functools import lru_cache
from typing import Iterable

from codecanon.rules.base_rule import BaseRule

__all__ = [
    "BACKEND",
    "FRONTEND",
    "FAMILY_EXTENSIONS",
    "discover_rules",
    "builtin_rules",
    "family_for_extensions",
    "resolve_rule_reference",
]

logger = logging.getLogger(__name__)

BACKEND = "backend"
FRONTEND = "frontend"

FAMILY_EXTENSIONS: dict[str, tuple[str, ...]] = {
    BACKEND: ("py",),
    FRONTEND: ("vue", "ts", "js", "tsx", "jsx"),
}


@lru_cache(maxsize=None)
def discover_rules(family: str) -> tuple[type[BaseRule], ...]:
    """All concrete rule classes shipped in ``codecanon.rules.<family>``, sorted by id."""
    package_name = f"codecanon.rules.{family}"
    try:
        package = importlib.import_module(package_name)
    except ImportError:
        logger.debug("No built-in rule package %s", package_name)
        return ()

    found: dict[str, type[BaseRule]] = {}
    for module_info in pkgutil.iter_modules(package.__path__):
        if module_info.name.startswith("_"):
            continue
        module = importlib.import_module(f"{package_name}.{module_info.name}")
        for attr_name in dir(module):
            if attr_name.startswith("_"):
                continue
            attr = getattr(module, attr_name)
            if (
                isinstance(attr, type)
                and issubclass(attr, BaseRule)
                and attr.__module__ == module.__name__
                and not getattr(attr, "__abstractmethods__", None)
            ):
                found[attr.rule_id] = attr
    return tuple(found[rule_id] for rule_id in sorted(found))


def builtin_rules() -> dict[str, type[BaseRule]]:
    return {rule.rule_id: rule for family in FAMILY_EXTENSIONS for rule in discover_rules(family)}


def family_for_extensions(extensions: Iterable[str]) -> str | None:
    wanted = {ext.lstrip(".") for ext in extensions}
    if wanted & set(FAMILY_EXTENSIONS[BACKEND]):
        return BACKEND
    if wanted & set(FAMILY_EXTENSIONS[FRONTEND]):
        return FRONTEND
    return None


def _import_reference(reference: str) -> type[BaseRule] | None:
    if ":" in reference:
        module_name, _, attr_name = reference.partition(":")
    else:
        module_name, _, attr_name = reference.rpartition(".")
    if not module_name or not attr_name:
        return None
    try:
        module = importlib.import_module(module_name)
    except ImportError:
        return None
    attr = getattr(module, attr_name, None)
    if isinstance(attr, type) and issubclass(attr, BaseRule):
        return attr
    return None


def resolve_rule_reference(reference: str) -> type[BaseRule] | None:
    """Resolve a configured reference to a rule class, or ``None`` if unknown."""
    builtins = builtin_rules()
    if reference in builtins:
        return builtins[reference]
    for rule in builtins.values():
        if reference in (rule.__name__, rule.__name__.removesuffix("Rule")):
            return rule
    if "." in reference or ":" in reference:
        return _import_reference(reference)
    return None
