"""Capabilities of the analysed project, passed explicitly into rule construction."""

from __future__ import annotations

import json
import logging
import re
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

__all__ = ["Capabilities"]

logger = logging.getLogger(__name__)

_REQUIREMENT_NAME_RE = re.compile(r"^\s*([A-Za-z0-9][A-Za-z0-9._-]*)")


def _normalize(name: str) -> str:
    return re.sub(r"[-_.]+", "-", name).lower()


@dataclass(frozen=True)
class Capabilities:
    """Which packages the analysed project declares.

    Rules consult this value from ``supported()``; nothing is cached globally, so
    two registries built with different capabilities behave independently.
    """

    root_dir: Path | None = None
    packages: frozenset[str] = field(default_factory=frozenset)

    def has_package(self, name: str) -> bool:
        return _normalize(name) in self.packages

    def with_packages(self, *names: str) -> Capabilities:
        return Capabilities(root_dir=self.root_dir, packages=self.packages | {_normalize(n) for n in names})

    @classmethod
    def from_project(cls, root_dir: Path) -> Capabilities:
        root = root_dir.resolve()
        packages: set[str] = set()
        packages.update(_packages_from_package_json(root / "package.json"))
        for requirements in sorted(root.glob("requirements*.txt")):
            packages.update(_packages_from_requirements(requirements))
        packages.update(_packages_from_pyproject(root / "pyproject.toml"))
        logger.debug("Detected %d declared package(s) in %s", len(packages), root)
        return cls(root_dir=root, packages=frozenset(packages))


def _packages_from_package_json(path: Path) -> set[str]:
    if not path.is_file():
        return set()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        logger.warning("Could not read %s", path, exc_info=True)
        return set()
    names: set[str] = set()
    for section in ("dependencies", "devDependencies", "peerDependencies"):
        deps = data.get(section) or {}
        if isinstance(deps, dict):
            names.update(_normalize(name) for name in deps)
    return names


def _packages_from_requirements(path: Path) -> set[str]:
    names: set[str] = set()
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except OSError:
        logger.warning("Could not read %s", path, exc_info=True)
        return names
    for line in lines:
        if line.lstrip().startswith(("#", "-")):
            continue
        match = _REQUIREMENT_NAME_RE.match(line)
        if match:
            names.add(_normalize(match.group(1)))
    return names


def _requirement_names(requirements: Iterable[Any]) -> set[str]:
    names: set[str] = set()
    for requirement in requirements:
        match = _REQUIREMENT_NAME_RE.match(requirement) if isinstance(requirement, str) else None
        if match:
            names.add(_normalize(match.group(1)))
    return names


def _packages_from_pyproject(path: Path) -> set[str]:
    """PEP 621 dependencies, optional extras and Poetry dependency tables."""
    if not path.is_file():
        return set()
    try:
        with path.open("rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError):
        logger.warning("Could not read %s", path, exc_info=True)
        return set()

    project = data.get("project") or {}
    names = _requirement_names(project.get("dependencies") or [])
    for extra in (project.get("optional-dependencies") or {}).values():
        names |= _requirement_names(extra or [])

    poetry = (data.get("tool") or {}).get("poetry") or {}
    tables = [poetry.get("dependencies"), poetry.get("dev-dependencies")]
    tables.extend((group or {}).get("dependencies") for group in (poetry.get("group") or {}).values())
    for table in tables:
        if isinstance(table, dict):
            names.update(_normalize(name) for name in table if name.lower() != "python")
    return names
