"""Structural classification of Python classes by their declared bases.

Nothing is imported or executed: a class counts as a model when one of its
bases is a known model base, or another model class defined in the same
module.
"""

from __future__ import annotations

import ast
from typing import Iterable

__all__ = ["base_names", "model_classes", "declared_fields", "field_call"]


def _dotted_name(node: ast.expr) -> str | None:
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        return node.attr
    if isinstance(node, ast.Subscript):
        return _dotted_name(node.value)
    return None


def base_names(node: ast.ClassDef) -> list[str]:
    """Last component of every base, e.g. ``pydantic.BaseModel`` -> ``BaseModel``."""
    return [name for name in (_dotted_name(base) for base in node.bases) if name]


def model_classes(tree: ast.Module, known_bases: Iterable[str]) -> list[ast.ClassDef]:
    classes = [node for node in ast.walk(tree) if isinstance(node, ast.ClassDef)]
    models: set[str] = set(known_bases)
    found: dict[str, ast.ClassDef] = {}
    changed = True
    while changed:
        changed = False
        for node in classes:
            if node.name in found:
                continue
            if any(base in models for base in base_names(node)):
                found[node.name] = node
                models.add(node.name)
                changed = True
    return sorted(found.values(), key=lambda node: node.lineno)


def _is_class_var(annotation: ast.expr) -> bool:
    return _dotted_name(annotation) == "ClassVar"


def declared_fields(node: ast.ClassDef) -> list[ast.AnnAssign]:
    """Annotated, public, non-ClassVar attributes declared in the class body."""
    return [
        item for item in node.body
        if isinstance(item, ast.AnnAssign)
        and isinstance(item.target, ast.Name)
        and not item.target.id.startswith("_")
        and not _is_class_var(item.annotation)
    ]


def field_call(value: ast.expr | None) -> ast.Call | None:
    if isinstance(value, ast.Call) and _dotted_name(value.func) == "Field":
        return value
    return None
