"""File discovery for rule groups."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, Iterator, Protocol

__all__ = ["FileScanner", "GenericFileScanner", "DEFAULT_EXCLUDES", "is_excluded"]

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDES: tuple[str, ...] = (
    "vendor",
    "node_modules",
    "storage",
    ".git",
    "bootstrap/cache",
    "__pycache__",
    ".venv",
    "venv",
    ".mypy_cache",
    ".pytest_cache",
    ".ruff_cache",
    ".tox",
)


class FileScanner(Protocol):
    def scan(
        self,
        paths: str | Path | Iterable[str | Path],
        extensions: Iterable[str] = (),
        exclude_paths: Iterable[str] = (),
    ) -> Iterator[Path]:
        ...


def is_excluded(
    file_path: str | Path,
    exclude_paths: Iterable[str] = (),
    defaults: Iterable[str] = DEFAULT_EXCLUDES,
    relative_to: Path | None = None,
) -> bool:
    """Substring match against configured excludes, segment match against defaults.

    Default directory names are matched below *relative_to* when given, so a
    project that itself lives under e.g. ``storage/`` is still scanned.
    """
    path = Path(file_path)
    text = path.as_posix()
    scoped = text
    if relative_to is not None:
        try:
            scoped = path.relative_to(relative_to).as_posix()
        except ValueError:
            pass
    for name in defaults:
        if f"/{name}/" in scoped or scoped.startswith(f"{name}/"):
            return True
    return any(exclude and exclude in text for exclude in exclude_paths)


def _as_list(paths: str | Path | Iterable[str | Path]) -> list[Path]:
    if isinstance(paths, (str, Path)):
        return [Path(paths)]
    return [Path(p) for p in paths]


class GenericFileScanner:
    """Walks directories lazily, yielding files in a stable order."""

    def scan(
        self,
        paths: str | Path | Iterable[str | Path],
        extensions: Iterable[str] = (),
        exclude_paths: Iterable[str] = (),
    ) -> Iterator[Path]:
        wanted = {ext.lstrip(".") for ext in extensions}
        excludes = [e for e in exclude_paths if e]
        default_dirs = {name for name in DEFAULT_EXCLUDES if "/" not in name}

        for root in _as_list(paths):
            if not root.is_dir():
                logger.debug("Scan path %s is not a directory – skipped", root)
                continue
            for dirpath, dirnames, filenames in os.walk(root):
                dirnames[:] = sorted(d for d in dirnames if d not in default_dirs)
                for filename in sorted(filenames):
                    candidate = Path(dirpath) / filename
                    if wanted and candidate.suffix.lstrip(".") not in wanted:
                        continue
                    if is_excluded(candidate, excludes, relative_to=root):
                        continue
                    yield candidate
