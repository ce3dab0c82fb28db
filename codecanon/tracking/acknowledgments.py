"""Persisted manual sign-offs with content-drift invalidation.

The store is a single JSON document::

    {"<relative-path>": {"<rule-id>": {"acknowledgedAt": "...", "reason": null, "contentHash": "..."}}}

It is loaded lazily and rewritten in full on every mutation. There is no
locking: concurrent invocations against the same store race and the last
writer wins.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from codecanon.core.errors import ConfigurationError
from codecanon.results.verdict import Verdict

__all__ = ["AcknowledgmentRecord", "AcknowledgmentTracker", "content_hash", "DEFAULT_STORE_PATH"]

logger = logging.getLogger(__name__)

DEFAULT_STORE_PATH = ".codecanon/acknowledgments.json"


def content_hash(content: str) -> str:
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


class AcknowledgmentRecord(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    acknowledged_at: datetime = Field(description="When the finding was signed off")
    reason: str | None = Field(default=None, description="Why the finding is acceptable")
    content_hash: str = Field(description="SHA-256 of the file content at sign-off time")


Store = dict[str, dict[str, AcknowledgmentRecord]]

_STORE_ADAPTER: TypeAdapter[Store] = TypeAdapter(Store)


class AcknowledgmentTracker:
    """Tracks which (file, rule) findings were manually reviewed.

    ``is_acknowledged`` is a presence check only; use ``has_drifted`` (or
    ``is_suppressed``) to find out whether the file changed since.
    """

    def __init__(self, store_path: Path, base_dir: Path | None = None) -> None:
        self.base_dir = (base_dir or Path.cwd()).resolve()
        self.store_path = store_path if store_path.is_absolute() else self.base_dir / store_path
        self._records: Store = {}
        self._loaded = False

    def _normalize(self, file_path: str | Path) -> str:
        path = Path(file_path)
        if path.is_absolute():
            try:
                return path.resolve().relative_to(self.base_dir).as_posix()
            except ValueError:
                return path.as_posix()
        return path.as_posix()

    def _load(self) -> Store:
        if self._loaded:
            return self._records
        if self.store_path.is_file():
            try:
                raw = self.store_path.read_bytes()
                self._records = _STORE_ADAPTER.validate_json(raw) if raw.strip() else {}
            except (OSError, ValidationError) as exc:
                raise ConfigurationError(f"Malformed acknowledgment store {self.store_path}: {exc}") from exc
        self._loaded = True
        return self._records

    def _save(self) -> None:
        self.store_path.parent.mkdir(parents=True, exist_ok=True)
        self.store_path.write_bytes(_STORE_ADAPTER.dump_json(self._records, by_alias=True, indent=2))
        logger.debug("Wrote %d acknowledged file(s) to %s", len(self._records), self.store_path)

    def acknowledge(
        self,
        file_path: str | Path,
        rule_id: str,
        reason: str | None = None,
        content: str | None = None,
    ) -> AcknowledgmentRecord:
        if content is None:
            target = Path(file_path)
            if not target.is_absolute():
                target = self.base_dir / target
            try:
                content = target.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                raise ConfigurationError(f"Cannot acknowledge {file_path}: {exc}") from exc

        record = AcknowledgmentRecord(
            acknowledged_at=datetime.now(timezone.utc),
            reason=reason,
            content_hash=content_hash(content),
        )
        self._load().setdefault(self._normalize(file_path), {})[rule_id] = record
        self._save()
        return record

    def is_acknowledged(self, file_path: str | Path, rule_id: str) -> bool:
        return rule_id in self._load().get(self._normalize(file_path), {})

    def has_drifted(self, file_path: str | Path, rule_id: str, current_content: str) -> bool:
        record = self._load().get(self._normalize(file_path), {}).get(rule_id)
        if record is None:
            return True
        return record.content_hash != content_hash(current_content)

    def is_suppressed(self, file_path: str | Path, rule_id: str, current_content: str) -> bool:
        return self.is_acknowledged(file_path, rule_id) and not self.has_drifted(file_path, rule_id, current_content)

    def revoke(self, file_path: str | Path, rule_id: str) -> bool:
        records = self._load()
        key = self._normalize(file_path)
        rules = records.get(key)
        if not rules or rule_id not in rules:
            return False
        del rules[rule_id]
        if not rules:
            del records[key]
        self._save()
        return True

    def records_for(self, file_path: str | Path) -> dict[str, AcknowledgmentRecord]:
        return dict(self._load().get(self._normalize(file_path), {}))

    def all_records(self) -> Store:
        return {path: dict(rules) for path, rules in self._load().items()}

    def cleanup(self) -> int:
        """Drop entries for files that no longer exist; return how many were removed."""
        records = self._load()
        missing = [path for path in records if not (self.base_dir / path).exists()]
        for path in missing:
            del records[path]
        if missing:
            self._save()
        return len(missing)

    def clear(self) -> None:
        self._records = {}
        self._loaded = True
        self._save()

    def without_reviewed(self, file_path: str | Path, content: str, verdicts: dict[str, Verdict]) -> dict[str, Verdict]:
        """Drop advisories of rules whose acknowledgment still matches *content*."""
        filtered: dict[str, Verdict] = {}
        for rule_id, verdict in verdicts.items():
            if verdict.has_advisories and self.is_suppressed(file_path, rule_id, content):
                verdict = replace(verdict, advisories=[])
            filtered[rule_id] = verdict
        return filtered
