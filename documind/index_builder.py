"""Master index regeneration over every generated AI variant."""

from __future__ import annotations

import os
import re
import threading
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Dict, Iterable, List, Sequence

from jinja2 import Environment, FileSystemLoader, Template, TemplateNotFound, Undefined

from .config import DocuMindConfig
from .constants import AI_FILE_SUFFIX, AI_SUBDIR, DOC_TYPES, INDEX_FILENAME
from .logging import get_logger
from .models import IndexEntry, IndexUpdate
from .tokens import TokenCounter

RECENT_WINDOW = timedelta(hours=24)

DEFAULT_INDEX_TEMPLATE = """# AI Documentation Master Index

## Navigation Quick Reference

**Generated:** {{GENERATED_TIMESTAMP}}
**Total Documents:** {{TOTAL_DOCUMENTS}}

## Task-Based Routing

{{TASK_ROUTING_TABLE}}

## Token Budget Summary

{{TOKEN_BUDGET_SUMMARY}}

## Available Manifests

{{MANIFEST_LISTINGS}}

## Validation Status

{{VALIDATION_STATUS}}

---

*This index is automatically generated and updated by DocuMind.*
"""

_WORD_START = re.compile(r"\b\w")

# One writer per index file inside this process; other processes still race.
_INDEX_LOCKS: Dict[Path, threading.Lock] = {}
_INDEX_LOCKS_GUARD = threading.Lock()


class IndexBuildError(RuntimeError):
    """Raised when the master index cannot be regenerated."""


def infer_doc_type(filename: str) -> str:
    name = filename.lower()
    if "concept" in name:
        return "concept"
    if "integration" in name:
        return "integration"
    if "architecture" in name or "arch" in name:
        return "architecture"
    return "other"


def display_name(entry: IndexEntry) -> str:
    name = Path(entry.path).name or entry.name
    if name.endswith(AI_FILE_SUFFIX):
        name = name[: -len(AI_FILE_SUFFIX)]
    else:
        name = Path(name).stem
    return _WORD_START.sub(lambda match: match.group(0).upper(), name.replace("-", " "))


def _lock_for(path: Path) -> threading.Lock:
    key = path.resolve()
    with _INDEX_LOCKS_GUARD:
        return _INDEX_LOCKS.setdefault(key, threading.Lock())


def _as_utc(moment: datetime) -> datetime:
    """Normalise to UTC; naive values are taken as local time, like ``datetime.now()``."""
    return moment.astimezone(UTC)


class _LiteralUndefined(Undefined):
    """Renders unknown ``{{NAME}}`` placeholders back verbatim."""

    def __str__(self) -> str:
        return "{{" + (self._undefined_name or "") + "}}"


def _timestamp(moment: datetime) -> str:
    return moment.isoformat().replace("+00:00", "Z")


class IndexBuilder:
    """Rescans ``<docs>/ai`` and rewrites ``AI_README.md`` from scratch."""

    def __init__(
        self,
        docs_dir: Path,
        *,
        template_path: Path | None = None,
        token_counter: TokenCounter | None = None,
        dedupe: bool = False,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.docs_dir = Path(docs_dir)
        self.ai_docs_dir = self.docs_dir / AI_SUBDIR
        self.index_path = self.ai_docs_dir / INDEX_FILENAME
        self.template_path = template_path
        self.token_counter = token_counter or TokenCounter()
        self.dedupe = dedupe
        self._clock = clock or (lambda: datetime.now(UTC))
        self.logger = get_logger("index")

    @classmethod
    def from_config(
        cls, config: DocuMindConfig, *, token_counter: TokenCounter | None = None
    ) -> "IndexBuilder":
        return cls(
            config.resolve_docs_dir(),
            template_path=config.resolve_index_template(),
            token_counter=token_counter
            or TokenCounter(config.tokenizer.model, precise=config.tokenizer.precise),
            dedupe=config.index.dedupe,
        )

    def update_master_index(self, new_entries: Iterable[IndexEntry] = ()) -> IndexUpdate:
        """Regenerate the whole index from a rescan plus ``new_entries``."""
        with _lock_for(self.index_path):
            try:
                entries = self.scan_existing() + list(new_entries)
                if self.dedupe:
                    entries = self._dedupe(entries)
                now = _as_utc(self._clock())
                content = self.render(entries, now=now)
                self.ai_docs_dir.mkdir(parents=True, exist_ok=True)
                self.index_path.write_text(content, encoding="utf-8")
            except Exception as exc:
                raise IndexBuildError(f"Failed to update master index: {exc}") from exc

        self.logger.info("Master index updated with %d documents at %s", len(entries), self.index_path)
        return IndexUpdate(total_files=len(entries), index_path=self.index_path, timestamp=now)

    def scan_existing(self) -> List[IndexEntry]:
        if not self.ai_docs_dir.is_dir():
            return []
        entries: List[IndexEntry] = []
        for path in sorted(self.ai_docs_dir.iterdir()):
            if not path.is_file() or not path.name.endswith(AI_FILE_SUFFIX) or path.name == INDEX_FILENAME:
                continue
            stats = path.stat()
            entries.append(
                IndexEntry(
                    path=path,
                    name=path.name,
                    type=infer_doc_type(path.name),
                    token_count=self._count_file(path),
                    last_modified=datetime.fromtimestamp(stats.st_mtime, UTC),
                )
            )
        return entries

    def render(self, entries: Sequence[IndexEntry], *, now: datetime) -> str:
        grouped = self.group_by_type(entries)
        template = self._load_template()
        return template.render(
            GENERATED_TIMESTAMP=_timestamp(now),
            TOTAL_DOCUMENTS=str(len(entries)),
            TASK_ROUTING_TABLE=self.build_task_routing(grouped),
            TOKEN_BUDGET_SUMMARY=self.build_token_summary(entries),
            MANIFEST_LISTINGS=self.build_manifest_list(grouped),
            VALIDATION_STATUS=self.build_validation_status(entries, now=now),
        )

    @staticmethod
    def group_by_type(entries: Iterable[IndexEntry]) -> Dict[str, List[IndexEntry]]:
        groups: Dict[str, List[IndexEntry]] = {doc_type: [] for doc_type in DOC_TYPES}
        for entry in entries:
            declared = (entry.type or "").strip().lower()
            doc_type = declared or infer_doc_type(entry.name or Path(entry.path).name)
            groups[doc_type if doc_type in groups else "other"].append(entry)
        return groups

    @staticmethod
    def build_task_routing(grouped: Dict[str, List[IndexEntry]]) -> str:
        rows = [
            "| Task Type | Available Documents | Token Range |",
            "|-----------|-------------------|-------------|",
        ]
        for doc_type, entries in grouped.items():
            if not entries:
                continue
            names = ", ".join(display_name(entry) for entry in entries)
            tokens = [entry.token_count for entry in entries]
            low, high = min(tokens), max(tokens)
            token_range = f"{low}" if low == high else f"{low}-{high}"
            rows.append(f"| {doc_type.capitalize()} | {names} | {token_range} |")
        return "\n".join(rows) + "\n"

    @staticmethod
    def build_token_summary(entries: Sequence[IndexEntry]) -> str:
        count = len(entries)
        total = sum(entry.token_count for entry in entries)
        # Half-up rounding of total / count.
        average = (2 * total + count) // (2 * count) if count else 0
        largest = max((entry.token_count for entry in entries), default=0)
        return (
            f"**Total Tokens:** {total}\n"
            f"**Average per Document:** {average}\n"
            f"**Largest Document:** {largest} tokens\n"
            f"**Document Count:** {count}"
        )

    def build_manifest_list(self, grouped: Dict[str, List[IndexEntry]]) -> str:
        lines: List[str] = []
        for doc_type, entries in grouped.items():
            if not entries:
                continue
            lines.append(f"### {doc_type.capitalize()} Documents")
            lines.append("")
            for entry in entries:
                relative = os.path.relpath(entry.path, self.docs_dir)
                lines.append(f"- **{display_name(entry)}** - {relative} ({entry.token_count} tokens)")
            lines.append("")
        return "\n".join(lines)

    @staticmethod
    def build_validation_status(entries: Sequence[IndexEntry], *, now: datetime) -> str:
        now = _as_utc(now)
        recent = [
            entry
            for entry in entries
            if entry.last_modified is not None and now - _as_utc(entry.last_modified) < RECENT_WINDOW
        ]
        status = "Active" if entries else "No AI documents found"
        return (
            f"**Last Validation:** {_timestamp(now)}\n"
            f"**Recently Updated:** {len(recent)} files\n"
            f"**Status:** {status}"
        )

    def _load_template(self) -> Template:
        loader_root = self.template_path.parent if self.template_path else self.docs_dir
        env = Environment(
            loader=FileSystemLoader(str(loader_root)),
            autoescape=False,
            undefined=_LiteralUndefined,
            keep_trailing_newline=True,
        )
        if self.template_path is not None:
            try:
                return env.get_template(self.template_path.name)
            except TemplateNotFound:
                self.logger.debug("Index template %s missing; using built-in skeleton", self.template_path)
        return env.from_string(DEFAULT_INDEX_TEMPLATE)

    def _count_file(self, path: Path) -> int:
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as exc:
            self.logger.warning("Could not read %s for token count: %s", path, exc)
            return 0
        return self.token_counter.count(content)

    @staticmethod
    def _dedupe(entries: Sequence[IndexEntry]) -> List[IndexEntry]:
        latest: Dict[Path, IndexEntry] = {}
        for entry in entries:
            key = Path(entry.path).resolve()
            latest.pop(key, None)
            latest[key] = entry
        return list(latest.values())


__all__ = ["DEFAULT_INDEX_TEMPLATE", "IndexBuildError", "IndexBuilder", "display_name", "infer_doc_type"]
