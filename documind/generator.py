"""Manifest-driven generation of paired human and AI documents."""

from __future__ import annotations

import re
from collections.abc import Callable
from datetime import UTC, date, datetime
from pathlib import Path
from typing import Dict, List, Mapping

from .config import ConfigError, DocuMindConfig, load_config
from .constants import (
    AI_SUBDIR,
    MANIFEST_SUFFIX,
    RESERVED_TEMPLATE_NAMES,
    SLUG_VARIABLES,
)
from .formatting import SectionFormatter
from .index_builder import IndexBuilder
from .logging import get_logger
from .manifest import list_manifest_files, load_manifest, resolve_template_path
from .models import GenerationResult, IndexEntry, Manifest
from .templating import VariableResolver, default_value
from .tokens import TokenCounter, validate_budget

_PATH_PLACEHOLDER = re.compile(r"\{([A-Za-z_]+)\}")


class GenerationError(RuntimeError):
    """Raised when a manifest cannot be turned into documents."""


class Generator:
    """Coordinates template rendering, budgeting, writing and index refresh."""

    def __init__(
        self,
        root: Path | None = None,
        *,
        config: DocuMindConfig | None = None,
        resolver: VariableResolver | None = None,
        formatter: SectionFormatter | None = None,
        token_counter: TokenCounter | None = None,
        index_builder: IndexBuilder | None = None,
        today: Callable[[], date] | None = None,
    ) -> None:
        self.logger = get_logger("generator")
        self.config = config or self._load_config(Path(root) if root is not None else Path.cwd())
        self.root = self.config.root
        self.resolver = resolver or VariableResolver()
        self.formatter = formatter or SectionFormatter()
        self.token_counter = token_counter or TokenCounter(
            self.config.tokenizer.model, precise=self.config.tokenizer.precise
        )
        self.index_builder = index_builder or IndexBuilder.from_config(
            self.config, token_counter=self.token_counter
        )
        self._today = today or (lambda: datetime.now(UTC).date())

    def generate_from_manifest(
        self, manifest_path: Path | str, variables: Mapping[str, str] | None = None
    ) -> GenerationResult:
        """Render, budget-check and write both variants, then refresh the index."""
        values = {str(key): str(value) for key, value in (variables or {}).items()}
        path = self._under_root(Path(manifest_path))
        self.logger.info("Generating documents from %s", path)
        try:
            manifest = load_manifest(path)
            template = self.load_template(manifest)

            human_content = self.resolver.substitute(template, values)
            ai_content = self.formatter.format_document(
                self.resolver.substitute(template, values), manifest.ai_output_format
            )

            token_count = self.token_counter.count(ai_content)
            validate_budget(token_count, manifest.token_budget)

            human_path = self.resolve_output_path(manifest.output_path_pattern, values)
            ai_path = self.resolve_output_path(manifest.output_path_pattern, values, ai=True)
            human_path.parent.mkdir(parents=True, exist_ok=True)
            ai_path.parent.mkdir(parents=True, exist_ok=True)
            human_path.write_text(human_content, encoding="utf-8")
            ai_path.write_text(ai_content, encoding="utf-8")

            self.index_builder.update_master_index(
                [
                    IndexEntry(
                        path=ai_path,
                        name=ai_path.name,
                        type=manifest.specialist_role,
                        token_count=token_count,
                        last_modified=datetime.now(UTC),
                        variables=dict(values),
                    )
                ]
            )
        except Exception as exc:
            raise GenerationError(f"Generation failed: {exc}") from exc

        self.logger.debug("Wrote %s and %s (%d tokens)", human_path, ai_path, token_count)
        return GenerationResult(
            human_path=human_path, ai_path=ai_path, token_count=token_count, manifest=manifest
        )

    def generate_all(self) -> List[GenerationResult]:
        """Generate every eligible manifest; failures are logged and skipped."""
        manifests_dir = self.config.resolve_manifests_dir()
        if not manifests_dir.is_dir():
            self.logger.warning("No manifest directory found at %s", manifests_dir)
            return []

        manifest_files = list_manifest_files(manifests_dir)
        results: List[GenerationResult] = []
        for path in manifest_files:
            try:
                variables = self.default_variables(path, load_manifest(path))
                results.append(self.generate_from_manifest(path, variables))
            except Exception as exc:
                self.logger.warning("Skipped %s: %s", path.name, exc)
        self.logger.info("Generated %d of %d manifests", len(results), len(manifest_files))
        return results

    def default_variables(self, manifest_path: Path, manifest: Manifest) -> Dict[str, str]:
        if manifest.default_slug:
            slug = manifest.default_slug
        else:
            slug = manifest_path.stem
            if slug.endswith(MANIFEST_SUFFIX):
                slug = slug[: -len(MANIFEST_SUFFIX)]
            if slug in RESERVED_TEMPLATE_NAMES:
                timestamped = f"{slug}-{self._today().isoformat()}"
                self.logger.warning(
                    "Using timestamped default for %s: %s. Set default_slug or pass an explicit name.",
                    manifest_path.name,
                    timestamped,
                )
                slug = timestamped
        return {name: slug for name in SLUG_VARIABLES}

    def load_template(self, manifest: Manifest) -> str:
        path = resolve_template_path(
            manifest.template,
            manifest_dir=manifest.source.parent,
            templates_dir=self.config.resolve_templates_dir(),
        )
        return path.read_text(encoding="utf-8")

    def resolve_output_path(
        self, pattern: str, variables: Mapping[str, str], *, ai: bool = False
    ) -> Path:
        """Fill ``pattern`` from ``variables`` then defaults; AI files go under ``ai/`` with ``-ai``."""
        output = pattern
        for key, value in variables.items():
            output = output.replace(f"{{{key}}}", value).replace(f"{{{key.upper()}}}", value)
        output = _PATH_PLACEHOLDER.sub(lambda match: default_value(match.group(1)), output)

        path = Path(output)
        if ai:
            path = path.parent / AI_SUBDIR / f"{path.stem}{MANIFEST_SUFFIX}{path.suffix}"
        return self._under_root(path).resolve()

    def _under_root(self, path: Path) -> Path:
        return path if path.is_absolute() else self.root / path

    def _load_config(self, root: Path) -> DocuMindConfig:
        if not root.is_dir():
            return DocuMindConfig(root=root.resolve())
        try:
            return load_config(root)
        except ConfigError as exc:
            self.logger.warning("Ignoring invalid configuration: %s", exc)
            return DocuMindConfig(root=root.resolve())


__all__ = ["GenerationError", "Generator"]
