"""Loading and validation of AI documentation manifests."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml

from .constants import MANIFEST_SCHEMA_FILENAME
from .logging import get_logger
from .models import AIOutputFormat, FormatKind, Manifest, TokenBudget, TokenOptimization

TEMPLATE_FIELDS: Tuple[str, ...] = ("base_template", "template_path")
OPTIMIZATION_FLAGS: Tuple[str, ...] = ("remove_examples", "compress_whitespace", "shorten_descriptions")
MANIFEST_EXTENSIONS = frozenset({".yaml", ".yml"})

logger = get_logger("manifest")


class ManifestError(ValueError):
    """Raised when a manifest cannot be parsed or lacks required fields."""


@dataclass
class ManifestValidation:
    """Errors and warnings collected for one manifest file."""

    path: Path
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors


def load_manifest(path: Path) -> Manifest:
    """Read ``path`` and build a ``Manifest``; I/O errors propagate unchanged."""
    path = Path(path)
    data = parse_manifest_text(path.read_text(encoding="utf-8"), path)
    return manifest_from_mapping(data, source=path)


def parse_manifest_text(text: str, path: Path) -> Dict[str, Any]:
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ManifestError(f"Failed to parse {path.name}: {exc}") from exc
    if loaded is None:
        loaded = {}
    if not isinstance(loaded, dict):
        raise ManifestError(f"{path.name} must contain a mapping at the root")
    return loaded


def template_reference(data: Mapping[str, Any]) -> Optional[str]:
    """Return the template path, preferring ``base_template`` over ``template_path``."""
    for name in TEMPLATE_FIELDS:
        value = data.get(name)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def manifest_from_mapping(data: Mapping[str, Any], *, source: Path) -> Manifest:
    template = template_reference(data)
    if template is None:
        raise ManifestError(f"{source.name} has no {' or '.join(TEMPLATE_FIELDS)} field")
    pattern = data.get("output_path_pattern")
    if not isinstance(pattern, str) or not pattern.strip():
        raise ManifestError(f"{source.name} has no output_path_pattern")

    return Manifest(
        template=template,
        output_path_pattern=pattern.strip(),
        source=source,
        specialist_role=_as_str(data.get("specialist_role")),
        token_budget=_parse_budget(data.get("token_budget")),
        ai_output_format=_parse_output_format(data.get("ai_output_format"), source),
        default_slug=_as_str(data.get("default_slug")),
    )


def _parse_budget(value: Any) -> Optional[TokenBudget]:
    if isinstance(value, Mapping):
        return TokenBudget(max_tokens=_as_int(value.get("max_tokens")))
    if isinstance(value, int) and not isinstance(value, bool):
        return TokenBudget(max_tokens=value)
    return None


def _parse_output_format(value: Any, source: Path) -> Optional[AIOutputFormat]:
    if not isinstance(value, Mapping):
        return None
    sections: List[Tuple[str, FormatKind]] = []
    raw_sections = value.get("sections")
    if isinstance(raw_sections, Mapping):
        for name, kind in raw_sections.items():
            try:
                sections.append((str(name), FormatKind(str(kind))))
            except ValueError:
                logger.warning("Ignoring unknown format %r for section %r in %s", kind, name, source.name)

    flags = value.get("token_optimization")
    flags = flags if isinstance(flags, Mapping) else {}
    optimization = TokenOptimization(
        **{name: flags.get(name) is True for name in OPTIMIZATION_FLAGS}
    )
    return AIOutputFormat(sections=tuple(sections), optimization=optimization)


def validate_manifest(path: Path, *, templates_dir: Path | None = None) -> ManifestValidation:
    """Check a manifest without raising; mirrors what generation would reject."""
    path = Path(path)
    report = ManifestValidation(path=path)
    try:
        data = parse_manifest_text(path.read_text(encoding="utf-8"), path)
    except (OSError, ManifestError) as exc:
        report.errors.append(f"Failed to parse manifest: {exc}")
        return report

    template = template_reference(data)
    if template is None:
        report.errors.append(f"Missing required field: one of {', '.join(TEMPLATE_FIELDS)}")
    elif templates_dir is not None:
        candidate = resolve_template_path(template, manifest_dir=path.parent, templates_dir=templates_dir)
        if not candidate.exists():
            report.warnings.append(f"Template not found: {candidate}")

    pattern = data.get("output_path_pattern")
    if not isinstance(pattern, str) or not pattern.strip():
        report.errors.append("Missing required field: 'output_path_pattern'")

    if not _as_str(data.get("specialist_role")):
        report.warnings.append("No specialist_role declared; index type will be inferred from the filename")

    budget = data.get("token_budget")
    if budget is not None:
        max_tokens = budget.get("max_tokens") if isinstance(budget, Mapping) else budget
        if not isinstance(max_tokens, int) or isinstance(max_tokens, bool) or max_tokens <= 0:
            report.errors.append(f"token_budget.max_tokens must be a positive integer, got {max_tokens!r}")

    output_format = data.get("ai_output_format")
    if output_format is not None and not isinstance(output_format, Mapping):
        report.errors.append("ai_output_format must be a mapping")
    elif isinstance(output_format, Mapping):
        _validate_output_format(output_format, report)

    return report


def _validate_output_format(output_format: Mapping[str, Any], report: ManifestValidation) -> None:
    allowed = ", ".join(kind.value for kind in FormatKind)
    sections = output_format.get("sections")
    if sections is not None and not isinstance(sections, Mapping):
        report.errors.append("ai_output_format.sections must map section names to formats")
    elif isinstance(sections, Mapping):
        for name, kind in sections.items():
            if str(kind) not in {member.value for member in FormatKind}:
                report.errors.append(f"Section '{name}' uses unknown format '{kind}'. Allowed: {allowed}")

    flags = output_format.get("token_optimization")
    if isinstance(flags, Mapping):
        for name, value in flags.items():
            if name not in OPTIMIZATION_FLAGS:
                report.warnings.append(f"Unknown token_optimization flag '{name}'")
            elif not isinstance(value, bool):
                report.errors.append(f"token_optimization.{name} must be a boolean")


def list_manifest_files(directory: Path) -> List[Path]:
    """Sorted ``*.yaml``/``*.yml`` manifests in ``directory``, excluding the schema file."""
    if not directory.is_dir():
        return []
    return sorted(
        path
        for path in directory.iterdir()
        if path.is_file() and path.suffix in MANIFEST_EXTENSIONS and path.name != MANIFEST_SCHEMA_FILENAME
    )


def resolve_template_path(template: str, *, manifest_dir: Path, templates_dir: Path) -> Path:
    """Absolute paths as-is, ``./``/``../`` against the manifest, the rest against the templates root."""
    candidate = Path(template)
    if candidate.is_absolute():
        return candidate
    if template.startswith(("./", "../")):
        return (manifest_dir / candidate).resolve()
    return (templates_dir / candidate).resolve()


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, (str, int, float)) and not isinstance(value, bool):
        text = str(value).strip()
        return text or None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


__all__ = [
    "ManifestError",
    "ManifestValidation",
    "list_manifest_files",
    "load_manifest",
    "manifest_from_mapping",
    "parse_manifest_text",
    "resolve_template_path",
    "template_reference",
    "validate_manifest",
]
