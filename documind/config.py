"""Configuration loading for documind (.documind.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .constants import CONFIG_FILENAME, INSTALLED_DIRNAME, MANIFESTS_SUBDIR


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class TokenizerConfig:
    """Token counting settings."""

    model: str = "gpt-4"
    precise: bool = True


@dataclass
class IndexConfig:
    """Master index settings."""

    dedupe: bool = False
    template: Optional[Path] = None


@dataclass
class DocuMindConfig:
    """Represents the project settings defined in .documind.yml."""

    root: Path
    templates_dir: Optional[Path] = None
    docs_dir: Optional[Path] = None
    tokenizer: TokenizerConfig = field(default_factory=TokenizerConfig)
    index: IndexConfig = field(default_factory=IndexConfig)

    @property
    def installed_templates_dir(self) -> Path:
        return self.root / INSTALLED_DIRNAME / "templates"

    @property
    def development_templates_dir(self) -> Path:
        return self.root / "src" / "templates"

    def resolve_templates_dir(self) -> Path:
        """Return the templates root: explicit, else installed, else development."""
        if self.templates_dir is not None:
            return self.templates_dir
        if self.installed_templates_dir.is_dir():
            return self.installed_templates_dir
        return self.development_templates_dir

    def resolve_manifests_dir(self) -> Path:
        return self.resolve_templates_dir() / MANIFESTS_SUBDIR

    def resolve_docs_dir(self) -> Path:
        return self.docs_dir if self.docs_dir is not None else self.root / "docs"

    def resolve_index_template(self) -> Path:
        if self.index.template is not None:
            return self.index.template
        return self.resolve_manifests_dir() / "AI_README.md"


def load_config(config_path: Path) -> DocuMindConfig:
    """Load configuration from disk; a missing file yields defaults."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return DocuMindConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    templates_dir_str = _as_str(data.get("templates_dir"))
    docs_dir_str = _as_str(data.get("docs_dir"))

    tokenizer = TokenizerConfig()
    tokenizer_data = _as_dict(data.get("tokenizer"))
    if tokenizer_data:
        tokenizer.model = _as_str(tokenizer_data.get("model")) or tokenizer.model
        precise = _as_bool(tokenizer_data.get("precise"))
        if precise is not None:
            tokenizer.precise = precise

    index = IndexConfig()
    index_data = _as_dict(data.get("index"))
    if index_data:
        index.dedupe = _as_bool(index_data.get("dedupe")) or False
        template_str = _as_str(index_data.get("template"))
        index.template = root / template_str if template_str else None

    return DocuMindConfig(
        root=root,
        templates_dir=root / templates_dir_str if templates_dir_str else None,
        docs_dir=root / docs_dir_str if docs_dir_str else None,
        tokenizer=tokenizer,
        index=index,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


__all__ = ["ConfigError", "DocuMindConfig", "IndexConfig", "TokenizerConfig", "load_config"]
