"""Shared constants for manifest generation and the master index."""

from __future__ import annotations

DEFAULT_VARIABLES: dict[str, str] = {
    "CONCEPT_NAME": "example-concept",
    "SERVICE_NAME": "example-service",
    "SYSTEM_NAME": "example-system",
    "MODULE_NAME": "example-module",
    "COMPONENT_NAME": "example-component",
}

# Variables seeded from a slug when a batch run has no caller-supplied names.
SLUG_VARIABLES: tuple[str, ...] = ("concept_name", "service_name", "system_name")

# Base names shipped with the stock manifests; batch runs timestamp them.
RESERVED_TEMPLATE_NAMES: frozenset[str] = frozenset({"concept", "integration", "architecture"})

DOC_TYPES: tuple[str, ...] = ("concept", "integration", "architecture", "other")

CONFIG_FILENAME = ".documind.yml"
INSTALLED_DIRNAME = ".documind"
MANIFESTS_SUBDIR = "ai-optimized"
MANIFEST_SCHEMA_FILENAME = "ai-manifest-schema.yaml"
MANIFEST_SUFFIX = "-ai"
AI_SUBDIR = "ai"
AI_FILE_SUFFIX = "-ai.md"
INDEX_FILENAME = "AI_README.md"

TRUNCATION_MARKER = "// ... (truncated for brevity)"


__all__ = [
    "AI_FILE_SUFFIX",
    "AI_SUBDIR",
    "CONFIG_FILENAME",
    "DEFAULT_VARIABLES",
    "DOC_TYPES",
    "INDEX_FILENAME",
    "INSTALLED_DIRNAME",
    "MANIFESTS_SUBDIR",
    "MANIFEST_SCHEMA_FILENAME",
    "MANIFEST_SUFFIX",
    "RESERVED_TEMPLATE_NAMES",
    "SLUG_VARIABLES",
    "TRUNCATION_MARKER",
]
