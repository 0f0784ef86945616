from __future__ import annotations

import logging
from datetime import date

import pytest

from documind.generator import GenerationError, Generator
from documind.manifest import ManifestError
from documind.tokens import BudgetExceededError, TokenCounter
from tests._fixtures.workspace import WorkspaceBuilder

CONCEPT_TEMPLATE = (
    "# {CONCEPT_NAME} Concept\n"
    "\n"
    "## Key Features\n"
    "Generates paired documentation quickly\n"
    "\n"
    "\n"
    "\n"
    "## Related\n"
    "See {SERVICE_NAME} for details\n"
)


def _generator(workspace: WorkspaceBuilder) -> Generator:
    return Generator(
        workspace.root,
        token_counter=TokenCounter(precise=False),
        today=lambda: date(2026, 10, 19),
    )


def _concept_manifest(workspace: WorkspaceBuilder, **overrides) -> None:
    data = {
        "base_template": "concept.md",
        "output_path_pattern": "docs/{concept_name}.md",
        "specialist_role": "concept",
        "token_budget": {"max_tokens": 3000},
        "ai_output_format": {
            "sections": {"key_features": "bullet_points"},
            "token_optimization": {"compress_whitespace": True},
        },
    }
    data.update(overrides)
    workspace.manifest("concept-ai.yaml", data)


def test_generate_writes_human_and_ai_variants(workspace: WorkspaceBuilder) -> None:
    workspace.template("concept.md", CONCEPT_TEMPLATE)
    _concept_manifest(workspace)

    result = _generator(workspace).generate_from_manifest(
        workspace.manifests_dir / "concept-ai.yaml", {"concept_name": "auth"}
    )

    assert result.human_path == (workspace.root / "docs" / "auth.md").resolve()
    assert result.ai_path.as_posix().endswith("docs/ai/auth-ai.md")

    human = result.human_path.read_text(encoding="utf-8")
    assert human.startswith("# auth Concept\n")
    assert "Generates paired documentation quickly\n\n\n\n## Related" in human
    assert "See example-service for details" in human

    ai = result.ai_path.read_text(encoding="utf-8")
    assert "- Generates paired documentation quickly\n\n## Related" in ai
    assert result.token_count == TokenCounter(precise=False).count(ai)

    index = (workspace.root / "docs" / "ai" / "AI_README.md").read_text(encoding="utf-8")
    assert "Auth" in index


def test_manifest_path_is_resolved_against_root(workspace: WorkspaceBuilder) -> None:
    workspace.template("concept.md", CONCEPT_TEMPLATE)
    _concept_manifest(workspace)

    result = _generator(workspace).generate_from_manifest(
        ".documind/templates/ai-optimized/concept-ai.yaml", {"concept_name": "auth"}
    )

    assert result.human_path.exists()


def test_budget_overflow_writes_nothing(workspace: WorkspaceBuilder) -> None:
    workspace.template("concept.md", CONCEPT_TEMPLATE)
    _concept_manifest(workspace, token_budget={"max_tokens": 3})

    with pytest.raises(GenerationError) as excinfo:
        _generator(workspace).generate_from_manifest(
            workspace.manifests_dir / "concept-ai.yaml", {"concept_name": "auth"}
        )

    assert isinstance(excinfo.value.__cause__, BudgetExceededError)
    assert str(excinfo.value).startswith("Generation failed: Token count")
    assert not (workspace.root / "docs").exists()


def test_missing_required_field_is_reported(workspace: WorkspaceBuilder) -> None:
    workspace.manifest("broken-ai.yaml", {"base_template": "concept.md"})

    with pytest.raises(GenerationError) as excinfo:
        _generator(workspace).generate_from_manifest(workspace.manifests_dir / "broken-ai.yaml")

    assert isinstance(excinfo.value.__cause__, ManifestError)


def test_missing_template_is_reported(workspace: WorkspaceBuilder) -> None:
    _concept_manifest(workspace)

    with pytest.raises(GenerationError) as excinfo:
        _generator(workspace).generate_from_manifest(workspace.manifests_dir / "concept-ai.yaml")

    assert isinstance(excinfo.value.__cause__, FileNotFoundError)


def test_generation_is_idempotent(workspace: WorkspaceBuilder) -> None:
    workspace.template("concept.md", CONCEPT_TEMPLATE)
    _concept_manifest(workspace)
    generator = _generator(workspace)
    manifest = workspace.manifests_dir / "concept-ai.yaml"

    first = generator.generate_from_manifest(manifest, {"concept_name": "auth"})
    first_human = first.human_path.read_text(encoding="utf-8")
    first_ai = first.ai_path.read_text(encoding="utf-8")
    second = generator.generate_from_manifest(manifest, {"concept_name": "auth"})

    assert second.human_path.read_text(encoding="utf-8") == first_human
    assert second.ai_path.read_text(encoding="utf-8") == first_ai
    assert second.token_count == first.token_count


def test_relative_and_absolute_template_references(workspace: WorkspaceBuilder) -> None:
    shared = workspace.template("shared/base.md", "# {SYSTEM_NAME}\n")
    workspace.manifest(
        "relative-ai.yaml",
        {"base_template": "../shared/base.md", "output_path_pattern": "docs/{system_name}.md"},
    )
    workspace.manifest(
        "absolute-ai.yaml",
        {"template_path": str(shared), "output_path_pattern": "docs/{system_name}-abs.md"},
    )
    generator = _generator(workspace)

    relative = generator.generate_from_manifest(workspace.manifests_dir / "relative-ai.yaml", {"system_name": "core"})
    absolute = generator.generate_from_manifest(workspace.manifests_dir / "absolute-ai.yaml", {"system_name": "core"})

    assert relative.human_path.read_text(encoding="utf-8") == "# core\n"
    assert absolute.human_path.name == "core-abs.md"


def test_output_path_uses_defaults_for_unbound_placeholders(workspace: WorkspaceBuilder) -> None:
    generator = _generator(workspace)

    human = generator.resolve_output_path("docs/{SERVICE_NAME}/{concept_name}.md", {"concept_name": "auth"})
    ai = generator.resolve_output_path("docs/{widget}.md", {}, ai=True)

    assert human == (workspace.root / "docs" / "example-service" / "auth.md").resolve()
    assert ai == (workspace.root / "docs" / "ai" / "[widget]-ai.md").resolve()


def test_generate_all_timestamps_reserved_names_and_skips_failures(
    workspace: WorkspaceBuilder, caplog: pytest.LogCaptureFixture
) -> None:
    workspace.template("concept.md", CONCEPT_TEMPLATE)
    _concept_manifest(workspace)
    workspace.manifest(
        "payments-ai.yaml",
        {"base_template": "concept.md", "output_path_pattern": "docs/{service_name}.md"},
    )
    workspace.manifest(
        "billing-ai.yaml",
        {
            "base_template": "concept.md",
            "output_path_pattern": "docs/{concept_name}.md",
            "default_slug": "ledger",
        },
    )
    workspace.manifest("broken-ai.yaml", {"base_template": "missing.md", "output_path_pattern": "x.md"})
    workspace.manifest("ai-manifest-schema.yaml", {"type": "object"})

    with caplog.at_level(logging.WARNING, logger="documind"):
        results = _generator(workspace).generate_all()

    names = sorted(result.human_path.name for result in results)
    assert names == ["concept-2026-10-19.md", "ledger.md", "payments.md"]
    assert "Skipped broken-ai.yaml" in caplog.text
    assert "ai-manifest-schema.yaml" not in caplog.text
    assert "concept-2026-10-19" in caplog.text


def test_generate_all_without_manifest_directory(workspace: WorkspaceBuilder) -> None:
    assert _generator(workspace).generate_all() == []
