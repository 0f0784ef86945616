"""Tests for section targeting and document formatting."""

from __future__ import annotations

import pytest

from documind.formatting import SectionFormatter
from documind.models import AIOutputFormat, FormatKind, TokenOptimization

DOCUMENT = (
    "# Title\n"
    "\n"
    "Intro paragraph text here\n"
    "\n"
    "## Key Features\n"
    "Fast generation of docs\n"
    "Small\n"
    "\n"
    "## Other\n"
    "Not touched at all here\n"
)


def test_heading_match_formats_only_that_section() -> None:
    result = SectionFormatter().apply_to_section(DOCUMENT, "key_features", FormatKind.BULLET_POINTS)
    assert result == (
        "# Title\n"
        "\n"
        "Intro paragraph text here\n"
        "\n"
        "## Key Features\n"
        "- Fast generation of docs\n"
        "Small\n"
        "\n"
        "## Other\n"
        "Not touched at all here\n"
    )


def test_heading_match_ignores_case_and_separators() -> None:
    formatter = SectionFormatter()
    lower = formatter.apply_to_section(DOCUMENT, "KEY-FEATURES", FormatKind.BULLET_POINTS)
    assert "- Fast generation of docs" in lower


def test_marker_is_used_when_no_heading_matches() -> None:
    document = (
        "Intro\n"
        "<!-- AI_FORMAT: section=steps -->\n"
        "Install the package first\n"
        "Run the generator next\n"
        "<!-- AI_FORMAT: section=other -->\n"
        "Leave this line alone please\n"
    )
    result = SectionFormatter().apply_to_section(document, "steps", FormatKind.NUMBERED_STEPS)
    assert result == (
        "Intro\n"
        "<!-- AI_FORMAT: section=steps -->\n"
        "1. Install the package first\n"
        "2. Run the generator next\n"
        "<!-- AI_FORMAT: section=other -->\n"
        "Leave this line alone please\n"
    )


def test_heading_takes_priority_over_marker() -> None:
    document = (
        "<!-- AI_FORMAT: section=setup -->\n"
        "Marker region line that is long\n"
        "## Setup\n"
        "Heading region line that is long\n"
    )
    result = SectionFormatter().apply_to_section(document, "setup", FormatKind.BULLET_POINTS)
    assert "- Heading region line that is long" in result
    assert "\nMarker region line that is long\n" in result


@pytest.mark.parametrize("kind", list(FormatKind))
def test_missing_section_returns_document_unchanged(kind: FormatKind) -> None:
    assert SectionFormatter().apply_to_section(DOCUMENT, "does not exist", kind) == DOCUMENT


@pytest.mark.parametrize("kind", list(FormatKind))
def test_fenced_code_inside_section_is_preserved(kind: FormatKind) -> None:
    fence = "```bash\n# install deps\npip install  documind\nexport KEY:  value\n```"
    document = f"## Setup\nInstall everything you need first\n{fence}\nafter: done\n"
    result = SectionFormatter().apply_to_section(document, "setup", kind)
    assert fence in result


def test_headings_inside_fences_do_not_split_sections() -> None:
    document = "## Usage\n```\n## not a heading\n```\nRun the command line tool\n## Next\nx"
    formatter = SectionFormatter()

    result = formatter.apply_to_section(document, "usage", FormatKind.BULLET_POINTS)
    assert "- Run the command line tool" in result

    untouched = formatter.apply_to_section(document, "not a heading", FormatKind.BULLET_POINTS)
    assert untouched == document


def test_format_document_applies_sections_then_optimisation() -> None:
    document = "## Overview\nFirst point\n\n\n\n## Details\nPlain line"
    ai_format = AIOutputFormat(
        sections=(("overview", FormatKind.STRUCTURED),),
        optimization=TokenOptimization(compress_whitespace=True),
    )
    result = SectionFormatter().format_document(document, ai_format)
    assert result == "## Overview\n**Key Point:** First point\n\n## Details\nPlain line"


def test_format_document_without_format_is_identity() -> None:
    assert SectionFormatter().format_document(DOCUMENT, None) == DOCUMENT
