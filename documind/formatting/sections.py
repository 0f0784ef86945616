"""Section targeting and AI formatting of rendered templates."""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

from ..logging import get_logger
from ..models import AIOutputFormat, FormatKind
from .markdown import heading_indices, normalize_title, parse_heading
from .optimize import TokenOptimizer
from .strategies import strategy_for

_ANY_MARKER = re.compile(r"<!--\s*AI_FORMAT:", re.IGNORECASE)


class SectionFormatter:
    """Reformats named sections located by heading, or by ``AI_FORMAT`` marker."""

    def __init__(self, optimizer: TokenOptimizer | None = None) -> None:
        self.optimizer = optimizer or TokenOptimizer()
        self.logger = get_logger("formatting")

    def format_document(self, document: str, ai_format: AIOutputFormat | None) -> str:
        """Apply every declared section format, then the optimisation flags."""
        if ai_format is None:
            return document
        for section, kind in ai_format.sections:
            document = self.apply_to_section(document, section, kind)
        return self.optimizer.optimize(document, ai_format.optimization)

    def apply_to_section(self, document: str, section: str, kind: FormatKind) -> str:
        strategy = strategy_for(kind)
        lines = document.split("\n")

        span = self.find_heading_section(lines, section)
        if span is not None:
            start, end = span
            original = "\n".join(lines[start:end])
            formatted = strategy.apply(original)
            if formatted == original:
                return document
            return "\n".join(lines[:start] + [formatted] + lines[end:])

        region = self.find_marker_region(document, section)
        if region is not None:
            start, end = region
            return document[:start] + strategy.apply(document[start:end]) + document[end:]

        self.logger.debug("Section %r not found; %s skipped", section, kind.value)
        return document

    @staticmethod
    def find_heading_section(lines: List[str], section: str) -> Optional[Tuple[int, int]]:
        """Return the ``[start, end)`` line span of the first heading matching ``section``."""
        target = normalize_title(section)
        if not target:
            return None
        headings = heading_indices(lines)
        for position, index in enumerate(headings):
            heading = parse_heading(lines[index])
            if heading is None:
                continue
            title = normalize_title(heading[1])
            if title == target or title.startswith(target + " "):
                end = headings[position + 1] if position + 1 < len(headings) else len(lines)
                return index, end
        return None

    @staticmethod
    def find_marker_region(document: str, section: str) -> Optional[Tuple[int, int]]:
        """Return the character span after a section marker up to the next marker."""
        pattern = re.compile(
            r"<!--\s*AI_FORMAT:\s*section=" + re.escape(section.strip()) + r"\s*-->",
            re.IGNORECASE,
        )
        match = pattern.search(document)
        if match is None:
            return None
        following = _ANY_MARKER.search(document, match.end())
        end = following.start() if following else len(document)
        return match.end(), end


__all__ = ["SectionFormatter"]
