"""Document-wide token optimisations applied after section formatting."""

from __future__ import annotations

import re
from typing import List, Set

from ..models import TokenOptimization
from .markdown import heading_indices, is_table_row, iter_lines, parse_heading

_EXAMPLES_TITLE = re.compile(r"^examples?\b", re.IGNORECASE)

# Every Nth prose word is dropped by ``shorten_descriptions``.
DROP_EVERY = 4


class TokenOptimizer:
    """Applies optimisation flags in fixed order: examples, whitespace, descriptions."""

    def optimize(self, document: str, flags: TokenOptimization) -> str:
        if flags.remove_examples:
            document = self.remove_examples(document)
        if flags.compress_whitespace:
            document = self.compress_whitespace(document)
        if flags.shorten_descriptions:
            document = self.shorten_descriptions(document)
        return document

    @staticmethod
    def remove_examples(document: str) -> str:
        lines = document.split("\n")
        headings = heading_indices(lines)
        dropped: Set[int] = set()
        for position, start in enumerate(headings):
            heading = parse_heading(lines[start])
            if heading is None or not _EXAMPLES_TITLE.match(heading[1]):
                continue
            end = headings[position + 1] if position + 1 < len(headings) else len(lines)
            dropped.update(range(start, end))
        if not dropped:
            return document
        return "\n".join(line for index, line in enumerate(lines) if index not in dropped)

    @staticmethod
    def compress_whitespace(document: str) -> str:
        output: List[str] = []
        previous_blank = False
        for _, line, fenced in iter_lines(document.split("\n")):
            blank = not fenced and not line.strip()
            if blank and previous_blank:
                continue
            output.append("" if blank else line)
            previous_blank = blank
        return "\n".join(output)

    @staticmethod
    def shorten_descriptions(document: str) -> str:
        output: List[str] = []
        counter = 0
        for _, line, fenced in iter_lines(document.split("\n")):
            if fenced or is_table_row(line) or parse_heading(line) is not None or not line.strip():
                output.append(line)
                continue
            body = line.lstrip()
            indent = line[: len(line) - len(body)]
            kept: List[str] = []
            for word in body.split():
                counter += 1
                if counter % DROP_EVERY:
                    kept.append(word)
            output.append(indent + " ".join(kept) if kept else "")
        return "\n".join(output)


__all__ = ["TokenOptimizer"]
