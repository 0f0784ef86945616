"""Line-level markdown structure helpers shared by the formatters."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Sequence, Tuple

_HEADING_PATTERN = re.compile(r"^ {0,3}(#{1,6})[ \t]+(.*?)(?:[ \t]+#+)?[ \t]*$")
_SEPARATOR_PATTERN = re.compile(r"[_\-\s]+")

CODE = "code"
TABLE = "table"
PROSE = "prose"


@dataclass
class Segment:
    """A contiguous run of lines of one structural kind."""

    kind: str
    lines: List[str] = field(default_factory=list)


def is_fence(line: str) -> bool:
    return line.strip().startswith("```")


def is_table_row(line: str) -> bool:
    return line.strip().startswith("|")


def parse_heading(line: str) -> Optional[Tuple[int, str]]:
    """Return ``(level, title)`` when ``line`` is an ATX heading."""
    match = _HEADING_PATTERN.match(line)
    if not match:
        return None
    return len(match.group(1)), match.group(2).strip()


def normalize_title(text: str) -> str:
    """Lower-case ``text`` and treat underscores, hyphens and whitespace runs as one space."""
    return _SEPARATOR_PATTERN.sub(" ", text.lower()).strip()


def iter_lines(lines: Sequence[str]) -> Iterator[Tuple[int, str, bool]]:
    """Yield ``(index, line, fenced)``; fence delimiter lines count as fenced."""
    in_fence = False
    for index, line in enumerate(lines):
        if is_fence(line):
            in_fence = not in_fence
            yield index, line, True
            continue
        yield index, line, in_fence


def heading_indices(lines: Sequence[str]) -> List[int]:
    """Indices of heading lines that sit outside fenced code blocks."""
    return [
        index
        for index, line, fenced in iter_lines(lines)
        if not fenced and parse_heading(line) is not None
    ]


def segment(lines: Sequence[str]) -> List[Segment]:
    """Partition ``lines`` into contiguous code, table and prose runs."""
    segments: List[Segment] = []
    current: Optional[Segment] = None
    in_fence = False

    for line in lines:
        if in_fence and current is not None:
            current.lines.append(line)
            if is_fence(line):
                segments.append(current)
                current = None
                in_fence = False
            continue
        if is_fence(line):
            if current is not None:
                segments.append(current)
            current = Segment(CODE, [line])
            in_fence = True
            continue
        kind = TABLE if is_table_row(line) else PROSE
        if current is None or current.kind != kind:
            if current is not None:
                segments.append(current)
            current = Segment(kind)
        current.lines.append(line)

    if current is not None:
        segments.append(current)
    return segments


__all__ = [
    "CODE",
    "PROSE",
    "TABLE",
    "Segment",
    "heading_indices",
    "is_fence",
    "is_table_row",
    "iter_lines",
    "normalize_title",
    "parse_heading",
    "segment",
]
