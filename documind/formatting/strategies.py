"""Section format strategies, one per ``FormatKind``."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Dict, List, Sequence, Tuple

from ..constants import TRUNCATION_MARKER
from ..models import FormatKind
from .markdown import CODE, TABLE, is_fence, is_table_row, iter_lines, parse_heading, segment

_KEY_VALUE_PATTERN = re.compile(r"^(.+?):\s*(.+)$")
_INNER_SPACES = re.compile(r"[ \t]{2,}")
_PUNCT_SPACING = re.compile(r"[ \t]*([:,])[ \t]*")

MIN_CONVERTIBLE_LENGTH = 10
MAX_CODE_BLOCK_LINES = 20
CODE_HEAD_LINES = 11
CODE_TAIL_LINES = 5


class FormatStrategy(ABC):
    """Rewrites the text of one targeted section."""

    kind: FormatKind

    @abstractmethod
    def apply(self, text: str) -> str:
        raise NotImplementedError


def _is_convertible(line: str) -> bool:
    stripped = line.strip()
    if not stripped or stripped.startswith(("#", "-", "*")) or is_table_row(line):
        return False
    return len(stripped) > MIN_CONVERTIBLE_LENGTH


class BulletPointsStrategy(FormatStrategy):
    kind = FormatKind.BULLET_POINTS

    def apply(self, text: str) -> str:
        lines = text.split("\n")
        return "\n".join(
            f"- {line.strip()}" if not fenced and _is_convertible(line) else line
            for _, line, fenced in iter_lines(lines)
        )


class NumberedStepsStrategy(FormatStrategy):
    kind = FormatKind.NUMBERED_STEPS

    def apply(self, text: str) -> str:
        output: List[str] = []
        step = 1
        for _, line, fenced in iter_lines(text.split("\n")):
            if not fenced and _is_convertible(line):
                output.append(f"{step}. {line.strip()}")
                step += 1
            else:
                output.append(line)
        return "\n".join(output)


class TableStrategy(FormatStrategy):
    """Appends a key/value table built from ``key: value`` lines."""

    kind = FormatKind.TABLE

    def apply(self, text: str) -> str:
        pairs = self.extract_pairs(text.split("\n"))
        if not pairs:
            return text
        rows = ["| Key | Value |", "|-----|-------|"]
        rows.extend(f"| {_escape_cell(key)} | {_escape_cell(value)} |" for key, value in pairs)
        return text + "\n\n" + "\n".join(rows) + "\n"

    @staticmethod
    def extract_pairs(lines: Sequence[str]) -> List[Tuple[str, str]]:
        pairs: List[Tuple[str, str]] = []
        for _, line, fenced in iter_lines(lines):
            if fenced or is_table_row(line) or parse_heading(line) is not None:
                continue
            match = _KEY_VALUE_PATTERN.match(line.strip())
            if not match:
                continue
            key, value = match.group(1).strip(), match.group(2).strip()
            if key and value:
                pairs.append((key, value))
        return pairs


class CodeBlocksStrategy(FormatStrategy):
    """Collapses long fenced blocks to their first 11 and last 5 lines."""

    kind = FormatKind.CODE_BLOCKS

    def apply(self, text: str) -> str:
        lines = text.split("\n")
        output: List[str] = []
        index = 0
        while index < len(lines):
            if not is_fence(lines[index]):
                output.append(lines[index])
                index += 1
                continue
            close = next((j for j in range(index + 1, len(lines)) if is_fence(lines[j])), None)
            if close is None:
                output.extend(lines[index:])
                break
            block = lines[index : close + 1]
            if len(block) > MAX_CODE_BLOCK_LINES:
                block = block[:CODE_HEAD_LINES] + [TRUNCATION_MARKER] + block[-CODE_TAIL_LINES:]
            output.extend(block)
            index = close + 1
        return "\n".join(output)


class MinimalStrategy(FormatStrategy):
    """Normalises whitespace in prose runs; code and tables pass through."""

    kind = FormatKind.MINIMAL

    def apply(self, text: str) -> str:
        output: List[str] = []
        for run in segment(text.split("\n")):
            if run.kind in (CODE, TABLE):
                output.extend(run.lines)
            else:
                output.extend(_normalize_prose(run.lines))
        return "\n".join(output)


def _normalize_prose(lines: Sequence[str]) -> List[str]:
    result: List[str] = []
    previous_blank = False
    for line in lines:
        if not line.strip():
            if not previous_blank:
                result.append("")
            previous_blank = True
            continue
        previous_blank = False
        # Indentation runs collapse too; every ':' and ',' is followed by exactly one space.
        line = _INNER_SPACES.sub(" ", line)
        line = _PUNCT_SPACING.sub(r"\1 ", line)
        result.append(line.rstrip())
    return result


class StructuredStrategy(FormatStrategy):
    """Marks body lines under Overview/Summary headings as key points."""

    kind = FormatKind.STRUCTURED

    def apply(self, text: str) -> str:
        output: List[str] = []
        current_title = ""
        for _, line, fenced in iter_lines(text.split("\n")):
            if fenced or is_table_row(line):
                output.append(line)
                continue
            heading = parse_heading(line)
            if heading is not None:
                current_title = heading[1]
                output.append(line)
            elif line.strip() and ("Overview" in current_title or "Summary" in current_title):
                output.append(f"**Key Point:** {line.strip()}")
            else:
                output.append(line)
        return "\n".join(output)


def _escape_cell(value: str) -> str:
    return value.replace("|", "\\|")


_STRATEGIES: Dict[FormatKind, FormatStrategy] = {
    strategy.kind: strategy
    for strategy in (
        BulletPointsStrategy(),
        NumberedStepsStrategy(),
        TableStrategy(),
        CodeBlocksStrategy(),
        MinimalStrategy(),
        StructuredStrategy(),
    )
}

_UNHANDLED = set(FormatKind) - set(_STRATEGIES)
if _UNHANDLED:  # pragma: no cover - guards new enum members
    raise RuntimeError(f"No format strategy for: {sorted(kind.value for kind in _UNHANDLED)}")


def strategy_for(kind: FormatKind) -> FormatStrategy:
    return _STRATEGIES[kind]


__all__ = [
    "BulletPointsStrategy",
    "CodeBlocksStrategy",
    "FormatStrategy",
    "MinimalStrategy",
    "NumberedStepsStrategy",
    "StructuredStrategy",
    "TableStrategy",
    "strategy_for",
]
