"""Token counting and budget validation for AI variants."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import tiktoken

from .logging import get_logger
from .models import TokenBudget

DEFAULT_MODEL = "gpt-4"

# Heuristic is ceil(words * 1.3); kept as a ratio to stay in integer arithmetic.
_HEURISTIC_NUMERATOR = 13
_HEURISTIC_DENOMINATOR = 10

MAX_FILE_SIZE = 10 * 1024 * 1024
BINARY_SAMPLE_SIZE = 512
_TEXT_CONTROL_BYTES = {9, 10, 13}


class BudgetExceededError(ValueError):
    """Raised when an AI variant is larger than its declared token budget."""

    def __init__(self, token_count: int, max_tokens: int) -> None:
        super().__init__(f"Token count {token_count} exceeds budget {max_tokens}")
        self.token_count = token_count
        self.max_tokens = max_tokens


class TokenFileError(ValueError):
    """Raised when a file cannot be counted (too large, binary or not UTF-8)."""


@dataclass(frozen=True)
class TokenCount:
    """Token count plus the measurement details behind it."""

    tokens: int
    method: str
    characters: int
    words: int
    lines: int


def estimate_tokens(text: str) -> int:
    words = len(text.split())
    return (words * _HEURISTIC_NUMERATOR + _HEURISTIC_DENOMINATOR - 1) // _HEURISTIC_DENOMINATOR


def looks_binary(data: bytes) -> bool:
    """True when the leading bytes hold NUL or non-whitespace control characters."""
    return any(
        byte < 32 and byte not in _TEXT_CONTROL_BYTES for byte in data[:BINARY_SAMPLE_SIZE]
    )


class TokenCounter:
    """Counts tokens with tiktoken, falling back to a word heuristic."""

    def __init__(self, model: str = DEFAULT_MODEL, *, precise: bool = True) -> None:
        self.model = model
        self.precise = precise
        self.logger = get_logger("tokens")
        self._encoding: Optional[Any] = None
        self._encoding_failed = False

    def count(self, text: str) -> int:
        return self.measure(text).tokens

    def measure(self, text: str) -> TokenCount:
        words = len(text.split())
        details = {"characters": len(text), "words": words, "lines": len(text.split("\n"))}
        encoding = self._get_encoding() if self.precise else None
        if encoding is not None:
            try:
                tokens = len(encoding.encode(text, disallowed_special=()))
            except Exception as exc:
                self.logger.debug("tiktoken failed to encode, using heuristic: %s", exc)
            else:
                return TokenCount(tokens=tokens, method="tiktoken", **details)
        return TokenCount(tokens=estimate_tokens(text), method="heuristic", **details)

    def count_file(self, path: Path) -> TokenCount:
        """Measure a UTF-8 text file of at most ``MAX_FILE_SIZE`` bytes."""
        path = Path(path)
        size = path.stat().st_size
        if size > MAX_FILE_SIZE:
            raise TokenFileError(f"{path.name} is too large: {size} bytes (max: {MAX_FILE_SIZE})")
        if size == 0:
            return TokenCount(tokens=0, method="file_empty", characters=0, words=0, lines=0)
        data = path.read_bytes()
        if looks_binary(data):
            raise TokenFileError(f"{path.name} looks like a binary file; only text files are supported")
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise TokenFileError(f"{path.name} is not valid UTF-8: {exc}") from exc
        return self.measure(text)

    def _get_encoding(self) -> Optional[Any]:
        # A failed load is remembered so offline runs do not retry once per file.
        if self._encoding is None and not self._encoding_failed:
            try:
                self._encoding = tiktoken.encoding_for_model(self.model)
            except Exception as exc:
                self._encoding_failed = True
                self.logger.debug("tiktoken unavailable for %s, using heuristic: %s", self.model, exc)
        return self._encoding


def validate_budget(token_count: int, budget: TokenBudget | None) -> None:
    """Raise ``BudgetExceededError`` when ``token_count`` is over ``budget.max_tokens``."""
    if budget is None or budget.max_tokens is None:
        return
    if token_count > budget.max_tokens:
        raise BudgetExceededError(token_count, budget.max_tokens)


__all__ = [
    "BudgetExceededError",
    "DEFAULT_MODEL",
    "MAX_FILE_SIZE",
    "TokenCount",
    "TokenCounter",
    "TokenFileError",
    "estimate_tokens",
    "looks_binary",
    "validate_budget",
]
