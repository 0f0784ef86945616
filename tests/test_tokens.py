from __future__ import annotations

from pathlib import Path
from typing import List

import pytest

from documind import tokens
from documind.models import TokenBudget
from documind.tokens import (
    BudgetExceededError,
    TokenCounter,
    TokenFileError,
    estimate_tokens,
    looks_binary,
    validate_budget,
)


class _StubEncoding:
    def encode(self, text: str, disallowed_special=()) -> List[int]:
        return list(range(len(text)))


def test_estimate_rounds_up_word_ratio() -> None:
    assert estimate_tokens("") == 0
    assert estimate_tokens("one two three") == 4
    assert estimate_tokens(" ".join(["word"] * 10)) == 13


def test_estimate_is_monotonic_in_word_count() -> None:
    counts = [estimate_tokens(" ".join(["w"] * n)) for n in range(50)]
    assert counts == sorted(counts)


def test_counter_uses_tiktoken_encoding(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(tokens.tiktoken, "encoding_for_model", lambda model: _StubEncoding())

    measured = TokenCounter("gpt-4").measure("abc def\nghi")

    assert measured.method == "tiktoken"
    assert measured.tokens == 11
    assert (measured.characters, measured.words, measured.lines) == (11, 3, 2)


def test_counter_falls_back_to_heuristic_when_tiktoken_fails(monkeypatch: pytest.MonkeyPatch) -> None:
    def _broken(model: str) -> None:
        raise KeyError(model)

    monkeypatch.setattr(tokens.tiktoken, "encoding_for_model", _broken)

    measured = TokenCounter("unknown-model").measure("one two three")

    assert measured.method == "heuristic"
    assert measured.tokens == 4


def test_counter_without_precise_mode_never_loads_an_encoding(monkeypatch: pytest.MonkeyPatch) -> None:
    def _unexpected(model: str) -> None:
        raise AssertionError("encoding should not be requested")

    monkeypatch.setattr(tokens.tiktoken, "encoding_for_model", _unexpected)

    assert TokenCounter(precise=False).count("one two three") == 4


def test_budget_rejects_counts_over_the_limit() -> None:
    with pytest.raises(BudgetExceededError) as excinfo:
        validate_budget(3500, TokenBudget(max_tokens=3000))

    assert excinfo.value.token_count == 3500
    assert excinfo.value.max_tokens == 3000
    assert "3500" in str(excinfo.value) and "3000" in str(excinfo.value)


def test_budget_accepts_counts_at_or_under_the_limit() -> None:
    validate_budget(2500, TokenBudget(max_tokens=3000))
    validate_budget(3000, TokenBudget(max_tokens=3000))


def test_missing_budget_always_passes() -> None:
    validate_budget(10**6, None)
    validate_budget(10**6, TokenBudget(max_tokens=None))


def test_failed_encoding_load_is_not_retried(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: List[str] = []

    def _offline(model: str) -> None:
        calls.append(model)
        raise ConnectionError("no network")

    monkeypatch.setattr(tokens.tiktoken, "encoding_for_model", _offline)
    counter = TokenCounter("gpt-4")

    assert counter.count("one two three") == 4
    assert counter.count("four five") == 3
    assert calls == ["gpt-4"]


def test_count_file_measures_text(tmp_path: Path) -> None:
    path = tmp_path / "doc.md"
    path.write_text("# Title\nsome body text", encoding="utf-8")

    measured = TokenCounter(precise=False).count_file(path)

    assert measured.tokens == estimate_tokens("# Title\nsome body text")
    assert measured.method == "heuristic"
    assert measured.lines == 2


def test_count_file_reports_empty_files(tmp_path: Path) -> None:
    path = tmp_path / "empty.md"
    path.write_bytes(b"")

    measured = TokenCounter(precise=False).count_file(path)

    assert (measured.tokens, measured.method) == (0, "file_empty")


def test_count_file_rejects_oversized_files(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(tokens, "MAX_FILE_SIZE", 8)
    path = tmp_path / "big.md"
    path.write_text("more than eight bytes", encoding="utf-8")

    with pytest.raises(TokenFileError, match="too large"):
        TokenCounter(precise=False).count_file(path)


@pytest.mark.parametrize(
    ("data", "message"),
    [(b"PK\x03\x04\x00\x00binary", "binary"), (b"caf\xe9 au lait", "UTF-8")],
)
def test_count_file_rejects_non_text(tmp_path: Path, data: bytes, message: str) -> None:
    path = tmp_path / "blob.bin"
    path.write_bytes(data)

    with pytest.raises(TokenFileError, match=message):
        TokenCounter(precise=False).count_file(path)


def test_missing_file_raises_os_error(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        TokenCounter(precise=False).count_file(tmp_path / "nope.md")


def test_binary_detection_allows_text_whitespace() -> None:
    assert not looks_binary(b"line one\n\tindented\r\n")
    assert looks_binary(b"text\x00more")
    assert not looks_binary(b"a" * 512 + b"\x00")
