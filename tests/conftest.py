from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import pytest

from tests._fixtures.workspace import WorkspaceBuilder


@pytest.fixture
def workspace(tmp_path: Path) -> WorkspaceBuilder:
    """Provide a project root with the installed templates layout."""
    return WorkspaceBuilder(tmp_path)


@pytest.fixture(autouse=True)
def _isolate_documind_logger(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    logger = logging.getLogger("documind")
    level = logger.level
    # configure_logging() disables propagation, which hides records from caplog.
    monkeypatch.setattr(logger, "propagate", True)
    yield
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(level)
