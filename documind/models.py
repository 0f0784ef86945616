"""Core data models shared across documind components."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, Optional, Tuple


class FormatKind(str, Enum):
    """Closed set of section formatting strategies a manifest may request."""

    BULLET_POINTS = "bullet_points"
    NUMBERED_STEPS = "numbered_steps"
    TABLE = "table"
    CODE_BLOCKS = "code_blocks"
    MINIMAL = "minimal"
    STRUCTURED = "structured"


@dataclass(frozen=True)
class TokenBudget:
    """Upper bound on the token count of an AI variant."""

    max_tokens: Optional[int] = None


@dataclass(frozen=True)
class TokenOptimization:
    """Document-wide compaction flags applied after section formatting."""

    remove_examples: bool = False
    compress_whitespace: bool = False
    shorten_descriptions: bool = False


@dataclass(frozen=True)
class AIOutputFormat:
    """Section formats (in declaration order) plus optimisation flags."""

    sections: Tuple[Tuple[str, FormatKind], ...] = ()
    optimization: TokenOptimization = field(default_factory=TokenOptimization)


@dataclass(frozen=True)
class Manifest:
    """Descriptor driving a single human/AI document generation."""

    template: str
    output_path_pattern: str
    source: Path
    specialist_role: Optional[str] = None
    token_budget: Optional[TokenBudget] = None
    ai_output_format: Optional[AIOutputFormat] = None
    default_slug: Optional[str] = None


@dataclass(frozen=True)
class GenerationResult:
    """Outcome of one manifest generation."""

    human_path: Path
    ai_path: Path
    token_count: int
    manifest: Manifest


@dataclass
class IndexEntry:
    """A single AI variant known to the master index."""

    path: Path
    name: str
    type: Optional[str] = None
    token_count: int = 0
    last_modified: Optional[datetime] = None
    variables: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class IndexUpdate:
    """Summary returned after regenerating the master index."""

    total_files: int
    index_path: Path
    timestamp: datetime
