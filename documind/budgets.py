"""Checks of files on disk against manifest token budgets."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .config import DocuMindConfig
from .logging import get_logger
from .manifest import ManifestError, list_manifest_files, load_manifest, resolve_template_path
from .models import Manifest, TokenBudget
from .tokens import BudgetExceededError, TokenCount, TokenCounter, TokenFileError, validate_budget

# Applied when a manifest declares no positive max_tokens.
DEFAULT_MAX_TOKENS = 5000

logger = get_logger("budgets")


@dataclass(frozen=True)
class BudgetCheck:
    """Token count of one file measured against a budget."""

    path: Path
    count: TokenCount
    max_tokens: int
    within_budget: bool

    @property
    def remaining(self) -> int:
        return self.max_tokens - self.count.tokens

    @property
    def usage_percentage(self) -> int:
        # Half-up rounding of tokens / max_tokens * 100.
        return (200 * self.count.tokens + self.max_tokens) // (2 * self.max_tokens)


@dataclass(frozen=True)
class ManifestBudgetReport:
    """Outcome of checking one manifest's template; exactly one of ``check``/``error`` is set."""

    manifest_path: Path
    check: Optional[BudgetCheck] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.check is not None and self.check.within_budget


def budget_limit(manifest: Manifest) -> int:
    max_tokens = manifest.token_budget.max_tokens if manifest.token_budget else None
    if max_tokens is None or max_tokens <= 0:
        return DEFAULT_MAX_TOKENS
    return max_tokens


def check_file_budget(path: Path, manifest: Manifest, *, counter: TokenCounter) -> BudgetCheck:
    """Count ``path`` and compare it with the manifest's budget; never raises on overflow."""
    count = counter.count_file(path)
    max_tokens = budget_limit(manifest)
    try:
        validate_budget(count.tokens, TokenBudget(max_tokens=max_tokens))
    except BudgetExceededError:
        within_budget = False
    else:
        within_budget = True
    return BudgetCheck(path=Path(path), count=count, max_tokens=max_tokens, within_budget=within_budget)


def check_manifest_budgets(
    config: DocuMindConfig, *, counter: TokenCounter
) -> List[ManifestBudgetReport]:
    """Check each installed manifest's raw template against that manifest's budget."""
    templates_dir = config.resolve_templates_dir()
    reports: List[ManifestBudgetReport] = []
    for manifest_path in list_manifest_files(config.resolve_manifests_dir()):
        try:
            manifest = load_manifest(manifest_path)
            template = resolve_template_path(
                manifest.template, manifest_dir=manifest_path.parent, templates_dir=templates_dir
            )
            if not template.is_file():
                raise FileNotFoundError(f"Template not found: {template}")
            check = check_file_budget(template, manifest, counter=counter)
        except (ManifestError, TokenFileError, OSError) as exc:
            logger.debug("Budget check failed for %s: %s", manifest_path.name, exc)
            reports.append(ManifestBudgetReport(manifest_path=manifest_path, error=str(exc)))
            continue
        reports.append(ManifestBudgetReport(manifest_path=manifest_path, check=check))
    return reports


__all__ = [
    "BudgetCheck",
    "DEFAULT_MAX_TOKENS",
    "ManifestBudgetReport",
    "budget_limit",
    "check_file_budget",
    "check_manifest_budgets",
]
