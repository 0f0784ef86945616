"""Manifest-driven generation of human and AI-optimised documentation."""

from .budgets import BudgetCheck, check_file_budget, check_manifest_budgets
from .generator import GenerationError, Generator
from .index_builder import IndexBuildError, IndexBuilder
from .manifest import ManifestError, load_manifest, validate_manifest
from .models import FormatKind, GenerationResult, IndexEntry, IndexUpdate, Manifest
from .tokens import BudgetExceededError, TokenCounter, TokenFileError, validate_budget

__all__ = [
    "BudgetCheck",
    "BudgetExceededError",
    "FormatKind",
    "GenerationError",
    "GenerationResult",
    "Generator",
    "IndexBuildError",
    "IndexBuilder",
    "IndexEntry",
    "IndexUpdate",
    "Manifest",
    "ManifestError",
    "TokenCounter",
    "TokenFileError",
    "check_file_budget",
    "check_manifest_budgets",
    "load_manifest",
    "validate_budget",
    "validate_manifest",
]
