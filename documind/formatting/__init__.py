"""Section-targeted markdown formatting for AI variants."""

from .optimize import TokenOptimizer
from .sections import SectionFormatter
from .strategies import FormatStrategy, strategy_for

__all__ = ["FormatStrategy", "SectionFormatter", "TokenOptimizer", "strategy_for"]
