"""Template variable substitution."""

from .variables import VariableResolver, default_value

__all__ = ["VariableResolver", "default_value"]
