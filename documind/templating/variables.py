"""Placeholder substitution with total defaulting."""

from __future__ import annotations

import re
from typing import Mapping

from ..constants import DEFAULT_VARIABLES

_UNRESOLVED_PATTERN = re.compile(r"\{([A-Z_]+)\}")


def default_value(name: str) -> str:
    """Return the fallback for ``name``; unknown names echo as ``[name]``."""
    canonical = name.upper()
    if canonical in DEFAULT_VARIABLES:
        return DEFAULT_VARIABLES[canonical]
    return f"[{name.lower()}]"


class VariableResolver:
    """Replaces ``{NAME}`` placeholders and defaults whatever is left."""

    def substitute(self, template: str, variables: Mapping[str, str] | None = None) -> str:
        result = template
        for key, value in (variables or {}).items():
            pattern = re.compile(r"\{" + re.escape(key) + r"\}", re.IGNORECASE)
            # Callable replacement keeps backslashes in values literal.
            result = pattern.sub(lambda _match, text=str(value): text, result)
        return self.fill_missing(result)

    @staticmethod
    def fill_missing(content: str) -> str:
        return _UNRESOLVED_PATTERN.sub(lambda match: default_value(match.group(1)), content)

    @staticmethod
    def default_value(name: str) -> str:
        return default_value(name)


__all__ = ["VariableResolver", "default_value"]
