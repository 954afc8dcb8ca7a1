"""Context bounds for the generation prompt.

The schema descriptor of a large store and a long knowledge file can both
outgrow what is useful to send per request. These budgets cap each block;
a truncated block ends with a marker line so the model knows text is missing.

Usage:
    from sqlpilot.config.context_bounds import ContextBounds

    bounds = ContextBounds(max_schema_chars=20000)
"""

from dataclasses import dataclass

TRUNCATION_MARKER = "... (truncated)"


@dataclass(frozen=True)
class ContextBounds:
    """Character budgets for the blocks of one context bundle."""

    max_schema_chars: int = 60000
    """Maximum characters of schema descriptor text."""

    max_knowledge_chars: int = 30000
    """Maximum characters of custom knowledge text."""

    def clip(self, text: str, limit: int) -> str:
        """Cut *text* to *limit* characters on a line boundary where possible."""
        if len(text) <= limit:
            return text
        head = text[:limit]
        cut = head.rfind("\n")
        if cut > 0:
            head = head[:cut]
        return f"{head}\n{TRUNCATION_MARKER}"
