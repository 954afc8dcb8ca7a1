"""Context Builder: assembles the grounding text sent with each request.

Blocks, always in this order:
1. time block       (always present)
2. schema block     (or the "no schema loaded" marker)
3. knowledge block  (omitted when there is no knowledge)
"""

from dataclasses import dataclass
from typing import Optional

from sqlpilot.config.context_bounds import ContextBounds
from sqlpilot.config.settings import DEFAULT_TIMEZONE
from sqlpilot.services.time_context import TimeContext, current_time_context

SCHEMA_HEADER = "[Target Database Schema]"
NO_SCHEMA_BLOCK = "[Default Schema]\n(No schema loaded)"
KNOWLEDGE_HEADER = "[Business Rules & Custom Knowledge]"


@dataclass(frozen=True)
class ContextBundle:
    request: str
    time: TimeContext
    time_block: str
    schema_block: str
    knowledge_block: Optional[str] = None

    @property
    def has_schema(self) -> bool:
        return self.schema_block != NO_SCHEMA_BLOCK

    def render(self) -> str:
        blocks = [self.time_block, self.schema_block]
        if self.knowledge_block:
            blocks.append(self.knowledge_block)
        return "\n\n".join(blocks)


def build(
    user_request: str,
    schema_descriptor: Optional[str],
    knowledge_snapshot: Optional[str],
    time_context: Optional[TimeContext] = None,
    bounds: ContextBounds = ContextBounds(),
    tz: str = DEFAULT_TIMEZONE,
) -> ContextBundle:
    """Assemble a ContextBundle.

    Args:
        user_request: The natural-language request.
        schema_descriptor: Learned or hand-edited schema text; empty for none.
        knowledge_snapshot: Custom knowledge text; empty for none.
        time_context: Pre-computed time context; computed for *tz* when omitted.
        bounds: Character budgets for the schema and knowledge blocks.
    """
    time_context = time_context or current_time_context(tz)

    schema_text = (schema_descriptor or "").strip()
    if schema_text:
        schema_block = f"{SCHEMA_HEADER}\n{bounds.clip(schema_text, bounds.max_schema_chars)}"
    else:
        schema_block = NO_SCHEMA_BLOCK

    knowledge_text = (knowledge_snapshot or "").strip()
    knowledge_block = None
    if knowledge_text:
        knowledge_text = time_context.substitute(knowledge_text)
        knowledge_block = (
            f"{KNOWLEDGE_HEADER}\n{bounds.clip(knowledge_text, bounds.max_knowledge_chars)}"
        )

    return ContextBundle(
        request=user_request,
        time=time_context,
        time_block=time_context.render(),
        schema_block=schema_block,
        knowledge_block=knowledge_block,
    )
