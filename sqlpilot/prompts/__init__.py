"""
Prompts for the query assistant.

Importing this package registers every prompt with the PromptRegistry:
- sql.generate: natural-language request to T-SQL
- result.summarize: short insight over a result preview
"""

from .registry import PromptRegistry, PromptVersion, UnknownPrompt, register_prompt
from .sql_generation import SQL_GENERATION_PROMPT, SQL_SYSTEM_INSTRUCTION, sql_generate
from .result_summary import RESULT_SUMMARY_PROMPT, SUMMARY_SYSTEM_INSTRUCTION, result_summarize
from .knowledge_base import DEFAULT_KNOWLEDGE

__all__ = [
    "PromptRegistry",
    "PromptVersion",
    "UnknownPrompt",
    "register_prompt",
    "SQL_GENERATION_PROMPT",
    "SQL_SYSTEM_INSTRUCTION",
    "sql_generate",
    "RESULT_SUMMARY_PROMPT",
    "SUMMARY_SYSTEM_INSTRUCTION",
    "result_summarize",
    "DEFAULT_KNOWLEDGE",
]
