"""
sqlpilot - Knowledge-augmented query assistant

Translates natural-language questions into T-SQL with a language model,
runs them through a backend query proxy, and summarizes the rows. Each
request is grounded in the live-learned schema, user-authored business
knowledge and today's date in the store's timezone.

Architecture:
    request -> Context Builder -> Generator (LLM) -> Gateway (proxy) -> Analyzer (LLM)

Key components:
- database/: versioned SQLite knowledge store (knowledge, schema, history)
- services/: one service per pipeline step, plus the knowledge reconciler
- orchestration/: session state machine, QueryOrchestrator and wiring
- prompts/: prompt registry, templates and the built-in knowledge seed
- cli.py: the ``sqlpilot`` command

Usage:
    from sqlpilot import Settings, create_orchestrator

    orchestrator = await create_orchestrator(Settings.from_env())
    await orchestrator.startup()
    outcome = await orchestrator.submit("오늘 매출 얼마야?")
"""

from sqlpilot.config import Settings
from sqlpilot.orchestration import QueryOrchestrator, create_orchestrator

__version__ = "0.3.0"

__all__ = [
    "Settings",
    "QueryOrchestrator",
    "create_orchestrator",
]
