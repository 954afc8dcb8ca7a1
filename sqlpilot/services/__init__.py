"""Services of the query assistant, one per pipeline step."""

from sqlpilot.services.analyzer import ResultAnalyzer
from sqlpilot.services.context_builder import ContextBundle, build
from sqlpilot.services.gateway import QueryGateway
from sqlpilot.services.generator import Generation, QueryGenerator, strip_fences
from sqlpilot.services.reconciler import (
    KnowledgeReconciler,
    KnowledgeSource,
    MalformedReference,
    ReconcileResult,
    to_edit_url,
    to_raw_url,
)
from sqlpilot.services.schema_learner import SchemaLearner, render_schema
from sqlpilot.services.time_context import TimeContext, current_time_context

__all__ = [
    "ResultAnalyzer",
    "ContextBundle",
    "build",
    "QueryGateway",
    "Generation",
    "QueryGenerator",
    "strip_fences",
    "KnowledgeReconciler",
    "KnowledgeSource",
    "MalformedReference",
    "ReconcileResult",
    "to_edit_url",
    "to_raw_url",
    "SchemaLearner",
    "render_schema",
    "TimeContext",
    "current_time_context",
]
