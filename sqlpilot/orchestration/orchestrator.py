"""QueryOrchestrator - drives one session of the query assistant.

Pipeline per submission, strictly ordered:

    natural language -> context -> generate -> execute -> summarize
    saved query      ----------------------> execute

Submissions supersede each other: starting a new one cancels a pending
older one, and only the latest submission may publish its outcome.

Knowledge and schema are cached in memory and re-read from the store
after every write, so the next generation always sees what was saved.
"""

import asyncio
from typing import Any, Dict, List, Optional

from sqlpilot._logging import get_component_logger
from sqlpilot.config.context_bounds import ContextBounds
from sqlpilot.config.settings import DEFAULT_TIMEZONE
from sqlpilot.config.thresholds import DEFAULT_QUERY_TIMEOUT_MS
from sqlpilot.database.knowledge_store import Bucket, HistoryEntry, KnowledgeStore
from sqlpilot.errors import SqlPilotError, StorageError, describe_failure
from sqlpilot.orchestration.session import Session
from sqlpilot.orchestration.types import (
    QueryOutcome,
    ReconcileResult,
    SessionSnapshot,
    SubmissionKind,
)
from sqlpilot.services.analyzer import ResultAnalyzer
from sqlpilot.services.context_builder import ContextBundle, build
from sqlpilot.services.gateway import QueryGateway
from sqlpilot.services.generator import QueryGenerator
from sqlpilot.services.reconciler import KnowledgeReconciler
from sqlpilot.services.schema_learner import SchemaLearner


class QueryOrchestrator:
    """
    Usage:
        orchestrator = await create_orchestrator(Settings.from_env())
        await orchestrator.startup()
        outcome = await orchestrator.submit("오늘 매출 얼마야?")
        print(outcome.query, outcome.rows, outcome.summary)
        await orchestrator.close()
    """

    def __init__(
        self,
        *,
        store: KnowledgeStore,
        session: Session,
        reconciler: KnowledgeReconciler,
        learner: SchemaLearner,
        generator: QueryGenerator,
        gateway: QueryGateway,
        analyzer: ResultAnalyzer,
        timezone: str = DEFAULT_TIMEZONE,
        query_timeout_ms: int = DEFAULT_QUERY_TIMEOUT_MS,
        context_bounds: ContextBounds = ContextBounds(),
        logger: Optional[Any] = None,
    ):
        self.store = store
        self.session = session
        self._reconciler = reconciler
        self._learner = learner
        self._generator = generator
        self._gateway = gateway
        self._analyzer = analyzer
        self._timezone = timezone
        self._query_timeout_ms = query_timeout_ms
        self._bounds = context_bounds
        self._logger = get_component_logger("QueryOrchestrator", logger)

        self._knowledge: Optional[str] = None
        self._schema: Optional[str] = None
        self.schema_diagnostic: Optional[str] = None

        self._submission_seq = 0
        self._current: Optional[asyncio.Task] = None
        self.latest: Optional[QueryOutcome] = None

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def startup(self) -> SessionSnapshot:
        """Reconcile knowledge, load the cached schema, then probe the store."""
        await self.sync_knowledge()
        await self.reload_schema()
        return await self.reconnect()

    async def reconnect(self) -> SessionSnapshot:
        """Probe connectivity; learn the schema when the store answers."""
        snapshot = await self.session.probe()
        if snapshot.is_online:
            await self.learn_schema()
        else:
            self._logger.warning(
                "store_offline", diagnostic=snapshot.diagnostic, timed_out=snapshot.timed_out
            )
        return snapshot

    async def close(self) -> None:
        if self._current is not None and not self._current.done():
            self._current.cancel()
        await self.store.close()

    # =========================================================================
    # KNOWLEDGE AND SCHEMA
    # =========================================================================

    @property
    def knowledge(self) -> Optional[str]:
        return self._knowledge

    @property
    def schema(self) -> Optional[str]:
        return self._schema

    async def sync_knowledge(self, reference: Optional[str] = None) -> ReconcileResult:
        result = await self._reconciler.reconcile(reference)
        self._knowledge = result.text
        return result

    async def reload_knowledge(self) -> Optional[str]:
        self._knowledge = await self.store.get(Bucket.KNOWLEDGE)
        return self._knowledge

    async def save_knowledge(self, text: str) -> Optional[str]:
        """Persist knowledge text, then reload it for the next generation."""
        await self.store.put(Bucket.KNOWLEDGE, text)
        return await self.reload_knowledge()

    async def publish_knowledge(self, reference: str, text: str) -> str:
        """Save locally and return the repository editor URL for *reference*.

        Raises:
            MalformedReference: raw-content or non-GitHub reference.
        """
        edit_url = await self._reconciler.publish(reference, text)
        await self.reload_knowledge()
        return edit_url

    async def reload_schema(self) -> Optional[str]:
        self._schema = await self.store.get(Bucket.SCHEMA)
        return self._schema

    async def save_schema(self, text: str) -> Optional[str]:
        """Replace the schema descriptor by hand; kept until the next introspection."""
        await self.store.put(Bucket.SCHEMA, text)
        return await self.reload_schema()

    async def learn_schema(self) -> Optional[str]:
        """Introspect the store. Failures are recorded in ``schema_diagnostic`` only."""
        if not self.session.is_online:
            self._logger.info("schema_learn_skipped", status=self.session.status.value)
            return None
        try:
            descriptor = await self._learner.learn(self._gateway.execute)
        except SqlPilotError as exc:
            self.schema_diagnostic = describe_failure(exc)
            self._logger.warning(
                "schema_learn_failed", error_type=type(exc).__name__, error=exc.message
            )
            return None
        self.schema_diagnostic = None
        if descriptor:
            self._schema = descriptor
        return descriptor or None

    def build_context(self, user_request: str) -> ContextBundle:
        return build(
            user_request,
            self._schema or "",
            self._knowledge or "",
            bounds=self._bounds,
            tz=self._timezone,
        )

    # =========================================================================
    # SUBMISSIONS
    # =========================================================================

    async def submit(self, user_request: str) -> QueryOutcome:
        """Generate, execute and summarize a natural-language request."""
        return await self._launch(SubmissionKind.NATURAL_LANGUAGE, user_request, None)

    async def replay(self, query: str, name: str = "") -> QueryOutcome:
        """Execute saved query text as-is; no generation, no summary."""
        return await self._launch(SubmissionKind.REPLAY, name, query)

    async def replay_history(self, entry_id: int) -> QueryOutcome:
        entry = await self.store.get_history(entry_id)
        if entry is None:
            raise KeyError(entry_id)
        return await self.replay(entry.query, entry.name)

    async def _launch(self, kind: SubmissionKind, request: str, query: Optional[str]) -> QueryOutcome:
        self._submission_seq += 1
        submission_id = self._submission_seq

        previous = self._current
        if previous is not None and not previous.done():
            previous.cancel()
            self._logger.info("query_superseded", superseded_by=submission_id)

        task = asyncio.ensure_future(self._pipeline(submission_id, kind, request, query))
        self._current = task
        try:
            return await task
        except asyncio.CancelledError:
            if self._current is task:
                raise
            return QueryOutcome(
                submission_id=submission_id, kind=kind, request=request, superseded=True
            )

    async def _pipeline(
        self,
        submission_id: int,
        kind: SubmissionKind,
        request: str,
        query: Optional[str],
    ) -> QueryOutcome:
        outcome = QueryOutcome(submission_id=submission_id, kind=kind, request=request)

        if kind == SubmissionKind.NATURAL_LANGUAGE:
            generation = await self._generator.attempt(request, self.build_context(request))
            outcome.query = generation.text
            if generation.failure is not None:
                outcome.failure = generation.failure
                outcome.error = generation.failure.user_message
                return self._publish(outcome)
        else:
            outcome.query = query or ""

        if not self.session.is_online:
            self._logger.info("executing_while_offline", status=self.session.status.value)

        try:
            outcome.rows = await self._gateway.execute(outcome.query, self._query_timeout_ms)
        except SqlPilotError as exc:
            outcome.failure = exc
            outcome.error = describe_failure(exc)
            return self._publish(outcome)

        if kind == SubmissionKind.NATURAL_LANGUAGE and outcome.rows:
            outcome.summary = await self._analyzer.summarize(outcome.rows) or None

        return self._publish(outcome)

    def _publish(self, outcome: QueryOutcome) -> QueryOutcome:
        if outcome.submission_id == self._submission_seq:
            self.latest = outcome
        else:
            self._logger.info("stale_outcome_dropped", submission_id=outcome.submission_id)
        return outcome

    # =========================================================================
    # HISTORY
    # =========================================================================

    async def save_query(self, name: str, query: str) -> int:
        return await self.store.append_history(name, query)

    async def rename_query(self, entry_id: int, name: str, query: Optional[str] = None) -> HistoryEntry:
        if query is None:
            existing = await self.store.get_history(entry_id)
            if existing is None:
                raise KeyError(entry_id)
            query = existing.query
        return await self.store.update_history(entry_id, name, query)

    async def delete_query(self, entry_id: int) -> bool:
        return await self.store.delete_history(entry_id)

    async def list_queries(self) -> List[HistoryEntry]:
        return await self.store.list_history()

    # =========================================================================
    # BACKUP
    # =========================================================================

    async def export_backup(self) -> Dict[str, Any]:
        return await self.store.export_all()

    async def import_backup(self, payload: Any) -> None:
        """Restore a backup, then refresh the cached knowledge and schema.

        Raises:
            InvalidBackupFormat: nothing was changed.
            StorageError: nothing was changed.
        """
        await self.store.import_all(payload)
        try:
            await self.reload_knowledge()
            await self.reload_schema()
        except StorageError as exc:
            self._logger.warning("reload_after_import_failed", error=exc.message)
            raise
