"""Result Analyzer: a short natural-language insight over query rows."""

from typing import Any, Dict, List, Optional

from querywire.client import CompletionClient
from querywire.deadline import Deadline
from querywire.types import CompletionRequest, Message, WireError

from sqlpilot._logging import get_component_logger
from sqlpilot._serialization import to_json
from sqlpilot.config.thresholds import DEFAULT_SUMMARY_TIMEOUT_S, SUMMARY_PREVIEW_ROWS
from sqlpilot.prompts.registry import PromptRegistry
from sqlpilot.prompts.result_summary import RESULT_SUMMARY_PROMPT

NO_DATA_MESSAGE = "조회된 데이터가 없습니다."
FAILURE_MESSAGE = "분석 중 오류 발생"
UNREADABLE_MESSAGE = "결과 분석 불가"


class ResultAnalyzer:
    """Never raises: empty input and failures map to fixed messages.

    Without a credential the summary is the empty string (no summary).
    """

    def __init__(
        self,
        client: CompletionClient,
        registry: Optional[PromptRegistry] = None,
        timeout_s: float = DEFAULT_SUMMARY_TIMEOUT_S,
        preview_rows: int = SUMMARY_PREVIEW_ROWS,
        logger: Optional[Any] = None,
    ):
        self._client = client
        self._registry = registry or PromptRegistry.get_instance()
        self._timeout_s = timeout_s
        self._preview_rows = preview_rows
        self._logger = get_component_logger("ResultAnalyzer", logger)

    def preview(self, rows: List[Dict[str, Any]]) -> str:
        return to_json(rows[: self._preview_rows])

    async def summarize(self, rows: List[Dict[str, Any]]) -> str:
        if not rows:
            return NO_DATA_MESSAGE
        if not self._client.ready:
            self._logger.debug("summary_skipped", reason="missing_credential")
            return ""

        prompt = self._registry.lookup(RESULT_SUMMARY_PROMPT)
        request = CompletionRequest(
            messages=[Message(role="user", content=prompt.render(preview=self.preview(rows)))],
            system=prompt.system_instruction,
        )
        try:
            result = await self._client.complete(request, Deadline(self._timeout_s))
        except WireError as err:
            self._logger.warning("summary_failed", category=err.category.value, error=err.message)
            return FAILURE_MESSAGE

        summary = result.text.strip()
        self._logger.info("summary_generated", row_count=len(rows), length=len(summary))
        return summary or UNREADABLE_MESSAGE
