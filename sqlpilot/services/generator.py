"""Natural-Language Query Generator.

generate() always returns query text. A missing credential or a failed
model call yields a placeholder query instead of an exception; callers
that need to know which condition occurred use attempt().
"""

import re
import time
from dataclasses import dataclass
from typing import Any, Optional

from querywire.client import CompletionClient
from querywire.deadline import Deadline
from querywire.types import CompletionRequest, Message, WireError

from sqlpilot._logging import get_component_logger
from sqlpilot.config.thresholds import DEFAULT_GENERATION_TIMEOUT_S, GENERATION_TEMPERATURE
from sqlpilot.errors import GenerationError, GenerationUnavailable, SqlPilotError
from sqlpilot.prompts.registry import PromptRegistry
from sqlpilot.prompts.sql_generation import SQL_GENERATION_PROMPT
from sqlpilot.services.context_builder import ContextBundle

MISSING_KEY_PLACEHOLDER = (
    "-- API Key not configured. Set SQLPILOT_LLM_API_KEY (or API_KEY) in the environment."
)
ERROR_PLACEHOLDER = "SELECT 'Error generating query' as Status"

_FENCES = re.compile(r"```sql|```")


def strip_fences(text: str) -> str:
    """Remove ```sql / ``` wrappers the model adds despite instructions."""
    return _FENCES.sub("", text or "").strip()


@dataclass
class Generation:
    text: str
    failure: Optional[SqlPilotError] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


class QueryGenerator:
    def __init__(
        self,
        client: CompletionClient,
        registry: Optional[PromptRegistry] = None,
        timeout_s: float = DEFAULT_GENERATION_TIMEOUT_S,
        logger: Optional[Any] = None,
    ):
        self._client = client
        self._registry = registry or PromptRegistry.get_instance()
        self._timeout_s = timeout_s
        self._logger = get_component_logger("QueryGenerator", logger)

    def build_request(self, user_request: str, bundle: ContextBundle) -> CompletionRequest:
        prompt = self._registry.lookup(SQL_GENERATION_PROMPT)
        text = prompt.render(
            context=bundle.render(),
            sales_table=bundle.time.sales_table,
            today=bundle.time.today,
            request=user_request,
        )
        return CompletionRequest(
            messages=[Message(role="user", content=text)],
            system=prompt.system_instruction,
            temperature=GENERATION_TEMPERATURE,
        )

    async def attempt(self, user_request: str, bundle: ContextBundle) -> Generation:
        if not self._client.ready:
            self._logger.warning("generation_unavailable", reason="missing_credential")
            return Generation(MISSING_KEY_PLACEHOLDER, GenerationUnavailable())

        request = self.build_request(user_request, bundle)
        started = time.perf_counter()
        try:
            result = await self._client.complete(request, Deadline(self._timeout_s))
        except WireError as err:
            self._logger.warning(
                "generation_failed",
                category=err.category.value,
                error=err.message,
                status_code=err.status_code,
            )
            return Generation(ERROR_PLACEHOLDER, GenerationError(err.message))

        query = strip_fences(result.text)
        self._logger.info(
            "query_generated",
            request_length=len(user_request),
            query_length=len(query),
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        return Generation(query)

    async def generate(self, user_request: str, bundle: ContextBundle) -> str:
        return (await self.attempt(user_request, bundle)).text
