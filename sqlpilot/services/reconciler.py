"""Remote Knowledge Reconciler.

Keeps the local knowledge snapshot in step with a hosted text file:

    reference -> raw-content URL -> GET (no cache) -> persist -> REMOTE
                                      | any failure
                                      v
                              local snapshot -> LOCAL
                                      | none
                                      v
                               built-in seed -> SEED (persisted)

reconcile() never raises; every failure is logged and absorbed.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import httpx

from sqlpilot._logging import get_component_logger
from sqlpilot.config.settings import DEFAULT_KNOWLEDGE_URL
from sqlpilot.config.thresholds import REMOTE_KNOWLEDGE_TIMEOUT_S
from sqlpilot.database.knowledge_store import Bucket, KnowledgeStore
from sqlpilot.errors import StorageError
from sqlpilot.prompts.knowledge_base import DEFAULT_KNOWLEDGE

RAW_HOST = "raw.githubusercontent.com"
REPOSITORY_HOSTS = {"github.com", "www.github.com"}

NO_CACHE_HEADERS = {"Cache-Control": "no-cache", "Pragma": "no-cache"}


class MalformedReference(ValueError):
    """The knowledge reference is not a usable repository file URL."""


class KnowledgeSource(str, Enum):
    REMOTE = "remote"
    LOCAL = "local"
    SEED = "seed"


@dataclass
class ReconcileResult:
    text: str
    source: KnowledgeSource


def _split(reference: str):
    if not reference:
        raise MalformedReference("empty reference")
    try:
        parts = urlsplit(reference.strip())
        host = (parts.hostname or "").lower()
    except ValueError as exc:
        raise MalformedReference(str(exc)) from exc
    if parts.scheme not in ("http", "https") or not host:
        raise MalformedReference(f"not an http(s) URL: {reference}")
    return parts, host


def _without_token(query: str) -> str:
    pairs = [(k, v) for k, v in parse_qsl(query, keep_blank_values=True) if k != "token"]
    return urlencode(pairs)


def to_raw_url(reference: str) -> str:
    """Normalize a repository file reference to its raw-content URL.

    ``https://github.com/o/r/blob/main/f.txt`` becomes
    ``https://raw.githubusercontent.com/o/r/main/f.txt``. Raw URLs pass
    through. ``token`` query parameters are dropped in both cases.

    Raises:
        MalformedReference: not a GitHub URL, or unparsable.
    """
    parts, host = _split(reference)
    if host == RAW_HOST:
        path = parts.path
    elif host in REPOSITORY_HOSTS:
        path = parts.path.replace("/blob/", "/", 1)
    else:
        raise MalformedReference(f"not a GitHub reference: {reference}")
    return urlunsplit((parts.scheme, RAW_HOST, path, _without_token(parts.query), parts.fragment))


def to_edit_url(reference: str) -> str:
    """Repository web-editor URL for a ``/blob/`` file reference.

    Raises:
        MalformedReference: raw-content or non-GitHub reference.
    """
    parts, host = _split(reference)
    if host == RAW_HOST:
        raise MalformedReference("raw-content URLs cannot be edited; use the repository file URL")
    if host not in REPOSITORY_HOSTS:
        raise MalformedReference(f"not a GitHub reference: {reference}")
    path = parts.path.replace("/blob/", "/edit/", 1)
    return urlunsplit((parts.scheme, parts.netloc, path, parts.query, parts.fragment))


class KnowledgeReconciler:
    """
    Loads the authoritative knowledge text.

    Usage:
        reconciler = KnowledgeReconciler(store)
        result = await reconciler.reconcile()
        print(result.source, len(result.text))
    """

    def __init__(
        self,
        store: KnowledgeStore,
        default_reference: str = DEFAULT_KNOWLEDGE_URL,
        seed: str = DEFAULT_KNOWLEDGE,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = REMOTE_KNOWLEDGE_TIMEOUT_S,
        logger: Optional[Any] = None,
    ):
        self._store = store
        self._default_reference = default_reference
        self._seed = seed
        self._transport = transport
        self._timeout = timeout
        self._logger = get_component_logger("KnowledgeReconciler", logger)

    async def reconcile(self, reference: Optional[str] = None) -> ReconcileResult:
        """Fetch the hosted knowledge, falling back to the local snapshot or the seed.

        Args:
            reference: Reference to use (and remember) instead of the stored one.
        """
        reference = await self._resolve_reference(reference)

        text = await self._fetch(reference)
        if text is not None:
            await self._save(Bucket.KNOWLEDGE, text)
            self._logger.info("knowledge_loaded", source=KnowledgeSource.REMOTE.value, length=len(text))
            return ReconcileResult(text=text, source=KnowledgeSource.REMOTE)

        try:
            local = await self._store.get(Bucket.KNOWLEDGE)
        except StorageError as exc:
            self._logger.warning("knowledge_local_read_failed", error=str(exc))
            local = None
        if local:
            self._logger.info("knowledge_loaded", source=KnowledgeSource.LOCAL.value, length=len(local))
            return ReconcileResult(text=local, source=KnowledgeSource.LOCAL)

        await self._save(Bucket.KNOWLEDGE, self._seed)
        self._logger.info("knowledge_loaded", source=KnowledgeSource.SEED.value, length=len(self._seed))
        return ReconcileResult(text=self._seed, source=KnowledgeSource.SEED)

    async def publish(self, reference: str, text: str) -> str:
        """Save *reference* and *text* locally; return the editor URL to paste into.

        Raises:
            MalformedReference: the reference cannot be edited (raw or non-GitHub).
            StorageError: the local save failed.
        """
        edit_url = to_edit_url(reference)
        await self._store.put(Bucket.REMOTE_REFERENCE, reference)
        await self._store.put(Bucket.KNOWLEDGE, text)
        self._logger.info("knowledge_published", edit_url=edit_url, length=len(text))
        return edit_url

    async def _resolve_reference(self, reference: Optional[str]) -> str:
        if reference:
            await self._save(Bucket.REMOTE_REFERENCE, reference)
            return reference
        try:
            stored = await self._store.get(Bucket.REMOTE_REFERENCE)
        except StorageError as exc:
            self._logger.warning("knowledge_reference_read_failed", error=str(exc))
            stored = None
        if stored:
            return stored
        await self._save(Bucket.REMOTE_REFERENCE, self._default_reference)
        self._logger.info("knowledge_reference_defaulted", reference=self._default_reference)
        return self._default_reference

    async def _fetch(self, reference: str) -> Optional[str]:
        try:
            raw_url = to_raw_url(reference)
        except MalformedReference as exc:
            self._logger.warning("knowledge_reference_malformed", reference=reference, error=str(exc))
            return None

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                headers=NO_CACHE_HEADERS,
                transport=self._transport,
                follow_redirects=True,
            ) as client:
                resp = await client.get(raw_url)
        except httpx.HTTPError as exc:
            self._logger.warning("knowledge_fetch_failed", url=raw_url, error=str(exc) or type(exc).__name__)
            return None

        if not resp.is_success:
            self._logger.warning("knowledge_fetch_failed", url=raw_url, status_code=resp.status_code)
            return None
        return resp.text

    async def _save(self, bucket: Bucket, value: str) -> None:
        try:
            await self._store.put(bucket, value)
        except StorageError as exc:
            self._logger.warning("knowledge_save_failed", bucket=bucket.value, error=str(exc))
