"""Per-session search context.

A ``JobSearchSession`` owns everything that lives for one application
session: the credential, the rate-limit log and the response cache. Front
ends create one and pass it around instead of relying on module globals;
tests inject fakes through the constructor.
"""
from __future__ import annotations

import itertools
import queue
import threading
from dataclasses import dataclass, field

from nejobs.cache import ResponseCache
from nejobs.client import JSearchClient
from nejobs.config import API_KEY_STORAGE_KEY, Settings, resolve_api_key
from nejobs.errors import ConfigurationError, SearchError
from nejobs.log import get_logger
from nejobs.models import Listing, QuerySpec, SearchOptions
from nejobs.orchestrator import Fetcher, SearchOrchestrator, SearchProgress
from nejobs.planner import plan
from nejobs.ratelimit import RateLimiter
from nejobs.retry import retry
from nejobs.storage import LocalStore

log = get_logger(__name__)


@dataclass
class SearchResult:
    listings: list[Listing] = field(default_factory=list)
    generation: int = 0
    queries: int = 0
    stale: bool = False


class JobSearchSession:
    def __init__(
        self,
        settings: Settings | None = None,
        api_key: str | None = None,
        *,
        store: LocalStore | None = None,
        client: Fetcher | None = None,
        rate_limiter: RateLimiter | None = None,
        cache: ResponseCache | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.store = store
        self.rate_limiter = rate_limiter or RateLimiter(
            max_requests=self.settings.rate_limit_max_requests,
            window=self.settings.rate_limit_window_seconds,
        )
        self.cache = cache or ResponseCache(ttl=self.settings.cache_ttl_seconds)
        self._client = client
        self._owns_client = client is None
        self._api_key = resolve_api_key(api_key, store)
        self._generation = 0
        self._lock = threading.Lock()

    # ── Credential ──────────────────────────────────────────────────────

    @property
    def api_key(self) -> str:
        return self._api_key

    @property
    def has_api_key(self) -> bool:
        return bool(self._api_key)

    def set_api_key(self, key: str, persist: bool = True) -> None:
        self._api_key = (key or "").strip()
        if self._owns_client:
            self._client = None
        if persist and self.store is not None:
            self.store.set(API_KEY_STORAGE_KEY, self._api_key)
        log.info("API key %s", "updated" if self._api_key else "cleared")

    def _get_client(self) -> Fetcher:
        if self._client is None:
            self._client = JSearchClient(
                self._api_key,
                base_url=self.settings.api_base_url,
                host=self.settings.api_host,
                timeout=self.settings.request_timeout,
            )
        return self._client

    # ── Search ──────────────────────────────────────────────────────────

    def plan(self, keywords: str, options: SearchOptions | None = None) -> list[QuerySpec]:
        return plan(keywords, options, self.settings.regions)

    def orchestrator(self) -> SearchOrchestrator:
        return SearchOrchestrator(
            self._get_client(),
            self.rate_limiter,
            self.cache,
            concurrency_limit=self.settings.concurrency_limit,
        )

    @property
    def generation(self) -> int:
        return self._generation

    def search(
        self,
        keywords: str,
        options: SearchOptions | None = None,
        progress: "queue.Queue[SearchProgress] | None" = None,
    ) -> SearchResult:
        """Plan, execute with retry, and tag the result with its generation.

        A result superseded by a later ``search`` call comes back empty with
        ``stale=True``.
        """
        keywords = (keywords or "").strip()
        if not keywords:
            raise ValueError("Please enter search keywords.")
        if not self.has_api_key:
            raise ConfigurationError("API key not configured. Please add your RapidAPI key.")

        with self._lock:
            self._generation += 1
            generation = self._generation

        specs = self.plan(keywords, options)
        orchestrator = self.orchestrator()
        attempts = itertools.count(1)

        @retry(
            max_attempts=1 + self.settings.retry_attempts,
            base_delay=self.settings.retry_base_delay,
            backoff="linear",
            jitter=False,
            retryable=(SearchError,),
        )
        def run() -> list[Listing]:
            return orchestrator.execute(specs, progress, attempt=next(attempts))

        listings = run()

        with self._lock:
            stale = generation != self._generation
        if stale:
            log.info("Discarding results of superseded search #%d", generation)
            return SearchResult(generation=generation, queries=len(specs), stale=True)
        return SearchResult(listings=listings, generation=generation, queries=len(specs))
