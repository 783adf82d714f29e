"""Run planned queries in bounded batches, merge and deduplicate results."""
from __future__ import annotations

import queue
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Protocol

from nejobs.cache import ResponseCache, request_signature
from nejobs.client import parse_listings
from nejobs.errors import MalformedResponseError, RateLimitedError, SearchError, TransientSearchError
from nejobs.log import get_logger
from nejobs.models import Listing, QuerySpec
from nejobs.ratelimit import RateLimiter

log = get_logger(__name__)


class Fetcher(Protocol):
    def fetch(self, endpoint: str, params: dict[str, str]) -> dict[str, Any]: ...


@dataclass
class SearchProgress:
    """Emitted once per settled batch; ``listings`` holds only new, unique ones.

    ``completed`` only grows within one ``attempt``. A retried plan starts
    over from zero with ``attempt`` bumped, so listeners should reset their
    running totals when it changes.
    """

    completed: int
    total: int
    listings: list[Listing] = field(default_factory=list)
    failed: int = 0
    attempt: int = 1

    @property
    def done(self) -> bool:
        return self.completed >= self.total


@dataclass
class _Outcome:
    spec: QuerySpec
    key: str
    payload: Any = None
    cached: bool = False
    error: SearchError | None = None
    listings: list[Listing] = field(default_factory=list)


class SearchOrchestrator:
    def __init__(
        self,
        client: Fetcher,
        rate_limiter: RateLimiter,
        cache: ResponseCache,
        *,
        concurrency_limit: int = 3,
        endpoint: str = "search",
    ) -> None:
        if concurrency_limit < 1:
            raise ValueError("concurrency_limit must be at least 1")
        self.client = client
        self.rate_limiter = rate_limiter
        self.cache = cache
        self.concurrency_limit = concurrency_limit
        self.endpoint = endpoint

    def _run_batch(self, batch: list[QuerySpec]) -> list[_Outcome]:
        """Issue one batch concurrently and wait for every call to settle.

        Cache and rate-limiter access stays on the calling thread. Settled,
        well-formed responses are cached before any error leaves the batch.
        """
        outcomes = [_Outcome(spec, request_signature(self.endpoint, spec.params())) for spec in batch]
        denied: RateLimitedError | None = None

        with ThreadPoolExecutor(max_workers=len(batch)) as pool:
            futures = {}
            for outcome in outcomes:
                cached = self.cache.get(outcome.key)
                if cached is not None:
                    outcome.payload = cached
                    outcome.cached = True
                    log.debug("Cache hit: %s", outcome.spec.query)
                    continue
                if not self.rate_limiter.allow():
                    denied = RateLimitedError(retry_after=self.rate_limiter.retry_after())
                    break
                self.rate_limiter.record()
                futures[pool.submit(self.client.fetch, self.endpoint, outcome.spec.params())] = outcome

            for future in as_completed(futures):
                outcome = futures[future]
                try:
                    outcome.payload = future.result()
                except SearchError as exc:
                    outcome.error = exc

        settled = [o for o in outcomes if o.cached] + list(futures.values())
        for outcome in settled:
            if outcome.error is not None:
                continue
            try:
                outcome.listings = parse_listings(outcome.payload)
            except SearchError as exc:
                outcome.error = exc
                continue
            if not outcome.cached:
                self.cache.set(outcome.key, outcome.payload)

        if denied is not None:
            log.warning("Local rate limit reached (%d calls per %.0fs)",
                        self.rate_limiter.max_requests, self.rate_limiter.window)
            raise denied
        return outcomes

    def stream(self, specs: Iterable[QuerySpec], *, attempt: int = 1) -> Iterator[SearchProgress]:
        specs = list(specs)
        total = len(specs)
        seen: set[str] = set()
        completed = 0
        failed = 0

        for start in range(0, total, self.concurrency_limit):
            batch = specs[start:start + self.concurrency_limit]
            outcomes = self._run_batch(batch)

            for outcome in outcomes:
                if outcome.error is not None and not outcome.error.retryable:
                    raise outcome.error

            fresh: list[Listing] = []
            batch_failed = 0
            for outcome in outcomes:
                if isinstance(outcome.error, MalformedResponseError):
                    log.warning("Query %r returned a malformed response: %s", outcome.spec.query, outcome.error)
                    batch_failed += 1
                    continue
                if outcome.error is not None:
                    log.warning("Query %r failed: %s", outcome.spec.query, outcome.error)
                    batch_failed += 1
                    continue
                for listing in outcome.listings:
                    if listing.id not in seen:
                        seen.add(listing.id)
                        fresh.append(listing)

            completed += len(batch)
            failed += batch_failed
            log.info("Searched %d/%d queries (+%d new listings, %d failed)",
                     completed, total, len(fresh), batch_failed)
            yield SearchProgress(completed=completed, total=total, listings=fresh,
                                 failed=batch_failed, attempt=attempt)

        if total and failed == total:
            raise TransientSearchError(f"All {total} search queries failed")

    def execute(
        self,
        specs: Iterable[QuerySpec],
        progress: "queue.Queue[SearchProgress] | None" = None,
        *,
        attempt: int = 1,
    ) -> list[Listing]:
        """Run every query; progress events go to *progress* when given."""
        listings: list[Listing] = []
        for event in self.stream(specs, attempt=attempt):
            listings.extend(event.listings)
            if progress is not None:
                progress.put(event)
        log.info("Total unique listings: %d", len(listings))
        return listings
