"""Tests for batched query execution, merging and dedupe."""
import queue

import pytest

from conftest import FakeFetcher, make_hit, payload
from nejobs.cache import ResponseCache, request_signature
from nejobs.errors import AuthenticationError, RateLimitedError, TransientSearchError
from nejobs.models import QuerySpec
from nejobs.orchestrator import SearchOrchestrator
from nejobs.ratelimit import RateLimiter


def _specs(n: int) -> list[QuerySpec]:
    return [QuerySpec(query=f"q{i}") for i in range(n)]


def _orchestrator(fetcher, *, max_requests=100, cache=None, concurrency=3) -> SearchOrchestrator:
    return SearchOrchestrator(
        fetcher,
        RateLimiter(max_requests=max_requests, window=60),
        cache if cache is not None else ResponseCache(),
        concurrency_limit=concurrency,
    )


class TestExecute:
    def test_merges_and_dedupes_in_spec_order(self):
        fetcher = FakeFetcher({
            "q0": payload(make_hit(job_id="a"), make_hit(job_id="b")),
            "q1": payload(make_hit(job_id="b"), make_hit(job_id="c")),
            "q2": payload(make_hit(job_id="a")),
            "q3": payload(make_hit(job_id="d"), make_hit(job_id="c")),
        })
        listings = _orchestrator(fetcher).execute(_specs(4))
        assert [l.id for l in listings] == ["a", "b", "c", "d"]
        assert sorted(fetcher.queries) == ["q0", "q1", "q2", "q3"]

    def test_cache_hit_skips_network(self):
        cache = ResponseCache()
        spec = QuerySpec(query="q0")
        cache.set(request_signature("search", spec.params()), payload(make_hit(job_id="cached")))
        fetcher = FakeFetcher()

        listings = _orchestrator(fetcher, cache=cache).execute([spec])
        assert [l.id for l in listings] == ["cached"]
        assert fetcher.calls == []

    def test_successful_responses_are_cached(self):
        cache = ResponseCache()
        fetcher = FakeFetcher({"q0": payload(make_hit())})
        orch = _orchestrator(fetcher, cache=cache)
        orch.execute(_specs(1))
        orch.execute(_specs(1))
        assert len(fetcher.calls) == 1
        assert len(cache) == 1

    def test_failures_are_not_cached(self):
        cache = ResponseCache()
        fetcher = FakeFetcher({"q0": TransientSearchError("boom"), "q1": payload(make_hit())})
        _orchestrator(fetcher, cache=cache).execute(_specs(2))
        assert len(cache) == 1

    def test_transient_and_malformed_failures_absorbed(self):
        fetcher = FakeFetcher({
            "q0": TransientSearchError("503", status_code=503),
            "q1": {"unexpected": True},
            "q2": payload(make_hit(job_id="ok")),
        })
        listings = _orchestrator(fetcher).execute(_specs(3))
        assert [l.id for l in listings] == ["ok"]

    def test_all_queries_failing_raises(self):
        fetcher = FakeFetcher({f"q{i}": TransientSearchError("down") for i in range(4)})
        with pytest.raises(TransientSearchError):
            _orchestrator(fetcher).execute(_specs(4))

    def test_all_empty_results_is_not_a_failure(self):
        assert _orchestrator(FakeFetcher()).execute(_specs(3)) == []

    def test_auth_error_propagates_after_batch(self):
        fetcher = FakeFetcher({"q1": AuthenticationError(status_code=401)})
        with pytest.raises(AuthenticationError):
            _orchestrator(fetcher).execute(_specs(6))
        assert sorted(fetcher.queries) == ["q0", "q1", "q2"]

    def test_local_rate_limit_stops_submitting(self):
        fetcher = FakeFetcher()
        with pytest.raises(RateLimitedError) as exc:
            _orchestrator(fetcher, max_requests=2).execute(_specs(3))
        assert len(fetcher.calls) == 2
        assert exc.value.retry_after is not None

    def test_rate_limit_keeps_settled_responses_cached(self):
        cache = ResponseCache()
        fetcher = FakeFetcher({"q0": payload(make_hit(job_id="a")), "q1": payload(make_hit(job_id="b"))})
        with pytest.raises(RateLimitedError):
            _orchestrator(fetcher, max_requests=2, cache=cache).execute(_specs(3))
        assert len(cache) == 2

        fetcher.calls.clear()
        listings = _orchestrator(fetcher, max_requests=1, cache=cache).execute(_specs(3))
        assert [l.id for l in listings] == ["a", "b"]
        assert fetcher.queries == ["q2"]

    def test_auth_error_keeps_sibling_responses_cached(self):
        cache = ResponseCache()
        fetcher = FakeFetcher({"q1": AuthenticationError(status_code=403), "q2": {"unexpected": True}})
        with pytest.raises(AuthenticationError):
            _orchestrator(fetcher, cache=cache).execute(_specs(3))
        assert len(cache) == 1
        assert cache.get(request_signature("search", QuerySpec(query="q0").params())) is not None

    def test_no_specs(self):
        assert _orchestrator(FakeFetcher()).execute([]) == []


class TestProgress:
    def test_one_event_per_batch(self):
        fetcher = FakeFetcher({f"q{i}": payload(make_hit(job_id=f"id{i}")) for i in range(7)})
        events = list(_orchestrator(fetcher).stream(_specs(7)))

        assert [(e.completed, e.total) for e in events] == [(3, 7), (6, 7), (7, 7)]
        assert [len(e.listings) for e in events] == [3, 3, 1]
        assert events[-1].done and not events[0].done

    def test_events_only_carry_new_listings(self):
        fetcher = FakeFetcher({
            "q0": payload(make_hit(job_id="a")),
            "q1": payload(make_hit(job_id="a"), make_hit(job_id="b")),
        })
        events = list(_orchestrator(fetcher, concurrency=1).stream(_specs(2)))
        assert [[l.id for l in e.listings] for e in events] == [["a"], ["b"]]

    def test_failed_count_reported(self):
        fetcher = FakeFetcher({"q0": TransientSearchError("x")})
        (event,) = list(_orchestrator(fetcher).stream(_specs(2)))
        assert event.failed == 1

    def test_execute_publishes_to_queue(self):
        fetcher = FakeFetcher({"q0": payload(make_hit())})
        events: queue.Queue = queue.Queue()
        _orchestrator(fetcher, concurrency=2).execute(_specs(4), progress=events)
        received = []
        while not events.empty():
            received.append(events.get_nowait())
        assert [e.completed for e in received] == [2, 4]


def test_concurrency_limit_must_be_positive():
    with pytest.raises(ValueError):
        _orchestrator(FakeFetcher(), concurrency=0)
