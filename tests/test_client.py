"""Tests for the JSearch client (HTTP faked with unittest.mock)."""
from unittest.mock import MagicMock

import pytest
import requests

from conftest import make_hit, payload
from nejobs.client import JSearchClient, parse_listings
from nejobs.errors import (
    AuthenticationError,
    ConfigurationError,
    ErrorKind,
    MalformedResponseError,
    RateLimitedError,
    TransientSearchError,
)


def _response(status: int = 200, body=None, json_error: bool = False) -> MagicMock:
    r = MagicMock()
    r.status_code = status
    r.ok = 200 <= status < 300
    if json_error:
        r.json.side_effect = ValueError("Expecting value")
    else:
        r.json.return_value = body if body is not None else payload()
    return r


def _client(response=None, side_effect=None) -> tuple[JSearchClient, MagicMock]:
    session = MagicMock()
    if side_effect is not None:
        session.get.side_effect = side_effect
    else:
        session.get.return_value = response
    return JSearchClient("secret-key", session=session), session


class TestFetch:
    def test_success_returns_body_and_sends_headers(self):
        client, session = _client(_response(body=payload(make_hit())))
        body = client.fetch("search", {"query": "engineer remote"})

        assert body["data"][0]["job_id"] == "job-1"
        args, kwargs = session.get.call_args
        assert args[0] == "https://jsearch.p.rapidapi.com/search"
        assert kwargs["params"] == {"query": "engineer remote"}
        assert kwargs["headers"] == {
            "X-RapidAPI-Key": "secret-key",
            "X-RapidAPI-Host": "jsearch.p.rapidapi.com",
        }
        assert kwargs["timeout"] == 15.0

    def test_missing_key_fails_before_any_request(self):
        session = MagicMock()
        client = JSearchClient("  ", session=session)
        with pytest.raises(ConfigurationError):
            client.fetch("search", {"query": "x"})
        session.get.assert_not_called()

    def test_429_is_rate_limited(self):
        client, _ = _client(_response(429))
        with pytest.raises(RateLimitedError) as exc:
            client.fetch("search", {})
        assert exc.value.kind is ErrorKind.RATE_LIMITED
        assert exc.value.retryable is False

    @pytest.mark.parametrize("status", [401, 403])
    def test_auth_statuses(self, status):
        client, _ = _client(_response(status))
        with pytest.raises(AuthenticationError) as exc:
            client.fetch("search", {})
        assert exc.value.status_code == status
        assert exc.value.retryable is False

    @pytest.mark.parametrize("status", [400, 500, 503])
    def test_other_failures_are_transient(self, status):
        client, _ = _client(_response(status))
        with pytest.raises(TransientSearchError) as exc:
            client.fetch("search", {})
        assert exc.value.status_code == status
        assert exc.value.retryable is True

    def test_network_error_is_transient(self):
        client, _ = _client(side_effect=requests.ConnectionError("offline"))
        with pytest.raises(TransientSearchError):
            client.fetch("search", {})

    def test_undecodable_body_is_malformed(self):
        client, _ = _client(_response(json_error=True))
        with pytest.raises(MalformedResponseError) as exc:
            client.fetch("search", {})
        assert exc.value.kind is ErrorKind.MALFORMED

    def test_search_parses_listings(self):
        client, _ = _client(_response(body=payload(make_hit(), make_hit(job_id="job-2"))))
        assert [l.id for l in client.search({"query": "x"})] == ["job-1", "job-2"]


class TestParseListings:
    @pytest.mark.parametrize("body", [None, [], {}, {"data": None}, {"data": "nope"}])
    def test_missing_data_array_is_malformed(self, body):
        with pytest.raises(MalformedResponseError):
            parse_listings(body)

    def test_skips_hits_without_id(self):
        body = payload(make_hit(job_id=""), make_hit(job_id="ok"), "garbage")
        assert [l.id for l in parse_listings(body)] == ["ok"]

    def test_maps_fields(self):
        hit = make_hit(
            job_is_remote=True,
            job_min_salary=90000,
            job_max_salary="120000",
            job_highlights={"Qualifications": ["SQL"], "Responsibilities": ["Ship"]},
        )
        (listing,) = parse_listings(payload(hit))
        assert listing.is_remote
        assert listing.min_salary == 90000
        assert listing.max_salary == 120000
        assert listing.qualifications == ("SQL",)
        assert listing.responsibilities == ("Ship",)

    def test_non_boolean_remote_flag_is_not_remote(self):
        (listing,) = parse_listings(payload(make_hit(job_is_remote="true")))
        assert listing.is_remote is False
