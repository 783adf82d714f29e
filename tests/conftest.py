"""Shared fixtures and factories for the test suite."""
from __future__ import annotations

import os
import threading
from typing import Any

os.environ.setdefault("NEJOBS_NO_LOG_FILE", "1")

import pytest

from nejobs.config import Region, Settings
from nejobs.models import Listing
from nejobs.storage import LocalStore


def make_hit(**overrides: Any) -> dict[str, Any]:
    """A JSearch ``data`` entry for an on-site job in Hartford, CT."""
    hit = {
        "job_id": "job-1",
        "job_title": "Software Engineer",
        "employer_name": "Acme Corp",
        "employer_logo": "",
        "job_is_remote": False,
        "job_city": "Hartford",
        "job_state": "CT",
        "job_country": "US",
        "job_employment_type": "FULLTIME",
        "job_min_salary": None,
        "job_max_salary": None,
        "job_posted_at_datetime_utc": "2026-10-01T12:00:00.000Z",
        "job_apply_link": "https://www.example.com/apply/1",
        "job_description": "Build and maintain internal tools.",
        "job_highlights": {"Qualifications": [], "Responsibilities": []},
        "job_publisher": "Example Jobs",
    }
    hit.update(overrides)
    return hit


def make_listing(**overrides: Any) -> Listing:
    return Listing.from_api(make_hit(**overrides))


def payload(*hits: dict[str, Any]) -> dict[str, Any]:
    return {"status": "OK", "data": list(hits)}


class FakeClock:
    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeFetcher:
    """Answers ``fetch`` from a query → payload/exception map and records calls.

    Queries missing from the map get an empty result.
    """

    def __init__(self, responses: dict[str, Any] | None = None) -> None:
        self.responses = responses or {}
        self.calls: list[dict[str, str]] = []
        self._lock = threading.Lock()

    def fetch(self, endpoint: str, params: dict[str, str]) -> dict[str, Any]:
        with self._lock:
            self.calls.append(dict(params))
        result = self.responses.get(params["query"], payload())
        if callable(result):
            result = result(params)
        if isinstance(result, BaseException):
            raise result
        return result

    @property
    def queries(self) -> list[str]:
        return [c["query"] for c in self.calls]


NEW_ENGLAND_TWO = (
    Region("CT", "Connecticut", ("Hartford", "New Haven")),
    Region("MA", "Massachusetts", ("Boston", "Cambridge")),
)


@pytest.fixture
def store(tmp_path) -> LocalStore:
    return LocalStore(tmp_path / "data")


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(data_dir=tmp_path / "data")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(autouse=True)
def _no_env_key(monkeypatch):
    monkeypatch.delenv("JSEARCH_API_KEY", raising=False)
