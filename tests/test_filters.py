"""Tests for filtering, sorting and pagination."""
import pytest

from conftest import make_listing
from nejobs.config import Settings
from nejobs.filters import (
    FilterCriteria,
    FilterEngine,
    category_breakdown,
    paginate,
    passes_salary_floor,
    sort_listings,
    total_pages,
)
from nejobs.models import Category


@pytest.fixture
def engine() -> FilterEngine:
    return FilterEngine(Settings())


class TestSalaryFloor:
    def test_unknown_salary_always_passes(self):
        assert passes_salary_floor(make_listing(), 100000)

    def test_floor_is_inclusive(self):
        assert passes_salary_floor(make_listing(job_max_salary=80000), 80000)

    def test_below_floor_excluded(self):
        assert not passes_salary_floor(make_listing(job_min_salary=50000, job_max_salary=70000), 80000)

    def test_max_preferred_over_min(self):
        assert passes_salary_floor(make_listing(job_min_salary=60000, job_max_salary=90000), 80000)

    def test_min_used_when_no_max(self):
        assert not passes_salary_floor(make_listing(job_min_salary=60000), 80000)

    def test_no_floor(self):
        assert passes_salary_floor(make_listing(job_max_salary=1), 0)


class TestApply:
    def test_category_filter(self, engine):
        listings = [
            make_listing(job_id="remote", job_is_remote=True, job_city="Toronto", job_state="ON", job_country="CA"),
            make_listing(job_id="onsite"),
        ]
        kept = engine.apply(listings, FilterCriteria(categories=[Category.REMOTE]))
        assert [a.listing.id for a in kept] == ["remote"]

    def test_region_filter_only_applies_to_regional_categories(self, engine):
        listings = [
            make_listing(job_id="hartford"),
            make_listing(job_id="boston", job_city="Boston", job_state="MA"),
            make_listing(job_id="remote-us", job_is_remote=True, job_city="Austin", job_state="TX"),
        ]
        kept = engine.apply(listings, FilterCriteria(regions=["MA"]))
        assert {a.listing.id for a in kept} == {"boston", "remote-us"}

    def test_unresolved_region_passes(self, engine):
        kept = engine.apply([make_listing(job_city="Austin", job_state="TX")], FilterCriteria(regions=["MA"]))
        assert len(kept) == 1

    def test_empty_regions_means_all(self, engine):
        kept = engine.apply([make_listing(job_id="a"), make_listing(job_id="b", job_state="VT")], FilterCriteria())
        assert len(kept) == 2

    def test_salary_floor_applied(self, engine):
        listings = [
            make_listing(job_id="low", job_max_salary=40000),
            make_listing(job_id="unknown"),
            make_listing(job_id="high", job_max_salary=120000),
        ]
        kept = engine.apply(listings, FilterCriteria(min_salary=50000, sort_by="salary-high"))
        assert [a.listing.id for a in kept] == ["high", "unknown"]

    def test_annotations(self, engine):
        (a,) = engine.apply([make_listing(job_title="Software Engineer")], FilterCriteria(keywords="engineer"))
        assert a.category is Category.ONSITE_REGIONAL
        assert a.region == "CT"
        assert a.score == 2

    def test_strict_mode_drops_non_qualifying(self):
        engine = FilterEngine(Settings(strict_qualification=True))
        listings = [make_listing(job_id="de", job_city="Berlin", job_state="", job_country="DE"), make_listing()]
        assert [a.listing.id for a in engine.apply(listings)] == ["job-1"]


class TestSort:
    def _annotated(self, engine, **hits):
        return [engine.annotate(make_listing(job_id=k, **v)) for k, v in hits.items()]

    def test_relevance_is_stable(self, engine):
        items = self._annotated(engine, a={}, b={}, c={})
        assert [x.listing.id for x in sort_listings(items, "relevance")] == ["a", "b", "c"]

    def test_date_newest_first_unknown_last(self, engine):
        items = self._annotated(
            engine,
            old={"job_posted_at_datetime_utc": "2026-01-01T00:00:00Z"},
            none={"job_posted_at_datetime_utc": None},
            new={"job_posted_at_datetime_utc": "2026-10-01T00:00:00Z"},
        )
        assert [x.listing.id for x in sort_listings(items, "date")] == ["new", "old", "none"]

    def test_salary_low_unknown_last(self, engine):
        items = self._annotated(
            engine,
            unknown={},
            mid={"job_min_salary": 70000},
            low={"job_max_salary": 50000},
        )
        assert [x.listing.id for x in sort_listings(items, "salary-low")] == ["low", "mid", "unknown"]

    def test_salary_high_unknown_last(self, engine):
        items = self._annotated(engine, unknown={}, a={"job_max_salary": 90000}, b={"job_min_salary": 95000})
        assert [x.listing.id for x in sort_listings(items, "salary-high")] == ["b", "a", "unknown"]


class TestBreakdownAndPages:
    def test_category_breakdown(self, engine):
        items = [
            engine.annotate(make_listing(job_id="1")),
            engine.annotate(make_listing(job_id="2", job_state="MA", job_city="Boston")),
            engine.annotate(make_listing(job_id="3", job_is_remote=True, job_state="TX", job_city="Austin")),
        ]
        assert category_breakdown(items) == {Category.ONSITE_REGIONAL: 2, Category.REMOTE_US: 1}

    def test_total_pages(self):
        assert total_pages(0, 20) == 1
        assert total_pages(20, 20) == 1
        assert total_pages(21, 20) == 2

    def test_paginate_clamps(self):
        items = list(range(45))
        assert paginate(items, 1, 20) == list(range(20))
        assert paginate(items, 3, 20) == list(range(40, 45))
        assert paginate(items, 99, 20) == list(range(40, 45))
        assert paginate(items, 0, 20) == list(range(20))
