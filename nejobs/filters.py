"""Annotate, filter and sort listings for display."""
from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, Sequence, TypeVar

from nejobs.classifier import Classifier
from nejobs.config import Settings
from nejobs.log import get_logger
from nejobs.models import (
    ALL_CATEGORIES,
    REGIONAL_CATEGORIES,
    AnnotatedListing,
    Category,
    Listing,
)
from nejobs.scorer import score_listing

log = get_logger(__name__)

T = TypeVar("T")

SORT_KEYS: tuple[str, ...] = ("relevance", "date", "salary-high", "salary-low")


@dataclass
class FilterCriteria:
    categories: list[Category] = field(default_factory=lambda: list(ALL_CATEGORIES))
    regions: list[str] = field(default_factory=list)
    min_salary: float = 0
    keywords: str = ""
    themes: list[str] = field(default_factory=list)
    sort_by: str = "relevance"


def passes_salary_floor(listing: Listing, min_salary: float) -> bool:
    """Unknown salary (0) never fails a floor; the floor itself is inclusive."""
    if not min_salary or min_salary <= 0:
        return True
    best = listing.best_salary
    return best == 0 or best >= min_salary


def passes_region(annotated: AnnotatedListing, regions: Iterable[str]) -> bool:
    """Only regional categories with a resolved region are region-checked."""
    if annotated.category not in REGIONAL_CATEGORIES or annotated.region is None:
        return True
    return annotated.region in {r.upper() for r in regions}


def sort_listings(items: list[AnnotatedListing], sort_by: str) -> list[AnnotatedListing]:
    if sort_by == "relevance":
        return sorted(items, key=lambda a: a.score, reverse=True)
    if sort_by == "date":
        return sorted(items, key=lambda a: a.listing.posted_epoch, reverse=True)
    if sort_by == "salary-high":
        return sorted(items, key=lambda a: a.listing.best_salary, reverse=True)
    if sort_by == "salary-low":
        return sorted(
            items,
            key=lambda a: a.listing.min_salary or a.listing.max_salary or math.inf,
        )
    return list(items)


def category_breakdown(items: Iterable[AnnotatedListing]) -> dict[Category, int]:
    return dict(Counter(a.category for a in items))


def total_pages(count: int, per_page: int) -> int:
    return max(math.ceil(count / per_page), 1) if per_page > 0 else 1


def paginate(items: Sequence[T], page: int, per_page: int) -> list[T]:
    page = min(max(page, 1), total_pages(len(items), per_page))
    start = (page - 1) * per_page
    return list(items[start:start + per_page])


class FilterEngine:
    def __init__(self, settings: Settings | None = None, classifier: Classifier | None = None) -> None:
        self.settings = settings or Settings()
        self.classifier = classifier or Classifier(
            self.settings.regions,
            home_country=self.settings.home_country,
            strict=self.settings.strict_qualification,
        )

    def annotate(self, listing: Listing, keywords: str = "", themes: Iterable[str] | None = None) -> AnnotatedListing:
        return AnnotatedListing(
            listing=listing,
            verdict=self.classifier.classify(listing),
            score=score_listing(
                listing,
                keywords,
                themes,
                emphasis_topics=self.settings.emphasis_topics,
                emphasis_roles=self.settings.emphasis_roles,
            ),
            region=self.classifier.resolve_region(listing),
        )

    def apply(self, listings: Iterable[Listing], criteria: FilterCriteria | None = None) -> list[AnnotatedListing]:
        criteria = criteria or FilterCriteria()
        categories = set(criteria.categories)
        regions = criteria.regions or self.settings.region_codes

        kept: list[AnnotatedListing] = []
        total = 0
        for listing in listings:
            total += 1
            annotated = self.annotate(listing, criteria.keywords, criteria.themes)
            if not annotated.verdict.qualifies:
                continue
            if annotated.category not in categories:
                continue
            if not passes_region(annotated, regions):
                continue
            if not passes_salary_floor(listing, criteria.min_salary):
                continue
            kept.append(annotated)

        log.info("Filtered %d listings → %d kept (sort=%s)", total, len(kept), criteria.sort_by)
        return sort_listings(kept, criteria.sort_by)
