"""Data models for listings, searches, alerts and saved jobs."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class Category(str, Enum):
    REMOTE = "remote"
    REMOTE_US = "remote-us"
    HYBRID_REGIONAL = "hybrid-regional"
    ONSITE_REGIONAL = "onsite-regional"
    REMOTE_REGIONAL_COMPANY = "remote-regional-company"

    @property
    def label(self) -> str:
        return CATEGORY_LABELS[self]


CATEGORY_LABELS: dict[Category, str] = {
    Category.REMOTE: "Remote",
    Category.REMOTE_US: "Remote (US)",
    Category.HYBRID_REGIONAL: "Hybrid (NE)",
    Category.ONSITE_REGIONAL: "On-site (NE)",
    Category.REMOTE_REGIONAL_COMPANY: "Remote (NE Co.)",
}

ALL_CATEGORIES: tuple[Category, ...] = tuple(Category)

REGIONAL_CATEGORIES: frozenset[Category] = frozenset({
    Category.HYBRID_REGIONAL,
    Category.ONSITE_REGIONAL,
    Category.REMOTE_REGIONAL_COMPANY,
})


def _salary(value: Any) -> float | None:
    if value in (None, ""):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _strings(values: Any) -> tuple[str, ...]:
    if not isinstance(values, (list, tuple)):
        return ()
    return tuple(str(v) for v in values)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class Listing:
    id: str
    title: str = ""
    employer_name: str = ""
    employer_logo: str = ""
    is_remote: bool = False
    city: str = ""
    state: str = ""
    country: str = ""
    employment_type: str = ""
    min_salary: float | None = None
    max_salary: float | None = None
    posted_at: str | None = None
    apply_link: str = ""
    description: str = ""
    qualifications: tuple[str, ...] = ()
    responsibilities: tuple[str, ...] = ()
    publisher: str = ""

    @classmethod
    def from_api(cls, hit: dict[str, Any]) -> "Listing":
        """Build a listing from one JSearch ``data`` entry."""
        highlights = hit.get("job_highlights") or {}
        return cls(
            id=str(hit.get("job_id") or ""),
            title=hit.get("job_title") or "",
            employer_name=hit.get("employer_name") or "",
            employer_logo=hit.get("employer_logo") or "",
            is_remote=hit.get("job_is_remote") is True,
            city=hit.get("job_city") or "",
            state=hit.get("job_state") or "",
            country=hit.get("job_country") or "",
            employment_type=hit.get("job_employment_type") or "",
            min_salary=_salary(hit.get("job_min_salary")),
            max_salary=_salary(hit.get("job_max_salary")),
            posted_at=hit.get("job_posted_at_datetime_utc") or None,
            apply_link=hit.get("job_apply_link") or "",
            description=hit.get("job_description") or "",
            qualifications=_strings(highlights.get("Qualifications")),
            responsibilities=_strings(highlights.get("Responsibilities")),
            publisher=hit.get("job_publisher") or "",
        )

    def to_dict(self) -> dict[str, Any]:
        """JSearch-shaped mapping; ``Listing.from_api(l.to_dict()) == l``."""
        return {
            "job_id": self.id,
            "job_title": self.title,
            "employer_name": self.employer_name,
            "employer_logo": self.employer_logo,
            "job_is_remote": self.is_remote,
            "job_city": self.city,
            "job_state": self.state,
            "job_country": self.country,
            "job_employment_type": self.employment_type,
            "job_min_salary": self.min_salary,
            "job_max_salary": self.max_salary,
            "job_posted_at_datetime_utc": self.posted_at,
            "job_apply_link": self.apply_link,
            "job_description": self.description,
            "job_highlights": {
                "Qualifications": list(self.qualifications),
                "Responsibilities": list(self.responsibilities),
            },
            "job_publisher": self.publisher,
        }

    @property
    def best_salary(self) -> float:
        """Max salary, else min, else 0 (unknown)."""
        return self.max_salary or self.min_salary or 0

    @property
    def posted_epoch(self) -> float:
        if not self.posted_at:
            return 0.0
        try:
            dt = datetime.fromisoformat(self.posted_at.replace("Z", "+00:00"))
        except ValueError:
            return 0.0
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.timestamp()

    @property
    def location_label(self) -> str:
        if self.is_remote:
            return "Remote"
        parts = [p for p in (self.city, self.state, self.country) if p]
        return ", ".join(parts) or "Location not specified"


@dataclass(frozen=True)
class QualificationVerdict:
    qualifies: bool
    category: Category
    reason: str


@dataclass(frozen=True)
class AnnotatedListing:
    listing: Listing
    verdict: QualificationVerdict
    score: int
    region: str | None = None

    @property
    def category(self) -> Category:
        return self.verdict.category


@dataclass(frozen=True)
class QuerySpec:
    query: str
    remote_only: bool = False
    region: str | None = None
    date_posted: str = "week"
    page: int = 1
    employment_types: tuple[str, ...] = ()

    def params(self) -> dict[str, str]:
        """Query parameters for one ``/search`` call."""
        params = {
            "query": self.query,
            "page": str(self.page),
            "num_pages": "1",
            "date_posted": self.date_posted,
        }
        if self.remote_only:
            params["remote_jobs_only"] = "true"
        if self.employment_types:
            params["employment_types"] = ",".join(self.employment_types)
        return params


@dataclass
class SearchOptions:
    date_posted: str = "week"
    categories: list[Category] = field(default_factory=lambda: list(ALL_CATEGORIES))
    regions: list[str] = field(default_factory=list)
    employment_types: list[str] = field(default_factory=lambda: ["FULLTIME"])
    min_salary: float = 0
    sort_by: str = "relevance"
    page: int = 1
    themes: list[str] = field(default_factory=list)


@dataclass
class AlertPreferences:
    categories: list[Category] = field(default_factory=lambda: list(ALL_CATEGORIES))
    regions: list[str] = field(default_factory=list)
    min_salary: float = 0
    employment_types: list[str] = field(default_factory=lambda: ["FULLTIME"])

    def to_dict(self) -> dict[str, Any]:
        return {
            "categories": [c.value for c in self.categories],
            "regions": list(self.regions),
            "minSalary": self.min_salary,
            "jobTypes": list(self.employment_types),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AlertPreferences":
        return cls(
            categories=[Category(c) for c in data.get("categories", [c.value for c in ALL_CATEGORIES])],
            regions=list(data.get("regions", data.get("states", []))),
            min_salary=data.get("minSalary", 0) or 0,
            employment_types=list(data.get("jobTypes", ["FULLTIME"])),
        )


@dataclass
class Alert:
    id: str
    keywords: list[str] = field(default_factory=list)
    themes: list[str] = field(default_factory=list)
    preferences: AlertPreferences = field(default_factory=AlertPreferences)
    frequency: str = "daily"
    last_checked: str | None = None
    created: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "keywords": list(self.keywords),
            "themes": list(self.themes),
            "preferences": self.preferences.to_dict(),
            "frequency": self.frequency,
            "lastChecked": self.last_checked,
            "created": self.created,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Alert":
        return cls(
            id=data["id"],
            keywords=list(data.get("keywords", [])),
            themes=list(data.get("themes", [])),
            preferences=AlertPreferences.from_dict(data.get("preferences", {})),
            frequency=data.get("frequency", "daily"),
            last_checked=data.get("lastChecked"),
            created=data.get("created") or utc_now_iso(),
        )


@dataclass
class SavedJob:
    job_id: str
    listing: Listing
    saved_at: str = field(default_factory=utc_now_iso)
    notes: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "job_id": self.job_id,
            "saved_at": self.saved_at,
            "notes": self.notes,
            "job_data": self.listing.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SavedJob":
        return cls(
            job_id=data["job_id"],
            listing=Listing.from_api(data.get("job_data") or {"job_id": data["job_id"]}),
            saved_at=data.get("saved_at") or utc_now_iso(),
            notes=data.get("notes") or "",
        )
