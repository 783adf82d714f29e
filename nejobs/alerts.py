"""Job alerts and the seen-jobs ledger.

Alerts are checked synchronously against the raw listings of each manual
search; there is no background scheduler.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Iterable

from nejobs.classifier import Classifier
from nejobs.filters import passes_salary_floor
from nejobs.log import get_logger
from nejobs.models import (
    ALL_CATEGORIES,
    REGIONAL_CATEGORIES,
    Alert,
    AlertPreferences,
    Category,
    Listing,
    utc_now_iso,
)
from nejobs.storage import LocalStore

log = get_logger(__name__)

ALERTS_KEY = "alerts"
SEEN_JOBS_KEY = "seen_jobs"
SEEN_JOBS_CAPACITY = 1000
ALERT_FREQUENCIES = ("daily", "weekly")
EDITABLE_FIELDS = frozenset({
    "keywords", "themes", "frequency", "preferences",
    "categories", "regions", "min_salary", "employment_types",
})


def _split_terms(values: Iterable[str] | str | None) -> list[str]:
    if values is None:
        return []
    if isinstance(values, str):
        values = values.split(",")
    return [v.strip() for v in values if v and v.strip()]


def _check_frequency(frequency: str) -> str:
    frequency = (frequency or "daily").strip().lower()
    if frequency not in ALERT_FREQUENCIES:
        raise ValueError(f"Frequency must be one of: {', '.join(ALERT_FREQUENCIES)}")
    return frequency


def _build_preferences(
    categories: Iterable[Category | str] | None = None,
    regions: Iterable[str] | str | None = None,
    min_salary: float | None = 0,
    employment_types: Iterable[str] | str | None = None,
) -> AlertPreferences:
    try:
        cats = [Category(c) for c in categories] if categories else list(ALL_CATEGORIES)
    except ValueError:
        raise ValueError(f"Unknown category in {list(categories)!r}") from None
    try:
        floor = float(min_salary or 0)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid minimum salary: {min_salary!r}") from None
    if floor < 0:
        raise ValueError("Minimum salary cannot be negative.")
    types = [t.upper() for t in _split_terms(employment_types)]
    return AlertPreferences(
        categories=cats,
        regions=[r.upper() for r in _split_terms(regions)],
        min_salary=floor,
        employment_types=types or ["FULLTIME"],
    )


class AlertStore:
    def __init__(self, store: LocalStore) -> None:
        self.store = store

    def list(self) -> list[Alert]:
        alerts: list[Alert] = []
        for raw in self.store.get(ALERTS_KEY, []) or []:
            try:
                alerts.append(Alert.from_dict(raw))
            except (KeyError, ValueError, TypeError) as exc:
                log.warning("Skipping unreadable alert: %s", exc)
        return alerts

    def _save(self, alerts: list[Alert]) -> None:
        self.store.set(ALERTS_KEY, [a.to_dict() for a in alerts])

    def count(self) -> int:
        return len(self.list())

    def get(self, alert_id: str) -> Alert | None:
        return next((a for a in self.list() if a.id == alert_id), None)

    def create(
        self,
        keywords: Iterable[str] | str,
        themes: Iterable[str] | str | None = None,
        *,
        categories: Iterable[Category | str] | None = None,
        regions: Iterable[str] | None = None,
        min_salary: float = 0,
        employment_types: Iterable[str] | None = None,
        frequency: str = "daily",
    ) -> Alert:
        keywords = _split_terms(keywords)
        if not keywords:
            raise ValueError("Please enter at least one keyword.")
        alert = Alert(
            id=uuid.uuid4().hex[:12],
            keywords=keywords,
            themes=_split_terms(themes),
            preferences=_build_preferences(categories, regions, min_salary, employment_types),
            frequency=_check_frequency(frequency),
        )
        alerts = self.list()
        alerts.append(alert)
        self._save(alerts)
        log.info("Created alert %s for %s", alert.id, ", ".join(alert.keywords))
        return alert

    def update(self, alert_id: str, **changes) -> Alert | None:
        """Edit an alert in place; returns ``None`` when *alert_id* is unknown.

        Accepts ``keywords``, ``themes``, ``frequency``, a whole ``preferences``
        value (``AlertPreferences`` or its stored dict form) and the single
        preference fields ``categories``, ``regions``, ``min_salary`` and
        ``employment_types``.
        """
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise AttributeError(f"Alert has no editable field {sorted(unknown)[0]!r}")

        alerts = self.list()
        alert = next((a for a in alerts if a.id == alert_id), None)
        if alert is None:
            return None

        if "keywords" in changes:
            keywords = _split_terms(changes["keywords"])
            if not keywords:
                raise ValueError("Please enter at least one keyword.")
            alert.keywords = keywords
        if "themes" in changes:
            alert.themes = _split_terms(changes["themes"])
        if "frequency" in changes:
            alert.frequency = _check_frequency(changes["frequency"])

        prefs = changes.get("preferences", alert.preferences)
        if isinstance(prefs, dict):
            prefs = AlertPreferences.from_dict(prefs)
        elif not isinstance(prefs, AlertPreferences):
            raise ValueError(f"Invalid alert preferences: {prefs!r}")
        alert.preferences = _build_preferences(
            categories=changes.get("categories", prefs.categories),
            regions=changes.get("regions", prefs.regions),
            min_salary=changes.get("min_salary", prefs.min_salary),
            employment_types=changes.get("employment_types", prefs.employment_types),
        )

        self._save(alerts)
        log.info("Updated alert %s", alert.id)
        return alert

    def delete(self, alert_id: str) -> bool:
        alerts = self.list()
        remaining = [a for a in alerts if a.id != alert_id]
        if len(remaining) == len(alerts):
            return False
        self._save(remaining)
        log.info("Deleted alert %s", alert_id)
        return True

    def touch_all(self, when: str | None = None) -> None:
        when = when or utc_now_iso()
        alerts = self.list()
        for alert in alerts:
            alert.last_checked = when
        self._save(alerts)


class SeenJobsLedger:
    """Bounded, insertion-ordered set of listing ids already checked."""

    def __init__(self, store: LocalStore, capacity: int = SEEN_JOBS_CAPACITY) -> None:
        self.store = store
        self.capacity = capacity

    def ids(self) -> list[str]:
        return list(self.store.get(SEEN_JOBS_KEY, []) or [])

    def mark(self, job_ids: Iterable[str]) -> None:
        merged = list(dict.fromkeys([*self.ids(), *job_ids]))
        if len(merged) > self.capacity:
            merged = merged[-self.capacity:]
        self.store.set(SEEN_JOBS_KEY, merged)

    def __contains__(self, job_id: object) -> bool:
        return job_id in set(self.ids())

    def __len__(self) -> int:
        return len(self.ids())


@dataclass
class AlertMatch:
    alert: Alert
    new_jobs: list[Listing] = field(default_factory=list)


@dataclass
class AlertCheckResult:
    total_new: int = 0
    alert_results: list[AlertMatch] = field(default_factory=list)


def _matches(alert: Alert, listing: Listing, classifier: Classifier) -> bool:
    text_title = listing.title.lower()
    text_desc = listing.description.lower()
    if alert.keywords and not any(
        kw.lower() in text_title or kw.lower() in text_desc for kw in alert.keywords
    ):
        return False

    verdict = classifier.classify(listing)
    if not verdict.qualifies or verdict.category not in alert.preferences.categories:
        return False

    if verdict.category in REGIONAL_CATEGORIES and alert.preferences.regions:
        region = classifier.resolve_region(listing)
        if region is not None and region not in alert.preferences.regions:
            return False

    return passes_salary_floor(listing, alert.preferences.min_salary)


def check_alerts(
    listings: list[Listing],
    alerts: AlertStore,
    ledger: SeenJobsLedger,
    classifier: Classifier | None = None,
) -> AlertCheckResult:
    """Match unseen listings against every alert, then mark them all seen."""
    classifier = classifier or Classifier()
    seen = set(ledger.ids())
    result = AlertCheckResult()

    for alert in alerts.list():
        new_jobs = [l for l in listings if l.id not in seen and _matches(alert, l, classifier)]
        if new_jobs:
            result.total_new += len(new_jobs)
            result.alert_results.append(AlertMatch(alert=alert, new_jobs=new_jobs))

    if listings:
        ledger.mark(l.id for l in listings)
    alerts.touch_all()

    if result.total_new:
        log.info("Found %d new job%s matching your alerts",
                 result.total_new, "" if result.total_new == 1 else "s")
    return result
