"""Saved jobs: listing snapshots the user chose to keep, with notes."""
from __future__ import annotations

from nejobs.log import get_logger
from nejobs.models import Listing, SavedJob
from nejobs.storage import LocalStore

log = get_logger(__name__)

SAVED_JOBS_KEY = "saved_jobs"


class SavedJobStore:
    def __init__(self, store: LocalStore) -> None:
        self.store = store

    def list(self) -> list[SavedJob]:
        saved: list[SavedJob] = []
        for raw in self.store.get(SAVED_JOBS_KEY, []) or []:
            try:
                saved.append(SavedJob.from_dict(raw))
            except (KeyError, TypeError) as exc:
                log.warning("Skipping unreadable saved job: %s", exc)
        return saved

    def _save(self, jobs: list[SavedJob]) -> None:
        self.store.set(SAVED_JOBS_KEY, [j.to_dict() for j in jobs])

    def count(self) -> int:
        return len(self.list())

    def ids(self) -> set[str]:
        return {j.job_id for j in self.list()}

    def get(self, job_id: str) -> SavedJob | None:
        return next((j for j in self.list() if j.job_id == job_id), None)

    def is_saved(self, job_id: str) -> bool:
        return job_id in self.ids()

    def save(self, listing: Listing, notes: str = "") -> bool:
        jobs = self.list()
        if any(j.job_id == listing.id for j in jobs):
            return False
        jobs.append(SavedJob(job_id=listing.id, listing=listing, notes=notes))
        self._save(jobs)
        log.info("Saved: %s @ %s", listing.title, listing.employer_name)
        return True

    def remove(self, job_id: str) -> bool:
        jobs = self.list()
        remaining = [j for j in jobs if j.job_id != job_id]
        if len(remaining) == len(jobs):
            return False
        self._save(remaining)
        return True

    def toggle(self, listing: Listing) -> bool:
        """Save or unsave; returns whether the listing is saved afterwards."""
        if self.is_saved(listing.id):
            self.remove(listing.id)
            return False
        self.save(listing)
        return True

    def update_notes(self, job_id: str, notes: str) -> bool:
        jobs = self.list()
        for job in jobs:
            if job.job_id == job_id:
                job.notes = notes
                self._save(jobs)
                return True
        return False

    def clear(self) -> None:
        self._save([])
        log.info("Cleared all saved jobs")
