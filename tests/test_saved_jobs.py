"""Tests for saved jobs."""
import pytest

from conftest import make_listing
from nejobs.saved_jobs import SAVED_JOBS_KEY, SavedJobStore


@pytest.fixture
def saved(store) -> SavedJobStore:
    return SavedJobStore(store)


class TestSavedJobStore:
    def test_save_persists_snapshot(self, saved, store):
        listing = make_listing(job_min_salary=50000)
        assert saved.save(listing)

        (raw,) = store.get(SAVED_JOBS_KEY)
        assert set(raw) == {"job_id", "saved_at", "notes", "job_data"}
        assert raw["job_data"]["job_id"] == "job-1"
        assert saved.get("job-1").listing == listing

    def test_duplicates_refused(self, saved):
        assert saved.save(make_listing())
        assert not saved.save(make_listing(job_title="Changed"))
        assert saved.count() == 1
        assert saved.get("job-1").listing.title == "Software Engineer"

    def test_toggle(self, saved):
        listing = make_listing()
        assert saved.toggle(listing) is True
        assert saved.is_saved("job-1")
        assert saved.toggle(listing) is False
        assert not saved.is_saved("job-1")

    def test_update_notes(self, saved):
        saved.save(make_listing())
        assert saved.update_notes("job-1", "Follow up Friday")
        assert saved.get("job-1").notes == "Follow up Friday"
        assert not saved.update_notes("missing", "x")

    def test_remove_and_clear(self, saved):
        saved.save(make_listing(job_id="a"))
        saved.save(make_listing(job_id="b"))
        assert saved.remove("a")
        assert not saved.remove("a")
        assert saved.ids() == {"b"}
        saved.clear()
        assert saved.count() == 0

    def test_keeps_insertion_order(self, saved):
        for jid in ("c", "a", "b"):
            saved.save(make_listing(job_id=jid))
        assert [j.job_id for j in saved.list()] == ["c", "a", "b"]
