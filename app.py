"""Streamlit UI for New England Jobs."""
from __future__ import annotations

import queue
import sys
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import streamlit as st

ROOT = Path(__file__).resolve().parent
sys.path.insert(0, str(ROOT))

from nejobs.alerts import ALERT_FREQUENCIES, AlertStore
from nejobs.config import ensure_dirs, load_settings
from nejobs.errors import AuthenticationError, ConfigurationError, RateLimitedError, SearchError
from nejobs.export import saved_jobs_to_csv, saved_jobs_to_json
from nejobs.filters import SORT_KEYS, paginate
from nejobs.formatting import format_relative_date, format_salary, truncate
from nejobs.log import get_logger
from nejobs.models import ALL_CATEGORIES, Alert, Category, SearchOptions
from nejobs.orchestrator import SearchProgress
from nejobs.pipeline import run_search
from nejobs.saved_jobs import SavedJobStore
from nejobs.session import JobSearchSession
from nejobs.storage import LocalStore

log = get_logger(__name__)

DATE_OPTIONS: dict[str, str] = {
    "all": "Any time",
    "today": "Today",
    "3days": "Last 3 days",
    "week": "Last week",
    "month": "Last month",
}

SORT_LABELS: dict[str, str] = {
    "relevance": "Relevance",
    "date": "Newest",
    "salary-high": "Salary (high to low)",
    "salary-low": "Salary (low to high)",
}

EMPLOYMENT_TYPES: list[str] = ["FULLTIME", "PARTTIME", "CONTRACTOR", "INTERN"]

# New searches start with the remote categories selected.
DEFAULT_CATEGORIES: list[Category] = [
    Category.REMOTE,
    Category.REMOTE_US,
    Category.REMOTE_REGIONAL_COMPANY,
]


# ── Shared state ─────────────────────────────────────────────────────────


def _settings():
    if "_settings" not in st.session_state:
        settings = load_settings()
        ensure_dirs(settings)
        st.session_state["_settings"] = settings
    return st.session_state["_settings"]


def _store() -> LocalStore:
    return LocalStore(_settings().data_dir)


def _session() -> JobSearchSession:
    """One search session per browser session: rate limit and cache persist across reruns."""
    if "_session" not in st.session_state:
        st.session_state["_session"] = JobSearchSession(_settings(), store=_store())
    return st.session_state["_session"]


def _run_with_progress(keywords: str, options: SearchOptions, send_email: bool) -> dict:
    events: "queue.Queue[SearchProgress]" = queue.Queue()
    bar = st.progress(0.0, text="Searching…")
    with ThreadPoolExecutor(max_workers=1) as pool:
        future = pool.submit(
            run_search, _session(), keywords, options,
            store=_store(), progress=events, send_email=send_email,
        )
        found, attempt = 0, 1
        while not future.done() or not events.empty():
            try:
                ev = events.get(timeout=0.1)
            except queue.Empty:
                continue
            if ev.attempt != attempt:
                found, attempt = 0, ev.attempt
            found += len(ev.listings)
            label = f"{ev.completed}/{ev.total} queries · {found} listings"
            if attempt > 1:
                label += f" (retry {attempt - 1})"
            bar.progress(ev.completed / ev.total, text=label)
        bar.empty()
        return future.result()


# ── Page: Search ─────────────────────────────────────────────────────────


def page_search() -> None:
    st.header("Search Jobs")
    settings = _settings()
    session = _session()

    if not session.has_api_key:
        st.warning("API key not configured. Add your RapidAPI key under **Settings**.")

    with st.form("search_form"):
        keywords = st.text_input("Keywords", value=st.session_state.get("_keywords", ""),
                                 placeholder="e.g. marketing manager")
        c1, c2, c3 = st.columns(3)
        with c1:
            date_posted = st.selectbox("Posted", list(DATE_OPTIONS), format_func=DATE_OPTIONS.get,
                                       index=list(DATE_OPTIONS).index(settings.default_date_posted))
        with c2:
            employment = st.multiselect("Job type", EMPLOYMENT_TYPES,
                                        default=list(settings.default_employment_types))
        with c3:
            sort_by = st.selectbox("Sort by", SORT_KEYS, format_func=SORT_LABELS.get)

        categories = st.multiselect("Categories", list(ALL_CATEGORIES), default=DEFAULT_CATEGORIES,
                                    format_func=lambda c: c.label)
        c1, c2 = st.columns(2)
        with c1:
            regions = st.multiselect("States", settings.region_codes, default=settings.region_codes)
        with c2:
            min_salary = st.number_input("Minimum salary", 0, 1_000_000, 0, step=5000)
        themes = st.text_input("Themes (comma separated)", placeholder="e.g. ski, outdoor")
        send_email = st.checkbox("E-mail new alert matches", value=False)
        submitted = st.form_submit_button("Search", type="primary", use_container_width=True)

    if submitted:
        st.session_state["_keywords"] = keywords
        st.session_state["_page"] = 1
        options = SearchOptions(
            date_posted=date_posted,
            categories=categories or list(ALL_CATEGORIES),
            regions=regions,
            employment_types=employment,
            min_salary=min_salary,
            sort_by=sort_by,
            themes=[t.strip() for t in themes.split(",") if t.strip()],
        )
        try:
            result = _run_with_progress(keywords, options, send_email)
            if not result["stale"]:
                st.session_state["last_result"] = result
        except ConfigurationError as e:
            st.warning(str(e))
        except RateLimitedError as e:
            st.warning(str(e))
        except AuthenticationError as e:
            st.error(str(e))
        except ValueError as e:
            st.warning(str(e))
        except SearchError as e:
            log.warning("Search for %r failed: %s", keywords, e)
            st.error(f"Search failed: {e}")

    result = st.session_state.get("last_result")
    if not result:
        st.info("Enter keywords above to search remote and New England jobs.")
        return

    st.divider()
    c1, c2, c3 = st.columns(3)
    c1.metric("Listings Found", result["listings_found"])
    c2.metric("Matching", len(result["results"]))
    c3.metric("New Alert Matches", result["new_alert_matches"])
    if result["breakdown"]:
        st.caption(" · ".join(f"{c.label}: {n}" for c, n in result["breakdown"].items()))

    if not result["results"]:
        st.info("No jobs matched. Try broader keywords or more categories.")
        return

    per_page = settings.results_per_page
    pages = result["total_pages"]
    page = st.session_state.get("_page", 1)
    if pages > 1:
        page = st.number_input("Page", 1, pages, page)
        st.session_state["_page"] = page

    saved = SavedJobStore(_store())
    saved_ids = saved.ids()
    for a in paginate(result["results"], page, per_page):
        l = a.listing
        with st.container(border=True):
            c1, c2 = st.columns([5, 1])
            with c1:
                st.markdown(f"**{l.title}** @ {l.employer_name}")
                salary = format_salary(l.min_salary, l.max_salary)
                st.caption(
                    f"{l.location_label} · {a.category.label}"
                    + (f" · {salary}" if salary else "")
                    + f" · {format_relative_date(l.posted_at)} · {a.verdict.reason}"
                )
                if l.description:
                    st.write(truncate(l.description, 240))
            with c2:
                st.metric("Score", f"{a.score}/10")
                is_saved = l.id in saved_ids
                if st.button("★ Saved" if is_saved else "☆ Save", key=f"save_{l.id}"):
                    saved.toggle(l)
                    st.rerun()
                if l.apply_link:
                    st.link_button("Apply", l.apply_link)


# ── Page: Saved Jobs ─────────────────────────────────────────────────────


def page_saved() -> None:
    st.header("Saved Jobs")
    saved = SavedJobStore(_store())
    jobs = saved.list()
    if not jobs:
        st.info("No saved jobs yet. Use **Save** on a search result.")
        return

    import pandas as pd

    df = pd.DataFrame([
        {
            "title": j.listing.title,
            "company": j.listing.employer_name,
            "location": j.listing.location_label,
            "salary": format_salary(j.listing.min_salary, j.listing.max_salary),
            "saved": format_relative_date(j.saved_at),
            "notes": j.notes,
            "url": j.listing.apply_link,
        }
        for j in jobs
    ])
    st.dataframe(
        df,
        use_container_width=True,
        column_config={"url": st.column_config.LinkColumn("Apply Link")},
        hide_index=True,
    )

    c1, c2 = st.columns(2)
    c1.download_button("Export JSON", saved_jobs_to_json(jobs), "saved-jobs.json", "application/json")
    c2.download_button("Export CSV", saved_jobs_to_csv(jobs), "saved-jobs.csv", "text/csv")

    st.divider()
    st.subheader("Edit")
    by_id = {j.job_id: j for j in jobs}
    job_id = st.selectbox("Job", list(by_id), format_func=lambda i: f"{by_id[i].listing.title} @ {by_id[i].listing.employer_name}")
    notes = st.text_area("Notes", value=by_id[job_id].notes, key=f"notes_{job_id}")
    c1, c2, c3 = st.columns(3)
    if c1.button("Save Notes", use_container_width=True):
        saved.update_notes(job_id, notes)
        st.success("Notes updated.")
    if c2.button("Remove", use_container_width=True):
        saved.remove(job_id)
        st.rerun()
    if c3.button("Clear All", use_container_width=True):
        saved.clear()
        st.rerun()


# ── Page: Alerts ─────────────────────────────────────────────────────────


def page_alerts() -> None:
    st.header("Job Alerts")
    st.caption("Alerts are checked against every search you run.")
    settings = _settings()
    alerts = AlertStore(_store())

    with st.form("alert_form", clear_on_submit=True):
        keywords = st.text_input("Keywords (comma separated)")
        themes = st.text_input("Themes (comma separated)")
        categories = st.multiselect("Categories", list(ALL_CATEGORIES), default=list(ALL_CATEGORIES),
                                    format_func=lambda c: c.label)
        c1, c2, c3 = st.columns(3)
        with c1:
            regions = st.multiselect("States", settings.region_codes)
        with c2:
            min_salary = st.number_input("Minimum salary", 0, 1_000_000, 0, step=5000)
        with c3:
            frequency = st.selectbox("Frequency", list(ALERT_FREQUENCIES))
        if st.form_submit_button("Create Alert", type="primary"):
            try:
                alerts.create(keywords, themes, categories=categories, regions=regions,
                              min_salary=min_salary, frequency=frequency)
                st.success("Alert created.")
            except ValueError as e:
                st.warning(str(e))

    items = alerts.list()
    if not items:
        st.info("No alerts yet.")
        return
    st.divider()
    for a in items:
        with st.container(border=True):
            c1, c2 = st.columns([5, 1])
            prefs = a.preferences
            with c1:
                st.markdown(f"**{', '.join(a.keywords)}**" + (f" · themes: {', '.join(a.themes)}" if a.themes else ""))
                st.caption(
                    f"{', '.join(c.label for c in prefs.categories)} · "
                    f"{', '.join(prefs.regions) or 'all states'}"
                    + (f" · min ${prefs.min_salary:,.0f}" if prefs.min_salary else "")
                    + f" · {a.frequency} · last checked "
                    + (format_relative_date(a.last_checked) if a.last_checked else "never")
                )
            with c2:
                if st.button("Delete", key=f"del_{a.id}"):
                    alerts.delete(a.id)
                    st.rerun()
            with st.expander("Edit"):
                _alert_edit_form(alerts, a, settings.region_codes)


def _alert_edit_form(alerts: AlertStore, alert: Alert, region_codes: list[str]) -> None:
    prefs = alert.preferences
    with st.form(f"edit_{alert.id}"):
        keywords = st.text_input("Keywords", value=", ".join(alert.keywords))
        themes = st.text_input("Themes", value=", ".join(alert.themes))
        categories = st.multiselect("Categories", list(ALL_CATEGORIES), default=prefs.categories,
                                    format_func=lambda c: c.label)
        c1, c2, c3 = st.columns(3)
        with c1:
            regions = st.multiselect("States", region_codes,
                                     default=[r for r in prefs.regions if r in region_codes])
        with c2:
            min_salary = st.number_input("Minimum salary", 0, 1_000_000, int(prefs.min_salary), step=5000)
        with c3:
            frequency = st.selectbox("Frequency", list(ALERT_FREQUENCIES),
                                     index=ALERT_FREQUENCIES.index(alert.frequency)
                                     if alert.frequency in ALERT_FREQUENCIES else 0)
        if st.form_submit_button("Save Changes"):
            try:
                alerts.update(alert.id, keywords=keywords, themes=themes, categories=categories,
                              regions=regions, min_salary=min_salary, frequency=frequency)
                st.rerun()
            except ValueError as e:
                st.warning(str(e))


# ── Page: Settings ───────────────────────────────────────────────────────


def page_settings() -> None:
    st.header("Settings")
    session = _session()

    st.subheader("RapidAPI Key")
    st.caption("Used for the JSearch API. Stored locally in the data folder.")
    with st.form("key_form"):
        key = st.text_input("API key", value=session.api_key, type="password")
        if st.form_submit_button("Save Key", type="primary"):
            session.set_api_key(key)
            st.success("API key saved." if session.has_api_key else "API key cleared.")

    st.divider()
    st.subheader("Session")
    c1, c2 = st.columns(2)
    c1.metric("Requests Left This Minute", session.rate_limiter.remaining)
    c2.metric("Cached Responses", len(session.cache))
    if st.button("Clear Cache"):
        session.cache.clear()
        st.success("Cache cleared.")


def _sidebar_status() -> None:
    with st.sidebar:
        st.divider()
        session = _session()
        store = _store()
        st.markdown("**Status**")
        st.markdown(f"{'✅' if session.has_api_key else '⬜'} API key")
        st.markdown(f"Saved jobs: {SavedJobStore(store).count()}")
        st.markdown(f"Alerts: {AlertStore(store).count()}")


def _wrap(page):
    def run() -> None:
        _sidebar_status()
        page()

    run.__name__ = page.__name__
    return run


pages = [
    st.Page(_wrap(page_search), title="Search", icon="🔍", url_path="search", default=True),
    st.Page(_wrap(page_saved), title="Saved Jobs", icon="⭐", url_path="saved"),
    st.Page(_wrap(page_alerts), title="Alerts", icon="🔔", url_path="alerts"),
    st.Page(_wrap(page_settings), title="Settings", icon="⚙️", url_path="settings"),
]

nav = st.navigation(pages)
nav.run()
