"""
Search pipeline shared by the CLI and the Streamlit app.

Runs: plan + fetch → classify/score/filter → alert check → (optional) report and e-mail.
"""
from __future__ import annotations

import queue
from typing import Any

from nejobs.alerts import AlertCheckResult, AlertStore, SeenJobsLedger, check_alerts
from nejobs.filters import FilterCriteria, FilterEngine, category_breakdown, paginate, total_pages
from nejobs.log import get_logger
from nejobs.models import SearchOptions
from nejobs.orchestrator import SearchProgress
from nejobs.report import build_results_report, write_results_report
from nejobs.session import JobSearchSession
from nejobs.storage import LocalStore

log = get_logger(__name__)


def criteria_for(keywords: str, options: SearchOptions) -> FilterCriteria:
    return FilterCriteria(
        categories=list(options.categories),
        regions=list(options.regions),
        min_salary=options.min_salary,
        keywords=keywords,
        themes=list(options.themes),
        sort_by=options.sort_by,
    )


def run_search(
    session: JobSearchSession,
    keywords: str,
    options: SearchOptions | None = None,
    *,
    store: LocalStore | None = None,
    page: int = 1,
    per_page: int | None = None,
    run_alerts: bool = True,
    write_report: bool = False,
    send_email: bool = False,
    progress: "queue.Queue[SearchProgress] | None" = None,
) -> dict[str, Any]:
    """One manual search end to end; errors from the session propagate.

    *page* is the display page of the filtered results; ``options.page`` is
    the API result page each query asks for.
    """
    options = options or SearchOptions(
        date_posted=session.settings.default_date_posted,
        employment_types=list(session.settings.default_employment_types),
    )
    per_page = per_page or session.settings.results_per_page
    store = store or session.store or LocalStore(session.settings.data_dir)

    # 1. Search
    result = session.search(keywords, options, progress=progress)
    if result.stale:
        return {
            "stale": True, "generation": result.generation, "listings_found": 0,
            "results": [], "page_results": [], "breakdown": {}, "page": 1, "total_pages": 1,
            "new_alert_matches": 0, "alert_result": AlertCheckResult(), "report_path": None,
        }

    # 2. Classify, score, filter, sort
    engine = FilterEngine(session.settings)
    results = engine.apply(result.listings, criteria_for(keywords, options))
    pages = total_pages(len(results), per_page)
    page = min(max(page, 1), pages)

    # 3. Alerts see the raw listings, not the filtered view
    alert_result = AlertCheckResult()
    if run_alerts:
        alert_result = check_alerts(
            result.listings,
            AlertStore(store),
            SeenJobsLedger(store, capacity=session.settings.seen_ledger_capacity),
            engine.classifier,
        )

    # 4. Report and e-mail
    report_path = None
    if write_report:
        content = build_results_report(
            keywords, results,
            new_alert_matches=alert_result.total_new,
            total_found=len(result.listings),
        )
        report_path = write_results_report(content)

    if send_email and alert_result.total_new:
        from nejobs.notify import send_alert_email

        ok, msg = send_alert_email(alert_result)
        log.info("Alert email: %s", msg)

    log.info(
        "Search complete: found=%d, matched=%d, new alert matches=%d",
        len(result.listings), len(results), alert_result.total_new,
    )
    return {
        "stale": False,
        "generation": result.generation,
        "listings_found": len(result.listings),
        "results": results,
        "page_results": paginate(results, page, per_page),
        "breakdown": category_breakdown(results),
        "page": page,
        "total_pages": pages,
        "new_alert_matches": alert_result.total_new,
        "alert_result": alert_result,
        "report_path": str(report_path) if report_path else None,
    }
