"""Command-line interface: search, saved jobs, alerts and credential setup."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

from nejobs.alerts import ALERT_FREQUENCIES, AlertStore
from nejobs.config import API_KEY_ENV, ensure_dirs, load_settings
from nejobs.errors import (
    AuthenticationError,
    ConfigurationError,
    RateLimitedError,
    SearchError,
)
from nejobs.export import write_export
from nejobs.filters import SORT_KEYS
from nejobs.formatting import format_relative_date, format_salary
from nejobs.log import get_logger, set_console_level
from nejobs.models import ALL_CATEGORIES, Category, SearchOptions
from nejobs.pipeline import run_search
from nejobs.saved_jobs import SavedJobStore
from nejobs.session import JobSearchSession
from nejobs.storage import LocalStore

log = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG = 2
EXIT_RATE_LIMITED = 3
EXIT_AUTH = 4

DATE_CHOICES = ("all", "today", "3days", "week", "month")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nejobs",
        description="New England Jobs - search remote and New England job listings",
    )
    parser.add_argument("--config", help="Path to settings YAML (default: config/settings.yaml)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug logging on the console")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("search", help="Search for jobs")
    p.add_argument("keywords", nargs="+", help="Search keywords")
    p.add_argument("--api-key", help="RapidAPI key (overrides env and stored key)")
    p.add_argument("--date", choices=DATE_CHOICES, help="Posted within (default from settings)")
    p.add_argument("--category", action="append", choices=[c.value for c in ALL_CATEGORIES],
                   help="Category to include (repeatable; default: all)")
    p.add_argument("--region", action="append", help="Region code to include, e.g. MA (repeatable)")
    p.add_argument("--employment-type", action="append",
                   help="FULLTIME, PARTTIME, CONTRACTOR, INTERN (repeatable)")
    p.add_argument("--min-salary", type=float, default=0, help="Minimum salary (unknown salaries always pass)")
    p.add_argument("--theme", action="append", default=[], help="Theme to boost (repeatable)")
    p.add_argument("--sort", choices=SORT_KEYS, default="relevance")
    p.add_argument("--page", type=int, default=1)
    p.add_argument("--no-alerts", action="store_true", help="Skip checking saved alerts")
    p.add_argument("--report", action="store_true", help="Write a Markdown report under reports/")
    p.add_argument("--email", action="store_true", help="E-mail new alert matches (needs SMTP_* in .env)")
    p.add_argument("--save", action="append", default=[], metavar="N",
                   help="Save result number N from the shown page (repeatable)")

    saved = sub.add_parser("saved", help="Manage saved jobs")
    saved_sub = saved.add_subparsers(dest="action", required=True)
    saved_sub.add_parser("list", help="List saved jobs")
    ex = saved_sub.add_parser("export", help="Export saved jobs")
    ex.add_argument("path", type=Path)
    ex.add_argument("--format", choices=("json", "csv"), default=None,
                    help="Export format (default: from file extension)")
    rm = saved_sub.add_parser("remove", help="Remove a saved job")
    rm.add_argument("job_id")
    saved_sub.add_parser("clear", help="Remove all saved jobs")
    notes = saved_sub.add_parser("notes", help="Set notes on a saved job")
    notes.add_argument("job_id")
    notes.add_argument("text")

    alerts = sub.add_parser("alerts", help="Manage job alerts")
    alerts_sub = alerts.add_subparsers(dest="action", required=True)
    alerts_sub.add_parser("list", help="List alerts")
    cr = alerts_sub.add_parser("create", help="Create an alert")
    cr.add_argument("keywords", help="Comma-separated keywords")
    cr.add_argument("--themes", default="", help="Comma-separated themes")
    cr.add_argument("--category", action="append", choices=[c.value for c in ALL_CATEGORIES])
    cr.add_argument("--region", action="append")
    cr.add_argument("--min-salary", type=float, default=0)
    cr.add_argument("--employment-type", action="append")
    cr.add_argument("--frequency", choices=ALERT_FREQUENCIES, default="daily")
    ed = alerts_sub.add_parser("edit", help="Change an existing alert (only the given options)")
    ed.add_argument("alert_id")
    ed.add_argument("--keywords", help="Comma-separated keywords")
    ed.add_argument("--themes", help="Comma-separated themes")
    ed.add_argument("--category", action="append", choices=[c.value for c in ALL_CATEGORIES])
    ed.add_argument("--region", action="append", help="Region code (repeatable; 'all' clears the list)")
    ed.add_argument("--min-salary", type=float)
    ed.add_argument("--employment-type", action="append")
    ed.add_argument("--frequency", choices=ALERT_FREQUENCIES)
    de = alerts_sub.add_parser("delete", help="Delete an alert")
    de.add_argument("alert_id")

    key = sub.add_parser("set-key", help="Store the RapidAPI key locally")
    key.add_argument("key", nargs="?", default="", help="Key to store (empty clears it)")

    return parser


def _print_results(summary: dict) -> None:
    print(f"\n{summary['listings_found']} listings found, {len(summary['results'])} match your filters")
    if summary["breakdown"]:
        print("  " + " | ".join(f"{c.label}: {n}" for c, n in summary["breakdown"].items()))
    print(f"Page {summary['page']} of {summary['total_pages']}\n")
    for i, a in enumerate(summary["page_results"], 1):
        l = a.listing
        salary = format_salary(l.min_salary, l.max_salary)
        print(f"{i:>2}. [{a.score}/10] {l.title} @ {l.employer_name}")
        print(f"    {l.location_label} | {a.category.label}"
              + (f" | {salary}" if salary else "")
              + f" | {format_relative_date(l.posted_at)}")
        print(f"    {a.verdict.reason}")
        if l.apply_link:
            print(f"    {l.apply_link}")
    if summary["new_alert_matches"]:
        n = summary["new_alert_matches"]
        print(f"\n{n} new job{'s' if n != 1 else ''} matching your alerts")
    if summary["report_path"]:
        print(f"\nReport: {summary['report_path']}")


def cmd_search(args: argparse.Namespace, session: JobSearchSession, store: LocalStore) -> int:
    if args.api_key:
        session.set_api_key(args.api_key, persist=False)
    settings = session.settings
    options = SearchOptions(
        date_posted=args.date or settings.default_date_posted,
        categories=[Category(c) for c in args.category] if args.category else list(ALL_CATEGORIES),
        regions=[r.upper() for r in args.region or []],
        employment_types=[t.upper() for t in args.employment_type] if args.employment_type
        else list(settings.default_employment_types),
        min_salary=args.min_salary,
        sort_by=args.sort,
        themes=args.theme,
    )
    summary = run_search(
        session, " ".join(args.keywords), options,
        store=store,
        page=args.page,
        run_alerts=not args.no_alerts,
        write_report=args.report,
        send_email=args.email,
    )
    if summary["stale"]:
        return EXIT_OK
    _print_results(summary)

    saved = SavedJobStore(store)
    for n in args.save:
        try:
            a = summary["page_results"][int(n) - 1]
        except (ValueError, IndexError):
            print(f"No result number {n} on this page")
            continue
        if saved.save(a.listing):
            print(f"Saved: {a.listing.title}")
        else:
            print(f"Already saved: {a.listing.title}")
    return EXIT_OK


def cmd_saved(args: argparse.Namespace, store: LocalStore) -> int:
    saved = SavedJobStore(store)
    if args.action == "list":
        jobs = saved.list()
        if not jobs:
            print("No saved jobs yet.")
        for j in jobs:
            l = j.listing
            print(f"{j.job_id}  {l.title} @ {l.employer_name} ({l.location_label})"
                  f"  saved {format_relative_date(j.saved_at)}")
            if j.notes:
                print(f"    Notes: {j.notes}")
        return EXIT_OK
    if args.action == "export":
        jobs = saved.list()
        if not jobs:
            print("No saved jobs to export.")
            return EXIT_FAILURE
        fmt = args.format or ("csv" if args.path.suffix.lower() == ".csv" else "json")
        path = write_export(jobs, args.path, fmt)
        print(f"Exported {len(jobs)} saved job(s) as {fmt.upper()} → {path}")
        return EXIT_OK
    if args.action == "remove":
        if not saved.remove(args.job_id):
            print(f"No saved job {args.job_id}")
            return EXIT_FAILURE
        print("Job removed from saved list.")
        return EXIT_OK
    if args.action == "clear":
        saved.clear()
        print("All saved jobs cleared.")
        return EXIT_OK
    if args.action == "notes":
        if not saved.update_notes(args.job_id, args.text):
            print(f"No saved job {args.job_id}")
            return EXIT_FAILURE
        print("Notes updated.")
        return EXIT_OK
    return EXIT_FAILURE


def cmd_alerts(args: argparse.Namespace, store: LocalStore) -> int:
    alerts = AlertStore(store)
    if args.action == "list":
        items = alerts.list()
        if not items:
            print("No alerts yet.")
        for a in items:
            prefs = a.preferences
            regions = ", ".join(prefs.regions) or "all regions"
            print(f"{a.id}  {', '.join(a.keywords)}  [{a.frequency}]  {regions}"
                  + (f"  min ${prefs.min_salary:,.0f}" if prefs.min_salary else "")
                  + f"  last checked {format_relative_date(a.last_checked) if a.last_checked else 'never'}")
        return EXIT_OK
    if args.action == "create":
        alert = alerts.create(
            args.keywords,
            args.themes,
            categories=args.category,
            regions=args.region,
            min_salary=args.min_salary,
            employment_types=[t.upper() for t in args.employment_type] if args.employment_type else None,
            frequency=args.frequency,
        )
        print(f"Alert created: {alert.id}")
        return EXIT_OK
    if args.action == "edit":
        changes = {
            "keywords": args.keywords,
            "themes": args.themes,
            "categories": args.category,
            "regions": [] if args.region and "all" in (r.lower() for r in args.region) else args.region,
            "min_salary": args.min_salary,
            "employment_types": args.employment_type,
            "frequency": args.frequency,
        }
        changes = {k: v for k, v in changes.items() if v is not None}
        if not changes:
            print("Nothing to change.")
            return EXIT_FAILURE
        if alerts.update(args.alert_id, **changes) is None:
            print(f"No alert {args.alert_id}")
            return EXIT_FAILURE
        print("Alert updated.")
        return EXIT_OK
    if args.action == "delete":
        if not alerts.delete(args.alert_id):
            print(f"No alert {args.alert_id}")
            return EXIT_FAILURE
        print("Alert deleted.")
        return EXIT_OK
    return EXIT_FAILURE


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.verbose:
        set_console_level("DEBUG")

    try:
        settings = load_settings(args.config)
        ensure_dirs(settings)
        store = LocalStore(settings.data_dir)

        if args.command == "set-key":
            session = JobSearchSession(settings, store=store)
            session.set_api_key(args.key)
            print("API key saved." if session.has_api_key else "API key cleared.")
            return EXIT_OK
        if args.command == "saved":
            return cmd_saved(args, store)
        if args.command == "alerts":
            return cmd_alerts(args, store)

        session = JobSearchSession(settings, store=store)
        return cmd_search(args, session, store)

    except ConfigurationError as e:
        log.error("%s", e)
        print(f"\n  {e}\n  Set {API_KEY_ENV} in .env or run: nejobs set-key <key>\n")
        return EXIT_CONFIG
    except RateLimitedError as e:
        log.error("%s", e)
        return EXIT_RATE_LIMITED
    except AuthenticationError as e:
        log.error("%s", e)
        return EXIT_AUTH
    except (SearchError, ValueError, OSError) as e:
        log.error("%s", e)
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
