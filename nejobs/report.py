"""Markdown summary of one search run."""
from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from urllib.parse import urlparse

from nejobs.config import REPORTS_DIR
from nejobs.filters import category_breakdown
from nejobs.formatting import format_salary, truncate
from nejobs.log import get_logger
from nejobs.models import ALL_CATEGORIES, AnnotatedListing

log = get_logger(__name__)

TOP_MATCHES = 15


def _short_url_label(url: str) -> str:
    host = (urlparse(url).hostname or "").replace("www.", "")
    parts = host.split(".")
    return parts[0].capitalize() if parts and parts[0] else "Link"


def _cell(text: str) -> str:
    return text.replace("|", "/")


def build_results_report(
    keywords: str,
    results: list[AnnotatedListing],
    *,
    new_alert_matches: int = 0,
    total_found: int | None = None,
) -> str:
    date = datetime.now(timezone.utc).strftime("%Y-%m-%d")
    total_found = len(results) if total_found is None else total_found
    lines: list[str] = [f"# Job Search: {keywords} ({date})", ""]

    lines.append(
        f"**{total_found}** listings found | **{len(results)}** shown | "
        f"**{new_alert_matches}** new alert match{'es' if new_alert_matches != 1 else ''}"
    )
    lines.append("")

    counts = category_breakdown(results)
    if results:
        lines.append("## By Category")
        lines.append("")
        for cat in ALL_CATEGORIES:
            if counts.get(cat):
                lines.append(f"- **{cat.label}:** {counts[cat]}")
        lines.append("")

        lines.append("## Top Matches")
        lines.append("")
        lines.append("| # | Role | Company | Location | Category | Salary | Score | Apply |")
        lines.append("|--:|------|---------|----------|----------|--------|------:|-------|")
        for i, a in enumerate(results[:TOP_MATCHES], 1):
            l = a.listing
            link = f"[{_short_url_label(l.apply_link)}]({l.apply_link})" if l.apply_link else "-"
            lines.append(
                f"| {i} | {_cell(truncate(l.title, 40))} | {_cell(truncate(l.employer_name, 22))} "
                f"| {_cell(l.location_label)} | {a.category.label} "
                f"| {format_salary(l.min_salary, l.max_salary) or '-'} | {a.score}/10 | {link} |"
            )
        lines.append("")
    else:
        lines.append("_No jobs matched the current filters._")
        lines.append("")

    log.info("Built results report: %d listings", len(results))
    return "\n".join(lines)


def write_results_report(content: str, reports_dir: Path = REPORTS_DIR) -> Path:
    reports_dir.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now(timezone.utc).strftime("%Y-%m-%d_%H%M%S")
    path = reports_dir / f"search_{stamp}.md"
    path.write_text(content, encoding="utf-8")
    log.info("Report written → %s", path)
    return path
