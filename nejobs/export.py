"""Export saved jobs as JSON or CSV."""
from __future__ import annotations

import csv
import io
import json
from pathlib import Path
from typing import Iterable

from nejobs.formatting import format_salary
from nejobs.log import get_logger
from nejobs.models import SavedJob

log = get_logger(__name__)

CSV_HEADERS = ["Title", "Company", "Location", "Type", "Salary", "Posted", "Apply Link", "Notes"]


def saved_jobs_to_json(jobs: Iterable[SavedJob]) -> str:
    return json.dumps([j.to_dict() for j in jobs], indent=2, ensure_ascii=False)


def saved_jobs_from_json(text: str) -> list[SavedJob]:
    data = json.loads(text)
    if not isinstance(data, list):
        raise ValueError("Expected a JSON array of saved jobs")
    return [SavedJob.from_dict(item) for item in data]


def saved_jobs_to_csv(jobs: Iterable[SavedJob]) -> str:
    """Header row as-is, every data field double-quoted."""
    buf = io.StringIO()
    buf.write(",".join(CSV_HEADERS) + "\n")
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for job in jobs:
        l = job.listing
        writer.writerow([
            l.title,
            l.employer_name,
            l.location_label,
            l.employment_type,
            format_salary(l.min_salary, l.max_salary),
            l.posted_at or "",
            l.apply_link,
            job.notes,
        ])
    return buf.getvalue().rstrip("\n")


def write_export(jobs: list[SavedJob], path: Path, fmt: str = "json") -> Path:
    if fmt == "csv":
        content = saved_jobs_to_csv(jobs)
    elif fmt == "json":
        content = saved_jobs_to_json(jobs)
    else:
        raise ValueError(f"Unknown export format: {fmt}")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    log.info("Exported %d saved job(s) → %s", len(jobs), path)
    return path
