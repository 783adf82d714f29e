"""Display formatting shared by exports, reports and the UI."""
from __future__ import annotations

from datetime import datetime, timezone


def format_salary(min_salary: float | None, max_salary: float | None) -> str:
    if not min_salary and not max_salary:
        return ""

    def fmt(n: float) -> str:
        if n >= 1000:
            return f"${round(n / 1000)}k"
        return f"${n:g}"

    if min_salary and max_salary:
        return f"{fmt(min_salary)} - {fmt(max_salary)}"
    if min_salary:
        return f"{fmt(min_salary)}+"
    return f"Up to {fmt(max_salary)}"


def format_relative_date(value: str | None, now: datetime | None = None) -> str:
    if not value:
        return "Unknown"
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return "Unknown"
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)

    minutes = int((now - dt).total_seconds() // 60)
    hours, days = minutes // 60, minutes // 1440
    if minutes < 1:
        return "Just now"
    if minutes < 60:
        return f"{minutes}m ago"
    if hours < 24:
        return f"{hours}h ago"
    if days < 7:
        return f"{days}d ago"
    if days < 30:
        return f"{days // 7}w ago"
    return dt.strftime("%b %d, %Y")


def truncate(text: str, max_length: int) -> str:
    if not text or len(text) <= max_length:
        return text or ""
    return text[:max_length].strip() + "…"
