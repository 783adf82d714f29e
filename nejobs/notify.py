"""E-mail a summary of new alert matches (best effort)."""
from __future__ import annotations

import html
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from nejobs.alerts import AlertCheckResult
from nejobs.config import get_env
from nejobs.formatting import format_salary
from nejobs.log import get_logger
from nejobs.retry import retry

log = get_logger(__name__)


def build_alert_digest(result: AlertCheckResult) -> str:
    noun = "job" if result.total_new == 1 else "jobs"
    lines = [f"{result.total_new} new {noun} matching your alerts", ""]
    for match in result.alert_results:
        lines.append(f"Alert: {', '.join(match.alert.keywords)} ({len(match.new_jobs)} new)")
        for job in match.new_jobs:
            salary = format_salary(job.min_salary, job.max_salary)
            extra = f" | {salary}" if salary else ""
            lines.append(f"  - {job.title} @ {job.employer_name} ({job.location_label}){extra}")
            if job.apply_link:
                lines.append(f"    {job.apply_link}")
        lines.append("")
    return "\n".join(lines).rstrip() + "\n"


def _digest_html(text: str) -> str:
    body = "<br>\n".join(html.escape(line) for line in text.splitlines())
    return (
        '<div style="font-family:-apple-system,BlinkMacSystemFont,\'Segoe UI\',Roboto,sans-serif;'
        'max-width:760px;margin:0 auto;padding:16px;color:#333">'
        f"{body}"
        '<hr style="border:none;border-top:1px solid #e0e0e0;margin:20px 0 8px">'
        '<p style="font-size:11px;color:#999">Sent by New England Jobs</p></div>'
    )


@retry(max_attempts=3, base_delay=3.0, retryable=(smtplib.SMTPException, OSError))
def _smtp_send(
    host: str, port: int, user: str, password: str,
    from_addr: str, to_addr: str, msg: MIMEMultipart,
) -> None:
    with smtplib.SMTP(host, port) as server:
        server.starttls()
        server.login(user, password)
        server.sendmail(from_addr, [to_addr], msg.as_string())


def send_alert_email(result: AlertCheckResult, to_email: str | None = None) -> tuple[bool, str]:
    if not result.total_new:
        return False, "No new alert matches"

    host = get_env("SMTP_HOST")
    user = get_env("SMTP_USER")
    password = get_env("SMTP_PASSWORD")
    from_addr = get_env("FROM_EMAIL", user)
    to_addr = (to_email or get_env("TO_EMAIL")).strip()
    if not all([host, user, password, to_addr]):
        return False, "SMTP not configured (set SMTP_HOST, SMTP_USER, SMTP_PASSWORD, TO_EMAIL in .env)"

    try:
        port = int(get_env("SMTP_PORT", "587"))
    except ValueError:
        port = 587

    text = build_alert_digest(result)
    msg = MIMEMultipart("alternative")
    msg["Subject"] = f"New England Jobs: {result.total_new} new alert match{'es' if result.total_new != 1 else ''}"
    msg["From"] = from_addr
    msg["To"] = to_addr
    msg.attach(MIMEText(text, "plain", "utf-8"))
    msg.attach(MIMEText(_digest_html(text), "html", "utf-8"))

    try:
        _smtp_send(host, port, user, password, from_addr, to_addr, msg)
    except (smtplib.SMTPException, OSError) as e:
        log.error("Alert email failed: %s", e)
        return False, str(e)[:150]
    log.info("Alert email sent to %s", to_addr)
    return True, "Email sent"
