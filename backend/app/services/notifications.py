"""
Email notifications to job assignees.

Delivery is fire-and-forget: callers queue `notify_*` on FastAPI
`BackgroundTasks` after the triggering write has committed, and the
`notify_*` functions log and drop any delivery error. Nothing is retried.

Env vars:
  SMTP_HOST, SMTP_PORT, SMTP_USER, SMTP_PASS, SMTP_FROM, SMTP_TLS, EMAIL_ENABLED
"""
import logging
import smtplib
from email.message import EmailMessage

from fastapi import BackgroundTasks

from .. import config
from ..utils.error_handlers import DependencyFailure

logger = logging.getLogger(__name__)

STATUS_LABELS = {
    "new": "New",
    "reviewing": "Reviewing",
    "interview_scheduled": "Interview Scheduled",
    "interview_completed": "Interview Completed",
    "offer": "Offer",
    "hired": "Hired",
    "rejected": "Rejected",
}


def send_email(*, to_email: str, subject: str, body: str) -> None:
    """Send one plain-text message over SMTP. Raises DependencyFailure on any transport problem."""
    host = config.SMTP_HOST
    user = config.SMTP_USER
    password = config.SMTP_PASS
    mail_from = config.SMTP_FROM or user

    if not host or not mail_from:
        raise DependencyFailure("SMTP is not configured (missing SMTP_HOST/SMTP_FROM).")

    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = mail_from
    msg["To"] = to_email
    msg.set_content(body)

    try:
        with smtplib.SMTP(host, config.SMTP_PORT, timeout=15) as smtp:
            smtp.ehlo()
            if config.SMTP_TLS:
                smtp.starttls()
                smtp.ehlo()
            if user and password:
                smtp.login(user, password)
            smtp.send_message(msg)
    except (smtplib.SMTPException, OSError) as e:
        raise DependencyFailure(f"Failed to send email: {type(e).__name__}: {e}") from e
    logger.info("Email sent to %s: %s", to_email, subject)


def _deliver(*, to_email: str, subject: str, body: str) -> bool:
    if not config.EMAIL_ENABLED:
        logger.debug("Email disabled; skipping %r to %s", subject, to_email)
        return False
    try:
        send_email(to_email=to_email, subject=subject, body=body)
        return True
    except Exception as e:
        # Never fail the triggering request due to email issues.
        logger.warning("Notification to %s failed (non-blocking): %s", to_email, e)
        return False


def notify_candidate_upload(assignee_email: str, candidate_name: str, job_title: str) -> bool:
    subject = f"New candidate for {job_title}"
    body = "\n".join([
        "Hello,",
        "",
        f"A new candidate, {candidate_name}, has been added to the job: {job_title}.",
        "",
        "Open the dashboard to review the application.",
    ])
    return _deliver(to_email=assignee_email, subject=subject, body=body)


def notify_status_change(assignee_email: str, candidate_name: str, new_status: str, job_title: str) -> bool:
    label = STATUS_LABELS.get(new_status, new_status)
    subject = f"Candidate status update: {candidate_name}"
    body = "\n".join([
        "Hello,",
        "",
        f"The status of {candidate_name} for {job_title} changed to: {label}.",
    ])
    return _deliver(to_email=assignee_email, subject=subject, body=body)


def _queue(background_tasks: BackgroundTasks | None, func, *args) -> None:  # noqa: ANN001
    if background_tasks is None:
        func(*args)
    else:
        background_tasks.add_task(func, *args)


def queue_candidate_upload(background_tasks: BackgroundTasks | None, *, assignee_emails: list[str], candidate_name: str, job_title: str) -> int:
    """Queue one message per assignee; returns how many were queued."""
    count = 0
    for email in assignee_emails:
        if email:
            _queue(background_tasks, notify_candidate_upload, email, candidate_name, job_title)
            count += 1
    return count


def queue_status_change(background_tasks: BackgroundTasks | None, *, assignee_emails: list[str], candidate_name: str, new_status: str, job_title: str) -> int:
    count = 0
    for email in assignee_emails:
        if email:
            _queue(background_tasks, notify_status_change, email, candidate_name, new_status, job_title)
            count += 1
    return count
