"""
Candidate record management: intake, pipeline status, attribute edits,
asset retrieval and cascading delete.

Validation and lookups run before any file is written or row is added, so a
rejected request leaves no trace. Notifications are queued only after the
write has committed.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
import json
import logging
from pathlib import Path

from fastapi import BackgroundTasks, UploadFile
from sqlalchemy.orm import Session

from ..models.candidate import Candidate
from ..models.comment import Comment
from ..models.job import Job
from ..models.user import User
from ..utils.error_handlers import NotFoundError, ValidationError, get_error_message
from ..utils.validation import (
    parse_desired_salary,
    parse_optional_datetime,
    parse_record_list,
    validate_candidate_status,
    validate_email,
    validate_string_field,
)
from . import asset_store, notifications

logger = logging.getLogger(__name__)

PROFILE_PICTURE_CACHE_CONTROL = "public, max-age=31536000, immutable"

# Optional free-text attributes: field -> max length
_TEXT_FIELDS = {
    "first_name": 120,
    "last_name": 120,
    "phone": 50,
    "current_address": 2000,
    "permanent_address": 2000,
    "referred_by": 255,
    "website": 500,
    "notes": 10000,
}

_ASSET_ATTRS = {
    asset_store.CV: ("cv_file_path", "cv_not_found"),
    asset_store.COVER_LETTER: ("cover_letter_path", "cover_letter_not_found"),
    asset_store.PROFILE_PICTURE: ("profile_picture", "profile_picture_not_found"),
}


@dataclass
class AssetPayload:
    data: bytes
    content_type: str
    filename: str
    headers: dict = field(default_factory=dict)


def _iso(value: datetime | None) -> str | None:
    if not isinstance(value, datetime):
        return value
    # Stored values are UTC; SQLite hands them back without tzinfo.
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def _as_utc(value: datetime) -> datetime:
    # Offset-less input is taken as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _load_list(raw: str | None) -> list:
    if not raw:
        return []
    try:
        data = json.loads(raw)
    except ValueError:
        return []
    return data if isinstance(data, list) else []


def _dump_list(items: list[dict] | None) -> str | None:
    return json.dumps(items, ensure_ascii=False) if items is not None else None


def candidate_to_public(c: Candidate) -> dict:
    job = c.job
    creator = c.created_by
    return {
        "id": c.id,
        "name": c.name,
        "first_name": c.first_name,
        "last_name": c.last_name,
        "email": c.email,
        "phone": c.phone,
        "current_address": c.current_address,
        "permanent_address": c.permanent_address,
        "education": _load_list(c.education),
        "experience": _load_list(c.experience),
        "desired_salary": c.desired_salary,
        "referred_by": c.referred_by,
        "website": c.website,
        "notes": c.notes,
        "cv_file_path": c.cv_file_path,
        "cover_letter_path": c.cover_letter_path,
        "profile_picture": c.profile_picture,
        "status": c.status,
        "interview_date": _iso(c.interview_date),
        "interview_link": c.interview_link,
        "job": {"id": job.id, "title": job.title} if job else None,
        "job_id": c.job_id,
        "created_by": {"id": creator.id, "name": creator.name, "email": creator.email} if creator else None,
        "created_at": _iso(c.created_at),
    }


def get_job_or_404(db: Session, job_id: str) -> Job:
    job = db.query(Job).filter(Job.id == str(job_id)).first()
    if not job:
        raise NotFoundError(get_error_message("job_not_found"), details={"job_id": job_id})
    return job


def get_candidate_or_404(db: Session, candidate_id: str) -> Candidate:
    candidate = db.query(Candidate).filter(Candidate.id == str(candidate_id)).first()
    if not candidate:
        raise NotFoundError(get_error_message("candidate_not_found"), details={"candidate_id": candidate_id})
    return candidate


def _assignee_emails(job: Job | None) -> list[str]:
    if not job:
        return []
    return [u.email for u in (job.assignees or []) if u.email]


def _clean_attributes(fields: dict) -> dict:
    """Validate optional candidate attributes present in `fields`."""
    out: dict = {}
    for name, max_length in _TEXT_FIELDS.items():
        if name in fields:
            out[name] = validate_string_field(fields[name], name, max_length=max_length, required=False)
    if "email" in fields:
        out["email"] = validate_email(fields["email"]) if (fields["email"] or "").strip() else None
    if "education" in fields:
        out["education"] = _dump_list(parse_record_list(fields["education"], "education"))
    if "experience" in fields:
        out["experience"] = _dump_list(parse_record_list(fields["experience"], "experience"))
    if "desired_salary" in fields:
        out["desired_salary"] = parse_desired_salary(fields["desired_salary"])
    return out


def _has_file(upload: UploadFile | None) -> bool:
    return upload is not None and bool(getattr(upload, "filename", None))


async def create_candidate(
    db: Session,
    *,
    job_id: str | None,
    fields: dict,
    cv: UploadFile | None,
    cover_letter: UploadFile | None = None,
    profile_picture: UploadFile | None = None,
    user_id: str | None = None,
    background_tasks: BackgroundTasks | None = None,
) -> Candidate:
    """
    Create a candidate for a job from multipart input.

    Raises ValidationError when name, job id or CV is missing or a structured
    field is malformed, NotFoundError when the job does not exist. Stored files
    are removed again if the insert fails.
    """
    name = (fields.get("name") or "").strip()
    missing = [
        label
        for label, present in (("name", bool(name)), ("jobId", bool(job_id)), ("cv", _has_file(cv)))
        if not present
    ]
    if missing:
        raise ValidationError(get_error_message("candidate_required_fields"), details={"missing": missing})

    name = validate_string_field(name, "name", max_length=255)
    attributes = _clean_attributes(fields)
    job = get_job_or_404(db, job_id)

    creator = None
    if user_id:
        creator = db.query(User).filter(User.id == str(user_id)).first()

    uploads = [(asset_store.CV, cv)]
    if _has_file(cover_letter):
        uploads.append((asset_store.COVER_LETTER, cover_letter))
    if _has_file(profile_picture):
        uploads.append((asset_store.PROFILE_PICTURE, profile_picture))

    payloads = []
    for category, upload in uploads:
        payloads.append((category, upload, await asset_store.read_upload(upload)))

    stored: dict[str, asset_store.StoredAsset] = {}
    try:
        for category, upload, data in payloads:
            stored[category] = asset_store.store(
                data,
                original_filename=Path(upload.filename).name,
                category=category,
                content_type=upload.content_type,
            )

        candidate = Candidate(
            name=name,
            job_id=job.id,
            status="new",
            cv_file_path=stored[asset_store.CV].locator,
            cover_letter_path=stored[asset_store.COVER_LETTER].locator if asset_store.COVER_LETTER in stored else None,
            profile_picture=stored[asset_store.PROFILE_PICTURE].locator if asset_store.PROFILE_PICTURE in stored else None,
            created_by_id=creator.id if creator else None,
            **attributes,
        )
        db.add(candidate)
        db.commit()
    except Exception:
        db.rollback()
        for asset in stored.values():
            asset_store.delete(asset.locator)
        raise

    db.refresh(candidate)
    logger.info("Candidate %s created for job %s", candidate.id, job.id)

    notifications.queue_candidate_upload(
        background_tasks,
        assignee_emails=_assignee_emails(job),
        candidate_name=candidate.name,
        job_title=job.title,
    )
    return candidate


def list_by_job(db: Session, job_id: str) -> list[Candidate]:
    return (
        db.query(Candidate)
        .filter(Candidate.job_id == str(job_id))
        .order_by(Candidate.created_at.asc())
        .all()
    )


def update_status(
    db: Session,
    candidate_id: str,
    *,
    status: str | None,
    interview_date=None,  # noqa: ANN001
    interview_link: str | None = None,
    background_tasks: BackgroundTasks | None = None,
) -> Candidate:
    """
    Move a candidate to `status`. Interview fields overwrite only when supplied.
    """
    candidate = get_candidate_or_404(db, candidate_id)
    status = validate_candidate_status(status)
    parsed_date = parse_optional_datetime(interview_date, "interview_date")
    link = validate_string_field(interview_link, "interview_link", max_length=500, required=False)

    candidate.status = status
    if parsed_date is not None:
        candidate.interview_date = _as_utc(parsed_date)
    if link is not None:
        candidate.interview_link = link

    try:
        db.add(candidate)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(candidate)

    job = candidate.job
    notifications.queue_status_change(
        background_tasks,
        assignee_emails=_assignee_emails(job),
        candidate_name=candidate.name,
        new_status=status,
        job_title=job.title if job else "",
    )
    return candidate


def update_candidate(db: Session, candidate_id: str, changes: dict) -> Candidate:
    """Edit notes and contact/attribute fields. Status has its own operation."""
    candidate = get_candidate_or_404(db, candidate_id)

    if "name" in changes:
        candidate.name = validate_string_field(changes["name"], "name", max_length=255)
    for attr, value in _clean_attributes(changes).items():
        setattr(candidate, attr, value)

    try:
        db.add(candidate)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(candidate)
    return candidate


def _delete_comments(db: Session, candidate_id: str) -> int:
    return (
        db.query(Comment)
        .filter(Comment.candidate_id == candidate_id)
        .delete(synchronize_session=False)
    )


def delete_candidate(db: Session, candidate_id: str) -> int:
    """
    Delete a candidate and its comments in one transaction.

    If anything fails both the comments and the candidate stay in place.
    Asset files are removed only after the commit. Returns the number of
    deleted comments.
    """
    candidate = get_candidate_or_404(db, candidate_id)
    locators = [candidate.cv_file_path, candidate.cover_letter_path, candidate.profile_picture]

    try:
        removed = _delete_comments(db, candidate.id)
        db.delete(candidate)
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Failed to delete candidate %s; rolled back", candidate_id)
        raise

    for locator in locators:
        asset_store.delete(locator)
    logger.info("Candidate %s deleted with %d comment(s)", candidate_id, removed)
    return removed


def fetch_asset(db: Session, candidate_id: str, kind: str) -> AssetPayload:
    """Raw bytes of a candidate's CV, cover letter or profile picture."""
    if kind not in _ASSET_ATTRS:
        raise ValidationError(f"Unknown asset kind: {kind}")
    attr, missing_key = _ASSET_ATTRS[kind]

    candidate = get_candidate_or_404(db, candidate_id)
    locator = getattr(candidate, attr, None)
    if not locator:
        raise NotFoundError(get_error_message(missing_key), details={"candidate_id": candidate_id})

    data = asset_store.read(locator)
    stored_name = Path(locator).name
    # Strip the "<millis>-<hex>-" uniqueness prefix for downloads.
    parts = stored_name.split("-", 2)
    filename = parts[2] if len(parts) == 3 else stored_name

    headers = {}
    if kind == asset_store.PROFILE_PICTURE:
        headers["Cache-Control"] = PROFILE_PICTURE_CACHE_CONTROL

    return AssetPayload(
        data=data,
        content_type=asset_store.content_type_for(locator),
        filename=filename,
        headers=headers,
    )
