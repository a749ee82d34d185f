from datetime import datetime
import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.job import Job
from ..models.user import User
from ..services.candidates import get_job_or_404
from ..utils.dependencies import get_current_user
from ..utils.error_handlers import ValidationError
from ..utils.validation import validate_job_status, validate_string_field

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/jobs", tags=["Jobs"])


def job_to_public(job: Job, *, include_assignees: bool = True) -> dict:
    payload = {
        "id": job.id,
        "title": job.title,
        "description": job.description,
        "location": job.location,
        "status": job.status or "open",
        "created_by": job.created_by_id,
        "created_at": job.created_at.isoformat() if isinstance(job.created_at, datetime) else job.created_at,
    }
    if include_assignees:
        payload["assignees"] = [
            {"id": u.id, "name": u.name, "email": u.email} for u in (job.assignees or [])
        ]
    return payload


class JobCreate(BaseModel):
    title: str | None = Field(default=None, max_length=150)
    description: str | None = None
    location: str | None = Field(default=None, max_length=100)
    status: str | None = Field(default="open")
    assignee_ids: list[str] = Field(default_factory=list)


class JobUpdate(BaseModel):
    title: str | None = Field(default=None, max_length=150)
    description: str | None = None
    location: str | None = Field(default=None, max_length=100)
    status: str | None = None
    assignee_ids: list[str] | None = None


def _resolve_assignees(db: Session, assignee_ids: list[str]) -> list[User]:
    wanted = list(dict.fromkeys(str(x) for x in assignee_ids if str(x).strip()))
    if not wanted:
        return []
    users = db.query(User).filter(User.id.in_(wanted)).all()
    found = {u.id for u in users}
    unknown = [x for x in wanted if x not in found]
    if unknown:
        raise ValidationError("Unknown assignee id(s)", details={"assignee_ids": unknown})
    return users


@router.post("", status_code=201)
def create_job(
    payload: JobCreate,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    title = validate_string_field(payload.title, "Title", min_length=2, max_length=150)
    description = validate_string_field(payload.description, "Description", max_length=20000, required=False)
    location = validate_string_field(payload.location, "Location", max_length=100, required=False)
    status = validate_job_status(payload.status)
    assignees = _resolve_assignees(db, payload.assignee_ids)

    job = Job(
        title=title,
        description=description,
        location=location,
        status=status,
        created_by_id=str(user.get("sub")),
        assignees=assignees,
    )
    try:
        db.add(job)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(job)
    logger.info("Job %s created with %d assignee(s)", job.id, len(assignees))
    return {"success": True, "job": job_to_public(job)}


@router.get("")
def list_jobs(
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    jobs = db.query(Job).order_by(Job.created_at.desc()).all()
    return {"success": True, "jobs": [job_to_public(j) for j in jobs]}


@router.get("/{job_id}")
def get_job(
    job_id: str,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    job = get_job_or_404(db, job_id)
    return {"success": True, "job": job_to_public(job)}


@router.patch("/{job_id}")
def update_job(
    job_id: str,
    payload: JobUpdate,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    job = get_job_or_404(db, job_id)

    if payload.title is not None:
        job.title = validate_string_field(payload.title, "Title", min_length=2, max_length=150)
    if payload.description is not None:
        job.description = validate_string_field(payload.description, "Description", max_length=20000, required=False)
    if payload.location is not None:
        job.location = validate_string_field(payload.location, "Location", max_length=100, required=False)
    if payload.status is not None:
        job.status = validate_job_status(payload.status)
    if payload.assignee_ids is not None:
        job.assignees = _resolve_assignees(db, payload.assignee_ids)

    try:
        db.add(job)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(job)
    return {"success": True, "job": job_to_public(job)}
