import logging

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, UploadFile
from fastapi.responses import Response
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from ..database import get_db
from ..services import asset_store
from ..services import candidates as candidate_service
from ..services.candidates import candidate_to_public
from ..utils.dependencies import get_current_user, get_optional_user

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Candidates"])


class StatusUpdate(BaseModel):
    status: str | None = None
    interview_date: str | None = None  # ISO datetime string
    interview_link: str | None = Field(default=None, max_length=500)


class NotesUpdate(BaseModel):
    notes: str | None = None


class CandidateUpdate(BaseModel):
    name: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    current_address: str | None = None
    permanent_address: str | None = None
    education: list[dict] | None = None
    experience: list[dict] | None = None
    desired_salary: float | None = None
    referred_by: str | None = None
    website: str | None = None
    notes: str | None = None


@router.post("/jobs/{job_id}/candidates", status_code=201)
async def create_candidate(
    job_id: str,
    background_tasks: BackgroundTasks,
    name: str | None = Form(default=None),
    first_name: str | None = Form(default=None),
    last_name: str | None = Form(default=None),
    email: str | None = Form(default=None),
    phone: str | None = Form(default=None),
    current_address: str | None = Form(default=None),
    permanent_address: str | None = Form(default=None),
    education: str | None = Form(default=None),  # JSON text: list of objects
    experience: str | None = Form(default=None),  # JSON text: list of objects
    desired_salary: str | None = Form(default=None),
    referred_by: str | None = Form(default=None),
    website: str | None = Form(default=None),
    notes: str | None = Form(default=None),
    cv: UploadFile | None = File(default=None),
    cover_letter: UploadFile | None = File(default=None),
    profile_picture: UploadFile | None = File(default=None),
    db: Session = Depends(get_db),
    user=Depends(get_optional_user),
):
    submitted = {
        "name": name,
        "first_name": first_name,
        "last_name": last_name,
        "email": email,
        "phone": phone,
        "current_address": current_address,
        "permanent_address": permanent_address,
        "education": education,
        "experience": experience,
        "desired_salary": desired_salary,
        "referred_by": referred_by,
        "website": website,
        "notes": notes,
    }
    fields = {k: v for k, v in submitted.items() if v is not None}

    candidate = await candidate_service.create_candidate(
        db,
        job_id=job_id,
        fields=fields,
        cv=cv,
        cover_letter=cover_letter,
        profile_picture=profile_picture,
        user_id=(user or {}).get("sub"),
        background_tasks=background_tasks,
    )
    return {"success": True, "candidate": candidate_to_public(candidate)}


@router.get("/jobs/{job_id}/candidates")
def list_candidates(
    job_id: str,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    rows = candidate_service.list_by_job(db, job_id)
    return {"success": True, "candidates": [candidate_to_public(c) for c in rows]}


@router.get("/candidates/{candidate_id}")
def get_candidate(
    candidate_id: str,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    candidate = candidate_service.get_candidate_or_404(db, candidate_id)
    return {"success": True, "candidate": candidate_to_public(candidate)}


@router.patch("/candidates/{candidate_id}/status")
def update_candidate_status(
    candidate_id: str,
    payload: StatusUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    candidate = candidate_service.update_status(
        db,
        candidate_id,
        status=payload.status,
        interview_date=payload.interview_date,
        interview_link=payload.interview_link,
        background_tasks=background_tasks,
    )
    return {"success": True, "candidate": candidate_to_public(candidate)}


@router.patch("/candidates/{candidate_id}")
def update_candidate(
    candidate_id: str,
    payload: CandidateUpdate,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    changes = payload.model_dump(exclude_unset=True)
    candidate = candidate_service.update_candidate(db, candidate_id, changes)
    return {"success": True, "candidate": candidate_to_public(candidate)}


@router.patch("/candidates/{candidate_id}/notes")
def update_candidate_notes(
    candidate_id: str,
    payload: NotesUpdate,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    candidate = candidate_service.update_candidate(db, candidate_id, {"notes": payload.notes})
    return {"success": True, "candidate": candidate_to_public(candidate)}


@router.delete("/candidates/{candidate_id}", status_code=200)
def delete_candidate(
    candidate_id: str,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    removed = candidate_service.delete_candidate(db, candidate_id)
    return {
        "success": True,
        "message": "Candidate deleted successfully",
        "deleted_candidate_id": candidate_id,
        "deleted_comments": removed,
    }


def _asset_response(payload: candidate_service.AssetPayload, *, inline: bool = False) -> Response:
    disposition = "inline" if inline else "attachment"
    # Header values must be latin-1; keep the download name ASCII.
    filename = payload.filename.encode("ascii", "ignore").decode("ascii").replace('"', "") or "download"
    headers = {
        "Content-Disposition": f'{disposition}; filename="{filename}"',
        **payload.headers,
    }
    return Response(content=payload.data, media_type=payload.content_type, headers=headers)


@router.get("/candidates/{candidate_id}/cv")
def download_cv(
    candidate_id: str,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return _asset_response(candidate_service.fetch_asset(db, candidate_id, asset_store.CV))


@router.get("/candidates/{candidate_id}/cover-letter")
def download_cover_letter(
    candidate_id: str,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return _asset_response(candidate_service.fetch_asset(db, candidate_id, asset_store.COVER_LETTER))


@router.get("/candidates/{candidate_id}/profile-picture")
def profile_picture(
    candidate_id: str,
    db: Session = Depends(get_db),
):
    # Loaded by <img> tags, which cannot send the bearer token.
    payload = candidate_service.fetch_asset(db, candidate_id, asset_store.PROFILE_PICTURE)
    return _asset_response(payload, inline=True)
