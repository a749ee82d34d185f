from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..database import get_db
from ..services import comments as comment_service
from ..services.comments import comment_to_public
from ..utils.dependencies import get_current_user

router = APIRouter(prefix="/candidates", tags=["Comments"])


class CommentCreate(BaseModel):
    text: str | None = None


@router.post("/{candidate_id}/comments", status_code=201)
def create_comment(
    candidate_id: str,
    payload: CommentCreate,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    comment = comment_service.create_comment(
        db,
        candidate_id=candidate_id,
        text=payload.text,
        author_id=user.get("sub"),
    )
    return {"success": True, "comment": comment_to_public(comment)}


@router.get("/{candidate_id}/comments")
def list_comments(
    candidate_id: str,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    rows = comment_service.list_by_candidate(db, candidate_id)
    return {"success": True, "comments": [comment_to_public(c) for c in rows]}
