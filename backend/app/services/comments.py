import logging
from datetime import datetime

from sqlalchemy.orm import Session, joinedload

from ..models.comment import Comment
from ..models.user import User
from ..utils.error_handlers import NotFoundError, ValidationError, get_error_message
from .candidates import get_candidate_or_404

logger = logging.getLogger(__name__)

MAX_COMMENT_LENGTH = 10000


def comment_to_public(c: Comment) -> dict:
    author = c.created_by
    return {
        "id": c.id,
        "text": c.text,
        "candidate_id": c.candidate_id,
        "created_by": {"id": author.id, "name": author.name, "email": author.email} if author else None,
        "created_at": c.created_at.isoformat() if isinstance(c.created_at, datetime) else c.created_at,
    }


def create_comment(db: Session, *, candidate_id: str, text: str | None, author_id: str | None) -> Comment:
    if not isinstance(text, str) or not text.strip():
        raise ValidationError(get_error_message("comment_text_required"))
    text = text.strip()
    if len(text) > MAX_COMMENT_LENGTH:
        raise ValidationError(f"Text must not exceed {MAX_COMMENT_LENGTH} characters")

    candidate = get_candidate_or_404(db, candidate_id)
    author = db.query(User).filter(User.id == str(author_id)).first() if author_id else None
    if not author:
        raise NotFoundError(get_error_message("user_not_found"))

    comment = Comment(text=text, candidate_id=candidate.id, created_by_id=author.id)
    try:
        db.add(comment)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(comment)
    logger.info("Comment %s added to candidate %s by %s", comment.id, candidate.id, author.id)
    return comment


def list_by_candidate(db: Session, candidate_id: str) -> list[Comment]:
    """Oldest first; the dashboard renders these as a conversation.

    `created_at` has microsecond resolution, so ties only come from
    explicitly supplied timestamps and their relative order is unspecified.
    """
    get_candidate_or_404(db, candidate_id)
    return (
        db.query(Comment)
        .options(joinedload(Comment.created_by))
        .filter(Comment.candidate_id == str(candidate_id))
        .order_by(Comment.created_at.asc())
        .all()
    )
