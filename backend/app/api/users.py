from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.user import User
from ..utils.roles import admin_only
from .auth import user_to_public

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("")
def list_users(db: Session = Depends(get_db), user=Depends(admin_only)):
    """Users that can be assigned to jobs."""
    rows = db.query(User).order_by(User.created_at.asc()).all()
    return {"success": True, "users": [user_to_public(u) for u in rows]}
