from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import logging

from ..database import get_db
from ..models.user import User
from ..utils.dependencies import get_current_user
from ..utils.error_handlers import (
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
    get_error_message,
)
from ..utils.jwt import create_access_token
from ..utils.security import hash_password, verify_password
from ..utils.validation import validate_email, validate_password, validate_role

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


class SignupRequest(BaseModel):
    email: str
    password: str
    name: str | None = None
    role: str | None = None  # admin / recruiter


class LoginRequest(BaseModel):
    email: str
    password: str


def user_to_public(user: User) -> dict:
    return {"id": user.id, "email": user.email, "name": user.name, "role": user.role}


@router.post("/signup")
def signup(payload: SignupRequest, db: Session = Depends(get_db)):
    email = validate_email(payload.email)
    validate_password(payload.password)
    role = validate_role(payload.role)

    if db.query(User).filter(User.email == email).first():
        raise ValidationError(get_error_message("email_exists"))

    # Only the very first account may self-assign admin.
    if role == "admin" and db.query(User).count() > 0:
        raise ForbiddenError("Admin accounts can only be created by an existing admin")

    try:
        hashed = hash_password(payload.password)
    except ValueError as e:
        raise ValidationError(str(e) or get_error_message("weak_password"))

    user = User(
        name=(payload.name or "").strip() or None,
        email=email,
        password=hashed,
        role=role,
    )
    try:
        db.add(user)
        db.commit()
        db.refresh(user)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Database error creating user: %s", e)
        raise

    token = create_access_token({"sub": str(user.id), "role": user.role})
    return {
        "message": "User created successfully",
        "user": user_to_public(user),
        "access_token": token,
        "token_type": "bearer",
    }


@router.post("/login")
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    email = validate_email(payload.email)
    if not payload.password:
        raise ValidationError("Password is required")

    user = db.query(User).filter(User.email == email).first()
    if not user or not verify_password(payload.password, user.password):
        raise UnauthorizedError(get_error_message("invalid_credentials"))

    token = create_access_token({"sub": str(user.id), "role": user.role})
    return {
        "access_token": token,
        "token_type": "bearer",
        "user": user_to_public(user),
    }


@router.get("/me")
def me(db: Session = Depends(get_db), user=Depends(get_current_user)):
    row = db.query(User).filter(User.id == str(user.get("sub"))).first()
    if not row:
        raise NotFoundError(get_error_message("user_not_found"))
    return {"success": True, "user": user_to_public(row)}


@router.post("/logout")
def logout():
    return {"message": "Logged out successfully"}
