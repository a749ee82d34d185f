from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, DateTime, Float, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from ..database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Candidate(Base):
    __tablename__ = "candidates"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    name = Column(String(255), nullable=False)
    first_name = Column(String(120), nullable=True)
    last_name = Column(String(120), nullable=True)
    email = Column(String(255), index=True, nullable=True)
    phone = Column(String(50), nullable=True)
    current_address = Column(Text, nullable=True)
    permanent_address = Column(Text, nullable=True)
    education = Column(Text, nullable=True)  # JSON string: list of objects
    experience = Column(Text, nullable=True)  # JSON string: list of objects
    desired_salary = Column(Float, nullable=True)
    referred_by = Column(String(255), nullable=True)
    website = Column(String(500), nullable=True)
    notes = Column(Text, nullable=True)

    # Asset locators: paths relative to UPLOAD_DIR
    cv_file_path = Column(String(500), nullable=False)
    cover_letter_path = Column(String(500), nullable=True)
    profile_picture = Column(String(500), nullable=True)

    # Pipeline
    status = Column(String(32), nullable=False, default="new")
    interview_date = Column(DateTime(timezone=True), nullable=True)
    interview_link = Column(String(500), nullable=True)

    job_id = Column(String(36), ForeignKey("jobs.id"), nullable=False, index=True)
    created_by_id = Column(String(36), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    job = relationship("Job")
    created_by = relationship("User")
