from uuid import uuid4

from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    name = Column(String(255), nullable=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)  # store hashed password
    role = Column(String(50), nullable=False, default="recruiter")  # admin / recruiter
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    assigned_jobs = relationship("Job", secondary="job_assignees", back_populates="assignees")
