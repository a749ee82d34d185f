from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from ..database import Base


class Comment(Base):
    __tablename__ = "comments"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    text = Column(Text, nullable=False)
    created_by_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    # No ON DELETE CASCADE: candidate deletion removes comments explicitly.
    candidate_id = Column(String(36), ForeignKey("candidates.id"), nullable=False, index=True)
    # Python-side timestamp keeps sub-second ordering (server now() is second-precision on SQLite).
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)

    created_by = relationship("User")
    candidate = relationship("Candidate")
