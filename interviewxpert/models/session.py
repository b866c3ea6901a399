import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, Column, DateTime, Float, Integer, String, Uuid

from interviewxpert.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =========================
# Additional-skills session
# =========================
class AssessmentSession(Base):
    __tablename__ = "additional_skills_sessions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    user_id = Column(String(255), nullable=False, index=True)

    domains = Column(JSON, nullable=False)
    level = Column(String(20), nullable=False)
    timed = Column(Boolean, nullable=False, default=False)
    duration_min = Column(Integer, nullable=False, default=30)
    duration_s = Column(Integer, nullable=True)
    input_mode = Column(String(20), nullable=False, default="Text")

    status = Column(String(50), nullable=False, default="in_progress")
    source = Column(String(20), nullable=False, default="static")

    # full questions as issued, correct answers included; never returned before submit
    questions = Column(JSON, nullable=False)

    started_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    ended_at = Column(DateTime(timezone=True), nullable=True)

    overall_score = Column(Float, nullable=True)
    details = Column(JSON, nullable=True)
    flags = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)
