from __future__ import annotations
from datetime import datetime, timezone
from sqlalchemy import Column, String, DateTime, Integer, Float, JSON
from .db import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class QuizRecord(Base):
    __tablename__ = "quizzes"
    id = Column(String(32), primary_key=True)
    topic = Column(String(512), nullable=False)
    type = Column(String(32), nullable=False)
    question_count = Column(Integer, nullable=False)
    # Embedded question sub-documents, in presentation order
    questions = Column(JSON, nullable=False, default=list)
    score = Column(Float, default=0.0, nullable=False)
    status = Column(String(16), default="InProgress", nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)
    # Optimistic lock: every UPDATE is guarded by the version it was read at
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}
