from sqlalchemy import Column, Integer, String, DateTime, JSON, UniqueConstraint
from sqlalchemy.sql import func
from exam_prep.database import Base
import uuid


def _uuid() -> str:
    return str(uuid.uuid4())


class StudySession(Base):
    """Timed study block in one subject (duration in minutes)"""
    __tablename__ = "study_sessions"

    id = Column(String, primary_key=True, default=_uuid)
    user_id = Column(String, nullable=False, index=True)
    subject = Column(String, nullable=False)
    duration = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class UserActivity(Base):
    """Activity feed entry (exam_completed, topic_started, resource_downloaded, ...)"""
    __tablename__ = "user_activities"

    id = Column(String, primary_key=True, default=_uuid)
    user_id = Column(String, nullable=False, index=True)
    activity_type = Column(String, nullable=False)
    subject = Column(String, nullable=True)
    title = Column(String, nullable=False)
    details = Column(JSON, default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class UserProgress(Base):
    """Latest progress percentage per user and subject"""
    __tablename__ = "user_progress"
    __table_args__ = (UniqueConstraint("user_id", "subject"),)

    id = Column(String, primary_key=True, default=_uuid)
    user_id = Column(String, nullable=False, index=True)
    subject = Column(String, nullable=False)
    progress_percentage = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
