from sqlalchemy import Column, String, Text, DateTime, Boolean, ForeignKey, JSON, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from exam_prep.database import Base
import enum
import uuid


class RequestStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Teacher(Base):
    __tablename__ = "teachers"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)
    subject = Column(String, nullable=False, index=True)
    call_link = Column(String, nullable=True)
    is_live = Column(Boolean, default=False)
    created_by = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    sessions = relationship("TeachingSession", back_populates="teacher")


class TeachingSession(Base):
    __tablename__ = "teaching_sessions"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    teacher_id = Column(String, ForeignKey("teachers.id"), nullable=False)
    subject = Column(String, nullable=False)
    is_live = Column(Boolean, default=False)
    call_link = Column(String, nullable=True)
    starts_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    teacher = relationship("Teacher", back_populates="sessions")


class TeacherRequest(Base):
    """Pending application to become a teacher"""
    __tablename__ = "teacher_requests"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, nullable=False, index=True)
    full_name = Column(String, nullable=False)
    subject = Column(String, nullable=False)
    motivation = Column(Text, nullable=True)
    documents = Column(JSON, default=list)  # storage paths
    status = Column(SQLEnum(RequestStatus), nullable=False, default=RequestStatus.PENDING)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
