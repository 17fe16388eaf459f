from sqlalchemy import Column, Integer, String, Text, DateTime, JSON
from sqlalchemy.sql import func
from exam_prep.database import Base
import uuid


def _uuid() -> str:
    return str(uuid.uuid4())


class Question(Base):
    """Question bank entry"""
    __tablename__ = "questions"

    id = Column(String, primary_key=True, default=_uuid)
    question_number = Column(String, nullable=False, default="")
    question_text = Column(Text, nullable=False)
    options = Column(JSON, nullable=False)  # {"A": "...", "B": "...", "C": "...", "D": "..."}
    correct_answer = Column(String(1), nullable=True)
    explanation = Column(Text, nullable=True)
    subject = Column(String, nullable=True, index=True)
    difficulty = Column(String, nullable=True)
    year = Column(Integer, nullable=True, index=True)
    tags = Column(JSON, default=list)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class ExamResult(Base):
    """Completed practice exam"""
    __tablename__ = "user_exams"

    id = Column(String, primary_key=True, default=_uuid)
    user_id = Column(String, nullable=False, index=True)
    subject = Column(String, nullable=False)
    score = Column(Integer, nullable=False)
    total_questions = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Resource(Base):
    """Metadata of a subject-scoped uploaded file"""
    __tablename__ = "resources"

    id = Column(String, primary_key=True, default=_uuid)
    subject_id = Column(String, nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    file_name = Column(String, nullable=True)
    file_type = Column(String, nullable=True)
    file_url = Column(String, nullable=True)
    user_id = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
