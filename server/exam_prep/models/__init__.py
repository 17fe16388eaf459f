"""
Models package initialization
Import all models here to ensure they are registered with SQLAlchemy
"""

from exam_prep.models.user import UserProfile, UserRole
from exam_prep.models.content import Question, ExamResult, Resource
from exam_prep.models.teacher import Teacher, TeachingSession, TeacherRequest, RequestStatus
from exam_prep.models.activity import StudySession, UserActivity, UserProgress

__all__ = [
    "UserProfile",
    "UserRole",
    "Question",
    "ExamResult",
    "Resource",
    "Teacher",
    "TeachingSession",
    "TeacherRequest",
    "RequestStatus",
    "StudySession",
    "UserActivity",
    "UserProgress",
]
