"""
Question bank, exam history, study activity and user statistics queries.

Thin SQLAlchemy helpers; callers own the session.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from exam_prep.models import ExamResult, Question, StudySession, UserActivity, UserProfile, UserProgress

logger = logging.getLogger(__name__)


def list_questions(
    db: Session,
    subject: Optional[str] = None,
    year: Optional[int] = None,
    limit: int = 100,
) -> List[Question]:
    query = db.query(Question)
    if subject:
        query = query.filter(Question.subject == subject)
    if year is not None:
        query = query.filter(Question.year == year)
    return query.order_by(Question.question_number).limit(limit).all()


def insert_user_exam(db: Session, user_id: str, subject: str, score: int, total_questions: int) -> ExamResult:
    """Record a completed exam (plus its exam_completed activity) and return the stored row."""
    result = ExamResult(
        user_id=user_id,
        subject=subject,
        score=score,
        total_questions=total_questions,
    )
    db.add(result)
    percentage = int(score / total_questions * 100 + 0.5) if total_questions > 0 else 0
    insert_user_activity(
        db,
        user_id=user_id,
        activity_type="exam_completed",
        title=f"{subject} exam",
        subject=subject,
        details={"score": percentage, "totalQuestions": total_questions, "completed": True},
        commit=False,
    )
    db.commit()
    db.refresh(result)
    logger.info("💾 Saved exam result %s for user %s (%s: %d/%d)",
                result.id, user_id, subject, score, total_questions)
    return result


def user_exams(db: Session, user_id: str) -> List[ExamResult]:
    """A user's exam history, newest first."""
    return (
        db.query(ExamResult)
        .filter(ExamResult.user_id == user_id)
        .order_by(ExamResult.created_at.desc())
        .all()
    )


def insert_study_session(db: Session, user_id: str, subject: str, duration: int) -> StudySession:
    """Record a study session and add its minutes to the user's total study time."""
    session = StudySession(user_id=user_id, subject=subject, duration=duration)
    db.add(session)

    profile = db.get(UserProfile, user_id)
    if profile is None:
        profile = UserProfile(id=user_id, total_study_time=0)
        db.add(profile)
    profile.total_study_time = (profile.total_study_time or 0) + duration

    db.commit()
    db.refresh(session)
    logger.info("⏱️ Recorded %d min study session in %s for user %s", duration, subject, user_id)
    return session


def insert_user_activity(
    db: Session,
    user_id: str,
    activity_type: str,
    title: str,
    subject: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    commit: bool = True,
) -> UserActivity:
    activity = UserActivity(
        user_id=user_id,
        activity_type=activity_type,
        subject=subject,
        title=title,
        details=details or {},
    )
    db.add(activity)
    if commit:
        db.commit()
        db.refresh(activity)
    return activity


def user_activities(db: Session, user_id: str, limit: int = 20) -> List[UserActivity]:
    """Most recent activities first."""
    return (
        db.query(UserActivity)
        .filter(UserActivity.user_id == user_id)
        .order_by(UserActivity.created_at.desc())
        .limit(limit)
        .all()
    )


def update_subject_progress(db: Session, user_id: str, subject: str, progress: int) -> UserProgress:
    """Insert or overwrite the progress row for (user, subject)."""
    row = (
        db.query(UserProgress)
        .filter(UserProgress.user_id == user_id, UserProgress.subject == subject)
        .first()
    )
    if row is None:
        row = UserProgress(user_id=user_id, subject=subject)
        db.add(row)
    row.progress_percentage = progress
    db.commit()
    db.refresh(row)
    return row


def user_stats(db: Session, user_id: str) -> Dict[str, Any]:
    """
    Dashboard statistics for one user.

    averageScore is the mean of score/total*100 over all exams; exams with
    no questions add nothing to the sum but still count in the divisor.
    mostActiveSubject is the subject with the most activities (first seen
    wins a tie); its name is "Unknown" when there is none.
    """
    exams = db.query(ExamResult).filter(ExamResult.user_id == user_id).all()
    total_exams = len(exams)

    average_score = 0.0
    if exams:
        total = sum(e.score / e.total_questions * 100 for e in exams if e.total_questions > 0)
        average_score = total / len(exams)

    profile = db.get(UserProfile, user_id)
    study_time = (profile.total_study_time if profile else 0) or 0

    counts: Dict[str, int] = {}
    activities = (
        db.query(UserActivity)
        .filter(UserActivity.user_id == user_id)
        .order_by(UserActivity.created_at)
        .all()
    )
    for activity in activities:
        if activity.subject:
            counts[activity.subject] = counts.get(activity.subject, 0) + 1

    most_active_id = ""
    max_count = 0
    for subject, count in counts.items():
        if count > max_count:
            most_active_id, max_count = subject, count

    progress = db.query(UserProgress).filter(UserProgress.user_id == user_id).all()
    overall_progress = 0.0
    if progress:
        overall_progress = sum(p.progress_percentage for p in progress) / len(progress)

    return {
        "totalExams": total_exams,
        "averageScore": average_score,
        "studyTime": study_time,
        "mostActiveSubject": {"id": most_active_id, "name": most_active_id or "Unknown"},
        "overallProgress": overall_progress,
    }
