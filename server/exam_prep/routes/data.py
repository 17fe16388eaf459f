"""
Data access endpoints: question bank listing, exam history, study
activity and user statistics.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from exam_prep.database import get_db
from exam_prep.schemas import (
    ExamResultCreate,
    ExamResultResponse,
    QuestionResponse,
    StudySessionCreate,
    StudySessionResponse,
    SubjectProgressResponse,
    SubjectProgressUpdate,
    UserActivityCreate,
    UserActivityResponse,
    UserStats,
)
from exam_prep.services import question_bank

router = APIRouter(tags=["Data"])


@router.post("/rpc/insert_user_exam", response_model=ExamResultResponse)
async def insert_user_exam(request: ExamResultCreate, db: Session = Depends(get_db)):
    """Record a completed practice exam."""
    return question_bank.insert_user_exam(
        db,
        user_id=request.p_user_id,
        subject=request.p_subject,
        score=request.p_score,
        total_questions=request.p_total_questions,
    )


@router.get("/rpc/user_exams/{user_id}", response_model=List[ExamResultResponse])
async def get_user_exams(user_id: str, db: Session = Depends(get_db)):
    return question_bank.user_exams(db, user_id)


@router.get("/questions", response_model=List[QuestionResponse])
async def list_questions(
    subject: Optional[str] = None,
    year: Optional[int] = None,
    limit: int = Query(default=100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    """Question bank entries filtered by subject and exam year."""
    return question_bank.list_questions(db, subject=subject, year=year, limit=limit)


@router.post("/rpc/insert_study_session", response_model=StudySessionResponse)
async def insert_study_session(request: StudySessionCreate, db: Session = Depends(get_db)):
    """Record study time in a subject."""
    return question_bank.insert_study_session(
        db,
        user_id=request.p_user_id,
        subject=request.p_subject,
        duration=request.p_duration,
    )


@router.post("/rpc/insert_user_activity", response_model=UserActivityResponse)
async def insert_user_activity(request: UserActivityCreate, db: Session = Depends(get_db)):
    return question_bank.insert_user_activity(
        db,
        user_id=request.p_user_id,
        activity_type=request.p_activity_type,
        title=request.p_title,
        subject=request.p_subject,
        details=request.p_details,
    )


@router.get("/rpc/user_activities/{user_id}", response_model=List[UserActivityResponse])
async def get_user_activities(
    user_id: str,
    limit: int = Query(default=20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    return question_bank.user_activities(db, user_id, limit=limit)


@router.post("/rpc/update_subject_progress", response_model=SubjectProgressResponse)
async def update_subject_progress(request: SubjectProgressUpdate, db: Session = Depends(get_db)):
    return question_bank.update_subject_progress(
        db,
        user_id=request.p_user_id,
        subject=request.p_subject,
        progress=request.p_progress,
    )


@router.get("/rpc/user_stats/{user_id}", response_model=UserStats)
async def get_user_stats(user_id: str, db: Session = Depends(get_db)):
    """Dashboard totals: exams, average score, study time, most active subject, progress."""
    return question_bank.user_stats(db, user_id)
