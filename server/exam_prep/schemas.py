from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Literal, Any
from datetime import datetime
from exam_prep.generators.schemas import GeneratedQuestion, GenerationStats


# AI question generation
class GenerateQuestionsRequest(BaseModel):
    subject: Optional[str] = None
    count: Optional[int] = 1
    unitObjective: Optional[str] = None
    challengeLevel: str = "advanced"
    instructionType: Optional[str] = None
    mode: Literal["question", "chat"] = "question"
    query: Optional[str] = None
    context: Optional[str] = None
    testCall: bool = False

    # Client-side cache busting; accepted and logged only
    randomSeed: Optional[int] = None
    attempt: Optional[int] = None
    uniqueRequestId: Optional[str] = None
    timestamp: Optional[int] = None


class GenerateQuestionsResponse(BaseModel):
    questions: List[GeneratedQuestion]
    source: Literal["ai", "fallback"]
    stats: GenerationStats
    error: Optional[str] = None
    fix: Optional[str] = None
    status: Optional[str] = None


class ChatResponse(BaseModel):
    response: str
    error: Optional[str] = None


# Exam analysis
class AnsweredQuestion(BaseModel):
    question_text: str = ""
    option_a: str = ""
    option_b: str = ""
    option_c: str = ""
    option_d: str = ""
    student_answer: Optional[str] = None
    correct_answer: Optional[str] = None
    subject: Optional[str] = None
    explanation: Optional[str] = None


class AnalyzeExamRequest(BaseModel):
    examData: Optional[List[AnsweredQuestion]] = None


class ExamStats(BaseModel):
    totalQuestions: int
    answeredQuestions: int
    correctAnswers: int
    score: int


class AnalyzeExamResponse(BaseModel):
    success: bool
    analysis: Optional[str] = None
    examStats: Optional[ExamStats] = None
    error: Optional[str] = None


class AnalysisSections(BaseModel):
    overview: str = ""
    strengths: str = ""
    weaknesses: str = ""
    recommendations: str = ""


# Template bank
class TemplateQuestionsRequest(BaseModel):
    subject: Optional[str] = None
    difficulty: str = "all"
    count: int = Field(default=5, ge=1, le=50)


class TemplateQuestion(BaseModel):
    id: str
    question_text: str
    option_a: str
    option_b: str
    option_c: str
    option_d: str
    correct_answer: str
    explanation: str
    subject: str
    difficulty_level: int


class TemplateQuestionsResponse(BaseModel):
    questions: List[TemplateQuestion]
    meta: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


# Data access
class ExamResultCreate(BaseModel):
    p_user_id: str
    p_subject: str
    p_score: int = Field(ge=0)
    p_total_questions: int = Field(ge=0)


class ExamResultResponse(BaseModel):
    id: str
    user_id: str
    subject: str
    score: int
    total_questions: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class QuestionResponse(BaseModel):
    id: str
    question_number: str
    question_text: str
    options: Dict[str, str]
    correct_answer: Optional[str] = None
    explanation: Optional[str] = None
    subject: Optional[str] = None
    difficulty: Optional[str] = None
    year: Optional[int] = None

    class Config:
        from_attributes = True


class StudySessionCreate(BaseModel):
    p_user_id: str
    p_subject: str
    p_duration: int = Field(gt=0, description="Minutes")


class StudySessionResponse(BaseModel):
    id: str
    user_id: str
    subject: str
    duration: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserActivityCreate(BaseModel):
    p_user_id: str
    p_activity_type: str
    p_title: str
    p_subject: Optional[str] = None
    p_details: Dict[str, Any] = Field(default_factory=dict)


class UserActivityResponse(BaseModel):
    id: str
    user_id: str
    activity_type: str
    subject: Optional[str] = None
    title: str
    details: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SubjectProgressUpdate(BaseModel):
    p_user_id: str
    p_subject: str
    p_progress: int = Field(ge=0, le=100)


class SubjectProgressResponse(BaseModel):
    user_id: str
    subject: str
    progress_percentage: int

    class Config:
        from_attributes = True


class ActiveSubject(BaseModel):
    id: str
    name: str


class UserStats(BaseModel):
    totalExams: int
    averageScore: float
    studyTime: int
    mostActiveSubject: ActiveSubject
    overallProgress: float
