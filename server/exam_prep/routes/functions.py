"""
Function endpoints: AI question generation, exam analysis and template questions.
"""
import logging
import random

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from exam_prep.errors import AnalysisError
from exam_prep.generators import fallback
from exam_prep.schemas import (
    AnalyzeExamRequest,
    AnalyzeExamResponse,
    ChatResponse,
    GenerateQuestionsRequest,
    GenerateQuestionsResponse,
    TemplateQuestion,
    TemplateQuestionsRequest,
    TemplateQuestionsResponse,
)
from exam_prep.services.exam_analysis import ExamAnalysisService, exam_analysis_service
from exam_prep.services.question_orchestrator import QuestionOrchestrator, question_orchestrator

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Functions"])

MISSING_KEY_FIX = "Set GROQ_API_KEY in the server environment (.env) and restart the service."
GENERATION_FAILED = "We couldn't generate questions right now. Please try again in a moment."

VALID_DIFFICULTIES = ("easy", "medium", "hard", "all")


def get_orchestrator() -> QuestionOrchestrator:
    return question_orchestrator


def get_analysis_service() -> ExamAnalysisService:
    return exam_analysis_service


def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


@router.post("/ai-generate-questions")
async def ai_generate_questions(
    request: GenerateQuestionsRequest,
    orchestrator: QuestionOrchestrator = Depends(get_orchestrator),
):
    """Generate AI questions (mode=question) or a tutor answer (mode=chat)."""
    if request.testCall:
        logger.info("🧪 Test call received")
        result = await orchestrator.generate_batch("Mathematics", 1)
        return GenerateQuestionsResponse(**result.model_dump(), status="test_success")

    if request.mode == "chat":
        answer, error = await orchestrator.chat(request.subject or "", request.query or "", request.context or "")
        return ChatResponse(response=answer, error=error)

    if not request.subject:
        return _error(400, "Subject is required")

    challenge_level = request.instructionType or request.challengeLevel
    logger.info("📥 Request for %s %s question(s) on %s (attempt %s, request %s)",
                request.count, challenge_level, request.subject, request.attempt, request.uniqueRequestId)

    try:
        result = await orchestrator.generate_batch(
            request.subject,
            request.count,
            unit_objective=request.unitObjective,
            challenge_level=challenge_level,
        )
    except Exception as e:
        logger.exception("❌ Question generation failed completely: %s", e)
        return _error(500, GENERATION_FAILED, questions=[])

    response = GenerateQuestionsResponse(**result.model_dump())
    if not orchestrator.configured:
        response.fix = MISSING_KEY_FIX
    return response


@router.post("/analyze-exam-results", response_model=AnalyzeExamResponse, response_model_exclude_none=True)
async def analyze_exam_results(
    request: AnalyzeExamRequest,
    service: ExamAnalysisService = Depends(get_analysis_service),
):
    """Written performance analysis of a completed exam."""
    try:
        return await service.analyze(request.examData)
    except AnalysisError as e:
        return JSONResponse(status_code=500, content={"success": False, "error": str(e)})


@router.post("/generate-questions", response_model=TemplateQuestionsResponse)
async def generate_template_questions(request: TemplateQuestionsRequest):
    """Questions from the static template bank."""
    if not request.subject:
        return _error(400, "Subject is required")

    difficulty = request.difficulty.lower()
    if difficulty not in VALID_DIFFICULTIES:
        return _error(400, f"Invalid difficulty: {request.difficulty}. Use easy, medium, hard or all.")

    if not fallback.templates_for(request.subject, difficulty):
        logger.warning("⚠️ No templates found for subject: %s", request.subject)
        return TemplateQuestionsResponse(questions=[], error=f"No templates found for subject: {request.subject}")

    questions, meta = fallback.generate_batch(request.subject, difficulty, request.count, random.Random())
    logger.info("📚 Generated %d template question(s) for %s (%s)", len(questions), request.subject, difficulty)
    return TemplateQuestionsResponse(
        questions=[TemplateQuestion(**q.model_dump(include=set(TemplateQuestion.model_fields))) for q in questions],
        meta=meta,
    )
