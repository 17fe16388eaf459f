"""
Exam Analysis Service.

Turns a finished exam into a written performance report with one LLM call,
and provides the score-only summary used when that call is unavailable.
"""
import logging
from typing import Dict, List, Optional, Sequence

from exam_prep.config import settings
from exam_prep.errors import AnalysisError, ConnectivityError, LLMError
from exam_prep.schemas import AnalysisSections, AnsweredQuestion, ExamStats
from exam_prep.services.llm_service import LLMService, llm_service
from exam_prep.services.prompt_management import get_prompt

logger = logging.getLogger(__name__)

ANALYSIS_TEMPERATURE = 0.3
ANALYSIS_MAX_TOKENS = 3000

STRENGTH_KEYWORDS = ("strength", "did well", "excellent", "good job")
WEAKNESS_KEYWORDS = ("improve", "challenging", "struggled", "difficult")
RECOMMENDATION_KEYWORDS = ("recommend", "suggest", "try", "next step")


def is_correct(question: AnsweredQuestion) -> bool:
    return bool(question.student_answer) and question.student_answer == question.correct_answer


def compute_stats(exam_data: Sequence[AnsweredQuestion]) -> ExamStats:
    total = len(exam_data)
    correct = sum(1 for q in exam_data if is_correct(q))
    return ExamStats(
        totalQuestions=total,
        answeredQuestions=sum(1 for q in exam_data if q.student_answer),
        correctAnswers=correct,
        score=round(correct / total * 100) if total else 0,
    )


def main_subject(exam_data: Sequence[AnsweredQuestion]) -> str:
    return next((q.subject for q in exam_data if q.subject), "")


def format_exam_data(exam_data: Sequence[AnsweredQuestion]) -> str:
    blocks = []
    for number, q in enumerate(exam_data, start=1):
        blocks.append(
            f"Question {number}: {q.question_text}\n"
            f"A) {q.option_a}\n"
            f"B) {q.option_b}\n"
            f"C) {q.option_c}\n"
            f"D) {q.option_d}\n"
            f"Student's Answer: {q.student_answer or 'Not answered'}\n"
            f"Correct Answer: {q.correct_answer}\n"
            f"Subject/Topic: {q.subject or 'Not specified'}\n"
            f"Explanation: {q.explanation or 'Not provided'}"
        )
    return "\n\n".join(blocks)


def performance_descriptor(score: int) -> str:
    if score >= 90:
        return "excellent"
    if score >= 80:
        return "very good"
    if score >= 70:
        return "good"
    if score >= 60:
        return "satisfactory"
    if score >= 50:
        return "fair"
    return "needs improvement"


def group_incorrect_by_topic(exam_data: Sequence[AnsweredQuestion]) -> Dict[str, List[int]]:
    """Topic -> 1-based question numbers answered incorrectly."""
    groups: Dict[str, List[int]] = {}
    for number, q in enumerate(exam_data, start=1):
        if not is_correct(q):
            groups.setdefault(q.subject or "General", []).append(number)
    return groups


def _find(paragraphs: List[str], keywords: Sequence[str]) -> int:
    for i, paragraph in enumerate(paragraphs):
        lowered = paragraph.lower()
        if any(keyword in lowered for keyword in keywords):
            return i
    return -1


def split_sections(analysis: Optional[str]) -> AnalysisSections:
    """
    Split free-text analysis into four sections by keyword.

    This is a heuristic: the model is asked not to print headers, so the
    paragraph that first mentions a section's keywords starts that section.
    """
    if not analysis:
        return AnalysisSections()

    paragraphs = [p for p in analysis.split("\n\n") if p.strip()]

    strengths = _find(paragraphs, STRENGTH_KEYWORDS)
    if strengths == -1:
        strengths = 1
    weaknesses = _find(paragraphs, WEAKNESS_KEYWORDS)
    if weaknesses == -1:
        weaknesses = 2
    if weaknesses == strengths:
        weaknesses += 1
    recommendations = _find(paragraphs, RECOMMENDATION_KEYWORDS)
    if recommendations == -1:
        recommendations = max(3, len(paragraphs) - 1)

    indices = sorted([0, strengths, weaknesses, recommendations])
    return AnalysisSections(
        overview="\n\n".join(paragraphs[indices[0]:indices[1]]),
        strengths="\n\n".join(paragraphs[indices[1]:indices[2]]),
        weaknesses="\n\n".join(paragraphs[indices[2]:indices[3]]),
        recommendations="\n\n".join(paragraphs[indices[3]:]),
    )


def generic_summary(exam_data: Sequence[AnsweredQuestion]) -> AnalysisSections:
    """Score-based sections shown when no AI analysis is available."""
    stats = compute_stats(exam_data)
    descriptor = performance_descriptor(stats.score)
    incorrect = stats.totalQuestions - stats.correctAnswers
    by_topic = group_incorrect_by_topic(exam_data)

    overview = (
        f"You scored {stats.score}% ({stats.correctAnswers} out of {stats.totalQuestions} correct), "
        f"which is {descriptor}. Your results show a solid foundation in some concepts while "
        "others may need more focused attention."
    )

    if stats.totalQuestions and incorrect == 0:
        strengths = (
            "Excellent work! You've demonstrated strong understanding across all topics covered "
            "in this exam."
        )
    elif stats.correctAnswers:
        numbers = [str(n) for n, q in enumerate(exam_data, start=1) if is_correct(q)]
        strengths = (
            f"You demonstrated good understanding on question(s) {', '.join(numbers)}. "
            "Continue to build on these strengths."
        )
    else:
        strengths = (
            "This exam was challenging for you, but everyone has different starting points. "
            "With targeted practice you'll see improvement next time."
        )

    if by_topic:
        weaknesses = "\n\n".join(
            f"{topic}: review question(s) {', '.join(str(n) for n in numbers)}."
            for topic, numbers in by_topic.items()
        )
        recommendations = "\n\n".join(
            f"Strategies for {topic}: revisit the fundamental principles of {topic}, "
            f"paying special attention to question(s) {', '.join(str(n) for n in numbers)}, "
            "then practice similar problems until you can explain each step."
            for topic, numbers in by_topic.items()
        )
    else:
        weaknesses = "Outstanding! You answered all questions correctly."
        recommendations = (
            "Keep challenging yourself with more advanced problems and consider helping others "
            "understand these concepts to solidify your mastery."
        )

    return AnalysisSections(
        overview=overview,
        strengths=strengths,
        weaknesses=weaknesses,
        recommendations=recommendations,
    )


class ExamAnalysisService:
    """Single-call exam analysis."""

    def __init__(self, llm: Optional[LLMService] = None, model: Optional[str] = None):
        self.llm = llm or llm_service
        self.model = model or settings.analysis_model

    def build_prompt(self, exam_data: Sequence[AnsweredQuestion], stats: ExamStats) -> Dict[str, str]:
        return get_prompt(
            "exam_analysis",
            score=stats.score,
            correct_count=stats.correctAnswers,
            total_questions=stats.totalQuestions,
            main_subject=main_subject(exam_data),
            incorrect_count=stats.totalQuestions - stats.correctAnswers,
            formatted_exam_data=format_exam_data(exam_data),
        )

    async def analyze(self, exam_data: Optional[Sequence[AnsweredQuestion]]) -> Dict:
        """
        Analyze a completed exam.

        Returns:
            {"success": True, "analysis": str, "examStats": ExamStats}

        Raises:
            AnalysisError: invalid exam data or the LLM call failed (not retried)
        """
        if not exam_data:
            raise AnalysisError("Invalid exam data provided")

        logger.info("📊 Processing analysis for %d exam questions", len(exam_data))
        stats = compute_stats(exam_data)
        prompt = self.build_prompt(exam_data, stats)

        try:
            analysis = await self.llm.complete(
                system_prompt=prompt["system_prompt"],
                user_prompt=prompt["human_prompt"],
                model=self.model,
                temperature=ANALYSIS_TEMPERATURE,
                max_tokens=ANALYSIS_MAX_TOKENS,
            )
        except (LLMError, ConnectivityError) as e:
            logger.error("❌ Exam analysis failed: %s", e)
            raise AnalysisError(str(e)) from e

        logger.info("✅ Analysis successfully generated")
        return {"success": True, "analysis": analysis, "examStats": stats}


# Singleton instance
exam_analysis_service = ExamAnalysisService()
