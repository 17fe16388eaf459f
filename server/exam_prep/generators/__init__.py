"""
Question Generators Package.

- ai_question: per-slot AI question generation and tutor chat answers
- fallback: static template bank used when AI generation is unavailable
- parser: extraction of question fields from LLM text
- fingerprint: duplicate detection keys
"""
from exam_prep.generators.ai_question import AIQuestionGenerator, TutorChatGenerator
from exam_prep.generators.schemas import GeneratedQuestion, GenerationResult, GenerationStats, GenQuestion

__all__ = [
    "AIQuestionGenerator",
    "TutorChatGenerator",
    "GeneratedQuestion",
    "GenerationResult",
    "GenerationStats",
    "GenQuestion",
]
