"""
Question Schemas.

Pydantic models for generated multiple-choice questions.

IMPORTANT: correct_answer is a letter (A, B, C, D), matching the
option_a..option_d fields, not a 0-based index.
"""
import uuid
from datetime import datetime, timezone
from typing import List, Optional, Literal, Dict
from pydantic import BaseModel, field_validator


LETTERS = ("A", "B", "C", "D")

QuestionSource = Literal["ai", "fallback"]


class GenQuestion(BaseModel):
    """Fields the LLM is asked to emit."""
    question_text: str
    option_a: str
    option_b: str
    option_c: str
    option_d: str
    correct_answer: str = "A"
    explanation: str = ""

    @field_validator("correct_answer", mode="before")
    @classmethod
    def normalise_answer(cls, value) -> str:
        letter = str(value or "").strip()[:1].upper()
        return letter if letter in LETTERS else "A"

    @property
    def options(self) -> List[str]:
        return [self.option_a, self.option_b, self.option_c, self.option_d]


class GeneratedQuestion(GenQuestion):
    """A question as returned to callers, with generation metadata."""
    id: str
    subject: str
    difficulty_level: int = 3
    unit_objective: str = ""
    created_at: str
    source: QuestionSource = "ai"

    @classmethod
    def from_gen(
        cls,
        question: GenQuestion,
        subject: str,
        index: int,
        source: QuestionSource,
        unit_objective: Optional[str] = None,
        difficulty_level: int = 3,
        question_id: Optional[str] = None,
    ) -> "GeneratedQuestion":
        now = datetime.now(timezone.utc)
        return cls(
            **question.model_dump(include=set(GenQuestion.model_fields)),
            id=question_id or f"{uuid.uuid4()}-{index}-{int(now.timestamp() * 1000) % 10000}",
            subject=subject,
            difficulty_level=difficulty_level,
            unit_objective=unit_objective or "",
            created_at=now.isoformat(),
            source=source,
        )


class GenerationStats(BaseModel):
    aiGenerated: int
    fallbackUsed: int
    totalRequested: int


class GenerationResult(BaseModel):
    questions: List[GeneratedQuestion]
    source: QuestionSource
    stats: GenerationStats
    error: Optional[str] = None


Difficulty = Literal["easy", "medium", "hard"]


class Template(BaseModel):
    """Hand-authored fallback question."""
    question: str
    options: Dict[str, str]
    correct: str
    difficulty: Difficulty = "medium"
    explanation: str = ""
    # Perturbation family; None means prefix/shuffle variation only
    family: Optional[str] = None

    @property
    def correct_value(self) -> str:
        return self.options[self.correct]

    def to_gen(self) -> GenQuestion:
        return GenQuestion(
            question_text=self.question,
            option_a=self.options["A"],
            option_b=self.options["B"],
            option_c=self.options["C"],
            option_d=self.options["D"],
            correct_answer=self.correct,
            explanation=self.explanation,
        )

