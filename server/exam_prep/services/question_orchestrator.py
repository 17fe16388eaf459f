"""
Question Orchestrator Service.

Runs one AI generation slot per requested question, staggering their start,
then deduplicates the results and backfills any gap with fallback templates
so the caller always receives exactly the number of questions requested.
"""
import asyncio
import logging
import random
from typing import List, Optional, Tuple

from exam_prep.config import settings
from exam_prep.errors import ConnectivityError, GenerationError, LLMNotConfiguredError
from exam_prep.generators.ai_question import AIQuestionGenerator, TutorChatGenerator
from exam_prep.generators.base import Sleep
from exam_prep.generators.fallback import template_for_slot
from exam_prep.generators.fingerprint import fingerprint
from exam_prep.generators.schemas import (
    GeneratedQuestion,
    GenerationResult,
    GenerationStats,
    GenQuestion,
    QuestionSource,
)
from exam_prep.services.llm_service import LLMService, llm_service

logger = logging.getLogger(__name__)

Slot = Tuple[GenQuestion, QuestionSource, Optional[str]]

CHAT_APOLOGY = (
    "I'm sorry, I'm having trouble connecting to my knowledge base right now. "
    "Please try again in a moment."
)


def clamp_count(count: Optional[int]) -> int:
    """Requested count limited to 1..max_questions, defaulting to 1."""
    try:
        value = int(count) if count is not None else 1
    except (TypeError, ValueError):
        value = 1
    return max(1, min(value, settings.max_questions))


class QuestionOrchestrator:
    """Batch question generation with per-slot fallback."""

    def __init__(
        self,
        llm: Optional[LLMService] = None,
        sleep: Optional[Sleep] = None,
        rng: Optional[random.Random] = None,
        stagger_seconds: Optional[float] = None,
    ):
        self.llm = llm or llm_service
        self.rng = rng or random.Random()
        self._sleep = sleep or asyncio.sleep
        self.stagger_seconds = settings.stagger_seconds if stagger_seconds is None else stagger_seconds
        self.generator = AIQuestionGenerator(llm=self.llm, sleep=self._sleep, rng=self.rng)
        self.chat_generator = TutorChatGenerator(llm=self.llm, sleep=self._sleep)

    @property
    def configured(self) -> bool:
        return self.llm.configured

    # --- Slots ---

    def _fallback_slot(self, subject: str, unit_objective: Optional[str], index: int,
                       error: Optional[str] = None) -> Slot:
        return template_for_slot(subject, unit_objective, index, self.rng), "fallback", error

    async def _run_slot(self, subject: str, index: int, unit_objective: Optional[str],
                        challenge_level: str) -> Slot:
        if index:
            await self._sleep(index * self.stagger_seconds)
        try:
            question = await self.generator.generate(
                subject,
                index=index,
                unit_objective=unit_objective,
                challenge_level=challenge_level,
            )
            return question, "ai", None
        except ConnectivityError as e:
            logger.warning("📡 Slot %d could not reach the LLM, using fallback: %s", index, e)
            return self._fallback_slot(subject, unit_objective, index, str(e))
        except GenerationError as e:
            logger.warning("⚠️ Slot %d exhausted retries, using fallback: %s", index, e)
            return self._fallback_slot(subject, unit_objective, index, str(e))

    # --- Assembly ---

    def _assemble(self, subject: str, unit_objective: Optional[str], slots: List[Slot],
                  count: int) -> GenerationResult:
        """Drop near-duplicates, backfill to `count`, attach metadata and stats."""
        seen = set()
        unique: List[Tuple[GenQuestion, QuestionSource]] = []
        first_error: Optional[str] = None

        for question, source, error in slots:
            if error and first_error is None:
                first_error = error
            key = fingerprint(question)
            if key in seen:
                logger.info("🔁 Dropping duplicate question: %s...", question.question_text[:50])
                continue
            seen.add(key)
            unique.append((question, source))

        missing = count - len(unique)
        if missing > 0:
            logger.info("🧩 Backfilling %d question(s) with fallback templates", missing)
        for i in range(missing):
            offset = len(unique) + i + 50 + self.rng.randint(0, 9999)
            base = template_for_slot(subject, unit_objective, offset, self.rng)
            candidate = base.model_copy(update={"question_text": f"[Q{i + 1}] {base.question_text}"})
            suffix = 1
            # The fingerprint only sees the text prefix, so the counter goes in the label
            while fingerprint(candidate) in seen:
                suffix += 1
                candidate = base.model_copy(update={"question_text": f"[Q{i + 1}.{suffix}] {base.question_text}"})
            seen.add(fingerprint(candidate))
            unique.append((candidate, "fallback"))

        questions = [
            GeneratedQuestion.from_gen(question, subject, index, source, unit_objective)
            for index, (question, source) in enumerate(unique[:count])
        ]
        ai_count = sum(1 for q in questions if q.source == "ai")
        return GenerationResult(
            questions=questions,
            source="ai" if ai_count else "fallback",
            stats=GenerationStats(
                aiGenerated=ai_count,
                fallbackUsed=len(questions) - ai_count,
                totalRequested=count,
            ),
            error=first_error,
        )

    # --- Public API ---

    def fallback_batch(self, subject: str, count: int, unit_objective: Optional[str] = None,
                       error: Optional[str] = None) -> GenerationResult:
        """Whole batch served from templates."""
        slots = [self._fallback_slot(subject, unit_objective, i) for i in range(count)]
        result = self._assemble(subject, unit_objective, slots, count)
        result.error = error
        return result

    async def generate_batch(
        self,
        subject: str,
        count: Optional[int] = 1,
        unit_objective: Optional[str] = None,
        challenge_level: str = "advanced",
    ) -> GenerationResult:
        """
        Generate `count` questions (clamped to 1..max_questions).

        Never fails for per-slot problems: each failing slot is replaced by a
        fallback template. Without an API key the whole batch is templated
        and `error` explains why.
        """
        count = clamp_count(count)

        if not self.configured:
            logger.warning("🔑 LLM API key not configured, serving %d fallback question(s)", count)
            return self.fallback_batch(subject, count, unit_objective, LLMNotConfiguredError().args[0])

        logger.info("🚀 Generating %d question(s) for %s", count, subject)
        try:
            slots = await asyncio.gather(*[
                self._run_slot(subject, i, unit_objective, challenge_level)
                for i in range(count)
            ])
        except LLMNotConfiguredError as e:
            return self.fallback_batch(subject, count, unit_objective, str(e))
        except Exception as e:
            logger.exception("❌ Batch generation failed, serving fallback batch")
            return self.fallback_batch(subject, count, unit_objective, f"Generation failed: {e}")

        result = self._assemble(subject, unit_objective, list(slots), count)
        logger.info("🏁 Generated %d question(s): %d AI, %d fallback",
                    len(result.questions), result.stats.aiGenerated, result.stats.fallbackUsed)
        return result

    async def chat(self, subject: str, query: str, context: str = "") -> Tuple[str, Optional[str]]:
        """Tutor chat answer; on failure an apology text and the error message."""
        try:
            answer = await self.chat_generator.generate(subject or "general studies", query=query, context=context)
            return answer, None
        except (LLMNotConfiguredError, ConnectivityError, GenerationError) as e:
            logger.error("❌ Chat response failed: %s", e)
            return CHAT_APOLOGY, str(e)


# Singleton instance
question_orchestrator = QuestionOrchestrator()
