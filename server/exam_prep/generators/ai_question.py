"""
AI Question Generator.

Generates one multiple-choice question per slot. Every slot gets its own
prompt wording, concept and sampling parameters so parallel slots do not
converge on the same question, and every retry shifts the prompt seed.
"""
import logging
import random
from typing import Dict, Optional, Tuple

from exam_prep.generators.base import BaseQuestionGenerator
from exam_prep.generators.parser import parse_question
from exam_prep.generators.schemas import GenQuestion
from exam_prep.generators.subjects import (
    concept_variation,
    guide_for,
    objective_for,
    uniqueness_requirement,
)

logger = logging.getLogger(__name__)


def sampling_for(index: int) -> Dict[str, float]:
    """Per-slot sampling: temperature 0.7-1.0, max_tokens 1024-1524, top_p 0.9-1.0."""
    return {
        "temperature": 0.7 + (index * 0.05) % 0.3,
        "max_tokens": 1024 + (index * 100) % 500,
        "top_p": 0.9 + (index * 0.02) % 0.1,
    }


class AIQuestionGenerator(BaseQuestionGenerator):
    """Generator for single-answer multiple-choice questions."""

    prompt_name = "question_generation"

    def __init__(self, rng: Optional[random.Random] = None, **kwargs):
        super().__init__(**kwargs)
        self.rng = rng or random.Random()

    def build_prompt(
        self,
        subject: str,
        index: int,
        attempt: int = 0,
        unit_objective: Optional[str] = None,
        challenge_level: str = "advanced",
    ) -> Tuple[str, str]:
        """System and user prompt for one slot and attempt."""
        seed_index = index + attempt * 1000 + self.rng.randint(0, 999)
        prompt = self.get_prompt(
            question_index=index,
            uniqueness_requirement=uniqueness_requirement(index),
            challenge_level=challenge_level,
            concept_variation=concept_variation(subject, seed_index),
            subject_guide=guide_for(subject),
            objective=objective_for(subject, index, unit_objective),
            seed=seed_index,
        )
        return prompt["system_prompt"], prompt["human_prompt"]

    async def generate(
        self,
        subject: str,
        index: int = 0,
        unit_objective: Optional[str] = None,
        challenge_level: str = "advanced",
        **kwargs
    ) -> GenQuestion:
        """
        Generate the question for slot `index`.

        Raises:
            LLMNotConfiguredError, ConnectivityError, GenerationError
        """
        logger.info("📝 Generating question %d for %s (objective: %s, level: %s)",
                    index, subject, unit_objective or "general", challenge_level)

        return await self._generate_with_retries(
            build_prompt=lambda attempt: self.build_prompt(
                subject, index, attempt, unit_objective, challenge_level
            ),
            parse=parse_question,
            **sampling_for(index),
        )


class TutorChatGenerator(BaseQuestionGenerator):
    """Free-text tutoring answer for the assistant chat."""

    prompt_name = "tutor_chat"

    async def generate(
        self,
        subject: str,
        index: int = 0,
        query: str = "",
        context: str = "",
        **kwargs
    ) -> str:
        prompt = self.get_prompt(
            subject=subject,
            subject_guide=guide_for(subject),
            query=query,
            context=context or "No previous conversation.",
        )
        return await self._generate_with_retries(
            build_prompt=lambda attempt: (prompt["system_prompt"], prompt["human_prompt"]),
            parse=lambda text: text.strip(),
            **sampling_for(index),
        )
