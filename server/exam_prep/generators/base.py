"""
Base Generator Class.

Provides the model-switching retry loop shared by all generators.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, TypeVar

from exam_prep.config import settings
from exam_prep.errors import (
    ConnectivityError,
    ExtractionError,
    GenerationError,
    LLMError,
    LLMNotConfiguredError,
    RateLimitedError,
)
from exam_prep.services.llm_service import LLMService, llm_service
from exam_prep.services.prompt_management import get_prompt

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[Any]]


class BaseQuestionGenerator(ABC):
    """Abstract base class for generators backed by the chat LLM."""

    # Prompt file name under prompts/ - must be overridden
    prompt_name: str = "base"

    def __init__(
        self,
        llm: Optional[LLMService] = None,
        models: Optional[List[str]] = None,
        max_attempts: Optional[int] = None,
        sleep: Optional[Sleep] = None,
    ):
        self.llm = llm or llm_service
        self.models = models or settings.llm_models_list
        self.max_attempts = max_attempts or settings.max_attempts
        self._sleep = sleep or asyncio.sleep

    @abstractmethod
    async def generate(self, subject: str, index: int = 0, **kwargs):
        """Generate one item for the given subject and slot index."""

    def get_prompt(self, **variables) -> Dict[str, str]:
        """Load this generator's YAML prompt with variables filled in."""
        return get_prompt(self.prompt_name, **variables)

    @staticmethod
    def backoff_delay(attempt: int) -> float:
        return min(settings.backoff_base_seconds * (2 ** attempt), settings.backoff_cap_seconds)

    async def _generate_with_retries(
        self,
        build_prompt: Callable[[int], Tuple[str, str]],
        parse: Callable[[str], T],
        temperature: float = 0.7,
        max_tokens: int = 1024,
        top_p: Optional[float] = None,
    ) -> T:
        """
        Try each model in turn, up to max_attempts per model.

        Args:
            build_prompt: attempt number -> (system_prompt, user_prompt);
                called again on every attempt so callers can vary the seed
            parse: turns the raw completion into a result; raising
                ExtractionError marks the response as malformed

        Returns:
            The first successfully parsed result

        Raises:
            LLMNotConfiguredError: no API key
            ConnectivityError: the endpoint is unreachable, never retried
            GenerationError: every model and attempt failed
        """
        last_error: Optional[Exception] = None
        attempt_number = 0

        for model in self.models:
            logger.info("🤖 Attempting generation with model: %s", model)
            for attempt in range(self.max_attempts):
                system_prompt, user_prompt = build_prompt(attempt_number)
                attempt_number += 1
                try:
                    text = await self.llm.complete(
                        system_prompt=system_prompt,
                        user_prompt=user_prompt,
                        model=model,
                        temperature=temperature,
                        max_tokens=max_tokens,
                        top_p=top_p,
                    )
                    result = parse(text)
                    if attempt > 0:
                        logger.info("✅ %s succeeded on attempt %d", model, attempt + 1)
                    return result
                except (LLMNotConfiguredError, ConnectivityError):
                    raise
                except RateLimitedError as e:
                    last_error = e
                    logger.warning("⏳ Rate limit hit on %s (attempt %d/%d)", model, attempt + 1, self.max_attempts)
                except (LLMError, ExtractionError) as e:
                    last_error = e
                    logger.warning("⚠️ Attempt %d/%d with %s failed: %s", attempt + 1, self.max_attempts, model, e)

                if attempt < self.max_attempts - 1:
                    delay = self.backoff_delay(attempt)
                    logger.info("🔄 Retrying in %.1fs...", delay)
                    await self._sleep(delay)

            logger.warning("⚠️ Model %s exhausted, trying next model", model)

        raise GenerationError(str(last_error) if last_error else "All models failed to generate content")
