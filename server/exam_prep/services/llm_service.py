"""
LLM Service.

Thin async wrapper over an OpenAI-compatible chat completions endpoint
(Groq by default). SDK exceptions are translated into the application's
error types here so callers never import openai.
"""
import logging
from typing import Optional

import openai
from openai import AsyncOpenAI

from exam_prep.config import settings
from exam_prep.errors import (
    ConnectivityError,
    EmptyResponseError,
    LLMError,
    LLMNotConfiguredError,
    RateLimitedError,
)

logger = logging.getLogger(__name__)


class LLMService:
    """Service for plain-text chat completions."""

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None):
        self._api_key = api_key
        self._base_url = base_url
        self._client: Optional[AsyncOpenAI] = None

    @property
    def api_key(self) -> Optional[str]:
        return self._api_key if self._api_key is not None else settings.groq_api_key

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _get_client(self) -> AsyncOpenAI:
        if not self.configured:
            raise LLMNotConfiguredError()
        if self._client is None:
            # Retries are driven by the generation loop, not the SDK
            self._client = AsyncOpenAI(
                api_key=self.api_key,
                base_url=self._base_url or settings.llm_base_url,
                timeout=settings.llm_timeout_seconds,
                max_retries=0,
            )
        return self._client

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        model: str,
        temperature: float = 0.7,
        max_tokens: int = 1024,
        top_p: Optional[float] = None,
    ) -> str:
        """
        Run one chat completion and return the assistant text.

        Raises:
            LLMNotConfiguredError: no API key
            RateLimitedError: HTTP 429
            ConnectivityError: the endpoint could not be reached
            EmptyResponseError: no choices or empty content
            LLMError: any other API failure
        """
        client = self._get_client()
        kwargs = {
            "model": model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if top_p is not None:
            kwargs["top_p"] = top_p

        try:
            response = await client.chat.completions.create(**kwargs)
        except openai.RateLimitError as e:
            raise RateLimitedError(str(e)) from e
        except openai.APITimeoutError as e:
            raise LLMError(f"LLM request timed out: {e}") from e
        except openai.APIConnectionError as e:
            raise ConnectivityError(f"Could not reach LLM API: {e}") from e
        except openai.APIStatusError as e:
            raise LLMError(f"LLM API error ({e.status_code}): {e.message}", status_code=e.status_code) from e

        if not response.choices:
            raise EmptyResponseError()
        content = response.choices[0].message.content
        if not content or not content.strip():
            raise EmptyResponseError("LLM returned empty content")

        logger.debug("LLM response (%s): %s...", model, content[:200])
        return content


# Singleton instance
llm_service = LLMService()
