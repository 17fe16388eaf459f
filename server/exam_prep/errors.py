"""
Exception hierarchy shared by the generation, analysis and client layers.
"""
from typing import Optional


class ExamPrepError(Exception):
    """Base class for all application errors."""


class ConnectivityError(ExamPrepError):
    """No network path to the remote service. Never retried."""

    def __init__(self, message: str = "An internet connection is required to generate AI questions. Please connect and try again."):
        super().__init__(message)


class LLMError(ExamPrepError):
    """The LLM call failed or returned something unusable."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class LLMNotConfiguredError(LLMError):
    def __init__(self):
        super().__init__("API key is not configured. Ask the administrator to set up GROQ_API_KEY.")


class RateLimitedError(LLMError):
    def __init__(self, message: str = "Rate limit reached"):
        super().__init__(message, status_code=429)


class EmptyResponseError(LLMError):
    def __init__(self, message: str = "Empty response from LLM API"):
        super().__init__(message)


class ExtractionError(ExamPrepError):
    """Question fields could not be recovered from the LLM text."""


class GenerationError(ExamPrepError):
    """A whole generation request failed; the message is user-facing."""


class AnalysisError(ExamPrepError):
    """Exam analysis could not be produced."""
