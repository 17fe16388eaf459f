"""
Question Bank Client.

Async client for the exam-prep functions. Requests AI questions with
client-side retries, drops exact duplicates, and keeps a small local
history of generated questions. Also requests exam analysis, falling back
to a score-only summary when the service cannot be used.
"""
import asyncio
import json
import logging
import os
import random
import string
import threading
import time
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence

import httpx

from exam_prep.config import settings
from exam_prep.errors import ConnectivityError, GenerationError
from exam_prep.generators.fingerprint import full_key
from exam_prep.generators.subjects import CHALLENGE_VARIATIONS
from exam_prep.network import NetworkStatus
from exam_prep.schemas import AnsweredQuestion
from exam_prep.services.exam_analysis import compute_stats, generic_summary, split_sections

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3
BASE_DELAY_SECONDS = 2.0
MAX_DELAY_SECONDS = 15.0

GENERATION_FAILED_MESSAGE = "AI question generation failed. Please try again in a moment."


def _now_ms() -> int:
    return int(time.time() * 1000)


class QuestionHistory:
    """JSON-file store of generated questions, per-exam usage and last sync time."""

    def __init__(self, path: Optional[str] = None):
        self.path = path or settings.history_file
        # load-modify-save must not interleave between callers
        self._lock = threading.Lock()

    def load(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {"questions": [], "usage": {}, "last_sync": None}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error("❌ Error reading question history: %s", e)
            return {"questions": [], "usage": {}, "last_sync": None}
        data.setdefault("questions", [])
        data.setdefault("usage", {})
        data.setdefault("last_sync", None)
        return data

    def _save(self, data: Dict[str, Any]) -> None:
        try:
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
        except OSError as e:
            logger.error("❌ Error storing question history: %s", e)

    @property
    def questions(self) -> List[Dict[str, Any]]:
        return self.load()["questions"]

    def usage(self, exam_id: str) -> List[str]:
        return self.load()["usage"].get(exam_id, [])

    def record(self, exam_id: str, questions: Sequence[Mapping[str, Any]]) -> None:
        """Replace the stored batch and remember which ids the exam used."""
        with self._lock:
            data = self.load()
            data["questions"] = [dict(q) for q in questions]
            data["usage"][exam_id] = [q["id"] for q in questions]
            data["last_sync"] = _now_ms()
            self._save(data)


class QuestionBankClient:
    """Client for the ai-generate-questions and analyze-exam-results functions."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        network: Optional[NetworkStatus] = None,
        history: Optional[QuestionHistory] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
        rng: Optional[random.Random] = None,
        timeout: float = 120.0,
    ):
        self.base_url = (base_url or settings.functions_url).rstrip("/")
        self.network = network or NetworkStatus()
        self.history = history or QuestionHistory()
        self._transport = transport
        self._sleep = sleep or asyncio.sleep
        self.rng = rng or random.Random()
        self.timeout = timeout

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self._transport)

    async def _ensure_online(self) -> bool:
        """Re-check reachability when the tracker last saw the network down."""
        if self.network.is_online:
            return True
        return await self.network.probe(transport=self._transport)

    @staticmethod
    def backoff_delay(attempt: int) -> float:
        """Delay after a failed 1-based attempt."""
        return min(BASE_DELAY_SECONDS * (2 ** (attempt - 1)), MAX_DELAY_SECONDS)

    def _request_body(self, count: int, subject: Optional[str], unit_objective: Optional[str],
                      attempt: int) -> Dict[str, Any]:
        random_seed = self.rng.randint(0, 999999) + _now_ms() % 10000
        body = {
            "subject": subject or "",
            "count": count,
            "challengeLevel": "advanced",
            "instructionType": CHALLENGE_VARIATIONS[attempt % len(CHALLENGE_VARIATIONS)],
            "randomSeed": random_seed,
            "attempt": attempt,
            "uniqueRequestId": f"{_now_ms()}-{attempt}-{random_seed}",
            "timestamp": _now_ms(),
        }
        if unit_objective:
            body["unitObjective"] = unit_objective
        return body

    def _dedupe(self, questions: Sequence[Mapping[str, Any]]) -> List[Dict[str, Any]]:
        unique: Dict[str, Dict[str, Any]] = {}
        for q in questions:
            unique.setdefault(full_key(q), dict(q))
        result = []
        for index, q in enumerate(unique.values()):
            if not q.get("id"):
                suffix = "".join(self.rng.choices(string.ascii_lowercase + string.digits, k=7))
                q["id"] = f"generated-{_now_ms()}-{index}-{suffix}"
            result.append(q)
        return result

    async def generate_unique_questions(
        self,
        count: int,
        subject: Optional[str] = None,
        unit_objective: Optional[str] = None,
        exam_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Request `count` AI questions.

        Returns:
            {"questions": [...], "source": "ai", "warning": Optional[str]}

        Raises:
            ConnectivityError: offline (after a fresh probe) or the service is
                unreachable; never retried
            GenerationError: every attempt failed
        """
        if not await self._ensure_online():
            raise ConnectivityError()

        exam_id = exam_id or str(_now_ms())
        logger.info("📝 Requesting %d AI questions for %s (objective: %s)",
                    count, subject or "general", unit_objective or "not specified")

        last_error: Optional[str] = None
        async with self._client() as client:
            for attempt in range(1, MAX_ATTEMPTS + 1):
                logger.info("🔄 Generation attempt %d/%d", attempt, MAX_ATTEMPTS)
                try:
                    response = await client.post(
                        "/ai-generate-questions",
                        json=self._request_body(count, subject, unit_objective, attempt),
                    )
                except (httpx.ConnectError, httpx.ConnectTimeout) as e:
                    self.network.set_online(False)
                    raise ConnectivityError() from e
                except httpx.HTTPError as e:
                    last_error = f"Request failed: {e}"
                    logger.error("❌ Attempt %d: %s", attempt, last_error)
                else:
                    data = self._json(response)
                    if response.is_error:
                        last_error = f"API error: {data.get('error') or response.status_code}"
                        logger.error("❌ Attempt %d: %s", attempt, last_error)
                    elif not data.get("questions"):
                        last_error = "The AI service failed to generate any questions"
                        logger.error("❌ Attempt %d: empty question list", attempt)
                    else:
                        questions = self._dedupe(data["questions"])
                        self.history.record(exam_id, questions)
                        logger.info("✅ Generated %d unique questions after %d attempt(s)", len(questions), attempt)
                        return {"questions": questions, "source": "ai", "warning": data.get("error")}

                if attempt < MAX_ATTEMPTS:
                    await self._sleep(self.backoff_delay(attempt))

        logger.error("❌ All %d attempts to generate questions failed: %s", MAX_ATTEMPTS, last_error)
        raise GenerationError(GENERATION_FAILED_MESSAGE)

    @staticmethod
    def _json(response: httpx.Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}

    async def analyze_exam(
        self,
        questions: Sequence[Mapping[str, Any]],
        answers: Mapping[str, str],
    ) -> Dict[str, Any]:
        """
        Analyze a finished exam.

        Args:
            questions: exam questions as returned by generate_unique_questions
            answers: question id -> chosen letter

        Returns:
            {"analysis": Optional[str], "sections": AnalysisSections,
             "examStats": ExamStats, "source": "ai" | "summary"}
        """
        exam_data = [
            AnsweredQuestion(
                question_text=q.get("question_text", ""),
                option_a=q.get("option_a", ""),
                option_b=q.get("option_b", ""),
                option_c=q.get("option_c", ""),
                option_d=q.get("option_d", ""),
                student_answer=answers.get(q.get("id", "")),
                correct_answer=q.get("correct_answer"),
                subject=q.get("subject"),
                explanation=q.get("explanation"),
            )
            for q in questions
        ]
        stats = compute_stats(exam_data)

        if exam_data and await self._ensure_online():
            try:
                async with self._client() as client:
                    response = await client.post(
                        "/analyze-exam-results",
                        json={"examData": [q.model_dump() for q in exam_data]},
                    )
                data = self._json(response)
                if not response.is_error and data.get("success") and data.get("analysis"):
                    return {
                        "analysis": data["analysis"],
                        "sections": split_sections(data["analysis"]),
                        "examStats": stats,
                        "source": "ai",
                    }
                logger.warning("⚠️ Analysis service returned no analysis: %s", data.get("error"))
            except httpx.HTTPError as e:
                logger.warning("⚠️ Analysis request failed: %s", e)

        return {
            "analysis": None,
            "sections": generic_summary(exam_data),
            "examStats": stats,
            "source": "summary",
        }
