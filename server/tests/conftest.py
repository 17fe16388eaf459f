import json
import os
import random
import tempfile

# Settings are read at import time, so point them at throwaway locations first
_TMP_DIR = tempfile.mkdtemp(prefix="exam_prep_tests_")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["GROQ_API_KEY"] = ""
os.environ["HISTORY_FILE"] = os.path.join(_TMP_DIR, "history.json")

import pytest  # noqa: E402


class FakeLLM:
    """
    Stand-in for LLMService.

    `responses` is either a list consumed in order (str results, Exception
    instances raised) or a callable receiving the call kwargs.
    """

    def __init__(self, responses=None, configured=True):
        self.responses = responses if responses is not None else []
        self.configured = configured
        self.calls = []

    async def complete(self, **kwargs):
        self.calls.append(kwargs)
        if callable(self.responses):
            result = self.responses(kwargs)
        else:
            result = self.responses.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


class SleepRecorder:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


def question_json(n: int, **overrides) -> str:
    data = {
        "question_text": f"Question number {n}: a ball is thrown upward at {n + 5} m/s, how high does it rise?",
        "option_a": f"Height value {n}.1 m",
        "option_b": f"Height value {n}.2 m",
        "option_c": f"Height value {n}.3 m",
        "option_d": f"Height value {n}.4 m",
        "correct_answer": "B",
        "explanation": "Use v² = u² - 2gh.",
    }
    data.update(overrides)
    return json.dumps(data)


@pytest.fixture
def sleep():
    return SleepRecorder()


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def unique_llm():
    """Configured fake that returns a different valid question on every call."""
    counter = {"n": 0}

    def respond(kwargs):
        counter["n"] += 1
        return question_json(counter["n"])

    return FakeLLM(respond)


@pytest.fixture
def tmp_history(tmp_path):
    from exam_prep.client import QuestionHistory
    return QuestionHistory(str(tmp_path / "history.json"))
