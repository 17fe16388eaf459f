import asyncio
import json
import random

import httpx
import pytest

from exam_prep.client import QuestionBankClient
from exam_prep.errors import ConnectivityError, GenerationError
from exam_prep.network import NetworkStatus


def _question(n, **overrides):
    data = {
        "id": f"q-{n}",
        "question_text": f"Question {n} text",
        "option_a": "a",
        "option_b": "b",
        "option_c": "c",
        "option_d": "d",
        "correct_answer": "A",
        "subject": "Physics",
    }
    data.update(overrides)
    return data


class Recorder:
    """MockTransport handler replaying a list of responses or exceptions."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        result = self.responses.pop(0)
        if isinstance(result, Exception):
            raise result
        status, body = result
        return httpx.Response(status, json=body)

    def bodies(self):
        return [json.loads(r.content) for r in self.requests]


def _client(handler, sleep, history, online=True):
    return QuestionBankClient(
        base_url="http://functions.test/functions/v1",
        network=NetworkStatus(online=online),
        history=history,
        transport=httpx.MockTransport(handler),
        sleep=sleep,
        rng=random.Random(3),
    )


async def test_offline_fails_fast(sleep, tmp_history):
    handler = Recorder([httpx.ConnectError("no route to host")])
    with pytest.raises(ConnectivityError):
        await _client(handler, sleep, tmp_history, online=False).generate_unique_questions(5, "Physics")
    assert [r.method for r in handler.requests] == ["HEAD"]
    assert sleep.delays == []


async def test_retries_after_http_error(sleep, tmp_history):
    handler = Recorder([
        (500, {"error": "boom"}),
        (200, {"questions": [_question(1), _question(2)], "source": "ai"}),
    ])
    result = await _client(handler, sleep, tmp_history).generate_unique_questions(2, "Physics", "Kinematics", "exam-1")

    assert [q["id"] for q in result["questions"]] == ["q-1", "q-2"]
    assert result["source"] == "ai"
    assert result["warning"] is None
    assert sleep.delays == [2.0]

    bodies = handler.bodies()
    assert [b["attempt"] for b in bodies] == [1, 2]
    assert [b["instructionType"] for b in bodies] == ["advanced", "complex"]
    assert bodies[0]["unitObjective"] == "Kinematics"
    assert bodies[0]["challengeLevel"] == "advanced"
    assert bodies[0]["uniqueRequestId"] != bodies[1]["uniqueRequestId"]
    assert handler.requests[0].url.path == "/functions/v1/ai-generate-questions"


async def test_empty_questions_exhaust_attempts(sleep, tmp_history):
    handler = Recorder([(200, {"questions": []})] * 3)
    with pytest.raises(GenerationError):
        await _client(handler, sleep, tmp_history).generate_unique_questions(3, "Physics")
    assert len(handler.requests) == 3
    assert sleep.delays == [2.0, 4.0]


async def test_connect_error_is_not_retried(sleep, tmp_history):
    handler = Recorder([httpx.ConnectError("connection refused")])
    client = _client(handler, sleep, tmp_history)
    with pytest.raises(ConnectivityError):
        await client.generate_unique_questions(3, "Physics")
    assert len(handler.requests) == 1
    assert client.network.is_online is False


async def test_recovers_after_connect_error(sleep, tmp_history):
    handler = Recorder([
        httpx.ConnectError("connection refused"),
        (200, {}),
        (200, {"questions": [_question(1)]}),
    ])
    client = _client(handler, sleep, tmp_history)
    with pytest.raises(ConnectivityError):
        await client.generate_unique_questions(1, "Physics")

    result = await client.generate_unique_questions(1, "Physics")

    assert [q["id"] for q in result["questions"]] == ["q-1"]
    assert [r.method for r in handler.requests] == ["POST", "HEAD", "POST"]
    assert client.network.is_online is True
    assert client.network.was_offline is True


async def test_concurrent_requests_keep_every_exam_history(sleep, tmp_history):
    handler = Recorder([
        (200, {"questions": [_question(1)]}),
        (200, {"questions": [_question(2)]}),
    ])
    client = _client(handler, sleep, tmp_history)
    await asyncio.gather(
        client.generate_unique_questions(1, "Physics", exam_id="exam-a"),
        client.generate_unique_questions(1, "Physics", exam_id="exam-b"),
    )
    assert tmp_history.usage("exam-a")
    assert tmp_history.usage("exam-b")


async def test_read_timeout_is_retried(sleep, tmp_history):
    handler = Recorder([
        httpx.ReadTimeout("slow"),
        (200, {"questions": [_question(1)]}),
    ])
    result = await _client(handler, sleep, tmp_history).generate_unique_questions(1, "Physics")
    assert len(result["questions"]) == 1
    assert sleep.delays == [2.0]


async def test_duplicates_removed_and_ids_assigned(sleep, tmp_history):
    questions = [
        _question(1, id=None),
        _question(1, id="dup", question_text="  QUESTION 1 TEXT "),
        _question(2, id=""),
    ]
    handler = Recorder([(200, {"questions": questions, "error": "1 fallback question used"})])
    result = await _client(handler, sleep, tmp_history).generate_unique_questions(3, "Physics", exam_id="exam-7")

    assert len(result["questions"]) == 2
    assert all(q["id"].startswith("generated-") for q in result["questions"])
    assert result["warning"] == "1 fallback question used"

    assert tmp_history.usage("exam-7") == [q["id"] for q in result["questions"]]
    assert len(tmp_history.questions) == 2
    assert tmp_history.load()["last_sync"] is not None


async def test_analyze_exam_uses_service(sleep, tmp_history):
    analysis = "Overview.\n\nYou did well on motion.\n\nYou struggled with forces.\n\nI recommend more practice."
    handler = Recorder([(200, {"success": True, "analysis": analysis})])
    questions = [_question(1), _question(2, correct_answer="B")]
    result = await _client(handler, sleep, tmp_history).analyze_exam(questions, {"q-1": "A", "q-2": "C"})

    assert result["source"] == "ai"
    assert result["sections"].strengths == "You did well on motion."
    assert result["examStats"].score == 50
    sent = handler.bodies()[0]["examData"]
    assert [q["student_answer"] for q in sent] == ["A", "C"]


async def test_analyze_exam_falls_back_to_summary(sleep, tmp_history):
    handler = Recorder([(500, {"success": False, "error": "API key is not configured"})])
    result = await _client(handler, sleep, tmp_history).analyze_exam([_question(1)], {"q-1": "B"})

    assert result["source"] == "summary"
    assert result["analysis"] is None
    assert "0%" in result["sections"].overview
    assert "Physics" in result["sections"].weaknesses


async def test_analyze_exam_offline_skips_request(sleep, tmp_history):
    handler = Recorder([httpx.ConnectError("no route to host")])
    result = await _client(handler, sleep, tmp_history, online=False).analyze_exam([_question(1)], {"q-1": "A"})
    assert [r.method for r in handler.requests] == ["HEAD"]
    assert result["source"] == "summary"
    assert result["examStats"].score == 100
