import random

import pytest

from exam_prep.errors import ConnectivityError, LLMError, RateLimitedError
from exam_prep.generators.ai_question import sampling_for
from exam_prep.generators.base import BaseQuestionGenerator
from exam_prep.generators.fingerprint import fingerprint
from exam_prep.services.question_orchestrator import QuestionOrchestrator, clamp_count

from conftest import FakeLLM, question_json


def _orchestrator(llm, sleep, seed=7):
    return QuestionOrchestrator(llm=llm, sleep=sleep, rng=random.Random(seed), stagger_seconds=0.5)


@pytest.mark.parametrize("count", [1, 4, 10])
async def test_returns_exactly_requested_count(count, unique_llm, sleep):
    result = await _orchestrator(unique_llm, sleep).generate_batch("Physics", count)

    assert len(result.questions) == count
    assert result.source == "ai"
    assert result.stats.model_dump() == {"aiGenerated": count, "fallbackUsed": 0, "totalRequested": count}
    assert result.error is None
    for q in result.questions:
        assert q.question_text
        assert all(q.options)
        assert q.subject == "Physics"
        assert q.difficulty_level == 3
        assert q.created_at


async def test_slots_are_staggered(unique_llm, sleep):
    await _orchestrator(unique_llm, sleep).generate_batch("Physics", 3)
    assert sorted(sleep.delays) == [0.5, 1.0]


async def test_duplicates_are_replaced_with_fallbacks(sleep):
    llm = FakeLLM(lambda kwargs: question_json(1))
    result = await _orchestrator(llm, sleep).generate_batch("Mathematics", 5, unit_objective="Sequences")

    assert len(result.questions) == 5
    assert len({fingerprint(q) for q in result.questions}) == 5
    assert result.stats.aiGenerated == 1
    assert result.stats.fallbackUsed == 4
    assert result.source == "ai"
    backfilled = [q for q in result.questions if q.source == "fallback"]
    assert all(q.question_text.startswith("[Q") for q in backfilled)
    assert all(q.unit_objective == "Sequences" for q in result.questions)


async def test_failing_slot_falls_back_after_all_attempts(sleep):
    llm = FakeLLM(lambda kwargs: LLMError("Groq API error (500)"))
    result = await _orchestrator(llm, sleep).generate_batch("Chemistry", 2)

    assert len(result.questions) == 2
    assert all(q.source == "fallback" for q in result.questions)
    assert result.source == "fallback"
    assert result.stats.fallbackUsed == 2
    assert "500" in result.error
    # two models, three attempts each, per slot
    assert len(llm.calls) == 12
    assert [c["model"] for c in llm.calls[:6]].count("llama3-70b-8192") == 3


async def test_connectivity_error_stops_retrying(sleep):
    llm = FakeLLM(lambda kwargs: ConnectivityError("Could not reach LLM API"))
    result = await _orchestrator(llm, sleep).generate_batch("Biology", 3)

    assert len(llm.calls) == 3
    assert all(q.source == "fallback" for q in result.questions)
    assert sorted(sleep.delays) == [0.5, 1.0]


async def test_rate_limit_backs_off_then_succeeds(sleep):
    llm = FakeLLM([RateLimitedError(), RateLimitedError(), question_json(9)])
    result = await _orchestrator(llm, sleep).generate_batch("Physics", 1)

    assert result.questions[0].source == "ai"
    assert sleep.delays == [2.0, 4.0]
    assert len(llm.calls) == 3


async def test_rate_limit_switches_model(sleep):
    llm = FakeLLM([RateLimitedError()] * 3 + [question_json(3)])
    result = await _orchestrator(llm, sleep).generate_batch("Physics", 1)

    assert result.stats.aiGenerated == 1
    assert [c["model"] for c in llm.calls] == ["llama3-70b-8192"] * 3 + ["llama3-8b-8192"]


async def test_malformed_response_is_retried(sleep):
    llm = FakeLLM(["no question here", question_json(5)])
    result = await _orchestrator(llm, sleep).generate_batch("Physics", 1)
    assert result.questions[0].question_text.startswith("Question number 5")


async def test_unconfigured_service_serves_fallback_batch(sleep):
    llm = FakeLLM(configured=False)
    result = await _orchestrator(llm, sleep).generate_batch("History", 4)

    assert llm.calls == []
    assert len(result.questions) == 4
    assert result.source == "fallback"
    assert "GROQ_API_KEY" in result.error


async def test_sampling_parameters_vary_by_slot(unique_llm, sleep):
    await _orchestrator(unique_llm, sleep).generate_batch("Physics", 3)
    temperatures = sorted(c["temperature"] for c in unique_llm.calls)
    assert temperatures == sorted(sampling_for(i)["temperature"] for i in range(3))
    assert {c["max_tokens"] for c in unique_llm.calls} == {1024, 1124, 1224}


async def test_prompt_carries_objective_and_slot_id(unique_llm, sleep):
    await _orchestrator(unique_llm, sleep).generate_batch("Mathematics", 1, unit_objective="Solve systems of linear inequality")
    prompt = unique_llm.calls[0]["user_prompt"]
    assert "Solve systems of linear inequality" in prompt
    assert "QUID-" in prompt
    assert "Question index: 0" in unique_llm.calls[0]["system_prompt"]


async def test_chat_returns_answer(sleep):
    llm = FakeLLM(["  Photosynthesis converts light energy into chemical energy.  "])
    answer, error = await _orchestrator(llm, sleep).chat("Biology", "What is photosynthesis?")
    assert answer == "Photosynthesis converts light energy into chemical energy."
    assert error is None
    assert "What is photosynthesis?" in llm.calls[0]["user_prompt"]


async def test_chat_failure_returns_apology(sleep):
    llm = FakeLLM(lambda kwargs: ConnectivityError())
    answer, error = await _orchestrator(llm, sleep).chat("Biology", "Hi")
    assert answer.startswith("I'm sorry")
    assert error


def test_sampling_for_ranges():
    assert sampling_for(0) == {"temperature": 0.7, "max_tokens": 1024, "top_p": 0.9}
    for i in range(50):
        params = sampling_for(i)
        assert 0.7 <= params["temperature"] <= 1.0
        assert 1024 <= params["max_tokens"] < 1524
        assert 0.9 <= params["top_p"] <= 1.0


def test_backoff_is_capped():
    assert [BaseQuestionGenerator.backoff_delay(a) for a in range(5)] == [2.0, 4.0, 8.0, 15.0, 15.0]


@pytest.mark.parametrize("requested, expected", [(None, 1), (0, 1), (3, 3), (10, 10), (25, 10), ("4", 4), ("x", 1)])
def test_clamp_count(requested, expected):
    assert clamp_count(requested) == expected
