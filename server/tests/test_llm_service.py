import json

import httpx
import pytest
from openai import AsyncOpenAI

from exam_prep.errors import ConnectivityError, EmptyResponseError, LLMError, LLMNotConfiguredError, RateLimitedError
from exam_prep.services.llm_service import LLMService
from exam_prep.services.prompt_management import get_prompt


def _completion(content):
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "created": 0,
        "model": "llama3-70b-8192",
        "choices": [{"index": 0, "message": {"role": "assistant", "content": content}, "finish_reason": "stop"}],
    }


def _service(handler):
    service = LLMService(api_key="test-key", base_url="http://llm.test/v1")
    service._client = AsyncOpenAI(
        api_key="test-key",
        base_url="http://llm.test/v1",
        max_retries=0,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    return service


async def _complete(service):
    return await service.complete("system", "user", model="llama3-70b-8192", temperature=0.8, max_tokens=1100, top_p=0.95)


async def test_returns_content_and_sends_sampling():
    seen = {}

    def handler(request):
        seen.update(json.loads(request.content))
        return httpx.Response(200, json=_completion("A question"))

    assert await _complete(_service(handler)) == "A question"
    assert seen["temperature"] == 0.8
    assert seen["max_tokens"] == 1100
    assert seen["top_p"] == 0.95
    assert seen["messages"][0] == {"role": "system", "content": "system"}


@pytest.mark.parametrize("status, error", [(429, RateLimitedError), (500, LLMError), (401, LLMError)])
async def test_status_errors_are_translated(status, error):
    service = _service(lambda request: httpx.Response(status, json={"error": {"message": "nope"}}))
    with pytest.raises(error) as info:
        await _complete(service)
    assert info.value.status_code == status


async def test_connection_error_is_connectivity():
    def refuse(request):
        raise httpx.ConnectError("refused")

    with pytest.raises(ConnectivityError):
        await _complete(_service(refuse))


async def test_empty_content_raises():
    service = _service(lambda request: httpx.Response(200, json=_completion("   ")))
    with pytest.raises(EmptyResponseError):
        await _complete(service)


async def test_missing_key_raises():
    with pytest.raises(LLMNotConfiguredError):
        await LLMService(api_key="").complete("s", "u", model="m")


def test_prompt_interpolation():
    prompt = get_prompt("tutor_chat", subject="Physics", subject_guide="Guide.", context="none", query="Why?")
    assert prompt["system_prompt"].startswith("You are an advanced educational AI assistant specializing in Physics.")
    assert "Why?" in prompt["human_prompt"]


def test_missing_prompt_file():
    assert get_prompt("does_not_exist") == {"system_prompt": "", "human_prompt": ""}
