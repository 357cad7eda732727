"""Tests for the LiteLLM-backed client (network calls patched out)."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

from nonprofit_pipeline.llm import llm_client as llm_module
from nonprofit_pipeline.llm.llm_client import (
    MODEL_GEMINI_25_FLASH,
    MODEL_GPT4O_MINI,
    LLMClient,
    LLMTask,
)


def _response(text, prompt_tokens=100, completion_tokens=20):
    return SimpleNamespace(
        id="resp-1",
        choices=[SimpleNamespace(message=SimpleNamespace(content=text), finish_reason="stop")],
        usage=SimpleNamespace(prompt_tokens=prompt_tokens, completion_tokens=completion_tokens),
    )


@pytest.fixture
def no_cost_lookup():
    with patch.object(llm_module, "completion_cost", side_effect=ValueError("no pricing")):
        yield


def test_unknown_model_rejected():
    with pytest.raises(ValueError):
        LLMClient(model="not-a-model")


def test_task_selects_primary_and_fallbacks():
    client = LLMClient(task=LLMTask.URL_RANKING)
    assert client.model_name == MODEL_GPT4O_MINI
    assert client.fallback_models == [MODEL_GEMINI_25_FLASH]


@pytest.mark.asyncio
async def test_complete_returns_raw_text(no_cost_lookup):
    raw = '  ```json\n{"Name": "Acme Aid"}\n```  '
    mock = AsyncMock(return_value=_response(raw))

    with patch.object(llm_module, "acompletion", mock):
        text = await LLMClient().complete("prompt", MODEL_GPT4O_MINI)

    assert text == raw
    kwargs = mock.call_args.kwargs
    assert kwargs["model"] == "gpt-4o-mini"
    assert kwargs["messages"] == [{"role": "user", "content": "prompt"}]


@pytest.mark.asyncio
async def test_registry_pricing_when_litellm_has_none(no_cost_lookup):
    mock = AsyncMock(return_value=_response("[]", prompt_tokens=1_000_000, completion_tokens=1_000_000))

    with patch.object(llm_module, "acompletion", mock):
        response = await LLMClient().agenerate("prompt")

    assert response.cost_usd == pytest.approx(0.15 + 0.60)
    assert response.input_tokens == 1_000_000
    assert response.model_version == "gpt-4o-mini"


@pytest.mark.asyncio
async def test_transient_error_falls_back(no_cost_lookup):
    mock = AsyncMock(side_effect=[RuntimeError("429 rate limit exceeded"), _response("ok")])

    with patch.object(llm_module, "acompletion", mock):
        response = await LLMClient(task=LLMTask.WEBSITE_EXTRACTION).agenerate("prompt")

    assert response.text == "ok"
    assert response.model == MODEL_GEMINI_25_FLASH
    assert mock.await_count == 2


@pytest.mark.asyncio
async def test_permanent_error_does_not_fall_back(no_cost_lookup):
    mock = AsyncMock(side_effect=RuntimeError("401 Unauthorized: invalid api key"))

    with patch.object(llm_module, "acompletion", mock):
        with pytest.raises(RuntimeError, match="Unauthorized"):
            await LLMClient(task=LLMTask.WEBSITE_EXTRACTION).agenerate("prompt")

    assert mock.await_count == 1


@pytest.mark.asyncio
async def test_explicit_model_has_no_fallback(no_cost_lookup):
    mock = AsyncMock(side_effect=RuntimeError("503 overloaded"))

    with patch.object(llm_module, "acompletion", mock):
        with pytest.raises(RuntimeError, match="overloaded"):
            await LLMClient(task=LLMTask.WEBSITE_EXTRACTION).complete("prompt", MODEL_GPT4O_MINI)

    assert mock.await_count == 1


@pytest.mark.asyncio
async def test_empty_choices_is_an_error(no_cost_lookup):
    mock = AsyncMock(return_value=SimpleNamespace(id="x", choices=[], usage=None))

    with patch.object(llm_module, "acompletion", mock):
        with pytest.raises(RuntimeError, match="empty choices"):
            await LLMClient().agenerate("prompt")
