from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from resume_reviewer.app.core.config import Settings
from resume_reviewer.app.llm.inference import (
    InferenceEnvelope,
    InferenceMessage,
    LangChainInferenceClient,
    build_llm_params,
    extract_answer_text,
    request_feedback,
)
from resume_reviewer.app.pipeline.errors import InferenceFailed


def test_extract_string_content():
    envelope = InferenceEnvelope(message=InferenceMessage(content='{"a": 1}'))
    assert extract_answer_text(envelope) == '{"a": 1}'


def test_extract_from_plain_mapping():
    assert extract_answer_text({"message": {"content": "answer"}}) == "answer"


@pytest.mark.parametrize(
    "content",
    [
        ["answer", "ignored"],
        [{"type": "text", "text": "answer"}, {"type": "text", "text": "ignored"}],
        [SimpleNamespace(text="answer")],
    ],
)
def test_extract_first_part_text(content):
    assert extract_answer_text({"message": {"content": content}}) == "answer"


@pytest.mark.parametrize(
    "envelope",
    [
        {},
        {"message": {}},
        {"message": {"content": 42}},
        {"message": {"content": []}},
        {"message": {"content": [{"type": "image"}]}},
    ],
)
def test_extract_rejects_unrecognized_envelopes(envelope):
    with pytest.raises(InferenceFailed):
        extract_answer_text(envelope)


@pytest.mark.asyncio
async def test_request_feedback_returns_text():
    client = AsyncMock()
    client.feedback.return_value = {"message": {"content": "answer"}}

    assert await request_feedback(client, "path/resume.pdf", "instructions") == "answer"
    client.feedback.assert_awaited_once_with("path/resume.pdf", "instructions")


@pytest.mark.asyncio
async def test_request_feedback_wraps_client_errors():
    client = AsyncMock()
    client.feedback.side_effect = ConnectionError("unreachable")

    with pytest.raises(InferenceFailed) as exc_info:
        await request_feedback(client, "path/resume.pdf", "instructions")
    assert isinstance(exc_info.value.__cause__, ConnectionError)


@pytest.mark.asyncio
async def test_request_feedback_rejects_missing_response():
    client = AsyncMock()
    client.feedback.return_value = None

    with pytest.raises(InferenceFailed):
        await request_feedback(client, "path/resume.pdf", "instructions")


def _settings(**env) -> Settings:
    return Settings(_env_file=None, **env)


def test_build_llm_params_defaults():
    params = build_llm_params(_settings(LLM_API_KEY="sk-test"))
    assert params == {"model": "gpt-4o", "temperature": 0.7, "api_key": "sk-test"}


def test_build_llm_params_openrouter():
    params = build_llm_params(
        _settings(
            LLM_ENDPOINT="https://openrouter.ai/api/v1",
            LLM_API_KEY="or-key",
            LLM_MODEL_NAME="anthropic/some-model",
        )
    )
    assert params["openai_api_base"] == "https://openrouter.ai/api/v1"
    assert params["default_headers"]["X-Title"] == "Resume Reviewer"
    assert params["api_key"] == "or-key"
    assert params["model"] == "anthropic/some-model"


def test_build_llm_params_local_endpoint_without_key():
    params = build_llm_params(_settings(LLM_ENDPOINT="http://localhost:11434/v1"))
    assert params["api_key"] == "not-needed"
    assert "default_headers" not in params


def test_build_llm_params_openrouter_without_key():
    params = build_llm_params(_settings(LLM_ENDPOINT="https://openrouter.ai/api/v1"))
    assert "api_key" not in params


@pytest.mark.asyncio
async def test_langchain_client_missing_document():
    blobs = MagicMock()
    blobs.read = AsyncMock(return_value=None)
    client = LangChainInferenceClient(settings=_settings(), blobs=blobs)

    assert await client.feedback("missing/resume.pdf", "instructions") is None


@pytest.mark.asyncio
@patch("resume_reviewer.app.llm.inference.ChatPromptTemplate")
@patch("resume_reviewer.app.llm.inference.extract_document_text")
async def test_langchain_client_wraps_message_content(
    mock_extract_text, mock_prompt_template
):
    blobs = MagicMock()
    blobs.read = AsyncMock(return_value=b"%PDF")
    mock_extract_text.return_value = "Jane Doe, Engineer"
    chain = MagicMock()
    chain.ainvoke = AsyncMock(return_value=SimpleNamespace(content=[{"text": "answer"}]))
    mock_prompt_template.from_messages.return_value.__or__.return_value = chain

    client = LangChainInferenceClient(settings=_settings(LLM_API_KEY="sk"), blobs=blobs)
    envelope = await client.feedback("f/resume.pdf", "Review this")

    assert extract_answer_text(envelope) == "answer"
    invoke_args = chain.ainvoke.call_args.args[0]
    assert invoke_args["resume_text"] == "Jane Doe, Engineer"
    assert invoke_args["instructions"] == "Review this"
