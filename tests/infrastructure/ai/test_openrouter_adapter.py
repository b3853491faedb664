"""Tests for the OpenRouter comparison adapter."""

from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from incident_checker.domain.errors import RateLimitExceeded, SchemaError, ServiceError, TransientServiceError
from incident_checker.infrastructure.ai.openrouter_adapter import OpenRouterAdapter, OpenRouterConfig

REQUEST = httpx.Request("POST", "https://openrouter.ai/api/v1/chat/completions")


def completion(content):
    return MagicMock(choices=[MagicMock(message=MagicMock(content=content))])


@pytest.fixture
def mock_openai_client():
    """Create a mock OpenAI client."""
    client = AsyncMock()
    client.chat = MagicMock()
    client.chat.completions = MagicMock()
    client.chat.completions.create = AsyncMock()
    return client


@pytest.fixture
def openrouter_adapter(mock_openai_client) -> OpenRouterAdapter:
    adapter = OpenRouterAdapter(OpenRouterConfig(api_key="test-key"))
    adapter._client = mock_openai_client
    return adapter


@pytest.mark.asyncio
async def test_compare_returns_raw_reply(openrouter_adapter, mock_openai_client):
    reply = '{"hasNewInformation": false, "differences": [], "similarityScore": 0.9}'
    mock_openai_client.chat.completions.create.return_value = completion(reply)

    result = await openrouter_adapter.compare("new text", "old text")

    assert result == reply
    kwargs = mock_openai_client.chat.completions.create.await_args.kwargs
    assert kwargs["model"] == "openai/gpt-3.5-turbo"
    assert kwargs["messages"][0]["role"] == "system"
    user_prompt = kwargs["messages"][1]["content"]
    assert user_prompt.index("Existing article:\nold text") < user_prompt.index("New article:\nnew text")
    assert '{"hasNewInformation": boolean' in user_prompt


@pytest.mark.asyncio
async def test_missing_content_is_schema_error(openrouter_adapter, mock_openai_client):
    mock_openai_client.chat.completions.create.return_value = completion(None)

    with pytest.raises(SchemaError):
        await openrouter_adapter.compare("a", "b")


@pytest.mark.asyncio
async def test_rate_limit(openrouter_adapter, mock_openai_client):
    mock_openai_client.chat.completions.create.side_effect = openai.RateLimitError(
        "rate limited", response=httpx.Response(429, request=REQUEST), body=None,
    )

    with pytest.raises(RateLimitExceeded):
        await openrouter_adapter.compare("a", "b")


@pytest.mark.asyncio
async def test_server_error_is_transient(openrouter_adapter, mock_openai_client):
    mock_openai_client.chat.completions.create.side_effect = openai.InternalServerError(
        "server error", response=httpx.Response(502, request=REQUEST), body=None,
    )

    with pytest.raises(TransientServiceError) as exc_info:
        await openrouter_adapter.compare("a", "b")

    assert exc_info.value.status_code == 502


@pytest.mark.asyncio
async def test_timeout_is_transient(openrouter_adapter, mock_openai_client):
    mock_openai_client.chat.completions.create.side_effect = openai.APITimeoutError(request=REQUEST)

    with pytest.raises(TransientServiceError):
        await openrouter_adapter.compare("a", "b")


@pytest.mark.asyncio
async def test_auth_error_is_fatal(openrouter_adapter, mock_openai_client):
    mock_openai_client.chat.completions.create.side_effect = openai.AuthenticationError(
        "bad key", response=httpx.Response(401, request=REQUEST), body=None,
    )

    with pytest.raises(ServiceError) as exc_info:
        await openrouter_adapter.compare("a", "b")

    assert not isinstance(exc_info.value, TransientServiceError)


@pytest.mark.asyncio
async def test_initialize_requires_api_key():
    adapter = OpenRouterAdapter(OpenRouterConfig(api_key=""))

    with pytest.raises(ConnectionError):
        await adapter.initialize()


@pytest.mark.asyncio
async def test_initialize_and_shutdown():
    adapter = OpenRouterAdapter(OpenRouterConfig(api_key="test-key"))

    await adapter.initialize()
    assert adapter.is_available
    assert adapter.capabilities["article_comparison"]

    await adapter.shutdown()
    assert not adapter.is_available
