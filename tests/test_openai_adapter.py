"""Tests for the OpenAI completion adapter (SDK mocked, no network)."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import httpx
import openai
import pytest
from openai.types.chat import ChatCompletion

from chapter_scribe.domain.entities import CompletionConfig, Message, Role
from chapter_scribe.domain.exceptions import (
    MissingCredentialError,
    ProviderError,
    UpstreamTimeoutError,
)
from chapter_scribe.infrastructure.openai_adapter import (
    EMPTY_RESPONSE_PLACEHOLDER,
    OpenAIAdapter,
)

CONFIG = CompletionConfig(model="gpt-4o", max_tokens=4000, temperature=0.3)
MESSAGES = [
    Message(role=Role.SYSTEM, content="Você é o Escriba de Capítulos"),
    Message(role=Role.USER, content="Tema: mobilidade urbana"),
]
_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


def _completion(content: str | None = "## Introdução", model: str = "gpt-4o-2024-08-06"):
    return ChatCompletion.model_validate(
        {
            "id": "chatcmpl-123",
            "object": "chat.completion",
            "created": 1_700_000_000,
            "model": model,
            "choices": [
                {
                    "index": 0,
                    "finish_reason": "stop",
                    "message": {"role": "assistant", "content": content},
                }
            ],
            "usage": {"prompt_tokens": 812, "completion_tokens": 95, "total_tokens": 907},
        }
    )


def _status_error(cls, status: int, code: str | None, type_: str | None):
    body = {"message": f"provider says {status}", "code": code, "type": type_}
    return cls(
        f"Error code: {status}",
        response=httpx.Response(status, request=_REQUEST),
        body=body,
    )


@pytest.fixture
def adapter() -> OpenAIAdapter:
    return OpenAIAdapter(api_key="sk-test", timeout_seconds=5.0)


class TestOpenAIAdapter:
    @pytest.mark.asyncio
    async def test_success(self, adapter):
        create = AsyncMock(return_value=_completion())
        with patch.object(adapter._client.chat.completions, "create", create):
            result = await adapter.complete(MESSAGES, CONFIG)

        assert result.text == "## Introdução"
        assert result.model == "gpt-4o-2024-08-06"
        assert result.usage["prompt_tokens"] == 812
        assert result.usage["total_tokens"] == 907

    @pytest.mark.asyncio
    async def test_sends_messages_in_order_with_config(self, adapter):
        create = AsyncMock(return_value=_completion())
        with patch.object(adapter._client.chat.completions, "create", create):
            await adapter.complete(MESSAGES, CONFIG)

        kwargs = create.await_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["max_tokens"] == 4000
        assert kwargs["temperature"] == 0.3
        assert kwargs["messages"] == [m.to_dict() for m in MESSAGES]

    @pytest.mark.asyncio
    async def test_empty_content_uses_placeholder(self, adapter):
        create = AsyncMock(return_value=_completion(content=None))
        with patch.object(adapter._client.chat.completions, "create", create):
            result = await adapter.complete(MESSAGES, CONFIG)
        assert result.text == EMPTY_RESPONSE_PLACEHOLDER

    @pytest.mark.asyncio
    async def test_missing_key_fails_locally(self):
        adapter = OpenAIAdapter(api_key=None)
        assert adapter.has_credential is False
        with pytest.raises(MissingCredentialError):
            await adapter.complete(MESSAGES, CONFIG)

    def test_empty_key_counts_as_missing(self):
        assert OpenAIAdapter(api_key="").has_credential is False

    def test_client_never_retries(self, adapter):
        assert adapter._client.max_retries == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "cls, status, code, type_",
        [
            (openai.RateLimitError, 429, "insufficient_quota", "insufficient_quota"),
            (openai.AuthenticationError, 401, "invalid_api_key", "invalid_request_error"),
            (openai.RateLimitError, 429, "rate_limit_exceeded", "requests"),
            (openai.InternalServerError, 500, None, "server_error"),
        ],
    )
    async def test_status_errors_keep_provider_fields(self, adapter, cls, status, code, type_):
        create = AsyncMock(side_effect=_status_error(cls, status, code, type_))
        with patch.object(adapter._client.chat.completions, "create", create):
            with pytest.raises(ProviderError) as exc_info:
                await adapter.complete(MESSAGES, CONFIG)

        assert exc_info.value.code == code
        assert exc_info.value.type == type_
        assert exc_info.value.status_code == status

    @pytest.mark.asyncio
    async def test_timeout(self, adapter):
        create = AsyncMock(side_effect=openai.APITimeoutError(request=_REQUEST))
        with patch.object(adapter._client.chat.completions, "create", create):
            with pytest.raises(UpstreamTimeoutError):
                await adapter.complete(MESSAGES, CONFIG)

    @pytest.mark.asyncio
    async def test_connection_error(self, adapter):
        create = AsyncMock(side_effect=openai.APIConnectionError(request=_REQUEST))
        with patch.object(adapter._client.chat.completions, "create", create):
            with pytest.raises(ProviderError) as exc_info:
                await adapter.complete(MESSAGES, CONFIG)
        assert exc_info.value.type == "connection_error"

    @pytest.mark.asyncio
    async def test_close(self, adapter):
        with patch.object(adapter._client, "close", AsyncMock()) as close:
            await adapter.close()
        close.assert_awaited_once()
