"""OpenAI adapter — implements the CompletionGateway port."""

from __future__ import annotations

import logging
from typing import Any, Sequence

import httpx
from openai import APIConnectionError, APIError, APIStatusError, APITimeoutError, AsyncOpenAI

from chapter_scribe.domain.entities import CompletionConfig, CompletionResult, Message
from chapter_scribe.domain.exceptions import (
    MissingCredentialError,
    ProviderError,
    UpstreamTimeoutError,
)

logger = logging.getLogger(__name__)

EMPTY_RESPONSE_PLACEHOLDER = "Resposta não encontrada"


class OpenAIAdapter:
    """Concrete ``CompletionGateway`` backed by the OpenAI chat-completions API.

    The SDK client is only built when an API key is configured; without one,
    :meth:`complete` fails locally and nothing is sent upstream.  Retries are
    disabled so every provider failure reaches the caller unchanged.
    """

    def __init__(self, api_key: str | None, timeout_seconds: float = 60.0) -> None:
        self._client: AsyncOpenAI | None = None
        if api_key:
            self._client = AsyncOpenAI(
                api_key=api_key,
                max_retries=0,
                timeout=httpx.Timeout(timeout_seconds),
            )

    @property
    def has_credential(self) -> bool:
        return self._client is not None

    async def complete(
        self, messages: Sequence[Message], config: CompletionConfig
    ) -> CompletionResult:
        """Send *messages* and return the generated text with usage metadata."""
        if self._client is None:
            logger.error("OPENAI_API_KEY is not configured")
            raise MissingCredentialError("OPENAI_API_KEY is not configured.")

        try:
            response = await self._client.chat.completions.create(
                model=config.model,
                messages=[m.to_dict() for m in messages],  # type: ignore[misc]
                max_tokens=config.max_tokens,
                temperature=config.temperature,
            )

        except APITimeoutError as exc:
            raise UpstreamTimeoutError("OpenAI request timed out.") from exc

        except APIStatusError as exc:
            raise ProviderError(
                exc.message,
                code=exc.code,
                type=exc.type,
                status_code=exc.status_code,
            ) from exc

        except APIConnectionError as exc:
            raise ProviderError(exc.message, type="connection_error") from exc

        except APIError as exc:
            raise ProviderError(exc.message, code=exc.code, type=exc.type) from exc

        content = None
        if response.choices:
            content = response.choices[0].message.content

        usage: dict[str, Any] = response.usage.model_dump() if response.usage else {}
        return CompletionResult(
            text=content or EMPTY_RESPONSE_PLACEHOLDER,
            usage=usage,
            model=response.model,
        )

    async def close(self) -> None:
        """Release underlying HTTP resources."""
        if self._client is not None:
            await self._client.close()
