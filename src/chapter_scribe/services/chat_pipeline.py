"""Chat pipeline — the per-request orchestration.

This is the single entry point for the business logic.  It depends only on
the :class:`CompletionGateway` port, the rate limiter and the pure service
modules.  The interface layer injects concrete adapters at runtime and
classifies whatever this module raises.

Order per request: admission → validation → assembly → completion.  A
request that fails an earlier step never reaches the provider.
"""

from __future__ import annotations

import logging
from typing import Any

from chapter_scribe.domain.entities import CompletionConfig, CompletionResult
from chapter_scribe.domain.exceptions import RateLimitedError
from chapter_scribe.domain.ports.completion_gateway import CompletionGateway
from chapter_scribe.services import prompt_assembler, request_validator
from chapter_scribe.services.rate_limiter import FixedWindowRateLimiter

logger = logging.getLogger(__name__)

SMOKE_TEST_MAX_TOKENS = 10
SMOKE_TEST_TEMPERATURE = 0.0


class ChatPipeline:
    """Orchestrates a single chat request from raw body to completion.

    Parameters
    ----------
    rate_limiter:
        Shared admission control; one instance serves every request.
    completion_gateway:
        Adapter that talks to the completion provider.
    config:
        Model and sampling parameters, fixed at startup.
    """

    def __init__(
        self,
        rate_limiter: FixedWindowRateLimiter,
        completion_gateway: CompletionGateway,
        config: CompletionConfig,
    ) -> None:
        self._limiter = rate_limiter
        self._gateway = completion_gateway
        self._config = config

    # ── Public entry points ─────────────────────────────────────────────

    def admit(self, identity: str) -> None:
        """Raise :class:`RateLimitedError` if *identity* is over its allowance."""
        admission = self._limiter.admit(identity)
        if not admission.allowed:
            logger.warning(
                "Rate limit exceeded for %s; retry in %.1fs", identity, admission.retry_after
            )
            raise RateLimitedError(admission)

    async def execute(self, identity: str, raw: Any) -> CompletionResult:
        """Run the full pipeline for one chat body from *identity*."""
        self.admit(identity)

        request = request_validator.validate(raw)
        messages = prompt_assembler.assemble(request)

        result = await self._gateway.complete(messages, self._config)
        logger.info("Chat request processed - IP: %s", identity)
        return result

    async def smoke_test(self, identity: str) -> CompletionResult:
        """Send the fixed smoke-test conversation with a tiny token budget."""
        self.admit(identity)

        config = CompletionConfig(
            model=self._config.model,
            max_tokens=SMOKE_TEST_MAX_TOKENS,
            temperature=SMOKE_TEST_TEMPERATURE,
        )
        return await self._gateway.complete(prompt_assembler.smoke_test_messages(), config)
