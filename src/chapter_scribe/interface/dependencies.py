"""FastAPI dependency injection wiring.

The shared components (rate limiter, completion adapter, pipeline) are
built once per application and kept on ``app.state`` rather than in
module globals, so separate app instances never share counters or clients.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import Request

from chapter_scribe.domain.ports.completion_gateway import CompletionGateway
from chapter_scribe.infrastructure.config import Settings
from chapter_scribe.infrastructure.openai_adapter import OpenAIAdapter
from chapter_scribe.services.chat_pipeline import ChatPipeline
from chapter_scribe.services.rate_limiter import FixedWindowRateLimiter

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"


@dataclass
class Services:
    """Everything a request handler needs, built once at app creation."""

    settings: Settings
    rate_limiter: FixedWindowRateLimiter
    gateway: CompletionGateway
    pipeline: ChatPipeline


def build_services(
    settings: Settings,
    gateway: CompletionGateway | None = None,
    rate_limiter: FixedWindowRateLimiter | None = None,
) -> Services:
    """Wire the pipeline from settings; explicit arguments replace the defaults."""
    if rate_limiter is None:
        rate_limiter = FixedWindowRateLimiter(
            window_seconds=settings.rate_limit_window_ms / 1000.0,
            max_requests=settings.rate_limit_max_requests,
        )
    if gateway is None:
        gateway = OpenAIAdapter(
            api_key=settings.api_key,
            timeout_seconds=settings.openai_timeout_seconds,
        )
    pipeline = ChatPipeline(
        rate_limiter=rate_limiter,
        completion_gateway=gateway,
        config=settings.completion_config(),
    )
    return Services(
        settings=settings, rate_limiter=rate_limiter, gateway=gateway, pipeline=pipeline
    )


async def shutdown(services: Services) -> None:
    """Release shared resources."""
    close = getattr(services.gateway, "close", None)
    if close is not None:
        await close()


def get_services(request: Request) -> Services:
    return request.app.state.services  # type: ignore[no-any-return]


def get_pipeline(request: Request) -> ChatPipeline:
    return get_services(request).pipeline


def client_identity(request: Request) -> str:
    """Remote address of the caller, used only as the rate-limit key."""
    if request.client and request.client.host:
        return request.client.host
    return UNKNOWN_CLIENT
