"""FastAPI application factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from chapter_scribe.domain.ports.completion_gateway import CompletionGateway
from chapter_scribe.infrastructure.config import Settings, get_settings
from chapter_scribe.infrastructure.openai_adapter import OpenAIAdapter
from chapter_scribe.interface.dependencies import build_services, shutdown
from chapter_scribe.interface.error_handlers import register_error_handlers
from chapter_scribe.interface.routes import router
from chapter_scribe.interface.schemas import HealthResponse
from chapter_scribe.services.prompt_assembler import SYSTEM_PROMPT_VERSION
from chapter_scribe.services.rate_limiter import FixedWindowRateLimiter

logger = logging.getLogger(__name__)

APP_NAME = "Escriba de Capítulos"
VERSION = "1.0.0"


def create_app(
    settings: Settings | None = None,
    *,
    gateway: CompletionGateway | None = None,
    rate_limiter: FixedWindowRateLimiter | None = None,
) -> FastAPI:
    """Build and wire the FastAPI application.

    *gateway* and *rate_limiter* replace the components built from
    settings; tests use them to avoid the network and the wall clock.
    """
    settings = settings or get_settings()
    services = build_services(settings, gateway=gateway, rate_limiter=rate_limiter)

    @asynccontextmanager
    async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Log startup state and release the provider client on shutdown."""
        logger.info(
            "%s backend v%s starting (%s, system prompt v%s)",
            APP_NAME,
            VERSION,
            settings.environment,
            SYSTEM_PROMPT_VERSION,
        )
        if isinstance(services.gateway, OpenAIAdapter) and not services.gateway.has_credential:
            logger.warning("OPENAI_API_KEY is not configured; chat requests will fail")
        yield
        await shutdown(services)
        logger.info("%s backend shut down", APP_NAME)

    app = FastAPI(
        title=f"{APP_NAME} Backend",
        version=VERSION,
        description=(
            "Forwards chat requests to an OpenAI model primed to draft "
            "technical report chapters, with per-client rate limiting."
        ),
        lifespan=_lifespan,
    )
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    register_error_handlers(app, expose_details=settings.is_development)
    app.include_router(router)

    # ── Health check (simple liveness check) ────────────────────────────

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(
            timestamp=datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            version=VERSION,
        )

    return app
