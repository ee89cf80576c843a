"""Global exception handlers — translate domain errors to HTTP responses.

Every :class:`ChapterScribeError` goes through the classifier and comes out
as ``{"error", "kind", "code", "details"?}`` with the mapped status code.
Provider wording is only included when ``expose_details`` is set
(development); validation details are always included.
"""

from __future__ import annotations

import logging
import math
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from chapter_scribe.domain.entities import ErrorKind
from chapter_scribe.domain.exceptions import (
    ChapterScribeError,
    InvalidInputError,
    RateLimitedError,
)
from chapter_scribe.interface.dependencies import client_identity, get_pipeline
from chapter_scribe.services.error_classifier import MESSAGES, classify

logger = logging.getLogger(__name__)

API_PREFIX = "/api/"
NOT_FOUND_MESSAGE = "Rota não encontrada"
INTERNAL_ERROR_MESSAGE = "Erro interno do servidor"
GENERIC_FAILURE_MESSAGE = "Algo deu errado"


def _rate_limit_response(exc: RateLimitedError) -> JSONResponse:
    admission = exc.admission
    retry_after = max(1, math.ceil(admission.retry_after))
    return JSONResponse(
        status_code=429,
        content={
            "error": MESSAGES[ErrorKind.RATE_LIMITED],
            "kind": ErrorKind.RATE_LIMITED.value,
            "code": ErrorKind.RATE_LIMITED.value,
            "retryAfter": retry_after,
        },
        headers={
            "Retry-After": str(retry_after),
            "RateLimit-Limit": str(admission.limit),
            "RateLimit-Remaining": str(admission.remaining),
            "RateLimit-Reset": str(max(1, math.ceil(admission.reset_after))),
        },
    )


def _request_path(request: Request) -> str:
    query = request.url.query
    return f"{request.url.path}?{query}" if query else request.url.path


def register_error_handlers(app: FastAPI, *, expose_details: bool = False) -> None:
    """Attach exception handlers to the FastAPI application."""

    # ── Domain exceptions ───────────────────────────────────────────────

    @app.exception_handler(ChapterScribeError)
    async def domain_handler(request: Request, exc: ChapterScribeError) -> JSONResponse:
        if isinstance(exc, RateLimitedError):
            return _rate_limit_response(exc)

        classified = classify(exc)
        logger.warning(
            "%s on %s %s (code=%s)",
            classified.kind.value,
            request.method,
            request.url.path,
            classified.code,
        )
        content: dict[str, Any] = {
            "error": classified.message,
            "kind": classified.kind.value,
            "code": classified.code,
        }
        if isinstance(exc, InvalidInputError):
            content["details"] = exc.details
        elif expose_details and classified.detail:
            content["details"] = classified.detail
        return JSONResponse(status_code=classified.http_status, content=content)

    # ── Malformed bodies rejected by FastAPI before the route runs ──────

    @app.exception_handler(RequestValidationError)
    async def validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        details = [
            {
                "field": " → ".join(str(p) for p in err.get("loc", [])),
                "msg": err.get("msg", "validation error"),
                "location": "body",
            }
            for err in exc.errors()
        ]
        return await domain_handler(request, InvalidInputError(details))

    # ── Routing errors ──────────────────────────────────────────────────

    @app.exception_handler(StarletteHTTPException)
    async def http_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        # Unrouted /api/ requests still count against the client's allowance.
        if request.url.path.startswith(API_PREFIX):
            try:
                get_pipeline(request).admit(client_identity(request))
            except RateLimitedError as limited:
                return _rate_limit_response(limited)

        if exc.status_code == 404:
            return JSONResponse(
                status_code=404,
                content={"error": NOT_FOUND_MESSAGE, "path": _request_path(request)},
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    # ── Catch-all for unexpected errors ─────────────────────────────────

    @app.exception_handler(Exception)
    async def generic_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={
                "error": INTERNAL_ERROR_MESSAGE,
                "message": str(exc) if expose_details else GENERIC_FAILURE_MESSAGE,
            },
        )
