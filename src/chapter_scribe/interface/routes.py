"""API routes — thin controllers that delegate to the chat pipeline."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, TypeVar

from fastapi import APIRouter, Body, Depends, Request, Response
from fastapi.responses import JSONResponse

from chapter_scribe.domain.exceptions import (
    ChapterScribeError,
    MissingCredentialError,
    RateLimitedError,
)
from chapter_scribe.interface.dependencies import client_identity, get_pipeline
from chapter_scribe.interface.schemas import ChatResponse, ErrorResponse, SmokeTestResponse
from chapter_scribe.services.chat_pipeline import ChatPipeline

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

T = TypeVar("T")

CLIENT_CLOSED_REQUEST = 499
_DISCONNECT_POLL_SECONDS = 0.5


async def _cancel_on_disconnect(request: Request, work: Awaitable[T]) -> T | None:
    """Await *work*, cancelling it if the client goes away first.

    Returns ``None`` when the client disconnected; the SDK aborts the
    in-flight upstream request when its task is cancelled.
    """
    task = asyncio.ensure_future(work)
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=_DISCONNECT_POLL_SECONDS)
            if done:
                return task.result()
            if await request.is_disconnected():
                logger.info(
                    "Client %s disconnected; cancelling upstream call", client_identity(request)
                )
                task.cancel()
                await asyncio.wait({task})
                return None
    finally:
        if not task.done():
            task.cancel()


@router.post(
    "/chat",
    response_model=ChatResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid message or history"},
        401: {"model": ErrorResponse, "description": "Provider rejected the API key"},
        402: {"model": ErrorResponse, "description": "Provider credits exhausted"},
        429: {"model": ErrorResponse, "description": "Local or upstream rate limit"},
        500: {"model": ErrorResponse, "description": "Missing API key or unexpected error"},
        503: {"model": ErrorResponse, "description": "Provider temporarily unavailable"},
    },
)
async def chat(
    request: Request,
    payload: Any = Body(default=None),
    pipeline: ChatPipeline = Depends(get_pipeline),
) -> Any:
    """Generate a chapter reply for the message and prior conversation."""
    result = await _cancel_on_disconnect(
        request, pipeline.execute(client_identity(request), payload)
    )
    if result is None:
        return Response(status_code=CLIENT_CLOSED_REQUEST)
    return ChatResponse(response=result.text, usage=result.usage, model=result.model)


@router.post("/test", response_model=SmokeTestResponse)
async def smoke_test(
    request: Request,
    pipeline: ChatPipeline = Depends(get_pipeline),
) -> Any:
    """Send a fixed smoke-test conversation to check the provider end to end."""
    try:
        result = await pipeline.smoke_test(client_identity(request))
    except RateLimitedError:
        raise
    except MissingCredentialError:
        return JSONResponse(status_code=500, content={"error": "Chave da API não configurada"})
    except ChapterScribeError as exc:
        logger.error("Provider smoke test failed: %s", exc)
        return JSONResponse(
            status_code=500,
            content={"error": "Erro ao testar API", "details": str(exc)},
        )
    return SmokeTestResponse(response=result.text)
