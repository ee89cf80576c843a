"""Pydantic request / response DTOs for the API boundary."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class ChatResponse(BaseModel):
    """Successful response from ``POST /api/chat``."""

    success: bool = True
    response: str
    usage: dict[str, Any]
    model: str


class SmokeTestResponse(BaseModel):
    """Successful response from ``POST /api/test``."""

    success: bool = True
    message: str = "API funcionando corretamente"
    response: str | None


class HealthResponse(BaseModel):
    status: str = "OK"
    timestamp: str
    version: str


class ErrorResponse(BaseModel):
    """Standard error envelope returned on classified failure paths."""

    error: str
    kind: str
    code: str
    details: Any = None
