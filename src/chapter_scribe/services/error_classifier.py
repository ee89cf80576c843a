"""Error classifier — maps pipeline failures to a stable client-facing kind.

The lookup is a fixed table evaluated top to bottom; the first matching
rule wins.  Client messages are fixed per kind so provider wording never
reaches a production response.
"""

from __future__ import annotations

from typing import Callable

from chapter_scribe.domain.entities import ClassifiedError, ErrorKind
from chapter_scribe.domain.exceptions import (
    InvalidInputError,
    MissingCredentialError,
    ProviderError,
    RateLimitedError,
    UpstreamTimeoutError,
)

_STATUS: dict[ErrorKind, int] = {
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.MISSING_CREDENTIAL: 500,
    ErrorKind.QUOTA_EXCEEDED: 402,
    ErrorKind.INVALID_CREDENTIAL: 401,
    ErrorKind.UPSTREAM_RATE_LIMITED: 429,
    ErrorKind.UPSTREAM_SERVER_ERROR: 503,
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.UNKNOWN: 500,
}

MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.INVALID_INPUT: "Dados inválidos",
    ErrorKind.MISSING_CREDENTIAL: "Configuração do servidor incompleta",
    ErrorKind.QUOTA_EXCEEDED: "Limite de créditos da API excedido",
    ErrorKind.INVALID_CREDENTIAL: "Chave da API inválida",
    ErrorKind.UPSTREAM_RATE_LIMITED: (
        "Limite de requisições excedido. Tente novamente em alguns minutos."
    ),
    ErrorKind.UPSTREAM_SERVER_ERROR: "Erro temporário do servidor OpenAI. Tente novamente.",
    ErrorKind.RATE_LIMITED: "Muitas requisições. Tente novamente em alguns minutos.",
    ErrorKind.UNKNOWN: "Erro interno do servidor",
}


def _provider_code(code: str) -> Callable[[BaseException], bool]:
    return lambda exc: isinstance(exc, ProviderError) and exc.code == code


def _provider_type(type_: str) -> Callable[[BaseException], bool]:
    return lambda exc: isinstance(exc, ProviderError) and exc.type == type_


_RULES: list[tuple[Callable[[BaseException], bool], ErrorKind]] = [
    (lambda exc: isinstance(exc, MissingCredentialError), ErrorKind.MISSING_CREDENTIAL),
    (_provider_code("insufficient_quota"), ErrorKind.QUOTA_EXCEEDED),
    (_provider_code("invalid_api_key"), ErrorKind.INVALID_CREDENTIAL),
    (_provider_code("rate_limit_exceeded"), ErrorKind.UPSTREAM_RATE_LIMITED),
    (_provider_type("server_error"), ErrorKind.UPSTREAM_SERVER_ERROR),
    (lambda exc: isinstance(exc, UpstreamTimeoutError), ErrorKind.UPSTREAM_SERVER_ERROR),
    (lambda exc: isinstance(exc, InvalidInputError), ErrorKind.INVALID_INPUT),
    (lambda exc: isinstance(exc, RateLimitedError), ErrorKind.RATE_LIMITED),
]


def classify(failure: BaseException) -> ClassifiedError:
    """Return the :class:`ClassifiedError` for *failure*."""
    kind = next((k for matches, k in _RULES if matches(failure)), ErrorKind.UNKNOWN)

    code = "unknown_error"
    if isinstance(failure, ProviderError) and failure.code:
        code = failure.code
    elif isinstance(failure, UpstreamTimeoutError):
        code = "timeout"
    elif kind is not ErrorKind.UNKNOWN and not isinstance(failure, ProviderError):
        code = kind.value

    return ClassifiedError(
        kind=kind,
        http_status=_STATUS[kind],
        message=MESSAGES[kind],
        code=code,
        detail=str(failure) or None,
    )
