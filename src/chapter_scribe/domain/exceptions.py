"""Domain exception hierarchy.

Inner layers raise these; the outermost error handler classifies them
into a :class:`~chapter_scribe.domain.entities.ClassifiedError` and
renders the HTTP response.
"""

from __future__ import annotations

from typing import Any

from chapter_scribe.domain.entities import Admission


class ChapterScribeError(Exception):
    """Base exception for the entire application."""


# ── Input validation ────────────────────────────────────────────────────────


class InvalidInputError(ChapterScribeError):
    """The request body broke one or more input rules."""

    def __init__(self, details: list[dict[str, Any]]) -> None:
        super().__init__("; ".join(str(d.get("msg", "")) for d in details))
        self.details = details


# ── Local throttling ────────────────────────────────────────────────────────


class RateLimitedError(ChapterScribeError):
    """The client exceeded its request allowance for the current window."""

    def __init__(self, admission: Admission) -> None:
        super().__init__(f"Rate limit exceeded; retry in {admission.retry_after:.1f}s")
        self.admission = admission


# ── Completion provider ─────────────────────────────────────────────────────


class MissingCredentialError(ChapterScribeError):
    """No provider API key is configured; nothing was sent upstream."""


class ProviderError(ChapterScribeError):
    """A failure reported by the completion provider, kept as received."""

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        type: str | None = None,  # noqa: A002
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.type = type
        self.status_code = status_code


class UpstreamTimeoutError(ChapterScribeError):
    """The provider did not answer within the configured deadline."""
