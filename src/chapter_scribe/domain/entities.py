"""Domain entities — pure data structures with no external dependencies."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Role(str, Enum):
    """Author of a single conversational turn."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True, slots=True)
class Message:
    """One turn of a conversation, in the order it was spoken."""

    role: Role
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}


@dataclass(frozen=True, slots=True)
class ChatRequest:
    """A validated chat request.

    ``conversation_history`` holds the client-supplied items as received;
    their shape is checked when the prompt is assembled.
    """

    message: str
    conversation_history: tuple[Any, ...] = ()


@dataclass(frozen=True, slots=True)
class CompletionConfig:
    """Sampling parameters sent with every completion call."""

    model: str
    max_tokens: int
    temperature: float


@dataclass(frozen=True, slots=True)
class CompletionResult:
    """Generated text plus the provider's usage report."""

    text: str
    usage: dict[str, Any] = field(default_factory=dict)
    model: str = ""


@dataclass(frozen=True, slots=True)
class Admission:
    """Outcome of a rate-limit admission check."""

    allowed: bool
    limit: int
    remaining: int
    retry_after: float = 0.0  # seconds until the window resets
    reset_after: float = 0.0


class ErrorKind(str, Enum):
    """Stable client-facing failure categories."""

    INVALID_INPUT = "InvalidInput"
    MISSING_CREDENTIAL = "MissingCredential"
    QUOTA_EXCEEDED = "QuotaExceeded"
    INVALID_CREDENTIAL = "InvalidCredential"
    UPSTREAM_RATE_LIMITED = "UpstreamRateLimited"
    UPSTREAM_SERVER_ERROR = "UpstreamServerError"
    RATE_LIMITED = "RateLimited"
    UNKNOWN = "Unknown"


@dataclass(frozen=True, slots=True)
class ClassifiedError:
    """A normalized failure record, independent of the provider's vocabulary."""

    kind: ErrorKind
    http_status: int
    message: str
    code: str = "unknown_error"
    detail: str | None = None  # raw provider text, only shown in development
