"""Request validator — checks the shape and bounds of an incoming chat body.

Every rule is evaluated independently and all violations are reported
together, so a client gets the complete list of problems in one response.
"""

from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_core import PydanticCustomError

from chapter_scribe.domain.entities import ChatRequest
from chapter_scribe.domain.exceptions import InvalidInputError

MIN_MESSAGE_LENGTH = 1
MAX_MESSAGE_LENGTH = 10_000


class _ChatPayload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    message: Any = Field(default=None, validate_default=True)
    conversation_history: Any = Field(
        default=None, alias="conversationHistory", validate_default=True
    )

    @field_validator("message")
    @classmethod
    def _message_bounds(cls, v: Any) -> str:
        if not isinstance(v, str) or not MIN_MESSAGE_LENGTH <= len(v) <= MAX_MESSAGE_LENGTH:
            raise PydanticCustomError(
                "message_length",
                "Mensagem deve ter entre 1 e 10000 caracteres",
            )
        return v

    @field_validator("conversation_history")
    @classmethod
    def _history_is_sequence(cls, v: Any) -> tuple[Any, ...]:
        if v is None:
            return ()
        if not isinstance(v, (list, tuple)):
            raise PydanticCustomError("history_type", "Histórico deve ser um array")
        return tuple(v)


def _details(exc: ValidationError) -> list[dict[str, Any]]:
    details = []
    for err in exc.errors():
        loc = err.get("loc", ())
        field = loc[0] if loc else "body"
        if field == "conversation_history":
            field = "conversationHistory"
        details.append({"field": field, "msg": err.get("msg", ""), "location": "body"})
    return details


def validate(raw: Any) -> ChatRequest:
    """Turn a decoded JSON body into a :class:`ChatRequest`.

    Raises :class:`InvalidInputError` listing every broken rule.
    """
    payload: Mapping[str, Any] = raw if isinstance(raw, Mapping) else {}
    try:
        parsed = _ChatPayload.model_validate(payload)
    except ValidationError as exc:
        raise InvalidInputError(_details(exc)) from exc
    return ChatRequest(
        message=parsed.message,
        conversation_history=parsed.conversation_history,
    )
