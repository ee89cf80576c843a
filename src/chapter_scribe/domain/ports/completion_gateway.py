"""Port: completion gateway — defined by the domain, implemented by infrastructure."""

from __future__ import annotations

from typing import Protocol, Sequence

from chapter_scribe.domain.entities import CompletionConfig, CompletionResult, Message


class CompletionGateway(Protocol):
    """Abstract contract for a chat-completion provider."""

    async def complete(
        self, messages: Sequence[Message], config: CompletionConfig
    ) -> CompletionResult:
        """Send the ordered messages and return the generated completion."""
        ...
