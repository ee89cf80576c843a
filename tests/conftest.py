from __future__ import annotations

import time
from typing import Sequence

import pytest
from fastapi.testclient import TestClient

from chapter_scribe.domain.entities import CompletionConfig, CompletionResult, Message
from chapter_scribe.infrastructure.config import Settings
from chapter_scribe.interface.app import create_app
from chapter_scribe.services.rate_limiter import FixedWindowRateLimiter

DEFAULT_RESULT = CompletionResult(
    text="# Capítulo 1\n\nIntrodução...",
    usage={"prompt_tokens": 120, "completion_tokens": 40, "total_tokens": 160},
    model="gpt-4o-2024-08-06",
)


class FakeClock:
    """Manually advanced wall clock (epoch seconds)."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeGateway:
    """In-memory CompletionGateway that records every call."""

    def __init__(
        self,
        result: CompletionResult = DEFAULT_RESULT,
        error: BaseException | None = None,
    ) -> None:
        self.result = result
        self.error = error
        self.calls: list[tuple[list[Message], CompletionConfig]] = []

    async def complete(
        self, messages: Sequence[Message], config: CompletionConfig
    ) -> CompletionResult:
        self.calls.append((list(messages), config))
        if self.error is not None:
            raise self.error
        return self.result


def make_settings(**overrides: object) -> Settings:
    values: dict[str, object] = {
        "openai_api_key": "sk-test",
        "environment": "production",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)  # type: ignore[arg-type]


@pytest.fixture
def clock(monkeypatch: pytest.MonkeyPatch) -> FakeClock:
    fake = FakeClock()
    monkeypatch.setattr(time, "time", fake)
    return fake


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def client(settings: Settings, gateway: FakeGateway):
    app = create_app(settings, gateway=gateway)
    with TestClient(app) as test_client:
        yield test_client
