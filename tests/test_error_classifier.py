"""Tests for failure classification."""

from __future__ import annotations

import pytest

from chapter_scribe.domain.entities import Admission, ErrorKind
from chapter_scribe.domain.exceptions import (
    InvalidInputError,
    MissingCredentialError,
    ProviderError,
    RateLimitedError,
    UpstreamTimeoutError,
)
from chapter_scribe.services.error_classifier import MESSAGES, classify


@pytest.mark.parametrize(
    "failure, kind, status",
    [
        (MissingCredentialError("no key"), ErrorKind.MISSING_CREDENTIAL, 500),
        (ProviderError("quota", code="insufficient_quota"), ErrorKind.QUOTA_EXCEEDED, 402),
        (ProviderError("bad key", code="invalid_api_key"), ErrorKind.INVALID_CREDENTIAL, 401),
        (
            ProviderError("slow down", code="rate_limit_exceeded"),
            ErrorKind.UPSTREAM_RATE_LIMITED,
            429,
        ),
        (ProviderError("boom", type="server_error"), ErrorKind.UPSTREAM_SERVER_ERROR, 503),
        (UpstreamTimeoutError("timed out"), ErrorKind.UPSTREAM_SERVER_ERROR, 503),
        (InvalidInputError([{"msg": "bad"}]), ErrorKind.INVALID_INPUT, 400),
        (
            RateLimitedError(Admission(allowed=False, limit=1, remaining=0, retry_after=3)),
            ErrorKind.RATE_LIMITED,
            429,
        ),
        (ProviderError("model gone", code="model_not_found"), ErrorKind.UNKNOWN, 500),
        (ProviderError("dns", type="connection_error"), ErrorKind.UNKNOWN, 500),
        (RuntimeError("unexpected"), ErrorKind.UNKNOWN, 500),
    ],
)
def test_table(failure, kind, status):
    classified = classify(failure)
    assert classified.kind is kind
    assert classified.http_status == status
    assert classified.message == MESSAGES[kind]


def test_first_match_wins():
    failure = ProviderError("x", code="insufficient_quota", type="server_error")
    assert classify(failure).kind is ErrorKind.QUOTA_EXCEEDED


def test_message_never_contains_provider_text():
    failure = ProviderError("Incorrect API key provided: sk-abc***xyz", code="invalid_api_key")
    classified = classify(failure)
    assert "sk-abc" not in classified.message
    assert classified.detail == "Incorrect API key provided: sk-abc***xyz"


def test_provider_code_is_carried():
    assert classify(ProviderError("q", code="insufficient_quota")).code == "insufficient_quota"


def test_missing_provider_code_falls_back():
    assert classify(ProviderError("boom", type="server_error")).code == "unknown_error"
    assert classify(RuntimeError("x")).code == "unknown_error"


def test_timeout_code():
    assert classify(UpstreamTimeoutError("late")).code == "timeout"
