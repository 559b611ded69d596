"""Tests for ResilientAnthropicClient retry and error mapping."""

import anthropic
import httpx
import pytest

from app.core.errors import AnthropicAPIError, ErrorContext
from app.infrastructure import anthropic_client as module
from app.infrastructure.anthropic_client import ResilientAnthropicClient
from tests.services.mock_anthropic import _Message

REQUEST = httpx.Request("POST", "https://api.anthropic.com/v1/messages")


def _rate_limited(retry_after: str | None = None):
    headers = {"retry-after": retry_after} if retry_after else {}
    response = httpx.Response(429, headers=headers, request=REQUEST)
    return anthropic.RateLimitError("rate limited", response=response, body=None)


def _status_error(code: int):
    response = httpx.Response(code, request=REQUEST)
    return anthropic.APIStatusError("boom", response=response, body=None)


@pytest.fixture
def sleeps(monkeypatch):
    delays = []

    async def fake_sleep(seconds):
        delays.append(seconds)

    monkeypatch.setattr(module.asyncio, "sleep", fake_sleep)
    return delays


def _client_with(outcomes, max_retries=2):
    client = ResilientAnthropicClient(api_key="sk-ant-test", max_retries=max_retries, base_delay_ms=100)
    calls = []

    async def fake_create(**kwargs):
        calls.append(kwargs)
        outcome = outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    client.client.messages.create = fake_create
    return client, calls


async def _send(client):
    return await client.create_message(
        model="claude-haiku-4-5", max_tokens=100, system="sys",
        messages=[{"role": "user", "content": "hi"}],
        context=ErrorContext(feature="ai-chat"),
    )


async def test_success_first_try(sleeps):
    client, calls = _client_with([_Message("ok")])
    response = await _send(client)
    assert response.content[0].text == "ok"
    assert len(calls) == 1
    assert calls[0]["system"] == "sys"
    assert sleeps == []


async def test_rate_limit_honours_retry_after(sleeps):
    client, calls = _client_with([_rate_limited("3"), _Message("ok")])
    await _send(client)
    assert len(calls) == 2
    assert sleeps == [3.0]


async def test_connection_error_retried_with_backoff(sleeps):
    client, calls = _client_with([
        anthropic.APIConnectionError(request=REQUEST), _Message("ok"),
    ])
    await _send(client)
    assert len(calls) == 2
    assert 0.075 <= sleeps[0] <= 0.125


async def test_overloaded_is_transient(sleeps):
    client, calls = _client_with([_status_error(529), _Message("ok")])
    await _send(client)
    assert len(calls) == 2


async def test_rate_limit_exhausted_raises(sleeps):
    client, calls = _client_with([_rate_limited(), _rate_limited(), _rate_limited()])
    with pytest.raises(AnthropicAPIError) as exc:
        await _send(client)
    assert exc.value.api_error_type == "rate_limit"
    assert exc.value.http_status == 503
    assert len(calls) == 3


async def test_client_error_not_retried(sleeps):
    client, calls = _client_with([_status_error(400)])
    with pytest.raises(AnthropicAPIError) as exc:
        await _send(client)
    assert exc.value.api_error_type == "client_error"
    assert exc.value.context.feature == "ai-chat"
    assert len(calls) == 1
    assert sleeps == []


async def test_timeout_not_retried(sleeps):
    client, calls = _client_with([anthropic.APITimeoutError(request=REQUEST)])
    with pytest.raises(AnthropicAPIError) as exc:
        await _send(client)
    assert exc.value.api_error_type == "timeout"
    assert len(calls) == 1


def test_backoff_is_capped():
    client = ResilientAnthropicClient(api_key="sk-ant-test", base_delay_ms=1000, max_delay_ms=5000)
    assert client._backoff(10) <= 6250


@pytest.mark.parametrize("error, kind", [
    (_rate_limited(), "rate_limit"),
    (anthropic.APITimeoutError(request=REQUEST), "timeout"),
    (anthropic.APIConnectionError(request=REQUEST), "transient"),
    (_status_error(529), "transient"),
    (_status_error(404), "client_error"),
])
def test_classify_error(error, kind):
    assert module.classify_error(error) == kind


def test_retry_after_ignores_non_numeric():
    assert module.retry_after_ms(_rate_limited("soon")) is None
    assert module.retry_after_ms(_rate_limited("2")) == 2000
