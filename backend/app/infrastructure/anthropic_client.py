"""Resilient Anthropic Client — single-turn completions with retry, backoff and error mapping.

Invariants:
    - Every SDK failure is classified once: rate_limit, transient, timeout or client_error
    - rate_limit and transient are retried up to max_retries; timeout and client_error never are
    - A Retry-After header (seconds) overrides the computed backoff for rate limits
    - Exhausted retries and non-retryable failures raise AnthropicAPIError with the caller's context

Design Decisions:
    - Wrapper over raw client: AI feature services only see create_message() and usage
      (ADR: single responsibility, tests swap the whole object)
    - ±25% jitter on backoff: several workers sharing one key do not retry in lockstep
    - Plain messages.create, no tools or betas: every analytics feature is a single-turn prompt
"""

import asyncio
import logging
import random

import anthropic
from anthropic import (
    APIConnectionError,
    APIError,
    APIStatusError,
    APITimeoutError,
    InternalServerError,
    RateLimitError,
)

from app.core.errors import AnthropicAPIError, ErrorContext

logger = logging.getLogger(__name__)

# OverloadedError (HTTP 529) is not re-exported by every SDK release
_OVERLOADED_STATUS = 529

RATE_LIMIT = "rate_limit"
TRANSIENT = "transient"
TIMEOUT = "timeout"
CLIENT_ERROR = "client_error"
_RETRYABLE = (RATE_LIMIT, TRANSIENT)


def classify_error(e: APIError) -> str:
    # APITimeoutError subclasses APIConnectionError, so it is checked first
    if isinstance(e, RateLimitError):
        return RATE_LIMIT
    if isinstance(e, APITimeoutError):
        return TIMEOUT
    if isinstance(e, (APIConnectionError, InternalServerError)):
        return TRANSIENT
    if isinstance(e, APIStatusError) and e.status_code == _OVERLOADED_STATUS:
        return TRANSIENT
    return CLIENT_ERROR


def retry_after_ms(e: APIError) -> int | None:
    """Retry-After header in milliseconds, when the response carries one."""
    response = getattr(e, "response", None)
    if response is None:
        return None
    value = response.headers.get("retry-after")
    if value and value.isdigit():
        return int(value) * 1000
    return None


class ResilientAnthropicClient:
    """AsyncAnthropic behind one retrying create_message() call."""

    def __init__(
        self,
        api_key: str,
        max_retries: int = 3,
        base_delay_ms: int = 1000,
        max_delay_ms: int = 60_000,
        timeout_seconds: int = 120,
    ):
        self.client = anthropic.AsyncAnthropic(api_key=api_key, timeout=timeout_seconds)
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms

    async def create_message(
        self,
        *,
        model: str,
        max_tokens: int,
        system: str,
        messages: list,
        context: ErrorContext | None = None,
    ):
        attempt = 0
        while True:
            try:
                response = await self.client.messages.create(
                    model=model, max_tokens=max_tokens, system=system, messages=messages,
                )
            except APIError as e:
                kind = classify_error(e)
                if kind not in _RETRYABLE or attempt >= self.max_retries:
                    raise self._to_error(e, kind, context)
                delay = (kind == RATE_LIMIT and retry_after_ms(e)) or self._backoff(attempt)
                logger.warning(
                    f"Anthropic {kind} error, retry in {delay}ms: {e}",
                    extra={"attempt": attempt + 1, "feature": context.feature if context else None},
                )
                await asyncio.sleep(delay / 1000)
                attempt += 1
                continue

            logger.info(
                "Anthropic API success",
                extra={
                    "attempt": attempt + 1,
                    "model": model,
                    "feature": context.feature if context else None,
                    "input_tokens": response.usage.input_tokens,
                    "output_tokens": response.usage.output_tokens,
                },
            )
            return response

    def _to_error(self, e: APIError, kind: str, context: ErrorContext | None) -> AnthropicAPIError:
        if kind == RATE_LIMIT:
            return AnthropicAPIError(
                "Rate limit exceeded after retries", RATE_LIMIT,
                retry_after_ms=retry_after_ms(e), context=context,
            )
        if kind == TRANSIENT:
            return AnthropicAPIError(
                f"Transient failure after {self.max_retries} retries: {e}",
                "connection_error", context=context,
            )
        if kind == TIMEOUT:
            return AnthropicAPIError("API timeout", TIMEOUT, context=context)
        return AnthropicAPIError(str(e), CLIENT_ERROR, context=context)

    def _backoff(self, attempt: int) -> int:
        """Exponential backoff capped at max_delay_ms, ±25% jitter."""
        delay = min(self.max_delay_ms, (2 ** attempt) * self.base_delay_ms)
        return int(delay * random.uniform(0.75, 1.25))  # nosec B311
