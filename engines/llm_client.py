"""Anthropic Messages API client with bounded retries and classified errors."""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from time import perf_counter
from typing import Any, Callable, Dict, Optional, Tuple

import httpx

from env_validation import get_env_float, get_env_int
from engines.json_extraction import parse_json_reply
from engines.llm_errors import (
    APIError,
    BadRequestError,
    InsufficientBalanceError,
    InvalidCredentialError,
    LLMClientError,
    NetworkError,
    ParseError,
    RateLimitedError,
    RequestCancelledError,
    RetryExhaustedError,
    ServerError,
)

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.anthropic.com/v1/messages"
API_VERSION = "2023-06-01"
DEFAULT_MODEL = "claude-sonnet-4-20250514"
DEFAULT_MAX_TOKENS = 16384
MAX_OUTPUT_TOKENS = 64000
DEFAULT_TIMEOUT = 600.0

MAX_RETRIES = 3
RETRY_DELAYS: Tuple[float, ...] = (1.0, 5.0, 15.0)


@dataclass(frozen=True)
class ClientConfig:
    """Settings for one process/session; passed explicitly to the client."""

    api_key: Optional[str] = None
    model: str = DEFAULT_MODEL
    api_url: str = DEFAULT_API_URL
    api_version: str = API_VERSION
    max_tokens: int = DEFAULT_MAX_TOKENS
    timeout: float = DEFAULT_TIMEOUT
    retry_delays: Tuple[float, ...] = RETRY_DELAYS

    @classmethod
    def from_env(cls, **overrides: Any) -> "ClientConfig":
        values: Dict[str, Any] = {
            "api_key": (os.getenv("ANTHROPIC_API_KEY") or "").strip() or None,
            "model": os.getenv("ANTHROPIC_MODEL") or DEFAULT_MODEL,
            "api_url": os.getenv("ANTHROPIC_API_URL") or DEFAULT_API_URL,
            "max_tokens": get_env_int("ANTHROPIC_MAX_TOKENS", DEFAULT_MAX_TOKENS),
            "timeout": get_env_float("LLM_TIMEOUT", DEFAULT_TIMEOUT),
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)


@dataclass(frozen=True)
class RetryEvent:
    """Passed to ``on_retry`` observers before the client sleeps."""

    attempt: int
    max_retries: int
    delay: float
    error: LLMClientError


RetryCallback = Callable[[RetryEvent], None]


def _error_message(response: httpx.Response) -> str:
    message = f"API error: {response.status_code}"
    try:
        payload = response.json()
    except ValueError:
        return message
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return message


def classify_response_error(response: httpx.Response) -> LLMClientError:
    """Map a non-2xx response onto the error taxonomy."""

    status = response.status_code
    message = _error_message(response)
    if status == 401:
        return InvalidCredentialError(status=status)
    if status == 402:
        return InsufficientBalanceError(status=status)
    if status == 400:
        return BadRequestError(f"Bad request: {message}", status=status)
    if status == 429:
        return RateLimitedError(status=status)
    if status >= 500:
        return ServerError(f"Server error: {message}", status=status)
    return APIError(message, status=status)


def extract_text(response: httpx.Response) -> str:
    """Return the first text block of a successful Messages API response."""

    try:
        data = response.json()
    except ValueError as exc:
        preview = response.text[:200]
        raise ParseError(f"Failed to parse API response: {exc}", preview=preview) from exc

    blocks = data.get("content") if isinstance(data, dict) else None
    if isinstance(blocks, list):
        for block in blocks:
            if isinstance(block, dict) and block.get("type") == "text" and isinstance(block.get("text"), str):
                return block["text"]
    raise ParseError("No text content in response")


class LLMClient:
    """Send system+user prompts to the Messages API, hiding transient failures."""

    def __init__(self, config: ClientConfig, *, transport: Optional[httpx.AsyncBaseTransport] = None):
        if not config.api_key:
            raise InvalidCredentialError(
                "ANTHROPIC_API_KEY is required. Set it in your environment or pass it explicitly."
            )
        self.config = config
        self._transport = transport

    @property
    def model(self) -> str:
        return self.config.model

    def _headers(self) -> Dict[str, str]:
        return {
            "x-api-key": str(self.config.api_key),
            "anthropic-version": self.config.api_version,
            "content-type": "application/json",
        }

    def _resolve_max_tokens(self, max_tokens: Optional[int]) -> int:
        value = int(max_tokens) if max_tokens is not None else int(self.config.max_tokens)
        return max(1, min(value, MAX_OUTPUT_TOKENS))

    def _delay_for(self, attempt_index: int) -> float:
        delays = self.config.retry_delays or RETRY_DELAYS
        return float(delays[min(attempt_index, len(delays) - 1)])

    async def _post(
        self,
        http: httpx.AsyncClient,
        payload: Dict[str, Any],
        cancel_event: Optional[asyncio.Event],
    ) -> httpx.Response:
        try:
            if cancel_event is None:
                return await http.post(self.config.api_url, json=payload, headers=self._headers())

            request_task = asyncio.ensure_future(
                http.post(self.config.api_url, json=payload, headers=self._headers())
            )
            cancel_task = asyncio.ensure_future(cancel_event.wait())
            try:
                done, _ = await asyncio.wait(
                    {request_task, cancel_task},
                    return_when=asyncio.FIRST_COMPLETED,
                )
            finally:
                pending = [task for task in (request_task, cancel_task) if not task.done()]
                for task in pending:
                    task.cancel()
                if pending:
                    await asyncio.gather(*pending, return_exceptions=True)
            if request_task in done:
                return request_task.result()
            raise RequestCancelledError()
        except httpx.TransportError as exc:
            raise NetworkError(f"Network error: {exc}") from exc

    async def _sleep(self, delay: float, cancel_event: Optional[asyncio.Event]) -> None:
        if cancel_event is None:
            await asyncio.sleep(delay)
            return
        try:
            await asyncio.wait_for(cancel_event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return
        raise RequestCancelledError()

    async def send_message(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: Optional[int] = None,
        *,
        cancel_event: Optional[asyncio.Event] = None,
        on_retry: Optional[RetryCallback] = None,
    ) -> str:
        """Return the model's text reply, retrying rate limits, 5xx and transport errors."""

        payload = {
            "model": self.config.model,
            "max_tokens": self._resolve_max_tokens(max_tokens),
            "system": system_prompt,
            "messages": [{"role": "user", "content": user_prompt}],
        }

        last_error: Optional[LLMClientError] = None
        async with httpx.AsyncClient(timeout=self.config.timeout, transport=self._transport) as http:
            for attempt_index in range(MAX_RETRIES):
                attempt_number = attempt_index + 1
                if cancel_event is not None and cancel_event.is_set():
                    logger.info("Request cancelled before attempt %d/%d", attempt_number, MAX_RETRIES)
                    raise RequestCancelledError()

                start_time = perf_counter()
                try:
                    response = await self._post(http, payload, cancel_event)
                    if not response.is_success:
                        raise classify_response_error(response)
                    text = extract_text(response)
                except RequestCancelledError:
                    logger.info("Request cancelled during attempt %d/%d", attempt_number, MAX_RETRIES)
                    raise
                except LLMClientError as exc:
                    latency_ms = int((perf_counter() - start_time) * 1000)
                    if not exc.retryable:
                        logger.error(
                            "LLM request failed with non-retryable %s (attempt %d/%d, %d ms): %s",
                            exc.error_type.value,
                            attempt_number,
                            MAX_RETRIES,
                            latency_ms,
                            exc.message,
                        )
                        raise
                    logger.warning(
                        "LLM request failed for model %s (attempt %d/%d, %d ms): %s",
                        self.config.model,
                        attempt_number,
                        MAX_RETRIES,
                        latency_ms,
                        exc.message,
                    )
                    last_error = exc
                else:
                    latency_ms = int((perf_counter() - start_time) * 1000)
                    logger.info(
                        "LLM reply received in %d ms using model %s (attempt %d/%d)",
                        latency_ms,
                        self.config.model,
                        attempt_number,
                        MAX_RETRIES,
                    )
                    return text

                if attempt_index < MAX_RETRIES - 1:
                    delay = self._delay_for(attempt_index)
                    if on_retry is not None:
                        on_retry(RetryEvent(attempt_number, MAX_RETRIES, delay, last_error))
                    try:
                        await self._sleep(delay, cancel_event)
                    except RequestCancelledError:
                        logger.info("Request cancelled while waiting to retry")
                        raise

        if last_error is None:
            raise LLMClientError("LLM request made no attempts")
        raise RetryExhaustedError(MAX_RETRIES, last_error) from last_error

    async def send_message_for_json(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: Optional[int] = None,
        *,
        cancel_event: Optional[asyncio.Event] = None,
        on_retry: Optional[RetryCallback] = None,
    ) -> Any:
        """Like :meth:`send_message` but parse the reply as (optionally fenced) JSON."""

        reply = await self.send_message(
            system_prompt,
            user_prompt,
            max_tokens,
            cancel_event=cancel_event,
            on_retry=on_retry,
        )
        return parse_json_reply(reply)


__all__ = [
    "ClientConfig",
    "DEFAULT_MODEL",
    "LLMClient",
    "MAX_RETRIES",
    "RETRY_DELAYS",
    "RetryEvent",
    "classify_response_error",
    "extract_text",
]
