"""Error taxonomy for LLM requests and the pipelines built on them."""

from __future__ import annotations

from enum import Enum
from typing import Optional

BILLING_URL = "https://console.anthropic.com/settings/billing"
CONSOLE_URL = "https://console.anthropic.com/"


class ErrorType(str, Enum):
    """Caller-facing classification of a failed request."""

    INVALID_CREDENTIAL = "invalid_credential"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    BAD_REQUEST = "bad_request"
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    NETWORK_ERROR = "network_error"
    PARSE_ERROR = "parse_error"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"


class LLMClientError(RuntimeError):
    """Base class for request failures surfaced by :class:`LLMClient`."""

    error_type: ErrorType = ErrorType.UNKNOWN
    retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        hint: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.hint = hint

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message}\n{self.hint}"
        return self.message


class InvalidCredentialError(LLMClientError):
    error_type = ErrorType.INVALID_CREDENTIAL

    def __init__(self, message: str = "Invalid API key. Please check your ANTHROPIC_API_KEY.", **kwargs) -> None:
        kwargs.setdefault("hint", f"Get your API key at: {CONSOLE_URL}")
        super().__init__(message, **kwargs)


class InsufficientBalanceError(LLMClientError):
    error_type = ErrorType.INSUFFICIENT_BALANCE

    def __init__(self, message: str = "Insufficient credits. Please check your Anthropic account.", **kwargs) -> None:
        kwargs.setdefault("hint", f"Review your plan and balance at: {BILLING_URL}")
        super().__init__(message, **kwargs)


class BadRequestError(LLMClientError):
    error_type = ErrorType.BAD_REQUEST


class RateLimitedError(LLMClientError):
    error_type = ErrorType.RATE_LIMITED
    retryable = True

    def __init__(self, message: str = "Rate limited. Please wait and try again.", **kwargs) -> None:
        kwargs.setdefault("hint", "Consider reducing request frequency or upgrading your plan.")
        super().__init__(message, **kwargs)


class ServerError(LLMClientError):
    error_type = ErrorType.SERVER_ERROR
    retryable = True


class NetworkError(LLMClientError):
    error_type = ErrorType.NETWORK_ERROR
    retryable = True


class APIError(LLMClientError):
    """Any other non-2xx answer that is not worth retrying."""


class ParseError(LLMClientError):
    """Raised when a reply cannot be turned into structured data."""

    error_type = ErrorType.PARSE_ERROR

    def __init__(self, message: str, *, preview: str = "", **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.preview = preview


class RetryExhaustedError(LLMClientError):
    """Raised when every attempt failed with a retryable error."""

    def __init__(self, attempts: int, last_error: LLMClientError) -> None:
        super().__init__(
            f"Failed after {attempts} attempts. Last error: {last_error.message}",
            status=last_error.status,
            hint=last_error.hint,
        )
        self.attempts = attempts
        self.last_error = last_error
        self.error_type = last_error.error_type


class RequestCancelledError(LLMClientError):
    """Raised when the caller's cancellation event fired."""

    error_type = ErrorType.CANCELLED

    def __init__(self, message: str = "Request cancelled") -> None:
        super().__init__(message)


__all__ = [
    "APIError",
    "BadRequestError",
    "ErrorType",
    "InsufficientBalanceError",
    "InvalidCredentialError",
    "LLMClientError",
    "NetworkError",
    "ParseError",
    "RateLimitedError",
    "RequestCancelledError",
    "RetryExhaustedError",
    "ServerError",
]
