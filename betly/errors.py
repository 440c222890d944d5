"""
Typed errors raised by the Betly client.

Remote failures are translated into ApiError subclasses at the HTTP client
boundary so callers can branch on the error kind (top up, upgrade, log in
again, retry) instead of inspecting raw HTTP responses.
"""

from enum import Enum
from typing import Optional


class ErrorCode(Enum):
    """Error kinds surfaced to callers."""

    VALIDATION = "VALIDATION"
    BAD_REQUEST = "BAD_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    INSUFFICIENT_CREDITS = "INSUFFICIENT_CREDITS"
    EXPERT_REQUIRED = "EXPERT_REQUIRED"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    RATE_LIMIT = "RATE_LIMIT"
    SERVER_ERROR = "SERVER_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT = "TIMEOUT"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class BetlyError(Exception):
    """Base Betly client error."""
    pass


class ApiError(BetlyError):
    """
    A failed operation, local or remote.

    Attributes:
        code: Error kind
        message: Human-readable message (server-provided when available)
        status: HTTP status, None for local and transport failures
        errors: Field errors from 400/422 responses
        required: Credits required (INSUFFICIENT_CREDITS only)
        available: Credits available (INSUFFICIENT_CREDITS only)
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        status: Optional[int] = None,
        errors: Optional[dict[str, list[str]]] = None,
        required: Optional[int] = None,
        available: Optional[int] = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status = status
        self.errors = errors
        self.required = required
        self.available = available

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code.value}, status={self.status}, message={self.message!r})"


class EmptyTicketError(ApiError):
    """Save attempted on a ticket with no selections. Never reaches the network."""

    def __init__(self, message: str = "No selections to save"):
        super().__init__(ErrorCode.VALIDATION, message)


class InvalidSelectionError(ApiError):
    """Selection rejected before it reaches the draft."""

    def __init__(self, message: str = "Odds must be at least 1.0"):
        super().__init__(ErrorCode.VALIDATION, message)


class InsufficientCreditsError(ApiError):
    """Balance too low for the requested spend."""

    def __init__(
        self,
        message: str = "Insufficient credits",
        status: Optional[int] = None,
        required: Optional[int] = None,
        available: Optional[int] = None,
    ):
        super().__init__(
            ErrorCode.INSUFFICIENT_CREDITS,
            message,
            status=status,
            required=required,
            available=available,
        )


class TierRequiredError(ApiError):
    """Content requires a higher subscription tier."""

    def __init__(self, message: str = "Expert subscription required", status: Optional[int] = 403):
        super().__init__(ErrorCode.EXPERT_REQUIRED, message, status=status)


class UnauthorizedError(ApiError):
    """Session is no longer valid; stored credentials have been cleared."""

    def __init__(self, message: str = "Unauthorized", status: Optional[int] = 401):
        super().__init__(ErrorCode.UNAUTHORIZED, message, status=status)


class NetworkError(ApiError):
    """The request never got a response."""

    def __init__(self, message: str = "Network error - please check your connection"):
        super().__init__(ErrorCode.NETWORK_ERROR, message)


class RequestTimeout(ApiError):
    """The request exceeded the configured client timeout."""

    def __init__(self, message: str = "Request timeout"):
        super().__init__(ErrorCode.TIMEOUT, message)


class ServerError(ApiError):
    """5xx response."""

    def __init__(self, message: str = "Server error", status: Optional[int] = 500):
        super().__init__(ErrorCode.SERVER_ERROR, message, status=status)


_RETRYABLE_CODES = {
    ErrorCode.NETWORK_ERROR,
    ErrorCode.TIMEOUT,
    ErrorCode.RATE_LIMIT,
    ErrorCode.SERVER_ERROR,
}


def is_retryable(error: ApiError) -> bool:
    """Whether the user can reasonably retry the same operation as-is."""
    return error.code in _RETRYABLE_CODES


def user_action(error: ApiError) -> Optional[str]:
    """
    Call-to-action the UI should offer for an error.

    Returns:
        "top_up", "upgrade", "login", "retry", or None when nothing the
        user does will make the same request succeed.
    """
    if error.code is ErrorCode.INSUFFICIENT_CREDITS:
        return "top_up"
    if error.code is ErrorCode.EXPERT_REQUIRED:
        return "upgrade"
    if error.code is ErrorCode.UNAUTHORIZED:
        return "login"
    if is_retryable(error):
        return "retry"
    return None
