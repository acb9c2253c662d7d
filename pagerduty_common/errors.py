"""Structured exceptions for PagerDuty API calls."""

from __future__ import annotations

from typing import Any, Dict, Optional, Type


class ApiError(Exception):
    """Base exception for all PagerDuty API errors."""

    def __init__(
        self,
        status_code: int,
        message: str,
        detail: Any = None,
        request_id: Optional[str] = None,
    ) -> None:
        self.status_code = status_code
        self.message = message
        self.detail = detail
        self.request_id = request_id
        super().__init__(f"[{status_code}] {message}")


class InvalidRequestError(ApiError):
    """400 Bad Request — malformed parameters."""
    pass


class AuthError(ApiError):
    """401 Unauthorized — missing or invalid access token."""
    pass


class ForbiddenError(ApiError):
    """403 Forbidden — token lacks the required scope."""
    pass


class NotFoundError(ApiError):
    """404 Not Found — team, user or membership missing."""
    pass


class ConflictError(ApiError):
    """409 Conflict."""
    pass


class ValidationError(ApiError):
    """422 Unprocessable Entity."""
    pass


class RateLimitError(ApiError):
    """429 Too Many Requests."""
    pass


class ServerError(ApiError):
    """500+ (or 0 for a network failure) — server-side error."""
    pass


class PaginationError(Exception):
    """Pagination did not terminate within the configured page budget."""
    pass


class ConfigError(Exception):
    """Invalid or missing client configuration."""
    pass


_STATUS_ERRORS: Dict[int, Type[ApiError]] = {
    400: InvalidRequestError,
    401: AuthError,
    403: ForbiddenError,
    404: NotFoundError,
    409: ConflictError,
    422: ValidationError,
    429: RateLimitError,
}


def error_for_status(
    status_code: int,
    message: str,
    detail: Any = None,
    request_id: Optional[str] = None,
) -> ApiError:
    """Build the ApiError subclass matching an HTTP status code."""
    if status_code in _STATUS_ERRORS:
        cls = _STATUS_ERRORS[status_code]
    elif status_code >= 500 or status_code == 0:
        cls = ServerError
    else:
        cls = ApiError
    return cls(status_code, message, detail, request_id)
