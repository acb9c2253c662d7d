"""Shared PagerDuty plumbing — async REST client, errors, lifecycle base."""

from pagerduty_common.client import PagerDutyClient
from pagerduty_common.config import ClientSettings, load_settings
from pagerduty_common.errors import (
    ApiError,
    AuthError,
    ConfigError,
    ConflictError,
    ForbiddenError,
    InvalidRequestError,
    NotFoundError,
    PaginationError,
    RateLimitError,
    ServerError,
    ValidationError,
)
from pagerduty_common.resource import (
    AbstractPagerDutyResource,
    Action,
    HandlerErrorCode,
    NotUpdatable,
    OperationStatus,
    ProgressEvent,
)

__version__ = "1.0.0"

__all__ = [
    "PagerDutyClient",
    "ClientSettings",
    "load_settings",
    "ApiError",
    "AuthError",
    "ConfigError",
    "ConflictError",
    "ForbiddenError",
    "InvalidRequestError",
    "NotFoundError",
    "PaginationError",
    "RateLimitError",
    "ServerError",
    "ValidationError",
    "AbstractPagerDutyResource",
    "Action",
    "HandlerErrorCode",
    "NotUpdatable",
    "OperationStatus",
    "ProgressEvent",
]
