"""Lifecycle base for PagerDuty-backed resources.

Subclasses implement the raw operations (``list``, ``get``, ``create``,
``update``, ``delete``) against the REST API. ``handle`` turns one lifecycle
action into a ``ProgressEvent``: it sequences the operations (e.g. create
followed by a read-back) and classifies any failure into a
``HandlerErrorCode`` using only the error's status code.
"""

from __future__ import annotations

import abc
import asyncio
import logging
from enum import Enum
from typing import Any, Generic, List, Optional, Type, TypeVar

from pydantic import BaseModel

from pagerduty_common.errors import ApiError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class Action(str, Enum):
    CREATE = "CREATE"
    READ = "READ"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    LIST = "LIST"


class OperationStatus(str, Enum):
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class HandlerErrorCode(str, Enum):
    NOT_UPDATABLE = "NotUpdatable"
    INVALID_REQUEST = "InvalidRequest"
    ACCESS_DENIED = "AccessDenied"
    ALREADY_EXISTS = "AlreadyExists"
    NOT_FOUND = "NotFound"
    THROTTLING = "Throttling"
    SERVICE_INTERNAL_ERROR = "ServiceInternalError"
    GENERAL_SERVICE_EXCEPTION = "GeneralServiceException"
    INTERNAL_FAILURE = "InternalFailure"


class NotUpdatable(Exception):
    """The resource type has no update operation; every update fails."""

    error_code = HandlerErrorCode.NOT_UPDATABLE

    def __init__(self, type_name: str = "resource") -> None:
        self.type_name = type_name
        super().__init__(f"{type_name} does not support updates")


class ProgressEvent(BaseModel):
    """Outcome of one lifecycle action."""

    status: OperationStatus
    resource_model: Optional[Any] = None
    resource_models: Optional[List[Any]] = None
    error_code: Optional[HandlerErrorCode] = None
    message: str = ""

    @classmethod
    def success(cls, model: Any = None, models: Optional[List[Any]] = None) -> "ProgressEvent":
        return cls(status=OperationStatus.SUCCESS, resource_model=model, resource_models=models)

    @classmethod
    def failed(cls, error_code: HandlerErrorCode, message: str) -> "ProgressEvent":
        return cls(status=OperationStatus.FAILED, error_code=error_code, message=message)


def classify_error(exc: BaseException) -> HandlerErrorCode:
    """Map an exception to a handler error code.

    Only ``status_code`` is consulted for API errors, so a not-found raised
    by a list-and-filter read is classified exactly like a remote 404.
    """
    if isinstance(exc, NotUpdatable):
        return HandlerErrorCode.NOT_UPDATABLE
    if not isinstance(exc, ApiError):
        return HandlerErrorCode.INTERNAL_FAILURE
    status = exc.status_code
    if status == 404:
        return HandlerErrorCode.NOT_FOUND
    if status in (400, 422):
        return HandlerErrorCode.INVALID_REQUEST
    if status in (401, 403):
        return HandlerErrorCode.ACCESS_DENIED
    if status == 409:
        return HandlerErrorCode.ALREADY_EXISTS
    if status == 429:
        return HandlerErrorCode.THROTTLING
    if status == 0 or status >= 500:
        return HandlerErrorCode.SERVICE_INTERNAL_ERROR
    return HandlerErrorCode.GENERAL_SERVICE_EXCEPTION


class AbstractPagerDutyResource(abc.ABC, Generic[ModelT]):
    """Base class for one PagerDuty resource type."""

    def __init__(self, type_name: str, model_cls: Type[ModelT]) -> None:
        self.type_name = type_name
        self.model_cls = model_cls

    # ── Operations ───────────────────────────────────────────────

    @abc.abstractmethod
    async def get(self, model: ModelT) -> ModelT:
        ...

    @abc.abstractmethod
    async def list(self, model: ModelT) -> List[ModelT]:
        ...

    @abc.abstractmethod
    async def create(self, model: ModelT) -> None:
        ...

    @abc.abstractmethod
    async def update(self, model: ModelT) -> None:
        ...

    @abc.abstractmethod
    async def delete(self, model: ModelT) -> None:
        ...

    @abc.abstractmethod
    def new_model(self, partial: Any = None) -> ModelT:
        ...

    @abc.abstractmethod
    def set_model_from(self, model: ModelT, from_: Optional[ModelT] = None) -> ModelT:
        ...

    # ── Dispatch ─────────────────────────────────────────────────

    async def handle(self, action: Action, model: ModelT) -> ProgressEvent:
        """Run one lifecycle action and report its outcome."""
        action = Action(action)
        logger.info("%s %s", action.value, self.type_name)
        try:
            return await self._dispatch(action, model)
        except (ApiError, NotUpdatable) as e:
            code = classify_error(e)
            logger.warning(
                "%s %s failed: %s (%s)", action.value, self.type_name, e, code.value
            )
            return ProgressEvent.failed(code, str(e))
        except Exception as e:
            logger.exception("%s %s failed unexpectedly", action.value, self.type_name)
            return ProgressEvent.failed(classify_error(e), str(e))

    async def _dispatch(self, action: Action, model: ModelT) -> ProgressEvent:
        if action is Action.CREATE:
            await self.create(model)
            return ProgressEvent.success(self.set_model_from(model, await self.get(model)))
        if action is Action.READ:
            return ProgressEvent.success(await self.get(model))
        if action is Action.UPDATE:
            await self.update(model)
            return ProgressEvent.success(self.set_model_from(model, await self.get(model)))
        if action is Action.DELETE:
            # Fails with NotFound when the resource is already gone.
            await self.get(model)
            await self.delete(model)
            return ProgressEvent.success()
        return ProgressEvent.success(models=await self.list(model))

    def run(self, action: Action, model: ModelT) -> ProgressEvent:
        """Synchronous wrapper around ``handle``."""
        return asyncio.run(self.handle(action, model))
