"""Utilities: request IDs, retry delays, collection search."""

from __future__ import annotations

import uuid
from typing import Callable, Iterable, Optional, TypeVar

T = TypeVar("T")


def generate_request_id() -> str:
    """Generate a short UUID4 hex string for X-Request-ID."""
    return uuid.uuid4().hex[:12]


def parse_retry_after(value: Optional[str], cap: float) -> Optional[float]:
    """Seconds from a Retry-After header, capped. None if absent or not numeric."""
    if not value:
        return None
    try:
        seconds = float(value)
    except ValueError:
        return None
    if seconds < 0:
        return None
    return min(seconds, cap)


def find_in_collection(predicate: Callable[[T], bool], collection: Iterable[T]) -> Optional[T]:
    """Return the first item matching predicate, or None."""
    for item in collection:
        if predicate(item):
            return item
    return None
