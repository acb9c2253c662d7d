"""PagerDutyClient — async REST client with retries and offset pagination.

Usage::

    import asyncio
    from pagerduty_common import PagerDutyClient

    async def main():
        async with PagerDutyClient("u+token...") as c:
            teams = await c.paginate("GET", "/teams", lambda body: body["teams"])
            print(len(teams))

    asyncio.run(main())
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, TypeVar

import httpx

from pagerduty_common.auth import build_auth_headers
from pagerduty_common.config import ClientSettings, load_settings
from pagerduty_common.errors import ApiError, AuthError, PaginationError, ServerError, error_for_status
from pagerduty_common.utils import generate_request_id, parse_retry_after

logger = logging.getLogger(__name__)

T = TypeVar("T")

PAGERDUTY_ACCEPT = "application/vnd.pagerduty+json;version=2"

# Status codes that warrant a retry
RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}
# Status codes that should NOT be retried
NON_RETRYABLE_STATUS_CODES = {400, 401, 403, 404, 409, 422}


class PagerDutyClient:
    """Asynchronous client for the PagerDuty REST API.

    One instance per lifecycle operation; close it (or use ``async with``)
    when the operation finishes.
    """

    def __init__(
        self,
        access: Optional[str] = None,
        settings: Optional[ClientSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize async client.

        Args:
            access: PagerDuty access token; falls back to PAGERDUTY_ACCESS_TOKEN
            settings: base URL, timeout, retry and paging configuration
            transport: optional httpx transport (tests use httpx.MockTransport)
        """
        self._settings = settings or load_settings()
        self._access = access
        self._base_url = self._settings.base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._settings.timeout,
            transport=transport,
        )

    @property
    def settings(self) -> ClientSettings:
        return self._settings

    # ── Internal helpers ─────────────────────────────────────────

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers: Dict[str, str] = {
            "Accept": PAGERDUTY_ACCEPT,
            "Content-Type": "application/json",
        }
        auth = build_auth_headers(self._access, scheme=self._settings.auth_scheme)
        if not auth:
            raise AuthError(401, "No PagerDuty access token configured")
        headers.update(auth)
        if extra:
            headers.update(extra)
        if "x-request-id" not in {k.lower() for k in headers}:
            headers["X-Request-ID"] = generate_request_id()
        return headers

    def _should_retry(self, status_code: int) -> bool:
        """Determine if a request should be retried based on status code."""
        if status_code in NON_RETRYABLE_STATUS_CODES:
            return False
        return status_code in RETRYABLE_STATUS_CODES

    def _create_error_from_response(self, resp: httpx.Response, endpoint: str) -> ApiError:
        """Create appropriate error from response without raising."""
        request_id = resp.headers.get("x-request-id")
        try:
            body = resp.json()
        except Exception:
            body = resp.text

        if isinstance(body, dict):
            # PagerDuty error envelope: {"error": {"message": ..., "code": ..., "errors": [...]}}
            err = body.get("error")
            if isinstance(err, dict):
                message = err.get("message", str(body))
                details = err.get("errors")
                if details:
                    message = f"{message}: {'; '.join(str(d) for d in details)}"
            else:
                message = body.get("message") or body.get("detail") or str(body)
        else:
            message = str(body) or resp.reason_phrase

        return error_for_status(resp.status_code, f"{message} (endpoint: {endpoint})", body, request_id)

    def _raise_for_status(self, resp: httpx.Response, endpoint: str) -> None:
        """Raise appropriate exception based on status code."""
        if resp.status_code < 400:
            return
        raise self._create_error_from_response(resp, endpoint)

    def _retry_delay(self, resp: Optional[httpx.Response], delay: float) -> float:
        if resp is not None and resp.status_code == 429:
            retry_after = parse_retry_after(
                resp.headers.get("retry-after"), self._settings.max_retry_delay
            )
            if retry_after is not None:
                return retry_after
        return min(delay, self._settings.max_retry_delay)

    async def _request_with_retry(
        self,
        method: str,
        path: str,
        **kwargs
    ) -> httpx.Response:
        """Make HTTP request with retry logic.

        Retries on 429 and 5xx errors with exponential backoff.
        Does NOT retry on other 4xx client errors.
        """
        method = method.upper()
        endpoint = f"{method} {path}"
        headers = self._headers(kwargs.pop("headers", None))
        retries = self._settings.retries

        last_error: Optional[Exception] = None
        delay = self._settings.retry_delay

        for attempt in range(retries + 1):
            try:
                logger.debug("%s (attempt %d)", endpoint, attempt + 1)
                resp = await self._client.request(method, path, headers=headers, **kwargs)

                # Check if we should retry
                if resp.status_code >= 400 and attempt < retries:
                    if self._should_retry(resp.status_code):
                        last_error = self._create_error_from_response(resp, endpoint)
                        wait = self._retry_delay(resp, delay)
                        logger.warning(
                            "%s returned %d, retrying in %.2fs", endpoint, resp.status_code, wait
                        )
                        await asyncio.sleep(wait)
                        delay *= self._settings.retry_backoff
                        continue

                self._raise_for_status(resp, endpoint)
                return resp

            except (httpx.NetworkError, httpx.TimeoutException) as e:
                if attempt < retries:
                    last_error = e
                    wait = self._retry_delay(None, delay)
                    logger.warning("%s failed (%s), retrying in %.2fs", endpoint, e, wait)
                    await asyncio.sleep(wait)
                    delay *= self._settings.retry_backoff
                    continue
                raise ServerError(0, f"Network error after {retries} retries: {e} (endpoint: {endpoint})") from e

        # If we exhausted retries
        if last_error:
            raise last_error
        raise ServerError(0, f"Request failed after {retries} retries (endpoint: {endpoint})")

    # ── Public API ───────────────────────────────────────────────

    async def do_request(
        self,
        method: str,
        path: str,
        params: Optional[Mapping[str, Any]] = None,
        body: Any = None,
    ) -> httpx.Response:
        """Send one request; raises an ApiError subclass on a non-2xx response."""
        kwargs: Dict[str, Any] = {}
        if params:
            kwargs["params"] = dict(params)
        if body is not None:
            kwargs["json"] = body
        return await self._request_with_retry(method, path, **kwargs)

    async def fetch_page(
        self,
        method: str,
        path: str,
        transform: Callable[[Dict[str, Any]], Iterable[T]],
        offset: int = 0,
        params: Optional[Mapping[str, Any]] = None,
    ) -> Tuple[List[T], Optional[int]]:
        """Fetch one page at ``offset``.

        Returns the transformed items and the next offset, or None when the
        server reports no further pages.
        """
        query: Dict[str, Any] = dict(params or {})
        query.setdefault("limit", self._settings.page_limit)
        query["offset"] = offset
        resp = await self._request_with_retry(method, path, params=query)
        payload = resp.json()
        items = list(transform(payload))

        if not payload.get("more"):
            return items, None
        limit = payload.get("limit") or query["limit"]
        current = payload.get("offset")
        if current is None:
            current = offset
        return items, int(current) + int(limit)

    async def paginate(
        self,
        method: str,
        path: str,
        transform: Callable[[Dict[str, Any]], Iterable[T]],
        params: Optional[Mapping[str, Any]] = None,
    ) -> List[T]:
        """Follow offset pagination to the end and return every transformed item.

        Pages are requested one after another; the next request is only sent
        once the previous page reported ``more``.
        """
        results: List[T] = []
        cursor: Optional[int] = 0
        pages = 0
        while cursor is not None:
            if pages >= self._settings.max_pages:
                raise PaginationError(
                    f"{method.upper()} {path} still reported more results after {pages} pages"
                )
            items, cursor = await self.fetch_page(method, path, transform, cursor, params)
            results.extend(items)
            pages += 1
        logger.debug("%s %s: %d items over %d pages", method.upper(), path, len(results), pages)
        return results

    # ── Context Manager ─────────────────────────────────────────

    async def __aenter__(self) -> "PagerDutyClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()
