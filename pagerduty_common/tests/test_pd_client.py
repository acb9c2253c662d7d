"""Tests for PagerDutyClient requests, headers and retry behaviour.

No network: every client is wired to an httpx.MockTransport.
"""

from __future__ import annotations

import asyncio
import json
from typing import Callable, List
from unittest.mock import MagicMock

import httpx
import pytest

from pagerduty_common import PagerDutyClient
from pagerduty_common.client import NON_RETRYABLE_STATUS_CODES, RETRYABLE_STATUS_CODES
from pagerduty_common.config import ClientSettings
from pagerduty_common.errors import (
    ApiError,
    AuthError,
    InvalidRequestError,
    NotFoundError,
    RateLimitError,
    ServerError,
)


def run_async(coro):
    """Helper to run async coroutine in sync test."""
    return asyncio.run(coro)


class Recorder:
    """Replays canned responses and records the requests it saw."""

    def __init__(self, *responses: Callable[[httpx.Request], httpx.Response]) -> None:
        self._responses = list(responses)
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        responder = self._responses.pop(0) if len(self._responses) > 1 else self._responses[0]
        return responder(request)


def _status(code: int, **kwargs) -> Callable[[httpx.Request], httpx.Response]:
    return lambda request: httpx.Response(code, **kwargs)


def _fast_settings(**overrides) -> ClientSettings:
    values = dict(retries=2, retry_delay=0.0, base_url="https://api.pagerduty.test")
    values.update(overrides)
    return ClientSettings(**values)


async def _call(recorder: Recorder, method: str, path: str, access: str = "abc", **kwargs):
    async with PagerDutyClient(
        access, settings=kwargs.pop("settings", _fast_settings()),
        transport=httpx.MockTransport(recorder),
    ) as client:
        return await client.do_request(method, path, **kwargs)


class TestHeaders:

    def test_token_scheme_authorization(self) -> None:
        rec = Recorder(_status(200, json={}))
        run_async(_call(rec, "GET", "/teams"))
        headers = rec.requests[0].headers
        assert headers["Authorization"] == "Token token=abc"
        assert headers["Accept"] == "application/vnd.pagerduty+json;version=2"
        assert "X-Request-ID" in headers

    def test_bearer_scheme_authorization(self) -> None:
        rec = Recorder(_status(200, json={}))
        run_async(_call(rec, "GET", "/teams", settings=_fast_settings(auth_scheme="bearer")))
        assert rec.requests[0].headers["Authorization"] == "Bearer abc"

    def test_env_token_fallback(self, monkeypatch) -> None:
        monkeypatch.setenv("PAGERDUTY_ACCESS_TOKEN", "from-env")
        rec = Recorder(_status(200, json={}))
        run_async(_call(rec, "GET", "/teams", access=None))
        assert rec.requests[0].headers["Authorization"] == "Token token=from-env"

    def test_missing_token_fails_before_request(self, monkeypatch) -> None:
        monkeypatch.delenv("PAGERDUTY_ACCESS_TOKEN", raising=False)
        rec = Recorder(_status(200, json={}))
        with pytest.raises(AuthError) as exc_info:
            run_async(_call(rec, "GET", "/teams", access=None))
        assert exc_info.value.status_code == 401
        assert rec.requests == []


class TestRequests:

    def test_put_sends_json_body(self) -> None:
        rec = Recorder(_status(200, json={"ignored": True}))
        resp = run_async(_call(rec, "put", "/teams/T1/users/U1", body={"role": "manager"}))
        assert resp.status_code == 200
        req = rec.requests[0]
        assert req.method == "PUT"
        assert req.url.path == "/teams/T1/users/U1"
        assert json.loads(req.content) == {"role": "manager"}

    def test_query_params_forwarded(self) -> None:
        rec = Recorder(_status(200, json={}))
        run_async(_call(rec, "GET", "/teams", params={"query": "ops"}))
        assert rec.requests[0].url.params["query"] == "ops"

    def test_error_envelope_message(self) -> None:
        body = {"error": {"message": "Invalid Input Provided", "code": 2001, "errors": ["Role is invalid"]}}
        rec = Recorder(_status(400, json=body))
        with pytest.raises(InvalidRequestError) as exc_info:
            run_async(_call(rec, "PUT", "/teams/T1/users/U1", body={"role": "x"}))
        err = exc_info.value
        assert err.status_code == 400
        assert "Invalid Input Provided" in err.message
        assert "Role is invalid" in err.message
        assert "PUT /teams/T1/users/U1" in err.message
        assert err.detail == body

    def test_request_id_from_response(self) -> None:
        rec = Recorder(_status(404, json={"error": {"message": "Not Found"}}, headers={"x-request-id": "req-9"}))
        with pytest.raises(NotFoundError) as exc_info:
            run_async(_call(rec, "DELETE", "/teams/T1/users/U9"))
        assert exc_info.value.status_code == 404
        assert exc_info.value.request_id == "req-9"

    def test_non_json_error_body(self) -> None:
        rec = Recorder(_status(418, text="teapot"))
        with pytest.raises(ApiError) as exc_info:
            run_async(_call(rec, "GET", "/teams"))
        assert exc_info.value.status_code == 418
        assert "teapot" in exc_info.value.message


class TestRetries:

    def test_retry_status_codes(self) -> None:
        for code in (429, 500, 502, 503, 504):
            assert code in RETRYABLE_STATUS_CODES
        for code in (400, 401, 403, 404, 422):
            assert code in NON_RETRYABLE_STATUS_CODES

    def test_retries_503_then_succeeds(self) -> None:
        rec = Recorder(_status(503), _status(503), _status(200, json={"ok": True}))
        resp = run_async(_call(rec, "GET", "/teams"))
        assert resp.json() == {"ok": True}
        assert len(rec.requests) == 3

    def test_gives_up_after_retries(self) -> None:
        rec = Recorder(_status(502))
        with pytest.raises(ServerError) as exc_info:
            run_async(_call(rec, "GET", "/teams"))
        assert exc_info.value.status_code == 502
        assert len(rec.requests) == 3

    def test_429_with_retry_after(self) -> None:
        rec = Recorder(_status(429, headers={"Retry-After": "0"}), _status(200, json={}))
        run_async(_call(rec, "GET", "/teams"))
        assert len(rec.requests) == 2

    def test_429_exhausted_is_rate_limit_error(self) -> None:
        rec = Recorder(_status(429, headers={"Retry-After": "0"}))
        with pytest.raises(RateLimitError):
            run_async(_call(rec, "GET", "/teams", settings=_fast_settings(retries=1)))
        assert len(rec.requests) == 2

    def test_404_not_retried(self) -> None:
        rec = Recorder(_status(404, json={"error": {"message": "Not Found"}}))
        with pytest.raises(NotFoundError):
            run_async(_call(rec, "GET", "/teams/T404"))
        assert len(rec.requests) == 1

    def test_network_error_becomes_server_error(self) -> None:
        calls = []

        def boom(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ServerError) as exc_info:
            run_async(_call(Recorder(boom), "GET", "/teams"))
        assert exc_info.value.status_code == 0
        assert len(calls) == 3

    def test_zero_retries_single_attempt(self) -> None:
        rec = Recorder(_status(503))
        with pytest.raises(ServerError):
            run_async(_call(rec, "GET", "/teams", settings=_fast_settings(retries=0)))
        assert len(rec.requests) == 1


class TestRaiseForStatus:
    """Error mapping on a bare response object."""

    def _client(self) -> PagerDutyClient:
        return PagerDutyClient("abc", settings=_fast_settings())

    def test_2xx_passes(self) -> None:
        client = self._client()
        mock_resp = MagicMock()
        mock_resp.status_code = 204
        client._raise_for_status(mock_resp, "DELETE /teams/T1/users/U1")
        run_async(client.close())

    def test_404_maps_to_not_found(self) -> None:
        client = self._client()
        mock_resp = MagicMock()
        mock_resp.status_code = 404
        mock_resp.headers = {"x-request-id": "req-123"}
        mock_resp.json.return_value = {"error": {"message": "Not Found", "code": 2100}}

        with pytest.raises(NotFoundError) as exc_info:
            client._raise_for_status(mock_resp, "GET /teams/T1/members")

        assert exc_info.value.status_code == 404
        assert exc_info.value.request_id == "req-123"
        assert "GET /teams/T1/members" in str(exc_info.value)
        run_async(client.close())

    def test_should_retry(self) -> None:
        client = self._client()
        assert client._should_retry(503) is True
        assert client._should_retry(429) is True
        assert client._should_retry(404) is False
        assert client._should_retry(409) is False
        run_async(client.close())


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
