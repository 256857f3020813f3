"""Unit tests for the ChatSim client HTTP utilities.

This module tests the HTTP handling layer defined in client/_http.py:

1. Helper functions: error body parsing, status-code mapping, backoff.
2. HTTPClient: requests, error mapping, retry, transport failures.
3. AsyncHTTPClient: the same behaviour over httpx.AsyncClient.

Note: These tests use httpx's mock transport to avoid real network calls.
"""

import json

import httpx
import pytest

from client import _http
from client._http import (
    DEFAULT_RETRY_BACKOFF_BASE,
    DEFAULT_RETRY_BACKOFF_MAX,
    RETRYABLE_STATUS_CODES,
    AsyncHTTPClient,
    HTTPClient,
    _calculate_backoff,
    _parse_error_response,
    _raise_for_status,
)
from client.exceptions import (
    APIError,
    ConflictError,
    ConnectionError,
    NotFoundError,
    PermissionError,
    ServerError,
    TimeoutError,
    ValidationError,
)


@pytest.fixture(autouse=True)
def no_backoff(monkeypatch):
    """Retries should not actually wait."""
    monkeypatch.setattr(_http, "_calculate_backoff", lambda attempt: 0)


# =============================================================================
# Helper Function Tests
# =============================================================================


class TestParseErrorResponse:
    def test_server_error_body(self) -> None:
        response = httpx.Response(
            status_code=403,
            json={
                "error": "Permission Denied",
                "detail": "Access to photo_library was denied",
                "type": "PermissionDeniedError",
                "kind": "permission_denied",
                "details": {"capability": "photo_library"},
            },
        )

        message, error_type, details = _parse_error_response(response)

        assert message == "Access to photo_library was denied"
        assert error_type == "PermissionDeniedError"
        assert details == {"capability": "photo_library"}

    def test_plain_detail_string(self) -> None:
        response = httpx.Response(status_code=409, json={"detail": "Scheduler is already running"})

        message, error_type, details = _parse_error_response(response)

        assert message == "Scheduler is already running"
        assert error_type is None
        assert details is None

    def test_request_validation_list(self) -> None:
        response = httpx.Response(
            status_code=422,
            json={"detail": [{"loc": ["body", "seconds"], "msg": "Input should be greater than 0"}]},
        )

        message, error_type, details = _parse_error_response(response)

        assert message == "seconds: Input should be greater than 0"
        assert error_type == "validation_error"
        assert len(details["errors"]) == 1

    def test_plain_text(self) -> None:
        response = httpx.Response(status_code=502, text="Bad Gateway")

        assert _parse_error_response(response) == ("Bad Gateway", None, None)

    def test_empty_body(self) -> None:
        response = httpx.Response(status_code=500, text="")

        message, _, _ = _parse_error_response(response)

        assert message == "HTTP 500 error"


class TestRaiseForStatus:
    def test_success_does_nothing(self) -> None:
        _raise_for_status(httpx.Response(status_code=200, json={}))

    @pytest.mark.parametrize(
        "status_code, exception",
        [
            (400, ValidationError),
            (422, ValidationError),
            (403, PermissionError),
            (404, NotFoundError),
            (409, ConflictError),
            (500, ServerError),
            (503, ServerError),
            (418, APIError),
        ],
    )
    def test_status_mapping(self, status_code, exception) -> None:
        response = httpx.Response(status_code=status_code, json={"detail": "nope"})

        with pytest.raises(exception) as exc_info:
            _raise_for_status(response)

        assert exc_info.value.status_code == status_code

    def test_permission_error_carries_capability(self) -> None:
        response = httpx.Response(
            status_code=403,
            json={"detail": "denied", "kind": "permission_denied", "details": {"capability": "camera"}},
        )

        with pytest.raises(PermissionError) as exc_info:
            _raise_for_status(response)

        assert exc_info.value.capability == "camera"
        assert exc_info.value.kind == "permission_denied"

    def test_not_found_carries_resource(self) -> None:
        response = httpx.Response(
            status_code=404,
            json={"detail": "Message 'm-1' not found", "details": {"entity": "message", "id": "m-1"}},
        )

        with pytest.raises(NotFoundError) as exc_info:
            _raise_for_status(response)

        assert exc_info.value.resource_type == "message"
        assert exc_info.value.resource_id == "m-1"


class TestBackoff:
    def test_exponential(self) -> None:
        assert _calculate_backoff(0) == DEFAULT_RETRY_BACKOFF_BASE
        assert _calculate_backoff(1) == DEFAULT_RETRY_BACKOFF_BASE * 2
        assert _calculate_backoff(2) == DEFAULT_RETRY_BACKOFF_BASE * 4

    def test_capped(self) -> None:
        assert _calculate_backoff(50) == DEFAULT_RETRY_BACKOFF_MAX

    def test_retryable_codes(self) -> None:
        assert RETRYABLE_STATUS_CODES == {502, 503, 504}


# =============================================================================
# HTTPClient Tests
# =============================================================================


class TestHTTPClient:
    def test_get_returns_json(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/chat/state"
            return httpx.Response(200, json={"ok": True})

        with HTTPClient("http://test/", transport=httpx.MockTransport(handler)) as client:
            assert client.base_url == "http://test"
            assert client.get("/chat/state") == {"ok": True}

    def test_post_sends_json(self) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["body"] = request.read()
            return httpx.Response(200, json={})

        with HTTPClient("http://test", transport=httpx.MockTransport(handler)) as client:
            client.post("/chat/send", json={"content": "hi"})

        assert seen["method"] == "POST"
        assert json.loads(seen["body"]) == {"content": "hi"}

    def test_none_params_dropped(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=dict(request.url.params))

        with HTTPClient("http://test", transport=httpx.MockTransport(handler)) as client:
            result = client.get("/scheduler/callbacks", params={"status": "pending", "owner": None})

        assert result == {"status": "pending"}

    def test_empty_body_returns_none(self) -> None:
        handler = lambda request: httpx.Response(204)

        with HTTPClient("http://test", transport=httpx.MockTransport(handler)) as client:
            assert client.post("/anything") is None

    def test_error_mapped(self) -> None:
        handler = lambda request: httpx.Response(409, json={"detail": "Scheduler is already running"})

        with HTTPClient("http://test", transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(ConflictError, match="already running"):
                client.post("/scheduler/start")

    def test_no_retry_by_default(self) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(503, json={"detail": "unavailable"})

        with HTTPClient("http://test", transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(ServerError):
                client.get("/health")

        assert len(calls) == 1

    def test_retry_until_success(self) -> None:
        responses = iter([httpx.Response(502), httpx.Response(503), httpx.Response(200, json={"status": "healthy"})])

        with HTTPClient(
            "http://test",
            retry_enabled=True,
            max_retries=3,
            transport=httpx.MockTransport(lambda request: next(responses)),
        ) as client:
            assert client.get("/health") == {"status": "healthy"}

    def test_retry_gives_up(self) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(504, json={"detail": "timed out"})

        with HTTPClient(
            "http://test",
            retry_enabled=True,
            max_retries=2,
            transport=httpx.MockTransport(handler),
        ) as client:
            with pytest.raises(ServerError):
                client.get("/health")

        assert len(calls) == 3

    def test_client_errors_not_retried(self) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(404, json={"detail": "missing"})

        with HTTPClient(
            "http://test", retry_enabled=True, transport=httpx.MockTransport(handler)
        ) as client:
            with pytest.raises(NotFoundError):
                client.get("/chat/messages/x")

        assert len(calls) == 1

    def test_connect_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with HTTPClient("http://test", transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(ConnectionError) as exc_info:
                client.get("/health")

        assert exc_info.value.url == "http://test/health"

    def test_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        with HTTPClient("http://test", timeout=5.0, transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(TimeoutError) as exc_info:
                client.get("/health")

        assert exc_info.value.timeout == 5.0

    def test_connect_error_retried(self) -> None:
        attempts = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(request)
            if len(attempts) < 2:
                raise httpx.ConnectError("refused", request=request)
            return httpx.Response(200, json={"status": "healthy"})

        with HTTPClient(
            "http://test", retry_enabled=True, transport=httpx.MockTransport(handler)
        ) as client:
            assert client.get("/health") == {"status": "healthy"}


# =============================================================================
# AsyncHTTPClient Tests
# =============================================================================


class TestAsyncHTTPClient:
    async def test_get_returns_json(self) -> None:
        handler = lambda request: httpx.Response(200, json={"ok": True})

        async with AsyncHTTPClient("http://test", transport=httpx.MockTransport(handler)) as client:
            assert await client.get("/chat/state") == {"ok": True}

    async def test_error_mapped(self) -> None:
        handler = lambda request: httpx.Response(
            403, json={"detail": "denied", "details": {"capability": "photo_library"}}
        )

        async with AsyncHTTPClient("http://test", transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(PermissionError) as exc_info:
                await client.post("/chat/image", json={"attachment_ref": "p"})

        assert exc_info.value.capability == "photo_library"

    async def test_retry(self) -> None:
        responses = iter([httpx.Response(503), httpx.Response(200, json={"ok": True})])

        async with AsyncHTTPClient(
            "http://test",
            retry_enabled=True,
            transport=httpx.MockTransport(lambda request: next(responses)),
        ) as client:
            assert await client.get("/health") == {"ok": True}

    async def test_connect_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        async with AsyncHTTPClient("http://test", transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(ConnectionError):
                await client.get("/health")
