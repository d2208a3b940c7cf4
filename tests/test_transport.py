from __future__ import annotations

import httpx
import pytest

from ragsession.api.transport import CORRELATION_HEADER
from ragsession.errors import TransportError, TransportErrorKind

from fakes import FakeBackend


async def test_call_sends_json_body_and_returns_decoded_json(backend: FakeBackend, transport):
    backend.on("POST", "/api/v1/embed", {"documentId": "doc-1"})

    data = await transport.call("POST", "/api/v1/embed", body={"name": "Acme"})

    assert data == {"documentId": "doc-1"}
    request = backend.requests[0]
    assert request.headers["content-type"] == "application/json"
    assert request.headers[CORRELATION_HEADER]
    assert FakeBackend.body(request) == {"name": "Acme"}


async def test_call_encodes_query_parameters(backend: FakeBackend, transport):
    backend.on("GET", "/api/v1/search", {"results": []})

    await transport.call("GET", "/api/v1/search", query={"q": "balloon arches", "limit": "10", "includeScore": "true"})

    params = backend.requests[0].url.params
    assert params["q"] == "balloon arches"
    assert params["limit"] == "10"
    assert params["includeScore"] == "true"


async def test_timeout_maps_to_timeout_kind(backend: FakeBackend, transport):
    backend.on("GET", "/health", httpx.ReadTimeout("timed out"))

    with pytest.raises(TransportError) as exc_info:
        await transport.call("GET", "/health")

    assert exc_info.value.kind is TransportErrorKind.TIMEOUT
    assert exc_info.value.status is None


async def test_connection_failure_maps_to_unreachable(backend: FakeBackend, transport):
    backend.on("GET", "/health", httpx.ConnectError("connection refused"))

    with pytest.raises(TransportError) as exc_info:
        await transport.call("GET", "/health")

    assert exc_info.value.kind is TransportErrorKind.UNREACHABLE
    assert "connection refused" in exc_info.value.describe()


async def test_non_2xx_carries_status_and_structured_payload(backend: FakeBackend, transport):
    error_body = {"error": "Bad Request", "message": "message is required", "statusCode": 400}
    backend.on("POST", "/api/v1/chat", httpx.Response(400, json=error_body, headers={CORRELATION_HEADER: "srv-1"}))

    with pytest.raises(TransportError) as exc_info:
        await transport.call("POST", "/api/v1/chat", body={})

    error = exc_info.value
    assert error.kind is TransportErrorKind.BACKEND_ERROR
    assert error.status == 400
    assert error.payload == error_body
    assert error.correlation_id == "srv-1"
    assert error.describe() == "Backend error (400): message is required [cid=srv-1]"


async def test_non_json_error_body_is_kept_as_text(backend: FakeBackend, transport):
    backend.on("GET", "/health", httpx.Response(502, text="Bad Gateway"))

    with pytest.raises(TransportError) as exc_info:
        await transport.call("GET", "/health")

    assert exc_info.value.payload == "Bad Gateway"


async def test_invalid_json_success_body(backend: FakeBackend, transport):
    backend.on("GET", "/health", httpx.Response(200, text="<html>oops</html>"))

    with pytest.raises(TransportError) as exc_info:
        await transport.call("GET", "/health")

    assert exc_info.value.kind is TransportErrorKind.INVALID_RESPONSE


async def test_no_retry_on_failure(backend: FakeBackend, transport):
    backend.on("POST", "/api/v1/chat", httpx.Response(503, json={"error": "unavailable"}))

    with pytest.raises(TransportError):
        await transport.call("POST", "/api/v1/chat", body={"message": "hi"})

    assert len(backend.requests) == 1
