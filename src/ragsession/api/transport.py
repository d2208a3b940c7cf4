"""HTTPX-based transport for the RAG backend."""

from __future__ import annotations

import json
from typing import Any, Mapping
from uuid import uuid4

import httpx

from ragsession.errors import TransportError, TransportErrorKind
from ragsession.metrics.observability import (
    ClientMetrics,
    TimedSection,
    bind_correlation_id,
    clear_correlation_id,
    get_logger,
)

DEFAULT_TIMEOUT_SECONDS = 30.0
CORRELATION_HEADER = "X-Correlation-ID"


class TransportClient:
    """Single entry point for every outbound backend call.

    All calls share one base URL, a JSON content type and the same timeout.
    No retries are performed; callers decide whether to re-attempt.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        default_headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if headers:
            default_headers.update(headers)
        self.base_url = base_url
        self.timeout = timeout
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers=default_headers,
            transport=transport,
        )
        self._logger = get_logger("transport")

    async def call(
        self,
        method: str,
        path: str,
        body: Any = None,
        query: Mapping[str, Any] | None = None,
        *,
        operation: str | None = None,
    ) -> Any:
        """Issue one request and return the decoded JSON body.

        Raises:
            TransportError: on timeout, network failure, non-2xx status or a
                2xx body that is not JSON.
        """

        method = method.upper()
        correlation_id = uuid4().hex
        bind_correlation_id(correlation_id)
        operation = operation or method.lower()
        try:
            self._logger.debug("transport.request", method=method, path=path)
            content = json.dumps(body, allow_nan=False).encode("utf-8") if body is not None else None
            try:
                with TimedSection(lambda d: ClientMetrics.observe_request(operation, d)):
                    response = await self._client.request(
                        method,
                        path,
                        content=content,
                        params=dict(query) if query else None,
                        headers={CORRELATION_HEADER: correlation_id},
                    )
            except httpx.TimeoutException as exc:
                raise self._fail(
                    operation,
                    TransportError(
                        TransportErrorKind.TIMEOUT,
                        f"Request timed out after {self.timeout:g}s",
                        correlation_id=correlation_id,
                    ),
                ) from exc
            except httpx.TransportError as exc:
                raise self._fail(
                    operation,
                    TransportError(
                        TransportErrorKind.UNREACHABLE,
                        str(exc) or exc.__class__.__name__,
                        correlation_id=correlation_id,
                    ),
                ) from exc

            cid = response.headers.get(CORRELATION_HEADER, correlation_id)
            if not response.is_success:
                raise self._fail(
                    operation,
                    TransportError(
                        TransportErrorKind.BACKEND_ERROR,
                        f"{method} {path} failed with status {response.status_code}",
                        status=response.status_code,
                        payload=_decode_error_body(response),
                        correlation_id=cid,
                    ),
                )
            if not response.content:
                return None
            try:
                data = response.json()
            except ValueError as exc:
                raise self._fail(
                    operation,
                    TransportError(
                        TransportErrorKind.INVALID_RESPONSE,
                        "Response body is not valid JSON",
                        status=response.status_code,
                        payload=response.text,
                        correlation_id=cid,
                    ),
                ) from exc
            self._logger.debug("transport.response", method=method, path=path, status=response.status_code)
            return data
        finally:
            clear_correlation_id()

    def _fail(self, operation: str, error: TransportError) -> TransportError:
        ClientMetrics.observe_failure(operation, error.kind.value)
        self._logger.warning(
            "transport.failed",
            operation=operation,
            kind=error.kind.value,
            status=error.status,
            detail=error.message,
        )
        return error

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "TransportClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


def _decode_error_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


__all__ = ["CORRELATION_HEADER", "DEFAULT_TIMEOUT_SECONDS", "TransportClient"]
