"""Error taxonomy shared by the transport and session layers."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ragsession.models import Flow


class RagSessionError(RuntimeError):
    """Base class for errors raised by ragsession."""


class ValidationError(RagSessionError):
    """Raised when user input is malformed; no request is issued."""


class BusyError(RagSessionError):
    """Raised when an operation of the same flow is already pending."""

    def __init__(self, flow: "Flow") -> None:
        super().__init__(f"A {flow.value} request is already in progress")
        self.flow = flow


class StateTransitionError(RagSessionError):
    """Raised when a completion event arrives for a flow that is not pending."""


class TransportErrorKind(str, Enum):
    TIMEOUT = "timeout"
    UNREACHABLE = "unreachable"
    BACKEND_ERROR = "backend_error"
    INVALID_RESPONSE = "invalid_response"
    INTERRUPTED = "interrupted"
    CLIENT_ERROR = "client_error"


class TransportError(RagSessionError):
    """Raised when communication with the backend fails."""

    def __init__(
        self,
        kind: TransportErrorKind,
        message: str,
        *,
        status: int | None = None,
        payload: Any = None,
        correlation_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status = status
        self.payload = payload
        self.correlation_id = correlation_id

    def describe(self) -> str:
        """Human-readable summary suitable for display."""

        if self.kind is TransportErrorKind.TIMEOUT:
            text = "The backend did not respond in time"
        elif self.kind is TransportErrorKind.UNREACHABLE:
            text = "Failed to connect to the backend"
        elif self.kind is TransportErrorKind.INVALID_RESPONSE:
            text = "The backend returned an unexpected response"
        elif self.kind is TransportErrorKind.INTERRUPTED:
            text = "The request was interrupted before a reply arrived"
        elif self.kind is TransportErrorKind.CLIENT_ERROR:
            text = "The request could not be sent"
        else:
            text = f"Backend error ({self.status})" if self.status else "Backend error"
        detail = _payload_message(self.payload) or self.message
        if detail and detail != text:
            text = f"{text}: {detail}"
        if self.correlation_id:
            text = f"{text} [cid={self.correlation_id}]"
        return text


def _payload_message(payload: Any) -> str | None:
    if isinstance(payload, dict):
        for key in ("message", "error", "detail"):
            value = payload.get(key)
            if isinstance(value, str) and value:
                return value
    return None


__all__ = [
    "BusyError",
    "RagSessionError",
    "StateTransitionError",
    "TransportError",
    "TransportErrorKind",
    "ValidationError",
]
