"""Domain models held in session state."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping

from ragsession.errors import TransportError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class Flow(str, Enum):
    """Independent operation families, each with its own status."""

    CHAT = "chat"
    SEARCH = "search"
    EMBED = "embed"


class Phase(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class OperationStatus:
    """Transient status of one flow."""

    phase: Phase = Phase.IDLE
    error: TransportError | None = None

    @property
    def is_pending(self) -> bool:
        return self.phase is Phase.PENDING

    @property
    def reason(self) -> str | None:
        return self.error.describe() if self.error is not None else None

    @classmethod
    def idle(cls) -> "OperationStatus":
        return cls(Phase.IDLE)

    @classmethod
    def pending(cls) -> "OperationStatus":
        return cls(Phase.PENDING)

    @classmethod
    def succeeded(cls) -> "OperationStatus":
        return cls(Phase.SUCCEEDED)

    @classmethod
    def failed(cls, error: TransportError) -> "OperationStatus":
        return cls(Phase.FAILED, error)


@dataclass(frozen=True)
class Source:
    """Retrieved document snippet attached to an assistant turn."""

    document_id: str
    content: str
    original_data: Any
    similarity_score: float
    document_type: str | None = None
    processed_at: str | None = None


@dataclass(frozen=True)
class Usage:
    tokens_used: int = 0
    processing_time_ms: int = 0
    similarity_scores: tuple[float, ...] = ()
    llm_provider: str | None = None
    llm_model: str | None = None


@dataclass(frozen=True)
class Message:
    role: Role
    content: str
    timestamp: datetime = field(default_factory=utcnow)
    sources: tuple[Source, ...] = ()
    usage: Usage | None = None


@dataclass(frozen=True)
class Conversation:
    id: str
    messages: tuple[Message, ...] = ()
    created_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True)
class SearchResult:
    """One ranked hit from a semantic search."""

    document_id: str
    original_data: Any
    text_representation: str
    similarity_score: float | None = None
    metadata: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class EmbedRecord:
    """The most recently processed document."""

    document_id: str
    content_hash: str
    text_representation: str
    embedding_dimension: int
    metadata: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class HealthStatus:
    status: str
    uptime: float | None = None
    version: str | None = None
    timestamp: str | None = None
