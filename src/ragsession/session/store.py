"""Session state store: transition events and a pure reducer over them.

Each flow (chat, search, embed) moves ``Idle -> Pending`` on its Begin
event and ``Pending -> Succeeded | Failed`` on completion. A Begin event
for a flow that is already pending raises :class:`BusyError` and leaves
the state untouched, which keeps completions of one flow in request order.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Union

from ragsession.api.schemas import ChatResponse, EmbeddingResponse, SearchResponse
from ragsession.errors import BusyError, StateTransitionError, TransportError
from ragsession.models import Conversation, Flow, Message, OperationStatus, Role, utcnow
from ragsession.session.reconciler import (
    reconcile_chat,
    reconcile_delete,
    reconcile_embed,
    reconcile_search,
)
from ragsession.session.state import SessionState


@dataclass(frozen=True)
class BeginChat:
    text: str
    timestamp: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class ChatSucceeded:
    response: ChatResponse
    timestamp: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class ChatFailed:
    error: TransportError


@dataclass(frozen=True)
class BeginSearch:
    query: str
    limit: int
    include_score: bool


@dataclass(frozen=True)
class SearchSucceeded:
    response: SearchResponse


@dataclass(frozen=True)
class SearchFailed:
    error: TransportError


@dataclass(frozen=True)
class BeginEmbed:
    payload: Any


@dataclass(frozen=True)
class EmbedSucceeded:
    response: EmbeddingResponse


@dataclass(frozen=True)
class EmbedFailed:
    error: TransportError


@dataclass(frozen=True)
class DeleteDocument:
    document_id: str


@dataclass(frozen=True)
class ConversationOpened:
    """Replace the history with ``conversation`` or start an empty one."""

    conversation: Conversation | None = None


SessionEvent = Union[
    BeginChat,
    ChatSucceeded,
    ChatFailed,
    BeginSearch,
    SearchSucceeded,
    SearchFailed,
    BeginEmbed,
    EmbedSucceeded,
    EmbedFailed,
    DeleteDocument,
    ConversationOpened,
]

_BEGIN = {BeginChat: Flow.CHAT, BeginSearch: Flow.SEARCH, BeginEmbed: Flow.EMBED}
_SUCCEEDED = {ChatSucceeded: Flow.CHAT, SearchSucceeded: Flow.SEARCH, EmbedSucceeded: Flow.EMBED}
_FAILED = {ChatFailed: Flow.CHAT, SearchFailed: Flow.SEARCH, EmbedFailed: Flow.EMBED}


def _require_pending(state: SessionState, flow: Flow, event: object) -> None:
    if not state.status(flow).is_pending:
        raise StateTransitionError(f"{type(event).__name__} received while {flow.value} is {state.status(flow).phase.value}")


def reduce(state: SessionState, event: SessionEvent) -> SessionState:
    """Return the state that follows ``event``; ``state`` is never modified."""

    kind = type(event)

    if kind in _BEGIN:
        flow = _BEGIN[kind]
        if state.status(flow).is_pending:
            raise BusyError(flow)
        state = state.with_status(flow, OperationStatus.pending())
        if isinstance(event, BeginChat):
            message = Message(role=Role.USER, content=event.text, timestamp=event.timestamp)
            state = replace(state, messages=state.messages + (message,))
        return state

    if kind in _SUCCEEDED:
        flow = _SUCCEEDED[kind]
        _require_pending(state, flow, event)
        if isinstance(event, ChatSucceeded):
            state = reconcile_chat(state, event.response, event.timestamp)
        elif isinstance(event, SearchSucceeded):
            state = replace(state, search_results=reconcile_search(event.response))
        elif isinstance(event, EmbedSucceeded):
            state = replace(state, last_embed=reconcile_embed(event.response))
        return state.with_status(flow, OperationStatus.succeeded())

    if kind in _FAILED:
        flow = _FAILED[kind]
        _require_pending(state, flow, event)
        return state.with_status(flow, OperationStatus.failed(event.error))

    if isinstance(event, DeleteDocument):
        return replace(state, search_results=reconcile_delete(event.document_id, state.search_results))

    if isinstance(event, ConversationOpened):
        if state.status(Flow.CHAT).is_pending:
            raise BusyError(Flow.CHAT)
        conversation = event.conversation
        return replace(
            state.with_status(Flow.CHAT, OperationStatus.idle()),
            conversation_id=conversation.id if conversation else None,
            messages=conversation.messages if conversation else (),
        )

    raise TypeError(f"Unsupported session event: {event!r}")


class SessionStore:
    """Holds the current :class:`SessionState`; mutated only via ``dispatch``."""

    def __init__(self, state: SessionState | None = None) -> None:
        self._state = state or SessionState()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def conversation_id(self) -> str | None:
        return self._state.conversation_id

    @property
    def messages(self):
        return self._state.messages

    @property
    def search_results(self):
        return self._state.search_results

    @property
    def last_embed(self):
        return self._state.last_embed

    def status(self, flow: Flow) -> OperationStatus:
        return self._state.status(flow)

    def dispatch(self, event: SessionEvent) -> SessionState:
        self._state = reduce(self._state, event)
        return self._state


__all__ = [
    "BeginChat",
    "BeginEmbed",
    "BeginSearch",
    "ChatFailed",
    "ChatSucceeded",
    "ConversationOpened",
    "DeleteDocument",
    "EmbedFailed",
    "EmbedSucceeded",
    "SearchFailed",
    "SearchSucceeded",
    "SessionEvent",
    "SessionStore",
    "reduce",
]
