"""Async intents that drive the session store through backend calls."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable

from ragsession.api.client import BackendClient
from ragsession.api.schemas import SampleLoadResponse
from ragsession.config import Settings, get_settings
from ragsession.errors import BusyError, TransportError, TransportErrorKind
from ragsession.metrics.observability import ClientMetrics, get_logger
from ragsession.models import Conversation, Flow, HealthStatus, OperationStatus, Phase
from ragsession.samples import sample_document
from ragsession.session.builders import (
    build_chat_request,
    build_embed_request,
    build_search_request,
)
from ragsession.session.reconciler import reconcile_conversation
from ragsession.session.store import (
    BeginChat,
    BeginEmbed,
    BeginSearch,
    ChatFailed,
    ChatSucceeded,
    ConversationOpened,
    DeleteDocument,
    EmbedFailed,
    EmbedSucceeded,
    SearchFailed,
    SearchSucceeded,
    SessionEvent,
    SessionStore,
)

_FAILURE_EVENTS: dict[Flow, Callable[[TransportError], SessionEvent]] = {
    Flow.CHAT: ChatFailed,
    Flow.SEARCH: SearchFailed,
    Flow.EMBED: EmbedFailed,
}


class SessionOrchestrator:
    """Entry point for user intents (send, search, embed, delete).

    Input is validated before anything else, then the flow is marked pending
    in the store (raising ``BusyError`` if it already is), then exactly one
    backend call is awaited. Transport failures become the flow's ``Failed``
    status and are returned, not raised.
    """

    def __init__(
        self,
        client: BackendClient,
        store: SessionStore | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._client = client
        self._store = store or SessionStore()
        self._settings = settings or get_settings()
        self._logger = get_logger("session")

    @classmethod
    def from_settings(cls, settings: Settings | None = None, **transport_kwargs: Any) -> "SessionOrchestrator":
        settings = settings or get_settings()
        return cls(BackendClient.from_settings(settings, **transport_kwargs), settings=settings)

    @property
    def store(self) -> SessionStore:
        return self._store

    @property
    def client(self) -> BackendClient:
        return self._client

    # Flows

    async def send_message(self, text: str) -> OperationStatus:
        request = build_chat_request(
            text,
            conversation_id=self._store.conversation_id,
            top_k=self._settings.chat_top_k,
            similarity_threshold=self._settings.chat_similarity_threshold,
            temperature=self._settings.chat_temperature,
            max_tokens=self._settings.chat_max_tokens,
        )
        self._begin(BeginChat(text), Flow.CHAT)
        self._logger.info("chat.begin", conversation_id=request.conversation_id, length=len(text))
        status = await self._complete(Flow.CHAT, lambda: self._client.chat(request), ChatSucceeded)
        if status.phase is Phase.SUCCEEDED:
            last = self._store.messages[-1]
            ClientMetrics.observe_sources(source.similarity_score for source in last.sources)
            self._logger.info(
                "chat.complete",
                conversation_id=self._store.conversation_id,
                source_count=len(last.sources),
                tokens_used=last.usage.tokens_used if last.usage else None,
            )
        return status

    async def search(self, query: str, limit: int | None = None, include_score: bool | None = None) -> OperationStatus:
        limit = self._settings.search_limit if limit is None else limit
        include_score = self._settings.search_include_score if include_score is None else include_score
        request = build_search_request(
            query,
            limit,
            include_score,
            allowed_limits=self._settings.search_limits_tuple,
        )
        self._begin(BeginSearch(query, limit, include_score), Flow.SEARCH)
        self._logger.info("search.begin", query=query, limit=limit, include_score=include_score)
        status = await self._complete(Flow.SEARCH, lambda: self._client.search(request), SearchSucceeded)
        if status.phase is Phase.SUCCEEDED:
            self._logger.info("search.complete", query=query, result_count=len(self._store.search_results))
        return status

    async def submit_document(self, raw: Any) -> OperationStatus:
        request = build_embed_request(raw)
        return await self._run_embed(request.document, lambda: self._client.embed(request.document))

    async def submit_example(self) -> OperationStatus:
        return await self._run_embed(None, self._client.embed_example)

    async def submit_sample(self, name: str) -> OperationStatus:
        document = sample_document(name)
        return await self._run_embed(document, lambda: self._client.embed(document))

    async def _run_embed(self, payload: Any, call: Callable[[], Awaitable[Any]]) -> OperationStatus:
        self._begin(BeginEmbed(payload), Flow.EMBED)
        self._logger.info("embed.begin", example=payload is None)
        status = await self._complete(Flow.EMBED, call, EmbedSucceeded)
        if status.phase is Phase.SUCCEEDED and self._store.last_embed is not None:
            self._logger.info(
                "embed.complete",
                document_id=self._store.last_embed.document_id,
                dimension=self._store.last_embed.embedding_dimension,
            )
        return status

    def _begin(self, event: SessionEvent, flow: Flow) -> None:
        try:
            self._store.dispatch(event)
        except BusyError:
            ClientMetrics.observe_busy(flow.value)
            self._logger.info(f"{flow.value}.busy")
            raise

    async def _complete(
        self,
        flow: Flow,
        call: Callable[[], Awaitable[Any]],
        succeeded: Callable[[Any], SessionEvent],
    ) -> OperationStatus:
        try:
            response = await call()
        except TransportError as exc:
            self._store.dispatch(_FAILURE_EVENTS[flow](exc))
            self._logger.warning(f"{flow.value}.failed", kind=exc.kind.value, reason=exc.describe())
            return self._store.status(flow)
        except asyncio.CancelledError:
            # The flow must not stay pending once its task is gone.
            interrupted = TransportError(TransportErrorKind.INTERRUPTED, "task cancelled")
            self._store.dispatch(_FAILURE_EVENTS[flow](interrupted))
            raise
        except Exception as exc:
            failure = TransportError(TransportErrorKind.CLIENT_ERROR, f"{type(exc).__name__}: {exc}")
            self._store.dispatch(_FAILURE_EVENTS[flow](failure))
            self._logger.error(f"{flow.value}.failed", kind=failure.kind.value, reason=failure.describe())
            raise
        self._store.dispatch(succeeded(response))
        return self._store.status(flow)

    # Documents

    async def delete_document(self, document_id: str) -> bool:
        """Delete on the backend, then drop it from the current results.

        The local result set changes only once the backend confirms.
        """

        response = await self._client.delete_document(document_id)
        if not response.success:
            self._logger.warning("document.delete_rejected", document_id=document_id)
            return False
        self._store.dispatch(DeleteDocument(document_id))
        self._logger.info("document.deleted", document_id=document_id)
        return True

    async def get_document(self, document_id: str) -> Any:
        return await self._client.get_document(document_id)

    async def load_sample_data(self) -> SampleLoadResponse:
        response = await self._client.quick_load_sample_data()
        self._logger.info("samples.loaded", successful=response.summary.successful, failed=response.summary.failed)
        return response

    # Conversations

    async def check_health(self) -> HealthStatus:
        health = await self._client.health()
        return HealthStatus(
            status=health.status,
            uptime=health.uptime,
            version=health.version,
            timestamp=health.timestamp,
        )

    async def list_conversations(self) -> list[Conversation]:
        return [_conversation(item) for item in await self._client.list_conversations()]

    async def open_conversation(self, conversation_id: str) -> Conversation:
        if self._store.status(Flow.CHAT).is_pending:
            ClientMetrics.observe_busy(Flow.CHAT.value)
            raise BusyError(Flow.CHAT)
        conversation = _conversation(await self._client.get_conversation(conversation_id))
        self._store.dispatch(ConversationOpened(conversation))
        self._logger.info("conversation.opened", conversation_id=conversation.id, messages=len(conversation.messages))
        return conversation

    def new_conversation(self) -> None:
        self._store.dispatch(ConversationOpened(None))
        self._logger.info("conversation.new")

    async def delete_conversation(self, conversation_id: str) -> bool:
        response = await self._client.delete_conversation(conversation_id)
        if not response.success:
            return False
        self._logger.info("conversation.deleted", conversation_id=conversation_id)
        if conversation_id == self._store.conversation_id and not self._store.status(Flow.CHAT).is_pending:
            self._store.dispatch(ConversationOpened(None))
        return True

    async def aclose(self) -> None:
        await self._client.aclose()


def _conversation(model) -> Conversation:
    return Conversation(
        id=model.id,
        messages=reconcile_conversation(model),
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


__all__ = ["SessionOrchestrator"]
