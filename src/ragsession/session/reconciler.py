"""Merge backend responses into session state."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Sequence

from ragsession.api.schemas import ChatResponse, ConversationModel, EmbeddingResponse, SearchResponse
from ragsession.models import EmbedRecord, Message, Role, SearchResult, Source, Usage, utcnow
from ragsession.session.state import SessionState


def _source(item) -> Source:
    return Source(
        document_id=item.document_id,
        content=item.content,
        original_data=item.original_data,
        similarity_score=item.similarity_score,
        document_type=item.metadata.document_type,
        processed_at=item.metadata.processed_at,
    )


def _usage(response: ChatResponse) -> Usage:
    meta = response.metadata
    return Usage(
        tokens_used=meta.tokens_used,
        processing_time_ms=int(round(meta.processing_time)),
        similarity_scores=tuple(meta.similarity_scores),
        llm_provider=meta.llm_provider,
        llm_model=meta.llm_model,
    )


def reconcile_chat(state: SessionState, response: ChatResponse, timestamp: datetime | None = None) -> SessionState:
    """Append the assistant turn and adopt the backend's conversation id."""

    message = Message(
        role=Role.ASSISTANT,
        content=response.response,
        timestamp=timestamp or utcnow(),
        sources=tuple(_source(item) for item in response.sources),
        usage=_usage(response),
    )
    return replace(
        state,
        messages=state.messages + (message,),
        conversation_id=response.conversation_id,
    )


def reconcile_search(response: SearchResponse) -> tuple[SearchResult, ...]:
    # Backend ranking is kept as-is, including its tie-breaks.
    return tuple(
        SearchResult(
            document_id=item.document_id,
            original_data=item.original_data,
            text_representation=item.text_representation,
            similarity_score=item.similarity_score,
            metadata=dict(item.metadata),
        )
        for item in response.results
    )


def reconcile_embed(response: EmbeddingResponse) -> EmbedRecord:
    return EmbedRecord(
        document_id=response.document_id,
        content_hash=response.content_hash,
        text_representation=response.text_representation,
        embedding_dimension=response.embedding_dimension,
        metadata=response.metadata.model_dump(exclude_none=True),
    )


def reconcile_delete(document_id: str, results: Sequence[SearchResult]) -> tuple[SearchResult, ...]:
    """Drop every result for ``document_id``; unknown ids are a no-op."""

    return tuple(result for result in results if result.document_id != document_id)


def reconcile_conversation(conversation: ConversationModel) -> tuple[Message, ...]:
    messages: list[Message] = []
    for item in conversation.messages:
        try:
            role = Role(item.role)
        except ValueError:
            continue
        timestamp = _parse_timestamp(item.timestamp)
        messages.append(Message(role=role, content=item.content, timestamp=timestamp))
    return tuple(messages)


def _parse_timestamp(value: str | None) -> datetime:
    if not value:
        return utcnow()
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return utcnow()


__all__ = [
    "reconcile_chat",
    "reconcile_conversation",
    "reconcile_delete",
    "reconcile_embed",
    "reconcile_search",
]
