"""Typed wrapper over the backend HTTP contract."""

from __future__ import annotations

from typing import Any, Type, TypeVar
from urllib.parse import quote

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as SchemaError

from ragsession.api.schemas import (
    ChatRequest,
    ChatResponse,
    ConversationModel,
    DeleteResponse,
    EmbeddingResponse,
    HealthResponse,
    SampleLoadResponse,
    SearchRequest,
    SearchResponse,
)
from ragsession.api.transport import TransportClient
from ragsession.config import Settings, get_settings
from ragsession.errors import TransportError, TransportErrorKind

ModelT = TypeVar("ModelT", bound=BaseModel)

_CONVERSATION_LIST = TypeAdapter(list[ConversationModel])


def _segment(value: str) -> str:
    return quote(value, safe="")


def _parse(model: Type[ModelT], data: Any, operation: str) -> ModelT:
    try:
        return model.model_validate(data)
    except SchemaError as exc:
        raise TransportError(
            TransportErrorKind.INVALID_RESPONSE,
            f"Unexpected {operation} response: {exc.error_count()} validation error(s)",
            payload=data,
        ) from exc


class BackendClient:
    """One coroutine per backend operation, returning validated schemas."""

    def __init__(self, transport: TransportClient) -> None:
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings | None = None, **transport_kwargs: Any) -> "BackendClient":
        settings = settings or get_settings()
        return cls(TransportClient(settings.api_url, settings.request_timeout_seconds, **transport_kwargs))

    @property
    def transport(self) -> TransportClient:
        return self._transport

    async def health(self) -> HealthResponse:
        data = await self._transport.call("GET", "/health", operation="health")
        return _parse(HealthResponse, data, "health")

    async def embed(self, document: Any) -> EmbeddingResponse:
        data = await self._transport.call("POST", "/api/v1/embed", body=document, operation="embed")
        return _parse(EmbeddingResponse, data, "embed")

    async def embed_example(self) -> EmbeddingResponse:
        data = await self._transport.call("POST", "/api/v1/example", operation="embed_example")
        return _parse(EmbeddingResponse, data, "embed example")

    async def search(self, request: SearchRequest) -> SearchResponse:
        data = await self._transport.call("GET", "/api/v1/search", query=request.to_params(), operation="search")
        return _parse(SearchResponse, data, "search")

    async def get_document(self, document_id: str) -> Any:
        return await self._transport.call("GET", f"/api/v1/document/{_segment(document_id)}", operation="get_document")

    async def delete_document(self, document_id: str) -> DeleteResponse:
        data = await self._transport.call(
            "DELETE", f"/api/v1/document/{_segment(document_id)}", operation="delete_document"
        )
        return _parse(DeleteResponse, data, "delete document")

    async def chat(self, request: ChatRequest) -> ChatResponse:
        data = await self._transport.call("POST", "/api/v1/chat", body=request.to_wire(), operation="chat")
        return _parse(ChatResponse, data, "chat")

    async def get_conversation(self, conversation_id: str) -> ConversationModel:
        data = await self._transport.call(
            "GET", f"/api/v1/conversations/{_segment(conversation_id)}", operation="get_conversation"
        )
        return _parse(ConversationModel, data, "conversation")

    async def list_conversations(self) -> list[ConversationModel]:
        data = await self._transport.call("GET", "/api/v1/conversations", operation="list_conversations")
        try:
            return _CONVERSATION_LIST.validate_python(data)
        except SchemaError as exc:
            raise TransportError(
                TransportErrorKind.INVALID_RESPONSE,
                f"Unexpected conversation list response: {exc.error_count()} validation error(s)",
                payload=data,
            ) from exc

    async def delete_conversation(self, conversation_id: str) -> DeleteResponse:
        data = await self._transport.call(
            "DELETE", f"/api/v1/conversations/{_segment(conversation_id)}", operation="delete_conversation"
        )
        return _parse(DeleteResponse, data, "delete conversation")

    async def quick_load_sample_data(self) -> SampleLoadResponse:
        data = await self._transport.call("POST", "/api/v1/quick-load-sample-data", operation="load_samples")
        response = _parse(SampleLoadResponse, data, "sample data")
        if not response.success:
            raise TransportError(
                TransportErrorKind.BACKEND_ERROR,
                response.error or "Failed to load sample data",
                payload=data,
            )
        return response

    async def aclose(self) -> None:
        await self._transport.aclose()


__all__ = ["BackendClient"]
