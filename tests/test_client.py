"""BackendClient against a FastAPI stand-in for the RAG backend."""

from __future__ import annotations

from typing import Any

import httpx
import pytest
from fastapi import Body, FastAPI, HTTPException

from ragsession.api.client import BackendClient
from ragsession.api.transport import TransportClient
from ragsession.errors import TransportError, TransportErrorKind
from ragsession.session.builders import build_chat_request, build_search_request

from fakes import chat_reply, chat_source, embed_reply, search_hit


def create_stub_backend() -> FastAPI:
    app = FastAPI()
    documents: dict[str, dict[str, Any]] = {"doc-1": {"vendor": "Acme"}, "a b/c": {"vendor": "Slash"}}
    conversations = {
        "c-1": {
            "id": "c-1",
            "messages": [{"role": "user", "content": "hi", "timestamp": "2024-05-01T10:00:00Z"}],
            "createdAt": "2024-05-01T10:00:00Z",
            "updatedAt": "2024-05-01T10:00:05Z",
        }
    }

    @app.get("/health")
    def health() -> dict:
        return {"status": "healthy", "timestamp": "2024-05-01T10:00:00Z", "uptime": 12.5, "version": "1.2.0"}

    @app.post("/api/v1/embed")
    def embed(document: Any = Body(...)) -> dict:
        return embed_reply(f"doc-{len(str(document))}")

    @app.post("/api/v1/example")
    def example() -> dict:
        return embed_reply("example")

    @app.get("/api/v1/search")
    def search(q: str, limit: int = 10, includeScore: bool = True) -> dict:  # noqa: N803 - backend naming
        hits = [search_hit(f"{q}-{i}", 1 - i / 100) for i in range(limit)]
        if not includeScore:
            for hit in hits:
                hit.pop("similarityScore")
        return {"results": hits}

    @app.get("/api/v1/document/{document_id:path}")
    def get_document(document_id: str) -> dict:
        if document_id not in documents:
            raise HTTPException(status_code=404, detail="Document not found")
        return documents[document_id]

    @app.delete("/api/v1/document/{document_id:path}")
    def delete_document(document_id: str) -> dict:
        return {"success": documents.pop(document_id, None) is not None}

    @app.post("/api/v1/chat")
    def chat(payload: dict = Body(...)) -> dict:
        conversation_id = payload.get("conversationId") or "c-new"
        return chat_reply(f"echo: {payload['message']}", conversation_id, [chat_source("doc-1", 0.88)])

    @app.get("/api/v1/conversations")
    def list_conversations() -> list:
        return list(conversations.values())

    @app.get("/api/v1/conversations/{conversation_id}")
    def get_conversation(conversation_id: str) -> dict:
        if conversation_id not in conversations:
            raise HTTPException(status_code=404, detail="Conversation not found")
        return conversations[conversation_id]

    @app.delete("/api/v1/conversations/{conversation_id}")
    def delete_conversation(conversation_id: str) -> dict:
        return {"success": conversations.pop(conversation_id, None) is not None}

    @app.post("/api/v1/quick-load-sample-data")
    def quick_load() -> dict:
        return {"success": True, "summary": {"successful": 25, "failed": 0}}

    return app


@pytest.fixture
async def client():
    transport = TransportClient("http://stub", transport=httpx.ASGITransport(app=create_stub_backend()))
    backend = BackendClient(transport)
    yield backend
    await backend.aclose()


async def test_health(client: BackendClient):
    health = await client.health()
    assert health.status == "healthy"
    assert health.version == "1.2.0"


async def test_embed_and_example(client: BackendClient):
    response = await client.embed({"name": "John"})
    assert response.document_id.startswith("doc-")
    assert response.embedding_dimension == 384
    assert response.metadata.document_type == "customer"

    example = await client.embed_example()
    assert example.document_id == "example"


async def test_search_returns_requested_count_in_order(client: BackendClient):
    response = await client.search(build_search_request("balloon arches", limit=10))
    assert [hit.document_id for hit in response.results] == [f"balloon arches-{i}" for i in range(10)]


async def test_search_without_scores(client: BackendClient):
    response = await client.search(build_search_request("balloons", limit=5, include_score=False))
    assert all(hit.similarity_score is None for hit in response.results)


async def test_chat_parses_sources_and_metadata(client: BackendClient):
    response = await client.chat(build_chat_request("hello", conversation_id="c-7"))
    assert response.response == "echo: hello"
    assert response.conversation_id == "c-7"
    assert response.sources[0].document_id == "doc-1"
    assert response.metadata.tokens_used == 12


async def test_document_ids_are_quoted(client: BackendClient):
    assert await client.get_document("a b/c") == {"vendor": "Slash"}
    assert (await client.delete_document("a b/c")).success is True
    assert (await client.delete_document("a b/c")).success is False


async def test_missing_document_is_backend_error(client: BackendClient):
    with pytest.raises(TransportError) as exc_info:
        await client.get_document("nope")
    assert exc_info.value.kind is TransportErrorKind.BACKEND_ERROR
    assert exc_info.value.status == 404
    assert exc_info.value.payload == {"detail": "Document not found"}


async def test_conversation_endpoints(client: BackendClient):
    listed = await client.list_conversations()
    assert [c.id for c in listed] == ["c-1"]

    conversation = await client.get_conversation("c-1")
    assert conversation.messages[0].content == "hi"
    assert conversation.updated_at == "2024-05-01T10:00:05Z"

    assert (await client.delete_conversation("c-1")).success is True
    assert await client.list_conversations() == []


async def test_quick_load_sample_data(client: BackendClient):
    response = await client.quick_load_sample_data()
    assert response.summary.successful == 25


async def test_schema_mismatch_is_invalid_response():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"unexpected": True})

    backend = BackendClient(TransportClient("http://stub", transport=httpx.MockTransport(handler)))
    with pytest.raises(TransportError) as exc_info:
        await backend.chat(build_chat_request("hi"))
    assert exc_info.value.kind is TransportErrorKind.INVALID_RESPONSE
    await backend.aclose()


async def test_quick_load_failure_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": False, "error": "seed file missing"})

    backend = BackendClient(TransportClient("http://stub", transport=httpx.MockTransport(handler)))
    with pytest.raises(TransportError) as exc_info:
        await backend.quick_load_sample_data()
    assert "seed file missing" in exc_info.value.describe()
    await backend.aclose()
