"""Pydantic models for the backend wire format."""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base for camelCase JSON bodies; unknown backend fields are ignored."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class HealthResponse(WireModel):
    status: str
    timestamp: Optional[str] = None
    uptime: Optional[float] = None
    version: Optional[str] = None


class EmbeddingMetadata(WireModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    field_count: Optional[int] = None
    nested_levels: Optional[int] = None
    data_types: List[str] = Field(default_factory=list)
    document_type: Optional[str] = None
    processed_at: Optional[str] = None


class EmbeddingResponse(WireModel):
    success: bool = True
    document_id: str
    content_hash: str
    text_representation: str
    embedding_dimension: int = Field(..., ge=0)
    metadata: EmbeddingMetadata = Field(default_factory=EmbeddingMetadata)


class SearchRequest(WireModel):
    query: str = Field(..., min_length=1)
    limit: int = 10
    include_score: bool = True

    def to_params(self) -> dict[str, str]:
        return {
            "q": self.query,
            "limit": str(self.limit),
            "includeScore": "true" if self.include_score else "false",
        }


class SearchResultModel(WireModel):
    document_id: str
    original_data: Any = None
    text_representation: str = ""
    similarity_score: Optional[float] = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class SearchResponse(WireModel):
    results: List[SearchResultModel] = Field(default_factory=list)


class DeleteResponse(WireModel):
    success: bool


class ChatRequest(WireModel):
    message: str = Field(..., min_length=1)
    conversation_id: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = Field(default=None, ge=1)
    top_k: Optional[int] = Field(default=None, ge=1)
    similarity_threshold: Optional[float] = Field(default=None, ge=0.0, le=1.0)


class SourceMetadata(WireModel):
    document_type: Optional[str] = None
    processed_at: Optional[str] = None


class ChatSource(WireModel):
    document_id: str
    content: str = ""
    original_data: Any = None
    similarity_score: float = 0.0
    metadata: SourceMetadata = Field(default_factory=SourceMetadata)


class ChatMetadata(WireModel):
    tokens_used: int = Field(default=0, ge=0)
    processing_time: float = Field(default=0, ge=0)
    similarity_scores: List[float] = Field(default_factory=list)
    llm_provider: Optional[str] = None
    llm_model: Optional[str] = None


class ChatResponse(WireModel):
    response: str
    conversation_id: str
    sources: List[ChatSource] = Field(default_factory=list)
    metadata: ChatMetadata = Field(default_factory=ChatMetadata)


class ConversationMessage(WireModel):
    role: str
    content: str
    timestamp: Optional[str] = None


class ConversationModel(WireModel):
    id: str
    messages: List[ConversationMessage] = Field(default_factory=list)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class SampleLoadSummary(WireModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    successful: int = 0
    failed: int = 0
    total: Optional[int] = None


class SampleLoadResponse(WireModel):
    success: bool
    summary: SampleLoadSummary = Field(default_factory=SampleLoadSummary)
    error: Optional[str] = None
