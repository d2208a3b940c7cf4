"""Construct typed request payloads from user input and session parameters."""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from ragsession.api.schemas import ChatRequest, SearchRequest
from ragsession.errors import ValidationError

SEARCH_LIMITS: tuple[int, ...] = (5, 10, 20, 50)
DEFAULT_TOP_K = 5
DEFAULT_SIMILARITY_THRESHOLD = 0.6


@dataclass(frozen=True)
class EmbedRequest:
    """A structured document to index; its contents are never inspected."""

    document: Any


def build_chat_request(
    text: str,
    conversation_id: str | None = None,
    top_k: int = DEFAULT_TOP_K,
    similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
    *,
    temperature: float | None = None,
    max_tokens: int | None = None,
) -> ChatRequest:
    if not text or not text.strip():
        raise ValidationError("Message must not be empty")
    if top_k < 1:
        raise ValidationError("top_k must be at least 1")
    if not 0.0 <= similarity_threshold <= 1.0:
        raise ValidationError("similarity_threshold must be between 0 and 1")
    return ChatRequest(
        message=text,
        conversation_id=conversation_id,
        top_k=top_k,
        similarity_threshold=similarity_threshold,
        temperature=temperature,
        max_tokens=max_tokens,
    )


def build_search_request(
    query: str,
    limit: int = 10,
    include_score: bool = True,
    *,
    allowed_limits: Sequence[int] = SEARCH_LIMITS,
) -> SearchRequest:
    if not query or not query.strip():
        raise ValidationError("Please enter a search query")
    if limit not in allowed_limits:
        choices = ", ".join(str(value) for value in allowed_limits)
        raise ValidationError(f"Result limit must be one of {choices}")
    return SearchRequest(query=query, limit=limit, include_score=include_score)


def build_embed_request(json_payload: str | bytes | Mapping[str, Any] | list) -> EmbedRequest:
    """Parse raw JSON input into an embed request.

    Already-structured values are checked to be JSON-serializable. Anything
    that is not strict JSON (including ``NaN`` and ``Infinity``) raises
    ``ValidationError`` so no request is issued.
    """

    if isinstance(json_payload, (Mapping, list)):
        try:
            json.dumps(json_payload, allow_nan=False)
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"Document is not valid JSON: {exc}") from exc
        return EmbedRequest(document=json_payload)
    if isinstance(json_payload, bytes):
        try:
            json_payload = json_payload.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ValidationError("Document must be UTF-8 encoded JSON") from exc
    if not isinstance(json_payload, str) or not json_payload.strip():
        raise ValidationError("Please enter valid JSON data")
    try:
        document = json.loads(json_payload, parse_constant=_reject_constant)
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Invalid JSON format: {exc.msg} (line {exc.lineno}, column {exc.colno})") from exc
    return EmbedRequest(document=document)


def _reject_constant(token: str) -> Any:
    raise ValidationError(f"Invalid JSON format: {token} is not a JSON value")


__all__ = [
    "DEFAULT_SIMILARITY_THRESHOLD",
    "DEFAULT_TOP_K",
    "EmbedRequest",
    "SEARCH_LIMITS",
    "build_chat_request",
    "build_embed_request",
    "build_search_request",
]
