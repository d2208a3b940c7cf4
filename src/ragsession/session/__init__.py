"""Session orchestration: builders, state store, reconciler and intents."""

from .builders import EmbedRequest, build_chat_request, build_embed_request, build_search_request
from .orchestrator import SessionOrchestrator
from .state import SessionState
from .store import SessionStore, reduce

__all__ = [
    "EmbedRequest",
    "SessionOrchestrator",
    "SessionState",
    "SessionStore",
    "build_chat_request",
    "build_embed_request",
    "build_search_request",
    "reduce",
]
