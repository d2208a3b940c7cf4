"""Backend HTTP contract: transport, wire schemas and typed client."""

from .client import BackendClient
from .transport import TransportClient

__all__ = ["BackendClient", "TransportClient"]
