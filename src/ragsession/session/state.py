"""Immutable snapshot of one client session."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Mapping

from ragsession.models import EmbedRecord, Flow, Message, OperationStatus, SearchResult


def _idle_statuses() -> Mapping[Flow, OperationStatus]:
    return MappingProxyType({flow: OperationStatus.idle() for flow in Flow})


@dataclass(frozen=True)
class SessionState:
    conversation_id: str | None = None
    messages: tuple[Message, ...] = ()
    search_results: tuple[SearchResult, ...] = ()
    last_embed: EmbedRecord | None = None
    statuses: Mapping[Flow, OperationStatus] = field(default_factory=_idle_statuses)

    def status(self, flow: Flow) -> OperationStatus:
        return self.statuses[flow]

    def with_status(self, flow: Flow, status: OperationStatus) -> "SessionState":
        statuses = dict(self.statuses)
        statuses[flow] = status
        return replace(self, statuses=MappingProxyType(statuses))


__all__ = ["SessionState"]
