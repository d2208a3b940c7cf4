"""Observability helpers for ragsession."""

from __future__ import annotations

import logging
import time
from contextvars import ContextVar
from typing import Iterable

import structlog
from prometheus_client import Counter, Histogram

_logger_configured = False
_correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="-")


def configure_logging(level: int | str = logging.INFO) -> None:
    global _logger_configured  # noqa: PLW0603 - module-level guard
    if _logger_configured:
        return
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(level=level, format="%(message)s")
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _logger_configured = True


def bind_correlation_id(correlation_id: str) -> None:
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)
    _correlation_id_var.set(correlation_id)


def clear_correlation_id() -> None:
    structlog.contextvars.unbind_contextvars("correlation_id")
    _correlation_id_var.set("-")


def get_correlation_id() -> str:
    return _correlation_id_var.get()


def get_logger(name: str = "ragsession") -> structlog.BoundLogger:
    configure_logging()
    return structlog.get_logger(name)


def _clamp_score(score: float) -> float:
    if score < 0.0:
        return 0.0
    if score > 1.0:
        return 1.0
    return score


class ClientMetrics:
    """Prometheus metrics for backend calls and session flows."""

    request_latency = Histogram(
        "ragsession_request_duration_seconds",
        "Time spent waiting on backend calls.",
        ["operation"],
        buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
    )
    request_failures = Counter(
        "ragsession_request_failures_total",
        "Backend calls that ended in a transport error.",
        ["operation", "kind"],
    )
    busy_rejections = Counter(
        "ragsession_busy_rejections_total",
        "Operations rejected because the same flow was already pending.",
        ["flow"],
    )
    source_score = Histogram(
        "ragsession_source_similarity_score",
        "Similarity scores of sources attached to assistant turns.",
        buckets=(0.0, 0.25, 0.5, 0.75, 1.0),
    )

    @classmethod
    def observe_request(cls, operation: str, duration_seconds: float) -> None:
        cls.request_latency.labels(operation=operation).observe(duration_seconds)

    @classmethod
    def observe_failure(cls, operation: str, kind: str) -> None:
        cls.request_failures.labels(operation=operation, kind=kind).inc()

    @classmethod
    def observe_busy(cls, flow: str) -> None:
        cls.busy_rejections.labels(flow=flow).inc()

    @classmethod
    def observe_sources(cls, scores: Iterable[float]) -> None:
        for score in scores:
            cls.source_score.observe(_clamp_score(score))


class TimedSection:
    """Context manager capturing elapsed time for metrics."""

    def __init__(self, callback) -> None:
        self._callback = callback
        self._start = 0.0

    def __enter__(self) -> "TimedSection":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: D401
        duration = time.perf_counter() - self._start
        self._callback(duration)


__all__ = [
    "ClientMetrics",
    "TimedSection",
    "bind_correlation_id",
    "clear_correlation_id",
    "configure_logging",
    "get_correlation_id",
    "get_logger",
]
