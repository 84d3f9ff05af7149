"""Streaming sink contract used to relay progress and matches to callers.

The core only ever calls ``emit(event, payload)``. Transports (websocket,
SSE, stdout) live behind adapters at the boundary.
"""
from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable

from jobscout.log import get_logger

log = get_logger(__name__)

LOG_EVENT = "log"
MATCH_EVENT = "job-match"
STATUS_EVENT = "process-status"

_LEVELS = {
    "info": logging.INFO,
    "success": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class StreamingSink(ABC):
    @abstractmethod
    def emit(self, event: str, payload: dict[str, Any]) -> None:
        pass


class NullSink(StreamingSink):
    def emit(self, event: str, payload: dict[str, Any]) -> None:
        return None


class LoggingSink(StreamingSink):
    """Writes every event to a logger; handy for CLI runs."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or get_logger("jobscout.stream")

    def emit(self, event: str, payload: dict[str, Any]) -> None:
        if event == LOG_EVENT:
            level = _LEVELS.get(payload.get("type", "info"), logging.INFO)
            self.logger.log(level, "%s", payload.get("message", ""))
        elif event == MATCH_EVENT:
            job = payload.get("job", {})
            self.logger.info(
                "MATCH %s%% %s @ %s",
                job.get("match_score"), job.get("title"), job.get("organization"),
            )
        else:
            self.logger.debug("%s %s", event, payload)


class CollectingSink(StreamingSink):
    """Keeps events in memory, in emission order."""

    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, Any]]] = []
        self._lock = threading.Lock()

    def emit(self, event: str, payload: dict[str, Any]) -> None:
        with self._lock:
            self.events.append((event, payload))

    def of(self, event: str) -> list[dict[str, Any]]:
        with self._lock:
            return [p for e, p in self.events if e == event]

    @property
    def messages(self) -> list[str]:
        return [p.get("message", "") for p in self.of(LOG_EVENT)]


class CallbackSink(StreamingSink):
    """Adapts a plain ``fn(event, payload)`` callable, e.g. ``socketio.emit``."""

    def __init__(self, fn: Callable[[str, dict[str, Any]], Any]) -> None:
        self.fn = fn

    def emit(self, event: str, payload: dict[str, Any]) -> None:
        self.fn(event, payload)


def publish(sink: StreamingSink | None, event: str, payload: dict[str, Any]) -> None:
    """Fire-and-forget: a broken sink never interrupts the pipeline."""
    if sink is None:
        return
    try:
        sink.emit(event, payload)
    except Exception as exc:
        log.warning("Sink %s failed on %r: %s", type(sink).__name__, event, exc)


def emit_log(sink: StreamingSink | None, message: str, kind: str = "info", **extra: Any) -> None:
    publish(sink, LOG_EVENT, {"message": message, "type": kind, **extra})
