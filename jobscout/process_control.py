"""Start/stop bookkeeping for long-running pipelines.

Cancellation is cooperative: a stop request only sets a flag, and workers
poll ``should_stop(name)`` at their own checkpoints. One state exists per
logical process name; it is created by ``start`` and discarded by
``complete``.
"""
from __future__ import annotations

import threading
import time
from dataclasses import dataclass, replace
from datetime import datetime, timezone

from jobscout.log import get_logger
from jobscout.sink import STATUS_EVENT, StreamingSink, emit_log, publish

log = get_logger(__name__)


@dataclass(frozen=True)
class ProcessState:
    process_id: str
    running: bool
    cancel_requested: bool
    started_at: datetime


class ProcessControl:
    def __init__(self, sink: StreamingSink | None = None) -> None:
        self.sink = sink
        self._states: dict[str, ProcessState] = {}
        self._lock = threading.Lock()

    def start(self, name: str) -> str:
        process_id = f"{name}-{int(time.time() * 1000)}"
        with self._lock:
            if name in self._states and self._states[name].running:
                log.warning("Process %s restarted while still running", name)
            self._states[name] = ProcessState(
                process_id=process_id,
                running=True,
                cancel_requested=False,
                started_at=datetime.now(timezone.utc),
            )
        self._emit_status(name, "started")
        log.info("Process started: %s (%s)", name, process_id)
        return process_id

    def request_stop(self, name: str, requested_by: str | None = None) -> bool:
        """Flag a running process for cancellation; returns False if nothing is running."""
        with self._lock:
            state = self._states.get(name)
            if state is None or not state.running:
                return False
            self._states[name] = replace(state, cancel_requested=True)
        self._emit_status(name, "stopping")
        emit_log(self.sink, "Stop requested - finishing current operation...", "warning", agent=name)
        log.info("Stop requested for %s (requested by: %s)", name, requested_by or "unknown")
        return True

    def should_stop(self, name: str) -> bool:
        with self._lock:
            state = self._states.get(name)
            return bool(state and state.cancel_requested)

    def is_running(self, name: str) -> bool:
        with self._lock:
            state = self._states.get(name)
            return bool(state and state.running)

    def complete(self, name: str, was_stopped: bool = False) -> None:
        with self._lock:
            self._states.pop(name, None)
        if was_stopped:
            self._emit_status(name, "stopped")
            emit_log(self.sink, "Process stopped by user", "warning", agent=name)
        else:
            self._emit_status(name, "completed")
        log.info("Process %s for %s", "stopped" if was_stopped else "completed", name)

    def state(self, name: str) -> ProcessState | None:
        with self._lock:
            return self._states.get(name)

    def states(self) -> dict[str, ProcessState]:
        with self._lock:
            return dict(self._states)

    def _emit_status(self, name: str, status: str) -> None:
        publish(self.sink, STATUS_EVENT, {"agent": name, "status": status})
