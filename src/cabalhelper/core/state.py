"""
Worker State Module
Holds the lock-guarded state shared between a tool's UI thread and its background run.
"""
from __future__ import annotations

import threading
from collections import deque
from enum import Enum
from typing import Any, Deque, List, Optional

MAX_LOG_LINES = 200


class RunOutcome(Enum):
    """Structured result of a background run, alongside its status text."""

    COMPLETED = "completed"
    STOPPED = "stopped"
    FAILED = "failed"
    MATCHED = "matched"


class WorkerState:
    """Thread-safe running flag, status line, log ring and extras.

    Writes coming from a run are tagged with that run's generation; once a
    newer run has started, writes from the old one are dropped.
    """

    def __init__(self, max_log: int = MAX_LOG_LINES):
        self.lock = threading.Lock()
        self._running = False
        self._status = "Ready"
        self._outcome: Optional[RunOutcome] = None
        self._stop_reason: Optional[str] = None
        self._generation = 0
        self._wake = threading.Event()
        self._log: Deque[str] = deque(maxlen=max_log)
        self._extras: dict = {}

    # ---- run lifecycle ----
    def begin_run(self) -> tuple[int, threading.Event]:
        """Open a new generation and return (generation, wake event)."""
        with self.lock:
            self._generation += 1
            self._running = True
            self._outcome = None
            self._stop_reason = None
            self._wake = threading.Event()
            self._extras.clear()
            return self._generation, self._wake

    def request_stop(self, status: str, reason: Optional[str] = None) -> bool:
        """Flip the running flag off. Returns True when a run was active."""
        with self.lock:
            was_running = self._running
            self._running = False
            self._stop_reason = reason
            self._push_status(status)
            wake = self._wake
        wake.set()
        return was_running

    def finish(self, generation: int, outcome: RunOutcome, status: Optional[str] = None) -> bool:
        with self.lock:
            if generation != self._generation:
                return False
            self._running = False
            self._outcome = outcome
            if status is not None:
                self._push_status(status)
            return True

    # ---- generation-gated accessors ----
    def is_running_for(self, generation: int) -> bool:
        with self.lock:
            return self._running and generation == self._generation

    def set_status_for(self, generation: int, text: str) -> bool:
        with self.lock:
            if generation != self._generation:
                return False
            return self._push_status(text)

    def set_status(self, text: str) -> bool:
        with self.lock:
            return self._push_status(text)

    def _push_status(self, text: str) -> bool:
        # caller holds the lock
        if text == self._status:
            return False
        self._status = text
        self._log.append(text)
        return True

    # ---- plain getters ----
    @property
    def running(self) -> bool:
        with self.lock:
            return self._running

    @property
    def status(self) -> str:
        with self.lock:
            return self._status

    @property
    def outcome(self) -> Optional[RunOutcome]:
        with self.lock:
            return self._outcome

    @property
    def stop_reason(self) -> Optional[str]:
        with self.lock:
            return self._stop_reason

    @property
    def generation(self) -> int:
        with self.lock:
            return self._generation

    def log_lines(self) -> List[str]:
        with self.lock:
            return list(self._log)

    # ---- extras (small key/value map published by a run) ----
    def set_for(self, generation: int, key, value) -> bool:
        with self.lock:
            if generation != self._generation:
                return False
            self._extras[key] = value
            return True

    def get(self, key, default: Any = None):
        """Thread-safe getter for run extras."""
        with self.lock:
            return self._extras.get(key, default)
