"""
Worker Thread Module
Runs one tool's task at a time on a daemon thread and exposes its state.
"""
from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, List, Optional

from .state import RunOutcome, WorkerState

logger = logging.getLogger(__name__)

Task = Callable[["RunHandle"], Optional[RunOutcome]]


class RunHandle:
    """The view of the worker a single run gets.

    Every write is tagged with the run's generation, so a run that has been
    superseded by a restart can no longer touch the shared state.
    """

    def __init__(self, worker: "Worker", generation: int, wake: threading.Event):
        self._worker = worker
        self._state = worker.state
        self.generation = generation
        self._wake = wake

    def is_running(self) -> bool:
        return self._state.is_running_for(self.generation)

    def set_status(self, text: str) -> None:
        if self._state.set_status_for(self.generation, text):
            logger.info("%s: %s", self._worker.name, text)

    def status(self) -> str:
        return self._state.status

    def stop_reason(self) -> Optional[str]:
        return self._state.stop_reason

    def sleep(self, seconds: float) -> bool:
        """Sleep up to `seconds`, waking at once on stop. Returns is_running()."""
        if seconds > 0:
            self._wake.wait(seconds)
        return self.is_running()

    def publish(self, key: str, value: Any) -> None:
        self._state.set_for(self.generation, key, value)

    def finish(self, outcome: RunOutcome, status: Optional[str] = None) -> None:
        if self._state.finish(self.generation, outcome, status):
            if status:
                logger.info("%s: %s", self._worker.name, status)
            logger.debug("%s: run %d finished (%s)", self._worker.name, self.generation, outcome.value)


class Worker:
    """Background runner for one tool.

    start() never leaves two runs of the same worker alive: the previous run
    is stopped and joined (bounded) before a new generation begins.
    """

    def __init__(self, name: str, join_timeout: float = 1.0) -> None:
        self.name = name
        self.state = WorkerState()
        self.join_timeout = float(join_timeout)
        self._thread: Optional[threading.Thread] = None
        self._start_lock = threading.Lock()

    def start(self, task: Task) -> RunHandle:
        with self._start_lock:
            prev = self._thread
            if prev is not None and prev.is_alive():
                self.state.request_stop("Stopped")
                if prev is not threading.current_thread():
                    prev.join(self.join_timeout)
                if prev.is_alive():
                    logger.warning("%s: previous run still alive after %.1fs; superseding it", self.name, self.join_timeout)
            generation, wake = self.state.begin_run()
            handle = RunHandle(self, generation, wake)
            thread = threading.Thread(
                target=self._run,
                args=(task, handle),
                name=f"{self.name}-run{generation}",
                daemon=True,
            )
            self._thread = thread
            thread.start()
            return handle

    def _run(self, task: Task, handle: RunHandle) -> None:
        t0 = time.perf_counter()
        try:
            outcome = task(handle)
        except Exception as exc:
            logger.exception("%s: task crashed", self.name)
            handle.finish(RunOutcome.FAILED, f"Error: {exc}")
            return
        if outcome is None:
            outcome = RunOutcome.COMPLETED if handle.is_running() else RunOutcome.STOPPED
        handle.finish(outcome)
        logger.info("%s: run %d ended in %.1fs", self.name, handle.generation, time.perf_counter() - t0)

    def stop(self, reason: Optional[str] = None) -> None:
        """Ask the current run to stop. Never blocks on the thread."""
        if self.state.request_stop(reason or "Stopped", reason):
            logger.info("%s: stop requested (%s)", self.name, reason or "user")

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the current thread; True when it is no longer alive."""
        thread = self._thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()

    def is_running(self) -> bool:
        return self.state.running

    def status(self) -> str:
        return self.state.status

    def set_status(self, text: str) -> None:
        """Status written from the UI side (validation messages and the like)."""
        if self.state.set_status(text):
            logger.info("%s: %s", self.name, text)

    def outcome(self) -> Optional[RunOutcome]:
        return self.state.outcome

    def log(self) -> List[str]:
        return self.state.log_lines()

    def extra(self, key: str, default: Any = None) -> Any:
        return self.state.get(key, default)
