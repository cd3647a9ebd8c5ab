"""Common tool façade: one worker, one calibration gesture, one settings section."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from ..automation.context import AutomationServices
from ..core import coords
from ..core.calibration import (
    AreaResult,
    CalibrationMode,
    CalibrationResult,
    CalibrationStateMachine,
    FeedbackDrawer,
    PointResult,
)
from ..core.state import RunOutcome
from ..core.worker import Task, Worker
from ..settings import SettingsStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CalibrationTarget:
    label: str
    mode: CalibrationMode
    done_status: Optional[str] = None


class Tool:
    """Base class for the runnable tools shown in the control panel.

    Subclasses provide the calibration targets, the start validation and the
    background task; everything else (worker lifecycle, calibration feeding,
    normalizing results into settings) lives here.
    """

    kind = "tool"

    def __init__(
        self,
        tool_id: str,
        store: SettingsStore,
        services: AutomationServices,
        feedback: Optional[FeedbackDrawer] = None,
        join_timeout: float = 1.0,
    ) -> None:
        self.tool_id = tool_id
        self.store = store
        self.services = services
        self.worker = Worker(tool_id, join_timeout=join_timeout)
        self.calibration = CalibrationStateMachine(services.window_system, feedback)
        self._calibration_target: Optional[str] = None

    # ---- subclass hooks ----
    @property
    def name(self) -> str:
        return self.tool_id

    def calibration_targets(self) -> Dict[str, CalibrationTarget]:
        return {}

    def _store_calibration(self, key: str, value) -> None:
        raise NotImplementedError

    def validate(self) -> Optional[str]:
        """Return a status message when the tool cannot start, else None."""
        return None

    def make_task(self, window_handle: int) -> Task:
        raise NotImplementedError

    # ---- run control ----
    def start(self, window_handle: Optional[int]) -> bool:
        if not window_handle:
            self.worker.set_status("Connect to game first")
            return False
        problem = self.validate()
        if problem:
            self.worker.set_status(problem)
            return False
        task = self.make_task(window_handle)
        self.worker.start(task)
        logger.info("tool %s started", self.tool_id)
        return True

    def stop(self, reason: Optional[str] = None) -> None:
        self.worker.stop(reason)

    def on_disconnect(self) -> None:
        if self.worker.is_running():
            self.worker.stop("Disconnected")
        if self.calibration.is_active():
            self.calibration.cancel()
            self._calibration_target = None

    def is_running(self) -> bool:
        return self.worker.is_running()

    def status(self) -> str:
        return self.worker.status()

    def outcome(self) -> Optional[RunOutcome]:
        return self.worker.outcome()

    def log(self) -> List[str]:
        return self.worker.log()

    def extra(self, key: str, default=None):
        return self.worker.extra(key, default)

    # ---- calibration ----
    def begin_calibration(self, key: str) -> bool:
        target = self.calibration_targets().get(key)
        if target is None:
            logger.warning("tool %s: unknown calibration target %r", self.tool_id, key)
            return False
        if target.mode is CalibrationMode.POINT:
            self.calibration.start_point()
            self.worker.set_status(f"Click in the game to set {target.label}")
        else:
            self.calibration.start_area()
            self.worker.set_status(f"Drag in the game to select {target.label}")
        self._calibration_target = key
        return True

    def cancel_calibration(self) -> None:
        if self.calibration.is_active():
            self.calibration.cancel()
            self.worker.set_status("Calibration cancelled")
        self._calibration_target = None

    def is_calibrating(self) -> bool:
        return self.calibration.is_active()

    def update(self, window_handle: Optional[int]) -> Optional[CalibrationResult]:
        """Feed the calibration gesture; store a completed result. Call once per UI tick."""
        if not self.calibration.is_active():
            return None
        result = self.calibration.update(window_handle)
        if result is None:
            return None
        key = self._calibration_target
        self._calibration_target = None
        target = self.calibration_targets().get(key or "")
        if target is None:
            return None
        geometry = self.services.window_system.geometry(window_handle)
        self._apply(key, target, result, geometry)
        return result

    def _apply(self, key, target: CalibrationTarget, result: CalibrationResult, geometry) -> None:
        if isinstance(result, PointResult):
            value = coords.normalize_point(geometry, (result.x, result.y))
            status = target.done_status or f"Click position set: ({result.x}, {result.y})"
        else:
            assert isinstance(result, AreaResult)
            if result.is_degenerate:
                self.worker.set_status("Selected area is empty, try again")
                return
            value = coords.normalize(geometry, result.as_rect())
            status = target.done_status or "Calibration recorded"
        if value is None:
            self.worker.set_status("Connect to game first")
            return
        self._store_calibration(key, value)
        self.worker.set_status(status)
