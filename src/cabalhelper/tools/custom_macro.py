"""Custom macro tool: runs a user-defined action list from a saved profile."""
from __future__ import annotations

import logging
from typing import Dict, Optional

from ..core.calibration import CalibrationMode
from ..core.worker import RunHandle, Task
from ..macro.actions import ClickAction, OcrSearchAction
from ..macro.runner import MacroRunner
from ..settings import NamedMacro
from .base import CalibrationTarget, Tool

logger = logging.getLogger(__name__)


def action_calibration_targets(actions, prefix: str = "action") -> Dict[str, CalibrationTarget]:
    """One target per calibratable action, keyed '<prefix>_<1-based index>'."""
    targets: Dict[str, CalibrationTarget] = {}
    for i, action in enumerate(actions, start=1):
        if isinstance(action, ClickAction):
            targets[f"{prefix}_{i}"] = CalibrationTarget(f"action {i} click", CalibrationMode.POINT)
        elif isinstance(action, OcrSearchAction):
            targets[f"{prefix}_{i}"] = CalibrationTarget(f"action {i} OCR region", CalibrationMode.AREA,
                                                         "OCR region calibrated")
    return targets


def store_action_calibration(actions, key: str, value) -> bool:
    try:
        index = int(key.rsplit("_", 1)[1]) - 1
        action = actions[index]
    except (IndexError, ValueError):
        logger.warning("calibration target %r no longer exists", key)
        return False
    if isinstance(action, ClickAction):
        action.coordinate = value
    elif isinstance(action, OcrSearchAction):
        action.region = value
    else:
        return False
    return True


class CustomMacroTool(Tool):
    kind = "custom_macro"

    def profile(self) -> Optional[NamedMacro]:
        for p in self.store.settings.custom_macros:
            if p.id == self.tool_id:
                return p
        return None

    @property
    def name(self) -> str:
        p = self.profile()
        return p.name if p else "Macro"

    def calibration_targets(self):
        p = self.profile()
        return action_calibration_targets(p.settings.actions) if p else {}

    def _store_calibration(self, key, value) -> None:
        p = self.profile()
        if p is not None:
            store_action_calibration(p.settings.actions, key, value)

    def validate(self) -> Optional[str]:
        p = self.profile()
        if p is None:
            return "Macro profile not found"
        if not p.settings.actions:
            return "No actions configured"
        return None

    def make_task(self, window_handle: int) -> Task:
        p = self.profile()
        assert p is not None
        settings = p.settings.clone()

        def task(handle: RunHandle):
            handle.set_status("Running macro...")
            return MacroRunner(settings, self.services, window_handle, handle).run()

        return task
