"""OCR macro tool: reroll until the stat tooltip shows the wanted value.

Each iteration runs the reroll actions, waits for the tooltip to redraw,
then reads the calibrated region once. The run ends on the first match or
when stopped.
"""
from __future__ import annotations

import logging
from typing import Optional

from ..core.calibration import CalibrationMode
from ..core.worker import RunHandle, Task
from ..macro.actions import DelayAction, MacroSettings
from ..macro.runner import MacroRunner
from ..settings import NamedOcrMacro, OcrMacroSettings
from .base import CalibrationTarget, Tool
from .custom_macro import action_calibration_targets, store_action_calibration

logger = logging.getLogger(__name__)


def build_reroll_macro(settings: OcrMacroSettings) -> MacroSettings:
    actions = list(settings.reroll_actions)
    actions.append(DelayAction(settings.interval_ms))
    actions.append(settings.search_action())
    return MacroSettings(actions=actions, loop_enabled=True, infinite_loop=True)


class OcrMacroTool(Tool):
    kind = "ocr_macro"

    def profile(self) -> Optional[NamedOcrMacro]:
        for p in self.store.settings.ocr_macros:
            if p.id == self.tool_id:
                return p
        return None

    @property
    def name(self) -> str:
        p = self.profile()
        return p.name if p else "OCR Macro"

    def calibration_targets(self):
        p = self.profile()
        if p is None:
            return {}
        targets = {"ocr_region": CalibrationTarget("OCR region", CalibrationMode.AREA, "OCR region calibrated")}
        targets.update(action_calibration_targets(p.settings.reroll_actions, prefix="reroll"))
        return targets

    def _store_calibration(self, key, value) -> None:
        p = self.profile()
        if p is None:
            return
        if key == "ocr_region":
            p.settings.ocr_region = value
        else:
            store_action_calibration(p.settings.reroll_actions, key, value)

    def validate(self) -> Optional[str]:
        p = self.profile()
        if p is None:
            return "Macro profile not found"
        s = p.settings
        if s.ocr_region is None:
            return "Please set OCR region first"
        if not s.target_stat.strip():
            return "Please set a target stat"
        if not s.reroll_actions:
            return "Please add reroll actions"
        return None

    def make_task(self, window_handle: int) -> Task:
        p = self.profile()
        assert p is not None
        macro = build_reroll_macro(p.settings).clone()

        def task(handle: RunHandle):
            handle.set_status("OCR Macro running...")
            return MacroRunner(macro, self.services, window_handle, handle).run()

        return task
