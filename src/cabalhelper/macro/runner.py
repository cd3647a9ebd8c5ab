"""Executes a macro's action list on the worker thread.

The runner owns nothing shared: it works on a copy of the settings taken at
start and talks to the UI only through its RunHandle (status, extras and the
running flag).
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from ..automation.context import AutomationContext, AutomationServices
from ..core.errors import CaptureError, InputError, OcrError, WindowUnavailableError
from ..core.state import RunOutcome
from ..core.worker import RunHandle
from ..vision.preprocess import prepare_for_ocr
from .actions import (
    ClickAction,
    ClickMethod,
    DelayAction,
    MacroAction,
    MacroSettings,
    OcrSearchAction,
    TypeTextAction,
)
from .ocr_parser import matches_target, parse_ocr_result

logger = logging.getLogger(__name__)


class MacroRunner:
    """Runs MacroSettings.actions in order, looping as configured."""

    def __init__(
        self,
        settings: MacroSettings,
        services: AutomationServices,
        window_handle: Optional[int],
        handle: RunHandle,
        ocr_engine: Any = None,
    ) -> None:
        self.settings = settings
        self.services = services
        self.window_handle = window_handle
        self.handle = handle
        self.ocr = ocr_engine
        self.ctx: Optional[AutomationContext] = None

    def _fail(self, status: str) -> RunOutcome:
        self.handle.finish(RunOutcome.FAILED, status)
        return RunOutcome.FAILED

    def _load_ocr(self) -> Optional[RunOutcome]:
        needs_ocr = any(isinstance(a, OcrSearchAction) for a in self.settings.actions)
        if not needs_ocr or self.ocr is not None:
            return None
        if self.services.ocr_factory is None:
            return self._fail("OCR Engine error: no OCR engine configured")
        self.handle.set_status("Loading OCR models...")
        try:
            self.ocr = self.services.ocr_factory()
        except OcrError as e:
            logger.warning("macro: OCR engine failed to load: %s", e)
            return self._fail(f"OCR Engine error: {e}")
        return None

    def run(self) -> RunOutcome:
        try:
            self.ctx = AutomationContext(self.services, self.window_handle)
        except WindowUnavailableError as e:
            return self._fail(f"Error: {e}")

        failed = self._load_ocr()
        if failed is not None:
            return failed

        total = self.settings.iterations()
        iteration = 0
        try:
            while self.handle.is_running() and (total is None or iteration < total):
                iteration += 1
                self.handle.set_status(f"Loop {iteration}/{total}" if total is not None else f"Loop {iteration}")
                for index, action in enumerate(self.settings.actions, start=1):
                    if not self.handle.is_running():
                        break
                    ended = self._execute(index, action)
                    if ended is not None:
                        return ended
        except WindowUnavailableError as e:
            return self._fail(f"Error: {e}")

        if self.handle.is_running():
            self.handle.finish(RunOutcome.COMPLETED, "Macro completed!")
            return RunOutcome.COMPLETED
        # keep a specific stop reason (ESC, disconnect) instead of the generic one
        self.handle.finish(RunOutcome.STOPPED, None if self.handle.stop_reason() else "Stopped by user")
        return RunOutcome.STOPPED

    # ---- actions ----
    def _execute(self, index: int, action: MacroAction) -> Optional[RunOutcome]:
        """Run one action; a returned outcome ends the run."""
        if isinstance(action, ClickAction):
            self._click(index, action)
        elif isinstance(action, TypeTextAction):
            self._type_text(action)
        elif isinstance(action, DelayAction):
            self._delay(action)
        elif isinstance(action, OcrSearchAction):
            return self._ocr_search(action)
        return None

    def _click(self, index: int, action: ClickAction) -> None:
        ctx = self.ctx
        assert ctx is not None
        if action.coordinate is None:
            self.handle.set_status(f"Action {index}: Click position not set")
            return
        x, y = ctx.point_px(action.coordinate)
        self.handle.set_status(f"Clicking at ({x}, {y})")
        button = action.button.value
        if action.method is ClickMethod.ASYNC:
            ok = ctx.click_async(x, y, button)
        elif action.method is ClickMethod.MOUSE_MOVE:
            ok = ctx.click_window_point(x, y, button)
        else:
            ok = ctx.click_direct(x, y, button)
        if not ok:
            logger.warning("macro: click %d at (%d,%d) was not delivered", index, x, y)
            self.handle.set_status(f"Click Error: action {index} not delivered")

    def _type_text(self, action: TypeTextAction) -> None:
        self.handle.set_status(f"Typing: {action.text}")
        try:
            self.services.input.type_text(action.text)
        except InputError as e:
            logger.warning("macro: keyboard error: %s", e)
            self.handle.set_status(f"Keyboard error: {e}")

    def _delay(self, action: DelayAction) -> None:
        ms = int(action.milliseconds)
        self.handle.set_status(f"Waiting {ms}ms")
        if ms > 0:
            self.handle.sleep(ms / 1000.0)

    def _ocr_search(self, action: OcrSearchAction) -> Optional[RunOutcome]:
        ctx = self.ctx
        assert ctx is not None
        if self.ocr is None:
            return self._fail("OCR Error: no OCR engine loaded")
        if action.region is None:
            return self._fail("OCR Error: OCR region not set")
        rect = ctx.rect_px(action.region)
        if rect[2] <= 0 or rect[3] <= 0:
            return self._fail("OCR Error: OCR region is empty")

        try:
            frame = ctx.capture(rect)
        except CaptureError as e:
            logger.warning("macro: capture failed: %s", e)
            self.handle.set_status(f"Capture Error: {e}")
            return None
        image = prepare_for_ocr(frame, action.invert_colors, action.grayscale, action.scale_factor)
        try:
            text = self.ocr.recognize_text(image, action.decode, action.beam_width)
        except OcrError as e:
            logger.warning("macro: OCR failed: %s", e)
            self.handle.set_status(f"OCR Error: {e}")
            return None
        self.handle.publish("ocr_text", text)

        parsed = parse_ocr_result(text)
        if parsed is None:
            self.handle.set_status("Searching... (no parse)")
            return None
        stat, value = parsed
        if self._is_match(action, stat, value):
            self.handle.publish("match_found", True)
            self.handle.finish(RunOutcome.MATCHED, f"MATCH FOUND! {stat} {value}")
            return RunOutcome.MATCHED
        self.handle.set_status(f"Searching... ({stat} {value})")
        return None

    @staticmethod
    def _is_match(action: OcrSearchAction, stat: str, value: int) -> bool:
        if matches_target(stat, value, action.target_stat, action.target_value, action.comparison, action.name_match):
            return True
        return action.alt_target_enabled and matches_target(
            stat, value, action.alt_target_stat, action.alt_target_value, action.comparison, action.name_match
        )
