"""Image clicker: click a template image whenever it appears."""
from __future__ import annotations

import copy
import logging

from ..automation.context import AutomationContext, AutomationServices
from ..core.calibration import CalibrationMode
from ..core.errors import CaptureError, TemplateError, WindowUnavailableError
from ..core.state import RunOutcome
from ..core.worker import RunHandle, Task
from ..settings import ImageClickerSettings
from .base import CalibrationTarget, Tool

logger = logging.getLogger(__name__)

CLICK_COOLDOWN = 0.5


def run_image_clicker(settings: ImageClickerSettings, services: AutomationServices, window_handle: int,
                      handle: RunHandle) -> RunOutcome:
    try:
        template = services.load_template(settings.image_path)
    except TemplateError as e:
        handle.finish(RunOutcome.FAILED, f"Image Error: {e}")
        return RunOutcome.FAILED
    try:
        ctx = AutomationContext(services, window_handle)
    except WindowUnavailableError as e:
        handle.finish(RunOutcome.FAILED, f"Error: {e}")
        return RunOutcome.FAILED

    interval = max(1, settings.interval_ms) / 1000.0
    try:
        while handle.is_running():
            if settings.search_region is not None:
                rect = ctx.rect_px(settings.search_region)
            else:
                geo = ctx.geometry()
                rect = (0, 0, geo.width, geo.height)
            try:
                _, hits = ctx.find_in_region(rect, template, settings.tolerance)
            except CaptureError as e:
                handle.set_status(f"Capture Error: {e}")
                handle.sleep(interval)
                continue
            if hits:
                m = hits[0]
                handle.set_status(f"Found at ({m.x}, {m.y}), clicking...")
                ctx.click_direct(m.x, m.y)
                handle.sleep(CLICK_COOLDOWN)
            else:
                handle.set_status("Searching...")
            handle.sleep(interval)
    except WindowUnavailableError as e:
        handle.finish(RunOutcome.FAILED, f"Error: {e}")
        return RunOutcome.FAILED

    handle.finish(RunOutcome.STOPPED, None if handle.stop_reason() else "Stopped")
    return RunOutcome.STOPPED


class ImageClickerTool(Tool):
    kind = "image_clicker"

    @property
    def name(self) -> str:
        return "Image Clicker"

    @property
    def settings(self) -> ImageClickerSettings:
        return self.store.settings.image_clicker

    def calibration_targets(self):
        return {"search_region": CalibrationTarget("search region", CalibrationMode.AREA)}

    def _store_calibration(self, key, value) -> None:
        self.settings.search_region = value

    def make_task(self, window_handle: int) -> Task:
        settings = copy.deepcopy(self.settings)
        return lambda handle: run_image_clicker(settings, self.services, window_handle, handle)
