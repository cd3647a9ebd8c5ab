"""Collection filler: register every collectable item marked with a red dot.

The game marks unfinished collection entries with a red dot at three
levels: the tab strip, the dungeon list of the selected tab, and the item
list of the selected dungeon. The run walks them top-down and, for every
marked item, presses auto-refill, register and the confirmation button.

The client updates asynchronously, so a dot can survive the click that
should have cleared it, or reappear after a scroll. Two rules keep the loop
honest: visible items are processed twice before scrolling, and a dot that
keeps coming back at the same spot is skipped after three sightings.
"""
from __future__ import annotations

import copy
import logging
from typing import List, Optional, Tuple

from ..automation.context import AutomationContext, AutomationServices
from ..automation.detection import any_near, filter_red_dots, is_position_near
from ..core.calibration import CalibrationMode
from ..core.errors import CaptureError, TemplateError, WindowUnavailableError
from ..core.state import RunOutcome
from ..core.worker import RunHandle, Task
from ..settings import CollectionFillerSettings
from ..vision.matcher import Match
from .base import CalibrationTarget, Tool

logger = logging.getLogger(__name__)

TAB_RADIUS = 20
DUNGEON_RADIUS = 20
STUCK_RADIUS = 5
STUCK_LIMIT = 3
MAX_SCROLL_PASSES = 50
MAX_EMPTY_SWEEPS = 2
LAST_PAGE = 4
CAPTURE_RETRY_DELAY = 0.1


class CollectionFillerRun:
    """One background pass over the collection window."""

    def __init__(self, settings: CollectionFillerSettings, services: AutomationServices,
                 window_handle: int, handle: RunHandle) -> None:
        self.settings = settings
        self.services = services
        self.window_handle = window_handle
        self.handle = handle
        self.ctx: Optional[AutomationContext] = None
        self.template = None

    # ---- plumbing ----
    def _running(self) -> bool:
        return self.handle.is_running()

    def _pause(self) -> bool:
        return self.handle.sleep(self.settings.delay_ms / 1000.0)

    def _click(self, pos: Tuple[int, int]) -> None:
        assert self.ctx is not None
        self.ctx.click_window_point(pos[0], pos[1])
        self._pause()

    def _click_button(self, npoint) -> None:
        assert self.ctx is not None
        self._click(self.ctx.point_px(npoint))

    def find_dots(self, area: str) -> List[Match]:
        """Red dots inside a calibrated area, topmost first, in client coordinates."""
        assert self.ctx is not None
        rect = self.ctx.rect_px(getattr(self.settings, area))
        try:
            frame, hits = self.ctx.find_in_region(rect, self.template, self.settings.red_dot_tolerance)
        except CaptureError as e:
            logger.warning("collection: capture of %s failed (%s); retrying once", area, e)
            self.handle.sleep(CAPTURE_RETRY_DELAY)
            frame, hits = self.ctx.find_in_region(rect, self.template, self.settings.red_dot_tolerance)
        dots = filter_red_dots(frame, hits, (rect[0], rect[1]), self.settings.min_red, self.settings.red_dominance)
        dots.sort(key=lambda m: (m.y, m.x))
        return dots

    # ---- main loop ----
    def run(self) -> RunOutcome:
        try:
            self.template = self.services.load_template(self.settings.red_dot_path)
        except TemplateError as e:
            return self._finish(RunOutcome.FAILED, f"Template Error: {e}")
        try:
            self.ctx = AutomationContext(self.services, self.window_handle)
            while self._running():
                tabs = self.find_dots("tabs_area")
                if not tabs:
                    return self._finish(RunOutcome.COMPLETED, "All collections complete!")
                tab = (tabs[0].x, tabs[0].y)
                self.handle.set_status("Found tab, clicking...")
                self._click(tab)
                self.process_dungeon_list(tab)
        except WindowUnavailableError as e:
            return self._finish(RunOutcome.FAILED, f"Error: {e}")
        except CaptureError as e:
            return self._finish(RunOutcome.FAILED, f"Capture Error: {e}")
        return self._finish(RunOutcome.STOPPED, None if self.handle.stop_reason() else "Stopped by user")

    def _finish(self, outcome: RunOutcome, status: Optional[str]) -> RunOutcome:
        self.handle.finish(outcome, status)
        return outcome

    def _page_button(self, page: int):
        if page < 2 or page > LAST_PAGE:
            return None
        return getattr(self.settings, f"page_{page}")

    def process_dungeon_list(self, tab_pos: Tuple[int, int]) -> None:
        """Sweep pages 1-4 of the dungeon list until two sweeps come up empty."""
        page = 1
        empty_sweeps = 0
        while self._running():
            self.handle.set_status(f"Processing page {page}")
            if self.process_page():
                page = 1
                empty_sweeps = 0
            else:
                next_button = self._page_button(page + 1)
                if page < LAST_PAGE and next_button is not None:
                    page += 1
                    self._click_button(next_button)
                else:
                    if self.settings.arrow_right is None:
                        return
                    self._click_button(self.settings.arrow_right)
                    page = 1
                    empty_sweeps += 1
                    if empty_sweeps >= MAX_EMPTY_SWEEPS:
                        return
            if not self._running():
                return
            if not any_near(self.find_dots("tabs_area"), tab_pos, TAB_RADIUS):
                logger.info("collection: tab at %s is done", tab_pos)
                return

    def process_page(self) -> bool:
        """Handle marked dungeons on the visible page. True when any was found.

        The list is captured again after every dungeon and the topmost dot is
        taken, so positions from an earlier capture are never clicked.
        """
        found = False
        last: Optional[Tuple[int, int]] = None
        streak = 0
        while self._running():
            dungeons = self.find_dots("dungeon_area")
            if not dungeons:
                break
            found = True
            pos = (dungeons[0].x, dungeons[0].y)
            streak = streak + 1 if is_position_near(pos, last, STUCK_RADIUS) else 1
            last = pos
            if streak >= STUCK_LIMIT:
                self.handle.set_status("Stuck on dungeon, skipping page")
                return False
            self.handle.set_status("Processing dungeon...")
            self._click(pos)
            self.process_dungeon(pos)
        return found

    def process_dungeon(self, dungeon_pos: Tuple[int, int]) -> None:
        assert self.ctx is not None
        items_rect = self.ctx.rect_px(self.settings.items_area)
        for _ in range(MAX_SCROLL_PASSES):
            if not self._running():
                return
            self.process_visible_items()
            # markers can reappear while the client catches up
            self.process_visible_items()
            if not self._running():
                return
            if not any_near(self.find_dots("dungeon_area"), dungeon_pos, DUNGEON_RADIUS):
                return
            self.ctx.scroll_in_area(items_rect, -1)
            self._pause()
        self.handle.set_status("Dungeon timeout/stuck, scanning list again...")

    def process_visible_items(self) -> int:
        """Register marked items until none are visible; returns items clicked."""
        clicked = 0
        last: Optional[Tuple[int, int]] = None
        streak = 0
        while self._running():
            items = self.find_dots("items_area")
            if not items:
                break
            pos = (items[0].x, items[0].y)
            streak = streak + 1 if is_position_near(pos, last, STUCK_RADIUS) else 1
            last = pos
            if streak >= STUCK_LIMIT:
                self.handle.set_status("Stuck on item, skipping")
                break
            self._click(pos)
            for button in (self.settings.auto_refill, self.settings.register, self.settings.yes):
                if not self._running():
                    break
                self._click_button(button)
            clicked += 1
        return clicked


class CollectionFillerTool(Tool):
    kind = "collection_filler"

    _TARGETS = {
        "tabs_area": CalibrationTarget("tabs area", CalibrationMode.AREA),
        "dungeon_area": CalibrationTarget("dungeon list area", CalibrationMode.AREA),
        "items_area": CalibrationTarget("items list area", CalibrationMode.AREA),
        "auto_refill": CalibrationTarget("Auto Refill button", CalibrationMode.POINT),
        "register": CalibrationTarget("Register button", CalibrationMode.POINT),
        "yes": CalibrationTarget("Yes button", CalibrationMode.POINT),
        "page_2": CalibrationTarget("page 2 button", CalibrationMode.POINT),
        "page_3": CalibrationTarget("page 3 button", CalibrationMode.POINT),
        "page_4": CalibrationTarget("page 4 button", CalibrationMode.POINT),
        "arrow_right": CalibrationTarget("next pages arrow", CalibrationMode.POINT),
    }

    @property
    def name(self) -> str:
        return "Collection Filler"

    @property
    def settings(self) -> CollectionFillerSettings:
        return self.store.settings.collection_filler

    def calibration_targets(self):
        return dict(self._TARGETS)

    def _store_calibration(self, key, value) -> None:
        setattr(self.settings, key, value)

    def validate(self) -> Optional[str]:
        if self.settings.missing_required():
            return "Please calibrate all required items first"
        return None

    def make_task(self, window_handle: int) -> Task:
        settings = copy.deepcopy(self.settings)
        return lambda handle: CollectionFillerRun(settings, self.services, window_handle, handle).run()
