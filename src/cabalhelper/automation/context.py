"""Per-run automation context bound to one game window.

A context is created at the start of each background run. It never caches
window geometry: every conversion reads it fresh, so the game window can be
moved or resized while a macro is running.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Tuple

import numpy as np

from ..core import coords
from ..core.coords import NormPoint, NormRect, WindowGeometry
from ..core.errors import WindowUnavailableError
from ..vision.matcher import Match, find_matches, load_template

logger = logging.getLogger(__name__)

CLICK_RETRY_DELAY = 0.05
CURSOR_SETTLE = 0.02
SCREEN_CLICK_ATTEMPTS = 2


@dataclass
class AutomationServices:
    """Everything a run needs from the outside world.

    The defaults for matching are the real OpenCV helpers; window, input,
    capture and OCR are supplied by the application (or fakes in tests).
    """

    window_system: Any
    input: Any
    capture: Any
    ocr_factory: Optional[Callable[[], Any]] = None
    find_matches: Callable[..., List[Match]] = find_matches
    load_template: Callable[[str], np.ndarray] = load_template
    sleep: Callable[[float], None] = field(default=time.sleep)


class AutomationContext:
    """Window-bound helpers used by every tool's background loop."""

    def __init__(self, services: AutomationServices, window_handle: Optional[int]) -> None:
        if not window_handle:
            raise WindowUnavailableError("no game window")
        self.services = services
        self.hwnd = window_handle
        # fail fast when the window is already gone
        self.geometry()

    # ---- geometry ----
    def geometry(self) -> WindowGeometry:
        geo = self.services.window_system.geometry(self.hwnd)
        if geo is None or not geo.is_valid:
            raise WindowUnavailableError("game window geometry unavailable")
        return geo

    def point_px(self, npoint: NormPoint) -> Tuple[int, int]:
        pt = coords.denormalize_point(self.geometry(), npoint)
        if pt is None:
            raise WindowUnavailableError("game window geometry unavailable")
        return pt

    def rect_px(self, nrect: NormRect) -> Tuple[int, int, int, int]:
        rect = coords.denormalize(self.geometry(), nrect)
        if rect is None:
            raise WindowUnavailableError("game window geometry unavailable")
        return rect

    def to_screen(self, point: Tuple[int, int]) -> Tuple[int, int]:
        return coords.to_screen(self.geometry(), point)

    # ---- clicks ----
    def click_direct(self, x: int, y: int, button: str = "left") -> bool:
        """Synchronous message click at client (x, y); one retry after 50 ms."""
        inp = self.services.input
        if inp.click(self.hwnd, x, y, button):
            return True
        self.services.sleep(CLICK_RETRY_DELAY)
        ok = inp.click(self.hwnd, x, y, button)
        if not ok:
            logger.warning("context: direct click at (%d,%d) failed twice", x, y)
        return ok

    def click_async(self, x: int, y: int, button: str = "left") -> bool:
        return self.services.input.post_click(self.hwnd, x, y, button)

    def click_at_screen(self, sx: int, sy: int, button: str = "left") -> bool:
        """Move the real cursor and click; two attempts, 50 ms apart."""
        for attempt in range(SCREEN_CLICK_ATTEMPTS):
            if self.services.input.move_cursor_and_click(sx, sy, button, settle=CURSOR_SETTLE):
                return True
            if attempt + 1 < SCREEN_CLICK_ATTEMPTS:
                self.services.sleep(CLICK_RETRY_DELAY)
        logger.warning("context: cursor click at screen (%d,%d) failed", sx, sy)
        return False

    def click_window_point(self, x: int, y: int, button: str = "left") -> bool:
        """Cursor click at a client point (converted to screen coordinates now)."""
        sx, sy = self.to_screen((x, y))
        return self.click_at_screen(sx, sy, button)

    def scroll_in_area(self, rect: Tuple[int, int, int, int], amount: int) -> bool:
        """Wheel `amount` notches over the centre of a client rect (negative = down)."""
        left, top, width, height = rect
        sx, sy = self.to_screen((left + width // 2, top + height // 2))
        return self.services.input.scroll(sx, sy, amount)

    # ---- vision ----
    def capture(self, rect: Tuple[int, int, int, int]) -> np.ndarray:
        return self.services.capture.capture_region(self.geometry(), rect)

    def find_in_region(
        self,
        rect: Tuple[int, int, int, int],
        template: np.ndarray,
        threshold: float,
    ) -> Tuple[np.ndarray, List[Match]]:
        """Capture `rect` and return (frame, matches in client coordinates)."""
        frame = self.capture(rect)
        hits = self.services.find_matches(frame, template, threshold)
        left, top = rect[0], rect[1]
        return frame, [Match(m.x + left, m.y + top, m.confidence) for m in hits]
