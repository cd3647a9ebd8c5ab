"""
Windows-specific helpers for locating the game window and polling the cursor.

Separated from the tools to keep platform IO concerns isolated and testable:
everything above this layer talks to a window system object with the same
methods, so tests can hand in a fake.
"""
from __future__ import annotations

import logging
from typing import Optional, Tuple

from ..core.coords import WindowGeometry
from ..core.win32 import utils as w32

logger = logging.getLogger(__name__)

GAME_WINDOW_CLASS = "D3D Window"
MAX_ANCESTOR_DEPTH = 10


class Win32WindowSystem:
    """Window lookup, geometry and cursor/key polling backed by user32."""

    def __init__(self, window_class: str = GAME_WINDOW_CLASS) -> None:
        self.window_class = window_class

    def find_target_window(self) -> Optional[int]:
        hwnd = w32.find_window(self.window_class)
        if hwnd:
            logger.info("win: found game window hwnd=0x%X title=%r", hwnd, w32.window_title(hwnd))
        else:
            logger.info("win: no window with class %r", self.window_class)
        return hwnd

    def is_valid(self, hwnd: Optional[int]) -> bool:
        return w32.is_window(hwnd)

    def geometry(self, hwnd: Optional[int]) -> Optional[WindowGeometry]:
        """Client area in screen coordinates, read fresh on every call."""
        if not hwnd or not w32.is_window(hwnd):
            return None
        rect = w32.client_rect_on_screen(hwnd)
        if rect is None:
            return None
        geo = WindowGeometry(*rect)
        return geo if geo.is_valid else None

    def window_title(self, hwnd: Optional[int]) -> str:
        return w32.window_title(hwnd) if hwnd else ""

    def cursor_position(self) -> Tuple[int, int]:
        return w32.cursor_pos()

    def window_under_cursor(self) -> Optional[int]:
        x, y = w32.cursor_pos()
        return w32.window_from_point(x, y)

    def is_descendant(self, hwnd: Optional[int], target: int) -> bool:
        """True when hwnd is target or one of its children (bounded walk)."""
        current = hwnd
        for _ in range(MAX_ANCESTOR_DEPTH):
            if not current:
                return False
            if current == target:
                return True
            current = w32.parent_of(current)
        return False

    def is_left_button_down(self) -> bool:
        return w32.is_key_down(w32.VK_LBUTTON)

    def is_key_down(self, vk: int) -> bool:
        return w32.is_key_down(vk)


class ScreenFeedback:
    """Rubber-band rectangle drawn in invert mode on the desktop DC."""

    def invert_rect(self, rect: Tuple[int, int, int, int]) -> None:
        left, top, width, height = rect
        w32.draw_focus_rect(left, top, width, height)
