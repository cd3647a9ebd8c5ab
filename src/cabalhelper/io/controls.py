"""Control System Module
Handles all input injection for the game window.

Two delivery paths exist. Window messages (SendMessage / PostMessage) click
at client coordinates without touching the real cursor; pydirectinput moves
the real cursor and clicks or types through SendInput.
"""
from __future__ import annotations

import logging
import sys
import time

from ..core.errors import InputError
from ..core.win32 import utils as w32

if sys.platform == "win32":
    import pydirectinput
else:  # pragma: no cover - platform dependent
    pydirectinput = None

logger = logging.getLogger(__name__)

_BUTTON_MESSAGES = {
    "left": (w32.WM_LBUTTONDOWN, w32.WM_LBUTTONUP, w32.MK_LBUTTON),
    "right": (w32.WM_RBUTTONDOWN, w32.WM_RBUTTONUP, w32.MK_RBUTTON),
}


class InputController:
    """Main class for mouse and keyboard injection."""

    def __init__(self) -> None:
        # Configure pydirectinput for immediate actions and no edge failsafe
        if pydirectinput is not None:
            pydirectinput.FAILSAFE = False
            pydirectinput.PAUSE = 0.0

    @staticmethod
    def _sleep(seconds: float) -> None:
        if seconds > 0:
            time.sleep(seconds)

    @staticmethod
    def _messages_for(button: str) -> tuple[int, int, int]:
        try:
            return _BUTTON_MESSAGES[(button or "left").lower()]
        except KeyError:
            raise InputError(f"unsupported button: {button}") from None

    # ---- window-message clicks (cursor untouched) ----
    def click(self, hwnd: int, x: int, y: int, button: str = "left") -> bool:
        """Synchronous down/up pair at client (x, y). False when delivery failed."""
        down, up, mk = self._messages_for(button)
        lparam = w32.make_lparam(x, y)
        if not w32.send_message(hwnd, down, mk, lparam):
            logger.debug("input: SendMessage down failed hwnd=%s at (%d,%d)", hwnd, x, y)
            return False
        ok = w32.send_message(hwnd, up, 0, lparam)
        logger.debug("input: direct %s click at (%d,%d) ok=%s", button, x, y, ok)
        return ok

    def post_click(self, hwnd: int, x: int, y: int, button: str = "left") -> bool:
        """Queued down/up pair at client (x, y); returns once posted."""
        down, up, mk = self._messages_for(button)
        lparam = w32.make_lparam(x, y)
        ok = w32.post_message(hwnd, down, mk, lparam) and w32.post_message(hwnd, up, 0, lparam)
        logger.debug("input: posted %s click at (%d,%d) ok=%s", button, x, y, ok)
        return ok

    # ---- real cursor ----
    def move_cursor(self, x: int, y: int) -> bool:
        if pydirectinput is not None:
            try:
                pydirectinput.moveTo(int(x), int(y))
                return True
            except Exception as exc:
                logger.warning("input: moveTo failed (%s); trying SetCursorPos", exc)
        return w32.set_cursor_pos(int(x), int(y))

    def move_cursor_and_click(self, x: int, y: int, button: str = "left", settle: float = 0.02) -> bool:
        """Move the real cursor to screen (x, y), let it settle, then click."""
        self._messages_for(button)
        if pydirectinput is None:
            return False
        if not self.move_cursor(x, y):
            return False
        self._sleep(settle)
        try:
            pydirectinput.click(button=button)
        except Exception as exc:
            logger.warning("input: click at (%d,%d) failed: %s", x, y, exc)
            return False
        return True

    def scroll(self, x: int, y: int, amount: int) -> bool:
        """Wheel notches at screen (x, y); negative scrolls down."""
        if not self.move_cursor(x, y):
            return False
        self._sleep(0.02)
        w32.mouse_wheel(amount)
        return True

    # ---- keyboard ----
    def type_text(self, text: str) -> None:
        if pydirectinput is None:
            raise InputError("keyboard injection is only available on Windows")
        try:
            pydirectinput.write(text)
        except Exception as exc:
            raise InputError(str(exc)) from exc

