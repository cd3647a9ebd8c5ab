"""Windows helper utilities used across CabalHelper.

This module centralizes the raw user32 calls so other modules remain
small and focused. On non-Windows platforms the entry points resolve to None
and every helper returns a neutral fallback, which keeps the rest of the
package importable (and testable) anywhere.
"""
from __future__ import annotations

import ctypes
import sys
from typing import TYPE_CHECKING, Any, Optional, Tuple

if TYPE_CHECKING:
    from ctypes import wintypes
    user32: Any
    POINT: Any
    RECT: Any
elif sys.platform == "win32":
    from ctypes import wintypes
    user32 = ctypes.windll.user32

    class POINT(ctypes.Structure):
        _fields_ = [("x", ctypes.c_long), ("y", ctypes.c_long)]

    class RECT(ctypes.Structure):
        _fields_ = [("left", ctypes.c_long), ("top", ctypes.c_long), ("right", ctypes.c_long), ("bottom", ctypes.c_long)]

    user32.WindowFromPoint.argtypes = [POINT]
    user32.WindowFromPoint.restype = wintypes.HWND
    user32.GetAncestor.restype = wintypes.HWND
    user32.FindWindowW.restype = wintypes.HWND
else:  # pragma: no cover - non-Windows fallback
    wintypes = None
    user32 = None
    POINT = object
    RECT = object

# Window messages
WM_LBUTTONDOWN = 0x0201
WM_LBUTTONUP = 0x0202
WM_RBUTTONDOWN = 0x0204
WM_RBUTTONUP = 0x0205
MK_LBUTTON = 0x0001
MK_RBUTTON = 0x0002

# mouse_event flags
MOUSEEVENTF_WHEEL = 0x0800
WHEEL_DELTA = 120

GA_PARENT = 1
VK_LBUTTON = 0x01


def make_lparam(x: int, y: int) -> int:
    """Pack client coordinates the way mouse window messages expect them."""
    return ((int(y) & 0xFFFF) << 16) | (int(x) & 0xFFFF)


def find_window(class_name: str, title: Optional[str] = None) -> Optional[int]:
    if user32 is None:
        return None
    hwnd = user32.FindWindowW(class_name, title)
    return int(hwnd) if hwnd else None


def is_window(hwnd: Optional[int]) -> bool:
    if user32 is None or not hwnd:
        return False
    return bool(user32.IsWindow(wintypes.HWND(hwnd)))


def client_rect_on_screen(hwnd: int) -> Optional[Tuple[int, int, int, int]]:
    """Return (origin_x, origin_y, width, height) of the client area, or None."""
    if user32 is None or not hwnd:
        return None
    rc = RECT()
    if not user32.GetClientRect(wintypes.HWND(hwnd), ctypes.byref(rc)):
        return None
    pt = POINT(0, 0)
    if not user32.ClientToScreen(wintypes.HWND(hwnd), ctypes.byref(pt)):
        return None
    return int(pt.x), int(pt.y), int(rc.right - rc.left), int(rc.bottom - rc.top)


def window_title(hwnd: int) -> str:
    if user32 is None or not hwnd:
        return ""
    length = user32.GetWindowTextLengthW(wintypes.HWND(hwnd))
    if length <= 0:
        return ""
    buf = ctypes.create_unicode_buffer(length + 1)
    user32.GetWindowTextW(wintypes.HWND(hwnd), buf, length + 1)
    return buf.value or ""


def cursor_pos() -> Tuple[int, int]:
    """Return current cursor position in screen coordinates."""
    if user32 is None:
        return (0, 0)
    pt = POINT()
    user32.GetCursorPos(ctypes.byref(pt))
    return int(pt.x), int(pt.y)


def window_from_point(x: int, y: int) -> Optional[int]:
    if user32 is None:
        return None
    hwnd = user32.WindowFromPoint(POINT(int(x), int(y)))
    return int(hwnd) if hwnd else None


def parent_of(hwnd: int) -> Optional[int]:
    if user32 is None or not hwnd:
        return None
    parent = user32.GetAncestor(wintypes.HWND(hwnd), GA_PARENT)
    return int(parent) if parent else None


def is_key_down(vk: int) -> bool:
    """Process-wide key state via GetAsyncKeyState (high bit)."""
    if user32 is None:
        return False
    return bool(user32.GetAsyncKeyState(int(vk)) & 0x8000)


def send_message(hwnd: int, msg: int, wparam: int, lparam: int) -> bool:
    """Synchronous SendMessageW. Returns False when the window is gone."""
    if user32 is None or not is_window(hwnd):
        return False
    user32.SendMessageW(wintypes.HWND(hwnd), msg, wintypes.WPARAM(wparam), wintypes.LPARAM(lparam))
    return True


def post_message(hwnd: int, msg: int, wparam: int, lparam: int) -> bool:
    if user32 is None or not hwnd:
        return False
    return bool(user32.PostMessageW(wintypes.HWND(hwnd), msg, wintypes.WPARAM(wparam), wintypes.LPARAM(lparam)))


def set_cursor_pos(x: int, y: int) -> bool:
    if user32 is None:
        return False
    return bool(user32.SetCursorPos(int(x), int(y)))


def mouse_wheel(amount: int) -> None:
    """Scroll the wheel under the cursor; positive is up, one unit per notch."""
    if user32 is None:
        return
    user32.mouse_event(MOUSEEVENTF_WHEEL, 0, 0, ctypes.c_ulong(int(amount) * WHEEL_DELTA & 0xFFFFFFFF), 0)


def draw_focus_rect(left: int, top: int, width: int, height: int) -> None:
    """XOR a dotted rectangle on the screen DC; drawing it again erases it."""
    if user32 is None or width <= 0 or height <= 0:
        return
    hdc = user32.GetDC(None)
    if not hdc:
        return
    try:
        rc = RECT(int(left), int(top), int(left + width), int(top + height))
        user32.DrawFocusRect(hdc, ctypes.byref(rc))
    finally:
        user32.ReleaseDC(None, hdc)
