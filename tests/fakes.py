"""In-memory stand-ins for the window system, input, capture and worker handle."""

from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from cabalhelper.core import coords
from cabalhelper.core.coords import WindowGeometry
from cabalhelper.vision.matcher import Match

HWND = 0x1234


class FakeWindowSystem:
    def __init__(self, geometry=WindowGeometry(100, 50, 800, 600), hwnd=HWND):
        self.hwnd = hwnd
        self.geo = geometry
        self.valid = True
        self.cursor = (0, 0)
        self.button_down = False
        self.under_cursor: Optional[int] = None
        self.keys_down = set()

    def find_target_window(self):
        return self.hwnd if self.valid else None

    def is_valid(self, hwnd):
        return self.valid and hwnd == self.hwnd

    def geometry(self, hwnd):
        if not self.is_valid(hwnd):
            return None
        return self.geo

    def window_title(self, hwnd):
        return "CABAL" if self.is_valid(hwnd) else ""

    def cursor_position(self):
        return self.cursor

    def window_under_cursor(self):
        return self.under_cursor

    def is_descendant(self, hwnd, target):
        return hwnd is not None and hwnd == target

    def is_left_button_down(self):
        return self.button_down

    def is_key_down(self, vk):
        return vk in self.keys_down


class FakeInput:
    def __init__(self, click_results: Sequence[bool] = (), type_error: Optional[Exception] = None):
        self.clicks: List[Tuple] = []
        self.post_clicks: List[Tuple] = []
        self.cursor_clicks: List[Tuple] = []
        self.scrolls: List[Tuple] = []
        self.typed: List[str] = []
        self._click_results = list(click_results)
        self.type_error = type_error

    def click(self, hwnd, x, y, button="left"):
        self.clicks.append((hwnd, x, y, button))
        return self._click_results.pop(0) if self._click_results else True

    def post_click(self, hwnd, x, y, button="left"):
        self.post_clicks.append((hwnd, x, y, button))
        return True

    def move_cursor_and_click(self, x, y, button="left", settle=0.02):
        self.cursor_clicks.append((x, y, button))
        return True

    def scroll(self, x, y, amount):
        self.scrolls.append((x, y, amount))
        return True

    def type_text(self, text):
        if self.type_error is not None:
            raise self.type_error
        self.typed.append(text)


class FakeCapture:
    """Returns black frames with one pure-red pixel per scripted dot.

    `scripts` maps a normalized area to a callable returning the dots (client
    coordinates) currently visible in it.
    """

    def __init__(self, scripts: Optional[Dict[tuple, Callable[[], List[Tuple[int, int]]]]] = None):
        self.scripts = scripts or {}
        self.rects: List[Tuple[int, int, int, int]] = []

    def capture_region(self, geometry, rect):
        self.rects.append(rect)
        left, top, width, height = rect
        frame = np.zeros((max(1, height), max(1, width), 3), dtype=np.uint8)
        for nrect, script in self.scripts.items():
            if coords.denormalize(geometry, nrect) != tuple(rect):
                continue
            for x, y in script():
                frame[y - top, x - left] = (0, 0, 255)
        return frame


def red_pixel_matches(image, template, threshold, max_results=None):
    ys, xs = np.where(image[:, :, 2] == 255)
    return [Match(int(x), int(y), 1.0) for x, y in zip(xs, ys)]


def sequence(*frames):
    """Script that returns each frame in turn, then repeats the last one."""
    items = list(frames)

    def script():
        return items.pop(0) if len(items) > 1 else items[0]

    return script


class FakeHandle:
    """RunHandle stand-in driven synchronously from a test."""

    def __init__(self, running: bool = True, stop_reason: Optional[str] = None):
        self.running = running
        self.reason = stop_reason
        self.statuses: List[str] = []
        self.extras: Dict[str, object] = {}
        self.sleeps: List[float] = []
        self.outcome = None
        self.generation = 1

    def is_running(self):
        return self.running

    def set_status(self, text):
        self.statuses.append(text)

    def status(self):
        return self.statuses[-1] if self.statuses else "Ready"

    def stop_reason(self):
        return self.reason

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        return self.running

    def publish(self, key, value):
        self.extras[key] = value

    def finish(self, outcome, status=None):
        self.outcome = outcome
        self.running = False
        if status:
            self.statuses.append(status)
