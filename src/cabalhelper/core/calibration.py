"""Calibration state machine.

Turns polled mouse state into a point or an area relative to the game's
client area. The UI calls update() once per tick; nothing here blocks.

Area gestures are press-drag-release: the press anchors one corner, the
live rectangle follows the cursor while the button is held, and the release
commits it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol, Tuple, Union, runtime_checkable

from .coords import WindowGeometry, contains, to_screen, to_window_relative

logger = logging.getLogger(__name__)


class CalibrationMode(Enum):
    POINT = "point"
    AREA = "area"


class CalibrationPhase(Enum):
    IDLE = "idle"
    ARMED = "armed"
    DRAGGING = "dragging"


@dataclass(frozen=True)
class PointResult:
    x: int
    y: int


@dataclass(frozen=True)
class AreaResult:
    left: int
    top: int
    width: int
    height: int

    @property
    def is_degenerate(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def as_rect(self) -> Tuple[int, int, int, int]:
        return (self.left, self.top, self.width, self.height)


CalibrationResult = Union[PointResult, AreaResult]


@runtime_checkable
class CursorSource(Protocol):
    def geometry(self, hwnd: Optional[int]) -> Optional[WindowGeometry]: ...
    def cursor_position(self) -> Tuple[int, int]: ...
    def window_under_cursor(self) -> Optional[int]: ...
    def is_descendant(self, hwnd: Optional[int], target: int) -> bool: ...
    def is_left_button_down(self) -> bool: ...


@runtime_checkable
class FeedbackDrawer(Protocol):
    def invert_rect(self, rect: Tuple[int, int, int, int]) -> None: ...


class CalibrationStateMachine:
    """One calibration gesture at a time, driven by update()."""

    def __init__(self, window_system: CursorSource, feedback: Optional[FeedbackDrawer] = None) -> None:
        self.window_system = window_system
        self.feedback = feedback
        self.mode: Optional[CalibrationMode] = None
        self.phase = CalibrationPhase.IDLE
        self.drag_start: Optional[Tuple[int, int]] = None
        self.last_pos: Optional[Tuple[int, int]] = None
        self._last_down = False
        self._pressed_outside = False
        self._drawn: Optional[Tuple[int, int, int, int]] = None

    # ---- control ----
    def start_point(self) -> None:
        self._arm(CalibrationMode.POINT)

    def start_area(self) -> None:
        self._arm(CalibrationMode.AREA)

    def cancel(self) -> None:
        if self.phase is not CalibrationPhase.IDLE:
            logger.info("calibration: cancelled (%s)", self.mode.value if self.mode else "-")
        self._reset()

    def is_active(self) -> bool:
        return self.phase is not CalibrationPhase.IDLE

    def is_dragging(self) -> bool:
        return self.phase is CalibrationPhase.DRAGGING

    def _arm(self, mode: CalibrationMode) -> None:
        self._reset()
        self.mode = mode
        self.phase = CalibrationPhase.ARMED
        # a button already held while arming has to be released first
        self._last_down = True
        logger.info("calibration: armed for %s", mode.value)

    def _reset(self) -> None:
        self._erase_feedback()
        self.mode = None
        self.phase = CalibrationPhase.IDLE
        self.drag_start = None
        self.last_pos = None
        self._pressed_outside = False

    # ---- feedback ----
    def _erase_feedback(self) -> None:
        if self._drawn is not None and self.feedback is not None:
            self.feedback.invert_rect(self._drawn)
        self._drawn = None

    def _draw_feedback(self, rect: Tuple[int, int, int, int]) -> None:
        if self.feedback is None:
            return
        self._erase_feedback()
        if rect[2] > 0 and rect[3] > 0:
            self.feedback.invert_rect(rect)
            self._drawn = rect

    # ---- polling ----
    def _cursor_in_target(self, hwnd: int, geometry: Optional[WindowGeometry], screen_pos: Tuple[int, int]) -> bool:
        if contains(geometry, screen_pos):
            return True
        return self.window_system.is_descendant(self.window_system.window_under_cursor(), hwnd)

    def update(self, window_handle: Optional[int]) -> Optional[CalibrationResult]:
        """Advance the gesture by one tick; returns a result when one completes."""
        if self.phase is CalibrationPhase.IDLE or not window_handle:
            return None

        down = bool(self.window_system.is_left_button_down())
        pressed = down and not self._last_down
        released = self._last_down and not down
        self._last_down = down

        geometry = self.window_system.geometry(window_handle)
        screen_pos = self.window_system.cursor_position()
        inside = geometry is not None and self._cursor_in_target(window_handle, geometry, screen_pos)
        rel = to_window_relative(geometry, screen_pos) if inside else None

        if self.phase is CalibrationPhase.ARMED:
            return self._update_armed(pressed, released, rel)
        return self._update_dragging(down, released, geometry, rel)

    def _update_armed(self, pressed: bool, released: bool, rel: Optional[Tuple[int, int]]) -> Optional[CalibrationResult]:
        if pressed and rel is not None:
            if self.mode is CalibrationMode.POINT:
                result = PointResult(rel[0], rel[1])
                logger.info("calibration: point recorded at %s", rel)
                self._reset()
                return result
            self.drag_start = rel
            self.last_pos = rel
            self.phase = CalibrationPhase.DRAGGING
            logger.debug("calibration: drag started at %s", rel)
            return None
        if pressed and self.mode is CalibrationMode.AREA:
            self._pressed_outside = True
        elif released and self._pressed_outside:
            # the press landed outside the window; the gesture is abandoned
            logger.debug("calibration: release without an anchored press; resetting")
            self._reset()
        return None

    def _update_dragging(
        self,
        down: bool,
        released: bool,
        geometry: Optional[WindowGeometry],
        rel: Optional[Tuple[int, int]],
    ) -> Optional[CalibrationResult]:
        if rel is not None:
            self.last_pos = rel
        start = self.drag_start
        last = self.last_pos or start
        if start is None or last is None:
            self._reset()
            return None
        left, top = min(start[0], last[0]), min(start[1], last[1])
        width, height = abs(last[0] - start[0]), abs(last[1] - start[1])

        if down and not released:
            if geometry is not None:
                sx, sy = to_screen(geometry, (left, top))
                self._draw_feedback((sx, sy, width, height))
            return None

        result = AreaResult(left, top, width, height)
        logger.info("calibration: area recorded %s", result.as_rect())
        self._reset()
        return result
