"""Window-relative coordinate helpers.

Calibrated positions are stored as fractions of the game's client area so
they survive window moves and resizes. Every conversion takes the geometry
read at that moment; nothing here caches it.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Tuple

Point = Tuple[int, int]
Rect = Tuple[int, int, int, int]
NormPoint = Tuple[float, float]
NormRect = Tuple[float, float, float, float]


@dataclass(frozen=True)
class WindowGeometry:
    """Client area of the target window in screen coordinates."""

    origin_x: int
    origin_y: int
    width: int
    height: int

    @property
    def is_valid(self) -> bool:
        return self.width > 0 and self.height > 0


def _round(value: float) -> int:
    # half-up so 0.5 px always lands on the same side
    return int(math.floor(value + 0.5))


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


def to_screen(geometry: WindowGeometry, point: Point) -> Point:
    return (geometry.origin_x + int(point[0]), geometry.origin_y + int(point[1]))


def to_window_relative(geometry: Optional[WindowGeometry], screen_point: Point) -> Optional[Point]:
    if geometry is None:
        return None
    return (int(screen_point[0]) - geometry.origin_x, int(screen_point[1]) - geometry.origin_y)


def contains(geometry: Optional[WindowGeometry], screen_point: Point) -> bool:
    """True when the screen point falls inside the client area."""
    if geometry is None or not geometry.is_valid:
        return False
    x, y = screen_point
    return (
        geometry.origin_x <= x < geometry.origin_x + geometry.width
        and geometry.origin_y <= y < geometry.origin_y + geometry.height
    )


def normalize(geometry: Optional[WindowGeometry], rect: Rect) -> Optional[NormRect]:
    """Convert a client-relative pixel rect to fractions of the client size.

    Each component is clamped to [0, 1]. Returns None for missing or empty geometry.
    """
    if geometry is None or not geometry.is_valid:
        return None
    w = float(geometry.width)
    h = float(geometry.height)
    left, top, width, height = rect
    return (
        _clamp01(left / w),
        _clamp01(top / h),
        _clamp01(width / w),
        _clamp01(height / h),
    )


def denormalize(geometry: Optional[WindowGeometry], nrect: NormRect) -> Optional[Rect]:
    """Convert fractions back to pixels against the current client size.

    Width and height are shrunk so the rect never extends past the client
    edge; the origin is never moved.
    """
    if geometry is None or not geometry.is_valid:
        return None
    fx, fy, fw, fh = nrect
    left = _round(fx * geometry.width)
    top = _round(fy * geometry.height)
    width = _round(fw * geometry.width)
    height = _round(fh * geometry.height)
    left = max(0, min(left, geometry.width))
    top = max(0, min(top, geometry.height))
    width = max(0, min(width, geometry.width - left))
    height = max(0, min(height, geometry.height - top))
    return (left, top, width, height)


def normalize_point(geometry: Optional[WindowGeometry], point: Point) -> Optional[NormPoint]:
    if geometry is None or not geometry.is_valid:
        return None
    span_x = float(max(1, geometry.width - 1))
    span_y = float(max(1, geometry.height - 1))
    return (_clamp01(point[0] / span_x), _clamp01(point[1] / span_y))


def denormalize_point(geometry: Optional[WindowGeometry], npoint: NormPoint) -> Optional[Point]:
    """Scale by (size - 1) so a stored 1.0 maps onto the last pixel, not past it."""
    if geometry is None or not geometry.is_valid:
        return None
    fx, fy = npoint
    x = _round(_clamp01(fx) * (geometry.width - 1))
    y = _round(_clamp01(fy) * (geometry.height - 1))
    return (x, y)
