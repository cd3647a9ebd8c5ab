"""Marker detection helpers shared by the scanning tools."""
from __future__ import annotations

import math
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..vision.matcher import Match
from ..vision.preprocess import red_dominant


def is_position_near(a: Optional[Tuple[int, int]], b: Optional[Tuple[int, int]], threshold: float) -> bool:
    """Euclidean distance between two points is within `threshold`."""
    if a is None or b is None:
        return False
    return math.hypot(a[0] - b[0], a[1] - b[1]) <= threshold


def any_near(matches: Sequence[Match], point: Tuple[int, int], threshold: float) -> bool:
    return any(is_position_near((m.x, m.y), point, threshold) for m in matches)


def filter_red_dots(
    frame: np.ndarray,
    matches: Sequence[Match],
    origin: Tuple[int, int],
    min_red: int,
    dominance: int,
) -> List[Match]:
    """Keep matches whose centre pixel is saturated red.

    `matches` are in client coordinates and `origin` is the client position of
    the frame's top-left corner. Template matching in gray cannot tell a red
    dot from a grey one; the colour check can.
    """
    h, w = frame.shape[:2]
    kept: List[Match] = []
    for m in matches:
        fx, fy = m.x - origin[0], m.y - origin[1]
        if 0 <= fx < w and 0 <= fy < h and red_dominant(frame[fy, fx], min_red, dominance):
            kept.append(m)
    return kept
