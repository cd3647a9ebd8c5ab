"""
Template matching on captured frames.

Pure functions over numpy arrays: callers capture, these find. Scores are
OpenCV's normalized correlation coefficient in [-1, 1]; a match is any
location at or above the caller's threshold, with overlapping hits
collapsed to the strongest one.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional
import logging

import cv2
import numpy as np

from ..core.errors import TemplateError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Match:
    """Centre of a matched template, in the frame's pixel space."""

    x: int
    y: int
    confidence: float


def load_template(path: str) -> np.ndarray:
    """Read a template image as BGR; raise TemplateError when unreadable."""
    p = Path(path)
    if not p.is_file():
        raise TemplateError(f"Template image not found: {path}")
    # imdecode copes with non-ASCII Windows paths where imread does not
    data = np.fromfile(str(p), dtype=np.uint8)
    img = cv2.imdecode(data, cv2.IMREAD_COLOR)
    if img is None:
        raise TemplateError(f"Could not decode template image: {path}")
    return img


def _to_gray(img: np.ndarray) -> np.ndarray:
    if img.ndim == 2:
        return img
    if img.shape[2] == 4:
        return cv2.cvtColor(img, cv2.COLOR_BGRA2GRAY)
    return cv2.cvtColor(img, cv2.COLOR_BGR2GRAY)


def find_matches(
    image: np.ndarray,
    template: np.ndarray,
    threshold: float,
    max_results: Optional[int] = None,
) -> List[Match]:
    """Return match centres at or above `threshold`, best first.

    Overlapping candidates (closer than half the template size) are
    suppressed in favour of the higher score.
    """
    if image is None or template is None:
        return []
    scr = _to_gray(image)
    tpl = _to_gray(template)
    th, tw = tpl.shape[:2]
    if scr.shape[0] < th or scr.shape[1] < tw or th == 0 or tw == 0:
        return []

    res = cv2.matchTemplate(scr, tpl, cv2.TM_CCOEFF_NORMED)
    ys, xs = np.where(res >= float(threshold))
    if len(xs) == 0:
        return []
    scores = res[ys, xs]
    order = np.argsort(-scores)

    min_dx = max(1, tw // 2)
    min_dy = max(1, th // 2)
    kept: List[Match] = []
    for idx in order:
        x, y = int(xs[idx]), int(ys[idx])
        if any(abs(x - (m.x - tw // 2)) < min_dx and abs(y - (m.y - th // 2)) < min_dy for m in kept):
            continue
        kept.append(Match(x + tw // 2, y + th // 2, float(scores[idx])))
        if max_results is not None and len(kept) >= max_results:
            break
    logger.debug("matcher: %d match(es) >= %.2f (template %dx%d)", len(kept), threshold, tw, th)
    return kept

