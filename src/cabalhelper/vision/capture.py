"""Screen capture for regions of the game window.

Responsibility:
- Convert a client-relative pixel rect into an absolute mss region.
- Keep one mss instance per thread (mss handles are not thread safe).
- Return BGR frames so OpenCV consumers need no further conversion.
"""
from __future__ import annotations

import logging
import threading
import time
from typing import Tuple

import mss
from mss.exception import ScreenShotError
import numpy as np

from ..core.coords import WindowGeometry
from ..core.errors import CaptureError

logger = logging.getLogger(__name__)


class ScreenCapture:
    """mss-backed capture of window-relative regions."""

    def __init__(self) -> None:
        self._tls = threading.local()

    def _get_sct(self, force_new: bool = False):
        sct = getattr(self._tls, "sct", None)
        if force_new or sct is None:
            if sct is not None:
                sct.close()
            sct = mss.mss()
            self._tls.sct = sct
        return sct

    def _safe_grab(self, region: dict):
        sct = self._get_sct()
        try:
            return sct.grab(region)
        except AttributeError:
            # stale handle after a display change; reopen once
            sct = self._get_sct(force_new=True)
            return sct.grab(region)

    def capture_screen_region(self, region: dict) -> np.ndarray:
        """Capture a BGR frame for an absolute region dict {left, top, width, height}."""
        if int(region.get("width", 0)) <= 0 or int(region.get("height", 0)) <= 0:
            raise CaptureError(f"empty capture region: {region}")
        t0 = time.perf_counter()
        try:
            frame = np.array(self._safe_grab(region))  # BGRA
        except ScreenShotError as e:
            raise CaptureError(str(e)) from e
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("capture: grab %.1fms region=%s", (time.perf_counter() - t0) * 1000.0, region)
        return frame[:, :, :3]

    def capture_region(self, geometry: WindowGeometry, rect: Tuple[int, int, int, int]) -> np.ndarray:
        """Capture a client-relative rect of the window described by `geometry`."""
        left, top, width, height = rect
        region = {
            "left": int(geometry.origin_x + left),
            "top": int(geometry.origin_y + top),
            "width": int(width),
            "height": int(height),
        }
        return self.capture_screen_region(region)
