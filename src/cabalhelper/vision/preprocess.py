"""
Stateless image preprocessing utilities (pure functions over numpy arrays).

Used ahead of OCR: the game's tooltip text is small and light-on-dark, so
frames are optionally inverted, reduced to gray and upscaled before
recognition.
"""
from __future__ import annotations

import cv2
import numpy as np


def invert(img: np.ndarray) -> np.ndarray:
    return cv2.bitwise_not(img)


def to_gray(img: np.ndarray) -> np.ndarray:
    if img.ndim == 2:
        return img
    if img.shape[2] == 4:
        return cv2.cvtColor(img, cv2.COLOR_BGRA2GRAY)
    return cv2.cvtColor(img, cv2.COLOR_BGR2GRAY)


def upscale(img: np.ndarray, factor: int) -> np.ndarray:
    """Integer upscale with Lanczos; factor <= 1 returns the input unchanged."""
    f = int(factor)
    if f <= 1:
        return img
    h, w = img.shape[:2]
    return cv2.resize(img, (w * f, h * f), interpolation=cv2.INTER_LANCZOS4)


def prepare_for_ocr(img: np.ndarray, invert_colors: bool = False, grayscale: bool = True, scale_factor: int = 2) -> np.ndarray:
    """Apply invert, then grayscale, then upscale, in that order."""
    out = img
    if invert_colors:
        out = invert(out)
    if grayscale:
        out = to_gray(out)
    return upscale(out, scale_factor)


def red_dominant(pixel_bgr, min_red: int, dominance: int) -> bool:
    """True when a BGR pixel is saturated red (not grey or orange)."""
    b, g, r = (int(c) for c in pixel_bgr[:3])
    return r >= min_red and r >= g + dominance and r >= b + dominance
