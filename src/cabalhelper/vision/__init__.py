"""Vision package: screen capture, pure image ops and matching.

Submodules:
- capture: mss-backed capture of window-relative regions
- preprocess: stateless image preprocessing utilities
- matcher: template matching with overlap suppression
"""
from .preprocess import (
    invert,
    to_gray,
    upscale,
    prepare_for_ocr,
    red_dominant,
)
from .matcher import Match, find_matches, load_template
from .capture import ScreenCapture

__all__ = [
    "invert",
    "to_gray",
    "upscale",
    "prepare_for_ocr",
    "red_dominant",
    "Match",
    "find_matches",
    "load_template",
    "ScreenCapture",
]
