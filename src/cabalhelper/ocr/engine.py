"""Tesseract-backed text recognition.

Greedy decoding is Tesseract's default LSTM path. Beam search asks the LSTM
for alternative character choices (lstm_choice_mode=2) with the beam width
used as the number of choice iterations.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

import numpy as np
import pytesseract

from ..core.errors import OcrError

logger = logging.getLogger(__name__)

MIN_BEAM_WIDTH = 2


class DecodeMode(Enum):
    GREEDY = "greedy"
    BEAM_SEARCH = "beam_search"


def build_config(decode: DecodeMode, beam_width: int, psm: int = 6) -> str:
    config = f"--psm {int(psm)}"
    if decode is DecodeMode.BEAM_SEARCH:
        width = max(MIN_BEAM_WIDTH, int(beam_width))
        config += f" -c lstm_choice_mode=2 -c lstm_choice_iterations={width}"
    return config


class TesseractOcr:
    """Thin wrapper around pytesseract; raises OcrError on any engine failure."""

    def __init__(self, tesseract_cmd: Optional[str] = None, lang: str = "eng", psm: int = 6) -> None:
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        self.lang = lang
        self.psm = psm
        try:
            version = pytesseract.get_tesseract_version()
        except (pytesseract.TesseractNotFoundError, OSError) as e:
            raise OcrError(f"Tesseract not available: {e}") from e
        logger.info("ocr: tesseract %s ready (lang=%s, psm=%d)", version, lang, psm)

    def recognize_text(self, image: np.ndarray, decode: DecodeMode = DecodeMode.GREEDY, beam_width: int = 10) -> str:
        config = build_config(decode, beam_width, self.psm)
        try:
            text = pytesseract.image_to_string(image, lang=self.lang, config=config)
        except (pytesseract.TesseractError, RuntimeError) as e:
            raise OcrError(str(e)) from e
        return (text or "").strip()
