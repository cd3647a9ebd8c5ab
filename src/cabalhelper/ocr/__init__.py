"""OCR subpackage: text recognition for stat tooltips."""
from .engine import DecodeMode, TesseractOcr, build_config

__all__ = ["DecodeMode", "TesseractOcr", "build_config"]
