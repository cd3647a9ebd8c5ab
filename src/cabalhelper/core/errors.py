"""Exception types raised by CabalHelper capabilities.

Runners catch these and translate them into worker status text; nothing
below this line is expected to reach the UI thread as an exception.
"""
from __future__ import annotations


class CabalHelperError(Exception):
    """Base class for all library errors."""


class WindowUnavailableError(CabalHelperError):
    """The game window is gone or its geometry could not be read."""


class InputError(CabalHelperError):
    """Synthetic input could not be delivered."""


class CaptureError(CabalHelperError):
    """A screen region could not be captured."""


class OcrError(CabalHelperError):
    """The OCR engine failed to initialise or to recognise text."""


class TemplateError(CabalHelperError):
    """A template image could not be loaded."""


class SettingsError(CabalHelperError):
    """Settings could not be read or written."""
