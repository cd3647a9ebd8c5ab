"""Core subpackage.

- coords: window-relative coordinate transforms
- calibration: point/area calibration state machine
- state, worker: background run lifecycle and shared status
- emergency, hotkeys: global stop key
- config, logging_setup: application knobs and session logs
"""
from .errors import (
    CabalHelperError,
    CaptureError,
    InputError,
    OcrError,
    SettingsError,
    TemplateError,
    WindowUnavailableError,
)

__all__ = [
    "CabalHelperError",
    "CaptureError",
    "InputError",
    "OcrError",
    "SettingsError",
    "TemplateError",
    "WindowUnavailableError",
]
