"""IO subpackage for platform-specific integrations.

- win: Windows helpers for the game window, cursor and key polling
- controls: input injection (window messages and pydirectinput)
"""
from .win import Win32WindowSystem, ScreenFeedback
from .controls import InputController

__all__ = [
    "InputController",
    "ScreenFeedback",
    "Win32WindowSystem",
]
