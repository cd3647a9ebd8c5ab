"""Macro package: action types, OCR result parsing and the action runner."""
from .actions import (
    ClickAction,
    ClickMethod,
    DelayAction,
    MacroAction,
    MacroSettings,
    MouseButton,
    OcrSearchAction,
    TypeTextAction,
    action_from_dict,
    action_to_dict,
)
from .ocr_parser import Comparison, NameMatch, matches_target, parse_ocr_result
from .runner import MacroRunner

__all__ = [
    "ClickAction",
    "ClickMethod",
    "Comparison",
    "DelayAction",
    "MacroAction",
    "MacroRunner",
    "MacroSettings",
    "MouseButton",
    "NameMatch",
    "OcrSearchAction",
    "TypeTextAction",
    "action_from_dict",
    "action_to_dict",
    "matches_target",
    "parse_ocr_result",
]
