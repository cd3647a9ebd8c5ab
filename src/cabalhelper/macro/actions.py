"""Macro action types and their JSON form.

Actions are plain dataclasses; coordinates and regions are stored as
fractions of the game's client area (see core.coords) and resolved to
pixels only when an action executes.
"""
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from ..core.coords import NormPoint, NormRect
from ..ocr.engine import DecodeMode
from .ocr_parser import Comparison, NameMatch


class MouseButton(Enum):
    LEFT = "left"
    RIGHT = "right"


class ClickMethod(Enum):
    DIRECT = "direct"        # synchronous window message, cursor untouched
    ASYNC = "async"          # posted window message, cursor untouched
    MOUSE_MOVE = "mouse_move"  # moves the real cursor


def _enum(cls, value, default):
    try:
        return cls(value)
    except ValueError:
        return default


def _tuple(value, size: int):
    if value is None:
        return None
    items = [float(v) for v in value]
    return tuple(items) if len(items) == size else None


@dataclass
class ClickAction:
    coordinate: Optional[NormPoint] = None
    button: MouseButton = MouseButton.LEFT
    method: ClickMethod = ClickMethod.DIRECT

    def describe(self) -> str:
        where = "unset" if self.coordinate is None else f"({self.coordinate[0]:.3f}, {self.coordinate[1]:.3f})"
        return f"Click {self.button.value} {where} [{self.method.value}]"


@dataclass
class TypeTextAction:
    text: str = ""

    def describe(self) -> str:
        return f"Type {self.text!r}"


@dataclass
class DelayAction:
    milliseconds: int = 100

    def describe(self) -> str:
        return f"Delay {self.milliseconds}ms"


@dataclass
class OcrSearchAction:
    region: Optional[NormRect] = None
    scale_factor: int = 2
    invert_colors: bool = False
    grayscale: bool = True
    decode: DecodeMode = DecodeMode.GREEDY
    beam_width: int = 10
    target_stat: str = ""
    target_value: int = 0
    comparison: Comparison = Comparison.GREATER_THAN_OR_EQUAL
    name_match: NameMatch = NameMatch.CONTAINS
    alt_target_enabled: bool = False
    alt_target_stat: str = ""
    alt_target_value: int = 0

    def describe(self) -> str:
        op = {"equals": "=", "gte": ">=", "lte": "<="}[self.comparison.value]
        text = f"OCR {self.target_stat or '?'} {op} {self.target_value}"
        if self.alt_target_enabled and self.alt_target_stat:
            text += f" or {self.alt_target_stat} {op} {self.alt_target_value}"
        return text


MacroAction = Union[ClickAction, TypeTextAction, DelayAction, OcrSearchAction]

_TYPE_TAGS = {
    ClickAction: "click",
    TypeTextAction: "type_text",
    DelayAction: "delay",
    OcrSearchAction: "ocr_search",
}


def action_to_dict(action: MacroAction) -> Dict[str, Any]:
    tag = _TYPE_TAGS[type(action)]
    if isinstance(action, ClickAction):
        return {
            "type": tag,
            "coordinate": list(action.coordinate) if action.coordinate else None,
            "button": action.button.value,
            "method": action.method.value,
        }
    if isinstance(action, TypeTextAction):
        return {"type": tag, "text": action.text}
    if isinstance(action, DelayAction):
        return {"type": tag, "milliseconds": int(action.milliseconds)}
    return {
        "type": tag,
        "region": list(action.region) if action.region else None,
        "scale_factor": action.scale_factor,
        "invert_colors": action.invert_colors,
        "grayscale": action.grayscale,
        "decode": action.decode.value,
        "beam_width": action.beam_width,
        "target_stat": action.target_stat,
        "target_value": action.target_value,
        "comparison": action.comparison.value,
        "name_match": action.name_match.value,
        "alt_target_enabled": action.alt_target_enabled,
        "alt_target_stat": action.alt_target_stat,
        "alt_target_value": action.alt_target_value,
    }


def action_from_dict(data: Dict[str, Any]) -> MacroAction:
    """Inverse of action_to_dict; unknown fields are ignored."""
    tag = data.get("type")
    if tag == "click":
        return ClickAction(
            coordinate=_tuple(data.get("coordinate"), 2),
            button=_enum(MouseButton, data.get("button"), MouseButton.LEFT),
            method=_enum(ClickMethod, data.get("method"), ClickMethod.DIRECT),
        )
    if tag == "type_text":
        return TypeTextAction(text=str(data.get("text", "")))
    if tag == "delay":
        return DelayAction(milliseconds=max(0, int(data.get("milliseconds", 0))))
    if tag == "ocr_search":
        return OcrSearchAction(
            region=_tuple(data.get("region"), 4),
            scale_factor=max(1, int(data.get("scale_factor", 2))),
            invert_colors=bool(data.get("invert_colors", False)),
            grayscale=bool(data.get("grayscale", True)),
            decode=_enum(DecodeMode, data.get("decode"), DecodeMode.GREEDY),
            beam_width=int(data.get("beam_width", 10)),
            target_stat=str(data.get("target_stat", "")),
            target_value=int(data.get("target_value", 0)),
            comparison=_enum(Comparison, data.get("comparison"), Comparison.GREATER_THAN_OR_EQUAL),
            name_match=_enum(NameMatch, data.get("name_match"), NameMatch.CONTAINS),
            alt_target_enabled=bool(data.get("alt_target_enabled", False)),
            alt_target_stat=str(data.get("alt_target_stat", "")),
            alt_target_value=int(data.get("alt_target_value", 0)),
        )
    raise ValueError(f"unknown action type: {tag!r}")


@dataclass
class MacroSettings:
    actions: List[MacroAction] = field(default_factory=list)
    loop_enabled: bool = False
    infinite_loop: bool = False
    loop_count: int = 1

    def clone(self) -> "MacroSettings":
        return copy.deepcopy(self)

    def iterations(self) -> Optional[int]:
        """Number of passes, or None for an unbounded loop."""
        if not self.loop_enabled:
            return 1
        if self.infinite_loop:
            return None
        return max(1, int(self.loop_count))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "actions": [action_to_dict(a) for a in self.actions],
            "loop_enabled": self.loop_enabled,
            "infinite_loop": self.infinite_loop,
            "loop_count": self.loop_count,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MacroSettings":
        return cls(
            actions=[action_from_dict(a) for a in data.get("actions", [])],
            loop_enabled=bool(data.get("loop_enabled", False)),
            infinite_loop=bool(data.get("infinite_loop", False)),
            loop_count=max(1, int(data.get("loop_count", 1))),
        )
