"""Persistent tool settings (calibrations and macro profiles).

Stored as JSON next to config.ini. Calibrated points and areas are kept as
fractions of the game's client area, so a saved calibration keeps working
after the window is moved or resized.
"""
from __future__ import annotations

import copy
import json
import logging
import threading
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from .core.coords import NormPoint, NormRect
from .core.errors import SettingsError
from .macro.actions import MacroAction, MacroSettings, OcrSearchAction, action_from_dict, action_to_dict
from .macro.ocr_parser import Comparison, NameMatch
from .ocr.engine import DecodeMode

logger = logging.getLogger(__name__)

MAX_PROFILES = 10


def new_profile_id() -> str:
    return uuid.uuid4().hex


def _opt(value, size: int):
    if value is None:
        return None
    items = [float(v) for v in value]
    return tuple(items) if len(items) == size else None


def _lst(value):
    return list(value) if value is not None else None


def _enum(cls, value, default):
    try:
        return cls(value)
    except ValueError:
        return default


@dataclass
class ImageClickerSettings:
    image_path: str = "image.png"
    interval_ms: int = 100
    tolerance: float = 0.85
    search_region: Optional[NormRect] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "image_path": self.image_path,
            "interval_ms": self.interval_ms,
            "tolerance": self.tolerance,
            "search_region": _lst(self.search_region),
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ImageClickerSettings":
        return cls(
            image_path=str(d.get("image_path", "image.png")),
            interval_ms=max(1, int(d.get("interval_ms", 100))),
            tolerance=float(d.get("tolerance", 0.85)),
            search_region=_opt(d.get("search_region"), 4),
        )


COLLECTION_AREAS = ("tabs_area", "dungeon_area", "items_area")
COLLECTION_BUTTONS = ("auto_refill", "register", "yes")
COLLECTION_OPTIONAL = ("page_2", "page_3", "page_4", "arrow_right")


@dataclass
class CollectionFillerSettings:
    tabs_area: Optional[NormRect] = None
    dungeon_area: Optional[NormRect] = None
    items_area: Optional[NormRect] = None
    auto_refill: Optional[NormPoint] = None
    register: Optional[NormPoint] = None
    yes: Optional[NormPoint] = None
    page_2: Optional[NormPoint] = None
    page_3: Optional[NormPoint] = None
    page_4: Optional[NormPoint] = None
    arrow_right: Optional[NormPoint] = None
    delay_ms: int = 31
    red_dot_tolerance: float = 0.85
    min_red: int = 150
    red_dominance: int = 30
    red_dot_path: str = "red-dot.png"

    def missing_required(self) -> List[str]:
        return [name for name in COLLECTION_AREAS + COLLECTION_BUTTONS if getattr(self, name) is None]

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {name: _lst(getattr(self, name)) for name in COLLECTION_AREAS + COLLECTION_BUTTONS + COLLECTION_OPTIONAL}
        out.update(
            delay_ms=self.delay_ms,
            red_dot_tolerance=self.red_dot_tolerance,
            min_red=self.min_red,
            red_dominance=self.red_dominance,
            red_dot_path=self.red_dot_path,
        )
        return out

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CollectionFillerSettings":
        s = cls(
            delay_ms=max(0, int(d.get("delay_ms", 31))),
            red_dot_tolerance=float(d.get("red_dot_tolerance", 0.85)),
            min_red=int(d.get("min_red", 150)),
            red_dominance=int(d.get("red_dominance", 30)),
            red_dot_path=str(d.get("red_dot_path", "red-dot.png")),
        )
        for name in COLLECTION_AREAS:
            setattr(s, name, _opt(d.get(name), 4))
        for name in COLLECTION_BUTTONS + COLLECTION_OPTIONAL:
            setattr(s, name, _opt(d.get(name), 2))
        return s


@dataclass
class OcrMacroSettings:
    ocr_region: Optional[NormRect] = None
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
    reroll_actions: List[MacroAction] = field(default_factory=list)
    interval_ms: int = 100

    def search_action(self) -> OcrSearchAction:
        return OcrSearchAction(
            region=self.ocr_region,
            scale_factor=self.scale_factor,
            invert_colors=self.invert_colors,
            grayscale=self.grayscale,
            decode=self.decode,
            beam_width=self.beam_width,
            target_stat=self.target_stat,
            target_value=self.target_value,
            comparison=self.comparison,
            name_match=self.name_match,
            alt_target_enabled=self.alt_target_enabled,
            alt_target_stat=self.alt_target_stat,
            alt_target_value=self.alt_target_value,
        )

    def to_dict(self) -> Dict[str, Any]:
        d = {k: v for k, v in action_to_dict(self.search_action()).items() if k not in ("type", "region")}
        d["ocr_region"] = _lst(self.ocr_region)
        d["reroll_actions"] = [action_to_dict(a) for a in self.reroll_actions]
        d["interval_ms"] = self.interval_ms
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "OcrMacroSettings":
        search = action_from_dict(dict(d, type="ocr_search", region=d.get("ocr_region")))
        assert isinstance(search, OcrSearchAction)
        return cls(
            ocr_region=search.region,
            scale_factor=search.scale_factor,
            invert_colors=search.invert_colors,
            grayscale=search.grayscale,
            decode=search.decode,
            beam_width=search.beam_width,
            target_stat=search.target_stat,
            target_value=search.target_value,
            comparison=search.comparison,
            name_match=search.name_match,
            alt_target_enabled=search.alt_target_enabled,
            alt_target_stat=search.alt_target_stat,
            alt_target_value=search.alt_target_value,
            reroll_actions=[action_from_dict(a) for a in d.get("reroll_actions", [])],
            interval_ms=max(0, int(d.get("interval_ms", 100))),
        )


@dataclass
class NamedMacro:
    id: str
    name: str
    show_in_overlay: bool = True
    settings: MacroSettings = field(default_factory=MacroSettings)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "show_in_overlay": self.show_in_overlay, "settings": self.settings.to_dict()}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "NamedMacro":
        return cls(
            id=str(d.get("id") or new_profile_id()),
            name=str(d.get("name", "Macro")),
            show_in_overlay=bool(d.get("show_in_overlay", True)),
            settings=MacroSettings.from_dict(d.get("settings", {})),
        )


@dataclass
class NamedOcrMacro:
    id: str
    name: str
    show_in_overlay: bool = True
    settings: OcrMacroSettings = field(default_factory=OcrMacroSettings)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "show_in_overlay": self.show_in_overlay, "settings": self.settings.to_dict()}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "NamedOcrMacro":
        return cls(
            id=str(d.get("id") or new_profile_id()),
            name=str(d.get("name", "OCR Macro")),
            show_in_overlay=bool(d.get("show_in_overlay", True)),
            settings=OcrMacroSettings.from_dict(d.get("settings", {})),
        )


@dataclass
class AppSettings:
    image_clicker: ImageClickerSettings = field(default_factory=ImageClickerSettings)
    collection_filler: CollectionFillerSettings = field(default_factory=CollectionFillerSettings)
    custom_macros: List[NamedMacro] = field(default_factory=list)
    ocr_macros: List[NamedOcrMacro] = field(default_factory=list)
    always_on_top: bool = False

    def ensure_profiles(self) -> None:
        """At least one profile of each kind, never more than MAX_PROFILES."""
        if not self.custom_macros:
            self.custom_macros.append(NamedMacro(new_profile_id(), "Macro 1"))
        if not self.ocr_macros:
            self.ocr_macros.append(NamedOcrMacro(new_profile_id(), "OCR Macro 1"))
        del self.custom_macros[MAX_PROFILES:]
        del self.ocr_macros[MAX_PROFILES:]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "image_clicker": self.image_clicker.to_dict(),
            "collection_filler": self.collection_filler.to_dict(),
            "custom_macros": [m.to_dict() for m in self.custom_macros],
            "ocr_macros": [m.to_dict() for m in self.ocr_macros],
            "always_on_top": self.always_on_top,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "AppSettings":
        s = cls(
            image_clicker=ImageClickerSettings.from_dict(d.get("image_clicker", {})),
            collection_filler=CollectionFillerSettings.from_dict(d.get("collection_filler", {})),
            custom_macros=[NamedMacro.from_dict(m) for m in d.get("custom_macros", [])],
            ocr_macros=[NamedOcrMacro.from_dict(m) for m in d.get("ocr_macros", [])],
            always_on_top=bool(d.get("always_on_top", False)),
        )
        s.ensure_profiles()
        return s

    def clone(self) -> "AppSettings":
        return copy.deepcopy(self)


class SettingsStore:
    """Loads and saves AppSettings as JSON; the live object is `self.settings`."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self.lock = threading.Lock()
        self.settings = AppSettings()
        self.settings.ensure_profiles()
        self._last_saved: Optional[str] = None

    def load(self) -> AppSettings:
        """Read the file; a missing or unreadable file yields defaults."""
        if not self.path.exists():
            logger.info("settings: %s not found, using defaults", self.path)
            self.settings = AppSettings()
            self.settings.ensure_profiles()
            return self.settings
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            self.settings = AppSettings.from_dict(raw if isinstance(raw, dict) else {})
        except (OSError, ValueError, TypeError) as e:
            logger.warning("settings: could not read %s (%s); using defaults", self.path, e)
            self.settings = AppSettings()
            self.settings.ensure_profiles()
        self._last_saved = self._serialize()
        return self.settings

    def _serialize(self) -> str:
        with self.lock:
            return json.dumps(self.settings.to_dict(), indent=2)

    def save(self) -> None:
        text = self._serialize()
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp.write_text(text, encoding="utf-8")
            tmp.replace(self.path)
        except OSError as e:
            raise SettingsError(f"could not write {self.path}: {e}") from e
        self._last_saved = text

    def auto_save(self) -> bool:
        """Save only when something changed. Errors are logged, not raised."""
        if self._serialize() == self._last_saved:
            return False
        try:
            self.save()
        except SettingsError as e:
            logger.warning("settings: auto-save failed: %s", e)
            return False
        return True
