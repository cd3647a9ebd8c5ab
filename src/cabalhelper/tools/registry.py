"""Tool registry: builds the tools, enforces one running tool, tracks the window.

All methods except emergency_stop() and stop_all() are meant for the UI
thread. Those two may be called from the emergency-stop thread; they only
touch worker state, which is lock-guarded.
"""
from __future__ import annotations

import logging
import threading
from typing import Dict, List, Optional

from ..automation.context import AutomationServices
from ..core.calibration import FeedbackDrawer
from ..settings import MAX_PROFILES, NamedMacro, NamedOcrMacro, SettingsStore, new_profile_id
from .base import Tool
from .collection_filler import CollectionFillerTool
from .custom_macro import CustomMacroTool
from .image_clicker import ImageClickerTool
from .ocr_macro import OcrMacroTool

logger = logging.getLogger(__name__)

IMAGE_CLICKER_ID = "image_clicker"
COLLECTION_FILLER_ID = "collection_filler"
ESC_STOP_STATUS = "Stopped (ESC pressed)"


class ToolRegistry:
    """Owns every Tool instance, keyed by a stable id."""

    def __init__(
        self,
        store: SettingsStore,
        services: AutomationServices,
        feedback: Optional[FeedbackDrawer] = None,
        join_timeout: float = 1.0,
    ) -> None:
        self.store = store
        self.services = services
        self.feedback = feedback
        self.join_timeout = join_timeout
        self.lock = threading.Lock()
        self._tools: Dict[str, Tool] = {}
        self.window_handle: Optional[int] = None
        self._build()

    def _make(self, cls, tool_id: str) -> Tool:
        return cls(tool_id, self.store, self.services, feedback=self.feedback, join_timeout=self.join_timeout)

    def _build(self) -> None:
        tools: Dict[str, Tool] = {
            IMAGE_CLICKER_ID: self._make(ImageClickerTool, IMAGE_CLICKER_ID),
            COLLECTION_FILLER_ID: self._make(CollectionFillerTool, COLLECTION_FILLER_ID),
        }
        for p in self.store.settings.custom_macros:
            tools[p.id] = self._make(CustomMacroTool, p.id)
        for q in self.store.settings.ocr_macros:
            tools[q.id] = self._make(OcrMacroTool, q.id)
        with self.lock:
            self._tools = tools

    # ---- lookup ----
    def tools(self) -> List[Tool]:
        with self.lock:
            return list(self._tools.values())

    def get(self, tool_id: str) -> Optional[Tool]:
        with self.lock:
            return self._tools.get(tool_id)

    def running_tools(self) -> List[Tool]:
        return [t for t in self.tools() if t.is_running()]

    # ---- window ----
    def connect(self) -> Optional[int]:
        hwnd = self.services.window_system.find_target_window()
        self.window_handle = hwnd
        return hwnd

    def disconnect(self) -> None:
        for tool in self.tools():
            tool.on_disconnect()
        self.window_handle = None

    def check_window(self) -> bool:
        """Drop the handle and stop everything when the game window is gone."""
        hwnd = self.window_handle
        if hwnd is None:
            return False
        if self.services.window_system.is_valid(hwnd):
            return True
        logger.warning("registry: game window 0x%X is gone", hwnd)
        self.disconnect()
        return False

    # ---- run control ----
    def start_exclusive(self, tool_id: str) -> bool:
        tool = self.get(tool_id)
        if tool is None:
            return False
        for other in self.tools():
            if other is not tool and other.is_running():
                other.stop()
        return tool.start(self.window_handle)

    def stop(self, tool_id: str) -> None:
        tool = self.get(tool_id)
        if tool is not None:
            tool.stop()

    def stop_all(self, reason: Optional[str] = None) -> int:
        stopped = 0
        for tool in self.tools():
            if tool.is_running():
                tool.stop(reason)
                stopped += 1
        return stopped

    def emergency_stop(self) -> None:
        n = self.stop_all(ESC_STOP_STATUS)
        logger.info("registry: emergency stop (%d tool(s) running)", n)

    # ---- profiles ----
    def add_custom_macro(self) -> Optional[Tool]:
        profiles = self.store.settings.custom_macros
        if len(profiles) >= MAX_PROFILES:
            return None
        profile = NamedMacro(new_profile_id(), f"Macro {len(profiles) + 1}")
        profiles.append(profile)
        return self._register(CustomMacroTool, profile.id)

    def add_ocr_macro(self) -> Optional[Tool]:
        profiles = self.store.settings.ocr_macros
        if len(profiles) >= MAX_PROFILES:
            return None
        profile = NamedOcrMacro(new_profile_id(), f"OCR Macro {len(profiles) + 1}")
        profiles.append(profile)
        return self._register(OcrMacroTool, profile.id)

    def _register(self, cls, tool_id: str) -> Tool:
        tool = self._make(cls, tool_id)
        with self.lock:
            self._tools[tool_id] = tool
        self.store.auto_save()
        return tool

    def delete_profile(self, tool_id: str) -> bool:
        """Remove a macro profile; the last profile of a kind cannot be removed."""
        tool = self.get(tool_id)
        if isinstance(tool, CustomMacroTool):
            profiles: list = self.store.settings.custom_macros
        elif isinstance(tool, OcrMacroTool):
            profiles = self.store.settings.ocr_macros
        else:
            return False
        if len(profiles) <= 1:
            return False
        tool.stop()
        tool.cancel_calibration()
        profiles[:] = [p for p in profiles if p.id != tool_id]
        with self.lock:
            self._tools.pop(tool_id, None)
        self.store.auto_save()
        return True

    def rename_profile(self, tool_id: str, name: str) -> bool:
        tool = self.get(tool_id)
        profile = tool.profile() if isinstance(tool, (CustomMacroTool, OcrMacroTool)) else None
        if profile is None or not name.strip():
            return False
        profile.name = name.strip()
        self.store.auto_save()
        return True

    # ---- per tick ----
    def tick(self) -> None:
        """Feed calibration gestures; persist settings when one completes."""
        recorded = False
        for tool in self.tools():
            if tool.update(self.window_handle) is not None:
                recorded = True
        if recorded:
            self.store.auto_save()
