"""Tools: the runnable automations shown in the control panel.

- image_clicker: click a template image whenever it appears
- collection_filler: register red-dot collection entries
- custom_macro: run a saved action list
- ocr_macro: reroll until OCR shows the wanted stat
- registry: builds tools, enforces one running tool, tracks the window
"""
from .base import CalibrationTarget, Tool
from .collection_filler import CollectionFillerTool
from .custom_macro import CustomMacroTool
from .image_clicker import ImageClickerTool
from .ocr_macro import OcrMacroTool
from .registry import ToolRegistry

__all__ = [
    "CalibrationTarget",
    "CollectionFillerTool",
    "CustomMacroTool",
    "ImageClickerTool",
    "OcrMacroTool",
    "Tool",
    "ToolRegistry",
]
