"""Hotkey configuration: VK codes and key-name lookup.

Centralizes key bindings in one place so the emergency stop and the
control panel stay configuration-driven.
"""
from __future__ import annotations

from typing import Dict

# Virtual-key codes (Windows)
VK_LBUTTON = 0x01
VK_RBUTTON = 0x02
VK_ESCAPE = 0x1B
VK_PAUSE = 0x13
VK_F1, VK_F2, VK_F3, VK_F4 = 0x70, 0x71, 0x72, 0x73
VK_F5, VK_F6, VK_F7, VK_F8 = 0x74, 0x75, 0x76, 0x77
VK_F9, VK_F10, VK_F11, VK_F12 = 0x78, 0x79, 0x7A, 0x7B

KEY_NAMES: Dict[str, int] = {
    "esc": VK_ESCAPE,
    "escape": VK_ESCAPE,
    "pause": VK_PAUSE,
    "f1": VK_F1,
    "f2": VK_F2,
    "f3": VK_F3,
    "f4": VK_F4,
    "f5": VK_F5,
    "f6": VK_F6,
    "f7": VK_F7,
    "f8": VK_F8,
    "f9": VK_F9,
    "f10": VK_F10,
    "f11": VK_F11,
    "f12": VK_F12,
}

DEFAULT_EMERGENCY_KEY = "esc"


def vk_from_name(name: str, fallback: int = VK_ESCAPE) -> int:
    """Resolve 'esc', 'F12' or a hex/decimal VK literal such as '0x7B'."""
    key = str(name or "").strip().lower()
    if not key:
        return fallback
    if key in KEY_NAMES:
        return KEY_NAMES[key]
    try:
        return int(key, 0)
    except ValueError:
        return fallback
