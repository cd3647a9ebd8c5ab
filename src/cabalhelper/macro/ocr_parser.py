"""Stat/value extraction from OCR text.

Tooltip lines come back from OCR in several shapes ("Defense +20",
"+20 Defense", "20\\nDefense", "Crit. Dmg +15"). The parser takes the first
integer as the value and the letters around it as the stat name, preferring
the text before the number.
"""
from __future__ import annotations

import re
from enum import Enum
from typing import Optional, Tuple

_NUMBER_RE = re.compile(r"[+-]?\d+")
_WORD_RE = re.compile(r"[^\W\d_]+")


class Comparison(Enum):
    EQUALS = "equals"
    GREATER_THAN_OR_EQUAL = "gte"
    LESS_THAN_OR_EQUAL = "lte"


class NameMatch(Enum):
    EXACT = "exact"
    CONTAINS = "contains"


def _words(text: str) -> str:
    return " ".join(_WORD_RE.findall(text))


def normalize_name(name: str) -> str:
    """Lowercase and collapse whitespace."""
    return " ".join(str(name or "").lower().split())


def parse_ocr_result(text: str) -> Optional[Tuple[str, int]]:
    """Return (stat_name, value) or None when no number or no name is present."""
    lowered = str(text or "").lower()
    m = _NUMBER_RE.search(lowered)
    if m is None:
        return None
    value = int(m.group(0))
    left, right = lowered[:m.start()], lowered[m.end():]
    stat = _words(left) or _words(right) or _words(lowered)
    if not stat:
        return None
    return stat, value


def compare_value(value: int, target: int, mode: Comparison) -> bool:
    if mode is Comparison.GREATER_THAN_OR_EQUAL:
        return value >= target
    if mode is Comparison.LESS_THAN_OR_EQUAL:
        return value <= target
    return value == target


def matches_name(detected: str, target: str, name_match: NameMatch = NameMatch.EXACT) -> bool:
    want = normalize_name(target)
    if not want:
        return False
    got = normalize_name(detected)
    if name_match is NameMatch.CONTAINS:
        return want in got
    return got == want


def matches_target(
    detected_stat: str,
    detected_value: int,
    target_stat: str,
    target_value: int,
    mode: Comparison,
    name_match: NameMatch = NameMatch.EXACT,
) -> bool:
    """Stat name (per `name_match`) and value (per `mode`) must both agree."""
    return matches_name(detected_stat, target_stat, name_match) and compare_value(detected_value, target_value, mode)
