import pytest

from cabalhelper.macro.ocr_parser import (
    Comparison,
    NameMatch,
    compare_value,
    matches_name,
    matches_target,
    normalize_name,
    parse_ocr_result,
)


@pytest.mark.parametrize("text,expected", [
    ("Defense +20", ("defense", 20)),
    ("+20 Defense", ("defense", 20)),
    ("20\nDefense", ("defense", 20)),
    ("Crit. Dmg +15", ("crit dmg", 15)),
    ("HP -5", ("hp", -5)),
    ("Attack 5 (+3)", ("attack", 5)),
    ("  All Skill Amp. 7%  ", ("all skill amp", 7)),
    ("no numbers here", None),
    ("42", None),
    ("", None),
])
def test_parse_ocr_result(text, expected):
    assert parse_ocr_result(text) == expected


def test_normalize_name():
    assert normalize_name("  Crit   DMG ") == "crit dmg"
    assert normalize_name(None) == ""


@pytest.mark.parametrize("value,target,mode,expected", [
    (20, 15, Comparison.GREATER_THAN_OR_EQUAL, True),
    (15, 15, Comparison.GREATER_THAN_OR_EQUAL, True),
    (14, 15, Comparison.GREATER_THAN_OR_EQUAL, False),
    (15, 15, Comparison.EQUALS, True),
    (16, 15, Comparison.EQUALS, False),
    (3, 5, Comparison.LESS_THAN_OR_EQUAL, True),
    (6, 5, Comparison.LESS_THAN_OR_EQUAL, False),
])
def test_compare_value(value, target, mode, expected):
    assert compare_value(value, target, mode) is expected


def test_name_matching_modes():
    assert matches_name("crit dmg", "Crit  Dmg")
    assert not matches_name("all attack up", "attack")
    assert matches_name("all attack up", "attack", NameMatch.CONTAINS)
    # an empty target never matches anything
    assert not matches_name("defense", "")
    assert not matches_name("defense", "   ", NameMatch.CONTAINS)


def test_matches_target_needs_name_and_value():
    assert matches_target("defense", 20, "Defense", 15, Comparison.GREATER_THAN_OR_EQUAL)
    assert not matches_target("defense", 10, "Defense", 15, Comparison.GREATER_THAN_OR_EQUAL)
    assert not matches_target("attack", 20, "Defense", 15, Comparison.GREATER_THAN_OR_EQUAL)
