import json

from cabalhelper.macro.actions import (
    ClickAction,
    ClickMethod,
    DelayAction,
    MouseButton,
    OcrSearchAction,
    TypeTextAction,
    action_from_dict,
)
from cabalhelper.macro.ocr_parser import Comparison, NameMatch
from cabalhelper.ocr.engine import DecodeMode
from cabalhelper.settings import MAX_PROFILES, AppSettings, NamedMacro, SettingsStore, new_profile_id


def test_defaults_have_one_profile_of_each_kind(tmp_path):
    store = SettingsStore(tmp_path / "missing.json")
    s = store.load()
    assert len(s.custom_macros) == 1
    assert len(s.ocr_macros) == 1
    assert s.collection_filler.delay_ms == 31
    assert s.image_clicker.tolerance == 0.85


def test_save_and_reload(tmp_path):
    path = tmp_path / "cabalhelper_settings.json"
    store = SettingsStore(path)
    s = store.settings
    s.always_on_top = True
    s.collection_filler.tabs_area = (0.1, 0.2, 0.3, 0.4)
    s.collection_filler.yes = (0.5, 0.6)
    macro = s.custom_macros[0].settings
    macro.loop_enabled = True
    macro.loop_count = 4
    macro.actions = [
        ClickAction((0.25, 0.75), MouseButton.RIGHT, ClickMethod.MOUSE_MOVE),
        TypeTextAction("/hello"),
        DelayAction(120),
        OcrSearchAction(region=(0.1, 0.1, 0.2, 0.1), decode=DecodeMode.BEAM_SEARCH, beam_width=5,
                        target_stat="Defense", target_value=20, comparison=Comparison.EQUALS,
                        name_match=NameMatch.EXACT),
    ]
    s.ocr_macros[0].settings.target_stat = "Attack"
    s.ocr_macros[0].settings.reroll_actions = [ClickAction((0.5, 0.5))]
    store.save()

    loaded = SettingsStore(path).load()
    assert loaded.to_dict() == s.to_dict()
    assert loaded.custom_macros[0].settings.actions[3].decode is DecodeMode.BEAM_SEARCH
    assert loaded.collection_filler.tabs_area == (0.1, 0.2, 0.3, 0.4)
    assert not path.with_suffix(".json.tmp").exists()


def test_corrupt_file_falls_back_to_defaults(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")
    s = SettingsStore(path).load()
    assert s.to_dict().keys() == AppSettings().to_dict().keys()
    assert len(s.custom_macros) == 1


def test_unknown_enum_values_use_defaults():
    action = action_from_dict({"type": "click", "coordinate": [0.1, 0.2], "button": "middle", "method": "teleport"})
    assert action == ClickAction((0.1, 0.2), MouseButton.LEFT, ClickMethod.DIRECT)


def test_profiles_are_capped(tmp_path):
    path = tmp_path / "settings.json"
    macros = [NamedMacro(new_profile_id(), f"M{i}").to_dict() for i in range(MAX_PROFILES + 3)]
    path.write_text(json.dumps({"custom_macros": macros}), encoding="utf-8")
    s = SettingsStore(path).load()
    assert len(s.custom_macros) == MAX_PROFILES


def test_auto_save_only_when_changed(tmp_path):
    store = SettingsStore(tmp_path / "settings.json")
    store.load()
    assert store.auto_save()
    assert not store.auto_save()
    store.settings.image_clicker.interval_ms = 250
    assert store.auto_save()
