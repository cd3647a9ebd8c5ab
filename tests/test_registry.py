import time

import numpy as np
import pytest

from cabalhelper.automation.context import AutomationServices
from cabalhelper.macro.actions import ClickAction, DelayAction
from cabalhelper.settings import MAX_PROFILES, SettingsStore
from cabalhelper.tools.custom_macro import CustomMacroTool
from cabalhelper.tools.ocr_macro import OcrMacroTool, build_reroll_macro
from cabalhelper.tools.registry import COLLECTION_FILLER_ID, ESC_STOP_STATUS, IMAGE_CLICKER_ID, ToolRegistry

from fakes import HWND, FakeCapture, FakeInput, FakeWindowSystem


@pytest.fixture
def env(tmp_path):
    ws = FakeWindowSystem()
    services = AutomationServices(
        window_system=ws,
        input=FakeInput(),
        capture=FakeCapture(),
        find_matches=lambda image, template, threshold: [],
        load_template=lambda path: np.zeros((3, 3, 3), dtype=np.uint8),
        sleep=lambda s: None,
    )
    store = SettingsStore(tmp_path / "settings.json")
    registry = ToolRegistry(store, services, join_timeout=0.5)
    yield registry, ws
    registry.stop_all()
    for tool in registry.tools():
        tool.worker.join(1.0)


def _macro(registry) -> CustomMacroTool:
    return next(t for t in registry.tools() if isinstance(t, CustomMacroTool))


def _wait_until(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


def test_default_tools(env):
    registry, _ = env
    ids = [t.tool_id for t in registry.tools()]
    assert ids[:2] == [IMAGE_CLICKER_ID, COLLECTION_FILLER_ID]
    assert len(ids) == 4


def test_start_requires_connection(env):
    registry, _ = env
    assert not registry.start_exclusive(IMAGE_CLICKER_ID)
    assert registry.get(IMAGE_CLICKER_ID).status() == "Connect to game first"


def test_only_one_tool_runs_at_a_time(env):
    registry, _ = env
    assert registry.connect() == HWND
    clicker = registry.get(IMAGE_CLICKER_ID)
    macro = _macro(registry)
    macro.profile().settings.actions = [DelayAction(5000)]

    assert registry.start_exclusive(IMAGE_CLICKER_ID)
    assert _wait_until(lambda: clicker.status() == "Searching...")
    assert registry.start_exclusive(macro.tool_id)
    assert not clicker.is_running()
    assert macro.is_running()
    assert registry.running_tools() == [macro]
    assert clicker.worker.join(1.0)
    assert clicker.status() == "Stopped"


def test_emergency_stop_keeps_its_status(env):
    registry, _ = env
    registry.connect()
    macro = _macro(registry)
    macro.profile().settings.actions = [DelayAction(5000)]
    assert registry.start_exclusive(macro.tool_id)
    assert _wait_until(lambda: macro.status() == "Waiting 5000ms")
    t0 = time.monotonic()
    registry.emergency_stop()
    assert macro.worker.join(1.0)
    assert time.monotonic() - t0 < 0.5
    assert macro.status() == ESC_STOP_STATUS
    # idle tools are left alone
    assert registry.get(IMAGE_CLICKER_ID).status() == "Ready"


def test_window_loss_stops_everything(env):
    registry, ws = env
    registry.connect()
    macro = _macro(registry)
    macro.profile().settings.actions = [DelayAction(5000)]
    registry.start_exclusive(macro.tool_id)
    assert registry.check_window()
    ws.valid = False
    assert not registry.check_window()
    assert registry.window_handle is None
    assert not macro.is_running()
    assert macro.worker.join(1.0)
    assert macro.status() == "Disconnected"


def test_macro_validation_messages(env):
    registry, _ = env
    registry.connect()
    macro = _macro(registry)
    assert not registry.start_exclusive(macro.tool_id)
    assert macro.status() == "No actions configured"
    ocr = next(t for t in registry.tools() if isinstance(t, OcrMacroTool))
    assert not registry.start_exclusive(ocr.tool_id)
    assert ocr.status() == "Please set OCR region first"
    ocr.profile().settings.ocr_region = (0.1, 0.1, 0.2, 0.1)
    assert not registry.start_exclusive(ocr.tool_id)
    assert ocr.status() == "Please set a target stat"
    ocr.profile().settings.target_stat = "Defense"
    assert not registry.start_exclusive(ocr.tool_id)
    assert ocr.status() == "Please add reroll actions"


def test_reroll_macro_shape():
    from cabalhelper.settings import OcrMacroSettings

    s = OcrMacroSettings(ocr_region=(0.1, 0.1, 0.2, 0.1), target_stat="Defense", interval_ms=300,
                         reroll_actions=[ClickAction(coordinate=(0.5, 0.5))])
    macro = build_reroll_macro(s)
    assert macro.iterations() is None
    assert macro.actions[1] == DelayAction(300)
    assert macro.actions[2].region == s.ocr_region
    assert macro.actions[2].target_stat == "Defense"


def test_profile_limits(env):
    registry, _ = env
    for _ in range(MAX_PROFILES - 1):
        assert registry.add_custom_macro() is not None
    assert registry.add_custom_macro() is None
    macros = [t for t in registry.tools() if isinstance(t, CustomMacroTool)]
    assert len(macros) == MAX_PROFILES
    for tool in macros[1:]:
        assert registry.delete_profile(tool.tool_id)
    # the last profile of a kind stays
    assert not registry.delete_profile(macros[0].tool_id)
    assert not registry.delete_profile(IMAGE_CLICKER_ID)
    assert registry.rename_profile(macros[0].tool_id, "  Farm  ")
    assert macros[0].name == "Farm"
    assert not registry.rename_profile(macros[0].tool_id, "   ")
    assert registry.store.path.exists()


def test_calibration_recorded_through_tick(env):
    registry, ws = env
    registry.connect()
    macro = _macro(registry)
    macro.profile().settings.actions = [ClickAction()]
    assert macro.begin_calibration("action_1")
    assert macro.status() == "Click in the game to set action 1 click"
    ws.cursor = (300, 250)
    ws.button_down = False
    registry.tick()
    ws.button_down = True
    registry.tick()
    assert not macro.is_calibrating()
    assert macro.status() == "Click position set: (200, 200)"
    assert macro.profile().settings.actions[0].coordinate == pytest.approx((200 / 799, 200 / 599))
    assert registry.store.path.exists()


def test_degenerate_area_is_rejected(env):
    registry, ws = env
    registry.connect()
    clicker = registry.get(IMAGE_CLICKER_ID)
    clicker.begin_calibration("search_region")
    assert clicker.status() == "Drag in the game to select search region"
    ws.cursor = (300, 250)
    for down in (False, True, False):
        ws.button_down = down
        registry.tick()
    assert clicker.status() == "Selected area is empty, try again"
    assert clicker.settings.search_region is None


def test_disconnect_cancels_calibration(env):
    registry, _ = env
    registry.connect()
    clicker = registry.get(IMAGE_CLICKER_ID)
    clicker.begin_calibration("search_region")
    registry.disconnect()
    assert not clicker.is_calibrating()
    assert registry.window_handle is None
