import pytest

from cabalhelper.automation.context import AutomationServices
from cabalhelper.core.errors import InputError, OcrError
from cabalhelper.core.state import RunOutcome
from cabalhelper.macro.actions import (
    ClickAction,
    ClickMethod,
    DelayAction,
    MacroSettings,
    OcrSearchAction,
    TypeTextAction,
)
from cabalhelper.macro.ocr_parser import Comparison
from cabalhelper.macro.runner import MacroRunner

from fakes import HWND, FakeCapture, FakeHandle, FakeInput, FakeWindowSystem

REGION = (0.1, 0.1, 0.2, 0.1)


class FakeOcr:
    def __init__(self, *texts, error=None):
        self.texts = list(texts)
        self.error = error
        self.calls = []

    def recognize_text(self, image, decode, beam_width):
        self.calls.append((image.shape, decode, beam_width))
        if self.error is not None:
            raise self.error
        return self.texts.pop(0) if len(self.texts) > 1 else self.texts[0]


def _services(inp=None, ws=None, ocr_factory=None):
    slept = []
    services = AutomationServices(
        window_system=ws or FakeWindowSystem(),
        input=inp or FakeInput(),
        capture=FakeCapture(),
        ocr_factory=ocr_factory,
        sleep=slept.append,
    )
    return services, slept


def _run(actions, services=None, handle=None, ocr=None, **loop):
    services = services or _services()[0]
    handle = handle or FakeHandle()
    outcome = MacroRunner(MacroSettings(actions=list(actions), **loop), services, HWND, handle, ocr).run()
    return outcome, handle


def test_unset_click_is_reported_and_run_completes():
    outcome, handle = _run([ClickAction()])
    assert "Action 1: Click position not set" in handle.statuses
    assert outcome is RunOutcome.COMPLETED
    assert handle.statuses[-1] == "Macro completed!"


def test_click_methods_target_client_pixels():
    inp = FakeInput()
    services, _ = _services(inp)
    _run([
        ClickAction(coordinate=(0.5, 0.5)),
        ClickAction(coordinate=(0.0, 0.0), method=ClickMethod.ASYNC),
        ClickAction(coordinate=(1.0, 1.0), method=ClickMethod.MOUSE_MOVE),
    ], services)
    assert inp.clicks == [(HWND, 400, 300, "left")]
    assert inp.post_clicks == [(HWND, 0, 0, "left")]
    # cursor clicks are in screen coordinates (client origin 100, 50)
    assert inp.cursor_clicks == [(899, 649, "left")]


def test_direct_click_retries_once():
    inp = FakeInput(click_results=[False, True])
    services, slept = _services(inp)
    _, handle = _run([ClickAction(coordinate=(0.5, 0.5))], services)
    assert len(inp.clicks) == 2
    assert slept == [0.05]
    assert not any(s.startswith("Click Error") for s in handle.statuses)

    inp = FakeInput(click_results=[False, False])
    services, slept = _services(inp)
    outcome, handle = _run([ClickAction(coordinate=(0.5, 0.5))], services)
    assert len(inp.clicks) == 2
    assert "Click Error: action 1 not delivered" in handle.statuses
    assert outcome is RunOutcome.COMPLETED


def test_delay_sleeps_on_the_handle():
    outcome, handle = _run([DelayAction(250)])
    assert "Waiting 250ms" in handle.statuses
    assert handle.sleeps == [0.25]
    assert outcome is RunOutcome.COMPLETED


def test_keyboard_error_does_not_end_the_run():
    inp = FakeInput(type_error=InputError("no keyboard backend"))
    services, _ = _services(inp)
    outcome, handle = _run([TypeTextAction("hello"), DelayAction(0)], services)
    assert "Typing: hello" in handle.statuses
    assert "Keyboard error: no keyboard backend" in handle.statuses
    assert outcome is RunOutcome.COMPLETED


def test_loop_count_and_status():
    inp = FakeInput()
    services, _ = _services(inp)
    outcome, handle = _run([ClickAction(coordinate=(0.5, 0.5))], services, loop_enabled=True, loop_count=3)
    assert [s for s in handle.statuses if s.startswith("Loop")] == ["Loop 1/3", "Loop 2/3", "Loop 3/3"]
    assert len(inp.clicks) == 3
    assert outcome is RunOutcome.COMPLETED


def test_stop_keeps_specific_reason():
    outcome, handle = _run([DelayAction(10)], handle=FakeHandle(running=False, stop_reason="Stopped (ESC pressed)"))
    assert outcome is RunOutcome.STOPPED
    assert "Stopped by user" not in handle.statuses


def test_plain_stop_reports_user_stop():
    outcome, handle = _run([DelayAction(10)], handle=FakeHandle(running=False))
    assert outcome is RunOutcome.STOPPED
    assert handle.statuses[-1] == "Stopped by user"


def test_missing_window_fails():
    ws = FakeWindowSystem()
    ws.valid = False
    services, _ = _services(ws=ws)
    outcome, handle = _run([DelayAction(10)], services)
    assert outcome is RunOutcome.FAILED
    assert handle.statuses[-1].startswith("Error: ")


@pytest.mark.parametrize("action,ocr,status", [
    (OcrSearchAction(region=None, target_stat="defense"), FakeOcr("x"), "OCR Error: OCR region not set"),
    (OcrSearchAction(region=(0.5, 0.5, 0.0, 0.0), target_stat="defense"), FakeOcr("x"), "OCR Error: OCR region is empty"),
])
def test_fatal_ocr_errors(action, ocr, status):
    outcome, handle = _run([action], ocr=ocr)
    assert outcome is RunOutcome.FAILED
    assert handle.statuses[-1] == status


def test_ocr_engine_load_failure():
    def factory():
        raise OcrError("Tesseract not available")

    services, _ = _services(ocr_factory=factory)
    outcome, handle = _run([OcrSearchAction(region=REGION, target_stat="defense")], services)
    assert "Loading OCR models..." in handle.statuses
    assert handle.statuses[-1] == "OCR Engine error: Tesseract not available"
    assert outcome is RunOutcome.FAILED


def test_ocr_match_ends_run():
    ocr = FakeOcr("Defense +20")
    action = OcrSearchAction(region=REGION, target_stat="Defense", target_value=15)
    outcome, handle = _run([action], ocr=ocr, loop_enabled=True, infinite_loop=True)
    assert outcome is RunOutcome.MATCHED
    assert handle.statuses[-1] == "MATCH FOUND! defense 20"
    assert handle.extras == {"ocr_text": "Defense +20", "match_found": True}
    # 160x60 region, upscaled x2, grayscale
    assert ocr.calls[0][0] == (120, 320)


def test_ocr_alt_target_matches():
    ocr = FakeOcr("Attack +7")
    action = OcrSearchAction(
        region=REGION, target_stat="Defense", target_value=50,
        alt_target_enabled=True, alt_target_stat="attack", alt_target_value=5,
    )
    outcome, handle = _run([action], ocr=ocr)
    assert outcome is RunOutcome.MATCHED


def test_ocr_no_match_keeps_searching():
    ocr = FakeOcr("???", "Attack 5")
    action = OcrSearchAction(region=REGION, target_stat="Defense", target_value=10, comparison=Comparison.EQUALS)
    outcome, handle = _run([action], ocr=ocr, loop_enabled=True, loop_count=2)
    assert "Searching... (no parse)" in handle.statuses
    assert "Searching... (attack 5)" in handle.statuses
    assert outcome is RunOutcome.COMPLETED
    assert len(ocr.calls) == 2


def test_transient_ocr_error_is_not_fatal():
    ocr = FakeOcr(error=OcrError("engine hiccup"))
    outcome, handle = _run([OcrSearchAction(region=REGION, target_stat="defense")], ocr=ocr)
    assert "OCR Error: engine hiccup" in handle.statuses
    assert outcome is RunOutcome.COMPLETED
