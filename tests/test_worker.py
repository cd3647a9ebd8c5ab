import threading
import time

from cabalhelper.core.state import RunOutcome
from cabalhelper.core.worker import Worker


def _wait_until(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


def test_task_returning_none_completes():
    w = Worker("t")
    w.start(lambda handle: handle.set_status("working"))
    assert w.join(1.0)
    assert w.outcome() is RunOutcome.COMPLETED
    assert not w.is_running()
    assert w.status() == "working"


def test_stop_wakes_a_sleeping_run_promptly():
    w = Worker("t")
    started = threading.Event()

    def task(handle):
        started.set()
        handle.sleep(10)

    w.start(task)
    assert started.wait(1.0)
    t0 = time.monotonic()
    w.stop()
    assert w.join(1.0)
    assert time.monotonic() - t0 < 0.5
    assert w.outcome() is RunOutcome.STOPPED
    assert w.status() == "Stopped"


def test_stop_reason_becomes_status():
    w = Worker("t")

    def task(handle):
        while handle.sleep(0.01):
            pass

    w.start(task)
    w.stop("Stopped (ESC pressed)")
    assert w.join(1.0)
    assert w.status() == "Stopped (ESC pressed)"
    assert w.state.stop_reason == "Stopped (ESC pressed)"


def test_crash_is_reported_as_failed():
    w = Worker("t")

    def task(handle):
        raise ValueError("boom")

    w.start(task)
    assert w.join(1.0)
    assert w.outcome() is RunOutcome.FAILED
    assert w.status() == "Error: boom"
    assert not w.is_running()


def test_restart_ignores_writes_from_superseded_run():
    w = Worker("t", join_timeout=0.05)
    release = threading.Event()

    def stubborn(handle):
        # ignores the stop request until released
        release.wait(2.0)
        handle.set_status("stale")
        handle.publish("k", "stale")
        return RunOutcome.MATCHED

    def fresh(handle):
        handle.set_status("fresh")
        while handle.sleep(0.01):
            pass

    w.start(stubborn)
    w.start(fresh)
    assert _wait_until(lambda: w.status() == "fresh")
    release.set()
    time.sleep(0.1)
    assert w.status() == "fresh"
    assert w.extra("k") is None
    assert w.is_running()
    assert w.outcome() is None
    w.stop()
    assert w.join(1.0)
    assert w.outcome() is RunOutcome.STOPPED


def test_log_keeps_status_history():
    w = Worker("t")

    def task(handle):
        handle.set_status("one")
        handle.set_status("two")

    w.start(task)
    assert w.join(1.0)
    assert w.log()[-2:] == ["one", "two"]
