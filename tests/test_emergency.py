import threading

from cabalhelper.core.emergency import EmergencyStop, start_emergency_stop
from cabalhelper.core.hotkeys import VK_ESCAPE, VK_F12


class Keys:
    def __init__(self):
        self.down = set()

    def is_key_down(self, vk):
        return vk in self.down


def test_poll_fires_once_per_press():
    keys = Keys()
    fired = []
    es = EmergencyStop(keys, lambda: fired.append(1))
    assert not es.poll_once()
    keys.down.add(VK_ESCAPE)
    assert es.poll_once()
    # held: no repeat
    assert not es.poll_once()
    keys.down.clear()
    assert not es.poll_once()
    keys.down.add(VK_ESCAPE)
    assert es.poll_once()
    assert len(fired) == 2


def test_configured_key_only():
    keys = Keys()
    fired = []
    es = EmergencyStop(keys, lambda: fired.append(1), vk=VK_F12)
    keys.down.add(VK_ESCAPE)
    assert not es.poll_once()
    keys.down.add(VK_F12)
    assert es.poll_once()


def test_thread_triggers_and_stops():
    keys = Keys()
    fired = threading.Event()
    es = start_emergency_stop(keys, fired.set, interval=0.01)
    keys.down.add(VK_ESCAPE)
    assert fired.wait(1.0)
    es.stop()
    es.join(1.0)
    assert not es.is_alive()
