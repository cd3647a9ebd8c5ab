"""Emergency stop monitor.

Polls a global key (ESC by default) on its own thread and stops every tool
on the press edge, independent of which window has focus.
"""
import logging
import threading
from typing import Any, Callable

from .hotkeys import VK_ESCAPE

logger = logging.getLogger(__name__)


class EmergencyStop(threading.Thread):
    """Edge-triggered global key poll that calls `on_trigger`."""

    def __init__(
        self,
        key_source: Any,
        on_trigger: Callable[[], None],
        vk: int = VK_ESCAPE,
        interval: float = 0.1,
    ):
        super().__init__(daemon=True, name="EmergencyStop")
        self.key_source = key_source
        self.on_trigger = on_trigger
        self.vk = int(vk)
        self.interval = float(interval)
        self._stop_event = threading.Event()
        self._key_down = False

    def stop(self) -> None:
        """Stop the polling thread."""
        self._stop_event.set()

    def run(self) -> None:
        logger.info("Emergency stop armed (vk=0x%02X, interval=%.2fs)", self.vk, self.interval)
        while not self._stop_event.wait(self.interval):
            try:
                self.poll_once()
            except Exception as e:
                logger.warning("Emergency stop poll error: %s", e)
        logger.info("Emergency stop monitor stopped")

    def poll_once(self) -> bool:
        """Check the key once. Returns True when this call fired the trigger."""
        is_down = bool(self.key_source.is_key_down(self.vk))
        if is_down and not self._key_down:
            self._key_down = True
            logger.info("Emergency stop key pressed")
            self.on_trigger()
            return True
        if not is_down and self._key_down:
            self._key_down = False
        return False


def start_emergency_stop(key_source: Any, on_trigger: Callable[[], None], vk: int = VK_ESCAPE,
                         interval: float = 0.1) -> EmergencyStop:
    monitor = EmergencyStop(key_source, on_trigger, vk=vk, interval=interval)
    monitor.start()
    return monitor
