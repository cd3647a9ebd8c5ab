"""Main Application entry point.

Loads config and settings, wires the Win32/vision/OCR services into the tool
registry, starts the emergency-stop thread, and launches the control panel.
"""

import os
import sys

# Add the src directory to the Python path for proper imports
if getattr(sys, 'frozen', False):
    # Running as executable
    application_path = os.path.dirname(sys.executable)
    src_path = os.path.join(application_path, 'src')
else:
    # Running as script - go up from cabalhelper/main.py to src directory
    application_path = os.path.dirname(os.path.abspath(__file__))
    src_path = os.path.dirname(application_path)

if src_path not in sys.path:
    sys.path.insert(0, src_path)

from cabalhelper.automation.context import AutomationServices
from cabalhelper.core.config import ConfigManager
from cabalhelper.core.emergency import start_emergency_stop
from cabalhelper.core.hotkeys import vk_from_name
from cabalhelper.core.logging_setup import setup_logging
from cabalhelper.io.controls import InputController
from cabalhelper.io.win import ScreenFeedback, Win32WindowSystem
from cabalhelper.ocr.engine import TesseractOcr
from cabalhelper.settings import SettingsStore
from cabalhelper.tools.registry import ToolRegistry
from cabalhelper.vision.capture import ScreenCapture


def main() -> None:
    """Start services and threads, then run the control panel event loop."""

    # Ensure a Qt application exists before any QWidget is built
    from PyQt6.QtWidgets import QApplication
    app = QApplication.instance() or QApplication([])

    config_manager = ConfigManager()
    session_dir = setup_logging(config_manager)

    # Install a global exception hook to log unhandled exceptions
    import logging as _logging

    def _excepthook(exc_type, exc, tb):
        _logging.getLogger(__name__).exception("Unhandled exception:", exc_info=(exc_type, exc, tb))
        # Delegate to default hook after logging
        sys.__excepthook__(exc_type, exc, tb)

    sys.excepthook = _excepthook
    _logging.getLogger(__name__).info("Log session: %s", session_dir)

    store = SettingsStore(config_manager.settings_path())
    store.load()

    window_system = Win32WindowSystem(config_manager.get("window_class", fallback="D3D Window"))
    tesseract_cmd = config_manager.get("tesseract_cmd", fallback="") or None
    services = AutomationServices(
        window_system=window_system,
        input=InputController(),
        capture=ScreenCapture(),
        ocr_factory=lambda: TesseractOcr(tesseract_cmd=tesseract_cmd),
    )
    registry = ToolRegistry(
        store,
        services,
        feedback=ScreenFeedback(),
        join_timeout=config_manager.get_float("worker_join_timeout", 1.0),
    )

    # Import the panel after QApplication is guaranteed to exist
    from cabalhelper.gui.panel import ControlPanel
    panel = ControlPanel(registry, config_manager)

    def _on_emergency():
        registry.emergency_stop()
        panel.signals.emergency_stopped.emit()

    emergency = start_emergency_stop(
        window_system,
        _on_emergency,
        vk=vk_from_name(config_manager.get("emergency_stop_key", fallback="esc")),
        interval=config_manager.get_int("emergency_poll_ms", 100) / 1000.0,
    )

    def cleanup():
        registry.stop_all()
        emergency.stop()
        store.auto_save()

    app.aboutToQuit.connect(cleanup)

    panel.show()
    app.exec()


if __name__ == "__main__":
    main()
