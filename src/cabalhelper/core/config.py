"""core.config
Configuration core: load/save helpers for config.ini.

This module provides a tiny ConfigManager for application-level knobs
(log level, poll intervals, emergency key, file locations). Tool profiles
and calibrated coordinates live in the JSON settings store instead; see
cabalhelper.settings.
"""

import os
from configparser import ConfigParser
from pathlib import Path
from typing import Optional

APP_DIR_NAME = "CabalHelper"
SETTINGS_FILE_NAME = "cabalhelper_settings.json"

DEFAULTS = {
    "log_level": "INFO",
    "emergency_stop_key": "esc",
    "emergency_poll_ms": "100",
    "window_check_seconds": "2",
    "repaint_ms": "500",
    "overlay_repaint_ms": "100",
    "settings_file": "",
    "tesseract_cmd": "",
    "window_class": "D3D Window",
    "worker_join_timeout": "1.0",
}


class ConfigManager:
    """Simple configuration manager backed by an INI file.

    Behaviour:
    - Uses a single DEFAULT section for lookups.
    - Creates the file with defaults if it does not exist.
    - Defaults to a per-user config path (%APPDATA% on Windows,
      XDG_CONFIG_HOME or ~/.config on other systems) unless an explicit
      path is provided.
    """

    def __init__(self, config_path: Optional[str] = None) -> None:
        if config_path:
            self.config_path = Path(config_path)
        else:
            if os.name == "nt":
                base = Path(os.getenv("APPDATA", Path.home() / "AppData" / "Roaming"))
            else:
                base = Path(os.getenv("XDG_CONFIG_HOME", Path.home() / ".config"))
            self.config_path = base.joinpath(APP_DIR_NAME, "config.ini")

        self.config = ConfigParser()
        self.load()

    def load(self) -> None:
        """Load configuration from disk, filling in missing defaults."""
        if self.config_path.exists():
            self.config.read(self.config_path, encoding="utf-8")

        missing = [key for key in DEFAULTS if key not in self.config["DEFAULT"]]
        for key in missing:
            self.config["DEFAULT"][key] = DEFAULTS[key]

        # Persist defaults we just added (first run creates the file)
        if missing:
            self.save()

    def get(self, key: str, fallback=None):
        """Get a configuration value.

        Precedence is env (CH_<KEY>) > config.ini > fallback.
        """
        val = os.environ.get(f"CH_{str(key).upper()}")
        if val is not None and str(val) != "":
            return val
        return self.config["DEFAULT"].get(key, fallback)

    def get_int(self, key: str, fallback: int) -> int:
        try:
            return int(str(self.get(key, fallback)).strip())
        except ValueError:
            return fallback

    def get_float(self, key: str, fallback: float) -> float:
        try:
            return float(str(self.get(key, fallback)).strip())
        except ValueError:
            return fallback

    def set(self, key: str, value) -> None:
        self.config["DEFAULT"][key] = str(value)

    def settings_path(self) -> Path:
        """Location of the JSON settings file (next to config.ini unless overridden)."""
        custom = str(self.get("settings_file", "") or "").strip()
        if custom:
            return Path(custom)
        return self.config_path.parent / SETTINGS_FILE_NAME

    def save(self) -> None:
        """Persist current configuration to disk (creates parent directories)."""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with self.config_path.open("w", encoding="utf-8") as fh:
            self.config.write(fh)
