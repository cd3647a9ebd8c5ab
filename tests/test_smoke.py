"""Minimal smoke tests to ensure modules import and core managers work."""

from cabalhelper.core.config import ConfigManager
from cabalhelper.core.hotkeys import VK_ESCAPE, VK_F12, vk_from_name
from cabalhelper.core.state import RunOutcome, WorkerState


def test_config_defaults_and_save(tmp_path, monkeypatch):
    # Use a temp config path
    cfg_path = tmp_path / "config.ini"
    cfg = ConfigManager(str(cfg_path))
    # Defaults present and written on first run
    assert cfg_path.exists()
    assert cfg.get("log_level") == "INFO"
    assert cfg.get("emergency_stop_key") == "esc"
    assert cfg.get_int("repaint_ms", 0) == 500
    assert cfg.get_float("worker_join_timeout", 0.0) == 1.0
    # Modify and save
    cfg.set("log_level", "DEBUG")
    cfg.save()
    # Reload and verify persistence
    cfg2 = ConfigManager(str(cfg_path))
    assert cfg2.get("log_level") == "DEBUG"


def test_config_env_override_and_settings_path(tmp_path, monkeypatch):
    cfg = ConfigManager(str(tmp_path / "config.ini"))
    monkeypatch.setenv("CH_REPAINT_MS", "250")
    assert cfg.get_int("repaint_ms", 0) == 250
    monkeypatch.setenv("CH_OVERLAY_REPAINT_MS", "fast")
    assert cfg.get_int("overlay_repaint_ms", 100) == 100
    assert cfg.settings_path() == tmp_path / "cabalhelper_settings.json"
    monkeypatch.setenv("CH_SETTINGS_FILE", str(tmp_path / "elsewhere.json"))
    assert cfg.settings_path() == tmp_path / "elsewhere.json"


def test_worker_state_drops_stale_generation_writes():
    st = WorkerState()
    gen1, _ = st.begin_run()
    gen2, _ = st.begin_run()
    assert not st.set_status_for(gen1, "old")
    assert not st.set_for(gen1, "k", 1)
    assert not st.finish(gen1, RunOutcome.FAILED)
    assert st.set_status_for(gen2, "new")
    assert st.set_for(gen2, "k", 2)
    assert st.get("k") == 2
    assert st.get("missing") is None
    assert st.status == "new"
    assert st.running


def test_status_log_skips_repeats():
    st = WorkerState(max_log=3)
    for text in ("a", "a", "b", "c", "d"):
        st.set_status(text)
    assert st.log_lines() == ["b", "c", "d"]


def test_vk_from_name():
    assert vk_from_name("esc") == VK_ESCAPE
    assert vk_from_name("F12") == VK_F12
    assert vk_from_name("0x7B") == VK_F12
    assert vk_from_name("nonsense") == VK_ESCAPE
    assert vk_from_name("") == VK_ESCAPE
