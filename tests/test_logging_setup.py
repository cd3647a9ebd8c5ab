import logging
import os

import pytest

from cabalhelper.core.config import ConfigManager
from cabalhelper.core.logging_setup import LOG_FILE_NAME, prune_old_sessions, setup_logging


@pytest.fixture
def restore_root_logger(monkeypatch):
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    monkeypatch.delenv("CH_LOG_SESSION_DIR", raising=False)
    yield
    for h in root.handlers[:]:
        root.removeHandler(h)
        h.close()
    for h in handlers:
        root.addHandler(h)
    root.setLevel(level)


def test_setup_logging_creates_session(tmp_path, restore_root_logger):
    cfg = ConfigManager(str(tmp_path / "config.ini"))
    session = setup_logging(cfg, level="DEBUG")
    assert session.parent == tmp_path / "logs"
    assert session.name.startswith("session-")
    assert os.environ["CH_LOG_SESSION_DIR"] == str(session)
    assert "CABALHELPER SESSION INFORMATION" in (session / "session_info.txt").read_text(encoding="utf-8")
    logging.getLogger("cabalhelper.test").info("hello")
    for h in logging.getLogger().handlers:
        h.flush()
    assert "hello" in (session / LOG_FILE_NAME).read_text(encoding="utf-8")
    assert logging.getLogger().level == logging.DEBUG


def test_prune_keeps_newest_sessions(tmp_path):
    for i in range(5):
        d = tmp_path / f"session-2026010{i}_000000"
        d.mkdir()
        os.utime(d, (1000 + i, 1000 + i))
    (tmp_path / "other").mkdir()
    prune_old_sessions(tmp_path, keep=3)
    left = sorted(p.name for p in tmp_path.iterdir())
    assert left == ["other", "session-20260102_000000", "session-20260103_000000", "session-20260104_000000"]
