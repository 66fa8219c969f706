import logging
import time
from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def _isolate_logging():
    """Reset root handlers after each test."""
    yield
    logging.shutdown()
    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)


@pytest.fixture
def tmp_log_dir(tmp_path: Path):
    d = tmp_path / "logs"
    d.mkdir(parents=True, exist_ok=True)
    return d


@pytest.fixture
def module(tmp_log_dir, monkeypatch):
    """logging_setup with default_log_dir pointed at a temporary directory."""
    from millerview.app import logging_setup
    monkeypatch.setattr(logging_setup, "default_log_dir", lambda app_name: tmp_log_dir)
    return logging_setup


def _read_text(path: Path) -> str:
    # the listener thread may still hold the file briefly
    for _ in range(10):
        try:
            return path.read_text(encoding="utf-8", errors="replace")
        except OSError:
            time.sleep(0.02)
    return path.read_text(encoding="utf-8", errors="replace")


def test_info_level_writes_file(module, tmp_log_dir):
    logs = module.LogSystem.from_levels("millerview", root_level=logging.INFO,
                                        console_level=logging.INFO)
    logger = logging.getLogger("millerview.test")

    logger.debug("debug should NOT appear")
    logger.info("info should appear")
    logger.warning("warning should appear")
    logs.stop()

    log_file = tmp_log_dir / "millerview.log"
    assert logs.log_file == log_file
    assert log_file.exists()

    text = _read_text(log_file)
    assert "info should appear" in text
    assert "warning should appear" in text
    assert "debug should NOT appear" not in text
    assert " INFO " in text
    assert "millerview.test" in text


def test_debug_level_outputs_debug(module, tmp_log_dir):
    logs = module.LogSystem.from_levels("millerview", root_level=logging.DEBUG,
                                        console_level=logging.DEBUG)
    logger = logging.getLogger("millerview.scene")

    logger.debug("debug visible")
    logger.info("info visible")
    logs.stop()

    text = _read_text(tmp_log_dir / "millerview.log")
    assert "debug visible" in text
    assert "info visible" in text


def test_queue_listener_flush_on_stop(module, tmp_log_dir):
    logs = module.LogSystem.from_levels("millerview", root_level=logging.INFO,
                                        console_level=logging.INFO)
    logger = logging.getLogger("millerview.bulk")

    for i in range(200):
        logger.info("line %04d", i)
    logs.stop()

    text = _read_text(tmp_log_dir / "millerview.log")
    assert "line 0000" in text
    assert "line 0199" in text
    assert "line 0200" not in text
    assert text.count("millerview.bulk") == 200


def test_stop_is_idempotent(module, tmp_log_dir):
    logs = module.LogSystem.from_levels("millerview", root_level=logging.INFO)
    logs.stop()
    logs.stop()
    logging.getLogger("millerview.after").info("after stop")
    assert "after stop" not in _read_text(tmp_log_dir / "millerview.log")


def test_env_level_is_used_when_none_given(module, tmp_log_dir, monkeypatch):
    monkeypatch.setenv(module.ENV_LOG_LEVEL, "WARNING")
    cfg = module.build_config("millerview")
    assert cfg["root"]["level"] == logging.WARNING
    assert cfg["_file_settings"]["filename"] == str(tmp_log_dir / "millerview.log")


def test_rotation_by_small_max_bytes(module, tmp_log_dir, monkeypatch):
    monkeypatch.setenv(module.ENV_LOG_BACKUP_COUNT, "2")
    orig_build = module.build_config

    def tiny_build_config(app_name, root_level=None, console_level=logging.INFO, log_dir=None):
        cfg = orig_build(app_name, root_level, console_level, log_dir)
        cfg["_file_settings"]["maxBytes"] = 1000
        return cfg

    monkeypatch.setattr(module, "build_config", tiny_build_config)

    logs = module.LogSystem.from_levels("millerview", root_level=logging.INFO)
    logger = logging.getLogger("millerview.rotate")
    payload = "X" * 180
    for i in range(200):
        logger.info("i=%03d %s", i, payload)
    logs.stop()

    base = tmp_log_dir / "millerview.log"
    rotated = [tmp_log_dir / "millerview.log.1", tmp_log_dir / "millerview.log.2"]
    assert base.exists()
    assert rotated[0].exists()
    assert not (tmp_log_dir / "millerview.log.3").exists()
    assert "i=199" in _read_text(base)


def test_logging_policy_follows_run_mode(module, tmp_settings):
    from millerview.app.app_settings_manager import AppSettingsManager

    logs = module.LogSystem.from_levels("millerview", root_level=logging.INFO)
    try:
        settings = AppSettingsManager()
        settings.set_run_mode("development")
        settings.set_logging_level("ERROR")
        module.apply_logging_policy(logs, settings)
        assert logging.getLogger().level == logging.DEBUG
        assert logs._console_handler.level == logging.DEBUG

        settings.set_run_mode("production")
        module.apply_logging_policy(logs, settings)
        assert logging.getLogger().level == logging.DEBUG
        assert logs._console_handler.level == logging.ERROR
    finally:
        logs.stop()
